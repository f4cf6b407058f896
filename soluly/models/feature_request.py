"""Feature request models."""

import enum
import uuid
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Enum, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soluly.models.base import Base, DisplayIdMixin, TenantMixin
from soluly.models.project import Priority

if TYPE_CHECKING:
    from soluly.models.project import Project


class FeatureStatus(str, enum.Enum):
    BACKLOG = "backlog"
    IN_REVIEW = "in-review"
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class FeatureRequest(TenantMixin, DisplayIdMixin, Base):
    """A customer feature request, optionally tied to several projects."""
    
    __tablename__ = "feature_requests"
    DISPLAY_PREFIX = "FTR"
    
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[FeatureStatus] = mapped_column(
        Enum(FeatureStatus),
        default=FeatureStatus.BACKLOG,
    )
    priority: Mapped[Priority] = mapped_column(Enum(Priority), default=Priority.MEDIUM)
    requested_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    client_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    added_to_roadmap: Mapped[bool] = mapped_column(default=False)
    estimated_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    estimated_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    
    project_links: Mapped[List["FeatureRequestProject"]] = relationship(
        "FeatureRequestProject",
        back_populates="feature_request",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    
    @property
    def project_ids(self) -> List[uuid.UUID]:
        return [link.project_id for link in self.project_links]
    
    @property
    def project_names(self) -> List[str]:
        return [link.project.name for link in self.project_links if link.project]
    
    def __repr__(self) -> str:
        return f"<FeatureRequest {self.display_id} ({self.status.value})>"


class FeatureRequestProject(Base):
    """Association between a feature request and a project."""
    
    __tablename__ = "feature_request_projects"
    
    feature_request_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("feature_requests.id", ondelete="CASCADE"),
        index=True,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"),
        index=True,
    )
    
    feature_request: Mapped["FeatureRequest"] = relationship(
        "FeatureRequest",
        back_populates="project_links",
    )
    project: Mapped["Project"] = relationship("Project", lazy="selectin")
