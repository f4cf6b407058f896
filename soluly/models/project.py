"""Project model."""

import enum
from datetime import date
from typing import Optional

from sqlalchemy import Date, Enum, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from soluly.models.base import Base, DisplayIdMixin, TenantMixin


class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    COMPLETED = "completed"


class Priority(str, enum.Enum):
    """Shared by projects, tickets, feature requests and quote tasks."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MaintenanceFrequency(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Project(TenantMixin, DisplayIdMixin, Base):
    """A client engagement."""
    
    __tablename__ = "projects"
    DISPLAY_PREFIX = "PRJ"
    
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    client_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    client_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus),
        default=ProjectStatus.PENDING,
    )
    priority: Mapped[Priority] = mapped_column(Enum(Priority), default=Priority.MEDIUM)
    progress: Mapped[int] = mapped_column(Integer, default=0)  # 0..100
    value: Mapped[float] = mapped_column(Float, default=0)
    budget: Mapped[float] = mapped_column(Float, default=0)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    
    # Recurring maintenance contract
    has_maintenance: Mapped[bool] = mapped_column(default=False)
    maintenance_amount: Mapped[float] = mapped_column(Float, default=0)
    maintenance_frequency: Mapped[MaintenanceFrequency] = mapped_column(
        Enum(MaintenanceFrequency),
        default=MaintenanceFrequency.MONTHLY,
    )
    maintenance_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    maintenance_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    def __repr__(self) -> str:
        return f"<Project {self.display_id} ({self.status.value})>"
