"""Team member model."""

import enum
from typing import Optional

from sqlalchemy import Enum, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from soluly.models.base import Base, DisplayIdMixin, TenantMixin


class MemberStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ContractType(str, enum.Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    CONTRACTOR = "Contractor"


class TeamMember(TenantMixin, DisplayIdMixin, Base):
    """A person working for the organization."""
    
    __tablename__ = "team_members"
    DISPLAY_PREFIX = "TM"
    
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(String(100), default="member")
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[MemberStatus] = mapped_column(
        Enum(MemberStatus),
        default=MemberStatus.ACTIVE,
    )
    contract_type: Mapped[ContractType] = mapped_column(
        Enum(ContractType),
        default=ContractType.FULL_TIME,
    )
    hourly_rate: Mapped[float] = mapped_column(Float, default=0)
    salary: Mapped[float] = mapped_column(Float, default=0)
    total_hours: Mapped[float] = mapped_column(Float, default=0)
    is_owner: Mapped[bool] = mapped_column(default=False)
    
    def __repr__(self) -> str:
        return f"<TeamMember {self.display_id} {self.name}>"
