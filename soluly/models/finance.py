"""Financial planning models: quarterly goals and business costs."""

import datetime
from typing import Optional

from sqlalchemy import Date, Float, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from soluly.models.base import Base, DisplayIdMixin, TenantMixin


class QuarterlyGoal(TenantMixin, Base):
    """Targets for one quarter of one year."""
    
    __tablename__ = "quarterly_goals"
    __table_args__ = (UniqueConstraint("organization_id", "year", "quarter"),)
    
    year: Mapped[int] = mapped_column(Integer)
    quarter: Mapped[int] = mapped_column(Integer)  # 1..4
    revenue_target: Mapped[float] = mapped_column(Float, default=0)
    projects_target: Mapped[int] = mapped_column(Integer, default=0)
    new_clients_target: Mapped[int] = mapped_column(Integer, default=0)
    profit_margin_target: Mapped[float] = mapped_column(Float, default=0)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    def __repr__(self) -> str:
        return f"<QuarterlyGoal {self.year} Q{self.quarter}>"


class BusinessCost(TenantMixin, DisplayIdMixin, Base):
    """An operating expense."""
    
    __tablename__ = "business_costs"
    DISPLAY_PREFIX = "EXP"
    
    description: Mapped[str] = mapped_column(String(300))
    category: Mapped[str] = mapped_column(String(100))
    subcategory: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    amount: Mapped[float] = mapped_column(Float)
    date: Mapped[datetime.date] = mapped_column(Date, index=True)
    vendor: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    recurring: Mapped[bool] = mapped_column(default=False)
    recurring_frequency: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    tax_deductible: Mapped[bool] = mapped_column(default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    def __repr__(self) -> str:
        return f"<BusinessCost {self.display_id} {self.amount}>"
