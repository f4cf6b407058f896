"""Base model with common fields."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    # Python-side default keeps sub-second ordering on SQLite
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )


class TenantMixin:
    """Scopes a table to one organization."""
    
    organization_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
    )


class DisplayIdMixin:
    """Human-readable identifier (e.g. "TKT-004"), distinct from the primary key."""
    
    DISPLAY_PREFIX = "ID"
    
    display_id: Mapped[str] = mapped_column(String(20), index=True)


def format_display_id(prefix: str, number: int) -> str:
    """Format a display id such as ``TKT-007``."""
    return f"{prefix}-{number:03d}"
