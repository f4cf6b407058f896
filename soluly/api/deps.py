"""Shared controller dependencies and query helpers."""

import logging
import uuid
from typing import Any, Optional, Type, TypeVar

from litestar import Request
from litestar.exceptions import NotFoundException, ValidationException
from pydantic import BaseModel
from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.models import Base, Organization, format_display_id

logger = logging.getLogger("Soluly.deps")

ORGANIZATION_HEADER = "X-Organization-Id"

ModelT = TypeVar("ModelT", bound=Base)


async def provide_organization(request: Request, session: AsyncSession) -> Organization:
    """Resolve the tenant named by the ``X-Organization-Id`` header."""
    raw = request.headers.get(ORGANIZATION_HEADER)
    if not raw:
        raise ValidationException(f"Missing {ORGANIZATION_HEADER} header")
    try:
        organization_id = uuid.UUID(raw)
    except ValueError:
        raise ValidationException(f"Invalid {ORGANIZATION_HEADER} header: '{raw}'")
    
    organization = await session.get(Organization, organization_id)
    if not organization:
        raise NotFoundException(f"Organization {organization_id} not found")
    return organization


async def next_display_id(
    session: AsyncSession,
    model: Type[Any],
    organization_id: uuid.UUID,
) -> str:
    """Next ``PREFIX-NNN`` id for ``model`` within one organization.
    
    Count-based: concurrent creates can produce the same id.
    """
    stmt = select(func.count()).select_from(model).where(model.organization_id == organization_id)
    count = (await session.execute(stmt)).scalar_one()
    return format_display_id(model.DISPLAY_PREFIX, count + 1)


async def get_or_404(
    session: AsyncSession,
    model: Type[ModelT],
    record_id: uuid.UUID,
    organization: Organization,
) -> ModelT:
    """Fetch a tenant row by primary key or raise NotFoundException."""
    stmt = select(model).where(
        model.id == record_id,
        model.organization_id == organization.id,
    )
    record = (await session.execute(stmt)).scalar_one_or_none()
    if not record:
        raise NotFoundException(f"{model.__name__} {record_id} not found")
    return record


async def get_by_display_id_or_404(
    session: AsyncSession,
    model: Type[ModelT],
    display_id: str,
    organization: Organization,
) -> ModelT:
    stmt = select(model).where(
        model.display_id == display_id.upper(),
        model.organization_id == organization.id,
    )
    record = (await session.execute(stmt)).scalars().first()
    if not record:
        raise NotFoundException(f"{model.__name__} '{display_id}' not found")
    return record


async def list_for_organization(
    session: AsyncSession,
    model: Type[ModelT],
    organization: Organization,
    *criteria: Any,
    order_by: Optional[Any] = None,
) -> list:
    """All rows of ``model`` for the tenant, newest first unless ``order_by`` is given."""
    stmt = (
        select(model)
        .where(model.organization_id == organization.id, *criteria)
        .order_by(order_by if order_by is not None else model.created_at.desc())
    )
    return list((await session.execute(stmt)).scalars().all())


def reject_cleared_fields(model: Type[Any], changes: dict) -> None:
    """Refuse explicit nulls for columns that cannot be empty."""
    columns = sa_inspect(model).columns
    cleared = [
        field for field, value in changes.items()
        if value is None and columns.get(field) is not None and not columns.get(field).nullable
    ]
    if cleared:
        raise ValidationException(f"Cannot clear required field(s): {', '.join(sorted(cleared))}")


def apply_changes(record: Any, data: BaseModel, exclude: Optional[set] = None) -> dict:
    """Copy the fields the client actually sent onto ``record``."""
    changes = data.model_dump(exclude_unset=True, exclude=exclude)
    reject_cleared_fields(type(record), changes)
    for field, value in changes.items():
        setattr(record, field, value)
    return changes
