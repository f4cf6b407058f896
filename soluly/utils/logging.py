"""Error logging with tenant and record context."""

import logging
import traceback
from os import getenv
from typing import Any, Optional

# Check if debug mode is enabled
DEBUG = getenv("APP_DEBUG", "false").lower() == "true"

logger = logging.getLogger("Soluly")

ORGANIZATION_HEADER = "x-organization-id"


def loaded_attribute(obj: Any, name: str) -> Any:
    """Read an attribute only if already loaded, so logging never triggers a lazy load."""
    return getattr(obj, "__dict__", {}).get(name)


def describe_organization(organization: Any) -> str:
    """Slug and id for a loaded organization, or the raw header/id value."""
    if not hasattr(organization, "__table__"):
        return str(organization)
    slug = loaded_attribute(organization, "slug")
    organization_id = loaded_attribute(organization, "id")
    return f"{slug} ({organization_id})" if slug else str(organization_id)


def describe_record(record: Any) -> str:
    return str(loaded_attribute(record, "display_id") or loaded_attribute(record, "id"))


def build_context(
    organization: Any = None,
    record: Any = None,
    **extra: Any,
) -> dict:
    """
    Ordered log context: organization first, then the record's display id,
    then any extra identifying values. ``None`` values are dropped.
    """
    context = {}
    if organization is not None:
        context["organization"] = describe_organization(organization)
    if record is not None:
        context["record"] = describe_record(record)
    context.update((key, value) for key, value in extra.items() if value is not None)
    return context


def error_log(
    message: str,
    exc: Optional[BaseException] = None,
    organization: Any = None,
    record: Any = None,
    **extra: Any,
) -> None:
    """
    Log a failed operation with the tenant and record it concerned.
    
    The traceback is appended to the message only in debug mode; the
    exception itself is always attached via ``exc_info``.
    
    Args:
        message: What failed, e.g. "Failed to create ticket"
        exc: The exception, if any
        organization: Organization instance, id or header value
        record: Model instance; its ``display_id`` is logged
        **extra: Other identifying values (title, category, ...)
    """
    parts = [message]
    
    context = build_context(organization, record, **extra)
    if context:
        parts.append("Context: " + ", ".join(f"{k}={v}" for k, v in context.items()))
    
    if exc is not None:
        parts.append(f"Exception: {type(exc).__name__}: {exc}")
        if DEBUG:
            formatted = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            parts.append(f"Traceback:\n{formatted}")
    
    full_message = " | ".join(parts)
    
    if exc is not None:
        logger.error(full_message, exc_info=exc)
    else:
        logger.error(full_message)


def log_request_error(
    request: Any,
    exc: BaseException,
    message: Optional[str] = None,
) -> None:
    """Log an exception escaping a request, tagged with its tenant header and route."""
    headers = getattr(request, "headers", None)
    url = getattr(request, "url", None)
    error_log(
        message or f"Unhandled exception: {type(exc).__name__}",
        exc=exc,
        organization=headers.get(ORGANIZATION_HEADER) if headers is not None else None,
        method=getattr(request, "method", None),
        path=getattr(url, "path", None) if url is not None else None,
    )
