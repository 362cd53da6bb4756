"""Request-scoped correlation values for logging.

Provides context-aware request ID generation plus the tenant identifiers of
the current request, propagated across async operations through
contextvars.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

# Context variables (async-safe)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
org_id_var: ContextVar[Optional[str]] = ContextVar("org_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID.

    Returns:
        str: UUID v4 request ID
    """
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Get current request ID from context.

    Returns:
        str: Current request ID or "no-request-id" if not set
    """
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def bind_tenant(org_id: Optional[str], user_id: Optional[str]) -> None:
    """Attach the resolved tenant to the logging context of this request."""
    org_id_var.set(org_id)
    user_id_var.set(user_id)


def get_bound_tenant() -> tuple[Optional[str], Optional[str]]:
    return org_id_var.get(), user_id_var.get()
