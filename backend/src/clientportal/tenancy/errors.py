"""Tenancy exception hierarchy.

Each error carries the HTTP status it maps to. The API layer registers a
single exception handler for TenancyError, so routers let these propagate.
"""

from typing import Optional


class TenancyError(Exception):
    """Base class for errors raised by tenant context resolution and scoped access."""

    status_code: int = 400
    default_detail: str = "Tenancy error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class OrganizationContextMissingError(TenancyError):
    """The request carries no organization identifier."""

    status_code = 400
    default_detail = "Organization context missing"


class RelationRequiredError(TenancyError):
    """A create payload for a relation-scoped entity lacks its parent connection."""

    status_code = 400
    default_detail = "Parent relation is required"


class RecordNotFoundError(TenancyError):
    """No row matched inside the caller's organization.

    Raised identically for rows that do not exist and rows owned by another
    organization.
    """

    status_code = 404
    default_detail = "Record not found"


class AmbiguousMatchError(TenancyError):
    """A single-row operation matched more than one row."""

    status_code = 409
    default_detail = "Filter matched more than one record"


class InvalidQueryError(TenancyError):
    """A filter, ordering, include or payload references unknown fields or operators."""

    status_code = 400
    default_detail = "Invalid query"
