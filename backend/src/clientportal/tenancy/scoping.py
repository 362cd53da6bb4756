"""Scope descriptors and the pure scope-merge function.

A scope describes how an entity reaches its organization:

- DirectScope: the entity has its own organization column (Project, Ticket,
  Invoice).
- RelationScope: the organization lives on a parent reached through a
  relation path (Milestone, File, Approval and Task via ``project``).
- MembershipScope: the entity belongs to the organization when an active
  membership links the two (User).

apply_scope() takes a caller filter and returns a new filter with the
organization constraint merged in. The merge is one-directional: wherever
the caller and the scope disagree on the scoped field, the scope value is
kept. The caller's filter is never mutated.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .errors import InvalidQueryError

Where = Dict[str, Any]

# Keys that switch a to-one relation filter into explicit operator form
TO_ONE_OPERATORS = ("is", "is_not")


@dataclass(frozen=True)
class DirectScope:
    column: str = "organization_id"
    relation: str = "organization"


@dataclass(frozen=True)
class RelationScope:
    """Organization reached through ``path`` (relation names, outermost first)."""

    path: Tuple[str, ...] = ("project",)
    column: str = "organization_id"
    foreign_key: str = "project_id"

    @property
    def parent_scope(self) -> Union["DirectScope", "RelationScope"]:
        """Scope of the first entity on the path, used to verify parent connections."""
        if len(self.path) == 1:
            return DirectScope(column=self.column)
        return RelationScope(path=self.path[1:], column=self.column, foreign_key="")


@dataclass(frozen=True)
class MembershipScope:
    relation: str = "memberships"
    column: str = "organization_id"
    status_field: str = "status"
    active_status: str = "active"


Scope = Union[DirectScope, RelationScope, MembershipScope]


def apply_scope(where: Optional[Where], scope: Scope, organization_id: str) -> Where:
    """Return a copy of ``where`` constrained to ``organization_id``.

    Args:
        where: Caller filter in the gateway query shape, or None.
        scope: How the entity reaches its organization.
        organization_id: Resolved organization of the request.

    Returns:
        dict: New filter. The input is left untouched.

    Raises:
        InvalidQueryError: If the caller filter is not a mapping, or the
            slot the scope merges into holds something other than a mapping.
    """
    if where is not None and not isinstance(where, dict):
        raise InvalidQueryError("Filter must be an object")
    if not organization_id:
        raise ValueError("organization_id is required to scope a query")

    merged = copy.deepcopy(where) if where else {}

    if isinstance(scope, DirectScope):
        merged[scope.column] = organization_id
    elif isinstance(scope, RelationScope):
        _merge_relation_path(merged, scope.path, scope.column, organization_id)
    elif isinstance(scope, MembershipScope):
        _merge_membership(merged, scope, organization_id)
    else:
        raise TypeError(f"Unsupported scope: {scope!r}")

    return merged


def _merge_relation_path(where: Where, path: Tuple[str, ...], column: str, organization_id: str) -> None:
    relation, rest = path[0], path[1:]
    nested = where.get(relation)

    if nested is None:
        nested = {}
    elif not isinstance(nested, dict):
        raise InvalidQueryError(f"Filter on relation '{relation}' must be an object")

    if any(key in nested for key in TO_ONE_OPERATORS):
        # {"project": {"is": {...}}}: the constraint goes inside "is".
        # A caller "is": None would match orphans; the scope replaces it.
        target = nested.get("is")
        if target is None:
            target = {}
        elif not isinstance(target, dict):
            raise InvalidQueryError(f"'is' on relation '{relation}' must be an object")
        nested["is"] = target
    else:
        target = nested

    if rest:
        _merge_relation_path(target, rest, column, organization_id)
    else:
        target[column] = organization_id

    where[relation] = nested


def _merge_membership(where: Where, scope: MembershipScope, organization_id: str) -> None:
    nested = where.get(scope.relation)

    if nested is None:
        nested = {}
    elif not isinstance(nested, dict):
        raise InvalidQueryError(f"Filter on relation '{scope.relation}' must be an object")

    some = nested.get("some")
    if some is None:
        some = {}
    elif not isinstance(some, dict):
        raise InvalidQueryError(f"'some' on relation '{scope.relation}' must be an object")

    # Caller constraints under "some" describe the same membership row
    some[scope.column] = organization_id
    some[scope.status_field] = scope.active_status
    nested["some"] = some
    where[scope.relation] = nested


# ============================================================================
# Payload helpers
# ============================================================================

def stamp_organization(data: Dict[str, Any], scope: DirectScope, organization_id: str) -> Dict[str, Any]:
    """Return a create payload whose organization is the scope's.

    Any caller-supplied organization column or relation payload is dropped.
    """
    payload = dict(data)
    payload.pop(scope.relation, None)
    payload[scope.column] = organization_id
    return payload


def strip_tenant_fields(data: Dict[str, Any], scope: DirectScope) -> Tuple[Dict[str, Any], Tuple[str, ...]]:
    """Remove tenant fields from an update payload.

    Returns:
        tuple: (clean payload, names of the keys that were removed)
    """
    payload = dict(data)
    removed = tuple(key for key in (scope.column, scope.relation) if key in payload)
    for key in removed:
        payload.pop(key)
    return payload, removed


_MISSING = object()


def extract_connection(data: Dict[str, Any], relation: str, foreign_key: str) -> Tuple[Dict[str, Any], Any]:
    """Pull a relation connection out of a payload.

    Accepts either ``{relation: {"connect": {"id": ...}}}`` or a plain
    ``{foreign_key: ...}``. The returned payload has the relation key removed
    and the foreign key set when a connection was given.

    Returns:
        tuple: (payload, id). ``id`` is the module-level ``_MISSING`` marker
        when the payload mentions neither key, and None for an explicit
        ``{foreign_key: None}`` or ``{relation: {"disconnect": True}}``.

    Raises:
        InvalidQueryError: Malformed connection object, or conflicting ids.
    """
    payload = dict(data)
    connected_id: Any = _MISSING

    connection = payload.pop(relation, None)
    if connection is not None:
        if not isinstance(connection, dict) or len(connection) != 1:
            raise InvalidQueryError(
                f"Relation '{relation}' expects {{'connect': {{'id': ...}}}} or {{'disconnect': true}}"
            )
        if "connect" in connection:
            target = connection["connect"]
            if not isinstance(target, dict) or set(target) != {"id"} or not target["id"]:
                raise InvalidQueryError(f"'{relation}.connect' expects {{'id': ...}}")
            connected_id = str(target["id"])
        elif connection.get("disconnect") is True:
            connected_id = None
        else:
            raise InvalidQueryError(f"Unsupported operation on relation '{relation}'")

    if foreign_key in payload:
        raw = payload[foreign_key]
        fk_value = str(raw) if raw is not None else None
        if connected_id is not _MISSING and fk_value != connected_id:
            raise InvalidQueryError(f"Conflicting values for '{relation}' and '{foreign_key}'")
        connected_id = fk_value

    if connected_id is not _MISSING:
        payload[foreign_key] = connected_id

    return payload, connected_id


def is_missing(value: Any) -> bool:
    return value is _MISSING
