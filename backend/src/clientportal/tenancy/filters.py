"""Compile gateway query dicts into SQLAlchemy expressions.

Filter shape::

    {"status": "active"}                          equality, None means IS NULL
    {"due_at": {"lt": now}}                       scalar operators
    {"title": {"contains": "x", "mode": "insensitive"}}
    {"project": {"organization_id": org_id}}      to-one relation filter
    {"project": {"is": {...}, "is_not": {...}}}   to-one, explicit form
    {"memberships": {"some": {...}}}              to-many: some / every / none
    {"AND": [...]}, {"OR": [...]}, {"NOT": [...]}

Anything that does not name a mapped column, relationship or operator of
the model raises InvalidQueryError.
"""

from typing import Any, Iterable, List, Mapping, Sequence

from sqlalchemy import and_, or_, not_, true, false
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import selectinload

from .errors import InvalidQueryError

SCALAR_OPERATORS = {
    "equals",
    "not",
    "in",
    "not_in",
    "lt",
    "lte",
    "gt",
    "gte",
    "contains",
    "starts_with",
    "ends_with",
}
TEXT_OPERATORS = {"equals", "contains", "starts_with", "ends_with"}
TO_MANY_OPERATORS = {"some", "every", "none"}
TO_ONE_OPERATORS = {"is", "is_not"}
LOGICAL_OPERATORS = ("AND", "OR", "NOT")


def compile_where(model, where: Mapping[str, Any] | None):
    """Compile a filter dict into a boolean clause for ``model``."""
    if where is None:
        return true()
    if not isinstance(where, Mapping):
        raise InvalidQueryError("Filter must be an object")

    mapper = sa_inspect(model)
    clauses = []

    for key, value in where.items():
        if key in LOGICAL_OPERATORS:
            clauses.append(_compile_logical(model, key, value))
        elif key in mapper.relationships:
            clauses.append(_compile_relation(model, mapper.relationships[key], key, value))
        elif key in mapper.column_attrs:
            clauses.append(_compile_scalar(getattr(model, key), key, value))
        else:
            raise InvalidQueryError(f"Unknown field '{key}' on {model.__name__}")

    return and_(true(), *clauses)


def _compile_logical(model, key: str, value: Any):
    items = value if isinstance(value, (list, tuple)) else [value]
    compiled = [compile_where(model, item) for item in items]

    if key == "AND":
        return and_(true(), *compiled)
    if key == "OR":
        return or_(false(), *compiled)
    # NOT: none of the listed filters may match
    return and_(true(), *(not_(clause) for clause in compiled))


def _compile_relation(model, relationship, key: str, value: Any):
    attr = getattr(model, key)
    target = relationship.mapper.class_

    if relationship.uselist:
        if not isinstance(value, Mapping) or not value or set(value) - TO_MANY_OPERATORS:
            raise InvalidQueryError(f"Relation '{key}' expects one of {sorted(TO_MANY_OPERATORS)}")
        parts = []
        for op, sub in value.items():
            condition = compile_where(target, sub)
            if op == "some":
                parts.append(attr.any(condition))
            elif op == "none":
                parts.append(not_(attr.any(condition)))
            else:
                parts.append(not_(attr.any(not_(condition))))
        return and_(*parts)

    if value is None:
        return not_(attr.has())
    if not isinstance(value, Mapping):
        raise InvalidQueryError(f"Filter on relation '{key}' must be an object")

    if value and set(value) <= TO_ONE_OPERATORS:
        parts = []
        if "is" in value:
            sub = value["is"]
            parts.append(not_(attr.has()) if sub is None else attr.has(compile_where(target, sub)))
        if "is_not" in value:
            sub = value["is_not"]
            parts.append(attr.has() if sub is None else not_(attr.has(compile_where(target, sub))))
        return and_(*parts)

    return attr.has(compile_where(target, value))


def _compile_scalar(attr, key: str, value: Any):
    if not isinstance(value, Mapping):
        return attr.is_(None) if value is None else attr == value

    operators = dict(value)
    insensitive = False
    if "mode" in operators:
        mode = operators.pop("mode")
        if mode not in ("default", "insensitive"):
            raise InvalidQueryError(f"Unknown mode '{mode}' on '{key}'")
        if not set(operators) <= TEXT_OPERATORS:
            raise InvalidQueryError(f"'mode' is only valid with {sorted(TEXT_OPERATORS)}")
        insensitive = mode == "insensitive"

    if not operators:
        raise InvalidQueryError(f"Empty filter on '{key}'")

    parts = []
    for op, operand in operators.items():
        if op not in SCALAR_OPERATORS:
            raise InvalidQueryError(f"Unknown operator '{op}' on '{key}'")

        if op == "equals":
            if operand is None:
                parts.append(attr.is_(None))
            elif insensitive:
                parts.append(attr.ilike(_escape_like(operand), escape="\\"))
            else:
                parts.append(attr == operand)
        elif op == "not":
            if isinstance(operand, Mapping):
                parts.append(not_(_compile_scalar(attr, key, operand)))
            elif operand is None:
                parts.append(attr.is_not(None))
            else:
                parts.append(attr != operand)
        elif op in ("in", "not_in"):
            values = _as_list(operand, key, op)
            parts.append(attr.in_(values) if op == "in" else attr.not_in(values))
        elif op == "lt":
            parts.append(attr < operand)
        elif op == "lte":
            parts.append(attr <= operand)
        elif op == "gt":
            parts.append(attr > operand)
        elif op == "gte":
            parts.append(attr >= operand)
        elif op == "contains":
            method = attr.icontains if insensitive else attr.contains
            parts.append(method(operand, autoescape=True))
        elif op == "starts_with":
            method = attr.istartswith if insensitive else attr.startswith
            parts.append(method(operand, autoescape=True))
        else:
            method = attr.iendswith if insensitive else attr.endswith
            parts.append(method(operand, autoescape=True))

    return and_(*parts)


def _as_list(operand: Any, key: str, op: str) -> List[Any]:
    if isinstance(operand, (str, bytes)) or not isinstance(operand, Iterable):
        raise InvalidQueryError(f"'{op}' on '{key}' expects a list")
    return list(operand)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ============================================================================
# Ordering and eager loading
# ============================================================================

def compile_order_by(model, order_by: Mapping[str, str] | Sequence[Mapping[str, str]] | None) -> list:
    """Compile ``{"created_at": "desc"}`` or a list of such mappings."""
    if not order_by:
        return []

    entries = [order_by] if isinstance(order_by, Mapping) else list(order_by)
    mapper = sa_inspect(model)
    clauses = []

    for entry in entries:
        if not isinstance(entry, Mapping):
            raise InvalidQueryError("order_by entries must be objects")
        for key, direction in entry.items():
            if key not in mapper.column_attrs:
                raise InvalidQueryError(f"Cannot order {model.__name__} by '{key}'")
            column = getattr(model, key)
            direction = str(direction).lower()
            if direction == "asc":
                clauses.append(column.asc())
            elif direction == "desc":
                clauses.append(column.desc())
            else:
                raise InvalidQueryError(f"Sort direction must be 'asc' or 'desc', got '{direction}'")

    return clauses


def compile_includes(model, include: Iterable[str], allowed: Iterable[str]) -> list:
    """Build selectinload options for the requested relations."""
    allowed = set(allowed)
    options = []
    for name in include or ():
        if name not in allowed:
            raise InvalidQueryError(f"Cannot include '{name}' on {model.__name__}")
        options.append(selectinload(getattr(model, name)))
    return options


# ============================================================================
# Relation traversal guard
# ============================================================================

def check_traversal(model, where: Mapping[str, Any] | None, sealed=frozenset(), root_some=frozenset()) -> None:
    """Reject filters that walk relations the caller must not reach.

    Relations are named as ``(model, key)`` pairs.

    Args:
        model: Mapped class the filter applies to
        where: Caller filter, before any scope is merged in
        sealed: Relations that may not appear anywhere in the filter
        root_some: To-many relations allowed only as a top-level key of the
            root model, and only in ``{"some": {...}}`` form

    Raises:
        InvalidQueryError: The filter traverses a sealed relation or uses a
            root-only relation elsewhere.
    """
    _walk_relations(model, where, frozenset(sealed), frozenset(root_some), root=True)


def _walk_relations(model, where: Any, sealed, root_some, root: bool) -> None:
    if not isinstance(where, Mapping):
        return

    mapper = sa_inspect(model)
    for key, value in where.items():
        if key in LOGICAL_OPERATORS:
            items = value if isinstance(value, (list, tuple)) else [value]
            for item in items:
                _walk_relations(model, item, sealed, root_some, root=False)
            continue
        if key not in mapper.relationships:
            continue

        pair = (model, key)
        if pair in sealed:
            raise InvalidQueryError(f"Cannot filter {model.__name__} through '{key}'")
        if pair in root_some and not (root and isinstance(value, Mapping) and set(value) == {"some"}):
            raise InvalidQueryError(f"'{key}' on {model.__name__} only supports a top-level 'some' filter")

        target = mapper.relationships[key].mapper.class_
        for sub in _relation_subfilters(mapper.relationships[key], value):
            _walk_relations(target, sub, sealed, root_some, root=False)


def _relation_subfilters(relationship, value: Any) -> list:
    if not isinstance(value, Mapping):
        return []
    if relationship.uselist:
        return list(value.values())
    if value and set(value) <= TO_ONE_OPERATORS:
        return [sub for sub in value.values() if sub is not None]
    return [value]
