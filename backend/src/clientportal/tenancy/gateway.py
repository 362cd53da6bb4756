"""Scoped entity gateway.

One ScopedAccessor per tenant-owned model, all built from the same
combinator: a model, a scope descriptor and the request's TenantContext.
TenantGateway bundles the accessors for one request.

Every statement the accessors issue carries the scope in its WHERE clause,
including UPDATE and DELETE. Rows outside the scope are indistinguishable
from rows that do not exist.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select, func, update as sa_update, delete as sa_delete
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session

from ..models import (
    Approval,
    File,
    Invoice,
    KbArticle,
    KbCategory,
    KbFeedback,
    KbTag,
    Membership,
    MembershipRole,
    MembershipStatus,
    Milestone,
    Project,
    Task,
    Ticket,
    User,
)
from ..observability.logging_config import get_logger
from ..observability.metrics import scoped_operations_total, scope_misses_total
from .context import TenantContext
from .errors import (
    AmbiguousMatchError,
    InvalidQueryError,
    RecordNotFoundError,
    RelationRequiredError,
)
from .filters import check_traversal, compile_where, compile_order_by, compile_includes
from .scoping import (
    DirectScope,
    MembershipScope,
    RelationScope,
    Scope,
    apply_scope,
    extract_connection,
    is_missing,
    stamp_organization,
    strip_tenant_fields,
)

logger = get_logger(__name__)

# Membership rows link a user to every organization they belong to; filters
# may not walk from a membership to its organization or back to its user.
SEALED_RELATIONS = frozenset({(Membership, "organization"), (Membership, "user")})
# User.memberships is only reachable through the user accessor's own scope slot
ROOT_SOME_RELATIONS = frozenset({(User, "memberships")})


@dataclass(frozen=True)
class Reference:
    """A relation whose target must be visible in the same organization.

    ``required`` references (the parent of a relation-scoped entity) must be
    connected on create and can never be disconnected. ``shared`` names a
    column the target must have in common with the entity, e.g. a task's
    milestone must sit in the task's project.
    """

    relation: str
    foreign_key: str
    model: type
    scope: Scope
    required: bool = False
    shared: Optional[str] = None


class ScopedAccessor:
    """Tenant-scoped CRUD for one model.

    Args:
        session: Request database session
        model: Mapped class
        scope: How ``model`` reaches its organization
        context: Resolved tenant of the request
        references: Relations whose targets are checked against the scope
        includes: Relation names callers may eager-load
    """

    def __init__(
        self,
        session: Session,
        model: type,
        scope: Scope,
        context: TenantContext,
        references: Sequence[Reference] = (),
        includes: Iterable[str] = (),
    ):
        self.session = session
        self.model = model
        self.scope = scope
        self.context = context
        self.includes = tuple(includes)
        self.entity = model.__tablename__

        refs = list(references)
        if isinstance(scope, RelationScope):
            parent_model = sa_inspect(model).relationships[scope.path[0]].mapper.class_
            refs.insert(0, Reference(
                relation=scope.path[0],
                foreign_key=scope.foreign_key,
                model=parent_model,
                scope=scope.parent_scope,
                required=True,
            ))
        self.references = tuple(refs)

    @property
    def organization_id(self) -> str:
        return self.context.organization_id

    # ========================================================================
    # Reads
    # ========================================================================

    def find_many(
        self,
        where: Optional[Dict[str, Any]] = None,
        order_by=None,
        skip: Optional[int] = None,
        take: Optional[int] = None,
        include: Iterable[str] = (),
    ) -> List[Any]:
        """Return all rows matching ``where`` inside the organization."""
        self._record("find_many")
        stmt = select(self.model).where(self._criteria(where))

        order = compile_order_by(self.model, order_by)
        if order:
            stmt = stmt.order_by(*order)
        if skip is not None:
            if skip < 0:
                raise InvalidQueryError("skip must be >= 0")
            stmt = stmt.offset(skip)
        if take is not None:
            if take < 0:
                raise InvalidQueryError("take must be >= 0")
            stmt = stmt.limit(take)

        stmt = stmt.options(*compile_includes(self.model, include, self.includes))
        return list(self.session.execute(stmt).scalars().all())

    def find_unique(self, where: Dict[str, Any], include: Iterable[str] = ()) -> Optional[Any]:
        """Return the single matching row, or None.

        Raises:
            InvalidQueryError: Empty filter.
            AmbiguousMatchError: More than one row matches.
        """
        self._record("find_unique")
        row = self._find_single(where, "find_unique", include)
        if row is None:
            self._miss("find_unique")
        return row

    def count(self, where: Optional[Dict[str, Any]] = None) -> int:
        self._record("count")
        stmt = select(func.count()).select_from(self.model).where(self._criteria(where))
        return int(self.session.execute(stmt).scalar_one())

    # ========================================================================
    # Writes
    # ========================================================================

    def create(self, data: Dict[str, Any]) -> Any:
        """Insert a row owned by the request's organization.

        Raises:
            RelationRequiredError: Relation-scoped entity without its parent.
            RecordNotFoundError: A connected row is outside the organization.
            InvalidQueryError: Unknown payload fields, or a value fails validation.
        """
        self._record("create")
        payload = dict(data)

        if isinstance(self.scope, DirectScope):
            if payload.get(self.scope.column) not in (None, self.organization_id):
                logger.warning(
                    f"Ignoring caller-supplied organization on {self.entity} create",
                    extra={"entity": self.entity, "operation": "create"},
                )
            payload = stamp_organization(payload, self.scope, self.organization_id)

        payload = self._resolve_references(payload, creating=True)
        self._check_shared(payload)
        self._check_columns(payload)

        try:
            instance = self.model(**payload)
        except ValueError as exc:
            raise InvalidQueryError(str(exc))
        self.session.add(instance)
        self.session.flush()
        return instance

    def update(self, where: Dict[str, Any], data: Dict[str, Any]) -> Any:
        """Update the single row matching ``where`` inside the organization.

        The UPDATE statement re-applies the scope and the caller's filter, so
        the row id alone never authorizes a write and a row that stopped
        matching after the lookup is left alone.

        Raises:
            RecordNotFoundError: Nothing matches inside the organization.
            AmbiguousMatchError: More than one row matches; nothing is written.
            InvalidQueryError: A value fails the model's validation.
        """
        self._record("update")
        target = self._require_single(where, "update")
        values = self._prepare_update(data, target)

        if values:
            stmt = (
                sa_update(self.model)
                .where(self.model.id == target.id, self._criteria(where))
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                self._miss("update")
                raise RecordNotFoundError(f"{self.model.__name__} not found")
            self.session.refresh(target)

        return target

    def delete(self, where: Dict[str, Any]) -> Any:
        """Delete the single row matching ``where``; returns the deleted row."""
        self._record("delete")
        target = self._require_single(where, "delete")

        stmt = (
            sa_delete(self.model)
            .where(self.model.id == target.id, self._criteria(where))
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            self._miss("delete")
            raise RecordNotFoundError(f"{self.model.__name__} not found")

        self.session.expunge(target)
        return target

    # ========================================================================
    # Internals
    # ========================================================================

    def _criteria(self, where: Optional[Dict[str, Any]]):
        check_traversal(self.model, where, SEALED_RELATIONS, ROOT_SOME_RELATIONS)
        scoped = apply_scope(where, self.scope, self.organization_id)
        return compile_where(self.model, scoped)

    def _find_single(self, where: Dict[str, Any], operation: str, include: Iterable[str] = ()) -> Optional[Any]:
        if not where:
            raise InvalidQueryError(f"{operation} requires a filter")

        stmt = (
            select(self.model)
            .where(self._criteria(where))
            .limit(2)
            .options(*compile_includes(self.model, include, self.includes))
        )
        rows = self.session.execute(stmt).scalars().all()
        if len(rows) > 1:
            raise AmbiguousMatchError(
                f"{self.model.__name__} filter matched more than one record"
            )
        return rows[0] if rows else None

    def _require_single(self, where: Dict[str, Any], operation: str) -> Any:
        target = self._find_single(where, operation)
        if target is None:
            self._miss(operation)
            raise RecordNotFoundError(f"{self.model.__name__} not found")
        return target

    def _prepare_update(self, data: Dict[str, Any], target: Any) -> Dict[str, Any]:
        payload = dict(data)
        payload.pop("id", None)

        if isinstance(self.scope, DirectScope):
            payload, removed = strip_tenant_fields(payload, self.scope)
            if removed:
                logger.warning(
                    f"Ignoring tenant fields {list(removed)} on {self.entity} update",
                    extra={"entity": self.entity, "operation": "update"},
                )

        payload = self._resolve_references(payload, creating=False)
        self._check_shared(payload, target)
        self._check_columns(payload)
        return self._validate(payload, target)

    def _validate(self, values: Dict[str, Any], target: Any) -> Dict[str, Any]:
        """Run the model's @validates hooks, which a Core UPDATE bypasses."""
        validators = sa_inspect(self.model).validators
        validated = dict(values)
        for key, value in values.items():
            if key not in validators:
                continue
            method, _ = validators[key]
            try:
                validated[key] = method(target, key, value)
            except ValueError as exc:
                raise InvalidQueryError(str(exc))
        return validated

    def _resolve_references(self, payload: Dict[str, Any], creating: bool) -> Dict[str, Any]:
        for ref in self.references:
            payload, target_id = extract_connection(payload, ref.relation, ref.foreign_key)

            if is_missing(target_id):
                if creating and ref.required:
                    raise RelationRequiredError(
                        f"{self.model.__name__} requires a '{ref.relation}' connection"
                    )
                continue

            if target_id is None:
                if ref.required:
                    raise RelationRequiredError(
                        f"{self.model.__name__} requires a '{ref.relation}' connection"
                    )
                continue

            if not self._target_in_scope(ref, target_id):
                self._miss("connect")
                raise RecordNotFoundError(f"{ref.model.__name__} not found")

        return payload

    def _check_shared(self, payload: Dict[str, Any], current: Any = None) -> None:
        """Connected targets must agree with the entity on their ``shared`` column."""
        for ref in self.references:
            if ref.shared is None:
                continue
            if ref.foreign_key not in payload and ref.shared not in payload:
                continue

            target_id = payload.get(ref.foreign_key, getattr(current, ref.foreign_key, None))
            if target_id is None:
                continue
            expected = payload.get(ref.shared, getattr(current, ref.shared, None))

            stmt = select(getattr(ref.model, ref.shared)).where(ref.model.id == target_id)
            if self.session.execute(stmt).scalar_one_or_none() != expected:
                raise InvalidQueryError(
                    f"{ref.model.__name__} must share '{ref.shared}' with the {self.model.__name__}"
                )

    def _target_in_scope(self, ref: Reference, target_id: str) -> bool:
        scoped = apply_scope({"id": target_id}, ref.scope, self.organization_id)
        stmt = select(ref.model.id).where(compile_where(ref.model, scoped)).limit(1)
        return self.session.execute(stmt).first() is not None

    def _check_columns(self, payload: Dict[str, Any]) -> None:
        columns = sa_inspect(self.model).column_attrs
        unknown = [key for key in payload if key not in columns]
        if unknown:
            raise InvalidQueryError(f"Unknown fields for {self.model.__name__}: {sorted(unknown)}")

    def _record(self, operation: str) -> None:
        scoped_operations_total.labels(entity=self.entity, operation=operation).inc()
        logger.debug(
            f"Scoped {self.entity}.{operation}",
            extra={"entity": self.entity, "operation": operation, "org_id": self.organization_id},
        )

    def _miss(self, operation: str) -> None:
        scope_misses_total.labels(entity=self.entity, operation=operation).inc()


class UserAccessor(ScopedAccessor):
    """Users are visible through an active membership in the organization.

    ``create`` also creates that membership; a ``role`` key in create or
    update payloads sets the membership role in this organization only.
    """

    def __init__(self, session: Session, context: TenantContext, includes: Iterable[str] = ()):
        super().__init__(session, User, MembershipScope(), context, includes=includes)

    def create(self, data: Dict[str, Any]) -> User:
        self._record("create")
        payload = self._strip_membership_fields(data, "create")
        role = self._parse_role(payload.pop("role", MembershipRole.MEMBER))
        self._check_columns(payload)

        try:
            user = User(**payload)
        except ValueError as exc:
            raise InvalidQueryError(str(exc))
        self.session.add(user)
        self.session.flush()

        self.session.add(Membership(
            user_id=user.id,
            organization_id=self.organization_id,
            role=role,
            status=MembershipStatus.ACTIVE.value,
        ))
        self.session.flush()
        return user

    def update(self, where: Dict[str, Any], data: Dict[str, Any]) -> User:
        payload = self._strip_membership_fields(data, "update")
        role = payload.pop("role", None)

        if role is None:
            return super().update(where, payload)

        role = self._parse_role(role)
        user = super().update(where, payload)
        stmt = (
            sa_update(Membership)
            .where(
                Membership.user_id == user.id,
                Membership.organization_id == self.organization_id,
            )
            .values(role=role)
            .execution_options(synchronize_session=False)
        )
        self.session.execute(stmt)
        return user

    def _strip_membership_fields(self, data: Dict[str, Any], operation: str) -> Dict[str, Any]:
        payload = dict(data)
        removed = [key for key in ("memberships", "organization_id", "organization") if key in payload]
        for key in removed:
            payload.pop(key)
        if removed:
            logger.warning(
                f"Ignoring membership fields {removed} on user {operation}",
                extra={"entity": self.entity, "operation": operation},
            )
        return payload

    @staticmethod
    def _parse_role(role: Any) -> str:
        try:
            return MembershipRole(role).value
        except ValueError:
            raise InvalidQueryError(f"Unknown role '{role}'")


PROJECT_SCOPE = RelationScope(path=("project",), foreign_key="project_id")
USER_SCOPE = MembershipScope()
ARTICLE_SCOPE = RelationScope(path=("article",), foreign_key="article_id")


class TenantGateway:
    """All tenant-owned accessors for one request.

    Attributes mirror the entity names: ``project``, ``milestone``, ``file``,
    ``approval``, ``task``, ``ticket``, ``invoice`` and ``user``, plus the
    knowledge base accessors ``kb_category``, ``kb_tag``, ``kb_article`` and
    ``kb_feedback``.
    """

    def __init__(self, session: Session, context: TenantContext):
        self.session = session
        self.context = context

        direct = DirectScope()
        project_ref = Reference("project", "project_id", Project, direct)
        milestone_ref = Reference("milestone", "milestone_id", Milestone, PROJECT_SCOPE, shared="project_id")

        def user_ref(relation: str) -> Reference:
            return Reference(relation, f"{relation}_id", User, USER_SCOPE)

        self.project = ScopedAccessor(
            session, Project, direct, context,
            includes=("milestones", "tasks", "files", "approvals"),
        )
        self.milestone = ScopedAccessor(
            session, Milestone, PROJECT_SCOPE, context,
            includes=("project", "tasks"),
        )
        self.file = ScopedAccessor(
            session, File, PROJECT_SCOPE, context,
            references=(user_ref("uploaded_by"),),
            includes=("project", "uploaded_by"),
        )
        self.approval = ScopedAccessor(
            session, Approval, PROJECT_SCOPE, context,
            references=(user_ref("requested_by"), user_ref("decided_by")),
            includes=("project", "requested_by", "decided_by"),
        )
        self.task = ScopedAccessor(
            session, Task, PROJECT_SCOPE, context,
            references=(milestone_ref, user_ref("assignee")),
            includes=("project", "milestone", "assignee"),
        )
        self.ticket = ScopedAccessor(
            session, Ticket, direct, context,
            references=(project_ref, user_ref("assignee")),
            includes=("project", "assignee"),
        )
        self.invoice = ScopedAccessor(
            session, Invoice, direct, context,
            references=(project_ref, user_ref("issued_by")),
            includes=("project",),
        )
        self.user = UserAccessor(session, context)

        category_ref = Reference("category", "category_id", KbCategory, direct, required=True)
        self.kb_category = ScopedAccessor(
            session, KbCategory, direct, context,
            references=(Reference("parent", "parent_id", KbCategory, direct),),
            includes=("parent", "children", "articles"),
        )
        self.kb_tag = ScopedAccessor(session, KbTag, direct, context, includes=("articles",))
        self.kb_article = ScopedAccessor(
            session, KbArticle, direct, context,
            references=(category_ref, user_ref("author")),
            includes=("category", "author", "tags", "feedback"),
        )
        self.kb_feedback = ScopedAccessor(
            session, KbFeedback, ARTICLE_SCOPE, context,
            references=(user_ref("user"),),
            includes=("article", "user"),
        )

    @property
    def organization_id(self) -> str:
        return self.context.organization_id

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
