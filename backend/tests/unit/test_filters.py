"""Unit tests for the filter / order / include compiler.

Compiled clauses are executed against the SQLite test database without any
tenant scope, so each test checks the raw query semantics.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from clientportal.models import Membership, Milestone, Project, Ticket, User
from clientportal.models.base import utcnow
from clientportal.tenancy.errors import InvalidQueryError
from clientportal.tenancy.filters import check_traversal, compile_includes, compile_order_by, compile_where

from fixtures.multi_org import make_milestone, make_organization, make_project, make_user


def _names(db_session, model, where, order_by=None, attr="name"):
    stmt = select(model).where(compile_where(model, where))
    stmt = stmt.order_by(*(compile_order_by(model, order_by) or [getattr(model, attr)]))
    return [getattr(row, attr) for row in db_session.execute(stmt).scalars()]


@pytest.fixture
def projects(db_session):
    org = make_organization(db_session, "Acme Studio")
    now = utcnow()
    return {
        "alpha": make_project(db_session, org, "Alpha Site", status="active", due_at=now + timedelta(days=1)),
        "beta": make_project(db_session, org, "Beta App", status="planning", due_at=now + timedelta(days=10)),
        "gamma": make_project(db_session, org, "Gamma 100%_done", status="completed"),
    }


class TestScalarFilters:

    def test_equality_and_null(self, db_session, projects):
        assert _names(db_session, Project, {"status": "active"}) == ["Alpha Site"]
        assert _names(db_session, Project, {"due_at": None}) == ["Gamma 100%_done"]

    def test_in_and_not_in(self, db_session, projects):
        assert _names(db_session, Project, {"status": {"in": ["active", "completed"]}}) == [
            "Alpha Site", "Gamma 100%_done"
        ]
        assert _names(db_session, Project, {"status": {"not_in": ["active", "completed"]}}) == ["Beta App"]

    def test_comparisons(self, db_session, projects):
        cutoff = utcnow() + timedelta(days=5)
        assert _names(db_session, Project, {"due_at": {"lt": cutoff}}) == ["Alpha Site"]
        assert _names(db_session, Project, {"due_at": {"gte": cutoff}}) == ["Beta App"]

    def test_not_operator(self, db_session, projects):
        assert _names(db_session, Project, {"status": {"not": "planning"}}) == ["Alpha Site", "Gamma 100%_done"]
        assert _names(db_session, Project, {"status": {"not": {"in": ["active", "planning"]}}}) == [
            "Gamma 100%_done"
        ]

    def test_text_operators_escape_wildcards(self, db_session, projects):
        assert _names(db_session, Project, {"name": {"contains": "100%_"}}) == ["Gamma 100%_done"]
        assert _names(db_session, Project, {"name": {"starts_with": "Be"}}) == ["Beta App"]
        assert _names(db_session, Project, {"name": {"ends_with": "Site"}}) == ["Alpha Site"]

    def test_insensitive_mode(self, db_session, projects):
        assert _names(db_session, Project, {"name": {"contains": "alpha", "mode": "insensitive"}}) == ["Alpha Site"]
        assert _names(db_session, Project, {"name": {"equals": "beta app", "mode": "insensitive"}}) == ["Beta App"]


class TestLogicalFilters:

    def test_or(self, db_session, projects):
        where = {"OR": [{"status": "active"}, {"status": "completed"}]}
        assert _names(db_session, Project, where) == ["Alpha Site", "Gamma 100%_done"]

    def test_empty_or_matches_nothing(self, db_session, projects):
        assert _names(db_session, Project, {"OR": []}) == []

    def test_and_with_single_mapping(self, db_session, projects):
        assert _names(db_session, Project, {"AND": {"status": "planning"}}) == ["Beta App"]

    def test_not_excludes_every_listed_filter(self, db_session, projects):
        where = {"NOT": [{"status": "active"}, {"status": "planning"}]}
        assert _names(db_session, Project, where) == ["Gamma 100%_done"]


class TestRelationFilters:

    def test_to_one_nested_and_is_forms(self, db_session, projects):
        make_milestone(db_session, projects["alpha"], "Kickoff")
        make_milestone(db_session, projects["beta"], "Wireframes")

        assert _names(db_session, Milestone, {"project": {"status": "active"}}, attr="title") == ["Kickoff"]
        assert _names(db_session, Milestone, {"project": {"is": {"status": "planning"}}}, attr="title") == [
            "Wireframes"
        ]
        assert _names(db_session, Milestone, {"project": {"is_not": {"status": "planning"}}}, attr="title") == [
            "Kickoff"
        ]

    def test_to_many_some_every_none(self, db_session, projects):
        make_milestone(db_session, projects["alpha"], "Kickoff", status="completed")
        make_milestone(db_session, projects["alpha"], "Launch", status="pending")
        make_milestone(db_session, projects["beta"], "Wireframes", status="completed")

        assert _names(db_session, Project, {"milestones": {"some": {"status": "pending"}}}) == ["Alpha Site"]
        # Gamma has no milestones, so "every" holds vacuously
        assert _names(db_session, Project, {"milestones": {"every": {"status": "completed"}}}) == [
            "Beta App", "Gamma 100%_done"
        ]
        assert _names(db_session, Project, {"milestones": {"none": {}}}) == ["Gamma 100%_done"]

    def test_membership_filter_on_users(self, db_session):
        org = make_organization(db_session, "Acme Studio")
        make_user(db_session, org, "ada@acme.io")
        make_user(db_session, None, "bob@acme.io")

        where = {"memberships": {"some": {"organization_id": org.id, "status": "active"}}}
        assert _names(db_session, User, where, attr="email") == ["ada@acme.io"]


class TestInvalidQueries:

    @pytest.mark.parametrize("where", [
        {"nonexistent": 1},
        {"status": {"like": "a%"}},
        {"status": {}},
        {"status": {"in": "active"}},
        {"status": {"contains": "a", "mode": "fuzzy"}},
        {"status": {"lt": "a", "mode": "insensitive"}},
        {"milestones": {"any": {}}},
        {"milestones": "x"},
        {"organization": 5},
        "status = 'active'",
    ])
    def test_rejected(self, where):
        with pytest.raises(InvalidQueryError):
            compile_where(Project, where)

    def test_order_by_unknown_column(self):
        with pytest.raises(InvalidQueryError):
            compile_order_by(Project, {"organization": "asc"})

    def test_order_by_bad_direction(self):
        with pytest.raises(InvalidQueryError):
            compile_order_by(Project, [{"name": "sideways"}])

    def test_include_outside_allow_list(self):
        with pytest.raises(InvalidQueryError):
            compile_includes(User, ["memberships"], allowed=())


class TestOrdering:

    def test_multi_key_order(self, db_session, projects):
        order = [{"status": "desc"}, {"name": "asc"}]
        assert _names(db_session, Project, None, order_by=order) == [
            "Beta App", "Gamma 100%_done", "Alpha Site"
        ]


class TestTraversalGuard:

    SEALED = {(Membership, "organization")}
    ROOT_SOME = {(User, "memberships")}

    def test_plain_filters_pass(self):
        check_traversal(User, {"memberships": {"some": {"role": "admin"}}}, self.SEALED, self.ROOT_SOME)
        check_traversal(Ticket, {"project": {"name": "Site"}, "OR": [{"status": "open"}]}, self.SEALED, self.ROOT_SOME)
        check_traversal(User, None, self.SEALED, self.ROOT_SOME)

    @pytest.mark.parametrize("model,where", [
        (User, {"memberships": {"none": {}}}),
        (User, {"OR": [{"memberships": {"some": {}}}]}),
        (User, {"memberships": {"some": {"OR": [{"organization": {"name": "x"}}]}}}),
        (Ticket, {"assignee": {"is": {"memberships": {"some": {}}}}}),
        (Project, {"organization": {"memberships": {"every": {"organization": {"name": "x"}}}}}),
    ])
    def test_rejected(self, model, where):
        with pytest.raises(InvalidQueryError):
            check_traversal(model, where, self.SEALED, self.ROOT_SOME)
