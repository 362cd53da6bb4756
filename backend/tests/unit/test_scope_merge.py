"""Unit tests for the pure scope merge and payload helpers.

No database involved: apply_scope only rewrites filter dicts.
"""

import copy

import pytest

from clientportal.tenancy.errors import InvalidQueryError
from clientportal.tenancy.scoping import (
    DirectScope,
    MembershipScope,
    RelationScope,
    apply_scope,
    extract_connection,
    is_missing,
    stamp_organization,
    strip_tenant_fields,
)

ORG = "org-a"
OTHER = "org-b"


class TestDirectScope:
    """Entities with their own organization column"""

    def test_none_filter_becomes_organization_equality(self):
        assert apply_scope(None, DirectScope(), ORG) == {"organization_id": ORG}

    def test_caller_constraints_are_preserved(self):
        where = {"status": "active", "name": {"contains": "web"}}

        merged = apply_scope(where, DirectScope(), ORG)

        assert merged == {"status": "active", "name": {"contains": "web"}, "organization_id": ORG}

    def test_scope_wins_over_conflicting_caller_value(self):
        merged = apply_scope({"organization_id": OTHER}, DirectScope(), ORG)
        assert merged["organization_id"] == ORG

    def test_scope_wins_over_operator_on_scoped_column(self):
        merged = apply_scope({"organization_id": {"in": [ORG, OTHER]}}, DirectScope(), ORG)
        assert merged["organization_id"] == ORG

    def test_input_is_not_mutated(self):
        where = {"organization_id": OTHER, "status": "active"}
        snapshot = copy.deepcopy(where)

        apply_scope(where, DirectScope(), ORG)

        assert where == snapshot

    def test_nested_logical_filters_are_kept_alongside_scope(self):
        where = {"OR": [{"status": "active"}, {"organization_id": OTHER}]}

        merged = apply_scope(where, DirectScope(), ORG)

        # The OR is ANDed with the top-level scope constraint
        assert merged["OR"] == where["OR"]
        assert merged["organization_id"] == ORG


class TestRelationScope:
    """Entities reaching the organization through their project"""

    scope = RelationScope(path=("project",), foreign_key="project_id")

    def test_empty_filter_gets_nested_constraint(self):
        assert apply_scope({}, self.scope, ORG) == {"project": {"organization_id": ORG}}

    def test_caller_fields_preserved_next_to_relation(self):
        merged = apply_scope({"status": "completed"}, self.scope, ORG)
        assert merged == {"status": "completed", "project": {"organization_id": ORG}}

    def test_caller_relation_constraints_preserved(self):
        merged = apply_scope({"project": {"status": "active"}}, self.scope, ORG)
        assert merged == {"project": {"status": "active", "organization_id": ORG}}

    def test_conflicting_nested_organization_overridden(self):
        merged = apply_scope({"project": {"organization_id": OTHER}}, self.scope, ORG)
        assert merged["project"]["organization_id"] == ORG

    def test_is_form_receives_constraint(self):
        where = {"project": {"is": {"organization_id": OTHER, "name": "Relaunch"}}}

        merged = apply_scope(where, self.scope, ORG)

        assert merged == {"project": {"is": {"organization_id": ORG, "name": "Relaunch"}}}

    def test_is_none_replaced_by_scope(self):
        merged = apply_scope({"project": {"is": None}}, self.scope, ORG)
        assert merged == {"project": {"is": {"organization_id": ORG}}}

    def test_is_not_kept_with_scope_added(self):
        merged = apply_scope({"project": {"is_not": {"status": "cancelled"}}}, self.scope, ORG)
        assert merged == {
            "project": {"is_not": {"status": "cancelled"}, "is": {"organization_id": ORG}}
        }

    def test_multi_hop_path(self):
        scope = RelationScope(path=("milestone", "project"), foreign_key="milestone_id")

        merged = apply_scope({"milestone": {"status": "pending"}}, scope, ORG)

        assert merged == {"milestone": {"status": "pending", "project": {"organization_id": ORG}}}

    def test_parent_scope_of_single_hop_is_direct(self):
        assert self.scope.parent_scope == DirectScope(column="organization_id")

    def test_non_object_relation_filter_rejected(self):
        with pytest.raises(InvalidQueryError):
            apply_scope({"project": "p1"}, self.scope, ORG)

    def test_input_is_not_mutated(self):
        where = {"project": {"is": {"organization_id": OTHER}}}
        snapshot = copy.deepcopy(where)

        apply_scope(where, self.scope, ORG)

        assert where == snapshot


class TestMembershipScope:
    """Users scoped through an active membership"""

    scope = MembershipScope()

    def test_default_membership_predicate(self):
        assert apply_scope(None, self.scope, ORG) == {
            "memberships": {"some": {"organization_id": ORG, "status": "active"}}
        }

    def test_caller_membership_constraints_merged_into_same_predicate(self):
        merged = apply_scope({"memberships": {"some": {"role": "admin"}}}, self.scope, ORG)

        assert merged == {
            "memberships": {"some": {"role": "admin", "organization_id": ORG, "status": "active"}}
        }

    def test_caller_cannot_widen_to_inactive_or_other_org(self):
        where = {"memberships": {"some": {"organization_id": OTHER, "status": "inactive"}}}

        merged = apply_scope(where, self.scope, ORG)

        assert merged["memberships"]["some"] == {"organization_id": ORG, "status": "active"}

    def test_every_and_none_preserved(self):
        where = {"memberships": {"none": {"role": "guest"}}}

        merged = apply_scope(where, self.scope, ORG)

        assert merged["memberships"]["none"] == {"role": "guest"}
        assert merged["memberships"]["some"] == {"organization_id": ORG, "status": "active"}


class TestApplyScopeValidation:

    def test_non_mapping_filter_rejected(self):
        with pytest.raises(InvalidQueryError):
            apply_scope(["id", "1"], DirectScope(), ORG)

    def test_missing_organization_rejected(self):
        with pytest.raises(ValueError):
            apply_scope({}, DirectScope(), "")

    def test_same_input_same_output(self):
        where = {"status": "active"}
        assert apply_scope(where, DirectScope(), ORG) == apply_scope(where, DirectScope(), ORG)


class TestPayloadHelpers:

    def test_stamp_overwrites_organization_and_drops_relation(self):
        data = {"name": "P", "organization_id": OTHER, "organization": {"connect": {"id": OTHER}}}

        payload = stamp_organization(data, DirectScope(), ORG)

        assert payload == {"name": "P", "organization_id": ORG}
        assert data["organization_id"] == OTHER

    def test_strip_tenant_fields_reports_removed_keys(self):
        payload, removed = strip_tenant_fields({"name": "P", "organization_id": OTHER}, DirectScope())

        assert payload == {"name": "P"}
        assert removed == ("organization_id",)

    def test_extract_connect_form(self):
        payload, target = extract_connection(
            {"title": "M1", "project": {"connect": {"id": "p1"}}}, "project", "project_id"
        )
        assert payload == {"title": "M1", "project_id": "p1"}
        assert target == "p1"

    def test_extract_foreign_key_form(self):
        payload, target = extract_connection({"project_id": "p1"}, "project", "project_id")
        assert payload == {"project_id": "p1"}
        assert target == "p1"

    def test_extract_missing_returns_marker(self):
        payload, target = extract_connection({"title": "M1"}, "project", "project_id")
        assert payload == {"title": "M1"}
        assert is_missing(target)

    def test_extract_explicit_null_and_disconnect(self):
        _, target = extract_connection({"project_id": None}, "project", "project_id")
        assert target is None

        payload, target = extract_connection({"assignee": {"disconnect": True}}, "assignee", "assignee_id")
        assert target is None
        assert payload == {"assignee_id": None}

    def test_extract_conflicting_ids_rejected(self):
        with pytest.raises(InvalidQueryError):
            extract_connection(
                {"project_id": "p2", "project": {"connect": {"id": "p1"}}}, "project", "project_id"
            )

    @pytest.mark.parametrize("connection", [
        "p1",
        {"connect": "p1"},
        {"connect": {"name": "P"}},
        {"create": {"name": "P"}},
    ])
    def test_extract_malformed_connection_rejected(self, connection):
        with pytest.raises(InvalidQueryError):
            extract_connection({"project": connection}, "project", "project_id")
