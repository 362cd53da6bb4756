"""Integration tests for tenant isolation through the HTTP API.

Tests cover:
- Cross-organization reads and writes answer 404, never 403
- Role checks against the stored membership
- Ticket SLA deadlines on create and on priority change
- Requests whose token carries no organization
"""

import os
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from clientportal.models import MembershipRole, MembershipStatus, Project, Ticket

from fixtures.multi_org import auth_headers, make_milestone, make_project, make_ticket, make_user


pytestmark = pytest.mark.integration


class TestCrossOrgAccess:
    """Another organization's rows behave exactly like absent rows."""

    def test_list_shows_only_own_projects(self, client: TestClient, db_session: Session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        make_project(db_session, org_a, "Acme Site")
        make_project(db_session, org_b, "Widget App")

        response = client.get("/api/v1/projects", headers=auth_headers(owner_a, org_a))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert [p["name"] for p in body["items"]] == ["Acme Site"]

    @pytest.mark.parametrize("path", [
        "/api/v1/projects/{id}",
        "/api/v1/projects/{id}/stats",
    ])
    def test_get_other_org_project_is_404(self, client, db_session, multi_org_setup, path):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        project = make_project(db_session, org_a)

        response = client.get(path.format(id=project.id), headers=auth_headers(owner_b, org_b))

        assert response.status_code == 404

    def test_foreign_and_missing_ids_look_the_same(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        project = make_project(db_session, org_a)
        headers = auth_headers(owner_b, org_b)

        foreign = client.patch(f"/api/v1/projects/{project.id}", json={"name": "X"}, headers=headers)
        missing = client.patch(f"/api/v1/projects/{uuid4()}", json={"name": "X"}, headers=headers)

        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json()

    def test_cross_org_update_leaves_row_unchanged(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        project = make_project(db_session, org_a, "Brand Refresh")

        response = client.patch(
            f"/api/v1/projects/{project.id}",
            json={"name": "Hijacked", "status": "cancelled"},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 404
        db_session.refresh(project)
        assert project.name == "Brand Refresh"
        assert project.status == "planning"

    def test_cross_org_delete_is_404(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        ticket = make_ticket(db_session, org_a)

        response = client.delete(f"/api/v1/tickets/{ticket.id}", headers=auth_headers(owner_b, org_b))

        assert response.status_code == 404
        assert db_session.get(Ticket, ticket.id) is not None

    def test_milestones_of_other_org_are_hidden(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        milestone = make_milestone(db_session, make_project(db_session, org_a))
        headers = auth_headers(owner_b, org_b)

        assert client.get("/api/v1/milestones", headers=headers).json() == []
        assert client.get(f"/api/v1/milestones/{milestone.id}", headers=headers).status_code == 404

    def test_user_of_other_org_is_404(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        u = make_user(db_session, org_a, "ada@acme.io")

        response = client.get(f"/api/v1/users/{u.id}", headers=auth_headers(owner_b, org_b))

        assert response.status_code == 404

    def test_dashboard_counts_only_own_rows(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        make_project(db_session, org_a, "Acme Site", status="active")
        make_project(db_session, org_b, "Widget App", status="active")
        make_ticket(db_session, org_b, priority="critical")

        response = client.get("/api/v1/dashboard/stats", headers=auth_headers(owner_a, org_a))

        assert response.status_code == 200
        stats = response.json()
        assert stats["projects"]["total"] == 1
        assert stats["tickets"]["total"] == 0


class TestCreateFlows:

    def test_milestone_connect_to_own_project(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        project = make_project(db_session, org_a)

        response = client.post(
            "/api/v1/milestones",
            json={"title": "Kickoff", "project": {"connect": {"id": project.id}}},
            headers=auth_headers(owner_a, org_a),
        )

        assert response.status_code == 201
        assert response.json()["project_id"] == project.id

    def test_milestone_without_project_is_400(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        headers = auth_headers(owner_a, org_a)

        response = client.post("/api/v1/milestones", json={"title": "Orphan"}, headers=headers)

        assert response.status_code == 400
        assert client.get("/api/v1/milestones", headers=headers).json() == []

    def test_critical_ticket_due_in_four_hours(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup

        response = client.post(
            "/api/v1/tickets",
            json={"title": "Checkout down", "priority": "critical"},
            headers=auth_headers(owner_a, org_a),
        )

        assert response.status_code == 201
        ticket = db_session.get(Ticket, response.json()["id"])
        assert abs((ticket.sla_due_at - ticket.created_at) - timedelta(hours=4)) < timedelta(seconds=5)

    def test_priority_change_recomputes_sla(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        headers = auth_headers(owner_a, org_a)
        created = client.post("/api/v1/tickets", json={"title": "Typo", "priority": "low"}, headers=headers)
        ticket_id = created.json()["id"]

        response = client.patch(f"/api/v1/tickets/{ticket_id}", json={"priority": "high"}, headers=headers)

        assert response.status_code == 200
        ticket = db_session.get(Ticket, ticket_id)
        db_session.refresh(ticket)
        assert abs((ticket.sla_due_at - ticket.created_at) - timedelta(hours=24)) < timedelta(seconds=5)


class TestRoles:

    def test_member_cannot_delete_project(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        member = make_user(db_session, org_a, "member@acme.io")
        project = make_project(db_session, org_a)

        response = client.delete(f"/api/v1/projects/{project.id}", headers=auth_headers(member, org_a))

        assert response.status_code == 403
        assert db_session.get(Project, project.id) is not None

    def test_role_claim_in_token_is_not_trusted(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        member = make_user(db_session, org_a, "member@acme.io")

        response = client.get("/api/v1/users", headers=auth_headers(member, org_a, role="owner"))

        assert response.status_code == 403

    def test_inactive_membership_is_forbidden(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        former = make_user(db_session, org_a, "former@acme.io", status=MembershipStatus.INACTIVE)

        response = client.get("/api/v1/projects", headers=auth_headers(former, org_a))

        assert response.status_code == 403

    def test_token_for_org_without_membership_is_forbidden(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup

        response = client.get("/api/v1/projects", headers=auth_headers(owner_a, org_b))

        assert response.status_code == 403

    def test_finance_can_create_invoice(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        finance = make_user(db_session, org_a, "finance@acme.io", role=MembershipRole.FINANCE)

        response = client.post(
            "/api/v1/invoices",
            json={"amount": "1200.00", "currency": "eur"},
            headers=auth_headers(finance, org_a),
        )

        assert response.status_code == 201
        assert response.json()["currency"] == "EUR"
        assert response.json()["organization_id"] == org_a.id


class TestMissingOrganization:

    def test_token_without_org_claim_is_400(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        token = jwt.encode(
            {"sub": owner_a.id, "exp": int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())},
            os.environ["JWT_SECRET"],
            algorithm="HS256",
        )

        response = client.get("/api/v1/projects", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 400
        assert response.json() == {"detail": "Organization context missing"}

    def test_no_token_is_rejected(self, client, db_session):
        assert client.get("/api/v1/projects").status_code in (401, 403)
