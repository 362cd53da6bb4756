"""Security tests for tenant escape attempts

Tests cover:
- Smuggling organization_id into create and update payloads
- Connecting rows to another organization's parents or users
- Widening a filter to another organization
- Reaching another organization's rows through nested endpoints
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from clientportal.models import Approval, Invoice, Milestone, Project, Ticket

from fixtures.multi_org import auth_headers, make_milestone, make_project, make_ticket, make_user


pytestmark = pytest.mark.security


class TestPayloadOrganizationInjection:
    """The caller's organization always wins over payload values"""

    @pytest.mark.parametrize("path,payload,model", [
        ("/api/v1/projects", {"name": "Trojan"}, Project),
        ("/api/v1/tickets", {"title": "Trojan"}, Ticket),
        ("/api/v1/invoices", {"amount": "10.00"}, Invoice),
    ])
    def test_create_ignores_foreign_org(self, client: TestClient, db_session: Session, multi_org_setup,
                                        path, payload, model):
        org_a, org_b, owner_a, owner_b = multi_org_setup

        response = client.post(
            path,
            json={**payload, "organization_id": org_a.id},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 201
        row = db_session.get(model, response.json()["id"])
        assert row.organization_id == org_b.id

    def test_update_cannot_move_project_to_other_org(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        project = make_project(db_session, org_b, "Widget App")

        response = client.patch(
            f"/api/v1/projects/{project.id}",
            json={"organization_id": org_a.id, "name": "Moved"},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 200
        db_session.refresh(project)
        assert project.organization_id == org_b.id
        assert project.name == "Moved"

    def test_update_cannot_move_ticket_to_other_org(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        ticket = make_ticket(db_session, org_b)

        response = client.patch(
            f"/api/v1/tickets/{ticket.id}",
            json={"organization_id": org_a.id},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 200
        db_session.refresh(ticket)
        assert ticket.organization_id == org_b.id


class TestRelationEscape:
    """Connected rows must belong to the caller's organization"""

    def test_milestone_under_foreign_project(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        project_a = make_project(db_session, org_a)

        response = client.post(
            "/api/v1/milestones",
            json={"title": "Planted", "project": {"connect": {"id": project_a.id}}},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 404
        assert db_session.execute(select(Milestone)).scalars().all() == []

    def test_move_milestone_to_foreign_project(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        milestone = make_milestone(db_session, make_project(db_session, org_b))
        project_a = make_project(db_session, org_a)

        response = client.patch(
            f"/api/v1/milestones/{milestone.id}",
            json={"project_id": project_a.id},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 404
        db_session.refresh(milestone)
        assert milestone.project_id != project_a.id

    @pytest.mark.parametrize("field", ["project_id", "assignee_id"])
    def test_ticket_links_to_foreign_rows(self, client, db_session, multi_org_setup, field):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        foreign_ids = {"project_id": make_project(db_session, org_a).id, "assignee_id": owner_a.id}

        response = client.post(
            "/api/v1/tickets",
            json={"title": "Linked", field: foreign_ids[field]},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 404

    def test_assign_task_to_foreign_user(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        project_b = make_project(db_session, org_b)

        response = client.post(
            "/api/v1/tasks",
            json={"title": "Review copy", "project_id": project_b.id, "assignee_id": owner_a.id},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 404

    def test_decide_foreign_approval(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        approval = Approval(project_id=make_project(db_session, org_a).id, title="Logo v2")
        db_session.add(approval)
        db_session.commit()

        response = client.post(
            f"/api/v1/approvals/{approval.id}/decision",
            json={"status": "approved"},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 404
        db_session.refresh(approval)
        assert approval.status == "pending"


class TestFilterEscape:
    """Query parameters cannot widen the scope"""

    def test_project_id_filter_on_foreign_project(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        project_a = make_project(db_session, org_a)
        make_milestone(db_session, project_a, "Secret")

        response = client.get(
            "/api/v1/milestones",
            params={"project_id": project_a.id},
            headers=auth_headers(owner_b, org_b),
        )

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize("q", ["' OR '1'='1", "%", "_", "\\"])
    def test_search_text_is_literal(self, client, db_session, multi_org_setup, q):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        make_project(db_session, org_a, "Acme Site")

        response = client.get("/api/v1/projects", params={"q": q}, headers=auth_headers(owner_b, org_b))

        assert response.status_code == 200
        assert response.json()["total"] == 0

    def test_user_list_excludes_foreign_users(self, client, db_session, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        make_user(db_session, org_a, "ada@acme.io")

        response = client.get("/api/v1/users", headers=auth_headers(owner_b, org_b))

        assert response.status_code == 200
        assert [u["email"] for u in response.json()] == ["owner@widget.io"]
