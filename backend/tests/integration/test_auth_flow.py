"""Integration tests for login and token-scoped identity."""

import pytest

from clientportal.auth.password import hash_password

from fixtures.multi_org import add_membership, auth_headers, make_organization, make_user


pytestmark = pytest.mark.integration

PASSWORD = "SecurePass123"


@pytest.fixture
def consultant(db_session, org_a, org_b):
    """User with memberships in both organizations, A first."""
    user = make_user(db_session, org_a, "consultant@acme.io", password_hash=hash_password(PASSWORD))
    add_membership(db_session, user, org_b)
    return user


class TestLogin:

    def test_login_defaults_to_oldest_membership(self, client, consultant, org_a):
        response = client.post("/api/v1/auth/login", json={"email": "consultant@acme.io", "password": PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["organization_id"] == org_a.id
        assert body["role"] == "member"

    def test_login_into_requested_org(self, client, consultant, org_b):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "Consultant@Acme.io", "password": PASSWORD, "organization_id": org_b.id},
        )

        assert response.status_code == 200
        assert response.json()["organization_id"] == org_b.id

    def test_login_into_foreign_org_is_rejected(self, client, db_session, consultant):
        other = make_organization(db_session, "Elsewhere Ltd")

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "consultant@acme.io", "password": PASSWORD, "organization_id": other.id},
        )

        assert response.status_code == 401

    @pytest.mark.parametrize("email,password", [
        ("consultant@acme.io", "WrongPass123"),
        ("nobody@acme.io", PASSWORD),
    ])
    def test_bad_credentials(self, client, consultant, email, password):
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_token_scopes_following_requests(self, client, consultant, org_b):
        login = client.post(
            "/api/v1/auth/login",
            json={"email": "consultant@acme.io", "password": PASSWORD, "organization_id": org_b.id},
        )
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        me = client.get("/api/v1/auth/me", headers=headers)

        assert me.status_code == 200
        assert me.json()["organization_id"] == org_b.id
        assert me.json()["user"]["email"] == "consultant@acme.io"


class TestObservabilityEndpoints:

    def test_health(self, client, db_session):
        response = client.get("/health")

        assert response.status_code == 200
        components = response.json()["components"]
        assert components["database"]["status"] == "healthy"
        assert components["schema"]["status"] == "healthy"

    def test_metrics_exposes_gateway_counters(self, client, multi_org_setup):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        client.get("/api/v1/projects", headers=auth_headers(owner_a, org_a))

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "clientportal_scoped_operations_total" in response.text

    def test_request_id_header(self, client, db_session):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
