"""Pytest fixtures for the client portal test suite.

Provides reusable test fixtures for:
- In-memory SQLite database with foreign keys enforced, rebuilt per test
- Two organizations (A and B), each with an owner
- TenantGateway instances scoped to A and to B
- A FastAPI TestClient wired to the test session

Usage:
    def test_cross_org_read(client, multi_org_setup, db_session):
        org_a, org_b, owner_a, owner_b = multi_org_setup
        response = client.get("/api/v1/projects", headers=auth_headers(owner_a, org_a))
        assert response.status_code == 200
"""

import os

# Set environment variables BEFORE any application imports
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("PASSWORD_PEPPER", "test-pepper-secret-key-32-chars-long")
os.environ.setdefault("LOG_JSON", "false")

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session

from clientportal.database import create_db_engine, get_db
from clientportal.models import Base, MembershipRole, Organization, User
from clientportal.tenancy import TenantContext, TenantGateway

from fixtures.multi_org import make_organization, make_user


# Dedicated engine; StaticPool keeps one in-memory database per process
test_engine = create_db_engine("sqlite://")

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def org_a(db_session: Session) -> Organization:
    return make_organization(db_session, "Acme Studio")


@pytest.fixture
def org_b(db_session: Session) -> Organization:
    return make_organization(db_session, "Widget Works")


@pytest.fixture
def owner_a(db_session: Session, org_a: Organization) -> User:
    return make_user(db_session, org_a, "owner@acme.io", role=MembershipRole.OWNER)


@pytest.fixture
def owner_b(db_session: Session, org_b: Organization) -> User:
    return make_user(db_session, org_b, "owner@widget.io", role=MembershipRole.OWNER)


@pytest.fixture
def multi_org_setup(org_a, org_b, owner_a, owner_b):
    """Two organizations with one owner each.

    Returns:
        tuple: (org_a, org_b, owner_a, owner_b)
    """
    return org_a, org_b, owner_a, owner_b


@pytest.fixture
def gateway_a(db_session: Session, org_a: Organization, owner_a: User) -> TenantGateway:
    return TenantGateway(db_session, TenantContext(organization_id=org_a.id, user_id=owner_a.id))


@pytest.fixture
def gateway_b(db_session: Session, org_b: Organization, owner_b: User) -> TenantGateway:
    return TenantGateway(db_session, TenantContext(organization_id=org_b.id, user_id=owner_b.id))


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Unauthenticated TestClient using the test session.

    Pass ``headers=auth_headers(user, org)`` per request to authenticate.
    """
    from clientportal.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()
