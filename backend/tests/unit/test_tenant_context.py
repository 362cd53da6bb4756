"""Unit tests for tenant context resolution."""

from types import SimpleNamespace

import pytest

from clientportal.observability.request_id import bind_tenant, get_bound_tenant
from clientportal.tenancy import TenantContext, resolve_tenant_context
from clientportal.tenancy.errors import OrganizationContextMissingError


@pytest.fixture(autouse=True)
def unbound():
    bind_tenant(None, None)
    yield
    bind_tenant(None, None)


class TestResolveTenantContext:

    def test_reads_organization_and_user(self):
        state = SimpleNamespace(organization_id="org-1", user_id="user-1")

        assert resolve_tenant_context(state) == TenantContext(organization_id="org-1", user_id="user-1")

    def test_same_state_same_context(self):
        state = SimpleNamespace(organization_id="org-1", user_id="user-1")

        assert resolve_tenant_context(state) == resolve_tenant_context(state)

    def test_binds_tenant_for_logging(self):
        resolve_tenant_context(SimpleNamespace(organization_id="org-1", user_id="user-1"))

        assert get_bound_tenant() == ("org-1", "user-1")

    def test_user_is_optional(self):
        context = resolve_tenant_context(SimpleNamespace(organization_id="org-1"))

        assert context.user_id is None

    @pytest.mark.parametrize("state", [
        SimpleNamespace(),
        SimpleNamespace(organization_id=None, user_id="user-1"),
        SimpleNamespace(organization_id="", user_id="user-1"),
    ])
    def test_missing_organization_raises(self, state):
        with pytest.raises(OrganizationContextMissingError) as exc_info:
            resolve_tenant_context(state)

        assert exc_info.value.status_code == 400
        assert get_bound_tenant() == (None, None)

    def test_context_is_immutable(self):
        context = TenantContext(organization_id="org-1")

        with pytest.raises(AttributeError):
            context.organization_id = "org-2"
