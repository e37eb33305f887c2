"""New corporate policy flow against the live portal."""

import pytest

from fixtures import load_fixture
from policy_issuance import NewCorporatePolicy

pytestmark = pytest.mark.e2e


@pytest.mark.asyncio
async def test_login_and_logout(portal) -> None:
    assert await portal.login() is True
    assert await portal.logout() is True


@pytest.mark.asyncio
async def test_new_corporate_policy_flow(portal, portal_credentials) -> None:
    flow = NewCorporatePolicy(portal.page)

    result = await flow.run_flow(load_fixture("newCorporate.data.json"), portal_credentials)

    assert result["quote_outcome"] is not None, result["message"]
    assert result["fields"], "no field outcomes recorded"
    if result["success"]:
        portal.page = flow.page
        assert await portal.logout() is True
