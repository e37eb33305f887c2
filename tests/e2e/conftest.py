"""Fixtures for runs against the live policy portal."""

import pytest
import pytest_asyncio

from fixtures import load_credentials
from policy_login import PolicyLogin


@pytest.fixture(scope="session")
def portal_credentials():
    """Portal credentials from the environment or testdata/Auth.json.

    Skips when neither POLICY_USERNAME/POLICY_PASSWORD nor Auth.json provide them.
    """
    creds = load_credentials()
    if not creds["username"] or not creds["password"]:
        pytest.skip(
            "Portal credentials not available. "
            "Set POLICY_USERNAME and POLICY_PASSWORD or fill testdata/Auth.json."
        )
    return creds


@pytest_asyncio.fixture
async def portal(portal_credentials):
    """A PolicyLogin with its own browser; closed after the test."""
    handler = PolicyLogin(portal_credentials["username"], portal_credentials["password"], task_id="e2e")
    await handler.init_browser()
    yield handler
    await handler.close()
