"""Headless Chromium fixtures for tests that drive static pages."""

import pytest
import pytest_asyncio
from playwright.async_api import async_playwright


@pytest_asyncio.fixture
async def page():
    """Fresh page in headless Chromium; skips when Chromium is not installed."""
    async with async_playwright() as p:
        try:
            browser = await p.chromium.launch(headless=True)
        except Exception as e:
            pytest.skip(f"Chromium not available (run `playwright install chromium`): {e}")
        context = await browser.new_context()
        page = await context.new_page()
        page.set_default_timeout(5000)
        yield page
        await browser.close()
