"""
Quote results polling and purchase action acquisition

After Get Quotes the portal takes anywhere from seconds to minutes to show
results. QuotePoller watches for the results grid or an error alert under a
hard ceiling, then finds a BUY NOW control through a ladder of selectors and
follows it, switching to the popup tab when the portal opens one.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

from playwright.async_api import Locator, Page

from config import (
    QUOTE_POLL_INTERVAL_MS,
    SCREENSHOT_DIR,
    TIMEOUT_MEDIUM,
    TIMEOUT_POPUP,
    TIMEOUT_PROPOSAL,
    TIMEOUT_SHORT,
    WAIT_LONG,
    quote_load_timeout_ms,
)
from errors import PageClosed
from strategies import first_visible, is_visible

logger = logging.getLogger(__name__)

QUOTES_READY_SELECTOR = (
    'table:has-text("Quote"), [data-testid="quotes-grid"], [role="grid"]:has-text("Quote")'
)
ENABLED_BUY_NOW_SELECTOR = 'button:has-text("BUY NOW"):not([disabled])'
BUY_NOW_FINGERPRINT = (
    ".MuiButtonBase-root.MuiButton-root.MuiButton-contained.MuiButton-containedPrimary"
    ".MuiButton-sizeMedium.MuiButton-containedSizeMedium.cursor-pointer"
)
PROPOSAL_READY_SELECTOR = 'input[name="DOB"], input[name="FIRST_NAME"]'

ERROR_ALERT_RE = re.compile(r"error|failed|unable|timeout", re.IGNORECASE)
MINIMUM_RE = re.compile(r"\bmin(imum)?\b", re.IGNORECASE)
BUY_NOW_RE = re.compile(r"buy\s*now", re.IGNORECASE)
PROPOSAL_TEXT_RE = re.compile(r"Proposal|Proposer|Checkout", re.IGNORECASE)


class QuoteOutcome(Enum):
    READY = "ready"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class PollResult:
    """Outcome of one quote wait"""
    outcome: QuoteOutcome
    elapsed_ms: int
    message: str = ""
    purchase_clicked: bool = False


class PageHandle:
    """The page the flow is currently driving; replaced when BUY NOW opens a popup"""

    def __init__(self, page: Page):
        self._page = page
        self.history: List[Page] = [page]

    @property
    def page(self) -> Page:
        return self._page

    def switch_to(self, page: Page) -> None:
        logger.info(f"Switching current page to: {page.url}")
        self._page = page
        self.history.append(page)

    def is_closed(self) -> bool:
        return self._page.is_closed()


class QuotePoller:
    """Waits for quote results and clicks through to the proposal"""

    def __init__(self, handle: PageHandle, timeout_ms: int = None, poll_interval_ms: int = QUOTE_POLL_INTERVAL_MS):
        """
        Args:
            handle: Current page reference shared with the flow
            timeout_ms: Ceiling for the results wait. Defaults to
                PLAYWRIGHT_QUOTE_LOAD_TIMEOUT_MS or 180000.
            poll_interval_ms: Delay between checks
        """
        self.handle = handle
        self.timeout_ms = timeout_ms if timeout_ms is not None else quote_load_timeout_ms()
        self.poll_interval_ms = poll_interval_ms

    async def wait_for_quotes(self) -> PollResult:
        """
        Poll until quotes show, an error alert shows, or the ceiling passes

        Returns:
            PollResult: READY, FAILED (with the alert text) or TIMED_OUT
        """
        loop = asyncio.get_event_loop()
        start = loop.time()
        deadline = start + self.timeout_ms / 1000
        interval = self.poll_interval_ms / 1000

        logger.info(f"Waiting up to {self.timeout_ms} ms for quote results...")

        while True:
            elapsed_ms = int((loop.time() - start) * 1000)

            if await self._quotes_visible():
                logger.info(f"Quote results visible after {elapsed_ms} ms")
                return PollResult(QuoteOutcome.READY, elapsed_ms)

            alert_text = await self._error_alert_text()
            if alert_text:
                logger.error(f"Quote request failed after {elapsed_ms} ms: {alert_text}")
                return PollResult(QuoteOutcome.FAILED, elapsed_ms, alert_text)

            remaining = deadline - loop.time()
            if remaining <= 0:
                elapsed_ms = int((loop.time() - start) * 1000)
                logger.warning(f"No quote results after {elapsed_ms} ms")
                return PollResult(QuoteOutcome.TIMED_OUT, elapsed_ms, "Timed out waiting for quotes")

            await asyncio.sleep(min(interval, remaining))

    async def _quotes_visible(self) -> bool:
        page = self.handle.page
        if await is_visible(page.locator(QUOTES_READY_SELECTOR).first):
            return True
        return await is_visible(page.locator(ENABLED_BUY_NOW_SELECTOR).first)

    async def _error_alert_text(self) -> Optional[str]:
        alert = self.handle.page.get_by_role("alert").filter(has_text=ERROR_ALERT_RE).first
        if not await is_visible(alert):
            return None
        try:
            text = (await alert.inner_text()).strip()
        except Exception as e:
            logger.debug(f"Could not read alert text: {e}")
            text = ""
        return text or "Quote request failed"

    async def check_validation_alerts(self) -> Optional[str]:
        """
        Look for a minimum-value validation message and screenshot it

        Returns:
            str: The validation text, or None
        """
        page = self.handle.page
        text = None
        try:
            alert = page.get_by_role("alert").first
            if await is_visible(alert, 1000):
                alert_text = (await alert.inner_text()).strip()
                if MINIMUM_RE.search(alert_text):
                    text = alert_text
            else:
                min_text = page.get_by_text(MINIMUM_RE).first
                if await is_visible(min_text, 1000):
                    text = (await min_text.inner_text()).strip()

            if text:
                screenshot_path = SCREENSHOT_DIR / "validation-alert.png"
                logger.warning(f"Validation alert: {text}")
                await page.screenshot(path=str(screenshot_path), full_page=True)
                logger.info(f"Screenshot saved to {screenshot_path}")
        except Exception as e:
            logger.debug(f"Validation alert check failed: {e}")
        return text

    def _purchase_tiers(self, page: Page) -> List[Tuple[str, Callable, bool]]:
        """(name, candidate finder, force click) in the order they are tried"""

        async def buy_now_button():
            return await first_visible([page.locator('button:has-text("BUY NOW")').first], TIMEOUT_MEDIUM)

        async def fingerprint():
            return await first_visible([page.locator(BUY_NOW_FINGERPRINT).first], TIMEOUT_SHORT)

        async def common_selectors():
            return await first_visible([
                page.locator(ENABLED_BUY_NOW_SELECTOR).first,
                page.get_by_role("button", name=BUY_NOW_RE).first,
                page.locator('a:has-text("BUY NOW")').first,
                page.locator(".quotation-buynow-btn").first.locator("xpath=.."),
            ], TIMEOUT_SHORT)

        async def first_card():
            card = page.locator(".PolicyListing").first
            if not await is_visible(card, TIMEOUT_MEDIUM):
                return None
            return await first_visible([
                card.locator('button:has-text("BUY NOW"), [role="button"]:has-text("BUY NOW")').first,
            ], TIMEOUT_SHORT)

        async def first_row():
            row = page.locator("table tbody tr").first
            if not await is_visible(row):
                return None
            return await first_visible([
                row.get_by_role("button", name=BUY_NOW_RE).first,
                row.locator('button:has-text("BUY NOW"), a:has-text("BUY NOW")').first,
            ], 1000)

        async def forced():
            return await first_visible([
                page.locator('button:has-text("BUY NOW"), [class*="buynow" i]').first,
            ], TIMEOUT_SHORT)

        return [
            ("buy_now_button", buy_now_button, False),
            ("fingerprint", fingerprint, False),
            ("common_selectors", common_selectors, False),
            ("first_card", first_card, False),
            ("first_row", first_row, False),
            ("forced", forced, True),
        ]

    async def acquire_purchase_action(self) -> bool:
        """
        Find and click a BUY NOW control

        Returns:
            bool: True if a control was clicked

        Raises:
            PageClosed: The current page is gone
        """
        page = self.handle.page
        if page.is_closed():
            raise PageClosed("Page closed before BUY NOW")

        for name, find, force in self._purchase_tiers(page):
            try:
                candidate = await find()
            except Exception as e:
                logger.debug(f"BUY NOW tier '{name}' lookup failed: {e}")
                continue
            if candidate is None:
                logger.debug(f"BUY NOW tier '{name}' found nothing")
                continue
            try:
                await self._activate(candidate, force)
                logger.info(f"Clicked BUY NOW via '{name}'")
                return True
            except Exception as e:
                logger.warning(f"BUY NOW tier '{name}' click failed: {e}")

        logger.error("No BUY NOW control could be clicked")
        return False

    async def _activate(self, candidate: Locator, force: bool) -> None:
        page = self.handle.page
        await candidate.scroll_into_view_if_needed()
        if not force:
            await candidate.click(trial=True)

        popup_task = asyncio.ensure_future(page.wait_for_event("popup", timeout=TIMEOUT_POPUP))
        try:
            await candidate.click(force=force)
        except Exception:
            await self._discard(popup_task)
            raise

        load_task = asyncio.ensure_future(page.wait_for_load_state("networkidle", timeout=TIMEOUT_POPUP))
        await asyncio.wait({popup_task, load_task}, return_when=asyncio.FIRST_COMPLETED)
        if not popup_task.done():
            # Same-tab load can settle before the popup event arrives
            await asyncio.wait({popup_task}, timeout=WAIT_LONG)

        popup = None
        if popup_task.done() and not popup_task.cancelled() and popup_task.exception() is None:
            popup = popup_task.result()
        await self._discard(popup_task)
        await self._discard(load_task)

        if popup is None:
            logger.info("BUY NOW continued in the same tab")
            return

        try:
            await popup.wait_for_load_state("networkidle", timeout=TIMEOUT_POPUP)
        except Exception as e:
            logger.debug(f"Popup did not reach network idle: {e}")
        self.handle.switch_to(popup)

    @staticmethod
    async def _discard(task: asyncio.Future) -> None:
        """Cancel a pending wait and swallow its outcome"""
        if not task.done():
            task.cancel()
        try:
            await task
        except (asyncio.CancelledError, Exception):
            pass

    async def wait_for_proposal_page(self, timeout: int = TIMEOUT_PROPOSAL) -> bool:
        """Wait for the proposal form that follows BUY NOW"""
        page = self.handle.page
        marker = page.locator(PROPOSAL_READY_SELECTOR).or_(page.get_by_text(PROPOSAL_TEXT_RE)).first
        if await is_visible(marker, timeout):
            logger.info("Proposal page loaded")
            return True
        logger.warning(f"Proposal page not detected within {timeout} ms")
        return False

    async def run(self, proposal_timeout: int = TIMEOUT_PROPOSAL) -> PollResult:
        """
        Wait for quotes and, when they are ready, click through to the proposal

        Failures and timeouts are logged and returned, never raised.
        """
        result = await self.wait_for_quotes()
        await self.check_validation_alerts()

        if result.outcome is not QuoteOutcome.READY:
            logger.warning(f"Skipping BUY NOW, quote outcome: {result.outcome.value}")
            return result

        try:
            result.purchase_clicked = await self.acquire_purchase_action()
        except PageClosed as e:
            logger.error(f"Cannot continue to proposal: {e}")
            result.message = str(e)
            return result

        if result.purchase_clicked:
            await self.wait_for_proposal_page(proposal_timeout)
        return result
