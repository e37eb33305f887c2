"""
New Corporate Policy Automation
Drives a new corporate motor policy from login to Proposal Review:
policy, company, vehicle and discount details, Get Quotes, BUY NOW,
then proposal, AA membership, NCB carry forward, nominee and payment details.
"""
import asyncio
import logging
import re
from datetime import datetime
from typing import List

from playwright.async_api import Page

from config import (
    LOG_DIR,
    SCREENSHOT_DIR,
    WAIT_SHORT,
    WAIT_MEDIUM,
    WAIT_LONG,
    WAIT_PAGE_LOAD,
    WAIT_PAYMENT_RETRY,
    TIMEOUT_MEDIUM,
    TIMEOUT_LONG,
    debug_sleep_ms,
)
from date_picker import DateFieldSetter
from errors import PageClosed
from fixtures import ensure_vehicle_identifiers, load_credentials, load_fixture
from form_filler import FieldOutcome, FieldResult, FormFiller
from policy_fields import PROPOSAL_SECTIONS, QUOTE_SECTIONS, payment_details
from policy_login import PolicyLogin
from quote_poller import PageHandle, QuoteOutcome, QuotePoller
from strategies import is_visible, resolve_first
from toggles import is_pressed

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOG_DIR / 'policy_automation.log'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

GET_QUOTES_RE = re.compile(r"Get Quotes", re.IGNORECASE)
PROPOSAL_REVIEW_RE = re.compile(r"proposal\s*review", re.IGNORECASE)
TODAY_RE = re.compile(r"today", re.IGNORECASE)


class NewCorporatePolicy:
    """Handles the new corporate policy issuance flow"""

    FORM_NAME = "new policy"

    def __init__(self, page: Page, quote_timeout_ms: int = None, payment_retries: int = 3):
        """
        Args:
            page: Page to start on; replaced on the handle if BUY NOW opens a popup
            quote_timeout_ms: Quote results ceiling (defaults to PLAYWRIGHT_QUOTE_LOAD_TIMEOUT_MS)
            payment_retries: Attempts for the payment section
        """
        self.handle = PageHandle(page)
        self.filler = FormFiller(self.handle)
        self.quote_timeout_ms = quote_timeout_ms
        self.payment_retries = payment_retries
        self.field_results: List[FieldResult] = []

    @property
    def page(self) -> Page:
        return self.handle.page

    async def run_flow(self, data: dict, creds: dict) -> dict:
        """
        Run the full policy flow

        Login, navigation and the Get Quotes click are required; any failure
        there ends the flow. Every form field after that is best-effort and
        reported in result["fields"].

        Args:
            data: Fixture shaped like testdata/newCorporate.data.json
            creds: {"username": ..., "password": ...}

        Returns:
            dict: Result with success status and details
        """
        result = {
            "success": False,
            "message": "",
            "page_url": None,
            "quote_outcome": None,
            "purchase_clicked": False,
            "fields": [],
        }
        self.field_results = []

        try:
            # Step 1: Login
            logger.info("Step 1: Logging in...")
            login = PolicyLogin(creds.get("username"), creds.get("password"), page=self.page)
            if not await login.login():
                result["message"] = "Login failed"
                return result

            # Step 2: Policy Issuance > New
            logger.info("Step 2: Opening Policy Issuance...")
            if not await login.open_policy_issuance():
                result["message"] = "Failed to open Policy Issuance"
                return result
            if not await self.open_policy_form(data):
                result["message"] = f"Failed to start a {self.FORM_NAME}"
                return result
            await self.refresh_session_if_needed()

            # Step 3: Sections needed for a quote
            logger.info("Step 3: Filling quote sections...")
            data = self.prepare_data(data)
            await self.fill_quote_sections(data)

            # Step 4: Get Quotes and BUY NOW
            logger.info("Step 4: Requesting quotes...")
            poll_result = await self.get_quotes_and_wait()
            result["quote_outcome"] = poll_result.outcome.value
            result["purchase_clicked"] = poll_result.purchase_clicked

            # Step 5: Proposal page sections
            logger.info("Step 5: Filling proposal sections...")
            await self.fill_proposal_sections(data)

            # Step 6: Payment
            logger.info("Step 6: Filling payment details...")
            await self.fill_payment_details_with_retry(data.get("paymentDetails") or {})

            # Step 7: Proposal Review
            logger.info("Step 7: Opening Proposal Review...")
            review_clicked = await self.click_proposal_review()

            failed = [r.field for r in self.field_results if r.outcome is FieldOutcome.FAILED]
            if poll_result.outcome is not QuoteOutcome.READY:
                result["message"] = f"Quotes {poll_result.outcome.value}: {poll_result.message}"
            elif not poll_result.purchase_clicked:
                result["message"] = "Quotes loaded but BUY NOW could not be clicked"
            else:
                result["success"] = True
                result["message"] = (
                    f"Proposal {'submitted for review' if review_clicked else 'filled'}, "
                    f"{len(failed)} field(s) failed"
                )
            if failed:
                logger.warning(f"Fields not filled: {failed}")

        except PageClosed as e:
            logger.error(f"Page closed during flow: {e}")
            result["message"] = f"Error: {e}"
        except Exception as e:
            logger.error(f"Policy flow error: {e}", exc_info=True)
            result["message"] = f"Error: {str(e)}"
            await self._screenshot("flow_error.png")
        finally:
            result["fields"] = [r.to_dict() for r in self.field_results]
            if not self.page.is_closed():
                result["page_url"] = self.page.url

        logger.info(f"Flow finished: {result['message']}")
        return result

    def prepare_data(self, data: dict) -> dict:
        """Copy of the fixture with fresh chassis and engine numbers where they are blank"""
        data = dict(data)
        data["vehicleDetails"] = ensure_vehicle_identifiers(data.get("vehicleDetails"))
        return data

    async def open_policy_form(self, data: dict) -> bool:
        return await self.start_new_policy()

    async def start_new_policy(self) -> bool:
        """Click the NEW policy button (exact match, the portal also has NEWS)"""
        try:
            await self.page.get_by_role("button", name="New", exact=True).click()
            await asyncio.sleep(WAIT_MEDIUM)
            logger.info("NEW policy selected")
            return True
        except Exception as e:
            logger.error(f"Error clicking NEW: {e}", exc_info=True)
            return False

    async def refresh_session_if_needed(self) -> bool:
        """
        Check the session still responds and reload the page if it does not

        Returns:
            bool: True if the session is usable
        """
        page = self.page
        try:
            await page.locator("body").click(timeout=TIMEOUT_MEDIUM)
            logger.debug("Session is active")
            return True
        except Exception as e:
            logger.warning(f"Session might be expired ({e}), reloading...")
        try:
            await page.goto(page.url, wait_until="networkidle", timeout=30000)
            logger.info("Page reloaded")
            return True
        except Exception as e:
            logger.error(f"Session refresh failed: {e}")
            return False

    async def fill_quote_sections(self, data: dict) -> None:
        """Policy, company, vehicle and discount sections"""
        for title, key, build in QUOTE_SECTIONS:
            section = data.get(key) or {}
            await self._scroll_to_heading(title)
            self.field_results.extend(await self.filler.fill(build(section), title))
            if key == "policyDetails":
                await self.fill_policy_choices(section)

    async def fill_policy_choices(self, details: dict) -> None:
        """Toggle-button choices on Policy Details that are not plain form fields"""
        self.field_results.append(
            await self.select_choice_button("Vehicle Class", details.get("vehicleClass") or "COMMERCIAL")
        )
        if not details.get("policyStartDate"):
            self.field_results.append(await self.set_start_date_today())
        self.field_results.append(
            await self.select_choice_button("Proposer Type", details.get("proposerType") or "Corporate")
        )

    async def select_choice_button(self, field_name: str, choice: str) -> FieldResult:
        """
        Press a toggle button such as COMMERCIAL or Corporate

        Args:
            field_name: Name recorded in the result
            choice: Button text (matched exactly, then case-insensitively)

        Returns:
            FieldResult: filled when the button ends up selected
        """
        page = self.page
        try:
            await page.keyboard.press("Escape")
        except Exception as e:
            logger.debug(f"Escape failed: {e}")

        choice_re = re.compile(re.escape(choice), re.IGNORECASE)
        candidates = [
            ("exact", page.get_by_role("button", name=choice, exact=True).first),
            ("upper", page.get_by_role("button", name=choice.upper(), exact=True).first),
            ("regex", page.get_by_role("button", name=choice_re).first),
            ("text", page.locator("button").filter(has_text=choice_re).first),
        ]

        async def press(button):
            if not await is_visible(button):
                return False
            if await is_pressed(button):
                return True
            await button.click()
            await asyncio.sleep(WAIT_MEDIUM)
            return await is_pressed(button)

        strategy, _ = await resolve_first((name, lambda b=button: press(b)) for name, button in candidates)
        if strategy:
            logger.info(f"{field_name} set to {choice}")
            return FieldResult(field_name, FieldOutcome.FILLED, f"selected {choice}", strategy, "Policy Details")
        logger.warning(f"Could not select {field_name} {choice}")
        return FieldResult(field_name, FieldOutcome.FAILED, f"{choice} button not selected", None, "Policy Details")

    async def set_start_date_today(self) -> FieldResult:
        """Use the calendar's Today button, falling back to typing today's date"""
        page = self.page
        start_date = page.locator('input[name="POLICY_START_DATE"]').first
        if not await is_visible(start_date, TIMEOUT_MEDIUM):
            return FieldResult("Policy Start Date", FieldOutcome.SKIPPED, "field not shown", None, "Policy Details")
        try:
            await start_date.click()
            today_button = page.get_by_role("button", name=TODAY_RE).first
            if await is_visible(today_button, TIMEOUT_MEDIUM):
                await today_button.click()
                await asyncio.sleep(WAIT_SHORT)
                value = await start_date.input_value()
                return FieldResult("Policy Start Date", FieldOutcome.FILLED, f"today ({value})", "today",
                                   "Policy Details")
            await page.keyboard.press("Escape")
            today = datetime.now().strftime("%d/%m/%Y")
            value = await DateFieldSetter(page).set_date(start_date, today)
            outcome = FieldOutcome.FILLED if value == today else FieldOutcome.FAILED
            return FieldResult("Policy Start Date", outcome, f"reads {value}", "date", "Policy Details")
        except Exception as e:
            logger.warning(f"Could not set Policy Start Date: {e}")
            return FieldResult("Policy Start Date", FieldOutcome.FAILED, str(e), None, "Policy Details")

    async def get_quotes_and_wait(self):
        """
        Click Get Quotes, wait for results and follow BUY NOW

        Returns:
            PollResult: Quote outcome; FAILED/TIMED_OUT are not raised

        Raises:
            Exception: The Get Quotes button could not be clicked
        """
        await self.refresh_session_if_needed()

        await self.page.get_by_role("button", name=GET_QUOTES_RE).click()
        logger.info("Get Quotes clicked")

        pause_ms = debug_sleep_ms()
        if pause_ms > 0:
            logger.info(f"Debug pause for {pause_ms} ms")
            await asyncio.sleep(pause_ms / 1000)

        # Let any validation message surface
        await asyncio.sleep(WAIT_PAGE_LOAD)

        poller = QuotePoller(self.handle, timeout_ms=self.quote_timeout_ms)
        return await poller.run()

    async def fill_proposal_sections(self, data: dict) -> None:
        """Proposal, AA membership, NCB carry forward and nominee sections"""
        for title, key, build in PROPOSAL_SECTIONS:
            if self.handle.is_closed():
                raise PageClosed(f"Page closed before {title}")
            await self._scroll_to_heading(title)
            self.field_results.extend(await self.filler.fill(build(data.get(key) or {}), title))

    async def fill_payment_details_with_retry(self, details: dict) -> List[FieldResult]:
        """
        Fill payment mode and DP name, retrying the whole section

        Returns:
            list: FieldResults of the last attempt
        """
        results: List[FieldResult] = []
        for attempt in range(1, self.payment_retries + 1):
            logger.info(f"Payment Details attempt {attempt}/{self.payment_retries}...")
            if self.handle.is_closed():
                logger.error(f"Page is closed on attempt {attempt}")
                if attempt == self.payment_retries:
                    raise PageClosed("Page is closed and cannot be recovered")
                await asyncio.sleep(WAIT_PAYMENT_RETRY)
                continue

            await self._scroll_to_heading("Payment Details")
            results = await self.filler.fill(payment_details(details), "Payment Details")
            if not any(r.outcome is FieldOutcome.FAILED for r in results):
                break
            if attempt < self.payment_retries:
                logger.warning("Payment Details incomplete, retrying...")
                await asyncio.sleep(WAIT_PAYMENT_RETRY)
            else:
                logger.error("All Payment Details attempts failed")

        self.field_results.extend(results)
        return results

    async def click_proposal_review(self) -> bool:
        """Click Proposal Review if it is shown"""
        button = self.page.get_by_role("button", name=PROPOSAL_REVIEW_RE).first
        if not await is_visible(button, TIMEOUT_LONG):
            logger.warning("Proposal Review button not found")
            return False
        await button.click()
        await asyncio.sleep(WAIT_PAGE_LOAD)
        logger.info("Proposal Review clicked")
        return True

    async def _scroll_to_heading(self, title: str) -> None:
        try:
            await self.page.get_by_text(title, exact=True).first.scroll_into_view_if_needed(timeout=2000)
            await asyncio.sleep(WAIT_SHORT)
        except Exception as e:
            logger.debug(f"Heading '{title}' not scrolled into view: {e}")

    async def _screenshot(self, name: str) -> None:
        if self.page.is_closed():
            return
        path = SCREENSHOT_DIR / name
        try:
            await self.page.screenshot(path=str(path), full_page=True)
            logger.info(f"Screenshot saved to {path}")
        except Exception as e:
            logger.debug(f"Screenshot failed: {e}")


async def main():
    """Run the flow with the bundled fixtures"""
    data = load_fixture("newCorporate.data.json")
    creds = load_credentials()

    browser_handler = PolicyLogin(creds["username"], creds["password"], task_id="new_corporate")
    try:
        await browser_handler.init_browser()
        flow = NewCorporatePolicy(browser_handler.page)
        result = await flow.run_flow(data, creds)

        print(f"\n{'=' * 60}")
        print("RESULT:")
        print(f"  Success: {result['success']}")
        print(f"  Quote outcome: {result['quote_outcome']}")
        print(f"  URL: {result['page_url']}")
        print(f"  Message: {result['message']}")
        failed = [f["field"] for f in result["fields"] if f["outcome"] == "failed"]
        print(f"  Failed fields: {failed or 'none'}")
        print(f"{'=' * 60}\n")

        await asyncio.sleep(WAIT_LONG)
    finally:
        await browser_handler.close()


if __name__ == "__main__":
    asyncio.run(main())
