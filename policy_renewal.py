"""
Policy Renewal Automation
Renews a motor policy on the portal: Renew > previous policy type, the
previous policy lookup, customer, vehicle and discount details, Get Quotes,
BUY NOW, then the same proposal and payment sections as a new policy.
"""
import asyncio
import logging

from config import LOG_DIR, WAIT_LONG, WAIT_MEDIUM, WAIT_PAGE_LOAD
from fixtures import load_credentials, load_fixture
from form_filler import FieldOutcome
from policy_fields import RENEWAL_SECTIONS, previous_policy_details
from policy_issuance import NewCorporatePolicy
from policy_login import PolicyLogin

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

DEFAULT_PREVIOUS_POLICY_TYPE = "Non TMIBASL Policy"


class RenewPolicy(NewCorporatePolicy):
    """Handles the policy renewal flow"""

    FORM_NAME = "renewal"

    def prepare_data(self, data: dict) -> dict:
        """Renewals keep the insured vehicle's chassis and engine numbers"""
        return dict(data)

    async def open_policy_form(self, data: dict) -> bool:
        details = data.get("previousPolicyDetails") or {}
        return await self.start_renewal(details.get("previousPolicyType") or DEFAULT_PREVIOUS_POLICY_TYPE)

    async def start_renewal(self, policy_type: str = DEFAULT_PREVIOUS_POLICY_TYPE) -> bool:
        """
        Click Renew, then the button for where the previous policy was issued

        Args:
            policy_type: Button text, e.g. "Non TMIBASL Policy"

        Returns:
            bool: True if the renewal form was opened
        """
        page = self.page
        try:
            await page.get_by_role("button", name="Renew", exact=True).click()
            await asyncio.sleep(WAIT_MEDIUM)
            await page.get_by_role("button", name=policy_type, exact=True).click()
            await asyncio.sleep(WAIT_LONG)
            logger.info(f"Renewal started ({policy_type})")
            return True
        except Exception as e:
            logger.error(f"Error starting renewal: {e}", exc_info=True)
            return False

    async def fill_quote_sections(self, data: dict) -> None:
        """Previous policy, customer, vehicle and discount sections"""
        await self.fill_previous_policy(data.get("previousPolicyDetails") or {})
        for title, key, build in RENEWAL_SECTIONS:
            await self._scroll_to_heading(title)
            self.field_results.extend(await self.filler.fill(build(data.get(key) or {}), title))

    async def fill_previous_policy(self, details: dict) -> None:
        """
        Fill the previous policy number, let the portal look it up, then the rest

        OEM and the cover dropdowns stay disabled until the lookup finishes.
        """
        title = "Policy Details"
        specs = previous_policy_details(details)
        await self._scroll_to_heading(title)

        lookup = await self.filler.fill(specs[:1], title)
        self.field_results.extend(lookup)
        if lookup[0].outcome is FieldOutcome.FILLED:
            await asyncio.sleep(WAIT_PAGE_LOAD)
        else:
            logger.warning("Previous Policy No not filled, OEM may stay disabled")

        self.field_results.extend(await self.filler.fill(specs[1:], title))


async def main():
    """Run the renewal with the bundled fixtures"""
    data = load_fixture("renewTata.data.json")
    creds = load_credentials()

    browser_handler = PolicyLogin(creds["username"], creds["password"], task_id="renewal")
    try:
        await browser_handler.init_browser()
        flow = RenewPolicy(browser_handler.page)
        result = await flow.run_flow(data, creds)

        print(f"\n{'=' * 60}")
        print("RESULT:")
        print(f"  Success: {result['success']}")
        print(f"  Quote outcome: {result['quote_outcome']}")
        print(f"  Message: {result['message']}")
        print(f"{'=' * 60}\n")
    finally:
        await browser_handler.close()


if __name__ == "__main__":
    asyncio.run(main())
