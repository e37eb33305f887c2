"""
Policy Portal Login Automation
Browser lifecycle, login, navigation to Policy Issuance and logout
"""
import asyncio
import logging
from playwright.async_api import async_playwright, Browser, BrowserContext, Page
from config import (
    POLICY_BASE_URL,
    POLICY_USERNAME,
    POLICY_PASSWORD,
    BROWSER_HEADLESS,
    BROWSER_TIMEOUT,
    BROWSER_NAVIGATION_TIMEOUT,
    BROWSER_SLOW_MO,
    BROWSER_VIEWPORT,
    ENABLE_TRACING,
    TRACE_DIR,
    LOG_DIR,
    WAIT_MEDIUM,
    WAIT_PAGE_LOAD,
    TIMEOUT_LONG,
    TIMEOUT_MEDIUM,
)
from strategies import first_visible, is_visible

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

ACCOUNT_MENU_XPATH = "//button[@aria-label='account of current user']"


class PolicyLogin:
    """Handles policy portal login, navigation and logout"""

    def __init__(self, username: str = None, password: str = None, task_id: str = None, page: Page = None):
        """
        Initialize PolicyLogin

        Args:
            username: Portal user name (defaults to POLICY_USERNAME)
            password: Portal password (defaults to POLICY_PASSWORD)
            task_id: Used to name the trace file
            page: Existing page to drive. When given, no browser is launched
                and close() leaves the page alone.
        """
        self.username = username or POLICY_USERNAME
        self.password = password or POLICY_PASSWORD
        self.task_id = task_id or "default"
        self.page: Page = page
        self.owns_browser = page is None
        self.playwright = None
        self.browser: Browser = None
        self.context: BrowserContext = None
        self.trace_path = TRACE_DIR / f"policy_{self.task_id}.zip" if ENABLE_TRACING else None

    async def init_browser(self) -> None:
        """Launch Chromium and open a page with the portal's timeouts"""
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(
            headless=BROWSER_HEADLESS,
            slow_mo=BROWSER_SLOW_MO,
        )
        self.context = await self.browser.new_context(viewport=BROWSER_VIEWPORT)

        if ENABLE_TRACING and self.trace_path:
            await self.context.tracing.start(screenshots=True, snapshots=True, sources=True)
            logger.info(f"Tracing ENABLED - will save to: {self.trace_path}")

        self.page = await self.context.new_page()
        self.page.set_default_timeout(BROWSER_TIMEOUT)
        self.page.set_default_navigation_timeout(BROWSER_NAVIGATION_TIMEOUT)
        logger.info("Browser initialized")

    async def goto_login_page(self) -> None:
        logger.info(f"Navigating to {POLICY_BASE_URL}...")
        await self.page.goto(POLICY_BASE_URL, wait_until="domcontentloaded")

    async def login_to_app(self, username: str, password: str) -> bool:
        """
        Fill the login form and submit it

        Args:
            username: Portal user name
            password: Portal password

        Returns:
            bool: True if the portal menu appeared after submitting
        """
        page = self.page
        username_input = await first_visible([
            page.locator("#txtUserName"),
            page.get_by_role("textbox", name="Enter User Name"),
        ], TIMEOUT_LONG)
        if username_input is None:
            logger.error("User name field not found")
            return False
        await username_input.fill(username)

        password_input = await first_visible([
            page.locator("#txtPassword"),
            page.get_by_role("textbox", name="Enter Password"),
        ], TIMEOUT_MEDIUM)
        if password_input is None:
            logger.error("Password field not found")
            return False
        await password_input.fill(password)

        login_button = await first_visible([
            page.locator("#btnlogin"),
            page.get_by_role("button", name="login"),
        ], TIMEOUT_MEDIUM)
        if login_button is None:
            logger.error("Login button not found")
            return False
        await login_button.click()

        menu = page.get_by_role("button", name="menu")
        if await is_visible(menu, BROWSER_NAVIGATION_TIMEOUT):
            logger.info("Login successful!")
            return True

        logger.warning("Login may have failed - portal menu did not appear")
        screenshot_path = LOG_DIR / "login_failed.png"
        await page.screenshot(path=str(screenshot_path))
        logger.info(f"Screenshot saved to {screenshot_path}")
        return False

    async def login(self) -> bool:
        """Open the browser if needed, go to the portal and log in"""
        try:
            if not self.username or not self.password:
                raise ValueError("Username and password are required for login")

            if self.page is None:
                await self.init_browser()

            await self.goto_login_page()
            return await self.login_to_app(self.username, self.password)

        except Exception as e:
            logger.error(f"Error during login: {e}", exc_info=True)
            if self.page is not None and not self.page.is_closed():
                screenshot_path = LOG_DIR / "login_error.png"
                try:
                    await self.page.screenshot(path=str(screenshot_path))
                    logger.info(f"Screenshot saved to {screenshot_path}")
                except Exception as screenshot_error:
                    logger.debug(f"Screenshot failed: {screenshot_error}")
            return False

    async def open_policy_issuance(self) -> bool:
        """
        Open Policy Centre > Policy > Policy Issuance from the portal menu

        Returns:
            bool: True if the Policy Issuance screen was opened
        """
        page = self.page
        try:
            logger.info("Navigating to Policy Issuance...")
            await page.get_by_role("button", name="menu").click()
            await page.get_by_text("Policy Centre").click()
            await page.get_by_text("Policy", exact=True).first.click()
            await page.get_by_text("Policy Issuance").first.click()
            await asyncio.sleep(WAIT_PAGE_LOAD)
            logger.info(f"Policy Issuance opened: {page.url}")
            return True
        except Exception as e:
            logger.error(f"Error navigating to Policy Issuance: {e}", exc_info=True)
            return False

    async def logout(self) -> bool:
        """Sign out through the account menu"""
        page = self.page
        try:
            logger.info("Logging out...")
            await page.locator(ACCOUNT_MENU_XPATH).click()
            await asyncio.sleep(WAIT_MEDIUM)
            sign_out = await first_visible([
                page.get_by_role("menuitem", name="logout"),
                page.get_by_role("menuitem", name="sign out"),
                page.locator('[role="menu"] li:nth-child(2)'),
                page.locator("li:nth-child(2)"),
            ], TIMEOUT_MEDIUM)
            if sign_out is None:
                logger.error("Sign out entry not found in account menu")
                return False
            await sign_out.click()

            if await is_visible(page.locator("#txtUserName, input[placeholder='Enter User Name']").first, TIMEOUT_LONG):
                logger.info("Logged out")
                return True
            logger.warning(f"Login form not shown after logout, current URL: {page.url}")
            return False
        except Exception as e:
            logger.error(f"Error during logout: {e}", exc_info=True)
            return False

    async def get_page(self) -> Page:
        """Get the current page after login"""
        return self.page

    async def close(self) -> None:
        """Close browser and save trace"""
        if not self.owns_browser:
            return
        try:
            if ENABLE_TRACING and self.trace_path and self.context:
                try:
                    logger.info(f"Saving trace to: {self.trace_path}")
                    await self.context.tracing.stop(path=str(self.trace_path))
                except Exception as e:
                    logger.error(f"Error saving trace: {e}")

            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
            if self.playwright:
                await self.playwright.stop()
            logger.info("Browser closed")
        except Exception as e:
            logger.error(f"Error closing browser: {e}")


async def main():
    """Log in, then log out again"""
    login_handler = PolicyLogin()
    try:
        if await login_handler.login():
            print("Login successful!")
            await asyncio.sleep(5)
            print("Logout successful!" if await login_handler.logout() else "Logout failed!")
        else:
            print("Login failed!")
    finally:
        await login_handler.close()


if __name__ == "__main__":
    asyncio.run(main())
