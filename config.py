"""
Configuration file for policy issuance automation
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base directory
BASE_DIR = Path(__file__).parent

# Policy portal URLs
POLICY_BASE_URL = os.getenv("POLICY_BASE_URL", "https://uatlifekaplan.tmibasl.in/")

# Credentials (to be set via environment variables or testdata/Auth.json)
POLICY_USERNAME = os.getenv("POLICY_USERNAME", "")
POLICY_PASSWORD = os.getenv("POLICY_PASSWORD", "")

# Browser Configuration (headed by default, the portal is watched while it runs)
BROWSER_HEADLESS = os.getenv("BROWSER_HEADLESS", "False").lower() == "true"
BROWSER_TIMEOUT = int(os.getenv("BROWSER_TIMEOUT", "90000"))  # milliseconds, per action
BROWSER_NAVIGATION_TIMEOUT = int(os.getenv("BROWSER_NAVIGATION_TIMEOUT", "180000"))  # milliseconds
BROWSER_SLOW_MO = int(os.getenv("BROWSER_SLOW_MO", "300"))  # milliseconds between actions
BROWSER_VIEWPORT = {"width": 1280, "height": 720}

# Playwright Tracing Configuration
ENABLE_TRACING = os.getenv("ENABLE_TRACING", "False").lower() == "true"
TRACE_DIR = BASE_DIR / "traces"
TRACE_DIR.mkdir(exist_ok=True)

# Quote polling defaults (milliseconds)
DEFAULT_QUOTE_LOAD_TIMEOUT_MS = 180000
QUOTE_POLL_INTERVAL_MS = 500

# Calendar navigation cap (month steps)
CALENDAR_MAX_STEPS = 30

# Timing Constants (seconds)
WAIT_SHORT = 0.2
WAIT_MEDIUM = 0.5
WAIT_LONG = 1.0
WAIT_PAGE_LOAD = 2.0
WAIT_CALENDAR_STEP = 0.1
WAIT_PAYMENT_RETRY = 3.0

# Timeout Constants (milliseconds)
TIMEOUT_SHORT = 2000
TIMEOUT_MEDIUM = 5000
TIMEOUT_LONG = 10000
TIMEOUT_PROPOSAL = 60000
TIMEOUT_POPUP = 10000

# Test data (fixtures and generated identifiers)
TESTDATA_DIR = BASE_DIR / "testdata"
TESTDATA_DIR.mkdir(exist_ok=True)

# Screenshots taken on validation alerts and failures
SCREENSHOT_DIR = BASE_DIR / "test-results"
SCREENSHOT_DIR.mkdir(exist_ok=True)

# Logging
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)


def _int_from_env(name: str, default: int) -> int:
    """Read a non-negative integer from the environment, falling back on bad input"""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 0 else default


def quote_load_timeout_ms() -> int:
    """Ceiling for the quote results wait, read from PLAYWRIGHT_QUOTE_LOAD_TIMEOUT_MS"""
    value = _int_from_env("PLAYWRIGHT_QUOTE_LOAD_TIMEOUT_MS", DEFAULT_QUOTE_LOAD_TIMEOUT_MS)
    return value or DEFAULT_QUOTE_LOAD_TIMEOUT_MS


def debug_sleep_ms() -> int:
    """Optional pause after Get Quotes for manual observation (0 disables it)"""
    return _int_from_env("PLAYWRIGHT_DEBUG_SLEEP_MS", 0)
