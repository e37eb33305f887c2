"""
Date entry for masked MUI date inputs

The portal's date fields are readonly inputs behind an input mask with a
calendar dialog. None of the three ways in works on every field, so the
setter tries them in order:

1. Inject the value through the native value setter and fire input/change.
2. Open the calendar, step month by month to the target, click the day.
3. Type the literal characters and commit with Enter.
"""
import asyncio
import logging
import re
from typing import Optional, Tuple

from playwright.async_api import Locator, Page

from config import CALENDAR_MAX_STEPS, TIMEOUT_MEDIUM, WAIT_CALENDAR_STEP
from errors import DateInputNotFound
from strategies import first_visible, is_visible, resolve_first

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
HEADER_RE = re.compile(r"\b(" + "|".join(MONTH_NAMES) + r")\s+(\d{4})\b")

DIALOG_SELECTOR = '[role="dialog"]'
NEXT_MONTH_SELECTORS = [
    '[aria-label="Next month"]',
    'button[title="Next month"]',
    '[data-testid*="NextArrow"]',
    'button:has-text("›")',
    'button:has-text(">")',
]
PREV_MONTH_SELECTORS = [
    '[aria-label="Previous month"]',
    'button[title="Previous month"]',
    '[data-testid*="PreviousArrow"]',
    'button:has-text("‹")',
    'button:has-text("<")',
]

# Runs in the page: lift readonly/disabled, write through the prototype
# setter so framework-managed inputs see the change, then notify listeners.
_INJECT_VALUE_JS = """
(el, value) => {
    el.removeAttribute('readonly');
    el.readOnly = false;
    el.removeAttribute('disabled');
    el.disabled = false;
    const proto = el instanceof HTMLTextAreaElement
        ? HTMLTextAreaElement.prototype
        : HTMLInputElement.prototype;
    const setter = Object.getOwnPropertyDescriptor(proto, 'value').set;
    setter.call(el, value);
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
    el.blur();
}
"""


def split_date(date_str: str) -> Tuple[int, int, int]:
    """
    Split a DD/MM/YYYY string into integers

    Only the shape is checked; 30/02/2024 is returned as (30, 2, 2024).

    Raises:
        ValueError: The string is not three numeric parts
    """
    parts = (date_str or "").strip().split("/")
    if len(parts) != 3 or not all(p.strip().isdigit() for p in parts):
        raise ValueError(f"Expected DD/MM/YYYY, got: {date_str!r}")
    day, month, year = (int(p) for p in parts)
    return day, month, year


def parse_calendar_header(text: str) -> Optional[Tuple[int, int]]:
    """
    Find the first 'Month YYYY' label in calendar text

    Returns:
        tuple: (month 1-12, year) or None
    """
    match = HEADER_RE.search(text or "")
    if not match:
        return None
    return MONTH_NAMES.index(match.group(1)) + 1, int(match.group(2))


def month_offset(current: Tuple[int, int], target: Tuple[int, int]) -> int:
    """Signed number of months from current (month, year) to target (month, year)"""
    current_month, current_year = current
    target_month, target_year = target
    return (target_year * 12 + target_month) - (current_year * 12 + current_month)


class DateFieldSetter:
    """Writes DD/MM/YYYY values into masked date inputs"""

    def __init__(
        self,
        page: Page,
        visibility_timeout: int = TIMEOUT_MEDIUM,
        dialog_timeout: int = TIMEOUT_MEDIUM,
        max_steps: int = CALENDAR_MAX_STEPS,
    ):
        self.page = page
        self.visibility_timeout = visibility_timeout
        self.dialog_timeout = dialog_timeout
        self.max_steps = max_steps

    async def set_date(self, input_locator: Locator, date_str: str) -> str:
        """
        Set a date input to the literal date string

        Args:
            input_locator: The date input (first match is used)
            date_str: Date in DD/MM/YYYY form

        Returns:
            str: The input's value after the last tier that ran

        Raises:
            DateInputNotFound: The input did not become visible
        """
        field = input_locator.first
        if not await is_visible(field, self.visibility_timeout):
            raise DateInputNotFound(f"Date input not visible for value {date_str}")

        tier, _ = await resolve_first([
            ("inject", lambda: self._inject(field, date_str)),
            ("calendar", lambda: self._pick_from_calendar(field, date_str)),
            ("type", lambda: self._type(field, date_str)),
        ])

        value = await self._read(field)
        if tier:
            logger.info(f"Date set to {value} via {tier}")
        else:
            logger.warning(f"Date input holds '{value}' after all tiers, wanted '{date_str}'")
        return value

    async def _read(self, field: Locator) -> str:
        try:
            return await field.input_value()
        except Exception as e:
            logger.debug(f"Could not read date input: {e}")
            return ""

    async def _inject(self, field: Locator, date_str: str) -> bool:
        await field.evaluate(_INJECT_VALUE_JS, date_str)
        if await self._read(field) != date_str:
            return False
        await self._dismiss(field)
        return True

    async def _pick_from_calendar(self, field: Locator, date_str: str) -> bool:
        day, month, year = split_date(date_str)
        await field.click()

        dialog = self.page.locator(DIALOG_SELECTOR).first
        if not await is_visible(dialog, self.dialog_timeout):
            logger.debug("No calendar dialog opened")
            return False

        reached = False
        for _ in range(self.max_steps):
            current = parse_calendar_header(await dialog.inner_text())
            if current is None:
                logger.debug("Calendar header not readable")
                break
            offset = month_offset(current, (month, year))
            if offset == 0:
                reached = True
                break
            selectors = NEXT_MONTH_SELECTORS if offset > 0 else PREV_MONTH_SELECTORS
            button = await first_visible(dialog.locator(s).first for s in selectors)
            if button is None:
                logger.debug("No month navigation button found")
                break
            await button.click()
            await asyncio.sleep(WAIT_CALENDAR_STEP)
        else:
            current = parse_calendar_header(await dialog.inner_text())
            reached = current is not None and month_offset(current, (month, year)) == 0
            if not reached:
                logger.warning(
                    f"Calendar still {current} after {self.max_steps} steps towards {month}/{year}"
                )

        if not reached:
            logger.debug(f"Clicking day {day} in the month currently shown")

        await dialog.get_by_role("gridcell", name=str(day), exact=True).first.click(timeout=TIMEOUT_MEDIUM)
        await self._press("Escape")
        return await self._read(field) == date_str

    async def _type(self, field: Locator, date_str: str) -> bool:
        await field.click()
        await field.fill("")
        await field.press_sequentially(date_str, delay=20)
        await self._press("Enter")
        await self._dismiss(field)
        return await self._read(field) == date_str

    async def _dismiss(self, field: Locator) -> None:
        await self._press("Escape")
        try:
            await field.blur()
        except Exception as e:
            logger.debug(f"Blur failed: {e}")

    async def _press(self, key: str) -> None:
        try:
            await self.page.keyboard.press(key)
        except Exception as e:
            logger.debug(f"Key {key} failed: {e}")
