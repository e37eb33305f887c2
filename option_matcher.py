"""
Listbox option selection for MUI-style dropdowns

The portal renders every dropdown as a trigger element that opens a
``ul[role="listbox"]`` popover. Option labels rarely match the fixture data
exactly ("20%" vs "20 %" vs "Level 20"), so matching runs through
progressively looser tiers.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Union

from playwright.async_api import Locator, Page

from config import TIMEOUT_LONG
from errors import ElementNotFound, OptionNotFound
from strategies import is_visible, label_container

logger = logging.getLogger(__name__)

LISTBOX_SELECTOR = 'ul[role="listbox"], [role="listbox"]'
OPTION_SELECTOR = 'li[role="option"], [role="option"]'
NEAR_LABEL_TRIGGER_SELECTOR = (
    '[role="combobox"], [role="button"][aria-haspopup="listbox"], '
    '[aria-haspopup="listbox"], [id^="mui-component-select-"]'
)

_WHITESPACE_RE = re.compile(r"\s+")
_DIGITS_RE = re.compile(r"\d+")


@dataclass
class OptionMatch:
    """Which option was picked and by which tier"""
    index: int
    text: str
    tier: str


def normalize(text: str) -> str:
    return (text or "").strip()


def normalize_loose(text: str) -> str:
    """Drop all whitespace and lower-case"""
    return _WHITESPACE_RE.sub("", text or "").lower()


def first_number(text: str) -> Optional[str]:
    """First run of digits in the text, e.g. 'Level 20' -> '20'"""
    match = _DIGITS_RE.search(text or "")
    return match.group(0) if match else None


def match_option(option_texts: Sequence[str], target: str, numeric: bool = False) -> Optional[OptionMatch]:
    """
    Pick the option that best matches the target text

    Tiers, first hit wins:
        exact     - trimmed option equals trimmed target
        contains  - trimmed option contains trimmed target
        loose     - same containment ignoring whitespace and case
        numeric   - first digit run equal (only when numeric=True)

    Args:
        option_texts: Rendered option labels in DOM order
        target: Text the caller wants selected
        numeric: Enable the digit-run tier

    Returns:
        OptionMatch or None when nothing matched
    """
    wanted = normalize(target)
    if not wanted:
        return None

    texts = [normalize(t) for t in option_texts]

    for index, text in enumerate(texts):
        if text == wanted:
            return OptionMatch(index, text, "exact")

    for index, text in enumerate(texts):
        if wanted in text:
            return OptionMatch(index, text, "contains")

    loose_wanted = normalize_loose(wanted)
    for index, text in enumerate(texts):
        if loose_wanted in normalize_loose(text):
            return OptionMatch(index, text, "loose")

    if numeric:
        wanted_number = first_number(wanted)
        if wanted_number:
            for index, text in enumerate(texts):
                if first_number(text) == wanted_number:
                    return OptionMatch(index, text, "numeric")

    return None


def _describe(trigger: Union[str, Locator]) -> str:
    return trigger if isinstance(trigger, str) else str(trigger)


async def select_option(
    page: Page,
    trigger: Union[str, Locator],
    text: str,
    numeric: bool = False,
    timeout: int = TIMEOUT_LONG,
) -> OptionMatch:
    """
    Open a dropdown and click the best matching option

    Args:
        page: Page holding the dropdown
        trigger: CSS selector or locator of the element that opens the listbox
        text: Option text wanted
        numeric: Also match on the first number in the label
        timeout: Milliseconds to wait for the listbox to open

    Returns:
        OptionMatch: The option that was clicked

    Raises:
        OptionNotFound: No option matched (the listbox is dismissed first)
    """
    trigger_locator = page.locator(trigger).first if isinstance(trigger, str) else trigger
    await trigger_locator.click()

    listbox = page.locator(LISTBOX_SELECTOR).first
    await listbox.wait_for(state="visible", timeout=timeout)

    options = listbox.locator(OPTION_SELECTOR)
    texts: List[str] = await options.all_inner_texts()
    logger.debug(f"Options for {_describe(trigger)}: {texts}")

    match = match_option(texts, text, numeric=numeric)
    if match is None:
        try:
            await page.keyboard.press("Escape")
        except Exception as e:
            logger.debug(f"Could not dismiss listbox: {e}")
        raise OptionNotFound(_describe(trigger), text, texts)

    await options.nth(match.index).click()
    logger.info(f"Selected '{match.text}' for '{text}' ({match.tier} match)")
    return match


async def select_option_near_label(
    page: Page,
    label: Union[str, Pattern],
    text: str,
    numeric: bool = False,
) -> OptionMatch:
    """
    Select an option from the dropdown rendered next to a label

    Raises:
        ElementNotFound: No dropdown trigger near the label
        OptionNotFound: No option matched
    """
    _, container = await label_container(page, label)
    trigger = container.locator(NEAR_LABEL_TRIGGER_SELECTOR).first
    if not await is_visible(trigger):
        raise ElementNotFound(f"Dropdown not found near label: {label}")
    return await select_option(page, trigger, text, numeric=numeric)
