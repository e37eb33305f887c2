"""
Ordered fallback resolution shared by the page helpers

Most controls on the policy portal can be reached several ways (stable
name attribute, placeholder, ARIA role, nearby label). The helpers here try
a list of named strategies in order and stop at the first one that works.
"""
import logging
import re
from typing import Awaitable, Callable, Iterable, Optional, Pattern, Tuple, Union

from playwright.async_api import Locator, Page

logger = logging.getLogger(__name__)

Strategy = Tuple[str, Callable[[], Awaitable[object]]]


async def is_visible(locator: Locator, timeout: int = None) -> bool:
    """
    Check visibility without raising

    Args:
        locator: Element to check
        timeout: Milliseconds to wait for it to become visible. When omitted
            the current state is checked once.

    Returns:
        bool: True if the element is visible
    """
    try:
        if timeout:
            await locator.wait_for(state="visible", timeout=timeout)
            return True
        return await locator.is_visible()
    except Exception:
        return False


async def resolve_first(strategies: Iterable[Strategy]) -> Tuple[Optional[str], object]:
    """
    Run strategies in order and return the first truthy result

    Args:
        strategies: (name, coroutine factory) pairs

    Returns:
        tuple: (strategy name, result), or (None, None) when none succeeded
    """
    for name, produce in strategies:
        try:
            result = await produce()
        except Exception as e:
            logger.debug(f"Strategy '{name}' failed: {e}")
            continue
        if result:
            logger.debug(f"Strategy '{name}' succeeded")
            return name, result
        logger.debug(f"Strategy '{name}' found nothing")
    return None, None


def as_pattern(label: Union[str, Pattern]) -> Pattern:
    """Compile a label into a case-insensitive regex unless it already is one"""
    if isinstance(label, str):
        return re.compile(label, re.IGNORECASE)
    return label


async def label_container(page: Page, label: Union[str, Pattern]) -> Tuple[Locator, Locator]:
    """
    Find a visible label and the element wrapping it and its control

    Returns:
        tuple: (label locator, container locator)
    """
    label_locator = page.get_by_text(as_pattern(label)).first
    try:
        await label_locator.scroll_into_view_if_needed(timeout=2000)
    except Exception as e:
        logger.debug(f"Could not scroll to label {label}: {e}")
    return label_locator, label_locator.locator("xpath=..")


async def first_visible(locators: Iterable[Locator], timeout: int = None) -> Optional[Locator]:
    """Return the first locator that is visible, or None"""
    for locator in locators:
        if await is_visible(locator, timeout):
            return locator
    return None
