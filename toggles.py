"""
Yes/No controls identified by a nearby label

The same boolean question is rendered as a toggle button pair on one screen,
a switch on another and a radio pair on a third. The label text is the only
stable handle, so the control is looked up relative to it.
"""
import asyncio
import logging
import re
from typing import Pattern, Union

from playwright.async_api import Locator, Page

from config import WAIT_SHORT
from errors import ToggleNotFound
from strategies import is_visible, label_container, resolve_first

logger = logging.getLogger(__name__)

CHECKBOX_SELECTOR = 'input[type="checkbox"], [role="switch"]'


def _answer_pattern(desired: bool) -> Pattern:
    word = "yes" if desired else "no"
    return re.compile(rf"^\s*{word}\s*$", re.IGNORECASE)


async def is_pressed(button: Locator) -> bool:
    """Toggle buttons report their state through aria-pressed or the Mui-selected class"""
    try:
        if await button.get_attribute("aria-pressed") == "true":
            return True
        classes = await button.get_attribute("class") or ""
        return "Mui-selected" in classes
    except Exception:
        return False


async def _press_answer_button(scope, desired: bool) -> bool:
    button = scope.get_by_role("button", name=_answer_pattern(desired)).first
    if not await is_visible(button):
        return False
    if await is_pressed(button):
        logger.debug("Answer button already pressed")
        return True
    await button.click()
    await asyncio.sleep(WAIT_SHORT)
    if not await is_pressed(button):
        logger.debug("Answer button did not stay pressed")
        return False
    return True


async def _flip_checkbox(container: Locator, desired: bool) -> bool:
    checkbox = container.locator(CHECKBOX_SELECTOR).first
    if not await is_visible(checkbox):
        return False
    if await checkbox.is_checked() == desired:
        return True
    wrapping_label = checkbox.locator("xpath=ancestor::label[1]")
    if await is_visible(wrapping_label):
        await wrapping_label.click()
    else:
        await checkbox.click(force=True)
    return await checkbox.is_checked() == desired


async def _check_radio(container: Locator, desired: bool) -> bool:
    value = "true" if desired else "false"
    word = "yes" if desired else "no"
    radio = container.locator(
        f'input[type="radio"][value="{value}"], input[type="radio"][value="{word}" i]'
    ).first
    if not await is_visible(radio):
        return False
    if not await radio.is_checked():
        await radio.check(force=True)
    return True


async def set_boolean_near_label(page: Page, label: Union[str, Pattern], desired: bool = True) -> str:
    """
    Drive the yes/no control next to a label to the desired state

    Args:
        page: Page holding the control
        label: Label text regex (string patterns are case-insensitive)
        desired: True for Yes/checked, False for No/unchecked

    Returns:
        str: Control shape that was used (button, switch, radio or global)

    Raises:
        ToggleNotFound: None of the control shapes was found
    """
    _, container = await label_container(page, label)

    shape, _ = await resolve_first([
        ("button", lambda: _press_answer_button(container, desired)),
        ("switch", lambda: _flip_checkbox(container, desired)),
        ("radio", lambda: _check_radio(container, desired)),
        ("global", lambda: _press_answer_button(page, desired)),
    ])
    if shape is None:
        raise ToggleNotFound(getattr(label, "pattern", label))

    logger.info(f"Set '{label}' to {'Yes' if desired else 'No'} via {shape}")
    return shape
