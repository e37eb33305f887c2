"""
Best-effort form filling from field descriptors

Each portal section is described as a list of FieldSpec entries (which
field, where it might be, what value). FormFiller walks the list, tries each
candidate locator and records what happened to every field. A field that
cannot be filled is logged and recorded; it never stops the section.
"""
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from playwright.async_api import Locator, TimeoutError as PlaywrightTimeoutError

from config import TIMEOUT_MEDIUM
from date_picker import DateFieldSetter
from errors import ElementNotFound, PolicyAutomationError
from option_matcher import select_option, select_option_near_label
from quote_poller import PageHandle
from strategies import is_visible
from toggles import set_boolean_near_label

logger = logging.getLogger(__name__)

TEXT = "text"
DROPDOWN = "dropdown"
DATE = "date"
TOGGLE = "toggle"

_TRUE_WORDS = {"yes", "y", "true", "1", "on"}


class FieldOutcome(Enum):
    FILLED = "filled"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class FieldSpec:
    """One form field: where it may be found and what to put in it"""
    name: str
    value: object
    locators: List[str] = field(default_factory=list)
    kind: str = TEXT
    numeric: bool = False
    label: Optional[str] = None


@dataclass
class FieldResult:
    field: str
    outcome: FieldOutcome
    detail: str = ""
    locator: Optional[str] = None
    section: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        return data


def as_bool(value) -> bool:
    """Interpret fixture values like 'Yes', 'true' or True"""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_WORDS


def is_blank(value) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


class FormFiller:
    """Fills FieldSpec lists on the handle's current page"""

    def __init__(self, handle: PageHandle, locate_timeout: int = TIMEOUT_MEDIUM):
        self.handle = handle
        self.locate_timeout = locate_timeout

    async def fill(self, specs: List[FieldSpec], section: str = None) -> List[FieldResult]:
        """
        Fill every field in order

        Args:
            specs: Field descriptors
            section: Section name recorded on each result

        Returns:
            list: One FieldResult per spec
        """
        if section:
            logger.info(f"Filling {section} ({len(specs)} fields)...")
        results = []
        for spec in specs:
            result = await self.fill_field(spec)
            result.section = section
            results.append(result)
        filled = sum(1 for r in results if r.outcome is FieldOutcome.FILLED)
        logger.info(f"{section or 'Fields'}: {filled}/{len(results)} filled")
        return results

    async def fill_field(self, spec: FieldSpec) -> FieldResult:
        if is_blank(spec.value):
            logger.debug(f"Skipping {spec.name}: no value")
            return FieldResult(spec.name, FieldOutcome.SKIPPED, "no value")

        handlers = {
            TEXT: self._fill_text,
            DROPDOWN: self._fill_dropdown,
            DATE: self._fill_date,
            TOGGLE: self._fill_toggle,
        }
        handler = handlers.get(spec.kind)
        if handler is None:
            return FieldResult(spec.name, FieldOutcome.FAILED, f"unknown field kind: {spec.kind}")

        try:
            locator, detail = await handler(spec)
        except Exception as e:
            logger.warning(f"Could not fill {spec.name}: {e}")
            return FieldResult(spec.name, FieldOutcome.FAILED, str(e))

        logger.info(f"{spec.name}: {detail}")
        return FieldResult(spec.name, FieldOutcome.FILLED, detail, locator)

    async def _candidates(self, spec: FieldSpec) -> List[Tuple[str, Locator]]:
        """
        Visible candidates in declaration order

        Waits once for any of the selectors to show, then keeps the ones
        that are visible at that point.
        """
        if not spec.locators:
            return []
        page = self.handle.page
        candidates = [(s, page.locator(s).first) for s in spec.locators]

        any_candidate = candidates[0][1]
        for _, locator in candidates[1:]:
            any_candidate = any_candidate.or_(locator)
        if not await is_visible(any_candidate.first, self.locate_timeout):
            return []

        visible = []
        for selector, locator in candidates:
            if await is_visible(locator):
                visible.append((selector, locator))
        return visible

    async def _locate(self, spec: FieldSpec) -> Tuple[Optional[str], Optional[Locator]]:
        """Return the first candidate selector that is visible, waiting once for any of them"""
        visible = await self._candidates(spec)
        if not visible:
            return None, None
        return visible[0]

    async def _fill_text(self, spec: FieldSpec):
        candidates = await self._candidates(spec)
        if not candidates:
            raise ElementNotFound(f"No visible input for {spec.name}")
        value = str(spec.value)
        readings = []
        for selector, locator in candidates:
            await locator.fill(value)
            actual = await locator.input_value()
            if actual == value:
                return selector, f"filled '{value}'"
            logger.debug(f"{spec.name} via {selector} reads '{actual}', wanted '{value}'")
            readings.append(actual)
        raise PolicyAutomationError(f"input reads {readings}, wanted '{value}'")

    async def _fill_dropdown(self, spec: FieldSpec):
        page = self.handle.page
        value = str(spec.value)
        errors = []
        for selector, locator in await self._candidates(spec):
            current = await self._current_text(locator)
            if current == value.strip():
                return selector, f"already '{current}'"
            try:
                match = await select_option(page, locator, value, numeric=spec.numeric)
            except (PolicyAutomationError, PlaywrightTimeoutError) as e:
                logger.debug(f"{spec.name} via {selector} failed: {e}")
                errors.append(e)
                continue
            return selector, f"selected '{match.text}' ({match.tier})"

        if spec.label:
            match = await select_option_near_label(page, spec.label, value, numeric=spec.numeric)
            return f"label:{spec.label}", f"selected '{match.text}' ({match.tier})"
        if errors:
            raise errors[-1]
        raise ElementNotFound(f"No visible dropdown for {spec.name}")

    @staticmethod
    async def _current_text(locator: Locator) -> str:
        try:
            return (await locator.inner_text()).strip()
        except Exception:
            return ""

    async def _fill_date(self, spec: FieldSpec):
        selector, locator = await self._locate(spec)
        if locator is None:
            raise ElementNotFound(f"No visible date input for {spec.name}")
        value = str(spec.value)
        actual = await DateFieldSetter(self.handle.page).set_date(locator, value)
        if actual != value:
            raise PolicyAutomationError(f"date input reads '{actual}', wanted '{value}'")
        return selector, f"date set to {actual}"

    async def _fill_toggle(self, spec: FieldSpec):
        if not spec.label:
            raise ElementNotFound(f"No label to locate toggle {spec.name}")
        desired = as_bool(spec.value)
        shape = await set_boolean_near_label(self.handle.page, spec.label, desired)
        return shape, f"set to {'Yes' if desired else 'No'}"
