"""
Exceptions raised by the policy automation helpers
"""


class PolicyAutomationError(Exception):
    """Base class for automation failures"""


class ElementNotFound(PolicyAutomationError):
    """A required element was not visible in time"""


class DateInputNotFound(ElementNotFound):
    """The date input to set was not visible"""


class ToggleNotFound(ElementNotFound):
    """No yes/no control could be resolved near a label"""

    def __init__(self, label_pattern: str):
        super().__init__(f"Unable to set toggle near label: {label_pattern}")
        self.label_pattern = label_pattern


class OptionNotFound(PolicyAutomationError):
    """No listbox option matched the wanted text"""

    def __init__(self, trigger: str, wanted: str, available: list = None):
        super().__init__(f"Option not found for {trigger}: {wanted}")
        self.trigger = trigger
        self.wanted = wanted
        self.available = available or []


class PageClosed(PolicyAutomationError):
    """The current page was closed while the flow still needed it"""
