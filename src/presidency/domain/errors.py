"""Error taxonomy for the presidency rules layer."""

from __future__ import annotations


class PresidencyError(Exception):
    """Base class for rule engine failures."""


class UnknownActionKey(PresidencyError, LookupError):
    """Raised by strict delta lookups when an action key is not in its table.

    The action resolution path never lets this escape; unknown keys resolve
    to the category's fallback delta instead.
    """

    def __init__(self, category: str, key: str) -> None:
        super().__init__(f"unknown {category} action '{key}'")
        self.category = category
        self.key = key


class InvalidVectorState(PresidencyError, ValueError):
    """A stat vector handed to the core violates its bounds."""

    def __init__(self, field_name: str, value: int) -> None:
        super().__init__(f"stat '{field_name}' has invalid value {value!r}")
        self.field_name = field_name
        self.value = value


class SerializationFailure(PresidencyError, ValueError):
    """An archive payload could not be rendered as JSON."""
