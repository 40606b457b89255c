"""Display/storage normalization for categorical fields.

Categorical values are stored in upper-snake-case ("ACTIVE_DEAL") and shown
to callers with spaces ("ACTIVE DEAL"). to_display/to_storage are the
syntactic transforms; CrmEnum layers a closed value set on top so unknown
values are rejected at the API boundary instead of being persisted.

categorical() builds the Annotated type used by the Pydantic schemas: input
is validated through CrmEnum.from_display, output is serialized to display
form.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer

_WHITESPACE = re.compile(r"\s+")


def to_display(canonical: str | None) -> str | None:
    """Convert storage form to display form ("ACTIVE_DEAL" -> "ACTIVE DEAL").

    Absent or empty input propagates as None.
    """
    if not canonical:
        return None
    return canonical.replace("_", " ")


def to_storage(display: str | None) -> str | None:
    """Convert display form to storage form ("Active  deal" -> "ACTIVE_DEAL").

    Whitespace runs collapse to a single underscore. Absent, empty or
    whitespace-only input propagates as None.
    """
    if display is None:
        return None
    stripped = display.strip()
    if not stripped:
        return None
    return _WHITESPACE.sub("_", stripped).upper()


class CrmEnum(str, Enum):
    """Closed categorical value set whose values are the storage form."""

    @classmethod
    def from_display(cls, value: Any) -> "CrmEnum":
        """Resolve display or storage text to a member.

        Raises:
            ValueError: If the normalized value is not in the set.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"{cls.__name__} must be a string")
        canonical = to_storage(value)
        try:
            return cls(canonical)
        except ValueError:
            allowed = ", ".join(m.display for m in cls)
            raise ValueError(
                f"'{value}' is not a valid {cls.__name__}; expected one of: {allowed}"
            ) from None

    @property
    def display(self) -> str:
        return to_display(self.value) or ""


def _coerce(enum_cls: type[CrmEnum]):
    def validate(value: Any) -> CrmEnum | None:
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return enum_cls.from_display(value)

    return validate


def _serialize(value: CrmEnum | None) -> str | None:
    return value.display if value is not None else None


def categorical(enum_cls: type[CrmEnum]) -> Any:
    """Annotated optional enum field: display text in, display text out."""
    return Annotated[
        enum_cls | None,
        BeforeValidator(_coerce(enum_cls)),
        PlainSerializer(_serialize, return_type=str | None),
    ]
