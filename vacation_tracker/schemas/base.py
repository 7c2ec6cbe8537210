"""
Base schema classes with shared serialization and error formatting.

The issue tracker and the frontend both speak camelCase JSON
(githubId, startDate, labelName, ...). Schemas use snake_case attributes
and camelCase aliases; either spelling is accepted on input, aliases are
used on output.
"""

import re
from datetime import date
from typing import Annotated, Any, Iterable

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer, StringConstraints
from pydantic.alias_generators import to_camel

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def serialize_date_simple(d: date | None) -> str | None:
    """
    Serialize date as simple ISO date string (YYYY-MM-DD).
    """
    if d is None:
        return None
    return d.isoformat()


def require_iso_date(value: Any) -> Any:
    """Only accept YYYY-MM-DD strings (or real dates) for date fields."""
    if isinstance(value, str) and not DATE_PATTERN.match(value):
        raise ValueError("must be a date in YYYY-MM-DD format")
    return value


# Annotated type for Pydantic v2 serialization
DateSimple = Annotated[
    date,
    BeforeValidator(require_iso_date),
    PlainSerializer(serialize_date_simple, return_type=str),
]


# Trimmed, non-empty text; matches what the issue codec reads back
NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class BaseSchema(BaseModel):
    """
    Base schema class with standard configuration.
    Use DateSimple for calendar-date fields.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def format_error_messages(errors: Iterable[dict[str, Any]]) -> list[str]:
    """
    Flatten pydantic/FastAPI error dicts into "field: message" strings.

    Request-level location prefixes ("body", "query", "path") are dropped
    so the message names the field the client actually sent.
    """
    messages = []
    for error in errors:
        loc = [
            str(part)
            for part in error.get("loc", ())
            if part not in ("body", "query", "path")
        ]
        msg = str(error.get("msg", "invalid value"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return messages
