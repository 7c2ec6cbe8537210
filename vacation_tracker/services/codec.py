"""
Issue body codec.

A vacation lives in a GitHub issue body as YAML front matter followed by
the free-text reason:

    ---
    name: Hong Gildong
    githubId: hong-gildong
    type: annual
    startDate: '2026-03-01'
    endDate: '2026-03-03'
    ---
    Family trip.

Decoding never raises. Issues that predate the format or were edited by
hand decode to None and are skipped by list queries.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from vacation_tracker.constants import (
    HEADER_FIELDS,
    ISSUE_TITLE_PREFIX,
    VACATION_LABEL_PREFIX,
)
from vacation_tracker.schemas.vacation import Vacation, VacationCreate

logger = logging.getLogger(__name__)

FRONT_MATTER_RE = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(?P<header>.*?)\r?\n---[ \t]*(?:\r?\n(?P<body>.*))?\Z",
    re.DOTALL,
)


def encode_body(draft: VacationCreate) -> str:
    """Vacation draft -> issue body (front matter + reason)."""
    header = {
        "name": draft.name,
        "githubId": draft.github_id,
        "type": draft.type,
        "startDate": draft.start_date.isoformat(),
        "endDate": draft.end_date.isoformat(),
    }
    front_matter = yaml.safe_dump(header, sort_keys=False, allow_unicode=True)
    return f"---\n{front_matter}---\n{draft.reason or ''}\n"


def build_issue_title(name: str, type_label: str, prefix: str = ISSUE_TITLE_PREFIX) -> str:
    """
    Issue title: "[Vacation] Hong Gildong - Annual leave".

    Cosmetic only, never read back.
    """
    return f"{prefix} {name} - {type_label}"


def vacation_label(label_name: str, prefix: str = VACATION_LABEL_PREFIX) -> str:
    """Label for a vacation type, adding the reserved prefix when missing."""
    if label_name.startswith(prefix):
        return label_name
    return f"{prefix}{label_name}"


def split_front_matter(body: Optional[str]) -> Optional[tuple[dict[str, Any], str]]:
    """Split a body into (header mapping, text). None when there is no usable header."""
    if not body:
        return None

    match = FRONT_MATTER_RE.match(body)
    if not match:
        return None

    try:
        header = yaml.safe_load(match.group("header"))
    except yaml.YAMLError:
        return None

    if not isinstance(header, dict):
        return None
    return header, match.group("body") or ""


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _calendar_date(value: Any) -> Optional[date]:
    # YAML resolves unquoted 2026-03-01 to a date, quoted to a str
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def decode_header(header: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    """Validate the five required header fields. None if any is missing or empty."""
    name = _text(header.get("name"))
    github_id = _text(header.get("githubId"))
    type_key = _text(header.get("type"))
    start_date = _calendar_date(header.get("startDate"))
    end_date = _calendar_date(header.get("endDate"))

    if not (name and github_id and type_key and start_date and end_date):
        return None
    if end_date < start_date:
        return None

    return {
        "name": name,
        "github_id": github_id,
        "type": type_key,
        "start_date": start_date,
        "end_date": end_date,
    }


def decode_issue(issue: Mapping[str, Any]) -> Optional[Vacation]:
    """
    GitHub issue JSON -> Vacation, or None when the body is not a vacation.

    The reason is the trimmed text after the header; an empty text means
    no reason was given (None), never "".
    """
    number = issue.get("number")
    parts = split_front_matter(issue.get("body"))
    if parts is None:
        logger.debug("Issue #%s has no vacation front matter, skipping", number)
        return None

    header, text = parts
    fields = decode_header(header)
    if fields is None:
        logger.warning(
            "Issue #%s front matter is missing one of %s, skipping",
            number,
            ", ".join(HEADER_FIELDS),
        )
        return None

    try:
        return Vacation(
            id=number,
            reason=text.strip() or None,
            issue_url=issue.get("html_url"),
            created_at=issue.get("created_at"),
            state="open" if issue.get("state", "open") == "open" else "closed",
            **fields,
        )
    except PydanticValidationError:
        logger.warning("Issue #%s could not be decoded as a vacation, skipping", number)
        return None
