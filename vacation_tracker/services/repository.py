"""
Vacation repository over GitHub Issues.

GitHub has no query language for our header fields, so every list query
fetches all open issues and filters client side: pull requests out,
vacation/* labels in, undecodable bodies skipped, then the date window.
"""

import json
import logging
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from vacation_tracker.constants import VACATION_LABEL_PREFIX
from vacation_tracker.exceptions import (
    DecodeError,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from vacation_tracker.schemas.team import TeamConfig
from vacation_tracker.schemas.vacation import Vacation, VacationCreate, VacationUpdate
from vacation_tracker.services.codec import build_issue_title, decode_issue, encode_body
from vacation_tracker.services.github_client import GitHubClient
from vacation_tracker.services.windows import MonthWindow, UpcomingWindow, WindowKey, in_window

logger = logging.getLogger(__name__)


def label_names(issue: Mapping[str, Any]) -> list[str]:
    """GitHub returns labels as objects, but plain strings are accepted too."""
    names = []
    for label in issue.get("labels") or []:
        name = label if isinstance(label, str) else (label or {}).get("name")
        if name:
            names.append(name)
    return names


def has_vacation_label(issue: Mapping[str, Any], prefix: str = VACATION_LABEL_PREFIX) -> bool:
    return any(name.startswith(prefix) for name in label_names(issue))


def is_pull_request(issue: Mapping[str, Any]) -> bool:
    return bool(issue.get("pull_request"))


def merge_changes(existing: Vacation, changes: VacationUpdate) -> VacationCreate:
    """
    Lay a partial update over an existing vacation.

    Presence, not truthiness: fields absent from the request keep the
    stored value, an explicit reason of "" or null clears the reason.
    Name and owner never change.
    """
    sent = changes.model_fields_set

    def pick(field: str) -> Any:
        value = getattr(changes, field)
        if field in sent and value is not None:
            return value
        return getattr(existing, field)

    reason = changes.reason if "reason" in sent else existing.reason
    start_date, end_date = pick("start_date"), pick("end_date")
    if end_date < start_date:
        raise ValidationError.from_messages(["end_date: must not be before start_date"])

    return VacationCreate(
        name=existing.name,
        github_id=existing.github_id,
        type=pick("type"),
        start_date=start_date,
        end_date=end_date,
        reason=reason or None,
    )


class VacationRepository:
    """List/get/create/update/close vacations in one data repository."""

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        *,
        label_prefix: str = VACATION_LABEL_PREFIX,
        title_prefix: Optional[str] = None,
        team_config_path: str = "team-config.json",
    ) -> None:
        self.client = client
        self.owner = owner
        self.repo = repo
        self.label_prefix = label_prefix
        self.title_prefix = title_prefix
        self.team_config_path = team_config_path

    def _title(self, name: str, type_label: str) -> str:
        if self.title_prefix is None:
            return build_issue_title(name, type_label)
        return build_issue_title(name, type_label, self.title_prefix)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def decode_open_vacations(self, issues: Iterable[Mapping[str, Any]]) -> list[Vacation]:
        """Drop pull requests and non-vacation issues, decode the rest."""
        vacations = []
        for issue in issues:
            if is_pull_request(issue):
                continue
            if not has_vacation_label(issue, self.label_prefix):
                continue
            vacation = decode_issue(issue)
            if vacation is None:
                continue
            vacations.append(vacation)
        return vacations

    async def list_window(self, key: WindowKey) -> list[Vacation]:
        issues = await self.client.list_issues(self.owner, self.repo, state="open")
        vacations = [
            v for v in self.decode_open_vacations(issues) if in_window(v, key)
        ]
        logger.debug(
            "Loaded %d vacations for %s from %d open issues", len(vacations), key, len(issues)
        )
        return vacations

    async def list_month(self, month: str) -> list[Vacation]:
        """Open vacations overlapping the month (YYYY-MM). Order is not guaranteed."""
        return await self.list_window(MonthWindow(month))

    async def list_since(self, since: date) -> list[Vacation]:
        """Open vacations ending on or after `since`, for every member."""
        issues = await self.client.list_issues(self.owner, self.repo, state="open")
        return [v for v in self.decode_open_vacations(issues) if v.end_date >= since]

    async def list_upcoming(self, github_id: str, since: date) -> list[Vacation]:
        return await self.list_window(UpcomingWindow(github_id, since))

    async def get_any(self, number: int) -> Optional[Vacation]:
        """Decoded vacation regardless of state; None if missing or not a vacation."""
        try:
            issue = await self.client.get_issue(self.owner, self.repo, number)
        except NotFoundError:
            return None
        if is_pull_request(issue):
            return None
        return decode_issue(issue)

    async def get(self, number: int) -> Optional[Vacation]:
        """Open vacation by issue number. Closed or mis-shaped issues count as absent."""
        vacation = await self.get_any(number)
        if vacation is None or vacation.state != "open":
            return None
        return vacation

    async def fetch_team_config(self) -> TeamConfig:
        raw = await self.client.get_file_content(self.owner, self.repo, self.team_config_path)
        try:
            return TeamConfig.model_validate(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, PydanticValidationError) as exc:
            logger.error("%s in %s/%s is malformed: %s", self.team_config_path, self.owner, self.repo, exc)
            raise RemoteError(f"{self.team_config_path} could not be read") from exc

    # ------------------------------------------------------------------
    # Writes (single attempt, never retried)
    # ------------------------------------------------------------------

    async def create(self, draft: VacationCreate, type_label: str, label_name: str) -> Vacation:
        issue = await self.client.create_issue(
            self.owner,
            self.repo,
            title=self._title(draft.name, type_label),
            body=encode_body(draft),
            labels=[label_name],
        )
        # Whatever GitHub echoes back is the canonical record
        vacation = decode_issue(issue)
        if vacation is None:
            raise DecodeError(issue.get("number"))
        logger.info("Created vacation #%s for %s", vacation.id, vacation.github_id)
        return vacation

    async def update(
        self,
        number: int,
        changes: VacationUpdate,
        type_label: Optional[str] = None,
        label_name: Optional[str] = None,
    ) -> Vacation:
        """
        Merge the changes over the stored document and write it back whole.

        GitHub has no field-level patch for the header, so the full body is
        regenerated. Title and labels are only sent when the type changed.
        """
        existing = await self.get(number)
        if existing is None:
            raise NotFoundError("Vacation", number)

        merged = merge_changes(existing, changes)
        issue = await self.client.update_issue(
            self.owner,
            self.repo,
            number,
            body=encode_body(merged),
            title=self._title(merged.name, type_label) if type_label else None,
            labels=[label_name] if label_name else None,
        )

        vacation = decode_issue(issue)
        if vacation is None:
            raise DecodeError(number)
        logger.info("Updated vacation #%s", number)
        return vacation

    async def close(self, number: int) -> None:
        """Cancel a vacation. The issue is closed, its body is left alone."""
        await self.client.update_issue(self.owner, self.repo, number, state="closed")
        logger.info("Closed vacation #%s", number)
