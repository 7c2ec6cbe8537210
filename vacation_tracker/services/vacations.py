"""
Vacation service: the operations the HTTP layer calls.

Order of work for a mutation:
    request validation (schemas) -> existence -> permission -> type lookup
    -> single GitHub write -> cache update from the returned record

The cache is only touched after a write succeeded.
"""

import asyncio
import logging
from datetime import date
from typing import Optional

from vacation_tracker.config import Settings
from vacation_tracker.exceptions import ForbiddenError, NotFoundError, ValidationError
from vacation_tracker.schemas.team import TeamConfig, VacationType
from vacation_tracker.schemas.vacation import Vacation, VacationCreate, VacationUpdate
from vacation_tracker.services.cache import TimedValue, VacationCache
from vacation_tracker.services.codec import vacation_label
from vacation_tracker.services.credentials import CredentialRouter
from vacation_tracker.services.github_client import GitHubClient
from vacation_tracker.services.permissions import can_create_for, can_modify
from vacation_tracker.services.repository import VacationRepository, merge_changes
from vacation_tracker.services.retry import ReadRetryPolicy
from vacation_tracker.services.windows import MonthWindow, UpcomingWindow, WindowKey

logger = logging.getLogger(__name__)


class VacationService:
    """Per-request facade; the caches it is given are shared across requests."""

    def __init__(
        self,
        *,
        credentials: CredentialRouter,
        cache: VacationCache,
        team_cache: TimedValue[TeamConfig],
        settings: Settings,
        user_token: Optional[str] = None,
        retry_policy: Optional[ReadRetryPolicy] = None,
    ) -> None:
        self.credentials = credentials
        self.cache = cache
        self.team_cache = team_cache
        self.settings = settings
        self.user_token = user_token
        self.retry = retry_policy or ReadRetryPolicy(max_retries=settings.read_max_retries)

    def _repository(self, client: GitHubClient) -> VacationRepository:
        return VacationRepository(
            client,
            self.settings.github_owner,
            self.settings.github_repo,
            label_prefix=self.settings.vacation_label_prefix,
            title_prefix=self.settings.issue_title_prefix,
            team_config_path=self.settings.team_config_path,
        )

    async def _reader(self) -> VacationRepository:
        return self._repository(await self.credentials.read_client(self.user_token))

    def _writer(self) -> VacationRepository:
        return self._repository(self.credentials.write_client(self.user_token))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def team_config(self) -> TeamConfig:
        cached = self.team_cache.get()
        if cached is not None:
            return cached
        reader = await self._reader()
        config = await self.retry.run(reader.fetch_team_config)
        self.team_cache.set(config)
        return config

    async def _load_window(self, key: WindowKey) -> list[Vacation]:
        cached = self.cache.get_window(key)
        age = self.cache.age(key)
        if cached is not None and age is not None and age < self.settings.cache_ttl_seconds:
            return cached

        evicted = self.cache.evict_stale(self.settings.cache_ttl_seconds)
        if evicted:
            logger.debug("Dropped %d expired cache windows", evicted)

        started_at = self.cache.begin_load()
        try:
            reader = await self._reader()
            vacations = await self.retry.run(lambda: reader.list_window(key))
            vacations = self.cache.put_window(key, vacations, started_at=started_at)
        finally:
            self.cache.end_load(started_at)
        logger.info("Loaded %d vacations into %s", len(vacations), key)
        return vacations

    @staticmethod
    def _month_window(month: str) -> MonthWindow:
        try:
            return MonthWindow(month)
        except ValueError as exc:
            raise ValidationError.from_messages([f"month: {exc}"]) from exc

    async def list_month(
        self,
        month: str,
        member_id: Optional[str] = None,
        type_key: Optional[str] = None,
    ) -> list[Vacation]:
        vacations = await self._load_window(self._month_window(month))
        if member_id:
            vacations = [v for v in vacations if v.github_id == member_id]
        if type_key:
            vacations = [v for v in vacations if v.type == type_key]
        return vacations

    async def list_upcoming(self, github_id: str, since: date) -> list[Vacation]:
        vacations = await self._load_window(UpcomingWindow(github_id, since))
        return sorted(vacations, key=lambda v: (v.start_date, v.id))

    async def overview(self, month: str, github_id: str, today: date) -> dict:
        """Team config, the month's vacations and the member's upcoming ones, fetched together."""
        # Reject a bad month before any fetch starts
        self._month_window(month)
        team, month_vacations, upcoming = await asyncio.gather(
            self.team_config(),
            self.list_month(month),
            self.list_upcoming(github_id, today),
        )
        return {"team": team, "vacations": month_vacations, "upcoming": upcoming}

    async def get(self, number: int) -> Vacation:
        reader = await self._reader()
        vacation = await self.retry.run(lambda: reader.get(number))
        if vacation is None:
            raise NotFoundError("Vacation", number)
        return vacation

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def _vacation_type(self, key: str) -> VacationType:
        config = await self.team_config()
        vacation_type = config.find_type(key)
        if vacation_type is None:
            raise ValidationError.from_messages([f"type: unknown vacation type '{key}'"])
        return vacation_type

    async def _require_permission(self, vacation: Vacation, actor_id: str, action: str) -> None:
        if not await can_modify(vacation, actor_id, self.team_config):
            raise ForbiddenError(f"Only the owner or an admin can {action} this vacation")

    async def create(self, data: VacationCreate, actor_id: str) -> Vacation:
        if not can_create_for(data.github_id, actor_id):
            raise ForbiddenError("You can only register your own vacations")

        vacation_type = await self._vacation_type(data.type)
        vacation = await self._writer().create(
            data,
            vacation_type.label,
            vacation_label(vacation_type.label_name, self.settings.vacation_label_prefix),
        )
        self.cache.apply_created(vacation)
        return vacation

    async def update(self, number: int, changes: VacationUpdate, actor_id: str) -> Vacation:
        existing = await self.get(number)
        await self._require_permission(existing, actor_id, "edit")

        type_label = label_name = None
        if changes.type and changes.type != existing.type:
            vacation_type = await self._vacation_type(changes.type)
            type_label = vacation_type.label
            label_name = vacation_label(
                vacation_type.label_name, self.settings.vacation_label_prefix
            )

        # Reject a bad date order against the stored dates before writing
        merge_changes(existing, changes)

        vacation = await self._writer().update(number, changes, type_label, label_name)
        self.cache.apply_updated(vacation)
        return vacation

    async def cancel(self, number: int, actor_id: str) -> None:
        existing = await self.get(number)
        await self._require_permission(existing, actor_id, "cancel")

        await self._writer().close(number)
        self.cache.apply_closed(number)
