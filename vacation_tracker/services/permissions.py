"""
Who may change a vacation: its owner, or a team admin.
"""

import logging
from typing import Awaitable, Callable

from vacation_tracker.schemas.team import TeamConfig
from vacation_tracker.schemas.vacation import Vacation

logger = logging.getLogger(__name__)

RosterLoader = Callable[[], Awaitable[TeamConfig]]


async def can_modify(vacation: Vacation, actor_id: str, load_roster: RosterLoader) -> bool:
    """
    True if the actor owns the vacation or is an admin in the roster.

    Fails closed: if the roster cannot be loaded the answer is False,
    never an exception.
    """
    if actor_id and actor_id == vacation.github_id:
        return True

    try:
        roster = await load_roster()
    except Exception:
        logger.warning(
            "Roster lookup failed while checking %s on vacation #%s; denying",
            actor_id,
            vacation.id,
            exc_info=True,
        )
        return False

    member = roster.find_member(actor_id)
    return member is not None and member.is_admin


def can_create_for(github_id: str, actor_id: str) -> bool:
    """Members only register vacations for themselves."""
    return bool(actor_id) and github_id == actor_id
