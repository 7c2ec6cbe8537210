"""
Team API router.
Serves the roster and vacation type catalog from team-config.json.
"""

from fastapi import APIRouter, Depends

from vacation_tracker.middleware.auth import get_vacation_service, require_token
from vacation_tracker.schemas.team import TeamConfigResponse
from vacation_tracker.services.vacations import VacationService

router = APIRouter()


@router.get(
    "/team",
    response_model=TeamConfigResponse,
    dependencies=[Depends(require_token)],
)
async def get_team(service: VacationService = Depends(get_vacation_service)):
    """
    Get the team configuration (members and vacation types).

    Cached for TEAM_CONFIG_TTL_SECONDS; the file rarely changes.
    """
    return {"data": await service.team_config()}
