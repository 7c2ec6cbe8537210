"""
Vacations API router.
Handles vacation listing, registration, edits and cancellation.

Every vacation is a GitHub issue in the data repository; see
services/repository.py for how issues are filtered and decoded.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from vacation_tracker.middleware.auth import (
    ActorLookup,
    get_actor_lookup,
    get_vacation_service,
    require_token,
)
from vacation_tracker.schemas.base import BaseSchema
from vacation_tracker.schemas.team import TeamConfig
from vacation_tracker.schemas.vacation import (
    SuccessResponse,
    Vacation,
    VacationCreate,
    VacationListResponse,
    VacationResponse,
    VacationUpdate,
)
from vacation_tracker.services.vacations import VacationService

router = APIRouter()


class Overview(BaseSchema):
    team: TeamConfig
    vacations: list[Vacation]
    upcoming: list[Vacation]


class OverviewResponse(BaseSchema):
    data: Overview


@router.get(
    "/vacations",
    response_model=VacationListResponse,
    dependencies=[Depends(require_token)],
)
async def list_vacations(
    month: str = Query(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM"),
    member_id: Optional[str] = Query(None, alias="memberId"),
    type_key: Optional[str] = Query(None, alias="type"),
    service: VacationService = Depends(get_vacation_service),
):
    """
    Get open vacations overlapping a month.

    Optional memberId and type narrow the result. Order is not guaranteed.
    """
    vacations = await service.list_month(month, member_id=member_id, type_key=type_key)
    return {"data": vacations}


@router.get("/vacations/upcoming", response_model=VacationListResponse)
async def list_upcoming_vacations(
    since: Optional[date] = Query(None, description="Defaults to today"),
    lookup_actor: ActorLookup = Depends(get_actor_lookup),
    service: VacationService = Depends(get_vacation_service),
):
    """Get the caller's ongoing and future vacations, earliest first."""
    actor = await lookup_actor()
    vacations = await service.list_upcoming(actor, since or date.today())
    return {"data": vacations}


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    month: str = Query(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM"),
    lookup_actor: ActorLookup = Depends(get_actor_lookup),
    service: VacationService = Depends(get_vacation_service),
):
    """Team config, the month's vacations and the caller's upcoming ones in one call."""
    actor = await lookup_actor()
    return {"data": await service.overview(month, actor, date.today())}


@router.get(
    "/vacations/{vacation_id}",
    response_model=VacationResponse,
    dependencies=[Depends(require_token)],
)
async def get_vacation(
    vacation_id: int = Path(..., gt=0),
    service: VacationService = Depends(get_vacation_service),
):
    """
    Get a specific vacation by issue number.

    Closed issues and issues that are not vacations return 404.
    """
    return {"data": await service.get(vacation_id)}


@router.post("/vacations", response_model=VacationResponse, status_code=201)
async def create_vacation(
    data: VacationCreate,
    lookup_actor: ActorLookup = Depends(get_actor_lookup),
    service: VacationService = Depends(get_vacation_service),
):
    """
    Register a new vacation (creates a GitHub issue).

    Users can only register vacations for their own GitHub login.
    """
    actor = await lookup_actor()
    return {"data": await service.create(data, actor)}


@router.patch("/vacations/{vacation_id}", response_model=VacationResponse)
async def update_vacation(
    data: VacationUpdate,
    vacation_id: int = Path(..., gt=0),
    lookup_actor: ActorLookup = Depends(get_actor_lookup),
    service: VacationService = Depends(get_vacation_service),
):
    """
    Update a vacation.

    Only the fields sent are changed; send "reason": "" to clear the reason.
    Owner or admin only.
    """
    actor = await lookup_actor()
    return {"data": await service.update(vacation_id, data, actor)}


@router.delete("/vacations/{vacation_id}", response_model=SuccessResponse)
async def cancel_vacation(
    vacation_id: int = Path(..., gt=0),
    lookup_actor: ActorLookup = Depends(get_actor_lookup),
    service: VacationService = Depends(get_vacation_service),
):
    """
    Cancel a vacation (closes the GitHub issue).

    Owner or admin only. Cancellation cannot be undone through the API.
    """
    actor = await lookup_actor()
    await service.cancel(vacation_id, actor)
    return {"data": {"success": True}}
