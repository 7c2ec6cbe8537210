"""
Pydantic schemas for Vacations.
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import ValidationInfo, field_validator

from vacation_tracker.schemas.base import BaseSchema, DateSimple, NonBlankStr

VacationState = Literal["open", "closed"]


def _check_date_order(end_date: Optional[date], info: ValidationInfo) -> Optional[date]:
    start_date = info.data.get("start_date")
    if end_date is not None and start_date is not None and end_date < start_date:
        raise ValueError("must not be before start_date")
    return end_date


class Vacation(BaseSchema):
    """A vacation decoded from one GitHub issue."""

    id: int
    name: str
    github_id: str
    type: str
    start_date: DateSimple
    end_date: DateSimple
    reason: Optional[str] = None
    issue_url: str
    created_at: datetime
    state: VacationState = "open"

    @property
    def duration_days(self) -> int:
        """Calculate duration in days."""
        return (self.end_date - self.start_date).days + 1

    def __repr__(self) -> str:
        return f"<Vacation #{self.id} {self.github_id} ({self.start_date} to {self.end_date})>"


class VacationCreate(BaseSchema):
    """Request model for creating a vacation (also the draft the codec encodes)."""

    name: NonBlankStr
    github_id: NonBlankStr
    type: NonBlankStr
    start_date: DateSimple
    end_date: DateSimple
    reason: Optional[str] = None

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, end_date, info: ValidationInfo):
        return _check_date_order(end_date, info)


class VacationUpdate(BaseSchema):
    """
    Request model for updating a vacation.

    Every field is optional. Presence matters: a field that was not sent
    keeps the stored value, while an explicit reason of "" or null clears it.
    Use model_fields_set to tell the two apart.
    """

    type: Optional[NonBlankStr] = None
    start_date: Optional[DateSimple] = None
    end_date: Optional[DateSimple] = None
    reason: Optional[str] = None

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, end_date, info: ValidationInfo):
        return _check_date_order(end_date, info)


class VacationListResponse(BaseSchema):
    data: list[Vacation]


class VacationResponse(BaseSchema):
    data: Vacation


class SuccessFlag(BaseSchema):
    success: bool = True


class SuccessResponse(BaseSchema):
    data: SuccessFlag = SuccessFlag()
