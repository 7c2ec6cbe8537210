"""
Pydantic schemas for request/response validation.
"""

from vacation_tracker.schemas.base import BaseSchema, DateSimple, NonBlankStr, format_error_messages
from vacation_tracker.schemas.vacation import (
    Vacation,
    VacationCreate,
    VacationUpdate,
    VacationListResponse,
    VacationResponse,
    SuccessResponse,
)
from vacation_tracker.schemas.team import (
    Member,
    VacationType,
    RepositoryRef,
    TeamConfig,
    TeamConfigResponse,
)

__all__ = [
    "BaseSchema",
    "DateSimple",
    "NonBlankStr",
    "format_error_messages",
    "Vacation",
    "VacationCreate",
    "VacationUpdate",
    "VacationListResponse",
    "VacationResponse",
    "SuccessResponse",
    "Member",
    "VacationType",
    "RepositoryRef",
    "TeamConfig",
    "TeamConfigResponse",
]
