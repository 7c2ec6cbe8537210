"""
Services package: GitHub access and vacation business logic.
"""

from vacation_tracker.services.cache import TimedValue, VacationCache
from vacation_tracker.services.credentials import CredentialRouter, build_credential_router
from vacation_tracker.services.reauth import ReauthSignal
from vacation_tracker.services.repository import VacationRepository
from vacation_tracker.services.vacations import VacationService

__all__ = [
    "CredentialRouter",
    "ReauthSignal",
    "TimedValue",
    "VacationCache",
    "VacationRepository",
    "VacationService",
    "build_credential_router",
]
