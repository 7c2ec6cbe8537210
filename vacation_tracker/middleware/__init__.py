"""
Middleware package.
"""

from vacation_tracker.middleware.auth import (
    get_bearer_token,
    get_credentials,
    ActorLookup,
    get_actor_lookup,
    resolve_actor,
    get_vacation_service,
    require_token,
)

__all__ = [
    "get_bearer_token",
    "get_credentials",
    "ActorLookup",
    "get_actor_lookup",
    "resolve_actor",
    "get_vacation_service",
    "require_token",
]
