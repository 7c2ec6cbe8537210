"""
Authentication dependencies.

Login and token refresh happen outside this service; requests arrive with
the user's GitHub OAuth token as a bearer credential. The acting user's
GitHub login is looked up with that token.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from vacation_tracker.exceptions import CredentialError
from vacation_tracker.services.credentials import CredentialRouter
from vacation_tracker.services.vacations import VacationService


async def get_bearer_token(
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """
    Extract the token from "Authorization: Bearer <token>".

    Returns None when the header is missing or malformed.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() not in ("bearer", "token") or not token.strip():
        return None
    return token.strip()


def get_credentials(request: Request) -> CredentialRouter:
    return request.app.state.credentials


async def require_token(
    token: Optional[str] = Depends(get_bearer_token),
) -> str:
    """Reject anonymous requests with CredentialError (401)."""
    if not token:
        raise CredentialError("Authentication required")
    return token


async def resolve_actor(token: Optional[str], credentials: CredentialRouter) -> str:
    """
    GitHub login of the caller.

    Raises CredentialError (401) if no token was sent or GitHub rejects it.
    """
    if not token:
        raise CredentialError("Authentication required")

    user = await credentials.user_client(token).get_authenticated_user()
    login = user.get("login") if isinstance(user, dict) else None
    if not login:
        raise CredentialError()
    return login


class ActorLookup:
    """
    Deferred caller lookup.

    FastAPI resolves dependencies before it validates the request body, so
    routes await this inside the handler: a malformed request is rejected
    with 400 before GitHub is asked who the caller is.
    """

    def __init__(self, token: Optional[str], credentials: CredentialRouter) -> None:
        self.token = token
        self.credentials = credentials
        self._login: Optional[str] = None

    async def __call__(self) -> str:
        if self._login is None:
            self._login = await resolve_actor(self.token, self.credentials)
        return self._login


async def get_actor_lookup(
    token: Optional[str] = Depends(get_bearer_token),
    credentials: CredentialRouter = Depends(get_credentials),
) -> ActorLookup:
    return ActorLookup(token, credentials)


async def get_vacation_service(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    credentials: CredentialRouter = Depends(get_credentials),
) -> VacationService:
    """Service bound to this request's token and the app-wide caches."""
    return VacationService(
        credentials=credentials,
        cache=request.app.state.vacation_cache,
        team_cache=request.app.state.team_cache,
        settings=request.app.state.settings,
        user_token=token,
    )
