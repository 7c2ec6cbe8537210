"""
Credential routing for GitHub clients.

Two strategies, selected once from AUTH_PROVIDER:

- github-app: reads use the GitHub App installation token (independent of
  the user, with its own rate limit); writes use the user's OAuth token so
  the issue author is the user.
- oauth-app: reads and writes both use the user's OAuth token.

Callers only ever ask for read_client() or write_client(). Missing tokens
raise CredentialError so the caller can re-authenticate.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
import jwt

from vacation_tracker.config import Settings
from vacation_tracker.exceptions import CredentialError, RemoteError
from vacation_tracker.services.github_client import GitHubClient

logger = logging.getLogger(__name__)


class TokenCache:
    """Cache for installation access tokens."""

    def __init__(self, refresh_margin: int = 60) -> None:
        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._refresh_margin = timedelta(seconds=refresh_margin)

    def get(self) -> str | None:
        if self._token and self._expires_at:
            now = datetime.now(timezone.utc)
            if now < (self._expires_at - self._refresh_margin):
                return self._token
        return None

    def set(self, token: str, expires_at: datetime) -> None:
        self._token = token
        self._expires_at = expires_at

    def clear(self) -> None:
        self._token = None
        self._expires_at = None


def _parse_expiry(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc) + timedelta(hours=1)
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class CredentialRouter:
    """Base strategy. Subclasses decide where read clients come from."""

    provider: str = ""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    def user_client(self, user_token: Optional[str]) -> GitHubClient:
        if not user_token:
            raise CredentialError("Authentication required")
        return GitHubClient(self.http, user_token)

    async def read_client(self, user_token: Optional[str] = None) -> GitHubClient:
        raise NotImplementedError

    def write_client(self, user_token: Optional[str]) -> GitHubClient:
        """Writes always carry the user's token (issue author = user)."""
        return self.user_client(user_token)


class OAuthAppCredentials(CredentialRouter):
    """Reads and writes both need the user's token."""

    provider = "oauth-app"

    async def read_client(self, user_token: Optional[str] = None) -> GitHubClient:
        return self.user_client(user_token)


class GitHubAppCredentials(CredentialRouter):
    """Reads use the app installation token, refreshed shortly before expiry."""

    provider = "github-app"

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        app_id: str,
        private_key: str,
        installation_id: int,
    ) -> None:
        super().__init__(http)
        self.app_id = app_id
        self.installation_id = installation_id
        self._private_key = private_key
        self._token_cache = TokenCache()
        self._lock = asyncio.Lock()

    def _app_jwt(self) -> str:
        now = int(time.time())
        payload = {
            # Backdated to tolerate clock drift, GitHub caps exp at 10 minutes
            "iat": now - 60,
            "exp": now + 540,
            "iss": self.app_id,
        }
        try:
            return jwt.encode(payload, self._private_key, algorithm="RS256")
        except (ValueError, TypeError, jwt.PyJWTError) as exc:
            raise RemoteError("GitHub App private key is invalid") from exc

    async def installation_token(self) -> str:
        cached = self._token_cache.get()
        if cached:
            return cached

        async with self._lock:
            cached = self._token_cache.get()
            if cached:
                return cached

            app_client = GitHubClient(self.http, self._app_jwt())
            try:
                data = await app_client.create_installation_token(self.installation_id)
            except CredentialError as exc:
                # The app itself was rejected; signing in again cannot fix that
                raise RemoteError("GitHub App authentication failed") from exc

            token = data.get("token")
            if not token:
                raise RemoteError("GitHub did not return an installation token")
            self._token_cache.set(token, _parse_expiry(data.get("expires_at")))
            logger.info("Installation token refreshed for installation %s", self.installation_id)
            return token

    async def read_client(self, user_token: Optional[str] = None) -> GitHubClient:
        return GitHubClient(self.http, await self.installation_token())


def build_credential_router(settings: Settings, http: httpx.AsyncClient) -> CredentialRouter:
    """Pick the credential strategy once, from settings.auth_provider."""
    if settings.auth_provider == "github-app":
        if settings.github_app_configured:
            return GitHubAppCredentials(
                http,
                app_id=str(settings.github_app_id),
                private_key=settings.app_private_key_pem or "",
                installation_id=int(settings.github_app_installation_id or 0),
            )
        logger.warning(
            "AUTH_PROVIDER=github-app but GITHUB_APP_ID, GITHUB_APP_PRIVATE_KEY or "
            "GITHUB_APP_INSTALLATION_ID is missing; reads will use the user token"
        )
    return OAuthAppCredentials(http)
