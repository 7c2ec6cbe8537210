"""
HTTP client for the GitHub REST API (issues and repository contents).

Every response is classified before it reaches the caller:

    401                              -> CredentialError (re-authenticate)
    403/429 with quota exhausted     -> RateLimitedError (do not retry now)
    404                              -> NotFoundError
    other 4xx/5xx, transport errors  -> RemoteError
"""

import base64
import logging
import time
from typing import Any, AsyncIterator, Optional

import httpx

from vacation_tracker.constants import ISSUES_PER_PAGE
from vacation_tracker.exceptions import (
    CredentialError,
    NotFoundError,
    RateLimitedError,
    RemoteError,
)

logger = logging.getLogger(__name__)

GITHUB_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}


def build_http_client(base_url: str, timeout: float = 10.0) -> httpx.AsyncClient:
    """Shared connection pool for every GitHubClient."""
    return httpx.AsyncClient(
        base_url=base_url,
        headers=GITHUB_HEADERS,
        timeout=httpx.Timeout(timeout, read=max(timeout, 30.0)),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        return str(data.get("message", ""))
    return ""


def _retry_after_seconds(response: httpx.Response) -> Optional[int]:
    retry_after = response.headers.get("retry-after")
    if retry_after and retry_after.isdigit():
        return int(retry_after)
    reset = response.headers.get("x-ratelimit-reset")
    if reset and reset.isdigit():
        return max(int(reset) - int(time.time()), 0)
    return None


def is_rate_limited(response: httpx.Response) -> bool:
    """GitHub reports primary and secondary rate limits as 403 or 429."""
    if response.status_code not in (403, 429):
        return False
    if response.status_code == 429:
        return True
    if response.headers.get("x-ratelimit-remaining") == "0":
        return True
    if "retry-after" in response.headers:
        return True
    return "rate limit" in _error_message(response).lower()


def raise_for_github_status(response: httpx.Response, path: str) -> None:
    status = response.status_code
    if status < 400:
        return

    if status == 401:
        raise CredentialError()
    if is_rate_limited(response):
        retry_after = _retry_after_seconds(response)
        logger.warning("GitHub rate limit hit on %s (retry after %ss)", path, retry_after)
        raise RateLimitedError(retry_after=retry_after)
    if status == 404:
        raise NotFoundError("GitHub resource", path)

    message = _error_message(response)
    logger.error("GitHub API error %s on %s: %s", status, path, message)
    raise RemoteError(f"GitHub API error {status}", detail=message or None)


class GitHubClient:
    """Token-scoped view over a shared httpx connection pool."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        token: Optional[str] = None,
        *,
        token_type: str = "Bearer",
    ) -> None:
        self.http = http
        self._token = token
        self._token_type = token_type

    def _headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"{self._token_type} {self._token}"}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            response = await self.http.request(
                method,
                path,
                params=params,
                json=json,
                headers=self._headers(),
            )
        except httpx.TimeoutException as exc:
            raise RemoteError(f"GitHub request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"GitHub connection failed: {exc}") from exc

        raise_for_github_status(response, path)
        return response

    @staticmethod
    def _decode(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError(f"GitHub returned invalid JSON for {path}") from exc

    async def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self.request(method, path, **kwargs)
        return self._decode(response, path)

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def iter_issue_pages(
        self, owner: str, repo: str, state: str = "open"
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """
        Yield issue pages until GitHub stops sending a rel="next" link.

        The listing includes pull requests; filtering is the caller's job.
        """
        path: Optional[str] = f"/repos/{owner}/{repo}/issues"
        params: Optional[dict[str, Any]] = {"state": state, "per_page": ISSUES_PER_PAGE}

        while path:
            response = await self.request("GET", path, params=params)
            page = self._decode(response, path)
            if not isinstance(page, list):
                raise RemoteError(f"Unexpected issue listing payload for {owner}/{repo}")
            yield page

            next_link = response.links.get("next")
            # The next URL already carries the query string
            path = next_link["url"] if next_link else None
            params = None

    async def list_issues(
        self, owner: str, repo: str, state: str = "open"
    ) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        async for page in self.iter_issue_pages(owner, repo, state):
            issues.extend(page)
        return issues

    async def get_issue(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        return await self._json("GET", f"/repos/{owner}/{repo}/issues/{number}")

    async def create_issue(
        self,
        owner: str,
        repo: str,
        *,
        title: str,
        body: str,
        labels: list[str],
    ) -> dict[str, Any]:
        return await self._json(
            "POST",
            f"/repos/{owner}/{repo}/issues",
            json={"title": title, "body": body, "labels": labels},
        )

    async def update_issue(
        self,
        owner: str,
        repo: str,
        number: int,
        *,
        body: Optional[str] = None,
        title: Optional[str] = None,
        labels: Optional[list[str]] = None,
        state: Optional[str] = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if body is not None:
            payload["body"] = body
        if title is not None:
            payload["title"] = title
        if labels is not None:
            payload["labels"] = labels
        if state is not None:
            payload["state"] = state
        return await self._json(
            "PATCH", f"/repos/{owner}/{repo}/issues/{number}", json=payload
        )

    # ------------------------------------------------------------------
    # Repository contents and identity
    # ------------------------------------------------------------------

    async def get_file_content(self, owner: str, repo: str, path: str) -> bytes:
        data = await self._json("GET", f"/repos/{owner}/{repo}/contents/{path}")
        if not isinstance(data, dict) or data.get("type") != "file" or not data.get("content"):
            raise RemoteError(f"{path} is not a readable file in {owner}/{repo}")
        try:
            return base64.b64decode(data["content"])
        except ValueError as exc:
            raise RemoteError(f"{path} content is not valid base64") from exc

    async def get_authenticated_user(self) -> dict[str, Any]:
        return await self._json("GET", "/user")

    async def create_installation_token(self, installation_id: int) -> dict[str, Any]:
        """Exchange an app JWT (this client's token) for an installation token."""
        return await self._json(
            "POST", f"/app/installations/{installation_id}/access_tokens"
        )
