"""
Shared test fixtures for the Vacation Tracker test suite.
"""

import json
from datetime import date
from typing import Optional

import pytest
import pytest_asyncio
import respx
from httpx import ASGITransport, AsyncClient

from vacation_tracker.config import Settings
from vacation_tracker.exceptions import NotFoundError
from vacation_tracker.schemas.team import TeamConfig
from vacation_tracker.schemas.vacation import VacationCreate
from vacation_tracker.services.cache import TimedValue, VacationCache
from vacation_tracker.services.codec import encode_body
from vacation_tracker.services.credentials import CredentialRouter
from vacation_tracker.services.retry import ReadRetryPolicy
from vacation_tracker.services.vacations import VacationService

GITHUB_API = "https://api.github.test"
OWNER = "acme"
REPO = "vacations"

TEAM_CONFIG = {
    "repository": {"owner": OWNER, "repo": REPO},
    "members": [
        {"githubId": "alice", "name": "Alice", "team": "Core", "color": "#FF0000", "role": "admin"},
        {"githubId": "bob", "name": "Bob", "team": "Core", "color": "#00FF00", "role": "member"},
        {"githubId": "carol", "name": "Carol", "team": "Web", "color": "#0000FF", "role": "member"},
    ],
    "vacationTypes": [
        {"key": "annual", "label": "Annual leave", "labelName": "vacation/annual", "color": "#3B82F6"},
        {"key": "am-half", "label": "Morning half-day", "labelName": "vacation/am-half", "color": "#F59E0B"},
        {"key": "sick", "label": "Sick leave", "labelName": "sick", "color": "#EF4444"},
    ],
}


def build_issue(
    number: int,
    *,
    name: str = "Bob",
    github_id: str = "bob",
    type: str = "annual",
    start: str = "2026-03-01",
    end: str = "2026-03-03",
    reason: Optional[str] = None,
    labels: Optional[list] = None,
    state: str = "open",
    body: Optional[str] = None,
) -> dict:
    """GitHub issue JSON for a vacation, shaped like the REST API returns it."""
    if body is None:
        body = encode_body(
            VacationCreate(
                name=name,
                github_id=github_id,
                type=type,
                start_date=date.fromisoformat(start),
                end_date=date.fromisoformat(end),
                reason=reason,
            )
        )
    if labels is None:
        labels = [f"vacation/{type}"]
    return {
        "number": number,
        "title": f"[Vacation] {name}",
        "body": body,
        "labels": [{"name": label} for label in labels],
        "html_url": f"https://github.com/{OWNER}/{REPO}/issues/{number}",
        "created_at": "2026-01-15T09:30:00Z",
        "state": state,
    }


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient, recording every call."""

    def __init__(self):
        self.issues: dict[int, dict] = {}
        self.files: dict[str, bytes] = {}
        self.calls: list[tuple] = []
        self.create_echo_body: Optional[str] = None

    def add(self, issue: dict) -> dict:
        self.issues[issue["number"]] = issue
        return issue

    def count(self, operation: str) -> int:
        return sum(1 for call in self.calls if call[0] == operation)

    async def list_issues(self, owner, repo, state="open"):
        self.calls.append(("list_issues", state))
        return [dict(i) for i in self.issues.values() if state == "all" or i["state"] == state]

    async def get_issue(self, owner, repo, number):
        self.calls.append(("get_issue", number))
        if number not in self.issues:
            raise NotFoundError("GitHub resource", number)
        return dict(self.issues[number])

    async def create_issue(self, owner, repo, *, title, body, labels):
        self.calls.append(("create_issue", title, body, labels))
        number = max(self.issues, default=0) + 1
        issue = {
            "number": number,
            "title": title,
            "body": self.create_echo_body if self.create_echo_body is not None else body,
            "labels": [{"name": label} for label in labels],
            "html_url": f"https://github.com/{owner}/{repo}/issues/{number}",
            "created_at": "2026-02-01T12:00:00Z",
            "state": "open",
        }
        self.issues[number] = issue
        return dict(issue)

    async def update_issue(self, owner, repo, number, *, body=None, title=None, labels=None, state=None):
        self.calls.append(("update_issue", number, {"body": body, "title": title, "labels": labels, "state": state}))
        if number not in self.issues:
            raise NotFoundError("GitHub resource", number)
        issue = self.issues[number]
        if body is not None:
            issue["body"] = body
        if title is not None:
            issue["title"] = title
        if labels is not None:
            issue["labels"] = [{"name": label} for label in labels]
        if state is not None:
            issue["state"] = state
        return dict(issue)

    async def get_file_content(self, owner, repo, path):
        self.calls.append(("get_file_content", path))
        if path not in self.files:
            raise NotFoundError("GitHub resource", path)
        return self.files[path]


class StaticCredentials(CredentialRouter):
    """Hands out the same fake client for reads and writes."""

    provider = "static"

    def __init__(self, client):
        self.client = client

    async def read_client(self, user_token=None):
        return self.client

    def write_client(self, user_token):
        return self.client


@pytest.fixture
def test_settings():
    """Settings configured for testing (GitHub calls go to a mocked host)."""
    return Settings(
        github_api_url=GITHUB_API,
        github_owner=OWNER,
        github_repo=REPO,
        auth_provider="oauth-app",
        cache_ttl_seconds=60,
        team_config_ttl_seconds=300,
        read_max_retries=0,
        debug=True,
    )


@pytest.fixture
def team_config():
    return TeamConfig.model_validate(TEAM_CONFIG)


@pytest.fixture
def fake_github():
    client = FakeGitHubClient()
    client.files["team-config.json"] = json.dumps(TEAM_CONFIG).encode("utf-8")
    return client


@pytest.fixture
def vacation_cache():
    return VacationCache()


@pytest.fixture
def service_factory(fake_github, vacation_cache, test_settings):
    """Build a VacationService over the fake tracker; caches are shared between calls."""
    team_cache = TimedValue(test_settings.team_config_ttl_seconds)

    def factory(user_token: Optional[str] = "token"):
        return VacationService(
            credentials=StaticCredentials(fake_github),
            cache=vacation_cache,
            team_cache=team_cache,
            settings=test_settings,
            user_token=user_token,
            retry_policy=ReadRetryPolicy(max_retries=0),
        )

    return factory


@pytest.fixture
def github_mock():
    """respx router for the mocked GitHub API host."""
    with respx.mock(base_url=GITHUB_API, assert_all_called=False) as router:
        yield router


@pytest_asyncio.fixture
async def app_client(test_settings, github_mock):
    """Test client for the app; GitHub calls hit github_mock."""
    from vacation_tracker.main import create_app

    app = create_app(test_settings)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        client.app = app
        yield client

    await app.state.http.aclose()
