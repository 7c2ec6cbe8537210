"""HTTP API tests: routing, status codes and the error envelope."""

import base64
import json

import httpx
import pytest

from tests.conftest import OWNER, REPO, TEAM_CONFIG, build_issue

ISSUES_PATH = f"/repos/{OWNER}/{REPO}/issues"
AUTH = {"Authorization": "Bearer user-token"}


def sign_in_as(github_mock, login):
    github_mock.get("/user").mock(return_value=httpx.Response(200, json={"login": login}))


def serve_team_config(github_mock):
    content = base64.b64encode(json.dumps(TEAM_CONFIG).encode("utf-8")).decode("ascii")
    return github_mock.get(f"/repos/{OWNER}/{REPO}/contents/team-config.json").mock(
        return_value=httpx.Response(200, json={"type": "file", "content": content})
    )


def echo_patch(issue):
    """PATCH handler that applies the sent fields to `issue` and returns it."""

    def handler(request):
        issue.update(json.loads(request.content))
        if "labels" in issue and issue["labels"] and isinstance(issue["labels"][0], str):
            issue["labels"] = [{"name": name} for name in issue["labels"]]
        return httpx.Response(200, json=issue)

    return handler


@pytest.mark.asyncio
async def test_list_vacations_uses_camel_case(app_client, github_mock):
    github_mock.get(ISSUES_PATH).mock(
        return_value=httpx.Response(200, json=[build_issue(1, reason="Trip")])
    )

    response = await app_client.get("/api/vacations", params={"month": "2026-03"}, headers=AUTH)

    assert response.status_code == 200
    [vacation] = response.json()["data"]
    assert vacation["id"] == 1
    assert vacation["githubId"] == "bob"
    assert vacation["startDate"] == "2026-03-01"
    assert vacation["endDate"] == "2026-03-03"
    assert vacation["reason"] == "Trip"
    assert vacation["issueUrl"].endswith("/issues/1")


@pytest.mark.asyncio
async def test_missing_token_asks_for_reauth_once(app_client):
    first = await app_client.get("/api/vacations", params={"month": "2026-03"})
    second = await app_client.get("/api/vacations", params={"month": "2026-03"})

    assert first.status_code == second.status_code == 401
    assert first.json() == {"error": "Authentication required", "reauth": True}
    assert second.json()["reauth"] is False
    app_client.app.state.reauth.reset()


@pytest.mark.asyncio
async def test_rejected_token_is_401(app_client, github_mock):
    github_mock.get(ISSUES_PATH).mock(
        return_value=httpx.Response(401, json={"message": "Bad credentials"})
    )

    response = await app_client.get("/api/vacations", params={"month": "2026-03"}, headers=AUTH)

    assert response.status_code == 401
    assert response.json()["error"] == "Authentication expired. Please sign in again."
    app_client.app.state.reauth.reset()


@pytest.mark.asyncio
async def test_rate_limit_is_429_with_retry_after(app_client, github_mock):
    route = github_mock.get(ISSUES_PATH).mock(
        return_value=httpx.Response(
            403,
            json={"message": "API rate limit exceeded"},
            headers={"x-ratelimit-remaining": "0", "retry-after": "30"},
        )
    )

    response = await app_client.get("/api/vacations", params={"month": "2026-03"}, headers=AUTH)

    assert response.status_code == 429
    assert response.headers["retry-after"] == "30"
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_tracker_failure_is_502(app_client, github_mock):
    github_mock.get(ISSUES_PATH).mock(return_value=httpx.Response(500, json={"message": "boom"}))

    response = await app_client.get("/api/vacations", params={"month": "2026-03"}, headers=AUTH)

    assert response.status_code == 502
    assert response.json() == {"error": "GitHub API error 500", "detail": "boom"}


@pytest.mark.asyncio
@pytest.mark.parametrize("month", ["2026-3", "march", "2026-13"])
async def test_bad_month_is_400(app_client, month):
    response = await app_client.get("/api/vacations", params={"month": month}, headers=AUTH)

    assert response.status_code == 400
    assert response.json()["error"].startswith("Validation failed: month")


@pytest.mark.asyncio
async def test_get_vacation_not_found(app_client, github_mock):
    github_mock.get(f"{ISSUES_PATH}/5").mock(
        return_value=httpx.Response(404, json={"message": "Not Found"})
    )

    response = await app_client.get("/api/vacations/5", headers=AUTH)

    assert response.status_code == 404
    assert response.json() == {"error": "Vacation not found (id=5)"}


@pytest.mark.asyncio
async def test_get_closed_vacation_is_404(app_client, github_mock):
    github_mock.get(f"{ISSUES_PATH}/5").mock(
        return_value=httpx.Response(200, json=build_issue(5, state="closed"))
    )

    response = await app_client.get("/api/vacations/5", headers=AUTH)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_vacation(app_client, github_mock):
    sign_in_as(github_mock, "bob")
    serve_team_config(github_mock)
    create = github_mock.post(ISSUES_PATH).mock(
        side_effect=lambda request: httpx.Response(
            201,
            json={
                **build_issue(11),
                "body": json.loads(request.content)["body"],
                "title": json.loads(request.content)["title"],
            },
        )
    )

    response = await app_client.post(
        "/api/vacations",
        json={
            "name": "Bob",
            "githubId": "bob",
            "type": "am-half",
            "startDate": "2026-03-05",
            "endDate": "2026-03-05",
            "reason": "Dentist",
        },
        headers=AUTH,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["id"] == 11
    assert data["type"] == "am-half"
    assert data["startDate"] == data["endDate"] == "2026-03-05"
    sent = json.loads(create.calls.last.request.content)
    assert sent["labels"] == ["vacation/am-half"]
    assert sent["title"] == "[Vacation] Bob - Morning half-day"
    assert create.calls.last.request.headers["Authorization"] == "Bearer user-token"


@pytest.mark.asyncio
async def test_create_reports_every_violation_and_writes_nothing(app_client, github_mock):
    sign_in_as(github_mock, "bob")
    create = github_mock.post(ISSUES_PATH).mock(return_value=httpx.Response(201, json={}))

    response = await app_client.post(
        "/api/vacations",
        json={
            "githubId": "bob",
            "type": "annual",
            "startDate": "2026-03-10",
            "endDate": "2026-03-05",
        },
        headers=AUTH,
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error.startswith("Validation failed: ")
    assert "name: Field required" in error
    assert "endDate: must not be before start_date" in error or (
        "end_date: must not be before start_date" in error
    )
    assert not create.called


@pytest.mark.asyncio
async def test_create_rejects_non_iso_dates(app_client, github_mock):
    sign_in_as(github_mock, "bob")

    response = await app_client.post(
        "/api/vacations",
        json={
            "name": "Bob",
            "githubId": "bob",
            "type": "annual",
            "startDate": "03/10/2026",
            "endDate": "2026-03-12",
        },
        headers=AUTH,
    )

    assert response.status_code == 400
    assert "must be a date in YYYY-MM-DD format" in response.json()["error"]


@pytest.mark.asyncio
async def test_create_for_another_member_is_403(app_client, github_mock):
    sign_in_as(github_mock, "carol")
    create = github_mock.post(ISSUES_PATH).mock(return_value=httpx.Response(201, json={}))

    response = await app_client.post(
        "/api/vacations",
        json={
            "name": "Bob",
            "githubId": "bob",
            "type": "annual",
            "startDate": "2026-03-10",
            "endDate": "2026-03-12",
        },
        headers=AUTH,
    )

    assert response.status_code == 403
    assert response.json() == {"error": "You can only register your own vacations"}
    assert not create.called


@pytest.mark.asyncio
async def test_update_vacation_keeps_unsent_fields(app_client, github_mock):
    sign_in_as(github_mock, "bob")
    issue = build_issue(3, reason="Family trip")
    github_mock.get(f"{ISSUES_PATH}/3").mock(side_effect=lambda request: httpx.Response(200, json=issue))
    patch = github_mock.patch(f"{ISSUES_PATH}/3").mock(side_effect=echo_patch(issue))

    response = await app_client.patch(
        "/api/vacations/3", json={"endDate": "2026-03-06"}, headers=AUTH
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["startDate"] == "2026-03-01"
    assert data["endDate"] == "2026-03-06"
    assert data["reason"] == "Family trip"
    assert set(json.loads(patch.calls.last.request.content)) == {"body"}


@pytest.mark.asyncio
async def test_update_by_other_member_is_403(app_client, github_mock):
    sign_in_as(github_mock, "carol")
    serve_team_config(github_mock)
    github_mock.get(f"{ISSUES_PATH}/3").mock(return_value=httpx.Response(200, json=build_issue(3)))
    patch = github_mock.patch(f"{ISSUES_PATH}/3").mock(return_value=httpx.Response(200, json={}))

    response = await app_client.patch("/api/vacations/3", json={"reason": "x"}, headers=AUTH)

    assert response.status_code == 403
    assert not patch.called


@pytest.mark.asyncio
async def test_cancel_vacation(app_client, github_mock):
    sign_in_as(github_mock, "bob")
    issue = build_issue(3)
    github_mock.get(f"{ISSUES_PATH}/3").mock(side_effect=lambda request: httpx.Response(200, json=issue))
    patch = github_mock.patch(f"{ISSUES_PATH}/3").mock(side_effect=echo_patch(issue))

    response = await app_client.delete("/api/vacations/3", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"data": {"success": True}}
    assert json.loads(patch.calls.last.request.content) == {"state": "closed"}


@pytest.mark.asyncio
async def test_team_endpoint(app_client, github_mock):
    serve_team_config(github_mock)

    response = await app_client.get("/api/team", headers=AUTH)

    assert response.status_code == 200
    data = response.json()["data"]
    assert [m["githubId"] for m in data["members"]] == ["alice", "bob", "carol"]
    assert data["vacationTypes"][1]["labelName"] == "vacation/am-half"


@pytest.mark.asyncio
async def test_upcoming_uses_signed_in_member(app_client, github_mock):
    sign_in_as(github_mock, "bob")
    github_mock.get(ISSUES_PATH).mock(
        return_value=httpx.Response(
            200,
            json=[
                build_issue(1, start="2026-09-01", end="2026-09-02"),
                build_issue(2, start="2026-08-01", end="2026-08-02"),
                build_issue(3, start="2026-08-01", end="2026-08-02", github_id="carol"),
            ],
        )
    )

    response = await app_client.get(
        "/api/vacations/upcoming", params={"since": "2026-03-01"}, headers=AUTH
    )

    assert response.status_code == 200
    assert [v["id"] for v in response.json()["data"]] == [2, 1]


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(app_client):
    response = await app_client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_overview(app_client, github_mock):
    sign_in_as(github_mock, "bob")
    serve_team_config(github_mock)
    github_mock.get(ISSUES_PATH).mock(
        return_value=httpx.Response(200, json=[build_issue(1, start="2026-03-01", end="2026-03-03")])
    )

    response = await app_client.get("/api/overview", params={"month": "2026-03"}, headers=AUTH)

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["team"]["members"]) == 3
    assert [v["id"] for v in data["vacations"]] == [1]
    assert "upcoming" in data


INVALID_DRAFT = {
    "name": "Bob",
    "githubId": "bob",
    "type": "annual",
    "startDate": "2026-03-10",
    "endDate": "2026-03-05",
}


@pytest.mark.asyncio
async def test_invalid_body_is_rejected_before_identity_lookup(app_client, github_mock):
    user = github_mock.get("/user").mock(return_value=httpx.Response(200, json={"login": "bob"}))

    response = await app_client.post("/api/vacations", json=INVALID_DRAFT, headers=AUTH)

    assert response.status_code == 400
    assert not user.called
    assert not github_mock.calls


@pytest.mark.asyncio
async def test_invalid_body_with_expired_token_is_still_400(app_client, github_mock):
    user = github_mock.get("/user").mock(
        return_value=httpx.Response(401, json={"message": "Bad credentials"})
    )

    response = await app_client.post("/api/vacations", json=INVALID_DRAFT, headers=AUTH)

    assert response.status_code == 400
    assert "reauth" not in response.json()
    assert not user.called


@pytest.mark.asyncio
async def test_invalid_patch_is_rejected_before_identity_lookup(app_client, github_mock):
    user = github_mock.get("/user").mock(return_value=httpx.Response(200, json={"login": "bob"}))

    response = await app_client.patch(
        "/api/vacations/3",
        json={"startDate": "2026-03-10", "endDate": "2026-03-05"},
        headers=AUTH,
    )

    assert response.status_code == 400
    assert not user.called


@pytest.mark.asyncio
async def test_blank_name_is_rejected_without_writing(app_client, github_mock):
    sign_in_as(github_mock, "bob")
    create = github_mock.post(ISSUES_PATH).mock(return_value=httpx.Response(201, json={}))

    response = await app_client.post(
        "/api/vacations", json={**INVALID_DRAFT, "name": "   ", "endDate": "2026-03-12"}, headers=AUTH
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Validation failed: name")
    assert not create.called
