"""End-to-end flows through Api, ApiContext, HttpxExecutor and ResultContext.

Requests go through a real ``httpx.Client`` backed by an in-process handler
that behaves like a small user service.
"""

from __future__ import annotations

import json

import httpx
import pytest
from pydantic import BaseModel

from fluentapi import Api, ApiAssertionError, ApiDefaults
from fluentapi.auth import UsernamePasswordAuthProvider
from fluentapi.reporting import Reporter


class User(BaseModel):
    id: int
    name: str


# ---------------------------------------------------------------------------
# Fake service
# ---------------------------------------------------------------------------


class _UserService:
    """Minimal users API: login, read, create, delete."""

    def __init__(self) -> None:
        self.users = {1: {"id": 1, "name": "Ann"}}
        self.logins: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/auth/login":
            creds = json.loads(request.content)
            self.logins.append(creds["username"])
            return httpx.Response(200, json={"token": f"t-{creds['username']}", "expiresIn": 3600})
        if path.startswith("/secure") and request.headers.get("authorization") is None:
            return httpx.Response(401, json={"error": "unauthorized"})
        if path == "/secure/me":
            token = request.headers["authorization"].removeprefix("Bearer ")
            return httpx.Response(200, json={"token": token})
        if path == "/users" and request.method == "POST":
            body = json.loads(request.content)
            user = {"id": len(self.users) + 1, **body}
            self.users[user["id"]] = user
            return httpx.Response(
                201,
                json=user,
                headers={"Location": f"/users/{user['id']}", "Set-Cookie": "last=created; Path=/"},
            )
        if path.startswith("/users/"):
            user_id = int(path.rsplit("/", 1)[1])
            if request.method == "DELETE":
                self.users.pop(user_id, None)
                return httpx.Response(204)
            if user_id in self.users:
                return httpx.Response(200, json=self.users[user_id])
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(404)


@pytest.fixture
def service() -> _UserService:
    return _UserService()


@pytest.fixture
def api(service: _UserService, make_api) -> Api:
    return make_api(httpx.MockTransport(service))


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


class TestUserFlows:
    def test_get_user(self, api: Api) -> None:
        user = (
            api.for_("/users/{id}")
            .with_path_param("id", 1)
            .get()
            .should_return(status=200, body=lambda u: u.name == "Ann", body_type=User)
            .body_as(User)
        )
        assert user == User(id=1, name="Ann")

    def test_create_then_fetch(self, api: Api) -> None:
        created = api.for_("/users").post({"name": "Bo"})
        created.should_return(
            status=201, headers=lambda h: h["location"] == "/users/2"
        )
        assert created.get_cookie("last") == "created"
        new_id = created.body_as(User).id
        assert api.for_(f"/users/{new_id}").get().should_succeed(User).name == "Bo"

    def test_wrong_status_fails_with_details(self, api: Api) -> None:
        with pytest.raises(ApiAssertionError) as exc_info:
            api.for_("/users").post({"name": "Cy"}).should_return(status=200)
        error = exc_info.value
        assert error.expected == 200
        assert error.actual == 201
        assert error.method == "POST"
        assert error.endpoint == "https://api.example.com/users"

    def test_delete_and_missing(self, api: Api) -> None:
        api.for_("/users/1").delete().should_return(status=204)
        missing = api.for_("/users/1").get()
        missing.should_return(status=404, body=lambda b: b["error"] == "not found")
        assert not missing.is_success

    def test_follow_up_request_from_then(self, api: Api, service: _UserService) -> None:
        fetched: list[User] = []
        api.for_("/users").post({"name": "Dee"}).should_return(status=201).then(
            lambda created: fetched.append(
                created.for_(f"/users/{created.body_as(User).id}")
                .get()
                .should_return(status=200, body_type=User)
                .body_as(User)
            )
        )
        assert fetched == [User(id=2, name="Dee")]
        assert 2 in service.users


class TestAuthFlows:
    def test_per_user_tokens_cached(self, service: _UserService, make_api) -> None:
        transport = httpx.MockTransport(service)
        provider = UsernamePasswordAuthProvider(
            "https://api.example.com/auth/login", client=httpx.Client(transport=transport)
        )
        api = make_api(transport, auth_provider=provider)

        for _ in range(3):
            me = api.for_("/secure/me").as_user("ann", "pw").get().should_succeed()
            assert me == {"token": "t-ann"}
        bo = api.for_("/secure/me").as_user("bo", "pw").get().should_succeed()
        assert bo == {"token": "t-bo"}
        assert service.logins == ["ann", "bo"]

    def test_without_auth_skips_provider(self, service: _UserService, make_api) -> None:
        transport = httpx.MockTransport(service)
        provider = UsernamePasswordAuthProvider(
            "https://api.example.com/auth/login",
            default_username="admin",
            default_password="root",
            client=httpx.Client(transport=transport),
        )
        api = make_api(transport, auth_provider=provider)
        api.for_("/secure/me").without_auth().get().should_return(status=401)
        assert service.logins == []

    def test_explicit_token(self, api: Api) -> None:
        body = api.for_("/secure/me").using_token("manual").get().should_succeed()
        assert body == {"token": "manual"}


class TestDefaultsAndReporting:
    def test_defaults_provider(self, service: _UserService, make_api) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return service(request)

        defaults = ApiDefaults(
            base_uri="https://api.example.com",
            default_headers={"X-Suite": "e2e"},
            timeout=5,
        )
        api = make_api(httpx.MockTransport(handler), base_url=None, defaults=defaults)
        api.for_("/users/1").with_header("X-Case", "defaults").get().should_return(status=200)
        assert seen[0].headers["x-suite"] == "e2e"
        assert seen[0].headers["x-case"] == "defaults"

    def test_reporter_sees_whole_exchange(self, service: _UserService, make_api) -> None:
        events: list[str] = []

        class _Events(Reporter):
            def on_request_sent(self, spec):
                events.append(f"sent {spec.method.value} {spec.resolved_endpoint()}")

            def on_response_received(self, result):
                events.append(f"received {result.status_code}")

            def on_assertion_passed(self, message, result):
                events.append(f"pass {message}")

            def on_assertion_failed(self, message, result):
                events.append(f"fail {message}")

        api = make_api(httpx.MockTransport(service), reporter=_Events())
        result = api.for_("/users/{id}").with_path_param("id", 1).get()
        result.should_return(status=200)
        with pytest.raises(ApiAssertionError):
            result.should_return(status=500)
        assert events == [
            "sent GET https://api.example.com/users/1",
            "received 200",
            "pass Status code is 200",
            "fail Expected status 500, actual 200",
        ]
