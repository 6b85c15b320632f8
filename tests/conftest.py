"""Shared fixtures for forgelink tests."""

import json
from typing import Callable, List

import httpx
import pytest

from forgelink.config import Settings
from forgelink.utils.resilience import BackoffRetrier


class RecordingSleep:
    """Fake sleep that records requested delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class RecordingHandler:
    """
    httpx.MockTransport handler routing on (method, path).

    Routes map to a response or to a list of responses consumed in order
    (the last one repeats). Every request is recorded.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"message": "404 Not Found"})
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if callable(route):
            return route(request)
        # Fresh response per request; httpx binds each one to its request.
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> dict:
        return json.loads(request.content)


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def retrier(fake_sleep):
    return BackoffRetrier(sleep=fake_sleep)


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def transport(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        gitlab_api_url="https://gitlab.example.com/api/v4",
        github_api_url="https://api.github.example.com",
        prepare_env_file=str(tmp_path / "prepare.env"),
        _env_file=None,
    )
