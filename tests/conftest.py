"""Configuration for pytest fixtures used in resticboot tests."""

from __future__ import annotations

import json
import subprocess
from typing import Any, Callable

import pytest
import requests


def make_response(
    url: str,
    status: int = 200,
    body: bytes = b"",
    json_data: Any = None,
) -> requests.Response:
    """Build a real ``requests.Response`` without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.encoding = "utf-8"
    response._content = json.dumps(json_data).encode() if json_data is not None else body
    return response


class FakeSession:
    """Stand-in for ``requests.Session`` that serves canned responses.

    Unknown URLs raise ``requests.ConnectionError``, like an unreachable host.
    """

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, Any]] = []

    def _respond(self, url: str) -> requests.Response:
        route = self.routes.get(url)
        if route is None:
            msg = f"No route to {url}"
            raise requests.ConnectionError(msg)
        if isinstance(route, Exception):
            raise route
        return route

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append(("GET", url, kwargs))
        return self._respond(url)

    def post(self, url: str, data: Any = None, **kwargs: Any) -> requests.Response:  # noqa: ARG002
        self.calls.append(("POST", url, data))
        return self._respond(url)


@pytest.fixture
def make_session() -> Callable[..., FakeSession]:
    """Return a factory for fake sessions.

    Usage:
        session = make_session({
            "https://example.com/doc": {"a": "b"},            # JSON body
            "https://example.com/file": b"raw bytes",         # raw body
            "https://example.com/down": 500,                  # status only
        })
    """

    def _make(routes: dict[str, Any] | None = None) -> FakeSession:
        responses: dict[str, Any] = {}
        for url, value in (routes or {}).items():
            if isinstance(value, (requests.Response, Exception)):
                responses[url] = value
            elif isinstance(value, bytes):
                responses[url] = make_response(url, body=value)
            elif isinstance(value, int):
                responses[url] = make_response(url, status=value)
            else:
                responses[url] = make_response(url, json_data=value)
        return FakeSession(responses)

    return _make


class RecordingRunner:
    """Replacement for ``subprocess.run`` that records every call."""

    def __init__(
        self,
        returncode: int = 0,
        stdout: str = "",
        side_effect: Callable[[list[str], dict[str, Any]], None] | None = None,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.side_effect = side_effect
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append((cmd, kwargs))
        if self.side_effect is not None:
            self.side_effect(cmd, kwargs)
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.stdout, stderr="")


@pytest.fixture
def make_runner() -> Callable[..., RecordingRunner]:
    """Return a factory for recording subprocess runners."""
    return RecordingRunner
