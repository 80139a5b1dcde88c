"""Shared fixtures: a fake requests.Session routed by (method, path)."""

from __future__ import annotations

import io
import json
from typing import Any, Union
from unittest.mock import Mock
from urllib.parse import urlsplit

import pytest
from rich.console import Console

from storycheck.models import ClientConfig

STORY_ID = "0c9a3f5e-story"
BASE_URL = "https://stories.test"


def make_response(status: int, body: Any = None, text: str | None = None) -> Mock:
    """Build a mock Response with status_code, text and json()."""
    resp = Mock()
    resp.status_code = status
    if text is None:
        text = json.dumps(body) if body is not None else ""
    resp.text = text
    if body is None:
        resp.json.side_effect = ValueError("No JSON")
    else:
        resp.json.return_value = body
    return resp


Outcome = Union[Mock, Exception]


class FakeSession:
    """Stands in for requests.Session; records every request."""

    def __init__(self, routes: dict[tuple[str, str], Outcome]):
        self.routes = routes
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, str, dict]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs):
        path = urlsplit(url).path
        self.calls.append((method, path, kwargs))
        outcome = self.routes[(method, path)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True


def happy_routes(story_id: str = STORY_ID) -> dict[tuple[str, str], Outcome]:
    """Responses of a well-behaved Story API for every step."""
    return {
        ("POST", "/api/Story/Create"): make_response(
            201, {"storyId": story_id, "msg": "Successfully created!"}
        ),
        ("PUT", f"/api/Story/Edit/{story_id}"): make_response(200, {"msg": "Successfully edited"}),
        ("GET", "/api/Story/All"): make_response(
            200, [{"id": story_id, "title": "Updated Story Title", "description": "x"}]
        ),
        ("DELETE", f"/api/Story/Delete/{story_id}"): make_response(200, {"msg": "Deleted successfully!"}),
        ("PUT", "/api/Story/Edit/invalid-id-123"): make_response(
            404, {"msg": "No spoilers..."}
        ),
        ("DELETE", "/api/Story/Delete/invalid-id-456"): make_response(
            400, {"msg": "Unable to delete this story spoiler!"}
        ),
    }


class CreateRouter(FakeSession):
    """FakeSession where POST /api/Story/Create answers by body shape."""

    def __init__(self, routes, invalid_response: Mock):
        super().__init__(routes)
        self.invalid_response = invalid_response

    def request(self, method: str, url: str, **kwargs):
        body = kwargs.get("json") or {}
        if method == "POST" and "title" not in body:
            self.calls.append((method, urlsplit(url).path, kwargs))
            return self.invalid_response
        return super().request(method, url, **kwargs)


@pytest.fixture
def config():
    return ClientConfig(base_url=BASE_URL, token="test-token-123", timeout_s=5)


@pytest.fixture
def console():
    """Console writing to an in-memory buffer."""
    return Console(width=200, file=io.StringIO())


@pytest.fixture
def happy_session():
    return CreateRouter(happy_routes(), invalid_response=make_response(400, {"errors": {"Title": ["required"]}}))
