"""Bearer-authenticated HTTP client for the Story API.

One requests.Session per run, with the Authorization header set once at
construction. Methods return the raw requests.Response; the steps decide
what to assert on.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from storycheck.models import ClientConfig


class StoryClient:
    """Thin wrapper over requests.Session bound to one ClientConfig."""

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.token}",
        })
        self.closed = False

    def url(self, path: str) -> str:
        return f"{self.config.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, json: Any = None) -> requests.Response:
        kwargs: dict[str, Any] = {"timeout": self.config.timeout_s}
        if json is not None:
            kwargs["json"] = json
        return self.session.request(method, self.url(path), **kwargs)

    def create(self, body: dict) -> requests.Response:
        return self.request("POST", "/api/Story/Create", json=body)

    def edit(self, story_id: str, body: dict) -> requests.Response:
        return self.request("PUT", f"/api/Story/Edit/{story_id}", json=body)

    def list_all(self) -> requests.Response:
        return self.request("GET", "/api/Story/All")

    def delete(self, story_id: str) -> requests.Response:
        return self.request("DELETE", f"/api/Story/Delete/{story_id}")

    def close(self) -> None:
        """Release pooled connections. Safe to call more than once."""
        if not self.closed:
            self.session.close()
            self.closed = True

    def __enter__(self) -> StoryClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()
