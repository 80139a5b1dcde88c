"""The ordered Story API steps.

Each step issues exactly one request through the StoryClient and records its
checks into a CheckGroup. STEPS is the canonical execution order: later steps
depend on the story id the create step stores in the RunContext, so the order
is part of the contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import requests

from storycheck.checks import CheckGroup
from storycheck.client import StoryClient
from storycheck.models import ApiResponse, RunContext, StoryPayload

MISSING_EDIT_ID = "invalid-id-123"
MISSING_DELETE_ID = "invalid-id-456"

CREATE_PAYLOAD = StoryPayload(
    title="Test Story Title",
    description="This is a spoiler test description.",
    url="https://example.com/img.jpg",
)
EDIT_PAYLOAD = StoryPayload(
    title="Updated Story Title",
    description="Updated description of the spoiler.",
    url="https://example.com/updated.jpg",
)
MISSING_FIELDS_BODY = {"url": "https://example.com/missing-fields.jpg"}
FAKE_PAYLOAD = StoryPayload(title="Fake Title", description="Fake Desc", url=None)

StepFn = Callable[[StoryClient, RunContext, CheckGroup], requests.Response]


@dataclass
class StepInfo:
    """One named step of the suite."""

    name: str
    description: str
    method: str
    path: str
    expected_status: int
    run: StepFn
    needs_story_id: bool = False

    def resolve_path(self, ctx: RunContext) -> str:
        return self.path.format(story_id=ctx.story_id or "")


def parse_envelope(resp: requests.Response) -> Optional[ApiResponse]:
    """Decode the {storyId, msg} envelope, or None if the body isn't one."""
    try:
        data = resp.json()
    except ValueError:
        return None
    return ApiResponse.from_json(data)


def _expect_envelope(checks: CheckGroup, resp: requests.Response) -> Optional[ApiResponse]:
    envelope = parse_envelope(resp)
    checks.not_none("envelope", envelope)
    return envelope


def create_story(client: StoryClient, ctx: RunContext, checks: CheckGroup) -> requests.Response:
    resp = client.create(CREATE_PAYLOAD.to_dict())
    checks.status(resp.status_code, 201)
    envelope = _expect_envelope(checks, resp)
    story_id = envelope.story_id if envelope else None
    msg = envelope.msg if envelope else None
    checks.not_empty("storyId", story_id)
    checks.contains("msg", msg, "Successfully created")
    if story_id:
        ctx.story_id = story_id
    return resp


def edit_story(client: StoryClient, ctx: RunContext, checks: CheckGroup) -> requests.Response:
    resp = client.edit(ctx.story_id, EDIT_PAYLOAD.to_dict())
    checks.status(resp.status_code, 200)
    envelope = _expect_envelope(checks, resp)
    checks.contains("msg", envelope.msg if envelope else None, "Successfully edited")
    return resp


def list_stories(client: StoryClient, ctx: RunContext, checks: CheckGroup) -> requests.Response:
    resp = client.list_all()
    checks.status(resp.status_code, 200)
    checks.contains("body", resp.text or None, "title", ignore_case=True)
    return resp


def delete_story(client: StoryClient, ctx: RunContext, checks: CheckGroup) -> requests.Response:
    resp = client.delete(ctx.story_id)
    checks.status(resp.status_code, 200)
    envelope = _expect_envelope(checks, resp)
    checks.equals("msg", envelope.msg if envelope else None, "Deleted successfully!")
    return resp


def create_story_missing_fields(client: StoryClient, ctx: RunContext, checks: CheckGroup) -> requests.Response:
    resp = client.create(MISSING_FIELDS_BODY)
    checks.status(resp.status_code, 400)
    return resp


def edit_missing_story(client: StoryClient, ctx: RunContext, checks: CheckGroup) -> requests.Response:
    resp = client.edit(MISSING_EDIT_ID, FAKE_PAYLOAD.to_dict())
    checks.status(resp.status_code, 404)
    envelope = _expect_envelope(checks, resp)
    checks.contains("msg", envelope.msg if envelope else None, "No spoilers")
    return resp


def delete_missing_story(client: StoryClient, ctx: RunContext, checks: CheckGroup) -> requests.Response:
    resp = client.delete(MISSING_DELETE_ID)
    checks.status(resp.status_code, 400)
    envelope = _expect_envelope(checks, resp)
    checks.contains("msg", envelope.msg if envelope else None, "Unable to delete this story spoiler")
    return resp


STEPS: list[StepInfo] = [
    StepInfo("create", "Create a story", "POST", "/api/Story/Create", 201,
             create_story),
    StepInfo("edit", "Edit the created story", "PUT", "/api/Story/Edit/{story_id}", 200,
             edit_story, needs_story_id=True),
    StepInfo("list", "List all stories", "GET", "/api/Story/All", 200,
             list_stories),
    StepInfo("delete", "Delete the created story", "DELETE", "/api/Story/Delete/{story_id}", 200,
             delete_story, needs_story_id=True),
    StepInfo("create-invalid", "Create without title/description", "POST", "/api/Story/Create", 400,
             create_story_missing_fields),
    StepInfo("edit-nonexistent", "Edit a story that does not exist", "PUT",
             f"/api/Story/Edit/{MISSING_EDIT_ID}", 404, edit_missing_story),
    StepInfo("delete-nonexistent", "Delete a story that does not exist", "DELETE",
             f"/api/Story/Delete/{MISSING_DELETE_ID}", 400, delete_missing_story),
]


def step_names() -> list[str]:
    return [s.name for s in STEPS]


def select_steps(only: Optional[list[str]] = None) -> list[StepInfo]:
    """Return the steps to run, always in canonical order.

    Raises ValueError for unknown step names or an empty selection.
    None selects every step.
    """
    if only is None:
        return list(STEPS)
    if not only:
        raise ValueError(f"No steps selected. Choose from: {', '.join(step_names())}")
    unknown = [n for n in only if n not in step_names()]
    if unknown:
        raise ValueError(f"Unknown step(s): {', '.join(unknown)}. Choose from: {', '.join(step_names())}")
    wanted = set(only)
    return [s for s in STEPS if s.name in wanted]
