"""Tests for the storycheck CLI."""

import pytest
from conftest import CreateRouter, happy_routes, make_response
from typer.testing import CliRunner

from storycheck.__main__ import app
from storycheck.models import RunResult, StepResult


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def results_dir(tmp_path, monkeypatch):
    """Point both the runner and scorer at a temporary results directory."""
    root = tmp_path / "results"
    monkeypatch.setattr("storycheck.runner._results_root", lambda: root)
    monkeypatch.setattr("storycheck.scorer._results_root", lambda: root)
    monkeypatch.setattr("storycheck.scorer._report_path", lambda: tmp_path / "RESULTS.md")
    return root


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("STORY_API_TOKEN", "STORY_API_BASE_URL", "STORY_API_TIMEOUT", "STORY_API_CONFIG"):
        monkeypatch.delenv(key, raising=False)


def _fake_session(monkeypatch, routes):
    session = CreateRouter(routes, invalid_response=make_response(400, text=""))
    monkeypatch.setattr("storycheck.client.requests.Session", lambda: session)
    return session


def _stored(root, timestamp, code):
    RunResult(
        timestamp=timestamp,
        steps=[StepResult(name="list", method="GET", path="/api/Story/All", status_code=code)],
    ).save(root / timestamp)


def test_steps_command(cli_runner):
    result = cli_runner.invoke(app, ["steps"])
    assert result.exit_code == 0


def test_run_without_token_exits_2(cli_runner, clean_env, results_dir):
    result = cli_runner.invoke(app, ["run"])
    assert result.exit_code == 2


def test_run_passes(cli_runner, clean_env, results_dir, monkeypatch):
    session = _fake_session(monkeypatch, happy_routes())
    result = cli_runner.invoke(app, ["run", "--base-url", "https://stories.test", "--token", "cli-token"])

    assert result.exit_code == 0
    assert session.headers["Authorization"] == "Bearer cli-token"
    assert session.closed
    assert len(list(results_dir.iterdir())) == 1


def test_run_with_failures_exits_1(cli_runner, clean_env, results_dir, monkeypatch):
    routes = happy_routes()
    routes[("GET", "/api/Story/All")] = make_response(500, text="")
    _fake_session(monkeypatch, routes)
    monkeypatch.setenv("STORY_API_TOKEN", "env-token")

    result = cli_runner.invoke(app, ["run", "--base-url", "https://stories.test", "--no-save"])
    assert result.exit_code == 1
    assert not results_dir.exists()


def test_run_only_unknown_step_exits_2(cli_runner, clean_env, results_dir, monkeypatch):
    _fake_session(monkeypatch, happy_routes())
    result = cli_runner.invoke(app, ["run", "--token", "t", "--only", "create,nope"])
    assert result.exit_code == 2


def test_run_only_subset(cli_runner, clean_env, results_dir, monkeypatch):
    session = _fake_session(monkeypatch, happy_routes())
    result = cli_runner.invoke(
        app, ["run", "--base-url", "https://stories.test", "--token", "t", "--only", "list, delete-nonexistent"]
    )
    assert result.exit_code == 0
    assert [p for _, p, _ in session.calls] == ["/api/Story/All", "/api/Story/Delete/invalid-id-456"]


def test_show_and_results(cli_runner, results_dir):
    assert cli_runner.invoke(app, ["show"]).exit_code == 1
    _stored(results_dir, "20261019T120000Z", 200)
    assert cli_runner.invoke(app, ["show"]).exit_code == 0
    assert cli_runner.invoke(app, ["show", "20261019T120000Z"]).exit_code == 0
    assert cli_runner.invoke(app, ["results"]).exit_code == 0


def test_compare(cli_runner, results_dir):
    _stored(results_dir, "20261018T120000Z", 200)
    assert cli_runner.invoke(app, ["compare"]).exit_code == 1

    _stored(results_dir, "20261019T120000Z", 200)
    assert cli_runner.invoke(app, ["compare"]).exit_code == 0

    _stored(results_dir, "20261020T120000Z", 500)
    assert cli_runner.invoke(app, ["compare"]).exit_code == 1


def test_report(cli_runner, results_dir, tmp_path):
    _stored(results_dir, "20261019T120000Z", 200)
    result = cli_runner.invoke(app, ["report"])
    assert result.exit_code == 0
    assert "20261019T120000Z" in (tmp_path / "RESULTS.md").read_text()


@pytest.mark.parametrize("only", [",", " ", " , "])
def test_run_with_empty_only_exits_2(cli_runner, clean_env, results_dir, monkeypatch, only):
    session = _fake_session(monkeypatch, happy_routes())
    result = cli_runner.invoke(app, ["run", "--token", "t", "--only", only, "--no-save"])
    assert result.exit_code == 2
    assert session.calls == []
