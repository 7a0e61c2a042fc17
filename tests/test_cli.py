"""Tests for the command line entry points against an in-memory server."""

import pytest
from typer.testing import CliRunner

from modelsync import cli
from modelsync.sync.store import serialize_document
from conftest import FakeApi, make_model

runner = CliRunner()


@pytest.fixture
def server(tmp_path, monkeypatch):
    api = FakeApi(models=[make_model("acme/m1")])
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MODELSYNC_HOME", str(tmp_path / "home" / ".modelsync"))
    monkeypatch.setenv("MODELSYNC_PLAN_ID", "plan-1")
    monkeypatch.setenv("COLUMNS", "120")
    monkeypatch.setattr(cli, "HttpModelsApi", lambda cfg: api)
    return api


def test_available_lists_builtin_and_custom(server):
    result = runner.invoke(cli.app, ["models", "available"])
    assert result.exit_code == 0
    assert "anthropic/claude-sonnet-4" in result.stdout
    assert "acme/m1" in result.stdout


def test_available_custom_only_empty(server):
    server.models = []
    result = runner.invoke(cli.app, ["models", "available", "--custom"])
    assert result.exit_code == 0
    assert "No custom models" in result.stdout


def test_show_renders_default_pack(server):
    result = runner.invoke(cli.app, ["models", "show", "--all"])
    assert result.exit_code == 0
    assert "daily-driver" in result.stdout
    assert "└─ large-context" in result.stdout
    assert "no override" in result.stdout


def test_set_model_updates_plan(server):
    result = runner.invoke(cli.app, ["set-model", "planner", "acme/m1"])
    assert result.exit_code == 0, result.output
    assert server.settings.model_pack.planner.model_id == "acme/m1"
    assert "Model settings updated" in result.stdout


def test_set_model_org_default(server):
    result = runner.invoke(cli.app, ["set-model", "strong", "--default"])
    assert result.exit_code == 0
    assert server.default_settings.model_pack.name == "strong"


def test_set_model_no_change(server):
    runner.invoke(cli.app, ["set-model", "max-tokens", "9000"])
    result = runner.invoke(cli.app, ["set-model", "max-tokens", "9000"])
    assert result.exit_code == 0
    assert "No model settings were updated" in result.stdout


def test_set_model_unknown_selector(server):
    result = runner.invoke(cli.app, ["set-model", "bogus"])
    assert result.exit_code == 1
    assert "settings.unknown_selector" in result.output


def test_custom_save_reports_changes(server, tmp_path, sample_doc):
    path = tmp_path / "models.json"
    path.write_bytes(serialize_document(sample_doc))

    result = runner.invoke(cli.app, ["models", "custom", "--save", "--file", str(path)])
    assert result.exit_code == 0, result.output
    assert "Added custom provider → acme-cloud" in result.stdout
    assert "Added custom model → acme/m2" in result.stdout
    assert len(server.pushed) == 1

    result = runner.invoke(cli.app, ["models", "custom", "--save", "--file", str(path)])
    assert "No changes" in result.stdout


def test_custom_save_missing_file(server, tmp_path):
    result = runner.invoke(cli.app, ["models", "custom", "--save", "--file", str(tmp_path / "none.json")])
    assert result.exit_code == 1
    assert "models.file_missing" in result.output


def test_bad_log_level(server):
    result = runner.invoke(cli.app, ["--log-level", "chatty", "models", "available"])
    assert result.exit_code != 0
