"""Tests for the cowork command-line interface."""
from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from cowork import __version__
from cowork.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    monkeypatch.setenv("COWORK_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setattr("cowork.core.logging_config.setup_logging", lambda *a, **kw: None)


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_models_lists_catalog() -> None:
    result = runner.invoke(app, ["models"])
    assert result.exit_code == 0
    assert "gpt-5.2" in result.output
    assert "minimax" in result.output


def test_test_connection_requires_key(monkeypatch) -> None:
    monkeypatch.setenv("COWORK_API_KEY", "")
    result = runner.invoke(app, ["test-connection"])
    assert result.exit_code == 1


def test_replay_prints_final_state(tmp_path) -> None:
    events = [
        {"type": "plan", "steps": [{"step": 1, "description": "inspect"}]},
        {"type": "step_start", "step": 1},
        {"type": "tool_start", "tool": "list_dir", "input": {"path": "."}},
        {"type": "tool_end", "tool": "list_dir", "success": True, "result": "a.txt"},
        {"type": "step_done", "step": 1},
        {"type": "text", "content": "Found a.txt"},
        {"type": "done", "total_turns": 1},
    ]
    path = tmp_path / "events.jsonl"
    path.write_text("\n".join(json.dumps(e) for e in events) + "\n", encoding="utf-8")

    result = runner.invoke(app, ["replay", str(path), "--message", "List files"])

    assert result.exit_code == 0, result.output
    assert "step 1: inspect" in result.output
    assert "tool list_dir" in result.output
    assert ": completed" in result.output
    assert "Found a.txt" in result.output
    assert "List files" in result.output
