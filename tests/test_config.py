"""Tests for settings, logging setup and record serialization."""
from __future__ import annotations

import json
import logging
import logging.handlers

import pytest

from cowork.core.config import Settings
from cowork.core.logging_config import agent_event_logger, clear_logs, log_agent_event, setup_logging
from cowork.core.models import Message, PlanStep, Task, ToolExecution

_ENV = [
    "COWORK_LOG_LEVEL", "COWORK_LOG_DIR", "COWORK_DATA_DIR", "COWORK_MODEL", "COWORK_API_KEY",
    "COWORK_BASE_URL", "COWORK_MAX_TOKENS", "COWORK_TEMPERATURE", "COWORK_MAX_TURNS",
    "COWORK_LOCALE", "COWORK_HTTP_TIMEOUT", "COWORK_CLEAR_LOGS_ON_LAUNCH",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    for owner in (root, agent_event_logger):
        for handler in list(owner.handlers):
            if isinstance(handler, logging.handlers.RotatingFileHandler) or type(handler) is logging.StreamHandler:
                handler.close()
                owner.removeHandler(handler)
    root.setLevel(level)


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.model == "claude-sonnet-4-5-20250929"
        assert settings.base_url == "https://api.anthropic.com"
        assert settings.max_tokens == 4096
        assert settings.temperature is None
        assert settings.max_turns == 50
        assert settings.locale == "en"
        assert settings.is_configured is False
        assert settings.log_dir.endswith(".logs")

    def test_base_url_follows_model(self, clean_env):
        clean_env.setenv("COWORK_MODEL", "gpt-5.2")
        assert Settings.from_env().base_url == "https://api.openai.com"

    def test_overrides(self, clean_env):
        clean_env.setenv("COWORK_API_KEY", "sk-1")
        clean_env.setenv("COWORK_BASE_URL", "https://proxy.local")
        clean_env.setenv("COWORK_MAX_TOKENS", "512")
        clean_env.setenv("COWORK_TEMPERATURE", "0.5")
        clean_env.setenv("COWORK_CLEAR_LOGS_ON_LAUNCH", "yes")
        settings = Settings.from_env()
        config = settings.provider_config()
        assert settings.is_configured is True
        assert settings.clear_logs_on_launch is True
        assert (config.api_key, config.base_url, config.max_tokens, config.temperature) == (
            "sk-1", "https://proxy.local", 512, 0.5,
        )


class TestLogging:
    def test_setup_creates_files(self, tmp_path, restore_logging):
        log_dir = tmp_path / "logs"
        setup_logging(str(log_dir), "debug")
        logging.getLogger("cowork.test").info("hello")
        log_agent_event("task-1", {"type": "text", "content": "hi"})
        for handler in logging.getLogger().handlers + agent_event_logger.handlers:
            handler.flush()
        assert "hello" in (log_dir / "cowork.log").read_text(encoding="utf-8")
        record = json.loads((log_dir / "agent-events.log").read_text(encoding="utf-8").splitlines()[0])
        assert record["task_id"] == "task-1"
        assert record["event"] == {"type": "text", "content": "hi"}

    def test_large_event_truncated(self, tmp_path, restore_logging):
        setup_logging(str(tmp_path), "info")
        log_agent_event("task-1", {"type": "text", "content": "x" * 20000})
        agent_event_logger.handlers[0].flush()
        record = json.loads((tmp_path / "agent-events.log").read_text(encoding="utf-8").splitlines()[0])
        assert record["event"] == {"type": "text", "truncated": True}

    def test_clear_logs(self, tmp_path):
        (tmp_path / "cowork.log").write_text("old")
        (tmp_path / "cowork.log.1").write_text("older")
        (tmp_path / "keep.txt").write_text("keep")
        clear_logs(str(tmp_path))
        assert sorted(p.name for p in tmp_path.iterdir()) == ["keep.txt"]


class TestRecords:
    def test_task_from_backend_payload(self):
        task = Task.from_dict({
            "id": "task-1",
            "title": "T",
            "description": "D",
            "status": "running",
            "plan": [{"step": 1, "description": "a", "status": "completed"}],
            "current_step": 1,
            "project_path": None,
        })
        assert task.plan == (PlanStep(1, "a", "completed"),)
        assert task.to_dict()["plan"] == [{"step": 1, "description": "a", "status": "completed"}]

    def test_task_without_plan(self):
        task = Task.from_dict({"id": "task-2", "title": "T", "description": "D", "plan": None})
        assert task.plan is None
        assert task.status == "pending"

    def test_message_payload(self):
        msg = Message.from_dict({"id": 7, "task_id": "task-1", "role": "assistant", "content": "hi", "timestamp": 5})
        assert msg.id == "7"
        assert msg.is_temporary is False
        assert msg.to_dict()["timestamp"] == 5

    def test_tool_execution_dict(self):
        execution = ToolExecution(id=1, tool="bash", input={"cmd": "ls"})
        assert execution.to_dict() == {"id": 1, "tool": "bash", "status": "running", "input": {"cmd": "ls"}, "result": None}
