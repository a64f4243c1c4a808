"""Centralized logging configuration for cowork.

Sets up Python's logging system to write to both stdout and a rotating log
file, plus a dedicated JSONL stream of every agent event the client folds
into task state.

Log directory structure::

    ~/.cowork/.logs/
    ├── cowork.log             # All Python logger output (rotating)
    └── agent-events.log       # One JSON object per consumed agent event
"""
from __future__ import annotations

import glob
import json
import logging
import logging.handlers
import os
import time
from typing import Any

agent_event_logger = logging.getLogger("cowork._agent_events")


def clear_logs(log_dir: str) -> None:
    """Remove ``*.log`` files (and rotated backups) from *log_dir*.

    Called before any handlers are attached so no file is held open.
    """
    if not os.path.isdir(log_dir):
        return
    for pattern in ("*.log", "*.log.*"):
        for path in glob.glob(os.path.join(log_dir, pattern)):
            try:
                os.remove(path)
            except OSError:
                pass


def setup_logging(log_dir: str, log_level: str = "info", *, clear_on_launch: bool = False) -> None:
    """Configure stdout and file handlers. Call once at startup."""
    if clear_on_launch:
        clear_logs(log_dir)

    os.makedirs(log_dir, exist_ok=True)

    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Clear any existing handlers (avoid duplicate output on re-init)
    root.handlers.clear()

    fmt = logging.Formatter(
        "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    stdout_handler = logging.StreamHandler()
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(fmt)
    root.addHandler(stdout_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        os.path.join(log_dir, "cowork.log"),
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    _setup_jsonl_logger(agent_event_logger, os.path.join(log_dir, "agent-events.log"))

    logging.getLogger("cowork").info(
        "Logging initialized: log_dir=%s, level=%s", log_dir, log_level
    )


def _setup_jsonl_logger(logger_instance: logging.Logger, path: str) -> None:
    """Configure a logger to write raw JSONL messages to a rotating file."""
    logger_instance.setLevel(logging.INFO)
    logger_instance.propagate = False
    logger_instance.handlers.clear()

    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    # Raw formatter: message is already JSON
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger_instance.addHandler(handler)


def log_agent_event(task_id: str, payload: dict[str, Any]) -> None:
    """Record one consumed agent event in the agent-events log."""
    record = {
        "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "task_id": task_id,
        "event": payload,
    }
    line = json.dumps(record, default=str)
    if len(line) > 10000:
        record["event"] = {"type": payload.get("type"), "truncated": True}
        line = json.dumps(record, default=str)
    try:
        agent_event_logger.info(line)
    except Exception:  # noqa: BLE001
        pass
