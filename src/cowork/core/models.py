"""Task, plan and message records mirrored from the task backend.

All records are frozen; state changes build new instances with
``dataclasses.replace`` so a reader never sees a half-applied update.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

# Valid statuses
TASK_STATUSES = {"pending", "running", "completed", "failed"}
STEP_STATUSES = {"pending", "running", "completed"}
TOOL_STATUSES = {"running", "completed", "error"}
MESSAGE_ROLES = {"user", "assistant"}

TEMP_ID_PREFIX = "temp-"


@dataclass(frozen=True)
class PlanStep:
    step: int
    description: str
    status: str = "pending"     # pending|running|completed

    def to_dict(self) -> dict:
        return {"step": self.step, "description": self.description, "status": self.status}

    @classmethod
    def from_dict(cls, d: dict) -> PlanStep:
        return cls(
            step=int(d["step"]),
            description=d.get("description", ""),
            status=d.get("status", "pending"),
        )


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: str
    status: str = "pending"     # pending|running|completed|failed
    plan: Optional[Tuple[PlanStep, ...]] = None
    current_step: Optional[int] = None
    project_path: Optional[str] = None
    created_at: Optional[int] = None    # ms since epoch, as reported by the backend
    updated_at: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "plan": [s.to_dict() for s in self.plan] if self.plan is not None else None,
            "current_step": self.current_step,
            "project_path": self.project_path,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Task:
        plan = d.get("plan")
        return cls(
            id=d["id"],
            title=d.get("title", ""),
            description=d.get("description", ""),
            status=d.get("status", "pending"),
            plan=tuple(PlanStep.from_dict(s) for s in plan) if plan is not None else None,
            current_step=d.get("current_step"),
            project_path=d.get("project_path"),
            created_at=d.get("created_at"),
            updated_at=d.get("updated_at"),
        )


@dataclass(frozen=True)
class ToolExecution:
    """One tool invocation seen during the current run."""
    id: int
    tool: str
    status: str = "running"     # running|completed|error
    input: Any = None
    result: Any = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tool": self.tool,
            "status": self.status,
            "input": self.input,
            "result": self.result,
        }


@dataclass(frozen=True)
class Message:
    id: str
    task_id: str
    role: str                   # user|assistant
    content: str                # plain text or JSON-encoded structured content
    timestamp: int              # ms since epoch

    @property
    def is_temporary(self) -> bool:
        return self.id.startswith(TEMP_ID_PREFIX)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Message:
        return cls(
            id=str(d["id"]),
            task_id=d.get("task_id", ""),
            role=d["role"],
            content=d.get("content", ""),
            timestamp=int(d.get("timestamp", 0)),
        )
