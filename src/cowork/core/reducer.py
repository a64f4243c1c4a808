"""Fold agent events into task state.

``reduce(state, event)`` is a pure function: it never mutates *state* and
returns either *state* itself (no-op) or a new :class:`RunState`.

Event effects::

    text        current_text := content
    plan        active_task.plan := steps (all pending), prior plan discarded
    step_start  matching step -> running, current_step := step
    step_done   matching step -> completed
    tool_start  append ToolExecution(running)
    tool_end    last running execution with the same tool -> completed|error
    done        active_task.status := completed
    error       active_task.status := failed

Unmatched steps and tool ends leave the state unchanged.  ``tool_end`` has no
correlation id, so two concurrent calls of the same tool resolve
last-started-first.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Any, Optional, Tuple

from cowork.core.events import (
    DoneEvent,
    ErrorEvent,
    PlanEvent,
    StepDoneEvent,
    StepStartEvent,
    TextEvent,
    ToolEndEvent,
    ToolResultsEvent,
    ToolStartEvent,
    TurnCompleteEvent,
)
from cowork.core.models import PlanStep, Task, ToolExecution

logger = logging.getLogger("cowork.reducer")


@dataclass(frozen=True)
class RunState:
    """Snapshot of what the client knows about the current run."""
    active_task: Optional[Task] = None
    current_text: str = ""
    tool_executions: Tuple[ToolExecution, ...] = ()
    error_message: Optional[str] = None


def reset_run(state: RunState) -> RunState:
    """Clear per-run progress, keeping the active task."""
    return replace(state, current_text="", tool_executions=(), error_message=None)


def _set_step_status(task: Task, step: int, status: str) -> Optional[Task]:
    if not task.plan or not any(s.step == step for s in task.plan):
        return None
    plan = tuple(replace(s, status=status) if s.step == step else s for s in task.plan)
    return replace(task, plan=plan)


def _with_task(state: RunState, task: Optional[Task]) -> RunState:
    if task is None:
        return state
    return replace(state, active_task=task)


def reduce(state: RunState, event: Any) -> RunState:
    task = state.active_task

    if isinstance(event, TextEvent):
        return replace(state, current_text=event.content)

    if isinstance(event, PlanEvent):
        if task is None:
            return state
        plan = tuple(PlanStep(step=s.step, description=s.description) for s in event.steps)
        return replace(state, active_task=replace(task, plan=plan))

    if isinstance(event, StepStartEvent):
        if task is None:
            return state
        updated = _set_step_status(task, event.step, "running")
        if updated is not None:
            updated = replace(updated, current_step=event.step)
        return _with_task(state, updated)

    if isinstance(event, StepDoneEvent):
        if task is None:
            return state
        return _with_task(state, _set_step_status(task, event.step, "completed"))

    if isinstance(event, ToolStartEvent):
        execution = ToolExecution(
            id=len(state.tool_executions) + 1,
            tool=event.tool,
            status="running",
            input=event.input,
        )
        return replace(state, tool_executions=state.tool_executions + (execution,))

    if isinstance(event, ToolEndEvent):
        executions = state.tool_executions
        for idx in range(len(executions) - 1, -1, -1):
            candidate = executions[idx]
            if candidate.tool == event.tool and candidate.status == "running":
                finished = replace(
                    candidate,
                    status="completed" if event.success else "error",
                    result=event.result,
                )
                return replace(
                    state,
                    tool_executions=executions[:idx] + (finished,) + executions[idx + 1:],
                )
        logger.debug("tool_end for %r with no running execution", event.tool)
        return state

    if isinstance(event, DoneEvent):
        if task is None:
            return state
        return replace(state, active_task=replace(task, status="completed"))

    if isinstance(event, ErrorEvent):
        if task is None:
            return replace(state, error_message=event.message or None)
        return replace(
            state,
            active_task=replace(task, status="failed"),
            error_message=event.message or None,
        )

    if isinstance(event, (TurnCompleteEvent, ToolResultsEvent)):
        return state

    logger.warning("Unhandled agent event: %r", event)
    return state
