"""Agent execution events.

The execution engine reports progress as JSON objects tagged by ``type``.
Each tag maps to one pydantic model; :func:`parse_event` turns a raw payload
into the matching model, or returns ``None`` (and logs) for unknown tags and
malformed payloads.
"""
from __future__ import annotations

import logging
from typing import Annotated, Any, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

logger = logging.getLogger("cowork.events")


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class PlanStepInfo(_Event):
    step: int
    description: str = ""


class TextEvent(_Event):
    type: Literal["text"] = "text"
    content: str


class PlanEvent(_Event):
    type: Literal["plan"] = "plan"
    steps: List[PlanStepInfo] = Field(default_factory=list)


class StepStartEvent(_Event):
    type: Literal["step_start"] = "step_start"
    step: int


class StepDoneEvent(_Event):
    type: Literal["step_done"] = "step_done"
    step: int


class ToolStartEvent(_Event):
    type: Literal["tool_start"] = "tool_start"
    tool: str
    input: Any = None


class ToolEndEvent(_Event):
    type: Literal["tool_end"] = "tool_end"
    tool: str
    success: bool
    result: Any = None


class TurnCompleteEvent(_Event):
    type: Literal["turn_complete"] = "turn_complete"
    turn: int = 0


class ToolResultsEvent(_Event):
    type: Literal["tool_results"] = "tool_results"
    results: List[Any] = Field(default_factory=list)


class DoneEvent(_Event):
    type: Literal["done"] = "done"
    total_turns: Optional[int] = None


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str = ""


AgentEvent = Annotated[
    Union[
        TextEvent,
        PlanEvent,
        StepStartEvent,
        StepDoneEvent,
        ToolStartEvent,
        ToolEndEvent,
        TurnCompleteEvent,
        ToolResultsEvent,
        DoneEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

EVENT_TYPES = frozenset(
    member.model_fields["type"].default for member in get_args(get_args(AgentEvent)[0])
)

_adapter: TypeAdapter = TypeAdapter(AgentEvent)


def parse_event(payload: Any) -> Optional[AgentEvent]:
    """Validate a raw event payload. Already-parsed events pass through."""
    if isinstance(payload, _Event):
        return payload  # type: ignore[return-value]
    if not isinstance(payload, dict):
        logger.warning("Ignoring non-object agent event: %r", payload)
        return None
    tag = payload.get("type")
    if tag not in EVENT_TYPES:
        logger.warning("Ignoring agent event with unknown type %r", tag)
        return None
    try:
        return _adapter.validate_python(payload)
    except ValidationError as exc:
        logger.warning("Ignoring malformed %s event: %s", tag, exc.errors()[:3])
        return None
