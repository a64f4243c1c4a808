"""Contract with the task backend, plus an in-memory implementation.

The real backend owns task/message persistence and the agent execution
engine.  The client only needs the narrow surface in :class:`TaskBackend`.
:class:`InMemoryTaskBackend` implements it in-process for tests and the
CLI, driving a pluggable *runner* that produces agent events.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol
import uuid

from cowork.core.events import DoneEvent, ErrorEvent, TextEvent, parse_event
from cowork.core.models import Message, Task
from cowork.core.reducer import RunState, reduce
from cowork.providers.base import ChatMessage, ProviderConfig

logger = logging.getLogger("cowork.backend")

DEFAULT_MAX_TURNS = 50

EventCallback = Callable[[Any], None]


def now_ms() -> int:
    return int(time.time() * 1000)


class CancelToken:
    """Cooperative cancellation flag shared between a run and its caller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class RunRequest:
    task_id: str
    message: str
    project_path: Optional[str] = None
    max_turns: int = DEFAULT_MAX_TURNS
    locale: str = "en"

    def to_dict(self) -> dict:
        return {
            "task_id": self.task_id,
            "message": self.message,
            "project_path": self.project_path,
            "max_turns": self.max_turns,
            "locale": self.locale,
        }


class TaskBackend(Protocol):
    def list_tasks(self) -> List[Task]: ...

    def create_task(self, title: str, description: str, project_path: Optional[str] = None) -> Task: ...

    def delete_task(self, task_id: str) -> None: ...

    def get_task(self, task_id: str) -> Optional[Task]: ...

    def get_task_messages(self, task_id: str) -> List[Message]: ...

    def run_task_agent(
        self,
        request: RunRequest,
        on_event: EventCallback,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        """Run the agent to completion, calling *on_event* for each event in order."""
        ...


# A runner receives the request, the conversation so far and an ``emit``
# callback; it returns when the run is over.
Runner = Callable[[RunRequest, List[Message], EventCallback, CancelToken], None]


class InMemoryTaskBackend:
    """Process-local :class:`TaskBackend`.

    Task status and plan follow the events the runner emits, and the last
    ``text`` event becomes the stored assistant reply.
    """

    def __init__(self, runner: Optional[Runner] = None) -> None:
        self._tasks: Dict[str, Task] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._runner = runner
        self._lock = threading.Lock()

    def list_tasks(self) -> List[Task]:
        with self._lock:
            return sorted(self._tasks.values(), key=lambda t: t.updated_at or 0, reverse=True)

    def create_task(self, title: str, description: str, project_path: Optional[str] = None) -> Task:
        ts = now_ms()
        task = Task(
            id=f"task-{uuid.uuid4().hex[:12]}",
            title=title,
            description=description,
            project_path=project_path,
            created_at=ts,
            updated_at=ts,
        )
        with self._lock:
            self._tasks[task.id] = task
            self._messages[task.id] = []
        logger.info("Task created: %s (%s)", task.id, title)
        return task

    def delete_task(self, task_id: str) -> None:
        with self._lock:
            self._tasks.pop(task_id, None)
            self._messages.pop(task_id, None)
        logger.info("Task deleted: %s", task_id)

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(task_id)

    def get_task_messages(self, task_id: str) -> List[Message]:
        with self._lock:
            return list(self._messages.get(task_id, []))

    def add_message(self, task_id: str, role: str, content: str) -> Message:
        msg = Message(
            id=f"msg-{uuid.uuid4().hex[:12]}",
            task_id=task_id,
            role=role,
            content=content,
            timestamp=now_ms(),
        )
        with self._lock:
            self._messages.setdefault(task_id, []).append(msg)
        return msg

    def _store_task(self, task: Task) -> None:
        with self._lock:
            if task.id in self._tasks:
                self._tasks[task.id] = replace(task, updated_at=now_ms())

    def run_task_agent(
        self,
        request: RunRequest,
        on_event: EventCallback,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        task = self.get_task(request.task_id)
        if task is None:
            raise KeyError(f"Task {request.task_id} not found")
        if self._runner is None:
            raise RuntimeError("No agent runner configured")
        cancel = cancel or CancelToken()
        self.add_message(task.id, "user", request.message)
        if request.project_path and request.project_path != task.project_path:
            task = replace(task, project_path=request.project_path)
        state = RunState(active_task=replace(task, status="running"))
        self._store_task(state.active_task)

        def emit(payload: Any) -> None:
            nonlocal state
            if cancel.cancelled:
                return
            event = parse_event(payload)
            if event is None:
                return
            state = reduce(state, event)
            on_event(event)

        crashed = True
        try:
            self._runner(request, self.get_task_messages(task.id), emit, cancel)
            crashed = False
        finally:
            final = state.active_task
            if final.status == "running":
                failed = crashed or cancel.cancelled
                final = replace(final, status="failed" if failed else "completed")
            if state.current_text:
                self.add_message(task.id, "assistant", state.current_text)
            self._store_task(final)
            logger.info("Run finished: task=%s status=%s", task.id, final.status)


class ReplayRunner:
    """Emit a fixed, recorded sequence of event payloads."""

    def __init__(self, events: Iterable[Any]) -> None:
        self.events = list(events)

    def __call__(
        self,
        request: RunRequest,
        history: List[Message],
        emit: EventCallback,
        cancel: CancelToken,
    ) -> None:
        for payload in self.events:
            if cancel.cancelled:
                return
            emit(payload)


class ProviderChatRunner:
    """Single-turn agent: one model reply, streamed as ``text`` events."""

    def __init__(self, registry: Any, config: ProviderConfig) -> None:
        self.registry = registry
        self.config = config

    def __call__(
        self,
        request: RunRequest,
        history: List[Message],
        emit: EventCallback,
        cancel: CancelToken,
    ) -> None:
        messages = [ChatMessage(role=m.role, content=m.content) for m in history]
        try:
            text = self.registry.send_message(
                messages,
                self.config,
                on_delta=lambda full: emit(TextEvent(content=full)),
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Model call failed for %s: %s", request.task_id, exc)
            emit(ErrorEvent(message=str(exc)))
            return
        emit(TextEvent(content=text))
        emit(DoneEvent(total_turns=1))
