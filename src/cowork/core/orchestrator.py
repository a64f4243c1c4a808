"""Task orchestration: start runs, fold their events, reload afterwards.

The orchestrator owns the client-side view of the task list, the active
task's run state and its message history.  A run is one blocking
``run_task_agent`` call on the backend; every event it emits is parsed and
reduced in arrival order.  Whatever happens during the run, the cleanup
path clears ``is_running`` and reloads authoritative state from the backend.

Each run carries a :class:`CancelToken`.  Switching tasks, starting a new
conversation or deleting the active task cancels it; events still arriving
for a cancelled run are dropped and its cleanup does not overwrite the view
the user moved on to.
"""
from __future__ import annotations

from dataclasses import replace
import logging
from typing import Any, Callable, Iterable, List, Optional

from cowork.core.backend import DEFAULT_MAX_TURNS, CancelToken, RunRequest, TaskBackend, now_ms
from cowork.core.events import parse_event
from cowork.core.history import DisplayMessage, project_history
from cowork.core.logging_config import log_agent_event
from cowork.core.models import TEMP_ID_PREFIX, Message, Task
from cowork.core.reducer import RunState, reduce, reset_run
from cowork.providers.base import ChatMessage, OnDelta, ProviderConfig
from cowork.providers.registry import ProviderRegistry

logger = logging.getLogger("cowork.orchestrator")

TITLE_MAX_CHARS = 50


def derive_title(message: str) -> str:
    """First line of *message*, truncated for the task list."""
    first_line = message.split("\n")[0]
    if len(first_line) > TITLE_MAX_CHARS:
        return first_line[:TITLE_MAX_CHARS] + "..."
    return first_line


class TaskOrchestrator:
    def __init__(
        self,
        backend: TaskBackend,
        registry: Optional[ProviderRegistry] = None,
        *,
        max_turns: int = DEFAULT_MAX_TURNS,
        locale: str = "en",
        on_change: Optional[Callable[[RunState], None]] = None,
    ) -> None:
        self.backend = backend
        self.registry = registry
        self.max_turns = max_turns
        self.locale = locale
        self.on_change = on_change

        self.tasks: List[Task] = []
        self.state = RunState()
        self.messages: List[Message] = []
        self.is_running = False
        self._token: Optional[CancelToken] = None

    # ── read side ───────────────────────────────────────────

    @property
    def active_task(self) -> Optional[Task]:
        return self.state.active_task

    @property
    def in_conversation(self) -> bool:
        return self.state.active_task is not None and len(self.messages) > 0

    def display_messages(self) -> List[DisplayMessage]:
        return project_history(self.messages)

    def refresh_tasks(self) -> List[Task]:
        self.tasks = self.backend.list_tasks()
        return self.tasks

    def _set_state(self, state: RunState) -> None:
        self.state = state
        if self.on_change is not None:
            self.on_change(state)

    # ── task lifecycle ──────────────────────────────────────

    def submit(self, text: str, project_path: Optional[str] = None) -> Optional[Task]:
        """Start a new task or continue the current conversation.

        Ignored while a run is active or when *text* is blank.
        """
        message = text.strip()
        if not message:
            return None
        if self.is_running:
            logger.warning("Run already in progress; ignoring new input")
            return None
        if self.in_conversation:
            return self.continue_task(message, project_path)
        return self.new_task(derive_title(message), message, project_path)

    def new_task(self, title: str, description: str, project_path: Optional[str] = None) -> Task:
        task = self.backend.create_task(title, description, project_path)
        self._set_state(RunState(active_task=task))
        self.messages = [self._temp_message(task.id, description)]
        self.refresh_tasks()
        self._run(task, description, project_path)
        return self.state.active_task or task

    def continue_task(self, message: str, project_path: Optional[str] = None) -> Optional[Task]:
        task = self.state.active_task
        if task is None:
            logger.warning("continue_task called without an active task")
            return None
        self.messages = self.messages + [self._temp_message(task.id, message)]
        self._run(task, message, project_path or task.project_path or None)
        return self.state.active_task

    def select_task(self, task: Task) -> None:
        self.cancel()
        self._set_state(RunState(active_task=task))
        self.messages = self.backend.get_task_messages(task.id)

    def new_conversation(self) -> None:
        self.cancel()
        self._set_state(RunState())
        self.messages = []

    def delete_task(self, task_id: str) -> None:
        self.backend.delete_task(task_id)
        active = self.state.active_task
        if active is not None and active.id == task_id:
            self.new_conversation()
        self.refresh_tasks()

    def cancel(self) -> None:
        """Stop applying events from the current run and ask the backend to stop."""
        if self._token is not None and not self._token.cancelled:
            logger.info("Cancelling active run")
            self._token.cancel()

    # ── run ─────────────────────────────────────────────────

    @staticmethod
    def _temp_message(task_id: str, content: str) -> Message:
        ts = now_ms()
        return Message(
            id=f"{TEMP_ID_PREFIX}{ts}",
            task_id=task_id,
            role="user",
            content=content,
            timestamp=ts,
        )

    def _run(self, task: Task, message: str, project_path: Optional[str]) -> None:
        token = CancelToken()
        self._token = token
        self.is_running = True
        self._set_state(reset_run(self.state))
        request = RunRequest(
            task_id=task.id,
            message=message,
            project_path=project_path,
            max_turns=self.max_turns,
            locale=self.locale,
        )
        logger.info("Run started: task=%s max_turns=%d", task.id, self.max_turns)

        def on_event(payload: Any) -> None:
            if token.cancelled:
                return
            event = parse_event(payload)
            if event is None:
                return
            log_agent_event(task.id, event.model_dump())
            self._set_state(reduce(self.state, event))

        try:
            self.backend.run_task_agent(request, on_event, token)
        except Exception as exc:  # noqa: BLE001
            logger.error("Task %s run failed: %s", task.id, exc)
        finally:
            if self._token is token:
                self._token = None
            self.is_running = False
            if not token.cancelled:
                self._reload(task.id)
            self.refresh_tasks()

    def _reload(self, task_id: str) -> None:
        updated = self.backend.get_task(task_id)
        if updated is not None:
            self._set_state(replace(self.state, active_task=updated))
        self.messages = self.backend.get_task_messages(task_id)

    # ── direct chat ─────────────────────────────────────────

    def send_chat(
        self,
        messages: Iterable[ChatMessage],
        config: ProviderConfig,
        on_delta: Optional[OnDelta] = None,
    ) -> str:
        """Send straight to a model; failures come back as ``Error: ...`` text."""
        if self.registry is None:
            raise RuntimeError("No provider registry configured")
        self.is_running = True
        try:
            return self.registry.send_message(messages, config, on_delta)
        except Exception as exc:  # noqa: BLE001
            logger.error("Chat request failed: %s", exc)
            text = f"Error: {str(exc) or type(exc).__name__}"
            if on_delta is not None:
                on_delta(text)
            return text
        finally:
            self.is_running = False
