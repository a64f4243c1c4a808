from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import typer
from dotenv import load_dotenv

from cowork.core.reducer import RunState

app = typer.Typer(add_completion=False)


def _load_env() -> None:
    load_dotenv()


def _settings():
    from cowork.core.config import Settings

    return Settings.from_env()


def _setup_logging() -> None:
    """Configure centralized logging to both stdout and log files."""
    from cowork.core.logging_config import setup_logging

    settings = _settings()
    setup_logging(log_dir=settings.log_dir, log_level=settings.log_level, clear_on_launch=settings.clear_logs_on_launch)


def _provider_config(model: Optional[str]):
    from cowork.providers.catalog import switch_model

    settings = _settings()
    config = settings.provider_config()
    if model:
        config = switch_model(config, model)
    if not config.api_key:
        typer.secho("COWORK_API_KEY is not set.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return config


def _progress_printer():
    seen_tools: dict[int, str] = {}
    seen_steps: dict[int, str] = {}

    def _print(state: RunState) -> None:
        task = state.active_task
        for step in (task.plan or ()) if task else ():
            if seen_steps.get(step.step) != step.status:
                seen_steps[step.step] = step.status
                typer.echo(f"  [{step.status:>9}] step {step.step}: {step.description}")
        for execution in state.tool_executions:
            if seen_tools.get(execution.id) != execution.status:
                seen_tools[execution.id] = execution.status
                typer.echo(f"  [{execution.status:>9}] tool {execution.tool}")

    return _print


def _print_summary(orchestrator: Any) -> None:
    task = orchestrator.active_task
    if task is None:
        return
    typer.echo(f"\nTask {task.id}: {task.status}")
    for entry in orchestrator.display_messages():
        label = "You" if entry.role == "user" else "Agent"
        typer.echo(f"\n{label}:\n{entry.content}")
    if orchestrator.state.error_message:
        typer.secho(f"\nError: {orchestrator.state.error_message}", fg=typer.colors.RED)


@app.command()
def version() -> None:
    from cowork import __version__

    typer.echo(__version__)


@app.command()
def models() -> None:
    """List the models the client knows how to route."""
    from cowork.providers.catalog import AVAILABLE_MODELS

    for info in AVAILABLE_MODELS:
        typer.echo(f"{info.id:<30} {info.provider:<10} {info.name}: {info.description}")


@app.command("test-connection")
def test_connection(
    model: Optional[str] = typer.Option(None, help="Model id (defaults to COWORK_MODEL)"),
) -> None:
    """Probe the configured vendor with a tiny request."""
    _load_env()
    from cowork.providers.registry import build_default_registry

    config = _provider_config(model)
    result = build_default_registry(timeout=_settings().http_timeout).test_connection(config)
    if result == "success":
        typer.echo(f"✅ {config.model}: connection ok")
    else:
        typer.secho(f"❌ {config.model}: {result}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


@app.command()
def chat(
    message: str = typer.Argument(..., help="Message to send"),
    model: Optional[str] = typer.Option(None, help="Model id (defaults to COWORK_MODEL)"),
) -> None:
    """Send one message and stream the reply."""
    _load_env()
    _setup_logging()
    from cowork.core.backend import InMemoryTaskBackend
    from cowork.core.orchestrator import TaskOrchestrator
    from cowork.providers.base import ChatMessage
    from cowork.providers.registry import build_default_registry

    config = _provider_config(model)
    orchestrator = TaskOrchestrator(
        InMemoryTaskBackend(),
        build_default_registry(timeout=_settings().http_timeout),
    )
    printed = 0

    def _on_delta(full_text: str) -> None:
        nonlocal printed
        # full_text is the whole reply so far; print only what is new
        if full_text.startswith("Error:") and printed == 0:
            typer.secho(full_text, fg=typer.colors.RED, nl=False)
        else:
            typer.echo(full_text[printed:], nl=False)
        printed = len(full_text)

    orchestrator.send_chat([ChatMessage(role="user", content=message)], config, _on_delta)
    typer.echo("")


@app.command()
def run(
    message: str = typer.Argument(..., help="Task description"),
    model: Optional[str] = typer.Option(None, help="Model id (defaults to COWORK_MODEL)"),
    project_path: Optional[str] = typer.Option(None, "--project-path", help="Project folder(s), comma separated"),
) -> None:
    """Run a single-turn agent task and print its history."""
    _load_env()
    _setup_logging()
    from cowork.core.backend import InMemoryTaskBackend, ProviderChatRunner
    from cowork.core.orchestrator import TaskOrchestrator
    from cowork.providers.registry import build_default_registry

    settings = _settings()
    config = _provider_config(model)
    registry = build_default_registry(timeout=settings.http_timeout)
    backend = InMemoryTaskBackend(runner=ProviderChatRunner(registry, config))
    orchestrator = TaskOrchestrator(
        backend,
        registry,
        max_turns=settings.max_turns,
        locale=settings.locale,
        on_change=_progress_printer(),
    )
    orchestrator.submit(message, project_path)
    _print_summary(orchestrator)


def _read_events(path: Path) -> List[Any]:
    events: List[Any] = []
    with open(path, "r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if line:
                events.append(json.loads(line))
    return events


@app.command()
def replay(
    events_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSONL file of agent events"),
    message: str = typer.Option("Replayed task", help="Task description to attach"),
) -> None:
    """Fold a recorded agent event stream into task state and print it."""
    _load_env()
    _setup_logging()
    from cowork.core.backend import InMemoryTaskBackend, ReplayRunner
    from cowork.core.orchestrator import TaskOrchestrator

    backend = InMemoryTaskBackend(runner=ReplayRunner(_read_events(events_file)))
    orchestrator = TaskOrchestrator(backend, on_change=_progress_printer())
    orchestrator.submit(message)
    _print_summary(orchestrator)


if __name__ == "__main__":
    app()
