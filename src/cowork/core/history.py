"""Turn stored task messages into what a conversation view shows.

Stored content is either plain text or the agent's JSON-encoded structured
content (a string, a list of content blocks, or an object with a ``Text``,
``Blocks`` or ``ToolResults`` field).  Projection drops tool-result
plumbing, keeps only text, and merges runs of assistant messages.  The input
list is never modified.
"""
from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Iterable, List, Optional

from cowork.core.models import Message

BLOCK_SEPARATOR = "\n\n"

_NOT_JSON = object()


@dataclass(frozen=True)
class DisplayMessage:
    id: str
    role: str
    content: str
    timestamp: int


def _parse(content: str) -> Any:
    try:
        return json.loads(content)
    except (ValueError, TypeError):
        return _NOT_JSON


def is_tool_result(parsed: Any) -> bool:
    if isinstance(parsed, list):
        return bool(parsed) and isinstance(parsed[0], dict) and parsed[0].get("type") == "tool_result"
    if isinstance(parsed, dict):
        return "ToolResults" in parsed
    return False


def _blocks_text(blocks: list) -> str:
    texts = [
        str(b.get("text", ""))
        for b in blocks
        if isinstance(b, dict) and b.get("type") == "text"
    ]
    return BLOCK_SEPARATOR.join(t for t in texts if t)


def extract_text(raw: str, parsed: Any) -> Optional[str]:
    """Text to display for one message, or None when there is none."""
    if parsed is _NOT_JSON:
        return raw
    if isinstance(parsed, str):
        return parsed or None
    if isinstance(parsed, list):
        return _blocks_text(parsed) or None
    if isinstance(parsed, dict):
        if "Text" in parsed:
            return str(parsed["Text"] or "") or None
        if "Blocks" in parsed:
            blocks = parsed["Blocks"]
            return (_blocks_text(blocks) if isinstance(blocks, list) else "") or None
    # numbers, booleans, unrecognised objects: show what was stored
    return raw


def project_history(messages: Iterable[Message]) -> List[DisplayMessage]:
    projected: List[DisplayMessage] = []
    for msg in messages:
        parsed = _parse(msg.content)
        if msg.role == "user" and is_tool_result(parsed):
            continue
        text = extract_text(msg.content, parsed)
        if text is None:
            continue
        prev = projected[-1] if projected else None
        if msg.role == "assistant" and prev is not None and prev.role == "assistant":
            projected[-1] = DisplayMessage(
                id=prev.id,
                role=prev.role,
                content=prev.content + BLOCK_SEPARATOR + text,
                timestamp=prev.timestamp,
            )
            continue
        projected.append(DisplayMessage(id=msg.id, role=msg.role, content=text, timestamp=msg.timestamp))
    return projected
