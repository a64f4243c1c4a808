"""Server-sent event decoding for streaming model responses.

Vendors stream replies as ``data: <json>`` lines separated by newlines.
Network reads do not respect line boundaries, so the decoder keeps the
unterminated tail of each read and only interprets complete lines.
"""
from __future__ import annotations

import codecs
import json
import logging
from typing import Any, Iterable, Iterator, List

logger = logging.getLogger("cowork.sse")

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSEDecoder:
    """Incremental ``data:`` frame decoder.

    Feed raw byte chunks with :meth:`feed`; each call returns the JSON values
    of the lines completed by that chunk.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def pending(self) -> str:
        """Unterminated text carried over to the next chunk."""
        return self._buffer

    def feed(self, chunk: bytes) -> List[Any]:
        self._buffer += self._text.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        frames: List[Any] = []
        for line in lines:
            parsed = _parse_line(line)
            if parsed is not _SKIP:
                frames.append(parsed)
        return frames


_SKIP = object()


def _parse_line(line: str) -> Any:
    if line.endswith("\r"):
        line = line[:-1]
    if not line.startswith(DATA_PREFIX):
        return _SKIP
    payload = line[len(DATA_PREFIX):]
    if payload == DONE_SENTINEL:
        return _SKIP
    try:
        return json.loads(payload)
    except ValueError:
        logger.debug("Skipping malformed SSE frame: %s", payload[:200])
        return _SKIP


def iter_sse_json(chunks: Iterable[bytes]) -> Iterator[Any]:
    """Lazily yield parsed ``data:`` payloads from a byte-chunk iterable.

    Iteration ends when *chunks* is exhausted; ``[DONE]`` is not treated as
    a terminator.
    """
    decoder = SSEDecoder()
    for chunk in chunks:
        if not chunk:
            continue
        for frame in decoder.feed(chunk):
            yield frame
