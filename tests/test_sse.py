"""Tests for SSE frame decoding (providers/sse.py)."""
from __future__ import annotations

import json

from cowork.providers.sse import SSEDecoder, iter_sse_json


def _payload(*frames: dict) -> bytes:
    lines = [f"data: {json.dumps(f)}" for f in frames]
    return ("\n".join(lines) + "\n").encode("utf-8")


class TestSSEDecoder:
    def test_single_chunk(self):
        data = _payload({"a": 1}, {"b": 2})
        assert list(iter_sse_json([data])) == [{"a": 1}, {"b": 2}]

    def test_incomplete_line_is_buffered(self):
        decoder = SSEDecoder()
        assert decoder.feed(b'data: {"a"') == []
        assert decoder.pending == 'data: {"a"'
        assert decoder.feed(b": 1}\n") == [{"a": 1}]
        assert decoder.pending == ""

    def test_chunk_boundaries_do_not_change_frames(self):
        data = _payload(
            {"type": "content_block_delta", "delta": {"text": "héllo"}},
            {"type": "content_block_delta", "delta": {"text": " wörld ✓"}},
            {"x": [1, 2, 3]},
        )
        whole = list(iter_sse_json([data]))
        for size in (1, 2, 3, 5, 7, 13):
            chunks = [data[i:i + size] for i in range(0, len(data), size)]
            assert list(iter_sse_json(chunks)) == whole

    def test_non_data_lines_ignored(self):
        data = b'event: message\n: comment\nid: 4\n\ndata: {"ok": true}\n'
        assert list(iter_sse_json([data])) == [{"ok": True}]

    def test_done_sentinel_is_not_terminal(self):
        data = b'data: {"a": 1}\ndata: [DONE]\ndata: {"b": 2}\n'
        assert list(iter_sse_json([data])) == [{"a": 1}, {"b": 2}]

    def test_malformed_frame_skipped(self):
        data = b'data: {"a": 1}\ndata: {not json\ndata: {"b": 2}\n'
        assert list(iter_sse_json([data])) == [{"a": 1}, {"b": 2}]

    def test_crlf_line_endings(self):
        data = b'data: {"a": 1}\r\ndata: [DONE]\r\n'
        assert list(iter_sse_json([data])) == [{"a": 1}]

    def test_unterminated_tail_not_parsed(self):
        data = b'data: {"a": 1}\ndata: {"b": 2}'
        assert list(iter_sse_json([data])) == [{"a": 1}]

    def test_empty_stream(self):
        assert list(iter_sse_json([])) == []
        assert list(iter_sse_json([b""])) == []

    def test_is_lazy(self):
        consumed = []

        def chunks():
            for part in (b'data: {"n": 1}\n', b'data: {"n": 2}\n'):
                consumed.append(part)
                yield part

        it = iter_sse_json(chunks())
        assert next(it) == {"n": 1}
        assert len(consumed) == 1
