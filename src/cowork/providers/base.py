"""Shared plumbing for LLM vendor adapters.

Every adapter exposes the same two calls:

* ``send_message(messages, config, on_delta=None) -> str``
* ``test_connection(config) -> "success" | "Error: <reason>"``

``on_delta`` always receives the *full* text accumulated so far, never just
the latest fragment; consumers replace what they display on every call.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

from cowork.providers.sse import iter_sse_json

logger = logging.getLogger("cowork.providers")

DEFAULT_TIMEOUT = 120.0  # seconds
PROBE_MAX_TOKENS = 10

OnDelta = Callable[[str], None]


@dataclass(frozen=True)
class ProviderConfig:
    """Connection settings for one call, passed by value."""
    api_key: str
    model: str
    base_url: str
    max_tokens: int = 4096
    temperature: Optional[float] = None


@dataclass(frozen=True)
class ChatMessage:
    role: str       # "user" | "assistant"
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


class ProviderError(RuntimeError):
    """Non-2xx response from a vendor API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _json_or_empty(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def vendor_error_message(resp: httpx.Response) -> str | None:
    """Return ``error.message`` from a vendor error body, if any."""
    error = _json_or_empty(resp).get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if message:
            return str(message)
    return None


def dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None on the first missing hop."""
    for key in path:
        if isinstance(key, int):
            if not isinstance(data, list) or len(data) <= key:
                return None
            data = data[key]
        else:
            if not isinstance(data, dict):
                return None
            data = data.get(key)
        if data is None:
            return None
    return data


def text_at(data: Any, *path: Any) -> str | None:
    """Like :func:`dig`, but only a string counts as text."""
    value = dig(data, *path)
    return value if isinstance(value, str) else None


class Provider:
    """Base class for vendor adapters.

    Subclasses describe the vendor's request (:meth:`endpoint`,
    :meth:`headers`, :meth:`build_body`) and where text lives in its
    replies (:meth:`extract_text`, :meth:`extract_delta`).  Adapters with
    ``incremental = True`` stream SSE frames; the others read one JSON body.
    """

    name = "base"
    incremental = False

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._transport = transport

    # ── vendor specifics ────────────────────────────────────

    def endpoint(self, config: ProviderConfig) -> str:
        raise NotImplementedError

    def headers(self, config: ProviderConfig) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def build_body(
        self,
        messages: List[ChatMessage],
        config: ProviderConfig,
        stream: bool,
        max_tokens: int | None = None,
        probe: bool = False,
    ) -> Dict[str, Any]:
        raise NotImplementedError

    def extract_text(self, data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def extract_delta(self, frame: Any) -> str | None:
        return None

    # ── uniform contract ────────────────────────────────────

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, transport=self._transport)

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.is_success:
            return
        message = vendor_error_message(resp) or f"API error: {resp.status_code}"
        logger.error("%s request failed: %s %s", self.name, resp.status_code, message)
        raise ProviderError(message, status_code=resp.status_code)

    def send_message(
        self,
        messages: Iterable[ChatMessage],
        config: ProviderConfig,
        on_delta: Optional[OnDelta] = None,
    ) -> str:
        """Send a conversation and return the assistant's full reply."""
        msgs = list(messages)
        stream = self.incremental and on_delta is not None
        body = self.build_body(msgs, config, stream=stream)
        url = self.endpoint(config)
        logger.debug("%s send: model=%s messages=%d stream=%s", self.name, config.model, len(msgs), stream)
        with self._client() as client:
            if stream:
                with client.stream("POST", url, headers=self.headers(config), json=body) as resp:
                    if not resp.is_success:
                        resp.read()
                        self._raise_for_status(resp)
                    return self._accumulate(resp.iter_bytes(), on_delta)
            resp = client.post(url, headers=self.headers(config), json=body)
            self._raise_for_status(resp)
            text = self.extract_text(_json_or_empty(resp))
        if on_delta is not None:
            on_delta(text)
        return text

    def _accumulate(self, chunks: Iterable[bytes], on_delta: OnDelta) -> str:
        full_text = ""
        for frame in iter_sse_json(chunks):
            delta = self.extract_delta(frame)
            if delta:
                full_text += delta
                on_delta(full_text)
        return full_text

    def test_connection(self, config: ProviderConfig) -> str:
        """Probe the vendor with a tiny request; never raises."""
        try:
            body = self.build_body(
                [ChatMessage(role="user", content="Hi")],
                config,
                stream=False,
                max_tokens=PROBE_MAX_TOKENS,
                probe=True,
            )
            with self._client() as client:
                resp = client.post(self.endpoint(config), headers=self.headers(config), json=body)
            if resp.is_success:
                return "success"
            return f"Error: {vendor_error_message(resp) or resp.status_code}"
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s connection test failed: %s", self.name, exc)
            return f"Error: {str(exc) or type(exc).__name__}"
