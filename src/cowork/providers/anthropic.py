from __future__ import annotations

from typing import Any, Dict, List

from cowork.providers.base import ChatMessage, Provider, ProviderConfig, dig, text_at

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(Provider):
    """Claude Messages API; streams ``content_block_delta`` frames."""

    name = "anthropic"
    incremental = True

    def endpoint(self, config: ProviderConfig) -> str:
        return f"{config.base_url.rstrip('/')}/v1/messages"

    def headers(self, config: ProviderConfig) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def build_body(
        self,
        messages: List[ChatMessage],
        config: ProviderConfig,
        stream: bool,
        max_tokens: int | None = None,
        probe: bool = False,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": config.model,
            "max_tokens": max_tokens or config.max_tokens,
            "stream": stream,
            "messages": [m.to_dict() for m in messages],
        }
        if config.temperature is not None and not probe:
            body["temperature"] = config.temperature
        return body

    def extract_text(self, data: Dict[str, Any]) -> str:
        return text_at(data, "content", 0, "text") or ""

    def extract_delta(self, frame: Any) -> str | None:
        if dig(frame, "type") != "content_block_delta":
            return None
        return text_at(frame, "delta", "text")
