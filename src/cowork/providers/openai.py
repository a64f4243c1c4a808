from __future__ import annotations

from typing import Any, Dict, List

from cowork.providers.base import ChatMessage, Provider, ProviderConfig, text_at


class OpenAIProvider(Provider):
    """OpenAI-compatible chat completions; streams ``choices[0].delta`` frames."""

    name = "openai"
    incremental = True
    path = "/v1/chat/completions"

    def endpoint(self, config: ProviderConfig) -> str:
        return f"{config.base_url.rstrip('/')}{self.path}"

    def headers(self, config: ProviderConfig) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.api_key}",
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
        return text_at(data, "choices", 0, "message", "content") or ""

    def extract_delta(self, frame: Any) -> str | None:
        return text_at(frame, "choices", 0, "delta", "content")
