from __future__ import annotations

from typing import Any, Dict, List

from cowork.providers.base import ChatMessage, Provider, ProviderConfig, text_at


def to_gemini_contents(messages: List[ChatMessage]) -> List[Dict[str, Any]]:
    """Map chat roles onto Gemini's ``user``/``model`` contents."""
    return [
        {
            "role": "model" if m.role == "assistant" else "user",
            "parts": [{"text": m.content}],
        }
        for m in messages
    ]


class GoogleProvider(Provider):
    """Gemini ``generateContent``; non-incremental, key passed as a query param."""

    name = "google"
    incremental = False

    def endpoint(self, config: ProviderConfig) -> str:
        return f"{config.base_url.rstrip('/')}/v1beta/models/{config.model}:generateContent?key={config.api_key}"

    def build_body(
        self,
        messages: List[ChatMessage],
        config: ProviderConfig,
        stream: bool,
        max_tokens: int | None = None,
        probe: bool = False,
    ) -> Dict[str, Any]:
        generation: Dict[str, Any] = {"maxOutputTokens": max_tokens or config.max_tokens}
        if config.temperature is not None and not probe:
            generation["temperature"] = config.temperature
        return {
            "contents": to_gemini_contents(messages),
            "generationConfig": generation,
        }

    def extract_text(self, data: Dict[str, Any]) -> str:
        return text_at(data, "candidates", 0, "content", "parts", 0, "text") or ""
