"""Model id → vendor adapter lookup.

The registry is an ordinary object built at startup and handed to whoever
needs it.  Models missing from the catalog, or whose vendor has no adapter,
resolve to the registry's ``default`` vendor (``anthropic`` unless told
otherwise).
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import httpx

from cowork.providers.anthropic import AnthropicProvider
from cowork.providers.base import DEFAULT_TIMEOUT, ChatMessage, OnDelta, Provider, ProviderConfig
from cowork.providers.catalog import AVAILABLE_MODELS, ModelInfo, get_model_info
from cowork.providers.google import GoogleProvider
from cowork.providers.minimax import MinimaxProvider
from cowork.providers.openai import OpenAIProvider

logger = logging.getLogger("cowork.registry")

DEFAULT_PROVIDER = "anthropic"


class ProviderRegistry:
    def __init__(
        self,
        providers: Iterable[Provider],
        models: Optional[List[ModelInfo]] = None,
        default: str = DEFAULT_PROVIDER,
    ) -> None:
        self._providers: Dict[str, Provider] = {p.name: p for p in providers}
        if default not in self._providers:
            raise ValueError(f"default provider {default!r} is not registered")
        self._models = list(models) if models is not None else list(AVAILABLE_MODELS)
        self.default = default

    @property
    def names(self) -> List[str]:
        return list(self._providers)

    def get(self, name: str) -> Optional[Provider]:
        return self._providers.get(name)

    def for_model(self, model_id: str) -> Provider:
        info = get_model_info(model_id, self._models)
        name = info.provider if info else self.default
        provider = self._providers.get(name)
        if info is None or provider is None:
            logger.debug("No adapter for model %r (vendor %r); using %s", model_id, name, self.default)
        return provider or self._providers[self.default]

    def send_message(
        self,
        messages: Iterable[ChatMessage],
        config: ProviderConfig,
        on_delta: Optional[OnDelta] = None,
    ) -> str:
        return self.for_model(config.model).send_message(messages, config, on_delta)

    def test_connection(self, config: ProviderConfig) -> str:
        return self.for_model(config.model).test_connection(config)


def build_default_registry(
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.BaseTransport | None = None,
) -> ProviderRegistry:
    """Registry with the four bundled vendor adapters."""
    return ProviderRegistry(
        [
            AnthropicProvider(timeout=timeout, transport=transport),
            OpenAIProvider(timeout=timeout, transport=transport),
            GoogleProvider(timeout=timeout, transport=transport),
            MinimaxProvider(timeout=timeout, transport=transport),
        ]
    )
