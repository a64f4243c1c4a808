"""Known models and the vendor that serves each of them."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional

from cowork.providers.base import ProviderConfig

FALLBACK_BASE_URL = "https://api.anthropic.com"
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    description: str
    provider: str
    base_url: str


AVAILABLE_MODELS: List[ModelInfo] = [
    ModelInfo("claude-opus-4-5-20251101", "Claude Opus 4.5", "Most capable", "anthropic", "https://api.anthropic.com"),
    ModelInfo("claude-sonnet-4-5-20250929", "Claude Sonnet 4.5", "Enhanced balanced model", "anthropic", "https://api.anthropic.com"),
    ModelInfo("gpt-5.2", "GPT 5.2", "Latest OpenAI model", "openai", "https://api.openai.com"),
    ModelInfo("gpt-5.1-codex", "GPT 5.1 Codex", "Code-specialized model", "openai", "https://api.openai.com"),
    ModelInfo("gemini-3-pro", "Gemini 3 Pro", "Google's latest model", "google", "https://generativelanguage.googleapis.com"),
    ModelInfo("minimax-m2.1", "Minimax M2.1", "Advanced Chinese model", "minimax", "https://api.minimax.chat"),
]


def get_model_info(model_id: str, models: Optional[List[ModelInfo]] = None) -> Optional[ModelInfo]:
    for info in models if models is not None else AVAILABLE_MODELS:
        if info.id == model_id:
            return info
    return None


def default_base_url(model_id: str) -> str:
    info = get_model_info(model_id)
    return info.base_url if info else FALLBACK_BASE_URL


def switch_model(config: ProviderConfig, model_id: str) -> ProviderConfig:
    """Return *config* pointed at *model_id*.

    The base URL follows the new model's default only while it still equals
    the previous model's default; a custom URL is left alone.
    """
    current = get_model_info(config.model)
    new = get_model_info(model_id)
    base_url = config.base_url
    if current and new and config.base_url == current.base_url:
        base_url = new.base_url
    return replace(config, model=model_id, base_url=base_url)
