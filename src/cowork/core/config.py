from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from cowork.providers.base import DEFAULT_TIMEOUT, ProviderConfig
from cowork.providers.catalog import DEFAULT_MODEL, default_base_url


def _optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass
class Settings:
    log_level: str
    log_dir: str
    data_dir: str
    model: str
    api_key: str
    base_url: str
    max_tokens: int
    temperature: float | None
    max_turns: int
    locale: str
    http_timeout: float
    clear_logs_on_launch: bool

    @staticmethod
    def from_env() -> "Settings":
        default_home = str(Path(os.path.expanduser("~")) / ".cowork")
        model = os.getenv("COWORK_MODEL") or DEFAULT_MODEL
        return Settings(
            log_level=os.getenv("COWORK_LOG_LEVEL", "info"),
            log_dir=os.getenv("COWORK_LOG_DIR") or str(Path(default_home) / ".logs"),
            data_dir=os.getenv("COWORK_DATA_DIR") or str(Path(default_home) / ".data"),
            model=model,
            api_key=os.getenv("COWORK_API_KEY", ""),
            base_url=os.getenv("COWORK_BASE_URL") or default_base_url(model),
            max_tokens=int(os.getenv("COWORK_MAX_TOKENS", "4096")),
            temperature=_optional_float(os.getenv("COWORK_TEMPERATURE")),
            max_turns=int(os.getenv("COWORK_MAX_TURNS", "50")),
            locale=os.getenv("COWORK_LOCALE", "en"),
            http_timeout=float(os.getenv("COWORK_HTTP_TIMEOUT", str(DEFAULT_TIMEOUT))),
            clear_logs_on_launch=os.getenv("COWORK_CLEAR_LOGS_ON_LAUNCH", "false").lower() in {"1", "true", "yes"},
        )

    @property
    def is_configured(self) -> bool:
        return len(self.api_key) > 0

    def provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            api_key=self.api_key,
            model=self.model,
            base_url=self.base_url,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
