"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (BOOKSCOUT__SERVER__TRANSPORT=http)
  2. bookscout.yaml         (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional and all fields have sensible defaults. Leaving
``summary.api_key`` unset is valid and switches summaries to fallback text.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_USER_AGENTS: list[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
]

_GEMINI_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
)


def _find_config_file() -> str | None:
    """Return the path of the first bookscout.yaml found, or None."""
    candidates = [
        Path("bookscout.yaml"),
        Path(platformdirs.user_config_dir("bookscout")) / "bookscout.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "0.0.0.0"
    port: int = 8080


class CacheSettings(BaseModel):
    ttl_seconds: int = Field(default=600, gt=0)
    capacity: int = Field(default=100, ge=1)
    summary_capacity: int = Field(default=50, ge=1)
    cleanup_interval_seconds: int = Field(default=300, gt=0)


class FetcherSettings(BaseModel):
    request_timeout_ms: int = Field(default=15000, gt=0)
    retry_backoff_ms: int = Field(default=250, ge=0)
    identity_header_pool: list[str] = Field(default_factory=lambda: list(DEFAULT_USER_AGENTS))
    transport_strategies: list[Literal["direct", "proxied"]] = ["direct", "proxied"]
    # {url} is replaced with the percent-encoded target URL
    proxy_url_template: str = "https://api.allorigins.win/raw?url={url}"
    error_sentinels: list[str] = ['"contents":null']


class UpstreamSettings(BaseModel):
    base_url: str = "https://annas-archive.org"
    search_path: str = "/search"


class SummarySettings(BaseModel):
    api_endpoint: str = _GEMINI_ENDPOINT
    api_key: SecretStr | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: BOOKSCOUT__CACHE__TTL_SECONDS=900
        env_prefix="BOOKSCOUT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    cache: CacheSettings = CacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
    upstream: UpstreamSettings = UpstreamSettings()
    summary: SummarySettings = SummarySettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
