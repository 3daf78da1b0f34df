"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "KBC_"
DEFAULT_CONFIG_PATH = Path("~/.config/knowledge-cache/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("helpcenter", "base_url"): "helpcenter_base_url",
    ("helpcenter", "categories"): "helpcenter_categories",
    ("helpcenter", "body_max_chars"): "body_max_chars",
    ("helpcenter", "crawl_page_size"): "crawl_page_size",
    ("notion", "api_key"): "notion_api_key",
    ("notion", "api_version"): "notion_version",
    ("notion", "body_max_chars"): "notion_body_max_chars",
    ("notion", "recursion_ceiling"): "notion_recursion_ceiling",
    ("notion", "overfetch_factor"): "notion_overfetch_factor",
    ("zendesk", "subdomain"): "zendesk_subdomain",
    ("zendesk", "email"): "zendesk_email",
    ("zendesk", "api_token"): "zendesk_api_token",
    ("cache", "backend"): "cache_backend",
    ("cache", "db_path"): "cache_db_path",
    ("cache", "prefer_cache"): "prefer_cache",
    ("retrieval", "max_results"): "default_max_results",
    ("retrieval", "validate_links"): "validate_links",
    ("retrieval", "source_timeout"): "source_timeout_seconds",
    ("retrieval", "validation_timeout"): "validation_timeout_seconds",
    ("cron", "secret"): "cron_secret",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    helpcenter_base_url: str = "https://help-ads.smartnews.com"
    helpcenter_categories: list[str] = Field(default_factory=lambda: ["posts", "news", "faq"])
    body_max_chars: int = 2000
    crawl_page_size: int = 100

    notion_api_url: str = "https://api.notion.com/v1"
    notion_api_key: str | None = None
    notion_version: str = "2022-06-28"
    notion_body_max_chars: int = 2500
    notion_recursion_ceiling: int = 1500
    notion_overfetch_factor: int = 3
    notion_max_candidates: int = 20

    zendesk_subdomain: str = "smartnews-ads"
    zendesk_email: str | None = None
    zendesk_api_token: str | None = None

    cache_backend: Literal["sqlite", "memory"] = "sqlite"
    cache_db_path: Path = Field(default=Path.home() / ".knowledge-cache" / "kv.db")
    prefer_cache: bool = True

    default_max_results: int = 3
    validate_links: bool = True
    source_timeout_seconds: float = 10.0
    validation_timeout_seconds: float = 3.0
    user_agent: str = "knowledge-cache/0.1"

    cron_secret: str | None = None

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("cache_db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("cache_db_path must be a path or string")

    @field_validator("helpcenter_categories", mode="before")
    @classmethod
    def _split_categories(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("notion_api_key", "zendesk_email", "zendesk_api_token", "cron_secret", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with KBC_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
