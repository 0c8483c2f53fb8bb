"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_flag(name: str, default: str) -> bool:
    return _get_env(name, default).lower() in {"1", "true", "yes"}


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    catalog_path: str = _get_env("CATALOG_PATH", "data/products.json")
    catalog_source_url: str = _get_env("CATALOG_SOURCE_URL", "")
    page_size: int = int(_get_env("PAGE_SIZE", "20"))
    max_page_size: int = int(_get_env("MAX_PAGE_SIZE", "100"))
    fuzzy_threshold: float = float(_get_env("FUZZY_THRESHOLD", "0.4"))
    apply_sort_intent: bool = _get_flag("APPLY_SORT_INTENT", "true")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    redis_timeout_seconds: float = float(_get_env("REDIS_TIMEOUT_SECONDS", "0.5"))
    cache_ttl_seconds: int = int(_get_env("CACHE_TTL_SECONDS", "300"))
    cache_max_entries: int = int(_get_env("CACHE_MAX_ENTRIES", "1024"))
    cache_enabled: bool = _get_flag("CACHE_ENABLED", "true")
    load_on_startup: bool = _get_flag("LOAD_ON_STARTUP", "true")
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
