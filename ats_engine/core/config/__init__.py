from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    llm_enabled: bool
    primary_provider: str
    primary_model: str
    secondary_provider: str
    secondary_model: str
    llm_timeout_s: float
    verification_timeout_s: float
    llm_max_tokens: int
    llm_temperature: float


def load_settings() -> Settings:
    return Settings(
        log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
        sentry_dsn=_get_env("SENTRY_DSN"),
        llm_enabled=_get_env_bool("ATS_LLM_ENABLED", True),
        primary_provider=(_get_env("ATS_PRIMARY_PROVIDER", "claude") or "claude").strip().lower(),
        primary_model=(_get_env("ATS_PRIMARY_MODEL", "claude-sonnet-4-20250514") or "claude-sonnet-4-20250514").strip(),
        secondary_provider=(_get_env("ATS_SECONDARY_PROVIDER", "openai") or "openai").strip().lower(),
        secondary_model=(_get_env("ATS_SECONDARY_MODEL", "gpt-4o-mini") or "gpt-4o-mini").strip(),
        llm_timeout_s=_get_env_float("ATS_LLM_TIMEOUT_S", 30.0),
        verification_timeout_s=_get_env_float("ATS_VERIFICATION_TIMEOUT_S", 30.0),
        llm_max_tokens=_get_env_int("ATS_LLM_MAX_TOKENS", 3000),
        llm_temperature=_get_env_float("ATS_LLM_TEMPERATURE", 0.1),
    )


settings = load_settings()

if settings.primary_provider not in {"openai", "claude", "gemini"}:
    raise RuntimeError("ATS_PRIMARY_PROVIDER must be one of 'openai', 'claude' or 'gemini'.")

if settings.secondary_provider not in {"openai", "claude", "gemini"}:
    raise RuntimeError("ATS_SECONDARY_PROVIDER must be one of 'openai', 'claude' or 'gemini'.")

__all__ = ["Settings", "load_settings", "settings"]
