from dataclasses import dataclass
from typing import Literal

from ats_engine.core.config import Settings, settings as default_settings

ClientRole = Literal["primary", "secondary"]


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    timeout_s: float


def load_ai_config(role: ClientRole = "primary", cfg: Settings | None = None) -> AIConfig:
    resolved = cfg or default_settings
    if role == "secondary":
        provider, model = resolved.secondary_provider, resolved.secondary_model
    else:
        provider, model = resolved.primary_provider, resolved.primary_model
    return AIConfig(
        provider=provider,
        model=model,
        timeout_s=resolved.llm_timeout_s,
    )


def looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}
