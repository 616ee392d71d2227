from ats_engine.ai.config import ClientRole, load_ai_config
from ats_engine.ai.types import AIClient, AIUnavailableError
from ats_engine.core.config import Settings, settings as default_settings

from ats_engine.ai.providers.openai_provider import OpenAIProvider
from ats_engine.ai.providers.claude_provider import ClaudeProvider
from ats_engine.ai.providers.gemini_provider import GeminiProvider


def get_ai_client(role: ClientRole = "primary", cfg: Settings | None = None) -> AIClient:
    resolved = cfg or default_settings
    if not resolved.llm_enabled:
        raise AIUnavailableError("Generative text services are disabled (ATS_LLM_ENABLED=false).", code="llm_disabled")

    ai_cfg = load_ai_config(role, resolved)

    if ai_cfg.provider == "openai":
        return OpenAIProvider(model=ai_cfg.model, timeout_s=ai_cfg.timeout_s)

    if ai_cfg.provider == "claude":
        return ClaudeProvider(model=ai_cfg.model, timeout_s=ai_cfg.timeout_s)

    if ai_cfg.provider == "gemini":
        return GeminiProvider(model=ai_cfg.model, timeout_s=ai_cfg.timeout_s)

    raise AIUnavailableError(f"Unsupported provider '{ai_cfg.provider}' for role '{role}'", code="llm_unsupported")


def get_optional_ai_client(role: ClientRole = "primary", cfg: Settings | None = None) -> AIClient | None:
    try:
        return get_ai_client(role, cfg)
    except AIUnavailableError:
        return None
