from __future__ import annotations

import asyncio
import logging
import time

from ats_engine.ai.types import AIClient, CompletionRequest

logger = logging.getLogger(__name__)


async def generate_text(
    client: AIClient | None,
    request: CompletionRequest,
    *,
    timeout_s: float,
    label: str,
) -> str | None:
    """Run one completion with its own timeout. Returns None when the service is absent or fails."""
    if client is None:
        logger.debug("ats_llm_skipped label=%s reason=no_client", label)
        return None

    started = time.perf_counter()
    try:
        text = await asyncio.wait_for(client.complete(request), timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.warning("ats_llm_timeout label=%s provider=%s timeout_s=%s", label, client.name, timeout_s)
        return None
    except Exception as exc:  # noqa: BLE001 - deterministic fallback is expected
        logger.warning(
            "ats_llm_failed label=%s provider=%s prompt_len=%s: %s",
            label,
            client.name,
            len(request.prompt),
            exc,
        )
        return None

    latency_ms = int((time.perf_counter() - started) * 1000)
    if not text or not text.strip():
        logger.warning("ats_llm_empty label=%s provider=%s latency_ms=%s", label, client.name, latency_ms)
        return None

    logger.info("ats_llm_ok label=%s provider=%s latency_ms=%s chars=%s", label, client.name, latency_ms, len(text))
    return text
