from __future__ import annotations

import os
from typing import Optional

from anthropic import AsyncAnthropic

from ats_engine.ai.config import looks_like_placeholder
from ats_engine.ai.types import AIUnavailableError, CompletionRequest


class ClaudeProvider:
    name = "claude"

    def __init__(self, model: str, api_key: Optional[str] = None, timeout_s: float = 30.0):
        self._model = model
        key = (api_key or os.getenv("ANTHROPIC_API_KEY") or "").strip()
        if not key or looks_like_placeholder(key):
            raise AIUnavailableError("ANTHROPIC_API_KEY is missing", code="llm_disabled")
        self._client = AsyncAnthropic(api_key=key, timeout=timeout_s, max_retries=0)

    async def complete(self, request: CompletionRequest) -> str:
        kwargs = {
            "model": request.model or self._model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        if request.system:
            kwargs["system"] = request.system
        response = await self._client.messages.create(**kwargs)
        texts = [getattr(block, "text", "") for block in response.content or []]
        return "\n".join(text for text in texts if text).strip()
