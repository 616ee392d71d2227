from __future__ import annotations

import os
from typing import Optional

from openai import AsyncOpenAI

from ats_engine.ai.config import looks_like_placeholder
from ats_engine.ai.types import AIUnavailableError, CompletionRequest


class OpenAIProvider:
    name = "openai"

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
    ):
        self._model = model
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key or looks_like_placeholder(key):
            raise AIUnavailableError("OPENAI_API_KEY is missing", code="llm_disabled")

        # Single attempt per call; callers fall back locally instead of retrying.
        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=timeout_s,
            max_retries=0,
        )

    async def complete(self, request: CompletionRequest) -> str:
        payload = [{"role": m.role, "content": m.content} for m in request.messages()]
        response = await self._client.chat.completions.create(
            model=request.model or self._model,
            messages=payload,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
        )
        content = response.choices[0].message.content if response.choices else ""
        return str(content or "").strip()
