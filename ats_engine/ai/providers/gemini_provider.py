from __future__ import annotations

import os
from typing import Optional

from google import genai
from google.genai import types

from ats_engine.ai.config import looks_like_placeholder
from ats_engine.ai.types import AIUnavailableError, CompletionRequest


class GeminiProvider:
    name = "gemini"

    def __init__(self, model: str, api_key: Optional[str] = None, timeout_s: float = 30.0):
        self._model = model
        key = (api_key or os.getenv("GEMINI_API_KEY") or "").strip()
        if not key or looks_like_placeholder(key):
            raise AIUnavailableError("GEMINI_API_KEY is missing", code="llm_disabled")
        # HttpOptions.timeout is in milliseconds.
        self._client = genai.Client(
            api_key=key,
            http_options=types.HttpOptions(timeout=int(timeout_s * 1000)),
        )

    async def complete(self, request: CompletionRequest) -> str:
        response = await self._client.aio.models.generate_content(
            model=request.model or self._model,
            contents=request.prompt,
            config=types.GenerateContentConfig(
                system_instruction=request.system or None,
                max_output_tokens=request.max_tokens,
                temperature=request.temperature,
            ),
        )
        return (response.text or "").strip()
