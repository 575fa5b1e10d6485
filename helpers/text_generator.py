# helpers/text_generator.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx
from openai import AsyncOpenAI, OpenAIError

from helpers.errors import AIUnavailable, GenerationFailed
from helpers.settings import Settings

logger = logging.getLogger("ai")

GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str: ...


class OpenAITextGenerator:
    def __init__(self, api_key: str, model: str = "gpt-4o-mini", client: Optional[AsyncOpenAI] = None):
        self.model = model
        self._client = client or AsyncOpenAI(api_key=api_key)

    async def generate(self, prompt: str) -> str:
        try:
            resp = await self._client.chat.completions.create(
                model=self.model,
                temperature=0.4,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as e:
            logger.error("openai request failed: %s", e)
            raise GenerationFailed("OpenAI request failed") from e

        choices = getattr(resp, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise GenerationFailed("Failed to extract text from OpenAI response.")
        return content


class GeminiTextGenerator:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash-latest",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client = client

    @staticmethod
    def _extract_text(result: Dict[str, Any]) -> Optional[str]:
        candidates = result.get("candidates") or []
        if not candidates:
            return None
        parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
        return (parts[0] or {}).get("text") if parts else None

    async def generate(self, prompt: str) -> str:
        url = f"{GEMINI_BASE}/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            if self._client is not None:
                r = await self._client.post(url, params={"key": self.api_key}, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error("gemini transport error: %s", e)
            raise GenerationFailed("Gemini API request failed") from e

        if not r.is_success:
            logger.error("gemini api error status=%s body=%s", r.status_code, r.text[:300])
            raise GenerationFailed("Gemini API request failed")
        try:
            text = self._extract_text(r.json())
        except ValueError as e:
            raise GenerationFailed("Gemini API returned malformed JSON") from e
        if not text:
            raise GenerationFailed("Failed to extract text from Gemini API response.")
        return text


def build_text_generator(settings: Settings) -> TextGenerator:
    provider = settings.resolved_text_provider
    if provider == "openai" and settings.openai_api_key:
        return OpenAITextGenerator(settings.openai_api_key, settings.openai_model)
    if provider == "gemini" and settings.gemini_api_key:
        return GeminiTextGenerator(settings.gemini_api_key, settings.gemini_model, settings.http_timeout_seconds)
    raise AIUnavailable()
