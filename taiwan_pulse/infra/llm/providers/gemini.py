"""Gemini Provider — Google Gemini API."""

import logging
from typing import Any

from taiwan_pulse.domain.podcast import GroundingSource
from taiwan_pulse.infra.llm.base import BaseLLMProvider, LLMResponse
from taiwan_pulse.infra.llm.factory import register_provider

logger = logging.getLogger(__name__)


class GeminiLLMProvider(BaseLLMProvider):
    """Google Gemini API Provider."""

    def __init__(self) -> None:
        from google import genai

        from taiwan_pulse.domain.config import get_config

        config = get_config()
        api_key = config.secrets.gemini_api_key
        self._client = genai.Client(api_key=api_key)
        self._default_model = config.llm.gemini_model
        self._search_model = config.llm.gemini_search_model

    @property
    def provider_name(self) -> str:
        return "gemini"

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        service: str | None = None,
    ) -> LLMResponse:
        from google.genai import types

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )
        if system:
            config.system_instruction = system

        response = await self._client.aio.models.generate_content(
            model=self._default_model,
            contents=prompt,
            config=config,
        )
        return self._to_response(response, self._default_model, service)

    async def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        *,
        system: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        service: str | None = None,
    ) -> LLMResponse:
        from google.genai import types

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
            response_mime_type="application/json",
            response_json_schema=schema,
        )
        if system:
            config.system_instruction = system

        response = await self._client.aio.models.generate_content(
            model=self._default_model,
            contents=prompt,
            config=config,
        )
        return self._to_response(response, self._default_model, service)

    async def generate_grounded(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float = 0.3,
        service: str | None = None,
    ) -> LLMResponse:
        from google.genai import types

        # tools 與 response_mime_type 不可併用 (API 400), 格式只能寫在 prompt
        config = types.GenerateContentConfig(
            temperature=temperature,
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )
        if system:
            config.system_instruction = system

        response = await self._client.aio.models.generate_content(
            model=self._search_model,
            contents=prompt,
            config=config,
        )
        return self._to_response(response, self._search_model, service, with_sources=True)

    async def generate_with_audio(
        self,
        prompt: str,
        audio: bytes,
        *,
        mime_type: str = "audio/mp3",
        schema: dict[str, Any] | None = None,
        system: str | None = None,
        service: str | None = None,
    ) -> LLMResponse:
        from google.genai import types

        config = types.GenerateContentConfig()
        if schema:
            config.response_mime_type = "application/json"
            config.response_json_schema = schema
        if system:
            config.system_instruction = system

        contents = [
            types.Part.from_bytes(data=audio, mime_type=mime_type),
            prompt,
        ]
        response = await self._client.aio.models.generate_content(
            model=self._search_model,
            contents=contents,
            config=config,
        )
        return self._to_response(response, self._search_model, service)

    def _to_response(
        self,
        response: Any,
        model: str,
        service: str | None,
        *,
        with_sources: bool = False,
    ) -> LLMResponse:
        usage = response.usage_metadata
        resp = LLMResponse(
            content=response.text or "",
            model=model,
            tokens_in=(usage.prompt_token_count or 0) if usage else 0,
            tokens_out=(usage.candidates_token_count or 0) if usage else 0,
            provider=self.provider_name,
            sources=_extract_sources(response) if with_sources else [],
        )
        self._record_usage(resp, service)
        return resp


def _extract_sources(response: Any) -> list[GroundingSource]:
    """grounding_metadata.grounding_chunks → GroundingSource 列表."""
    sources: list[GroundingSource] = []
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return sources

    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web and getattr(web, "uri", None):
            sources.append(GroundingSource(title=web.title or "", uri=web.uri))
    return sources


# 工廠自動註冊
register_provider("gemini", GeminiLLMProvider)
