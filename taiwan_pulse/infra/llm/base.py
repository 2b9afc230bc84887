"""LLM Provider 介面 — 所有 provider 必須實作的契約."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel

from taiwan_pulse.domain.errors import LLMUnavailableError
from taiwan_pulse.domain.podcast import GroundingSource

_logger = logging.getLogger(__name__)


class LLMResponse(BaseModel):
    """LLM 回應標準格式."""

    content: str
    model: str
    tokens_in: int = 0
    tokens_out: int = 0
    provider: str = ""
    sources: list[GroundingSource] = []


class BaseLLMProvider(ABC):
    """LLM Provider 抽象類別.

    Gemini 以及 API Key 缺漏時的 NullLLMProvider 皆實作此介面.
    """

    def _record_usage(self, response: LLMResponse, service: Optional[str]) -> None:
        """記錄 LLM 使用量 (所有 provider 共用)."""
        if response.tokens_in == 0 and response.tokens_out == 0:
            return
        try:
            from taiwan_pulse.infra.observability.metrics import record_llm_usage

            record_llm_usage(
                service=service or "unknown",
                tokens_in=response.tokens_in,
                tokens_out=response.tokens_out,
                model=response.model,
            )
        except Exception:
            _logger.debug("LLM usage recording failed", exc_info=True)

    @property
    def available(self) -> bool:
        """是否可實際呼叫 LLM."""
        return True

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2048,
        service: Optional[str] = None,
    ) -> LLMResponse:
        """文字生成."""
        ...

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        schema: dict[str, Any],
        *,
        system: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        service: Optional[str] = None,
    ) -> LLMResponse:
        """結構化 JSON 輸出 (provider 端強制 schema).

        Returns:
            原始回應. 呼叫端透過 infra.llm.parsing 解析, 不在此層丟出解析錯誤.
        """
        ...

    @abstractmethod
    async def generate_grounded(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        temperature: float = 0.3,
        service: Optional[str] = None,
    ) -> LLMResponse:
        """搭配網路搜尋 (grounding) 的生成.

        搜尋模式下無法強制 schema, 格式契約必須完全寫在 prompt 中.
        引用來源放在 LLMResponse.sources.
        """
        ...

    @abstractmethod
    async def generate_with_audio(
        self,
        prompt: str,
        audio: bytes,
        *,
        mime_type: str = "audio/mp3",
        schema: dict[str, Any] | None = None,
        system: Optional[str] = None,
        service: Optional[str] = None,
    ) -> LLMResponse:
        """音訊 + 文字的多模態生成."""
        ...

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider 識別字 (日誌/統計用)."""
        ...


class NullLLMProvider(BaseLLMProvider):
    """API Key 未設定時的 provider.

    available == False. 呼叫端應先檢查 available 並改走 fallback;
    直接呼叫則一律丟出 LLMUnavailableError.
    """

    @property
    def available(self) -> bool:
        return False

    @property
    def provider_name(self) -> str:
        return "none"

    async def generate(self, prompt: str, **kwargs: Any) -> LLMResponse:
        raise LLMUnavailableError("LLM API key not configured")

    async def generate_json(self, prompt: str, schema: dict[str, Any], **kwargs: Any) -> LLMResponse:
        raise LLMUnavailableError("LLM API key not configured")

    async def generate_grounded(self, prompt: str, **kwargs: Any) -> LLMResponse:
        raise LLMUnavailableError("LLM API key not configured")

    async def generate_with_audio(self, prompt: str, audio: bytes, **kwargs: Any) -> LLMResponse:
        raise LLMUnavailableError("LLM API key not configured")
