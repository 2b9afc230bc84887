"""LLM Factory — 依 Tier 路由 Provider.

Usage:
    from taiwan_pulse.infra.llm import LLMFactory

    provider = LLMFactory.get_provider("fast")       # → PTT 輕量情緒判斷
    provider = LLMFactory.get_provider("reasoning")  # → 深度分析 / Podcast / 搜尋

GEMINI_API_KEY 未設定時回傳 NullLLMProvider, 程序不會因此中止.
"""

import logging
from functools import lru_cache

from taiwan_pulse.domain.config import get_config

from .base import BaseLLMProvider, NullLLMProvider

logger = logging.getLogger(__name__)

# Provider 類型 → 類別 (lazy import 避免循環引用)
_PROVIDER_REGISTRY: dict[str, type[BaseLLMProvider]] = {}


def register_provider(name: str, cls: type[BaseLLMProvider]) -> None:
    """執行期註冊 provider.

    各 provider 模組 import 時自動註冊:
        register_provider("gemini", GeminiLLMProvider)
    """
    _PROVIDER_REGISTRY[name] = cls
    logger.debug("Registered LLM provider: %s → %s", name, cls.__name__)


class LLMFactory:
    """Tier → Provider 路由工廠."""

    @staticmethod
    @lru_cache
    def get_provider(tier: str) -> BaseLLMProvider:
        """tier (fast|reasoning) → provider 實體.

        從設定讀取 LLM_TIER_{tier}_PROVIDER 並建立對應 provider.
        """
        config = get_config()
        tier_lower = tier.lower()

        provider_type = {
            "fast": config.llm.tier_fast_provider,
            "reasoning": config.llm.tier_reasoning_provider,
        }.get(tier_lower)

        if not provider_type:
            raise ValueError(f"Unknown LLM tier: {tier}")

        if not config.has_llm_key:
            logger.warning("No GEMINI_API_KEY found, LLM tier=%s disabled (fallbacks only)", tier)
            return NullLLMProvider()

        # Lazy import: provider 模組尚未載入時嘗試載入
        if provider_type not in _PROVIDER_REGISTRY:
            _try_import_provider(provider_type)

        provider_cls = _PROVIDER_REGISTRY.get(provider_type)
        if not provider_cls:
            raise ValueError(
                f"LLM provider '{provider_type}' not registered. Available: {list(_PROVIDER_REGISTRY.keys())}"
            )

        logger.info("LLM tier=%s → provider=%s", tier, provider_type)
        return provider_cls()


def _try_import_provider(provider_type: str) -> None:
    """Provider 模組 lazy import."""
    import_map = {
        "gemini": "taiwan_pulse.infra.llm.providers.gemini",
    }
    module_path = import_map.get(provider_type)
    if module_path:
        try:
            import importlib

            importlib.import_module(module_path)
        except ImportError as e:
            logger.warning("Failed to import %s: %s", module_path, e)
