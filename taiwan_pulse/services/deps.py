"""基於 FastAPI Depends 的 DI — 服務共用依賴工廠.

每個 capability 在程序內只建立一次 (lru_cache), 以參考傳入各元件.
GEMINI_API_KEY 未設定時 LLM 為 NullLLMProvider, 各元件自行改走 fallback.

Usage:
    from taiwan_pulse.services.deps import get_ptt_aggregator

    @router.get("/ptt-sentiment")
    async def ptt_sentiment(aggregator: PTTAggregator = Depends(get_ptt_aggregator)):
        ...
"""

from functools import lru_cache

from taiwan_pulse.domain.config import get_config
from taiwan_pulse.infra.crawlers.fetcher import PageFetcher
from taiwan_pulse.infra.llm.base import BaseLLMProvider
from taiwan_pulse.infra.llm.factory import LLMFactory
from taiwan_pulse.services.forum.aggregator import PTTAggregator
from taiwan_pulse.services.market.fear_greed import FearGreedRetriever
from taiwan_pulse.services.podcast.analyzer import PodcastAnalyzer
from taiwan_pulse.services.podcast.episodes import EpisodeResolver
from taiwan_pulse.services.sentiment.classifier import SentimentClassifier


@lru_cache
def get_page_fetcher() -> PageFetcher:
    """共用 httpx.AsyncClient (單例, lifespan 結束時關閉)."""
    return PageFetcher(timeout=get_config().ptt.request_timeout)


def get_fast_llm() -> BaseLLMProvider:
    return LLMFactory.get_provider("fast")


def get_reasoning_llm() -> BaseLLMProvider:
    return LLMFactory.get_provider("reasoning")


@lru_cache
def get_sentiment_classifier() -> SentimentClassifier:
    return SentimentClassifier(get_fast_llm(), get_reasoning_llm())


@lru_cache
def get_ptt_aggregator() -> PTTAggregator:
    return PTTAggregator(get_page_fetcher(), get_sentiment_classifier(), get_config().ptt)


@lru_cache
def get_episode_resolver() -> EpisodeResolver:
    return EpisodeResolver(get_page_fetcher(), get_reasoning_llm(), get_config().podcast)


@lru_cache
def get_podcast_analyzer() -> PodcastAnalyzer:
    return PodcastAnalyzer(get_reasoning_llm())


@lru_cache
def get_fear_greed_retriever() -> FearGreedRetriever:
    return FearGreedRetriever(get_page_fetcher(), get_reasoning_llm(), get_config().market)


async def close_shared_clients() -> None:
    """shutdown 時關閉共用 HTTP client."""
    if get_page_fetcher.cache_info().currsize:
        await get_page_fetcher().aclose()
        get_page_fetcher.cache_clear()
