"""Fear & Greed Index 取得 — CNN 直接查詢 → LLM 搜尋 → 範例值.

fetch_index() 回傳 None 代表「顯示錯誤狀態」; 範例值 {50, "Neutral"} 則是合法
(但合成) 的顯示值, 兩者不可混用. 範例值 fallback 可由設定關閉.
"""

import logging
from datetime import UTC, datetime

from taiwan_pulse.domain.config import MarketConfig
from taiwan_pulse.domain.market import FearAndGreedIndex
from taiwan_pulse.infra.crawlers.fear_greed import clamp_score, fetch_cnn_index, normalize_rating
from taiwan_pulse.infra.crawlers.fetcher import PageFetcher
from taiwan_pulse.infra.llm.base import BaseLLMProvider
from taiwan_pulse.infra.llm.parsing import ParseOk, parse_json_payload

logger = logging.getLogger(__name__)

SEARCH_SYSTEM_INSTRUCTION = """You are a financial data assistant. Search specifically for the current "CNN Fear and Greed Index".

Return the CURRENT score (0-100) and the CURRENT rating description (e.g., "Extreme Fear", "Greed").
Also include the "Last updated" time if available.

IMPORTANT: Return ONLY raw JSON. No Markdown.
Format:
{
  "score": 50,
  "rating": "Neutral",
  "timestamp": "Nov 19 at 5:00 PM ET"
}
"""

SEARCH_PROMPT = "What is the current CNN Fear and Greed Index score today? Search for the latest data."


def mock_index() -> FearAndGreedIndex:
    return FearAndGreedIndex(score=50, rating="Neutral", timestamp=datetime.now(UTC).isoformat())


class FearGreedRetriever:
    """Fear & Greed Index 取得器.

    Args:
        fetcher: 頁面抓取器
        llm: 搜尋 fallback 用 LLM (None 或 available=False 則略過)
        config: 端點 URL / 範例值 fallback 開關
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        llm: BaseLLMProvider | None = None,
        config: MarketConfig | None = None,
    ):
        self._fetcher = fetcher
        self._llm = llm
        self._config = config or MarketConfig()

    async def fetch_index(self) -> FearAndGreedIndex | None:
        index = await fetch_cnn_index(self._fetcher, self._config.fear_greed_url)
        if index:
            return index

        index = await self._from_search()
        if index:
            return index

        if self._config.fear_greed_mock_fallback:
            logger.warning("Fear & Greed unavailable, using mock value")
            return mock_index()
        return None

    async def _from_search(self) -> FearAndGreedIndex | None:
        if not self._llm or not self._llm.available:
            return None

        try:
            response = await self._llm.generate_grounded(
                SEARCH_PROMPT,
                system=SEARCH_SYSTEM_INSTRUCTION,
                service="fear_greed",
            )
        except Exception as e:
            logger.warning("Fear & Greed search via LLM failed: %s", e)
            return None

        parsed = parse_json_payload(response.content, opener="{")
        if not isinstance(parsed, ParseOk):
            logger.warning("Fear & Greed search response unparsable: %s", parsed.reason)
            return None

        score = clamp_score(parsed.value.get("score"))
        rating = parsed.value.get("rating")
        if score is None or not isinstance(rating, str) or not rating.strip():
            return None

        timestamp = parsed.value.get("timestamp")
        return FearAndGreedIndex(
            score=score,
            rating=normalize_rating(rating),
            timestamp=str(timestamp) if timestamp else datetime.now(UTC).isoformat(),
        )
