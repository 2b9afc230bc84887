"""列舉定義 — 全系統共用的常數值。

多空情緒只有一套列舉 (Sentiment)。外部來源 (LLM 回應、舊版 BULLISH 大寫格式、
中文標籤) 一律透過 normalize_sentiment() 在邊界轉換。
"""

from enum import StrEnum
from typing import Any


class Sentiment(StrEnum):
    """多空情緒"""

    BULLISH = "Bullish"  # 看多
    BEARISH = "Bearish"  # 看空
    NEUTRAL = "Neutral"  # 中立/觀望


class PostCategory(StrEnum):
    """PTT 貼文分類"""

    TARGET = "Target"  # 標題含 [標的]
    OTHER = "Other"  # 高推文數熱門文


class ResultSource(StrEnum):
    """情緒判斷來源"""

    LLM = "llm"
    KEYWORD = "keyword"
    FALLBACK = "fallback"


_SENTIMENT_ALIASES: dict[str, Sentiment] = {
    "bullish": Sentiment.BULLISH,
    "bull": Sentiment.BULLISH,
    "看多": Sentiment.BULLISH,
    "做多": Sentiment.BULLISH,
    "看好": Sentiment.BULLISH,
    "bearish": Sentiment.BEARISH,
    "bear": Sentiment.BEARISH,
    "看空": Sentiment.BEARISH,
    "做空": Sentiment.BEARISH,
    "看壞": Sentiment.BEARISH,
    "neutral": Sentiment.NEUTRAL,
    "中立": Sentiment.NEUTRAL,
    "觀望": Sentiment.NEUTRAL,
}


def normalize_sentiment(value: Any) -> Sentiment:
    """外部值 → Sentiment。無法辨識的值一律為 NEUTRAL。

    "BULLISH"、"bullish"、" Bullish "、"看多" 皆為 Sentiment.BULLISH。
    """
    if isinstance(value, Sentiment):
        return value
    if not isinstance(value, str):
        return Sentiment.NEUTRAL
    return _SENTIMENT_ALIASES.get(value.strip().lower(), Sentiment.NEUTRAL)
