"""CNN Fear & Greed Index 直接查詢 — dataviz JSON 端點.

Usage:
    index = await fetch_cnn_index(fetcher)
"""

import logging
from datetime import UTC, datetime
from typing import Any

from taiwan_pulse.domain.market import FearAndGreedIndex

from .fetcher import PageFetcher

logger = logging.getLogger(__name__)

CNN_FEAR_GREED_URL = "https://production.dataviz.cnn.io/index/fearandgreed/graphdata"


def normalize_rating(rating: str) -> str:
    """評等轉為標題大小寫, 例: extreme fear → Extreme Fear."""
    return " ".join(word.capitalize() for word in rating.split())


def clamp_score(value: Any) -> float | None:
    """數值化並限制在 [0, 100]. 無法轉換回傳 None."""
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if score != score:  # NaN
        return None
    return max(0.0, min(100.0, score))


def parse_cnn_payload(data: Any) -> FearAndGreedIndex | None:
    """graphdata JSON → FearAndGreedIndex.

    {"fear_and_greed": {"score": 62.3, "rating": "greed", "timestamp": "2024-..."}, ...}
    """
    if not isinstance(data, dict):
        return None
    block = data.get("fear_and_greed")
    if not isinstance(block, dict):
        return None

    score = clamp_score(block.get("score"))
    rating = block.get("rating")
    if score is None or not isinstance(rating, str) or not rating.strip():
        return None

    timestamp = block.get("timestamp")
    if not isinstance(timestamp, str) or not timestamp:
        timestamp = datetime.now(UTC).isoformat()

    return FearAndGreedIndex(score=round(score, 1), rating=normalize_rating(rating), timestamp=timestamp)


async def fetch_cnn_index(
    fetcher: PageFetcher,
    url: str = CNN_FEAR_GREED_URL,
) -> FearAndGreedIndex | None:
    """CNN 端點查詢. 網路失敗或格式不符回傳 None."""
    data = await fetcher.fetch_json(url)
    index = parse_cnn_payload(data)
    if index is None and data is not None:
        logger.warning("Unexpected CNN Fear & Greed payload shape")
    return index
