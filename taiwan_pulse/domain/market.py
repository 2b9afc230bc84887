"""市場情緒指標模型。"""

from pydantic import BaseModel

from .types import Score


class FearAndGreedIndex(BaseModel):
    """CNN Fear & Greed Index."""

    score: Score
    rating: str
    timestamp: str
