"""taiwan-pulse 領域模型 — 服務之間資料契約的 Single Source of Truth.

Usage:
    from taiwan_pulse.domain import ForumPost, Sentiment
    from taiwan_pulse.domain.config import AppConfig
"""

# --- Types ---
from .types import IsoDate, Score, SentimentLabel, StockId, Ticker

# --- Enums ---
from .enums import PostCategory, ResultSource, Sentiment, normalize_sentiment

# --- Forum ---
from .forum import (
    ArticleAnalysis,
    ArticleReport,
    ExtractedArticle,
    ForumPost,
    ListingEntry,
    Opinion,
    SentimentResult,
)

# --- Podcast ---
from .podcast import (
    CompanySentiment,
    Episode,
    GroundingSource,
    PodcastAnalysis,
    PodcastAnalysisResponse,
)

# --- Market ---
from .market import FearAndGreedIndex

# --- Health ---
from .health import DEPENDENCY_NAMES, DependencyHealth, DependencyName, HealthStatus

__all__ = [
    # Types
    "IsoDate",
    "Score",
    "SentimentLabel",
    "StockId",
    "Ticker",
    # Enums
    "PostCategory",
    "ResultSource",
    "Sentiment",
    "normalize_sentiment",
    # Forum
    "ArticleAnalysis",
    "ArticleReport",
    "ExtractedArticle",
    "ForumPost",
    "ListingEntry",
    "Opinion",
    "SentimentResult",
    # Podcast
    "CompanySentiment",
    "Episode",
    "GroundingSource",
    "PodcastAnalysis",
    "PodcastAnalysisResponse",
    # Market
    "FearAndGreedIndex",
    # Health
    "DEPENDENCY_NAMES",
    "DependencyHealth",
    "DependencyName",
    "HealthStatus",
]
