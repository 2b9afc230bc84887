"""PTT Aggregator — 列表頁分頁巡覽 → 篩選 → 內頁擷取 → 情緒分析.

Data Flow:
  index.html → parse_listing → categorize (Target / Other / 排除)
             → 每頁前 N 篇 → fetch 內頁 → extract_article → classify → ForumPost
             → ‹ 上頁 → ... (最多 max_pages 頁)

刻意循序執行: 下一頁 URL 要從目前頁面取得, 且 LLM 呼叫量 / PTT request 頻率
以 max_pages × max_posts_per_page 為上限.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from taiwan_pulse.domain.config import PTTConfig
from taiwan_pulse.domain.enums import ResultSource, Sentiment
from taiwan_pulse.domain.errors import InvalidURLError, PageFetchError
from taiwan_pulse.domain.forum import ArticleReport, ForumPost, ListingEntry, SentimentResult
from taiwan_pulse.infra.crawlers.fetcher import PageFetcher
from taiwan_pulse.infra.crawlers.ptt import (
    extract_article,
    extract_stock_id,
    find_previous_page,
    parse_listing,
)
from taiwan_pulse.services.sentiment.classifier import SentimentClassifier

logger = logging.getLogger(__name__)

REASON_UNREADABLE = "無法讀取內容"


@dataclass
class CrawlState:
    """單次巡覽狀態 (執行結束即丟棄)."""

    current_url: str | None
    pages_visited: int = 0
    posts: list[ForumPost] = field(default_factory=list)
    seen_links: set[str] = field(default_factory=set)


class PTTAggregator:
    """PTT 股票版情緒彙整.

    Args:
        fetcher: 頁面抓取器
        classifier: 情緒分類器
        config: 分頁深度 / 每頁上限 / 門檻等 policy 參數
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        classifier: SentimentClassifier,
        config: PTTConfig | None = None,
    ):
        self._fetcher = fetcher
        self._classifier = classifier
        self._config = config or PTTConfig()

    async def collect(self) -> list[ForumPost]:
        """巡覽最多 max_pages 頁, 回傳分析完成的貼文 (列表頁順序)."""
        cfg = self._config
        state = CrawlState(current_url=cfg.board_index_url)

        while state.current_url and state.pages_visited < cfg.max_pages:
            html = await self._fetcher.fetch(state.current_url)
            if not html:
                logger.warning("PTT listing unavailable: %s", state.current_url)
                break
            state.pages_visited += 1

            candidates = self._select_candidates(html)
            logger.info(
                "PTT page %d (%s): %d candidates",
                state.pages_visited,
                state.current_url,
                len(candidates),
            )

            for entry in candidates:
                if entry.link in state.seen_links:
                    continue
                state.seen_links.add(entry.link)
                state.posts.append(await self._analyze_entry(entry))

            state.current_url = find_previous_page(html, base_url=cfg.base_url)

        logger.info("PTT collect done: %d pages, %d posts", state.pages_visited, len(state.posts))
        return state.posts

    def _select_candidates(self, html: str) -> list[ListingEntry]:
        """只保留有分類的列, 每頁前 N 篇."""
        cfg = self._config
        entries = parse_listing(
            html,
            base_url=cfg.base_url,
            target_marker=cfg.target_marker,
            popularity_threshold=cfg.popularity_threshold,
        )
        categorized = [e for e in entries if e.category is not None]
        return categorized[: cfg.max_posts_per_page]

    async def _analyze_entry(self, entry: ListingEntry) -> ForumPost:
        detail_html = await self._fetcher.fetch(entry.link)
        if detail_html:
            article = extract_article(detail_html)
            result = await self._classifier.classify(entry.title, article.full_text)
        else:
            result = SentimentResult(
                sentiment=Sentiment.NEUTRAL,
                reason=REASON_UNREADABLE,
                source=ResultSource.FALLBACK,
            )

        return ForumPost(
            title=entry.title,
            author=entry.author,
            date=entry.date,
            link=entry.link,
            push_count=entry.push_count_text,
            stock_id=extract_stock_id(entry.title),
            sentiment=result.sentiment,
            reason=result.reason,
            category=entry.category,
        )

    def validate_url(self, url: Any) -> str:
        """PTT 網址檢查 (在任何 I/O 之前).

        Raises:
            InvalidURLError: PTT 網址以外
        """
        if not url or not isinstance(url, str) or self._config.domain_marker not in url:
            raise InvalidURLError(f"Not a PTT url: {url!r}")
        return url

    async def analyze_url(self, url: Any) -> ArticleReport:
        """單篇文章深度分析.

        Raises:
            InvalidURLError: PTT 網址以外 (不進行任何 request)
            PageFetchError: 頁面抓取失敗
        """
        url = self.validate_url(url)

        html = await self._fetcher.fetch(url)
        if not html:
            raise PageFetchError(f"Failed to fetch {url}")

        article = extract_article(html)
        analysis = await self._classifier.classify_deep(article.title, article.full_text)
        return ArticleReport(title=article.title, **analysis.model_dump())
