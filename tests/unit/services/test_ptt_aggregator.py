"""PTTAggregator unit tests — 假 fetcher (URL → HTML dict) + 關鍵字 classifier."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from taiwan_pulse.domain.config import PTTConfig
from taiwan_pulse.domain.enums import PostCategory, ResultSource, Sentiment
from taiwan_pulse.domain.errors import InvalidURLError, PageFetchError
from taiwan_pulse.domain.forum import ArticleAnalysis, Opinion
from taiwan_pulse.infra.llm.base import NullLLMProvider
from taiwan_pulse.services.forum.aggregator import REASON_UNREADABLE, PTTAggregator
from taiwan_pulse.services.sentiment.classifier import SentimentClassifier

BASE = "https://www.ptt.cc"
INDEX_URL = f"{BASE}/bbs/Stock/index.html"


def _row(n: int, title: str, push: str = "") -> str:
    return (
        '<div class="r-ent">'
        f'<div class="nrec">{push}</div>'
        f'<div class="title"><a href="/bbs/Stock/M.{n}.A.html">{title}</a></div>'
        '<div class="meta"><div class="author">user</div><div class="date"> 1/02</div></div>'
        "</div>"
    )


def _listing(rows: list[str], prev: str | None) -> str:
    prev_btn = f'<a class="btn wide" href="{prev}">‹ 上頁</a>' if prev else '<a class="btn wide disabled">‹ 上頁</a>'
    return (
        '<div class="btn-group btn-group-paging">'
        '<a class="btn wide" href="/bbs/Stock/index1.html">最舊</a>'
        f"{prev_btn}"
        '<a class="btn wide disabled">下頁 ›</a>'
        "</div>" + "".join(rows)
    )


def _article(title: str, body: str) -> str:
    return (
        '<div id="main-content">'
        '<div class="article-metaline"><span class="article-meta-tag">作者</span>'
        '<span class="article-meta-value">user</span></div>'
        '<div class="article-metaline"><span class="article-meta-tag">標題</span>'
        f'<span class="article-meta-value">{title}</span></div>'
        f"{body}"
        '<div class="push"><span class="push-tag">推 </span><span class="push-content">: 買進</span></div>'
        "</div>"
    )


class FakeFetcher:
    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        return self.pages.get(url, "")


def _aggregator(pages: dict[str, str], **config) -> tuple[PTTAggregator, FakeFetcher]:
    fetcher = FakeFetcher(pages)
    classifier = SentimentClassifier(NullLLMProvider(), NullLLMProvider())
    return PTTAggregator(fetcher, classifier, PTTConfig(**config)), fetcher


class TestCollect:
    @pytest.mark.asyncio
    async def test_categorized_posts_only(self):
        pages = {
            INDEX_URL: _listing(
                [
                    _row(1, "[標的] 2330 台積電 多", "3"),
                    _row(2, "[閒聊] 盤中", "5"),
                    _row(3, "[新聞] 外資賣超", "爆"),
                ],
                prev=None,
            ),
            f"{BASE}/bbs/Stock/M.1.A.html": _article("[標的] 2330 台積電 多", "噴 飛"),
            f"{BASE}/bbs/Stock/M.3.A.html": _article("[新聞] 外資賣超", "崩 逃 賣出 做空"),
        }
        aggregator, _ = _aggregator(pages)
        posts = await aggregator.collect()

        assert [p.title for p in posts] == ["[標的] 2330 台積電 多", "[新聞] 外資賣超"]
        target, other = posts
        assert target.category == PostCategory.TARGET
        assert target.stock_id == "2330"
        assert target.push_count == "3"
        assert target.sentiment == Sentiment.BULLISH
        assert other.category == PostCategory.OTHER
        assert other.push_count == "爆"
        assert other.stock_id is None
        assert other.sentiment == Sentiment.BEARISH

    @pytest.mark.asyncio
    async def test_page_and_per_page_caps(self):
        pages = {}
        url = INDEX_URL
        for page in range(5):
            prev = f"/bbs/Stock/index{100 - page}.html"
            rows = [_row(page * 10 + i, f"[標的] {page}-{i}") for i in range(8)]
            pages[url] = _listing(rows, prev=prev)
            url = BASE + prev

        aggregator, fetcher = _aggregator(pages)
        posts = await aggregator.collect()

        listing_calls = [c for c in fetcher.calls if "index" in c]
        assert len(listing_calls) == 3
        assert len(posts) == 15

    @pytest.mark.asyncio
    async def test_configurable_caps(self):
        rows = [_row(i, f"[標的] {i}") for i in range(8)]
        pages = {INDEX_URL: _listing(rows, prev="/bbs/Stock/index99.html")}
        aggregator, _ = _aggregator(pages, max_pages=1, max_posts_per_page=2)

        posts = await aggregator.collect()
        assert len(posts) == 2

    @pytest.mark.asyncio
    async def test_stops_when_no_previous_page(self):
        pages = {INDEX_URL: _listing([_row(1, "[標的] 1")], prev=None)}
        aggregator, fetcher = _aggregator(pages)

        await aggregator.collect()
        assert [c for c in fetcher.calls if "index" in c] == [INDEX_URL]

    @pytest.mark.asyncio
    async def test_empty_listing_stops(self):
        aggregator, fetcher = _aggregator({})
        assert await aggregator.collect() == []
        assert fetcher.calls == [INDEX_URL]

    @pytest.mark.asyncio
    async def test_unreadable_detail_page(self):
        pages = {INDEX_URL: _listing([_row(1, "[標的] 2454 聯發科")], prev=None)}
        classifier = MagicMock()
        classifier.classify = AsyncMock()
        aggregator = PTTAggregator(FakeFetcher(pages), classifier, PTTConfig())

        posts = await aggregator.collect()

        assert posts[0].sentiment == Sentiment.NEUTRAL
        assert posts[0].reason == REASON_UNREADABLE
        classifier.classify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_links_across_pages(self):
        row = _row(1, "[標的] 2330")
        pages = {
            INDEX_URL: _listing([row], prev="/bbs/Stock/index99.html"),
            f"{BASE}/bbs/Stock/index99.html": _listing([row, _row(2, "[標的] 2317")], prev=None),
        }
        aggregator, _ = _aggregator(pages)

        posts = await aggregator.collect()
        assert [p.link for p in posts] == [
            f"{BASE}/bbs/Stock/M.1.A.html",
            f"{BASE}/bbs/Stock/M.2.A.html",
        ]

    @pytest.mark.asyncio
    async def test_classifier_receives_full_text(self):
        pages = {
            INDEX_URL: _listing([_row(1, "[標的] 2330")], prev=None),
            f"{BASE}/bbs/Stock/M.1.A.html": _article("[標的] 2330", "本文內容"),
        }
        classifier = MagicMock()
        classifier.classify = AsyncMock(
            return_value=MagicMock(sentiment=Sentiment.NEUTRAL, reason="r", source=ResultSource.LLM)
        )
        aggregator = PTTAggregator(FakeFetcher(pages), classifier, PTTConfig())

        await aggregator.collect()

        title, content = classifier.classify.call_args.args
        assert title == "[標的] 2330"
        assert "本文內容" in content
        assert "推文:" in content
        assert "買進" in content


class TestAnalyzeUrl:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [None, "", "https://example.com/not-ptt"])
    async def test_invalid_url_no_fetch(self, url):
        aggregator, fetcher = _aggregator({})
        with pytest.raises(InvalidURLError):
            await aggregator.analyze_url(url)
        assert fetcher.calls == []

    @pytest.mark.asyncio
    async def test_fetch_failure(self):
        aggregator, _ = _aggregator({})
        with pytest.raises(PageFetchError):
            await aggregator.analyze_url(f"{BASE}/bbs/Stock/M.1.A.html")

    @pytest.mark.asyncio
    async def test_report_merges_title(self):
        url = f"{BASE}/bbs/Stock/M.1.A.html"
        classifier = MagicMock()
        classifier.classify_deep = AsyncMock(
            return_value=ArticleAnalysis(
                sentiment=Sentiment.BULLISH,
                reason="偏多",
                opinions=[Opinion(type=Sentiment.BEARISH, content="小心")],
            )
        )
        aggregator = PTTAggregator(FakeFetcher({url: _article("[標的] 2330 多", "內文")}), classifier)

        report = await aggregator.analyze_url(url)

        assert report.title == "[標的] 2330 多"
        assert report.sentiment == Sentiment.BULLISH
        assert report.opinions[0].content == "小心"

    @pytest.mark.asyncio
    async def test_no_llm_deep_fallback(self):
        url = f"{BASE}/bbs/Stock/M.1.A.html"
        aggregator, _ = _aggregator({url: _article("[標的] 2330", "內文")})

        report = await aggregator.analyze_url(url)
        assert report.sentiment == Sentiment.NEUTRAL
        assert report.reason == "No API Key"
        assert report.opinions == []
