"""股癌 Podcast unit tests — 集數解析 + 重點筆記分析."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from taiwan_pulse.domain.config import PodcastConfig
from taiwan_pulse.domain.enums import Sentiment
from taiwan_pulse.domain.errors import LLMUnavailableError, PodcastAnalysisError
from taiwan_pulse.domain.podcast import GroundingSource, PodcastAnalysis
from taiwan_pulse.infra.llm.base import LLMResponse, NullLLMProvider
from taiwan_pulse.services.podcast.analyzer import (
    PODCAST_ANALYSIS_SCHEMA,
    PodcastAnalyzer,
    summarize_companies,
)
from taiwan_pulse.services.podcast.episodes import MOCK_EPISODES, EpisodeResolver

FEED_URL = "https://feed.test/gooaye.xml"


def _feed_xml(count: int) -> str:
    items = "".join(
        f"<item><title>EP{500 + count - i} | 第 {i} 集</title>"
        f"<pubDate>Wed, 03 Jan 2024 12:00:00 +0800</pubDate></item>"
        for i in range(count)
    )
    return f"<rss><channel>{items}</channel></rss>"


def _fetcher(*, lookup=None, feed="") -> MagicMock:
    fetcher = MagicMock()
    fetcher.fetch_json = AsyncMock(return_value=lookup)
    fetcher.fetch = AsyncMock(return_value=feed)
    return fetcher


def _llm(content: str = "", *, error: Exception | None = None, sources=None) -> MagicMock:
    llm = MagicMock()
    llm.available = True
    response = LLMResponse(content=content, model="test", provider="test", sources=sources or [])
    for method in ("generate_grounded", "generate_with_audio"):
        mock = AsyncMock(side_effect=error) if error else AsyncMock(return_value=response)
        setattr(llm, method, mock)
    return llm


LOOKUP_OK = {"results": [{"feedUrl": FEED_URL}]}


# ─── EpisodeResolver ─────────────────────────────────────────


class TestEpisodeResolver:
    @pytest.mark.asyncio
    async def test_from_feed(self):
        resolver = EpisodeResolver(_fetcher(lookup=LOOKUP_OK, feed=_feed_xml(3)), config=PodcastConfig())
        episodes = await resolver.resolve_episodes()
        assert [e.episode_number for e in episodes] == ["EP503", "EP502", "EP501"]

    @pytest.mark.asyncio
    async def test_capped_at_ten(self):
        resolver = EpisodeResolver(_fetcher(lookup=LOOKUP_OK, feed=_feed_xml(25)), config=PodcastConfig())
        assert len(await resolver.resolve_episodes()) == 10

    @pytest.mark.asyncio
    async def test_all_fail_returns_mock(self):
        resolver = EpisodeResolver(_fetcher(lookup=None), NullLLMProvider(), PodcastConfig())
        episodes = await resolver.resolve_episodes()
        assert len(episodes) == len(MOCK_EPISODES) == 2
        assert all("範例" in e.title for e in episodes)

    @pytest.mark.asyncio
    async def test_invalid_xml_falls_back(self):
        resolver = EpisodeResolver(_fetcher(lookup=LOOKUP_OK, feed="<rss><channel>"), config=PodcastConfig())
        episodes = await resolver.resolve_episodes()
        assert episodes
        assert episodes[0].id == MOCK_EPISODES[0].id

    @pytest.mark.asyncio
    async def test_every_strategy_tried(self):
        fetcher = _fetcher(lookup=LOOKUP_OK, feed="")
        config = PodcastConfig(proxy_prefixes="https://p1/?url=,https://p2/?", llm_episode_fallback=False)
        await EpisodeResolver(fetcher, config=config).resolve_episodes()
        assert fetcher.fetch.await_count == 3

    @pytest.mark.asyncio
    async def test_search_fallback(self):
        llm = _llm(
            '```json\n[{"id": "EP531", "episodeNumber": "EP531", "title": "EP531 | 標題", "date": "2024-01-01"},'
            ' {"title": "缺欄位"}]\n```'
        )
        resolver = EpisodeResolver(_fetcher(lookup=None), llm, PodcastConfig())
        episodes = await resolver.resolve_episodes()

        assert [e.id for e in episodes] == ["EP531"]
        assert llm.generate_grounded.call_args.kwargs["service"] == "podcast_episodes"

    @pytest.mark.asyncio
    async def test_search_fallback_disabled(self):
        llm = _llm('[{"episodeNumber": "EP1", "title": "t", "date": "2024-01-01"}]')
        resolver = EpisodeResolver(_fetcher(lookup=None), llm, PodcastConfig(llm_episode_fallback=False))
        episodes = await resolver.resolve_episodes()

        assert len(episodes) == 2
        llm.generate_grounded.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_error_returns_mock(self):
        resolver = EpisodeResolver(_fetcher(lookup=None), _llm(error=RuntimeError("x")), PodcastConfig())
        assert len(await resolver.resolve_episodes()) == 2


# ─── PodcastAnalyzer ─────────────────────────────────────────

ANALYSIS_JSON = """以下是分析結果：
```json
{
  "episodeTitle": "EP531",
  "summaryPoints": ["AI 需求持續", "  ", "降息預期"],
  "companies": [
    {"name": "台積電", "ticker": "2330", "sentiment": "BULLISH", "reason": "先進製程"},
    {"name": "Intel", "ticker": "INTC", "sentiment": "BEARISH", "reason": "落後"},
    {"name": "Apple", "sentiment": "NEUTRAL", "reason": "觀望"}
  ]
}
```"""


class TestPodcastAnalyzer:
    @pytest.mark.asyncio
    async def test_search_analysis(self):
        sources = [GroundingSource(title="SoundOn", uri="https://soundon.fm/ep531")]
        llm = _llm(ANALYSIS_JSON, sources=sources)

        result = await PodcastAnalyzer(llm).analyze("EP531")

        assert result.data.episode_title == "EP531"
        assert result.data.summary_points == ["AI 需求持續", "降息預期"]
        assert [c.sentiment for c in result.data.companies] == [
            Sentiment.BULLISH,
            Sentiment.BEARISH,
            Sentiment.NEUTRAL,
        ]
        assert result.sources[0].uri == "https://soundon.fm/ep531"
        assert "EP531" in llm.generate_grounded.call_args.args[0]

    @pytest.mark.asyncio
    async def test_bad_company_entry_keeps_analysis(self):
        payload = (
            '{"episodeTitle": "EP531", "summaryPoints": ["AI 需求"], "companies": ['
            '{"name": "台積電", "ticker": 2330, "sentiment": "BULLISH", "reason": "AI"},'
            '{"ticker": "INTC", "sentiment": "BEARISH"}]}'
        )
        result = await PodcastAnalyzer(_llm(payload)).analyze("EP531")

        assert result.data is not None
        assert result.data.summary_points == ["AI 需求"]
        assert len(result.data.companies) == 1
        assert result.data.companies[0].ticker == "2330"
        assert summarize_companies(result.data)["total"] == 1

    @pytest.mark.asyncio
    async def test_unparsable_keeps_sources(self):
        sources = [GroundingSource(uri="https://example.com")]
        result = await PodcastAnalyzer(_llm("抱歉, 找不到這一集", sources=sources)).analyze("EP999")
        assert result.data is None
        assert len(result.sources) == 1

    @pytest.mark.asyncio
    async def test_audio_analysis(self):
        llm = _llm('{"episodeTitle": "錄音", "summaryPoints": ["a"], "companies": []}')
        result = await PodcastAnalyzer(llm).analyze_audio(b"ID3...", "audio/mpeg")

        assert result.data.episode_title == "錄音"
        assert result.sources == []
        kwargs = llm.generate_with_audio.call_args.kwargs
        assert kwargs["mime_type"] == "audio/mpeg"
        assert kwargs["schema"] is PODCAST_ANALYSIS_SCHEMA

    @pytest.mark.asyncio
    async def test_no_llm_raises(self):
        with pytest.raises(LLMUnavailableError):
            await PodcastAnalyzer(NullLLMProvider()).analyze("EP1")

    @pytest.mark.asyncio
    async def test_llm_error_wrapped(self):
        with pytest.raises(PodcastAnalysisError):
            await PodcastAnalyzer(_llm(error=RuntimeError("quota"))).analyze("EP1")
        with pytest.raises(PodcastAnalysisError):
            await PodcastAnalyzer(_llm(error=RuntimeError("quota"))).analyze_audio(b"x")


class TestSummarizeCompanies:
    def test_counts(self):
        analysis = PodcastAnalysis.model_validate(
            {
                "episodeTitle": "EP1",
                "companies": [
                    {"name": "A", "sentiment": "BULLISH"},
                    {"name": "B", "sentiment": "BULLISH"},
                    {"name": "C", "sentiment": "BEARISH"},
                ],
            }
        )
        assert summarize_companies(analysis) == {"total": 3, "Bullish": 2, "Bearish": 1, "Neutral": 0}
