"""股癌 Podcast RSS 取得 — iTunes lookup → feed URL → 多路徑抓取 → RSS 解析.

部分部署環境無法直連 feed 主機 (地區封鎖 / 防火牆), 所以 feed 依序嘗試
直連與 proxy, 第一個成功即停止.

Usage:
    feed_url = await lookup_feed_url(fetcher, "1500839292")
    xml_text = await fetch_feed(fetcher, feed_url, build_strategies(prefixes))
    episodes = parse_feed(xml_text, max_items=10)
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date
from email.utils import parsedate_to_datetime
from urllib.parse import quote

from taiwan_pulse.domain.errors import FeedUnavailableError
from taiwan_pulse.domain.podcast import Episode

from .fetcher import PageFetcher

logger = logging.getLogger(__name__)

ITUNES_LOOKUP_URL = "https://itunes.apple.com/lookup"
ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"

_EP_RE = re.compile(r"EP\s*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class FeedFetchStrategy:
    """一條 feed 抓取路徑. prefix 為空字串代表直連."""

    name: str
    prefix: str = ""

    def build_url(self, feed_url: str) -> str:
        if not self.prefix:
            return feed_url
        return self.prefix + quote(feed_url, safe="")


def build_strategies(proxy_prefixes: list[str]) -> list[FeedFetchStrategy]:
    """直連 + 設定的 proxy, 依序排列."""
    strategies = [FeedFetchStrategy(name="direct")]
    for i, prefix in enumerate(proxy_prefixes, start=1):
        strategies.append(FeedFetchStrategy(name=f"proxy{i}", prefix=prefix))
    return strategies


async def lookup_feed_url(
    fetcher: PageFetcher,
    podcast_id: str,
    *,
    lookup_url: str = ITUNES_LOOKUP_URL,
) -> str | None:
    """iTunes lookup API → RSS feed URL. 查無或失敗回傳 None."""
    data = await fetcher.fetch_json(lookup_url, params={"id": podcast_id})
    if not isinstance(data, dict):
        return None

    results = data.get("results") or []
    if not results or not isinstance(results[0], dict):
        logger.warning("iTunes lookup returned no results for id=%s", podcast_id)
        return None

    feed_url = results[0].get("feedUrl")
    return feed_url if isinstance(feed_url, str) and feed_url else None


async def fetch_feed(
    fetcher: PageFetcher,
    feed_url: str,
    strategies: list[FeedFetchStrategy],
) -> str:
    """依序嘗試每條路徑, 第一個非空回應即回傳 (其餘不再嘗試).

    Raises:
        FeedUnavailableError: 全部路徑皆失敗
    """
    for strategy in strategies:
        body = await fetcher.fetch(strategy.build_url(feed_url))
        if body and body.strip():
            logger.info("Podcast feed fetched via %s", strategy.name)
            return body
        logger.warning("Podcast feed via %s failed, trying next", strategy.name)

    raise FeedUnavailableError(f"All {len(strategies)} feed strategies failed for {feed_url}")


def _episode_number(title: str, itunes_episode: str | None, fallback_index: int) -> str:
    """集數: 標題 EP<n> → <itunes:episode> → 反向位置推算."""
    match = _EP_RE.search(title)
    if match:
        return f"EP{match.group(1)}"
    if itunes_episode and itunes_episode.strip().isdigit():
        return f"EP{int(itunes_episode.strip())}"
    return f"EP{fallback_index}"


def _normalize_date(raw: str | None, today: date) -> str:
    """RFC 822 pubDate → YYYY-MM-DD, 解析失敗用今天."""
    if raw:
        try:
            return parsedate_to_datetime(raw.strip()).date().isoformat()
        except (TypeError, ValueError, IndexError):
            pass
    return today.isoformat()


def parse_feed(xml_text: str, *, max_items: int = 10, today: date | None = None) -> list[Episode]:
    """RSS XML → Episode 列表 (feed 順序 = 新到舊), 最多 max_items 筆.

    Raises:
        ET.ParseError: XML 格式錯誤
    """
    today = today or date.today()
    root = ET.fromstring(xml_text)
    items = root.findall("./channel/item")
    total = len(items)

    episodes: list[Episode] = []
    for index, item in enumerate(items[:max_items]):
        title = (item.findtext("title") or "").strip()
        number = _episode_number(
            title,
            item.findtext(f"{{{ITUNES_NS}}}episode"),
            total - index,
        )
        guid = (item.findtext("guid") or "").strip()
        episodes.append(
            Episode(
                id=guid or number,
                title=title or number,
                date=_normalize_date(item.findtext("pubDate"), today),
                episode_number=number,
            )
        )

    return episodes
