"""Page Fetcher — URL → 內文文字, 失敗時回傳空字串.

PTT 的 18 禁看板 (含部分股票相關板) 沒有 over18 cookie 會被導向年齡確認頁,
看起來像機器人的 User-Agent 也會被擋, 因此必須帶桌面瀏覽器 header.

Usage:
    fetcher = PageFetcher()
    html = await fetcher.fetch("https://www.ptt.cc/bbs/Stock/index.html")
    if not html:
        ...  # 無法取得, 呼叫端自行 fallback
"""

import logging
from typing import Any
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
}

# 年齡確認 cookie
PTT_COOKIE_HEADER = {"Cookie": "over18=1"}
PTT_HOST_SUFFIX = "ptt.cc"


def _is_ptt(url: str) -> bool:
    host = urlsplit(url).hostname or ""
    return host == PTT_HOST_SUFFIX or host.endswith("." + PTT_HOST_SUFFIX)


class PageFetcher:
    """非同步頁面抓取器.

    網路錯誤、逾時、非 2xx、httpx 無法解析的 URL 一律記錄後回傳 "" (fetch) 或 None (fetch_json).
    此層不做 retry.

    Args:
        timeout: 單一 request 逾時秒數
        client: 測試時注入 (httpx.MockTransport)
    """

    def __init__(self, timeout: float = 10.0, client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient(
            headers=BROWSER_HEADERS,
            timeout=timeout,
            follow_redirects=True,
        )

    @staticmethod
    def _headers_for(url: str) -> dict[str, str]:
        if _is_ptt(url):
            return {**BROWSER_HEADERS, **PTT_COOKIE_HEADER}
        return BROWSER_HEADERS

    async def fetch(self, url: str) -> str:
        """URL → 內文文字. 失敗時回傳 ""."""
        try:
            resp = await self._client.get(url, headers=self._headers_for(url))
            resp.raise_for_status()
            return resp.text
        except httpx.HTTPStatusError as e:
            logger.warning("Fetch %s failed: HTTP %d", url, e.response.status_code)
        except httpx.HTTPError as e:
            logger.warning("Fetch %s failed: %s", url, e)
        except httpx.InvalidURL as e:
            logger.warning("Fetch %r rejected: %s", url, e)
        return ""

    async def fetch_json(self, url: str, params: dict[str, Any] | None = None) -> Any | None:
        """查詢 JSON 端點. 網路或解析失敗時回傳 None."""
        try:
            resp = await self._client.get(url, params=params, headers=self._headers_for(url))
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning("Fetch JSON %s failed: HTTP %d", url, e.response.status_code)
        except httpx.HTTPError as e:
            logger.warning("Fetch JSON %s failed: %s", url, e)
        except httpx.InvalidURL as e:
            logger.warning("Fetch JSON %r rejected: %s", url, e)
        except ValueError as e:
            logger.warning("Fetch JSON %s returned invalid JSON: %s", url, e)
        return None

    async def aclose(self) -> None:
        await self._client.aclose()
