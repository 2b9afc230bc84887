"""PTT 股票版 HTML 解析 — 列表頁 + 文章內頁.

網路請求由 PageFetcher 負責, 此模組只處理已取得的 HTML (純函式, 便於以 mock HTML 測試).

列表頁結構 (https://www.ptt.cc/bbs/Stock/index.html):
    div.r-ent
      div.nrec        推文數 ("爆", "X1", "15", "")
      div.title a     標題 + 連結 (已刪除文章沒有 <a>)
      div.meta div.author / div.date
    div.btn-group-paging a  [最舊, ‹ 上頁, 下頁 ›, 最新]

文章內頁結構:
    div#main-content
      div.article-metaline        作者 / 標題 / 時間
      div.article-metaline-right  看板
      (本文)
      div.push  span.push-tag + span.push-content

Usage:
    entries = parse_listing(html)
    article = extract_article(detail_html)
    prev_url = find_previous_page(html)
"""

import logging
import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from taiwan_pulse.domain.enums import PostCategory
from taiwan_pulse.domain.forum import ExtractedArticle, ListingEntry

logger = logging.getLogger(__name__)

PTT_BASE_URL = "https://www.ptt.cc"

# 推文數 "爆" = 100 則以上
OVERFLOW_TOKEN = "爆"
OVERFLOW_VALUE = 100

DEFAULT_TARGET_MARKER = "[標的]"
DEFAULT_POPULARITY_THRESHOLD = 20

UNKNOWN_TITLE = "Unknown Title"

# 標題中第一組獨立的 4 位數字 (ASCII), 前後不得緊接其他數字
_STOCK_ID_RE = re.compile(r"(?<![0-9])[0-9]{4}(?![0-9])")
_LEADING_INT_RE = re.compile(r"^[0-9]+")


def normalize_push_count(text: str | None) -> int:
    """推文數顯示字串 → 比較用整數. 不會丟出例外.

    "爆" → 100, "15" → 15, "" / "X1" / 其他 → 0
    """
    if not text:
        return 0
    stripped = text.strip()
    if stripped == OVERFLOW_TOKEN:
        return OVERFLOW_VALUE
    match = _LEADING_INT_RE.match(stripped)
    if not match:
        return 0
    return int(match.group())


def extract_stock_id(title: str) -> str | None:
    """標題 → 4 位數股票代號. 例: "[標的] 2330 台積電明年展望" → "2330"."""
    match = _STOCK_ID_RE.search(title or "")
    return match.group() if match else None


def categorize(
    title: str,
    push_count: int,
    *,
    target_marker: str = DEFAULT_TARGET_MARKER,
    popularity_threshold: int = DEFAULT_POPULARITY_THRESHOLD,
) -> PostCategory | None:
    """[標的] → Target (不看推文數), 推文數 > 門檻 → Other, 其餘 None (排除)."""
    if target_marker in title:
        return PostCategory.TARGET
    if push_count > popularity_threshold:
        return PostCategory.OTHER
    return None


def _text(node: Tag | None) -> str:
    return node.get_text(strip=True) if node else ""


def parse_listing(
    html: str,
    *,
    base_url: str = PTT_BASE_URL,
    target_marker: str = DEFAULT_TARGET_MARKER,
    popularity_threshold: int = DEFAULT_POPULARITY_THRESHOLD,
) -> list[ListingEntry]:
    """列表頁 HTML → ListingEntry 列表 (文件順序, 含未分類的列).

    已刪除文章 (沒有 .title a) 略過.
    """
    soup = BeautifulSoup(html, "html.parser")
    entries: list[ListingEntry] = []

    for row in soup.select(".r-ent"):
        link_el = row.select_one(".title a")
        if not link_el:
            continue

        title = link_el.get_text(strip=True)
        href = link_el.get("href", "")
        if not title or not href:
            continue

        push_text = _text(row.select_one(".nrec"))
        push_count = normalize_push_count(push_text)

        entries.append(
            ListingEntry(
                title=title,
                link=urljoin(base_url, href),
                author=_text(row.select_one(".author")),
                date=_text(row.select_one(".date")),
                push_count_text=push_text,
                push_count=push_count,
                category=categorize(
                    title,
                    push_count,
                    target_marker=target_marker,
                    popularity_threshold=popularity_threshold,
                ),
            )
        )

    return entries


def find_previous_page(html: str, *, base_url: str = PTT_BASE_URL) -> str | None:
    """列表頁的「‹ 上頁」連結 (絕對 URL). 第一頁時按鈕 disabled 沒有 href → None."""
    soup = BeautifulSoup(html, "html.parser")
    buttons = soup.select(".btn-group-paging a")
    if len(buttons) < 2:
        return None
    href = buttons[1].get("href")
    if not href:
        return None
    return urljoin(base_url, href)


def _resolve_title(soup: BeautifulSoup) -> str:
    """標題: 標籤為「標題」的 metaline → 第二個 metaline 值 → UNKNOWN_TITLE."""
    for line in soup.select(".article-metaline"):
        if _text(line.select_one(".article-meta-tag")) == "標題":
            value = _text(line.select_one(".article-meta-value"))
            if value:
                return value

    values = soup.select(".article-metaline .article-meta-value")
    if len(values) > 1:
        value = _text(values[1])
        if value:
            return value

    return UNKNOWN_TITLE


def extract_article(html: str) -> ExtractedArticle:
    """文章內頁 HTML → ExtractedArticle. 結構異常也不會中斷 (欄位給預設值).

    - 標題在移除 metaline 之前解析
    - 推文依文件順序整理成 "<tag> <content>"
    - 本文 = #main-content 去除 metaline 與推文後的文字
    """
    soup = BeautifulSoup(html or "", "html.parser")
    title = _resolve_title(soup)

    comment_lines: list[str] = []
    for push in soup.select(".push"):
        tag = _text(push.select_one(".push-tag"))
        content = _text(push.select_one(".push-content"))
        comment_lines.append(f"{tag} {content}")

    for el in soup.select(".article-metaline, .article-metaline-right, .push"):
        el.decompose()

    main = soup.select_one("#main-content")
    body_text = main.get_text().strip() if main else ""
    if not main:
        logger.debug("#main-content not found (title=%s)", title)

    return ExtractedArticle(title=title, body_text=body_text, comment_lines=comment_lines)
