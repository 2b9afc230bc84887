"""PTT HTML 解析 unit tests — mock HTML (不發出實際 HTTP 請求)."""

import pytest

from taiwan_pulse.domain.enums import PostCategory
from taiwan_pulse.infra.crawlers.ptt import (
    UNKNOWN_TITLE,
    categorize,
    extract_article,
    extract_stock_id,
    find_previous_page,
    normalize_push_count,
    parse_listing,
)

LISTING_HTML = """
<div class="btn-group btn-group-paging">
  <a class="btn wide" href="/bbs/Stock/index1.html">最舊</a>
  <a class="btn wide" href="/bbs/Stock/index7000.html">‹ 上頁</a>
  <a class="btn wide disabled">下頁 ›</a>
  <a class="btn wide" href="/bbs/Stock/index.html">最新</a>
</div>
<div class="r-list-container">
  <div class="r-ent">
    <div class="nrec"><span class="hl f3">5</span></div>
    <div class="title"><a href="/bbs/Stock/M.1700000001.A.001.html">[標的] 2330 台積電明年展望</a></div>
    <div class="meta"><div class="author">alice</div><div class="date"> 1/02</div></div>
  </div>
  <div class="r-ent">
    <div class="nrec"><span class="hl f1">爆</span></div>
    <div class="title"><a href="/bbs/Stock/M.1700000002.A.002.html">[新聞] 外資大賣超</a></div>
    <div class="meta"><div class="author">bob</div><div class="date"> 1/02</div></div>
  </div>
  <div class="r-ent">
    <div class="nrec"></div>
    <div class="title">(本文已被刪除) [carol]</div>
    <div class="meta"><div class="author">-</div><div class="date"> 1/02</div></div>
  </div>
  <div class="r-ent">
    <div class="nrec"><span class="hl f2">12</span></div>
    <div class="title"><a href="/bbs/Stock/M.1700000003.A.003.html">[閒聊] 2024/01/02 盤中閒聊</a></div>
    <div class="meta"><div class="author">dave</div><div class="date"> 1/02</div></div>
  </div>
</div>
"""

FIRST_PAGE_HTML = """
<div class="btn-group btn-group-paging">
  <a class="btn wide disabled">最舊</a>
  <a class="btn wide disabled">‹ 上頁</a>
  <a class="btn wide" href="/bbs/Stock/index2.html">下頁 ›</a>
  <a class="btn wide" href="/bbs/Stock/index.html">最新</a>
</div>
"""

ARTICLE_HTML = """
<div id="main-content" class="bbs-screen bbs-content">
  <div class="article-metaline"><span class="article-meta-tag">作者</span><span class="article-meta-value">alice (愛麗絲)</span></div>
  <div class="article-metaline-right"><span class="article-meta-tag">看板</span><span class="article-meta-value">Stock</span></div>
  <div class="article-metaline"><span class="article-meta-tag">標題</span><span class="article-meta-value">[標的] 2330 台積電 多</span></div>
  <div class="article-metaline"><span class="article-meta-tag">時間</span><span class="article-meta-value">Tue Jan  2 10:00:00 2024</span></div>
1. 標的：2330 台積電
2. 分類：多
3. 分析：AI 需求強勁
<div class="push"><span class="push-tag">推 </span><span class="f3 hl push-userid">bob</span><span class="f3 push-content">: 台積電要噴了</span><span class="push-ipdatetime"> 01/02 10:05</span></div>
<div class="push"><span class="push-tag">噓 </span><span class="f3 hl push-userid">carol</span><span class="f3 push-content">: 等著套牢</span><span class="push-ipdatetime"> 01/02 10:06</span></div>
</div>
"""


class TestNormalizePushCount:
    @pytest.mark.parametrize(
        "text,expected",
        [("爆", 100), ("15", 15), ("0", 0), ("", 0), (None, 0), ("X1", 0), ("X9", 0), ("-5", 0), (" 7 ", 7)],
    )
    def test_values(self, text, expected):
        assert normalize_push_count(text) == expected


class TestExtractStockId:
    def test_target_title(self):
        assert extract_stock_id("[標的] 2330 台積電明年展望") == "2330"

    def test_first_standalone_four_digits(self):
        assert extract_stock_id("[心得] 2454 聯發科 vs 2330") == "2454"

    def test_longer_digit_runs_ignored(self):
        assert extract_stock_id("[新聞] 20240102 盤後") is None

    def test_no_ticker(self):
        assert extract_stock_id("[閒聊] 大盤要崩了") is None


class TestCategorize:
    def test_target_regardless_of_push(self):
        assert categorize("[標的] 2330 台積電", 0) == PostCategory.TARGET

    def test_popular_is_other(self):
        assert categorize("[新聞] 外資賣超", 21) == PostCategory.OTHER

    def test_threshold_is_exclusive(self):
        assert categorize("[新聞] 外資賣超", 20) is None

    def test_custom_threshold(self):
        assert categorize("[新聞] x", 11, popularity_threshold=10) == PostCategory.OTHER


class TestParseListing:
    def test_skips_deleted_rows(self):
        entries = parse_listing(LISTING_HTML)
        assert len(entries) == 3
        assert all("本文已被刪除" not in e.title for e in entries)

    def test_fields(self):
        first = parse_listing(LISTING_HTML)[0]
        assert first.title == "[標的] 2330 台積電明年展望"
        assert first.link == "https://www.ptt.cc/bbs/Stock/M.1700000001.A.001.html"
        assert first.author == "alice"
        assert first.date == "1/02"
        assert first.push_count_text == "5"
        assert first.category == PostCategory.TARGET

    def test_overflow_push_count(self):
        second = parse_listing(LISTING_HTML)[1]
        assert second.push_count_text == "爆"
        assert second.push_count == 100
        assert second.category == PostCategory.OTHER

    def test_uncategorized_row_kept(self):
        third = parse_listing(LISTING_HTML)[2]
        assert third.push_count == 12
        assert third.category is None

    def test_empty_html(self):
        assert parse_listing("") == []


class TestFindPreviousPage:
    def test_previous_link(self):
        assert find_previous_page(LISTING_HTML) == "https://www.ptt.cc/bbs/Stock/index7000.html"

    def test_disabled_on_first_page(self):
        assert find_previous_page(FIRST_PAGE_HTML) is None

    def test_no_paging(self):
        assert find_previous_page("<html></html>") is None


class TestExtractArticle:
    def test_title_from_metaline(self):
        assert extract_article(ARTICLE_HTML).title == "[標的] 2330 台積電 多"

    def test_comments_in_order(self):
        article = extract_article(ARTICLE_HTML)
        assert len(article.comment_lines) == 2
        assert article.comment_lines[0].startswith("推")
        assert "台積電要噴了" in article.comment_lines[0]
        assert article.comment_lines[1].startswith("噓")

    def test_body_excludes_metadata_and_pushes(self):
        body = extract_article(ARTICLE_HTML).body_text
        assert "AI 需求強勁" in body
        assert "作者" not in body
        assert "Stock" not in body
        assert "等著套牢" not in body

    def test_full_text_has_comment_section(self):
        full = extract_article(ARTICLE_HTML).full_text
        assert "\n\n推文:\n" in full
        assert full.index("AI 需求強勁") < full.index("台積電要噴了")

    def test_malformed_page(self):
        article = extract_article("<html><body><p>nothing</p></body></html>")
        assert article.title == UNKNOWN_TITLE
        assert article.body_text == ""
        assert article.comment_lines == []

    def test_positional_title_fallback(self):
        html = """
        <div id="main-content">
          <div class="article-metaline"><span class="article-meta-value">alice</span></div>
          <div class="article-metaline"><span class="article-meta-value">[請益] 還能買嗎</span></div>
          內文
        </div>
        """
        assert extract_article(html).title == "[請益] 還能買嗎"
