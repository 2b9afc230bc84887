"""PTT 股票版貼文與情緒分析模型。"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import PostCategory, ResultSource
from .types import SentimentLabel, StockId


class SentimentResult(BaseModel):
    """輕量情緒判斷結果 (LLM 或關鍵字)。"""

    sentiment: SentimentLabel
    reason: str
    source: ResultSource = ResultSource.LLM


class Opinion(BaseModel):
    """推文中的代表性意見。"""

    type: SentimentLabel
    content: str


class ArticleAnalysis(BaseModel):
    """單篇文章深度分析結果。"""

    sentiment: SentimentLabel
    reason: str
    opinions: list[Opinion] = []


class ArticleReport(ArticleAnalysis):
    """/api/analyze-url 回應 — 深度分析 + 文章標題。"""

    title: str


class ExtractedArticle(BaseModel):
    """從文章內頁擷取的純文字內容。"""

    title: str
    body_text: str = ""
    comment_lines: list[str] = []

    @property
    def full_text(self) -> str:
        """本文 + 推文, LLM 分析用。"""
        return self.body_text + "\n\n推文:\n" + "\n".join(self.comment_lines)


class ListingEntry(BaseModel):
    """列表頁 (index.html) 中的一列。"""

    title: str
    link: str
    author: str = ""
    date: str = ""
    push_count_text: str = ""  # 原始顯示字串 (例: "爆", "X1", "15")
    push_count: int = 0  # 比較用正規化數值
    category: PostCategory | None = None


class ForumPost(BaseModel):
    """情緒分析完成的 PTT 貼文. link 為唯一識別。"""

    model_config = ConfigDict(frozen=True)

    title: str
    author: str
    date: str
    link: str
    push_count: str = Field(serialization_alias="pushCount")
    stock_id: StockId | None = Field(default=None, serialization_alias="stockId")
    sentiment: SentimentLabel
    reason: str
    category: PostCategory
