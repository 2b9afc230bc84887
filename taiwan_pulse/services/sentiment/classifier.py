"""PTT 貼文情緒分析 — LLM 判斷 + 關鍵字 fallback.

classify()      : 列表頁每篇貼文, 輕量 (內文截斷 2000 字, FAST tier)
classify_deep() : 單篇文章深度分析 + 推文意見整理 (內文截斷 5000 字, REASONING tier)

兩者都不會把例外丟出此邊界:
    LLM 未設定     → classify: 關鍵字(標題+內文) / classify_deep: {Neutral, "No API Key", []}
    LLM 例外       → classify: 關鍵字(標題)      / classify_deep: {Neutral, "Analysis Error", []}
    空回應/解析失敗 → classify: 關鍵字(標題)      / classify_deep: {Neutral, "無法解析 AI 回應", []}
"""

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from taiwan_pulse.domain.enums import ResultSource, Sentiment
from taiwan_pulse.domain.forum import ArticleAnalysis, Opinion, SentimentResult
from taiwan_pulse.domain.types import SentimentLabel
from taiwan_pulse.infra.llm.base import BaseLLMProvider
from taiwan_pulse.infra.llm.factory import LLMFactory
from taiwan_pulse.infra.llm.parsing import ParseOk, parse_json_payload

from .keyword import classify_by_keyword
from .schemas import ARTICLE_ANALYSIS_SCHEMA, FORUM_SENTIMENT_SCHEMA

logger = logging.getLogger(__name__)

LIGHT_CONTENT_LIMIT = 2000
DEEP_CONTENT_LIMIT = 5000
MAX_OPINIONS_PER_LABEL = 3
MAX_REASON_LENGTH = 50

REASON_NO_KEY = "No API Key"
REASON_ANALYSIS_ERROR = "Analysis Error"
REASON_UNPARSABLE = "無法解析 AI 回應"


class _SentimentPayload(BaseModel):
    sentiment: SentimentLabel
    reason: str = ""


class _ArticlePayload(BaseModel):
    sentiment: SentimentLabel
    reason: str = ""
    opinions: list[Any] = []


def _truncate(content: str, limit: int) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + " ... (內容過長截斷)"


def build_sentiment_prompt(title: str, content: str) -> str:
    return f"""你是一個專業的台股分析師。請分析以下 PTT 股票版貼文的「多空情緒」。

標題: {title}
內容與推文:
{_truncate(content, LIGHT_CONTENT_LIMIT)}

請根據標題與推文內容（特別是推文的反應），判斷整體情緒是：
- Bullish (看多/做多)
- Bearish (看空/做空)
- Neutral (中立/觀望/無明確方向)

並提供一個簡短的理由（20字以內），說明為什麼。

請直接回傳 JSON 格式：
{{
  "sentiment": "Bullish" | "Bearish" | "Neutral",
  "reason": "簡短理由"
}}
"""


def build_article_prompt(title: str, content: str) -> str:
    return f"""你是一個專業的台股分析師。請深入分析以下 PTT 股票版貼文。

標題: {title}
內容與推文:
{_truncate(content, DEEP_CONTENT_LIMIT)}

請執行以下任務：
1. 判斷整體多空情緒 (Bullish/Bearish/Neutral)。
2. 提供判斷理由。
3. 統整推文中的不同意見，並將其分類為：
   - 看多 (Bullish): 認為會漲、支持做多的觀點。
   - 看空 (Bearish): 認為會跌、建議做空或逃跑的觀點。
   - 中立 (Neutral): 觀望、嘲諷或無關的觀點。

請列出最具代表性的意見（每個分類最多 {MAX_OPINIONS_PER_LABEL} 點）。

請直接回傳 JSON 格式：
{{
  "sentiment": "Bullish" | "Bearish" | "Neutral",
  "reason": "整體判斷理由",
  "opinions": [
    {{ "type": "Bullish", "content": "觀點內容" }},
    {{ "type": "Bearish", "content": "觀點內容" }}
  ]
}}
"""


def _parse_opinions(raw: list[Any]) -> list[Opinion]:
    """意見列表正規化: 格式錯誤/空白略過, 每個分類最多 3 點 (保留順序)."""
    counts: dict[Sentiment, int] = {}
    opinions: list[Opinion] = []
    for item in raw:
        try:
            opinion = Opinion.model_validate(item)
        except ValidationError:
            continue
        content = opinion.content.strip()
        if not content:
            continue
        if counts.get(opinion.type, 0) >= MAX_OPINIONS_PER_LABEL:
            continue
        counts[opinion.type] = counts.get(opinion.type, 0) + 1
        opinions.append(Opinion(type=opinion.type, content=content))
    return opinions


class SentimentClassifier:
    """LLM 情緒分類器.

    Args:
        fast_provider: classify() 用 LLM (預設: FAST tier)
        reasoning_provider: classify_deep() 用 LLM (預設: REASONING tier)
    """

    def __init__(
        self,
        fast_provider: BaseLLMProvider | None = None,
        reasoning_provider: BaseLLMProvider | None = None,
    ):
        self._fast = fast_provider
        self._reasoning = reasoning_provider

    def _get_fast(self) -> BaseLLMProvider:
        if not self._fast:
            self._fast = LLMFactory.get_provider("fast")
        return self._fast

    def _get_reasoning(self) -> BaseLLMProvider:
        if not self._reasoning:
            self._reasoning = LLMFactory.get_provider("reasoning")
        return self._reasoning

    async def classify(self, title: str, content: str) -> SentimentResult:
        """輕量情緒判斷. 不會丟出例外."""
        llm = self._get_fast()
        if not llm.available:
            logger.debug("No LLM configured, keyword analysis for %s", title)
            return classify_by_keyword(f"{title} {content}")

        try:
            response = await llm.generate_json(
                build_sentiment_prompt(title, content),
                FORUM_SENTIMENT_SCHEMA,
                service="ptt_sentiment",
            )
        except Exception as e:
            logger.warning("LLM sentiment failed for %s: %s", title, e)
            return classify_by_keyword(title)

        parsed = parse_json_payload(response.content, opener="{")
        if not isinstance(parsed, ParseOk):
            logger.warning("LLM sentiment unparsable for %s: %s", title, parsed.reason)
            return classify_by_keyword(title)

        try:
            payload = _SentimentPayload.model_validate(parsed.value)
        except ValidationError:
            logger.warning("LLM sentiment payload invalid for %s: %s", title, response.content[:200])
            return classify_by_keyword(title)

        reason = payload.reason.strip()[:MAX_REASON_LENGTH] or "AI 未提供理由"
        return SentimentResult(sentiment=payload.sentiment, reason=reason, source=ResultSource.LLM)

    async def classify_deep(self, title: str, content: str) -> ArticleAnalysis:
        """深度分析 + 推文意見整理. 不會丟出例外."""
        llm = self._get_reasoning()
        if not llm.available:
            return ArticleAnalysis(sentiment=Sentiment.NEUTRAL, reason=REASON_NO_KEY, opinions=[])

        try:
            response = await llm.generate_json(
                build_article_prompt(title, content),
                ARTICLE_ANALYSIS_SCHEMA,
                max_tokens=4096,
                service="ptt_article",
            )
        except Exception as e:
            logger.error("LLM article analysis failed for %s: %s", title, e)
            return ArticleAnalysis(sentiment=Sentiment.NEUTRAL, reason=REASON_ANALYSIS_ERROR, opinions=[])

        parsed = parse_json_payload(response.content, opener="{")
        if not isinstance(parsed, ParseOk):
            logger.warning("LLM article response unparsable for %s: %s", title, parsed.reason)
            return ArticleAnalysis(sentiment=Sentiment.NEUTRAL, reason=REASON_UNPARSABLE, opinions=[])

        try:
            payload = _ArticlePayload.model_validate(parsed.value)
        except ValidationError:
            logger.warning("LLM article payload invalid for %s: %s", title, response.content[:200])
            return ArticleAnalysis(sentiment=Sentiment.NEUTRAL, reason=REASON_UNPARSABLE, opinions=[])

        return ArticleAnalysis(
            sentiment=payload.sentiment,
            reason=payload.reason.strip() or REASON_UNPARSABLE,
            opinions=_parse_opinions(payload.opinions),
        )
