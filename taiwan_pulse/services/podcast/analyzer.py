"""股癌 Podcast 重點筆記 — Google Search grounding 或上傳音訊.

搜尋模式: tools 與 JSON schema 不可併用, 格式契約寫在 system instruction,
          回應先清理 (code fence / 前後說明) 再解析. 引用來源一併回傳.
音訊模式: 多模態 + schema 強制 JSON, 無引用來源.

此路徑沒有非 LLM 的 fallback:
    LLM 未設定 → LLMUnavailableError
    LLM 例外   → PodcastAnalysisError
    解析失敗   → data=None (來源保留)
"""

import logging
from typing import Any

from taiwan_pulse.domain.errors import LLMUnavailableError, PodcastAnalysisError
from taiwan_pulse.domain.podcast import PodcastAnalysis, PodcastAnalysisResponse
from taiwan_pulse.infra.llm.base import BaseLLMProvider, LLMResponse
from taiwan_pulse.infra.llm.factory import LLMFactory
from taiwan_pulse.infra.llm.parsing import parse_json_payload, validate_payload

logger = logging.getLogger(__name__)

SENTIMENT_ENUM = ["BULLISH", "BEARISH", "NEUTRAL"]

PODCAST_ANALYSIS_SCHEMA = {
    "type": "object",
    "required": ["episodeTitle", "summaryPoints", "companies"],
    "properties": {
        "episodeTitle": {
            "type": "string",
            "description": "The inferred title or episode number of the podcast.",
        },
        "summaryPoints": {
            "type": "array",
            "items": {"type": "string"},
            "description": "A list of 3-5 key takeaways or summary points from the episode.",
        },
        "companies": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "sentiment", "reason"],
                "properties": {
                    "name": {"type": "string", "description": "Company name mentioned."},
                    "ticker": {
                        "type": "string",
                        "description": "Stock ticker symbol if available (e.g., 2330, NVDA).",
                    },
                    "sentiment": {
                        "type": "string",
                        "enum": SENTIMENT_ENUM,
                        "description": "The host's sentiment towards this company.",
                    },
                    "reason": {
                        "type": "string",
                        "description": "Brief explanation of why the host feels this way.",
                    },
                },
            },
            "description": "List of companies mentioned with specific bullish or bearish sentiment.",
        },
    },
}

BASE_SYSTEM_INSTRUCTION = """你是一個專業的金融分析師，專門負責整理「Gooaye 股癌」Podcast 的重點筆記。
請根據提供的資訊（音訊或搜尋結果），整理出該集的重點摘要。
特別注意主持人提到的公司、股票代號，以及他對這些公司的看法是「看好 (BULLISH)」還是「看壞/疑慮 (BEARISH)」。
如果是中性看法則標記為 NEUTRAL。
請使用繁體中文回答。
"""

SEARCH_FORMAT_INSTRUCTION = """
【重要】請直接回傳純 JSON 格式字串，不要包含 markdown 標記 (如 ```json)。
JSON 格式必須符合：
{
  "episodeTitle": "標題",
  "summaryPoints": ["重點1", "重點2"],
  "companies": [
    { "name": "公司", "ticker": "代號", "sentiment": "BULLISH", "reason": "原因" }
  ]
}
"""

AUDIO_PROMPT = "請分析這段錄音檔。請忽略開頭的閒聊，專注於市場分析與個股看法的段落。"


def build_search_prompt(query: str) -> str:
    return f"請搜尋並分析「股癌 Gooaye Podcast {query}」的內容重點。請盡量找出該集數提到的具體標的與觀點。"


def _to_analysis(response: LLMResponse, *, clean: bool) -> PodcastAnalysis | None:
    parsed = parse_json_payload(response.content, opener="{", clean=clean)
    analysis = validate_payload(parsed, PodcastAnalysis)
    if analysis is None:
        logger.warning("Podcast analysis response unparsable: %s", response.content[:200])
        return None
    analysis.summary_points = [p.strip() for p in analysis.summary_points if p and p.strip()]
    return analysis


class PodcastAnalyzer:
    """Podcast 分析器.

    Args:
        llm: REASONING tier LLM (None 時由 LLMFactory 取得)
    """

    def __init__(self, llm: BaseLLMProvider | None = None):
        self._llm = llm

    def _get_llm(self) -> BaseLLMProvider:
        if not self._llm:
            self._llm = LLMFactory.get_provider("reasoning")
        if not self._llm.available:
            raise LLMUnavailableError("Podcast analysis requires GEMINI_API_KEY")
        return self._llm

    async def analyze(self, query: str) -> PodcastAnalysisResponse:
        """以集數/關鍵字搜尋並整理重點."""
        llm = self._get_llm()
        try:
            response = await llm.generate_grounded(
                build_search_prompt(query),
                system=BASE_SYSTEM_INSTRUCTION + SEARCH_FORMAT_INSTRUCTION,
                service="podcast",
            )
        except Exception as e:
            logger.error("Podcast search analysis failed (%s): %s", query, e)
            raise PodcastAnalysisError(str(e)) from e

        return PodcastAnalysisResponse(
            data=_to_analysis(response, clean=True),
            sources=response.sources,
        )

    async def analyze_audio(self, audio: bytes, mime_type: str = "audio/mp3") -> PodcastAnalysisResponse:
        """上傳音訊的多模態分析."""
        llm = self._get_llm()
        try:
            response = await llm.generate_with_audio(
                AUDIO_PROMPT,
                audio,
                mime_type=mime_type,
                schema=PODCAST_ANALYSIS_SCHEMA,
                system=BASE_SYSTEM_INSTRUCTION,
                service="podcast_audio",
            )
        except Exception as e:
            logger.error("Podcast audio analysis failed: %s", e)
            raise PodcastAnalysisError(str(e)) from e

        return PodcastAnalysisResponse(data=_to_analysis(response, clean=False), sources=[])


def summarize_companies(analysis: PodcastAnalysis) -> dict[str, Any]:
    """情緒分布統計 (dashboard 圓餅圖用)."""
    counts = {"Bullish": 0, "Bearish": 0, "Neutral": 0}
    for company in analysis.companies:
        counts[company.sentiment.value] += 1
    return {"total": len(analysis.companies), **counts}
