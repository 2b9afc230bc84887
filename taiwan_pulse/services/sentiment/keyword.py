"""關鍵字 fallback 情緒判斷 — LLM 無法使用或失敗時使用.

純函式, 同步, 無外部依賴. 每個詞只要出現 (substring) 就計 1 次,
不看出現次數, 也不做斷詞.
"""

from taiwan_pulse.domain.enums import ResultSource, Sentiment
from taiwan_pulse.domain.forum import SentimentResult

BULLISH_KEYWORDS = ("多", "做多", "看多", "買進", "飛", "噴")
BEARISH_KEYWORDS = ("空", "做空", "看空", "賣出", "崩", "逃")

REASON_BULLISH = "關鍵字判定：多方詞彙較多"
REASON_BEARISH = "關鍵字判定：空方詞彙較多"
REASON_NEUTRAL = "關鍵字判定：中立或無明顯關鍵字"


def count_terms(text: str, terms: tuple[str, ...]) -> int:
    """text 中出現的詞數 (每個詞最多計 1)."""
    return sum(1 for term in terms if term in text)


def classify_by_keyword(text: str) -> SentimentResult:
    """多方詞數 > 空方 → Bullish, 反之 Bearish, 相同 (含 0:0) → Neutral."""
    normalized = (text or "").casefold()
    bullish = count_terms(normalized, BULLISH_KEYWORDS)
    bearish = count_terms(normalized, BEARISH_KEYWORDS)

    if bullish > bearish:
        return SentimentResult(sentiment=Sentiment.BULLISH, reason=REASON_BULLISH, source=ResultSource.KEYWORD)
    if bearish > bullish:
        return SentimentResult(sentiment=Sentiment.BEARISH, reason=REASON_BEARISH, source=ResultSource.KEYWORD)
    return SentimentResult(sentiment=Sentiment.NEUTRAL, reason=REASON_NEUTRAL, source=ResultSource.KEYWORD)
