"""基本型別定義 — 全服務共用的 Annotated 型別。"""

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from .enums import Sentiment, normalize_sentiment

# 台股代號: 4 位數字字串 (例: "2330")
StockId = Annotated[str, Field(pattern=r"^\d{4}$", examples=["2330", "2454"])]

# 指數分數: 0~100 範圍
Score = Annotated[float, Field(ge=0, le=100)]

# ISO 8601 日期字串 (YYYY-MM-DD)
IsoDate = Annotated[str, Field(pattern=r"^\d{4}-\d{2}-\d{2}$", examples=["2024-01-01"])]

# 外部來源的情緒值, 驗證前先正規化 ("BULLISH" → Sentiment.BULLISH)
SentimentLabel = Annotated[Sentiment, BeforeValidator(normalize_sentiment)]


def _ticker_text(value: Any) -> Any:
    # LLM 常把台股代號回成數字 (2330)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# 股票代號 (台股 "2330" / 美股 "NVDA"), 數字先轉字串
Ticker = Annotated[str | None, BeforeValidator(_ticker_text)]
