"""領域例外 — 只在 HTTP 邊界轉換成 JSON 錯誤 envelope。"""


class TaiwanPulseError(Exception):
    """所有領域例外的基底類別。"""


class InvalidURLError(TaiwanPulseError):
    """輸入 URL 不屬於 PTT。"""


class PageFetchError(TaiwanPulseError):
    """頁面抓取失敗 (空內容)。"""


class FeedUnavailableError(TaiwanPulseError):
    """所有 RSS 抓取路徑皆失敗。"""


class LLMUnavailableError(TaiwanPulseError):
    """未設定 LLM API Key。"""


class PodcastAnalysisError(TaiwanPulseError):
    """Podcast 分析時 LLM 呼叫失敗。"""
