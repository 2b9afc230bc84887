"""/health 回應模型.

dashboard 只依賴兩個外部資源:
    llm: Gemini API key 是否設定 (未設定仍可用關鍵字分類, 視為 degraded)
    ptt: 股票版索引頁是否可達 (逾 1 秒視為 degraded)
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel

DependencyName = Literal["llm", "ptt"]
DEPENDENCY_NAMES: tuple[DependencyName, ...] = ("llm", "ptt")


class DependencyHealth(BaseModel):
    """單一依賴 (llm / ptt) 的檢查結果."""

    status: Literal["healthy", "degraded", "down"]
    latency_ms: float | None = None
    message: str | None = None


class HealthStatus(BaseModel):
    """服務整體狀態: 任一依賴 down → unhealthy, 任一 degraded → degraded."""

    service: str
    status: Literal["healthy", "degraded", "unhealthy"]
    uptime_seconds: float
    version: str = "1.0.0"
    dependencies: dict[DependencyName, DependencyHealth] = {}
    timestamp: datetime
