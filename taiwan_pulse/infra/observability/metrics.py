"""LLM 使用量統計 — 程序內記憶體彙總.

依服務記錄 LLM 呼叫次數與 token 用量, 由 Dashboard 的 /api/llm/stats 查詢.
不做持久化: 重啟即歸零.

Key: (YYYY-MM-DD, service) → {calls, tokens_in, tokens_out}
"""

import logging
import threading
from collections import defaultdict
from datetime import date
from typing import Optional

logger = logging.getLogger(__name__)

# 保留天數 (超過即丟棄)
_RETENTION_DAYS = 7


class LLMUsageTracker:
    """執行緒安全的 LLM 用量計數器."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats: dict[tuple[str, str], dict[str, int]] = defaultdict(
            lambda: {"calls": 0, "tokens_in": 0, "tokens_out": 0}
        )

    def record(self, *, service: str, tokens_in: int, tokens_out: int, day: Optional[date] = None) -> None:
        d = (day or date.today()).isoformat()
        with self._lock:
            bucket = self._stats[(d, service)]
            bucket["calls"] += 1
            bucket["tokens_in"] += tokens_in
            bucket["tokens_out"] += tokens_out
            self._evict(day or date.today())

    def get(self, target_date: Optional[date] = None, service: Optional[str] = None) -> dict:
        d = (target_date or date.today()).isoformat()
        with self._lock:
            if service:
                data = self._stats.get((d, service))
                return dict(data) if data else {}
            return {svc: dict(data) for (day, svc), data in self._stats.items() if day == d}

    def reset(self) -> None:
        """測試用: 清空計數."""
        with self._lock:
            self._stats.clear()

    def _evict(self, today: date) -> None:
        cutoff = today.toordinal() - _RETENTION_DAYS
        stale = [key for key in self._stats if date.fromisoformat(key[0]).toordinal() < cutoff]
        for key in stale:
            del self._stats[key]


_tracker = LLMUsageTracker()


def get_usage_tracker() -> LLMUsageTracker:
    return _tracker


def record_llm_usage(
    *,
    service: str,
    tokens_in: int,
    tokens_out: int,
    model: str = "",
) -> None:
    """記錄 LLM 使用量.

    Args:
        service: 服務識別字 (ptt_sentiment, ptt_article, podcast, ...)
        tokens_in: 輸入 token 數
        tokens_out: 輸出 token 數
        model: 使用的模型名稱 (日誌用)
    """
    try:
        _tracker.record(service=service, tokens_in=tokens_in, tokens_out=tokens_out)
        logger.debug("LLM usage: service=%s model=%s in=%d out=%d", service, model, tokens_in, tokens_out)
    except Exception:
        logger.warning("Failed to record LLM usage for %s", service, exc_info=True)


def get_llm_stats(
    target_date: Optional[date] = None,
    service: Optional[str] = None,
) -> dict:
    """LLM 使用量查詢.

    Args:
        target_date: 查詢日期 (預設: 今天)
        service: 只查特定服務 (預設: 全部)
    """
    return _tracker.get(target_date, service)
