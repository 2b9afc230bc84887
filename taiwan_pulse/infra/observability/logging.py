"""Structured logging — 基於 structlog 的設定.

Usage:
    from taiwan_pulse.infra.observability.logging import setup_logging

    setup_logging("dashboard", log_level="DEBUG", json_output=False)
    logger = logging.getLogger(__name__)
    logger.info("PTT page %d: %d candidates", page, count)

每筆日誌帶 service 欄位; request 範圍的欄位以
structlog.contextvars.bind_contextvars() 追加 (例: ptt_url, episode).
"""

import logging
import sys

import structlog

# 爬 PTT 時每頁一個 request, Gemini 每次呼叫也會打 INFO
QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "google_genai.models")


def setup_logging(
    service_name: str = "taiwan-pulse",
    *,
    log_level: str = "INFO",
    json_output: bool = True,
) -> None:
    """全域 structlog + stdlib logging 設定.

    Args:
        service_name: 寫入每筆日誌的服務名稱
        log_level: 日誌等級 (DEBUG, INFO, WARNING, ERROR)
        json_output: True 為 JSON 格式, False 為易讀的 console 格式
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    # stdlib logging 基本設定
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level_int,
    )

    # 共用 processor
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdlib handler 套用 structlog formatter
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    root = logging.getLogger()
    root.setLevel(log_level_int)
    for handler in root.handlers:
        handler.setFormatter(formatter)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # 綁定服務名稱
    structlog.contextvars.bind_contextvars(service=service_name)
