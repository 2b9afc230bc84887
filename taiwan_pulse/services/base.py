"""FastAPI 應用工廠 — 共用健康檢查 + 錯誤處理.

Usage:
    from taiwan_pulse.services.base import create_app

    app = create_app("dashboard", version="1.0.0", dependencies=["llm", "ptt"])
"""

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from taiwan_pulse.domain.errors import LLMUnavailableError, PodcastAnalysisError
from taiwan_pulse.domain.health import DEPENDENCY_NAMES, DependencyHealth, DependencyName, HealthStatus

logger = logging.getLogger(__name__)

# /health 的外部請求逾時 (秒)
HEALTH_TIMEOUT = 3.0

# 服務啟動時間 (計算 uptime)
_start_time: float = 0.0


def error_response(status_code: int, error: str) -> JSONResponse:
    """失敗 envelope: {success: false, error}."""
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def create_app(
    service_name: str,
    *,
    version: str = "1.0.0",
    lifespan: Callable | None = None,
    dependencies: list[DependencyName] | None = None,
) -> FastAPI:
    """FastAPI 應用工廠 — 共用健康檢查 + 錯誤處理.

    Args:
        service_name: 服務識別字 (例: "dashboard")
        version: 服務版本
        lifespan: 自訂 lifespan context manager (startup/shutdown)
        dependencies: 健康檢查包含的依賴 ("llm", "ptt")
    """
    deps = dependencies or []
    unknown = [d for d in deps if d not in DEPENDENCY_NAMES]
    if unknown:
        raise ValueError(f"Unknown health dependencies: {unknown}")

    @asynccontextmanager
    async def wrapped_lifespan(app: FastAPI) -> AsyncIterator[None]:
        global _start_time
        _start_time = time.monotonic()
        logger.info("[%s] Starting v%s", service_name, version)
        if lifespan:
            async with lifespan(app):
                yield
        else:
            yield
        logger.info("[%s] Shutting down", service_name)

    app = FastAPI(
        title=f"taiwan-pulse {service_name}",
        version=version,
        lifespan=wrapped_lifespan,
    )

    # --- Error Handlers ---

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Validation error",
                "detail": exc.errors(include_url=False, include_context=False),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(LLMUnavailableError)
    async def llm_unavailable_handler(request: Request, exc: LLMUnavailableError) -> JSONResponse:
        return error_response(503, "LLM API key not configured")

    @app.exception_handler(PodcastAnalysisError)
    async def podcast_error_handler(request: Request, exc: PodcastAnalysisError) -> JSONResponse:
        return error_response(502, "AI analysis failed")

    @app.exception_handler(httpx.HTTPStatusError)
    async def http_status_error_handler(request: Request, exc: httpx.HTTPStatusError) -> JSONResponse:
        return error_response(502, f"Upstream error: {exc.response.status_code}")

    # --- Health Check ---

    @app.get("/health")
    async def health() -> HealthStatus:
        dep_health: dict[DependencyName, DependencyHealth] = {}
        overall = "healthy"

        for dep in deps:
            dep_health[dep] = await _check_dependency(dep)
            if dep_health[dep].status == "down":
                overall = "unhealthy"
            elif dep_health[dep].status == "degraded" and overall == "healthy":
                overall = "degraded"

        return HealthStatus(
            service=service_name,
            status=overall,
            uptime_seconds=time.monotonic() - _start_time,
            version=version,
            dependencies=dep_health,
            timestamp=datetime.now(UTC),
        )

    return app


async def _ping(url: str, headers: dict[str, str]) -> int:
    """GET 一次, 回傳 status code."""
    async with httpx.AsyncClient(timeout=HEALTH_TIMEOUT) as client:
        resp = await client.get(url, headers=headers)
    return resp.status_code


async def _check_dependency(name: DependencyName) -> DependencyHealth:
    """依賴狀態檢查."""
    from taiwan_pulse.domain.config import get_config

    start = time.monotonic()
    try:
        if name == "llm":
            if not get_config().has_llm_key:
                # 關鍵字 fallback 仍可運作
                return DependencyHealth(status="degraded", message="GEMINI_API_KEY not set")
            return DependencyHealth(status="healthy")

        from taiwan_pulse.infra.crawlers.fetcher import BROWSER_HEADERS, PTT_COOKIE_HEADER

        status_code = await _ping(get_config().ptt.board_index_url, {**BROWSER_HEADERS, **PTT_COOKIE_HEADER})
        latency = (time.monotonic() - start) * 1000
        if status_code >= 400:
            return DependencyHealth(status="down", latency_ms=round(latency, 1), message=f"HTTP {status_code}")
        return DependencyHealth(status="healthy" if latency < 1000 else "degraded", latency_ms=round(latency, 1))

    except Exception as e:
        latency = (time.monotonic() - start) * 1000
        return DependencyHealth(
            status="down",
            latency_ms=round(latency, 1),
            message=str(e)[:200],
        )
