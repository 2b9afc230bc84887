"""PTT API — 股票版情緒彙整 / 單篇文章深度分析."""

import logging
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from taiwan_pulse.domain.errors import InvalidURLError, PageFetchError
from taiwan_pulse.services.base import error_response
from taiwan_pulse.services.deps import get_ptt_aggregator
from taiwan_pulse.services.forum.aggregator import PTTAggregator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ptt"])


class AnalyzeUrlRequest(BaseModel):
    # 型別檢查交給 PTTAggregator.validate_url, 非字串也回 "Invalid URL"
    url: Any = None


@router.post("/analyze-url", response_model=None)
async def analyze_url(
    request: AnalyzeUrlRequest,
    aggregator: PTTAggregator = Depends(get_ptt_aggregator),
) -> dict | JSONResponse:
    """單篇 PTT 文章: 標題 + 情緒 + 推文觀點."""
    with structlog.contextvars.bound_contextvars(ptt_url=request.url):
        try:
            report = await aggregator.analyze_url(request.url)
        except InvalidURLError:
            return error_response(400, "Invalid URL")
        except PageFetchError:
            return error_response(500, "Failed to fetch page")
        except Exception:
            logger.exception("Article analysis failed: %s", request.url)
            return error_response(500, "Analysis failed")

    return {"success": True, "data": report.model_dump(mode="json", by_alias=True)}


@router.get("/ptt-sentiment", response_model=None)
async def ptt_sentiment(
    aggregator: PTTAggregator = Depends(get_ptt_aggregator),
) -> dict | JSONResponse:
    """最近數頁的 [標的] / 熱門文章情緒."""
    try:
        posts = await aggregator.collect()
    except Exception:
        logger.exception("PTT sentiment collection failed")
        return error_response(500, "Failed to fetch PTT data")

    return {"success": True, "data": [p.model_dump(mode="json", by_alias=True) for p in posts]}
