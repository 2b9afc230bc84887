"""Podcast API — 股癌最新集數 / 重點筆記 (搜尋或音訊)."""

import base64
import binascii

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from taiwan_pulse.domain.podcast import PodcastAnalysisResponse
from taiwan_pulse.services.base import error_response
from taiwan_pulse.services.deps import get_episode_resolver, get_podcast_analyzer
from taiwan_pulse.services.podcast.analyzer import PodcastAnalyzer, summarize_companies
from taiwan_pulse.services.podcast.episodes import EpisodeResolver

router = APIRouter(prefix="/podcast", tags=["podcast"])


class AnalyzeRequest(BaseModel):
    """集數或關鍵字 (例: "EP531", "最新一集")."""

    query: str = Field(min_length=1)


class AnalyzeAudioRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audio_base64: str = Field(alias="audioBase64", min_length=1)
    mime_type: str = Field(default="audio/mp3", alias="mimeType")


def decode_audio(payload: str) -> bytes:
    """base64 (可含 data URL 前綴) → bytes.

    Raises:
        ValueError: base64 格式錯誤或內容為空
    """
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        audio = base64.b64decode(payload.strip(), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 audio: {e}") from e
    if not audio:
        raise ValueError("Empty audio payload")
    return audio


def _envelope(result: PodcastAnalysisResponse) -> dict:
    data = result.data.model_dump(mode="json", by_alias=True) if result.data else None
    return {
        "success": True,
        "data": data,
        "sources": [s.model_dump(mode="json") for s in result.sources],
        "summary": summarize_companies(result.data) if result.data else None,
    }


@router.get("/episodes")
async def list_episodes(resolver: EpisodeResolver = Depends(get_episode_resolver)) -> dict:
    """最新集數 (新到舊, 不會是空列表)."""
    episodes = await resolver.resolve_episodes()
    return {"success": True, "data": [ep.model_dump(mode="json", by_alias=True) for ep in episodes]}


@router.post("/analyze")
async def analyze(
    request: AnalyzeRequest,
    analyzer: PodcastAnalyzer = Depends(get_podcast_analyzer),
) -> dict:
    """Google Search grounding 分析. LLM 未設定 → 503, LLM 錯誤 → 502."""
    query = request.query.strip()
    with structlog.contextvars.bound_contextvars(episode=query):
        return _envelope(await analyzer.analyze(query))


@router.post("/analyze-audio", response_model=None)
async def analyze_audio(
    request: AnalyzeAudioRequest,
    analyzer: PodcastAnalyzer = Depends(get_podcast_analyzer),
) -> dict | JSONResponse:
    """上傳音訊分析."""
    try:
        audio = decode_audio(request.audio_base64)
    except ValueError:
        return error_response(400, "Invalid audio data")

    return _envelope(await analyzer.analyze_audio(audio, request.mime_type))
