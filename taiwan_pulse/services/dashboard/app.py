"""Dashboard Backend API — 前端 dashboard 用 REST API.

- PTT 股票版情緒彙整 / 單篇文章分析
- 股癌 Podcast 集數 / 重點筆記
- CNN Fear & Greed Index
- LLM 使用量統計
- 健康檢查

Run:
    uvicorn taiwan_pulse.services.dashboard.app:app --port 3001
"""

from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi.middleware.cors import CORSMiddleware

from taiwan_pulse.domain.config import get_config
from taiwan_pulse.infra.observability.logging import setup_logging
from taiwan_pulse.services.base import create_app
from taiwan_pulse.services.deps import close_shared_clients

from .routers import llm_stats, market, podcast, ptt

# get_config() 首次呼叫前載入 .env.local → .env (已存在的環境變數優先)
_ROOT = Path(__file__).resolve().parents[3]
load_dotenv(_ROOT / ".env.local")
load_dotenv(_ROOT / ".env")


@asynccontextmanager
async def lifespan(app):
    config = get_config()
    setup_logging("dashboard", log_level=config.log_level, json_output=config.json_logs)
    yield
    await close_shared_clients()


app = create_app(
    "dashboard",
    version="1.0.0",
    lifespan=lifespan,
    dependencies=["llm", "ptt"],
)

# CORS (前端 dashboard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 註冊 router
app.include_router(ptt.router, prefix="/api")
app.include_router(podcast.router, prefix="/api")
app.include_router(market.router, prefix="/api")
app.include_router(llm_stats.router, prefix="/api")
