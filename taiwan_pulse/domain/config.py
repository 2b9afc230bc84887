"""整合設定模型 — 基於 Pydantic Settings。

所有設定值皆由環境變數注入。優先順序:
  1. 環境變數 (docker-compose env, .env / .env.local)
  2. Pydantic Settings 預設值

爬蟲的分頁深度、每頁分析上限等皆視為可調整的 policy 參數, 而非寫死的常數。
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class LLMConfig(BaseSettings):
    """LLM 設定."""

    tier_fast_provider: str = "gemini"
    tier_reasoning_provider: str = "gemini"
    # Provider 模型名稱 (LLM_GEMINI_MODEL, LLM_GEMINI_SEARCH_MODEL)
    gemini_model: str = "gemini-2.0-flash"
    gemini_search_model: str = "gemini-2.5-flash"

    model_config = {"env_prefix": "LLM_"}


class PTTConfig(BaseSettings):
    """PTT 股票版爬蟲設定."""

    base_url: str = "https://www.ptt.cc"
    board_index_url: str = "https://www.ptt.cc/bbs/Stock/index.html"
    domain_marker: str = "ptt.cc"
    max_pages: int = Field(default=3, ge=1)
    max_posts_per_page: int = Field(default=5, ge=0)
    popularity_threshold: int = 20  # 推文數 > 門檻 → Other
    target_marker: str = "[標的]"
    request_timeout: float = 10.0

    model_config = {"env_prefix": "PTT_"}


class PodcastConfig(BaseSettings):
    """股癌 Podcast 設定."""

    itunes_id: str = "1500839292"
    lookup_url: str = "https://itunes.apple.com/lookup"
    # 逗號分隔, 依序嘗試 (空字串 = 直連)
    proxy_prefixes: str = "https://api.allorigins.win/raw?url=,https://corsproxy.io/?"
    # dashboard 列表上限 10 集
    max_episodes: int = Field(default=10, ge=1, le=10)
    llm_episode_fallback: bool = True

    model_config = {"env_prefix": "PODCAST_"}

    def get_proxy_prefixes(self) -> list[str]:
        return [p.strip() for p in self.proxy_prefixes.split(",") if p.strip()]


class MarketConfig(BaseSettings):
    """市場指標設定."""

    fear_greed_url: str = "https://production.dataviz.cnn.io/index/fearandgreed/graphdata"
    fear_greed_mock_fallback: bool = True

    model_config = {"env_prefix": "MARKET_"}


class SecretsConfig(BaseSettings):
    """外部服務 API Key — 直接對應環境變數 (無 prefix).

    GEMINI_API_KEY 優先, 其次接受舊版前端使用的 API_KEY.
    """

    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
    )


class AppConfig(BaseSettings):
    """最上層設定 — 組合各子設定.

    Usage:
        from taiwan_pulse.domain.config import get_config
        config = get_config()
        print(config.ptt.max_pages)
    """

    log_level: str = "INFO"
    json_logs: bool = True
    # 逗號分隔的 CORS 允許來源 (前端 dashboard)
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173"

    llm: LLMConfig = Field(default_factory=LLMConfig)
    ptt: PTTConfig = Field(default_factory=PTTConfig)
    podcast: PodcastConfig = Field(default_factory=PodcastConfig)
    market: MarketConfig = Field(default_factory=MarketConfig)
    secrets: SecretsConfig = Field(default_factory=SecretsConfig)

    model_config = {"env_prefix": "APP_"}

    @property
    def has_llm_key(self) -> bool:
        return bool(self.secrets.gemini_api_key)

    def get_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_config() -> AppConfig:
    """單例設定實體.

    程序內只讀取一次環境變數並快取。
    測試中以 get_config.cache_clear() 重設。
    """
    return AppConfig()
