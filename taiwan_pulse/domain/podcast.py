"""股癌 Podcast 集數與分析模型。"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .types import IsoDate, SentimentLabel, Ticker

logger = logging.getLogger(__name__)


class Episode(BaseModel):
    """Podcast 單集. id 預設為集數編號。"""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    title: str
    date: IsoDate
    episode_number: str = Field(alias="episodeNumber")

    @model_validator(mode="after")
    def _default_id(self) -> "Episode":
        if not self.id:
            self.id = self.episode_number
        return self


class CompanySentiment(BaseModel):
    """主持人對個別公司的看法。"""

    name: str
    ticker: Ticker = None
    sentiment: SentimentLabel
    reason: str = ""


class PodcastAnalysis(BaseModel):
    """單集重點筆記。"""

    model_config = ConfigDict(populate_by_name=True)

    episode_title: str = Field(alias="episodeTitle")
    summary_points: list[str] = Field(default_factory=list, alias="summaryPoints")
    companies: list[CompanySentiment] = []

    @field_validator("companies", mode="before")
    @classmethod
    def _drop_malformed_companies(cls, value: Any) -> Any:
        """格式錯誤的公司逐筆略過, 不影響整集筆記."""
        if not isinstance(value, list):
            return []
        companies = []
        for item in value:
            try:
                companies.append(CompanySentiment.model_validate(item))
            except ValidationError:
                logger.debug("Skipping malformed company entry: %r", item)
        return companies


class GroundingSource(BaseModel):
    """Google Search grounding 引用來源。"""

    title: str = ""
    uri: str


class PodcastAnalysisResponse(BaseModel):
    """分析結果 + 引用來源. 解析失敗時 data 為 None。"""

    data: PodcastAnalysis | None = None
    sources: list[GroundingSource] = []
