from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AssetIdentity(str, Enum):
    SILVER = "Silver"
    GOLD = "Gold"
    BITCOIN = "Bitcoin"
    CUSTOM = "Custom"

    @property
    def is_standard(self) -> bool:
        return self is not AssetIdentity.CUSTOM


STANDARD_ASSETS: tuple[AssetIdentity, ...] = (
    AssetIdentity.SILVER,
    AssetIdentity.GOLD,
    AssetIdentity.BITCOIN,
)


class DataPoint(BaseModel):
    date: str
    value: float


class PerformancePeriod(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    period: str
    value: float
    formatted_value: str = Field(alias="formattedValue")


class Source(BaseModel):
    title: Optional[str] = None
    uri: str


class AssetSnapshot(BaseModel):
    """Render-ready data for one asset.

    Field aliases match the JSON the model backends emit, so a parsed
    payload validates directly and ``model_dump(by_alias=True)`` gives
    presentation the same shape back.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    name: str
    current_value: str = Field(default="0.00", alias="currentValue")
    percentage_change: float = Field(default=0.0, alias="percentageChange")
    currency: str = "$"
    series: list[DataPoint] = Field(default_factory=list, alias="data")
    performance: list[PerformancePeriod] = Field(default_factory=list)
    sources: Optional[list[Source]] = None

    @field_validator("sources")
    @classmethod
    def _unique_source_uris(cls, value: Optional[list[Source]]) -> Optional[list[Source]]:
        if value is None:
            return value
        return dedupe_sources(value)


def dedupe_sources(sources: list[Source]) -> list[Source]:
    # Later entries replace earlier ones but keep the first-seen position.
    unique: dict[str, Source] = {}
    for source in sources:
        unique[source.uri] = source
    return list(unique.values())
