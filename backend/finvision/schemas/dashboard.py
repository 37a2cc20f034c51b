from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from finvision.schemas.asset import AssetIdentity, AssetSnapshot


NoticeLevel = Literal["warning", "error"]


class Notice(BaseModel):
    level: NoticeLevel
    message: str


class DashboardState(BaseModel):
    selection: AssetIdentity
    snapshot: Optional[AssetSnapshot] = None
    is_loading: bool = False
    is_analyzing: bool = False
    is_fallback: bool = False
    notice: Optional[Notice] = None


class SelectRequest(BaseModel):
    identity: AssetIdentity


class AssetOption(BaseModel):
    identity: AssetIdentity
    label: str
    standard: bool
