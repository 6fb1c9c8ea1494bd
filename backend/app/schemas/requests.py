"""API 요청 본문 모델"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.apartment import ApartmentGroup
from app.services.app_state import SidebarTab
from app.services.transaction_filter import SearchFilters


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchRequest(_CamelModel):
    region_code: str = Field(alias="regionCode", min_length=2, description="시군구 법정동코드 5자리")
    year_month: str | None = Field(default=None, alias="yearMonth", description="계약년월 (YYYYMM)")
    keyword: str | None = Field(default=None, description="아파트명 (입력 시 최근 6개월 검색)")
    build_year: str = Field(default="", alias="buildYear", description="건축년도 범위 (예: 1991-2000)")
    pyeong: str = Field(default="", description="평수 옵션 (10/20/30/40/50)")
    region_name: str = Field(default="", alias="regionName", description="시도명")
    district_name: str = Field(default="", alias="districtName", description="시군구명")

    @property
    def filters(self) -> SearchFilters:
        return SearchFilters(build_year=self.build_year, pyeong=self.pyeong)


class TransactionPayload(_CamelModel):
    deal_year: int = Field(alias="dealYear")
    deal_month: int = Field(alias="dealMonth")
    deal_day: int = Field(alias="dealDay")
    price: int = Field(description="거래금액 (만원)")
    area: float = Field(description="전용면적 (㎡)")
    floor: int = 0
    apt_dong: str = Field(default="", alias="aptDong")


class ApartmentPayload(_CamelModel):
    apt_name: str = Field(alias="aptName", min_length=1)
    dong: str
    jibun: str = ""
    build_year: int = Field(default=0, alias="buildYear")
    region_code: str = Field(default="", alias="regionCode")
    transactions: list[TransactionPayload] = Field(default_factory=list)
    lat: float | None = None
    lng: float | None = None
    avg_price: int | None = Field(default=None, alias="avgPrice")

    def to_group(self) -> ApartmentGroup:
        data: dict[str, Any] = self.model_dump(by_alias=True)
        return ApartmentGroup.from_dict(data)


class MapMoveRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    zoom: int | None = Field(default=None, ge=1, le=20)


class TabRequest(BaseModel):
    tab: SidebarTab
