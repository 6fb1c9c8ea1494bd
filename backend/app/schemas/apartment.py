"""아파트 실거래 데이터 스키마"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class TransactionRecord:
    """매매 실거래 1건"""

    deal_year: int
    deal_month: int
    deal_day: int
    price: int  # 거래금액 (만원 단위)
    area: float  # 전용면적 (㎡)
    floor: int
    apt_dong: str = ""  # 아파트 동 (예: 101동), 미공개 시 빈 문자열

    @property
    def deal_date(self) -> str:
        return f"{self.deal_year}-{self.deal_month:02d}-{self.deal_day:02d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "dealYear": self.deal_year,
            "dealMonth": self.deal_month,
            "dealDay": self.deal_day,
            "price": self.price,
            "area": self.area,
            "floor": self.floor,
            "aptDong": self.apt_dong,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionRecord:
        return cls(
            deal_year=int(data.get("dealYear") or 0),
            deal_month=int(data.get("dealMonth") or 0),
            deal_day=int(data.get("dealDay") or 0),
            price=int(data.get("price") or 0),
            area=float(data.get("area") or 0.0),
            floor=int(data.get("floor") or 0),
            apt_dong=data.get("aptDong") or "",
        )


ApartmentKey = tuple[str, str, str]


@dataclass(frozen=True)
class ApartmentGroup:
    """단지 단위로 묶인 거래 내역

    lat/lng/avg_price는 좌표 변환에 성공한 경우에만 채워진다 (GeocodedApartment).
    """

    apt_name: str
    dong: str  # 법정동
    jibun: str = ""  # 지번, 알 수 없으면 빈 문자열
    build_year: int = 0
    region_code: str = ""
    transactions: tuple[TransactionRecord, ...] = field(default_factory=tuple)

    lat: float | None = None
    lng: float | None = None
    avg_price: int | None = None

    @property
    def key(self) -> ApartmentKey:
        """동일 단지 판별 키. 지번이 없으면 빈 지번끼리만 같은 단지로 본다."""
        return (self.apt_name, self.dong, self.jibun or "")

    @property
    def is_geocoded(self) -> bool:
        # 0 좌표는 미변환으로 본다
        return bool(self.lat) and bool(self.lng)

    def with_transactions(self, transactions: tuple[TransactionRecord, ...]) -> ApartmentGroup:
        return replace(self, transactions=transactions)

    def with_location(self, lat: float, lng: float, avg_price: int | None = None) -> ApartmentGroup:
        if avg_price is None:
            avg_price = self.avg_price
        return replace(self, lat=lat, lng=lng, avg_price=avg_price)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "aptName": self.apt_name,
            "dong": self.dong,
            "jibun": self.jibun,
            "buildYear": self.build_year,
            "regionCode": self.region_code,
            "transactions": [t.to_dict() for t in self.transactions],
        }
        if self.lat is not None:
            data["lat"] = self.lat
        if self.lng is not None:
            data["lng"] = self.lng
        if self.avg_price is not None:
            data["avgPrice"] = self.avg_price
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApartmentGroup:
        lat = data.get("lat")
        lng = data.get("lng")
        avg_price = data.get("avgPrice")
        return cls(
            apt_name=data.get("aptName") or "",
            dong=data.get("dong") or "",
            jibun=data.get("jibun") or "",
            build_year=int(data.get("buildYear") or 0),
            region_code=str(data.get("regionCode") or ""),
            transactions=tuple(TransactionRecord.from_dict(t) for t in data.get("transactions") or []),
            lat=float(lat) if lat is not None else None,
            lng=float(lng) if lng is not None else None,
            avg_price=int(avg_price) if avg_price is not None else None,
        )


@dataclass(frozen=True)
class SearchContext:
    """현재 검색 조건. 선택 시 주소 재구성에도 사용된다."""

    region_code: str = ""
    year_month: str = ""
    region_name: str = ""
    district_name: str = ""
    keyword: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "regionCode": self.region_code,
            "yearMonth": self.year_month,
            "regionName": self.region_name,
            "districtName": self.district_name,
            "keyword": self.keyword,
        }


@dataclass(frozen=True)
class MapCenter:
    lat: float
    lng: float

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class SearchResult:
    """검색 집계 결과"""

    apartment_groups: tuple[ApartmentGroup, ...]
    geocoded: tuple[ApartmentGroup, ...]
    search_context: SearchContext
    center: MapCenter | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "apartments": [g.to_dict() for g in self.apartment_groups],
            "geocoded": [g.to_dict() for g in self.geocoded],
            "searchInfo": self.search_context.to_dict(),
            "center": self.center.to_dict() if self.center else None,
        }
