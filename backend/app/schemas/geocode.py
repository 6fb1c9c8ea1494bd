"""좌표 변환(geocoding) 결과 스키마"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class GeoQueryType(str, Enum):
    ADDRESS = "address"  # 정형 주소 검색 (구/동/지번)
    KEYWORD = "keyword"  # 장소명 키워드 검색


@dataclass(frozen=True)
class GeoQuery:
    """좌표 변환 시도 1회분"""

    kind: GeoQueryType
    text: str


@dataclass(frozen=True)
class GeoAddress:
    x: str  # 경도
    y: str  # 위도
    road_address: str = ""
    jibun_address: str = ""
    place_name: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "x": self.x,
            "y": self.y,
            "roadAddress": self.road_address,
            "jibunAddress": self.jibun_address,
            "placeName": self.place_name,
        }


@dataclass(frozen=True)
class GeoQueryResult:
    addresses: tuple[GeoAddress, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return bool(self.addresses)

    def to_dict(self) -> dict[str, Any]:
        return {"addresses": [a.to_dict() for a in self.addresses]}


EMPTY_RESULT = GeoQueryResult()


# --- Kakao Local API 응답 모델 (프록시 경계에서 검증) ---


class KakaoRoadAddress(BaseModel):
    address_name: str = ""


class KakaoJibunAddress(BaseModel):
    address_name: str = ""


class KakaoDocument(BaseModel):
    """주소 검색/키워드 검색 공통 document

    주소 검색은 road_address/address가, 키워드 검색은 place_name/road_address_name이 채워진다.
    """

    x: str = Field(description="경도")
    y: str = Field(description="위도")
    address_name: str = ""
    road_address: KakaoRoadAddress | None = None
    address: KakaoJibunAddress | None = None
    place_name: str = ""
    road_address_name: str = ""

    def to_geo_address(self) -> GeoAddress:
        road = self.road_address.address_name if self.road_address else self.road_address_name
        jibun = self.address.address_name if self.address else self.address_name
        return GeoAddress(
            x=self.x,
            y=self.y,
            road_address=road,
            jibun_address=jibun,
            place_name=self.place_name,
        )


class KakaoSearchResponse(BaseModel):
    documents: list[KakaoDocument] = Field(default_factory=list)

    def to_result(self) -> GeoQueryResult:
        return GeoQueryResult(addresses=tuple(doc.to_geo_address() for doc in self.documents))
