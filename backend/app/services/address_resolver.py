"""좌표 변환 폴백 체인

키워드 검색은 단지명으로 건물을 정확히 찾지만 낯선 이름에서 누락이 잦고,
주소 검색은 공식 주소가 정확해야 하므로 주소를 단계적으로 완화하며 재시도한다.
어떤 질의를 어떤 순서로 시도할지(정책)는 빌더 목록으로, 시도 자체는 resolve() 한 곳에서 처리한다.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from app.schemas.apartment import ApartmentGroup
from app.schemas.geocode import EMPTY_RESULT, GeoQuery, GeoQueryResult, GeoQueryType
from app.tools.kakao_local import search_local

logger = logging.getLogger(__name__)

Geocoder = Callable[[GeoQuery], Awaitable[GeoQueryResult]]


@dataclass(frozen=True)
class AddressParts:
    """질의 문자열 조립에 쓰이는 주소 구성 요소"""

    district: str  # "강남구", "수원시 장안구", 또는 "서울특별시 강남구"
    dong: str
    apt_name: str
    jibun: str = ""


QueryBuilder = Callable[[AddressParts], GeoQuery | None]


def _join(*parts: str) -> str:
    return " ".join(p for p in parts if p)


def keyword_with_name(parts: AddressParts) -> GeoQuery | None:
    if not parts.apt_name:
        return None
    return GeoQuery(GeoQueryType.KEYWORD, _join(parts.district, parts.dong, parts.apt_name))


def address_with_jibun(parts: AddressParts) -> GeoQuery | None:
    if not parts.jibun:
        return None
    return GeoQuery(GeoQueryType.ADDRESS, _join(parts.district, parts.dong, parts.jibun))


def address_dong_only(parts: AddressParts) -> GeoQuery | None:
    if not parts.dong:
        return None
    return GeoQuery(GeoQueryType.ADDRESS, _join(parts.district, parts.dong))


def address_city_and_dong(parts: AddressParts) -> GeoQuery | None:
    # "수원시 장안구" 처럼 시+구 구조일 때만 "수원시 {동}"으로 재시도
    if " " not in parts.district or not parts.dong:
        return None
    city_part = parts.district.split(" ")[0]
    return GeoQuery(GeoQueryType.ADDRESS, _join(city_part, parts.dong))


# 검색 결과 일괄 변환용 4단계
SEARCH_CASCADE: tuple[QueryBuilder, ...] = (
    keyword_with_name,
    address_with_jibun,
    address_dong_only,
    address_city_and_dong,
)

# 단건 선택용 3단계
SELECTION_CASCADE: tuple[QueryBuilder, ...] = (
    keyword_with_name,
    address_with_jibun,
    address_dong_only,
)


def build_queries(parts: AddressParts, cascade: Sequence[QueryBuilder] = SEARCH_CASCADE) -> list[GeoQuery]:
    """빌더 목록을 순서대로 적용해 질의 목록을 만든다. 만들 수 없는 단계와 중복 질의는 건너뛴다."""
    queries: list[GeoQuery] = []
    for builder in cascade:
        query = builder(parts)
        if query is not None and query.text and query not in queries:
            queries.append(query)
    return queries


def parts_for(apartment: ApartmentGroup, district: str) -> AddressParts:
    return AddressParts(
        district=district,
        dong=apartment.dong,
        apt_name=apartment.apt_name,
        jibun=apartment.jibun,
    )


async def resolve(
    candidate_queries: Sequence[GeoQuery],
    geocoder: Geocoder = search_local,
) -> GeoQueryResult:
    """질의를 순서대로 시도해 첫 번째로 결과가 있는 응답을 반환한다.

    개별 시도에서 발생한 오류는 '결과 없음'으로 간주하고 다음 질의로 넘어간다.
    모두 실패하면 빈 결과를 반환한다.
    """
    for query in candidate_queries:
        try:
            result = await geocoder(query)
        except Exception as exc:
            logger.warning("좌표 변환 실패 (%s '%s'): %s", query.kind.value, query.text, exc)
            continue
        if result.found:
            logger.debug("좌표 변환 성공 (%s '%s')", query.kind.value, query.text)
            return result
    return EMPTY_RESULT
