"""지역/키워드 검색 → 필터 → 좌표 변환 → 지도 표시용 단지 목록"""

from __future__ import annotations

import asyncio
import logging

from app.config import settings
from app.schemas.apartment import ApartmentGroup, MapCenter, SearchContext, SearchResult
from app.services.address_resolver import SEARCH_CASCADE, Geocoder, build_queries, parts_for, resolve
from app.services.stats import average_price
from app.services.transaction_filter import SearchFilters, apply_filters
from app.tools.kakao_local import search_local
from app.tools.real_estate_api import fetch_apartments, fetch_apartments_by_keyword
from app.tools.regions import lookup_region, region_center

logger = logging.getLogger(__name__)

# 키워드 검색 시 searchInfo.yearMonth 표시값
RECENT_MONTHS_LABEL = "최근 6개월"


async def geocode_apartment(
    apartment: ApartmentGroup,
    district_name: str,
    geocoder: Geocoder,
) -> ApartmentGroup | None:
    """단지 1개를 4단계 폴백으로 좌표 변환한다. 실패하면 None."""
    queries = build_queries(parts_for(apartment, district_name), SEARCH_CASCADE)
    result = await resolve(queries, geocoder)
    if not result.found:
        logger.debug("좌표 변환 최종 실패: %s (%s)", apartment.apt_name, apartment.dong)
        return None

    first = result.addresses[0]
    try:
        lat, lng = float(first.y), float(first.x)
    except ValueError:
        logger.warning("좌표 형식 오류: %s (x=%r, y=%r)", apartment.apt_name, first.x, first.y)
        return None
    return apartment.with_location(lat, lng, average_price(apartment))


async def geocode_apartments(
    apartments: list[ApartmentGroup],
    district_name: str,
    geocoder: Geocoder,
) -> list[ApartmentGroup]:
    """단지 목록을 동시에 좌표 변환한다.

    모든 변환이 끝날 때까지 기다리며, 개별 실패는 다른 단지에 영향을 주지 않는다.
    결과는 입력 순서를 유지하고 실패한 단지는 빠진다.
    """
    results = await asyncio.gather(
        *[geocode_apartment(apt, district_name, geocoder) for apt in apartments],
        return_exceptions=True,
    )

    geocoded: list[ApartmentGroup] = []
    for apt, result in zip(apartments, results):
        if isinstance(result, BaseException):
            logger.error("Geocoding failed for: %s (%s)", apt.apt_name, result)
            continue
        if result is not None:
            geocoded.append(result)
    return geocoded


async def search(
    region_code: str,
    year_month: str | None = None,
    keyword: str | None = None,
    filters: SearchFilters | None = None,
    region_name: str = "",
    district_name: str = "",
    *,
    geocoder: Geocoder | None = None,
) -> SearchResult:
    """실거래 데이터를 조회하고 필터링한 뒤 상위 단지를 좌표 변환한다.

    처리 흐름:
    1. keyword가 있으면 최근 6개월 키워드 조회, 없으면 year_month 조회
    2. 건축년도 → 평수 필터 적용
    3. 앞에서부터 최대 30개 단지를 동시에 좌표 변환 (입력 순서 유지)
    4. 지도 중심: 시도 기본 중심 → 첫 번째 변환 결과가 있으면 그 좌표

    Raises:
        TradeDataError: 실거래 데이터 조회 실패 (부분 결과 없음)
        ValueError: keyword와 year_month가 모두 비어 있거나 필터 형식 오류
    """
    filters = filters or SearchFilters()
    geocoder = geocoder or search_local
    keyword = (keyword or "").strip()

    if not region_name or not district_name:
        looked_up_region, looked_up_district = lookup_region(region_code)
        region_name = region_name or looked_up_region or ""
        district_name = district_name or looked_up_district or ""

    if keyword:
        groups = await fetch_apartments_by_keyword(region_code, keyword)
        context = SearchContext(region_code, RECENT_MONTHS_LABEL, region_name, district_name, keyword)
    elif year_month:
        groups = await fetch_apartments(region_code, year_month)
        context = SearchContext(region_code, year_month, region_name, district_name, "")
    else:
        raise ValueError("거래 년월 또는 아파트명 중 하나는 필요합니다.")

    filtered = apply_filters(groups, filters)

    center: MapCenter | None = region_center(region_code)

    to_geocode = filtered[: settings.geocode_fanout_limit]
    geocoded = await geocode_apartments(to_geocode, district_name, geocoder)
    if geocoded:
        center = MapCenter(geocoded[0].lat, geocoded[0].lng)

    logger.info(
        "검색 완료 %s %s: 단지 %d→%d개, 좌표 변환 %d/%d",
        region_code, context.year_month, len(groups), len(filtered), len(geocoded), len(to_geocode),
    )
    return SearchResult(
        apartment_groups=tuple(filtered),
        geocoded=tuple(geocoded),
        search_context=context,
        center=center,
    )
