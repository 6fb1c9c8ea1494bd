"""단지 선택 시 좌표 확보"""

from __future__ import annotations

import logging

from app.schemas.apartment import ApartmentGroup, SearchContext
from app.services.address_resolver import SELECTION_CASCADE, AddressParts, Geocoder, build_queries, resolve
from app.tools.kakao_local import search_local
from app.tools.regions import lookup_region

logger = logging.getLogger(__name__)


def selection_context(
    apartment: ApartmentGroup,
    context: SearchContext | None = None,
) -> tuple[str, str]:
    """단지의 지역코드로 (시도명, 시군구명)을 역조회한다. 없으면 현재 검색 조건을 쓴다."""
    region_name, district_name = lookup_region(apartment.region_code)
    if region_name is None and context is not None:
        region_name, district_name = context.region_name or None, context.district_name or None
    return region_name or "", district_name or ""


async def resolve_selection(
    apartment: ApartmentGroup,
    context: SearchContext | None = None,
    geocoder: Geocoder | None = None,
) -> ApartmentGroup:
    """선택한 단지의 좌표를 확보한다.

    이미 좌표가 있으면 그대로 반환한다 (재조회하지 않고 기존 마커 위치 유지).
    없으면 키워드 → 지번 주소 → 동 주소 순으로 시도하고, 모두 실패하면 좌표 없이 반환한다.
    """
    if apartment.is_geocoded:
        return apartment

    geocoder = geocoder or search_local
    region_name, district_name = selection_context(apartment, context)
    district = " ".join(p for p in (region_name, district_name) if p)
    parts = AddressParts(
        district=district,
        dong=apartment.dong,
        apt_name=apartment.apt_name,
        jibun=apartment.jibun,
    )

    result = await resolve(build_queries(parts, SELECTION_CASCADE), geocoder)
    if not result.found:
        logger.warning("Could not find coordinates for %s (%s %s)", apartment.apt_name, district, apartment.dong)
        return apartment

    first = result.addresses[0]
    try:
        return apartment.with_location(float(first.y), float(first.x))
    except ValueError:
        logger.warning("좌표 형식 오류: %s (x=%r, y=%r)", apartment.apt_name, first.x, first.y)
        return apartment


def add_to_display(
    displayed: tuple[ApartmentGroup, ...],
    apartment: ApartmentGroup,
) -> tuple[ApartmentGroup, ...]:
    """지도 표시 목록에 단지를 추가한다. 같은 단지 키가 이미 있으면 그대로 둔다."""
    if not apartment.is_geocoded:
        return displayed
    if any(g.key == apartment.key for g in displayed):
        return displayed
    return displayed + (apartment,)


def find_displayed(
    displayed: tuple[ApartmentGroup, ...],
    apartment: ApartmentGroup,
) -> ApartmentGroup | None:
    """목록의 단지에 대응하는 좌표 변환된 단지를 찾는다."""
    return next((g for g in displayed if g.key == apartment.key), None)
