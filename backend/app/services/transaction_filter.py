"""건축년도 / 전용면적 필터"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.schemas.apartment import ApartmentGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AreaRange:
    """평형대별 전용면적 구간 [min_area, max_area)"""

    label: str
    min_area: float
    max_area: float


# 평수 필터 옵션 (전용면적 ㎡ 기준)
PYEONG_OPTIONS: dict[str, AreaRange] = {
    "10": AreaRange("10평대 (33~66㎡)", 33, 66),
    "20": AreaRange("20평대 (66~99㎡)", 66, 99),
    "30": AreaRange("30평대 (99~132㎡)", 99, 132),
    "40": AreaRange("40평대 (132~165㎡)", 132, 165),
    "50": AreaRange("50평 이상 (165㎡~)", 165, 99999),
}

# 건축년도 필터 옵션: (라벨, "최소-최대")
BUILD_YEAR_OPTIONS: list[tuple[str, str]] = [
    ("~1990년", "0-1990"),
    ("1991~2000년", "1991-2000"),
    ("2001~2005년", "2001-2005"),
    ("2006~2010년", "2006-2010"),
    ("2011~2015년", "2011-2015"),
    ("2016~2020년", "2016-2020"),
    ("2021년~", "2021-9999"),
]


@dataclass(frozen=True)
class SearchFilters:
    build_year: str = ""  # "1991-2000" 형식, 빈 문자열이면 미적용
    pyeong: str = ""  # PYEONG_OPTIONS 키, 빈 문자열이면 미적용


def parse_build_year_range(value: str) -> tuple[int, int]:
    """'1991-2000' → (1991, 2000)"""
    parts = value.split("-")
    if len(parts) != 2:
        raise ValueError(f"건축년도 범위 형식 오류: {value!r}")
    min_year, max_year = (int(p) for p in parts)
    return min_year, max_year


def filter_by_build_year(
    groups: list[ApartmentGroup],
    min_year: int,
    max_year: int,
) -> list[ApartmentGroup]:
    """건축년도가 [min_year, max_year] 범위인 단지만 남긴다. 거래 내역은 건드리지 않는다."""
    return [g for g in groups if min_year <= g.build_year <= max_year]


def filter_by_area(
    groups: list[ApartmentGroup],
    min_area: float,
    max_area: float,
) -> list[ApartmentGroup]:
    """단지별로 전용면적이 [min_area, max_area) 인 거래만 남기고, 거래가 없어진 단지는 제외한다."""
    filtered: list[ApartmentGroup] = []
    for group in groups:
        txns = tuple(t for t in group.transactions if min_area <= t.area < max_area)
        if txns:
            filtered.append(group if len(txns) == len(group.transactions) else group.with_transactions(txns))
    return filtered


def apply_filters(groups: list[ApartmentGroup], filters: SearchFilters) -> list[ApartmentGroup]:
    """건축년도 필터 → 평수 필터 순서로 적용한다."""
    result = groups
    if filters.build_year:
        min_year, max_year = parse_build_year_range(filters.build_year)
        result = filter_by_build_year(result, min_year, max_year)
        logger.debug("건축년도 필터 %s: %d→%d개 단지", filters.build_year, len(groups), len(result))

    if filters.pyeong:
        option = PYEONG_OPTIONS.get(filters.pyeong)
        if option is None:
            logger.warning("알 수 없는 평수 옵션 무시: %s", filters.pyeong)
        else:
            before = len(result)
            result = filter_by_area(result, option.min_area, option.max_area)
            logger.debug("평수 필터 %s: %d→%d개 단지", option.label, before, len(result))
    return result
