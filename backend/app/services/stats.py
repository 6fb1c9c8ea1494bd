"""거래 통계 및 표시용 변환 (통계 카드, 상세 패널, 가격 차트)"""

from __future__ import annotations

import math
from dataclasses import dataclass
from statistics import mean

from app.schemas.apartment import ApartmentGroup

# ㎡ → 평 변환 계수 (1평 = 3.305785㎡)
SQM_PER_PYEONG = 3.305785


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def average_price(group: ApartmentGroup) -> int | None:
    """단지 거래가 평균 (만원, 반올림). 거래가 없으면 None."""
    if not group.transactions:
        return None
    return round_half_up(sum(t.price for t in group.transactions) / len(group.transactions))


def sqm_to_pyeong(area: float) -> float:
    return round(area / SQM_PER_PYEONG, 1)


def format_price(price: int) -> str:
    """만원 단위 금액 → '12억 3,500만원'"""
    if price <= 0:
        return "-"
    eok, man = divmod(price, 10_000)
    if eok and man:
        return f"{eok}억 {man:,}만원"
    if eok:
        return f"{eok}억"
    return f"{man:,}만원"


@dataclass(frozen=True)
class SearchSummary:
    apartment_count: int = 0
    transaction_count: int = 0
    avg_price: int = 0
    max_price: int = 0
    min_price: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "apartmentCount": self.apartment_count,
            "transactionCount": self.transaction_count,
            "avgPrice": self.avg_price,
            "maxPrice": self.max_price,
            "minPrice": self.min_price,
        }


def summarize(groups: list[ApartmentGroup]) -> SearchSummary:
    """검색 결과 전체의 거래 건수와 가격 범위"""
    prices = [t.price for g in groups for t in g.transactions]
    if not prices:
        return SearchSummary(apartment_count=len(groups))
    return SearchSummary(
        apartment_count=len(groups),
        transaction_count=len(prices),
        avg_price=round_half_up(mean(prices)),
        max_price=max(prices),
        min_price=min(prices),
    )


def area_breakdown(group: ApartmentGroup) -> list[dict]:
    """전용면적 종류별 거래 건수 (면적 오름차순)"""
    counts: dict[float, int] = {}
    for t in group.transactions:
        counts[t.area] = counts.get(t.area, 0) + 1
    return [
        {"area": area, "pyeong": sqm_to_pyeong(area), "count": counts[area]}
        for area in sorted(counts)
    ]


def monthly_averages(group: ApartmentGroup) -> list[dict]:
    """거래 데이터를 월별 평균가로 집계한다 (차트용, 오래된 순)."""
    monthly: dict[str, list[int]] = {}
    for t in group.transactions:
        key = f"{t.deal_year}-{t.deal_month:02d}"
        monthly.setdefault(key, []).append(t.price)
    return [
        {"date": k, "price": round_half_up(mean(v)), "count": len(v)}
        for k, v in sorted(monthly.items())
    ]
