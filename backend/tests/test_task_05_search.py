"""Task-05: 검색 집계 (조회 → 필터 → 동시 좌표 변환) 및 통계 테스트

실거래 조회는 AsyncMock, geocoder는 FakeGeocoder로 대체한다.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from app.schemas.apartment import TransactionRecord
from app.schemas.geocode import GeoQuery, GeoQueryResult
from app.services.search_aggregator import RECENT_MONTHS_LABEL, search
from app.services.stats import (
    area_breakdown,
    average_price,
    format_price,
    monthly_averages,
    sqm_to_pyeong,
    summarize,
)
from app.services.transaction_filter import SearchFilters
from app.tools.real_estate_api import TradeDataError
from app.tools.regions import region_center
from conftest import FakeGeocoder, geo_result, make_group


def _numbered_groups(n: int) -> list:
    return [make_group(f"단지{i:02d}", jibun=str(i), prices=(10000 + i,)) for i in range(n)]


# ---------------------------------------------------------------------------
# T-1: 좌표 변환 대상 제한 및 순서
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_geocodes_at_most_30_in_order():
    groups = _numbered_groups(40)
    geocoder = FakeGeocoder(default=(37.5, 127.0))

    fetch = AsyncMock(return_value=groups)
    with patch("app.services.search_aggregator.fetch_apartments", fetch):
        result = await search("11680", "202401", geocoder=geocoder)

    fetch.assert_awaited_once_with("11680", "202401")
    assert len(result.apartment_groups) == 40
    assert len(result.geocoded) == 30
    assert [g.apt_name for g in result.geocoded] == [g.apt_name for g in groups[:30]]
    # 31번째 이후 단지는 질의하지 않는다
    assert not any("단지30" in q.text for q in geocoder.calls)


@pytest.mark.asyncio
async def test_geocoded_carry_location_and_avg_price():
    group = make_group("래미안역삼", prices=(85000, 90000, 90001))
    geocoder = FakeGeocoder(default=(37.5006, 127.0365))

    with patch("app.services.search_aggregator.fetch_apartments", AsyncMock(return_value=[group])):
        result = await search("11680", "202506", geocoder=geocoder)

    geocoded = result.geocoded[0]
    assert (geocoded.lat, geocoded.lng) == (37.5006, 127.0365)
    assert geocoded.avg_price == 88334
    assert geocoded.transactions == group.transactions
    # 센터는 첫 번째 변환 결과
    assert (result.center.lat, result.center.lng) == (37.5006, 127.0365)


@pytest.mark.asyncio
async def test_geocode_runs_concurrently():
    """변환은 동시에 시작되고 결과는 입력 순서를 따른다."""
    groups = _numbered_groups(5)
    in_flight = 0
    peak = 0

    async def slow_geocoder(query: GeoQuery) -> GeoQueryResult:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        # 앞 단지일수록 늦게 끝난다
        index = int(query.text[-2:]) if query.text[-2:].isdigit() else 0
        await asyncio.sleep(0.01 * (5 - index))
        in_flight -= 1
        return geo_result(37.0 + index, 127.0)

    with patch("app.services.search_aggregator.fetch_apartments", AsyncMock(return_value=groups)):
        result = await search("11680", "202506", geocoder=slow_geocoder)

    assert peak == 5
    assert [g.apt_name for g in result.geocoded] == [g.apt_name for g in groups]


@pytest.mark.asyncio
async def test_failed_geocoding_excluded_but_kept_in_list():
    groups = [make_group("찾는단지", jibun=""), make_group("없는단지", jibun="")]
    geocoder = FakeGeocoder({"강남구 역삼동 찾는단지": (37.5, 127.0)})

    with patch("app.services.search_aggregator.fetch_apartments", AsyncMock(return_value=groups)):
        result = await search("11680", "202506", geocoder=geocoder)

    assert [g.apt_name for g in result.apartment_groups] == ["찾는단지", "없는단지"]
    assert [g.apt_name for g in result.geocoded] == ["찾는단지"]


@pytest.mark.asyncio
async def test_geocoder_exception_does_not_abort_batch():
    groups = [make_group("오류단지", jibun=""), make_group("정상단지", jibun="")]

    async def geocoder(query: GeoQuery) -> GeoQueryResult:
        if "오류단지" in query.text:
            raise RuntimeError("boom")
        return geo_result(37.5, 127.0)

    with patch("app.services.search_aggregator.fetch_apartments", AsyncMock(return_value=groups)):
        result = await search("11680", "202506", geocoder=geocoder)

    # 오류단지는 키워드 단계 실패 후 동 주소 단계에서 좌표를 얻는다
    assert [g.apt_name for g in result.geocoded] == ["오류단지", "정상단지"]


# ---------------------------------------------------------------------------
# T-2: 검색 조건 / 필터 / 센터
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_filters_applied_before_geocoding():
    groups = [make_group("구축", build_year=1990), make_group("신축", build_year=2019)]
    geocoder = FakeGeocoder(default=(37.5, 127.0))

    with patch("app.services.search_aggregator.fetch_apartments", AsyncMock(return_value=groups)):
        result = await search("11680", "202506", filters=SearchFilters(build_year="2016-2020"), geocoder=geocoder)

    assert [g.apt_name for g in result.apartment_groups] == ["신축"]
    assert all("구축" not in q.text for q in geocoder.calls)


@pytest.mark.asyncio
async def test_search_context_fills_region_names():
    with patch("app.services.search_aggregator.fetch_apartments", AsyncMock(return_value=[])):
        result = await search("11680", "202506", geocoder=FakeGeocoder())

    ctx = result.search_context
    assert (ctx.region_code, ctx.year_month, ctx.region_name, ctx.district_name) == ("11680", "202506", "서울특별시", "강남구")
    assert ctx.keyword == ""
    # 변환 결과가 없으면 시도 기본 중심
    assert result.center == region_center("11680")


@pytest.mark.asyncio
async def test_keyword_search_path():
    mock = AsyncMock(return_value=[make_group("래미안역삼")])
    with (
        patch("app.services.search_aggregator.fetch_apartments_by_keyword", mock),
        patch("app.services.search_aggregator.fetch_apartments", AsyncMock()) as month_mock,
    ):
        result = await search("11680", "202506", keyword=" 래미안 ", geocoder=FakeGeocoder())

    mock.assert_awaited_once_with("11680", "래미안")
    month_mock.assert_not_awaited()
    assert result.search_context.year_month == RECENT_MONTHS_LABEL
    assert result.search_context.keyword == "래미안"


@pytest.mark.asyncio
async def test_search_requires_month_or_keyword():
    with pytest.raises(ValueError):
        await search("11680", None, keyword="  ", geocoder=FakeGeocoder())


@pytest.mark.asyncio
async def test_trade_failure_propagates():
    with patch("app.services.search_aggregator.fetch_apartments", AsyncMock(side_effect=TradeDataError("down"))):
        with pytest.raises(TradeDataError):
            await search("11680", "202506", geocoder=FakeGeocoder())


# ---------------------------------------------------------------------------
# T-3: 통계
# ---------------------------------------------------------------------------


def test_average_price_rounds_half_up():
    assert average_price(make_group("A", prices=(10000, 10001))) == 10001
    assert average_price(make_group("A", prices=(85000,))) == 85000
    assert average_price(make_group("A", prices=())) is None


def test_format_price():
    assert format_price(123500) == "12억 3,500만원"
    assert format_price(100000) == "10억"
    assert format_price(8500) == "8,500만원"
    assert format_price(0) == "-"


def test_sqm_to_pyeong():
    assert sqm_to_pyeong(84.99) == 25.7
    assert sqm_to_pyeong(59.0) == 17.8


def test_summarize():
    summary = summarize([make_group("A", prices=(10000, 30000)), make_group("B", prices=(20000,))])
    assert summary.to_dict() == {
        "apartmentCount": 2,
        "transactionCount": 3,
        "avgPrice": 20000,
        "maxPrice": 30000,
        "minPrice": 10000,
    }
    assert summarize([]).transaction_count == 0


def test_area_breakdown_and_monthly():
    group = make_group("A").with_transactions((
        TransactionRecord(2025, 6, 10, 90000, 84.99, 10),
        TransactionRecord(2025, 5, 3, 80000, 59.0, 3),
        TransactionRecord(2025, 5, 20, 81000, 84.99, 7),
    ))
    assert area_breakdown(group) == [
        {"area": 59.0, "pyeong": 17.8, "count": 1},
        {"area": 84.99, "pyeong": 25.7, "count": 2},
    ]
    assert monthly_averages(group) == [
        {"date": "2025-05", "price": 80500, "count": 2},
        {"date": "2025-06", "price": 90000, "count": 1},
    ]


@pytest.mark.asyncio
async def test_stats_endpoint(client: AsyncClient):
    payload = make_group("래미안역삼", prices=(120000, 127000)).to_dict()
    resp = await client.post("/api/apartments/stats", json=payload)
    assert resp.status_code == 200
    data = resp.json()
    assert data["avgPrice"] == 123500
    assert data["avgPriceText"] == "12억 3,500만원"
    assert data["transactionCount"] == 2
