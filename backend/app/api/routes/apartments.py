"""실거래가 조회 및 단지 통계 엔드포인트"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from app.schemas.requests import ApartmentPayload
from app.services.stats import area_breakdown, average_price, format_price, monthly_averages
from app.tools.real_estate_api import TradeDataError, fetch_apartments, fetch_apartments_by_keyword

logger = logging.getLogger("app.apartments")

router = APIRouter()


@router.get("")
async def list_apartments(
    region_code: str | None = Query(None, alias="regionCode", description="시군구 법정동코드 5자리"),
    year_month: str | None = Query(None, alias="yearMonth", description="계약년월 (YYYYMM)"),
) -> dict:
    """지역코드 + 계약년월로 단지별 매매 실거래를 조회합니다."""
    if not region_code or not year_month:
        raise HTTPException(status_code=400, detail="regionCode와 yearMonth 파라미터가 필요합니다.")

    try:
        groups = await fetch_apartments(region_code, year_month)
    except TradeDataError as exc:
        logger.error("실거래가 조회 실패 (%s, %s): %s", region_code, year_month, exc)
        raise HTTPException(status_code=502, detail=f"실거래가 조회 실패: {exc}") from exc

    return {"apartments": [g.to_dict() for g in groups]}


@router.get("/search")
async def search_apartments(
    region_code: str | None = Query(None, alias="regionCode", description="시군구 법정동코드 5자리"),
    keyword: str | None = Query(None, description="아파트명"),
) -> dict:
    """최근 6개월 거래 중 단지명에 키워드가 포함된 단지를 조회합니다."""
    if not region_code or not keyword or not keyword.strip():
        raise HTTPException(status_code=400, detail="regionCode와 keyword 파라미터가 필요합니다.")

    try:
        groups = await fetch_apartments_by_keyword(region_code, keyword)
    except TradeDataError as exc:
        logger.error("키워드 조회 실패 (%s, %s): %s", region_code, keyword, exc)
        raise HTTPException(status_code=502, detail=f"실거래가 조회 실패: {exc}") from exc

    return {"apartments": [g.to_dict() for g in groups]}


@router.post("/stats")
async def apartment_stats(payload: ApartmentPayload) -> dict:
    """단지 상세/차트 표시용 통계를 계산합니다."""
    group = payload.to_group()
    avg = average_price(group)
    return {
        "avgPrice": avg,
        "avgPriceText": format_price(avg) if avg is not None else "-",
        "transactionCount": len(group.transactions),
        "areas": area_breakdown(group),
        "monthly": monthly_averages(group),
    }
