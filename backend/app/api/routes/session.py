"""화면 상태(검색/선택/지도/관심) 엔드포인트"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_app_session
from app.schemas.apartment import MapCenter
from app.schemas.requests import ApartmentPayload, MapMoveRequest, SearchRequest, TabRequest
from app.services.session import AppSession

router = APIRouter()


@router.get("")
async def get_state(session: AppSession = Depends(get_app_session)) -> dict:
    return session.state.to_dict()


@router.post("/search")
async def run_search(payload: SearchRequest, session: AppSession = Depends(get_app_session)) -> dict:
    """검색을 실행합니다. 조회 실패는 state.error로 전달됩니다."""
    if not payload.year_month and not (payload.keyword or "").strip():
        raise HTTPException(status_code=400, detail="yearMonth 또는 keyword가 필요합니다.")

    state = await session.search(
        payload.region_code,
        payload.year_month,
        payload.keyword,
        payload.filters,
        payload.region_name,
        payload.district_name,
    )
    return state.to_dict()


@router.post("/select")
async def select_apartment(payload: ApartmentPayload, session: AppSession = Depends(get_app_session)) -> dict:
    """단지를 선택합니다. 좌표를 찾지 못해도 선택은 유지됩니다."""
    state = await session.select(payload.to_group())
    return state.to_dict()


@router.post("/map")
async def move_map(payload: MapMoveRequest, session: AppSession = Depends(get_app_session)) -> dict:
    return session.move_map(MapCenter(payload.lat, payload.lng), payload.zoom).to_dict()


@router.post("/tab")
async def change_tab(payload: TabRequest, session: AppSession = Depends(get_app_session)) -> dict:
    return session.change_tab(payload.tab).to_dict()


@router.delete("/error")
async def dismiss_error(session: AppSession = Depends(get_app_session)) -> dict:
    return session.dismiss_error().to_dict()
