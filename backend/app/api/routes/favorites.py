"""관심 아파트 엔드포인트"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_app_session
from app.schemas.requests import ApartmentPayload
from app.services.session import AppSession

router = APIRouter()


@router.get("")
async def list_favorites(session: AppSession = Depends(get_app_session)) -> dict:
    return {"favorites": [f.to_dict() for f in session.state.favorites]}


@router.post("/toggle")
async def toggle_favorite(payload: ApartmentPayload, session: AppSession = Depends(get_app_session)) -> dict:
    """관심 목록에 없으면 추가, 있으면 제거합니다. 변경 내용은 즉시 저장됩니다."""
    is_favorite = await session.toggle_favorite(payload.to_group())
    return {
        "favorites": [f.to_dict() for f in session.state.favorites],
        "isFavorite": is_favorite,
    }
