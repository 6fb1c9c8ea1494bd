from fastapi import APIRouter

from app.tools.regions import DISTRICTS, REGIONS

router = APIRouter()


@router.get("")
async def list_regions() -> list[dict]:
    """시도 및 시군구 목록"""
    return [
        {
            "code": code,
            "name": name,
            "districts": [{"code": d_code, "name": d_name} for d_code, d_name in DISTRICTS.get(code, [])],
        }
        for code, name in REGIONS.items()
    ]
