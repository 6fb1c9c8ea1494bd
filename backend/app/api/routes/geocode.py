"""Kakao 로컬 API geocoding 프록시"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.config import settings
from app.schemas.geocode import GeoQuery, GeoQueryType
from app.tools.kakao_local import GeocodingConfigError, GeocodingError, search_local

logger = logging.getLogger("app.geocode")

router = APIRouter()


@router.get("")
async def geocode(
    query: str | None = Query(None, description="검색할 주소 또는 장소명"),
    query_type: str = Query("address", alias="type", description="address (주소 검색) 또는 keyword (키워드 검색)"),
) -> dict:
    """주소/키워드를 좌표로 변환합니다.

    응답: {"addresses": [{x, y, roadAddress, jibunAddress, placeName}]}
    """
    logger.info("Geocoding request for query: '%s' (type=%s)", query, query_type)

    if not settings.kakao_rest_api_key:
        logger.error("KAKAO_REST_API_KEY is missing")
        return JSONResponse(status_code=500, content={"error": "Server configuration error"})

    if not query:
        return JSONResponse(status_code=400, content={"error": "query 파라미터가 필요합니다."})

    try:
        kind = GeoQueryType(query_type)
    except ValueError:
        return JSONResponse(status_code=400, content={"error": f"지원하지 않는 type입니다: {query_type}"})

    try:
        result = await search_local(GeoQuery(kind, query))
    except GeocodingConfigError:
        logger.error("KAKAO_REST_API_KEY is missing")
        return JSONResponse(status_code=500, content={"error": "Server configuration error"})
    except GeocodingError as exc:
        logger.error("Geocoding API 호출 오류: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Geocoding 실패", "detail": str(exc)})

    logger.debug("Geocoding success. Found %d documents.", len(result.addresses))
    return result.to_dict()
