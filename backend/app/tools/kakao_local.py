"""카카오 로컬 API 클라이언트 (주소 검색 / 키워드 검색)"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from app.config import settings
from app.schemas.geocode import GeoQuery, GeoQueryResult, GeoQueryType, KakaoSearchResponse

logger = logging.getLogger(__name__)

KAKAO_LOCAL_BASE_URL = "https://dapi.kakao.com/v2/local/search"

SEARCH_ENDPOINTS: dict[GeoQueryType, str] = {
    GeoQueryType.ADDRESS: "/address.json",
    GeoQueryType.KEYWORD: "/keyword.json",
}


class GeocodingError(Exception):
    """카카오 API 호출 실패 (네트워크 오류, 2xx 이외 응답, 응답 형식 오류)"""


class GeocodingConfigError(GeocodingError):
    """REST API 키 미설정"""


async def search_local(
    query: GeoQuery,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GeoQueryResult:
    """카카오 로컬 API로 주소 또는 키워드를 좌표로 변환한다.

    Args:
        query: 검색 유형과 검색어
        transport: 테스트용 httpx transport

    Returns:
        GeoQueryResult (결과가 없으면 addresses가 빈 튜플)

    Raises:
        GeocodingConfigError: KAKAO_REST_API_KEY 미설정
        GeocodingError: 네트워크 오류 또는 비정상 응답
    """
    api_key = settings.kakao_rest_api_key
    if not api_key:
        raise GeocodingConfigError("KAKAO_REST_API_KEY가 설정되지 않았습니다.")

    url = f"{KAKAO_LOCAL_BASE_URL}{SEARCH_ENDPOINTS[query.kind]}"
    headers = {"Authorization": f"KakaoAK {api_key}"}

    try:
        async with httpx.AsyncClient(timeout=settings.geocode_timeout, transport=transport) as client:
            response = await client.get(url, headers=headers, params={"query": query.text})
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        body = (exc.response.text or "")[:500]
        logger.warning("Kakao API 오류 [%d] %s '%s': %s", exc.response.status_code, query.kind.value, query.text, body)
        raise GeocodingError(f"Kakao API status {exc.response.status_code}") from exc
    except httpx.HTTPError as exc:
        logger.warning("Kakao API 호출 실패 %s '%s': %s", query.kind.value, query.text, exc)
        raise GeocodingError(str(exc) or type(exc).__name__) from exc

    try:
        parsed = KakaoSearchResponse.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise GeocodingError(f"Kakao API 응답 형식 오류: {exc}") from exc

    result = parsed.to_result()
    logger.debug("Kakao %s '%s': %d건", query.kind.value, query.text, len(result.addresses))
    return result
