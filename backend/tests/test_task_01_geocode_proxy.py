"""Task-01: 카카오 로컬 API geocoding 프록시 테스트

외부 API 호출은 httpx.MockTransport 또는 mock으로 대체한다.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from httpx import AsyncClient

from app.config import settings
from app.schemas.geocode import GeoAddress, GeoQuery, GeoQueryResult, GeoQueryType
from app.tools.kakao_local import GeocodingConfigError, GeocodingError, search_local

ADDRESS_RESPONSE = {
    "meta": {"total_count": 1},
    "documents": [
        {
            "address_name": "서울 강남구 역삼동 737",
            "x": "127.0365",
            "y": "37.5006",
            "address": {"address_name": "서울 강남구 역삼동 737"},
            "road_address": {"address_name": "서울 강남구 테헤란로 152"},
        }
    ],
}

KEYWORD_RESPONSE = {
    "documents": [
        {
            "place_name": "래미안역삼",
            "address_name": "서울 강남구 역삼동 754",
            "road_address_name": "서울 강남구 역삼로 310",
            "x": "127.0440",
            "y": "37.4960",
        }
    ],
}


# ---------------------------------------------------------------------------
# T-1: 카카오 API 클라이언트
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_search_local_address(monkeypatch: pytest.MonkeyPatch) -> None:
    """주소 검색: 인증 헤더/엔드포인트와 응답 매핑"""
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=ADDRESS_RESPONSE)

    result = await search_local(
        GeoQuery(GeoQueryType.ADDRESS, "강남구 역삼동 737"),
        transport=httpx.MockTransport(handler),
    )

    assert seen[0].url.path == "/v2/local/search/address.json"
    assert seen[0].url.params["query"] == "강남구 역삼동 737"
    assert seen[0].headers["Authorization"] == "KakaoAK test-key"

    assert result.found
    first = result.addresses[0]
    assert first.x == "127.0365"
    assert first.y == "37.5006"
    assert first.road_address == "서울 강남구 테헤란로 152"
    assert first.jibun_address == "서울 강남구 역삼동 737"
    assert first.place_name == ""


@pytest.mark.asyncio
async def test_search_local_keyword(monkeypatch: pytest.MonkeyPatch) -> None:
    """키워드 검색은 place_name, road_address_name, address_name을 매핑한다."""
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v2/local/search/keyword.json"
        return httpx.Response(200, json=KEYWORD_RESPONSE)

    result = await search_local(
        GeoQuery(GeoQueryType.KEYWORD, "강남구 역삼동 래미안역삼"),
        transport=httpx.MockTransport(handler),
    )
    assert result.addresses[0] == GeoAddress(
        x="127.0440",
        y="37.4960",
        road_address="서울 강남구 역삼로 310",
        jibun_address="서울 강남구 역삼동 754",
        place_name="래미안역삼",
    )


@pytest.mark.asyncio
async def test_search_local_empty_documents(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"documents": []}))

    result = await search_local(GeoQuery(GeoQueryType.ADDRESS, "없는주소"), transport=transport)
    assert not result.found
    assert result.to_dict() == {"addresses": []}


@pytest.mark.asyncio
async def test_search_local_upstream_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"message": "invalid key"}))

    with pytest.raises(GeocodingError, match="401"):
        await search_local(GeoQuery(GeoQueryType.ADDRESS, "강남구"), transport=transport)


@pytest.mark.asyncio
async def test_search_local_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GeocodingError):
        await search_local(GeoQuery(GeoQueryType.ADDRESS, "강남구"), transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_search_local_without_key() -> None:
    with pytest.raises(GeocodingConfigError):
        await search_local(GeoQuery(GeoQueryType.ADDRESS, "강남구"))


# ---------------------------------------------------------------------------
# T-2: /api/geocode 엔드포인트
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_geocode_endpoint_missing_key(client: AsyncClient) -> None:
    """키가 없으면 query 검사보다 먼저 500"""
    resp = await client.get("/api/geocode")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Server configuration error"}


@pytest.mark.asyncio
async def test_geocode_endpoint_missing_query(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")
    resp = await client.get("/api/geocode", params={"type": "address"})
    assert resp.status_code == 400
    assert "query" in resp.json()["error"]


@pytest.mark.asyncio
async def test_geocode_endpoint_unknown_type(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")
    resp = await client.get("/api/geocode", params={"query": "강남구", "type": "coord"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_geocode_endpoint_success(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")
    result = GeoQueryResult(addresses=(GeoAddress(x="127.0", y="37.5", road_address="테헤란로 152"),))
    mock = AsyncMock(return_value=result)

    with patch("app.api.routes.geocode.search_local", mock):
        resp = await client.get("/api/geocode", params={"query": "강남구 역삼동"})

    assert resp.status_code == 200
    assert resp.json() == {
        "addresses": [
            {"x": "127.0", "y": "37.5", "roadAddress": "테헤란로 152", "jibunAddress": "", "placeName": ""}
        ]
    }
    # type 미지정 시 주소 검색
    assert mock.await_args.args[0] == GeoQuery(GeoQueryType.ADDRESS, "강남구 역삼동")


@pytest.mark.asyncio
async def test_geocode_endpoint_keyword_type(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")
    mock = AsyncMock(return_value=GeoQueryResult())

    with patch("app.api.routes.geocode.search_local", mock):
        resp = await client.get("/api/geocode", params={"query": "래미안", "type": "keyword"})

    assert resp.status_code == 200
    assert resp.json() == {"addresses": []}
    assert mock.await_args.args[0].kind is GeoQueryType.KEYWORD


@pytest.mark.asyncio
async def test_geocode_endpoint_upstream_failure(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "kakao_rest_api_key", "test-key")
    mock = AsyncMock(side_effect=GeocodingError("Kakao API status 503"))

    with patch("app.api.routes.geocode.search_local", mock):
        resp = await client.get("/api/geocode", params={"query": "강남구"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Geocoding 실패"
    assert "503" in body["detail"]
