from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.api.deps import get_app_session
from app.config import settings
from app.database import Base
from app.main import app
from app.models import kv_store  # noqa: F401
from app.schemas.apartment import ApartmentGroup, TransactionRecord
from app.schemas.geocode import GeoAddress, GeoQuery, GeoQueryResult
from app.services.favorites import FavoritesStore, MemoryKeyValueStore
from app.services.session import AppSession


@pytest.fixture(autouse=True)
def _clear_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    # 로컬 .env의 실제 키로 외부 API를 호출하지 않도록 기본값은 미설정
    monkeypatch.setattr(settings, "kakao_rest_api_key", "")
    monkeypatch.setattr(settings, "molit_api_key", "")


def make_group(
    apt_name: str,
    dong: str = "역삼동",
    jibun: str = "737",
    build_year: int = 2015,
    prices: tuple[int, ...] = (85000,),
    area: float = 84.99,
    region_code: str = "11680",
    **kwargs,
) -> ApartmentGroup:
    """테스트용 단지 (거래 1건당 2025년 6월, 일자 증가)"""
    txns = tuple(
        TransactionRecord(deal_year=2025, deal_month=6, deal_day=i + 1, price=p, area=area, floor=5)
        for i, p in enumerate(prices)
    )
    return ApartmentGroup(
        apt_name=apt_name,
        dong=dong,
        jibun=jibun,
        build_year=build_year,
        region_code=region_code,
        transactions=txns,
        **kwargs,
    )


def geo_result(lat: float, lng: float, place_name: str = "") -> GeoQueryResult:
    return GeoQueryResult(addresses=(GeoAddress(x=str(lng), y=str(lat), place_name=place_name),))


class FakeGeocoder:
    """질의 기록용 geocoder. found 목록에 있는 질의 문자열만 좌표를 돌려준다."""

    def __init__(self, found: dict[str, tuple[float, float]] | None = None, *, default=None) -> None:
        self.found = found or {}
        self.default = default
        self.calls: list[GeoQuery] = []

    async def __call__(self, query: GeoQuery) -> GeoQueryResult:
        self.calls.append(query)
        if query.text in self.found:
            return geo_result(*self.found[query.text])
        if self.default is not None:
            return geo_result(*self.default)
        return GeoQueryResult()


@pytest_asyncio.fixture
async def app_session() -> AppSession:
    session = AppSession(FavoritesStore(MemoryKeyValueStore()), geocoder=FakeGeocoder(default=(37.5, 127.03)))
    await session.start()
    return session


@pytest_asyncio.fixture
async def client(app_session: AppSession) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_app_session] = lambda: app_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
