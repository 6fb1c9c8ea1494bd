"""관심 아파트 저장소

저장 슬롯 하나에 관심 단지 목록 전체를 직렬화해 두고, 변경될 때마다 전체를 다시 쓴다.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.kv_store import KeyValueEntry
from app.schemas.apartment import ApartmentGroup

logger = logging.getLogger(__name__)

FAVORITES_KEY = "remt_favorites"


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...


class MemoryKeyValueStore:
    """프로세스 메모리 저장 슬롯 (테스트/데모용)"""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    async def get(self, key: str) -> Any:
        return self._data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class SqlKeyValueStore:
    """kv_store 테이블 기반 저장 슬롯"""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, key: str) -> Any:
        async with self._session_factory() as session:
            entry = await session.get(KeyValueEntry, key)
            return entry.value if entry else None

    async def set(self, key: str, value: Any) -> None:
        async with self._session_factory() as session:
            entry = await session.get(KeyValueEntry, key)
            if entry is None:
                session.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            await session.commit()


class FavoritesStore:
    """관심 단지 목록. 동일 단지 판별은 (단지명, 법정동, 지번)."""

    def __init__(self, kv: KeyValueStore, key: str = FAVORITES_KEY) -> None:
        self._kv = kv
        self._key = key
        self._favorites: list[ApartmentGroup] = []

    @property
    def favorites(self) -> tuple[ApartmentGroup, ...]:
        return tuple(self._favorites)

    async def load(self) -> tuple[ApartmentGroup, ...]:
        """저장 슬롯에서 목록을 읽는다. 손상된 데이터는 빈 목록으로 시작한다."""
        raw = await self._kv.get(self._key)
        if raw is None:
            self._favorites = []
            return self.favorites
        try:
            self._favorites = [ApartmentGroup.from_dict(item) for item in raw]
        except (TypeError, ValueError, AttributeError) as exc:
            logger.error("Failed to parse favorites from storage: %s", exc)
            self._favorites = []
        return self.favorites

    def is_favorite(self, apartment: ApartmentGroup) -> bool:
        return any(f.key == apartment.key for f in self._favorites)

    async def toggle(self, apartment: ApartmentGroup) -> bool:
        """있으면 제거, 없으면 추가하고 즉시 저장한다. 호출 후 관심 여부를 반환한다.

        저장에 실패하면 예외를 그대로 올리고 메모리 목록은 바꾸지 않는다.
        """
        if self.is_favorite(apartment):
            updated = [f for f in self._favorites if f.key != apartment.key]
            added = False
        else:
            updated = [*self._favorites, apartment]
            added = True

        await self._kv.set(self._key, [f.to_dict() for f in updated])
        self._favorites = updated
        logger.debug("관심 단지 %s: %s (%s) → 총 %d개", "추가" if added else "제거", apartment.apt_name, apartment.dong, len(self._favorites))
        return added
