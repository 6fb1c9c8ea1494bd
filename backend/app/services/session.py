"""검색/선택/관심 동작을 상태 전이로 연결하는 세션"""

from __future__ import annotations

import logging

from app.schemas.apartment import ApartmentGroup, MapCenter
from app.services import app_state as transitions
from app.services import search_aggregator
from app.services.address_resolver import Geocoder
from app.services.app_state import AppState, SidebarTab
from app.services.favorites import FavoritesStore
from app.services.selection import find_displayed, resolve_selection
from app.services.transaction_filter import SearchFilters
from app.tools.real_estate_api import TradeDataError

logger = logging.getLogger(__name__)


class AppSession:
    """단일 사용자 화면 상태를 소유한다.

    검색마다 단조 증가 토큰을 발급하고, 더 새로운 검색이 시작된 뒤 도착한
    이전 검색/선택 결과는 상태에 반영하지 않는다.
    """

    def __init__(self, favorites: FavoritesStore, geocoder: Geocoder | None = None) -> None:
        self._favorites = favorites
        self._geocoder = geocoder
        self._state = AppState()
        self._last_token = 0

    @property
    def state(self) -> AppState:
        return self._state

    def _issue_token(self) -> int:
        self._last_token += 1
        return self._last_token

    async def start(self) -> AppState:
        favorites = await self._favorites.load()
        self._state = transitions.favorites_changed(self._state, favorites)
        return self._state

    async def search(
        self,
        region_code: str,
        year_month: str | None = None,
        keyword: str | None = None,
        filters: SearchFilters | None = None,
        region_name: str = "",
        district_name: str = "",
    ) -> AppState:
        token = self._issue_token()
        self._state = transitions.search_started(self._state, token)

        try:
            result = await search_aggregator.search(
                region_code,
                year_month,
                keyword,
                filters,
                region_name,
                district_name,
                geocoder=self._geocoder,
            )
        except (TradeDataError, ValueError) as exc:
            logger.error("검색 실패 (%s, %s, %s): %s", region_code, year_month, keyword, exc)
            self._state = transitions.search_failed(self._state, token, str(exc))
            return self._state
        except Exception as exc:
            logger.exception("검색 중 예기치 않은 오류 (%s, %s, %s)", region_code, year_month, keyword)
            self._state = transitions.search_failed(self._state, token, str(exc) or type(exc).__name__)
            return self._state

        if token != self._last_token:
            logger.info("이전 검색 결과 폐기 (token=%d, latest=%d)", token, self._last_token)
        self._state = transitions.search_succeeded(self._state, token, result)
        return self._state

    async def select(self, apartment: ApartmentGroup) -> AppState:
        """단지를 선택한다. 이미 좌표 변환된 단지가 있으면 그것을 쓴다."""
        apartment = find_displayed(self._state.geocoded, apartment) or apartment
        token = self._state.search_token
        self._state = transitions.apartment_selected(self._state, apartment)
        if apartment.is_geocoded:
            return self._state

        resolved = await resolve_selection(apartment, self._state.search_context, self._geocoder)
        if resolved.is_geocoded:
            self._state = transitions.selection_resolved(self._state, token, resolved)
        else:
            self._state = transitions.selection_failed(self._state, token)
        return self._state

    async def toggle_favorite(self, apartment: ApartmentGroup | None = None) -> bool:
        """관심 단지를 토글한다. apartment가 없으면 현재 선택된 단지를 쓴다."""
        target = apartment or self._state.selected
        if target is None:
            raise ValueError("선택된 단지가 없습니다.")
        added = await self._favorites.toggle(target)
        self._state = transitions.favorites_changed(self._state, self._favorites.favorites)
        return added

    def move_map(self, center: MapCenter, zoom: int | None = None) -> AppState:
        self._state = transitions.map_moved(self._state, center, zoom)
        return self._state

    def change_tab(self, tab: SidebarTab) -> AppState:
        self._state = transitions.tab_changed(self._state, tab)
        return self._state

    def dismiss_error(self) -> AppState:
        self._state = transitions.error_dismissed(self._state)
        return self._state
