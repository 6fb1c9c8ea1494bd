"""화면 상태와 상태 전이 함수

모든 변경은 (이전 상태, 이벤트) → 새 상태 형태의 순수 함수로만 일어난다.
검색마다 발급되는 search_token이 현재 상태의 토큰과 다르면 그 결과는 버린다.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from app.schemas.apartment import ApartmentGroup, MapCenter, SearchContext, SearchResult
from app.services.selection import add_to_display
from app.services.stats import summarize
from app.tools.regions import DEFAULT_CENTER, DEFAULT_ZOOM, lookup_region

SEARCH_ERROR_PREFIX = "데이터를 불러오는 중 오류가 발생했습니다: "


class SidebarTab(str, Enum):
    SEARCH = "search"
    DETAIL = "detail"
    CHART = "chart"
    FAVORITES = "favorites"


@dataclass(frozen=True)
class AppState:
    apartments: tuple[ApartmentGroup, ...] = ()
    geocoded: tuple[ApartmentGroup, ...] = ()
    selected: ApartmentGroup | None = None
    search_context: SearchContext = field(default_factory=SearchContext)
    map_center: MapCenter = DEFAULT_CENTER
    map_zoom: int = DEFAULT_ZOOM
    loading: bool = False
    error: str | None = None
    favorites: tuple[ApartmentGroup, ...] = ()
    sidebar_tab: SidebarTab = SidebarTab.SEARCH
    search_token: int = 0

    def is_favorite(self, apartment: ApartmentGroup) -> bool:
        return any(f.key == apartment.key for f in self.favorites)

    def to_dict(self) -> dict[str, Any]:
        return {
            "apartments": [g.to_dict() for g in self.apartments],
            "geocoded": [g.to_dict() for g in self.geocoded],
            "selected": self.selected.to_dict() if self.selected else None,
            "selectedIsFavorite": self.is_favorite(self.selected) if self.selected else False,
            "searchInfo": self.search_context.to_dict(),
            "mapCenter": self.map_center.to_dict(),
            "mapZoom": self.map_zoom,
            "loading": self.loading,
            "error": self.error,
            "favorites": [f.to_dict() for f in self.favorites],
            "sidebarTab": self.sidebar_tab.value,
            "summary": summarize(list(self.apartments)).to_dict(),
        }


# ---------------------------------------------------------------------------
# 검색
# ---------------------------------------------------------------------------


def search_started(state: AppState, token: int) -> AppState:
    return replace(
        state,
        loading=True,
        error=None,
        selected=None,
        sidebar_tab=SidebarTab.SEARCH,
        search_token=token,
    )


def search_succeeded(state: AppState, token: int, result: SearchResult) -> AppState:
    if token != state.search_token:
        return state

    center, zoom = state.map_center, state.map_zoom
    if result.center is not None:
        center, zoom = result.center, DEFAULT_ZOOM

    return replace(
        state,
        apartments=result.apartment_groups,
        geocoded=result.geocoded,
        search_context=result.search_context,
        map_center=center,
        map_zoom=zoom,
        loading=False,
    )


def search_failed(state: AppState, token: int, message: str) -> AppState:
    if token != state.search_token:
        return state
    return replace(state, loading=False, error=SEARCH_ERROR_PREFIX + message)


def error_dismissed(state: AppState) -> AppState:
    return replace(state, error=None)


# ---------------------------------------------------------------------------
# 단지 선택
# ---------------------------------------------------------------------------


def apartment_selected(state: AppState, apartment: ApartmentGroup) -> AppState:
    """단지를 선택한다. 좌표가 없으면 좌표 확보가 끝날 때까지 loading 상태가 된다."""
    context = state.search_context
    region_name, district_name = lookup_region(apartment.region_code)
    if region_name:
        context = replace(
            context,
            region_code=apartment.region_code,
            region_name=region_name,
            district_name=district_name or context.district_name,
        )

    return replace(
        state,
        selected=apartment,
        sidebar_tab=SidebarTab.DETAIL,
        search_context=context,
        geocoded=add_to_display(state.geocoded, apartment),
        loading=not apartment.is_geocoded,
    )


def selection_resolved(state: AppState, token: int, apartment: ApartmentGroup) -> AppState:
    if token != state.search_token:
        return state

    selected = state.selected
    if selected is not None and selected.key == apartment.key:
        selected = apartment
    return replace(
        state,
        selected=selected,
        geocoded=add_to_display(state.geocoded, apartment),
        loading=False,
    )


def selection_failed(state: AppState, token: int) -> AppState:
    """좌표 확보 실패. 선택은 유지하고 지도에만 표시하지 않는다."""
    if token != state.search_token:
        return state
    return replace(state, loading=False)


# ---------------------------------------------------------------------------
# 지도 / 관심 / 탭
# ---------------------------------------------------------------------------


def map_moved(state: AppState, center: MapCenter, zoom: int | None = None) -> AppState:
    return replace(state, map_center=center, map_zoom=zoom if zoom else state.map_zoom)


def favorites_changed(state: AppState, favorites: tuple[ApartmentGroup, ...]) -> AppState:
    return replace(state, favorites=favorites)


def tab_changed(state: AppState, tab: SidebarTab) -> AppState:
    # 상세/차트 탭은 선택된 단지가 있을 때만 열 수 있다
    if tab in (SidebarTab.DETAIL, SidebarTab.CHART) and state.selected is None:
        return state
    return replace(state, sidebar_tab=tab)
