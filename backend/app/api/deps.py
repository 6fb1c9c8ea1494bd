from app.database import async_session
from app.services.favorites import FavoritesStore, SqlKeyValueStore
from app.services.session import AppSession

# 단일 사용자 세션 (관심 아파트는 kv_store 테이블에 보관)
app_session = AppSession(FavoritesStore(SqlKeyValueStore(async_session)))


async def get_app_session() -> AppSession:
    return app_session
