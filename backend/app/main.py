import logging
import sys
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.deps import app_session
from app.api.router import api_router
from app.config import settings
from app.database import engine, Base
from app.models import kv_store  # noqa: F401  테이블 등록


def _setup_logging() -> None:
    """애플리케이션 로깅을 설정한다."""
    log_format = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"
    date_format = "%H:%M:%S"
    level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        stream=sys.stderr,
        force=True,
    )

    # 외부 라이브러리 로그는 WARNING 이상만, 앱 로그만 상세 출력
    logging.getLogger().setLevel(logging.WARNING)
    logging.getLogger("app").setLevel(level)

    # httpx: 요청마다 INFO 로그를 남기므로 WARNING 이상만 출력
    logging.getLogger("httpx").setLevel(logging.WARNING)


_setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: create tables, load favorites
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await app_session.start()
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="아파트 실거래가 지도",
    description="국토교통부 아파트 매매 실거래가를 단지별로 묶어 지도 좌표와 함께 제공합니다.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")
