from pathlib import Path

from pydantic_settings import BaseSettings

# .env 파일 탐색: backend/.env → 프로젝트 루트/.env
_backend_dir = Path(__file__).resolve().parent.parent
_env_candidates = [_backend_dir / ".env", _backend_dir.parent / ".env"]
_env_file = next((p for p in _env_candidates if p.exists()), ".env")


class Settings(BaseSettings):
    model_config = {"env_file": str(_env_file), "env_file_encoding": "utf-8", "extra": "ignore"}

    # Application
    app_env: str = "development"
    debug: bool = True

    # Database (관심 아파트 저장소)
    database_url: str = "sqlite+aiosqlite:///./remt.db"

    # Kakao Local API (geocoding)
    kakao_rest_api_key: str = ""
    geocode_timeout: float = 20.0

    # 국토교통부 실거래가 API
    molit_api_key: str = ""
    trade_api_timeout: float = 30.0

    # Search pipeline
    geocode_fanout_limit: int = 30
    keyword_search_months: int = 6

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # Server
    host: str = "0.0.0.0"
    port: int = 3001


settings = Settings()
