"""아파트 실거래가 지도 – API 서버 엔트리포인트"""

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from app.config import settings

if __name__ == "__main__":
    uvicorn.run("app.main:app", host=settings.host, port=settings.port, reload=settings.debug)
