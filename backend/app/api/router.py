from fastapi import APIRouter

from app.api.routes import apartments, favorites, geocode, health, regions, session

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(geocode.router, prefix="/geocode", tags=["geocode"])
api_router.include_router(apartments.router, prefix="/apartments", tags=["apartments"])
api_router.include_router(regions.router, prefix="/regions", tags=["regions"])
api_router.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
api_router.include_router(session.router, prefix="/session", tags=["session"])
