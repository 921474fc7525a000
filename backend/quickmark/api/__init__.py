from fastapi import APIRouter

from .routes import auth, bookmarks, config, health, metadata

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(config.router, prefix="/config", tags=["config"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(bookmarks.router, prefix="/bookmarks", tags=["bookmarks"])
api_router.include_router(metadata.router, tags=["metadata"])
