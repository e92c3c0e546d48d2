from fastapi import APIRouter

from app.tillsync.core.config import settings
from app.tillsync.routers.health import router as health_router
from app.tillsync.routers.metrics import router as metrics_router
from app.tillsync.routers.sync import router as sync_router
from app.tillsync.routers.validation import router as validation_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(validation_router, tags=["validation"])
api_router.include_router(sync_router, tags=["sync"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
