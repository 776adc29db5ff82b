import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from worktime.core.config import settings
from worktime.core.errors import register_error_handlers
from worktime.api.v1.timer import router as timer_router
from worktime.api.v1.qr import router as qr_router
from worktime.api.v1.workdays import router as workdays_router
from worktime.api.v1.holidays import router as holidays_router
from worktime.db.mongo import get_mongo_client, close_mongo_client
from worktime.db.mongo_indexes import ensure_indexes

app = FastAPI(title="Worktime Backend")

# Build CORS allowlist from local dev + configured origins
_base_origins = {
    "http://localhost:5173",
    "http://127.0.0.1:5173",
}
if settings.FRONTEND_BASE_URL:
    _base_origins.add(settings.FRONTEND_BASE_URL)
for o in settings.ALLOWED_ORIGINS:
    _base_origins.add(o)
# Normalize by stripping trailing slashes to match Origin header format
_allowed_origins = sorted({o.rstrip('/') for o in _base_origins if o})

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_origin_regex=r"^http(s)?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.get("/")
def read_root():
    return {"message": "Welcome to Worktime Backend"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


# Mount API routers
app.include_router(timer_router, prefix="/api/v1")
app.include_router(qr_router, prefix="/api/v1")
app.include_router(workdays_router, prefix="/api/v1")
app.include_router(holidays_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup():
    logger = logging.getLogger("uvicorn.error")
    logger.setLevel(settings.LOG_LEVEL)
    # Initialize Mongo client
    get_mongo_client()
    # Create required indexes (non-fatal on failure)
    try:
        await ensure_indexes()
    except Exception as exc:
        logger.warning("Mongo index initialization failed: %s", exc)


@app.on_event("shutdown")
async def on_shutdown():
    close_mongo_client()
