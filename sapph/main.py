import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from . import db as _db
from .config import get_settings
from .routers import conversations, discovery, likes, passes, presence, profiles

LOGGER = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(_: FastAPI):
    await _db.connect_to_mongo()
    try:
        yield
    finally:
        await _db.close_mongo_connection()


app = FastAPI(title="Sapph API", lifespan=lifespan)
settings = get_settings()

LOGGER.info("[CORS] allow_origins=%s", settings.cors_origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


# Simple slow-request logger
@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    t0 = time.time()
    response = await call_next(request)
    dt = (time.time() - t0) * 1000
    if dt >= get_settings().slow_request_ms:
        LOGGER.warning(
            "[perf] slow request %s %s %dms status=%s",
            request.method,
            request.url.path,
            int(dt),
            response.status_code,
        )
    return response


@app.exception_handler(PyMongoError)
async def storage_error_handler(request: Request, exc: PyMongoError):
    LOGGER.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "storage unavailable"})


# Routers
app.include_router(profiles.router, prefix="/api", tags=["profiles"])
app.include_router(discovery.router, prefix="/api", tags=["discovery"])
app.include_router(likes.router, prefix="/api", tags=["likes"])
app.include_router(passes.router, prefix="/api", tags=["passes"])
app.include_router(conversations.router, prefix="/api", tags=["conversations"])
app.include_router(presence.router, prefix="/api", tags=["presence"])


@app.get("/")
async def root():
    return {"status": "sapph-api-ok"}


@app.get("/api/health/db")
async def db_health():
    return {
        "mongo": "connected" if _db.is_connected() else "disconnected",
        "db": str(get_settings().mongo_db),
    }
