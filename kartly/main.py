# kartly/main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import uuid

from kartly.core.config import settings
from kartly.core.exceptions import KartlyError
from kartly.core.logging import logger
from kartly.db.database import init_db, close_db
from kartly.services.realtime import ConnectionManager
from kartly.api.v1.router import api_router
from kartly.api.v1 import websocket


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Kartly API")
    await init_db()
    app.state.connection_manager = ConnectionManager()

    yield

    # Shutdown
    logger.info("Shutting down Kartly API")
    await close_db()


app = FastAPI(
    title="Kartly API",
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=("/api/docs" if settings.ENVIRONMENT == "development" else None),
    redoc_url=("/api/redoc" if settings.ENVIRONMENT == "development" else None),
    lifespan=lifespan
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request id and timing middleware
@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(process_time)
    logger.debug(
        f"{request.method} {request.url.path} -> {response.status_code} in {process_time * 1000:.1f}ms",
        extra={"request_id": request_id},
    )
    return response


# Include routers
app.include_router(api_router, prefix=settings.API_V1_STR)
# Websocket routes
app.include_router(websocket.router, prefix=settings.API_V1_STR, tags=["websocket"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.exception_handler(KartlyError)
async def kartly_exception_handler(request: Request, exc: KartlyError):
    """Domain errors carry their own status and machine-readable reason"""
    logger.info(
        f"{exc.reason}: {exc.message}",
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.exception("Unhandled exception while handling request", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
