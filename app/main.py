"""
FastAPI application entry point.
Includes request timing middleware, domain/global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from app.routers import zones, traffic, reports, recommendation, health
from app.database import create_tables, dispose_engine
from app.exceptions import ParkingError
from app.config import settings
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Campus Smart Parking API",
    description="Zone occupancy, access traffic, crowdsourced reports and best-route recommendation.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (web/mobile clients call the API directly) ─────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    logger.info(f"{request.method} {request.url.path} rejected: [{exc.code}] {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors()), "code": "validation_error"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(zones.router,          prefix="/api/v1", tags=["Zones"])
app.include_router(traffic.router,        prefix="/api/v1", tags=["Traffic"])
app.include_router(reports.router,        prefix="/api/v1", tags=["Reports"])
app.include_router(recommendation.router, prefix="/api/v1", tags=["Best route"])
app.include_router(health.router,         prefix="/api/v1", tags=["Health"])


# ── Startup / Shutdown ───────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("Campus parking backend starting up...")
    create_tables()
    logger.info("Database tables ready")
    mode = "live" if settings.TRAFFIC_API_KEY else "synthetic (no TRAFFIC_API_KEY)"
    logger.info(f"Traffic data: {mode} for access points {list(settings.ACCESS_POINTS.keys())}")
    logger.info(f"Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")


@app.on_event("shutdown")
async def shutdown():
    logger.info("Campus parking backend shutting down...")
    dispose_engine()
