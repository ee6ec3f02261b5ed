import logging
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import CORS_ALLOWED_ORIGINS, DEV_CORS_ORIGINS, PORT
from date_utils import get_current_utc_time
from db import Trip, db_manager
from trips import router as trips_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Route Nest",
    description="Trips with ordered stops, route segments and derived stats.",
)

# Explicit origins from the environment win over the local dev servers
if CORS_ALLOWED_ORIGINS:
    logger.info("CORS restricted to: %s", CORS_ALLOWED_ORIGINS)
else:
    logger.warning(
        "CORS_ALLOWED_ORIGINS is empty; allowing local dev origins %s",
        DEV_CORS_ORIGINS,
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS or DEV_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(trips_router)


@app.get("/api/health", tags=["Status"])
async def health() -> dict[str, Any]:
    """Report whether the trip store answers queries."""
    mongodb: dict[str, Any] = {"status": "healthy", "message": "Connected"}
    try:
        await Trip.find_one()
    except Exception as exc:
        logger.warning("Health check could not reach MongoDB: %s", exc)
        mongodb = {
            "status": "error",
            "message": "MongoDB unavailable",
            "detail": str(exc),
        }

    return {
        "status": mongodb["status"],
        "checked_at": get_current_utc_time().isoformat(),
        "mongodb": mongodb,
    }


@app.on_event("startup")
async def startup_event():
    """Connect to MongoDB and register the trip document with Beanie."""
    try:
        await db_manager.init_beanie()
    except Exception:
        logger.critical("Route Nest failed to start", exc_info=True)
        raise
    logger.info("Route Nest started")


@app.on_event("shutdown")
async def shutdown_event():
    await db_manager.cleanup_connections()
    logger.info("Route Nest stopped")


@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    logger.warning("404 on %s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"error": "Not found", "detail": exc.detail},
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    """Log the failure under an id the client can quote back."""
    error_id = str(uuid.uuid4())
    logger.error(
        "Unhandled error %s on %s %s: %s",
        error_id,
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "detail": str(exc),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=PORT, log_level="info", reload=True)
