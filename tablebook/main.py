from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tablebook.config import get_settings
from tablebook.database import close_db, get_session_context, init_db
from tablebook.exceptions import ReservationError
from tablebook.services.seed_service import SeedService

# Import all models to register them with Base BEFORE init_db
from tablebook.models import Reservation, Restaurant, Table  # noqa: F401

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
LOGGER = logging.getLogger("tablebook")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown events."""
    try:
        await init_db()
        LOGGER.info("Database initialized")
    except Exception as e:
        LOGGER.error("Database initialization failed: %s", e)
        raise

    # Auto-seed default data in development if DB is empty
    if settings.is_development:
        async with get_session_context() as session:
            result = await SeedService(session).ensure_default_data()
            if result["restaurants_created"] > 0:
                LOGGER.info("Seeded default data: %s", result)
            else:
                LOGGER.info("Default data already present; skipping seeding")

    yield

    await close_db()


app = FastAPI(
    title="Tablebook",
    description="Table availability and reservation allocation API",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS (needed for browser preflight requests)
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    """Expected booking failures become plain JSON errors with their status code."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/healthz")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "service": "tablebook"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Tablebook",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/healthz",
    }


# Include API routers
from tablebook.api import availability_router, reservations_router  # noqa: E402

app.include_router(availability_router)
app.include_router(reservations_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
