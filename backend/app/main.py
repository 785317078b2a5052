"""
Trainer Sheets Backend - FastAPI Application
"""
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import EmptyUpdateError, NotFoundError, PersistenceError
from app.core.logging import setup_logging, get_logger
from app.api import clients, debug, workouts
from app.services.entities import EntityService
from app.services.store import TabularStore, build_store

logger = get_logger(__name__)

VERSION = "1.0.0"

ERROR_STATUS = {
    NotFoundError: 404,
    EmptyUpdateError: 400,
}


def status_for(exc: PersistenceError) -> int:
    """HTTP status for a persistence error, by type."""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 500


def format_validation_errors(exc: RequestValidationError) -> str:
    """Join pydantic validation errors into one readable message."""
    messages = []
    for error in exc.errors():
        message = error.get("msg", "")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query"))
        messages.append(f"{field}: {message}" if field else message)
    return "; ".join(messages)


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("Request failed", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("Request rejected", path=request.url.path, code=exc.code)
    return JSONResponse(status_code=status, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = format_validation_errors(exc)
    logger.info("Validation failed", path=request.url.path, error=message)
    return JSONResponse(status_code=400, content={"error": message, "code": "validation_error"})


def create_app(store: Optional[TabularStore] = None) -> FastAPI:
    """
    Build the application.

    Args:
        store: Store to serve from. Defaults to the backend selected by
            STORE_BACKEND.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        # Startup
        setup_logging()
        logger.info("Starting Trainer Sheets Backend", version=VERSION)
        active_store = store or build_store(settings)
        await active_store.open()
        service = EntityService(active_store)
        await service.initialize()
        app.state.store = active_store
        app.state.service = service
        logger.info("Store initialized", backend=type(active_store).__name__)

        yield

        # Shutdown
        logger.info("Shutting down Trainer Sheets Backend")
        await active_store.close()

    app = FastAPI(
        title="Trainer Sheets API",
        description="Client and workout tracking for personal trainers, stored in Google Sheets",
        version=VERSION,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PersistenceError, persistence_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Include routers
    app.include_router(clients.router, prefix="/api/clients", tags=["clients"])
    app.include_router(workouts.router, prefix="/api/workouts", tags=["workouts"])
    app.include_router(debug.router, prefix="/api/debug", tags=["debug"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "trainer-sheets-backend"}

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)
