"""
Registrar service main application

This is the FastAPI application entry point for the registrar service.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import uvicorn

from contoso.store.base.errors import StorageUnavailable, ValidationRejected
from contoso.web.config import get_config
from contoso.web.dependencies import app_state
from contoso.web.exceptions import AppException, ServiceUnavailableError
from contoso.web.middleware import RequestContextMiddleware, get_request_id
from contoso.web.services.registrar import build_registrar

# Import routers
from contoso.web.routers import departments, instructors, students

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI app.

    Handles startup and shutdown:
    - On startup: Build the registrar on the configured backing store
    - On shutdown: Close the storage connection
    """
    config = get_config()
    logging.getLogger().setLevel(config.log_level.upper())

    logger.info("Starting registrar service...")
    logger.info(f"Configuration: storage={config.storage_backend}, "
                f"students_page_size={config.students_page_size}, "
                f"departments_page_size={config.departments_page_size}")

    registrar = build_registrar(config)

    app_state["registrar"] = registrar
    app_state["config"] = config

    logger.info("Registrar service started successfully")

    yield

    logger.info("Shutting down registrar service...")
    registrar.close()
    app_state.clear()
    logger.info("Registrar service shut down complete")


# Create FastAPI app
app = FastAPI(
    title="Contoso Registrar",
    description="Students, departments and instructors with optimistic concurrency",
    version="1.0.0",
    lifespan=lifespan
)

# Add middleware
app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(departments.router, prefix="", tags=["Departments"])
app.include_router(students.router, prefix="", tags=["Students"])
app.include_router(instructors.router, prefix="", tags=["Instructors"])


# Exception handlers
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Handle custom service exceptions."""
    logger.error(
        f"App Exception: {exc.message}",
        extra={"status_code": exc.status_code, "request_id": get_request_id(request)}
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(exc.to_dict())
    )


@app.exception_handler(ValidationRejected)
async def validation_rejected_handler(request: Request, exc: ValidationRejected):
    """Handle field values rejected by the entity schema."""
    logger.error(
        f"Validation rejected: {exc.errors}",
        extra={"request_id": get_request_id(request)}
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation error",
            "details": exc.errors
        }
    )


@app.exception_handler(StorageUnavailable)
async def storage_unavailable_handler(request: Request, exc: StorageUnavailable):
    """Handle storage failures with a generic message and no field detail."""
    logger.error(
        f"Storage unavailable: {exc.message}",
        extra={"request_id": get_request_id(request)},
        exc_info=exc.cause
    )
    error = ServiceUnavailableError()
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict()
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation error",
            "details": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg")}
                for e in exc.errors()
            ]
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "details": str(exc)
        }
    )


# Health check endpoints
@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {
        "service": "Contoso Registrar",
        "status": "running",
        "version": "1.0.0"
    }


@app.get("/health")
async def health():
    return {"status": "ok"}


# CLI entrypoint
if __name__ == "__main__":
    config = get_config()
    uvicorn.run(
        "contoso.web.main:app",
        host=config.app_host,
        port=config.app_port,
        reload=False,
        log_level=config.log_level.lower()
    )
