"""Contact Service - FastAPI server for the marketing-site contact form."""

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_service.shared.admin.routes import router as admin_router
from contact_service.shared.contact.routes import router as contact_router
from contact_service.shared.database import DatabaseHandle
from contact_service.shared.errors import ContactServiceError, ConfigurationError, StorageError
from contact_service.shared.push.routes import router as push_router
from contact_service.shared.request_utils import message_response

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def get_allowed_origins() -> list:
    origins = os.environ.get("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in origins.split(",") if origin.strip()]


def create_app(database: Optional[DatabaseHandle] = None) -> FastAPI:
    app = FastAPI(
        title="Contact Service",
        description="Contact form submissions, email verification and push notifications",
        version="0.1.0"
    )
    app.state.database = database or DatabaseHandle()

    # Warm up the database connection on startup
    @app.on_event("startup")
    async def startup_event():
        try:
            app.state.database.connect()
        except ContactServiceError as e:
            # Log error but don't crash the app; the first request retries
            logging.error(f"Database initialization error on startup: {e.message} ({e.detail})")

    app.include_router(contact_router)
    app.include_router(push_router)
    app.include_router(admin_router)

    origins = get_allowed_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(ContactServiceError)
    async def contact_service_exception_handler(request: Request, exc: ContactServiceError):
        """Render service errors as {message, error?}."""
        if isinstance(exc, (StorageError, ConfigurationError)):
            logging.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
        else:
            logging.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return message_response(exc.status_code, exc.message, exc.detail)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return message_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies are reported as 400 like every other validation failure."""
        return message_response(400, "Invalid request body", str(exc.errors()))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return message_response(500, "Internal server error", str(exc))

    @app.get("/")
    async def root():
        return {"message": "Contact Service API is running", "status": "ok"}

    return app


app = create_app()
