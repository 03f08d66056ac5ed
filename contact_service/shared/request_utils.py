"""Helpers shared by the route modules."""

from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from contact_service.shared.config import is_production


def get_client_ip(request: Request) -> str:
    """Get client IP address for rate limiting."""
    # Check for forwarded IP (from proxy/load balancer)
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Take the first IP in the chain
        return forwarded.split(",")[0].strip()
    # Fallback to direct connection
    return request.client.host if request.client else "unknown"


def message_response(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    """
    Build a `{message, error?}` JSON response.

    `error` carries internal detail and is dropped in production.
    """
    content = {"message": message}
    if error and not is_production():
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)
