"""Admin access dependencies."""

from fastapi import HTTPException, status

from contact_service.shared.config import is_production


def require_non_production() -> None:
    """
    Hide diagnostic endpoints in production.

    Responds 404 rather than 403 so the endpoint's existence is not revealed.
    """
    if is_production():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not Found"
        )
