"""Admin routes for inspecting deployment configuration."""

from typing import Dict

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from contact_service.shared.admin.dependencies import require_non_production
from contact_service.shared.config import describe_environment
from contact_service.shared.database import utcnow

router = APIRouter(tags=["admin"])


class DebugEnvResponse(BaseModel):
    """Response schema for the environment check."""
    message: str
    timestamp: str
    relevant_vars: Dict[str, str]


@router.get(
    "/debug-env",
    response_model=DebugEnvResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_non_production)],
)
def debug_env():
    """
    Report which configuration variables are set.

    Values are never returned, only "Set" or "Not set".
    """
    return DebugEnvResponse(
        message="Environment Variables Debug",
        timestamp=utcnow().isoformat() + "Z",
        relevant_vars=describe_environment(),
    )
