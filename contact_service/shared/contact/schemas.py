"""Pydantic schemas for contact API."""

from pydantic import BaseModel
from typing import Optional


class ContactRequest(BaseModel):
    """
    Schema for contact form submission.

    Every field is optional at the schema level so that missing required
    fields are reported by the pipeline with a single fixed message.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    service: Optional[str] = None
    budget: Optional[str] = None
    deadline: Optional[str] = None
    message: Optional[str] = None


class MessageResponse(BaseModel):
    """Body shape shared by all JSON responses."""
    message: str
    error: Optional[str] = None
