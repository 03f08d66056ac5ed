"""Database models for contact submissions, rate limiting and blacklisting."""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Text, Index

from contact_service.shared.database import Base, utcnow


class ContactSubmission(Base):
    """An accepted contact form submission."""
    __tablename__ = "contact_submissions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    service = Column(String, nullable=True)
    budget = Column(String, nullable=True)
    deadline = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    verify_token = Column(String, unique=True, nullable=True, index=True)  # Cleared once verified
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ContactRateLimit(Base):
    """One row per accepted submission, counted over a trailing window."""
    __tablename__ = "contact_rate_limits"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    source_address = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('idx_contact_rate_limit_address_created', 'source_address', 'created_at'),
    )


class ContactBlacklist(Base):
    """Append-only record of addresses and emails caught submitting abuse."""
    __tablename__ = "contact_blacklist"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    source_address = Column(String, nullable=True, index=True)
    email = Column(String, nullable=True, index=True)
    reason = Column(String, nullable=False)  # 'disposable email' or 'spam content detected'
    created_at = Column(DateTime, default=utcnow, nullable=False)
