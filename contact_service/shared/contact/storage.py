"""Query helpers for the rate-limit, blacklist and submission tables."""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contact_service.shared.contact.database import (
    ContactBlacklist,
    ContactRateLimit,
    ContactSubmission,
)
from contact_service.shared.database import utcnow
from contact_service.shared.errors import StorageError

# Rate limiting configuration
RATE_LIMIT_MAX_REQUESTS = 5  # Max 5 accepted submissions per hour per address
RATE_LIMIT_WINDOW = timedelta(hours=1)

BLACKLIST_REASON_DISPOSABLE = "disposable email"
BLACKLIST_REASON_SPAM = "spam content detected"


def purge_expired_rate_limits(db: Session) -> None:
    """Delete rate-limit records older than the window."""
    threshold = utcnow() - RATE_LIMIT_WINDOW
    try:
        db.query(ContactRateLimit).filter(
            ContactRateLimit.created_at < threshold
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        logging.warning(f"Failed to cleanup old rate limit entries: {str(e)}")
        db.rollback()


def count_recent_submissions(db: Session, source_address: str) -> int:
    """Count accepted submissions from an address inside the trailing window."""
    purge_expired_rate_limits(db)
    window_start = utcnow() - RATE_LIMIT_WINDOW
    try:
        return db.query(func.count(ContactRateLimit.id)).filter(
            ContactRateLimit.source_address == source_address,
            ContactRateLimit.created_at >= window_start
        ).scalar() or 0
    except SQLAlchemyError as e:
        logging.error(f"Failed to count rate limit records: {str(e)}", exc_info=True)
        raise StorageError(detail=str(e))


def is_blacklisted(db: Session, source_address: str, email: Optional[str]) -> bool:
    conditions = [ContactBlacklist.source_address == source_address]
    if email:
        conditions.append(ContactBlacklist.email == email)
    try:
        return db.query(ContactBlacklist.id).filter(or_(*conditions)).first() is not None
    except SQLAlchemyError as e:
        logging.error(f"Failed to query blacklist: {str(e)}", exc_info=True)
        raise StorageError(detail=str(e))


def add_to_blacklist(db: Session, source_address: str, email: str, reason: str) -> ContactBlacklist:
    record = ContactBlacklist(source_address=source_address, email=email, reason=reason)
    try:
        db.add(record)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Failed to write blacklist record: {str(e)}", exc_info=True)
        raise StorageError(detail=str(e))
    logging.warning(f"Blacklisted {source_address} / {email}: {reason}")
    return record


def create_submission(db: Session, source_address: str, **fields) -> ContactSubmission:
    """
    Persist an accepted submission together with the rate-limit record that
    counts it. Both rows are committed in one transaction.
    """
    submission = ContactSubmission(verified=False, **fields)
    try:
        db.add(ContactRateLimit(source_address=source_address))
        db.add(submission)
        db.commit()
        db.refresh(submission)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Failed to store contact submission: {str(e)}", exc_info=True)
        raise StorageError(detail=str(e))
    return submission


def find_unverified_by_token(db: Session, token: str) -> Optional[ContactSubmission]:
    try:
        return db.query(ContactSubmission).filter(
            ContactSubmission.verify_token == token,
            ContactSubmission.verified.is_(False)
        ).first()
    except SQLAlchemyError as e:
        logging.error(f"Failed to look up verification token: {str(e)}", exc_info=True)
        raise StorageError(detail=str(e))


def mark_verified(db: Session, submission: ContactSubmission) -> None:
    submission.verified = True
    submission.verify_token = None
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Failed to mark submission {submission.id} verified: {str(e)}", exc_info=True)
        raise StorageError(detail=str(e))
