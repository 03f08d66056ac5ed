"""
Accept/reject decision for contact submissions and the side effects that
follow acceptance.

Checks run in a fixed order and the first failure ends the request:
blacklist, rate limit, email format, disposable domain, message content.
Accepted submissions are persisted before any email or push is attempted,
so a failed notification never loses a submission.
"""

import logging
import secrets
from typing import NamedTuple, Optional

from sqlalchemy.orm import Session

from contact_service.shared.contact import storage
from contact_service.shared.contact.database import ContactSubmission
from contact_service.shared.contact.input_validation import (
    clean_field,
    email_domain,
    normalize_email,
    require_fields,
    validate_email_format,
)
from contact_service.shared.contact.schemas import ContactRequest
from contact_service.shared.contact.spam_detection import analyze_content, is_disposable_domain
from contact_service.shared.errors import (
    AuthorizationDenied,
    DeliveryResult,
    RateLimited,
    StorageError,
    TransportError,
    ValidationError,
)
from contact_service.shared.push.notifications import FanOutReport, build_contact_payload, fan_out


class SubmissionOutcome(NamedTuple):
    submission: ContactSubmission
    owner_notified: bool
    verification_sent: bool
    push_report: FanOutReport

    @property
    def fully_delivered(self) -> bool:
        return self.owner_notified and self.verification_sent


def generate_verification_token() -> str:
    """Generate a secure random token for email verification."""
    return secrets.token_urlsafe(32)


def _blacklist_and_reject(db: Session, source_address: str, email: str, reason: str, message: str, detail: str):
    try:
        storage.add_to_blacklist(db, source_address, email, reason)
    except StorageError:
        # The rejection stands even if the record could not be written
        logging.error(f"Could not blacklist {source_address} ({reason})")
    raise ValidationError(message, detail=detail)


def _deliver(label: str, send, submission: ContactSubmission) -> DeliveryResult:
    """Run one email side effect. An exception counts as a failed delivery."""
    try:
        result = send(submission)
    except Exception as e:
        error = TransportError(f"{label} raised", detail=str(e))
        logging.error(f"{error.message} for submission {submission.id}: {error.detail}", exc_info=True)
        return DeliveryResult.failed(error.detail)

    if not result.ok:
        logging.error(f"{label} failed for submission {submission.id}: {result.detail}")
    return result


def check_submission(db: Session, source_address: str, email: str, message: str) -> str:
    """
    Run the ordered abuse checks. Returns the normalized email on success.

    Raises:
        AuthorizationDenied, RateLimited, ValidationError, StorageError
    """
    if storage.is_blacklisted(db, source_address, normalize_email(email)):
        logging.warning(f"Rejected blacklisted submission from {source_address}")
        raise AuthorizationDenied()

    if storage.count_recent_submissions(db, source_address) >= storage.RATE_LIMIT_MAX_REQUESTS:
        logging.warning(f"Rate limit exceeded for {source_address}")
        raise RateLimited()

    email = validate_email_format(email)

    domain = email_domain(email)
    if is_disposable_domain(domain):
        _blacklist_and_reject(
            db, source_address, email, storage.BLACKLIST_REASON_DISPOSABLE,
            "Disposable email addresses are not allowed",
            detail=f"domain: {domain}",
        )

    verdict = analyze_content(message)
    if verdict.is_spam:
        _blacklist_and_reject(
            db, source_address, email, storage.BLACKLIST_REASON_SPAM,
            "Your message was flagged as spam",
            detail="; ".join(verdict.reasons),
        )

    return email


def process_submission(
    db: Session,
    contact_data: ContactRequest,
    source_address: str,
    mailer,
    push_sender=None,
) -> SubmissionOutcome:
    """
    Validate, persist and announce a contact submission.

    Args:
        db: Database session
        contact_data: Parsed request body
        source_address: Client IP address
        mailer: Object with send_owner_notification/send_verification_email
        push_sender: Object with send(subscription_info, payload); None skips push

    Returns:
        SubmissionOutcome describing which side effects succeeded

    Raises:
        ContactServiceError subclasses for rejected or failed submissions
    """
    require_fields(name=contact_data.name, email=contact_data.email, message=contact_data.message)
    message = contact_data.message.strip()

    email = check_submission(db, source_address, contact_data.email, message)

    submission = storage.create_submission(
        db,
        source_address,
        name=contact_data.name.strip(),
        email=email,
        service=clean_field(contact_data.service),
        budget=clean_field(contact_data.budget),
        deadline=clean_field(contact_data.deadline),
        message=message,
        verify_token=generate_verification_token(),
    )
    logging.info(f"Stored contact submission {submission.id} from {source_address}")

    owner_result = _deliver("Owner notification", mailer.send_owner_notification, submission)
    verification_result = _deliver("Verification email", mailer.send_verification_email, submission)

    push_report = FanOutReport()
    if push_sender is None:
        logging.info("Push notifications not configured, skipping fan-out")
    else:
        push_report = fan_out(db, push_sender, build_contact_payload(submission))
        logging.info(
            f"Push fan-out: {push_report.sent} sent, {push_report.removed} removed, "
            f"{push_report.failed} failed"
        )

    return SubmissionOutcome(
        submission=submission,
        owner_notified=owner_result.ok,
        verification_sent=verification_result.ok,
        push_report=push_report,
    )
