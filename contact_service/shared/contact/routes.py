"""Contact routes: form submission and submitter email verification."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from contact_service.shared.config import get_site_base_url
from contact_service.shared.contact import storage
from contact_service.shared.contact.dependencies import get_mailer, get_push_sender
from contact_service.shared.contact.pipeline import process_submission
from contact_service.shared.contact.schemas import ContactRequest, MessageResponse
from contact_service.shared.database import get_db
from contact_service.shared.errors import ContactServiceError
from contact_service.shared.request_utils import get_client_ip, message_response

router = APIRouter(tags=["contact"])

SUCCESS_MESSAGE = "Thank you for your message! Please check your inbox to verify your email address."
PARTIAL_MESSAGE = (
    "Your message was received, but we could not send all email notifications. "
    "There is no need to submit it again."
)


@router.post("/contact", response_model=MessageResponse, status_code=status.HTTP_200_OK)
def submit_contact_form(
    request: Request,
    contact_data: Optional[ContactRequest] = None,
    db: Session = Depends(get_db),
    mailer=Depends(get_mailer),
    push_sender=Depends(get_push_sender),
):
    """
    Accept a contact form submission.

    - Blacklisted address or email: 403
    - More than 5 accepted submissions per hour per IP address: 429
    - Invalid or disposable email, spam-like message: 400
    - Stored but an email could not be sent: 202
    """
    client_ip = get_client_ip(request)
    outcome = process_submission(
        db,
        contact_data or ContactRequest(),
        client_ip,
        mailer=mailer,
        push_sender=push_sender,
    )

    if outcome.fully_delivered:
        return message_response(status.HTTP_200_OK, SUCCESS_MESSAGE)

    failed = []
    if not outcome.owner_notified:
        failed.append("owner notification")
    if not outcome.verification_sent:
        failed.append("verification email")
    return message_response(
        status.HTTP_202_ACCEPTED,
        PARTIAL_MESSAGE,
        error=f"Failed to send: {', '.join(failed)}",
    )


def _verification_redirect(verified: bool) -> RedirectResponse:
    page = "verified.html" if verified else "verify-error.html"
    return RedirectResponse(url=f"{get_site_base_url()}/{page}", status_code=status.HTTP_302_FOUND)


@router.get("/verify")
def verify_submission(
    request: Request,
    token: Optional[str] = Query(None, description="Verification token from email"),
):
    """
    Verify a submitter's email using the token from the verification email.
    Wrong, reused and missing tokens all land on the same error page.
    """
    if not token:
        return _verification_redirect(False)

    try:
        db = request.app.state.database.session()
    except ContactServiceError as e:
        logging.error(f"Verification unavailable: {e.message} ({e.detail})")
        return _verification_redirect(False)

    try:
        submission = storage.find_unverified_by_token(db, token)
        if submission is None:
            return _verification_redirect(False)

        storage.mark_verified(db, submission)
        logging.info(f"Submission {submission.id} verified")
        return _verification_redirect(True)
    except ContactServiceError as e:
        logging.error(f"Verification error: {e.message} ({e.detail})")
        return _verification_redirect(False)
    finally:
        db.close()
