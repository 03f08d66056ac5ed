"""Transport dependencies for the contact route."""

import logging
from typing import Optional

from contact_service.shared.config import get_mail_settings, get_vapid_settings
from contact_service.shared.email.email_utils import SmtpMailer
from contact_service.shared.push.webpush_utils import WebPushSender


def get_mailer() -> SmtpMailer:
    """Raises ConfigurationError when SMTP credentials are missing."""
    return SmtpMailer(get_mail_settings())


def get_push_sender() -> Optional[WebPushSender]:
    settings = get_vapid_settings()
    if settings is None:
        logging.warning("VAPID keys not configured, push notifications disabled")
        return None
    return WebPushSender(settings)
