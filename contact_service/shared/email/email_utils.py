"""Email utilities for contact notifications and submitter verification."""

import html
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from contact_service.shared.config import MailSettings
from contact_service.shared.errors import DeliveryResult


def header_safe(value: str) -> str:
    """Collapse CR, LF and other whitespace runs so user text cannot add header lines."""
    return " ".join(value.split())


def build_verification_url(base_url: str, token: str) -> str:
    return f"{base_url}/verify?token={token}"


class SmtpMailer:
    """Sends the owner notification and the submitter verification email over SMTP."""

    def __init__(self, settings: MailSettings):
        self.settings = settings

    def _send(self, msg: MIMEMultipart) -> DeliveryResult:
        settings = self.settings
        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.timeout) as server:
                server.starttls()  # Enable encryption
                server.login(settings.smtp_user, settings.smtp_password)
                server.send_message(msg)
        except Exception as e:
            logging.error(f"Failed to send email to {msg['To']}: {str(e)}", exc_info=True)
            return DeliveryResult.failed(str(e))

        logging.info(f"Email sent successfully to {msg['To']}")
        return DeliveryResult.sent()

    def send_owner_notification(self, submission) -> DeliveryResult:
        """
        Email the site owner a summary of a new submission.

        Reply-To is the submitter so the owner can answer directly.
        """
        msg = MIMEMultipart()
        msg['From'] = self.settings.from_email
        msg['To'] = self.settings.owner_email
        msg['Reply-To'] = submission.email
        msg['Subject'] = f"New Contact Form Submission from {header_safe(submission.name)}"

        body = f"""
New contact form submission:

Name: {submission.name}
Email: {submission.email}
Service: {submission.service or 'N/A'}
Budget: {submission.budget or 'N/A'}
Deadline: {submission.deadline or 'N/A'}

Message:
{submission.message}

---
Submitted: {submission.created_at.strftime('%Y-%m-%d %H:%M:%S')} UTC
Reply directly to this email to respond to {submission.name} ({submission.email}).
"""
        msg.attach(MIMEText(body, 'plain'))
        return self._send(msg)

    def send_verification_email(self, submission) -> DeliveryResult:
        """
        Send the submitter a link that confirms they own the address.

        Args:
            submission: Persisted submission carrying the verification token

        Returns:
            DeliveryResult from the SMTP transport
        """
        verification_url = build_verification_url(
            self.settings.verification_base_url, submission.verify_token
        )
        safe_name = html.escape(submission.name)

        msg = MIMEMultipart('alternative')
        msg['From'] = self.settings.from_email
        msg['To'] = submission.email
        msg['Subject'] = "Please confirm your email address"

        text_body = f"""
Hi {submission.name},

Thanks for getting in touch! Please confirm your email address so we can reply to your message.

Click the link below to verify your email:
{verification_url}

If you didn't contact us, you can safely ignore this email.
"""

        html_body = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <p style="font-size: 16px;">Hi {safe_name},</p>
    <p style="font-size: 16px;">
        Thanks for getting in touch! Please confirm your email address so we can reply to your message.
    </p>
    <div style="text-align: center; margin: 30px 0;">
        <a href="{verification_url}"
           style="display: inline-block; background: #2563eb; color: white; padding: 14px 28px; text-decoration: none; border-radius: 6px; font-weight: 600;">
            Verify Email Address
        </a>
    </div>
    <p style="font-size: 12px; color: #9ca3af; word-break: break-all;">{verification_url}</p>
    <p style="font-size: 12px; color: #9ca3af;">If you didn't contact us, you can safely ignore this email.</p>
</body>
</html>
"""

        msg.attach(MIMEText(text_body, 'plain'))
        msg.attach(MIMEText(html_body, 'html'))
        return self._send(msg)
