"""Environment-driven configuration."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from contact_service.shared.errors import ConfigurationError

# Load environment variables from .env file (for local development)
load_dotenv()

# Variables reported by the diagnostics endpoint, plus any name containing a fragment
EXPECTED_ENV_VARS = (
    "DATABASE_URL",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "PUBLIC_VAPID_KEY",
    "PRIVATE_VAPID_KEY",
    "VERIFICATION_LINK_BASE_URL",
)
RELEVANT_ENV_FRAGMENTS = ("DATABASE", "SMTP", "VAPID", "EMAIL", "VERIFICATION")


class MailSettings(BaseModel):
    """SMTP account and addresses used for owner and verification emails."""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str
    smtp_password: str
    owner_email: str
    from_email: str
    verification_base_url: str
    timeout: float = 20.0


class VapidSettings(BaseModel):
    public_key: str
    private_key: str
    subject: str
    timeout: float = 10.0


def is_production() -> bool:
    """Heroku sets DYNO; everywhere else ENVIRONMENT=production is explicit."""
    return bool(os.environ.get("DYNO")) or os.environ.get("ENVIRONMENT") == "production"


def get_database_url() -> str:
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ConfigurationError(
            "Database configuration missing",
            detail="DATABASE_URL environment variable is required",
        )
    # Heroku uses postgres:// but SQLAlchemy 2.0+ requires postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return database_url


def get_site_base_url() -> str:
    return os.environ.get("SITE_BASE_URL", "").rstrip("/")


def get_mail_settings() -> MailSettings:
    smtp_user = os.environ.get("SMTP_USER")
    smtp_password = os.environ.get("SMTP_PASSWORD")
    if not smtp_user or not smtp_password:
        raise ConfigurationError(
            "Email configuration missing",
            detail="SMTP_USER and SMTP_PASSWORD environment variables are required",
        )

    base_url = os.environ.get("VERIFICATION_LINK_BASE_URL") or get_site_base_url()
    return MailSettings(
        smtp_host=os.environ.get("SMTP_HOST", "smtp.gmail.com"),
        smtp_port=int(os.environ.get("SMTP_PORT", "587")),
        smtp_user=smtp_user,
        smtp_password=smtp_password,
        # The form owner receives submissions on the sending account by default
        owner_email=os.environ.get("CONTACT_RECIPIENT_EMAIL", smtp_user),
        from_email=os.environ.get("CONTACT_FROM_EMAIL", smtp_user),
        verification_base_url=base_url.rstrip("/"),
        timeout=float(os.environ.get("SMTP_TIMEOUT", "20")),
    )


def get_vapid_public_key() -> Optional[str]:
    return os.environ.get("PUBLIC_VAPID_KEY") or None


def get_vapid_settings() -> Optional[VapidSettings]:
    """Return the VAPID key pair, or None when push is not configured."""
    public_key = os.environ.get("PUBLIC_VAPID_KEY")
    private_key = os.environ.get("PRIVATE_VAPID_KEY")
    if not public_key or not private_key:
        return None

    subject = os.environ.get("VAPID_SUBJECT")
    if not subject:
        subject = f"mailto:{os.environ.get('CONTACT_RECIPIENT_EMAIL') or os.environ.get('SMTP_USER', '')}"
    return VapidSettings(
        public_key=public_key,
        private_key=private_key,
        subject=subject,
        timeout=float(os.environ.get("PUSH_TIMEOUT", "10")),
    )


def get_spam_uppercase_ratio() -> float:
    return float(os.environ.get("SPAM_UPPERCASE_RATIO", "0.5"))


def describe_environment() -> dict:
    """Map relevant variable names to "Set"/"Not set" without exposing values."""
    names = set(EXPECTED_ENV_VARS)
    names.update(
        key for key in os.environ
        if any(fragment in key for fragment in RELEVANT_ENV_FRAGMENTS)
    )
    return {key: "Set" if os.environ.get(key) else "Not set" for key in sorted(names)}
