"""Database models for browser push subscriptions."""

import uuid

from sqlalchemy import Column, String, DateTime, Text

from contact_service.shared.database import Base, utcnow


class PushSubscription(Base):
    """A browser push endpoint registered through /subscribe."""
    __tablename__ = "push_subscriptions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    endpoint = Column(Text, unique=True, nullable=False)
    p256dh = Column(String, nullable=False)
    auth = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def to_subscription_info(self) -> dict:
        """Shape expected by pywebpush."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }
