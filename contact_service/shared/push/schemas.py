"""Pydantic schemas for push subscription API."""

from pydantic import BaseModel
from typing import Optional


class SubscriptionKeys(BaseModel):
    p256dh: Optional[str] = None
    auth: Optional[str] = None


class SubscriptionRequest(BaseModel):
    """Browser PushSubscription as serialized by `subscription.toJSON()`."""
    endpoint: Optional[str] = None
    keys: Optional[SubscriptionKeys] = None

    def is_complete(self) -> bool:
        return bool(self.endpoint and self.keys and self.keys.p256dh and self.keys.auth)
