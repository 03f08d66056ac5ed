"""Push routes: subscription registration and VAPID public key."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from contact_service.shared.config import get_vapid_public_key
from contact_service.shared.contact.schemas import MessageResponse
from contact_service.shared.database import get_db
from contact_service.shared.errors import StorageError, ValidationError
from contact_service.shared.push.database import PushSubscription
from contact_service.shared.push.schemas import SubscriptionRequest
from contact_service.shared.request_utils import message_response

router = APIRouter(tags=["push"])


@router.post("/subscribe", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def subscribe(
    subscription_data: Optional[SubscriptionRequest] = None,
    db: Session = Depends(get_db),
):
    """Register a browser push subscription. Re-registering an endpoint is a no-op."""
    if subscription_data is None or not subscription_data.is_complete():
        raise ValidationError(
            "Invalid subscription",
            detail="endpoint, keys.p256dh and keys.auth are required"
        )

    endpoint = subscription_data.endpoint
    try:
        existing = db.query(PushSubscription.id).filter(PushSubscription.endpoint == endpoint).first()
        if existing:
            return message_response(status.HTTP_200_OK, "Already subscribed")

        db.add(PushSubscription(
            endpoint=endpoint,
            p256dh=subscription_data.keys.p256dh,
            auth=subscription_data.keys.auth,
        ))
        db.commit()
    except IntegrityError:
        # Another request registered the same endpoint first
        db.rollback()
        return message_response(status.HTTP_200_OK, "Already subscribed")
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Subscription error: {str(e)}", exc_info=True)
        raise StorageError("Failed to save subscription", detail=str(e))

    logging.info(f"New push subscription registered: {endpoint[:60]}")
    return message_response(status.HTTP_201_CREATED, "Subscribed successfully!")


@router.get("/vapid-public-key", response_class=PlainTextResponse)
def vapid_public_key():
    public_key = get_vapid_public_key()
    if not public_key:
        return PlainTextResponse(
            "VAPID public key is not configured",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return PlainTextResponse(public_key)
