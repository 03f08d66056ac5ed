"""Fan-out of one push notification to every registered subscription."""

import logging
from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contact_service.shared.errors import DeliveryStatus
from contact_service.shared.push.database import PushSubscription


class FanOutReport(NamedTuple):
    sent: int = 0
    removed: int = 0
    failed: int = 0


def build_contact_payload(submission) -> dict:
    """Payload understood by the site's service worker (title, body, url)."""
    return {
        "title": "New contact form submission",
        "body": f"{submission.name} sent a message",
        "url": "/",
    }


def fan_out(db: Session, sender, payload: dict) -> FanOutReport:
    """
    Send `payload` to every subscription, one at a time.

    Subscriptions reported as gone are deleted. Any other failure is logged
    and the loop moves on; nothing raised here reaches the caller.
    """
    try:
        subscriptions = db.query(PushSubscription).order_by(PushSubscription.created_at).all()
    except SQLAlchemyError as e:
        logging.error(f"Failed to load push subscriptions: {str(e)}", exc_info=True)
        db.rollback()
        return FanOutReport()

    sent = removed = failed = 0
    for subscription in subscriptions:
        endpoint = subscription.endpoint
        try:
            result = sender.send(subscription.to_subscription_info(), payload)
        except Exception as e:
            logging.error(f"Unexpected push error for {endpoint}: {str(e)}", exc_info=True)
            failed += 1
            continue

        if result.status == DeliveryStatus.SENT:
            sent += 1
        elif result.status == DeliveryStatus.GONE:
            try:
                db.delete(subscription)
                db.commit()
                removed += 1
                logging.info(f"Removed expired push subscription {endpoint}")
            except SQLAlchemyError as e:
                db.rollback()
                failed += 1
                logging.error(f"Failed to remove push subscription {endpoint}: {str(e)}")
        else:
            failed += 1
            logging.warning(f"Push notification failed for {endpoint}: {result.detail}")

    return FanOutReport(sent=sent, removed=removed, failed=failed)
