"""Web Push delivery using VAPID credentials."""

import json
import logging

import requests
from pywebpush import webpush, WebPushException

from contact_service.shared.config import VapidSettings
from contact_service.shared.errors import DeliveryResult

# Push services answer 404 or 410 once a subscription has expired or been revoked
GONE_STATUS_CODES = {404, 410}


class WebPushSender:
    """Sends a JSON payload to a single push subscription."""

    def __init__(self, settings: VapidSettings):
        self.settings = settings

    def send(self, subscription_info: dict, payload: dict) -> DeliveryResult:
        try:
            webpush(
                subscription_info=subscription_info,
                data=json.dumps(payload),
                vapid_private_key=self.settings.private_key,
                vapid_claims={"sub": self.settings.subject},
                timeout=self.settings.timeout,
            )
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            if status_code in GONE_STATUS_CODES:
                return DeliveryResult.gone(f"push service returned {status_code}")
            return DeliveryResult.failed(str(e))
        except requests.RequestException as e:
            return DeliveryResult.failed(str(e))

        logging.debug(f"Push notification delivered to {subscription_info['endpoint'][:60]}")
        return DeliveryResult.sent()
