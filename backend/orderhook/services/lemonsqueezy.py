"""
LemonSqueezy webhooks.

Header: x-signature = HMAC-SHA256(raw body, LEMONSQUEEZY_SIGNING_SECRET)
Success events: "order_created", "subscription_payment_success"
"""
from decimal import Decimal
from typing import Any

from orderhook.schemas.webhook import LemonSqueezyEvent, OrderNotification
from orderhook.services.payload import decode_payload

NAME = "LemonSqueezy"
ALGORITHM = "sha256"
SIGNATURE_HEADER = "x-signature"
SUCCESS_EVENTS = frozenset({"order_created", "subscription_payment_success"})


def parse_event(raw_body: bytes) -> tuple[LemonSqueezyEvent, dict[str, Any]]:
    document = decode_payload(raw_body)
    return LemonSqueezyEvent.model_validate(document), document


def is_successful_payment(event: LemonSqueezyEvent) -> bool:
    return event.event_name in SUCCESS_EVENTS


def _tag(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def extract_order(event: LemonSqueezyEvent, raw: dict[str, Any]) -> OrderNotification:
    attributes = event.attributes
    custom = attributes.custom or {}

    # totals are reported in minor currency units
    total = attributes.total if attributes.total is not None else Decimal(0)
    website_type = (
        _tag(custom.get("websiteType"))
        or _tag(event.custom_data.get("websiteType"))
        or "unknown"
    )

    return OrderNotification(
        buyer_email=attributes.user_email or attributes.customer_email or None,
        website_type=website_type,
        amount=total / 100,
        currency=attributes.currency or "USD",
        raw=raw,
    )
