"""
NOWPayments (crypto) IPN callbacks.

Header: x-nowpayments-sig = HMAC-SHA512(raw body, NOWPAYMENTS_IPN_SECRET)
Success status: payment_status == "finished"
"""
import re
from typing import Any

from orderhook.schemas.webhook import NowPaymentsEvent, OrderNotification
from orderhook.services.payload import decode_payload

NAME = "NOWPayments"
ALGORITHM = "sha512"
SIGNATURE_HEADER = "x-nowpayments-sig"
SUCCESS_STATUS = "finished"

# e.g. order_description="type=ai;email=buyer@example.com"
WEBSITE_TYPE_PATTERN = re.compile(r"type=(\w+)", re.IGNORECASE)


def parse_event(raw_body: bytes) -> tuple[NowPaymentsEvent, dict[str, Any]]:
    document = decode_payload(raw_body)
    return NowPaymentsEvent.model_validate(document), document


def is_successful_payment(event: NowPaymentsEvent) -> bool:
    return event.payment_status == SUCCESS_STATUS


def website_type_from_description(description: Any) -> str:
    if not isinstance(description, str):
        return "unknown"
    match = WEBSITE_TYPE_PATTERN.search(description)
    return match.group(1).lower() if match else "unknown"


def extract_order(event: NowPaymentsEvent, raw: dict[str, Any]) -> OrderNotification:
    return OrderNotification(
        buyer_email=event.customer_email or None,
        website_type=website_type_from_description(event.order_description),
        amount=event.price_amount,
        currency=event.price_currency or "USD",
        raw=raw,
    )
