import json
from decimal import Decimal

import pytest

from orderhook.errors import MalformedPayloadError
from orderhook.services import lemonsqueezy, nowpayments


def _ls(payload: dict):
    return lemonsqueezy.parse_event(json.dumps(payload).encode())


def _np(payload: dict):
    return nowpayments.parse_event(json.dumps(payload).encode())


# ---------- classification ----------
@pytest.mark.parametrize(
    "name, expected",
    [
        ("order_created", True),
        ("subscription_payment_success", True),
        ("order_refunded", False),
        ("subscription_created", False),
        ("ORDER_CREATED", False),
    ],
)
def test_lemonsqueezy_success_events(name, expected):
    event, _ = _ls({"meta": {"event_name": name}})
    assert lemonsqueezy.is_successful_payment(event) is expected


def test_lemonsqueezy_legacy_top_level_event():
    event, _ = _ls({"event": "order_created"})
    assert event.event_name == "order_created"
    assert lemonsqueezy.is_successful_payment(event)


def test_lemonsqueezy_meta_event_name_wins():
    event, _ = _ls({"meta": {"event_name": "order_refunded"}, "event": "order_created"})
    assert not lemonsqueezy.is_successful_payment(event)


def test_lemonsqueezy_no_event_name():
    event, _ = _ls({"data": {}})
    assert event.event_name is None
    assert not lemonsqueezy.is_successful_payment(event)


@pytest.mark.parametrize(
    "status, expected",
    [
        ("finished", True),
        ("waiting", False),
        ("confirming", False),
        ("partially_paid", False),
        ("Finished", False),
    ],
)
def test_nowpayments_success_status(status, expected):
    event, _ = _np({"payment_status": status})
    assert nowpayments.is_successful_payment(event) is expected


def test_nowpayments_missing_status():
    event, _ = _np({})
    assert not nowpayments.is_successful_payment(event)


@pytest.mark.parametrize("handlers", [lemonsqueezy, nowpayments])
@pytest.mark.parametrize("body", [b"{invalid json}", b"[1, 2]", b'"text"', b"\xff\xfe"])
def test_malformed_payload(handlers, body):
    with pytest.raises(MalformedPayloadError):
        handlers.parse_event(body)


@pytest.mark.parametrize("handlers", [lemonsqueezy, nowpayments])
def test_empty_body_decodes_as_empty_object(handlers):
    event, document = handlers.parse_event(b"")
    assert document == {}
    assert not handlers.is_successful_payment(event)


def test_lemonsqueezy_wrongly_typed_fields_are_tolerated():
    event, document = _ls(
        {
            "meta": {"event_name": "subscription_updated"},
            "data": {"attributes": {"total": "n/a", "custom": ["x"]}},
        }
    )
    assert event.event_name == "subscription_updated"
    assert not lemonsqueezy.is_successful_payment(event)

    order = lemonsqueezy.extract_order(event, document)
    assert order.amount == 0
    assert order.website_type == "unknown"


def test_lemonsqueezy_wrongly_typed_sections_are_tolerated():
    event, _ = _ls({"meta": ["order_created"], "data": "nope", "event": "order_created"})
    assert event.event_name == "order_created"
    assert event.attributes.total is None
    assert event.custom_data == {}


def test_lemonsqueezy_numeric_text_fields_become_strings():
    event, document = _ls(
        {
            "meta": {"event_name": "order_created", "custom_data": {"websiteType": 7}},
            "data": {"attributes": {"currency": 978, "user_email": {"a": 1}, "total": "1500"}},
        }
    )
    order = lemonsqueezy.extract_order(event, document)
    assert order.currency == "978"
    assert order.buyer_email is None
    assert order.amount == 15
    assert order.website_type == "unknown"


def test_nowpayments_wrongly_typed_fields_are_tolerated():
    event, document = _np(
        {"payment_status": "waiting", "price_currency": 840, "price_amount": "n/a"}
    )
    assert not nowpayments.is_successful_payment(event)

    order = nowpayments.extract_order(event, document)
    assert order.currency == "840"
    assert order.amount is None


def test_nowpayments_non_text_status_is_not_success():
    event, _ = _np({"payment_status": ["finished"]})
    assert event.payment_status is None
    assert not nowpayments.is_successful_payment(event)


# ---------- LemonSqueezy extraction ----------
def test_lemonsqueezy_extract_full():
    payload = {
        "meta": {"event_name": "order_created", "custom_data": {"websiteType": "store"}},
        "data": {
            "attributes": {
                "user_email": "user@example.com",
                "customer_email": "customer@example.com",
                "currency": "EUR",
                "total": 2500,
                "custom": {"websiteType": "ai"},
            }
        },
    }
    event, document = _ls(payload)
    order = lemonsqueezy.extract_order(event, document)

    assert order.buyer_email == "user@example.com"
    assert order.currency == "EUR"
    assert order.amount == 25
    assert order.website_type == "ai"
    assert order.raw == payload


def test_lemonsqueezy_extract_fallbacks():
    payload = {
        "meta": {"event_name": "order_created", "custom_data": {"websiteType": "simple"}},
        "data": {"attributes": {"customer_email": "customer@example.com", "total": 1999}},
    }
    event, document = _ls(payload)
    order = lemonsqueezy.extract_order(event, document)

    assert order.buyer_email == "customer@example.com"
    assert order.website_type == "simple"
    assert order.amount == Decimal("19.99")
    assert order.currency == "USD"


def test_lemonsqueezy_extract_defaults():
    event, document = _ls({"meta": {"event_name": "order_created"}})
    order = lemonsqueezy.extract_order(event, document)

    assert order.buyer_email is None
    assert order.website_type == "unknown"
    assert order.amount == 0
    assert order.currency == "USD"


def test_lemonsqueezy_extract_null_sections():
    event, document = _ls({"meta": None, "data": {"attributes": None}, "event": "order_created"})
    order = lemonsqueezy.extract_order(event, document)
    assert order.website_type == "unknown"
    assert order.amount == 0


# ---------- NOWPayments extraction ----------
def test_nowpayments_extract_full():
    payload = {
        "payment_status": "finished",
        "customer_email": "buyer@example.com",
        "price_amount": 25,
        "price_currency": "eur",
        "order_description": "type=AI;email=x@y.com",
        "pay_currency": "btc",
    }
    event, document = _np(payload)
    order = nowpayments.extract_order(event, document)

    assert order.buyer_email == "buyer@example.com"
    assert order.amount == 25
    assert order.currency == "eur"
    assert order.website_type == "ai"
    assert order.raw["pay_currency"] == "btc"


def test_nowpayments_extract_defaults():
    event, document = _np({"payment_status": "finished"})
    order = nowpayments.extract_order(event, document)

    assert order.buyer_email is None
    assert order.amount is None
    assert order.currency == "USD"
    assert order.website_type == "unknown"


@pytest.mark.parametrize(
    "description, expected",
    [
        ("type=AI;email=x@y.com", "ai"),
        ("order for TYPE=Subscription", "subscription"),
        ("email=x@y.com;type=simple_site", "simple_site"),
        ("no website tag here", "unknown"),
        ("type=", "unknown"),
        ("", "unknown"),
        (None, "unknown"),
        (42, "unknown"),
    ],
)
def test_nowpayments_website_type(description, expected):
    assert nowpayments.website_type_from_description(description) == expected
