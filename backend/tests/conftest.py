import hashlib
import hmac
import json
import logging
import os
from dataclasses import dataclass
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before the app module is imported
os.environ.update(
    {
        "OWNER_EMAIL": "owner@example.com",
        "LEMONSQUEEZY_SIGNING_SECRET": "ls_test_secret",
        "NOWPAYMENTS_IPN_SECRET": "np_test_secret",
        "SMTP_USER": "orders@example.com",
        "SEND_BUYER_CONFIRMATION": "false",
    }
)

from orderhook.core.config import Settings
from orderhook.errors import MailDeliveryError
from orderhook.main import create_app

logger = logging.getLogger(__name__)

LS_SECRET = "ls_test_secret"
NP_SECRET = "np_test_secret"


@dataclass
class SentMail:
    sender: str
    to: str
    subject: str
    html: str


class RecordingMailer:
    """Mail capability double: records messages, fails for chosen recipients."""

    def __init__(self):
        self.sent: list[SentMail] = []
        self.fail_for: set[str] = set()

    async def send(self, sender: str, to: str, subject: str, html: str) -> None:
        if to in self.fail_for:
            raise MailDeliveryError(f"refused recipient {to}")
        self.sent.append(SentMail(sender, to, subject, html))
        logger.info(f"Recorded mail to {to}: {subject}")

    def to(self, address: str) -> list[SentMail]:
        return [m for m in self.sent if m.to == address]


def lemonsqueezy_headers(body: bytes, secret: str = LS_SECRET) -> dict[str, str]:
    sig = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return {"X-Signature": sig, "Content-Type": "application/json"}


def nowpayments_headers(body: bytes, secret: str = NP_SECRET) -> dict[str, str]:
    sig = hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()
    return {"x-nowpayments-sig": sig, "Content-Type": "application/json"}


def encode(payload: dict) -> bytes:
    return json.dumps(payload).encode()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        owner_email="owner@example.com",
        lemonsqueezy_signing_secret=LS_SECRET,
        nowpayments_ipn_secret=NP_SECRET,
        smtp_user="orders@example.com",
        send_buyer_confirmation=False,
        static_dir=str(tmp_path / "no-site"),
    )


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def app(settings, mailer):
    return create_app(settings, mailer=mailer)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
