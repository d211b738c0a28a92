import html
import json
import logging
import re

from orderhook.errors import NotifierConfigError
from orderhook.schemas.webhook import OrderNotification
from orderhook.services.mailer import Mailer

logger = logging.getLogger(__name__)

EMAIL_SHAPE = re.compile(r"\S+@\S+\.\S+")


def looks_like_email(value: str | None) -> bool:
    return bool(value and EMAIL_SHAPE.search(value))


def owner_subject(order: OrderNotification) -> str:
    subject = f"New {order.website_type or 'website'} order"
    if order.buyer_email:
        subject += f" from {order.buyer_email}"
    return subject


def display_amount(order: OrderNotification) -> str:
    return "?" if order.amount is None else str(order.amount)


def owner_body(order: OrderNotification) -> str:
    dump = json.dumps(order.raw, indent=2, default=str)
    return f"""
    <h2>New Website Order</h2>
    <p><b>Type:</b> {html.escape(order.website_type or "unknown")}</p>
    <p><b>Buyer:</b> {html.escape(order.buyer_email or "unknown")}</p>
    <p><b>Total:</b> {html.escape(display_amount(order))} {html.escape(order.currency)}</p>
    <pre style="background:#0d1117;color:#e6edf3;padding:12px;border-radius:8px;overflow:auto">
{html.escape(dump)}
    </pre>
    """


def buyer_subject(order: OrderNotification) -> str:
    return f"Thanks! I received your {order.website_type or 'website'} order"


def buyer_body(sign_off: str) -> str:
    return f"""
    <h3>Thank you!</h3>
    <p>I just got your order. I'll email you shortly to collect requirements.</p>
    <p>— {html.escape(sign_off)}</p>
    """


class OrderNotifier:
    """Emails the shop owner about a paid order, and optionally the buyer."""

    def __init__(
        self,
        mailer: Mailer,
        owner_email: str | None,
        sender: str,
        send_buyer_confirmation: bool = False,
        buyer_sender: str | None = None,
        sign_off: str = "Faris",
    ):
        self.mailer = mailer
        self.owner_email = owner_email
        self.sender = sender
        self.send_buyer_confirmation = send_buyer_confirmation
        self.buyer_sender = buyer_sender or sender
        self.sign_off = sign_off

    async def notify(self, order: OrderNotification) -> None:
        if not self.owner_email:
            raise NotifierConfigError("OWNER_EMAIL not set")

        await self.mailer.send(
            self.sender, self.owner_email, owner_subject(order), owner_body(order)
        )
        logger.info(
            f"Owner notified of {order.website_type} order "
            f"({display_amount(order)} {order.currency})"
        )

        if self.send_buyer_confirmation and looks_like_email(order.buyer_email):
            await self._confirm_buyer(order)

    async def _confirm_buyer(self, order: OrderNotification) -> None:
        # owner is already notified; buyer failures are log-only
        try:
            await self.mailer.send(
                self.buyer_sender,
                order.buyer_email,
                buyer_subject(order),
                buyer_body(self.sign_off),
            )
        except Exception:
            logger.exception(f"Buyer confirmation to {order.buyer_email} failed")
