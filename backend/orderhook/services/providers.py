import logging
from dataclasses import dataclass
from types import ModuleType

from orderhook.core.config import Settings
from orderhook.schemas.webhook import (
    OrderNotification,
    ProviderConfig,
    RawRequest,
    WebhookEvent,
)
from orderhook.services import lemonsqueezy, nowpayments, signature
from orderhook.services.notifier import OrderNotifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookProvider:
    """A provider's configuration bound to its classifier and extractor."""

    config: ProviderConfig
    handlers: ModuleType

    @property
    def name(self) -> str:
        return self.config.name

    def verify(self, raw_request: RawRequest) -> None:
        signature.verify(raw_request, self.config)

    def order_from(self, raw_request: RawRequest) -> OrderNotification | None:
        """Parse a verified body; None when it is not a successful payment."""
        event: WebhookEvent
        event, document = self.handlers.parse_event(raw_request.body)
        if not self.handlers.is_successful_payment(event):
            logger.info(f"{self.name} event ignored (not a successful payment)")
            return None
        return self.handlers.extract_order(event, document)

    async def process(self, raw_request: RawRequest, notifier: OrderNotifier) -> bool:
        """Run the full pipeline; returns True when a notification was sent."""
        self.verify(raw_request)
        order = self.order_from(raw_request)
        if order is None:
            return False
        await notifier.notify(order)
        return True


def _provider(handlers: ModuleType, secret: str) -> WebhookProvider:
    return WebhookProvider(
        config=ProviderConfig(
            name=handlers.NAME,
            algorithm=handlers.ALGORITHM,
            signature_header=handlers.SIGNATURE_HEADER,
            secret=secret,
        ),
        handlers=handlers,
    )


def build_providers(settings: Settings) -> dict[str, WebhookProvider]:
    return {
        "lemonsqueezy": _provider(lemonsqueezy, settings.lemonsqueezy_signing_secret),
        "nowpayments": _provider(nowpayments, settings.nowpayments_ipn_secret),
    }
