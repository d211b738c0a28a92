import logging
from datetime import UTC, datetime
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from orderhook.core.config import Settings, get_settings
from orderhook.core.logging_config import setup_logging
from orderhook.errors import SignatureError
from orderhook.middleware.access_log import AccessLogMiddleware
from orderhook.middleware.body_size import BodySizeLimitMiddleware
from orderhook.middleware.raw_body import RawBodyMiddleware, get_raw_request
from orderhook.schemas.webhook import RawRequest
from orderhook.services.mailer import Mailer, SmtpMailer
from orderhook.services.notifier import OrderNotifier
from orderhook.services.providers import WebhookProvider, build_providers

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------- dependencies ----------
def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def webhook_providers(request: Request) -> dict[str, WebhookProvider]:
    return request.app.state.providers


def order_notifier(request: Request) -> OrderNotifier:
    return request.app.state.notifier


# ---------- health / config ----------
@router.get("/health")
async def health():
    now = datetime.now(UTC).isoformat(timespec="milliseconds")
    return {"ok": True, "time": now.replace("+00:00", "Z")}


@router.get("/config.json")
async def public_config(settings: Settings = Depends(app_settings)):
    return {
        "site": settings.site_name,
        "env": settings.app_env,
        "baseUrl": settings.public_base_url,
    }


# ---------- webhooks ----------
async def handle_webhook(
    provider: WebhookProvider, raw_request: RawRequest, notifier: OrderNotifier
) -> PlainTextResponse:
    try:
        notified = await provider.process(raw_request, notifier)
    except SignatureError as e:
        return PlainTextResponse(str(e), status_code=400)
    except Exception:
        logger.exception(f"{provider.name} webhook error")
        return PlainTextResponse("server error", status_code=500)

    logger.info(f"{provider.name} webhook handled (notified={notified})")
    return PlainTextResponse("ok")


@router.post("/webhook/lemonsqueezy", response_class=PlainTextResponse)
async def lemonsqueezy_webhook(
    raw_request: RawRequest = Depends(get_raw_request),
    providers: dict[str, WebhookProvider] = Depends(webhook_providers),
    notifier: OrderNotifier = Depends(order_notifier),
):
    return await handle_webhook(providers["lemonsqueezy"], raw_request, notifier)


@router.post("/webhook/nowpayments", response_class=PlainTextResponse)
async def nowpayments_webhook(
    raw_request: RawRequest = Depends(get_raw_request),
    providers: dict[str, WebhookProvider] = Depends(webhook_providers),
    notifier: OrderNotifier = Depends(order_notifier),
):
    return await handle_webhook(providers["nowpayments"], raw_request, notifier)


# ---------- app ----------
def create_app(settings: Settings | None = None, mailer: Mailer | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Order Webhooks",
        description="Payment webhooks that notify the shop owner of new orders",
        version="1.0.0",
    )

    app.state.settings = settings
    app.state.providers = build_providers(settings)
    app.state.notifier = OrderNotifier(
        mailer=mailer or SmtpMailer.from_settings(settings),
        owner_email=settings.owner_email,
        sender=settings.sender_address,
        send_buyer_confirmation=settings.send_buyer_confirmation,
        buyer_sender=settings.buyer_sender_address,
        sign_off=settings.sign_off_name,
    )
    for provider in app.state.providers.values():
        if not provider.config.secret:
            logger.warning(
                f"{provider.name} secret not configured; its webhooks will be rejected"
            )
    if not settings.owner_email:
        logger.warning("OWNER_EMAIL not set; paid orders will answer 500")

    # Last added runs first
    app.add_middleware(RawBodyMiddleware)
    app.add_middleware(BodySizeLimitMiddleware, max_size=settings.max_body_size)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins.split(","),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(AccessLogMiddleware)

    app.include_router(router)

    # static site (put the frontend in STATIC_DIR)
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


app = create_app()
