import json
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from orderhook.schemas.webhook import RawRequest

logger = logging.getLogger(__name__)

WEBHOOK_PREFIX = "/webhook/"


class RawBodyMiddleware(BaseHTTPMiddleware):
    """
    Keep the exact request bytes for webhook routes so signatures are computed
    over what the provider signed. Other routes get their JSON body decoded
    eagerly into ``request.state.json_body``.
    """

    def __init__(self, app, prefix: str = WEBHOOK_PREFIX):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path.startswith(self.prefix):
            request.state.raw_body = await request.body()
        elif request.method in ("POST", "PUT", "PATCH") and _is_json(request):
            body = await request.body()
            if body:
                try:
                    request.state.json_body = json.loads(body)
                except (UnicodeDecodeError, json.JSONDecodeError):
                    return JSONResponse(
                        {"detail": "Invalid JSON payload"}, status_code=400
                    )
        return await call_next(request)


def _is_json(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";")[0].strip().lower() == "application/json"


def get_raw_request(request: Request) -> RawRequest:
    return RawRequest(
        body=getattr(request.state, "raw_body", b""),
        headers=request.headers,
    )
