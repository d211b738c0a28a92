import json
from typing import Any

from orderhook.errors import MalformedPayloadError


def decode_payload(raw_body: bytes) -> dict[str, Any]:
    """Decode a verified body as a JSON object; an empty body decodes as ``{}``."""
    if not raw_body:
        return {}
    try:
        document = json.loads(raw_body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedPayloadError(f"Invalid JSON payload: {exc}") from exc
    if not isinstance(document, dict):
        raise MalformedPayloadError(
            f"Expected a JSON object, got {type(document).__name__}"
        )
    return document
