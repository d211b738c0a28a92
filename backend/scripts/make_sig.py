#!/usr/bin/env python3

import json
import sys

from orderhook.services import lemonsqueezy, nowpayments
from orderhook.services.signature import compute_signature

PROVIDERS = {"lemonsqueezy": lemonsqueezy, "nowpayments": nowpayments}


def make_signature(provider: str, secret: str, payload: str) -> tuple[str, str]:
    """Return (header name, header value) signing ``payload`` for ``provider``."""
    handlers = PROVIDERS[provider]
    sig = compute_signature(payload.encode("utf-8"), secret, handlers.ALGORITHM)
    return handlers.SIGNATURE_HEADER, sig


if __name__ == "__main__":
    if len(sys.argv) != 4 or sys.argv[1] not in PROVIDERS:
        print("Usage: make_sig.py <lemonsqueezy|nowpayments> <secret> <payload>")
        sys.exit(1)

    provider, secret, payload = sys.argv[1:]

    # Validate payload is valid JSON
    try:
        json.loads(payload)
    except json.JSONDecodeError:
        print("Error: Payload must be valid JSON", file=sys.stderr)
        sys.exit(1)

    header, sig = make_signature(provider, secret, payload)
    print(f"{header}: {sig}")
