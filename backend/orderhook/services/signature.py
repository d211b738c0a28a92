import hashlib
import hmac
import logging

from orderhook.errors import SignatureError
from orderhook.schemas.webhook import ProviderConfig, RawRequest

logger = logging.getLogger(__name__)


def compute_signature(raw_body: bytes, secret: str, algorithm: str) -> str:
    """Lowercase hex HMAC of ``raw_body`` keyed with ``secret``."""
    digestmod = getattr(hashlib, algorithm)
    return hmac.new(secret.encode("utf-8"), raw_body, digestmod).hexdigest()


def is_valid_signature(
    raw_body: bytes | None, header: str | None, secret: str | None, algorithm: str
) -> bool:
    if not raw_body or not header or not secret:
        return False

    expected = compute_signature(raw_body, secret, algorithm)
    return hmac.compare_digest(expected.encode("ascii"), header.encode("utf-8"))


def verify(raw_request: RawRequest, provider: ProviderConfig) -> None:
    """
    Raise SignatureError unless the request carries a valid signature
    for ``provider``.
    """
    header = raw_request.header(provider.signature_header)
    if not provider.secret:
        logger.warning(f"No signing secret configured for {provider.name}")
    if not is_valid_signature(
        raw_request.body, header, provider.secret, provider.algorithm
    ):
        logger.warning(
            f"{provider.name} signature rejected "
            f"(header present: {header is not None}, body bytes: {len(raw_request.body)})"
        )
        raise SignatureError(f"Invalid {provider.name} signature")
