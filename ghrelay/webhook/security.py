"""
Webhook Security Module

This module handles verification of GitHub webhook payloads.
It implements HMAC-SHA256 signature verification to ensure requests
are genuinely from GitHub.

Design Decisions:
- Hash the raw request bytes; re-serialized JSON would not match
- Use constant-time comparison to prevent timing attacks
- Never raise on bad input; a missing or malformed header is just "invalid"
"""

import hashlib
import hmac
from typing import Optional, Union

from fastapi import Request

from ghrelay.logging_config import get_logger
from ghrelay.models import InboundEvent

logger = get_logger(__name__)

SIGNATURE_HEADER = "X-Hub-Signature-256"
EVENT_HEADER = "X-GitHub-Event"
DELIVERY_HEADER = "X-GitHub-Delivery"
SIGNATURE_PREFIX = "sha256="


class WebhookSecurityError(Exception):
    """Raised when a webhook delivery fails signature verification."""
    pass


def compute_signature(secret: Union[str, bytes], raw_payload: bytes) -> str:
    """
    Compute the X-Hub-Signature-256 value GitHub would send for a payload.

    Args:
        secret: Webhook shared secret
        raw_payload: Exact request body bytes

    Returns:
        "sha256=" followed by the lowercase hex HMAC-SHA256 digest
    """
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    digest = hmac.new(secret, raw_payload, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(
    secret: Union[str, bytes],
    raw_payload: bytes,
    provided_signature: Optional[str]
) -> bool:
    """
    Verify a GitHub webhook signature.

    Args:
        secret: Webhook shared secret
        raw_payload: Exact request body bytes
        provided_signature: Value of the X-Hub-Signature-256 header

    Returns:
        True only if the header equals the expected "sha256=<hex>" value
    """
    if not provided_signature:
        return False

    expected = compute_signature(secret, raw_payload)
    return hmac.compare_digest(
        expected.encode("utf-8"),
        provided_signature.encode("utf-8")
    )


def ensure_valid_signature(secret: Union[str, bytes], event: InboundEvent) -> None:
    """
    Verify an inbound event and raise if it isn't authentic.

    Raises:
        WebhookSecurityError: If the signature is missing or doesn't match
    """
    if not event.signature:
        logger.warning("Missing webhook signature header", delivery_id=event.delivery_id)
        raise WebhookSecurityError("Missing webhook signature")

    if not verify_signature(secret, event.payload, event.signature):
        logger.warning(
            "Webhook signature mismatch",
            delivery_id=event.delivery_id,
            event_type=event.event_type
        )
        raise WebhookSecurityError("Invalid webhook signature")

    logger.debug("Webhook signature verified successfully", delivery_id=event.delivery_id)


def extract_delivery_id(request: Request) -> Optional[str]:
    """
    Extract the webhook delivery ID from headers.

    This is useful for correlating log entries with GitHub's delivery log.
    """
    return request.headers.get(DELIVERY_HEADER)


async def read_inbound_event(request: Request) -> InboundEvent:
    """Read the raw body and webhook headers off a request."""
    return InboundEvent(
        payload=await request.body(),
        event_type=request.headers.get(EVENT_HEADER),
        signature=request.headers.get(SIGNATURE_HEADER),
        delivery_id=extract_delivery_id(request),
    )
