"""
Webhook Handler Module

This module defines the FastAPI endpoint that receives GitHub webhooks and
relays them to Telegram.

Each delivery runs through a fixed sequence of gates and stops at the
first one that fails:

    method -> signature -> filters -> formatter -> Telegram -> OK

Responses are short plain-text bodies so they read well in GitHub's
"Recent Deliveries" view.
"""

import json
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from ghrelay.config import Settings, get_settings
from ghrelay.logging_config import get_logger
from ghrelay.models import RepositoryRef, Suppressed
from ghrelay.services.formatter import format_event
from ghrelay.services.telegram_client import TelegramNotifier, get_notifier
from ghrelay.webhook.filters import check_filters
from ghrelay.webhook.security import (
    WebhookSecurityError,
    ensure_valid_signature,
    read_inbound_event,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])

METHOD_NOT_ALLOWED = "Method Not Allowed"
INVALID_SIGNATURE = "Invalid signature"
EVENT_IGNORED = "Event not supported or ignored"
DELIVERY_FAILED = "Failed to send to Telegram"
OK = "OK"


class PayloadError(ValueError):
    """Raised when the webhook body isn't a JSON object."""
    pass


def parse_payload(raw_body: bytes) -> Dict[str, Any]:
    """
    Decode a webhook body.

    Raises:
        json.JSONDecodeError: If the body isn't valid JSON
        PayloadError: If the body is valid JSON but not an object
    """
    payload = json.loads(raw_body)
    if not isinstance(payload, dict):
        raise PayloadError("Payload must be a JSON object")
    return payload


@router.api_route(
    "/github",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    response_class=PlainTextResponse,
)
async def github_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    notifier: TelegramNotifier = Depends(get_notifier)
) -> PlainTextResponse:
    """
    GitHub webhook endpoint.

    Only POST is accepted; every other method gets a 405 from here rather
    than from the router so the response body stays plain text.
    """
    if request.method != "POST":
        return PlainTextResponse(METHOD_NOT_ALLOWED, status_code=status.HTTP_405_METHOD_NOT_ALLOWED)

    try:
        return await relay_event(request, settings, notifier)
    except Exception as e:
        logger.error(
            "Webhook processing failed",
            error=str(e),
            error_type=type(e).__name__
        )
        return PlainTextResponse(str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def relay_event(
    request: Request,
    settings: Settings,
    notifier: TelegramNotifier
) -> PlainTextResponse:
    """Run one delivery through signature, filters, formatter and Telegram."""
    event = await read_inbound_event(request)

    with structlog.contextvars.bound_contextvars(
        delivery_id=event.delivery_id,
        event_type=event.event_type
    ):
        logger.info(
            "Received GitHub webhook",
            remote_addr=request.client.host if request.client else "unknown",
            size=len(event.payload)
        )

        try:
            ensure_valid_signature(settings.github_webhook_secret, event)
        except WebhookSecurityError:
            return PlainTextResponse(INVALID_SIGNATURE, status_code=status.HTTP_401_UNAUTHORIZED)

        payload = parse_payload(event.payload)

        reason = check_filters(RepositoryRef.from_payload(payload), settings.filter_config())
        if reason:
            return PlainTextResponse(f"Ignored: {reason}", status_code=status.HTTP_200_OK)

        result = format_event(event.event_type, payload, environment=settings.environment)
        if isinstance(result, Suppressed):
            logger.info("Event ignored", reason=result.reason)
            return PlainTextResponse(EVENT_IGNORED, status_code=status.HTTP_200_OK)

        if not await notifier.send(result, settings.chat_config()):
            return PlainTextResponse(DELIVERY_FAILED, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return PlainTextResponse(OK, status_code=status.HTTP_200_OK)


@router.get("/health")
async def webhook_health() -> Dict[str, str]:
    """
    Health check endpoint for the webhook service.

    Returns:
        Simple health status
    """
    return {"status": "healthy", "service": "webhook"}
