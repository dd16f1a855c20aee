"""
Telegram Client Module

This module delivers formatted notifications through the Telegram Bot API.

Design Decisions:
- Use httpx for async HTTP requests
- Exactly one sendMessage attempt per notification, no retries
- The bot token is part of the URL, so URLs are never logged
"""

from typing import Optional

import httpx

from ghrelay.logging_config import get_logger
from ghrelay.models import ChatConfig, NotificationMessage

logger = get_logger(__name__)


class TelegramDeliveryError(Exception):
    """Custom exception for failed sendMessage calls."""
    def __init__(self, message: str, status_code: int = None, response_body: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class TelegramNotifier:
    """
    Sends notifications to a Telegram chat.

    Usage:
        notifier = TelegramNotifier()
        ok = await notifier.send(message, settings.chat_config())

    An httpx.AsyncClient may be injected (tests use one backed by
    httpx.MockTransport); otherwise a client is created per call.
    """

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        self._http_client = http_client

    async def send(self, message: NotificationMessage, chat: ChatConfig) -> bool:
        """
        Deliver a message to the configured chat.

        Returns:
            True if Telegram answered with a 2xx status, False otherwise
        """
        try:
            await self.send_message(message, chat)
        except TelegramDeliveryError as e:
            logger.error(
                "Telegram delivery failed",
                chat_id=chat.chat_id,
                status_code=e.status_code,
                error=str(e)
            )
            return False

        logger.info("Notification sent", chat_id=chat.chat_id, thread_id=chat.thread_id)
        return True

    async def send_message(self, message: NotificationMessage, chat: ChatConfig) -> httpx.Response:
        """
        POST a sendMessage request.

        Raises:
            TelegramDeliveryError: On transport errors or a non-2xx answer
        """
        body = message.to_request(chat)

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    chat.send_message_url, json=body, timeout=chat.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=chat.timeout) as client:
                    response = await client.post(chat.send_message_url, json=body)
        except httpx.HTTPError as e:
            # str(e) may embed the request URL and with it the bot token
            raise TelegramDeliveryError(f"Telegram request failed: {type(e).__name__}") from e

        if not response.is_success:
            raise TelegramDeliveryError(
                f"Telegram API error: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text[:500]
            )

        return response


def get_notifier() -> TelegramNotifier:
    """Dependency provider for the webhook handler."""
    return TelegramNotifier()
