"""
Tests for the Telegram Client

Outbound HTTP is served by httpx.MockTransport; nothing leaves the process.
"""

import httpx
import pytest

from ghrelay.models import ChatConfig, NotificationMessage
from ghrelay.services.telegram_client import TelegramDeliveryError, TelegramNotifier


CHAT = ChatConfig(bot_token="123456:test-token", chat_id="-100200300")
MESSAGE = NotificationMessage(text="<b>hello</b>")


class TestSend:
    """Tests for TelegramNotifier.send."""

    @pytest.mark.asyncio
    async def test_success(self, telegram):
        assert await telegram.notifier().send(MESSAGE, CHAT) is True

        request, body = telegram.calls[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.telegram.org/bot123456:test-token/sendMessage"
        assert body == {
            "chat_id": "-100200300",
            "text": "<b>hello</b>",
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

    @pytest.mark.asyncio
    async def test_thread_id_sent_as_number(self, telegram):
        chat = CHAT.model_copy(update={"thread_id": 17})

        assert await telegram.notifier().send(MESSAGE, chat)

        _, body = telegram.calls[0]
        assert body["message_thread_id"] == 17
        assert isinstance(body["message_thread_id"], int)

    @pytest.mark.asyncio
    async def test_custom_api_base(self, telegram):
        chat = CHAT.model_copy(update={"api_base": "http://localhost:8081"})

        await telegram.notifier().send(MESSAGE, chat)

        request, _ = telegram.calls[0]
        assert str(request.url).startswith("http://localhost:8081/bot")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 403, 429, 500, 502])
    async def test_non_2xx_is_failure(self, make_telegram, status_code: int):
        telegram = make_telegram(status_code=status_code)

        assert await telegram.notifier().send(MESSAGE, CHAT) is False
        assert len(telegram.calls) == 1

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self):
        def _handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        notifier = TelegramNotifier(httpx.AsyncClient(transport=httpx.MockTransport(_handler)))

        assert await notifier.send(MESSAGE, CHAT) is False


class TestSendMessage:
    """Tests for the raising low-level call."""

    @pytest.mark.asyncio
    async def test_error_carries_status_and_body(self, make_telegram):
        telegram = make_telegram(status_code=400)

        with pytest.raises(TelegramDeliveryError) as exc_info:
            await telegram.notifier().send_message(MESSAGE, CHAT)

        assert exc_info.value.status_code == 400
        assert "chat not found" in exc_info.value.response_body

    @pytest.mark.asyncio
    async def test_transport_error_hides_url(self):
        def _handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError(f"failed {request.url}", request=request)

        notifier = TelegramNotifier(httpx.AsyncClient(transport=httpx.MockTransport(_handler)))

        with pytest.raises(TelegramDeliveryError) as exc_info:
            await notifier.send_message(MESSAGE, CHAT)

        assert "test-token" not in str(exc_info.value)
