"""
Test Configuration

Pytest configuration and fixtures for the test suite.
"""

import json
import os
from typing import Callable, Dict, Generator, List, Optional, Tuple

# Settings are loaded when ghrelay.main is imported; provide the required ones.
os.environ.setdefault("GITHUB_WEBHOOK_SECRET", "test_secret")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")
os.environ.setdefault("TELEGRAM_CHAT_ID", "-1001234567890")
os.environ.setdefault("LOG_JSON_FORMAT", "false")

import httpx
import pytest
from fastapi.testclient import TestClient

from ghrelay.config import Settings, get_settings
from ghrelay.main import app
from ghrelay.services.telegram_client import TelegramNotifier, get_notifier
from ghrelay.webhook.security import compute_signature

TEST_SECRET = "test_secret"


def make_settings(**overrides) -> Settings:
    """Build settings for a test without reading a local .env file."""
    values = {
        "github_webhook_secret": TEST_SECRET,
        "telegram_bot_token": "123456:test-token",
        "telegram_chat_id": "-1001234567890",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeTelegram:
    """Records sendMessage calls made through an httpx.MockTransport."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.calls: List[Tuple[httpx.Request, Dict]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append((request, json.loads(request.content.decode("utf-8"))))
        if 200 <= self.status_code < 300:
            return httpx.Response(self.status_code, json={"ok": True, "result": {"message_id": 1}})
        return httpx.Response(
            self.status_code,
            json={"ok": False, "description": "Bad Request: chat not found"}
        )

    def notifier(self) -> TelegramNotifier:
        return TelegramNotifier(httpx.AsyncClient(transport=httpx.MockTransport(self.handler)))


@pytest.fixture
def telegram() -> FakeTelegram:
    """Fake Telegram API answering 200."""
    return FakeTelegram()


@pytest.fixture
def settings() -> Settings:
    """Default settings: no filters, no thread, no environment badge."""
    return make_settings()


@pytest.fixture
def client(settings: Settings, telegram: FakeTelegram) -> Generator[TestClient, None, None]:
    """Create a test client wired to the test settings and fake Telegram."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_notifier] = telegram.notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def post_webhook(client: TestClient) -> Callable:
    """Post a signed (or deliberately unsigned) webhook delivery."""
    def _post(
        event: Optional[str],
        payload,
        signature: Optional[str] = "auto",
        raw: Optional[bytes] = None
    ) -> httpx.Response:
        body = raw if raw is not None else json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json", "X-GitHub-Delivery": "delivery-1"}
        if event is not None:
            headers["X-GitHub-Event"] = event
        if signature == "auto":
            headers["X-Hub-Signature-256"] = compute_signature(TEST_SECRET, body)
        elif signature is not None:
            headers["X-Hub-Signature-256"] = signature
        return client.post("/webhook/github", content=body, headers=headers)

    return _post


@pytest.fixture
def repository() -> dict:
    """Repository object shared by all sample payloads."""
    return {
        "id": 111,
        "name": "repo",
        "full_name": "octo/repo",
        "private": False,
        "owner": {"login": "octo", "id": 1, "type": "User"},
        "html_url": "https://github.com/octo/repo",
    }


@pytest.fixture
def push_payload(repository: dict) -> dict:
    """Sample push webhook payload."""
    return {
        "ref": "refs/heads/main",
        "repository": repository,
        "pusher": {"name": "alice", "email": "alice@example.com"},
        "head_commit": {
            "id": "abc123",
            "message": "Fix <script>alert(1)</script> & friends",
            "url": "https://github.com/octo/repo/commit/abc123",
        },
    }


@pytest.fixture
def pull_request_payload(repository: dict) -> dict:
    """Sample pull_request webhook payload."""
    return {
        "action": "opened",
        "number": 42,
        "repository": repository,
        "pull_request": {
            "number": 42,
            "title": "Add new feature",
            "merged": False,
            "user": {"login": "bob"},
            "html_url": "https://github.com/octo/repo/pull/42",
        },
    }


@pytest.fixture
def issue_comment_payload(repository: dict) -> dict:
    """Sample issue_comment webhook payload."""
    return {
        "action": "created",
        "repository": repository,
        "comment": {
            "body": "Looks good to me",
            "user": {"login": "carol"},
            "html_url": "https://github.com/octo/repo/issues/1#issuecomment-9",
        },
    }


@pytest.fixture
def workflow_run_payload(repository: dict) -> dict:
    """Sample workflow_run webhook payload for a failed run."""
    return {
        "action": "completed",
        "repository": repository,
        "workflow_run": {
            "name": "CI",
            "conclusion": "failure",
            "actor": {"login": "dave"},
            "html_url": "https://github.com/octo/repo/actions/runs/7",
        },
    }


@pytest.fixture
def release_payload(repository: dict) -> dict:
    """Sample release webhook payload."""
    return {
        "action": "published",
        "repository": repository,
        "release": {
            "tag_name": "v1.2.0",
            "author": {"login": "erin"},
            "html_url": "https://github.com/octo/repo/releases/tag/v1.2.0",
        },
    }


@pytest.fixture
def repository_payload(repository: dict) -> dict:
    """Sample repository webhook payload."""
    return {"action": "created", "repository": repository}


@pytest.fixture
def make_telegram() -> Callable[..., FakeTelegram]:
    """Factory for fake Telegram APIs answering a given status."""
    return FakeTelegram


@pytest.fixture
def use_settings(client: TestClient) -> Callable[..., Settings]:
    """Swap the settings the webhook handler sees for the rest of the test."""
    def _use(**overrides) -> Settings:
        settings = make_settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: settings
        return settings

    return _use
