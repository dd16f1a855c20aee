"""
Data Models Module

This module defines all Pydantic models used throughout the application.
Strong typing ensures data integrity and provides clear contracts between components.

Design Decisions:
- Use Pydantic models for all data transfer objects
- Configuration and message models are frozen; they live for one request
- Webhook payloads stay plain dicts and are read defensively, since every
  event type has its own schema and missing fields must never fail a request
"""

from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class Visibility(str, Enum):
    """Which repositories the relay forwards events for."""
    PUBLIC = "public"
    PRIVATE = "private"
    ALL = "all"


class EventType(str, Enum):
    """GitHub event types (X-GitHub-Event) that can produce a notification."""
    PUSH = "push"
    PULL_REQUEST = "pull_request"
    ISSUE_COMMENT = "issue_comment"
    WORKFLOW_RUN = "workflow_run"
    RELEASE = "release"
    REPOSITORY = "repository"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["EventType"]:
        """Return the matching member, or None for unknown/absent event types."""
        try:
            return cls(value)
        except ValueError:
            return None


class ParseMode(str, Enum):
    """Telegram markup dialect used for notifications."""
    HTML = "HTML"


# =============================================================================
# Inbound Models
# =============================================================================

class InboundEvent(BaseModel):
    """A webhook request as received: raw body plus the two headers we need."""
    model_config = ConfigDict(frozen=True)

    payload: bytes
    event_type: Optional[str] = None
    signature: Optional[str] = None
    delivery_id: Optional[str] = None


class RepositoryRef(BaseModel):
    """Repository metadata the event filter decides on."""
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    owner: Optional[str] = None
    is_private: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RepositoryRef":
        """Extract repository metadata, tolerating a missing repository object."""
        repo = payload.get("repository")
        if not isinstance(repo, Mapping):
            return cls()
        owner = repo.get("owner")
        return cls(
            name=repo.get("name"),
            owner=owner.get("login") if isinstance(owner, Mapping) else None,
            is_private=bool(repo.get("private")),
        )


# =============================================================================
# Configuration Models
# =============================================================================

class FilterConfig(BaseModel):
    """
    Operator allow-lists and visibility mode.

    Empty allow-lists mean "no restriction".
    """
    model_config = ConfigDict(frozen=True)

    allowed_owners: Tuple[str, ...] = ()
    allowed_repos: Tuple[str, ...] = ()
    visibility: Visibility = Visibility.ALL


class ChatConfig(BaseModel):
    """Telegram destination and transport settings."""
    model_config = ConfigDict(frozen=True)

    bot_token: str
    chat_id: str
    thread_id: Optional[int] = None
    api_base: str = "https://api.telegram.org"
    timeout: float = Field(default=30.0, gt=0)

    @property
    def send_message_url(self) -> str:
        return f"{self.api_base}/bot{self.bot_token}/sendMessage"


# =============================================================================
# Outbound Models
# =============================================================================

class NotificationMessage(BaseModel):
    """
    A formatted notification ready for delivery.

    Attributes:
        text: Message body in the markup dialect given by parse_mode
        parse_mode: Markup dialect Telegram should interpret
        disable_web_page_preview: Suppress link previews under the message
    """
    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    parse_mode: ParseMode = ParseMode.HTML
    disable_web_page_preview: bool = True

    def to_request(self, chat: ChatConfig) -> dict:
        """Build the sendMessage JSON body for the given destination."""
        body = {
            "chat_id": chat.chat_id,
            "text": self.text,
            "parse_mode": self.parse_mode.value,
            "disable_web_page_preview": self.disable_web_page_preview,
        }
        if chat.thread_id is not None:
            body["message_thread_id"] = int(chat.thread_id)
        return body


class Suppressed(BaseModel):
    """Marker returned by the formatter when an event is deliberately not notified."""
    model_config = ConfigDict(frozen=True)

    reason: str


FormatterResult = Union[NotificationMessage, Suppressed]
