"""
Message Formatter Module

This module turns a GitHub webhook event into a Telegram HTML message.

Design Decisions:
- One formatter per supported event type, registered in a closed table
  keyed by EventType; the table is checked against the enum at import
- Payloads are read defensively: a missing field renders as "-"
- Every dynamic value is HTML-escaped before it is embedded
- Unsupported events and events that are deliberately skipped return a
  Suppressed marker rather than raising
"""

from html import escape
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ghrelay.logging_config import get_logger
from ghrelay.models import EventType, FormatterResult, NotificationMessage, Suppressed

logger = get_logger(__name__)

PLACEHOLDER = "-"
RULE = "━━━━━━━━━━━━━━━"

# Telegram rejects messages over 4096 characters; long free text is cut
# before escaping so the rendered message stays under the limit.
MAX_TEXT_LENGTH = 3000

UNSUPPORTED_EVENT = "unsupported event"


def escape_html(value: Any) -> str:
    """Escape a value for Telegram HTML, rendering None as the placeholder."""
    if value is None:
        return PLACEHOLDER
    return escape(str(value), quote=True)


def _dig(data: Any, path: Sequence[str]) -> Any:
    current = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _text(data: Any, *path: str) -> str:
    """Read a nested field and escape it; long values are truncated first."""
    value = _dig(data, path)
    if isinstance(value, str) and len(value) > MAX_TEXT_LENGTH:
        value = value[:MAX_TEXT_LENGTH].rstrip() + "…"
    return escape_html(value)


def _link(url: Any, label: str) -> str:
    return f'🔗 <a href="{escape_html(url)}">{label}</a>'


def _repo_line(payload: Mapping[str, Any]) -> str:
    return f"📁 <b>Repo:</b> <code>{_text(payload, 'repository', 'full_name')}</code>"


# =============================================================================
# Per-event formatters
# =============================================================================

def format_push(payload: Mapping[str, Any]) -> FormatterResult:
    commit_url = _dig(payload, ("head_commit", "url")) or _dig(payload, ("repository", "html_url"))
    return _lines([
        "📦 <b>New Commit Pushed</b>",
        RULE,
        f"👤 <b>Author:</b> {_text(payload, 'pusher', 'name')}",
        _repo_line(payload) + "\n",
        "💬 <b>Commit Message:</b>",
        f"<blockquote expandable>{_text(payload, 'head_commit', 'message')}</blockquote>\n",
        _link(commit_url, "View Commit"),
    ])


def format_pull_request(payload: Mapping[str, Any]) -> FormatterResult:
    merged = bool(_dig(payload, ("pull_request", "merged")))
    action = "Merged" if merged else _text(payload, "action")
    return _lines([
        f"🔀 <b>Pull Request {action}</b>",
        RULE,
        _repo_line(payload),
        f"📌 <b>#{_text(payload, 'pull_request', 'number')}</b> "
        f"by {_text(payload, 'pull_request', 'user', 'login')}\n",
        f"<blockquote expandable>{_text(payload, 'pull_request', 'title')}</blockquote>\n",
        _link(_dig(payload, ("pull_request", "html_url")), "Open PR"),
    ])


def format_issue_comment(payload: Mapping[str, Any]) -> FormatterResult:
    return _lines([
        "💬 <b>New Comment</b>",
        RULE,
        _repo_line(payload),
        f"👤 <b>By:</b> {_text(payload, 'comment', 'user', 'login')}\n",
        f"<blockquote expandable>{_text(payload, 'comment', 'body')}</blockquote>\n",
        _link(_dig(payload, ("comment", "html_url")), "View Comment"),
    ])


def format_workflow_run(payload: Mapping[str, Any]) -> FormatterResult:
    conclusion = _dig(payload, ("workflow_run", "conclusion"))
    if conclusion != "failure":
        return Suppressed(reason=f"workflow conclusion is {conclusion or 'unset'}")
    return _lines([
        "🚨 <b>Workflow Failed</b>",
        RULE,
        _repo_line(payload),
        f"⚙️ <b>Workflow:</b> {_text(payload, 'workflow_run', 'name')}",
        f"👤 <b>By:</b> {_text(payload, 'workflow_run', 'actor', 'login')}\n",
        _link(_dig(payload, ("workflow_run", "html_url")), "View Run"),
    ])


def format_release(payload: Mapping[str, Any]) -> FormatterResult:
    return _lines([
        "🏷️ <b>New Release</b>",
        RULE,
        _repo_line(payload),
        f"🏷️ <b>Tag:</b> {_text(payload, 'release', 'tag_name')}",
        f"👤 <b>By:</b> {_text(payload, 'release', 'author', 'login')}\n",
        _link(_dig(payload, ("release", "html_url")), "View Release"),
    ])


def format_repository(payload: Mapping[str, Any]) -> FormatterResult:
    action = payload.get("action")
    if action not in ("created", "deleted"):
        return Suppressed(reason=f"repository action {action or 'unset'} not relayed")

    created = action == "created"
    lines = [
        "📂 <b>Repository Created</b>" if created else "🗑️ <b>Repository Deleted</b>",
        RULE,
        f"👤 <b>Owner:</b> {_text(payload, 'repository', 'owner', 'login')}",
        _repo_line(payload),
    ]
    if created:
        private = bool(_dig(payload, ("repository", "private")))
        lines.append(f"🔒 <b>Visibility:</b> {'Private' if private else 'Public'}\n")
        lines.append(_link(_dig(payload, ("repository", "html_url")), "Open Repo"))
    return _lines(lines)


def _lines(lines: List[str]) -> NotificationMessage:
    return NotificationMessage(text="\n".join(lines))


_FORMATTERS: Dict[EventType, Callable[[Mapping[str, Any]], FormatterResult]] = {
    EventType.PUSH: format_push,
    EventType.PULL_REQUEST: format_pull_request,
    EventType.ISSUE_COMMENT: format_issue_comment,
    EventType.WORKFLOW_RUN: format_workflow_run,
    EventType.RELEASE: format_release,
    EventType.REPOSITORY: format_repository,
}

_missing = set(EventType) - set(_FORMATTERS)
if _missing:
    raise RuntimeError(f"No formatter registered for: {sorted(e.value for e in _missing)}")


# =============================================================================
# Public API
# =============================================================================

def format_event(
    event_type: Optional[str],
    payload: Mapping[str, Any],
    environment: Optional[str] = None
) -> FormatterResult:
    """
    Format a webhook event as a Telegram notification.

    Args:
        event_type: Value of the X-GitHub-Event header
        payload: Decoded webhook payload
        environment: Optional deployment label appended as a badge

    Returns:
        NotificationMessage, or Suppressed for unsupported/skipped events
    """
    event = EventType.parse(event_type)
    if event is None:
        logger.debug("Unsupported event type", event_type=event_type)
        return Suppressed(reason=UNSUPPORTED_EVENT)

    result = _FORMATTERS[event](payload)
    if isinstance(result, Suppressed):
        logger.debug("Event suppressed by formatter", event_type=event.value, reason=result.reason)
        return result

    if environment:
        result = result.model_copy(
            update={"text": f"{result.text}\n\n🏷 <code>{escape_html(environment)}</code>"}
        )
    return result
