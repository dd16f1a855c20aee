"""
Event Filter Module

Decides from repository metadata whether a webhook event should be relayed.
Rules are checked in a fixed order and the first failing rule's reason is
returned; all rules must pass for the event to proceed.
"""

from typing import Optional

from ghrelay.logging_config import get_logger
from ghrelay.models import FilterConfig, RepositoryRef, Visibility

logger = get_logger(__name__)

OWNER_NOT_ALLOWED = "Owner not allowed"
PRIVATE_REPO_IGNORED = "Private repo ignored"
PUBLIC_REPO_IGNORED = "Public repo ignored"
REPO_NOT_ALLOWED = "Repo not allowed"


def check_filters(repo: RepositoryRef, config: FilterConfig) -> Optional[str]:
    """
    Check an event's repository against the operator's filters.

    Args:
        repo: Repository the event belongs to
        config: Allow-lists and visibility mode

    Returns:
        Human-readable suppression reason, or None if the event passes
    """
    reason = None

    if config.allowed_owners and repo.owner not in config.allowed_owners:
        reason = OWNER_NOT_ALLOWED
    elif config.visibility is Visibility.PUBLIC and repo.is_private:
        reason = PRIVATE_REPO_IGNORED
    elif config.visibility is Visibility.PRIVATE and not repo.is_private:
        reason = PUBLIC_REPO_IGNORED
    elif config.allowed_repos and repo.name not in config.allowed_repos:
        reason = REPO_NOT_ALLOWED

    if reason:
        logger.info(
            "Event filtered out",
            reason=reason,
            owner=repo.owner,
            repo=repo.name,
            private=repo.is_private
        )
    return reason
