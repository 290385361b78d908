"""Allowlist authorization for deploy requests."""

from __future__ import annotations

from typing import Iterable

from .slack.responses import unauthorized_message


def is_user_authorized(user_id: str | None, allowed_users: Iterable[str]) -> bool:
    """Return ``True`` when ``user_id`` is on the allowlist.

    Slack user ids are compared exactly. An empty allowlist authorizes nobody.
    """

    if not user_id:
        return False
    return user_id in set(allowed_users)


def authorization_error_message(user_id: str) -> str:
    return unauthorized_message(user_id)


__all__ = ["authorization_error_message", "is_user_authorized"]
