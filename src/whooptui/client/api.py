"""Typed facade over the WHOOP data API endpoints used by the terminal client.

Each method issues exactly one request through
:class:`~whooptui.client.dispatcher.ApiDispatcher`. Collection endpoints
return a :class:`~whooptui.models.Collection` whose ``next_token`` is
surfaced to the caller but never followed.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from whooptui.client.dispatcher import ApiDispatcher
from whooptui.exceptions import ApiError
from whooptui.models import Collection

PROFILE_PATH = "/user/profile/basic"
SLEEP_PATH = "/activity/sleep"
RECOVERY_PATH = "/recovery"
CYCLE_PATH = "/cycle"

DEFAULT_LIMIT = 7


class WhoopApi:
    """Profile, sleep, recovery, and cycle lookups.

    Args:
        dispatcher: The authenticated dispatcher that performs the calls.
    """

    def __init__(self, dispatcher: ApiDispatcher) -> None:
        self._dispatcher = dispatcher

    def get_profile(self) -> dict[str, Any]:
        """Return the basic profile (``user_id``, ``email``, names)."""
        data = self._dispatcher.call(PROFILE_PATH)
        return data if isinstance(data, dict) else {}

    def get_sleep(self, limit: int = DEFAULT_LIMIT, next_token: Optional[str] = None) -> Collection:
        return self._collection(SLEEP_PATH, limit, next_token)

    def get_recovery(
        self, limit: int = DEFAULT_LIMIT, next_token: Optional[str] = None
    ) -> Collection:
        return self._collection(RECOVERY_PATH, limit, next_token)

    def get_cycles(self, limit: int = DEFAULT_LIMIT, next_token: Optional[str] = None) -> Collection:
        """Return physiological cycles; each carries the day's strain score."""
        return self._collection(CYCLE_PATH, limit, next_token)

    def _collection(self, path: str, limit: int, next_token: Optional[str]) -> Collection:
        data = self._dispatcher.call(path, {"limit": limit, "nextToken": next_token})
        try:
            return Collection.model_validate(data)
        except ValidationError as exc:
            raise ApiError(f"Unexpected collection payload from {path}: {exc}") from exc
