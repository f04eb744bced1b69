"""HTTP client module for whooptui.

Provides the bearer-authenticated dispatcher and the endpoint facade built
on top of it.

Classes:
    :class:`ApiDispatcher` -- attaches the stored access token, refreshes
    once on 401, and maps failures to :class:`~whooptui.exceptions.ApiError`.
    :class:`WhoopApi` -- profile, sleep, recovery, and cycle lookups.

Example::

    from whooptui.client import ApiDispatcher, WhoopApi

    with ApiDispatcher(store) as dispatcher:
        sleep = WhoopApi(dispatcher).get_sleep(limit=14)
"""

from whooptui.client.api import WhoopApi
from whooptui.client.dispatcher import API_BASE, ApiDispatcher

__all__ = ["API_BASE", "ApiDispatcher", "WhoopApi"]
