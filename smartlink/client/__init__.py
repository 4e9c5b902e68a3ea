"""Client-side API wrapper and state store for UIs built on the Smart Link API."""

from smartlink.client.api import ApiError, SmartLinkClient
from smartlink.client.debounce import SearchDebouncer
from smartlink.client.store import SiteState, SiteStore, filter_sites

__all__ = [
    "ApiError",
    "SearchDebouncer",
    "SiteState",
    "SiteStore",
    "SmartLinkClient",
    "filter_sites",
]
