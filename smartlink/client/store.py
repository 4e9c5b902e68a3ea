"""Client-side site state: the fetched collection plus a filtered view recomputed on every change."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from smartlink.client.api import ApiError

if TYPE_CHECKING:
    from smartlink.client.api import SmartLinkClient

logger = logging.getLogger(__name__)

Site = dict[str, Any]
SEARCH_FIELDS = ("title", "site_url", "category", "description")


def _matches_term(site: Site, needle: str) -> bool:
    for name in SEARCH_FIELDS:
        value = site.get(name)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


def filter_sites(sites: Iterable[Site], search_term: str | None, category: str | None) -> list[Site]:
    """
    Sites whose title/site_url/category/description contain the trimmed search
    term (case-insensitive) and whose category equals `category` exactly.
    Empty term or category disables that filter. Input order is preserved.
    """
    needle = (search_term or "").strip().lower()
    filtered = list(sites)
    if needle:
        filtered = [s for s in filtered if _matches_term(s, needle)]
    if category:
        filtered = [s for s in filtered if s.get("category") == category]
    return filtered


def distinct_categories(sites: Iterable[Site]) -> list[str]:
    """Categories in first-seen order."""
    return list(dict.fromkeys(s["category"] for s in sites if s.get("category")))


@dataclass
class SiteState:
    sites: list[Site] = field(default_factory=list)
    filtered_sites: list[Site] = field(default_factory=list)
    search_term: str = ""
    selected_category: str = ""
    categories: list[str] = field(default_factory=list)
    is_loading: bool = False
    error: str | None = None


class SiteStore:
    """
    Explicitly created state container for one client session.

    `filtered_sites` is never edited directly: every change to the collection,
    search term or category filter recomputes it in full from those three
    inputs. API failures are recorded in `state.error` rather than raised.
    """

    def __init__(self, api: SmartLinkClient) -> None:
        self.api = api
        self.state = SiteState()
        self._listeners: list[Callable[[SiteState], None]] = []
        self._fetch_seq = 0

    def subscribe(self, listener: Callable[[SiteState], None]) -> Callable[[], None]:
        """Call `listener` after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    def _recompute(self) -> None:
        self.state.categories = distinct_categories(self.state.sites)
        self.state.filtered_sites = filter_sites(
            self.state.sites,
            self.state.search_term,
            self.state.selected_category,
        )
        self._notify()

    # Synchronous intents

    def set_search_term(self, term: str) -> None:
        self.state.search_term = term
        self._recompute()

    def set_selected_category(self, category: str | None) -> None:
        self.state.selected_category = category or ""
        self._recompute()

    def clear_error(self) -> None:
        self.state.error = None
        self._notify()

    def replace_sites(self, sites: list[Site]) -> None:
        self.state.sites = list(sites)
        self._recompute()

    # Async intents

    def _begin(self) -> None:
        self.state.is_loading = True
        self.state.error = None
        self._notify()

    def _fail(self, e: ApiError) -> None:
        logger.warning("Site request failed: %s", e.message)
        self.state.is_loading = False
        self.state.error = e.message
        self._notify()

    async def fetch_sites(self) -> None:
        self._fetch_seq += 1
        seq = self._fetch_seq
        self._begin()
        try:
            sites = await self.api.get_sites()
        except ApiError as e:
            if seq == self._fetch_seq:
                self._fail(e)
            return
        # A newer fetch was started while this one was in flight; its result wins.
        if seq != self._fetch_seq:
            return
        self.state.is_loading = False
        self.replace_sites(sites)

    async def create_site(self, data: dict[str, Any]) -> Site | None:
        self._begin()
        try:
            site = await self.api.create_site(data)
        except ApiError as e:
            self._fail(e)
            return None
        self.state.is_loading = False
        self.state.sites.append(site)
        self._recompute()
        return site

    async def update_site(self, site_id: int, data: dict[str, Any]) -> Site | None:
        self._begin()
        try:
            site = await self.api.update_site(site_id, data)
        except ApiError as e:
            self._fail(e)
            return None
        self.state.is_loading = False
        for i, existing in enumerate(self.state.sites):
            if existing.get("id") == site.get("id"):
                self.state.sites[i] = site
                break
        self._recompute()
        return site

    async def delete_site(self, site_id: int) -> bool:
        self._begin()
        try:
            await self.api.delete_site(site_id)
        except ApiError as e:
            self._fail(e)
            return False
        self.state.is_loading = False
        self.state.sites = [s for s in self.state.sites if s.get("id") != site_id]
        self._recompute()
        return True
