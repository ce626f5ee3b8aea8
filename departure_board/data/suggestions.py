"""Debounced stop-name suggestions for the stop input."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Callable

from departure_board.data.pipeline import ResolvedStop
from departure_board.data.transit_client import TransitClient, UpstreamError
from departure_board.scheduling import Debouncer

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
SUGGESTION_RESULTS = 8
DEFAULT_DEBOUNCE_SECONDS = 0.3


class StopSuggester:
    """Look up stop suggestions for the latest keystroke in a burst.

    Lookups that finish after a newer one has already been published are
    dropped, so the suggestion list always reflects the most recent request.
    """

    def __init__(
        self,
        client: TransitClient,
        endpoint: str,
        on_suggestions: Callable[[list[ResolvedStop]], None] | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        self._client = client
        self._endpoint = endpoint
        self._on_suggestions = on_suggestions
        self._debouncer = Debouncer(self._run_lookup, debounce_seconds)
        self._sequence = itertools.count(1)
        self._lock = threading.Lock()
        self._published_seq = 0
        self._latest: list[ResolvedStop] = []

    def on_input(self, value: str) -> None:
        """Schedule a lookup for `value`, replacing any pending one."""
        self._debouncer.call(next(self._sequence), value)

    def cancel(self) -> None:
        self._debouncer.cancel()

    @property
    def latest(self) -> list[ResolvedStop]:
        """Most recently published suggestions."""
        with self._lock:
            return list(self._latest)

    def search(self, query: str) -> list[ResolvedStop]:
        """Return stop suggestions for `query`; failures yield an empty list."""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []
        try:
            locations = self._client.search_locations(self._endpoint, query, results=SUGGESTION_RESULTS)
        except UpstreamError as exc:
            logger.warning("Suggestion lookup failed for %r: %s", query, exc)
            return []
        return [
            ResolvedStop(id=str(item["id"]), name=str(item.get("name") or ""))
            for item in locations
            if isinstance(item, dict) and item.get("type") == "stop" and item.get("id")
        ]

    def _run_lookup(self, seq: int, value: str) -> None:
        suggestions = self.search(value)
        with self._lock:
            if seq < self._published_seq:
                logger.debug("Discarding superseded suggestions for %r", value)
                return
            self._published_seq = seq
            self._latest = suggestions
            if self._on_suggestions is not None:
                self._on_suggestions(suggestions)


__all__ = ["StopSuggester"]
