"""Stop resolution and ordered-fallback departure loading."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Iterable, Sequence

from departure_board.data.transit_client import TransitClient, UpstreamError

logger = logging.getLogger(__name__)

STOP_SEARCH_RESULTS = 5
DEFAULT_DURATION_MINUTES = 60


class EmptyQuery(Exception):
    """Raised when no stop name is configured."""


class AllSourcesFailed(Exception):
    """Raised when every endpoint was tried without producing departures."""


@dataclass(frozen=True)
class ResolvedStop:
    id: str
    name: str


@dataclass(frozen=True)
class DepartureBatch:
    """Departures as returned by the one endpoint that produced data."""

    endpoint: str
    stop: ResolvedStop
    departures: list[dict[str, Any]]


def resolve_stop(name: str, endpoint: str, client: TransitClient) -> ResolvedStop | None:
    """Resolve a human-entered stop name to the most relevant stop, if any."""
    if not name or not name.strip():
        raise EmptyQuery("Stop query is empty")

    locations = client.search_locations(endpoint, name.strip(), results=STOP_SEARCH_RESULTS)
    for location in locations:
        if isinstance(location, dict) and location.get("type") == "stop" and location.get("id"):
            return ResolvedStop(id=str(location["id"]), name=str(location.get("name") or name))
    return None


def fetch_departures(
    stop_id: str,
    endpoint: str,
    client: TransitClient,
    duration: int = DEFAULT_DURATION_MINUTES,
) -> list[dict[str, Any]]:
    return client.get_departures(endpoint, stop_id, duration=duration)


def first_non_empty(attempts: Iterable[Callable[[], DepartureBatch | None]]) -> DepartureBatch | None:
    """Run attempts in order and return the first batch that has departures.

    Attempts after the first success are never started.
    """
    for attempt in attempts:
        batch = attempt()
        if batch is not None and batch.departures:
            return batch
    return None


def _attempt_endpoint(
    stop_name: str,
    endpoint: str,
    client: TransitClient,
    duration: int,
) -> DepartureBatch | None:
    try:
        stop = resolve_stop(stop_name, endpoint, client)
    except UpstreamError as exc:
        logger.warning("Stop lookup failed on %s: %s", endpoint, exc)
        return None
    if stop is None:
        logger.info("No stop matching %r on %s", stop_name, endpoint)
        return None

    try:
        departures = fetch_departures(stop.id, endpoint, client, duration=duration)
    except UpstreamError as exc:
        logger.warning("Departure fetch failed on %s for stop %s: %s", endpoint, stop.id, exc)
        departures = []

    if not departures:
        logger.info("No departures for %s (%s) on %s", stop.name, stop.id, endpoint)
    return DepartureBatch(endpoint=endpoint, stop=stop, departures=departures)


def load_departures(
    stop_name: str,
    endpoints: Sequence[str],
    client: TransitClient,
    duration: int = DEFAULT_DURATION_MINUTES,
) -> DepartureBatch:
    """Try each endpoint in order until one yields departures.

    Results from different endpoints are never merged. Raises EmptyQuery for a
    blank stop name and AllSourcesFailed when no endpoint produced data.
    """
    if not stop_name or not stop_name.strip():
        raise EmptyQuery("Stop query is empty")

    attempts = (
        lambda endpoint=endpoint: _attempt_endpoint(stop_name, endpoint, client, duration)
        for endpoint in endpoints
    )
    batch = first_non_empty(attempts)
    if batch is None:
        logger.error("All %d data sources failed for %r", len(endpoints), stop_name)
        raise AllSourcesFailed(f"All data sources failed for stop {stop_name!r}")

    logger.info(
        "Loaded %d departures for %s from %s",
        len(batch.departures),
        batch.stop.name,
        batch.endpoint,
    )
    return batch


__all__ = [
    "AllSourcesFailed",
    "DepartureBatch",
    "EmptyQuery",
    "ResolvedStop",
    "fetch_departures",
    "first_non_empty",
    "load_departures",
    "resolve_stop",
]
