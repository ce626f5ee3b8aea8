"""HTTP client for transport.rest style public transit APIs."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import requests

DEFAULT_TIMEOUT_SECONDS = 10


class UpstreamError(Exception):
    """Raised when a transit API request fails or returns a non-2xx response."""


class TransitClient:
    """Thin wrapper around the transport.rest endpoints using requests.

    The endpoint base URL is passed per call so that one client can walk an
    ordered list of mirrors.
    """

    def __init__(self, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self._timeout_seconds = timeout_seconds

    def search_locations(self, endpoint: str, query: str, results: int = 5) -> list[dict[str, Any]]:
        """Fuzzy location search restricted to stops; returns the raw result array."""
        params = {
            "query": query,
            "results": str(results),
            "stops": "true",
            "addresses": "false",
            "poi": "false",
            "fuzzy": "true",
            "pretty": "false",
        }
        response_json = self._get(endpoint, "/locations", params=params)
        if not isinstance(response_json, list):
            raise UpstreamError(f"Unexpected locations payload from {endpoint}")
        return response_json

    def get_departures(self, endpoint: str, stop_id: str, duration: int = 60) -> list[dict[str, Any]]:
        """Fetch departures for a stop; accepts both array and {departures: [...]} payloads."""
        params = {
            "duration": str(duration),
            "remarks": "false",
            "subStops": "false",
            "entrances": "false",
            "pretty": "false",
        }
        path = f"/stops/{quote(str(stop_id), safe='')}/departures"
        response_json = self._get(endpoint, path, params=params)
        if isinstance(response_json, list):
            return response_json
        if isinstance(response_json, dict):
            return response_json.get("departures") or []
        raise UpstreamError(f"Unexpected departures payload from {endpoint}")

    def _get(self, endpoint: str, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{endpoint.rstrip('/')}{path}"
        headers = {"Cache-Control": "no-store"}
        try:
            response = requests.get(url, headers=headers, params=params, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise UpstreamError(f"Request to {endpoint} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            body_text = response.text.strip()
            detail = f"Status {response.status_code}"
            if body_text:
                detail = f"{detail}, Body: {body_text[:200]}"
            raise UpstreamError(f"Request to {endpoint}{path} failed: {detail}")

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Response from {endpoint} was not valid JSON") from exc


__all__ = ["TransitClient", "UpstreamError"]
