from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from departure_board.data.pipeline import (
    AllSourcesFailed,
    DepartureBatch,
    EmptyQuery,
    ResolvedStop,
    first_non_empty,
    load_departures,
    resolve_stop,
)
from departure_board.data.transit_client import UpstreamError

A = "https://a.example"
B = "https://b.example"


def _client(locations: dict, departures: dict) -> MagicMock:
    """Fake client; values that are exceptions are raised."""

    def search_locations(endpoint, query, results=5):
        value = locations[endpoint]
        if isinstance(value, Exception):
            raise value
        return value

    def get_departures(endpoint, stop_id, duration=60):
        value = departures[endpoint]
        if isinstance(value, Exception):
            raise value
        return value

    client = MagicMock()
    client.search_locations.side_effect = search_locations
    client.get_departures.side_effect = get_departures
    return client


def _stop(stop_id: str = "900100003", name: str = "S+U Alexanderplatz") -> dict:
    return {"type": "stop", "id": stop_id, "name": name}


def test_resolve_stop_keeps_first_stop() -> None:
    client = _client(
        {A: [{"type": "location", "id": "x"}, _stop("1", "First"), _stop("2", "Second")]},
        {},
    )

    assert resolve_stop("Alex", A, client) == ResolvedStop(id="1", name="First")


def test_resolve_stop_no_match() -> None:
    client = _client({A: [{"type": "poi", "id": "p1", "name": "Museum"}]}, {})

    assert resolve_stop("Museum", A, client) is None


def test_resolve_stop_blank_name() -> None:
    client = _client({}, {})

    with pytest.raises(EmptyQuery):
        resolve_stop("   ", A, client)
    client.search_locations.assert_not_called()


def test_resolve_stop_upstream_error_propagates() -> None:
    client = _client({A: UpstreamError("HTTP 500")}, {})

    with pytest.raises(UpstreamError):
        resolve_stop("Alex", A, client)


def test_first_non_empty_stops_at_first_success() -> None:
    stop = ResolvedStop(id="1", name="Stop")
    calls = []

    def attempt(name, departures):
        def run():
            calls.append(name)
            return DepartureBatch(endpoint=name, stop=stop, departures=departures) if departures is not None else None

        return run

    batch = first_non_empty([attempt("a", None), attempt("b", []), attempt("c", [{}]), attempt("d", [{}])])

    assert batch is not None
    assert batch.endpoint == "c"
    assert calls == ["a", "b", "c"]


def test_first_non_empty_all_empty() -> None:
    assert first_non_empty([lambda: None]) is None
    assert first_non_empty([]) is None


def test_load_departures_falls_back_when_first_is_empty() -> None:
    b_records = [{"tripId": "1"}, {"tripId": "2"}, {"tripId": "3"}]
    client = _client({A: [_stop()], B: [_stop()]}, {A: [], B: b_records})

    batch = load_departures("Alexanderplatz", [A, B], client)

    assert batch.endpoint == B
    assert batch.departures == b_records
    assert [call.args[0] for call in client.search_locations.call_args_list] == [A, B]


def test_load_departures_never_queries_second_after_success() -> None:
    a_records = [{"tripId": "1"}, {"tripId": "2"}]
    client = _client({A: [_stop()], B: [_stop()]}, {A: a_records, B: [{"tripId": "x"}]})

    batch = load_departures("Alexanderplatz", [A, B], client)

    assert batch.departures == a_records
    assert batch.stop.name == "S+U Alexanderplatz"
    assert [call.args[0] for call in client.search_locations.call_args_list] == [A]
    assert [call.args[0] for call in client.get_departures.call_args_list] == [A]


def test_load_departures_swallows_endpoint_errors() -> None:
    client = _client(
        {A: UpstreamError("HTTP 502"), B: [_stop()]},
        {B: [{"tripId": "1"}]},
    )

    batch = load_departures("Alexanderplatz", [A, B], client)

    assert batch.endpoint == B


def test_load_departures_fetch_failure_moves_on() -> None:
    client = _client({A: [_stop()], B: [_stop()]}, {A: UpstreamError("timeout"), B: [{"tripId": "1"}]})

    batch = load_departures("Alexanderplatz", [A, B], client)

    assert batch.endpoint == B


def test_load_departures_unresolved_stop_skips_fetch() -> None:
    client = _client({A: [], B: [_stop()]}, {B: [{"tripId": "1"}]})

    batch = load_departures("Alexanderplatz", [A, B], client)

    assert batch.endpoint == B
    assert [call.args[0] for call in client.get_departures.call_args_list] == [B]


def test_load_departures_total_outage() -> None:
    client = _client({A: UpstreamError("HTTP 500"), B: UpstreamError("HTTP 503")}, {})

    with pytest.raises(AllSourcesFailed):
        load_departures("Alexanderplatz", [A, B], client)


def test_load_departures_blank_query() -> None:
    client = _client({}, {})

    with pytest.raises(EmptyQuery):
        load_departures("", [A, B], client)
    client.search_locations.assert_not_called()


def test_load_departures_passes_duration() -> None:
    client = _client({A: [_stop()]}, {A: [{"tripId": "1"}]})

    load_departures("Alexanderplatz", [A], client, duration=30)

    assert client.get_departures.call_args.kwargs["duration"] == 30


def test_load_departures_every_endpoint_empty() -> None:
    client = _client({A: [_stop()], B: [_stop()]}, {A: [], B: []})

    with pytest.raises(AllSourcesFailed):
        load_departures("Alexanderplatz", [A, B], client)
    assert [call.args[0] for call in client.get_departures.call_args_list] == [A, B]
