from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock

from departure_board.data.pipeline import ResolvedStop
from departure_board.data.suggestions import StopSuggester
from departure_board.data.transit_client import UpstreamError
from departure_board.scheduling import Debouncer, RefreshLoop


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def test_refresh_loop_start_and_stop() -> None:
    calls = []
    loop = RefreshLoop(lambda: calls.append(time.time()), interval_seconds=0.05)

    loop.start()
    assert _wait_for(lambda: len(calls) >= 2)
    loop.stop()

    thread = loop._thread
    assert thread is not None
    thread.join(timeout=2)
    assert not thread.is_alive()
    assert not loop.running


def test_refresh_loop_survives_callback_errors() -> None:
    calls = []

    def flaky() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    loop = RefreshLoop(flaky, interval_seconds=0.01)
    loop.start()
    assert _wait_for(lambda: len(calls) >= 2)
    loop.stop()


def test_debouncer_runs_only_last_call() -> None:
    seen = []
    done = threading.Event()

    def record(value: str) -> None:
        seen.append(value)
        done.set()

    debouncer = Debouncer(record, delay_seconds=0.1)
    for value in ("A", "Al", "Ale", "Alex"):
        debouncer.call(value)

    assert done.wait(timeout=2)
    time.sleep(0.15)
    assert seen == ["Alex"]


def test_debouncer_cancel() -> None:
    seen = []
    debouncer = Debouncer(seen.append, delay_seconds=0.05)

    debouncer.call("Alex")
    debouncer.cancel()
    time.sleep(0.15)

    assert seen == []


def _suggestion_client() -> MagicMock:
    client = MagicMock()
    client.search_locations.return_value = [
        {"type": "stop", "id": "900100003", "name": "S+U Alexanderplatz"},
        {"type": "address", "id": "a1", "name": "Alexanderstr. 1"},
        {"type": "stop", "id": "900100026", "name": "S+U Alexanderplatz/Dircksenstr."},
    ]
    return client


def test_search_filters_to_stops() -> None:
    client = _suggestion_client()
    suggester = StopSuggester(client, "https://a.example", on_suggestions=MagicMock())

    suggestions = suggester.search("Alex")

    assert suggestions == [
        ResolvedStop(id="900100003", name="S+U Alexanderplatz"),
        ResolvedStop(id="900100026", name="S+U Alexanderplatz/Dircksenstr."),
    ]
    assert client.search_locations.call_args.kwargs["results"] == 8


def test_search_short_query_and_failures_return_empty() -> None:
    client = _suggestion_client()
    suggester = StopSuggester(client, "https://a.example", on_suggestions=MagicMock())

    assert suggester.search("A") == []
    client.search_locations.assert_not_called()

    client.search_locations.side_effect = UpstreamError("HTTP 500")
    assert suggester.search("Alex") == []


def test_superseded_lookup_result_is_discarded() -> None:
    published = []
    suggester = StopSuggester(_suggestion_client(), "https://a.example", on_suggestions=published.append)

    suggester._run_lookup(2, "Alexanderplatz")
    suggester._run_lookup(1, "Alex")

    assert len(published) == 1


def test_on_input_debounces_lookups() -> None:
    client = _suggestion_client()
    published = []
    suggester = StopSuggester(client, "https://a.example", on_suggestions=published.append, debounce_seconds=0.05)

    for value in ("Al", "Ale", "Alex"):
        suggester.on_input(value)

    assert _wait_for(lambda: len(published) == 1)
    time.sleep(0.1)
    assert client.search_locations.call_count == 1
    assert client.search_locations.call_args.args[1] == "Alex"


def test_latest_holds_most_recent_published_suggestions() -> None:
    suggester = StopSuggester(_suggestion_client(), "https://a.example", debounce_seconds=0.01)
    assert suggester.latest == []

    suggester.on_input("Alex")

    assert _wait_for(lambda: len(suggester.latest) == 2)
    assert suggester.latest[0].name == "S+U Alexanderplatz"
