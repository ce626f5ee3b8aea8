from __future__ import annotations

from http.server import HTTPServer
import threading
import time
from unittest.mock import MagicMock

import requests

from departure_board.config import ApiConfig, AppConfig, BoardConfig, DisplayConfig, FilterConfig, LoggingConfig
from departure_board.data.suggestions import StopSuggester
from scripts.live_preview import _make_handler, apply_stop_override


def _config(stop_query: str = "Alexanderplatz") -> AppConfig:
    return AppConfig(
        board=BoardConfig(stop_query=stop_query),
        display=DisplayConfig(width=960, height=360),
        api=ApiConfig(endpoints=("https://a.example",)),
        filter=FilterConfig(),
        log=LoggingConfig(level="INFO", log_dir="logs/"),
    )


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def test_stop_override_replaces_configured_stop() -> None:
    config = _config()

    overridden = apply_stop_override(config, "  Hermannplatz ")

    assert overridden.board.stop_query == "Hermannplatz"
    assert overridden.board.max_rows == config.board.max_rows
    assert config.board.stop_query == "Alexanderplatz"


def test_blank_stop_override_keeps_config() -> None:
    config = _config()

    assert apply_stop_override(config, None) is config
    assert apply_stop_override(config, "   ") is config


def test_suggest_route_publishes_debounced_suggestions() -> None:
    client = MagicMock()
    client.search_locations.return_value = [
        {"type": "stop", "id": "900100003", "name": "S+U Alexanderplatz"},
        {"type": "address", "id": "a1", "name": "Alexanderstr. 1"},
    ]
    suggester = StopSuggester(client, "https://a.example", debounce_seconds=0.01)
    server = HTTPServer(("127.0.0.1", 0), _make_handler(MagicMock(), suggester))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{server.server_address[1]}"

    try:
        response = requests.get(f"{base}/suggest", params={"q": "Alex"}, allow_redirects=False, timeout=2)
        assert response.status_code == 202

        assert _wait_for(lambda: requests.get(f"{base}/suggestions", timeout=2).json() != [])
        assert requests.get(f"{base}/suggestions", timeout=2).json() == [
            {"id": "900100003", "name": "S+U Alexanderplatz"}
        ]
        client.search_locations.assert_called_once_with("https://a.example", "Alex", results=8)
    finally:
        server.shutdown()
        server.server_close()
        suggester.cancel()
