"""Live preview server for the LED departure board."""

from __future__ import annotations

import argparse
from dataclasses import asdict, replace
import json
import logging
import threading
import time
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any
from urllib.parse import parse_qs, urlparse

from departure_board.config import AppConfig, load_config
from departure_board.controller import BoardController
from departure_board.data.suggestions import StopSuggester
from departure_board.log_setup import configure_logging
from departure_board.rendering import save_board

logger = logging.getLogger("live_preview")

PAGE_PATH = "emulator_output/board.html"


def _make_handler(controller: BoardController, suggester: StopSuggester) -> type[BaseHTTPRequestHandler]:
    class PreviewHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:  # noqa: N802
            parsed = urlparse(self.path)

            if parsed.path == "/healthz":
                state = controller.state
                self.send_response(200)
                self.send_header("Content-Type", "text/plain; charset=utf-8")
                self.end_headers()
                self.wfile.write(state.status.lower().encode("utf-8"))
                return

            if parsed.path == "/stop":
                name = (parse_qs(parsed.query).get("name") or [""])[0]
                threading.Thread(target=controller.set_stop_query, args=(name,), daemon=True).start()
                self.send_response(303)
                self.send_header("Location", "/")
                self.end_headers()
                return

            if parsed.path == "/suggest":
                query = (parse_qs(parsed.query).get("q") or [""])[0]
                suggester.on_input(query)
                self.send_response(202)
                self.send_header("Location", "/suggestions")
                self.end_headers()
                return

            if parsed.path == "/suggestions":
                body = json.dumps([asdict(stop) for stop in suggester.latest])
                self.send_response(200)
                self.send_header("Content-Type", "application/json; charset=utf-8")
                self.end_headers()
                self.wfile.write(body.encode("utf-8"))
                return

            if parsed.path == "/":
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.end_headers()
                self.wfile.write(controller.latest_page().encode("utf-8"))
                return

            self.send_response(404)
            self.end_headers()

        def log_message(self, format: str, *args: Any) -> None:
            return

    return PreviewHandler


def apply_stop_override(config: AppConfig, stop: str | None) -> AppConfig:
    """Return config with board.stop_query replaced by a non-blank `stop`."""
    stop = (stop or "").strip()
    if not stop:
        return config
    return replace(config, board=replace(config.board, stop_query=stop))


def _run_server(controller: BoardController, suggester: StopSuggester, port: int) -> None:
    server = HTTPServer(("0.0.0.0", port), _make_handler(controller, suggester))
    server.serve_forever()


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default="config/config.yaml", help="Path to config YAML")
    parser.add_argument("--stop", help="Override the configured stop name")
    parser.add_argument("--port", type=int, default=8080, help="Preview server port")
    parser.add_argument(
        "--no-server",
        action="store_true",
        help="Disable preview web server and only write the HTML file",
    )
    args = parser.parse_args()

    config = load_config(args.config)
    log_path = configure_logging(config.log)
    logger.info("Logging to %s", log_path)

    config = apply_stop_override(config, args.stop)
    controller = BoardController(config)
    suggester = StopSuggester(
        controller.client,
        config.api.endpoints[0],
        debounce_seconds=config.api.suggestion_debounce_ms / 1000.0,
    )
    controller.start()

    if not args.no_server:
        server_thread = threading.Thread(target=_run_server, args=(controller, suggester, args.port), daemon=True)
        server_thread.start()
        logger.info("Preview server listening on port %d", args.port)

    try:
        while True:
            time.sleep(config.board.refresh_interval_ms / 1000.0)
            path = save_board(controller.latest_page(), PAGE_PATH)
            logger.debug("Wrote %s (state=%s)", path, controller.state.status)
    except KeyboardInterrupt:
        controller.stop()
        suggester.cancel()
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
