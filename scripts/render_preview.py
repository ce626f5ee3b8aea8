"""Render a board preview page from a saved departures payload."""

from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from typing import Any

from departure_board.data.departures import FilterSettings, parse_time, process_departures
from departure_board.rendering import (
    BoardFrame,
    LayoutEngine,
    LEDRenderer,
    TextMetrics,
    build_rows,
    compose_board,
    render_page,
    save_board,
)


def _load_departures(path: str) -> list[dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        return data.get("departures") or []
    if isinstance(data, list):
        return data
    raise ValueError(f"No departures found in {path}")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("path", help="JSON file with a departures array or {departures: [...]}")
    parser.add_argument("--now", help="ISO timestamp to evaluate departures against (default: now)")
    parser.add_argument("--width", type=int, default=960)
    parser.add_argument("--height", type=int, default=360)
    parser.add_argument("--station", default="")
    parser.add_argument("--output", default="emulator_output/preview.html")
    args = parser.parse_args()

    now = parse_time(args.now) if args.now else datetime.now(timezone.utc)
    if now is None:
        parser.error(f"Invalid --now timestamp: {args.now}")

    departures = process_departures(_load_departures(args.path), now, FilterSettings())
    engine = LayoutEngine(TextMetrics())
    geometry = engine.compute_geometry(args.width, args.height)
    frame = BoardFrame(rows=build_rows(departures, now), station_name=args.station)
    markup = compose_board(frame, geometry, engine, LEDRenderer())

    path = save_board(render_page(markup, args.width, args.height, station_name=args.station), args.output)
    print("preview_written", {"path": str(path), "rows": len(frame.rows)}, flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
