"""Standalone HTML output for previewing the board in a browser."""

from __future__ import annotations

from pathlib import Path

from departure_board.rendering.text_metrics import escape_text

PAGE_TEMPLATE = """<!doctype html>
<html>
  <head>
    <meta charset="utf-8">
    <meta http-equiv="refresh" content="{refresh_seconds}">
    <title>{title}</title>
    <style>
      body {{ background: #000; color: #ffb000; font-family: sans-serif; margin: 0; }}
      .station {{ padding: 8px 12px; font-weight: 900; }}
      .led-display {{ width: {width}px; height: {height}px; overflow: hidden; }}
      .departure-row {{ display: flex; align-items: center; gap: 2px; overflow: hidden; }}
      .departure-row__destination {{ overflow: hidden; flex: none; }}
      .departure-row__eta {{ display: flex; justify-content: flex-end; flex: none; }}
      .scrolling-content {{ display: inline-block; animation-name: marquee;
        animation-timing-function: linear; animation-iteration-count: infinite; }}
      @keyframes marquee {{ from {{ transform: translateX(0); }}
        to {{ transform: translateX(var(--scroll-distance)); }} }}
      .arriving-now {{ animation: blink 0.8s steps(1) infinite; }}
      @keyframes blink {{ 50% {{ opacity: 0.35; }} }}
      .led-message {{ padding: 24px; font-size: 32px; font-weight: 900; white-space: pre-line; }}
    </style>
  </head>
  <body>
    <div class="station">{station}</div>
    <div class="led-display">{markup}</div>
  </body>
</html>
"""


def render_page(
    markup: str,
    width: int,
    height: int,
    station_name: str = "",
    refresh_seconds: int = 30,
    title: str = "Departure Board",
) -> str:
    """Wrap composed board markup in a self-contained HTML page."""
    return PAGE_TEMPLATE.format(
        refresh_seconds=max(1, int(refresh_seconds)),
        title=escape_text(title),
        width=width,
        height=height,
        station=escape_text(station_name),
        markup=markup,
    )


def save_board(page: str, path: str = "emulator_output/board.html") -> Path:
    """Save a board page to disk."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(page, encoding="utf-8")
    return output_path


__all__ = ["render_page", "save_board"]
