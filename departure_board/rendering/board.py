"""Board composer: turns frame data into inline LED markup."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from departure_board.data.departures import NormalizedDeparture, minutes_until
from departure_board.rendering.frame_data import BoardFrame, DepartureRow
from departure_board.rendering.layout import (
    DESTINATION_INSET,
    DestinationLayout,
    LayoutEngine,
    LayoutGeometry,
    format_line_code,
)
from departure_board.rendering.led_svg import LEDRenderer
from departure_board.rendering.text_metrics import escape_text

NO_DEPARTURES_MESSAGE = "Keine weiteren Fahrten"
LINE_SVG_INSET = 8
ETA_NUMBER_CLIP_INSET = 2


def build_rows(departures: Iterable[NormalizedDeparture], now: datetime) -> list[DepartureRow]:
    """Convert filtered departures into display rows."""
    return [
        DepartureRow(
            line=departure.line,
            destination=departure.direction,
            minutes=minutes_until(departure.when, now),
        )
        for departure in departures
        if departure.when is not None
    ]


def _line_cell(row: DepartureRow, geometry: LayoutGeometry, renderer: LEDRenderer) -> str:
    svg_width = geometry.line_column_width - LINE_SVG_INSET
    svg = renderer.render(
        format_line_code(row.line),
        svg_width,
        geometry.dot_height,
        geometry.font_size,
        align="left",
        clip_width=svg_width,
    )
    return f'<div class="departure-row__line" style="width:{geometry.line_column_width}px">{svg}</div>'


def _destination_cell(
    text: str,
    geometry: LayoutGeometry,
    layout_engine: LayoutEngine,
    renderer: LEDRenderer,
) -> str:
    layout: DestinationLayout = layout_engine.layout_destination(
        text, geometry.destination_width, geometry.font_size
    )
    svg = renderer.render(
        layout.text,
        layout.image_width,
        geometry.dot_height,
        geometry.font_size,
        align="left",
        clip_width=layout.clip_width,
    )
    style = f"width:{geometry.destination_width}px"
    if not layout.scrolling:
        return f'<div class="departure-row__destination" style="{style}">{svg}</div>'
    return (
        f'<div class="departure-row__destination scrollable" style="{style}">'
        f'<div class="scrolling-content" style="--scroll-distance:-{layout.total_width:.1f}px;'
        f'animation-duration:{layout.duration_seconds:.2f}s">{svg}</div>'
        f"</div>"
    )


def _eta_cell(
    row: DepartureRow,
    geometry: LayoutGeometry,
    layout_engine: LayoutEngine,
    renderer: LEDRenderer,
) -> str:
    number_width = geometry.number_width
    number_svg = renderer.render(
        str(row.minutes),
        number_width,
        geometry.dot_height,
        geometry.font_size,
        align="right",
        clip_width=number_width - ETA_NUMBER_CLIP_INSET,
    )
    unit_svg = renderer.render(
        layout_engine.unit_label,
        geometry.unit_width,
        geometry.dot_height,
        geometry.font_size,
        align="left",
        clip_width=geometry.unit_width - ETA_NUMBER_CLIP_INSET,
    )
    return (
        f'<div class="departure-row__eta" style="width:{geometry.eta_column_width}px">'
        f"<div>{number_svg}</div><div>{unit_svg}</div>"
        f"</div>"
    )


def _row(
    row: DepartureRow,
    geometry: LayoutGeometry,
    layout_engine: LayoutEngine,
    renderer: LEDRenderer,
) -> str:
    classes = "departure-row arriving-now" if row.arriving_now else "departure-row"
    return (
        f'<div class="{classes}" style="height:{geometry.row_height}px">'
        f"{_line_cell(row, geometry, renderer)}"
        f"{_destination_cell(row.destination, geometry, layout_engine, renderer)}"
        f"{_eta_cell(row, geometry, layout_engine, renderer)}"
        f"</div>"
    )


def _no_departures_row(geometry: LayoutGeometry, layout_engine: LayoutEngine, renderer: LEDRenderer) -> str:
    available_width = geometry.destination_width - DESTINATION_INSET
    message = layout_engine.metrics.truncate_to_width(
        NO_DEPARTURES_MESSAGE, layout_engine.boosted(geometry.font_size), available_width
    )
    svg = renderer.render(
        message,
        geometry.destination_width,
        geometry.dot_height,
        geometry.font_size,
        align="left",
        clip_width=available_width,
    )
    return (
        f'<div class="departure-row" style="height:{geometry.row_height}px">'
        f"<div></div>"
        f'<div class="departure-row__destination" style="width:{geometry.destination_width}px">{svg}</div>'
        f"<div></div>"
        f"</div>"
    )


def compose_message(message: str, is_error: bool = False) -> str:
    """Full-board message that replaces every row."""
    classes = "led-message led-message--error" if is_error else "led-message"
    return f'<div class="{classes}">{escape_text(message)}</div>'


def compose_board(
    frame: BoardFrame,
    geometry: LayoutGeometry,
    layout_engine: LayoutEngine,
    renderer: LEDRenderer,
) -> str:
    """Compose the inner markup of the LED display for one frame."""
    if frame.message is not None:
        return compose_message(frame.message, frame.is_error)
    if not frame.rows:
        return _no_departures_row(geometry, layout_engine, renderer)
    return "".join(_row(row, geometry, layout_engine, renderer) for row in frame.rows)


__all__ = ["NO_DEPARTURES_MESSAGE", "build_rows", "compose_board", "compose_message"]
