"""Rendering utilities for the LED departure board."""

from departure_board.rendering.board import build_rows, compose_board, compose_message
from departure_board.rendering.emulator import render_page, save_board
from departure_board.rendering.frame_data import BoardFrame, DepartureRow
from departure_board.rendering.layout import DestinationLayout, LayoutEngine, LayoutGeometry
from departure_board.rendering.led_svg import LEDRenderer
from departure_board.rendering.text_metrics import TextMetrics

__all__ = [
    "BoardFrame",
    "DepartureRow",
    "DestinationLayout",
    "LEDRenderer",
    "LayoutEngine",
    "LayoutGeometry",
    "TextMetrics",
    "build_rows",
    "compose_board",
    "compose_message",
    "render_page",
    "save_board",
]
