"""Data structures for rendering board frames."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DepartureRow:
    """Single departure row for display."""

    line: str
    destination: str
    minutes: int

    @property
    def arriving_now(self) -> bool:
        return self.minutes == 0


@dataclass(frozen=True)
class BoardFrame:
    """Frame data for the board composer.

    A frame with `message` set replaces all rows with that message.
    """

    rows: list[DepartureRow]  # up to max_rows departures
    station_name: str = ""
    message: str | None = None
    is_error: bool = False


__all__ = ["BoardFrame", "DepartureRow"]
