"""
Selection State — which map location is active, and when to close a hovered
marker's popup.

Two independent axes:
  Selection:  IDLE -> SELECTED(guid), on marker click or when the host
              changes the active location.
  Hover:      OPEN -> CLOSE_PENDING -> CLOSED. Leaving a marker (or its
              popup) schedules a close after a short debounce. Hovering any
              marker or entering the popup cancels the pending close.

Only one close can be pending at a time; scheduling a new one replaces it.
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from geoops_core.models.location import GeoEntity

DEFAULT_CLOSE_DELAY_SECONDS = 0.150


class HoverPhase(str, Enum):
    NONE = "none"
    OPEN = "open"
    CLOSE_PENDING = "close_pending"
    CLOSED = "closed"


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]


def loop_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Schedule on the running event loop."""
    return asyncio.get_running_loop().call_later(delay, callback)


class SelectionState:
    """Selection and popup-hover state for one map."""

    def __init__(
        self,
        delay: float = DEFAULT_CLOSE_DELAY_SECONDS,
        scheduler: Optional[Scheduler] = None,
    ):
        self.delay = delay
        self._scheduler = scheduler or loop_scheduler

        self.selected_guid: Optional[str] = None
        self.hovered_marker: Any = None
        self.popup_hovered = False
        self.hover_phase = HoverPhase.NONE
        self._pending_close: Optional[TimerHandle] = None

    @property
    def has_pending_close(self) -> bool:
        return self._pending_close is not None

    # --- Selection ---

    def select(self, guid: Optional[str]) -> None:
        """A marker was clicked."""
        self.selected_guid = guid

    def set_active_location(self, location: Optional[GeoEntity]) -> None:
        """The host changed the active location."""
        self.selected_guid = location.guid if location is not None else None

    def is_selected(self, guid: str) -> bool:
        return self.selected_guid is not None and guid == self.selected_guid

    # --- Hover ---

    def marker_over(self, marker: Any) -> None:
        self.cancel_pending_close()
        self.hovered_marker = marker
        open_popup = getattr(marker, "open_popup", None)
        if open_popup is not None:
            open_popup()
        self.hover_phase = HoverPhase.OPEN

    def marker_out(self, marker: Any) -> None:
        self.hovered_marker = marker
        self._schedule_close()

    def popup_enter(self) -> None:
        self.cancel_pending_close()
        self.popup_hovered = True
        self.hover_phase = HoverPhase.OPEN

    def popup_leave(self) -> None:
        self.popup_hovered = False
        self._schedule_close()

    # --- Timer slot ---

    def replace_timer(self, handle: Optional[TimerHandle]) -> None:
        """Put ``handle`` in the single timer slot, cancelling the old one."""
        if self._pending_close is not None:
            self._pending_close.cancel()
        self._pending_close = handle

    def cancel_pending_close(self) -> None:
        self.replace_timer(None)

    def _schedule_close(self) -> None:
        self.replace_timer(self._scheduler(self.delay, self._close_hovered))
        self.hover_phase = HoverPhase.CLOSE_PENDING

    def _close_hovered(self) -> None:
        self._pending_close = None
        marker = self.hovered_marker
        if marker is not None:
            marker.close_popup()
        self.hover_phase = HoverPhase.CLOSED
