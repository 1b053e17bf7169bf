"""Tests for Selection State and the popup hover-close debounce."""

import asyncio

from geoops_core.models.location import GeoEntity
from geoops_core.selection.state import HoverPhase, SelectionState


class FakeHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Collects scheduled callbacks; ``fire_all`` runs the live ones."""

    def __init__(self):
        self.handles = []

    def __call__(self, delay, callback):
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    def fire_all(self):
        for handle in list(self.handles):
            if not handle.cancelled:
                handle.cancelled = True
                handle.callback()


class FakeMarker:
    def __init__(self, name):
        self.name = name
        self.open = False
        self.close_count = 0

    def open_popup(self):
        self.open = True

    def close_popup(self):
        self.open = False
        self.close_count += 1


def _state():
    scheduler = FakeScheduler()
    return SelectionState(scheduler=scheduler), scheduler


class TestSelection:
    def test_starts_idle(self):
        state, _ = _state()
        assert state.selected_guid is None
        assert state.hover_phase == HoverPhase.NONE

    def test_marker_click_selects(self):
        state, _ = _state()
        state.select("loc-1")
        assert state.selected_guid == "loc-1"
        assert state.is_selected("loc-1")
        assert not state.is_selected("loc-2")

    def test_active_location_from_host(self):
        state, _ = _state()
        state.set_active_location(GeoEntity(guid="loc-9"))
        assert state.selected_guid == "loc-9"
        state.set_active_location(None)
        assert state.selected_guid is None

    def test_selection_survives_hover_close(self):
        state, scheduler = _state()
        marker = FakeMarker("a")
        state.select("a")
        state.marker_over(marker)
        state.marker_out(marker)
        scheduler.fire_all()
        assert state.selected_guid == "a"
        assert state.hover_phase == HoverPhase.CLOSED


class TestHoverDebounce:
    def test_marker_out_closes_after_delay(self):
        state, scheduler = _state()
        marker = FakeMarker("a")

        state.marker_over(marker)
        assert marker.open
        state.marker_out(marker)

        assert state.hover_phase == HoverPhase.CLOSE_PENDING
        assert scheduler.handles[-1].delay == 0.150
        assert marker.open

        scheduler.fire_all()
        assert not marker.open
        assert not state.has_pending_close

    def test_popup_enter_cancels_close(self):
        state, scheduler = _state()
        marker = FakeMarker("a")
        state.marker_over(marker)
        state.marker_out(marker)
        state.popup_enter()

        scheduler.fire_all()
        assert marker.open
        assert marker.close_count == 0
        assert state.popup_hovered

    def test_popup_leave_restarts_debounce(self):
        state, scheduler = _state()
        marker = FakeMarker("a")
        state.marker_over(marker)
        state.marker_out(marker)
        state.popup_enter()
        state.popup_leave()

        assert state.has_pending_close
        assert not state.popup_hovered
        scheduler.fire_all()
        assert marker.close_count == 1

    def test_rehover_cancels_pending_close(self):
        state, scheduler = _state()
        a, b = FakeMarker("a"), FakeMarker("b")
        state.marker_over(a)
        state.marker_out(a)
        state.marker_over(b)

        scheduler.fire_all()
        assert a.close_count == 0
        assert b.open
        assert state.hover_phase == HoverPhase.OPEN

    def test_single_timer_slot(self):
        state, scheduler = _state()
        marker = FakeMarker("a")
        state.marker_out(marker)
        state.popup_leave()
        state.marker_out(marker)

        live = [h for h in scheduler.handles if not h.cancelled]
        assert len(live) == 1
        scheduler.fire_all()
        assert marker.close_count == 1

    def test_close_without_marker_is_noop(self):
        state, scheduler = _state()
        state.popup_leave()
        scheduler.fire_all()
        assert state.hover_phase == HoverPhase.CLOSED

    def test_event_loop_scheduler(self):
        marker = FakeMarker("a")

        async def scenario():
            state = SelectionState(delay=0.01)
            state.marker_over(marker)
            state.marker_out(marker)
            await asyncio.sleep(0.05)
            return state

        state = asyncio.run(scenario())
        assert marker.close_count == 1
        assert state.hover_phase == HoverPhase.CLOSED
