"""Unit tests for step schedulers."""

from mindcanvas.config import reset_config
from mindcanvas.scheduling import AfterScheduler, ManualScheduler


class FakeWidget:
    def __init__(self):
        self.calls = {}
        self.canceled = []
        self._next = 0

    def after(self, ms, func):
        self._next += 1
        handle = f"after#{self._next}"
        self.calls[handle] = (ms, func)
        return handle

    def after_cancel(self, handle):
        self.canceled.append(handle)


class TestManualScheduler:
    def test_runs_one_frame_at_a_time(self):
        scheduler = ManualScheduler()
        seen = []

        def tick():
            seen.append(len(seen))
            if len(seen) < 3:
                scheduler.schedule(tick)

        scheduler.schedule(tick)
        assert scheduler.run_pending() == 1
        assert seen == [0]
        assert scheduler.pending == 1
        assert scheduler.run_until_idle() == 2
        assert seen == [0, 1, 2]

    def test_cancel(self):
        scheduler = ManualScheduler()
        seen = []
        handle = scheduler.schedule(lambda: seen.append(1))
        scheduler.cancel(handle)
        scheduler.cancel(handle)
        assert scheduler.run_pending() == 0
        assert seen == []

    def test_cancel_from_earlier_callback_in_same_frame(self):
        scheduler = ManualScheduler()
        seen = []
        handles = {}
        handles["first"] = scheduler.schedule(lambda: scheduler.cancel(handles["second"]))
        handles["second"] = scheduler.schedule(lambda: seen.append("second"))
        assert scheduler.run_pending() == 1
        assert seen == []


class TestAfterScheduler:
    def test_delegates_to_widget(self):
        widget = FakeWidget()
        scheduler = AfterScheduler(widget, interval_ms=20)
        handle = scheduler.schedule(lambda: None)
        assert widget.calls[handle][0] == 20
        scheduler.cancel(handle)
        assert widget.canceled == [handle]

    def test_interval_defaults_to_config(self, monkeypatch):
        monkeypatch.setenv("MINDCANVAS_FRAME_INTERVAL_MS", "33")
        reset_config()
        try:
            widget = FakeWidget()
            handle = AfterScheduler(widget).schedule(lambda: None)
            assert widget.calls[handle][0] == 33
        finally:
            reset_config()
