"""
timers.py - Per-project stopwatches with a single-running-timer rule

Everything runs on the Tk event thread. Ticks are scheduled through a
small Scheduler protocol instead of calling `after` directly, so timers
can be driven by hand in tests.

At most one Timer is running at a time: starting one stops every other
timer registered with the same TimerRegistry.
"""

from typing import Any, Callable, Iterator, Optional, Protocol

from models import HistoryData, Project

TICK_MS = 1000


class Scheduler(Protocol):
    """Runs callbacks later on the UI thread."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class TkScheduler:
    """Scheduler backed by a widget's after()/after_cancel()."""

    def __init__(self, widget):
        self.widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> str:
        return self.widget.after(delay_ms, callback)

    def cancel(self, handle: str) -> None:
        self.widget.after_cancel(handle)


class Timer:
    """
    A stopwatch for one project.

    The elapsed count only moves while running, one second per tick.
    Stopping cancels the pending tick, so a quick stop/start never ends
    up with two tick chains counting double.
    """

    def __init__(self, project: Project, scheduler: Scheduler, elapsed: int = 0):
        if elapsed < 0:
            raise ValueError("elapsed must not be negative")
        self.project = project
        self.scheduler = scheduler
        self.running = False
        self._elapsed = elapsed
        self._handle = None
        self._registry: Optional['TimerRegistry'] = None

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    def set_elapsed(self, seconds: int):
        """Manually correct the count (the user edited the time field)."""
        if seconds < 0:
            raise ValueError("elapsed must not be negative")
        self._elapsed = int(seconds)
        if self._registry:
            self._registry._timer_ticked(self)

    def start(self):
        """Start counting and stop every other timer. No-op if running."""
        if self.running:
            return
        self.running = True
        self._handle = self.scheduler.call_later(TICK_MS, self._tick)
        if self._registry:
            self._registry.stop_others(self)
            self._registry._state_changed(self)

    def stop(self):
        """Stop counting. Safe to call when already stopped."""
        was_running = self.running
        self.running = False
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
            self._handle = None
        if was_running and self._registry:
            self._registry._state_changed(self)

    def _tick(self):
        self._handle = None
        if not self.running:
            return
        self._elapsed += 1
        self._handle = self.scheduler.call_later(TICK_MS, self._tick)
        if self._registry:
            self._registry._timer_ticked(self)

    def __repr__(self):
        state = "running" if self.running else "stopped"
        return f"Timer({self.project.name!r}, {self._elapsed}s, {state})"


class TimerRegistry:
    """
    The set of timers shown in the main window, each paired with the
    HistoryData row its time is saved to.

    Owned by the application; pass it to whatever needs to start or stop
    timers.

    Args:
        on_tick: Called with the total of all timers after every tick
        on_state_change: Called with a timer after it starts or stops
    """

    def __init__(self, on_tick: Optional[Callable[[int], None]] = None,
                 on_state_change: Optional[Callable[[Timer], None]] = None):
        self.on_tick = on_tick
        self.on_state_change = on_state_change
        self._entries: dict[Timer, HistoryData] = {}

    def add(self, timer: Timer, data: HistoryData) -> Timer:
        timer._registry = self
        self._entries[timer] = data
        return timer

    @property
    def timers(self) -> list[Timer]:
        return list(self._entries)

    def items(self) -> Iterator[tuple[Timer, HistoryData]]:
        return iter(list(self._entries.items()))

    def __len__(self):
        return len(self._entries)

    def get(self, project_id: int) -> Optional[Timer]:
        for timer in self._entries:
            if timer.project.id == project_id:
                return timer
        return None

    def start_exclusive(self, project_id: int) -> Timer:
        """
        Start the timer of one project, stopping all others.

        Raises:
            KeyError: If no timer is registered for project_id
        """
        timer = self.get(project_id)
        if timer is None:
            raise KeyError(project_id)
        timer.start()
        return timer

    def start_autostart(self) -> Optional[Timer]:
        """Start the first autostart project's timer. Later ones stay stopped."""
        timer = next((t for t in self._entries if t.project.autostart), None)
        if timer is not None:
            timer.start()
        return timer

    def stop_others(self, keep: Timer):
        for timer in self._entries:
            if timer is not keep and timer.running:
                timer.stop()

    def stop_all(self):
        for timer in self._entries:
            timer.stop()

    def running_timer(self) -> Optional[Timer]:
        for timer in self._entries:
            if timer.running:
                return timer
        return None

    def total_seconds(self) -> int:
        return sum(timer.elapsed_seconds for timer in self._entries)

    def sync(self):
        """Copy every timer's count into its HistoryData for saving."""
        for timer, data in self._entries.items():
            data.time = timer.elapsed_seconds

    def clear(self):
        """Stop and forget all timers."""
        self.stop_all()
        for timer in self._entries:
            timer._registry = None
        self._entries.clear()

    def _timer_ticked(self, timer: Timer):
        if self.on_tick:
            self.on_tick(self.total_seconds())

    def _state_changed(self, timer: Timer):
        if self.on_state_change:
            self.on_state_change(timer)
