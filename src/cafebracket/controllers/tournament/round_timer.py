"""Round countdown clock.

The clock belongs to the display of one round. It is not stored in the
tournament document and goes back to its full duration whenever a new round
begins. Ticks come from a one-second ``QTimer`` on the Qt event loop.
"""

# Cafe Bracket
# Copyright (C) 2025  Cafe Bracket developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from PyQt6 import QtCore
from PyQt6.QtCore import pyqtSignal

from cafebracket.constants import (
    SECONDS_PER_MINUTE,
    TIMER_FINISHED,
    TIMER_IDLE,
    TIMER_PAUSED,
    TIMER_RUNNING,
    TIMER_TICK_INTERVAL_MS,
    URGENCY_CRITICAL,
    URGENCY_CRITICAL_BELOW,
    URGENCY_NOMINAL,
    URGENCY_NOMINAL_ABOVE,
    URGENCY_WARNING,
)
from cafebracket.type_hints import Urgency
from cafebracket.utils import setup_logger

logger = setup_logger(__name__)


class TimerState(str, Enum):
    IDLE = TIMER_IDLE
    RUNNING = TIMER_RUNNING
    PAUSED = TIMER_PAUSED
    FINISHED = TIMER_FINISHED


def progress_fraction(remaining: int, duration: int) -> float:
    """Share of the round clock still left, between 0.0 and 1.0."""
    if duration <= 0:
        return 0.0
    return max(0.0, min(1.0, remaining / duration))


def urgency_for(remaining: int, duration: int) -> Urgency:
    """Map the remaining time to a display urgency.

    More than half left is nominal, from a fifth up to half is a warning,
    below a fifth is critical.
    """
    fraction = progress_fraction(remaining, duration)
    if fraction > URGENCY_NOMINAL_ABOVE:
        return URGENCY_NOMINAL
    if fraction >= URGENCY_CRITICAL_BELOW:
        return URGENCY_WARNING
    return URGENCY_CRITICAL


def format_clock(seconds: int) -> str:
    """Format seconds as ``MM:SS``; minutes are not wrapped at 60."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, SECONDS_PER_MINUTE)
    return f"{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class TimerSnapshot:
    """Read-only view of the clock for display."""

    state: TimerState
    remaining: int
    duration: int

    @property
    def fraction(self) -> float:
        return progress_fraction(self.remaining, self.duration)

    @property
    def urgency(self) -> Urgency:
        return urgency_for(self.remaining, self.duration)

    @property
    def clock(self) -> str:
        return format_clock(self.remaining)


class RoundTimer(QtCore.QObject):
    """Countdown for the active round.

    States: idle (full duration), running, paused, finished (at zero).
    ``start`` and ``pause`` are no-ops outside the states they apply to;
    ``reset`` always returns to idle. Reaching zero emits ``finished`` once
    and calls ``on_finish`` once, then the clock holds at zero until reset.
    """

    tick = pyqtSignal(int)
    state_changed = pyqtSignal(str)
    finished = pyqtSignal()
    # Emitted from other threads to reset on the timer's own thread
    reset_requested = pyqtSignal(int)

    def __init__(
        self,
        duration_seconds: int,
        on_finish: Optional[Callable[[], None]] = None,
        parent: Optional[QtCore.QObject] = None,
    ):
        super().__init__(parent)
        if duration_seconds <= 0:
            raise ValueError(f"Timer duration must be positive: {duration_seconds}")

        self.duration_seconds = int(duration_seconds)
        self.remaining = self.duration_seconds
        self.state = TimerState.IDLE
        self.on_finish = on_finish

        self._qtimer: Optional[QtCore.QTimer] = QtCore.QTimer(self)
        self._qtimer.setInterval(TIMER_TICK_INTERVAL_MS)
        self._qtimer.timeout.connect(self.on_tick)
        self.reset_requested.connect(self.reset)

    @classmethod
    def for_minutes(
        cls,
        minutes: int,
        on_finish: Optional[Callable[[], None]] = None,
        parent: Optional[QtCore.QObject] = None,
    ) -> "RoundTimer":
        return cls(minutes * SECONDS_PER_MINUTE, on_finish=on_finish, parent=parent)

    # ========== Properties ==========

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def is_finished(self) -> bool:
        return self.state is TimerState.FINISHED

    @property
    def is_ticking(self) -> bool:
        """Whether a tick is currently scheduled."""
        return self._qtimer is not None and self._qtimer.isActive()

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            state=self.state, remaining=self.remaining, duration=self.duration_seconds
        )

    # ========== Controls ==========

    def start(self) -> None:
        """Idle/paused to running. No-op when running or finished."""
        if self.state in (TimerState.RUNNING, TimerState.FINISHED):
            return
        if self._qtimer is None:
            logger.warning("Cannot start a timer that has been torn down")
            return
        self._set_state(TimerState.RUNNING)
        self._qtimer.start()

    def pause(self) -> None:
        """Running to paused. No-op otherwise."""
        if self.state is not TimerState.RUNNING:
            return
        self._stop_ticking()
        self._set_state(TimerState.PAUSED)

    def reset(self, duration_seconds: Optional[int] = None) -> None:
        """Return to idle with the full duration, clearing finished.

        Args:
            duration_seconds: New duration, when the clock now serves a
                tournament with a different round length
        """
        self._stop_ticking()
        if duration_seconds is not None:
            if duration_seconds <= 0:
                raise ValueError(f"Timer duration must be positive: {duration_seconds}")
            self.duration_seconds = int(duration_seconds)
        self.remaining = self.duration_seconds
        self._set_state(TimerState.IDLE)
        self.tick.emit(self.remaining)

    def teardown(self) -> None:
        """Cancel the tick for good; the timer cannot be started again."""
        if self._qtimer is None:
            return
        self._qtimer.stop()
        self._qtimer.timeout.disconnect(self.on_tick)
        self._qtimer.deleteLater()
        self._qtimer = None
        if self.state is TimerState.RUNNING:
            self._set_state(TimerState.PAUSED)

    # ========== Ticking ==========

    def on_tick(self) -> None:
        """Count one elapsed second. Ignored unless running."""
        if self.state is not TimerState.RUNNING:
            return

        self.remaining = max(0, self.remaining - 1)
        self.tick.emit(self.remaining)

        if self.remaining == 0:
            self._stop_ticking()
            self._set_state(TimerState.FINISHED)
            logger.info("Round time is up")
            self.finished.emit()
            if self.on_finish is not None:
                self.on_finish()

    def _stop_ticking(self) -> None:
        if self._qtimer is not None:
            self._qtimer.stop()

    def _set_state(self, state: TimerState) -> None:
        if state is self.state:
            return
        self.state = state
        self.state_changed.emit(state.value)
