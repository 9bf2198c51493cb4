import pytest

from cafebracket.controllers.tournament import (
    RoundTimer,
    TimerState,
    format_clock,
    urgency_for,
)


@pytest.fixture
def timer(qt_app):
    timer = RoundTimer(5)
    yield timer
    timer.teardown()


def _tick(timer, times):
    for _ in range(times):
        timer.on_tick()


def test_counts_down_to_finished_then_resets(timer):
    timer.start()
    assert timer.state is TimerState.RUNNING
    assert timer.is_ticking

    _tick(timer, 5)

    assert timer.state is TimerState.FINISHED
    assert timer.remaining == 0
    assert not timer.is_ticking

    timer.reset()
    assert timer.remaining == 5
    assert timer.state is TimerState.IDLE
    assert not timer.is_finished


def test_completion_notifies_once(qt_app):
    calls = []
    signals = []
    timer = RoundTimer(2, on_finish=lambda: calls.append(True))
    timer.finished.connect(lambda: signals.append(True))

    timer.start()
    _tick(timer, 10)

    assert calls == [True]
    assert signals == [True]
    assert timer.remaining == 0
    timer.teardown()


def test_pause_when_paused_is_noop(timer):
    timer.start()
    _tick(timer, 2)
    timer.pause()
    timer.pause()

    assert timer.state is TimerState.PAUSED
    assert timer.remaining == 3
    assert not timer.is_ticking


def test_paused_timer_ignores_ticks(timer):
    timer.start()
    timer.pause()
    _tick(timer, 3)
    assert timer.remaining == 5


def test_start_when_finished_is_noop(timer):
    timer.start()
    _tick(timer, 5)
    timer.start()

    assert timer.state is TimerState.FINISHED
    assert not timer.is_ticking


def test_pause_while_idle_is_noop(timer):
    timer.pause()
    assert timer.state is TimerState.IDLE


def test_resume_after_pause(timer):
    timer.start()
    _tick(timer, 1)
    timer.pause()
    timer.start()
    _tick(timer, 1)
    assert timer.state is TimerState.RUNNING
    assert timer.remaining == 3


def test_reset_cancels_scheduled_ticks(timer):
    timer.start()
    _tick(timer, 1)
    timer.reset()

    assert not timer.is_ticking
    _tick(timer, 1)
    assert timer.remaining == 5


def test_reset_with_new_duration(timer):
    timer.reset(120)
    assert timer.duration_seconds == 120
    assert timer.remaining == 120


def test_teardown_leaves_nothing_scheduled(qt_app):
    timer = RoundTimer(5)
    timer.start()
    timer.teardown()

    assert not timer.is_ticking
    assert timer.state is TimerState.PAUSED
    timer.start()
    assert not timer.is_ticking


def test_state_changes_are_signalled(timer):
    states = []
    timer.state_changed.connect(states.append)

    timer.start()
    timer.pause()
    timer.reset()

    assert states == ["running", "paused", "idle"]


def test_duration_must_be_positive(qt_app):
    with pytest.raises(ValueError):
        RoundTimer(0)


def test_for_minutes(qt_app):
    timer = RoundTimer.for_minutes(50)
    assert timer.duration_seconds == 3000
    assert timer.snapshot().clock == "50:00"
    timer.teardown()


@pytest.mark.parametrize(
    "remaining, expected",
    [(100, "nominal"), (51, "nominal"), (50, "warning"), (20, "warning"), (19, "critical"), (0, "critical")],
)
def test_urgency_thresholds(remaining, expected):
    assert urgency_for(remaining, 100) == expected


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "00:00"), (5, "00:05"), (65, "01:05"), (3000, "50:00"), (6000, "100:00"), (-3, "00:00")],
)
def test_format_clock(seconds, expected):
    assert format_clock(seconds) == expected


def test_snapshot_reflects_state(timer):
    timer.start()
    _tick(timer, 4)
    snapshot = timer.snapshot()

    assert snapshot.remaining == 1
    assert snapshot.duration == 5
    assert snapshot.urgency == "warning"
    assert snapshot.fraction == pytest.approx(0.2)
