import random

import pytest

from cafebracket.controllers.tournament import TimerState, TournamentCoordinator
from cafebracket.exceptions import (
    InvalidWinnerException,
    PersistenceException,
    RoundIncompleteException,
    StaleRevisionException,
    TournamentStateException,
    ValidationException,
)
from cafebracket.models.tournament import LifecycleState, Tournament, TournamentDraft
from cafebracket.persistence import InMemoryGateway

from conftest import DeferredExecutor, SynchronousExecutor


class RecordingGateway(InMemoryGateway):
    """In-memory gateway that remembers every replace call."""

    def __init__(self, fail_with=None):
        super().__init__()
        self.replaced = []
        self.fail_with = fail_with

    def replace(self, tournament_id, fields, expected_revision=None):
        self.replaced.append(sorted(fields))
        if self.fail_with is not None:
            raise self.fail_with
        return super().replace(tournament_id, fields, expected_revision)


def test_create_builds_active_tournament_and_stores_it(coordinator, gateway, draft):
    tournament = coordinator.create_tournament(draft)

    assert tournament.id is not None
    assert tournament.lifecycle_state is LifecycleState.ACTIVE
    assert tournament.current_round_number == 1
    assert len(tournament.history) == 1
    assert tournament.entry_fee == 5.0
    assert coordinator.lifecycle_state is LifecycleState.ACTIVE

    stored = gateway.get(tournament.id)
    assert stored["name"] == "Friday Night"
    assert stored["roster"] == ["Ana", "Bruno", "Carla", "Dani"]
    assert stored["lifecycleState"] == "active"
    assert stored["revision"] == 1
    assert stored["history"][0]["completed"] is False


def test_create_sets_timer_to_round_length(coordinator, draft):
    coordinator.create_tournament(draft)
    view = coordinator.current_round_view()

    assert view.timer.duration == 60
    assert view.timer.remaining == 60
    assert view.timer.state is TimerState.IDLE


@pytest.mark.parametrize(
    "changes, field",
    [
        ({"name": "   "}, "name"),
        ({"roster": ["Ana"]}, "roster"),
        ({"roster": ["Ana", "Ana "]}, "roster"),
        ({"total_rounds": 0}, "total_rounds"),
        ({"round_duration_minutes": "abc"}, "round_duration_minutes"),
        ({"entry_fee": -1}, "entry_fee"),
    ],
)
def test_invalid_draft_creates_nothing(coordinator, gateway, draft, changes, field):
    for key, value in changes.items():
        setattr(draft, key, value)

    with pytest.raises(ValidationException) as exc_info:
        coordinator.create_tournament(draft)

    assert exc_info.value.field == field
    assert len(gateway) == 0
    assert coordinator.tournament is None


def test_record_result_persists_whole_history(qt_app, rng, draft):
    gateway = RecordingGateway()
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=SynchronousExecutor())
    tournament = coordinator.create_tournament(draft)
    match = coordinator.current_round_view().matches[0]

    completed = coordinator.record_result(1, 0, match.player2)

    assert completed is False
    assert gateway.replaced == [["history"]]
    stored = gateway.get(tournament.id)
    assert stored["history"][0]["matches"][0]["winner"] == match.player2
    assert stored["revision"] == 2
    assert not coordinator.is_dirty
    coordinator.close()


def test_rejected_result_is_not_persisted(qt_app, rng, draft):
    gateway = RecordingGateway()
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=SynchronousExecutor())
    coordinator.create_tournament(draft)

    with pytest.raises(InvalidWinnerException):
        coordinator.record_result(1, 0, "Nobody")

    assert gateway.replaced == []
    coordinator.close()


def test_advance_rejected_without_mutation_or_persist(qt_app, rng, draft):
    gateway = RecordingGateway()
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=SynchronousExecutor())
    tournament = coordinator.create_tournament(draft)
    before = coordinator.tournament.to_dict()

    with pytest.raises(RoundIncompleteException):
        coordinator.advance_round()

    assert coordinator.tournament.to_dict() == before
    assert gateway.replaced == []
    assert gateway.get(tournament.id)["revision"] == 1
    coordinator.close()


def test_full_tournament_flow(qt_app, rng, draft, decide_round):
    gateway = RecordingGateway()
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=SynchronousExecutor())
    tournament = coordinator.create_tournament(draft)

    decide_round(coordinator)
    assert coordinator.current_round_view().completed
    assert coordinator.advance_round() is None

    view = coordinator.current_round_view()
    assert view.number == 2
    assert view.is_last_round
    assert not view.completed
    assert gateway.replaced[-1] == ["currentRoundNumber", "history"]

    decide_round(coordinator, pick=lambda match: match.player2)
    standings = coordinator.advance_round()

    assert gateway.replaced[-1] == ["lifecycleState"]
    assert coordinator.lifecycle_state is LifecycleState.FINISHED
    assert coordinator.tournament.current_round_number == 2
    assert [row.medal for row in standings][:3] == ["gold", "silver", "bronze"]
    assert sum(row.wins for row in standings) == 4

    stored = Tournament.from_dict(gateway.get(tournament.id))
    assert stored.lifecycle_state is LifecycleState.FINISHED
    assert stored.current_round_number == 2
    assert len(stored.history) == 2
    assert not coordinator.is_dirty

    with pytest.raises(TournamentStateException):
        coordinator.advance_round()
    assert coordinator.tournament.current_round_number == 2
    coordinator.close()


def test_new_round_resets_timer(coordinator, draft, decide_round):
    coordinator.create_tournament(draft)
    coordinator.start_timer()
    coordinator.timer.on_tick()
    assert coordinator.current_round_view().timer.remaining == 59

    decide_round(coordinator)
    coordinator.advance_round()

    snapshot = coordinator.current_round_view().timer
    assert snapshot.remaining == 60
    assert snapshot.state is TimerState.IDLE


def test_timer_intents(coordinator, draft):
    coordinator.create_tournament(draft)

    coordinator.start_timer()
    assert coordinator.timer.state is TimerState.RUNNING
    coordinator.pause_timer()
    assert coordinator.timer.state is TimerState.PAUSED
    coordinator.reset_timer()
    assert coordinator.timer.state is TimerState.IDLE


def test_timer_intents_need_a_tournament(coordinator):
    with pytest.raises(TournamentStateException):
        coordinator.start_timer()


def test_time_up_alerts_staff(qt_app, gateway, rng, draft):
    alerts = []
    coordinator = TournamentCoordinator(
        gateway,
        rng=rng,
        executor=SynchronousExecutor(),
        on_time_up=lambda: alerts.append("time"),
    )
    coordinator.create_tournament(draft)
    coordinator.start_timer()
    for _ in range(60):
        coordinator.timer.on_tick()

    assert alerts == ["time"]
    assert coordinator.current_round_view().time_up_with_open_matches
    coordinator.close()


def test_failed_write_keeps_local_change_and_flags_it(qt_app, rng, draft):
    errors = []
    gateway = RecordingGateway()
    coordinator = TournamentCoordinator(
        gateway,
        rng=rng,
        executor=SynchronousExecutor(),
        on_persist_error=errors.append,
    )
    tournament = coordinator.create_tournament(draft)
    gateway.fail_with = PersistenceException("disk full")
    match = coordinator.current_round_view().matches[0]

    coordinator.record_result(1, 0, match.player1)

    assert coordinator.tournament.history[0].matches[0].winner == match.player1
    assert coordinator.is_dirty
    assert isinstance(coordinator.last_persist_error, PersistenceException)
    assert errors == [coordinator.last_persist_error]
    assert gateway.get(tournament.id)["history"][0]["matches"][0]["winner"] is None

    # The next successful write carries the whole history again
    gateway.fail_with = None
    other = coordinator.current_round_view().matches[1]
    coordinator.record_result(1, 1, other.player2)

    assert not coordinator.is_dirty
    assert coordinator.last_persist_error is None
    stored = gateway.get(tournament.id)["history"][0]["matches"]
    assert stored[0]["winner"] == match.player1
    assert stored[1]["winner"] == other.player2
    coordinator.close()


def test_stale_write_is_flagged(qt_app, gateway, rng, draft):
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=SynchronousExecutor())
    tournament = coordinator.create_tournament(draft)
    gateway.replace(tournament.id, {"lifecycleState": "active"})

    coordinator.record_result(1, 0, coordinator.current_round_view().matches[0].player1)

    assert coordinator.is_stale
    assert isinstance(coordinator.last_persist_error, StaleRevisionException)
    assert coordinator.is_dirty

    coordinator.resync()
    assert not coordinator.is_stale
    assert not coordinator.is_dirty
    assert coordinator.tournament.history[0].matches[0].winner is None
    coordinator.close()


class FlakyGateway(InMemoryGateway):
    """In-memory gateway whose next ``failures`` replace calls fail."""

    def __init__(self, failures=0):
        super().__init__()
        self.failures = failures

    def replace(self, tournament_id, fields, expected_revision=None):
        if self.failures:
            self.failures -= 1
            raise PersistenceException("connection reset")
        return super().replace(tournament_id, fields, expected_revision)


def test_failed_write_does_not_block_queued_and_later_writes(qt_app, rng, draft):
    gateway = FlakyGateway()
    executor = DeferredExecutor()
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=executor)
    tournament = coordinator.create_tournament(draft)
    matches = coordinator.current_round_view().matches

    gateway.failures = 1
    coordinator.record_result(1, 0, matches[0].player1)
    coordinator.record_result(1, 1, matches[1].player1)
    executor.run_pending()

    assert not coordinator.is_stale
    assert coordinator.last_persist_error is None
    assert not coordinator.is_dirty
    stored = gateway.get(tournament.id)
    assert stored["revision"] == 2
    assert [m["winner"] for m in stored["history"][0]["matches"]] == [
        matches[0].player1,
        matches[1].player1,
    ]

    # Later intents against the healthy store keep saving
    coordinator.record_result(1, 0, matches[0].player2)
    coordinator.record_result(1, 1, matches[1].player2)
    executor.run_pending()

    stored = gateway.get(tournament.id)
    assert stored["revision"] == 4
    assert [m["winner"] for m in stored["history"][0]["matches"]] == [
        matches[0].player2,
        matches[1].player2,
    ]
    assert not coordinator.is_stale
    assert not coordinator.has_pending_writes
    coordinator.close()


def test_every_queued_write_failing_leaves_coordinator_usable(qt_app, rng, draft):
    errors = []
    gateway = FlakyGateway(failures=2)
    executor = DeferredExecutor()
    coordinator = TournamentCoordinator(
        gateway, rng=rng, executor=executor, on_persist_error=errors.append
    )
    tournament = coordinator.create_tournament(draft)
    matches = coordinator.current_round_view().matches

    coordinator.record_result(1, 0, matches[0].player1)
    coordinator.record_result(1, 1, matches[1].player1)
    executor.run_pending()

    assert len(errors) == 2
    assert coordinator.is_dirty
    assert not coordinator.is_stale
    assert gateway.get(tournament.id)["revision"] == 1

    coordinator.advance_round()
    executor.run_pending()

    stored = Tournament.from_dict(gateway.get(tournament.id))
    assert stored.revision == 2
    assert stored.current_round_number == 2
    assert stored.history[0].completed
    assert not coordinator.is_dirty
    assert coordinator.last_persist_error is None
    coordinator.close()


def test_out_of_order_snapshot_does_not_roll_back(qt_app, gateway, rng, draft):
    delivered = []
    executor = DeferredExecutor()
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=executor)
    tournament = coordinator.create_tournament(draft)
    gateway.subscribe(delivered.append, tournament_id=tournament.id)
    matches = coordinator.current_round_view().matches

    coordinator.record_result(1, 0, matches[0].player1)
    executor.run_pending()
    coordinator.record_result(1, 1, matches[1].player1)
    executor.run_pending()
    assert [d["revision"] for d in delivered] == [1, 2, 3]

    assert coordinator.apply_remote_snapshot(delivered[1]) is False
    assert coordinator.tournament.revision == 3
    assert coordinator.tournament.current_round.completed
    assert not coordinator.is_dirty

    coordinator.advance_round()
    executor.run_pending()

    assert coordinator.last_persist_error is None
    assert not coordinator.is_stale
    assert gateway.get(tournament.id)["revision"] == 4

    # Resync still takes whatever the store holds
    assert coordinator.apply_remote_snapshot(delivered[1], force=True) is True
    assert coordinator.tournament.revision == 2
    coordinator.close()


def test_remote_snapshot_replaces_local_state(qt_app, gateway, draft, decide_round):
    staff_a = TournamentCoordinator(
        gateway, rng=random.Random(1), executor=SynchronousExecutor()
    )
    staff_b = TournamentCoordinator(
        gateway, rng=random.Random(2), executor=SynchronousExecutor()
    )
    tournament = staff_a.create_tournament(draft)
    staff_b.follow(tournament.id)
    assert staff_b.tournament.id == tournament.id

    staff_b.start_timer()
    staff_b.timer.on_tick()

    match = staff_a.current_round_view().matches[0]
    staff_a.record_result(1, 0, match.player2)
    assert staff_b.tournament.history[0].matches[0].winner == match.player2
    # Same round, so the clock keeps running
    assert staff_b.timer.remaining == 59

    decide_round(staff_a)
    staff_a.advance_round()
    qt_app.processEvents()

    assert staff_b.tournament.current_round_number == 2
    assert staff_b.tournament.to_dict() == staff_a.tournament.to_dict()
    assert staff_b.timer.remaining == 60
    assert staff_b.timer.state is TimerState.IDLE

    staff_a.close()
    staff_b.close()


def test_echo_of_own_write_is_ignored_while_writes_are_queued(qt_app, gateway, rng, draft):
    executor = DeferredExecutor()
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=executor)
    tournament = coordinator.create_tournament(draft)
    coordinator.follow()
    matches = coordinator.current_round_view().matches

    coordinator.record_result(1, 0, matches[0].player1)
    coordinator.record_result(1, 1, matches[1].player1)
    assert coordinator.has_pending_writes
    assert coordinator.is_dirty

    executor.run_pending()

    assert not coordinator.has_pending_writes
    assert not coordinator.is_dirty
    assert coordinator.tournament.current_round.completed
    assert gateway.get(tournament.id)["revision"] == 3
    coordinator.close()


def test_snapshot_of_another_tournament_is_ignored(coordinator, draft):
    coordinator.create_tournament(draft)
    other = coordinator.tournament.to_dict()
    other["id"] = "someone-else"

    assert coordinator.apply_remote_snapshot(other) is False


def test_load_and_list(coordinator, gateway, draft):
    first = coordinator.create_tournament(draft)
    second_draft = TournamentDraft(
        name="Saturday", roster=["X", "Y"], total_rounds=1, game_id="magic"
    )
    coordinator.create_tournament(second_draft)

    listed = coordinator.list_tournaments("pokemon")
    assert [t.id for t in listed] == [first.id]

    coordinator.open_tournament(first.id, follow=False)
    assert coordinator.tournament.name == "Friday Night"
    assert coordinator.current_round_view().timer.duration == 60


def test_views_without_tournament(coordinator):
    assert coordinator.current_round_view() is None
    assert coordinator.standings_view() == []
    assert coordinator.lifecycle_state is LifecycleState.PENDING
    assert not coordinator.is_dirty


def test_create_surfaces_store_failure(qt_app, rng, draft):
    class BrokenGateway(InMemoryGateway):
        def create(self, document):
            raise PersistenceException("offline")

    coordinator = TournamentCoordinator(BrokenGateway(), rng=rng, executor=SynchronousExecutor())
    with pytest.raises(PersistenceException):
        coordinator.create_tournament(draft)
    assert coordinator.tournament is None
    coordinator.close()


def test_default_executor_flushes_on_wait(qt_app, gateway, rng, draft):
    coordinator = TournamentCoordinator(gateway, rng=rng)
    tournament = coordinator.create_tournament(draft)
    coordinator.record_result(1, 0, coordinator.current_round_view().matches[0].player1)

    assert coordinator.wait_for_writes(timeout=5)
    assert gateway.get(tournament.id)["revision"] == 2
    coordinator.close()


def test_rejections_are_logged(coordinator, draft, caplog):
    coordinator.create_tournament(draft)

    with caplog.at_level("WARNING", logger="cafebracket"):
        with pytest.raises(RoundIncompleteException):
            coordinator.advance_round()

    assert "Advance rejected" in caplog.text
