"""Tournament lifecycle coordinator.

This is the primary interface of the engine. One coordinator owns the
authoritative in-memory snapshot of a tournament for a session and is the only
component that drives pairing, result recording, standings and persistence.

Intents run synchronously against the local snapshot. Each successful change
is followed by a fire-and-forget write of the changed fields; the caller does
not wait for it and a failed write is not rolled back. Instead the coordinator
keeps the last successfully persisted document next to the local snapshot so
the divergence can be shown (``is_dirty``, ``is_stale``).
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

import copy
import random
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from cafebracket.constants import (
    FIELD_CURRENT_ROUND,
    FIELD_HISTORY,
    FIELD_LIFECYCLE_STATE,
    SECONDS_PER_MINUTE,
)
from cafebracket.exceptions import (
    OperationRejectedException,
    PersistenceException,
    StaleRevisionException,
    TournamentStateException,
)
from cafebracket.models.tournament import (
    LifecycleState,
    Match,
    StandingRow,
    Tournament,
    TournamentDraft,
)
from cafebracket.persistence import PersistenceGateway, Subscription
from cafebracket.type_hints import Document, DocumentFields
from cafebracket.utils import setup_logger

from .result_recorder import ResultRecorder
from .round_manager import RoundManager
from .round_timer import RoundTimer, TimerSnapshot
from .standings_calculator import StandingsCalculator

logger = setup_logger(__name__)

# Fields compared when deciding whether local and stored state differ
_TRACKED_FIELDS = (FIELD_HISTORY, FIELD_CURRENT_ROUND, FIELD_LIFECYCLE_STATE)


@dataclass(frozen=True)
class RoundView:
    """Read-only projection of the current round for display."""

    tournament_id: Optional[str]
    tournament_name: str
    number: int
    total_rounds: int
    matches: Tuple[Match, ...]
    completed: bool
    is_last_round: bool
    lifecycle_state: LifecycleState
    timer: Optional[TimerSnapshot]

    @property
    def time_up_with_open_matches(self) -> bool:
        """The clock ran out while some matches still lack a winner."""
        return (
            self.timer is not None
            and self.timer.remaining == 0
            and not self.completed
        )


class TournamentCoordinator:
    """Owns a tournament snapshot and sequences every change to it.

    Collaborators:
    - RoundManager: round creation and advancement
    - ResultRecorder: result validation and entry
    - StandingsCalculator: ranked table
    - RoundTimer: countdown for the round on screen
    - PersistenceGateway: the external document store

    Attributes
    ----------
    last_persist_error : PersistenceException or None
        Most recent failed write, kept until a later write succeeds.
    is_stale : bool
        A write was refused because another device changed the document
        first. Cleared when a newer remote snapshot is adopted.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        rng: Optional[random.Random] = None,
        executor: Optional[Executor] = None,
        timer: Optional[RoundTimer] = None,
        on_time_up: Optional[Callable[[], None]] = None,
        on_persist_error: Optional[Callable[[PersistenceException], None]] = None,
    ):
        """Initialize the coordinator.

        Args:
            gateway: Document store used for every write
            rng: Random source for pairings (seed it for reproducible rounds)
            executor: Runs persistence writes; defaults to a single worker
                thread so writes reach the store in submission order
            timer: Round clock to drive; created on demand when omitted
            on_time_up: Staff alert fired once when the round clock hits zero
            on_persist_error: Called with the exception of a failed write
        """
        self.gateway = gateway
        self.round_manager = RoundManager(rng)
        self.result_recorder = ResultRecorder()
        self.standings_calculator = StandingsCalculator()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="cafebracket-persist"
        )
        self._timer = timer
        if timer is not None:
            timer.finished.connect(self._on_time_up)
        self.on_time_up = on_time_up
        self.on_persist_error = on_persist_error

        self._lock = threading.RLock()
        self._tournament: Optional[Tournament] = None
        self._persisted: Optional[Document] = None
        self._expected_revision = 0
        self._in_flight = 0
        # Bumped whenever the local snapshot is replaced; queued writes of an
        # older generation are dropped
        self._generation = 0
        self._pending: List[Future] = []
        self._subscription: Optional[Subscription] = None

        self.last_persist_error: Optional[PersistenceException] = None
        self.is_stale = False

    # ========== Properties ==========

    @property
    def tournament(self) -> Optional[Tournament]:
        """The local snapshot (do not mutate it directly)."""
        return self._tournament

    @property
    def lifecycle_state(self) -> LifecycleState:
        with self._lock:
            if self._tournament is None:
                return LifecycleState.PENDING
            return self._tournament.lifecycle_state

    @property
    def timer(self) -> Optional[RoundTimer]:
        return self._timer

    @property
    def is_dirty(self) -> bool:
        """Local snapshot differs from the last successfully persisted one."""
        with self._lock:
            if self._tournament is None or self._persisted is None:
                return False
            local = self._tournament.to_dict()
            return any(
                local[name] != self._persisted.get(name) for name in _TRACKED_FIELDS
            )

    @property
    def has_pending_writes(self) -> bool:
        with self._lock:
            return self._in_flight > 0

    # ========== Lifecycle intents ==========

    def create_tournament(self, draft: TournamentDraft) -> Tournament:
        """Validate a draft, start the tournament and store it.

        The document is created synchronously because its id is needed for
        every later write.

        Raises:
            ValidationException: If a draft field is invalid (nothing is created)
            PersistenceException: If the store refuses the new document
        """
        clean = draft.validated()
        tournament = Tournament(
            name=clean.name,
            roster=tuple(clean.roster),
            total_rounds=clean.total_rounds,
            round_duration_minutes=clean.round_duration_minutes,
            entry_fee=clean.entry_fee,
            prize=clean.prize,
            game_id=clean.game_id,
            created_at=datetime.now(timezone.utc),
        )
        self.round_manager.start(tournament)

        document = tournament.to_dict()
        document.pop("id")
        tournament.id = self.gateway.create(document)
        tournament.revision = 1

        logger.info(
            f"Created tournament {tournament.name} ({tournament.id}): "
            f"{len(tournament.roster)} players, {tournament.total_rounds} rounds"
        )
        self._adopt(tournament)
        return tournament

    def load(self, tournament: Tournament) -> None:
        """Adopt an existing snapshot, e.g. one picked from the list."""
        if tournament.id is None:
            raise TournamentStateException("Only stored tournaments can be loaded")
        logger.info(f"Loaded tournament {tournament.name} ({tournament.id})")
        self._adopt(copy.deepcopy(tournament))

    def open_tournament(self, tournament_id: str, follow: bool = True) -> Tournament:
        """Load a stored tournament and optionally follow remote changes."""
        tournament = Tournament.from_dict(self.gateway.get(tournament_id))
        self.load(tournament)
        if follow:
            self.follow()
        return self._tournament

    def list_tournaments(self, game_id: Optional[str] = None) -> List[Tournament]:
        """Stored tournaments, most advanced round first."""
        return [Tournament.from_dict(d) for d in self.gateway.list(game_id)]

    def record_result(self, round_number: int, match_index: int, winner: str) -> bool:
        """Record the winner of a match in the current round.

        Returns:
            Whether the round is now completed

        Raises:
            OperationRejectedException: If the result is not acceptable
        """
        with self._lock:
            tournament = self._require_tournament()
            try:
                completed = self.result_recorder.record_result(
                    tournament, round_number, match_index, winner
                )
            except OperationRejectedException as e:
                logger.warning(f"Result rejected: {e}")
                raise
            self._persist({FIELD_HISTORY: tournament.history_to_list()})
        return completed

    def advance_round(self) -> Optional[List[StandingRow]]:
        """Close the current round.

        Returns:
            Final standings when this finished the tournament, else None

        Raises:
            OperationRejectedException: If the current round is not completed
                (nothing changes and nothing is written)
        """
        with self._lock:
            tournament = self._require_tournament()
            try:
                new_round = self.round_manager.advance(tournament)
            except OperationRejectedException as e:
                logger.warning(f"Advance rejected: {e}")
                raise

            if new_round is None:
                self._persist({FIELD_LIFECYCLE_STATE: tournament.lifecycle_state.value})
                if self._timer is not None:
                    self._timer.pause()
                return self.standings_calculator.calculate(self._tournament)

            self._persist(
                {
                    FIELD_HISTORY: tournament.history_to_list(),
                    FIELD_CURRENT_ROUND: tournament.current_round_number,
                }
            )
        self._reset_timer_for(tournament)
        return None

    # ========== Timer intents ==========

    def start_timer(self) -> None:
        if self.lifecycle_state is LifecycleState.FINISHED:
            raise TournamentStateException("Tournament is finished")
        self._require_timer().start()

    def pause_timer(self) -> None:
        self._require_timer().pause()

    def reset_timer(self) -> None:
        self._require_timer().reset()

    # ========== Views ==========

    def current_round_view(self) -> Optional[RoundView]:
        """Projection of the round on screen, or None without a tournament."""
        with self._lock:
            tournament = self._tournament
            if tournament is None or tournament.current_round is None:
                return None
            round_data = tournament.current_round
            return RoundView(
                tournament_id=tournament.id,
                tournament_name=tournament.name,
                number=round_data.number,
                total_rounds=tournament.total_rounds,
                matches=tuple(copy.copy(m) for m in round_data.matches),
                completed=round_data.completed,
                is_last_round=tournament.is_last_round,
                lifecycle_state=tournament.lifecycle_state,
                timer=self._timer.snapshot() if self._timer is not None else None,
            )

    def standings_view(self) -> List[StandingRow]:
        with self._lock:
            if self._tournament is None:
                return []
            return self.standings_calculator.calculate(self._tournament)

    # ========== Remote sync ==========

    def follow(self, tournament_id: Optional[str] = None) -> Subscription:
        """Subscribe to changes of a tournament made elsewhere.

        Args:
            tournament_id: Tournament to follow; defaults to the loaded one.
                Following another id drops the local snapshot and adopts the
                stored document delivered on subscribe.
        """
        with self._lock:
            if tournament_id is None:
                tournament_id = self._require_tournament().id
            elif self._tournament is not None and self._tournament.id != tournament_id:
                self._tournament = None
                self._persisted = None
                self._expected_revision = 0
                self._generation += 1
            if self._subscription is not None:
                self._subscription.cancel()
                self._subscription = None

        subscription = self.gateway.subscribe(
            self.apply_remote_snapshot, tournament_id=tournament_id
        )
        with self._lock:
            self._subscription = subscription
        return subscription

    def apply_remote_snapshot(self, document: Document, force: bool = False) -> bool:
        """Replace the local snapshot wholesale with a pushed document.

        Unless forced, documents older than the local snapshot are ignored
        since deliveries can arrive out of order. So are documents older than
        a write this session still has in flight; they are echoes that the
        pending write will supersede.

        Returns:
            Whether the snapshot was adopted
        """
        with self._lock:
            current = self._tournament
            if current is not None and document.get("id") != current.id:
                return False

            revision = int(document.get("revision", 0))
            if not force and current is not None and revision < current.revision:
                logger.debug(
                    f"Ignoring out-of-order snapshot revision {revision}, "
                    f"local snapshot is at {current.revision}"
                )
                return False
            if not force and self._in_flight and revision < self._expected_revision:
                logger.debug(
                    f"Ignoring snapshot revision {revision}, "
                    f"{self._in_flight} write(s) pending"
                )
                return False

            incoming = Tournament.from_dict(document)
            new_round = (
                current is None
                or current.current_round_number != incoming.current_round_number
            )
            self._tournament = incoming
            self._persisted = copy.deepcopy(document)
            self._expected_revision = revision
            self._generation += 1
            self.is_stale = False

        logger.debug(f"Adopted remote snapshot revision {revision}")
        if new_round:
            self._reset_timer_for(incoming, from_any_thread=True)
        return True

    def resync(self) -> Tournament:
        """Discard local changes and reload the stored document."""
        tournament = self._require_tournament()
        document = self.gateway.get(tournament.id)
        self.apply_remote_snapshot(document, force=True)
        return self._tournament

    def wait_for_writes(self, timeout: Optional[float] = None) -> bool:
        """Block until queued writes have finished. Returns False on timeout."""
        with self._lock:
            pending = [f for f in self._pending if not f.done()]
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self) -> None:
        """Stop following remote changes, cancel the clock and flush writes."""
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._timer is not None:
            self._timer.teardown()
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    # ========== Internals ==========

    def _require_tournament(self) -> Tournament:
        if self._tournament is None:
            raise TournamentStateException("No tournament is loaded")
        return self._tournament

    def _require_timer(self) -> RoundTimer:
        if self._timer is None:
            raise TournamentStateException("No round clock: load a tournament first")
        return self._timer

    def _adopt(self, tournament: Tournament) -> None:
        with self._lock:
            if self._subscription is not None:
                self._subscription.cancel()
                self._subscription = None
            self._tournament = tournament
            self._persisted = tournament.to_dict()
            self._expected_revision = tournament.revision
            self._generation += 1
            self.last_persist_error = None
            self.is_stale = False
        self._reset_timer_for(tournament)

    def _reset_timer_for(self, tournament: Tournament, from_any_thread: bool = False) -> None:
        duration = tournament.round_duration_minutes * SECONDS_PER_MINUTE
        if self._timer is None:
            self._timer = RoundTimer(duration)
            self._timer.finished.connect(self._on_time_up)
        elif from_any_thread:
            # Queued onto the timer's thread when called from a writer thread
            self._timer.reset_requested.emit(duration)
        else:
            self._timer.reset(duration)

    def _on_time_up(self) -> None:
        view = self.current_round_view()
        if view is not None and not view.completed:
            logger.warning(
                f"Time is up for round {view.number} with "
                f"{sum(1 for m in view.matches if not m.is_decided)} open match(es)"
            )
        if self.on_time_up is not None:
            self.on_time_up()

    def _persist(self, fields: DocumentFields) -> None:
        """Queue a whole-field write of the local snapshot. Lock must be held."""
        tournament_id = self._tournament.id
        self._expected_revision += 1
        self._in_flight += 1

        future = self._executor.submit(
            self._write, tournament_id, copy.deepcopy(fields), self._generation
        )
        self._pending = [f for f in self._pending if not f.done()]
        if not future.done():
            self._pending.append(future)

    def _write(
        self, tournament_id: str, fields: DocumentFields, generation: int
    ) -> Optional[int]:
        """Run one queued write and record its outcome. Runs on the executor."""
        with self._lock:
            if generation != self._generation:
                self._write_superseded(fields)
                return None
            # Based on the last stored revision, not on the writes queued
            # before this one, so one failed write does not reject the rest
            expected = int(self._persisted.get("revision", 0))

        try:
            revision = self.gateway.replace(tournament_id, fields, expected)
        except Exception as e:
            error = (
                e
                if isinstance(e, PersistenceException)
                else PersistenceException(f"Unexpected store failure: {e}")
            )
            self._write_failed(tournament_id, fields, error, generation)
            return None

        with self._lock:
            self._in_flight -= 1
            if (
                self._persisted is not None
                and self._persisted.get("id") == tournament_id
                and revision > int(self._persisted.get("revision", 0))
            ):
                self._persisted.update(fields)
                self._persisted["revision"] = revision
            if self._tournament is not None and self._tournament.id == tournament_id:
                self._tournament.revision = max(self._tournament.revision, revision)
            self.last_persist_error = None
            self._settle_expected_revision()
        return revision

    def _write_superseded(self, fields: DocumentFields) -> None:
        """Drop a queued write whose snapshot was replaced. Lock must be held."""
        self._in_flight -= 1
        self._settle_expected_revision()
        logger.debug(f"Dropped write of {sorted(fields)}: local snapshot was replaced")

    def _write_failed(
        self,
        tournament_id: str,
        fields: DocumentFields,
        error: PersistenceException,
        generation: int,
    ) -> None:
        with self._lock:
            if generation != self._generation:
                self._write_superseded(fields)
                return
            self._in_flight -= 1
            # The store did not take this write; later ones resend the whole fields
            self._expected_revision -= 1
            self.last_persist_error = error
            stored_revision = int(self._persisted.get("revision", 0))
            if (
                isinstance(error, StaleRevisionException)
                and error.actual > stored_revision
            ):
                self.is_stale = True
            self._settle_expected_revision()

        logger.error(f"Failed to save {sorted(fields)} for {tournament_id}: {error}")
        if self.on_persist_error is not None:
            self.on_persist_error(error)

    def _settle_expected_revision(self) -> None:
        """Realign the echo threshold once nothing is queued. Lock must be held."""
        if not self._in_flight and self._persisted is not None:
            self._expected_revision = int(self._persisted.get("revision", 0))
