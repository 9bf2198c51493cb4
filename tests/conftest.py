import random
from concurrent.futures import Executor, Future

import pytest
from PyQt6.QtCore import QCoreApplication

from cafebracket.controllers.tournament import TournamentCoordinator
from cafebracket.models.tournament import TournamentDraft
from cafebracket.persistence import InMemoryGateway


class SynchronousExecutor(Executor):
    """Runs submitted writes immediately so tests see their effect."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Holds submitted writes until ``run_pending`` is called."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_pending(self):
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)


@pytest.fixture(scope="session")
def qt_app():
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def draft():
    return TournamentDraft(
        name="Friday Night",
        roster=["Ana", "Bruno", "Carla", "Dani"],
        total_rounds=2,
        round_duration_minutes=1,
        entry_fee="5",
        prize="Booster box",
        game_id="pokemon",
    )


@pytest.fixture
def coordinator(qt_app, gateway, rng):
    coordinator = TournamentCoordinator(gateway, rng=rng, executor=SynchronousExecutor())
    yield coordinator
    coordinator.close()


def _decide_round(coordinator, pick=lambda match: match.player1):
    """Record a winner for every open match of the current round."""
    view = coordinator.current_round_view()
    for index, match in enumerate(view.matches):
        if not match.is_bye:
            coordinator.record_result(view.number, index, pick(match))


@pytest.fixture
def decide_round():
    return _decide_round
