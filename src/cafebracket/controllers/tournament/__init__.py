from cafebracket.controllers.tournament.coordinator import RoundView, TournamentCoordinator
from cafebracket.controllers.tournament.result_recorder import ResultRecorder
from cafebracket.controllers.tournament.round_manager import RoundManager
from cafebracket.controllers.tournament.round_timer import (
    RoundTimer,
    TimerSnapshot,
    TimerState,
    format_clock,
    urgency_for,
)
from cafebracket.controllers.tournament.standings_calculator import (
    StandingsCalculator,
    medal_for_rank,
    winrate_percent,
)

__all__ = [
    "ResultRecorder",
    "RoundManager",
    "RoundTimer",
    "RoundView",
    "StandingsCalculator",
    "TimerSnapshot",
    "TimerState",
    "TournamentCoordinator",
    "format_clock",
    "medal_for_rank",
    "urgency_for",
    "winrate_percent",
]
