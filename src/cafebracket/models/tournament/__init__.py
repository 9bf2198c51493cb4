from cafebracket.models.tournament.engine_config import EngineConfig
from cafebracket.models.tournament.match import Match
from cafebracket.models.tournament.round_data import RoundData
from cafebracket.models.tournament.standing_row import StandingRow
from cafebracket.models.tournament.tournament import LifecycleState, Tournament
from cafebracket.models.tournament.tournament_draft import TournamentDraft

__all__ = [
    "EngineConfig",
    "LifecycleState",
    "Match",
    "RoundData",
    "StandingRow",
    "Tournament",
    "TournamentDraft",
]
