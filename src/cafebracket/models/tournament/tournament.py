"""Tournament document model.

A ``Tournament`` is the authoritative snapshot a session works on. It maps
one-to-one onto the stored document: ``to_dict`` produces the canonical
camelCase document and ``from_dict`` rebuilds a snapshot from it, for example
when another device pushes a change.
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

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from dateutil import parser as date_parser

from cafebracket.constants import STATE_ACTIVE, STATE_FINISHED, STATE_PENDING

from .round_data import RoundData


class LifecycleState(str, Enum):
    """Top-level phase of a tournament."""

    PENDING = STATE_PENDING
    ACTIVE = STATE_ACTIVE
    FINISHED = STATE_FINISHED


@dataclass
class Tournament:
    """Snapshot of a single tournament.

    Attributes
    ----------
    id : str or None
        Store identifier, None until the document has been created.
    name : str
        Tournament name.
    entry_fee : float
        Entry fee, non-negative.
    prize : str
        Free-text prize description, may be empty.
    roster : tuple of str
        Registered players in registration order. Immutable.
    total_rounds : int
        Number of rounds to play.
    round_duration_minutes : int
        Length of the round clock.
    lifecycle_state : LifecycleState
        Current phase.
    current_round_number : int
        1-based number of the round being played.
    history : list of RoundData
        Every round generated so far; ``len(history) == current_round_number``.
    game_id : str or None
        Card game the tournament belongs to, used to filter subscriptions.
    created_at : datetime or None
        Creation time (UTC).
    revision : int
        Write counter maintained by the persistence gateway.
    """

    name: str
    roster: Tuple[str, ...]
    total_rounds: int
    round_duration_minutes: int
    entry_fee: float = 0.0
    prize: str = ""
    lifecycle_state: LifecycleState = LifecycleState.PENDING
    current_round_number: int = 0
    history: List[RoundData] = field(default_factory=list)
    id: Optional[str] = None
    game_id: Optional[str] = None
    created_at: Optional[datetime] = None
    revision: int = 0

    def __post_init__(self) -> None:
        self.roster = tuple(self.roster)
        self.lifecycle_state = LifecycleState(self.lifecycle_state)

    # ========== Properties ==========

    @property
    def current_round(self) -> Optional[RoundData]:
        """The round being played, or None before round 1 exists."""
        if 1 <= self.current_round_number <= len(self.history):
            return self.history[self.current_round_number - 1]
        return None

    @property
    def is_active(self) -> bool:
        return self.lifecycle_state is LifecycleState.ACTIVE

    @property
    def is_finished(self) -> bool:
        return self.lifecycle_state is LifecycleState.FINISHED

    @property
    def is_last_round(self) -> bool:
        return self.current_round_number >= self.total_rounds

    @property
    def rounds_played(self) -> int:
        """Number of rounds whose matches are all decided."""
        return sum(1 for round_data in self.history if round_data.completed)

    @property
    def status_label(self) -> str:
        """Short label used in tournament lists."""
        if self.is_finished:
            return "Final"
        return f"Round {self.current_round_number}/{self.total_rounds}"

    def get_round(self, round_number: int) -> Optional[RoundData]:
        """Get a round by its 1-based number."""
        if 1 <= round_number <= len(self.history):
            return self.history[round_number - 1]
        return None

    # ========== Serialization ==========

    def history_to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.history]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the tournament to its canonical document."""
        return {
            "id": self.id,
            "name": self.name,
            "entryFee": self.entry_fee,
            "prize": self.prize,
            "roster": list(self.roster),
            "totalRounds": self.total_rounds,
            "roundDurationMinutes": self.round_duration_minutes,
            "lifecycleState": self.lifecycle_state.value,
            "currentRoundNumber": self.current_round_number,
            "history": self.history_to_list(),
            "gameId": self.game_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "revision": self.revision,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tournament":
        """Deserialize a tournament from its document."""
        created_at = data.get("createdAt")
        if isinstance(created_at, str):
            created_at = date_parser.isoparse(created_at)

        return cls(
            id=data.get("id"),
            name=data["name"],
            entry_fee=float(data.get("entryFee", 0.0)),
            prize=data.get("prize", ""),
            roster=tuple(data["roster"]),
            total_rounds=int(data["totalRounds"]),
            round_duration_minutes=int(data["roundDurationMinutes"]),
            lifecycle_state=LifecycleState(data.get("lifecycleState", STATE_PENDING)),
            current_round_number=int(data.get("currentRoundNumber", 0)),
            history=[RoundData.from_dict(r) for r in data.get("history", [])],
            game_id=data.get("gameId"),
            created_at=created_at,
            revision=int(data.get("revision", 0)),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.status_label})"
