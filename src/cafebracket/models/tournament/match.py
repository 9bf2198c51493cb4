"""Match data class."""

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
from typing import Any, Dict, Optional, Tuple


@dataclass
class Match:
    """A single pairing within a round.

    Attributes
    ----------
    player1 : str
        First player's display name.
    player2 : str or None
        Second player's display name, or None when ``player1`` has a bye.
    winner : str or None
        Name of the winner once decided. A bye is decided at creation.
    """

    player1: str
    player2: Optional[str] = None
    winner: Optional[str] = None

    def __post_init__(self) -> None:
        if self.player2 is None:
            self.winner = self.player1
        elif self.winner is not None and self.winner not in self.participants:
            raise ValueError(
                f"Winner {self.winner!r} did not play in "
                f"{self.player1!r} vs {self.player2!r}"
            )

    @classmethod
    def bye(cls, player: str) -> "Match":
        """Create an auto-resolved bye for ``player``."""
        return cls(player1=player, player2=None, winner=player)

    @property
    def is_bye(self) -> bool:
        return self.player2 is None

    @property
    def is_decided(self) -> bool:
        return self.winner is not None

    @property
    def participants(self) -> Tuple[str, ...]:
        if self.player2 is None:
            return (self.player1,)
        return (self.player1, self.player2)

    @property
    def loser(self) -> Optional[str]:
        """The non-winning participant of a decided two-player match."""
        if self.is_bye or self.winner is None:
            return None
        return self.player2 if self.winner == self.player1 else self.player1

    def to_dict(self) -> Dict[str, Any]:
        """Serialize match to dictionary."""
        return {
            "player1": self.player1,
            "player2": self.player2,
            "winner": self.winner,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        """Deserialize match from dictionary."""
        return cls(
            player1=data["player1"],
            player2=data.get("player2"),
            winner=data.get("winner"),
        )
