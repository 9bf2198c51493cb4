"""Data model for tournament round."""

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
from typing import Any, Dict, List

from .match import Match


@dataclass
class RoundData:
    """Container for all data related to a single tournament round.

    Attributes
    ----------
    number : int
        Round number (1-indexed), equal to its position in the history.
    matches : list of Match
        Pairings for the round, in display order.

    Notes
    -----
    ``completed`` is derived from ``matches`` on every read. It is written
    to the stored document for query convenience but never read back.
    """

    number: int
    matches: List[Match] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        """True once every match in the round has a winner."""
        return all(match.is_decided for match in self.matches)

    @property
    def open_matches(self) -> List[int]:
        """Indices of matches still waiting for a result."""
        return [i for i, match in enumerate(self.matches) if not match.is_decided]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize round data to dictionary."""
        return {
            "number": self.number,
            "matches": [m.to_dict() for m in self.matches],
            "completed": self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoundData":
        """Deserialize round data from dictionary."""
        return cls(
            number=data["number"],
            matches=[Match.from_dict(m) for m in data.get("matches", [])],
        )
