"""Tournament creation draft."""

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

from dataclasses import dataclass, field, replace
from typing import Any, List, Optional

from cafebracket.constants import DEFAULT_ROUND_MINUTES, DEFAULT_TOTAL_ROUNDS
from cafebracket.utils.validation import (
    validate_entry_fee_strict,
    validate_name_strict,
    validate_positive_integer_strict,
    validate_roster_strict,
)


@dataclass
class TournamentDraft:
    """Unvalidated input for creating a tournament.

    Attributes
    ----------
    name : str
        Tournament name.
    roster : list of str
        Player names in registration order.
    total_rounds : int
        Number of rounds to play.
    round_duration_minutes : int
        Length of each round clock in minutes.
    entry_fee : float or str
        Entry fee; blank means free.
    prize : str
        Prize description.
    game_id : str or None
        Card game the tournament belongs to.
    """

    name: str
    roster: List[str] = field(default_factory=list)
    total_rounds: Any = DEFAULT_TOTAL_ROUNDS
    round_duration_minutes: Any = DEFAULT_ROUND_MINUTES
    entry_fee: Any = 0.0
    prize: str = ""
    game_id: Optional[str] = None

    def add_player(self, name: str) -> bool:
        """Register a player, ignoring blanks and names already present.

        Returns:
            True if the player was added
        """
        name = (name or "").strip()
        if not name or name in self.roster:
            return False
        self.roster.append(name)
        return True

    def remove_player(self, name: str) -> bool:
        if name in self.roster:
            self.roster.remove(name)
            return True
        return False

    def validated(self) -> "TournamentDraft":
        """Return a normalized copy of the draft.

        Checks run in form order: name, roster, rounds, round length, fee.

        Raises:
            ValidationException: On the first invalid field
        """
        name = validate_name_strict(self.name)
        roster = validate_roster_strict(self.roster)
        total_rounds = validate_positive_integer_strict(
            self.total_rounds, "total_rounds", "Number of rounds"
        )
        duration = validate_positive_integer_strict(
            self.round_duration_minutes, "round_duration_minutes", "Round length"
        )
        entry_fee = validate_entry_fee_strict(self.entry_fee)

        return replace(
            self,
            name=name,
            roster=roster,
            total_rounds=total_rounds,
            round_duration_minutes=duration,
            entry_fee=entry_fee,
            prize=(self.prize or "").strip(),
        )
