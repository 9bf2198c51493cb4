"""Round management for tournaments.

This module handles round creation and round progression: building round 1,
appending the next round once the current one is completed, and closing the
tournament after the last round.
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

import random
from typing import Optional

from cafebracket.exceptions import RoundIncompleteException, TournamentStateException
from cafebracket.models.tournament import LifecycleState, RoundData, Tournament
from cafebracket.pairing import generate_pairings
from cafebracket.utils import setup_logger

logger = setup_logger(__name__)


class RoundManager:
    """Manages round progression and pairing generation for tournaments.

    This class is responsible for:
    - Generating pairings for every new round from the full roster
    - Gating advancement on the current round being completed
    - Managing the Active to Finished transition
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """Initialize the round manager.

        Args:
            rng: Random source handed to the pairing generator
        """
        self.rng = rng

    def create_round(self, tournament: Tournament, round_number: int) -> RoundData:
        """Pair the full roster into a new round (not yet attached)."""
        matches = generate_pairings(tournament.roster, self.rng)
        logger.info(
            f"Creating round {round_number} with {len(tournament.roster)} players"
        )
        return RoundData(number=round_number, matches=matches)

    def start(self, tournament: Tournament) -> RoundData:
        """Move a pending tournament to Active with its first round."""
        if tournament.lifecycle_state is not LifecycleState.PENDING or tournament.history:
            raise TournamentStateException("Tournament has already started")

        first_round = self.create_round(tournament, 1)
        tournament.history = [first_round]
        tournament.current_round_number = 1
        tournament.lifecycle_state = LifecycleState.ACTIVE
        return first_round

    def check_can_advance(self, tournament: Tournament) -> RoundData:
        """Validate that the current round may be closed.

        Raises:
            TournamentStateException: If the tournament is not active
            RoundIncompleteException: If any match of the current round is undecided
        """
        if not tournament.is_active:
            raise TournamentStateException(
                f"Tournament is {tournament.lifecycle_state.value}, cannot advance"
            )
        round_data = tournament.current_round
        if round_data is None:
            raise TournamentStateException("Tournament has no current round")
        if not round_data.completed:
            raise RoundIncompleteException(
                f"Round {round_data.number} still has "
                f"{len(round_data.open_matches)} match(es) without a winner"
            )
        return round_data

    def advance(self, tournament: Tournament) -> Optional[RoundData]:
        """Close the current round.

        On the last round the tournament becomes Finished and
        ``current_round_number`` is left where it is. Otherwise the next
        round is paired from the full roster and appended.

        Returns:
            The new round, or None if the tournament finished

        Raises:
            OperationRejectedException: If the round cannot be closed
        """
        self.check_can_advance(tournament)

        if tournament.is_last_round:
            tournament.lifecycle_state = LifecycleState.FINISHED
            logger.info(
                f"Tournament {tournament.name} finished after "
                f"round {tournament.current_round_number}"
            )
            return None

        next_number = tournament.current_round_number + 1
        new_round = self.create_round(tournament, next_number)
        tournament.history.append(new_round)
        tournament.current_round_number = next_number
        return new_round
