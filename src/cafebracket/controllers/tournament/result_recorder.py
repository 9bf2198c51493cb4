"""Result recording and validation for tournaments.

This module handles recording match winners for the current round with proper
validation. A round is Open while any match is undecided and Completed once
every match has a winner; the transition is never reversed.
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

from cafebracket.exceptions import (
    InvalidWinnerException,
    MatchNotFoundException,
    RoundLockedException,
    TournamentStateException,
)
from cafebracket.models.tournament import Match, RoundData, Tournament
from cafebracket.utils import setup_logger

logger = setup_logger(__name__)


class ResultRecorder:
    """Handles recording and validating match results.

    This class is responsible for:
    - Rejecting results aimed at locked rounds or unknown matches
    - Rejecting winners who did not play the match
    - Setting the winner of the targeted match

    Every check runs before anything is written, so a rejected call leaves
    the tournament untouched.
    """

    @staticmethod
    def is_round_complete(round_data: RoundData) -> bool:
        """Fold over the round's matches: True iff every match has a winner."""
        return all(match.winner is not None for match in round_data.matches)

    def validate_result(
        self,
        tournament: Tournament,
        round_number: int,
        match_index: int,
        winner: str,
    ) -> Match:
        """Check every precondition for recording a result.

        Args:
            tournament: Tournament snapshot to validate against
            round_number: 1-based round the result is aimed at
            match_index: 0-based index of the match within the round
            winner: Display name of the proposed winner

        Returns:
            The targeted match

        Raises:
            TournamentStateException: If the tournament is not active
            RoundLockedException: If the round is not the current round
            MatchNotFoundException: If the match index is out of range
            InvalidWinnerException: If the match is a bye or the winner did not play
        """
        if not tournament.is_active:
            raise TournamentStateException(
                f"Tournament is {tournament.lifecycle_state.value}, results are closed"
            )

        if round_number != tournament.current_round_number:
            raise RoundLockedException(
                f"Round {round_number} is locked; only round "
                f"{tournament.current_round_number} can be edited"
            )

        round_data = tournament.current_round
        if round_data is None:
            raise RoundLockedException(f"Round {round_number} does not exist")

        if not 0 <= match_index < len(round_data.matches):
            raise MatchNotFoundException(
                f"Round {round_number} has no match #{match_index}"
            )

        match = round_data.matches[match_index]
        if match.is_bye:
            raise InvalidWinnerException(
                f"{match.player1} has a bye; the match is already decided"
            )
        if winner not in match.participants:
            raise InvalidWinnerException(
                f"{winner!r} is not playing {match.player1} vs {match.player2}"
            )
        return match

    def record_result(
        self,
        tournament: Tournament,
        round_number: int,
        match_index: int,
        winner: str,
    ) -> bool:
        """Record the winner of a match in the current round.

        A decided match may be corrected to the other participant while its
        round is still current.

        Args:
            tournament: Tournament snapshot to mutate
            round_number: 1-based round the result is aimed at
            match_index: 0-based index of the match within the round
            winner: Display name of the winner

        Returns:
            Whether the round is completed after the change

        Raises:
            OperationRejectedException: If any precondition fails (nothing is changed)
        """
        match = self.validate_result(tournament, round_number, match_index, winner)

        previous = match.winner
        match.winner = winner
        completed = self.is_round_complete(tournament.current_round)

        if previous is not None and previous != winner:
            logger.info(
                f"Round {round_number} match {match_index}: winner changed "
                f"from {previous} to {winner}"
            )
        else:
            logger.debug(
                f"Recorded: {match.player1} vs {match.player2}, winner {winner}"
            )
        if completed:
            logger.info(f"Round {round_number} completed")
        return completed
