"""Standings calculation for tournaments.

This module turns a tournament's match history into the ranked win/loss
table shown to staff and players.
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

from typing import Dict, List, Optional

from cafebracket.constants import MEDALS_BY_RANK
from cafebracket.models.tournament import StandingRow, Tournament
from cafebracket.utils import setup_logger

logger = setup_logger(__name__)


def winrate_percent(wins: int, losses: int) -> int:
    """Percentage of decided games won, rounded half up; 0 with no games."""
    total = wins + losses
    if total == 0:
        return 0
    # floor(100 * wins / total + 0.5) in integer arithmetic
    return (200 * wins + total) // (2 * total)


def medal_for_rank(rank: int, finished: bool) -> Optional[str]:
    """Podium medal for a 0-based rank, only once the tournament is over."""
    if not finished or rank >= len(MEDALS_BY_RANK):
        return None
    return MEDALS_BY_RANK[rank]


class StandingsCalculator:
    """Calculates standings from match history.

    Ranking rules:
    - Wins, descending. A bye counts as a win.
    - Winrate, descending.
    - Registration order for anything still tied (the sort is stable).

    The calculation has no side effects and works in any lifecycle state.
    """

    def tally(self, tournament: Tournament) -> Dict[str, List[int]]:
        """Count ``[wins, losses]`` per roster player over every decided match."""
        stats: Dict[str, List[int]] = {player: [0, 0] for player in tournament.roster}

        for round_data in tournament.history:
            for match in round_data.matches:
                if match.winner is None:
                    continue
                if match.winner in stats:
                    stats[match.winner][0] += 1
                loser = match.loser
                if loser is not None and loser in stats:
                    stats[loser][1] += 1
        return stats

    def calculate(self, tournament: Tournament) -> List[StandingRow]:
        """Build the ranked standings table.

        Args:
            tournament: Tournament snapshot (not modified)

        Returns:
            One StandingRow per roster player, best first. Medals are only
            set when the tournament is finished.
        """
        stats = self.tally(tournament)
        rows = [
            (player, wins, losses, winrate_percent(wins, losses))
            for player, (wins, losses) in stats.items()
        ]
        # sorted() is stable: equal keys keep roster order
        rows = sorted(rows, key=lambda row: (-row[1], -row[3]))

        finished = tournament.is_finished
        standings = [
            StandingRow(
                rank=rank,
                player=player,
                wins=wins,
                losses=losses,
                winrate=winrate,
                medal=medal_for_rank(rank, finished),
            )
            for rank, (player, wins, losses, winrate) in enumerate(rows)
        ]

        if standings:
            leader = standings[0]
            logger.debug(
                f"Standings for {tournament.name}: {leader.player} leads "
                f"with {leader.wins}W/{leader.losses}L"
            )
        return standings
