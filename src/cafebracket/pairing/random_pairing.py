"""Random "scramble" pairing.

Every round the whole roster is shuffled and split into consecutive pairs.
Earlier results are ignored: there is no rematch avoidance and no seeding by
standings, so this is not a Swiss system.
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
from typing import List, Optional, TypeVar

from cafebracket.constants import MIN_ROSTER_SIZE
from cafebracket.exceptions import InvalidRosterException
from cafebracket.models.tournament import Match
from cafebracket.type_hints import Roster
from cafebracket.utils import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")


def shuffled(items: List[T], rng: random.Random) -> List[T]:
    """Return a Fisher-Yates shuffled copy of ``items``.

    Walks from the last index down, swapping each slot with a uniformly
    chosen slot at or below it, so every permutation is equally likely.
    """
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


def generate_pairings(
    roster: Roster, rng: Optional[random.Random] = None
) -> List[Match]:
    """Pair a roster for one round.

    Parameters
    ----------
    roster : sequence of str
        Every registered player. The full roster re-enters every round.
    rng : random.Random, optional
        Random source. Pass a seeded ``random.Random`` for reproducible
        pairings; defaults to ``random.SystemRandom``.

    Returns
    -------
    list of Match
        ``ceil(n / 2)`` matches. With an odd roster the last match is a bye
        already won by its only player.

    Raises
    ------
    InvalidRosterException
        If fewer than two players are given.
    """
    if len(roster) < MIN_ROSTER_SIZE:
        raise InvalidRosterException(
            f"At least {MIN_ROSTER_SIZE} players are required to pair, got {len(roster)}"
        )

    rng = rng if rng is not None else random.SystemRandom()
    order = shuffled(list(roster), rng)

    matches: List[Match] = []
    for i in range(0, len(order) - 1, 2):
        matches.append(Match(player1=order[i], player2=order[i + 1]))
    if len(order) % 2 == 1:
        bye_player = order[-1]
        matches.append(Match.bye(bye_player))
        logger.debug(f"Bye assigned to {bye_player}")

    logger.debug(f"Paired {len(order)} players into {len(matches)} matches")
    return matches
