"""Standings table row."""

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

from cafebracket.type_hints import Medal


@dataclass(frozen=True)
class StandingRow:
    """One ranked line of the standings table.

    Attributes
    ----------
    rank : int
        0-based position in the table.
    player : str
        Player display name.
    wins : int
        Decided matches won, byes included.
    losses : int
        Decided two-player matches lost.
    winrate : int
        Rounded percentage of decided games won.
    medal : str or None
        ``gold``, ``silver`` or ``bronze`` for the podium of a finished
        tournament, otherwise None.
    """

    rank: int
    player: str
    wins: int
    losses: int
    winrate: int
    medal: Medal = None
