"""Exceptions for use in Cafe Bracket"""

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

from typing import Optional

# ========== Base Application Exception ==========


class CafeBracketException(Exception):
    """Base exception for all Cafe Bracket errors.

    All custom exceptions in the application should inherit from this class.
    This enables catching all application-specific errors with a single except clause.
    """

    pass


# ========== Validation Exceptions ==========


class ValidationException(CafeBracketException):
    """Raised when a tournament draft is malformed.

    Attributes
    ----------
    field : str
        Name of the offending draft field (``name``, ``roster``, ...).
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class InvalidRosterException(ValidationException):
    """Raised when a roster cannot be paired (fewer than two players)."""

    def __init__(self, message: str):
        super().__init__("roster", message)


# ========== Operation Exceptions ==========


class OperationRejectedException(CafeBracketException):
    """Base exception for intents rejected against the current tournament state.

    A rejected operation never mutates the tournament and never triggers a
    persistence write.
    """

    pass


class TournamentStateException(OperationRejectedException):
    """Raised when the tournament is not in a state that accepts the operation."""

    pass


class RoundLockedException(OperationRejectedException):
    """Raised when a result targets a round other than the current one."""

    pass


class MatchNotFoundException(OperationRejectedException):
    """Raised when a match index does not exist in the round."""

    pass


class InvalidWinnerException(OperationRejectedException):
    """Raised when the proposed winner is not a participant of the match."""

    pass


class RoundIncompleteException(OperationRejectedException):
    """Raised when advancing while the current round still has open matches."""

    pass


# ========== Persistence Exceptions ==========


class PersistenceException(CafeBracketException):
    """Base exception for persistence gateway failures."""

    pass


class TournamentNotFoundException(PersistenceException):
    """Raised when a tournament document does not exist in the store."""

    pass


class StaleRevisionException(PersistenceException):
    """Raised when a write was based on an outdated document revision."""

    def __init__(
        self,
        tournament_id: str,
        expected: Optional[int],
        actual: int,
    ):
        super().__init__(
            f"Tournament {tournament_id}: expected revision {expected}, "
            f"store is at {actual}"
        )
        self.tournament_id = tournament_id
        self.expected = expected
        self.actual = actual


# ========== Configuration Exceptions ==========


class ConfigurationException(CafeBracketException):
    """Raised when engine configuration data is invalid."""

    pass
