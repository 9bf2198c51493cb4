"""Validation utilities for Cafe Bracket.

This module provides reusable validation functions for tournament drafts with
consistent error handling. Each ``validate_*`` function returns a
``ValidationResult``; the ``*_strict`` variants raise ``ValidationException``
carrying the offending field name.
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

import math
from typing import Any, Iterable, List, Optional

from cafebracket.constants import MIN_ROSTER_SIZE
from cafebracket.exceptions import ValidationException


class ValidationResult:
    """Result of a validation operation.

    Attributes:
        is_valid: Whether the validation passed
        error_message: Human-readable error message if invalid
        sanitized_value: Cleaned/normalized value if valid
    """

    def __init__(
        self,
        is_valid: bool,
        error_message: Optional[str] = None,
        sanitized_value: Any = None,
    ):
        self.is_valid = is_valid
        self.error_message = error_message
        self.sanitized_value = sanitized_value

    def __bool__(self) -> bool:
        """Allow using result in boolean context: if result: ..."""
        return self.is_valid

    def __repr__(self) -> str:
        if self.is_valid:
            return f"ValidationResult(VALID, {self.sanitized_value!r})"
        return f"ValidationResult(INVALID, {self.error_message!r})"


def _raise_if_invalid(result: ValidationResult, field: str) -> Any:
    if not result.is_valid:
        raise ValidationException(field, result.error_message or "invalid value")
    return result.sanitized_value


# ========== Generic Validation ==========


def validate_non_empty(
    value: Optional[str], field_name: str = "Field"
) -> ValidationResult:
    """Validate that a field is not empty.

    Args:
        value: Value to validate
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with the stripped string
    """
    if value is None or not str(value).strip():
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} cannot be empty",
        )
    return ValidationResult(is_valid=True, sanitized_value=str(value).strip())


def validate_positive_integer(value: Any, field_name: str = "Value") -> ValidationResult:
    """Validate that a value is a positive integer.

    Strings such as ``"3"`` are accepted; fractional numbers are not.

    Args:
        value: Value to validate
        field_name: Name of the field for error messages

    Returns:
        ValidationResult with the value as ``int``
    """
    if value is None or isinstance(value, bool):
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} is required",
        )

    if isinstance(value, float) and not value.is_integer():
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be a whole number",
        )

    try:
        int_value = int(value)
    except (ValueError, TypeError):
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be a number",
        )

    if int_value <= 0:
        return ValidationResult(
            is_valid=False,
            error_message=f"{field_name} must be positive",
        )
    return ValidationResult(is_valid=True, sanitized_value=int_value)


def validate_entry_fee(value: Any) -> ValidationResult:
    """Validate an entry fee.

    A missing or blank fee counts as free entry.

    Args:
        value: Fee as number or numeric string

    Returns:
        ValidationResult with the fee as ``float``
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return ValidationResult(is_valid=True, sanitized_value=0.0)

    try:
        fee = float(value)
    except (ValueError, TypeError):
        return ValidationResult(
            is_valid=False,
            error_message=f"Entry fee must be a number: {value}",
        )

    if not math.isfinite(fee) or fee < 0:
        return ValidationResult(
            is_valid=False,
            error_message=f"Entry fee cannot be negative: {value}",
        )
    return ValidationResult(is_valid=True, sanitized_value=fee)


# ========== Roster Validation ==========


def normalize_roster(names: Iterable[str]) -> List[str]:
    """Strip player names and drop blank entries, keeping order."""
    return [name.strip() for name in names if name and name.strip()]


def validate_roster(names: Optional[Iterable[str]]) -> ValidationResult:
    """Validate a tournament roster.

    Names are stripped before comparison, so ``"Ana"`` and ``" Ana "`` are
    duplicates. Two players sharing a display name cannot be told apart by
    the engine, so duplicates are rejected up front.

    Args:
        names: Player display names in registration order

    Returns:
        ValidationResult with the normalized roster as a list
    """
    roster = normalize_roster(names or [])

    seen = set()
    for name in roster:
        if name in seen:
            return ValidationResult(
                is_valid=False,
                error_message=f"Player '{name}' is already registered",
            )
        seen.add(name)

    if len(roster) < MIN_ROSTER_SIZE:
        return ValidationResult(
            is_valid=False,
            error_message=f"At least {MIN_ROSTER_SIZE} players are required",
        )
    return ValidationResult(is_valid=True, sanitized_value=roster)


# ========== Strict variants ==========


def validate_name_strict(name: Optional[str]) -> str:
    """Validate a tournament name, raising on failure.

    Raises:
        ValidationException: If the name is empty
    """
    return _raise_if_invalid(validate_non_empty(name, "Tournament name"), "name")


def validate_roster_strict(names: Optional[Iterable[str]]) -> List[str]:
    """Validate a roster, raising on failure.

    Raises:
        ValidationException: If the roster is too small or has duplicates
    """
    return _raise_if_invalid(validate_roster(names), "roster")


def validate_positive_integer_strict(value: Any, field: str, label: str) -> int:
    """Validate a positive integer field, raising on failure.

    Raises:
        ValidationException: If the value is missing or not positive
    """
    return _raise_if_invalid(validate_positive_integer(value, label), field)


def validate_entry_fee_strict(value: Any) -> float:
    """Validate an entry fee, raising on failure.

    Raises:
        ValidationException: If the fee is not a non-negative number
    """
    return _raise_if_invalid(validate_entry_fee(value), "entry_fee")
