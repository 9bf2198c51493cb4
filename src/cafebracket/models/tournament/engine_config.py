"""Engine configuration."""

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

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from cafebracket.constants import (
    DEFAULT_DATA_DIR,
    DEFAULT_ROUND_MINUTES,
    DEFAULT_TOTAL_ROUNDS,
    ENV_PREFIX,
)
from cafebracket.exceptions import ConfigurationException
from cafebracket.utils.validation import validate_positive_integer


@dataclass
class EngineConfig:
    """Engine configuration settings.

    Attributes
    ----------
    data_dir : str
        Directory used by the JSON file store.
    default_rounds : int
        Number of rounds pre-filled when drafting a tournament.
    default_round_minutes : int
        Round length pre-filled when drafting a tournament.
    seed : int or None
        Fixed pairing seed; None draws from system entropy.
    log_level : str
        Log level name for the package logger.
    """

    data_dir: str = DEFAULT_DATA_DIR
    default_rounds: int = DEFAULT_TOTAL_ROUNDS
    default_round_minutes: int = DEFAULT_ROUND_MINUTES
    seed: Optional[int] = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for field_name in ("default_rounds", "default_round_minutes"):
            result = validate_positive_integer(getattr(self, field_name), field_name)
            if not result:
                raise ConfigurationException(result.error_message)
            setattr(self, field_name, result.sanitized_value)
        if self.seed is not None:
            try:
                self.seed = int(self.seed)
            except (TypeError, ValueError) as e:
                raise ConfigurationException(f"seed must be an integer: {self.seed}") from e

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return {
            "data_dir": self.data_dir,
            "default_rounds": self.default_rounds,
            "default_round_minutes": self.default_round_minutes,
            "seed": self.seed,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Deserialize configuration from dictionary."""
        return cls(
            data_dir=data.get("data_dir", DEFAULT_DATA_DIR),
            default_rounds=data.get("default_rounds", DEFAULT_TOTAL_ROUNDS),
            default_round_minutes=data.get(
                "default_round_minutes", DEFAULT_ROUND_MINUTES
            ),
            seed=data.get("seed"),
            log_level=data.get("log_level", "INFO"),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build configuration from ``CAFEBRACKET_*`` environment variables."""
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}
        for key in ("data_dir", "default_rounds", "default_round_minutes", "seed", "log_level"):
            value = environ.get(f"{ENV_PREFIX}{key.upper()}")
            if value not in (None, ""):
                data[key] = value
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "EngineConfig":
        """Load configuration from a JSON file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationException(f"Cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationException(f"Config file {path} must hold a JSON object")
        return cls.from_dict(data)
