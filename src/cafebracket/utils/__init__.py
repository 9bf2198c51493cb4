"""Shared utilities for Cafe Bracket."""

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

import logging
import os
from typing import Optional

from cafebracket.constants import ENV_PREFIX

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_LOGGER_NAME = "cafebracket"


def _configure_root(level: Optional[str] = None) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        level = level or os.environ.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO")
    if level:
        root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return root


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return a module logger attached to the package root logger.

    Args:
        name: Logger name, normally ``__name__`` of the calling module
        level: Optional level name overriding ``CAFEBRACKET_LOG_LEVEL``

    Returns:
        A configured ``logging.Logger``
    """
    root = _configure_root(level)
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return root.getChild(name)
