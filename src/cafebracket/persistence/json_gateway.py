"""JSON file persistence gateway.

Each tournament is one ``<id>.json`` file in a data directory. Writes go to a
temporary file in the same directory first and are then moved into place, so
a crash never leaves a half-written document behind.
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

import json
import os
import re
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from cafebracket.constants import SAVE_FILE_EXTENSION
from cafebracket.exceptions import PersistenceException
from cafebracket.persistence.gateway import PersistenceGateway
from cafebracket.type_hints import Document
from cafebracket.utils import setup_logger

logger = setup_logger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonFileGateway(PersistenceGateway):
    """Stores tournament documents as JSON files in ``data_dir``."""

    def __init__(self, data_dir: Union[str, Path]):
        super().__init__()
        self.data_dir = Path(data_dir).expanduser()
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceException(
                f"Cannot create data directory {self.data_dir}: {e}"
            ) from e

    def _path_for(self, tournament_id: str) -> Path:
        if not _SAFE_ID.match(tournament_id):
            raise PersistenceException(f"Invalid tournament id: {tournament_id!r}")
        return self.data_dir / f"{tournament_id}{SAVE_FILE_EXTENSION}"

    def _read(self, path: Path) -> Document:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceException(f"Cannot read {path}: {e}") from e

    def _load(self, tournament_id: str) -> Optional[Document]:
        path = self._path_for(tournament_id)
        if not path.exists():
            return None
        return self._read(path)

    def _store(self, document: Document) -> None:
        path = self._path_for(document["id"])
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{document['id']}.", suffix=".tmp", dir=self.data_dir
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceException(f"Cannot write {path}: {e}") from e

    def _remove(self, tournament_id: str) -> bool:
        path = self._path_for(tournament_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistenceException(f"Cannot delete {path}: {e}") from e
        return True

    def _all(self) -> List[Document]:
        documents = []
        for path in sorted(self.data_dir.glob(f"*{SAVE_FILE_EXTENSION}")):
            try:
                documents.append(self._read(path))
            except PersistenceException as e:
                logger.warning(f"Skipping unreadable tournament file: {e}")
        return documents
