"""In-memory persistence gateway."""

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

from cafebracket.persistence.gateway import PersistenceGateway
from cafebracket.type_hints import Document


class InMemoryGateway(PersistenceGateway):
    """Keeps documents in a dict. Shared by every coordinator holding it."""

    def __init__(self) -> None:
        super().__init__()
        self._documents: Dict[str, Document] = {}

    def _load(self, tournament_id: str) -> Optional[Document]:
        return self._documents.get(tournament_id)

    def _store(self, document: Document) -> None:
        self._documents[document["id"]] = document

    def _remove(self, tournament_id: str) -> bool:
        return self._documents.pop(tournament_id, None) is not None

    def _all(self) -> List[Document]:
        return list(self._documents.values())

    def __len__(self) -> int:
        return len(self._documents)
