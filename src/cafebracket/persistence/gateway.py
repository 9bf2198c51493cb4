"""Persistence gateway interface.

The engine talks to the document store only through this interface. Writes
are whole-field overwrites: ``replace`` swaps the given top-level fields of
the stored document for the values sent, never merging inside them.

Every stored document carries a ``revision`` counter that grows by one per
write. A caller may pass the revision its change was based on; the store then
refuses the write with ``StaleRevisionException`` if another writer got there
first. Omitting it keeps plain last-writer-wins.
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

import copy
import threading
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from cafebracket.constants import REPLACEABLE_FIELD_SETS
from cafebracket.exceptions import (
    PersistenceException,
    StaleRevisionException,
    TournamentNotFoundException,
)
from cafebracket.type_hints import Document, DocumentFields, SnapshotCallback
from cafebracket.utils import setup_logger

logger = setup_logger(__name__)


class Subscription:
    """Handle returned by ``subscribe``; call ``cancel`` to stop receiving."""

    def __init__(
        self,
        gateway: "PersistenceGateway",
        callback: SnapshotCallback,
        game_id: Optional[str] = None,
        tournament_id: Optional[str] = None,
    ):
        self.gateway = gateway
        self.callback = callback
        self.game_id = game_id
        self.tournament_id = tournament_id
        self.active = True

    def matches(self, document: Document) -> bool:
        if self.tournament_id is not None and document.get("id") != self.tournament_id:
            return False
        if self.game_id is not None and document.get("gameId") != self.game_id:
            return False
        return True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self.gateway._remove_subscription(self)


class PersistenceGateway(ABC):
    """Abstract document store for tournaments.

    Subclasses implement the storage primitives (``_load``, ``_store``,
    ``_remove``, ``_all``); the revision checks, field validation and change
    notification live here so every adapter behaves the same.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscriptions: List[Subscription] = []

    # ========== Storage primitives ==========

    @abstractmethod
    def _load(self, tournament_id: str) -> Optional[Document]:
        """Return the stored document or None."""

    @abstractmethod
    def _store(self, document: Document) -> None:
        """Write the whole document."""

    @abstractmethod
    def _remove(self, tournament_id: str) -> bool:
        """Delete a document, returning whether it existed."""

    @abstractmethod
    def _all(self) -> List[Document]:
        """Return every stored document."""

    # ========== Public API ==========

    def subscribe(
        self,
        callback: SnapshotCallback,
        game_id: Optional[str] = None,
        tournament_id: Optional[str] = None,
    ) -> Subscription:
        """Push every matching document to ``callback`` after each change.

        The current matching documents are delivered once on subscribe.
        Callbacks run on the writer's thread.
        """
        subscription = Subscription(self, callback, game_id, tournament_id)
        with self._lock:
            self._subscriptions.append(subscription)
            current = [d for d in self._all() if subscription.matches(d)]
        for document in current:
            self._deliver(subscription, document)
        return subscription

    def create(self, document: Document) -> str:
        """Store a new tournament document and return its id."""
        with self._lock:
            stored = copy.deepcopy(document)
            tournament_id = stored.get("id") or uuid.uuid4().hex
            if self._load(tournament_id) is not None:
                raise PersistenceException(f"Tournament {tournament_id} already exists")
            stored["id"] = tournament_id
            stored["revision"] = 1
            self._store(stored)
        logger.info(f"Created tournament document {tournament_id}")
        self._notify(stored)
        return tournament_id

    def replace(
        self,
        tournament_id: str,
        fields: DocumentFields,
        expected_revision: Optional[int] = None,
    ) -> int:
        """Overwrite whole top-level fields of a stored document.

        Args:
            tournament_id: Document to write
            fields: ``{history}``, ``{history, currentRoundNumber}`` or
                ``{lifecycleState}``
            expected_revision: Revision the change was based on, or None to
                skip the stale check

        Returns:
            The document's new revision

        Raises:
            PersistenceException: For unknown field sets
            TournamentNotFoundException: If the document does not exist
            StaleRevisionException: If ``expected_revision`` is outdated
        """
        if frozenset(fields) not in REPLACEABLE_FIELD_SETS:
            raise PersistenceException(f"Unsupported field set: {sorted(fields)}")

        with self._lock:
            stored = self.get(tournament_id)
            actual = int(stored.get("revision", 0))
            if expected_revision is not None and expected_revision != actual:
                raise StaleRevisionException(tournament_id, expected_revision, actual)

            stored.update(copy.deepcopy(fields))
            stored["revision"] = actual + 1
            self._store(stored)

        logger.debug(
            f"Replaced {sorted(fields)} on {tournament_id} (revision {actual + 1})"
        )
        self._notify(stored)
        return actual + 1

    def delete(self, tournament_id: str) -> bool:
        """Remove a tournament. Operator action; the engine never calls it."""
        with self._lock:
            removed = self._remove(tournament_id)
        if removed:
            logger.info(f"Deleted tournament document {tournament_id}")
        return removed

    def get(self, tournament_id: str) -> Document:
        """Return a copy of a stored document.

        Raises:
            TournamentNotFoundException: If the document does not exist
        """
        with self._lock:
            document = self._load(tournament_id)
        if document is None:
            raise TournamentNotFoundException(f"Tournament {tournament_id} not found")
        return copy.deepcopy(document)

    def list(self, game_id: Optional[str] = None) -> List[Document]:
        """Documents for a card game, most advanced round first."""
        with self._lock:
            documents = [copy.deepcopy(d) for d in self._all()]
        if game_id is not None:
            documents = [d for d in documents if d.get("gameId") == game_id]
        documents.sort(key=lambda d: d.get("currentRoundNumber", 0), reverse=True)
        return documents

    # ========== Notification ==========

    def _notify(self, document: Document) -> None:
        with self._lock:
            subscriptions = [s for s in self._subscriptions if s.matches(document)]
        for subscription in subscriptions:
            self._deliver(subscription, document)

    def _deliver(self, subscription: Subscription, document: Document) -> None:
        if not subscription.active:
            return
        try:
            subscription.callback(copy.deepcopy(document))
        except Exception:
            logger.exception(
                f"Subscriber failed to handle tournament {document.get('id')}"
            )

    def _remove_subscription(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
