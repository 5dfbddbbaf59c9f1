"""In-memory mirror of the displayed page with undoable optimistic mutations"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from approval_engine.domain.exceptions import InvalidTransitionError
from approval_engine.domain.models import Application


@dataclass(frozen=True)
class MutationCommand:
    """A tentative patch plus the snapshot needed to undo it"""

    app_id: str
    patch: Mapping[str, Any]
    snapshot: Application

    def execute(self, views: Dict[str, Application]) -> Application:
        views[self.app_id] = dataclasses.replace(self.snapshot, **self.patch)
        return views[self.app_id]

    def undo(self, views: Dict[str, Application]) -> None:
        views[self.app_id] = self.snapshot


class OptimisticUpdateCache:
    """
    Page-scoped views keyed by id, in display order.

    Views are replaced rather than mutated, so anything handed out by
    ``get``/``items`` is a stable snapshot. At most one tentative mutation
    per id is outstanding at a time.
    """

    def __init__(self, items: Iterable[Application] = ()):
        self._views: Dict[str, Application] = {}
        self._pending: Dict[str, MutationCommand] = {}
        self.seed(items)

    def seed(self, items: Iterable[Application]) -> None:
        """Replace the page; outstanding mutations are forgotten"""
        self._views = {item.id: item for item in items}
        self._pending.clear()

    def get(self, app_id: str) -> Optional[Application]:
        return self._views.get(app_id)

    def items(self) -> List[Application]:
        return list(self._views.values())

    def ids(self) -> List[str]:
        return list(self._views)

    def has_pending(self, app_id: str) -> bool:
        return app_id in self._pending

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._views

    def __len__(self) -> int:
        return len(self._views)

    def apply(self, app_id: str, patch: Mapping[str, Any]) -> MutationCommand:
        """
        Tentatively patch a view before the server confirms.

        Raises:
            KeyError: The id is not on the current page
            InvalidTransitionError: A mutation for this id is already outstanding
        """
        if app_id in self._pending:
            raise InvalidTransitionError(f"An update for {app_id} is already in progress", app_id)
        command = MutationCommand(app_id=app_id, patch=dict(patch), snapshot=self._views[app_id])
        command.execute(self._views)
        self._pending[app_id] = command
        return command

    def commit(self, app_id: str) -> None:
        """Server confirmed; the tentative view becomes the real one"""
        self._pending.pop(app_id, None)

    def rollback(self, app_id: str) -> bool:
        """Restore the pre-mutation snapshot; False if nothing was outstanding"""
        command = self._pending.pop(app_id, None)
        if command is None:
            return False
        # The page may have been re-seeded while the request was in flight
        if app_id in self._views:
            command.undo(self._views)
        logging.warning("Rolled back optimistic update", extra={"application_id": app_id})
        return True

    def update(self, app_id: str, patch: Mapping[str, Any]) -> Optional[Application]:
        """Apply a confirmed patch; ids no longer on the page are ignored"""
        current = self._views.get(app_id)
        if current is None:
            return None
        self._views[app_id] = dataclasses.replace(current, **patch)
        return self._views[app_id]
