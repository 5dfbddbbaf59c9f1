"""Selection of records for bulk actions"""

from typing import Dict, Iterable, Iterator, List

from approval_engine.domain.exceptions import ValidationError
from approval_engine.domain.models import ApplicationKind, SelectionKey


class SelectionSet:
    """
    Ordered set of (kind, id) keys restricted to the visible page.

    ``show_page`` must be called with every newly fetched page; keys that are
    no longer visible are dropped.
    """

    def __init__(self) -> None:
        self._visible: Dict[SelectionKey, None] = {}
        self._selected: Dict[SelectionKey, None] = {}

    def show_page(self, keys: Iterable[SelectionKey]) -> None:
        self._visible = dict.fromkeys(keys)
        self._selected = {key: None for key in self._selected if key in self._visible}

    def toggle(self, kind: ApplicationKind, app_id: str) -> bool:
        """Flip one key; returns whether it is now selected"""
        key = (kind, app_id)
        if key not in self._visible:
            raise ValidationError(f"{kind.value} {app_id} is not on the current page")
        if key in self._selected:
            del self._selected[key]
            return False
        self._selected[key] = None
        return True

    def toggle_all(self) -> None:
        """Select the whole visible page, or clear it if already fully selected"""
        if self.all_selected:
            self._selected.clear()
        else:
            self._selected = dict(self._visible)

    def clear(self) -> None:
        self._selected.clear()

    @property
    def all_selected(self) -> bool:
        return bool(self._visible) and len(self._selected) == len(self._visible)

    def ids(self, kind: ApplicationKind) -> List[str]:
        return [app_id for key_kind, app_id in self._selected if key_kind == kind]

    def __contains__(self, key: object) -> bool:
        return key in self._selected

    def __iter__(self) -> Iterator[SelectionKey]:
        return iter(list(self._selected))

    def __len__(self) -> int:
        return len(self._selected)
