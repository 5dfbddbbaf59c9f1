"""Immutable search, filter, sort and paging state for the approval list"""

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from approval_engine.domain.exceptions import ValidationError
from approval_engine.domain.models import ApplicationKind
from approval_engine.utils.date_utils import format_timestamp, resolve_date_range

DATE_RANGES = ("today", "week", "month", "year")
SORT_ORDERS = ("asc", "desc")
HIGH_VALUE_THRESHOLD = 1_000_000

# Filter field -> request parameter name
_FILTER_PARAMS = {
    "status": "status",
    "loan_type": "loanType",
    "card_type": "cardType",
    "min_amount": "minAmount",
    "max_amount": "maxAmount",
    "search": "search",
}


def _is_blank(value: Any) -> bool:
    """Unset filters: None, empty/whitespace strings, "all" and other falsy values"""
    if isinstance(value, str):
        return not value.strip() or value.strip().lower() == "all"
    return not value


@dataclass(frozen=True)
class QuerySpec:
    """
    Search, filter, sort and pagination state for one listing request.

    Instances are never mutated: every change goes through ``with_changes``
    (or one of the helpers built on it), which returns a new spec and resets
    ``page`` to 1 whenever anything other than the page changes.
    """

    kind: ApplicationKind = ApplicationKind.LOAN
    status: Optional[str] = None
    loan_type: Optional[str] = None
    card_type: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    date_range: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: str = ""
    sort_field: str = "applicationDate"
    sort_order: str = "desc"
    page: int = 1
    page_size: int = 12

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError(f"page must be >= 1, got {self.page}")
        if self.page_size < 1:
            raise ValidationError(f"page_size must be >= 1, got {self.page_size}")
        if self.sort_order not in SORT_ORDERS:
            raise ValidationError(f"sort_order must be 'asc' or 'desc', got {self.sort_order!r}")
        if self.date_range is not None and self.date_range not in DATE_RANGES:
            raise ValidationError(f"Unknown date range: {self.date_range!r}")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValidationError("Minimum amount cannot exceed maximum amount")

    @classmethod
    def for_loans(cls, page_size: int = 12) -> "QuerySpec":
        return cls(kind=ApplicationKind.LOAN, status="pending", page_size=page_size)

    @classmethod
    def for_cards(cls, page_size: int = 10) -> "QuerySpec":
        return cls(kind=ApplicationKind.CARD, sort_field="createdAt", page_size=page_size)

    @classmethod
    def for_kind(cls, kind: ApplicationKind, page_size: int) -> "QuerySpec":
        if kind is ApplicationKind.LOAN:
            return cls.for_loans(page_size)
        return cls.for_cards(page_size)

    def with_changes(self, **changes: Any) -> "QuerySpec":
        """
        Return a new spec; page goes back to 1 if any other field changed.

        Changing ``kind`` starts from that kind's defaults, so loan-only
        filters and sorting never leak into a card listing or the reverse.
        """
        kind = ApplicationKind(changes.pop("kind", self.kind))
        if kind is not self.kind:
            changes.pop("page", None)
            base = QuerySpec.for_kind(kind, changes.pop("page_size", self.page_size))
            return dataclasses.replace(base, **changes)
        filter_changed = any(
            getattr(self, name) != value for name, value in changes.items() if name != "page"
        )
        if filter_changed:
            changes["page"] = 1
        return dataclasses.replace(self, **changes)

    def with_page(self, page: int) -> "QuerySpec":
        return self.with_changes(page=page)

    def toggle_sort(self, field: str) -> "QuerySpec":
        """Same field flips the order, a new field sorts descending"""
        if field == self.sort_field:
            return self.with_changes(sort_order="asc" if self.sort_order == "desc" else "desc")
        return self.with_changes(sort_field=field, sort_order="desc")

    def with_search(self, text: str) -> "QuerySpec":
        return self.with_changes(search=text.strip())

    def high_value(self) -> "QuerySpec":
        return self.with_changes(min_amount=HIGH_VALUE_THRESHOLD)

    def within(self, date_range: Optional[str]) -> "QuerySpec":
        """Apply a date shorthand; explicit bounds are dropped"""
        return self.with_changes(date_range=date_range, start_date=None, end_date=None)

    def between(self, start: Optional[datetime], end: Optional[datetime]) -> "QuerySpec":
        return self.with_changes(date_range=None, start_date=start, end_date=end)

    def cleared(self) -> "QuerySpec":
        """Drop every filter, keep kind, sorting and page size"""
        return QuerySpec(
            kind=self.kind,
            sort_field=self.sort_field,
            sort_order=self.sort_order,
            page_size=self.page_size,
        )

    def active_filter_count(self) -> int:
        count = sum(1 for name in _FILTER_PARAMS if not _is_blank(getattr(self, name)))
        if self.date_range or self.start_date or self.end_date:
            count += 1
        return count

    def to_params(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Build request query parameters.

        Blank filters are left out entirely rather than sent as empty
        constraints. Date shorthands are resolved against ``now``.
        """
        params: Dict[str, Any] = {
            "page": self.page,
            "limit": self.page_size,
            "sortBy": self.sort_field,
            "sortOrder": self.sort_order,
        }
        for name, param in _FILTER_PARAMS.items():
            value = getattr(self, name)
            if _is_blank(value):
                continue
            params[param] = value.strip() if isinstance(value, str) else value

        start, end = self.start_date, self.end_date
        if self.date_range:
            start, end = resolve_date_range(self.date_range, now)
        if start is not None:
            params["startDate"] = format_timestamp(start)
        if end is not None:
            params["endDate"] = format_timestamp(end)

        return params
