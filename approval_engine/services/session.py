"""Console session - owns the displayed page and drives every user action"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from approval_engine.config import settings
from approval_engine.domain.cache import OptimisticUpdateCache
from approval_engine.domain.exceptions import (
    ApprovalAPIError,
    FetchError,
    InvalidTransitionError,
    PartialBulkFailure,
    ValidationError,
)
from approval_engine.domain.models import (
    Application,
    ApplicationKind,
    BulkActionRequest,
    CardAction,
    LoanAction,
    PageResult,
    PendingApprovals,
    PendingResult,
    Priority,
    Severity,
)
from approval_engine.domain.pagination import item_range, page_window
from approval_engine.domain.priority import score
from approval_engine.domain.query import QuerySpec
from approval_engine.domain.selection import SelectionSet
from approval_engine.domain.status import Badge, allowed_actions, status_badge
from approval_engine.infrastructure.clients.approvals import ApprovalClient
from approval_engine.infrastructure.observability.metrics import stale_response_counter
from approval_engine.services.bulk import BulkActionCoordinator, summarize
from approval_engine.services.debounce import Debouncer
from approval_engine.services.notifications import NotificationQueue
from approval_engine.services.query_engine import ApprovalQueryEngine
from approval_engine.services.transitions import StatusTransition
from approval_engine.utils.date_utils import utc_now

PAST_TENSE = {
    LoanAction.APPROVE: "approved",
    LoanAction.REJECT: "rejected",
    CardAction.ACTIVATE: "activated",
    CardAction.BLOCK: "blocked",
}


@dataclass
class LoadingFlags:
    """Independent busy indicators so one operation never blocks another"""

    page: bool = False
    bulk: bool = False
    actions: Set[str] = field(default_factory=set)


class ApprovalSession:
    """
    State container for one open approval console view.

    Holds the current QuerySpec, the cached page, the selection and the
    notification queue, and is the only thing that mutates them. Errors
    from the components below end here: validation problems go to
    ``form_error``, fetch failures to ``fetch_error`` (existing rows stay
    visible until ``retry`` succeeds), and everything else to a
    notification.
    """

    def __init__(
        self,
        client: ApprovalClient,
        query: Optional[QuerySpec] = None,
        notifications: Optional[NotificationQueue] = None,
        search_debounce_ms: Optional[int] = None,
        refetch_after_single_action: Optional[bool] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.clock = clock
        self.query = query or QuerySpec.for_loans(settings.default_page_size)
        self.engine = ApprovalQueryEngine(client, clock)
        self.cache = OptimisticUpdateCache()
        self.selection = SelectionSet()
        self.notifications = notifications or NotificationQueue()
        self.transitions = StatusTransition(client, self.cache, clock)
        self.bulk = BulkActionCoordinator(self.transitions, self.selection, self.refresh)
        self.refetch_after_single_action = (
            refetch_after_single_action
            if refetch_after_single_action is not None
            else settings.refetch_after_single_action
        )
        self._search = Debouncer(
            self._apply_search,
            search_debounce_ms if search_debounce_ms is not None else settings.search_debounce_ms,
        )

        self.total = 0
        self.page_count = 1
        self.loading = LoadingFlags()
        self._page_fetches = 0
        self.fetch_error: Optional[str] = None
        self.form_error: Optional[str] = None

    # ---- page state -------------------------------------------------------

    @property
    def kind(self) -> ApplicationKind:
        return self.query.kind

    @property
    def items(self) -> List[Application]:
        return self.cache.items()

    def priorities(self) -> Dict[str, Priority]:
        now = self.clock()
        return {item.id: score(item, now) for item in self.cache.items()}

    def badge(self, app_id: str) -> Optional[Badge]:
        item = self.cache.get(app_id)
        return status_badge(item) if item is not None else None

    def actions_for(self, app_id: str) -> List[Union[LoanAction, CardAction]]:
        """Buttons to offer on a row; empty while a request for it is in flight"""
        item = self.cache.get(app_id)
        if item is None or app_id in self.loading.actions:
            return []
        return allowed_actions(item)

    def page_window(self) -> List[Union[int, str]]:
        return page_window(self.query.page, self.page_count)

    def item_range(self) -> Tuple[int, int]:
        return item_range(self.query.page, self.query.page_size, self.total)

    def _show(self, result: PageResult) -> None:
        self.cache.seed(result.items)
        self.selection.show_page((item.kind, item.id) for item in result.items)
        self.total = result.total
        self.page_count = result.page_count
        self.fetch_error = None

    async def refresh(self) -> bool:
        """
        Fetch the current query and commit it if no newer fetch was issued.

        Returns True when the page was replaced.
        """
        self._page_fetches += 1
        self.loading.page = True
        try:
            result = await self.engine.fetch(self.query)
        except FetchError as e:
            if not self.engine.is_latest(e.sequence):
                stale_response_counter.inc()
                return False
            self.fetch_error = f"Failed to load {self.kind.value}s: {e.message}"
            return False
        finally:
            self._page_fetches -= 1
            self.loading.page = self._page_fetches > 0

        if not self.engine.is_latest(result.sequence):
            stale_response_counter.inc()
            logging.info(
                "Discarded stale page",
                extra={"sequence": result.sequence, "latest": self.engine.latest_sequence},
            )
            return False

        self._show(result)
        return True

    async def retry(self) -> bool:
        return await self.refresh()

    async def change_query(self, query: QuerySpec) -> bool:
        if query == self.query:
            return False
        self.query = query
        return await self.refresh()

    async def update_query(self, **changes: Any) -> bool:
        """Change filters (page resets to 1) or the page itself, then re-fetch"""
        self.form_error = None
        try:
            query = self.query.with_changes(**changes)
        except ValidationError as e:
            self.form_error = e.message
            return False
        return await self.change_query(query)

    async def go_to_page(self, page: int) -> bool:
        if page > self.page_count:
            return False
        return await self.update_query(page=page)

    async def toggle_sort(self, field_name: str) -> bool:
        return await self.change_query(self.query.toggle_sort(field_name))

    def set_search(self, text: str) -> None:
        """Record a keystroke; the fetch happens once typing pauses"""
        self._search.trigger(text)

    async def _apply_search(self, text: str) -> None:
        await self.change_query(self.query.with_search(text))

    async def settle_search(self) -> None:
        await self._search.flush()

    # ---- selection ----------------------------------------------------------

    def toggle_selection(self, app_id: str) -> bool:
        try:
            return self.selection.toggle(self.kind, app_id)
        except ValidationError as e:
            self.form_error = e.message
            return False

    def toggle_select_all(self) -> None:
        self.selection.toggle_all()

    # ---- single actions -----------------------------------------------------

    async def resolve_loan(self, loan_id: str, action: LoanAction, reason: Optional[str] = None) -> bool:
        """Approve or reject one loan; True when the server accepted it"""
        if loan_id in self.loading.actions:
            return False
        self.form_error = None
        self.loading.actions.add(loan_id)
        try:
            await self.transitions.resolve_loan(loan_id, action, reason)
        except ValidationError as e:
            self.form_error = e.message
            return False
        except InvalidTransitionError as e:
            self.notifications.push(e.message, Severity.WARNING)
            await self.refresh()
            return False
        except ApprovalAPIError as e:
            self.notifications.push(f"Failed to {action.value} loan: {e.message}", Severity.ERROR)
            return False
        finally:
            self.loading.actions.discard(loan_id)

        self.notifications.push(f"Loan {PAST_TENSE[action]} successfully", Severity.SUCCESS)
        if self.refetch_after_single_action:
            await self.refresh()
        return True

    async def set_card_status(self, card_id: str, action: CardAction, reason: Optional[str] = None) -> bool:
        """Activate or block one card; the badge changes before the server answers"""
        if card_id in self.loading.actions:
            return False
        self.loading.actions.add(card_id)
        try:
            await self.transitions.set_card_status(card_id, action, reason)
        except InvalidTransitionError as e:
            self.notifications.push(e.message, Severity.WARNING)
            await self.refresh()
            return False
        except ApprovalAPIError as e:
            self.notifications.push(f"Failed to {action.value} card: {e.message}", Severity.ERROR)
            return False
        finally:
            self.loading.actions.discard(card_id)

        self.notifications.push(f"Card {PAST_TENSE[action]} successfully", Severity.SUCCESS)
        return True

    # ---- bulk actions -------------------------------------------------------

    async def run_bulk(
        self,
        action: Union[LoanAction, CardAction],
        reason: Optional[str] = None,
    ) -> List[PendingResult]:
        """Apply ``action`` to the whole selection; one notification sums it up"""
        self.form_error = None
        request = BulkActionRequest(
            kind=self.kind,
            action=action,
            target_ids=tuple(self.selection.ids(self.kind)),
            reason=reason,
        )
        self.loading.bulk = True
        try:
            results = await self.bulk.run(request)
        except ValidationError as e:
            self.form_error = e.message
            return []
        finally:
            self.loading.bulk = False

        summary = summarize(action.value, results)
        noun = self.kind.value
        if summary.failed == 0:
            self.notifications.push(
                f"{summary.succeeded} {noun}(s) {PAST_TENSE[action]} successfully",
                Severity.SUCCESS,
            )
        elif summary.succeeded == 0:
            self.notifications.push(
                f"Bulk {action.value} failed for all {summary.failed} {noun}(s)",
                Severity.ERROR,
            )
        else:
            failure = PartialBulkFailure(summary.succeeded, summary.failed, action.value)
            self.notifications.push(failure.message, Severity.WARNING)
        return results

    # ---- dashboard ----------------------------------------------------------

    async def load_pending_approvals(self) -> Optional[PendingApprovals]:
        try:
            return await self.engine.fetch_pending_approvals()
        except FetchError as e:
            self.notifications.push(f"Failed to load pending approvals: {e.message}", Severity.ERROR)
            return None

    def close(self) -> None:
        self._search.cancel()
        self.notifications.clear()
