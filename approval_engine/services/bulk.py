"""Bulk actions - fan a transition out over the selection and join the results"""

import asyncio
import time
from typing import Awaitable, Callable, List, Sequence

from approval_engine.domain.exceptions import DomainException, ValidationError
from approval_engine.domain.models import (
    ApplicationKind,
    BulkActionRequest,
    BulkSummary,
    CardAction,
    LoanAction,
    PendingResult,
)
from approval_engine.domain.selection import SelectionSet
from approval_engine.infrastructure.observability.logging import log_bulk_outcome
from approval_engine.infrastructure.observability.metrics import record_bulk_run
from approval_engine.services.transitions import StatusTransition


def validate_request(request: BulkActionRequest) -> None:
    """
    Reject a whole batch before anything is sent.

    Raises:
        ValidationError: No targets, wrong action for the kind, or a reject without reason
    """
    if not request.target_ids:
        raise ValidationError("Select at least one item")
    if request.kind is ApplicationKind.LOAN and not isinstance(request.action, LoanAction):
        raise ValidationError(f"{request.action.value} is not a loan action")
    if request.kind is ApplicationKind.CARD and not isinstance(request.action, CardAction):
        raise ValidationError(f"{request.action.value} is not a card action")
    if request.action is LoanAction.REJECT and not (request.reason or "").strip():
        raise ValidationError("Please provide a rejection reason")


def summarize(action: str, results: Sequence[PendingResult]) -> BulkSummary:
    failed_ids = tuple(result.id for result in results if not result.success)
    return BulkSummary(
        action=action,
        succeeded=len(results) - len(failed_ids),
        failed=len(failed_ids),
        failed_ids=failed_ids,
    )


class BulkActionCoordinator:
    """
    Runs one transition per selected record, concurrently.

    Failures do not cancel the rest of the batch: every target is tried
    exactly once and reported in its own PendingResult. Once all of them
    have settled, the current page is re-fetched once and the selection is
    cleared, whatever the outcome.
    """

    def __init__(
        self,
        transitions: StatusTransition,
        selection: SelectionSet,
        refresh: Callable[[], Awaitable[object]],
    ):
        self.transitions = transitions
        self.selection = selection
        self.refresh = refresh

    async def _attempt(self, request: BulkActionRequest, app_id: str) -> None:
        if isinstance(request.action, LoanAction):
            await self.transitions.resolve_loan(app_id, request.action, request.reason)
        else:
            await self.transitions.set_card_status(app_id, request.action, request.reason)

    async def run(self, request: BulkActionRequest) -> List[PendingResult]:
        """
        Execute the bulk action and return one result per target, in target order.

        Raises:
            ValidationError: The batch was invalid; no request was sent
        """
        validate_request(request)
        start_time = time.time()

        outcomes = await asyncio.gather(
            *(self._attempt(request, app_id) for app_id in request.target_ids),
            return_exceptions=True,
        )

        results: List[PendingResult] = []
        unexpected = None
        for app_id, outcome in zip(request.target_ids, outcomes):
            if isinstance(outcome, DomainException):
                results.append(PendingResult(id=app_id, success=False, error=outcome.message))
            elif isinstance(outcome, BaseException):
                unexpected = unexpected or outcome
                results.append(PendingResult(id=app_id, success=False, error=str(outcome)))
            else:
                results.append(PendingResult(id=app_id, success=True))

        try:
            await self.refresh()
        finally:
            self.selection.clear()

        if unexpected is not None:
            raise unexpected

        summary = summarize(request.action.value, results)
        record_bulk_run(summary.action, summary.succeeded, summary.failed)
        log_bulk_outcome(
            request.kind.value,
            summary.action,
            summary.succeeded,
            summary.failed,
            (time.time() - start_time) * 1000,
        )
        return results
