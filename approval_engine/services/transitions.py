"""Status transitions for loans and cards"""

import dataclasses
from datetime import datetime
from typing import Callable, Dict, Optional, Set

from approval_engine.domain.cache import OptimisticUpdateCache
from approval_engine.domain.exceptions import ApprovalAPIError, InvalidTransitionError, ValidationError
from approval_engine.domain.models import (
    ApplicationKind,
    CardAction,
    CardRequest,
    CardStatus,
    LoanAction,
    LoanApplication,
    LoanStatus,
)
from approval_engine.infrastructure.clients.approvals import ApprovalClient
from approval_engine.infrastructure.observability.logging import log_transition
from approval_engine.infrastructure.observability.metrics import record_transition, rollback_counter
from approval_engine.utils.date_utils import utc_now

DEFAULT_CARD_REASONS: Dict[CardAction, str] = {
    CardAction.ACTIVATE: "Card activated by admin",
    CardAction.BLOCK: "Card blocked by admin",
}

CARD_TARGETS: Dict[CardAction, CardStatus] = {
    CardAction.ACTIVATE: CardStatus.ACTIVE,
    CardAction.BLOCK: CardStatus.BLOCKED,
}


class StatusTransition:
    """
    Validates and executes status changes against the cached page.

    Loans: only ``pending`` can move, to ``approved`` or ``rejected``
    (rejection needs a reason). The cached view changes only after the
    server acknowledges the decision.

    Cards: ``activate``/``block`` from any status. The badge flips
    immediately through the cache and is rolled back if the request fails.

    A second request for an id whose first request is still in flight is
    refused before it reaches the network.
    """

    def __init__(
        self,
        client: ApprovalClient,
        cache: OptimisticUpdateCache,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.client = client
        self.cache = cache
        self.clock = clock
        self._in_flight: Set[str] = set()

    def is_in_flight(self, app_id: str) -> bool:
        return app_id in self._in_flight

    def _claim(self, app_id: str) -> None:
        if app_id in self._in_flight:
            raise InvalidTransitionError(f"A request for {app_id} is already in progress", app_id)
        self._in_flight.add(app_id)

    async def resolve_loan(
        self,
        loan_id: str,
        action: LoanAction,
        reason: Optional[str] = None,
    ) -> LoanApplication:
        """
        Approve or reject a pending loan.

        Raises:
            ValidationError: Rejection without a reason
            InvalidTransitionError: Loan unknown, no longer pending, or already in flight
            ApprovalAPIError: Server refused; the cached view is unchanged
        """
        loan = self.cache.get(loan_id)
        if not isinstance(loan, LoanApplication):
            raise InvalidTransitionError(f"Loan {loan_id} is not on the current page", loan_id)
        if loan.status is not LoanStatus.PENDING:
            raise InvalidTransitionError(
                f"Loan {loan_id} is already {loan.status.value}; only pending loans can be decided",
                loan_id,
            )
        reason = (reason or "").strip()
        if action is LoanAction.REJECT and not reason:
            raise ValidationError("A rejection reason is required")

        self._claim(loan_id)
        try:
            confirmed = await self.client.set_loan_status(loan_id, action, reason or None)
        except ApprovalAPIError as e:
            record_transition(ApplicationKind.LOAN.value, action.value, False)
            log_transition(ApplicationKind.LOAN.value, loan_id, action.value, False, e.message)
            raise
        finally:
            self._in_flight.discard(loan_id)

        if action is LoanAction.APPROVE:
            approved_date = confirmed.approved_date if confirmed and confirmed.approved_date else self.clock()
            patch = {"status": LoanStatus.APPROVED, "approved_date": approved_date, "rejection_reason": None}
        else:
            patch = {"status": LoanStatus.REJECTED, "rejection_reason": reason}

        record_transition(ApplicationKind.LOAN.value, action.value, True)
        log_transition(ApplicationKind.LOAN.value, loan_id, action.value, True)
        updated = self.cache.update(loan_id, patch)
        return updated if isinstance(updated, LoanApplication) else loan

    async def set_card_status(
        self,
        card_id: str,
        action: CardAction,
        reason: Optional[str] = None,
    ) -> CardRequest:
        """
        Activate or block a card, updating the cached badge optimistically.

        Raises:
            InvalidTransitionError: Card unknown or already in flight
            ApprovalAPIError: Server refused; the optimistic change is rolled back
        """
        card = self.cache.get(card_id)
        if not isinstance(card, CardRequest):
            raise InvalidTransitionError(f"Card {card_id} is not on the current page", card_id)

        reason = (reason or "").strip() or DEFAULT_CARD_REASONS[action]
        target = CARD_TARGETS[action]

        patch = {"status": target, "status_reason": reason}
        self._claim(card_id)
        try:
            self.cache.apply(card_id, patch)
            try:
                await self.client.set_card_status(card.user_id, card_id, target, reason)
            except ApprovalAPIError as e:
                self._undo(card_id)
                record_transition(ApplicationKind.CARD.value, action.value, False)
                log_transition(ApplicationKind.CARD.value, card_id, action.value, False, e.message)
                raise
            except BaseException:
                self._undo(card_id)
                raise
        finally:
            self._in_flight.discard(card_id)

        self.cache.commit(card_id)
        record_transition(ApplicationKind.CARD.value, action.value, True)
        log_transition(ApplicationKind.CARD.value, card_id, action.value, True)
        # Re-apply the acknowledged state; a refresh may have re-seeded the page mid-flight
        updated = self.cache.update(card_id, patch)
        if isinstance(updated, CardRequest):
            return updated
        return dataclasses.replace(card, **patch)

    def _undo(self, card_id: str) -> None:
        if self.cache.rollback(card_id):
            rollback_counter.labels(kind=ApplicationKind.CARD.value).inc()
