"""Unit tests for bulk actions"""

import asyncio
import pytest
from unittest.mock import AsyncMock
from approval_engine.domain.cache import OptimisticUpdateCache
from approval_engine.domain.exceptions import ApprovalAPIError, ValidationError
from approval_engine.domain.models import (
    ApplicationKind,
    BulkActionRequest,
    CardAction,
    CardStatus,
    LoanAction,
    LoanStatus,
    PendingResult,
)
from approval_engine.domain.selection import SelectionSet
from approval_engine.services.bulk import BulkActionCoordinator, summarize, validate_request
from approval_engine.services.transitions import StatusTransition

LOAN_IDS = ("L1", "L2", "L3", "L4", "L5")


@pytest.fixture
def cache(loan_view, card_view) -> OptimisticUpdateCache:
    return OptimisticUpdateCache(
        [loan_view(loan_id) for loan_id in LOAN_IDS]
        + [card_view("C1", user_id="U1"), card_view("C2", status=CardStatus.PENDING, user_id="U2")]
    )


@pytest.fixture
def selection(cache) -> SelectionSet:
    selection = SelectionSet()
    keys = [(item.kind, item.id) for item in cache.items()]
    selection.show_page(keys)
    for kind, app_id in keys:
        selection.toggle(kind, app_id)
    return selection


@pytest.fixture
def refresh() -> AsyncMock:
    return AsyncMock(return_value=True)


@pytest.fixture
def coordinator(mock_client, cache, selection, refresh, fixed_now) -> BulkActionCoordinator:
    transitions = StatusTransition(mock_client, cache, clock=lambda: fixed_now)
    return BulkActionCoordinator(transitions, selection, refresh)


def loan_request(action=LoanAction.APPROVE, ids=LOAN_IDS, reason=None) -> BulkActionRequest:
    return BulkActionRequest(kind=ApplicationKind.LOAN, action=action, target_ids=tuple(ids), reason=reason)


class TestValidation:
    """Batch-level checks made before anything is sent"""

    def test_reject_without_reason(self):
        with pytest.raises(ValidationError, match="rejection reason"):
            validate_request(loan_request(LoanAction.REJECT, reason="  "))

    def test_empty_selection(self):
        with pytest.raises(ValidationError):
            validate_request(loan_request(ids=()))

    def test_card_action_on_loans(self):
        with pytest.raises(ValidationError):
            validate_request(loan_request(CardAction.BLOCK))

    def test_loan_action_on_cards(self):
        request = BulkActionRequest(kind=ApplicationKind.CARD, action=LoanAction.APPROVE, target_ids=("C1",))
        with pytest.raises(ValidationError):
            validate_request(request)


async def test_invalid_batch_sends_nothing(coordinator, mock_client, refresh, selection):
    with pytest.raises(ValidationError):
        await coordinator.run(loan_request(LoanAction.REJECT, ids=("L1",), reason=""))

    mock_client.set_loan_status.assert_not_called()
    refresh.assert_not_awaited()
    assert len(selection) > 0


async def test_partial_failure_reports_every_target(coordinator, mock_client, refresh, selection, cache):
    async def fail_some(loan_id, action, reason):
        if loan_id in ("L2", "L4"):
            raise ApprovalAPIError("Loan already processed (approved, active, or rejected)", 400)

    mock_client.set_loan_status.side_effect = fail_some

    results = await coordinator.run(loan_request())

    assert [r.id for r in results] == list(LOAN_IDS)
    assert [r.success for r in results] == [True, False, True, False, True]
    assert results[1].error == "Loan already processed (approved, active, or rejected)"
    assert mock_client.set_loan_status.await_count == 5
    refresh.assert_awaited_once()
    assert len(selection) == 0
    assert cache.get("L1").status is LoanStatus.APPROVED
    assert cache.get("L2").status is LoanStatus.PENDING


async def test_targets_run_concurrently(coordinator, mock_client):
    started = []
    release = asyncio.Event()

    async def slow_call(loan_id, action, reason):
        started.append(loan_id)
        await release.wait()

    mock_client.set_loan_status.side_effect = slow_call
    task = asyncio.create_task(coordinator.run(loan_request(ids=("L1", "L2", "L3"))))
    await asyncio.sleep(0.01)

    assert sorted(started) == ["L1", "L2", "L3"]
    assert not task.done()

    release.set()
    results = await task
    assert all(r.success for r in results)


async def test_all_failures_still_refresh_and_clear(coordinator, mock_client, refresh, selection):
    mock_client.set_loan_status.side_effect = ApprovalAPIError("Service unavailable", 503)

    results = await coordinator.run(loan_request(ids=("L1", "L3")))

    assert [r.success for r in results] == [False, False]
    refresh.assert_awaited_once()
    assert len(selection) == 0


async def test_bulk_card_activation_uses_default_reason(coordinator, mock_client):
    request = BulkActionRequest(kind=ApplicationKind.CARD, action=CardAction.ACTIVATE, target_ids=("C1", "C2"))

    results = await coordinator.run(request)

    assert all(r.success for r in results)
    reasons = [call.args[3] for call in mock_client.set_card_status.await_args_list]
    assert reasons == ["Card activated by admin", "Card activated by admin"]


async def test_unexpected_error_is_raised_after_cleanup(coordinator, mock_client, refresh, selection):
    mock_client.set_loan_status.side_effect = RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await coordinator.run(loan_request(ids=("L1",)))

    refresh.assert_awaited_once()
    assert len(selection) == 0


def test_summarize_counts_failures():
    results = [
        PendingResult(id="C1", success=True),
        PendingResult(id="C2", success=False, error="Card not found"),
    ]

    summary = summarize("block", results)

    assert (summary.succeeded, summary.failed, summary.total) == (1, 1, 2)
    assert summary.failed_ids == ("C2",)
