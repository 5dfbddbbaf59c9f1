"""Unit tests for the approval query engine"""

import pytest
from approval_engine.domain.exceptions import ApprovalAPIError, FetchError
from approval_engine.domain.models import ApplicationKind, Priority
from approval_engine.domain.query import QuerySpec
from approval_engine.services.query_engine import ApprovalQueryEngine


@pytest.fixture
def engine(mock_client, fixed_now) -> ApprovalQueryEngine:
    return ApprovalQueryEngine(mock_client, clock=lambda: fixed_now)


async def test_page_echoes_query_and_counts_pages(engine, mock_client, loan_view):
    items = [loan_view(f"L{i}") for i in range(1, 13)]
    mock_client.list_applications.return_value = (items, 25, 3)
    spec = QuerySpec.for_loans(page_size=12)

    page = await engine.fetch(spec)

    assert page.query is spec
    assert page.total == 25
    assert page.page_count == 3
    assert len(page.items) == 12
    assert page.sequence == engine.latest_sequence == 1


async def test_empty_result_has_one_page(engine, mock_client):
    mock_client.list_applications.return_value = ([], 0, 0)

    page = await engine.fetch(QuerySpec.for_loans())

    assert page.items == []
    assert page.page_count == 1


async def test_blank_filters_are_not_sent(engine, mock_client):
    mock_client.list_applications.return_value = ([], 0, 0)
    spec = QuerySpec(status="all", loan_type="", search="   ", min_amount=None)

    await engine.fetch(spec)

    kind, params = mock_client.list_applications.await_args.args
    assert kind is ApplicationKind.LOAN
    assert params == {"page": 1, "limit": 12, "sortBy": "applicationDate", "sortOrder": "desc"}


async def test_date_shorthand_resolves_against_clock(engine, mock_client):
    mock_client.list_applications.return_value = ([], 0, 0)

    await engine.fetch(QuerySpec.for_loans().within("week"))

    _, params = mock_client.list_applications.await_args.args
    assert params["startDate"] == "2024-06-08T12:00:00Z"
    assert params["endDate"] == "2024-06-15T12:00:00Z"


async def test_same_query_gives_same_totals(engine, mock_client, loan_view):
    mock_client.list_applications.return_value = ([loan_view()], 13, 2)
    spec = QuerySpec.for_loans()

    first = await engine.fetch(spec)
    second = await engine.fetch(spec)

    assert (first.total, first.page_count) == (second.total, second.page_count)
    assert first.sequence < second.sequence


async def test_failure_carries_sequence(engine, mock_client):
    mock_client.list_applications.side_effect = ApprovalAPIError("Service unavailable", 503)

    with pytest.raises(FetchError) as exc_info:
        await engine.fetch(QuerySpec.for_cards())

    assert exc_info.value.sequence == 1
    assert exc_info.value.message == "Service unavailable"
    assert engine.is_latest(1)


async def test_only_newest_sequence_is_latest(engine, mock_client):
    mock_client.list_applications.return_value = ([], 0, 0)

    first = await engine.fetch(QuerySpec.for_loans())
    second = await engine.fetch(QuerySpec.for_loans().with_search("ali"))

    assert not engine.is_latest(first.sequence)
    assert engine.is_latest(second.sequence)


async def test_pending_approvals_are_scored(engine, mock_client, loan_view, card_view):
    mock_client.list_pending_approvals.return_value = (
        [loan_view("L1", amount=1_500_000), loan_view("L2", amount=100_000)],
        [card_view("C1", card_type="credit", age_days=2), card_view("C2", age_days=10)],
        {"loans": 2, "cards": 2},
    )

    pending = await engine.fetch_pending_approvals()

    assert [p for _, p in pending.loans] == [Priority.HIGH, Priority.LOW]
    assert [p for _, p in pending.cards] == [Priority.MEDIUM, Priority.HIGH]
    assert (pending.loan_count, pending.card_count) == (2, 2)


async def test_pending_approvals_failure(engine, mock_client):
    mock_client.list_pending_approvals.side_effect = ApprovalAPIError("Unauthorized", 401)

    with pytest.raises(FetchError, match="Unauthorized"):
        await engine.fetch_pending_approvals()
