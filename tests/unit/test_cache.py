"""Unit tests for the optimistic update cache"""

import pytest
from approval_engine.domain.cache import OptimisticUpdateCache
from approval_engine.domain.exceptions import InvalidTransitionError
from approval_engine.domain.models import CardStatus, LoanStatus


def test_seed_keeps_page_order(loan_view):
    cache = OptimisticUpdateCache([loan_view("B"), loan_view("A"), loan_view("C")])

    assert cache.ids() == ["B", "A", "C"]
    assert len(cache) == 3
    assert "A" in cache and "Z" not in cache


def test_apply_then_rollback_restores_snapshot(card_view):
    original = card_view("C1", status=CardStatus.BLOCKED)
    cache = OptimisticUpdateCache([original])

    cache.apply("C1", {"status": CardStatus.ACTIVE})
    assert cache.get("C1").status is CardStatus.ACTIVE
    assert cache.has_pending("C1")

    assert cache.rollback("C1") is True
    assert cache.get("C1") == original
    assert not cache.has_pending("C1")


def test_commit_keeps_the_tentative_view(card_view):
    cache = OptimisticUpdateCache([card_view("C1", status=CardStatus.ACTIVE)])

    cache.apply("C1", {"status": CardStatus.BLOCKED})
    cache.commit("C1")

    assert cache.get("C1").status is CardStatus.BLOCKED
    assert cache.rollback("C1") is False  # nothing outstanding any more


def test_second_outstanding_mutation_is_refused(card_view):
    cache = OptimisticUpdateCache([card_view("C1")])
    cache.apply("C1", {"status": CardStatus.ACTIVE})

    with pytest.raises(InvalidTransitionError):
        cache.apply("C1", {"status": CardStatus.BLOCKED})
    assert cache.get("C1").status is CardStatus.ACTIVE


def test_apply_unknown_id_raises(card_view):
    cache = OptimisticUpdateCache([card_view("C1")])
    with pytest.raises(KeyError):
        cache.apply("nope", {"status": CardStatus.ACTIVE})


def test_views_are_snapshots(loan_view):
    cache = OptimisticUpdateCache([loan_view("L1")])
    before = cache.get("L1")

    cache.update("L1", {"status": LoanStatus.APPROVED})

    assert before.status is LoanStatus.PENDING
    assert cache.get("L1").status is LoanStatus.APPROVED


def test_update_ignores_ids_off_the_page(loan_view):
    cache = OptimisticUpdateCache([loan_view("L1")])
    assert cache.update("L9", {"status": LoanStatus.APPROVED}) is None


def test_reseed_forgets_outstanding_mutations(card_view):
    cache = OptimisticUpdateCache([card_view("C1", status=CardStatus.BLOCKED)])
    cache.apply("C1", {"status": CardStatus.ACTIVE})

    fresh = card_view("C1", status=CardStatus.SUSPENDED)
    cache.seed([fresh])

    assert cache.rollback("C1") is False
    assert cache.get("C1") == fresh
