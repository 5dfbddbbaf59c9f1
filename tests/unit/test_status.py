"""Unit tests for status badges and allowed actions"""

import pytest
from approval_engine.domain.models import CardAction, CardStatus, LoanAction, LoanStatus
from approval_engine.domain.status import allowed_actions, card_badge, loan_badge, status_badge


@pytest.mark.parametrize("status", list(LoanStatus))
def test_every_loan_status_has_a_badge(status):
    label, tone = loan_badge(status)
    assert label.lower() == status.value
    assert tone


@pytest.mark.parametrize("status", list(CardStatus))
def test_every_card_status_has_a_badge(status):
    label, tone = card_badge(status)
    assert label.lower() == status.value
    assert tone


def test_status_badge_dispatches_on_kind(loan_view, card_view):
    assert status_badge(loan_view(status=LoanStatus.REJECTED)) == ("Rejected", "danger")
    assert status_badge(card_view(status=CardStatus.BLOCKED)) == ("Blocked", "danger")


def test_loans_can_only_be_decided_while_pending(loan_view):
    assert allowed_actions(loan_view(status=LoanStatus.PENDING)) == [LoanAction.APPROVE, LoanAction.REJECT]
    for status in (LoanStatus.APPROVED, LoanStatus.REJECTED, LoanStatus.ACTIVE, LoanStatus.CLOSED):
        assert allowed_actions(loan_view(status=status)) == []


def test_card_actions_hide_the_no_op_direction(card_view):
    assert allowed_actions(card_view(status=CardStatus.ACTIVE)) == [CardAction.BLOCK]
    assert allowed_actions(card_view(status=CardStatus.BLOCKED)) == [CardAction.ACTIVATE]
    assert allowed_actions(card_view(status=CardStatus.SUSPENDED)) == [CardAction.ACTIVATE, CardAction.BLOCK]
