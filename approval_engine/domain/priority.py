"""Priority scoring - ranks loans and cards for the review queue"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from approval_engine.domain.models import Application, CardRequest, LoanApplication, Priority
from approval_engine.utils.date_utils import ensure_aware, utc_now

HIGH_VALUE_LOAN_AMOUNT = 1_000_000
MEDIUM_VALUE_LOAN_AMOUNT = 500_000
STALE_CARD_AGE = timedelta(days=7)

_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def score_loan(loan: LoanApplication) -> Priority:
    """
    Map loan amount to a priority tier.

    Thresholds (strictly greater than):
    - > 1,000,000: high
    - >   500,000: medium
    - otherwise:   low (missing amount counts as 0)
    """
    amount = loan.amount or 0
    if amount > HIGH_VALUE_LOAN_AMOUNT:
        return Priority.HIGH
    elif amount > MEDIUM_VALUE_LOAN_AMOUNT:
        return Priority.MEDIUM
    else:
        return Priority.LOW


def score_card(card: CardRequest, now: Optional[datetime] = None) -> Priority:
    """
    Credit cards start at medium, everything else at low.

    A request older than 7 days is escalated to high regardless of type.
    A card without a creation date is never escalated.
    """
    priority = Priority.MEDIUM if card.card_type == "credit" else Priority.LOW

    if card.created_at is not None:
        now = ensure_aware(now or utc_now())
        if now - ensure_aware(card.created_at) > STALE_CARD_AGE:
            priority = Priority.HIGH

    return priority


def score(app: Application, now: Optional[datetime] = None) -> Priority:
    """Priority tier for a loan or a card; pure and never raises"""
    if isinstance(app, LoanApplication):
        return score_loan(app)
    return score_card(app, now)


def prioritize(items: Iterable[Application], now: Optional[datetime] = None) -> List[Tuple[Application, Priority]]:
    now = now or utc_now()
    return [(item, score(item, now)) for item in items]


def sort_by_priority(items: Iterable[Application], now: Optional[datetime] = None) -> List[Application]:
    """High first; ties keep their original order"""
    scored = prioritize(items, now)
    return [item for item, _ in sorted(scored, key=lambda pair: _RANK[pair[1]])]


def filter_by_priority(
    items: Iterable[Application],
    tier: str,
    now: Optional[datetime] = None,
) -> List[Application]:
    """Keep items of one tier; "all" keeps everything"""
    if tier == "all":
        return list(items)
    wanted = Priority(tier)
    return [item for item, priority in prioritize(items, now) if priority == wanted]
