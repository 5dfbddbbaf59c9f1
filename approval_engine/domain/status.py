"""Status badges and allowed actions per application kind"""

from typing import List, Tuple, Union

from typing_extensions import assert_never

from approval_engine.domain.models import (
    Application,
    CardAction,
    CardStatus,
    LoanAction,
    LoanApplication,
    LoanStatus,
)

# (label, tone) pairs; tone is a rendering hint, not a style
Badge = Tuple[str, str]


def loan_badge(status: LoanStatus) -> Badge:
    if status is LoanStatus.PENDING:
        return "Pending", "warning"
    elif status is LoanStatus.APPROVED:
        return "Approved", "success"
    elif status is LoanStatus.REJECTED:
        return "Rejected", "danger"
    elif status is LoanStatus.ACTIVE:
        return "Active", "info"
    elif status is LoanStatus.CLOSED:
        return "Closed", "neutral"
    else:
        assert_never(status)


def card_badge(status: CardStatus) -> Badge:
    if status is CardStatus.PENDING:
        return "Pending", "warning"
    elif status is CardStatus.ACTIVE:
        return "Active", "success"
    elif status is CardStatus.BLOCKED:
        return "Blocked", "danger"
    elif status is CardStatus.SUSPENDED:
        return "Suspended", "warning"
    elif status is CardStatus.EXPIRED:
        return "Expired", "neutral"
    else:
        assert_never(status)


def status_badge(app: Application) -> Badge:
    if isinstance(app, LoanApplication):
        return loan_badge(app.status)
    return card_badge(app.status)


def allowed_actions(app: Application) -> List[Union[LoanAction, CardAction]]:
    """
    Actions the console offers for a record.

    Loans can only be decided while pending. Cards toggle freely between
    active and blocked, so only the no-op direction is hidden.
    """
    if isinstance(app, LoanApplication):
        if app.status is LoanStatus.PENDING:
            return [LoanAction.APPROVE, LoanAction.REJECT]
        return []

    actions: List[Union[LoanAction, CardAction]] = []
    if app.status is not CardStatus.ACTIVE:
        actions.append(CardAction.ACTIVATE)
    if app.status is not CardStatus.BLOCKED:
        actions.append(CardAction.BLOCK)
    return actions
