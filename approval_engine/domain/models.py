"""Domain models - pure Python dataclasses representing console entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

if TYPE_CHECKING:
    from approval_engine.domain.query import QuerySpec


class ApplicationKind(str, Enum):
    LOAN = "loan"
    CARD = "card"


class LoanStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    CLOSED = "closed"


class CardStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    BLOCKED = "blocked"
    SUSPENDED = "suspended"
    EXPIRED = "expired"


class LoanAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class CardAction(str, Enum):
    ACTIVATE = "activate"
    BLOCK = "block"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class LoanApplication:
    """Loan application as shown in the approval list"""

    id: str
    status: LoanStatus
    amount: Optional[float] = None
    loan_type: str = ""
    application_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    approved_date: Optional[datetime] = None
    tenure_months: Optional[int] = None
    purpose: str = ""
    applicant_name: str = ""

    @property
    def kind(self) -> ApplicationKind:
        return ApplicationKind.LOAN


@dataclass
class CardRequest:
    """Card record as shown in the card management list"""

    id: str
    user_id: str
    status: CardStatus
    card_type: str = "debit"
    card_number: str = ""
    created_at: Optional[datetime] = None
    status_reason: Optional[str] = None
    holder_name: str = ""

    @property
    def kind(self) -> ApplicationKind:
        return ApplicationKind.CARD


Application = Union[LoanApplication, CardRequest]

# (kind, id) pair used by selections
SelectionKey = Tuple[ApplicationKind, str]


@dataclass(frozen=True)
class PageResult:
    """One page of applications plus the query that produced it"""

    items: List[Application]
    total: int
    page_count: int
    query: "QuerySpec"
    sequence: int = 0


@dataclass(frozen=True)
class PendingResult:
    """Outcome of a single transition inside a bulk action"""

    id: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class BulkActionRequest:
    """Transition to apply to every selected record of one kind"""

    kind: ApplicationKind
    action: Union[LoanAction, CardAction]
    target_ids: Tuple[str, ...]
    reason: Optional[str] = None


@dataclass(frozen=True)
class BulkSummary:
    """Aggregate counts of a bulk run"""

    action: str
    succeeded: int
    failed: int
    failed_ids: Tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


@dataclass
class PendingApprovals:
    """Dashboard snapshot of everything awaiting a decision"""

    loans: List[Tuple[LoanApplication, Priority]] = field(default_factory=list)
    cards: List[Tuple[CardRequest, Priority]] = field(default_factory=list)
    loan_count: int = 0
    card_count: int = 0
