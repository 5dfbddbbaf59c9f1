"""In-memory records behind the mock approval API"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set, Tuple


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def make_loan(
    loan_id: str,
    amount: float = 250_000,
    status: str = "pending",
    loan_type: str = "personal",
    applied: Optional[datetime] = None,
    first_name: str = "Test",
    last_name: str = "Applicant",
) -> Dict[str, Any]:
    return {
        "_id": loan_id,
        "loanType": loan_type,
        "amount": amount,
        "status": status,
        "applicationDate": _iso(applied or datetime.now(timezone.utc)),
        "tenure": 24,
        "purpose": "Home renovation",
        "user": {"firstName": first_name, "lastName": last_name},
    }


def make_card(
    card_id: str,
    user_id: str = "U1",
    card_type: str = "debit",
    status: str = "pending",
    created: Optional[datetime] = None,
    card_number: str = "4111 **** **** 1111",
) -> Dict[str, Any]:
    return {
        "_id": card_id,
        "userId": user_id,
        "cardType": card_type,
        "cardNumber": card_number,
        "status": status,
        "createdAt": _iso(created or datetime.now(timezone.utc)),
        "user": {"firstName": "Card", "lastName": "Holder"},
    }


@dataclass
class ApprovalStore:
    """Loans and cards keyed by id, plus failure injection and a request log"""

    loans: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    cards: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    fail_ids: Set[str] = field(default_factory=set)
    calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = field(default_factory=list)

    def add_loans(self, *loans: Dict[str, Any]) -> None:
        for loan in loans:
            self.loans[loan["_id"]] = loan

    def add_cards(self, *cards: Dict[str, Any]) -> None:
        for card in cards:
            self.cards[card["_id"]] = card

    def record(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> None:
        self.calls.append((method, path, body))

    def calls_to(self, method: str, fragment: str = "") -> List[Tuple[str, str, Optional[Dict[str, Any]]]]:
        return [call for call in self.calls if call[0] == method and fragment in call[1]]

    @classmethod
    def with_sample_data(cls) -> "ApprovalStore":
        """Deterministic demo data for running the mock server by hand"""
        now = datetime.now(timezone.utc)
        store = cls()
        loan_types = ["personal", "home", "car", "business"]
        statuses = ["pending", "pending", "approved", "rejected", "active"]
        for i in range(1, 41):
            store.add_loans(
                make_loan(
                    f"L{i}",
                    amount=100_000 * (i % 15),
                    status=statuses[i % len(statuses)],
                    loan_type=loan_types[i % len(loan_types)],
                    applied=now - timedelta(days=i),
                )
            )
        card_types = ["debit", "credit", "prepaid"]
        card_statuses = ["pending", "active", "blocked", "suspended", "expired"]
        for i in range(1, 21):
            store.add_cards(
                make_card(
                    f"C{i}",
                    user_id=f"U{i % 7}",
                    card_type=card_types[i % len(card_types)],
                    status=card_statuses[i % len(card_statuses)],
                    created=now - timedelta(days=i * 2),
                )
            )
        return store
