from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from mock_services.approval_api.store import ApprovalStore, parse_iso


class LoanActionRequest(BaseModel):
    action: Literal["approve", "reject"]
    rejectionReason: str = ""


class CardStatusRequest(BaseModel):
    status: Literal["active", "blocked", "suspended", "expired"]
    reason: str = ""
    adminNotes: str = ""


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _full_name(record: Dict[str, Any]) -> str:
    user = record.get("user") or {}
    return f"{user.get('firstName', '')} {user.get('lastName', '')}"


def _paginate(records: List[Dict[str, Any]], page: int, limit: int, sort_by: str, sort_order: str) -> Dict[str, Any]:
    records = sorted(
        records,
        key=lambda r: (r.get(sort_by) is None, r.get(sort_by) or 0),
        reverse=sort_order == "desc",
    )
    total = len(records)
    start = (page - 1) * limit
    data = records[start:start + limit]
    return {
        "success": True,
        "count": len(data),
        "total": total,
        "page": page,
        "pages": -(-total // limit),
        "data": data,
    }


def _in_range(value: Optional[str], start: Optional[str], end: Optional[str]) -> bool:
    when = parse_iso(value)
    if when is None:
        return not (start or end)
    if start and when < parse_iso(start):
        return False
    if end and when > parse_iso(end):
        return False
    return True


def _matches(search: Optional[str], *fields: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return any(needle in (value or "").lower() for value in fields)


def create_app(store: Optional[ApprovalStore] = None) -> FastAPI:
    """Mock of the admin approval API; every request is recorded on ``store``"""
    store = store if store is not None else ApprovalStore.with_sample_data()
    app = FastAPI(title="Mock Approval API", version="1.0.0")
    app.state.store = store

    def failing(record_id: str) -> bool:
        return record_id in store.fail_ids

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/admin/loans")
    def list_loans(
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1),
        status: Optional[str] = None,
        loanType: Optional[str] = None,
        minAmount: Optional[float] = None,
        maxAmount: Optional[float] = None,
        startDate: Optional[str] = None,
        endDate: Optional[str] = None,
        search: Optional[str] = None,
        sortBy: str = "applicationDate",
        sortOrder: str = "desc",
    ):
        store.record("GET", "/admin/loans")
        filters: List[Callable[[Dict[str, Any]], bool]] = []
        if status:
            filters.append(lambda loan: loan["status"] == status)
        if loanType:
            filters.append(lambda loan: loan["loanType"] == loanType)
        if minAmount is not None:
            filters.append(lambda loan: loan["amount"] >= minAmount)
        if maxAmount is not None:
            filters.append(lambda loan: loan["amount"] <= maxAmount)
        if startDate or endDate:
            filters.append(lambda loan: _in_range(loan.get("applicationDate"), startDate, endDate))
        if search:
            filters.append(lambda loan: _matches(search, loan.get("loanType"), loan.get("purpose"), _full_name(loan)))

        loans = [loan for loan in store.loans.values() if all(check(loan) for check in filters)]
        return _paginate(loans, page, limit, sortBy, sortOrder)

    @app.get("/api/admin/cards")
    def list_cards(
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1),
        status: Optional[str] = None,
        cardType: Optional[str] = None,
        startDate: Optional[str] = None,
        endDate: Optional[str] = None,
        search: Optional[str] = None,
        sortBy: str = "createdAt",
        sortOrder: str = "desc",
    ):
        store.record("GET", "/admin/cards")
        filters: List[Callable[[Dict[str, Any]], bool]] = []
        if status:
            filters.append(lambda card: card["status"] == status)
        if cardType:
            filters.append(lambda card: card["cardType"] == cardType)
        if startDate or endDate:
            filters.append(lambda card: _in_range(card.get("createdAt"), startDate, endDate))
        if search:
            filters.append(lambda card: _matches(search, card.get("cardNumber"), _full_name(card)))

        cards = [card for card in store.cards.values() if all(check(card) for check in filters)]
        return _paginate(cards, page, limit, sortBy, sortOrder)

    @app.put("/api/admin/loans/{loan_id}/approve")
    def approve_loan(loan_id: str, body: LoanActionRequest):
        store.record("PUT", f"/admin/loans/{loan_id}/approve", body.model_dump())
        loan = store.loans.get(loan_id)
        if loan is None:
            raise HTTPException(status_code=404, detail="Loan not found")
        if failing(loan_id):
            return _error(500, "Internal server error")
        if loan["status"] in ("approved", "active", "rejected"):
            return _error(400, "Loan already processed (approved, active, or rejected)")

        if body.action == "approve":
            loan["status"] = "approved"
            loan["approvedDate"] = datetime.now(timezone.utc).isoformat()
            message = "Loan approved and amount disbursed"
        else:
            if not body.rejectionReason.strip():
                return _error(400, "Rejection reason is required")
            loan["status"] = "rejected"
            loan["rejectionReason"] = body.rejectionReason
            message = "Loan rejected"

        return {"success": True, "message": message, "data": loan}

    @app.put("/api/admin/users/{user_id}/cards/{card_id}/status")
    def update_card_status(user_id: str, card_id: str, body: CardStatusRequest):
        store.record("PUT", f"/admin/users/{user_id}/cards/{card_id}/status", body.model_dump())
        card = store.cards.get(card_id)
        if card is None or card["userId"] != user_id:
            raise HTTPException(status_code=404, detail="Card not found")
        if failing(card_id):
            return _error(500, "Internal server error")

        card["status"] = body.status
        card["reason"] = body.reason
        return {"success": True, "message": f"Card status updated to {body.status}", "data": card}

    @app.get("/api/admin/approvals/pending")
    def pending_approvals():
        store.record("GET", "/admin/approvals/pending")
        loans = [loan for loan in store.loans.values() if loan["status"] == "pending"]
        cards = [card for card in store.cards.values() if card["status"] == "pending"]
        return {
            "success": True,
            "pendingLoans": loans[:50],
            "pendingCards": cards,
            "counts": {"loans": len(loans), "cards": len(cards)},
        }

    return app


app = create_app()
