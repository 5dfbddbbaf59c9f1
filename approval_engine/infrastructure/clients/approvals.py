"""Approval API HTTP client for listing and resolving loans and cards"""

import httpx
from typing import Any, Dict, List, Optional, Tuple
from approval_engine.domain.models import (
    Application,
    ApplicationKind,
    CardRequest,
    CardStatus,
    LoanAction,
    LoanApplication,
    LoanStatus,
)
from approval_engine.domain.exceptions import ApprovalAPIError
from approval_engine.config import settings
from approval_engine.utils.date_utils import parse_timestamp

_LIST_PATHS = {
    ApplicationKind.LOAN: "/admin/loans",
    ApplicationKind.CARD: "/admin/cards",
}


def _person_name(raw: Dict[str, Any], fallback_key: str) -> str:
    user = raw.get("user") or {}
    name = " ".join(part for part in (user.get("firstName"), user.get("lastName")) if part)
    return name or raw.get(fallback_key) or ""


def parse_loan(raw: Dict[str, Any]) -> LoanApplication:
    """Build a loan view from an API record (raises KeyError/ValueError on bad data)"""
    return LoanApplication(
        id=str(raw.get("_id") or raw["id"]),
        status=LoanStatus(raw["status"]),
        amount=raw.get("amount"),
        loan_type=raw.get("loanType") or "",
        application_date=parse_timestamp(raw.get("applicationDate")),
        rejection_reason=raw.get("rejectionReason") or None,
        approved_date=parse_timestamp(raw.get("approvedDate")),
        tenure_months=raw.get("tenure"),
        purpose=raw.get("purpose") or "",
        applicant_name=_person_name(raw, "userName"),
    )


def parse_card(raw: Dict[str, Any]) -> CardRequest:
    """Build a card view from an API record (raises KeyError/ValueError on bad data)"""
    return CardRequest(
        id=str(raw.get("_id") or raw["id"]),
        user_id=str(raw["userId"]),
        status=CardStatus(raw.get("status") or raw.get("cardStatus") or "pending"),
        card_type=raw.get("cardType") or "debit",
        card_number=raw.get("cardNumber") or "",
        created_at=parse_timestamp(raw.get("createdAt")),
        status_reason=raw.get("reason") or None,
        holder_name=_person_name(raw, "userName"),
    )


def _error_message(response: httpx.Response) -> str:
    """Human-readable message from an error response"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return f"Approval API error: {response.status_code}"


class ApprovalClient:
    """Client for the remote approval-data API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.approval_api_base).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.token = token if token is not None else settings.api_token
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one request and return the decoded JSON body.

        Raises:
            ApprovalAPIError: On timeout, transport failure, HTTP error, or a body that is not a JSON object
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    params=params,
                    json=json,
                    headers=self._headers(),
                )
                response.raise_for_status()
                body = response.json()

            except httpx.TimeoutException as e:
                raise ApprovalAPIError(f"Approval API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ApprovalAPIError(_error_message(e.response), e.response.status_code) from e
            except httpx.RequestError as e:
                raise ApprovalAPIError(f"Network error: {e}") from e
            except ValueError as e:
                raise ApprovalAPIError(f"Invalid response from approval API: {e}") from e

        if not isinstance(body, dict):
            raise ApprovalAPIError("Invalid response from approval API", response.status_code)
        return body

    async def list_applications(
        self,
        kind: ApplicationKind,
        params: Dict[str, Any],
    ) -> Tuple[List[Application], int, int]:
        """
        Fetch one page of loans or cards.

        Returns:
            (items, total, pages) as reported by the server
        """
        data = await self._request("GET", _LIST_PATHS[kind], params=params)
        parse = parse_loan if kind is ApplicationKind.LOAN else parse_card
        try:
            items: List[Application] = [parse(raw) for raw in data.get("data") or []]
            return items, int(data.get("total") or 0), int(data.get("pages") or 0)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise ApprovalAPIError(f"Invalid {kind.value} data from approval API: {e}") from e

    async def set_loan_status(
        self,
        loan_id: str,
        action: LoanAction,
        reason: str | None = None,
    ) -> Optional[LoanApplication]:
        """Approve or reject a pending loan; returns the server's copy when echoed"""
        data = await self._request(
            "PUT",
            f"/admin/loans/{loan_id}/approve",
            json={"action": action.value, "rejectionReason": reason or ""},
        )
        record = data.get("data")
        if not record:
            return None
        try:
            return parse_loan(record)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise ApprovalAPIError(f"Invalid loan data from approval API: {e}") from e

    async def set_card_status(
        self,
        user_id: str,
        card_id: str,
        status: CardStatus,
        reason: str,
        admin_notes: str = "",
    ) -> Optional[CardRequest]:
        """Activate or block a card"""
        data = await self._request(
            "PUT",
            f"/admin/users/{user_id}/cards/{card_id}/status",
            json={"status": status.value, "reason": reason, "adminNotes": admin_notes},
        )
        record = data.get("data")
        if not record:
            return None
        try:
            return parse_card(record)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise ApprovalAPIError(f"Invalid card data from approval API: {e}") from e

    async def list_pending_approvals(self) -> Tuple[List[LoanApplication], List[CardRequest], Dict[str, int]]:
        """Everything awaiting a decision, for the dashboard widget"""
        data = await self._request("GET", "/admin/approvals/pending")
        try:
            loans = [parse_loan(raw) for raw in data.get("pendingLoans") or []]
            cards = [parse_card(raw) for raw in data.get("pendingCards") or []]
            counts = data.get("counts") or {}
            return loans, cards, {
                "loans": int(counts.get("loans", len(loans))),
                "cards": int(counts.get("cards", len(cards))),
            }
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise ApprovalAPIError(f"Invalid pending approvals data from approval API: {e}") from e
