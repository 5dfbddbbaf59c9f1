"""Approval query engine - turns a QuerySpec into a normalized page"""

import itertools
import logging
import time
from datetime import datetime
from typing import Callable, Optional

from approval_engine.domain.exceptions import ApprovalAPIError, FetchError
from approval_engine.domain.models import PageResult, PendingApprovals
from approval_engine.domain.pagination import page_count
from approval_engine.domain.priority import score_card, score_loan
from approval_engine.domain.query import QuerySpec
from approval_engine.infrastructure.clients.approvals import ApprovalClient
from approval_engine.infrastructure.observability.logging import log_fetch
from approval_engine.infrastructure.observability.metrics import fetch_failures_counter, fetch_latency_histogram
from approval_engine.utils.date_utils import utc_now


class ApprovalQueryEngine:
    """
    Fetches pages of loans or cards from the approval API.

    Filtering is the server's job: results are never re-filtered here. Each
    fetch gets a sequence number so callers can drop responses that were
    overtaken by a newer fetch, whatever order they arrive in.
    """

    def __init__(self, client: ApprovalClient, clock: Callable[[], datetime] = utc_now):
        self.client = client
        self.clock = clock
        self._sequence = itertools.count(1)
        self._latest = 0

    @property
    def latest_sequence(self) -> int:
        return self._latest

    def is_latest(self, sequence: int) -> bool:
        return sequence == self._latest

    async def fetch(self, spec: QuerySpec) -> PageResult:
        """
        Fetch the page described by ``spec``.

        Raises:
            FetchError: The API failed; carries the sequence of this fetch
        """
        sequence = next(self._sequence)
        self._latest = sequence
        params = spec.to_params(self.clock())
        start_time = time.time()

        try:
            with fetch_latency_histogram.time():
                items, total, _ = await self.client.list_applications(spec.kind, params)
        except ApprovalAPIError as e:
            fetch_failures_counter.inc()
            logging.error(
                f"Failed to fetch {spec.kind.value} list: {e.message}",
                extra={"sequence": sequence, "status_code": e.status_code},
            )
            raise FetchError(e.message, sequence) from e

        log_fetch(spec.kind.value, sequence, total, spec.page, (time.time() - start_time) * 1000)
        return PageResult(
            items=items if total > 0 else [],
            total=total,
            page_count=page_count(total, spec.page_size),
            query=spec,
            sequence=sequence,
        )

    async def fetch_pending_approvals(self, now: Optional[datetime] = None) -> PendingApprovals:
        """
        Dashboard snapshot of pending loans and cards with their priority.

        Raises:
            FetchError: The API failed
        """
        try:
            loans, cards, counts = await self.client.list_pending_approvals()
        except ApprovalAPIError as e:
            fetch_failures_counter.inc()
            logging.error(f"Failed to fetch pending approvals: {e.message}")
            raise FetchError(e.message) from e

        now = now or self.clock()
        return PendingApprovals(
            loans=[(loan, score_loan(loan)) for loan in loans],
            cards=[(card, score_card(card, now)) for card in cards],
            loan_count=counts["loans"],
            card_count=counts["cards"],
        )
