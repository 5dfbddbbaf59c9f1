"""Engine entry point: configures logging and opens a console session"""

from typing import Optional

from approval_engine.config import settings
from approval_engine.domain.models import ApplicationKind
from approval_engine.domain.query import QuerySpec
from approval_engine.infrastructure.clients.approvals import ApprovalClient
from approval_engine.infrastructure.observability.logging import setup_logging
from approval_engine.services.session import ApprovalSession


def open_session(
    kind: ApplicationKind = ApplicationKind.LOAN,
    client: Optional[ApprovalClient] = None,
) -> ApprovalSession:
    """Open the loan queue or card management view with structured logging set up"""
    setup_logging(settings.log_level)
    query = QuerySpec.for_kind(kind, settings.default_page_size)
    return ApprovalSession(client or ApprovalClient(), query=query)
