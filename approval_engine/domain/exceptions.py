"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ApprovalAPIError(DomainException):
    """Approval API returned an error or is unavailable"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FetchError(DomainException):
    """Listing applications failed; displayed data stays until a retry succeeds"""

    def __init__(self, message: str, sequence: int = 0):
        super().__init__(message)
        self.sequence = sequence


class ValidationError(DomainException):
    """Client-side input rejected before any request is sent"""

    pass


class InvalidTransitionError(DomainException):
    """Record is no longer in the source state the transition requires"""

    def __init__(self, message: str, application_id: str | None = None):
        super().__init__(message)
        self.application_id = application_id


class PartialBulkFailure(DomainException):
    """Some, but not all, targets of a bulk action failed"""

    def __init__(self, succeeded: int, failed: int, action: str):
        super().__init__(
            f"Bulk {action} finished with {failed} failure(s): "
            f"{succeeded} succeeded, {failed} failed"
        )
        self.succeeded = succeeded
        self.failed = failed
        self.action = action
