"""
Domain error taxonomy.

Services raise these; app.main turns them into JSON responses with a stable
``code`` so clients can tell "try again" (BOOKING_CONFLICT,
CONCURRENCY_CONFLICT) apart from "fix your input" (VALIDATION_FAILED),
"not allowed" (UNAUTHORIZED, INVALID_STATE) and "does not exist" (NOT_FOUND).
"""


class DomainError(Exception):
    status_code = 400
    code = "DOMAIN_ERROR"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(DomainError):
    status_code = 404
    code = "NOT_FOUND"


class UnauthorizedError(DomainError):
    status_code = 403
    code = "UNAUTHORIZED"


class InvalidStateError(DomainError):
    status_code = 422
    code = "INVALID_STATE"


class BookingConflictError(DomainError):
    status_code = 409
    code = "BOOKING_CONFLICT"


class ValidationFailure(DomainError):
    status_code = 400
    code = "VALIDATION_FAILED"


class ConcurrencyConflictError(DomainError):
    status_code = 409
    code = "CONCURRENCY_CONFLICT"
