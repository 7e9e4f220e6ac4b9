"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``main.create_app`` renders them as JSON with the
matching status code. Absent and not-owned resources both map to
``NotFoundError`` so callers cannot probe for other students' records.
"""

from typing import Optional


class PortalError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, detail: str, *, status_code: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.detail, "code": self.code}


class UnauthorizedError(PortalError):
    """No session, bad credentials or an invalid token."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(detail)


class NotFoundError(PortalError):
    """Resource is absent or not owned by the caller."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(detail)


class ConflictError(PortalError):
    status_code = 409
    code = "CONFLICT"


class ValidationError(PortalError):
    """Malformed input or a request that the lifecycle does not allow."""

    status_code = 400
    code = "VALIDATION_ERROR"


class UpstreamError(PortalError):
    """Directory or payment gateway unreachable or answered nonsense."""

    status_code = 502
    code = "UPSTREAM_ERROR"


class InternalError(PortalError):
    """A transaction failed and was rolled back."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, detail: str = "Internal error") -> None:
        super().__init__(detail)
