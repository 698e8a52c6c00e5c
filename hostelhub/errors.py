"""
Domain errors raised by the service layer.

Routers never catch these; `main.py` registers one exception handler per class
that maps it to a JSON response with the class's ``status_code``.
"""


class HostelHubError(Exception):
    status_code: int = 500
    default_detail: str = "Internal error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthenticated(HostelHubError):
    """No active business session; the caller must send the user to login."""
    status_code = 401
    default_detail = "Not authenticated"


class Forbidden(HostelHubError):
    status_code = 403
    default_detail = "Forbidden"


class NotFound(HostelHubError):
    status_code = 404
    default_detail = "Not found"


class ToggleInProgress(HostelHubError):
    """A status change for the same agent is still in flight for this session."""
    status_code = 409
    default_detail = "A status change for this agent is already in progress"


class ValidationFailure(HostelHubError):
    status_code = 422
    default_detail = "Invalid input"


class PersistFailure(HostelHubError):
    """The store rejected a write. Nothing was applied."""
    status_code = 502
    default_detail = "Could not save changes"


class ReadFailure(HostelHubError):
    """The store rejected a query."""
    status_code = 503
    default_detail = "Could not load data"
