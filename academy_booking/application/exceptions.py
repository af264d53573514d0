class BookingValidationError(ValueError):
    """Raised when a local precondition fails (never reaches the backend)."""
    pass


class BackendUnavailableError(RuntimeError):
    """Raised when the academy backend fails (timeouts, network errors, HTTP errors)."""

    def __init__(self, message: str, status_code: int | None = None, backend_message: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.backend_message = backend_message


class BackendContractError(RuntimeError):
    """Raised when the backend returns a payload that does not match its contract."""
    pass


class ActionInProgressError(RuntimeError):
    """Raised when a coupon or submit call is already pending for the session."""
    pass


class SessionNotFoundError(KeyError):
    pass
