"""Exception hierarchy for FunPay client errors.

A base exception class with a specialised transport error that carries the
HTTP status code (or ``None`` for network failures and timeouts) and the URL
that failed, so callers can tell an outage from a rejected request.
"""


class FunPayError(Exception):
    """Base exception for all FunPay client errors."""


class FunPayTransportError(FunPayError):
    """Error raised when a FunPay page cannot be retrieved.

    Cover network failures, timeouts, and non-success HTTP responses.
    These are always recoverable: the watcher retries on the next cycle.

    Args:
        msg: Human-readable description of the error.
        status_code: HTTP status code, or ``None`` when no response arrived.
        url: The URL that was being fetched.

    """

    def __init__(self, msg: str, status_code: int | None = None, url: str = "") -> None:
        """Initialize FunPay transport error.

        Args:
            msg: Human-readable description of the error.
            status_code: HTTP status code, or ``None`` when no response arrived.
            url: The URL that was being fetched.

        """
        prefix = f"[{status_code}]" if status_code is not None else "[network]"
        super().__init__(f"{prefix} {msg}")
        self.msg = msg
        self.status_code = status_code
        self.url = url
