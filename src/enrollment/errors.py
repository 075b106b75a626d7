"""Error hierarchy for enrollment client failure classification.

Every failure ends up as a banner message; the classes let callers tell a
transport problem (nothing reached the server) from a permanent one (the
server answered, but not with something usable).

Example usage:
    try:
        response = await api.signup("Chess Club", "a@x.com")
    except TransportError:
        banner.show("Failed to sign up. Please try again.", MessageKind.ERROR)
"""


class EnrollmentClientError(Exception):
    """Base exception for all enrollment client errors."""

    pass


class TransportError(EnrollmentClientError):
    """No response could be obtained from the server.

    Examples: connection refused, DNS failure, read timeout.
    """

    pass


class PermanentError(EnrollmentClientError):
    """Failure that won't go away by sending the same request again."""

    pass


class MalformedResponseError(PermanentError):
    """Response body could not be decoded or has an unexpected shape."""

    pass


class SessionRequiredError(PermanentError):
    """A gated action was attempted without an authenticated session."""

    pass


class ServerRejectedError(PermanentError):
    """Server answered with a non-success status.

    Carries the HTTP status and the server-supplied detail text, if any.
    """

    def __init__(self, status: int, detail: str | None = None) -> None:
        self.status = status
        self.detail = detail
        super().__init__(detail or f"Server rejected the request (status {status})")
