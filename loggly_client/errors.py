"""Exception hierarchy for the Loggly client."""


class LogglyError(Exception):
    """Base class for every error raised by the client."""


class EncodeError(LogglyError):
    """A record could not be serialized to a JSON line."""


class DeliveryError(LogglyError):
    """A batch could not be delivered to the ingestion endpoint.

    ``status_code`` is None when the request never produced a response
    (connection refused, timeout, malformed URL).
    """

    def __init__(
        self,
        message: str,
        group_key: str,
        status_code: int | None = None,
        body: str = "",
    ):
        super().__init__(message)
        self.group_key = group_key
        self.status_code = status_code
        self.body = body
