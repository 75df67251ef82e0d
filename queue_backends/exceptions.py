from typing import Optional


class BackendError(Exception):
    """
    Provider-neutral error raised by every queue backend operation.

    Keeps the original provider exception in `cause` (and in `__cause__`,
    as the error is always raised "from" it), the name of the operation which
    failed, and the destination (queue URL) it was attempted against.
    """

    retryable = False

    def __init__(
        self,
        description: str,
        operation: Optional[str] = None,
        destination: Optional[str] = None,
        cause: Optional[BaseException] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(description)
        self.description = description
        self.operation = operation
        self.destination = destination
        self.cause = cause
        self.error_code = error_code

    def __str__(self):
        if self.cause is None:
            return self.description
        return "{}: {}".format(self.description, self.cause)

    def __repr__(self):
        return "<{} {}/{} {!r}>".format(
            self.__class__.__name__,
            self.operation,
            self.destination,
            self.description,
        )


class QueueNotFoundError(BackendError):
    pass


class InvalidReceiptHandleError(BackendError):
    """Receipt handle is unknown, expired, or was already used for deletion"""


class PermissionDeniedError(BackendError):
    pass


class TransientBackendError(BackendError):
    """Throttling, provider-side outages and transport failures"""

    retryable = True
