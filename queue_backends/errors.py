import logging
from contextlib import contextmanager
from typing import Dict, Generator, Optional, Type

import attr
from botocore.exceptions import BotoCoreError, ClientError
from botocore.exceptions import ConnectionError as BotoConnectionError
from botocore.exceptions import HTTPClientError

from queue_backends.exceptions import (
    BackendError,
    InvalidReceiptHandleError,
    PermissionDeniedError,
    QueueNotFoundError,
    TransientBackendError,
)

logger = logging.getLogger(__name__)

# Exceptions raised by boto3 clients. ClientError doesn't inherit from
# BotoCoreError, so both have to be listed.
PROVIDER_ERRORS = (ClientError, BotoCoreError)

DEFAULT_ERROR_MAP: Dict[str, Type[BackendError]] = {
    # queue is gone
    "AWS.SimpleQueueService.NonExistentQueue": QueueNotFoundError,
    "QueueDoesNotExist": QueueNotFoundError,
    "QueueDeletedRecently": QueueNotFoundError,
    # stale or unknown deliveries
    "ReceiptHandleIsInvalid": InvalidReceiptHandleError,
    "InvalidReceiptHandle": InvalidReceiptHandleError,
    "MessageNotInflight": InvalidReceiptHandleError,
    "AWS.SimpleQueueService.MessageNotInflight": InvalidReceiptHandleError,
    # credentials and policies
    "AccessDenied": PermissionDeniedError,
    "AccessDeniedException": PermissionDeniedError,
    "InvalidClientTokenId": PermissionDeniedError,
    "InvalidSecurity": PermissionDeniedError,
    "UnrecognizedClientException": PermissionDeniedError,
    # worth another try, at the caller's discretion
    "RequestThrottled": TransientBackendError,
    "ThrottlingException": TransientBackendError,
    "ServiceUnavailable": TransientBackendError,
    "InternalError": TransientBackendError,
    "InternalFailure": TransientBackendError,
    "KmsThrottled": TransientBackendError,
}


def get_error_code(exc: BaseException) -> str:
    """Return SQS error code of a ClientError, or the exception class name"""
    if isinstance(exc, ClientError):
        error = exc.response.get("Error") or {}
        code = error.get("Code")
        if code:
            return code
    return exc.__class__.__name__


@attr.s(frozen=True)
class ErrorClassifier:
    """
    Translate provider-native failures to BackendError.

    Usage example:

        classifier = ErrorClassifier()
        with classifier.translate("send", queue_url, "Unable to send message"):
            client.send_message(QueueUrl=queue_url, MessageBody="hello")

    Any ClientError or BotoCoreError raised inside the block is re-raised as
    BackendError (or one of its subclasses) chained to the original exception.
    Other exceptions are not touched.
    """

    error_map: Dict[str, Type[BackendError]] = attr.ib(
        factory=lambda: dict(DEFAULT_ERROR_MAP)
    )

    def is_provider_error(self, exc: BaseException) -> bool:
        return isinstance(exc, PROVIDER_ERRORS)

    def classify(self, exc: BaseException) -> Type[BackendError]:
        """Pick an error class for the provider exception"""
        if isinstance(exc, (BotoConnectionError, HTTPClientError)):
            return TransientBackendError
        return self.error_map.get(get_error_code(exc), BackendError)

    def wrap(
        self,
        exc: BaseException,
        operation: str,
        destination: Optional[str],
        description: str,
    ) -> BackendError:
        """
        Build a BackendError for the provider exception. The caller is
        responsible for raising it "from" the original exception.
        """
        error_class = self.classify(exc)
        error_code = get_error_code(exc)
        logger.debug(
            "%s failed for %s with %s",
            operation,
            destination,
            error_code,
            extra={
                "operation": operation,
                "destination": destination,
                "error_code": error_code,
                "error_class": error_class.__name__,
            },
        )
        return error_class(
            description,
            operation=operation,
            destination=destination,
            cause=exc,
            error_code=error_code,
        )

    @contextmanager
    def translate(
        self, operation: str, destination: Optional[str], description: str
    ) -> Generator[None, None, None]:
        try:
            yield
        except PROVIDER_ERRORS as exc:
            raise self.wrap(exc, operation, destination, description) from exc


DEFAULT_CLASSIFIER = ErrorClassifier()
