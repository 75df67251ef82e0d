from queue_backends.backend import (
    ATTRIBUTE_POLICY,
    ATTRIBUTE_QUEUE_ARN,
    InboundMessage,
    QueueBackend,
)
from queue_backends.config import Config
from queue_backends.connector import SQSConnector
from queue_backends.errors import ErrorClassifier
from queue_backends.exceptions import (
    BackendError,
    InvalidReceiptHandleError,
    PermissionDeniedError,
    QueueNotFoundError,
    TransientBackendError,
)
from queue_backends.memory_sqs import MemorySession
from queue_backends.sqs_backend import SQSBackend

__all__ = [
    "ATTRIBUTE_POLICY",
    "ATTRIBUTE_QUEUE_ARN",
    "InboundMessage",
    "QueueBackend",
    "Config",
    "SQSConnector",
    "ErrorClassifier",
    "BackendError",
    "InvalidReceiptHandleError",
    "PermissionDeniedError",
    "QueueNotFoundError",
    "TransientBackendError",
    "MemorySession",
    "SQSBackend",
]
