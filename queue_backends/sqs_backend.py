import logging
from concurrent.futures import Executor, Future
from typing import Any, Dict, Optional, Sequence

import attr

from queue_backends.backend import (
    ATTRIBUTE_POLICY,
    ATTRIBUTE_QUEUE_ARN,
    InboundMessage,
    Payload,
    QueueBackend,
)
from queue_backends.errors import DEFAULT_CLASSIFIER, ErrorClassifier
from queue_backends.exceptions import BackendError
from queue_backends.utils import ensure_string

logger = logging.getLogger(__name__)


@attr.s(frozen=True)
class SQSBackend(QueueBackend):
    """
    Queue backend bound to a single Amazon SQS queue.

    Usage example:

        client = boto3.client("sqs")
        backend = SQSBackend(client, queue_url)
        message_id = backend.send("hello")
        message = backend.receive()
        if message:
            backend.delete_message(message.receipt_handle)

    With is_async=True, send() hands the request over to the executor and
    returns None without waiting for SQS to acknowledge the message.
    """

    client: Any = attr.ib(repr=False)
    _queue_url: str = attr.ib()
    is_async: bool = attr.ib(default=False)
    executor: Optional[Executor] = attr.ib(default=None, repr=False)
    classifier: ErrorClassifier = attr.ib(default=DEFAULT_CLASSIFIER, repr=False)

    @executor.validator
    def _check_executor(self, attribute, value):
        if self.is_async and value is None:
            raise ValueError("Asynchronous SQSBackend requires an executor")

    @property
    def queue_url(self) -> str:
        return self._queue_url

    def send(self, payload: Payload) -> Optional[str]:
        """
        Bytes payloads must be valid UTF-8, as SQS message bodies are text.
        In synchronous mode other payloads fail with BackendError. In
        asynchronous mode the body is converted by the background task, and
        the failure is only logged.
        """
        description = "Unable to send message to queue {}".format(self._queue_url)
        extra = {"queue_url": self._queue_url, "is_async": self.is_async}
        logger.debug("Send message to %s", self._queue_url, extra=extra)

        if self.is_async:
            try:
                future = self.executor.submit(self._send_message, payload)
            except RuntimeError as exc:
                # executor was shut down
                raise self._send_error(description, exc) from exc
            future.add_done_callback(self._log_async_send_failure)
            return None

        try:
            body = ensure_string(payload)
        except UnicodeDecodeError as exc:
            raise self._send_error(description, exc) from exc
        with self.classifier.translate("send", self._queue_url, description):
            ret = self.client.send_message(QueueUrl=self._queue_url, MessageBody=body)
        return ret["MessageId"]

    def _send_message(self, payload: Payload) -> Dict[str, Any]:
        return self.client.send_message(
            QueueUrl=self._queue_url, MessageBody=ensure_string(payload)
        )

    def _send_error(self, description: str, exc: Exception) -> BackendError:
        return BackendError(
            description,
            operation="send",
            destination=self._queue_url,
            cause=exc,
            error_code=exc.__class__.__name__,
        )

    def _log_async_send_failure(self, future: Future) -> None:
        exc = future.exception()
        if exc is None:
            return
        description = "Unable to send message to queue {}".format(self._queue_url)
        if self.classifier.is_provider_error(exc):
            exc = self.classifier.wrap(exc, "send", self._queue_url, description)
        logger.warning(
            "Asynchronous send to %s failed: %s",
            self._queue_url,
            exc,
            extra={"queue_url": self._queue_url, "error": repr(exc)},
        )

    def receive(self) -> Optional[InboundMessage]:
        description = "Unable to retrieve message from queue {}".format(
            self._queue_url
        )
        with self.classifier.translate("receive", self._queue_url, description):
            ret = self.client.receive_message(
                QueueUrl=self._queue_url,
                MaxNumberOfMessages=1,
                WaitTimeSeconds=0,
                AttributeNames=["All"],
                MessageAttributeNames=["All"],
            )
        messages = ret.get("Messages") or []
        if not messages:
            return None
        message = InboundMessage.from_sqs(messages[0])
        logger.debug(
            "Received %s from %s",
            message.message_id,
            self._queue_url,
            extra={"queue_url": self._queue_url, "message_id": message.message_id},
        )
        return message

    def set_visibility_timeout(self, receipt_handle: str, seconds: int) -> None:
        description = (
            "Unable to reset message visibility for message "
            "with receipt handle {}".format(receipt_handle)
        )
        with self.classifier.translate(
            "set_visibility_timeout", self._queue_url, description
        ):
            self.client.change_message_visibility(
                QueueUrl=self._queue_url,
                ReceiptHandle=receipt_handle,
                VisibilityTimeout=seconds,
            )

    def delete_message(self, receipt_handle: str) -> None:
        description = "Unable to delete message with receipt handle {}".format(
            receipt_handle
        )
        with self.classifier.translate("delete_message", self._queue_url, description):
            self.client.delete_message(
                QueueUrl=self._queue_url, ReceiptHandle=receipt_handle
            )

    def get_attributes(self, *names: str) -> Dict[str, str]:
        return self._get_attributes(names, "get_attributes")

    def get_queue_arn(self) -> Optional[str]:
        attributes = self._get_attributes([ATTRIBUTE_QUEUE_ARN], "get_queue_arn")
        return attributes.get(ATTRIBUTE_QUEUE_ARN)

    def _get_attributes(self, names: Sequence[str], operation: str) -> Dict[str, str]:
        if not names:
            raise ValueError("At least one attribute name is required")
        description = "Unable to get queue attributes {} for queue {}".format(
            ", ".join(names), self._queue_url
        )
        with self.classifier.translate(operation, self._queue_url, description):
            ret = self.client.get_queue_attributes(
                QueueUrl=self._queue_url, AttributeNames=list(names)
            )
        return ret.get("Attributes") or {}

    def set_attribute(self, name: str, value: str) -> None:
        self._set_attribute(name, value, "set_attribute")

    def set_policy(self, policy: str) -> None:
        self._set_attribute(ATTRIBUTE_POLICY, policy, "set_policy")

    def _set_attribute(self, name: str, value: str, operation: str) -> None:
        description = "Unable to set attribute {} for queue {}".format(
            name, self._queue_url
        )
        with self.classifier.translate(operation, self._queue_url, description):
            self.client.set_queue_attributes(
                QueueUrl=self._queue_url, Attributes={name: value}
            )

    def delete_queue(self) -> None:
        description = "Unable to delete message queue {}".format(self._queue_url)
        logger.debug(
            "Delete queue %s", self._queue_url, extra={"queue_url": self._queue_url}
        )
        with self.classifier.translate("delete_queue", self._queue_url, description):
            self.client.delete_queue(QueueUrl=self._queue_url)
