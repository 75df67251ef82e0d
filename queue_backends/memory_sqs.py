"""
In-memory imitation of the boto3 SQS client.

Only the calls issued by SQSConnector and SQSBackend are implemented. Errors
are raised as genuine botocore ClientError objects, with the same error codes
SQS returns, so that they go through the same translation as real failures.
"""

import hashlib
import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

DEFAULT_VISIBILITY_TIMEOUT = 30
MAX_VISIBILITY_TIMEOUT = 12 * 60 * 60
MEMORY_ACCOUNT_ID = "000000000000"


def make_client_error(code: str, message: str, operation_name: str) -> ClientError:
    error_response = {
        "Error": {"Code": code, "Message": message, "Type": "Sender"},
        "ResponseMetadata": {"HTTPStatusCode": 400},
    }
    return ClientError(error_response, operation_name)  # type: ignore[arg-type]


def now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class MemoryAWS:
    """In-memory AWS as a whole."""

    client: Optional["MemoryClient"] = field(repr=False, default=None)
    queues: List["MemoryQueue"] = field(default_factory=list)
    lock: Any = field(repr=False, default_factory=threading.RLock)

    def __post_init__(self):
        if self.client is None:
            self.client = MemoryClient(self)

    def create_queue(self, QueueName: str, Attributes=None) -> "MemoryQueue":
        queue = self.find_queue_by_name(QueueName)
        if queue is None:
            queue = MemoryQueue(self, QueueName, dict(Attributes or {}))
            self.queues.append(queue)
        return queue

    def delete_queue(self, QueueUrl: str) -> None:
        self.get_queue(QueueUrl, "DeleteQueue")
        self.queues = [queue for queue in self.queues if queue.url != QueueUrl]

    def find_queue_by_name(self, QueueName: str) -> Optional["MemoryQueue"]:
        for queue in self.queues:
            if queue.name == QueueName:
                return queue
        return None

    def get_queue(self, QueueUrl: str, operation_name: str) -> "MemoryQueue":
        for queue in self.queues:
            if queue.url == QueueUrl:
                return queue
        raise make_client_error(
            "AWS.SimpleQueueService.NonExistentQueue",
            "The specified queue does not exist.",
            operation_name,
        )


@dataclass
class MemorySession:
    """In memory AWS session."""

    aws: MemoryAWS = field(repr=False, default_factory=MemoryAWS)

    def client(self, service_name: str, **kwargs):
        assert service_name == "sqs"
        return self.aws.client


@dataclass
class MemoryClient:
    """
    Subset of the boto3 SQS client.

    Ref: https://boto3.amazonaws.com/v1/documentation/api/latest/reference/
         services/sqs.html#client
    """

    aws: Any = field(repr=False)

    def create_queue(self, QueueName: str, Attributes=None, **kwargs):
        with self.aws.lock:
            queue = self.aws.create_queue(QueueName, Attributes)
        return {"QueueUrl": queue.url}

    def delete_queue(self, QueueUrl: str):
        with self.aws.lock:
            self.aws.delete_queue(QueueUrl)
        return {}

    def get_queue_url(self, QueueName: str, **kwargs):
        with self.aws.lock:
            queue = self.aws.find_queue_by_name(QueueName)
        if queue is None:
            raise make_client_error(
                "AWS.SimpleQueueService.NonExistentQueue",
                "The specified queue does not exist.",
                "GetQueueUrl",
            )
        return {"QueueUrl": queue.url}

    def send_message(self, QueueUrl: str, MessageBody: str, **kwargs):
        with self.aws.lock:
            queue = self.aws.get_queue(QueueUrl, "SendMessage")
            message = queue.send_message(MessageBody, **kwargs)
        return {
            "MessageId": message.message_id,
            "MD5OfMessageBody": hashlib.md5(MessageBody.encode("utf-8")).hexdigest(),
        }

    def receive_message(self, QueueUrl: str, MaxNumberOfMessages=1, **kwargs):
        with self.aws.lock:
            queue = self.aws.get_queue(QueueUrl, "ReceiveMessage")
            messages = queue.receive_messages(int(MaxNumberOfMessages))
        if not messages:
            return {}
        return {"Messages": [m.to_dict() for m in messages]}

    def delete_message(self, QueueUrl: str, ReceiptHandle: str):
        with self.aws.lock:
            queue = self.aws.get_queue(QueueUrl, "DeleteMessage")
            queue.delete_message(ReceiptHandle)
        return {}

    def change_message_visibility(
        self, QueueUrl: str, ReceiptHandle: str, VisibilityTimeout: int
    ):
        with self.aws.lock:
            queue = self.aws.get_queue(QueueUrl, "ChangeMessageVisibility")
            queue.change_message_visibility(ReceiptHandle, VisibilityTimeout)
        return {}

    def get_queue_attributes(self, QueueUrl: str, AttributeNames=None):
        with self.aws.lock:
            queue = self.aws.get_queue(QueueUrl, "GetQueueAttributes")
            attributes = queue.get_attributes(AttributeNames or [])
        if not attributes:
            return {}
        return {"Attributes": attributes}

    def set_queue_attributes(self, QueueUrl: str, Attributes):
        with self.aws.lock:
            queue = self.aws.get_queue(QueueUrl, "SetQueueAttributes")
            queue.attributes.update(Attributes)
        return {}


@dataclass
class MemoryQueue:
    """
    In-memory queue which keeps visible messages in `messages`, and messages
    being processed in `in_flight`, keyed by the receipt handle of their
    current delivery.
    """

    aws: MemoryAWS = field(repr=False)
    name: str = field()
    attributes: Dict[str, str] = field()
    messages: List["MemoryMessage"] = field(default_factory=list)
    in_flight: Dict[str, "MemoryMessage"] = field(default_factory=dict)

    def __post_init__(self):
        self.attributes.setdefault(
            "QueueArn", f"arn:aws:sqs:memory:{MEMORY_ACCOUNT_ID}:{self.name}"
        )
        self.attributes.setdefault("VisibilityTimeout", str(DEFAULT_VISIBILITY_TIMEOUT))

    @property
    def url(self):
        return f"memory://{self.name}"

    @property
    def visibility_timeout(self) -> int:
        return int(self.attributes["VisibilityTimeout"])

    def release_expired(self) -> None:
        """Return messages whose invisibility window has passed to the pool"""
        current_time = now()
        for receipt_handle, message in list(self.in_flight.items()):
            if message.visible_at <= current_time:
                self.in_flight.pop(receipt_handle)
                self.messages.append(message)

    def send_message(self, body: str, DelaySeconds=0, MessageAttributes=None, **kwargs):
        visible_at = now() + timedelta(seconds=int(DelaySeconds or 0))
        message = MemoryMessage(
            body=body,
            message_attributes=MessageAttributes or {},
            visible_at=visible_at,
        )
        self.messages.append(message)
        return message

    def receive_messages(self, max_messages: int) -> List["MemoryMessage"]:
        self.release_expired()

        current_time = now()
        ready_messages = []
        push_back_messages = []
        for message in self.messages:
            if message.visible_at > current_time or len(ready_messages) >= max_messages:
                push_back_messages.append(message)
            else:
                ready_messages.append(message)
        self.messages[:] = push_back_messages

        # every delivery gets its own receipt handle
        delivered = []
        visible_at = current_time + timedelta(seconds=self.visibility_timeout)
        for message in ready_messages:
            delivery = replace(
                message,
                receipt_handle=uuid.uuid4().hex,
                receive_count=message.receive_count + 1,
                visible_at=visible_at,
            )
            self.in_flight[delivery.receipt_handle] = delivery
            delivered.append(delivery)
        return delivered

    def delete_message(self, receipt_handle: str) -> None:
        self.release_expired()
        if self.in_flight.pop(receipt_handle, None) is None:
            raise make_client_error(
                "ReceiptHandleIsInvalid",
                f'The input receipt handle "{receipt_handle}" is not a valid '
                f"receipt handle.",
                "DeleteMessage",
            )

    def change_message_visibility(self, receipt_handle: str, timeout: int) -> None:
        if not 0 <= int(timeout) <= MAX_VISIBILITY_TIMEOUT:
            raise make_client_error(
                "InvalidParameterValue",
                f"Value {timeout} for parameter VisibilityTimeout is invalid. "
                f"Reason: Must be between 0 and {MAX_VISIBILITY_TIMEOUT}.",
                "ChangeMessageVisibility",
            )
        self.release_expired()
        message = self.in_flight.get(receipt_handle)
        if message is None:
            raise make_client_error(
                "ReceiptHandleIsInvalid",
                f'The input receipt handle "{receipt_handle}" is not a valid '
                f"receipt handle.",
                "ChangeMessageVisibility",
            )
        visible_at = now() + timedelta(seconds=int(timeout))
        self.in_flight[receipt_handle] = replace(message, visible_at=visible_at)

    def get_attributes(self, names: List[str]) -> Dict[str, str]:
        self.release_expired()
        attributes = dict(self.attributes)
        attributes["ApproximateNumberOfMessages"] = str(len(self.messages))
        attributes["ApproximateNumberOfMessagesNotVisible"] = str(len(self.in_flight))
        if "All" in names:
            return attributes
        return {name: attributes[name] for name in names if name in attributes}


@dataclass(frozen=True)
class MemoryMessage:
    """
    A mock class to mimic the AWS message

    Ref: https://docs.aws.amazon.com/AWSSimpleQueueService/latest/APIReference/API_Message.html
    """

    # The message's contents (not URL-encoded).
    body: str = field()

    # Each message attribute consists of a Name, Type, and Value.
    message_attributes: Dict[str, Dict[str, str]] = field(default_factory=dict)

    # Internal attribute which contains the time the message becomes visible.
    visible_at: datetime = field(default_factory=now)

    # A unique identifier for the message
    message_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    # Identifier of the current delivery, None until the message is received
    receipt_handle: Optional[str] = field(default=None)

    receive_count: int = field(default=0)

    def to_dict(self) -> Dict[str, Any]:
        ret: Dict[str, Any] = {
            "MessageId": self.message_id,
            "ReceiptHandle": self.receipt_handle,
            "MD5OfBody": hashlib.md5(self.body.encode("utf-8")).hexdigest(),
            "Body": self.body,
            "Attributes": {"ApproximateReceiveCount": str(self.receive_count)},
        }
        if self.message_attributes:
            ret["MessageAttributes"] = self.message_attributes
        return ret
