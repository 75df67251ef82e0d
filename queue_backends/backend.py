from typing import Any, Dict, Optional, Union

import attr

ATTRIBUTE_QUEUE_ARN = "QueueArn"
ATTRIBUTE_POLICY = "Policy"

Payload = Union[str, bytes]


@attr.s(frozen=True)
class InboundMessage:
    """
    Message received from the queue.

    The receipt handle identifies this particular delivery, and is valid only
    while the message stays invisible to other receivers. Use it once to
    delete (acknowledge) the message, or to change its visibility timeout.
    """

    body: str = attr.ib()
    receipt_handle: str = attr.ib(repr=False)
    message_id: Optional[str] = attr.ib(default=None)
    attributes: Dict[str, Any] = attr.ib(factory=dict, repr=False)
    message_attributes: Dict[str, Any] = attr.ib(factory=dict, repr=False)

    @classmethod
    def from_sqs(cls, message: Dict[str, Any]) -> "InboundMessage":
        """
        Make a message from an element of the "Messages" list of the
        ReceiveMessage response.

        Ref: https://docs.aws.amazon.com/AWSSimpleQueueService/latest/APIReference/API_Message.html
        """
        return cls(
            body=message.get("Body", ""),
            receipt_handle=message["ReceiptHandle"],
            message_id=message.get("MessageId"),
            attributes=message.get("Attributes") or {},
            message_attributes=message.get("MessageAttributes") or {},
        )


class QueueBackend(object):
    """
    Set of operations every queue provider adapter implements.

    A backend is bound to a single queue on construction. Each operation
    talks to the provider exactly once and either returns a result or raises
    BackendError. Backends never retry and never cache queue state.
    """

    @property
    def queue_url(self) -> str:
        raise NotImplementedError()

    def send(self, payload: Payload) -> Optional[str]:
        """
        Put the payload to the queue.

        Return the message id assigned by the provider, or None if the backend
        sends messages asynchronously.
        """
        raise NotImplementedError()

    def receive(self) -> Optional[InboundMessage]:
        """Poll the queue once. Return None if no message is available"""
        raise NotImplementedError()

    def set_visibility_timeout(self, receipt_handle: str, seconds: int) -> None:
        raise NotImplementedError()

    def delete_message(self, receipt_handle: str) -> None:
        raise NotImplementedError()

    def get_attributes(self, *names: str) -> Dict[str, str]:
        raise NotImplementedError()

    def set_attribute(self, name: str, value: str) -> None:
        raise NotImplementedError()

    def get_queue_arn(self) -> Optional[str]:
        """Return queue ARN, or None if the provider doesn't report one"""
        return self.get_attributes(ATTRIBUTE_QUEUE_ARN).get(ATTRIBUTE_QUEUE_ARN)

    def set_policy(self, policy: str) -> None:
        """Replace the access policy of the queue"""
        self.set_attribute(ATTRIBUTE_POLICY, policy)

    def delete_queue(self) -> None:
        raise NotImplementedError()
