"""
SQSBackend against a real boto3 client, with responses stubbed by botocore.
"""

import boto3
import pytest
from botocore.exceptions import ConnectTimeoutError, EndpointConnectionError
from botocore.stub import ANY, Stubber

from queue_backends import (
    BackendError,
    InvalidReceiptHandleError,
    PermissionDeniedError,
    SQSBackend,
    TransientBackendError,
)

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/orders"
RECEIVE_PARAMS = {
    "QueueUrl": QUEUE_URL,
    "MaxNumberOfMessages": 1,
    "WaitTimeSeconds": 0,
    "AttributeNames": ANY,
    "MessageAttributeNames": ANY,
}


@pytest.fixture
def client():
    return boto3.client(
        "sqs",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(client):
    with Stubber(client) as stubber:
        yield stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def backend(client):
    return SQSBackend(client, QUEUE_URL)


def test_round_trip(stubber, backend):
    stubber.add_response(
        "send_message",
        {"MessageId": "abc123"},
        {"QueueUrl": QUEUE_URL, "MessageBody": "hello"},
    )
    stubber.add_response(
        "receive_message",
        {
            "Messages": [
                {"MessageId": "abc123", "ReceiptHandle": "r1", "Body": "hello"}
            ]
        },
        RECEIVE_PARAMS,
    )
    stubber.add_response(
        "delete_message", {}, {"QueueUrl": QUEUE_URL, "ReceiptHandle": "r1"}
    )
    stubber.add_response("receive_message", {}, RECEIVE_PARAMS)

    assert backend.send("hello") == "abc123"

    message = backend.receive()
    assert message.body == "hello"
    assert message.receipt_handle == "r1"
    assert message.message_id == "abc123"
    assert message.attributes == {}

    backend.delete_message("r1")
    assert backend.receive() is None


def test_receive_empty_message_list(stubber, backend):
    stubber.add_response("receive_message", {"Messages": []}, RECEIVE_PARAMS)
    assert backend.receive() is None


def test_set_visibility_timeout(stubber, backend):
    stubber.add_response(
        "change_message_visibility",
        {},
        {"QueueUrl": QUEUE_URL, "ReceiptHandle": "r1", "VisibilityTimeout": 60},
    )
    backend.set_visibility_timeout("r1", 60)


def test_get_queue_arn(stubber, backend):
    arn = "arn:aws:sqs:us-east-1:123456789012:orders"
    stubber.add_response(
        "get_queue_attributes",
        {"Attributes": {"QueueArn": arn}},
        {"QueueUrl": QUEUE_URL, "AttributeNames": ["QueueArn"]},
    )
    assert backend.get_queue_arn() == arn


def test_get_queue_arn_unset(stubber, backend):
    stubber.add_response(
        "get_queue_attributes",
        {},
        {"QueueUrl": QUEUE_URL, "AttributeNames": ["QueueArn"]},
    )
    assert backend.get_queue_arn() is None


def test_set_policy(stubber, backend):
    stubber.add_response(
        "set_queue_attributes",
        {},
        {"QueueUrl": QUEUE_URL, "Attributes": {"Policy": "{}"}},
    )
    backend.set_policy("{}")


def test_delete_queue(stubber, backend):
    stubber.add_response("delete_queue", {}, {"QueueUrl": QUEUE_URL})
    backend.delete_queue()


def test_used_receipt_handle(stubber, backend):
    stubber.add_client_error(
        "delete_message",
        service_error_code="ReceiptHandleIsInvalid",
        service_message="The input receipt handle is invalid.",
        http_status_code=400,
    )
    with pytest.raises(InvalidReceiptHandleError) as excinfo:
        backend.delete_message("r1")
    assert excinfo.value.description == "Unable to delete message with receipt handle r1"


def test_negative_visibility_timeout_is_not_validated_locally(stubber, backend):
    stubber.add_client_error(
        "change_message_visibility",
        service_error_code="InvalidParameterValue",
        http_status_code=400,
        expected_params={
            "QueueUrl": QUEUE_URL,
            "ReceiptHandle": "r1",
            "VisibilityTimeout": -5,
        },
    )
    with pytest.raises(BackendError) as excinfo:
        backend.set_visibility_timeout("r1", -5)
    assert excinfo.value.error_code == "InvalidParameterValue"


def test_access_denied(stubber, backend):
    stubber.add_client_error(
        "set_queue_attributes",
        service_error_code="AccessDenied",
        http_status_code=403,
    )
    with pytest.raises(PermissionDeniedError) as excinfo:
        backend.set_policy("{}")
    assert excinfo.value.operation == "set_policy"


def test_throttling_is_retryable(stubber, backend):
    stubber.add_client_error(
        "send_message",
        service_error_code="RequestThrottled",
        http_status_code=403,
    )
    with pytest.raises(TransientBackendError) as excinfo:
        backend.send("hello")
    assert excinfo.value.retryable


class FailingClient:
    """SQS client which can't reach the endpoint"""

    def __init__(self, exc):
        self.exc = exc
        self.calls = []

    def __getattr__(self, name):
        def method(**kwargs):
            self.calls.append(name)
            raise self.exc

        return method


OPERATIONS = [
    ("send", ("hello",)),
    ("receive", ()),
    ("set_visibility_timeout", ("r1", 10)),
    ("delete_message", ("r1",)),
    ("get_queue_arn", ()),
    ("get_attributes", ("QueueArn",)),
    ("set_policy", ("{}",)),
    ("set_attribute", ("VisibilityTimeout", "10")),
    ("delete_queue", ()),
]


@pytest.mark.parametrize(
    "exc",
    [
        EndpointConnectionError(endpoint_url=QUEUE_URL),
        ConnectTimeoutError(endpoint_url=QUEUE_URL),
    ],
)
@pytest.mark.parametrize("operation,args", OPERATIONS)
def test_transport_failure(exc, operation, args):
    client = FailingClient(exc)
    backend = SQSBackend(client, QUEUE_URL)

    with pytest.raises(TransientBackendError) as excinfo:
        getattr(backend, operation)(*args)

    assert excinfo.value.operation == operation
    assert excinfo.value.destination == QUEUE_URL
    assert excinfo.value.cause is exc
    # exactly one provider call, no retries
    assert len(client.calls) == 1


def test_other_exceptions_are_not_translated():
    backend = SQSBackend(FailingClient(KeyError("boom")), QUEUE_URL)
    with pytest.raises(KeyError):
        backend.receive()
