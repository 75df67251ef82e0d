import datetime
import os
import random
import string

import boto3
import pytest
from botocore.exceptions import ClientError

from queue_backends import BackendError, SQSConnector
from queue_backends.memory_sqs import MemoryAWS, MemorySession

# memory,localstack,aws
TEST_SESSIONS = os.environ.get("QUEUE_BACKENDS_TEST_SESSIONS", "memory").split(",")


@pytest.fixture(scope="session", params=[s.strip() for s in TEST_SESSIONS if s])
def sqs_session(request):
    if request.param == "aws":
        return boto3.Session()
    elif request.param == "localstack":
        import localstack_client.session

        return localstack_client.session.Session()
    else:
        return MemorySession(MemoryAWS())


@pytest.fixture
def connector(sqs_session):
    queue_prefix = "queue_backends_tests_{:%Y%m%d}_".format(datetime.datetime.utcnow())
    connector = SQSConnector(session=sqs_session, queue_prefix=queue_prefix)
    yield connector
    connector.close()


@pytest.fixture
def queue_name(connector, random_string):
    yield random_string
    try:
        connector.sqs_client.delete_queue(
            QueueUrl=connector.get_queue_url(random_string)
        )
    except (BackendError, ClientError):
        # the test has deleted the queue itself
        pass


@pytest.fixture
def queue_url(connector, queue_name):
    ret = connector.sqs_client.create_queue(
        QueueName=connector.get_sqs_queue_name(queue_name), Attributes={}
    )
    return ret["QueueUrl"]


@pytest.fixture
def backend(connector, queue_url):
    return connector.queue(queue_url)


@pytest.fixture
def memory_queue(sqs_session, queue_url):
    """Internal state of the queue, for tests which only run in memory"""
    if not isinstance(sqs_session, MemorySession):
        pytest.skip("Only implemented with MemorySession")
    return sqs_session.aws.get_queue(queue_url, "test")


@pytest.fixture
def random_string():
    return "".join([symbol() for i in range(10)])


def symbol():
    return random.choice(string.ascii_lowercase + string.digits)
