from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig

from queue_backends.config import Config
from queue_backends.errors import DEFAULT_CLASSIFIER, ErrorClassifier
from queue_backends.exceptions import BackendError
from queue_backends.sqs_backend import SQSBackend

logger = logging.getLogger(__name__)


@dataclass
class SQSConnector:
    """
    Owner of the boto3 SQS client shared by all the backends it creates.

    Usage example:

        connector = SQSConnector(queue_prefix="staging_")
        backend = connector.queue_by_name("emails")
        backend.send("hello")

    Backends created with is_async=True submit their sends to the thread pool
    of the connector. Call close() to wait for pending sends before exit.
    """

    session: Any = boto3
    queue_prefix: str = ""

    # retry settings for internal boto
    retry_max_attempts: int = 3
    retry_mode: str = "standard"

    endpoint_url: Optional[str] = None
    region_name: Optional[str] = None

    # default send mode for new backends
    is_async: bool = False
    async_workers: int = 4

    # internal attributes
    classifier: ErrorClassifier = DEFAULT_CLASSIFIER
    sqs_client: Any = None
    executor: Optional[ThreadPoolExecutor] = None

    def __post_init__(self):
        # https://boto3.amazonaws.com/v1/documentation/api/latest/guide/retries.html
        retry_dict = {"max_attempts": self.retry_max_attempts, "mode": self.retry_mode}
        retry_config = BotoConfig(retries=retry_dict)
        client_kwargs = {}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url
        if self.region_name:
            client_kwargs["region_name"] = self.region_name
        if not self.sqs_client:
            self.sqs_client = self.session.client(
                "sqs", config=retry_config, **client_kwargs
            )

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> SQSConnector:
        """
        Create a connector from the config. Recognized keys: session,
        queue_prefix, retry_max_attempts, retry_mode, endpoint_url,
        region_name, is_async, async_workers. Keyword arguments take
        precedence over the config.
        """
        options: dict[str, Any] = {}
        if "session" in config:
            options["session"] = config.get_instance("session")
        for key in ("queue_prefix", "retry_mode", "endpoint_url", "region_name"):
            if key in config:
                options[key] = config[key]
        for key in ("retry_max_attempts", "async_workers"):
            if key in config:
                options[key] = config.get_int(key)
        if "is_async" in config:
            options["is_async"] = config.get_bool("is_async")
        options.update(kwargs)
        return cls(**options)

    def get_executor(self) -> ThreadPoolExecutor:
        if self.executor is None:
            self.executor = ThreadPoolExecutor(
                max_workers=self.async_workers, thread_name_prefix="queue-backends"
            )
        return self.executor

    def queue(self, queue_url: str, is_async: Optional[bool] = None) -> SQSBackend:
        """Return a backend bound to the queue with the given URL."""
        if is_async is None:
            is_async = self.is_async
        logger.debug(
            "Bind backend to %s",
            queue_url,
            extra={"queue_url": queue_url, "is_async": is_async},
        )
        return SQSBackend(
            client=self.sqs_client,
            queue_url=queue_url,
            is_async=is_async,
            executor=self.get_executor() if is_async else None,
            classifier=self.classifier,
        )

    def queue_by_name(
        self, queue_name: str, is_async: Optional[bool] = None
    ) -> SQSBackend:
        """Resolve the URL of the (prefixed) queue and bind a backend to it."""
        return self.queue(self.get_queue_url(queue_name), is_async=is_async)

    def get_queue_url(self, queue_name: str) -> str:
        sqs_queue_name = self.get_sqs_queue_name(queue_name)
        description = "Unable to get URL of queue {}".format(sqs_queue_name)
        with self.classifier.translate("get_queue_url", sqs_queue_name, description):
            ret = self.sqs_client.get_queue_url(QueueName=sqs_queue_name)
        return ret["QueueUrl"]

    def get_sqs_queue_name(self, queue_name: str) -> str:
        """
        Take "high-level" (user-visible) queue name and return SQS
        ("low level") name by simply prefixing it. Used to create namespaces
        for different environments (development, staging, production, etc).
        """
        return f"{self.queue_prefix}{queue_name}"

    def handle_aws_exception(
        self,
        description: str,
        exc: BaseException,
        operation: str = "unknown",
        destination: Optional[str] = None,
    ) -> BackendError:
        """
        Convert an exception raised by the SQS client outside of a backend
        to BackendError. The result is meant to be raised by the caller.
        """
        return self.classifier.wrap(exc, operation, destination, description)

    def close(self, wait: bool = True) -> None:
        """Stop the async send pool, waiting for pending sends by default."""
        if self.executor is not None:
            self.executor.shutdown(wait=wait)
            self.executor = None

    def __enter__(self) -> SQSConnector:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
