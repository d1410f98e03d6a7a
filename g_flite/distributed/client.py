"""
Remote Submission Client
Request/response access to the compute network: submit a task descriptor,
then query the status of the task it created.
"""

import logging
import math
import os
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import quote

import redis
from celery.exceptions import TimeoutError as CeleryTimeoutError
from kombu.exceptions import OperationalError
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from g_flite.conf import REQUEST_TIMEOUT
from g_flite.core.exceptions import (
    PollError,
    RemoteRejectedError,
    RemoteUnavailableError,
)
from g_flite.distributed.celery_app import CREATE_TASK, GET_TASK, make_celery_app
from g_flite.distributed.descriptor import TaskDescriptor

logger = logging.getLogger(__name__)

TaskHandle = str

_UNREACHABLE = (
    OperationalError,
    RedisConnectionError,
    RedisTimeoutError,
    CeleryTimeoutError,
    OSError,
)


class TaskPhase(str, Enum):
    """Task status values as reported by the compute network."""

    NOT_STARTED = 'Not started'
    CREATING_DEPOSIT = 'Creating the deposit'
    SENDING = 'Sending'
    ERROR_CREATING = 'Error creating'
    WAITING = 'Waiting'
    STARTING = 'Starting'
    COMPUTING = 'Computing'
    FINISHED = 'Finished'
    FAILED = 'Failed'
    ABORTED = 'Aborted'
    TIMEOUT = 'Timeout'
    RESTARTED = 'Restart'
    UNKNOWN = 'Unknown'

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN

    @property
    def is_finished(self) -> bool:
        return self is TaskPhase.FINISHED

    @property
    def is_failed(self) -> bool:
        return self in _FAILED_PHASES


_FAILED_PHASES = frozenset({
    TaskPhase.ERROR_CREATING,
    TaskPhase.FAILED,
    TaskPhase.ABORTED,
    TaskPhase.TIMEOUT,
})


@dataclass(frozen=True)
class TaskStatus:
    """One status snapshot: progress in [0.0, 1.0] and phase."""

    progress: float
    phase: TaskPhase

    @classmethod
    def from_reply(cls, reply: Any) -> 'TaskStatus':
        """
        Parse a get_task reply of the form {"progress": ..., "status": ...}.

        Raises:
            PollError: If the reply is empty or malformed
        """
        if not isinstance(reply, dict):
            raise PollError(f"Malformed status reply: {reply!r}")

        try:
            progress = float(reply.get('progress') or 0.0)
        except (TypeError, ValueError) as e:
            raise PollError(f"Malformed progress value: {reply.get('progress')!r}") from e
        if not math.isfinite(progress):
            raise PollError(f"Malformed progress value: {reply.get('progress')!r}")

        phase = TaskPhase(reply.get('status'))
        if phase is TaskPhase.UNKNOWN:
            logger.warning(f"Unknown task status {reply.get('status')!r}")

        return cls(min(max(progress, 0.0), 1.0), phase)


class ComputeClient(ABC):
    """Two-operation boundary to the compute network."""

    def connect(self):
        """Check the network can be reached. No-op by default."""

    @abstractmethod
    def submit(self, descriptor: TaskDescriptor) -> TaskHandle:
        """Submit a task, returning its handle."""

    @abstractmethod
    def get_status(self, handle: TaskHandle) -> TaskStatus:
        """Query the status of a submitted task."""

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def build_broker_url(
    address: str,
    port: int,
    datadir: Union[str, Path, None] = None
) -> Tuple[str, Optional[Dict[str, Any]]]:
    """
    Build the Redis URL of the compute network from its address and the
    local state directory.

    The state directory may hold:
        rpc/secret  - password of the RPC endpoint
        rpc/ca.pem  - CA certificate; switches the connection to TLS

    Returns:
        tuple: (url, ssl options or None)

    Raises:
        RemoteUnavailableError: If a secret file exists but cannot be read
    """
    password = None
    ssl_options = None

    if datadir:
        rpc_dir = Path(os.path.expanduser(str(datadir))) / 'rpc'
        secret_file = rpc_dir / 'secret'
        ca_file = rpc_dir / 'ca.pem'
        try:
            if secret_file.is_file():
                password = secret_file.read_text(encoding='utf-8').strip()
        except OSError as e:
            raise RemoteUnavailableError(f"Cannot read RPC secret {secret_file}: {e}") from e
        if ca_file.is_file():
            ssl_options = {
                'ssl_cert_reqs': ssl.CERT_REQUIRED,
                'ssl_ca_certs': str(ca_file),
            }

    scheme = 'rediss' if ssl_options else 'redis'
    auth = f":{quote(password, safe='')}@" if password else ''
    return f"{scheme}://{auth}{address}:{port}/0", ssl_options


class CeleryComputeClient(ComputeClient):
    """
    Compute network client over Celery with a Redis broker.

    Each call publishes one message and waits for one reply; nothing is
    retried here.
    """

    def __init__(
        self,
        address: str,
        port: int,
        datadir: Union[str, Path, None] = None,
        request_timeout: float = REQUEST_TIMEOUT,
        app=None
    ):
        """
        Args:
            address: Host of the RPC endpoint
            port: Port of the RPC endpoint
            datadir: Local state directory (RPC secret and CA certificate)
            request_timeout: Seconds to wait for each reply
            app: Pre-built Celery application (tests)
        """
        self.address = address
        self.port = port
        self.request_timeout = request_timeout
        self.broker_url, self.ssl_options = build_broker_url(address, port, datadir)
        self.app = app or make_celery_app(self.broker_url, self.ssl_options)
        self._redis_client = None

    def connect(self):
        """
        Ping the RPC endpoint.

        Raises:
            RemoteUnavailableError: If it does not answer
        """
        try:
            self._redis_client = redis.from_url(
                self.broker_url,
                socket_connect_timeout=self.request_timeout,
                **(self.ssl_options or {})
            )
            self._redis_client.ping()
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise RemoteUnavailableError(
                f"Cannot connect to compute network at {self.address}:{self.port}: {e}"
            ) from e

        logger.info(f"Connected to compute network at {self.address}:{self.port}")

    def submit(self, descriptor: TaskDescriptor) -> TaskHandle:
        """
        Create the task described by descriptor.

        Raises:
            RemoteUnavailableError: If the request cannot be delivered or
                no reply arrives in time
            RemoteRejectedError: If the network refuses the descriptor
        """
        try:
            result = self.app.send_task(CREATE_TASK, args=[descriptor.to_json()])
            reply = result.get(timeout=self.request_timeout)
        except _UNREACHABLE as e:
            raise RemoteUnavailableError(f"Task submission failed: {e}") from e
        except Exception as e:
            raise RemoteRejectedError(f"Task rejected: {e}") from e

        if not isinstance(reply, (list, tuple)) or len(reply) != 2:
            raise RemoteRejectedError(f"Malformed create_task reply: {reply!r}")

        task_id, error = reply
        if not task_id:
            raise RemoteRejectedError(f"Task rejected: {error or 'no task id returned'}")

        logger.info(f"Task '{descriptor.display_name}' submitted as {task_id}")
        return str(task_id)

    def get_status(self, handle: TaskHandle) -> TaskStatus:
        """
        Raises:
            PollError: If the query fails or the reply is malformed
        """
        try:
            result = self.app.send_task(GET_TASK, args=[handle])
            reply = result.get(timeout=self.request_timeout)
        except Exception as e:
            raise PollError(f"Status query for task {handle} failed: {e}") from e

        if reply is None:
            raise PollError(f"Unknown task {handle}")

        status = TaskStatus.from_reply(reply)
        logger.debug(f"Task {handle}: {status.phase.value} ({status.progress:.0%})")
        return status

    def close(self):
        if self._redis_client is not None:
            self._redis_client.close()
            self._redis_client = None
        self.app.close()
