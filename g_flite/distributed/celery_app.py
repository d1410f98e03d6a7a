"""Celery application used to talk to the compute network."""

from typing import Any, Dict, Optional

from celery import Celery
from kombu import Exchange, Queue

# Operations exposed by the compute network
CREATE_TASK = 'compute.create_task'
GET_TASK = 'compute.get_task'

RPC_QUEUE = 'compute_rpc'


def make_celery_app(broker_url: str, ssl_options: Optional[Dict[str, Any]] = None) -> Celery:
    """
    Build a Celery client for the compute network at broker_url.

    The same Redis instance serves as broker and result backend, so every
    request gets exactly one reply.

    Args:
        broker_url: redis:// or rediss:// URL
        ssl_options: Options for rediss:// (ssl_ca_certs, ssl_cert_reqs)
    """
    app = Celery('g_flite', broker=broker_url, backend=broker_url)

    app.conf.update(
        # Serialization
        task_serializer='json',
        result_serializer='json',
        accept_content=['json'],
        timezone='UTC',
        enable_utc=True,

        # Results
        result_expires=3600,

        # One request, one reply
        task_publish_retry=False,

        # Queues
        task_default_queue=RPC_QUEUE,
        task_queues=(
            Queue(RPC_QUEUE, Exchange(RPC_QUEUE), routing_key='rpc'),
        ),
    )

    if ssl_options:
        app.conf.broker_use_ssl = ssl_options
        app.conf.redis_backend_use_ssl = ssl_options

    app.conf.task_routes = {
        CREATE_TASK: {'queue': RPC_QUEUE},
        GET_TASK: {'queue': RPC_QUEUE},
    }

    return app
