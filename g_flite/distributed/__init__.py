"""
Distributed execution on the compute network.

Provides the components of a run:
- Payload: flite module shipped with every task
- Workspace: per-run directory tree
- Descriptor: task.json and subtask layout
- Client: submission and status queries over Celery/Redis
- Poller: waits for completion and displays progress
- Coordinator: runs the stages in order
"""

from .celery_app import make_celery_app
from .client import (
    CeleryComputeClient,
    ComputeClient,
    TaskPhase,
    TaskStatus,
    build_broker_url,
)
from .coordinator import FliteCoordinator
from .descriptor import (
    SubtaskSpec,
    TaskDescriptor,
    build_task,
    subtask_index,
    subtask_name,
)
from .payload import Payload
from .poller import ProgressPoller
from .workspace import task_workspace

__all__ = [
    'make_celery_app',
    'CeleryComputeClient',
    'ComputeClient',
    'TaskPhase',
    'TaskStatus',
    'build_broker_url',
    'FliteCoordinator',
    'SubtaskSpec',
    'TaskDescriptor',
    'build_task',
    'subtask_index',
    'subtask_name',
    'Payload',
    'ProgressPoller',
    'task_workspace',
]
