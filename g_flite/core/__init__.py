"""
Core Module
Provides the exception taxonomy and shared helpers.
"""

from .exceptions import (
    GFliteError,
    SplitError,
    WorkspaceIOError,
    RemoteError,
    RemoteUnavailableError,
    RemoteRejectedError,
    PollError,
    TaskFailedError,
    PollCancelledError,
    AudioProcessingError,
    FormatMismatchError,
)
from .utils import round_half_away

__all__ = [
    # Exceptions
    'GFliteError',
    'SplitError',
    'WorkspaceIOError',
    'RemoteError',
    'RemoteUnavailableError',
    'RemoteRejectedError',
    'PollError',
    'TaskFailedError',
    'PollCancelledError',
    'AudioProcessingError',
    'FormatMismatchError',
    # Utils
    'round_half_away',
]
