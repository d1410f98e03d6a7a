"""
Core Exceptions Module
Defines the error taxonomy of the g_flite pipeline.

Every error aborts the run; only PollError is retried by the poller.
"""


class GFliteError(Exception):
    """
    Base class of all errors raised by the pipeline.
    """
    pass


class SplitError(GFliteError):
    """
    Exception raised when the input text cannot be split into chunks.
    """
    pass


class WorkspaceIOError(GFliteError):
    """
    Exception raised when a workspace directory or file cannot be created,
    written or read.
    """
    pass


class RemoteError(GFliteError):
    """
    Base class for failures reported by or about the compute network.
    """
    pass


class RemoteUnavailableError(RemoteError):
    """
    Exception raised when the compute network cannot be reached.
    """
    pass


class RemoteRejectedError(RemoteError):
    """
    Exception raised when the compute network refuses a task descriptor.
    """
    pass


class PollError(RemoteError):
    """
    Exception raised when a status query fails.
    """
    pass


class TaskFailedError(RemoteError):
    """
    Exception raised when the task reaches a failed terminal phase.
    """

    def __init__(self, handle: str, phase):
        """
        Args:
            handle: Task handle returned on submission
            phase: Terminal TaskPhase reported by the compute network
        """
        super().__init__(f"Task {handle} ended with status '{phase.value}'")
        self.handle = handle
        self.phase = phase


class PollCancelledError(GFliteError):
    """
    Exception raised when polling is cancelled or runs past its deadline.
    """
    pass


class AudioProcessingError(GFliteError):
    """
    Exception raised when audio segments cannot be combined.
    """
    pass


class FormatMismatchError(AudioProcessingError):
    """
    Exception raised when a segment's format differs from the first segment.
    """

    def __init__(self, path, expected, actual):
        super().__init__(
            f"Segment {path} has format {actual}, expected {expected}"
        )
        self.path = path
        self.expected = expected
        self.actual = actual
