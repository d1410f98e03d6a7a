"""
Progress Poller
Waits for a submitted task to finish, mirroring its progress on a bar.
"""

import logging
import threading
import time
from typing import Optional

from tqdm import tqdm

from g_flite.conf import POLL_INTERVAL, POLL_MAX_RETRIES
from g_flite.core.exceptions import PollCancelledError, PollError, TaskFailedError
from g_flite.core.utils import round_half_away
from g_flite.distributed.client import ComputeClient, TaskHandle, TaskStatus

logger = logging.getLogger(__name__)


class ProgressPoller:
    """
    Poll loop over a task's status.

    Each poll that reports a new progress value advances the bar by
    round(delta * total_units). The loop ends when the task is Finished,
    raises TaskFailedError on a failed terminal phase, and raises
    PollCancelledError when cancel_event is set or timeout elapses.
    Consecutive PollErrors are retried up to max_retries times.
    """

    def __init__(
        self,
        client: ComputeClient,
        handle: TaskHandle,
        total_units: int,
        interval: float = POLL_INTERVAL,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        max_retries: int = POLL_MAX_RETRIES,
        progress_bar=None,
        show_progress: bool = True
    ):
        """
        Args:
            client: Client the task was submitted with
            handle: Handle returned by client.submit()
            total_units: Number of subtasks, the bar's total
            interval: Seconds between polls
            timeout: Seconds before giving up (None = wait forever)
            cancel_event: Set from another thread to stop polling
            max_retries: Failed queries tolerated in a row
            progress_bar: Object with update(n) and close() (default: tqdm)
            show_progress: Display the default tqdm bar
        """
        self.client = client
        self.handle = handle
        self.total_units = total_units
        self.interval = interval
        self.timeout = timeout
        self.cancel_event = cancel_event or threading.Event()
        self.max_retries = max_retries
        self.progress_bar = progress_bar
        self.show_progress = show_progress
        self.last_progress = 0.0
        self.polls = 0

    def run(self) -> TaskStatus:
        """
        Block until the task finishes.

        Returns:
            TaskStatus: The Finished status

        Raises:
            TaskFailedError: Task ended in Error creating/Failed/Aborted/Timeout
            PollCancelledError: Cancelled or timed out locally
            PollError: More than max_retries consecutive failed queries
        """
        bar = self.progress_bar
        owns_bar = bar is None
        if owns_bar:
            bar = tqdm(
                total=self.total_units,
                unit='subtask',
                disable=not self.show_progress
            )

        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        failures = 0

        try:
            while True:
                if self.cancel_event.is_set():
                    raise PollCancelledError(f"Polling of task {self.handle} cancelled")
                if deadline is not None and time.monotonic() >= deadline:
                    raise PollCancelledError(
                        f"Task {self.handle} not finished after {self.timeout}s"
                    )

                try:
                    status = self.client.get_status(self.handle)
                except PollError as e:
                    failures += 1
                    if failures > self.max_retries:
                        raise
                    logger.warning(f"{e} (retry {failures}/{self.max_retries})")
                    self._wait(deadline)
                    continue

                failures = 0
                self.polls += 1
                self._advance(bar, status.progress)

                if status.phase.is_finished:
                    logger.info(f"Task {self.handle} finished after {self.polls} polls")
                    return status
                if status.phase.is_failed:
                    raise TaskFailedError(self.handle, status.phase)

                self._wait(deadline)
        finally:
            if owns_bar:
                bar.close()

    def _advance(self, bar, progress: float):
        if progress == self.last_progress:
            return

        delta = progress - self.last_progress
        if delta < 0:
            logger.warning(
                f"Task {self.handle} progress went back from "
                f"{self.last_progress:.2f} to {progress:.2f}"
            )
        self.last_progress = progress

        units = round_half_away(delta * self.total_units)
        if units:
            bar.update(units)

    def _wait(self, deadline: Optional[float]):
        delay = self.interval
        if deadline is not None:
            delay = min(delay, max(deadline - time.monotonic(), 0.0))
        # Event.wait doubles as an interruptible sleep
        if delay > 0:
            self.cancel_event.wait(delay)
