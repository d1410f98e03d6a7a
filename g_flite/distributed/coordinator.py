"""
Coordinator for one text-to-speech run on the compute network.
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from g_flite.audio.combiner import combine_wave
from g_flite.conf import POLL_INTERVAL, POLL_MAX_RETRIES, POLL_TIMEOUT
from g_flite.distributed.client import ComputeClient, TaskStatus
from g_flite.distributed.descriptor import TaskDescriptor, build_task
from g_flite.distributed.payload import Payload
from g_flite.distributed.poller import ProgressPoller
from g_flite.distributed.workspace import task_workspace
from g_flite.text.splitter import Chunk, split_textfile

logger = logging.getLogger(__name__)

PAPER = '📃  '
TRUCK = '🚚  '
HOURGLASS = '⌛  '
CLIP = '🔗  '


def _step(number: int, icon: str, message: str):
    print(f"[{number}/4] {icon}{message}")


class FliteCoordinator:
    """
    Runs the four stages in order: split the text, send the task, wait for
    it, combine the output.

    Responsibilities:
    - Own the workspace for the duration of the run
    - Keep chunk order from the splitter through to the combined WAV
    - Stop at the first error; no output file is produced on failure
    """

    def __init__(
        self,
        client: ComputeClient,
        payload: Payload,
        workspace_root: Optional[Union[str, Path]] = None,
        keep_workspace: bool = False,
        poll_interval: float = POLL_INTERVAL,
        poll_timeout: Optional[float] = POLL_TIMEOUT,
        max_poll_retries: int = POLL_MAX_RETRIES,
        show_progress: bool = True
    ):
        """
        Args:
            client: Connection to the compute network
            payload: flite module shipped with the task
            workspace_root: Parent directory of the per-run workspace
            keep_workspace: Leave the workspace on disk after the run
            poll_interval: Seconds between status queries
            poll_timeout: Seconds to wait for the task (None = no limit)
            max_poll_retries: Failed status queries tolerated in a row
            show_progress: Display a progress bar while waiting
        """
        self.client = client
        self.payload = payload
        self.workspace_root = workspace_root
        self.keep_workspace = keep_workspace
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self.max_poll_retries = max_poll_retries
        self.show_progress = show_progress

    def split(self, textfile: Union[str, Path], num_subtasks: int) -> List[Chunk]:
        _step(1, PAPER, f"Splitting '{textfile}' into {num_subtasks} subtasks...")
        return split_textfile(textfile, num_subtasks)

    def distribute(
        self,
        chunks: Sequence[Chunk],
        workspace: Path
    ) -> Tuple[TaskDescriptor, List[Path], str]:
        """
        Write the task inputs and submit the task.

        Returns:
            tuple: (descriptor, ordered output paths, task handle)
        """
        _step(2, TRUCK, "Sending task to compute network...")
        descriptor, output_paths = build_task(chunks, workspace, self.payload)
        self.client.connect()
        handle = self.client.submit(descriptor)
        return descriptor, output_paths, handle

    def wait(
        self,
        handle: str,
        total_units: int,
        cancel_event: Optional[threading.Event] = None
    ) -> TaskStatus:
        _step(3, HOURGLASS, "Waiting on compute to finish...")
        poller = ProgressPoller(
            self.client,
            handle,
            total_units,
            interval=self.poll_interval,
            timeout=self.poll_timeout,
            cancel_event=cancel_event,
            max_retries=self.max_poll_retries,
            show_progress=self.show_progress,
        )
        return poller.run()

    def combine(self, output_paths: Sequence[Path], wavfile: Union[str, Path]):
        if not output_paths:
            return None
        _step(4, CLIP, f"Combining output into '{wavfile}'...")
        return combine_wave(output_paths, wavfile)

    def run(
        self,
        textfile: Union[str, Path],
        wavfile: Union[str, Path],
        num_subtasks: int,
        cancel_event: Optional[threading.Event] = None
    ) -> Optional[Path]:
        """
        Convert textfile into wavfile.

        Returns:
            Path: wavfile, once written
            None: If there was no audio to combine
        """
        chunks = self.split(textfile, num_subtasks)

        with task_workspace(self.workspace_root, keep=self.keep_workspace) as workspace:
            _, output_paths, handle = self.distribute(chunks, workspace)
            self.wait(handle, len(output_paths), cancel_event)
            combined = self.combine(output_paths, wavfile)

        if combined is None:
            return None

        logger.info(f"Wrote {wavfile}")
        return Path(wavfile)
