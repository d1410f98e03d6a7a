"""
Task Descriptor Builder
Lays out the workspace for a chunk sequence and describes it as one task.

Layout:
    <workspace>/in/flite.js, flite.wasm
    <workspace>/in/subtask<i>/in.txt
    <workspace>/out/subtask<i>/in.wav   (written by the compute network)
    <workspace>/task.json
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from g_flite.conf import (
    SUBTASK_INPUT_FILE,
    SUBTASK_OUTPUT_FILE,
    SUBTASK_TIMEOUT,
    TASK_BID,
    TASK_NAME,
    TASK_TIMEOUT,
    TASK_TYPE,
)
from g_flite.core.exceptions import WorkspaceIOError
from g_flite.distributed.payload import Payload
from g_flite.text.splitter import Chunk

logger = logging.getLogger(__name__)

SUBTASK_PREFIX = 'subtask'
_SUBTASK_NAME_RE = re.compile(r'^subtask(0|[1-9][0-9]*)$')


def subtask_name(index: int) -> str:
    """Name of the subtask built from chunk `index`."""
    if index < 0:
        raise ValueError(f"Subtask index must be non-negative, got {index}")
    return f"{SUBTASK_PREFIX}{index}"


def subtask_index(name: str) -> int:
    """
    Recover the chunk index from a subtask name.

    Raises:
        ValueError: If name was not produced by subtask_name()
    """
    match = _SUBTASK_NAME_RE.match(name)
    if match is None:
        raise ValueError(f"Not a subtask name: {name!r}")
    return int(match.group(1))


def format_duration(duration: timedelta) -> str:
    """Render a duration as HH:MM:SS."""
    total = int(duration.total_seconds())
    if total < 0:
        raise ValueError(f"Negative duration: {duration}")
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


@dataclass(frozen=True)
class SubtaskSpec:
    """One remote work unit: a chunk's input file and expected output."""

    name: str
    input_path: Path
    output_path: Path
    exec_args: Tuple[str, ...] = (SUBTASK_INPUT_FILE, SUBTASK_OUTPUT_FILE)
    output_file_paths: Tuple[str, ...] = (SUBTASK_OUTPUT_FILE,)

    @property
    def index(self) -> int:
        return subtask_index(self.name)

    def to_options(self) -> Dict[str, List[str]]:
        return {
            'exec_args': list(self.exec_args),
            'output_file_paths': list(self.output_file_paths),
        }


@dataclass(frozen=True)
class TaskDescriptor:
    """Complete description of a task, serialized verbatim to the network."""

    kind: str
    display_name: str
    bid: float
    timeout: timedelta
    subtask_timeout: timedelta
    js_name: str
    wasm_name: str
    input_dir: Path
    output_dir: Path
    subtasks: Mapping[str, SubtaskSpec]

    def to_json(self) -> Dict[str, Any]:
        """Render the task.json document."""
        return {
            'type': self.kind,
            'name': self.display_name,
            'bid': self.bid,
            'subtask_timeout': format_duration(self.subtask_timeout),
            'timeout': format_duration(self.timeout),
            'options': {
                'js_name': self.js_name,
                'wasm_name': self.wasm_name,
                'input_dir': str(self.input_dir),
                'output_dir': str(self.output_dir),
                'subtasks': {
                    name: spec.to_options()
                    for name, spec in self.subtasks.items()
                },
            },
        }

    def write(self, path: Path):
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_json(), f, indent=2)


def build_task(
    chunks: Sequence[Chunk],
    workspace: Path,
    payload: Payload,
    *,
    name: str = TASK_NAME,
    bid: float = TASK_BID,
    timeout: timedelta = TASK_TIMEOUT,
    subtask_timeout: timedelta = SUBTASK_TIMEOUT
) -> Tuple[TaskDescriptor, List[Path]]:
    """
    Write the task inputs into the workspace and build its descriptor.

    Args:
        chunks: Chunks with indices 0..N-1, in order
        workspace: Existing, empty workspace directory
        payload: Executable payload copied into the input directory
        name: Display name of the task
        bid: Price offered per hour of computation
        timeout: Whole-task timeout enforced remotely
        subtask_timeout: Per-subtask timeout enforced remotely

    Returns:
        tuple: (TaskDescriptor, output paths). The i-th output path is
        the WAV file the network writes for chunk i.

    Raises:
        ValueError: If chunk indices are not 0..N-1 in order
        WorkspaceIOError: If a directory or file cannot be written
    """
    for position, chunk in enumerate(chunks):
        if chunk.index != position:
            raise ValueError(
                f"Chunk at position {position} has index {chunk.index}"
            )

    workspace = Path(workspace)
    input_dir = workspace / 'in'
    output_dir = workspace / 'out'

    subtasks = {}
    output_paths = []
    try:
        input_dir.mkdir()
        output_dir.mkdir()
        payload.write_to(input_dir)

        for chunk in chunks:
            name_i = subtask_name(chunk.index)

            subtask_input = input_dir / name_i
            subtask_input.mkdir()
            input_path = subtask_input / SUBTASK_INPUT_FILE
            input_path.write_text(chunk.text, encoding='utf-8')

            subtask_output = output_dir / name_i
            subtask_output.mkdir()
            output_path = subtask_output / SUBTASK_OUTPUT_FILE

            subtasks[name_i] = SubtaskSpec(name_i, input_path, output_path)
            output_paths.append(output_path)

        descriptor = TaskDescriptor(
            kind=TASK_TYPE,
            display_name=name,
            bid=bid,
            timeout=timeout,
            subtask_timeout=subtask_timeout,
            js_name=payload.js_name,
            wasm_name=payload.wasm_name,
            input_dir=input_dir,
            output_dir=output_dir,
            subtasks=MappingProxyType(subtasks),
        )
        descriptor.write(workspace / 'task.json')
    except OSError as e:
        raise WorkspaceIOError(f"Cannot prepare workspace {workspace}: {e}") from e

    logger.info(f"Built task '{name}' with {len(subtasks)} subtasks in {workspace}")
    return descriptor, output_paths
