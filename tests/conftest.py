"""
Pytest configuration and shared fixtures.

This module provides:
- Temporary directories
- WAV segment factory
- Payload fixture
- In-process stub of the compute network
"""
import struct
import sys
import tempfile
import wave
from pathlib import Path
from typing import Generator, Iterable, List, Sequence

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from g_flite.distributed.client import ComputeClient, TaskPhase, TaskStatus  # noqa: E402
from g_flite.distributed.payload import Payload  # noqa: E402


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create and cleanup a temporary directory."""
    with tempfile.TemporaryDirectory(prefix="g_flite_test_") as tmpdir:
        yield Path(tmpdir)


def write_wav(
    path: Path,
    samples: Sequence[int],
    framerate: int = 8000,
    sampwidth: int = 2,
    channels: int = 1
) -> Path:
    """Write interleaved signed samples to a PCM WAV file."""
    fmt = {1: 'b', 2: 'h', 4: 'i'}[sampwidth]
    if sampwidth == 1:
        # 8-bit WAV is unsigned
        data = bytes((s + 128) & 0xFF for s in samples)
    else:
        data = struct.pack(f'<{len(samples)}{fmt}', *samples)

    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), 'wb') as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(sampwidth)
        wav.setframerate(framerate)
        wav.writeframes(data)
    return path


def read_wav(path: Path):
    """Return ((channels, sampwidth, framerate), samples) of a 16-bit WAV file."""
    with wave.open(str(path), 'rb') as wav:
        params = (wav.getnchannels(), wav.getsampwidth(), wav.getframerate())
        frames = wav.readframes(wav.getnframes())
    samples = list(struct.unpack(f'<{len(frames) // 2}h', frames))
    return params, samples


@pytest.fixture
def make_wav(temp_dir: Path):
    """Factory writing WAV files under temp_dir."""
    def _make(name: str, samples: Sequence[int], **params) -> Path:
        return write_wav(temp_dir / name, samples, **params)
    return _make


@pytest.fixture
def payload() -> Payload:
    return Payload('flite.js', b'// flite loader\n', 'flite.wasm', b'\x00asm\x01\x00\x00\x00')


@pytest.fixture
def payload_dir(temp_dir: Path, payload: Payload) -> Path:
    assets = temp_dir / "assets"
    assets.mkdir()
    payload.write_to(assets)
    return assets


class StubComputeClient(ComputeClient):
    """
    In-process compute network.

    Replays scripted status replies; an Exception instance in the script is
    raised instead of returned. When on_submit is given it is called with
    the descriptor, e.g. to write the subtask outputs.
    """

    def __init__(self, statuses: Iterable = (), handle: str = 'task-1', on_submit=None):
        self.script: List = list(statuses)
        self.handle = handle
        self.on_submit = on_submit
        self.submitted = []
        self.queries = 0
        self.connected = False
        self.closed = False

    def connect(self):
        self.connected = True

    def submit(self, descriptor):
        self.submitted.append(descriptor)
        if self.on_submit is not None:
            self.on_submit(descriptor)
        return self.handle

    def get_status(self, handle):
        assert handle == self.handle
        self.queries += 1
        if not self.script:
            raise AssertionError("Status script exhausted")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


def status(progress: float, phase: TaskPhase = TaskPhase.COMPUTING) -> TaskStatus:
    return TaskStatus(progress, phase)


@pytest.fixture
def stub_client():
    """Factory for StubComputeClient."""
    return StubComputeClient


@pytest.fixture
def make_status():
    return status

