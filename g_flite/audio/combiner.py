"""
Audio Combiner Module
Concatenates the WAV segments produced by the subtasks into one WAV file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from g_flite.core.exceptions import FormatMismatchError, WorkspaceIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class AudioSpec:
    """Format of a PCM stream."""

    sample_rate: int
    bit_depth: int
    channels: int

    @classmethod
    def of(cls, segment: AudioSegment) -> 'AudioSpec':
        return cls(segment.frame_rate, segment.sample_width * 8, segment.channels)

    def __str__(self):
        return f"{self.sample_rate} Hz/{self.bit_depth} bit/{self.channels} ch"


def load_segment(path: PathLike) -> AudioSegment:
    """
    Read one WAV segment.

    Raises:
        WorkspaceIOError: If the file is missing or not a readable WAV file
    """
    try:
        return AudioSegment.from_wav(str(path))
    except (OSError, CouldntDecodeError) as e:
        raise WorkspaceIOError(f"Cannot read audio segment {path}: {e}") from e


def combine_wave(
    segment_paths: Sequence[PathLike],
    output_path: PathLike
) -> Optional[AudioSegment]:
    """
    Concatenate WAV segments in sequence order into output_path.

    The first segment's format is the format of the whole output; every
    other segment must have exactly the same sample rate, bit depth and
    channel count. Frames are copied as they are, without resampling.
    Nothing is written until every segment has been read and checked.

    Args:
        segment_paths: Segment files, in chunk order
        output_path: Destination WAV file

    Returns:
        AudioSegment: The combined audio
        None: If segment_paths is empty (nothing is written)

    Raises:
        FormatMismatchError: If a segment's format differs from the first
        WorkspaceIOError: If a segment cannot be read or the output written

    Example:
        >>> combine_wave(['out/subtask0/in.wav', 'out/subtask1/in.wav'], 'book.wav')
        <pydub.audio_segment.AudioSegment object at ...>
    """
    if not segment_paths:
        logger.debug("No segments to combine")
        return None

    first_path, *rest = segment_paths
    combined = load_segment(first_path)
    canonical = AudioSpec.of(combined)
    logger.debug(f"Canonical format {canonical} from {first_path}")

    for path in rest:
        segment = load_segment(path)
        spec = AudioSpec.of(segment)
        if spec != canonical:
            raise FormatMismatchError(path, canonical, spec)
        combined += segment

    try:
        combined.export(str(output_path), format='wav').close()
    except OSError as e:
        raise WorkspaceIOError(f"Cannot write {output_path}: {e}") from e

    logger.info(
        f"Combined {len(segment_paths)} segments into {output_path} "
        f"({combined.frame_count():.0f} frames, {canonical})"
    )
    return combined
