"""
Text Splitter Module
Splits a text into word-balanced chunks, one per remote subtask.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from g_flite.core.exceptions import SplitError, WorkspaceIOError
from g_flite.core.utils import round_half_away

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Chunk:
    """One contiguous slice of the input text."""

    index: int
    text: str

    @property
    def words(self) -> List[str]:
        return self.text.split()


def split_text(text: str, num_subtasks: int) -> List[Chunk]:
    """
    Split text into chunks of roughly equal word count.

    The target chunk size is round(word_count / num_subtasks) with ties
    rounded up. Words are accumulated in order and a chunk is closed each
    time it reaches the target size; leftover words form a final chunk,
    which may make one chunk more than requested. Every word in a chunk is
    followed by a single space, the last one included.

    When num_subtasks exceeds the word count it is clamped to the word
    count, giving one word per chunk.

    Args:
        text: Input text, split on any whitespace
        num_subtasks: Requested number of chunks (>= 1)

    Returns:
        list[Chunk]: Chunks with contiguous 0-based indices

    Raises:
        SplitError: If num_subtasks < 1 or the text holds no words

    Example:
        >>> [c.text for c in split_text("the quick brown fox jumps", 2)]
        ['the quick brown ', 'fox jumps ']
    """
    if num_subtasks < 1:
        raise SplitError(f"Number of subtasks must be at least 1, got {num_subtasks}")

    words = text.split()
    word_count = len(words)
    if word_count == 0:
        raise SplitError("Input text contains no words")

    if num_subtasks > word_count:
        logger.warning(
            f"Requested {num_subtasks} subtasks for {word_count} words, "
            f"using {word_count}"
        )
        num_subtasks = word_count

    chunk_size = round_half_away(word_count / num_subtasks)
    logger.debug(f"{word_count} words, {chunk_size} words per chunk")

    chunks = []
    acc = []
    for i, word in enumerate(words):
        acc.append(word + ' ')
        if (i + 1) % chunk_size == 0:
            chunks.append(Chunk(len(chunks), ''.join(acc)))
            acc = []

    if acc:
        chunks.append(Chunk(len(chunks), ''.join(acc)))

    return chunks


def split_textfile(textfile: Union[str, Path], num_subtasks: int) -> List[Chunk]:
    """Read a UTF-8 text file and split it. See split_text()."""
    try:
        contents = Path(textfile).read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise WorkspaceIOError(f"Cannot read text file {textfile}: {e}") from e

    chunks = split_text(contents, num_subtasks)
    logger.info(f"Split {textfile} into {len(chunks)} chunks")
    return chunks
