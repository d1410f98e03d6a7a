"""
Text Module
Provides chunk splitting of the input text.
"""

from .splitter import Chunk, split_text, split_textfile

__all__ = [
    'Chunk',
    'split_text',
    'split_textfile',
]
