"""
Audio Module
Provides reassembly of the per-subtask WAV segments.
"""

from .combiner import AudioSpec, combine_wave, load_segment

__all__ = [
    'AudioSpec',
    'combine_wave',
    'load_segment',
]
