"""
g_flite: flite text-to-speech distributed over a compute network.

The input text is split into chunks, each chunk becomes one subtask of a
single task on the network, and the WAV files the subtasks produce are
concatenated in chunk order.
"""

__version__ = '0.1.0'
