"""
Numeric helpers shared by the splitter and the poller.
"""

import math


def round_half_away(value: float) -> int:
    """
    Round to the nearest integer, ties away from zero.

    Python's round() rounds ties to even, which would turn 5 / 2 into 2.

    Example:
        >>> round_half_away(2.5)
        3
        >>> round_half_away(-0.5)
        -1
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))
