# src/erlangkit/erlangb.py
from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)

# Scenarios needing more lines than this are treated as degenerate.
MAX_LINES: int = 10_000


def erlang_b(traffic: float, lines: int) -> float:
    """
    Erlang B blocking probability (grade of service) for a pure loss system.

    Uses the inverse recursion to stay clear of factorials:
      invB(0) = 1
      invB(k) = 1 + (k / A) * invB(k-1)
      B(N) = 1 / invB(N)
    """
    if traffic < 0 or lines < 0:
        return 0.0
    if traffic == 0:
        return 0.0

    inv_b = 1.0
    for k in range(1, int(lines) + 1):
        inv_b = 1.0 + (k / float(traffic)) * inv_b
    return 1.0 / inv_b


def required_lines(traffic: float, target_blocking: float) -> int:
    """
    Minimum number of lines keeping blocking at or below `target_blocking`.

    Scans upward from floor(traffic), carrying invB forward one line at a time.
    """
    if traffic <= 0:
        return 0

    lines = int(math.floor(traffic))
    inv_b = 1.0 / erlang_b(traffic, lines)
    while 1.0 / inv_b > target_blocking:
        lines += 1
        if lines > MAX_LINES:
            logger.warning(
                "Blocking target %.4f not reached within %d lines for %.2f Erlangs",
                target_blocking,
                MAX_LINES,
                traffic,
            )
            return lines
        inv_b = 1.0 + (lines / float(traffic)) * inv_b

    return lines


__all__ = ["MAX_LINES", "erlang_b", "required_lines"]
