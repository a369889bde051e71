"""Position lookup for a requested (file, line)."""

from __future__ import annotations

import logging

from prcourier_core.models import PositionIndex

logger = logging.getLogger(__name__)

# AI-generated line numbers tend to drift by a line or two around hunk
# boundaries. Anything further away is more likely a different statement.
MAX_LINE_DISTANCE = 3


def resolve(file: str, line: int, index: PositionIndex, max_distance: int = MAX_LINE_DISTANCE) -> int | None:
    """Return the coordinate for ``file:line``, or None when nothing is close enough.

    An exact entry always wins. Otherwise the nearest entry within
    ``max_distance`` lines is used; on a tie the first one in the table's
    iteration order is kept.
    """
    table = index.get(file)
    if not table:
        logger.debug("%s has no addressable lines in the diff", file)
        return None

    exact = table.get(line)
    if exact is not None:
        return exact

    closest: int | None = None
    min_distance = max_distance + 1
    for candidate, position in table.items():
        distance = abs(candidate - line)
        if distance < min_distance:
            min_distance = distance
            closest = position

    if closest is not None:
        logger.debug("Using nearby line for %s:%d -> position %d (off by %d)", file, line, closest, min_distance)
    return closest
