"""Resize planning: fit the longest edge into a maximum size."""

import math


def _round_half_up(value: float) -> int:
    # round() would use banker's rounding; 2.5 px must become 3 px here
    return int(math.floor(value + 0.5))


def needs_resize(width: int, height: int, max_size: int | None) -> bool:
    """Check if image exceeds the max size. Returns False when there is no limit."""
    if max_size is None:
        return False
    return max(width, height) > max_size


def plan_resize(width: int, height: int, max_size: int) -> tuple[int, int]:
    """Calculate new dimensions keeping aspect ratio, longest side = max_size.

    Images already within the limit come back unchanged. Both axes are scaled
    by the same factor and rounded independently, so the result is not
    clamped: an extreme aspect ratio can produce a 0 px axis.
    """
    longest = max(width, height)
    if longest <= max_size:
        return width, height

    scale = max_size / longest
    return _round_half_up(width * scale), _round_half_up(height * scale)
