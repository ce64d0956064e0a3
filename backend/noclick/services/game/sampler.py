import math
import random
from typing import Optional, Tuple

MAX_SAMPLE_ATTEMPTS = 50


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def sample_position(
    current_x: float,
    current_y: float,
    min_distance: float,
    arena_width: float,
    arena_height: float,
    target_width: float,
    target_height: float,
    rng: Optional[random.Random] = None,
    max_attempts: int = MAX_SAMPLE_ATTEMPTS,
) -> Tuple[float, float]:
    """Pick a new top-left position for the target inside the arena.

    Candidates are drawn uniformly from [0, arena_width - target_width] x
    [0, arena_height - target_height] until one lies at least min_distance
    from (current_x, current_y). After max_attempts draws the last candidate
    is returned whatever its distance.
    """
    rng = rng or random
    span_x = max(0.0, arena_width - target_width)
    span_y = max(0.0, arena_height - target_height)
    x = y = 0.0
    for _ in range(max(1, max_attempts)):
        x = rng.random() * span_x
        y = rng.random() * span_y
        if distance(current_x, current_y, x, y) >= min_distance:
            break
    return x, y
