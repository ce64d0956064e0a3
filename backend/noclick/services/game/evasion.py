"""Client-side evasion engine for one round.

The engine owns the target's position and decides, for every pointer
movement, whether the target runs away. It never touches the network:
callers wire its callbacks to the score display and, on activation, to
the session-end call.

States:
    idle      -- arena not measured yet, or the round has ended
    pursuing  -- target is still, pointer moves are evaluated
    escaping  -- a relocation is in flight; pointer moves are ignored until
                 the settle delay has elapsed

Usage:
    engine = EvasionEngine(device_type='desktop', on_miss=..., on_level_up=...,
                           on_activated=report_outcome)
    engine.measure_arena(800, 600)
    engine.handle_event(PointerEvent(x, y, 'mouse'))   # each pointer move
    engine.tick()                                       # periodic timer
    engine.on_target_activated()                        # player caught it
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .difficulty import DEFAULT_DIFFICULTY, DifficultyConfig, derive_difficulty
from .sampler import distance, sample_position

logger = logging.getLogger(__name__)

IDLE = 'idle'
PURSUING = 'pursuing'
ESCAPING = 'escaping'

MOUSE = 'mouse'
TOUCH = 'touch'

_SOURCES_BY_DEVICE = {
    'desktop': (MOUSE,),
    'mobile': (TOUCH,),
    'tablet': (TOUCH,),
}

TAUNTS = (
    'Too slow!',
    'Nice try!',
    "You'll never catch me!",
    'Is that your best?',
    'Getting warmer...',
    'Almost... not!',
    'Give up yet?',
    "I'm everywhere!",
    'Catch me if you can!',
    'Level {level} and still trying?',
)


@dataclass(frozen=True)
class PointerEvent:
    """A pointer or touch position in arena coordinates."""

    x: float
    y: float
    source: str = MOUSE


@dataclass(frozen=True)
class RoundOutcome:
    time_taken: float
    attempts: int
    max_level: int


class EvasionEngine:
    def __init__(
        self,
        device_type: str = 'desktop',
        config: DifficultyConfig = DEFAULT_DIFFICULTY,
        arena_width: float = 0,
        arena_height: float = 0,
        on_miss: Optional[Callable[[int], None]] = None,
        on_level_up: Optional[Callable[[int], None]] = None,
        on_activated: Optional[Callable[[RoundOutcome], None]] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.device_type = device_type
        self.config = config
        self.on_miss = on_miss
        self.on_level_up = on_level_up
        self.on_activated = on_activated
        self.rng = rng or random.Random()
        self.clock = clock

        self.arena_width = 0.0
        self.arena_height = 0.0
        self.position = (0.0, 0.0)
        self.level = 1
        self.difficulty = derive_difficulty(1, config)
        self.attempts = 0
        self.near_misses = 0
        self.taunt = TAUNTS[-2]
        self.outcome: Optional[RoundOutcome] = None

        self._state = IDLE
        self._escape_until = 0.0
        self._started_at: Optional[float] = None
        self._next_taunt_at = 0.0

        self.measure_arena(arena_width, arena_height)

    # ---- state ----

    @property
    def state(self) -> str:
        if self._state == ESCAPING and self.clock() >= self._escape_until:
            self._state = PURSUING
        return self._state

    @property
    def is_escaping(self) -> bool:
        return self.state == ESCAPING

    @property
    def target_center(self):
        x, y = self.position
        return x + self.config.target_width / 2, y + self.config.target_height / 2

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return int(self.clock() - self._started_at)

    def measure_arena(self, width: float, height: float) -> bool:
        """Record the arena size and start the round if it is usable.

        A zero-size arena keeps the engine idle; nothing relocates until a
        later call supplies real dimensions. Returns True when the round is
        running.
        """
        if not width or not height or width <= 0 or height <= 0:
            return False
        self.arena_width = float(width)
        self.arena_height = float(height)
        if self._state == IDLE and self.outcome is None:
            self.position = sample_position(
                self.arena_width / 2, self.arena_height / 2, 0,
                self.arena_width, self.arena_height,
                self.config.target_width, self.config.target_height,
                rng=self.rng, max_attempts=self.config.max_sample_attempts,
            )
            now = self.clock()
            self._started_at = now
            self._next_taunt_at = now + self.difficulty.taunt_interval_ms / 1000.0
            self._state = PURSUING
        return True

    # ---- input ----

    def handle_event(self, event: PointerEvent) -> bool:
        """Feed a normalized pointer event; sources foreign to the device are ignored."""
        if event.source not in _SOURCES_BY_DEVICE.get(self.device_type, (MOUSE, TOUCH)):
            return False
        return self.on_pointer_moved(event.x, event.y)

    def on_pointer_moved(self, pointer_x: float, pointer_y: float) -> bool:
        """Evaluate one pointer position. Returns True if the target relocated."""
        if self.state != PURSUING:
            return False

        center_x, center_y = self.target_center
        proximity = distance(pointer_x, pointer_y, center_x, center_y)
        radius = self.difficulty.escape_radius
        if proximity >= radius:
            return False

        self._state = ESCAPING
        self._escape_until = self.clock() + self.config.settle_delay_ms / 1000.0
        self.attempts += 1
        if self.on_miss:
            self.on_miss(self.attempts)

        self.position = sample_position(
            center_x, center_y, self.difficulty.escape_min_distance,
            self.arena_width, self.arena_height,
            self.config.target_width, self.config.target_height,
            rng=self.rng, max_attempts=self.config.max_sample_attempts,
        )
        logger.debug(f"[escape] attempts={self.attempts} proximity={proximity:.1f} radius={radius} to={self.position}")

        if proximity < radius * self.config.near_miss_factor:
            self.near_misses += 1
            if self.near_misses % self.config.near_misses_per_level == 0:
                self._level_up()
        return True

    def _level_up(self) -> None:
        self.level += 1
        self.difficulty = derive_difficulty(self.level, self.config)
        logger.debug(f"[level-up] level={self.level} near_misses={self.near_misses}")
        if self.on_level_up:
            self.on_level_up(self.level)

    # ---- timers ----

    def tick(self) -> None:
        """Periodic timer: settles a finished escape and rotates the taunt."""
        if self.state == IDLE:
            return
        now = self.clock()
        if now >= self._next_taunt_at:
            self.taunt = self.rng.choice(TAUNTS).format(level=self.level)
            self._next_taunt_at = now + self.difficulty.taunt_interval_ms / 1000.0

    # ---- end of round ----

    def on_target_activated(self) -> Optional[RoundOutcome]:
        """The player caught the target: report the outcome and end the round."""
        if self._state == IDLE:
            return None
        self.outcome = RoundOutcome(
            time_taken=round(self.clock() - self._started_at, 3),
            attempts=self.attempts,
            max_level=self.level,
        )
        self._state = IDLE
        logger.debug(f"[activated] outcome={self.outcome}")
        if self.on_activated:
            self.on_activated(self.outcome)
        return self.outcome
