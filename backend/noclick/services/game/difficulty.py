"""Level -> tunables for the evasion engine."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DifficultyConfig:
    base_escape_radius: float = 150.0
    escape_radius_step: float = 10.0
    min_escape_radius: float = 50.0
    base_escape_speed_ms: float = 300.0
    escape_speed_step_ms: float = 20.0
    min_escape_speed_ms: float = 150.0
    base_escape_distance: float = 200.0
    escape_distance_step: float = 30.0
    max_escape_distance: float = 400.0
    base_taunt_interval_ms: float = 5000.0
    taunt_interval_step_ms: float = 500.0
    min_taunt_interval_ms: float = 2000.0
    target_width: float = 120.0
    target_height: float = 60.0
    settle_delay_ms: float = 300.0
    max_sample_attempts: int = 50
    near_miss_factor: float = 0.5
    near_misses_per_level: int = 5

    @classmethod
    def from_mapping(cls, mapping) -> 'DifficultyConfig':
        """Build from a config mapping using upper-cased field names, e.g. BASE_ESCAPE_RADIUS."""
        overrides = {}
        for name, field in cls.__dataclass_fields__.items():
            key = name.upper()
            if key in mapping:
                overrides[name] = field.type(mapping[key]) if field.type in (int, float) else mapping[key]
        return cls(**overrides)


@dataclass(frozen=True)
class DifficultyState:
    level: int
    escape_radius: float
    escape_speed_ms: float
    escape_min_distance: float
    taunt_interval_ms: float


DEFAULT_DIFFICULTY = DifficultyConfig()


def derive_difficulty(level: int, config: DifficultyConfig = DEFAULT_DIFFICULTY) -> DifficultyState:
    """Compute the tunables for a level.

    Radius and taunt interval shrink, escape distance grows, each clamped so
    the game never becomes impossible or trivial. Escape speed only drives
    the animation duration.
    """
    level = max(1, int(level))
    return DifficultyState(
        level=level,
        escape_radius=max(config.min_escape_radius, config.base_escape_radius - config.escape_radius_step * level),
        escape_speed_ms=max(config.min_escape_speed_ms, config.base_escape_speed_ms - config.escape_speed_step_ms * level),
        escape_min_distance=min(config.max_escape_distance, config.base_escape_distance + config.escape_distance_step * level),
        taunt_interval_ms=max(config.min_taunt_interval_ms, config.base_taunt_interval_ms - config.taunt_interval_step_ms * level),
    )
