from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_EXIT_MULTIPLIER = 1.01  # SOI exit radius as a multiple of the entry radius
DEFAULT_SOI_COOLDOWN_DAYS = 0.1  # no SOI transition within this long of the last one
DEFAULT_DURATION_DAYS = 60.0
DEFAULT_STEPS = 200
DEFAULT_MAX_DISTANCE = 10.0  # AU, heliocentric
DEFAULT_MIN_DISTANCE = 0.01  # AU, prediction stops inside twice this
DEFAULT_SOI_TRUNCATION_MULTIPLIER = 1.1
DEFAULT_EXTREME_ECCENTRICITY = 50.0
DEFAULT_THRUST_FLOOR = 1e-20  # AU/day^2
DEFAULT_CACHE_TTL_SECONDS = 0.5
DEFAULT_CACHE_MAX_ENTRIES = 32
DEFAULT_TIME_BUCKET_DAYS = 1e-3


class SOIConfig(BaseModel):
    """Sphere of influence transition settings."""
    model_config = ConfigDict(frozen=True)

    exit_multiplier: float = Field(
        DEFAULT_EXIT_MULTIPLIER,
        ge=1.0,
        allow_inf_nan=False,
        description="Exit happens at soi_radius * exit_multiplier"
    )
    cooldown_days: float = Field(
        DEFAULT_SOI_COOLDOWN_DAYS,
        ge=0.0,
        allow_inf_nan=False,
        description="Days after a transition during which no transition is evaluated"
    )


class PredictorConfig(BaseModel):
    """Trajectory prediction settings."""
    model_config = ConfigDict(frozen=True)

    duration_days: float = Field(DEFAULT_DURATION_DAYS, gt=0.0, allow_inf_nan=False)
    steps: int = Field(DEFAULT_STEPS, ge=1)
    max_distance: float = Field(DEFAULT_MAX_DISTANCE, gt=0.0, allow_inf_nan=False)
    min_distance: float = Field(DEFAULT_MIN_DISTANCE, ge=0.0, allow_inf_nan=False)
    soi_truncation_multiplier: float = Field(DEFAULT_SOI_TRUNCATION_MULTIPLIER, ge=1.0, allow_inf_nan=False)
    extreme_eccentricity: float = Field(DEFAULT_EXTREME_ECCENTRICITY, gt=1.0, allow_inf_nan=False)
    thrust_floor: float = Field(DEFAULT_THRUST_FLOOR, ge=0.0, allow_inf_nan=False)

    @model_validator(mode='after')
    def validate_distances(self):
        if 2.0 * self.min_distance >= self.max_distance:
            raise ValueError("2 * min_distance must be below max_distance")
        return self


class CacheConfig(BaseModel):
    """Trajectory cache settings."""
    model_config = ConfigDict(frozen=True)

    ttl_seconds: float = Field(DEFAULT_CACHE_TTL_SECONDS, ge=0.0, allow_inf_nan=False)
    max_entries: int = Field(DEFAULT_CACHE_MAX_ENTRIES, ge=1)
    time_bucket_days: float = Field(DEFAULT_TIME_BUCKET_DAYS, gt=0.0, allow_inf_nan=False)
