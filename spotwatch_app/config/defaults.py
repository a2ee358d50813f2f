"""Default configuration parameters for the market status engine."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ScheduleParams:
    """Weekly trading calendar in the exchange's local timezone.

    Weekdays follow ``datetime.weekday()``: Monday is 0, Sunday is 6.
    """
    timezone: str = "America/New_York"

    open_weekday: int = 6                            # Sunday
    open_hour: int = 18
    open_minute: int = 0

    close_weekday: int = 4                           # Friday
    close_hour: int = 17
    close_minute: int = 0

    # Daily break, applied on every day strictly inside the open window
    break_start_hour: int = 17
    break_start_minute: int = 0
    break_end_hour: int = 18
    break_end_minute: int = 0


@dataclass(frozen=True)
class PollingParams:
    """Spot polling cadence and freeze-confirmation heuristic."""
    default_interval_seconds: int = 600              # Steady-state cadence
    confirm_interval_seconds: int = 120              # Fast-confirm cadence
    identical_readings_before_confirm: int = 2       # Run length that starts confirmation
    confirmation_threshold: int = 5                  # Confirmations before FROZEN
    price_epsilon: float = 1e-6                      # Equality tolerance
    suspend_detection_during_break: bool = True


@dataclass(frozen=True)
class ReferenceParams:
    """Reference close resolution and daily refresh."""
    session_horizon_days: int = 1
    month_horizon_days: int = 30
    year_horizon_days: int = 365
    max_lookback_days: int = 10
    series_days: int = 30                            # Trading series span
    median_window: int = 7                           # Trading days in median signal
    refresh_hour: int = 6
    refresh_minute: int = 10


@dataclass(frozen=True)
class FeedParams:
    """Spot and historical-close source."""
    base_url: str = "https://api.metals.dev/v1"
    api_key_env: str = "SPOTWATCH_API_KEY"
    api_key: str = ""
    instrument: str = "silver"
    currency: str = "USD"
    timeout_seconds: int = 15
    units_per_token: float = 0.1                     # Troy ounces per token


@dataclass(frozen=True)
class LoggingParams:
    """Logging output options."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class EngineConfig:
    """Complete engine configuration."""
    schedule: ScheduleParams = field(default_factory=ScheduleParams)
    polling: PollingParams = field(default_factory=PollingParams)
    reference: ReferenceParams = field(default_factory=ReferenceParams)
    feed: FeedParams = field(default_factory=FeedParams)
    logging: LoggingParams = field(default_factory=LoggingParams)


def get_default_config() -> EngineConfig:
    """Get the default configuration instance."""
    return EngineConfig(
        schedule=ScheduleParams(),
        polling=PollingParams(),
        reference=ReferenceParams(),
        feed=FeedParams(),
        logging=LoggingParams(),
    )
