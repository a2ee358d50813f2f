"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_schedule_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate the weekly trading calendar."""
        errors = []

        # Timezone must resolve against the tz database
        if "timezone" in params:
            value = params["timezone"]
            try:
                if not isinstance(value, str) or not value:
                    raise ValueError(value)
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError):
                errors.append(ValidationError(
                    field="timezone",
                    message="Must be a valid IANA timezone name",
                    value=value
                ))

        for name in ("open_weekday", "close_weekday"):
            if name in params:
                value = params[name]
                if not _is_int(value) or not 0 <= value <= 6:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be an integer between 0 (Monday) and 6 (Sunday)",
                        value=value
                    ))

        for name in ("open_hour", "close_hour", "break_start_hour", "break_end_hour"):
            if name in params:
                value = params[name]
                if not _is_int(value) or not 0 <= value <= 23:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be an integer between 0 and 23",
                        value=value
                    ))

        for name in ("open_minute", "close_minute", "break_start_minute", "break_end_minute"):
            if name in params:
                value = params[name]
                if not _is_int(value) or not 0 <= value <= 59:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be an integer between 0 and 59",
                        value=value
                    ))

        if errors:
            return errors

        # Open and close may not coincide
        open_key = (params.get("open_weekday"), params.get("open_hour"), params.get("open_minute"))
        close_key = (params.get("close_weekday"), params.get("close_hour"), params.get("close_minute"))
        if None not in open_key and open_key == close_key:
            errors.append(ValidationError(
                field="close_weekday",
                message="Close must differ from open",
                value=close_key
            ))

        # Breaks are intraday windows
        start = (params.get("break_start_hour"), params.get("break_start_minute"))
        end = (params.get("break_end_hour"), params.get("break_end_minute"))
        if None not in start and None not in end and start >= end:
            errors.append(ValidationError(
                field="break_end_hour",
                message="Break must end after it starts on the same day",
                value={"start": start, "end": end}
            ))

        return errors

    @staticmethod
    def validate_polling_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate polling cadence and freeze heuristic parameters."""
        errors = []

        for name in ("default_interval_seconds", "confirm_interval_seconds",
                     "identical_readings_before_confirm", "confirmation_threshold"):
            if name in params:
                value = params[name]
                if not _is_int(value) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive integer",
                        value=value
                    ))

        # Validate price_epsilon
        if "price_epsilon" in params:
            value = params["price_epsilon"]
            if not _is_number(value) or value < 0:
                errors.append(ValidationError(
                    field="price_epsilon",
                    message="Must be a non-negative number",
                    value=value
                ))

        if "suspend_detection_during_break" in params:
            value = params["suspend_detection_during_break"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="suspend_detection_during_break",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_reference_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate reference close parameters."""
        errors = []

        for name in ("session_horizon_days", "month_horizon_days", "year_horizon_days",
                     "series_days", "median_window"):
            if name in params:
                value = params[name]
                if not _is_int(value) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive integer",
                        value=value
                    ))

        if "max_lookback_days" in params:
            value = params["max_lookback_days"]
            if not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field="max_lookback_days",
                    message="Must be a non-negative integer",
                    value=value
                ))

        if "refresh_hour" in params:
            value = params["refresh_hour"]
            if not _is_int(value) or not 0 <= value <= 23:
                errors.append(ValidationError(
                    field="refresh_hour",
                    message="Must be an integer between 0 and 23",
                    value=value
                ))

        if "refresh_minute" in params:
            value = params["refresh_minute"]
            if not _is_int(value) or not 0 <= value <= 59:
                errors.append(ValidationError(
                    field="refresh_minute",
                    message="Must be an integer between 0 and 59",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_feed_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate feed parameters."""
        errors = []

        if "base_url" in params:
            value = params["base_url"]
            if not isinstance(value, str) or not value.startswith(("http://", "https://")):
                errors.append(ValidationError(
                    field="base_url",
                    message="Must be an http(s) URL",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "units_per_token" in params:
            value = params["units_per_token"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="units_per_token",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "schedule" in config:
            errors.extend(ConfigValidator.validate_schedule_params(config["schedule"]))

        if "polling" in config:
            errors.extend(ConfigValidator.validate_polling_params(config["polling"]))

        if "reference" in config:
            errors.extend(ConfigValidator.validate_reference_params(config["reference"]))

        if "feed" in config:
            errors.extend(ConfigValidator.validate_feed_params(config["feed"]))

        return errors
