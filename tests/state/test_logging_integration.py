"""Tests for logging integration in the status machine."""

import io
import json
from datetime import timedelta
from unittest.mock import Mock, patch

from spotwatch_app.config.defaults import LoggingParams, PollingParams, ScheduleParams
from spotwatch_app.logging.config import (
    _enum_values, configure_from_params, configure_logging, get_logger, get_state_logger,
    log_state_transition
)
from spotwatch_app.state.machine import MarketStatusMachine, initial_policy
from spotwatch_app.state.models import MarketStatus, SpotReading
from spotwatch_app.state.runtime import MarketStateRecord


class TestLoggingHelpers:
    """Test logging configuration helpers."""

    def test_configure_logging_json(self):
        configure_logging(level="DEBUG", format_json=True)
        logger = get_logger("spotwatch.test")
        logger.info("configured", answer=42)

    def test_json_output_renders_status_value(self):
        buffer = io.StringIO()
        configure_logging(level="INFO", format_json=True, stream=buffer)

        get_logger("spotwatch.test").info("status published", status=MarketStatus.FROZEN)

        entry = json.loads(buffer.getvalue().strip().splitlines()[-1])
        assert entry["event"] == "status published"
        assert entry["status"] == "frozen"
        assert entry["logger"] == "spotwatch.test"
        assert "timestamp" in entry

    def test_level_filtering(self):
        buffer = io.StringIO()
        configure_logging(level="WARNING", format_json=True, stream=buffer)

        get_logger("spotwatch.test").info("dropped")

        assert buffer.getvalue() == ""

    def test_configure_from_params(self):
        with patch("spotwatch_app.logging.config.configure_logging") as mock_configure:
            configure_from_params(LoggingParams(level="DEBUG", format_json=True))
        mock_configure.assert_called_once_with(level="DEBUG", format_json=True)

    def test_enum_values_processor(self):
        event = _enum_values(None, "info", {"event": "x", "status": MarketStatus.OPEN, "price": 24.5})
        assert event == {"event": "x", "status": "open", "price": 24.5}

    def test_state_logger_binds_subsystem(self):
        with patch("spotwatch_app.logging.config.get_logger") as mock_get_logger:
            get_state_logger("spotwatch.test")
            mock_get_logger.return_value.bind.assert_called_once_with(
                subsystem="market_status", audit_trail=True
            )

    def test_log_state_transition_binds_fields(self):
        logger = Mock()
        bound = logger.bind.return_value

        log_state_transition(
            logger, instrument="silver", from_state="open", to_state="frozen",
            trigger="freeze_confirmed", context={"confirm_count": 5}
        )

        logger.bind.assert_called_once_with(
            instrument="silver", from_state="open", to_state="frozen", trigger="freeze_confirmed"
        )
        bound.bind.assert_called_once_with(context={"confirm_count": 5})
        bound.bind.return_value.info.assert_called_once_with("Market status transition")

    def test_log_state_transition_without_context(self):
        logger = Mock()
        log_state_transition(logger, "silver", "none", "open", "first_reading")
        logger.bind.return_value.info.assert_called_once_with("Market status transition")


class TestMachineLogging:
    """The machine logs each status change exactly once."""

    def _machine(self):
        polling = PollingParams()
        record = MarketStateRecord(instrument="silver", policy=initial_policy(polling))
        return MarketStatusMachine(record, ScheduleParams(), polling)

    def test_transitions_logged(self, wednesday_noon):
        machine = self._machine()

        with patch("spotwatch_app.state.machine.log_state_transition") as mock_log:
            now = wednesday_noon
            for _ in range(8):
                machine.tick(SpotReading(25.0, now), now)
                now += timedelta(minutes=2)

        triggers = [c.kwargs["trigger"] for c in mock_log.call_args_list]
        to_states = [c.kwargs["to_state"] for c in mock_log.call_args_list]
        assert triggers == ["first_reading", "freeze_confirmed"]
        assert to_states == ["open", "frozen"]

    def test_failure_logged_as_warning(self, wednesday_noon):
        machine = self._machine()
        machine.logger = Mock()

        machine.observe_failure(ValueError("boom"), wednesday_noon)

        machine.logger.warning.assert_called_once()
        assert machine.logger.warning.call_args.kwargs["error_type"] == "ValueError"
