"""
Logging configuration and utilities for the market status engine.
"""
from .config import (
    configure_from_params, configure_logging, get_logger, get_state_logger, log_state_transition
)

__all__ = [
    "configure_from_params",
    "configure_logging",
    "get_logger",
    "get_state_logger",
    "log_state_transition",
]
