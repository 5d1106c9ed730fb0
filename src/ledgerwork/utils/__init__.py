"""
Utility helpers shared across ledgerwork packages.
"""

from .logging import (
    CallTimer,
    bind_unit_of_work,
    configure_logging,
    current_unit_of_work_id,
    get_correlation_id,
    get_logger,
    new_unit_of_work_id,
    set_correlation_id,
    time_call,
)

__all__ = [
    "CallTimer",
    "bind_unit_of_work",
    "configure_logging",
    "current_unit_of_work_id",
    "get_correlation_id",
    "get_logger",
    "new_unit_of_work_id",
    "set_correlation_id",
    "time_call",
]
