"""
Configuration for units of work and the backends built on them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import ConfigurationError

CHILD_ORDERS = ("before", "after")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(value: Any, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean value for '{key}': {value!r}")


def _parse_int(value: Any, *, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid integer value for '{key}': {value!r}") from exc


def _parse_child_order(value: Any, *, key: str) -> str:
    normalized = str(value).strip().lower()
    if normalized not in CHILD_ORDERS:
        raise ConfigurationError(
            f"Invalid value for '{key}': {value!r} (expected one of {', '.join(CHILD_ORDERS)})"
        )
    return normalized


@dataclass
class UnitOfWorkConfig:
    """
    Normalized unit-of-work settings.

    ``copy_clean`` turns on deep copies for clean registrations,
    ``child_order`` decides whether children commit before or after their
    parent, and ``slow_commit_ms`` is the threshold above which commit timing
    is logged as a warning.
    """

    copy_clean: bool = False
    child_order: str = "after"
    slow_commit_ms: int = 200
    source: str | None = None

    def __post_init__(self) -> None:
        self.copy_clean = _parse_bool(self.copy_clean, key="copy_clean")
        self.child_order = _parse_child_order(self.child_order, key="child_order")
        self.slow_commit_ms = _parse_int(self.slow_commit_ms, key="slow_commit_ms")
        if self.slow_commit_ms < 0:
            raise ConfigurationError("slow_commit_ms must not be negative")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], **kwargs: Any) -> "UnitOfWorkConfig":
        """
        Build a config from a plain mapping of option names to raw values.
        Unknown keys are rejected.
        """

        options = dict(values)
        parsed: dict[str, Any] = {}
        if "copy_clean" in options:
            parsed["copy_clean"] = _parse_bool(options.pop("copy_clean"), key="copy_clean")
        if "child_order" in options:
            parsed["child_order"] = _parse_child_order(options.pop("child_order"), key="child_order")
        if "slow_commit_ms" in options:
            parsed["slow_commit_ms"] = _parse_int(options.pop("slow_commit_ms"), key="slow_commit_ms")
        if options:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(options))}")
        parsed.update(kwargs)
        return cls(**parsed)

    @classmethod
    def from_env(cls, prefix: str = "LEDGERWORK_", **kwargs: Any) -> "UnitOfWorkConfig":
        """
        Build a config from environment variables such as
        ``LEDGERWORK_COPY_CLEAN`` or ``LEDGERWORK_CHILD_ORDER``.
        """

        values: dict[str, str] = {}
        for key in ("copy_clean", "child_order", "slow_commit_ms"):
            raw = os.getenv(f"{prefix}{key.upper()}")
            if raw is not None and raw != "":
                values[key] = raw
        kwargs.setdefault("source", prefix)
        return cls.from_mapping(values, **kwargs)
