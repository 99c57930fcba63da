"""Shared argument validators for the DSP primitives.

Every validator raises ConfigurationError so that bad arguments are
reported before any framing, FFT or projection work starts.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from mlx_asr.exceptions import ConfigurationError


def validate_positive(value: int | float, name: str) -> None:
    """Raise ConfigurationError unless ``value > 0``."""
    if value <= 0:
        raise ConfigurationError(f"{name} must be greater than zero, got {value}")


def validate_non_negative(value: int | float, name: str) -> None:
    """Raise ConfigurationError unless ``value >= 0``."""
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative, got {value}")


def validate_choice(value: Any, name: str, choices: Collection[Any]) -> None:
    """Raise ConfigurationError unless ``value`` is one of ``choices``."""
    if value not in choices:
        options = ", ".join(repr(c) for c in choices)
        raise ConfigurationError(f"{name} must be one of {options}, got {value!r}")


__all__ = ["validate_positive", "validate_non_negative", "validate_choice"]
