"""Base configuration class for mlx-asr.

Provides common serialization, copying and validation shared by the
feature-extraction and generation configuration records.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Self

from mlx_asr.exceptions import ConfigurationError


class BaseConfig:
    """Base class for configuration records.

    Provides common serialization methods (from_dict, to_dict, from_json,
    to_json) and ``replace`` for building an updated copy of an immutable
    record.

    Subclasses should be decorated with @dataclass and define their
    configuration fields as class attributes. ``_validate`` runs after
    construction.

    Example:
        >>> @dataclass(frozen=True)
        ... class MyConfig(BaseConfig):
        ...     n_mels: int = 80
        ...
        >>> config = MyConfig.from_dict({"n_mels": 128, "unknown": 1})
        >>> config.to_dict()
        {'n_mels': 128}
    """

    def __post_init__(self) -> None:
        self._validate()

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Self:
        """Create a config instance from a dictionary.

        Only keys that correspond to valid fields are used.
        Extra keys are silently ignored.

        Args:
            d: Dictionary of configuration values

        Returns:
            Config instance with values from dictionary
        """
        valid_fields = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in valid_fields})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return asdict(self)

    @classmethod
    def from_json(cls, path: str | Path) -> Self:
        """Load config from a JSON file.

        Args:
            path: Path to JSON file

        Returns:
            Config instance loaded from file
        """
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def to_json(self, path: str | Path, indent: int = 2) -> None:
        """Save config to a JSON file.

        Args:
            path: Path to save JSON file
            indent: JSON indentation level (default: 2)
        """
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=indent)

    def replace(self, **changes: Any) -> Self:
        """Return a copy with ``changes`` applied (re-validated)."""
        return dataclasses.replace(self, **changes)

    # =========================================================================
    # Validation utilities
    # =========================================================================

    def _validate(self) -> None:
        """Validate configuration values.

        Override in subclasses to add custom validation logic.

        Raises:
            ConfigurationError: If validation fails
        """
        pass

    @staticmethod
    def _validate_positive(value: int | float, name: str) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigurationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(value: int | float, name: str) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigurationError(f"{name} must be non-negative, got {value}")


__all__ = ["BaseConfig"]
