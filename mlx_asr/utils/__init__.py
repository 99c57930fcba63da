"""Utility helpers for mlx-asr."""

from mlx_asr.utils.dependencies import require_dependency, require_mlx

__all__ = ["require_dependency", "require_mlx"]
