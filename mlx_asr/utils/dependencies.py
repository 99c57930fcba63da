"""Dependency management utilities.

Provides helpers for importing optional dependencies with
user-friendly error messages.
"""

from __future__ import annotations

import importlib
from typing import Any


def require_dependency(
    package: str,
    install_name: str | None = None,
    purpose: str | None = None,
) -> Any:
    """Import a package, raising a helpful error if missing.

    Args:
        package: The package name to import (e.g., "mlx.core")
        install_name: The pip install name if different from package name
        purpose: Optional description of why this dependency is needed

    Returns:
        The imported module

    Raises:
        ImportError: If the package is not installed, with installation instructions

    Example:
        >>> mx = require_dependency("mlx.core", install_name="mlx")
    """
    install_name = install_name or package
    try:
        return importlib.import_module(package)
    except ImportError as e:
        purpose_msg = f" for {purpose}" if purpose else ""
        raise ImportError(
            f"{package} is required{purpose_msg}. "
            f"Install with: pip install {install_name}"
        ) from e


def require_mlx() -> Any:
    """Import mlx.core, raising a helpful error if missing.

    Returns:
        The mlx.core module

    Raises:
        ImportError: If MLX is not installed
    """
    return require_dependency("mlx.core", install_name="mlx", purpose="MLX array conversion")
