"""
Window functions for short-time spectral analysis.

Provides boxcar, hann and povey windows in symmetric or DFT-periodic form.
"""

from __future__ import annotations

import numpy as np

from mlx_asr.constants import POVEY_EXPONENT
from mlx_asr.exceptions import ConfigurationError

WINDOW_NAMES = ("boxcar", "hann", "hann_window", "povey")


def hanning(length: int) -> np.ndarray:
    """
    Symmetric raised-cosine (hann) window.

    Parameters
    ----------
    length : int
        Number of points. ``length < 1`` gives an empty window and
        ``length == 1`` gives ``[1.0]``.

    Returns
    -------
    np.ndarray
        Window coefficients, float64.
    """
    if length < 1:
        return np.zeros(0, dtype=np.float64)
    if length == 1:
        return np.ones(1, dtype=np.float64)
    denom = length - 1
    n = 2 * np.arange(length, dtype=np.float64) - denom
    return 0.5 + 0.5 * np.cos(np.pi * n / denom)


def _boxcar(length: int) -> np.ndarray:
    return np.ones(max(length, 0), dtype=np.float64)


def _povey(length: int) -> np.ndarray:
    return hanning(length) ** POVEY_EXPONENT


_WINDOWS = {
    "boxcar": _boxcar,
    "hann": hanning,
    "hann_window": hanning,
    "povey": _povey,
}


def generate_window(
    length: int,
    name: str = "hann",
    periodic: bool = True,
    frame_length: int | None = None,
) -> np.ndarray:
    """
    Generate window coefficients.

    Parameters
    ----------
    length : int
        Number of coefficients returned.
    name : {"boxcar", "hann", "hann_window", "povey"}, default="hann"
        Window type.
    periodic : bool, default=True
        Build ``length + 1`` points and drop the last one (the DFT-even
        convention used for spectral analysis). ``False`` gives the
        symmetric window.
    frame_length : int, optional
        Frame length the window will be used with; ``length`` may not
        exceed it.

    Returns
    -------
    np.ndarray
        Window of shape ``(length,)``, float64.

    Raises
    ------
    ConfigurationError
        If ``name`` is unknown or ``length > frame_length``.

    Examples
    --------
    >>> generate_window(5, "hann", periodic=False)
    array([0. , 0.5, 1. , 0.5, 0. ])
    """
    fn = _WINDOWS.get(name)
    if fn is None:
        raise ConfigurationError(
            f"Unknown window type {name!r}. Supported: {', '.join(WINDOW_NAMES)}"
        )
    if frame_length is not None and length > frame_length:
        raise ConfigurationError(
            f"Length of the window ({length}) may not be larger than "
            f"frame_length ({frame_length})"
        )

    window = fn(length + 1 if periodic else length)
    if periodic:
        window = window[:length]
    return window


__all__ = ["WINDOW_NAMES", "hanning", "generate_window"]
