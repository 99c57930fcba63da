"""
Shared framing implementation.

Splits a 1-D signal into overlapping frames as a zero-copy strided view.
"""

from __future__ import annotations

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from mlx_asr.exceptions import ConfigurationError

from ._validation import validate_positive


def frame_signal(
    y: np.ndarray,
    frame_length: int,
    hop_length: int,
    n_frames: int | None = None,
) -> np.ndarray:
    """
    Frame a signal into overlapping windows.

    Parameters
    ----------
    y : np.ndarray
        Signal of shape (samples,).
    frame_length : int
        Length of each frame in samples.
    hop_length : int
        Number of samples between frame starts.
    n_frames : int, optional
        Number of leading frames to return. Default: every full frame,
        ``1 + (len(y) - frame_length) // hop_length``.

    Returns
    -------
    np.ndarray
        Frames of shape (n_frames, frame_length). A read-only view of
        ``y``; copy before writing.

    Raises
    ------
    ConfigurationError
        If lengths are not positive or the signal is shorter than one frame.
    """
    validate_positive(frame_length, "frame_length")
    validate_positive(hop_length, "hop_length")
    if n_frames is not None:
        validate_positive(n_frames, "n_frames")
    if y.shape[-1] < frame_length:
        raise ConfigurationError(
            f"Signal length ({y.shape[-1]}) must be >= frame_length "
            f"({frame_length}). Consider padding the signal."
        )

    available = 1 + (y.shape[-1] - frame_length) // hop_length
    if n_frames is None or n_frames > available:
        n_frames = available
    windows = sliding_window_view(y, frame_length)
    return windows[: (n_frames - 1) * hop_length + 1 : hop_length]


__all__ = ["frame_signal"]
