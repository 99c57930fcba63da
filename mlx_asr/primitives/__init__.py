"""
Audio DSP primitives.

Mel scale conversions, mel filter banks, window functions and the
spectrogram engine used to turn waveforms into encoder features.
"""

from mlx_asr.primitives.mel import (
    MEL_SCALES,
    build_filter_bank,
    hertz_to_mel,
    mel_to_hertz,
)
from mlx_asr.primitives.spectrogram import (
    amplitude_to_db,
    compute_spectrogram,
    pad_reflect,
    power_to_db,
)
from mlx_asr.primitives.window import WINDOW_NAMES, generate_window, hanning

__all__ = [
    # Mel
    "MEL_SCALES",
    "hertz_to_mel",
    "mel_to_hertz",
    "build_filter_bank",
    # Windows
    "WINDOW_NAMES",
    "hanning",
    "generate_window",
    # Spectrogram
    "pad_reflect",
    "amplitude_to_db",
    "power_to_db",
    "compute_spectrogram",
]
