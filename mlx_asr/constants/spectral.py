"""Spectral analysis constants for mel filterbanks and spectrograms.

These constants define parameters for mel-frequency analysis
and spectrogram computation.
"""

from __future__ import annotations

import math

# Mel filterbank sizes by model
WHISPER_N_MELS = 80
"""Whisper v1/v2 mel filterbank bins."""

WHISPER_V3_N_MELS = 128
"""Whisper v3 mel filterbank bins."""

# Frequency bounds
WHISPER_FMAX = 8000.0
"""Whisper maximum frequency for mel filterbank (Nyquist at 16kHz)."""

# Slaney mel formula constants
SLANEY_MIN_LOG_HZ = 1000.0
"""Slaney mel scale transition to log spacing."""

SLANEY_MIN_LOG_MEL = 15.0
"""Mel value at the Slaney linear/log breakpoint (1000 Hz)."""

SLANEY_F_SP = 200.0 / 3
"""Slaney mel scale frequency spacing below the breakpoint (66.67 Hz)."""

SLANEY_LOGSTEP_DIVISOR = 27.0
"""Slaney mel scale log step divisor."""

SLANEY_LOGSTEP = math.log(6.4) / SLANEY_LOGSTEP_DIVISOR
"""Slaney mel scale log step size (mel -> Hz direction)."""

# HTK mel formula constants
HTK_MEL_FACTOR = 2595.0
"""HTK mel scale conversion factor (log10 form)."""

HTK_MEL_BASE = 700.0
"""HTK/Kaldi mel scale base frequency."""

# Kaldi mel formula constants
KALDI_MEL_FACTOR = 1127.0
"""Kaldi mel scale conversion factor (natural log form)."""

# Window constants
POVEY_EXPONENT = 0.85
"""Exponent applied to a hann window to obtain the Povey window."""

# Spectrogram defaults
DEFAULT_MEL_FLOOR = 1e-10
"""Lower bound applied to every mel projection value."""

DEFAULT_AMPLITUDE_MIN = 1e-5
"""Default floor for amplitude-to-dB conversion."""

DEFAULT_POWER_MIN = 1e-10
"""Default floor for power-to-dB conversion."""

__all__ = [
    "WHISPER_N_MELS",
    "WHISPER_V3_N_MELS",
    "WHISPER_FMAX",
    "SLANEY_MIN_LOG_HZ",
    "SLANEY_MIN_LOG_MEL",
    "SLANEY_F_SP",
    "SLANEY_LOGSTEP_DIVISOR",
    "SLANEY_LOGSTEP",
    "HTK_MEL_FACTOR",
    "HTK_MEL_BASE",
    "KALDI_MEL_FACTOR",
    "POVEY_EXPONENT",
    "DEFAULT_MEL_FLOOR",
    "DEFAULT_AMPLITUDE_MIN",
    "DEFAULT_POWER_MIN",
]
