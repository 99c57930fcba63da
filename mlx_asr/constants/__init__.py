"""Constants module for mlx-asr.

This module centralizes magic numbers and default values used
throughout the codebase.

Submodules:
    audio_processing: Whisper STFT and normalization constants
    spectral: Mel scale, window and spectrogram constants
    generation: Default decoding hyper-parameters
"""

from __future__ import annotations

from mlx_asr.constants.audio_processing import *
from mlx_asr.constants.generation import *
from mlx_asr.constants.spectral import *

__all__ = [
    # Audio processing
    "WHISPER_SAMPLE_RATE",
    "WHISPER_N_FFT",
    "WHISPER_HOP_LENGTH",
    "WHISPER_CHUNK_LENGTH",
    "WHISPER_LOG_CLIP_VALUE",
    "WHISPER_NORMALIZATION_SCALE",
    "STEREO_DOWNMIX_SCALE",
    # Spectral
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
    # Generation
    "DEFAULT_MAX_LENGTH",
    "DEFAULT_TOP_K",
    "DEFAULT_NUM_BEAMS",
]
