"""Audio processing constants for Whisper feature extraction."""

from __future__ import annotations

WHISPER_SAMPLE_RATE = 16000
"""Whisper expects 16kHz mono audio."""

WHISPER_N_FFT = 400
"""Whisper FFT window size (25ms at 16kHz)."""

WHISPER_HOP_LENGTH = 160
"""Whisper STFT hop length (10ms at 16kHz)."""

WHISPER_CHUNK_LENGTH = 30
"""Whisper processes audio in 30-second chunks."""

WHISPER_LOG_CLIP_VALUE = 8.0
"""Dynamic range kept below the log-mel maximum (log10 units)."""

WHISPER_NORMALIZATION_SCALE = 4.0
"""Offset and divisor used to bring Whisper log-mels to roughly [-1, 1]."""

STEREO_DOWNMIX_SCALE = 2.0 ** 0.5
"""Gain applied when averaging two channels down to mono."""

__all__ = [
    "WHISPER_SAMPLE_RATE",
    "WHISPER_N_FFT",
    "WHISPER_HOP_LENGTH",
    "WHISPER_CHUNK_LENGTH",
    "WHISPER_LOG_CLIP_VALUE",
    "WHISPER_NORMALIZATION_SCALE",
    "STEREO_DOWNMIX_SCALE",
]
