"""Whisper audio front end.

Example:
    >>> from mlx_asr.models.whisper import WhisperFeatureExtractor
    >>> features = WhisperFeatureExtractor()(audio)
    >>> encoder_input = features.to_mlx()
"""

from mlx_asr.models.whisper.config import WhisperFeatureConfig
from mlx_asr.models.whisper.features import (
    WhisperFeatureExtractor,
    compute_log_mel_spectrogram,
    normalize_log_mel,
    pad_or_trim,
)

__all__ = [
    "WhisperFeatureConfig",
    "WhisperFeatureExtractor",
    "compute_log_mel_spectrogram",
    "normalize_log_mel",
    "pad_or_trim",
]
