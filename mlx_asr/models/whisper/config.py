"""Whisper feature-extraction configuration."""

from __future__ import annotations

from dataclasses import dataclass

from mlx_asr.config import BaseConfig
from mlx_asr.constants import (
    WHISPER_CHUNK_LENGTH,
    WHISPER_FMAX,
    WHISPER_HOP_LENGTH,
    WHISPER_N_FFT,
    WHISPER_N_MELS,
    WHISPER_SAMPLE_RATE,
    WHISPER_V3_N_MELS,
)


@dataclass(frozen=True)
class WhisperFeatureConfig(BaseConfig):
    """Configuration for Whisper log-mel feature extraction.

    Attributes:
        n_mels: Number of mel filterbank bins (80 for v1/v2, 128 for v3)
        sample_rate: Expected audio sample rate
        n_fft: FFT window size
        hop_length: STFT hop length
        chunk_length: Audio chunk length in seconds
        fmin: Lowest filter bank frequency in Hz
        fmax: Highest filter bank frequency in Hz
    """

    n_mels: int = WHISPER_N_MELS
    sample_rate: int = WHISPER_SAMPLE_RATE
    n_fft: int = WHISPER_N_FFT  # 25ms window at 16kHz
    hop_length: int = WHISPER_HOP_LENGTH  # 10ms hop at 16kHz
    chunk_length: int = WHISPER_CHUNK_LENGTH  # 30 second chunks
    fmin: float = 0.0
    fmax: float = WHISPER_FMAX

    def _validate(self) -> None:
        self._validate_positive(self.n_mels, "n_mels")
        self._validate_positive(self.sample_rate, "sample_rate")
        self._validate_positive(self.n_fft, "n_fft")
        self._validate_positive(self.hop_length, "hop_length")
        self._validate_positive(self.chunk_length, "chunk_length")
        self._validate_non_negative(self.fmin, "fmin")

    @property
    def n_samples(self) -> int:
        """Number of audio samples per chunk."""
        return self.chunk_length * self.sample_rate

    @property
    def n_frames(self) -> int:
        """Number of mel frames per chunk."""
        return self.n_samples // self.hop_length

    @property
    def n_frequency_bins(self) -> int:
        """One-sided FFT bins covered by the filter bank."""
        return self.n_fft // 2 + 1

    @classmethod
    def v3(cls) -> "WhisperFeatureConfig":
        """Whisper large-v3 features (128 mel bins)."""
        return cls(n_mels=WHISPER_V3_N_MELS)
