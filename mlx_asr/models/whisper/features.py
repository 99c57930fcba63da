"""Whisper log-mel feature extraction.

Turns 16 kHz mono PCM into the normalized log-mel spectrogram the Whisper
encoder consumes.
"""

from __future__ import annotations

import warnings

import numpy as np

from mlx_asr.constants import WHISPER_LOG_CLIP_VALUE, WHISPER_NORMALIZATION_SCALE
from mlx_asr.models.whisper.config import WhisperFeatureConfig
from mlx_asr.primitives import build_filter_bank, compute_spectrogram, generate_window
from mlx_asr.types.tensor import Tensor


def pad_or_trim(audio: np.ndarray, length: int) -> np.ndarray:
    """Pad with trailing zeros or trim audio to exactly ``length`` samples.

    Args:
        audio: Audio waveform [T]
        length: Target length in samples

    Returns:
        Audio of exact length
    """
    audio = np.asarray(audio)
    if audio.shape[-1] > length:
        return audio[..., :length]
    if audio.shape[-1] < length:
        pad_amount = length - audio.shape[-1]
        return np.pad(audio, [(0, 0)] * (audio.ndim - 1) + [(0, pad_amount)])
    return audio


def normalize_log_mel(log_mel: np.ndarray) -> np.ndarray:
    """Clamp to ``max - 8`` and rescale to roughly [-1, 1] (Whisper's formula)."""
    log_mel = np.maximum(log_mel, log_mel.max() - WHISPER_LOG_CLIP_VALUE)
    return (log_mel + WHISPER_NORMALIZATION_SCALE) / WHISPER_NORMALIZATION_SCALE


class WhisperFeatureExtractor:
    """Compute Whisper encoder features from raw audio.

    The mel filter bank (slaney scale, slaney norm) and periodic hann window
    are built once per extractor and reused for every call.

    Args:
        config: Feature configuration (default: Whisper v1/v2, 80 mels)

    Example:
        >>> extractor = WhisperFeatureExtractor()
        >>> features = extractor(audio)
        >>> features.dims
        [1, 80, 3000]
    """

    def __init__(self, config: WhisperFeatureConfig | None = None):
        self.config = config or WhisperFeatureConfig()
        self.mel_filters = build_filter_bank(
            self.config.n_frequency_bins,
            self.config.n_mels,
            self.config.fmin,
            self.config.fmax,
            self.config.sample_rate,
            norm="slaney",
            mel_scale="slaney",
        )
        self.window = generate_window(self.config.n_fft, "hann")

    def _extract_fbank_features(self, waveform: np.ndarray) -> Tensor:
        spec = compute_spectrogram(
            waveform,
            self.window,
            self.config.n_fft,
            self.config.hop_length,
            power=2.0,
            filter_bank=self.mel_filters,
            log_mel="log10",
            max_num_frames=self.config.n_frames,
        )
        return Tensor(normalize_log_mel(spec.data).astype(np.float32), spec.dims)

    def extract(self, audio: np.ndarray) -> Tensor:
        """Pad or trim ``audio`` to one chunk and compute its features.

        Args:
            audio: Mono waveform at ``config.sample_rate``

        Returns:
            Tensor with dims ``[1, n_mels, n_frames]``
        """
        audio = np.asarray(audio, dtype=np.float32)
        if audio.shape[-1] > self.config.n_samples:
            warnings.warn(
                f"Audio is longer than {self.config.chunk_length} seconds. "
                f"Trimming to the first {self.config.chunk_length} seconds."
            )
        waveform = pad_or_trim(audio, self.config.n_samples)
        features = self._extract_fbank_features(waveform)
        return features.reshape([1, *features.dims])

    def __call__(self, audio: np.ndarray) -> Tensor:
        return self.extract(audio)


def compute_log_mel_spectrogram(
    audio: np.ndarray,
    n_mels: int = 80,
    n_fft: int = 400,
    hop_length: int = 160,
    sample_rate: int = 16000,
) -> Tensor:
    """Compute a Whisper-normalized log-mel spectrogram without chunk padding.

    Args:
        audio: Audio waveform [T]
        n_mels: Number of mel bins (80 for v1/v2, 128 for v3)
        n_fft: FFT window size
        hop_length: Hop length
        sample_rate: Sample rate

    Returns:
        Log-mel spectrogram Tensor with dims ``[n_mels, n_frames]``
    """
    config = WhisperFeatureConfig(
        n_mels=n_mels, n_fft=n_fft, hop_length=hop_length, sample_rate=sample_rate
    )
    extractor = WhisperFeatureExtractor(config)
    spec = compute_spectrogram(
        np.asarray(audio, dtype=np.float32),
        extractor.window,
        n_fft,
        hop_length,
        power=2.0,
        filter_bank=extractor.mel_filters,
        log_mel="log10",
    )
    return Tensor(normalize_log_mel(spec.data).astype(np.float32), spec.dims)
