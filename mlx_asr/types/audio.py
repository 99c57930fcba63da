"""Audio data types and utilities."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from mlx_asr.constants import STEREO_DOWNMIX_SCALE


@dataclass
class AudioData:
    """Container for already-decoded PCM samples.

    Capture and file decoding happen upstream; this only carries the
    samples and their rate into feature extraction.

    Attributes:
        array: Samples, shape [samples] or [channels, samples]
        sample_rate: Sample rate in Hz
    """

    array: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        self.array = np.asarray(self.array, dtype=np.float32)

    def to_mono(self) -> AudioData:
        """Mix down to mono.

        Stereo is mixed as ``sqrt(2) * (left + right) / 2`` to keep the
        perceived level; other channel counts are averaged.
        """
        if self.array.ndim == 1:
            return self
        if self.array.shape[0] == 2:
            mixed = STEREO_DOWNMIX_SCALE * (self.array[0] + self.array[1]) / 2
        else:
            mixed = self.array.mean(axis=0)
        return AudioData(array=mixed, sample_rate=self.sample_rate)

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.array.shape[-1] / self.sample_rate

    @property
    def channels(self) -> int:
        """Number of channels."""
        if self.array.ndim == 1:
            return 1
        return self.array.shape[0]

    def __len__(self) -> int:
        return self.array.shape[-1]
