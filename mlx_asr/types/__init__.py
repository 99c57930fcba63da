"""Data types shared across mlx-asr."""

from mlx_asr.types.audio import AudioData
from mlx_asr.types.tensor import Tensor

__all__ = ["AudioData", "Tensor"]
