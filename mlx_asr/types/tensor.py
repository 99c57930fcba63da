"""Flat numeric tensors exchanged with the neural encoder/decoder."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from mlx_asr.exceptions import ShapeError
from mlx_asr.utils.dependencies import require_mlx

if TYPE_CHECKING:
    import mlx.core as mx


@dataclass
class Tensor:
    """A flat typed buffer plus explicit dimensions.

    The feature extractor hands mel spectrograms to the encoder as Tensors,
    and decoders may return logits as Tensors. ``data`` is always stored
    one-dimensional; ``numpy()`` and ``to_mlx()`` give shaped views.

    Attributes:
        data: Flat NumPy buffer
        dims: Logical shape; ``prod(dims)`` must equal ``len(data)``

    Raises:
        ShapeError: If the data length does not match ``dims``
    """

    data: np.ndarray
    dims: list[int] | None = None

    def __post_init__(self) -> None:
        data = np.asarray(self.data)
        if self.dims is None:
            self.dims = [int(data.size)]
        else:
            self.dims = [int(d) for d in self.dims]
        if any(d < 0 for d in self.dims):
            raise ShapeError(f"Tensor dims must be non-negative, got {self.dims}")

        size = math.prod(self.dims)
        if size != data.size:
            raise ShapeError(
                f"Tensor's size ({size}) does not match data length ({data.size})."
            )
        self.data = data.reshape(-1)

    @classmethod
    def from_array(cls, array: Any) -> Tensor:
        """Wrap a NumPy or MLX array, keeping its shape as ``dims``."""
        arr = np.asarray(array)
        return cls(arr, list(arr.shape))

    @property
    def size(self) -> int:
        """Total number of elements."""
        return int(self.data.size)

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        return len(self.dims)

    @property
    def dtype(self) -> np.dtype:
        return self.data.dtype

    def numpy(self) -> np.ndarray:
        """Return the data reshaped to ``dims`` (a view, not a copy)."""
        return self.data.reshape(self.dims)

    def to_mlx(self) -> "mx.array":
        """Convert to an MLX array of shape ``dims``."""
        mx = require_mlx()
        return mx.array(self.numpy())

    def reshape(self, dims: list[int]) -> Tensor:
        """Return a Tensor sharing this buffer with new dimensions."""
        return Tensor(self.data, list(dims))

    def __len__(self) -> int:
        return self.dims[0] if self.dims else 1


__all__ = ["Tensor"]
