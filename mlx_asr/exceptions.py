"""Custom exception hierarchy for mlx-asr.

All mlx-asr specific exceptions inherit from MLXASRError,
making it easy to catch any library-specific error.
"""

from __future__ import annotations


class MLXASRError(Exception):
    """Base exception for all mlx-asr errors.

    Example:
        try:
            features = extractor(audio)
        except MLXASRError as e:
            print(f"mlx-asr error: {e}")
    """

    pass


class ConfigurationError(MLXASRError, ValueError):
    """Invalid feature-extraction or generation configuration.

    Raised when:
        - A mel scale, window, norm or log_mel name is not recognized
        - reference, min_value or db_range are not strictly positive
        - Window length does not match frame_length, or hop_length <= 0
        - An unsupported pad_mode is requested
        - power is None while a mel filter bank is supplied
        - Greedy decoding is asked for more than one return sequence
    """

    pass


class ShapeError(MLXASRError, ValueError):
    """Data length does not match the declared dimensions.

    Raised when:
        - A Tensor is built from data whose size differs from prod(dims)
        - A decoder returns logits whose last dimension differs from
          the configured vocabulary size
    """

    pass


__all__ = [
    "MLXASRError",
    "ConfigurationError",
    "ShapeError",
]
