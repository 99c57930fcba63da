"""Default decoding hyper-parameters used by GenerationConfig."""

from __future__ import annotations

DEFAULT_MAX_LENGTH = 20 + 1
"""Default maximum sequence length (20 new tokens plus the start token)."""

DEFAULT_TOP_K = 48
"""Default number of highest-scoring tokens kept for sampling."""

DEFAULT_NUM_BEAMS = 1
"""Default number of beams (greedy decoding)."""

__all__ = [
    "DEFAULT_MAX_LENGTH",
    "DEFAULT_TOP_K",
    "DEFAULT_NUM_BEAMS",
]
