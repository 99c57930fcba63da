"""mlx-asr: speech-recognition front end and constrained decoding for MLX.

Turns raw waveforms into normalized log-mel features for a neural encoder,
and turns a decoder's per-step logits into the next tokens.

Quick Start:
    >>> import mlx_asr
    >>> features = mlx_asr.WhisperFeatureExtractor()(audio)
    >>> features.dims
    [1, 80, 3000]

    >>> config = mlx_asr.GenerationConfig(eos_token_id=50257,
    ...                                   decoder_start_token_id=50258)
    >>> beams = mlx_asr.generate(decoder, encoder_outputs, config)

Submodules:
    - mlx_asr.primitives: Mel scales, filter banks, windows, spectrograms
    - mlx_asr.models.whisper: Whisper feature extraction
    - mlx_asr.generation: Logits processors, samplers and the decode loop
    - mlx_asr.types: Tensor and AudioData containers
"""

from mlx_asr._version import __version__
from mlx_asr.exceptions import ConfigurationError, MLXASRError, ShapeError
from mlx_asr.generation import (
    GenerationConfig,
    LogitsProcessorList,
    Sampler,
    build_logits_processor,
    generate,
)
from mlx_asr.models.whisper import WhisperFeatureConfig, WhisperFeatureExtractor
from mlx_asr.primitives import (
    build_filter_bank,
    compute_spectrogram,
    generate_window,
    hertz_to_mel,
    mel_to_hertz,
)
from mlx_asr.types import AudioData, Tensor

__all__ = [
    "__version__",
    # Errors
    "MLXASRError",
    "ConfigurationError",
    "ShapeError",
    # Features
    "hertz_to_mel",
    "mel_to_hertz",
    "build_filter_bank",
    "generate_window",
    "compute_spectrogram",
    "WhisperFeatureConfig",
    "WhisperFeatureExtractor",
    # Decoding
    "GenerationConfig",
    "LogitsProcessorList",
    "Sampler",
    "build_logits_processor",
    "generate",
    # Types
    "AudioData",
    "Tensor",
]
