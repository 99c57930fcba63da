"""Constrained decoding: logits processors, samplers and the decode loop.

Example:
    >>> from mlx_asr.generation import GenerationConfig, generate
    >>> config = GenerationConfig(num_beams=3, num_return_sequences=1,
    ...                           repetition_penalty=1.2, eos_token_id=50257,
    ...                           decoder_start_token_id=50258)
    >>> beams = generate(decoder, audio_features, config)
"""

from mlx_asr.generation.config import GenerationConfig
from mlx_asr.generation.logits_process import (
    ForcedBOSTokenLogitsProcessor,
    ForcedEOSTokenLogitsProcessor,
    ForceTokensLogitsProcessor,
    LogitsProcessor,
    LogitsProcessorList,
    MinLengthLogitsProcessor,
    MinNewTokensLengthLogitsProcessor,
    NoBadWordsLogitsProcessor,
    NoRepeatNGramLogitsProcessor,
    RepetitionPenaltyLogitsProcessor,
    SuppressTokensAtBeginLogitsProcessor,
    SuppressTokensLogitsProcessor,
    WhisperTimeStampLogitsProcessor,
)
from mlx_asr.generation.samplers import (
    BeamSearchSampler,
    GreedySampler,
    MultinomialSampler,
    Sampler,
)
from mlx_asr.generation.utils import Beam, build_logits_processor, generate

__all__ = [
    # Config
    "GenerationConfig",
    # Processors
    "LogitsProcessor",
    "LogitsProcessorList",
    "ForceTokensLogitsProcessor",
    "ForcedBOSTokenLogitsProcessor",
    "ForcedEOSTokenLogitsProcessor",
    "SuppressTokensAtBeginLogitsProcessor",
    "SuppressTokensLogitsProcessor",
    "WhisperTimeStampLogitsProcessor",
    "NoRepeatNGramLogitsProcessor",
    "RepetitionPenaltyLogitsProcessor",
    "MinLengthLogitsProcessor",
    "MinNewTokensLengthLogitsProcessor",
    "NoBadWordsLogitsProcessor",
    # Samplers
    "Sampler",
    "GreedySampler",
    "MultinomialSampler",
    "BeamSearchSampler",
    # Decode loop
    "Beam",
    "build_logits_processor",
    "generate",
]
