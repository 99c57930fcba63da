"""Decode loop and logits-processor assembly.

The decoder network is an opaque callable: it receives one beam's token
history plus the encoder output and returns logits (an ``mx.array``,
NumPy array or Tensor whose last dimension is the vocabulary). This module
never inspects the model; it only filters logits and extends histories.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from mlx_asr.exceptions import ConfigurationError, ShapeError
from mlx_asr.generation.config import GenerationConfig
from mlx_asr.generation.logits_process import (
    ForcedBOSTokenLogitsProcessor,
    ForcedEOSTokenLogitsProcessor,
    ForceTokensLogitsProcessor,
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
from mlx_asr.generation.samplers import Sampler
from mlx_asr.types.tensor import Tensor

_logger = logging.getLogger(__name__)

DecoderFn = Callable[[list[int], Any], Any]


@dataclass
class Beam:
    """One candidate output sequence.

    Attributes:
        output_token_ids: Prompt plus generated token ids
        score: Sum of the sampler's log-probabilities so far
        done: Whether the beam emitted EOS or reached the length limit
    """

    output_token_ids: list[int] = field(default_factory=list)
    score: float = 0.0
    done: bool = False

    def extend(self, token_id: int, log_prob: float, eos_token_ids: Sequence[int]) -> Beam:
        """Return a new beam with ``token_id`` appended."""
        return Beam(
            output_token_ids=[*self.output_token_ids, token_id],
            score=self.score + log_prob,
            done=token_id in eos_token_ids,
        )


def build_logits_processor(
    generation_config: GenerationConfig,
    input_ids_seq_length: int,
) -> LogitsProcessorList:
    """Assemble the ordered processor pipeline for ``generation_config``.

    Args:
        generation_config: Decoding hyper-parameters
        input_ids_seq_length: Length of the decoder prompt

    Returns:
        LogitsProcessorList with only the rules the config enables
    """
    config = generation_config
    eos_ids = config.eos_token_ids
    processors = LogitsProcessorList()

    if config.repetition_penalty is not None and config.repetition_penalty != 1.0:
        processors.push(RepetitionPenaltyLogitsProcessor(config.repetition_penalty))

    if config.no_repeat_ngram_size is not None and config.no_repeat_ngram_size > 0:
        processors.push(NoRepeatNGramLogitsProcessor(config.no_repeat_ngram_size))

    if config.bad_words_ids is not None:
        processors.push(NoBadWordsLogitsProcessor(config.bad_words_ids, eos_ids))

    if config.min_length is not None and eos_ids and config.min_length > 0:
        processors.push(MinLengthLogitsProcessor(config.min_length, eos_ids))

    if config.min_new_tokens is not None and eos_ids and config.min_new_tokens > 0:
        processors.push(
            MinNewTokensLengthLogitsProcessor(input_ids_seq_length, config.min_new_tokens, eos_ids)
        )

    if config.forced_bos_token_id is not None:
        processors.push(ForcedBOSTokenLogitsProcessor(config.forced_bos_token_id))

    if config.forced_eos_token_id is not None:
        processors.push(
            ForcedEOSTokenLogitsProcessor(config.max_length, config.forced_eos_token_id)
        )

    if config.suppress_tokens:
        processors.push(SuppressTokensLogitsProcessor(config.suppress_tokens))

    if config.begin_suppress_tokens:
        begin_index = input_ids_seq_length
        if input_ids_seq_length <= 1 and config.forced_bos_token_id is not None:
            begin_index += 1
        if config.forced_decoder_ids:
            begin_index += config.forced_decoder_ids[-1][0]
        processors.push(
            SuppressTokensAtBeginLogitsProcessor(config.begin_suppress_tokens, begin_index)
        )

    if config.forced_decoder_ids:
        processors.push(ForceTokensLogitsProcessor(config.forced_decoder_ids))

    if config.return_timestamps:
        processors.push(WhisperTimeStampLogitsProcessor(config))

    return processors


def _last_logits(output: Any, vocab_size: int | None) -> np.ndarray:
    """Copy the final-position logits row out of a decoder output."""
    if isinstance(output, Tensor):
        output = output.numpy()
    arr = np.array(output, dtype=np.float32)
    if arr.ndim == 0:
        raise ShapeError("Decoder returned a scalar instead of logits")
    logits = arr.reshape(-1, arr.shape[-1])[-1].copy()
    if vocab_size is not None and logits.shape[0] != vocab_size:
        raise ShapeError(
            f"Decoder returned {logits.shape[0]} logits, expected vocab_size={vocab_size}"
        )
    return logits


def _initial_prompt(
    generation_config: GenerationConfig, prompt_ids: Sequence[int] | None
) -> list[int]:
    if prompt_ids is not None:
        prompt = [int(t) for t in prompt_ids]
    elif generation_config.decoder_start_token_id is not None:
        prompt = [generation_config.decoder_start_token_id]
    elif generation_config.bos_token_id is not None:
        prompt = [generation_config.bos_token_id]
    else:
        prompt = []
    if not prompt:
        raise ConfigurationError(
            "Provide prompt_ids or set decoder_start_token_id / bos_token_id"
        )
    return prompt


def generate(
    decoder: DecoderFn,
    encoder_outputs: Any,
    generation_config: GenerationConfig | None = None,
    *,
    prompt_ids: Sequence[int] | None = None,
    logits_processor: LogitsProcessorList | None = None,
    sampler: Sampler | None = None,
) -> list[Beam]:
    """Autoregressively decode token ids.

    Every unfinished beam is run through ``decoder``, its last-position
    logits go through the processor pipeline and the sampler, and each
    sampled token spawns a candidate. Candidates are ranked by cumulative
    log-probability and the best ``num_beams`` are kept.

    Args:
        decoder: ``decoder(token_ids, encoder_outputs) -> logits``
        encoder_outputs: Passed through to ``decoder`` untouched
        generation_config: Decoding hyper-parameters (default: GenerationConfig())
        prompt_ids: Decoder prompt (default: decoder_start_token_id or bos_token_id)
        logits_processor: Processor pipeline (default: built from the config)
        sampler: Token selection strategy (default: Sampler.get_sampler(config))

    Returns:
        The best ``num_return_sequences`` beams, highest score first

    Raises:
        ConfigurationError: For inconsistent configuration
        ShapeError: If the decoder's logits do not match ``vocab_size``

    Example:
        >>> config = GenerationConfig(max_new_tokens=5, eos_token_id=2,
        ...                           decoder_start_token_id=0)
        >>> beams = generate(model.decode, features.to_mlx(), config)
        >>> beams[0].output_token_ids
        [0, 17, 42, 2]
    """
    config = generation_config or GenerationConfig()
    if config.num_return_sequences > config.num_beams:
        raise ConfigurationError(
            f"num_return_sequences ({config.num_return_sequences}) may not exceed "
            f"num_beams ({config.num_beams})"
        )

    prompt = _initial_prompt(config, prompt_ids)
    if config.max_new_tokens is not None:
        max_length = len(prompt) + config.max_new_tokens
    else:
        max_length = config.max_length

    if logits_processor is None:
        logits_processor = build_logits_processor(config, len(prompt))
    if sampler is None:
        sampler = Sampler.get_sampler(config)

    eos_ids = config.eos_token_ids
    start_time = time.monotonic()
    beams = [Beam(output_token_ids=prompt)]

    step = 0
    while not all(beam.done for beam in beams):
        candidates: list[Beam] = []
        for beam in beams:
            if beam.done:
                candidates.append(beam)
                continue
            if len(beam.output_token_ids) >= max_length:
                beam.done = True
                candidates.append(beam)
                continue

            logits = _last_logits(decoder(beam.output_token_ids, encoder_outputs), config.vocab_size)
            logits_processor.apply(beam.output_token_ids, logits)
            for token_id, log_prob in sampler.sample(logits):
                candidates.append(beam.extend(token_id, log_prob, eos_ids))

        candidates.sort(key=lambda b: b.score, reverse=True)
        beams = candidates[: config.num_beams]
        step += 1
        _logger.debug("Step %d: %d active beams", step, sum(not b.done for b in beams))

        if config.max_time is not None and time.monotonic() - start_time > config.max_time:
            _logger.debug("Stopping after %d steps: max_time %.2fs exceeded", step, config.max_time)
            break
    else:
        _logger.debug("Stopping after %d steps: all beams finished", step)

    return beams[: config.num_return_sequences]


__all__ = ["Beam", "build_logits_processor", "generate"]
