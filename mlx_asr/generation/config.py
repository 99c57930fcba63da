"""Decoding hyper-parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from mlx_asr.config import BaseConfig
from mlx_asr.constants import DEFAULT_MAX_LENGTH, DEFAULT_NUM_BEAMS, DEFAULT_TOP_K


def _as_id_tuple(value: Any) -> tuple[int, ...] | None:
    if value is None:
        return None
    return tuple(int(v) for v in value)


def _as_nested_tuple(value: Any) -> tuple[tuple[int, ...], ...] | None:
    if value is None:
        return None
    return tuple(tuple(int(v) for v in item) for item in value)


@dataclass(frozen=True)
class GenerationConfig(BaseConfig):
    """Immutable record of decoding hyper-parameters.

    Built once per generation request and shared read-only by every logits
    processor and sampler of that request. Sequence-valued options are
    stored as tuples.

    Length:
        max_length: Maximum total sequence length, prompt included
        max_new_tokens: Maximum generated tokens; overrides max_length
        min_length: EOS is suppressed while the sequence is shorter
        min_new_tokens: EOS is suppressed until this many tokens are generated
        early_stopping: Beam-search stopping flag (not used by the simplified sampler)
        max_time: Wall-clock budget in seconds for the decode loop

    Strategy:
        do_sample: Multinomial sampling instead of greedy/beam selection
        num_beams: Beams kept per step; > 1 selects the beam sampler
        num_beam_groups, penalty_alpha, use_cache: Carried for compatibility

    Logit shaping:
        temperature: Logits are divided by it when > 0
        top_k: Candidates kept by the multinomial and beam samplers (0 = all)
        top_p, typical_p, epsilon_cutoff, eta_cutoff, diversity_penalty,
        encoder_repetition_penalty, length_penalty, force_words_ids,
        renormalize_logits, remove_invalid_values,
        exponential_decay_length_penalty, encoder_no_repeat_ngram_size:
            Carried for compatibility
        repetition_penalty: Penalty for tokens already in the history
        no_repeat_ngram_size: Ban repeating n-grams of this size
        bad_words_ids: Token phrases that may never be generated
        forced_bos_token_id: Token forced as the first generated token
        forced_eos_token_id: Token to force at max_length (documented no-op)
        suppress_tokens: Tokens suppressed at every step
        begin_suppress_tokens: Tokens suppressed at the first generated step
        forced_decoder_ids: (position, token) pairs forced during decoding

    Output and special tokens:
        num_return_sequences, pad_token_id, bos_token_id, eos_token_id,
        decoder_start_token_id

    Whisper:
        no_timestamps_token_id: The <|notimestamps|> token
        max_initial_timestamp_index: Latest timestamp allowed first
        return_timestamps: Enable timestamp/text alternation rules
        vocab_size: Expected logits length (checked by the decode loop)
    """

    max_length: int = DEFAULT_MAX_LENGTH
    max_new_tokens: int | None = None
    min_length: int = 0
    min_new_tokens: int | None = None
    early_stopping: bool = False
    max_time: float | None = None

    do_sample: bool = False
    num_beams: int = DEFAULT_NUM_BEAMS
    num_beam_groups: int = 1
    penalty_alpha: float | None = None
    use_cache: bool = True

    temperature: float = 1.0
    top_k: int = DEFAULT_TOP_K
    top_p: float = 1.0
    typical_p: float = 1.0
    epsilon_cutoff: float = 0.0
    eta_cutoff: float = 0.0
    diversity_penalty: float = 0.0
    repetition_penalty: float = 1.0
    encoder_repetition_penalty: float = 1.0
    length_penalty: float = 1.0
    no_repeat_ngram_size: int = 0
    bad_words_ids: tuple[tuple[int, ...], ...] | None = None
    force_words_ids: tuple[tuple[int, ...], ...] | None = None
    renormalize_logits: bool = False
    forced_bos_token_id: int | None = None
    forced_eos_token_id: int | None = None
    remove_invalid_values: bool = False
    exponential_decay_length_penalty: tuple[float, ...] | None = None
    suppress_tokens: tuple[int, ...] | None = None
    begin_suppress_tokens: tuple[int, ...] | None = None
    forced_decoder_ids: tuple[tuple[int, ...], ...] | None = None

    num_return_sequences: int = 1

    pad_token_id: int | None = None
    bos_token_id: int | None = None
    eos_token_id: int | tuple[int, ...] | None = None

    encoder_no_repeat_ngram_size: int = 0
    decoder_start_token_id: int | None = None

    no_timestamps_token_id: int | None = None
    max_initial_timestamp_index: int | None = None
    return_timestamps: bool = False
    vocab_size: int | None = None

    def __post_init__(self) -> None:
        # Frozen dataclass: normalize sequences through object.__setattr__.
        for name in ("suppress_tokens", "begin_suppress_tokens"):
            object.__setattr__(self, name, _as_id_tuple(getattr(self, name)))
        for name in ("bad_words_ids", "force_words_ids", "forced_decoder_ids"):
            object.__setattr__(self, name, _as_nested_tuple(getattr(self, name)))
        if self.exponential_decay_length_penalty is not None:
            object.__setattr__(
                self,
                "exponential_decay_length_penalty",
                tuple(self.exponential_decay_length_penalty),
            )
        for name in (
            "pad_token_id",
            "bos_token_id",
            "decoder_start_token_id",
            "forced_bos_token_id",
            "forced_eos_token_id",
            "no_timestamps_token_id",
        ):
            value = getattr(self, name)
            if isinstance(value, np.integer):
                object.__setattr__(self, name, int(value))
        if isinstance(self.eos_token_id, (int, np.integer)):
            object.__setattr__(self, "eos_token_id", int(self.eos_token_id))
        elif self.eos_token_id is not None:
            object.__setattr__(self, "eos_token_id", _as_id_tuple(self.eos_token_id))
        super().__post_init__()

    def _validate(self) -> None:
        self._validate_positive(self.max_length, "max_length")
        if self.max_new_tokens is not None:
            self._validate_non_negative(self.max_new_tokens, "max_new_tokens")
        self._validate_non_negative(self.min_length, "min_length")
        if self.min_new_tokens is not None:
            self._validate_non_negative(self.min_new_tokens, "min_new_tokens")
        if self.max_time is not None:
            self._validate_positive(self.max_time, "max_time")
        self._validate_positive(self.num_beams, "num_beams")
        self._validate_positive(self.num_return_sequences, "num_return_sequences")
        self._validate_non_negative(self.temperature, "temperature")
        self._validate_non_negative(self.top_k, "top_k")
        self._validate_positive(self.repetition_penalty, "repetition_penalty")
        self._validate_non_negative(self.no_repeat_ngram_size, "no_repeat_ngram_size")
        if self.vocab_size is not None:
            self._validate_positive(self.vocab_size, "vocab_size")

    @property
    def eos_token_ids(self) -> list[int]:
        """End-of-sequence ids as a list (empty when unset)."""
        if self.eos_token_id is None:
            return []
        if isinstance(self.eos_token_id, int):
            return [self.eos_token_id]
        return list(self.eos_token_id)


__all__ = ["GenerationConfig"]
