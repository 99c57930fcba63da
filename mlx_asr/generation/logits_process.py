"""Logits processors applied before token selection.

Every processor mutates one beam's logits vector in place and returns the
same array. Processors never resize the vector and never keep a reference
to it after ``apply`` returns.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence

import numpy as np

from mlx_asr.exceptions import ConfigurationError, ShapeError
from mlx_asr.generation.config import GenerationConfig

_logger = logging.getLogger(__name__)


def _as_id_list(token_ids: int | Sequence[int] | None) -> list[int]:
    if token_ids is None:
        return []
    if isinstance(token_ids, (int, np.integer)):
        return [int(token_ids)]
    return [int(t) for t in token_ids]


def logsumexp(x: np.ndarray) -> float:
    """Numerically stable ``log(sum(exp(x)))``; ``-inf`` for an all ``-inf`` input."""
    x = np.asarray(x, dtype=np.float64)
    if x.size == 0:
        return -np.inf
    m = x.max()
    if not np.isfinite(m):
        return float(m)
    return float(m + np.log(np.exp(x - m).sum()))


def log_softmax(x: np.ndarray) -> np.ndarray:
    """Log-probabilities of a logits vector (float64)."""
    x = np.asarray(x, dtype=np.float64)
    return x - logsumexp(x)


class LogitsProcessor(ABC):
    """Base class for logits processors."""

    @abstractmethod
    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        """Mutate ``logits`` in place given the beam's token history.

        Args:
            input_ids: Token ids generated so far for this beam
            logits: 1-D scores over the vocabulary

        Returns:
            The same ``logits`` array
        """
        raise NotImplementedError


class LogitsProcessorList:
    """Ordered pipeline of logits processors.

    Processors run in registration order on every beam independently.

    Example:
        >>> processors = LogitsProcessorList()
        >>> processors.push(RepetitionPenaltyLogitsProcessor(1.2))
        >>> processors.apply([[1, 2, 3]], logits[None, :])
    """

    def __init__(self, processors: Iterable[LogitsProcessor] | None = None):
        self.processors: list[LogitsProcessor] = list(processors or [])

    def push(self, item: LogitsProcessor) -> None:
        self.processors.append(item)

    def extend(self, items: Iterable[LogitsProcessor]) -> None:
        self.processors.extend(items)

    def apply(
        self,
        input_ids: Sequence[Sequence[int]] | Sequence[int],
        logits: np.ndarray,
    ) -> np.ndarray:
        """Run every processor over every beam.

        Args:
            input_ids: One token history per beam, or a single history
                when ``logits`` is 1-D
            logits: Array of shape (beams, vocab) or (vocab,), mutated in place

        Returns:
            The same ``logits`` array

        Raises:
            ShapeError: If the number of histories and logits rows differ
        """
        if logits.ndim == 1:
            self._apply_beam(input_ids, logits)
            return logits

        if len(input_ids) != logits.shape[0]:
            raise ShapeError(
                f"Got {len(input_ids)} token histories for {logits.shape[0]} logits rows"
            )
        for history, row in zip(input_ids, logits):
            self._apply_beam(history, row)
        return logits

    def _apply_beam(self, history: Sequence[int], row: np.ndarray) -> None:
        for processor in self.processors:
            processor.apply(history, row)

    def __iter__(self) -> Iterator[LogitsProcessor]:
        return iter(self.processors)

    def __len__(self) -> int:
        return len(self.processors)

    def __repr__(self) -> str:
        names = ", ".join(type(p).__name__ for p in self.processors)
        return f"LogitsProcessorList([{names}])"


class ForceTokensLogitsProcessor(LogitsProcessor):
    """Force specific tokens at specific decoding positions.

    Args:
        forced_decoder_ids: (position, token_id) pairs, position being the
            history length at which ``token_id`` must be produced
    """

    def __init__(self, forced_decoder_ids: Iterable[Sequence[int]] | None):
        self.force_token_map = {int(pos): int(tok) for pos, tok in (forced_decoder_ids or [])}

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        token_id = self.force_token_map.get(len(input_ids))
        if token_id is not None:
            logits.fill(-np.inf)
            logits[token_id] = 0
        return logits


class ForcedBOSTokenLogitsProcessor(LogitsProcessor):
    """Force ``bos_token_id`` as the first generated token."""

    def __init__(self, bos_token_id: int):
        self.bos_token_id = bos_token_id

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        if len(input_ids) == 1:
            logits.fill(-np.inf)
            logits[self.bos_token_id] = 0
        return logits


class ForcedEOSTokenLogitsProcessor(LogitsProcessor):
    """Intended to force ``forced_eos_token_id`` once ``max_length`` is reached.

    Currently performs no mutation; the decode loop stops at ``max_length``
    on its own.
    """

    def __init__(self, max_length: int, forced_eos_token_id: int | Sequence[int]):
        self.max_length = max_length
        self.forced_eos_token_id = forced_eos_token_id
        _logger.warning(
            "ForcedEOSTokenLogitsProcessor does not modify logits; "
            "forced_eos_token_id=%s is ignored",
            forced_eos_token_id,
        )

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        return logits


class SuppressTokensAtBeginLogitsProcessor(LogitsProcessor):
    """Suppress tokens once, at the step where the history reaches ``begin_index``."""

    def __init__(self, begin_suppress_tokens: Iterable[int], begin_index: int):
        self.begin_suppress_tokens = [int(t) for t in begin_suppress_tokens]
        self.begin_index = begin_index

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        if len(input_ids) == self.begin_index:
            logits[self.begin_suppress_tokens] = -np.inf
        return logits


class SuppressTokensLogitsProcessor(LogitsProcessor):
    """Suppress tokens at every step."""

    def __init__(self, suppress_tokens: Iterable[int]):
        self.suppress_tokens = [int(t) for t in suppress_tokens]

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        logits[self.suppress_tokens] = -np.inf
        return logits


class WhisperTimeStampLogitsProcessor(LogitsProcessor):
    """Enforce Whisper's timestamp token rules.

    1. <|notimestamps|> is always suppressed
    2. The first generated token is forced to <|0.00|>
    3. Timestamps come in pairs: after a lone timestamp only text or EOT may
       follow, after a pair only text may follow
    4. The initial timestamp may not exceed ``max_initial_timestamp_index``
    5. If the timestamps are jointly more likely than any single text token,
       a timestamp is forced

    Tokens at or above ``no_timestamps_token_id + 1`` are timestamps.

    Args:
        generate_config: Supplies eos_token_id, no_timestamps_token_id,
            forced_decoder_ids and max_initial_timestamp_index
    """

    def __init__(self, generate_config: GenerationConfig):
        if generate_config.no_timestamps_token_id is None:
            raise ConfigurationError(
                "no_timestamps_token_id must be set to apply timestamp rules"
            )
        eos_ids = generate_config.eos_token_ids
        if not eos_ids:
            raise ConfigurationError("eos_token_id must be set to apply timestamp rules")

        self.eos_token_id = eos_ids[0]
        self.no_timestamps_token_id = generate_config.no_timestamps_token_id
        self.timestamp_begin = self.no_timestamps_token_id + 1

        forced_decoder_ids = generate_config.forced_decoder_ids or ()
        self.begin_index = len(forced_decoder_ids) + 2
        if forced_decoder_ids and forced_decoder_ids[-1][1] == self.no_timestamps_token_id:
            self.begin_index -= 1
        self.max_initial_timestamp_index = generate_config.max_initial_timestamp_index

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        logits[self.no_timestamps_token_id] = -np.inf

        if len(input_ids) == self.begin_index - 1:
            logits.fill(-np.inf)
            logits[self.timestamp_begin] = 0
            return logits

        seq = list(input_ids[self.begin_index :])
        last_was_timestamp = len(seq) >= 1 and seq[-1] >= self.timestamp_begin
        penultimate_was_timestamp = len(seq) < 2 or seq[-2] >= self.timestamp_begin

        if last_was_timestamp:
            if penultimate_was_timestamp:
                logits[self.timestamp_begin :] = -np.inf
            else:
                logits[: self.eos_token_id] = -np.inf

        if len(input_ids) == self.begin_index and self.max_initial_timestamp_index is not None:
            last_allowed = self.timestamp_begin + self.max_initial_timestamp_index
            logits[last_allowed + 1 :] = -np.inf

        logprobs = log_softmax(logits)
        timestamp_logprob = logsumexp(logprobs[self.timestamp_begin :])
        max_text_token_logprob = logprobs[: self.timestamp_begin].max()
        if timestamp_logprob > max_text_token_logprob:
            logits[: self.timestamp_begin] = -np.inf

        return logits


class NoRepeatNGramLogitsProcessor(LogitsProcessor):
    """Ban any token that would repeat an n-gram already in the history.

    Args:
        no_repeat_ngram_size: n-gram size (> 0)
    """

    def __init__(self, no_repeat_ngram_size: int):
        if no_repeat_ngram_size <= 0:
            raise ConfigurationError(
                f"no_repeat_ngram_size must be greater than zero, got {no_repeat_ngram_size}"
            )
        self.no_repeat_ngram_size = no_repeat_ngram_size

    def get_ngrams(self, prev_input_ids: Sequence[int]) -> dict[tuple[int, ...], list[int]]:
        """Map every observed (n-1)-token prefix to the tokens that completed it."""
        n = self.no_repeat_ngram_size
        generated_ngrams: dict[tuple[int, ...], list[int]] = defaultdict(list)
        for start in range(len(prev_input_ids) - n + 1):
            ngram = tuple(prev_input_ids[start : start + n])
            generated_ngrams[ngram[:-1]].append(ngram[-1])
        return generated_ngrams

    def calc_banned_ngram_tokens(self, prev_input_ids: Sequence[int]) -> list[int]:
        n = self.no_repeat_ngram_size
        if len(prev_input_ids) + 1 < n:
            return []
        generated_ngrams = self.get_ngrams(prev_input_ids)
        prefix = tuple(prev_input_ids[len(prev_input_ids) - n + 1 :]) if n > 1 else ()
        return generated_ngrams.get(prefix, [])

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        banned_tokens = self.calc_banned_ngram_tokens([int(t) for t in input_ids])
        if banned_tokens:
            logits[banned_tokens] = -np.inf
        return logits


class RepetitionPenaltyLogitsProcessor(LogitsProcessor):
    """Penalize tokens that already appear in the history.

    Negative logits are multiplied by the penalty and non-negative logits
    divided by it, so a penalty > 1 always lowers the score.

    Args:
        penalty: Repetition penalty (> 0, 1.0 = no effect)
    """

    def __init__(self, penalty: float):
        if penalty <= 0:
            raise ConfigurationError(f"Repetition penalty must be positive, got {penalty}")
        self.penalty = penalty

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        if len(input_ids) == 0:
            return logits
        seen = np.unique(np.asarray(input_ids, dtype=np.int64))
        scores = logits[seen]
        logits[seen] = np.where(scores < 0, scores * self.penalty, scores / self.penalty)
        return logits


class MinLengthLogitsProcessor(LogitsProcessor):
    """Suppress EOS while the history is shorter than ``min_length``."""

    def __init__(self, min_length: int, eos_token_id: int | Sequence[int]):
        self.min_length = min_length
        self.eos_token_id = _as_id_list(eos_token_id)

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        if len(input_ids) < self.min_length:
            logits[self.eos_token_id] = -np.inf
        return logits


class MinNewTokensLengthLogitsProcessor(LogitsProcessor):
    """Suppress EOS until ``min_new_tokens`` tokens follow the prompt.

    Args:
        prompt_length_to_skip: Prompt length not counted as new tokens
        min_new_tokens: Minimum number of generated tokens
        eos_token_id: One or more end-of-sequence ids
    """

    def __init__(
        self,
        prompt_length_to_skip: int,
        min_new_tokens: int,
        eos_token_id: int | Sequence[int],
    ):
        self.prompt_length_to_skip = prompt_length_to_skip
        self.min_new_tokens = min_new_tokens
        self.eos_token_id = _as_id_list(eos_token_id)

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        new_tokens_length = len(input_ids) - self.prompt_length_to_skip
        if new_tokens_length < self.min_new_tokens:
            logits[self.eos_token_id] = -np.inf
        return logits


class NoBadWordsLogitsProcessor(LogitsProcessor):
    """Prevent banned token phrases from being completed.

    For each phrase, when the end of the history equals every token of the
    phrase but the last, the last token is banned. Single-token phrases are
    banned at every step. A phrase consisting only of EOS is ignored.

    Args:
        bad_words_ids: Banned phrases as token id sequences
        eos_token_id: One or more end-of-sequence ids
    """

    def __init__(
        self,
        bad_words_ids: Iterable[Sequence[int]],
        eos_token_id: int | Sequence[int] | None = None,
    ):
        eos_ids = _as_id_list(eos_token_id)
        self.bad_words_ids = [
            [int(t) for t in phrase]
            for phrase in bad_words_ids
            if len(phrase) > 0 and not (len(phrase) == 1 and int(phrase[0]) in eos_ids)
        ]
        self.eos_token_id = eos_ids

    def apply(self, input_ids: Sequence[int], logits: np.ndarray) -> np.ndarray:
        history = [int(t) for t in input_ids]
        for bad_word_ids in self.bad_words_ids:
            prefix = bad_word_ids[:-1]
            if not prefix or (
                len(history) >= len(prefix) and history[len(history) - len(prefix) :] == prefix
            ):
                logits[bad_word_ids[-1]] = -np.inf
        return logits


__all__ = [
    "logsumexp",
    "log_softmax",
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
]
