"""Token selection strategies.

A sampler turns one beam's (processed) logits into a list of
``(token_id, log_probability)`` pairs, one per requested output beam.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from mlx_asr.exceptions import ConfigurationError
from mlx_asr.generation.config import GenerationConfig
from mlx_asr.types.tensor import Tensor

_logger = logging.getLogger(__name__)


def softmax(x: np.ndarray) -> np.ndarray:
    """Numerically stable softmax (float64)."""
    x = np.asarray(x, dtype=np.float64)
    e = np.exp(x - x.max())
    return e / e.sum()


def get_top_items(logits: np.ndarray, k: int) -> tuple[np.ndarray, np.ndarray]:
    """Indices and values of the ``k`` largest logits, in descending order.

    Ties keep the lower token id first.
    """
    order = np.argsort(-logits, kind="stable")[:k]
    return order, logits[order]


class Sampler(ABC):
    """Base class for token selection strategies.

    Args:
        generation_config: Shared decoding hyper-parameters
        rng: Random generator for stochastic strategies
            (default: ``np.random.default_rng()``)
    """

    def __init__(
        self,
        generation_config: GenerationConfig,
        rng: np.random.Generator | None = None,
    ):
        self.generation_config = generation_config
        self.rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def sample(self, logits: Any, index: int = -1) -> list[tuple[int, float]]:
        """Select next tokens.

        Args:
            logits: Array or Tensor whose last dimension is the vocabulary
            index: Row of ``logits`` to use; -1 selects the last row

        Returns:
            List of (token_id, log_probability) pairs
        """
        raise NotImplementedError

    def get_logits(self, logits: Any, index: int = -1) -> np.ndarray:
        """Extract one vocabulary row and apply temperature."""
        if isinstance(logits, Tensor):
            logits = logits.numpy()
        logits = np.asarray(logits, dtype=np.float64)
        vocab_size = logits.shape[-1]
        flat = logits.reshape(-1)

        if index == -1:
            logs = flat[-vocab_size:]
        else:
            start = index * vocab_size
            logs = flat[start : start + vocab_size]

        temperature = self.generation_config.temperature
        if temperature > 0:
            logs = logs / temperature
        return logs

    def _top_k(self, vocab_size: int) -> int:
        k = vocab_size
        if self.generation_config.top_k > 0:
            k = min(self.generation_config.top_k, k)
        return k

    def random_select(self, probabilities: np.ndarray) -> int:
        """Roulette-wheel selection over (unnormalized) weights."""
        r = self.rng.random() * float(np.sum(probabilities))
        for i, p in enumerate(probabilities):
            r -= p
            if r <= 0:
                return i
        return 0

    @staticmethod
    def get_sampler(
        generation_config: GenerationConfig,
        rng: np.random.Generator | None = None,
    ) -> Sampler:
        """Pick the strategy for ``generation_config``.

        ``do_sample`` selects multinomial sampling, otherwise ``num_beams > 1``
        selects the beam sampler, otherwise greedy decoding is used.

        Raises:
            ConfigurationError: If greedy decoding is asked for more than
                one return sequence
        """
        if generation_config.do_sample:
            sampler: Sampler = MultinomialSampler(generation_config, rng)
        elif generation_config.num_beams > 1:
            sampler = BeamSearchSampler(generation_config, rng)
        else:
            if generation_config.num_return_sequences > 1:
                raise ConfigurationError(
                    "num_return_sequences has to be 1 when doing greedy search, "
                    f"but is {generation_config.num_return_sequences}."
                )
            sampler = GreedySampler(generation_config, rng)
        _logger.debug("Selected %s", type(sampler).__name__)
        return sampler


class GreedySampler(Sampler):
    """Always pick the highest-scoring token.

    The reported log-probability is a 0.0 placeholder.
    """

    def sample(self, logits: Any, index: int = -1) -> list[tuple[int, float]]:
        logs = self.get_logits(logits, index)
        return [(int(np.argmax(logs)), 0.0)]


class MultinomialSampler(Sampler):
    """Draw ``num_beams`` tokens at random from the top-k distribution."""

    def sample(self, logits: Any, index: int = -1) -> list[tuple[int, float]]:
        logs = self.get_logits(logits, index)
        top_ids, top_logits = get_top_items(logs, self._top_k(logs.shape[-1]))
        probabilities = softmax(top_logits)

        results = []
        for _ in range(self.generation_config.num_beams):
            sampled = self.random_select(probabilities)
            results.append((int(top_ids[sampled]), float(np.log(probabilities[sampled]))))
        return results


class BeamSearchSampler(Sampler):
    """Return the ``num_beams`` best tokens of the top-k distribution.

    This is a per-step top-k selection: it keeps no cumulative path score
    and no backpointers across steps.
    """

    def sample(self, logits: Any, index: int = -1) -> list[tuple[int, float]]:
        logs = self.get_logits(logits, index)
        top_ids, top_logits = get_top_items(logs, self._top_k(logs.shape[-1]))
        probabilities = softmax(top_logits)

        num_beams = min(self.generation_config.num_beams, len(top_ids))
        return [
            (int(top_ids[i]), float(np.log(probabilities[i]))) for i in range(num_beams)
        ]


__all__ = [
    "softmax",
    "get_top_items",
    "Sampler",
    "GreedySampler",
    "MultinomialSampler",
    "BeamSearchSampler",
]
