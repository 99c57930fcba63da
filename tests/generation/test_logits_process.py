"""Tests for the logits processors and the processor pipeline."""

import logging

import numpy as np
import pytest

from mlx_asr.exceptions import ConfigurationError, ShapeError
from mlx_asr.generation import (
    ForcedBOSTokenLogitsProcessor,
    ForcedEOSTokenLogitsProcessor,
    ForceTokensLogitsProcessor,
    GenerationConfig,
    LogitsProcessorList,
    MinLengthLogitsProcessor,
    MinNewTokensLengthLogitsProcessor,
    NoBadWordsLogitsProcessor,
    NoRepeatNGramLogitsProcessor,
    RepetitionPenaltyLogitsProcessor,
    SuppressTokensAtBeginLogitsProcessor,
    SuppressTokensLogitsProcessor,
    WhisperTimeStampLogitsProcessor,
    build_logits_processor,
)
from mlx_asr.generation.logits_process import log_softmax, logsumexp


def _banned(logits):
    return set(np.flatnonzero(np.isneginf(logits)).tolist())


class TestMath:
    """Tests for logsumexp / log_softmax."""

    def test_logsumexp(self):
        assert logsumexp(np.log(np.array([1.0, 2.0, 3.0]))) == pytest.approx(np.log(6.0))

    def test_logsumexp_all_neg_inf(self):
        assert logsumexp(np.full(3, -np.inf)) == -np.inf

    def test_log_softmax_normalized(self):
        out = log_softmax(np.array([1.0, 2.0, -np.inf]))
        assert np.exp(out).sum() == pytest.approx(1.0)
        assert out[2] == -np.inf


class TestForceTokens:
    """Tests for ForceTokensLogitsProcessor."""

    def test_forces_at_position(self):
        proc = ForceTokensLogitsProcessor([(1, 3), (2, 4)])
        logits = proc.apply([0], np.zeros(6))
        assert logits[3] == 0
        assert _banned(logits) == {0, 1, 2, 4, 5}

    def test_other_positions_untouched(self):
        proc = ForceTokensLogitsProcessor([(1, 3)])
        logits = proc.apply([0, 3], np.ones(6))
        np.testing.assert_array_equal(logits, np.ones(6))

    def test_returns_same_array(self):
        logits = np.zeros(4)
        assert ForceTokensLogitsProcessor(None).apply([0], logits) is logits


class TestForcedBOSAndEOS:
    """Tests for the forced BOS/EOS processors."""

    def test_bos_forced_on_first_step(self):
        logits = ForcedBOSTokenLogitsProcessor(2).apply([0], np.ones(5))
        assert logits[2] == 0
        assert _banned(logits) == {0, 1, 3, 4}

    def test_bos_ignored_later(self):
        logits = ForcedBOSTokenLogitsProcessor(2).apply([0, 1], np.ones(5))
        np.testing.assert_array_equal(logits, np.ones(5))

    def test_eos_is_noop_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mlx_asr.generation.logits_process"):
            proc = ForcedEOSTokenLogitsProcessor(5, 2)
        assert "ignored" in caplog.text
        logits = proc.apply([0, 1, 2, 3, 4], np.ones(5))
        np.testing.assert_array_equal(logits, np.ones(5))


class TestSuppressTokens:
    """Tests for the suppression processors."""

    def test_suppress_every_step(self):
        proc = SuppressTokensLogitsProcessor([1, 3])
        for history in ([0], [0, 2], [0, 2, 4]):
            assert _banned(proc.apply(history, np.zeros(5))) == {1, 3}

    def test_suppress_at_begin_only(self):
        proc = SuppressTokensAtBeginLogitsProcessor([4], begin_index=2)
        assert _banned(proc.apply([0, 1], np.zeros(5))) == {4}
        assert _banned(proc.apply([0], np.zeros(5))) == set()
        assert _banned(proc.apply([0, 1, 2], np.zeros(5))) == set()


class TestRepetitionPenalty:
    """Tests for RepetitionPenaltyLogitsProcessor."""

    def test_penalty(self):
        proc = RepetitionPenaltyLogitsProcessor(1.2)
        logits = proc.apply([0, 1, 0], np.array([-1.0, 1.0, 2.0]))
        np.testing.assert_allclose(logits, [-1.2, 1.0 / 1.2, 2.0])

    def test_repeated_token_penalized_once(self):
        logits = RepetitionPenaltyLogitsProcessor(2.0).apply([1, 1, 1], np.array([0.0, 4.0]))
        np.testing.assert_allclose(logits, [0.0, 2.0])

    def test_empty_history(self):
        logits = RepetitionPenaltyLogitsProcessor(2.0).apply([], np.array([1.0, -1.0]))
        np.testing.assert_array_equal(logits, [1.0, -1.0])

    @pytest.mark.parametrize("penalty", [0.0, -1.0])
    def test_invalid_penalty(self, penalty):
        with pytest.raises(ConfigurationError):
            RepetitionPenaltyLogitsProcessor(penalty)


class TestNoRepeatNGram:
    """Tests for NoRepeatNGramLogitsProcessor."""

    def test_bigram_after_prefix(self):
        """History [5, 9, 5]: the bigram (5, 9) exists, so 9 is banned."""
        proc = NoRepeatNGramLogitsProcessor(2)
        assert _banned(proc.apply([5, 9, 5], np.zeros(12))) == {9}

    def test_bigram_other_prefix(self):
        """History [5, 9, 5, 9]: the bigram (9, 5) exists, so 5 is banned."""
        proc = NoRepeatNGramLogitsProcessor(2)
        assert _banned(proc.apply([5, 9, 5, 9], np.zeros(12))) == {5}

    def test_trigram(self):
        proc = NoRepeatNGramLogitsProcessor(3)
        assert _banned(proc.apply([1, 2, 3, 1, 2], np.zeros(5))) == {3}

    def test_short_history(self):
        proc = NoRepeatNGramLogitsProcessor(3)
        assert _banned(proc.apply([1], np.zeros(5))) == set()

    def test_unigram_bans_all_seen(self):
        proc = NoRepeatNGramLogitsProcessor(1)
        assert _banned(proc.apply([1, 3], np.zeros(5))) == {1, 3}

    def test_get_ngrams(self):
        ngrams = NoRepeatNGramLogitsProcessor(2).get_ngrams([5, 9, 5, 7])
        assert dict(ngrams) == {(5,): [9, 7], (9,): [5]}

    def test_invalid_size(self):
        with pytest.raises(ConfigurationError):
            NoRepeatNGramLogitsProcessor(0)


class TestMinLength:
    """Tests for the minimum-length processors."""

    def test_min_length(self):
        proc = MinLengthLogitsProcessor(3, 2)
        assert _banned(proc.apply([0, 1], np.zeros(5))) == {2}
        assert _banned(proc.apply([0, 1, 4], np.zeros(5))) == set()

    def test_multiple_eos(self):
        proc = MinLengthLogitsProcessor(3, [2, 4])
        assert _banned(proc.apply([0], np.zeros(5))) == {2, 4}

    def test_min_new_tokens(self):
        proc = MinNewTokensLengthLogitsProcessor(2, 2, 3)
        assert _banned(proc.apply([0, 1], np.zeros(5))) == {3}
        assert _banned(proc.apply([0, 1, 4], np.zeros(5))) == {3}
        assert _banned(proc.apply([0, 1, 4, 4], np.zeros(5))) == set()


class TestNoBadWords:
    """Tests for NoBadWordsLogitsProcessor."""

    def test_single_token_always_banned(self):
        proc = NoBadWordsLogitsProcessor([[3]], eos_token_id=2)
        assert _banned(proc.apply([0], np.zeros(6))) == {3}

    def test_phrase_completion_banned(self):
        proc = NoBadWordsLogitsProcessor([[1, 4], [0, 1, 5]], eos_token_id=2)
        assert _banned(proc.apply([0, 1], np.zeros(6))) == {4, 5}
        assert _banned(proc.apply([3, 1], np.zeros(6))) == {4}
        assert _banned(proc.apply([1, 3], np.zeros(6))) == set()

    def test_eos_phrase_ignored(self):
        proc = NoBadWordsLogitsProcessor([[2], [3]], eos_token_id=2)
        assert proc.bad_words_ids == [[3]]
        assert _banned(proc.apply([0], np.zeros(6))) == {3}


class TestWhisperTimeStamp:
    """Tests for WhisperTimeStampLogitsProcessor.

    Vocabulary of 10: 5 = EOT, 6 = <|notimestamps|>, 7-9 = timestamps.
    """

    @pytest.fixture
    def proc(self):
        config = GenerationConfig(eos_token_id=5, no_timestamps_token_id=6)
        return WhisperTimeStampLogitsProcessor(config)

    def test_begin_index(self, proc):
        assert proc.timestamp_begin == 7
        assert proc.begin_index == 2

    def test_begin_index_with_forced_ids(self):
        config = GenerationConfig(
            eos_token_id=5, no_timestamps_token_id=6, forced_decoder_ids=[[1, 3], [2, 6]]
        )
        assert WhisperTimeStampLogitsProcessor(config).begin_index == 3

    def test_first_token_forced_to_zero_timestamp(self, proc):
        logits = proc.apply([0], np.zeros(10))
        assert logits[7] == 0
        assert _banned(logits) == set(range(10)) - {7}

    def test_no_timestamps_suppressed(self, proc):
        logits = np.zeros(10)
        logits[1] = 10.0
        proc.apply([0, 7, 1, 2], logits)
        assert _banned(logits) == {6}

    def test_after_lone_timestamp(self, proc):
        """A lone timestamp must be followed by another timestamp or EOT."""
        logits = np.zeros(10)
        logits[5] = 5.0
        proc.apply([0, 7, 1, 8], logits)
        assert _banned(logits) == {0, 1, 2, 3, 4, 6}

    def test_after_timestamp_pair(self, proc):
        """A timestamp pair must be followed by text."""
        logits = proc.apply([0, 7, 1, 8, 9], np.zeros(10))
        assert _banned(logits) == {6, 7, 8, 9}

    def test_max_initial_timestamp(self):
        config = GenerationConfig(
            eos_token_id=5, no_timestamps_token_id=6, max_initial_timestamp_index=1
        )
        proc = WhisperTimeStampLogitsProcessor(config)
        logits = np.zeros(10)
        logits[1] = 10.0
        proc.apply([0, 7], logits)
        assert 9 in _banned(logits)
        assert 8 not in _banned(logits)

    def test_timestamps_forced_when_more_likely(self, proc):
        """Three equally likely timestamps outweigh any single text token."""
        logits = proc.apply([0, 7, 1, 2], np.zeros(10))
        assert _banned(logits) == {0, 1, 2, 3, 4, 5, 6}

    def test_requires_no_timestamps_token(self):
        with pytest.raises(ConfigurationError, match="no_timestamps_token_id"):
            WhisperTimeStampLogitsProcessor(GenerationConfig(eos_token_id=5))

    def test_requires_eos(self):
        with pytest.raises(ConfigurationError, match="eos_token_id"):
            WhisperTimeStampLogitsProcessor(GenerationConfig(no_timestamps_token_id=6))


class TestLogitsProcessorList:
    """Tests for the processor pipeline."""

    def test_runs_in_order(self):
        processors = LogitsProcessorList()
        processors.push(SuppressTokensLogitsProcessor([1]))
        processors.push(ForceTokensLogitsProcessor([(1, 1)]))
        logits = processors.apply([0], np.zeros(4))
        # Forcing runs last and wins over the earlier suppression
        assert logits[1] == 0

    def test_per_beam(self):
        processors = LogitsProcessorList([ForcedBOSTokenLogitsProcessor(3)])
        logits = np.zeros((2, 5))
        out = processors.apply([[0], [0, 1]], logits)
        assert out is logits
        assert _banned(logits[0]) == {0, 1, 2, 4}
        assert _banned(logits[1]) == set()

    def test_beam_count_mismatch(self):
        processors = LogitsProcessorList([SuppressTokensLogitsProcessor([0])])
        with pytest.raises(ShapeError):
            processors.apply([[0]], np.zeros((2, 3)))

    def test_container(self):
        processors = LogitsProcessorList()
        processors.extend([SuppressTokensLogitsProcessor([0]), MinLengthLogitsProcessor(2, 1)])
        assert len(processors) == 2
        assert [type(p).__name__ for p in processors] == [
            "SuppressTokensLogitsProcessor",
            "MinLengthLogitsProcessor",
        ]
        assert "MinLengthLogitsProcessor" in repr(processors)


class TestBuildLogitsProcessor:
    """Tests for build_logits_processor."""

    def test_default_is_empty(self):
        assert len(build_logits_processor(GenerationConfig(), 1)) == 0

    def test_order(self):
        config = GenerationConfig(
            repetition_penalty=1.1,
            no_repeat_ngram_size=3,
            bad_words_ids=[[4]],
            min_length=2,
            min_new_tokens=1,
            eos_token_id=2,
            suppress_tokens=[5],
            begin_suppress_tokens=[2],
            forced_decoder_ids=[[1, 7]],
            no_timestamps_token_id=8,
            return_timestamps=True,
        )
        names = [type(p).__name__ for p in build_logits_processor(config, 1)]
        assert names == [
            "RepetitionPenaltyLogitsProcessor",
            "NoRepeatNGramLogitsProcessor",
            "NoBadWordsLogitsProcessor",
            "MinLengthLogitsProcessor",
            "MinNewTokensLengthLogitsProcessor",
            "SuppressTokensLogitsProcessor",
            "SuppressTokensAtBeginLogitsProcessor",
            "ForceTokensLogitsProcessor",
            "WhisperTimeStampLogitsProcessor",
        ]

    def test_min_length_needs_eos(self):
        assert len(build_logits_processor(GenerationConfig(min_length=5), 1)) == 0

    def test_begin_suppress_index(self):
        config = GenerationConfig(
            begin_suppress_tokens=[2], forced_bos_token_id=3, forced_decoder_ids=[[1, 7]]
        )
        processors = list(build_logits_processor(config, 1))
        begin = next(p for p in processors if isinstance(p, SuppressTokensAtBeginLogitsProcessor))
        # prompt of 1, +1 for the forced BOS, +1 for the last forced position
        assert begin.begin_index == 3
