"""Tests for GenerationConfig."""

import dataclasses

import numpy as np
import pytest

from mlx_asr.exceptions import ConfigurationError
from mlx_asr.generation import GenerationConfig


class TestDefaults:
    """Default hyper-parameters."""

    def test_length_defaults(self):
        config = GenerationConfig()
        assert config.max_length == 21
        assert config.max_new_tokens is None
        assert config.min_length == 0
        assert config.early_stopping is False

    def test_strategy_defaults(self):
        config = GenerationConfig()
        assert config.do_sample is False
        assert config.num_beams == 1
        assert config.num_return_sequences == 1
        assert config.temperature == 1.0
        assert config.top_k == 48
        assert config.top_p == 1.0
        assert config.repetition_penalty == 1.0
        assert config.no_repeat_ngram_size == 0

    def test_token_defaults(self):
        config = GenerationConfig()
        assert config.eos_token_id is None
        assert config.eos_token_ids == []
        assert config.suppress_tokens is None
        assert config.forced_decoder_ids is None
        assert config.return_timestamps is False


class TestNormalization:
    """Sequence-valued options are stored as tuples."""

    def test_token_lists(self):
        config = GenerationConfig(suppress_tokens=[1, 2], begin_suppress_tokens=[220, 50256])
        assert config.suppress_tokens == (1, 2)
        assert config.begin_suppress_tokens == (220, 50256)

    def test_nested_lists(self):
        config = GenerationConfig(
            bad_words_ids=[[1, 2], [3]], forced_decoder_ids=[[1, 50259], [2, 50359]]
        )
        assert config.bad_words_ids == ((1, 2), (3,))
        assert config.forced_decoder_ids == ((1, 50259), (2, 50359))

    def test_eos_forms(self):
        assert GenerationConfig(eos_token_id=2).eos_token_ids == [2]
        config = GenerationConfig(eos_token_id=[2, 3])
        assert config.eos_token_id == (2, 3)
        assert config.eos_token_ids == [2, 3]

    def test_numpy_token_ids(self, tmp_path):
        """Ids taken straight from NumPy arrays are stored as plain ints."""
        config = GenerationConfig(
            eos_token_id=np.int64(2),
            decoder_start_token_id=np.int32(0),
            suppress_tokens=np.array([1, 3]),
        )
        assert config.eos_token_id == 2
        assert type(config.eos_token_id) is int
        assert config.eos_token_ids == [2]
        assert type(config.decoder_start_token_id) is int
        assert config.suppress_tokens == (1, 3)

        path = tmp_path / "generation_config.json"
        config.to_json(path)
        assert GenerationConfig.from_json(path) == config

    def test_numpy_eos_list(self):
        config = GenerationConfig(eos_token_id=np.array([2, 5]))
        assert config.eos_token_id == (2, 5)

    def test_hashable(self):
        config = GenerationConfig(suppress_tokens=[1, 2])
        assert hash(config) == hash(GenerationConfig(suppress_tokens=(1, 2)))


class TestValidation:
    """Invalid values raise ConfigurationError."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_length": 0},
            {"max_new_tokens": -1},
            {"min_length": -1},
            {"min_new_tokens": -2},
            {"max_time": 0.0},
            {"num_beams": 0},
            {"num_return_sequences": 0},
            {"temperature": -0.5},
            {"top_k": -1},
            {"repetition_penalty": 0.0},
            {"no_repeat_ngram_size": -1},
            {"vocab_size": 0},
        ],
    )
    def test_rejected(self, kwargs):
        with pytest.raises(ConfigurationError, match=next(iter(kwargs))):
            GenerationConfig(**kwargs)

    def test_zero_temperature_allowed(self):
        assert GenerationConfig(temperature=0.0).temperature == 0.0


class TestSerialization:
    """Dict/JSON conversion and copying."""

    def test_immutable(self):
        config = GenerationConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.num_beams = 4

    def test_replace(self):
        config = GenerationConfig(num_beams=2)
        updated = config.replace(num_beams=4, suppress_tokens=[7])
        assert config.num_beams == 2
        assert updated.num_beams == 4
        assert updated.suppress_tokens == (7,)

    def test_replace_validates(self):
        with pytest.raises(ConfigurationError):
            GenerationConfig().replace(num_beams=0)

    def test_from_dict_ignores_unknown(self):
        config = GenerationConfig.from_dict(
            {"max_length": 448, "eos_token_id": 50257, "transformers_version": "4.27.0"}
        )
        assert config.max_length == 448
        assert config.eos_token_ids == [50257]

    def test_json_round_trip(self, tmp_path):
        config = GenerationConfig(
            max_length=448,
            eos_token_id=[50257],
            suppress_tokens=[1, 2, 7],
            forced_decoder_ids=[[1, 50259], [2, 50359]],
            no_timestamps_token_id=50363,
        )
        path = tmp_path / "generation_config.json"
        config.to_json(path)
        assert GenerationConfig.from_json(path) == config
