"""Pytest configuration and fixtures for mlx-asr tests."""

import numpy as np
import pytest

_TEST_SEED = 42


@pytest.fixture
def fixed_seed() -> int:
    """Fix the NumPy random seed."""
    np.random.seed(_TEST_SEED)
    return _TEST_SEED


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(_TEST_SEED)


@pytest.fixture
def random_audio():
    """One second of random 16kHz audio."""
    rng = np.random.default_rng(_TEST_SEED)
    return rng.standard_normal(16000).astype(np.float32)


@pytest.fixture
def sine_wave():
    """One second of a 1 kHz sine at 16kHz."""
    sr = 16000
    t = np.arange(sr) / sr
    return np.sin(2 * np.pi * 1000.0 * t).astype(np.float32)
