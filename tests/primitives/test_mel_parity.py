"""Parity tests for mel filter banks against librosa."""

import numpy as np
import pytest

librosa = pytest.importorskip("librosa")

from mlx_asr.primitives import build_filter_bank, hertz_to_mel, mel_to_hertz


class TestFilterBankParity:
    """build_filter_bank vs librosa.filters.mel."""

    @pytest.mark.parametrize("n_fft,n_mels", [(400, 80), (400, 128), (2048, 64)])
    def test_slaney_bank_matches_librosa(self, n_fft, n_mels):
        """Slaney scale + slaney norm is librosa's default bank."""
        sr = 16000
        ours = build_filter_bank(n_fft // 2 + 1, n_mels, 0.0, 8000.0, sr, "slaney", "slaney")
        ref = librosa.filters.mel(sr=sr, n_fft=n_fft, n_mels=n_mels, fmin=0.0, fmax=8000.0)
        np.testing.assert_allclose(ours, ref, rtol=1e-4, atol=1e-7)

    def test_htk_bank_matches_librosa(self):
        """HTK scale without normalization."""
        sr = 16000
        ours = build_filter_bank(257, 40, 0.0, 8000.0, sr, None, "htk")
        ref = librosa.filters.mel(sr=sr, n_fft=512, n_mels=40, fmin=0.0, fmax=8000.0, htk=True, norm=None)
        np.testing.assert_allclose(ours, ref, rtol=1e-4, atol=1e-6)


class TestScaleParity:
    """Scale conversions vs librosa."""

    def test_slaney_hz_to_mel(self):
        freqs = np.array([50.0, 500.0, 1000.0, 4000.0, 8000.0])
        np.testing.assert_allclose(hertz_to_mel(freqs, "slaney"), librosa.hz_to_mel(freqs), rtol=1e-9)

    def test_htk_mel_to_hz(self):
        mels = np.array([10.0, 500.0, 2000.0])
        np.testing.assert_allclose(mel_to_hertz(mels, "htk"), librosa.mel_to_hz(mels, htk=True), rtol=1e-9)
