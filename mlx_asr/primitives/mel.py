"""
Mel-scale conversions and triangular mel filter banks.

Provides Hz <-> mel conversion under the "htk", "kaldi" and "slaney"
scales, and construction of mel filter bank matrices.

Note: everything here is NumPy float64. Filter banks are small, built once
per configuration and cached, so precision wins over device placement.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np

from mlx_asr.constants import (
    HTK_MEL_BASE,
    HTK_MEL_FACTOR,
    KALDI_MEL_FACTOR,
    SLANEY_F_SP,
    SLANEY_LOGSTEP,
    SLANEY_MIN_LOG_HZ,
    SLANEY_MIN_LOG_MEL,
)
from mlx_asr.exceptions import ConfigurationError

from ._validation import validate_non_negative, validate_positive

MEL_SCALES = ("htk", "kaldi", "slaney")
FILTER_NORMS = (None, "slaney")


def _htk_hertz_to_mel(freq: np.ndarray) -> np.ndarray:
    return HTK_MEL_FACTOR * np.log10(1.0 + freq / HTK_MEL_BASE)


def _kaldi_hertz_to_mel(freq: np.ndarray) -> np.ndarray:
    return KALDI_MEL_FACTOR * np.log(1.0 + freq / HTK_MEL_BASE)


def _slaney_hertz_to_mel(freq: np.ndarray) -> np.ndarray:
    # np.where evaluates both branches; the log branch is discarded below 1 kHz.
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(
            freq >= SLANEY_MIN_LOG_HZ,
            SLANEY_MIN_LOG_MEL + np.log(freq / SLANEY_MIN_LOG_HZ) / SLANEY_LOGSTEP,
            freq / SLANEY_F_SP,
        )


def _htk_mel_to_hertz(mels: np.ndarray) -> np.ndarray:
    return HTK_MEL_BASE * (10.0 ** (mels / HTK_MEL_FACTOR) - 1.0)


def _kaldi_mel_to_hertz(mels: np.ndarray) -> np.ndarray:
    return HTK_MEL_BASE * (np.exp(mels / KALDI_MEL_FACTOR) - 1.0)


def _slaney_mel_to_hertz(mels: np.ndarray) -> np.ndarray:
    return np.where(
        mels >= SLANEY_MIN_LOG_MEL,
        SLANEY_MIN_LOG_HZ * np.exp(SLANEY_LOGSTEP * (mels - SLANEY_MIN_LOG_MEL)),
        SLANEY_F_SP * mels,
    )


_HERTZ_TO_MEL = {
    "htk": _htk_hertz_to_mel,
    "kaldi": _kaldi_hertz_to_mel,
    "slaney": _slaney_hertz_to_mel,
}

_MEL_TO_HERTZ = {
    "htk": _htk_mel_to_hertz,
    "kaldi": _kaldi_mel_to_hertz,
    "slaney": _slaney_mel_to_hertz,
}


def _lookup_scale(table: dict, mel_scale: str):
    fn = table.get(mel_scale)
    if fn is None:
        raise ConfigurationError(
            f'mel_scale should be one of "htk", "slaney" or "kaldi", got {mel_scale!r}'
        )
    return fn


def hertz_to_mel(freq: float | np.ndarray, mel_scale: str = "htk") -> float | np.ndarray:
    """
    Convert frequencies from Hertz to the mel scale.

    Parameters
    ----------
    freq : float or array-like
        Frequency or frequencies in Hz.
    mel_scale : {"htk", "kaldi", "slaney"}, default="htk"
        Mel scale variant.

    Returns
    -------
    float or np.ndarray
        A float for scalar input, otherwise an array of the same shape.

    Raises
    ------
    ConfigurationError
        If ``mel_scale`` is not recognized.
    """
    fn = _lookup_scale(_HERTZ_TO_MEL, mel_scale)
    values = fn(np.asarray(freq, dtype=np.float64))
    return float(values) if values.ndim == 0 else values


def mel_to_hertz(mels: float | np.ndarray, mel_scale: str = "htk") -> float | np.ndarray:
    """
    Convert mel values back to Hertz. Exact inverse of :func:`hertz_to_mel`.

    Parameters
    ----------
    mels : float or array-like
        Value or values on the mel scale.
    mel_scale : {"htk", "kaldi", "slaney"}, default="htk"
        Mel scale variant.

    Returns
    -------
    float or np.ndarray
        A float for scalar input, otherwise an array of the same shape.
    """
    fn = _lookup_scale(_MEL_TO_HERTZ, mel_scale)
    values = fn(np.asarray(mels, dtype=np.float64))
    return float(values) if values.ndim == 0 else values


def _create_triangular_filter_bank(
    fft_freqs: np.ndarray, filter_freqs: np.ndarray
) -> np.ndarray:
    """
    Build unit-peak overlapping triangles.

    ``filter_freqs`` holds ``n + 2`` edges; filter ``i`` rises from edge ``i``
    to edge ``i + 1`` and falls back to zero at edge ``i + 2``.
    """
    filter_diff = np.diff(filter_freqs)
    # slopes[i, j] = edge_i - bin_j, shape (n_edges, n_bins)
    slopes = filter_freqs[:, np.newaxis] - fft_freqs[np.newaxis, :]
    down_slopes = -slopes[:-2] / filter_diff[:-1, np.newaxis]
    up_slopes = slopes[2:] / filter_diff[1:, np.newaxis]
    return np.maximum(0.0, np.minimum(down_slopes, up_slopes))


@lru_cache(maxsize=32)
def _build_filter_bank_cached(
    num_frequency_bins: int,
    num_mel_filters: int,
    min_frequency: float,
    max_frequency: float,
    sampling_rate: int,
    norm: str | None,
    mel_scale: str,
    triangularize_in_mel_space: bool,
) -> np.ndarray:
    mel_min = hertz_to_mel(min_frequency, mel_scale)
    mel_max = hertz_to_mel(max_frequency, mel_scale)
    mel_freqs = np.linspace(mel_min, mel_max, num_mel_filters + 2)

    if triangularize_in_mel_space:
        # Bin centres are mapped onto the mel axis; edges stay in mel space.
        fft_bin_width = sampling_rate / (num_frequency_bins * 2)
        fft_freqs = hertz_to_mel(
            np.arange(num_frequency_bins, dtype=np.float64) * fft_bin_width, mel_scale
        )
        filter_freqs = mel_freqs
    else:
        fft_freqs = np.linspace(0, sampling_rate // 2, num_frequency_bins)
        filter_freqs = mel_to_hertz(mel_freqs, mel_scale)

    mel_filters = _create_triangular_filter_bank(fft_freqs, filter_freqs)

    if norm == "slaney":
        # Area normalization: each triangle integrates to a constant.
        enorm = 2.0 / (filter_freqs[2 : num_mel_filters + 2] - filter_freqs[:num_mel_filters])
        mel_filters *= enorm[:, np.newaxis]

    mel_filters.setflags(write=False)
    return mel_filters


def build_filter_bank(
    num_frequency_bins: int,
    num_mel_filters: int,
    min_frequency: float,
    max_frequency: float,
    sampling_rate: int,
    norm: str | None = None,
    mel_scale: str = "htk",
    triangularize_in_mel_space: bool = False,
) -> np.ndarray:
    """
    Create a triangular mel filter bank matrix.

    Results are cached per configuration; the returned array is read-only
    and shared between callers with identical arguments.

    Parameters
    ----------
    num_frequency_bins : int
        Number of FFT bins the filters cover (``n_fft // 2 + 1`` one-sided).
    num_mel_filters : int
        Number of mel filters (rows).
    min_frequency : float
        Lowest frequency of interest in Hz.
    max_frequency : float
        Highest frequency of interest in Hz.
    sampling_rate : int
        Sample rate of the audio the filters will be applied to.
    norm : {None, "slaney"}, default=None
        ``"slaney"`` divides each triangle by its bandwidth.
    mel_scale : {"htk", "kaldi", "slaney"}, default="htk"
        Mel scale used to space the filter edges.
    triangularize_in_mel_space : bool, default=False
        Build the triangles on the mel axis instead of the Hz axis.

    Returns
    -------
    np.ndarray
        Filter bank of shape ``(num_mel_filters, num_frequency_bins)``.

    Raises
    ------
    ConfigurationError
        If ``norm`` or ``mel_scale`` is not recognized, or the bin/filter
        counts or frequency bounds are invalid.

    Examples
    --------
    >>> fb = build_filter_bank(201, 80, 0.0, 8000.0, 16000, "slaney", "slaney")
    >>> fb.shape
    (80, 201)
    """
    if norm not in FILTER_NORMS:
        raise ConfigurationError(f'norm must be one of None or "slaney", got {norm!r}')
    if mel_scale not in MEL_SCALES:
        raise ConfigurationError(
            f'mel_scale should be one of "htk", "slaney" or "kaldi", got {mel_scale!r}'
        )
    validate_positive(num_frequency_bins, "num_frequency_bins")
    validate_positive(num_mel_filters, "num_mel_filters")
    validate_positive(sampling_rate, "sampling_rate")
    validate_non_negative(min_frequency, "min_frequency")
    if min_frequency >= max_frequency:
        raise ConfigurationError(
            f"min_frequency ({min_frequency}) must be less than max_frequency ({max_frequency})"
        )

    return _build_filter_bank_cached(
        int(num_frequency_bins),
        int(num_mel_filters),
        float(min_frequency),
        float(max_frequency),
        int(sampling_rate),
        norm,
        mel_scale,
        bool(triangularize_in_mel_space),
    )


__all__ = [
    "MEL_SCALES",
    "hertz_to_mel",
    "mel_to_hertz",
    "build_filter_bank",
]
