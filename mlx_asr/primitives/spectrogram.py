"""
Spectrogram and log-mel spectrogram computation.

Frames a waveform, windows each frame, runs a real FFT, projects the power
spectrum onto a filter bank and optionally applies log or decibel scaling.
"""

from __future__ import annotations

import logging

import numpy as np

from mlx_asr.constants import DEFAULT_AMPLITUDE_MIN, DEFAULT_MEL_FLOOR, DEFAULT_POWER_MIN
from mlx_asr.exceptions import ConfigurationError, ShapeError
from mlx_asr.types.tensor import Tensor

from ._frame_impl import frame_signal
from ._validation import validate_choice, validate_positive

_logger = logging.getLogger(__name__)

PAD_MODES = ("reflect",)
LOG_MEL_MODES = (None, "log", "log10", "dB")


def pad_reflect(waveform: np.ndarray, left: int, right: int) -> np.ndarray:
    """
    Mirror-pad a 1-D signal without repeating the edge sample.

    ``[1, 2, 3, 4]`` padded by 2 on each side gives
    ``[3, 2, 1, 2, 3, 4, 3, 2]``. Padding wider than the signal keeps
    bouncing between the two ends.
    """
    return np.pad(waveform, (left, right), mode="reflect")


def _validate_db_args(reference: float, min_value: float, db_range: float | None) -> None:
    if reference <= 0:
        raise ConfigurationError("reference must be greater than zero")
    if min_value <= 0:
        raise ConfigurationError("min_value must be greater than zero")
    if db_range is not None and db_range <= 0:
        raise ConfigurationError("db_range must be greater than zero")


def _db_conversion_helper(
    spectrogram: np.ndarray,
    factor: float,
    reference: float,
    min_value: float,
    db_range: float | None,
) -> np.ndarray:
    _validate_db_args(reference, min_value, db_range)

    reference = max(min_value, reference)
    spectrogram = factor * (
        np.log10(np.maximum(min_value, spectrogram)) - np.log10(reference)
    )

    if db_range is not None:
        spectrogram = np.maximum(spectrogram, spectrogram.max() - db_range)
    return spectrogram


def amplitude_to_db(
    spectrogram: np.ndarray,
    reference: float = 1.0,
    min_value: float = DEFAULT_AMPLITUDE_MIN,
    db_range: float | None = None,
) -> np.ndarray:
    """
    Convert an amplitude spectrogram to decibels (``20 * log10``).

    Parameters
    ----------
    spectrogram : np.ndarray
        Amplitude values.
    reference : float, default=1.0
        Value mapped to 0 dB. Raised to ``min_value`` if smaller.
    min_value : float, default=1e-5
        Floor applied before taking the logarithm.
    db_range : float, optional
        Clamp every value to at least ``max - db_range``.

    Returns
    -------
    np.ndarray
        Spectrogram in dB.

    Raises
    ------
    ConfigurationError
        If ``reference``, ``min_value`` or ``db_range`` is not positive.
    """
    return _db_conversion_helper(
        np.asarray(spectrogram, dtype=np.float64), 20.0, reference, min_value, db_range
    )


def power_to_db(
    spectrogram: np.ndarray,
    reference: float = 1.0,
    min_value: float = DEFAULT_POWER_MIN,
    db_range: float | None = None,
) -> np.ndarray:
    """
    Convert a power spectrogram to decibels (``10 * log10``).

    Same parameters as :func:`amplitude_to_db`, with ``min_value``
    defaulting to 1e-10.
    """
    return _db_conversion_helper(
        np.asarray(spectrogram, dtype=np.float64), 10.0, reference, min_value, db_range
    )


def _apply_log_mel(
    mel_spec: np.ndarray,
    log_mel: str,
    power: float,
    reference: float,
    min_value: float,
    db_range: float | None,
) -> np.ndarray:
    if log_mel == "log":
        return np.log(mel_spec)
    if log_mel == "log10":
        return np.log10(mel_spec)
    # dB
    if power == 1.0:
        return amplitude_to_db(mel_spec, reference, min_value, db_range)
    return power_to_db(mel_spec, reference, min_value, db_range)


def compute_spectrogram(
    waveform: np.ndarray,
    window: np.ndarray,
    frame_length: int,
    hop_length: int,
    *,
    fft_length: int | None = None,
    power: float | None = 1.0,
    center: bool = True,
    pad_mode: str = "reflect",
    onesided: bool = True,
    preemphasis: float | None = None,
    filter_bank: np.ndarray | None = None,
    mel_floor: float = DEFAULT_MEL_FLOOR,
    log_mel: str | None = None,
    reference: float = 1.0,
    min_value: float = DEFAULT_POWER_MIN,
    db_range: float | None = None,
    remove_dc_offset: bool = False,
    max_num_frames: int | None = None,
    do_pad: bool = True,
    transpose: bool = False,
) -> Tensor:
    """
    Compute a (mel) spectrogram of a mono waveform.

    Parameters
    ----------
    waveform : np.ndarray
        Mono PCM samples, shape (samples,).
    window : np.ndarray
        Window coefficients; length must equal ``frame_length``.
    frame_length : int
        Samples per analysis frame.
    hop_length : int
        Samples between consecutive frame starts.
    fft_length : int, optional
        FFT size; frames are zero-padded up to it. Default: ``frame_length``.
    power : float or None, default=1.0
        Spectrum exponent control. When not None and not 2, each power value
        is raised to ``2 / power``. None skips the exponent and log scaling.
    center : bool, default=True
        Reflect-pad ``(fft_length - 1) // 2 + 1`` samples on both sides.
    pad_mode : str, default="reflect"
        Padding mode when ``center`` is set; only "reflect" is implemented.
    onesided : bool, default=True
        Keep ``fft_length // 2 + 1`` bins instead of all ``fft_length``.
    preemphasis : float, optional
        First-order pre-emphasis coefficient applied per frame.
    filter_bank : np.ndarray, optional
        Matrix of shape (n_filters, n_bins). Default: identity, which
        returns the (power) spectrum itself.
    mel_floor : float, default=1e-10
        Minimum value of every projected bin.
    log_mel : {None, "log", "log10", "dB"}, default=None
        Log scaling applied after projection.
    reference, min_value, db_range : float
        dB conversion parameters (see :func:`power_to_db`).
    remove_dc_offset : bool, default=False
        Subtract each frame's mean before windowing.
    max_num_frames : int, optional
        Cap on the number of frames. A larger value pads the output with
        zero frames when ``do_pad`` is set. With ``log_mel="dB"`` the padded
        frames are floored to ``min_value`` before conversion and take part
        in the ``db_range`` clamp.
    do_pad : bool, default=True
        Whether ``max_num_frames`` may grow the output.
    transpose : bool, default=False
        Return ``[frames, filters]`` instead of ``[filters, frames]``.

    Returns
    -------
    Tensor
        float32 spectrogram with ``dims`` ``[n_filters, n_frames]``
        (or transposed).

    Raises
    ------
    ConfigurationError
        On any invalid argument; raised before any FFT work is done.
    ShapeError
        If ``filter_bank`` does not cover the produced frequency bins.

    Examples
    --------
    >>> window = generate_window(400, "hann")
    >>> fb = build_filter_bank(201, 80, 0.0, 8000.0, 16000, "slaney", "slaney")
    >>> spec = compute_spectrogram(audio, window, 400, 160, power=2.0,
    ...                            filter_bank=fb, log_mel="log10")
    >>> spec.dims
    [80, 101]
    """
    waveform = np.asarray(waveform, dtype=np.float64)
    window = np.asarray(window, dtype=np.float64)

    if fft_length is None:
        fft_length = frame_length
    if frame_length > fft_length:
        raise ConfigurationError(
            f"frame_length ({frame_length}) may not be larger than fft_length ({fft_length})"
        )
    if window.shape[0] != frame_length:
        raise ConfigurationError(
            f"Length of the window ({window.shape[0]}) must equal frame_length ({frame_length})"
        )
    validate_positive(hop_length, "hop_length")
    if max_num_frames is not None:
        validate_positive(max_num_frames, "max_num_frames")
    if power is None and filter_bank is not None:
        raise ConfigurationError(
            "filter_bank was provided but power is None. Mel spectrogram "
            "computation is not supported for complex-valued spectrograms; "
            "specify power to fix this."
        )
    if center:
        validate_choice(pad_mode, "pad_mode", PAD_MODES)
    validate_choice(log_mel, "log_mel", LOG_MEL_MODES)
    if power is not None and log_mel == "dB":
        if power not in (1.0, 2.0):
            raise ConfigurationError(f"Cannot use log_mel option 'dB' with power {power}")
        _validate_db_args(reference, min_value, db_range)

    num_frequency_bins = fft_length // 2 + 1 if onesided else fft_length
    if filter_bank is not None:
        filter_bank = np.asarray(filter_bank, dtype=np.float64)
        if filter_bank.ndim != 2 or filter_bank.shape[1] != num_frequency_bins:
            raise ShapeError(
                f"filter_bank must have shape (n_filters, {num_frequency_bins}), "
                f"got {filter_bank.shape}"
            )

    if center:
        half_window = (fft_length - 1) // 2 + 1
        waveform = pad_reflect(waveform, half_window, half_window)

    if waveform.shape[0] < frame_length:
        raise ConfigurationError(
            f"Waveform length ({waveform.shape[0]}) must be >= frame_length ({frame_length})"
        )
    num_frames = 1 + (waveform.shape[0] - frame_length) // hop_length

    # n_computed frames get an FFT; n_output frames are allocated.
    n_computed = n_output = num_frames
    if max_num_frames is not None:
        if max_num_frames > num_frames:
            if do_pad:
                n_output = max_num_frames
        else:
            n_computed = n_output = max_num_frames

    frames = np.zeros((n_computed, fft_length), dtype=np.float64)
    frames[:, :frame_length] = frame_signal(waveform, frame_length, hop_length, n_computed)
    segment = frames[:, :frame_length]

    if remove_dc_offset:
        segment -= segment.mean(axis=1, keepdims=True)

    if preemphasis is not None:
        # RHS is evaluated first, so every x[n - 1] is the unfiltered sample.
        segment[:, 1:] -= preemphasis * segment[:, :-1]
        segment[:, 0] *= 1 - preemphasis

    segment *= window

    if onesided:
        spectrum = np.fft.rfft(frames, n=fft_length, axis=-1)
    else:
        spectrum = np.fft.fft(frames, n=fft_length, axis=-1)
    magnitudes = spectrum.real**2 + spectrum.imag**2

    if power is not None and power != 2:
        magnitudes = magnitudes ** (2 / power)

    if filter_bank is None:
        projected = magnitudes.T
    else:
        projected = filter_bank @ magnitudes.T
    projected = np.maximum(mel_floor, projected)

    num_filters = projected.shape[0]
    mel_spec = np.zeros((num_filters, n_output), dtype=np.float64)
    mel_spec[:, :n_computed] = projected
    if n_output > n_computed:
        _logger.debug("Padded spectrogram from %d to %d frames", n_computed, n_output)

    if power is not None and log_mel is not None:
        if log_mel == "dB":
            # Padded frames are floored to min_value and count toward db_range.
            mel_spec = _apply_log_mel(mel_spec, log_mel, power, reference, min_value, db_range)
        else:
            mel_spec[:, :n_computed] = _apply_log_mel(
                projected, log_mel, power, reference, min_value, db_range
            )

    mel_spec = mel_spec.astype(np.float32)
    if transpose:
        return Tensor(mel_spec.T.copy(), [n_output, num_filters])
    return Tensor(mel_spec, [num_filters, n_output])


__all__ = [
    "pad_reflect",
    "amplitude_to_db",
    "power_to_db",
    "compute_spectrogram",
]
