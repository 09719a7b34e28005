"""Single-frame fundamental frequency estimation.

Two estimators share the :class:`~dhwani.core.interfaces.IPitchEstimator`
interface:

* :class:`YinPitchEstimator` - the YIN time-domain algorithm (difference
  function, cumulative mean normalized difference, absolute threshold with
  trough walking, parabolic interpolation). This is the default.
* :class:`AutocorrelationPitchEstimator` - a cruder energy-gated
  mean-absolute-difference correlation, kept as a cheap fallback.

Both return ``None`` for "nothing periodic in this frame" and never a zero,
infinite or NaN frequency. Malformed calls (empty buffer, non-positive
sample rate) raise :class:`~dhwani.errors.ConfigurationError`.
"""

from __future__ import annotations

import numbers
from types import MappingProxyType
from typing import ClassVar, Mapping, Optional, Type, TypeAlias

import numpy as np

from ..core.interfaces import IPitchEstimator
from ..errors import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

Frequency: TypeAlias = float


def _as_frame(buffer, sample_rate: float) -> np.ndarray:
    """Validate a call and return the buffer as a 1-D float64 array."""
    if (
        isinstance(sample_rate, bool)
        or not isinstance(sample_rate, numbers.Real)
        or not np.isfinite(sample_rate)
        or sample_rate <= 0
    ):
        raise ConfigurationError(f"Sample rate must be positive, got {sample_rate!r}")

    frame = np.asarray(buffer, dtype=np.float64)
    if frame.ndim != 1:
        raise ConfigurationError(f"Audio frame must be 1-D, got shape {frame.shape}")
    if frame.size == 0:
        raise ConfigurationError("Audio frame is empty")
    return frame


def parabolic_interpolation(curve: np.ndarray, index: int) -> float:
    """Sub-sample position of the extremum of ``curve`` around ``index``.

    Fits a parabola through ``index - 1``, ``index`` and ``index + 1``. At the
    ends of the curve nothing is extrapolated: the better of the two available
    points (lower value) is returned instead.
    """
    last = len(curve) - 1
    x0 = index - 1 if index >= 1 else index
    x2 = index + 1 if index + 1 <= last else index

    if x0 == index:
        return float(index if curve[index] <= curve[x2] else x2)
    if x2 == index:
        return float(index if curve[index] <= curve[x0] else x0)

    s0, s1, s2 = curve[x0], curve[index], curve[x2]
    denominator = 2.0 * (2.0 * s1 - s2 - s0)
    if denominator == 0 or not np.isfinite(denominator):
        return float(index)
    return index + (s2 - s0) / denominator


def difference_function(frame: np.ndarray) -> np.ndarray:
    """YIN difference function ``d(tau) = sum_i (x[i] - x[i + tau])**2``.

    Expanded as ``sum x[i]**2 + sum x[i + tau]**2 - 2 * acf(tau)`` with the
    autocorrelation computed by FFT, so the cost is O(N log N) instead of the
    O(N**2) double loop. For N = 2048 that is a pair of 4096-point real FFTs
    per frame. A whole estimate at that size is held under 5 ms by the test
    suite, against a 46 ms frame period at 44.1 kHz.
    """
    n = len(frame)
    energy = np.concatenate(([0.0], np.cumsum(frame * frame)))

    fft_size = 1 << (2 * n - 1).bit_length()
    spectrum = np.fft.rfft(frame, n=fft_size)
    acf = np.fft.irfft(spectrum * np.conj(spectrum), n=fft_size)[:n]

    taus = np.arange(n)
    head = energy[n - taus]  # x[0 : n - tau]
    tail = energy[n] - energy[taus]  # x[tau : n]
    diff = head + tail - 2.0 * acf

    # FFT round-off can leave tiny negatives where the true value is zero
    np.maximum(diff, 0.0, out=diff)
    diff[0] = 0.0
    return diff


def cumulative_mean_normalized_difference(diff: np.ndarray) -> np.ndarray:
    """YIN CMNDF: ``d(tau) / ((1 / tau) * sum(d[1 : tau + 1]))``.

    ``cmndf[0]`` is 1 by convention. Wherever the running sum is (near) zero
    the ratio is undefined; those lags are set to 1 so they can never pass a
    threshold in (0, 1).
    """
    cmndf = np.ones_like(diff)
    if len(diff) < 2:
        return cmndf

    running = np.cumsum(diff[1:])
    floor = np.finfo(np.float64).eps * max(float(running[-1]), 0.0)
    valid = running > floor
    taus = np.arange(1, len(diff), dtype=np.float64)

    with np.errstate(divide="ignore", invalid="ignore"):
        normalized = diff[1:] * taus / running
    normalized = np.where(valid & np.isfinite(normalized), normalized, 1.0)
    cmndf[1:] = normalized
    return cmndf


class YinPitchEstimator(IPitchEstimator):
    """YIN fundamental frequency estimator for a single audio frame."""

    DEFAULT_THRESHOLD: ClassVar[float] = 0.10
    DEFAULT_SILENCE_RMS: ClassVar[float] = 1e-4
    MIN_TAU: ClassVar[int] = 2

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        silence_rms: float = DEFAULT_SILENCE_RMS,
        min_frequency: Optional[float] = None,
    ) -> None:
        """Initialize the estimator.

        Args:
            threshold: Absolute CMNDF threshold in (0, 1); lower is stricter
                and yields more misses
            silence_rms: Frames with RMS below this are reported as silent
            min_frequency: Lowest pitch searched for. Lags longer than its
                period are not scanned; None scans the whole frame
        """
        if min_frequency is not None and min_frequency <= 0:
            raise ConfigurationError("min_frequency must be positive")
        self.threshold = threshold
        self.silence_rms = silence_rms
        self._min_frequency = min_frequency

    @classmethod
    def from_config(cls, config, **overrides) -> "YinPitchEstimator":
        params = {
            "threshold": config.threshold,
            "silence_rms": config.silence_rms,
            "min_frequency": config.min_frequency,
        }
        params.update(overrides)
        return cls(**params)

    def estimate(
        self,
        buffer: np.ndarray,
        sample_rate: float,
        threshold: Optional[float] = None,
    ) -> Optional[Frequency]:
        """Estimate the fundamental frequency of ``buffer``.

        Args:
            buffer: One frame of samples in [-1, 1]
            sample_rate: Sample rate of ``buffer`` in Hz
            threshold: Per-call override of the CMNDF threshold

        Returns:
            Frequency in Hz, or None if no periodicity was found
        """
        frame = _as_frame(buffer, sample_rate)
        if threshold is None:
            threshold = self._threshold
        else:
            self._check_threshold(threshold)

        if not np.all(np.isfinite(frame)):
            logger.warning("Audio frame contains non-finite samples, skipping")
            return None

        rms = float(np.sqrt(np.mean(frame * frame)))
        if rms < self._silence_rms:
            logger.debug(f"Frame below silence gate: rms={rms:.6f}")
            return None

        cmndf = cumulative_mean_normalized_difference(difference_function(frame))
        limit = len(cmndf)
        if self._min_frequency is not None:
            limit = min(limit, int(sample_rate / self._min_frequency) + 2)
        tau = self._absolute_threshold(cmndf, threshold, limit)
        if tau is None:
            logger.debug(f"No CMNDF dip below {threshold} (rms={rms:.4f})")
            return None

        period = parabolic_interpolation(cmndf, tau)
        if not np.isfinite(period) or period <= 0:
            return None

        frequency = sample_rate / period
        if not np.isfinite(frequency) or frequency <= 0:
            return None

        logger.debug(
            f"YIN: tau={tau} period={period:.3f} cmndf={cmndf[tau]:.4f} "
            f"freq={frequency:.2f}Hz rms={rms:.4f}"
        )
        return float(frequency)

    def _absolute_threshold(
        self, cmndf: np.ndarray, threshold: float, limit: int
    ) -> Optional[int]:
        """First lag under ``threshold`` before ``limit``, walked forward to the bottom of its dip."""
        below = np.flatnonzero(cmndf[self.MIN_TAU : limit] < threshold)
        if below.size == 0:
            return None

        tau = int(below[0]) + self.MIN_TAU
        last = len(cmndf) - 1
        while tau < last and cmndf[tau + 1] < cmndf[tau]:
            tau += 1
        return tau

    @staticmethod
    def _check_threshold(value: float) -> None:
        if not 0.0 < value < 1.0:
            raise ConfigurationError(f"YIN threshold must be in (0, 1), got {value!r}")

    @property
    def threshold(self) -> float:
        """Get the absolute CMNDF threshold."""
        return self._threshold

    @threshold.setter
    def threshold(self, value: float) -> None:
        """Set the absolute CMNDF threshold."""
        self._check_threshold(value)
        self._threshold = float(value)

    @property
    def min_frequency(self) -> Optional[float]:
        return self._min_frequency

    @property
    def silence_rms(self) -> float:
        """Get the RMS level below which frames count as silence."""
        return self._silence_rms

    @silence_rms.setter
    def silence_rms(self, value: float) -> None:
        """Set the silence RMS gate."""
        if value < 0:
            raise ConfigurationError("silence_rms must not be negative")
        self._silence_rms = float(value)


class AutocorrelationPitchEstimator(IPitchEstimator):
    """Energy-gated mean-absolute-difference correlation.

    For every lag in ``[0, N/2)`` the correlation is
    ``1 - mean(|x[i] - x[i + lag]|)`` over the first half of the frame. The
    chosen lag is the top of the first peak that clears
    ``correlation_threshold`` on a rising edge, refined by a parabola through
    its neighbours.
    """

    DEFAULT_MIN_RMS: ClassVar[float] = 0.01
    DEFAULT_CORRELATION_THRESHOLD: ClassVar[float] = 0.9

    def __init__(
        self,
        min_rms: float = DEFAULT_MIN_RMS,
        correlation_threshold: float = DEFAULT_CORRELATION_THRESHOLD,
    ) -> None:
        if min_rms < 0:
            raise ConfigurationError("min_rms must not be negative")
        if not 0.0 < correlation_threshold < 1.0:
            raise ConfigurationError(
                f"correlation_threshold must be in (0, 1), got {correlation_threshold!r}"
            )
        self._min_rms = float(min_rms)
        self._correlation_threshold = float(correlation_threshold)

    @property
    def min_rms(self) -> float:
        return self._min_rms

    @property
    def correlation_threshold(self) -> float:
        return self._correlation_threshold

    def correlation_curve(self, frame: np.ndarray) -> np.ndarray:
        """Correlation of the first half of ``frame`` against every lag in [0, N/2)."""
        half = len(frame) // 2
        windows = np.lib.stride_tricks.sliding_window_view(frame, half)[:half]
        return 1.0 - np.mean(np.abs(windows - frame[:half]), axis=1)

    def estimate(self, buffer: np.ndarray, sample_rate: float) -> Optional[Frequency]:
        frame = _as_frame(buffer, sample_rate)
        if not np.all(np.isfinite(frame)):
            logger.warning("Audio frame contains non-finite samples, skipping")
            return None

        rms = float(np.sqrt(np.mean(frame * frame)))
        if rms < self._min_rms or len(frame) < 4:
            return None

        correlation = self.correlation_curve(frame)
        rising = np.zeros(len(correlation), dtype=bool)
        rising[1:] = correlation[1:] > correlation[:-1]
        eligible = rising & (correlation > self._correlation_threshold)
        if not eligible.any():
            logger.debug(f"No lag above correlation {self._correlation_threshold}")
            return None

        # First qualifying peak, walked up to its top. Peaks at multiples of
        # the period can correlate slightly better and would halve the pitch.
        best = int(np.flatnonzero(eligible)[0])
        last = len(correlation) - 1
        while best < last and correlation[best + 1] > correlation[best]:
            best += 1
        # Interpolation expects a minimum, so work on the negated curve
        lag = parabolic_interpolation(-correlation, best)
        if not np.isfinite(lag) or lag <= 0:
            return None

        frequency = sample_rate / lag
        logger.debug(
            f"Autocorrelation: lag={lag:.3f} corr={correlation[best]:.4f} freq={frequency:.2f}Hz"
        )
        return float(frequency)


ESTIMATOR_CLASSES: Mapping[str, Type[IPitchEstimator]] = MappingProxyType(
    {
        "yin": YinPitchEstimator,
        "autocorrelation": AutocorrelationPitchEstimator,
    }
)


def build_estimator(config, **overrides) -> IPitchEstimator:
    """Estimator named by ``config.estimator``, configured from ``config``.

    Args:
        config: A :class:`~dhwani.core.config.TunerConfig`
        **overrides: Constructor arguments that replace those taken from config

    Raises:
        ConfigurationError: If the name is not registered
    """
    try:
        cls = ESTIMATOR_CLASSES[config.estimator]
    except KeyError:
        raise ConfigurationError(
            f"Unknown estimator {config.estimator!r}, expected one of {tuple(ESTIMATOR_CLASSES)}"
        ) from None
    return cls.from_config(config, **overrides)
