import logging
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from melbank.frame import FrameData

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


def linear_to_mel(freq: ArrayLike) -> ArrayLike:
    """Convert linear frequency (Hz) to mel. Accepts scalars or arrays."""
    return 2595.0 * np.log10(1.0 + np.asarray(freq, dtype=np.float64) / 700.0)


def mel_to_linear(mel: ArrayLike) -> ArrayLike:
    """Convert mel to linear frequency (Hz). Inverse of `linear_to_mel`."""
    return 700.0 * (np.power(10.0, np.asarray(mel, dtype=np.float64) / 2595.0) - 1.0)


class EmptyFilterError(ValueError):
    """Raised when a triangular filter covers no spectrum bin."""


@dataclass(frozen=True, eq=False)
class MelFilter:
    """
    A triangular weighting over the half-open bin range [sample_start, sample_end).

    Parameters
    ----------
    sample_start : int
        First spectrum bin covered (inclusive).
    sample_end : int
        Last spectrum bin covered (exclusive).
    weights : Sequence[float]
        One weight per covered bin.
    """

    sample_start: int
    sample_end: int
    weights: np.ndarray

    def __post_init__(self) -> None:
        if self.sample_end <= self.sample_start:
            raise ValueError(
                f"Filter range must not be empty but it is [{self.sample_start}, {self.sample_end})"
            )
        weights = np.array(self.weights, dtype=np.float64)
        if weights.shape != (self.sample_end - self.sample_start,):
            raise ValueError(
                f"Expected {self.sample_end - self.sample_start} weights, got {weights.shape}"
            )
        weights.setflags(write=False)

        object.__setattr__(self, "sample_start", int(self.sample_start))
        object.__setattr__(self, "sample_end", int(self.sample_end))
        object.__setattr__(self, "weights", weights)

    def __reduce__(self):
        # rebuild through __init__ so the copy's weights are read-only again
        return type(self), (self.sample_start, self.sample_end, self.weights)

    def __repr__(self) -> str:
        return f"MelFilter(sample_start={self.sample_start}, sample_end={self.sample_end})"

    @property
    def size(self) -> int:
        return self.sample_end - self.sample_start

    def apply(self, spectrum: np.ndarray) -> float:
        """
        Weighted sum of the covered spectrum bins.

        The spectrum must hold at least `sample_end` values; this is not checked.
        """
        return float(np.dot(spectrum[self.sample_start:self.sample_end], self.weights))


class MelFilterBank:
    """
    Mel frequency filter bank applied to power spectrum frames.

    Center frequencies are spaced equally on the mel scale between `min_freq`
    and `max_freq`. Each filter is a triangle of unit area rising from the
    previous center to its own center and falling to the next one; the first
    and last filters extend to `min_freq` and `max_freq`.

    Parameters
    ----------
    min_freq : float
        Lower edge of the first filter (Hz).
    max_freq : float
        Upper edge of the last filter (Hz).
    filter_amount : int
        Number of filters, i.e. the size of the output vector.
    sample_rate : int
        Sampling rate of the analysed audio (Hz).
    energy_spectrum_size : int
        Number of usable bins in the input spectrum, usually n_fft // 2.
    lift_freq : float, default=0.0
        Offset (Hz) added to the slope denominators so that a center lying
        on one of its edges does not divide by zero.
    """

    def __init__(
        self,
        min_freq: float,
        max_freq: float,
        filter_amount: int,
        sample_rate: int,
        energy_spectrum_size: int,
        lift_freq: float = 0.0,
    ) -> None:
        if min_freq < 0:
            raise ValueError(f"Minimum frequency value cannot be negative but it is: {min_freq}")
        if max_freq <= 0:
            raise ValueError(f"Maximum frequency value must be positive but it is: {max_freq}")
        if min_freq >= max_freq:
            raise ValueError(
                "Minimum frequency value must be smaller than maximum frequency value. "
                f"But min_freq={min_freq} max_freq={max_freq}"
            )
        for name, value in (
            ("filter_amount", filter_amount),
            ("sample_rate", sample_rate),
            ("energy_spectrum_size", energy_spectrum_size),
        ):
            if int(value) != value or value <= 0:
                raise ValueError(f"{name} must be a positive integer but it is: {value}")
        if lift_freq < 0:
            raise ValueError(f"Lift frequency cannot be negative but it is: {lift_freq}")
        nyquist = sample_rate / 2.0
        if max_freq > nyquist:
            raise ValueError(
                f"Maximum frequency value cannot exceed the Nyquist frequency {nyquist} Hz "
                f"but it is: {max_freq}"
            )

        self.min_freq: float = float(min_freq)
        self.max_freq: float = float(max_freq)
        self.filter_amount: int = int(filter_amount)
        self.sample_rate: int = int(sample_rate)
        self.energy_spectrum_size: int = int(energy_spectrum_size)
        self.lift_freq: float = float(lift_freq)

        # Hz covered by one spectrum bin
        self.step: float = (self.sample_rate / 2.0) / self.energy_spectrum_size

        self.mel_frequencies: np.ndarray = self.calculate_mel_frequencies()
        self.center_frequencies: np.ndarray = mel_to_linear(self.mel_frequencies)
        self.filter_edges: np.ndarray = self._filter_edges(self.center_frequencies)
        self.filters: Tuple[MelFilter, ...] = self.generate_filters()
        # spectrum bins apply_filter reads; energy_spectrum_size + 1 when a
        # filter keeps weight on the Nyquist bin
        self.required_bins: int = max(f.sample_end for f in self.filters)

        for arr in (self.mel_frequencies, self.center_frequencies, self.filter_edges):
            arr.setflags(write=False)

        logger.debug(
            "Built mel filter bank: %d filters, %.1f-%.1f Hz, %d bins of %.3f Hz",
            self.filter_amount, self.min_freq, self.max_freq,
            self.energy_spectrum_size, self.step,
        )

    def __len__(self) -> int:
        return self.filter_amount

    def __reduce__(self):
        return type(self), (
            self.min_freq, self.max_freq, self.filter_amount,
            self.sample_rate, self.energy_spectrum_size, self.lift_freq,
        )

    def __repr__(self) -> str:
        return (
            f"MelFilterBank(min_freq={self.min_freq}, max_freq={self.max_freq}, "
            f"filter_amount={self.filter_amount}, sample_rate={self.sample_rate}, "
            f"energy_spectrum_size={self.energy_spectrum_size}, lift_freq={self.lift_freq})"
        )

    def calculate_mel_frequencies(self) -> np.ndarray:
        """
        Mel center frequencies, equally spaced strictly between the mel
        values of `min_freq` and `max_freq`.

        Returns
        -------
        mel_freqs : np.ndarray
            Array of shape (filter_amount,).
        """
        min_mel = linear_to_mel(self.min_freq)
        max_mel = linear_to_mel(self.max_freq)
        interval = (max_mel - min_mel) / (self.filter_amount + 1)
        return min_mel + interval * np.arange(1, self.filter_amount + 1, dtype=np.float64)

    def _filter_edges(self, centers: np.ndarray) -> np.ndarray:
        # left/center/right in Hz; neighbours' centers become the edges
        edges = np.empty((self.filter_amount, 3), dtype=np.float64)
        edges[:, 1] = centers
        edges[0, 0] = self.min_freq
        edges[1:, 0] = centers[:-1]
        edges[:-1, 2] = centers[1:]
        edges[-1, 2] = self.max_freq
        return edges

    def generate_filters(self) -> Tuple[MelFilter, ...]:
        """Build one triangular filter per center frequency, in ascending order."""
        filters = []
        for left, center, right in self.filter_edges:
            mel_filter = self.create_filter(left, center, right, self.step)
            if mel_filter.sample_end > self.energy_spectrum_size:
                mel_filter = self._trim_nyquist_bin(mel_filter)
            filters.append(mel_filter)
        return tuple(filters)

    def create_filter(self, left: float, center: float, right: float, step: float) -> MelFilter:
        """
        Build a unit-area triangle over [left, right] peaking at `center`,
        sampled at the bin resolution `step`.

        Raises
        ------
        EmptyFilterError
            If no spectrum bin lies within the filter limits.
        """
        left_start = int(left // step) + 1  # inclusive
        middle = int(center // step) + 1  # exclusive for rising side, inclusive for falling side
        right_end = int(right // step) + 1  # exclusive

        total_weights = right_end - left_start
        if total_weights == 0:
            raise EmptyFilterError(
                f"There is no frequency value in filter bank limits! "
                f"left={left:.3f} Hz right={right:.3f} Hz step={step:.3f} Hz"
            )

        # triangle area is 1, so the peak is 2 / base
        height = 2.0 / (right - left)
        weights = np.empty(total_weights, dtype=np.float64)

        left_slope = height / (center - left + self.lift_freq)
        left_size = middle - left_start
        rising_bins = np.arange(left_start, middle, dtype=np.float64)
        weights[:left_size] = (rising_bins * step - left + self.lift_freq) * left_slope

        right_slope = height / (right - center + self.lift_freq)
        falling_bins = np.arange(middle, right_end, dtype=np.float64)
        weights[left_size:] = (right + self.lift_freq - falling_bins * step) * right_slope

        return MelFilter(left_start, right_end, weights)

    def _trim_nyquist_bin(self, mel_filter: MelFilter) -> MelFilter:
        # max_freq <= Nyquist, so only bin energy_spectrum_size (the Nyquist
        # bin) can lie past the usable range. It is dropped only when empty.
        weights = mel_filter.weights
        if mel_filter.size > 1 and abs(weights[-1]) <= 1e-9 * weights.max():
            return MelFilter(mel_filter.sample_start, mel_filter.sample_end - 1, weights[:-1])
        return mel_filter

    def apply_filter(self, spectrum: np.ndarray) -> np.ndarray:
        """
        Apply every filter to one power spectrum.

        Parameters
        ----------
        spectrum : np.ndarray
            1D power spectrum with at least `required_bins` bins.

        Returns
        -------
        energies : np.ndarray
            Filter outputs of shape (filter_amount,), in filter order.
        """
        spectrum = np.asarray(spectrum, dtype=np.float64)
        result = np.empty(self.filter_amount, dtype=np.float64)
        for j, mel_filter in enumerate(self.filters):
            result[j] = mel_filter.apply(spectrum)
        return result

    def process(self, frame: FrameData) -> FrameData:
        """Return a copy of `frame` whose payload is the filter bank output."""
        return frame.copy(self.apply_filter(frame.data))

    def to_matrix(self) -> np.ndarray:
        """
        Dense weight matrix.

        Returns
        -------
        matrix : np.ndarray
            Array of shape (filter_amount, max(energy_spectrum_size, required_bins));
            row i holds the weights of filter i, zero outside its range.
        """
        width = max(self.energy_spectrum_size, self.required_bins)
        matrix = np.zeros((self.filter_amount, width), dtype=np.float64)
        for i, mel_filter in enumerate(self.filters):
            matrix[i, mel_filter.sample_start:mel_filter.sample_end] = mel_filter.weights
        return matrix

    def apply_frames(self, spectrogram: np.ndarray) -> np.ndarray:
        """
        Apply the bank to many frames at once.

        Parameters
        ----------
        spectrogram : np.ndarray
            2D array of shape (frames, bins) with bins >= `required_bins`.

        Returns
        -------
        energies : np.ndarray
            Array of shape (frames, filter_amount).
        """
        spectrogram = np.asarray(spectrogram, dtype=np.float64)
        assert spectrogram.ndim == 2, f"Expected 2D spectrogram, got {spectrogram.ndim}D"
        matrix = self.to_matrix()
        return spectrogram[:, :matrix.shape[1]] @ matrix.T
