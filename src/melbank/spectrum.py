from typing import Iterator, Optional

import librosa
import numpy as np
import scipy.signal

from melbank.frame import FrameData


class PowerSpectrum:
    """
    Power spectrum front-end feeding `MelFilterBank`.

    Parameters
    ----------
    n_fft : int
        FFT size.
    win_length : Optional[int], default=None
        Window size (in samples). If None, defaults to n_fft.
    hop_length : Optional[int], default=None
        Hop size (in samples). If None, defaults to win_length // 4.
    center : bool, default=True
        Whether to pad the input so that frames are centered.
    """

    def __init__(
        self,
        n_fft: int,
        win_length: Optional[int] = None,
        hop_length: Optional[int] = None,
        center: bool = True,
    ) -> None:
        win_length = n_fft if win_length is None else win_length
        hop_length = win_length // 4 if hop_length is None else hop_length
        if win_length > n_fft:
            raise ValueError(f"win_length ({win_length}) cannot exceed n_fft ({n_fft})")
        if hop_length <= 0:
            raise ValueError(f"hop_length must be positive but it is: {hop_length}")

        self.n_fft: int = n_fft
        self.win_length: int = win_length
        self.hop_length: int = hop_length
        self.center: bool = center
        self.window: np.ndarray = scipy.signal.windows.hann(win_length, sym=False)

    @property
    def energy_spectrum_size(self) -> int:
        """Spectrum size to give `MelFilterBank` so one bin matches one FFT bin."""
        return self.n_fft // 2

    def forward(self, audio: np.ndarray) -> np.ndarray:
        """
        Compute the framed power spectrum of an audio signal.

        Parameters
        ----------
        audio : np.ndarray
            1D numpy array containing the audio waveform.

        Returns
        -------
        power : np.ndarray
            2D array of shape (frames, n_fft // 2 + 1).
        """
        assert audio.ndim == 1, f"Expected 1D waveform, got {audio.ndim}D"

        stft_result: np.ndarray = librosa.stft(
            audio.astype(np.float32),
            n_fft=self.n_fft,
            hop_length=self.hop_length,
            win_length=self.win_length,
            window=self.window,
            center=self.center,
        )
        power: np.ndarray = np.abs(stft_result) ** 2
        return power.T

    def frames(self, audio: np.ndarray, sample_rate: Optional[int] = None) -> Iterator[FrameData]:
        """Yield one power spectrum frame per STFT column."""
        for index, spectrum in enumerate(self.forward(audio)):
            yield FrameData(spectrum, index=index, sample_rate=sample_rate)

    def process(self, frame: FrameData) -> FrameData:
        """
        Power spectrum of a single block of samples.

        `frame.data` holds at most `win_length` samples; it is windowed, then
        zero-padded to `n_fft`.
        """
        samples = np.asarray(frame.data, dtype=np.float64)
        if samples.shape[0] > self.win_length:
            raise ValueError(
                f"Frame holds {samples.shape[0]} samples, window is {self.win_length}"
            )
        # shorter (trailing) blocks are padded with zeros before windowing
        block = np.zeros(self.win_length, dtype=np.float64)
        block[:samples.shape[0]] = samples
        spectrum = np.fft.rfft(block * self.window, n=self.n_fft)
        return frame.copy(np.abs(spectrum) ** 2)
