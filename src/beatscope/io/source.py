"""
File-backed SpectralFrame producer.

Live capture is handled elsewhere; this module turns an audio file (or any
mono signal) into the same per-tick frames a capture device would deliver,
so the analysis stack can run offline at a fixed tick rate.

The spectrum follows the browser analyser-node conventions the live rig
uses: Blackman window, magnitude normalised by the FFT size, temporal
smoothing between ticks, and a decibel range mapped onto 8-bit steps in
[0, 1].
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional, Union

import librosa
import numpy as np
from scipy import signal as scipy_signal

from beatscope.config import AnalysisConfig
from beatscope.core.frame import SpectralFrame

logger = logging.getLogger(__name__)

MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0


class SpectrumAnalyser:
    """
    Smoothed magnitude spectrum of the most recent ``fft_size`` samples.

    Args:
        fft_size: Window length; yields ``fft_size // 2`` bins.
        smoothing: Weight of the previous spectrum (0 disables smoothing).
        min_db: Level mapped to 0.0.
        max_db: Level mapped to 1.0.
    """

    def __init__(
        self,
        fft_size: int = 2048,
        smoothing: float = 0.82,
        min_db: float = MIN_DECIBELS,
        max_db: float = MAX_DECIBELS,
    ):
        if fft_size < 2 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 2, got {fft_size}")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"smoothing must be in [0, 1), got {smoothing}")
        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_db = min_db
        self.max_db = max_db
        self.window = scipy_signal.get_window("blackman", fft_size, fftbins=False)
        self.reset()

    @property
    def n_bins(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        self._smoothed = np.zeros(self.n_bins)

    def fit_window(self, samples: np.ndarray) -> np.ndarray:
        """Trim to the last ``fft_size`` samples or left-pad with zeros."""
        if len(samples) >= self.fft_size:
            return samples[-self.fft_size:]
        return np.concatenate([np.zeros(self.fft_size - len(samples)), samples])

    def analyse(self, samples: np.ndarray) -> np.ndarray:
        """
        Fold one window into the smoothed spectrum.

        Returns:
            Bins in [0, 1], quantized to 1/255 steps.
        """
        block = self.fit_window(np.asarray(samples, dtype=np.float64))
        spectrum = np.abs(np.fft.rfft(block * self.window))[: self.n_bins] / self.fft_size

        self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * spectrum

        decibels = 20.0 * np.log10(np.maximum(self._smoothed, 1e-12))
        scaled = (decibels - self.min_db) / (self.max_db - self.min_db)
        return np.floor(np.clip(scaled, 0.0, 1.0) * 255.0) / 255.0


class FrameSource:
    """
    Iterates a mono signal as one SpectralFrame per render tick.

    Each tick advances ``sample_rate / fps`` samples; the frame holds the
    trailing ``fft_size`` samples and their analyser spectrum.
    """

    def __init__(
        self,
        y: np.ndarray,
        sample_rate: int,
        config: Optional[AnalysisConfig] = None,
    ):
        self.config = config or AnalysisConfig()
        self.y = np.asarray(y, dtype=np.float64).ravel()
        self.sample_rate = sample_rate
        self.analyser = SpectrumAnalyser(self.config.fft_size, self.config.smoothing)

    @classmethod
    def from_file(
        cls,
        audio_path: Union[str, Path],
        config: Optional[AnalysisConfig] = None,
        sr: Optional[int] = None,
    ) -> "FrameSource":
        """
        Load an audio file (wav, mp3, flac) as a mono frame source.

        Args:
            audio_path: Path to the audio file.
            config: Analysis config supplying fft size, smoothing and fps.
            sr: Target sample rate. None preserves the original.
        """
        logger.info("Loading audio: %s", audio_path)
        y, sr_out = librosa.load(audio_path, sr=sr, mono=True)
        return cls(y, sr_out, config)

    @property
    def hop_length(self) -> int:
        """Samples per tick."""
        return max(1, int(self.sample_rate / self.config.fps))

    @property
    def tick_ms(self) -> float:
        """Audio time covered by one tick, in milliseconds."""
        return self.hop_length * 1000.0 / self.sample_rate

    @property
    def n_frames(self) -> int:
        return len(self.y) // self.hop_length

    @property
    def duration(self) -> float:
        return float(librosa.get_duration(y=self.y, sr=self.sample_rate))

    def frame_at(self, index: int) -> SpectralFrame:
        """Frame ending at the close of tick ``index`` (stateful: smoothing)."""
        end = (index + 1) * self.hop_length
        start = max(0, end - self.config.fft_size)
        window = self.analyser.fit_window(self.y[start:end])
        return SpectralFrame(samples=window, bins=self.analyser.analyse(window))

    def __len__(self) -> int:
        return self.n_frames

    def __iter__(self) -> Iterator[SpectralFrame]:
        self.analyser.reset()
        for index in range(self.n_frames):
            yield self.frame_at(index)
