"""
Spectral-flux onset detection with an adaptive threshold.

Flux is the half-wave rectified frame-to-frame increase of the compressed
magnitude spectrum, averaged per bin.  The threshold follows the recent flux
history (mean plus scaled mean absolute deviation) so that onsets are judged
against the current loudness of the material rather than a fixed level.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

import numpy as np

from beatscope.config import AnalysisConfig


@dataclass(frozen=True)
class FluxReading:
    """Flux and threshold for one tick.

    ``threshold`` is None until enough history exists; ``delta`` is then 0.
    """

    flux: float
    threshold: Optional[float]
    delta: float

    @property
    def has_threshold(self) -> bool:
        return self.threshold is not None


class FluxOnsetDetector:
    """Causal spectral-flux detector over a bounded flux history."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.reset()

    def reset(self) -> None:
        self.prev_spectrum: Optional[np.ndarray] = None
        self.flux_history: Deque[float] = deque(maxlen=self.config.flux_history_size)

    def compute_flux(self, bins: np.ndarray) -> float:
        """
        Rectified spectral difference against the stored spectrum.

        The stored spectrum is (re)seeded and 0.0 returned when there is no
        previous spectrum or the bin count changed.
        """
        magnitude = np.power(bins, self.config.flux_exponent)

        if self.prev_spectrum is None or len(self.prev_spectrum) != len(magnitude):
            self.prev_spectrum = magnitude
            return 0.0

        rising = np.maximum(magnitude - self.prev_spectrum, 0.0)
        self.prev_spectrum = magnitude
        if magnitude.size == 0:
            return 0.0
        return float(np.sum(rising) / magnitude.size)

    def threshold(self) -> Optional[float]:
        """Adaptive threshold over the trailing window, or None during warm-up."""
        cfg = self.config
        window_size = min(len(self.flux_history), cfg.flux_window)
        if window_size < cfg.flux_min_window:
            return None

        window = np.fromiter(self.flux_history, dtype=np.float64)[-window_size:]
        mean = float(np.mean(window))
        deviation = float(np.mean(np.abs(window - mean)))
        return mean + deviation * cfg.flux_sensitivity

    def update(self, bins: np.ndarray) -> FluxReading:
        flux = self.compute_flux(bins)
        # Judged against history that does not yet include this tick.
        threshold = self.threshold()
        self.flux_history.append(flux)

        delta = 0.0 if threshold is None else flux - threshold
        return FluxReading(flux=flux, threshold=threshold, delta=delta)
