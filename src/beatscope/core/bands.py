"""
Three-band energy split over the frequency-bin array.

Band edges are proportions of the bin count, not Hz, so the estimator works
for any analyser size.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from beatscope.config import AnalysisConfig
from beatscope.core.smoothing import clamp

BRIGHTNESS_EPSILON = 1e-6


@dataclass(frozen=True)
class BandEnergy:
    """Compressed low/mid/high energies in [0, 1]."""

    low: float = 0.0
    mid: float = 0.0
    high: float = 0.0

    @property
    def brightness(self) -> float:
        """Share of mid/high content, weighted toward highs."""
        total = self.low + self.mid + self.high + BRIGHTNESS_EPSILON
        return clamp((self.mid * 0.35 + self.high * 0.65) / total)

    def onset_score(self) -> float:
        """Weighted energy used to gate beat candidates."""
        return self.low * 0.5 + self.mid * 0.35 + self.high * 0.25

    def pulse_weight(self) -> float:
        """Weighted energy scaling the level term of the pulse envelope."""
        return self.low * 0.24 + self.mid * 0.18 + self.high * 0.12

    def as_dict(self) -> dict:
        return {"low": self.low, "mid": self.mid, "high": self.high}


class BandEnergyEstimator:
    """Splits bins into low/mid/high ranges and compresses each band mean."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.energy = BandEnergy()

    def reset(self) -> None:
        self.energy = BandEnergy()

    def band_edges(self, n_bins: int) -> tuple[int, int]:
        """Return (low_end, mid_end) bin indices for ``n_bins`` bins."""
        low_end = int(np.floor(n_bins * self.config.low_band_end))
        mid_end = int(np.floor(n_bins * self.config.mid_band_end))
        return low_end, mid_end

    def _compress(self, total: float, count: int) -> float:
        cfg = self.config
        mean = total / max(count, 1)
        return clamp(mean * cfg.band_gain) ** cfg.band_exponent

    def update(self, bins: np.ndarray) -> BandEnergy:
        n_bins = len(bins)
        low_end, mid_end = self.band_edges(n_bins)

        self.energy = BandEnergy(
            low=self._compress(float(np.sum(bins[:low_end])), low_end),
            mid=self._compress(float(np.sum(bins[low_end:mid_end])), mid_end - low_end),
            high=self._compress(float(np.sum(bins[mid_end:])), n_bins - mid_end),
        )
        return self.energy
