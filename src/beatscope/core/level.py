"""
Loudness estimation.

Tracks RMS loudness with a fast and a slow moving average and maps the
instantaneous RMS onto a perceptual [0, 1] level.  The level estimator also
owns the "last audible" timestamp used for silence detection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from beatscope.config import AnalysisConfig
from beatscope.core.smoothing import clamp, lerp


@dataclass(frozen=True)
class LevelReading:
    """Loudness values for one tick."""

    raw_rms: float
    rms: float
    rms_average: float
    normalized: float     # instantaneous perceptual level [0,1]
    level: float          # fast display EMA of normalized
    level_average: float  # slow baseline EMA of normalized


class LevelEstimator:
    """RMS and perceptual level with fast/slow exponential averages."""

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.reset()

    def reset(self) -> None:
        self.rms = 0.0
        self.rms_average = 0.001
        self.level = 0.0
        self.level_average = 0.0
        self.last_audio_active: Optional[float] = None

    @staticmethod
    def compute_rms(samples: np.ndarray) -> float:
        """Root mean square of a sample window; 0.0 for an empty window."""
        if samples.size == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.square(samples))))

    def normalize(self, rms: float) -> float:
        cfg = self.config
        return clamp((rms * cfg.level_scale) ** cfg.level_exponent)

    def update(self, samples: np.ndarray, now: float) -> LevelReading:
        """
        Fold one sample window into the loudness state.

        Args:
            samples: Time-domain window for this tick.
            now: Tick time in milliseconds.

        Returns:
            LevelReading for this tick.
        """
        cfg = self.config
        raw_rms = self.compute_rms(samples)

        self.rms = lerp(self.rms, raw_rms, cfg.rms_smoothing)
        self.rms_average = lerp(self.rms_average, raw_rms, cfg.rms_average_smoothing)

        normalized = self.normalize(raw_rms)
        self.level_average = lerp(self.level_average, normalized, cfg.level_average_smoothing)
        self.level = lerp(self.level, normalized, cfg.level_smoothing)

        if normalized > cfg.activity_floor:
            self.last_audio_active = now

        return LevelReading(
            raw_rms=raw_rms,
            rms=self.rms,
            rms_average=self.rms_average,
            normalized=normalized,
            level=self.level,
            level_average=self.level_average,
        )
