"""
Real-time audio analysis stream for live visualization.

Architecture Overview
---------------------
::

    Capture subsystem
        │
        ▼  (one SpectralFrame per render tick)
    RealtimeAnalyzer.process(frame, now)
        │
        ├─► LevelEstimator       (RMS, perceptual level, activity time)
        ├─► BandEnergyEstimator  (low / mid / high, brightness)
        ├─► FluxOnsetDetector    (spectral flux, adaptive threshold)
        │
        ├─► BeatTracker          (beats, BPM, pulse envelope)
        │
        └─► LiveFeatures  (immutable snapshot returned to the caller)

Design Goals
------------
* **One call per tick**: ``process`` is invoked exactly once per animation
  tick with a single clock sample, so every decision inside a tick sees the
  same time.
* **Constant memory**: all histories are bounded deques.
* **Graceful degradation**: a missing frame (capture not running) yields a
  zeroed snapshot instead of an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

import numpy as np

from beatscope.config import AnalysisConfig
from beatscope.core.bands import BandEnergy, BandEnergyEstimator
from beatscope.core.beat import BeatTracker
from beatscope.core.clock import MonotonicClock, TickClock
from beatscope.core.flux import FluxOnsetDetector
from beatscope.core.frame import SpectralFrame
from beatscope.core.level import LevelEstimator

logger = logging.getLogger(__name__)

Clock = Union[MonotonicClock, TickClock]


def _empty_frequencies() -> np.ndarray:
    return np.zeros(AnalysisConfig.bar_count)


@dataclass(frozen=True)
class LiveFeatures:
    """
    Single-tick snapshot of audio features for live rendering.

    Every scalar except ``rms``/``rms_average``/``bpm`` lies in [0, 1];
    ``bpm`` is 0 (unknown) or within [50, 200].
    """

    tick_index: int = 0
    time_ms: float = 0.0

    # Loudness
    rms: float = 0.0
    rms_average: float = 0.0
    level: float = 0.0
    level_average: float = 0.0

    # Spectrum
    band_energy: BandEnergy = field(default_factory=BandEnergy)
    brightness: float = 0.0
    spectral_flux: float = 0.0
    flux_threshold: Optional[float] = None

    # Rhythm
    is_beat: bool = False
    beat_pulse: float = 0.0
    bpm: float = 0.0

    # Compressed bins for bar displays, left out of equality and hashing
    frequencies: np.ndarray = field(default_factory=_empty_frequencies, compare=False)

    def __post_init__(self):
        frequencies = np.array(self.frequencies, dtype=np.float64)
        frequencies.setflags(write=False)
        object.__setattr__(self, "frequencies", frequencies)

    @classmethod
    def empty(
        cls,
        bar_count: int = AnalysisConfig.bar_count,
        tick_index: int = 0,
        time_ms: float = 0.0,
    ) -> "LiveFeatures":
        """Zeroed snapshot returned while no capture is active."""
        return cls(
            tick_index=tick_index,
            time_ms=time_ms,
            frequencies=np.zeros(bar_count),
        )


class RealtimeAnalyzer:
    """
    Real-time audio analysis pipeline for live visualization.

    Owns one instance of each estimator and folds one :class:`SpectralFrame`
    per tick into a :class:`LiveFeatures` snapshot.

    Parameters
    ----------
    config:
        Analysis constants (default: :class:`AnalysisConfig` defaults).
    clock:
        Clock sampled when ``process`` is called without ``now``
        (default: :class:`MonotonicClock`).
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = (config or AnalysisConfig()).validate()
        self.clock = clock or MonotonicClock()

        self.levels = LevelEstimator(self.config)
        self.bands = BandEnergyEstimator(self.config)
        self.flux = FluxOnsetDetector(self.config)
        self.beats = BeatTracker(self.config)

        self._tick_index: int = 0

    def reset(self) -> None:
        """Return every estimator to its initial state."""
        self.levels.reset()
        self.bands.reset()
        self.flux.reset()
        self.beats.reset()
        self._tick_index = 0
        if isinstance(self.clock, TickClock):
            self.clock.reset()

    @property
    def tick_index(self) -> int:
        return self._tick_index

    def display_bins(self, bins: np.ndarray) -> np.ndarray:
        """
        Downsample bins to ``bar_count`` display values.

        Picks every ``step``-th bin and applies the display exponent;
        indices past the end of a short bin array read as 0.
        """
        cfg = self.config
        out = np.zeros(cfg.bar_count)
        step = max(1, len(bins) // cfg.bar_count)
        indices = np.arange(cfg.bar_count) * step
        valid = indices < len(bins)
        out[valid] = np.power(bins[indices[valid]], cfg.display_exponent)
        return out

    def process(
        self,
        frame: Optional[SpectralFrame],
        now: Optional[float] = None,
    ) -> LiveFeatures:
        """
        Process one tick and return a LiveFeatures snapshot.

        Parameters
        ----------
        frame:
            The tick's SpectralFrame, or None when capture is not active.
        now:
            Tick time in milliseconds.  Sampled once from ``self.clock``
            when omitted.

        Returns
        -------
        LiveFeatures
            Immutable snapshot; zeroed when ``frame`` is None.
        """
        if now is None:
            now = self.clock.now()

        self._tick_index += 1

        if frame is None:
            return LiveFeatures.empty(
                self.config.bar_count, tick_index=self._tick_index, time_ms=now
            )

        level = self.levels.update(frame.samples, now)
        bands = self.bands.update(frame.bins)
        flux = self.flux.update(frame.bins)

        beat = self.beats.update(
            level=level.normalized,
            level_average=level.level_average,
            reading=flux,
            bands=bands,
            now=now,
            last_audio_active=self.levels.last_audio_active,
        )

        if beat.detected:
            logger.debug(
                "Beat at %.0f ms (flux %.4f, threshold %.4f, bpm %.0f)",
                now, flux.flux, flux.threshold, beat.bpm,
            )

        return LiveFeatures(
            tick_index=self._tick_index,
            time_ms=now,
            rms=level.rms,
            rms_average=level.rms_average,
            level=level.level,
            level_average=level.level_average,
            band_energy=bands,
            brightness=bands.brightness,
            spectral_flux=flux.flux,
            flux_threshold=flux.threshold,
            is_beat=beat.detected,
            beat_pulse=beat.pulse,
            bpm=beat.bpm,
            frequencies=self.display_bins(frame.bins),
        )
