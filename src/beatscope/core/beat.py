"""
Beat confirmation, tempo estimation and the pulse envelope.

Onset candidates from the flux detector are debounced by a refractory
interval into beat events.  Beat-to-beat intervals within a plausible range
feed a bounded window whose mean gives the tempo; longer gaps are tempo
discontinuities that still fire a beat but leave the window alone.  Silence
clears the tempo estimate.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

import numpy as np

from beatscope.config import AnalysisConfig
from beatscope.core.bands import BandEnergy
from beatscope.core.flux import FluxReading
from beatscope.core.smoothing import clamp, lerp

logger = logging.getLogger(__name__)

MIN_BPM = 50.0
MAX_BPM = 200.0


@dataclass(frozen=True)
class BeatEvent:
    """Beat decision for one tick."""

    detected: bool
    pulse: float
    bpm: float
    interval_ms: Optional[float] = None  # set when a confirmed beat follows another


class BeatTracker:
    """
    Turns flux onsets into debounced beats, tempo and a pulse envelope.

    State lives on the instance and is only changed by :meth:`update`
    and :meth:`reset`.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.reset()

    def reset(self) -> None:
        self.beat_pulse = 0.0
        self.prev_flux = 0.0
        self.last_beat_time: Optional[float] = None
        # Survives silence resets so the refractory interval always holds.
        self._last_fired_at: Optional[float] = None
        self.beat_intervals: Deque[float] = deque(maxlen=self.config.bpm_window)
        self.bpm = 0.0
        self._started_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def is_candidate(
        self,
        level: float,
        reading: FluxReading,
        bands: BandEnergy,
    ) -> bool:
        """Whether this tick's flux qualifies as an onset candidate."""
        cfg = self.config
        flux_active = reading.has_threshold and reading.delta > cfg.flux_delta_floor
        rising = reading.flux > self.prev_flux
        level_ok = level > cfg.beat_level_floor
        energy_ok = bands.onset_score() > cfg.beat_energy_floor
        return flux_active and rising and (level_ok or energy_ok)

    def _update_tempo(self, interval: float) -> None:
        self.beat_intervals.append(interval)
        mean_interval = float(np.mean(self.beat_intervals))
        target = clamp(60000.0 / max(mean_interval, 1.0), MIN_BPM, MAX_BPM)
        if self.bpm == 0:
            self.bpm = float(round(target))
        else:
            self.bpm = float(round(lerp(self.bpm, target, self.config.bpm_smoothing)))

    def _confirm(self, now: float) -> Optional[float]:
        """Register a confirmed beat; returns the interval to the previous one."""
        interval = None
        if self.last_beat_time is not None:
            interval = now - self.last_beat_time
            if interval < self.config.beat_max_interval_ms:
                self._update_tempo(interval)
            else:
                logger.debug("Tempo discontinuity: %.0f ms since last beat", interval)
        self.last_beat_time = now
        self._last_fired_at = now
        return interval

    def _check_silence(self, now: float, last_audio_active: Optional[float]) -> None:
        limit = self.config.beat_silence_reset_ms
        active_at = last_audio_active if last_audio_active is not None else self._started_at
        stale_beat = (
            self.last_beat_time is not None and now - self.last_beat_time > limit
        )
        silent = now - active_at > limit
        if stale_beat or silent:
            if self.bpm or self.beat_intervals:
                logger.debug("Silence reset at %.0f ms (bpm was %.0f)", now, self.bpm)
            self.beat_intervals.clear()
            self.last_beat_time = None
            self.bpm = 0.0

    # ------------------------------------------------------------------
    # Per-tick entry point
    # ------------------------------------------------------------------

    def update(
        self,
        level: float,
        level_average: float,
        reading: FluxReading,
        bands: BandEnergy,
        now: float,
        last_audio_active: Optional[float] = None,
    ) -> BeatEvent:
        """
        Advance the tracker by one tick.

        Args:
            level: Instantaneous normalized level [0,1].
            level_average: Slow baseline of the normalized level.
            reading: Flux, threshold and delta for this tick.
            bands: Band energies for this tick.
            now: Tick time in milliseconds.
            last_audio_active: Time the level last exceeded the activity
                floor, or None if it never has.

        Returns:
            BeatEvent with the updated pulse and tempo.
        """
        cfg = self.config
        if self._started_at is None:
            self._started_at = now

        level_rise = max(0.0, level - level_average * 1.01)
        target_pulse = clamp(
            level_rise * cfg.beat_delta_gain
            + max(0.0, reading.delta) * cfg.flux_pulse_gain
            + level * bands.pulse_weight()
        )
        self.beat_pulse = lerp(self.beat_pulse, target_pulse, cfg.beat_pulse_smoothing)

        detected = False
        interval = None
        if self.is_candidate(level, reading, bands):
            if (
                self._last_fired_at is None
                or now - self._last_fired_at > cfg.beat_min_interval_ms
            ):
                detected = True
                interval = self._confirm(now)

        if detected:
            self.beat_pulse = min(1.0, self.beat_pulse + cfg.beat_pulse_boost)
        else:
            self._check_silence(now, last_audio_active)

        self.prev_flux = reading.flux

        return BeatEvent(
            detected=detected,
            pulse=self.beat_pulse,
            bpm=self.bpm,
            interval_ms=interval,
        )
