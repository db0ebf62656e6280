"""
Beat-driven palette scheduling.

Selects one of an ordered list of themes.  A theme is held for at least the
configured minimum, or for ``beats_per_cycle`` beats at the current tempo if
that is longer, and advances only on a strong pulse once enough beats have
been counted.  Prolonged quiet returns to the first theme.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from beatscope.config import PaletteConfig
from beatscope.core.smoothing import clamp
from beatscope.core.stream import LiveFeatures

logger = logging.getLogger(__name__)


def audio_intensity(features: LiveFeatures) -> float:
    """Overall intensity of a snapshot in [0, 1]."""
    bands = features.band_energy
    return clamp(
        features.level * 1.5
        + bands.low * 0.35
        + bands.mid * 0.25
        + bands.high * 0.2
    )


@dataclass
class PaletteState:
    current_index: int = 0
    last_switch_time: float = 0.0
    beats_since_switch: int = 0
    last_beat_at: float = 0.0


class PaletteScheduler:
    """Timed state machine over ``config.themes``."""

    def __init__(self, config: Optional[PaletteConfig] = None, now: float = 0.0):
        self.config = (config or PaletteConfig()).validate()
        self.reset(now)

    def reset(self, now: float = 0.0) -> None:
        self.state = PaletteState(last_switch_time=now, last_beat_at=now)

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def current_theme(self) -> str:
        return self.config.themes[self.state.current_index]

    def hold_duration(self, bpm: float) -> float:
        """Minimum time in ms the current theme must be held at ``bpm``."""
        cfg = self.config
        beat_duration = 60000.0 / bpm if bpm > 0 else 0.0
        return max(cfg.min_hold_ms, beat_duration * cfg.beats_per_cycle)

    def _switch(self, index: int, now: float) -> None:
        state = self.state
        if index != state.current_index:
            logger.debug(
                "Palette %s -> %s at %.0f ms",
                self.config.themes[state.current_index], self.config.themes[index], now,
            )
        state.current_index = index
        state.last_switch_time = now
        state.beats_since_switch = 0

    def update(
        self,
        intensity: float,
        beat_pulse: float,
        is_beat: bool,
        bpm: float,
        now: float,
    ) -> int:
        """
        Advance the scheduler by one tick.

        Args:
            intensity: Overall audio intensity [0,1] (see :func:`audio_intensity`).
            beat_pulse: Current pulse envelope.
            is_beat: Whether a beat was confirmed this tick.
            bpm: Current tempo estimate, 0 if unknown.
            now: Tick time in milliseconds.

        Returns:
            Index of the selected theme.
        """
        cfg = self.config
        state = self.state

        if is_beat:
            state.last_beat_at = now
            state.beats_since_switch += 1

        hold_satisfied = now - state.last_switch_time >= self.hold_duration(bpm)
        strong_pulse = beat_pulse > cfg.beat_pulse_gate or is_beat

        if (
            hold_satisfied
            and strong_pulse
            and state.beats_since_switch >= cfg.beats_per_cycle
        ):
            self._switch((state.current_index + 1) % len(cfg.themes), now)

        quiet = intensity < cfg.quiet_intensity
        if quiet and hold_satisfied and now - state.last_beat_at > cfg.quiet_reset_ms:
            self._switch(0, now)

        return state.current_index

    def update_from(self, features: LiveFeatures) -> int:
        """Convenience wrapper taking a snapshot straight from the analyzer."""
        return self.update(
            intensity=audio_intensity(features),
            beat_pulse=features.beat_pulse,
            is_beat=features.is_beat,
            bpm=features.bpm,
            now=features.time_ms,
        )
