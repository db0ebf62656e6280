"""
Static analysis configuration.

Every tuning constant of the feature pipeline lives on :class:`AnalysisConfig`
and every palette timing constant on :class:`PaletteConfig`.  Both are plain
dataclasses with documented defaults; named presets ship as packaged JSON so
that a performance setup can be switched without touching code.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Tuple, Union


class ConfigError(ValueError):
    """Raised for unknown keys, unknown presets or inconsistent values."""


@dataclass
class AnalysisConfig:
    """Tuning constants for level, band, flux and beat analysis."""

    # Frame geometry
    fft_size: int = 2048
    smoothing: float = 0.82
    fps: int = 60
    bar_count: int = 96
    display_exponent: float = 0.62

    # Level
    rms_smoothing: float = 0.22
    rms_average_smoothing: float = 0.05
    level_scale: float = 320.0
    level_exponent: float = 0.56
    level_smoothing: float = 0.4
    level_average_smoothing: float = 0.06
    activity_floor: float = 0.035

    # Bands
    low_band_end: float = 0.12
    mid_band_end: float = 0.45
    band_gain: float = 20.0
    band_exponent: float = 0.7

    # Spectral flux
    flux_history_size: int = 128
    flux_window: int = 24
    flux_min_window: int = 12
    flux_sensitivity: float = 1.65
    flux_exponent: float = 1.18
    flux_delta_floor: float = 0.006
    flux_pulse_gain: float = 2.6

    # Beats and tempo
    beat_delta_gain: float = 5.4
    beat_min_interval_ms: float = 200.0
    beat_max_interval_ms: float = 1400.0
    beat_level_floor: float = 0.16
    beat_energy_floor: float = 0.18
    beat_silence_reset_ms: float = 2600.0
    beat_pulse_smoothing: float = 0.36
    beat_pulse_boost: float = 0.34
    bpm_smoothing: float = 0.28
    bpm_window: int = 12

    @property
    def tick_ms(self) -> float:
        """Duration of one render tick in milliseconds."""
        return 1000.0 / self.fps

    def validate(self) -> "AnalysisConfig":
        for name in ("fft_size", "fps", "bar_count", "flux_history_size",
                     "flux_window", "flux_min_window", "bpm_window"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.flux_min_window > self.flux_window:
            raise ConfigError(
                f"flux_min_window ({self.flux_min_window}) exceeds "
                f"flux_window ({self.flux_window})"
            )
        if self.flux_window > self.flux_history_size:
            raise ConfigError(
                f"flux_window ({self.flux_window}) exceeds "
                f"flux_history_size ({self.flux_history_size})"
            )
        if not 0.0 <= self.low_band_end <= self.mid_band_end <= 1.0:
            raise ConfigError("band boundaries must satisfy 0 <= low <= mid <= 1")
        if self.beat_min_interval_ms >= self.beat_max_interval_ms:
            raise ConfigError("beat_min_interval_ms must be below beat_max_interval_ms")
        return self

    @classmethod
    def from_dict(cls, overrides: Dict[str, Any]) -> "AnalysisConfig":
        return _build(cls, overrides).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_THEMES: Tuple[str, ...] = (
    "Glacier Rift",
    "Infra Noir",
    "Electric Alloy",
    "Chrome Tide",
)


@dataclass
class PaletteConfig:
    """Timing constants for the palette scheduler."""

    min_hold_ms: float = 2000.0
    beats_per_cycle: int = 8
    quiet_intensity: float = 0.12
    quiet_reset_ms: float = 5200.0
    beat_pulse_gate: float = 0.6
    themes: Tuple[str, ...] = field(default_factory=lambda: DEFAULT_THEMES)

    def validate(self) -> "PaletteConfig":
        if not self.themes:
            raise ConfigError("at least one theme is required")
        if self.beats_per_cycle < 1:
            raise ConfigError("beats_per_cycle must be >= 1")
        if self.min_hold_ms < 0 or self.quiet_reset_ms < 0:
            raise ConfigError("palette durations must be non-negative")
        return self

    @classmethod
    def from_dict(cls, overrides: Dict[str, Any]) -> "PaletteConfig":
        overrides = dict(overrides)
        if "themes" in overrides:
            overrides["themes"] = tuple(overrides["themes"])
        return _build(cls, overrides).validate()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["themes"] = list(self.themes)
        return data


def _build(cls, overrides: Dict[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"Unknown {cls.__name__} keys: {', '.join(unknown)}")
    return cls(**overrides)


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

@lru_cache(maxsize=1)
def load_presets() -> Dict[str, Any]:
    """Load all configuration presets from the packaged JSON file."""
    with resources.files("beatscope").joinpath("presets.json").open(
        "r", encoding="utf-8"
    ) as f:
        return json.load(f)


def get_preset(name: str) -> Dict[str, Any]:
    """
    Return the raw ``{"analysis": {...}, "palette": {...}}`` overrides of a preset.

    Raises:
        ConfigError: If the preset name is unknown.
    """
    presets = load_presets()
    if name not in presets:
        raise ConfigError(
            f"Unknown preset '{name}'. Available: {', '.join(sorted(presets))}"
        )
    return presets[name]


def load_config(
    source: Union[str, Path, None] = None,
) -> Tuple[AnalysisConfig, PaletteConfig]:
    """
    Build both configs from a preset name or a JSON file.

    Args:
        source: Preset name, path to a JSON file with the same
                ``analysis``/``palette`` layout as a preset, or None
                for the defaults.

    Returns:
        Tuple of (AnalysisConfig, PaletteConfig).
    """
    if source is None:
        data: Dict[str, Any] = {}
    elif isinstance(source, Path) or str(source).endswith(".json"):
        with open(source, "r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        data = get_preset(str(source))

    unknown = sorted(set(data) - {"analysis", "palette", "description"})
    if unknown:
        raise ConfigError(f"Unknown config sections: {', '.join(unknown)}")

    return (
        AnalysisConfig.from_dict(data.get("analysis", {})),
        PaletteConfig.from_dict(data.get("palette", {})),
    )
