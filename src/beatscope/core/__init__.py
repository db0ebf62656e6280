"""Core real-time analysis modules."""

from beatscope.core.bands import BandEnergy, BandEnergyEstimator
from beatscope.core.beat import BeatEvent, BeatTracker
from beatscope.core.clock import MonotonicClock, TickClock
from beatscope.core.flux import FluxOnsetDetector, FluxReading
from beatscope.core.frame import SpectralFrame
from beatscope.core.level import LevelEstimator, LevelReading
from beatscope.core.palette import PaletteScheduler, PaletteState, audio_intensity
from beatscope.core.stream import LiveFeatures, RealtimeAnalyzer

__all__ = [
    "BandEnergy",
    "BandEnergyEstimator",
    "BeatEvent",
    "BeatTracker",
    "FluxOnsetDetector",
    "FluxReading",
    "LevelEstimator",
    "LevelReading",
    "LiveFeatures",
    "MonotonicClock",
    "PaletteScheduler",
    "PaletteState",
    "RealtimeAnalyzer",
    "SpectralFrame",
    "TickClock",
    "audio_intensity",
]
