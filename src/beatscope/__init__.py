"""Real-time beat, tempo and energy analysis for audio-reactive visuals."""

from beatscope.config import AnalysisConfig, ConfigError, PaletteConfig, load_config
from beatscope.core.frame import SpectralFrame
from beatscope.core.palette import PaletteScheduler
from beatscope.core.stream import LiveFeatures, RealtimeAnalyzer
from beatscope.io.exporter import ManifestExporter
from beatscope.pipeline import AudioPipeline

__version__ = "0.1.0"
__all__ = [
    "AnalysisConfig",
    "AudioPipeline",
    "ConfigError",
    "LiveFeatures",
    "ManifestExporter",
    "PaletteConfig",
    "PaletteScheduler",
    "RealtimeAnalyzer",
    "SpectralFrame",
    "load_config",
]
