"""Frame sources and manifest export."""

from beatscope.io.exporter import ManifestExporter
from beatscope.io.source import FrameSource, SpectrumAnalyser

__all__ = ["FrameSource", "ManifestExporter", "SpectrumAnalyser"]
