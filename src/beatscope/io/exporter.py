"""
Manifest serialization module.

Exports per-tick analysis snapshots to a JSON manifest aligned to the tick
rate, for renderers that replay a track offline.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import numpy as np

from beatscope.core.stream import LiveFeatures


@dataclass
class ManifestMetadata:
    """Metadata header for the feature manifest."""

    bpm: float
    duration: float
    fps: int
    n_frames: int
    n_beats: int
    schema_version: str = "1.0"


class ManifestExporter:
    """
    Exports LiveFeatures sequences to JSON or NumPy manifests.

    Each frame carries every snapshot field plus the palette index and
    theme chosen for that tick, when supplied.
    """

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for floating point values.
        """
        self.precision = precision

    def _round(self, value: float) -> float:
        """Round to configured precision."""
        return round(float(value), self.precision)

    def _optional(self, value: Optional[float]) -> Optional[float]:
        """Round a value that may be None or non-finite."""
        if value is None:
            return None
        f = float(value)
        if np.isnan(f) or np.isinf(f):
            return None
        return self._round(f)

    @staticmethod
    def summary_bpm(features: Sequence[LiveFeatures]) -> float:
        """Last known tempo of a run, 0.0 if none was ever established."""
        for snapshot in reversed(features):
            if snapshot.bpm > 0:
                return float(snapshot.bpm)
        return 0.0

    def _build_frame(
        self,
        index: int,
        snapshot: LiveFeatures,
        palette_index: Optional[int] = None,
        theme: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Build a single frame's data dictionary.

        Args:
            index: Frame index.
            snapshot: Analyzer output for this tick.
            palette_index: Scheduler selection for this tick.
            theme: Theme name for ``palette_index``.

        Returns:
            Dictionary with all frame data.
        """
        bands = snapshot.band_energy
        return {
            "frame_index": index,
            "time": self._round(snapshot.time_ms / 1000.0),
            "is_beat": bool(snapshot.is_beat),
            "beat_pulse": self._round(snapshot.beat_pulse),
            "bpm": self._round(snapshot.bpm),
            "level": self._round(snapshot.level),
            "level_average": self._round(snapshot.level_average),
            "rms": self._round(snapshot.rms),
            "rms_average": self._round(snapshot.rms_average),
            "brightness": self._round(snapshot.brightness),
            "spectral_flux": self._round(snapshot.spectral_flux),
            "flux_threshold": self._optional(snapshot.flux_threshold),
            "low_energy": self._round(bands.low),
            "mid_energy": self._round(bands.mid),
            "high_energy": self._round(bands.high),
            "frequencies": [self._round(v) for v in snapshot.frequencies],
            "palette_index": palette_index,
            "theme": theme,
        }

    def build_manifest(
        self,
        features: Sequence[LiveFeatures],
        fps: int,
        duration: float,
        palette_indices: Optional[Sequence[int]] = None,
        themes: Optional[Sequence[str]] = None,
    ) -> dict[str, Any]:
        """
        Build the complete manifest dictionary.

        Args:
            features: One snapshot per tick.
            fps: Tick rate of the run.
            duration: Audio duration in seconds.
            palette_indices: Optional scheduler output, one per tick.
            themes: Theme names indexed by palette index.

        Returns:
            Complete manifest dictionary ready for serialization.
        """
        if palette_indices is not None and len(palette_indices) != len(features):
            raise ValueError(
                f"palette_indices has {len(palette_indices)} entries "
                f"for {len(features)} frames"
            )

        metadata = ManifestMetadata(
            bpm=self._round(self.summary_bpm(features)),
            duration=self._round(duration),
            fps=fps,
            n_frames=len(features),
            n_beats=sum(1 for f in features if f.is_beat),
        )

        frames = []
        for i, snapshot in enumerate(features):
            palette_index = None if palette_indices is None else int(palette_indices[i])
            theme = (
                themes[palette_index]
                if themes is not None and palette_index is not None
                else None
            )
            frames.append(self._build_frame(i, snapshot, palette_index, theme))

        manifest: dict[str, Any] = {
            "metadata": {
                "bpm": metadata.bpm,
                "duration": metadata.duration,
                "fps": metadata.fps,
                "n_frames": metadata.n_frames,
                "n_beats": metadata.n_beats,
                "schema_version": metadata.schema_version,
            },
            "frames": frames,
        }
        if themes is not None:
            manifest["themes"] = list(themes)

        return manifest

    def export_json(
        self,
        manifest: dict[str, Any],
        output_path: Union[str, Path],
        indent: int = 2,
    ) -> Path:
        """
        Write a manifest built by :meth:`build_manifest` to a JSON file.

        Returns:
            Path to written file.
        """
        output_path = Path(output_path)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=indent)

        return output_path

    def export_numpy(
        self,
        features: Sequence[LiveFeatures],
        output_path: Union[str, Path],
        palette_indices: Optional[Sequence[int]] = None,
    ) -> Path:
        """
        Export features as NumPy .npz archive for faster loading.

        Args:
            features: One snapshot per tick.
            output_path: Path for output .npz file.
            palette_indices: Optional scheduler output, one per tick.

        Returns:
            Path to written file.
        """
        output_path = Path(output_path)

        def column(name: str) -> np.ndarray:
            return np.array([getattr(f, name) for f in features], dtype=float)

        arrays: dict[str, Any] = dict(
            time_ms=column("time_ms"),
            is_beat=np.array([f.is_beat for f in features], dtype=bool),
            beat_pulse=column("beat_pulse"),
            bpm=column("bpm"),
            level=column("level"),
            level_average=column("level_average"),
            rms=column("rms"),
            rms_average=column("rms_average"),
            brightness=column("brightness"),
            spectral_flux=column("spectral_flux"),
            flux_threshold=np.array(
                [np.nan if f.flux_threshold is None else f.flux_threshold for f in features],
                dtype=float,
            ),
            low_energy=np.array([f.band_energy.low for f in features], dtype=float),
            mid_energy=np.array([f.band_energy.mid for f in features], dtype=float),
            high_energy=np.array([f.band_energy.high for f in features], dtype=float),
            n_frames=np.array([len(features)]),
        )
        if features:
            arrays["frequencies"] = np.stack([f.frequencies for f in features])
        if palette_indices is not None:
            arrays["palette_index"] = np.asarray(palette_indices, dtype=int)

        np.savez_compressed(output_path, **arrays)

        return output_path
