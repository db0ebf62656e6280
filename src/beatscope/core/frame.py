"""Per-tick input frame handed to the analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SpectralFrame:
    """
    One tick of captured audio.

    ``samples`` is the time-domain window and ``bins`` the frequency
    magnitudes in [0, 1].  Both arrays are treated as read-only.
    """

    samples: np.ndarray
    bins: np.ndarray

    def __post_init__(self):
        samples = np.asarray(self.samples, dtype=np.float64).ravel()
        bins = np.clip(np.asarray(self.bins, dtype=np.float64).ravel(), 0.0, 1.0)
        samples.setflags(write=False)
        bins.setflags(write=False)
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "bins", bins)

    @property
    def n_bins(self) -> int:
        return len(self.bins)

    @classmethod
    def empty(cls, n_samples: int = 2048, n_bins: int = 1024) -> "SpectralFrame":
        """A silent frame of the given geometry."""
        return cls(samples=np.zeros(n_samples), bins=np.zeros(n_bins))
