"""Shared fixtures: synthetic signals and tick-aligned frame sequences."""

import numpy as np
import pytest

from beatscope.core.frame import SpectralFrame

TEST_SR = 22050
N_SAMPLES = 2048
N_BINS = 1024
TICK_MS = 1000.0 / 60.0


def make_frame(bin_value=0.1, amplitude=0.05, n_bins=N_BINS, n_samples=N_SAMPLES):
    """A frame with flat bins and a 440 Hz sine window."""
    t = np.arange(n_samples) / TEST_SR
    samples = amplitude * np.sin(2 * np.pi * 440.0 * t)
    return SpectralFrame(samples=samples, bins=np.full(n_bins, bin_value))


def metronome(n_ticks, period, spike=0.8, base=0.1, amplitude=0.05, offset=None):
    """
    Frames with a flat spectrum and a sharp broadband rise every ``period`` ticks.

    Spikes land on ticks ``offset, offset + period, ...`` (offset defaults to
    ``period`` so the first spike falls after flux warm-up).
    """
    offset = period if offset is None else offset
    quiet = make_frame(base, amplitude)
    loud = make_frame(spike, amplitude)
    return [
        loud if i >= offset and (i - offset) % period == 0 else quiet
        for i in range(n_ticks)
    ]


def silence(n_ticks):
    frame = SpectralFrame.empty(N_SAMPLES, N_BINS)
    return [frame] * n_ticks


def random_frames(n_ticks, seed=0):
    rng = np.random.default_rng(seed)
    frames = []
    for _ in range(n_ticks):
        amplitude = rng.choice([0.0, 0.001, 0.01, 0.3])
        samples = amplitude * rng.standard_normal(N_SAMPLES)
        bins = rng.random(N_BINS) * rng.random()
        frames.append(SpectralFrame(samples=samples, bins=bins))
    return frames


@pytest.fixture
def pure_sine():
    """Two seconds of a 440 Hz sine."""
    sr = TEST_SR
    t = np.linspace(0, 2.0, int(sr * 2.0), endpoint=False)
    return (0.5 * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32), sr


@pytest.fixture
def mixed_signal():
    """A sine pad with decaying noise bursts on every half second."""
    sr = TEST_SR
    duration = 4.0
    rng = np.random.default_rng(7)
    t = np.linspace(0, duration, int(sr * duration), endpoint=False)
    y = 0.05 * np.sin(2 * np.pi * 220.0 * t)
    burst_len = int(0.03 * sr)
    envelope = np.exp(-np.linspace(0, 6, burst_len))
    for start in range(0, len(y) - burst_len, sr // 2):
        y[start:start + burst_len] += 0.6 * rng.standard_normal(burst_len) * envelope
    return y.astype(np.float32), sr


@pytest.fixture
def click_track():
    """Four seconds of broadband clicks at 120 BPM over digital silence."""
    sr = TEST_SR
    duration = 4.0
    rng = np.random.default_rng(3)
    y = np.zeros(int(sr * duration))
    click_len = int(0.02 * sr)
    envelope = np.exp(-np.linspace(0, 5, click_len))
    for start in range(0, len(y) - click_len, sr // 2):
        y[start:start + click_len] = 0.5 * rng.standard_normal(click_len) * envelope
    return y.astype(np.float32), sr
