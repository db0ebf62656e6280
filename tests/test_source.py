"""Tests for the file-backed frame producer."""

import numpy as np
import pytest
import soundfile as sf

from beatscope.config import AnalysisConfig
from beatscope.io.source import FrameSource, SpectrumAnalyser


class TestSpectrumAnalyser:
    def test_bin_count(self):
        assert SpectrumAnalyser(fft_size=1024).n_bins == 512

    def test_rejects_bad_fft_size(self):
        with pytest.raises(ValueError):
            SpectrumAnalyser(fft_size=1000)

    def test_rejects_bad_smoothing(self):
        with pytest.raises(ValueError):
            SpectrumAnalyser(smoothing=1.0)

    def test_silence_maps_to_zero(self):
        bins = SpectrumAnalyser().analyse(np.zeros(2048))
        assert bins.shape == (1024,)
        assert not bins.any()

    def test_sine_peaks_at_its_bin(self):
        sr = 22050
        fft_size = 2048
        freq = 100 * sr / fft_size  # centre of bin 100
        t = np.arange(fft_size) / sr
        analyser = SpectrumAnalyser(fft_size=fft_size, smoothing=0.0)

        bins = analyser.analyse(0.5 * np.sin(2 * np.pi * freq * t))

        assert int(np.argmax(bins)) == 100
        assert bins.min() >= 0.0
        assert bins.max() <= 1.0

    def test_quantized_to_byte_steps(self):
        rng = np.random.default_rng(0)
        bins = SpectrumAnalyser().analyse(0.2 * rng.standard_normal(2048))
        np.testing.assert_allclose(bins * 255.0, np.round(bins * 255.0), atol=1e-9)

    def test_smoothing_lags_behind_input(self):
        rng = np.random.default_rng(1)
        noise = 0.3 * rng.standard_normal(2048)
        smooth = SpectrumAnalyser(smoothing=0.82)
        instant = SpectrumAnalyser(smoothing=0.0)
        assert smooth.analyse(noise).mean() < instant.analyse(noise).mean()

    def test_short_window_is_padded(self):
        bins = SpectrumAnalyser().analyse(np.ones(100))
        assert bins.shape == (1024,)


class TestFrameSource:
    def test_frame_geometry(self, pure_sine):
        y, sr = pure_sine
        source = FrameSource(y, sr)

        assert source.hop_length == sr // 60
        assert len(source) == len(y) // source.hop_length

        frames = list(source)
        assert len(frames) == len(source)
        assert all(f.samples.shape == (2048,) for f in frames)
        assert all(f.bins.shape == (1024,) for f in frames)

    def test_fps_controls_hop(self, pure_sine):
        y, sr = pure_sine
        source = FrameSource(y, sr, AnalysisConfig(fps=30))
        assert source.hop_length == sr // 30

    def test_tick_ms_matches_hop(self, pure_sine):
        y, sr = pure_sine
        source = FrameSource(y, sr)
        assert source.tick_ms == pytest.approx(367 * 1000.0 / 22050)
        assert source.tick_ms < AnalysisConfig().tick_ms

    def test_iteration_is_repeatable(self, mixed_signal):
        y, sr = mixed_signal
        source = FrameSource(y, sr)
        first = [f.bins for f in source]
        second = [f.bins for f in source]
        for a, b in zip(first, second):
            np.testing.assert_array_equal(a, b)

    def test_from_file(self, tmp_path, pure_sine):
        y, sr = pure_sine
        path = tmp_path / "sine.wav"
        sf.write(path, y, sr)

        source = FrameSource.from_file(path)

        assert source.sample_rate == sr
        assert source.duration == pytest.approx(2.0, abs=0.01)
        assert len(source) == 119 or len(source) == 120

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(Exception):
            FrameSource.from_file(tmp_path / "missing.wav")
