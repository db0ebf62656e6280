"""Tests for FluxOnsetDetector."""

import numpy as np
import pytest

from beatscope.config import AnalysisConfig
from beatscope.core.flux import FluxOnsetDetector


class TestFlux:
    def test_first_frame_seeds_and_returns_zero(self):
        det = FluxOnsetDetector()
        bins = np.full(16, 0.5)
        assert det.prev_spectrum is None

        reading = det.update(bins)

        assert reading.flux == 0.0
        np.testing.assert_allclose(det.prev_spectrum, 0.5 ** 1.18)

    def test_rise_is_averaged_per_bin(self):
        det = FluxOnsetDetector()
        det.update(np.zeros(4))
        reading = det.update(np.array([1.0, 1.0, 0.0, 0.0]))
        assert reading.flux == pytest.approx(0.5)

    def test_fall_is_rectified(self):
        det = FluxOnsetDetector()
        det.update(np.ones(8))
        assert det.update(np.zeros(8)).flux == 0.0

    def test_previous_spectrum_is_overwritten(self):
        det = FluxOnsetDetector()
        det.update(np.zeros(4))
        det.update(np.ones(4))
        assert det.update(np.ones(4)).flux == 0.0

    def test_bin_count_change_reseeds(self):
        det = FluxOnsetDetector()
        det.update(np.zeros(8))
        reading = det.update(np.ones(16))
        assert reading.flux == 0.0
        assert len(det.prev_spectrum) == 16

    def test_flux_never_negative(self):
        rng = np.random.default_rng(11)
        det = FluxOnsetDetector()
        for _ in range(300):
            reading = det.update(rng.random(64) * rng.random())
            assert reading.flux >= 0.0

    def test_empty_bins(self):
        det = FluxOnsetDetector()
        assert det.update(np.zeros(0)).flux == 0.0
        assert det.update(np.zeros(0)).flux == 0.0


class TestAdaptiveThreshold:
    def test_undefined_during_warm_up_then_finite(self):
        rng = np.random.default_rng(5)
        det = FluxOnsetDetector()
        readings = [det.update(rng.random(32)) for _ in range(40)]

        # Tick k sees k earlier flux values; 12 are needed.
        for reading in readings[:12]:
            assert reading.threshold is None
            assert reading.delta == 0.0
        for reading in readings[12:]:
            assert reading.threshold is not None
            assert np.isfinite(reading.threshold)

    def test_threshold_is_mean_plus_scaled_deviation(self):
        config = AnalysisConfig(flux_window=4, flux_min_window=4, flux_sensitivity=2.0)
        det = FluxOnsetDetector(config)
        det.flux_history.extend([0.1, 0.3, 0.1, 0.3, 100.0, 0.1, 0.3, 0.1, 0.3])

        # Only the trailing four values count: mean 0.2, deviation 0.1.
        assert det.threshold() == pytest.approx(0.2 + 0.1 * 2.0)

    def test_delta_against_threshold(self):
        config = AnalysisConfig(flux_window=2, flux_min_window=2)
        det = FluxOnsetDetector(config)
        det.update(np.zeros(4))
        det.update(np.zeros(4))
        reading = det.update(np.ones(4))
        assert reading.threshold == pytest.approx(0.0)
        assert reading.delta == pytest.approx(1.0)

    def test_history_is_bounded(self):
        config = AnalysisConfig(flux_history_size=30, flux_window=24)
        det = FluxOnsetDetector(config)
        for i in range(100):
            det.update(np.full(8, (i % 5) / 5))
        assert len(det.flux_history) == 30

    def test_reset_clears_history_and_spectrum(self):
        det = FluxOnsetDetector()
        for _ in range(20):
            det.update(np.ones(8))
        det.reset()
        assert det.prev_spectrum is None
        assert len(det.flux_history) == 0
