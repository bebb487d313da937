"""Tests for simulation parameter validation."""

import pytest

from ab_power.config import SimulationConfig


class TestSimulationConfig:
    """Construction-time checks."""

    def test_fraction_size(self):
        cfg = SimulationConfig(treatment_level=1.99, control_level=0.99, sampling_fraction=0.2)
        assert cfg.per_group_size(800) == 160
        assert cfg.per_group_size(7) == 1

    def test_absolute_size(self):
        cfg = SimulationConfig(treatment_level=1.99, control_level=0.99, sample_size=50)
        assert cfg.per_group_size(800) == 50

    def test_size_exceeds_group(self):
        cfg = SimulationConfig(treatment_level=1.99, control_level=0.99, sample_size=50)
        with pytest.raises(ValueError, match="Cannot draw 50"):
            cfg.per_group_size(10)

    def test_replacement_allows_oversampling(self):
        cfg = SimulationConfig(treatment_level=1.99, control_level=0.99,
                               sampling_fraction=1.5, replace=True)
        assert cfg.per_group_size(100) == 150

    def test_frozen(self):
        cfg = SimulationConfig(treatment_level=1.99, control_level=0.99, sample_size=5)
        with pytest.raises(AttributeError):
            cfg.seed = 1

    @pytest.mark.parametrize("kwargs, message", [
        ({}, "exactly one"),
        ({'sampling_fraction': 0.5, 'sample_size': 5}, "exactly one"),
        ({'sampling_fraction': -0.1}, "must be positive"),
        ({'sampling_fraction': float('nan')}, "must be positive"),
        ({'sampling_fraction': 1.2}, "without replacement"),
        ({'sample_size': -1}, "non-negative"),
        ({'sample_size': 5, 'replicate_count': 0}, "at least 1"),
        ({'sample_size': 5, 'outcome': 'profit'}, "Unknown outcome"),
        ({'sample_size': 5, 'critical_value': 0}, "critical_value"),
    ])
    def test_invalid(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            SimulationConfig(treatment_level=1.99, control_level=0.99, **kwargs)

    def test_same_levels(self):
        with pytest.raises(ValueError, match="must differ"):
            SimulationConfig(treatment_level=0.99, control_level=0.99, sample_size=5)
