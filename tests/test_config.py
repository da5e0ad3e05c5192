"""Tests for SimulationConfig."""

import dataclasses
import math

import pytest

from barneshut import DEFAULT_CONFIG, InvalidConfigError, SimulationConfig


class TestDefaults:
    """Default constants."""

    def test_default_values(self):
        """Defaults are the classic simulation constants."""
        config = SimulationConfig()
        assert config.sector_precision == 8
        assert config.theta == 0.5
        assert config.elimination_threshold == 0.5
        assert config.gee == 100.0
        assert config.dt == 0.01
        assert config.leaf_capacity == 1
        assert config.minimum_size == 0.00001
        assert config.min_distance == 1.0

    def test_default_config_is_shared_default(self):
        """DEFAULT_CONFIG equals a freshly built config."""
        assert DEFAULT_CONFIG == SimulationConfig()

    def test_config_is_immutable(self):
        """Fields cannot be reassigned."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_CONFIG.theta = 1.0  # type: ignore[misc]


class TestWithChanges:
    """Copy-with-changes behaviour."""

    def test_with_changes_returns_copy(self):
        """Only the named constants change."""
        config = SimulationConfig().with_changes(theta=1.0, dt=0.1)
        assert config.theta == 1.0
        assert config.dt == 0.1
        assert config.gee == 100.0
        assert DEFAULT_CONFIG.theta == 0.5

    def test_with_changes_is_validated(self):
        """Invalid replacements raise."""
        with pytest.raises(InvalidConfigError, match="theta"):
            SimulationConfig().with_changes(theta=-0.1)


class TestValidation:
    """Out-of-range constants raise InvalidConfigError."""

    @pytest.mark.parametrize("precision", [0, 3, 6, 12, -8])
    def test_precision_must_be_power_of_two(self, precision):
        with pytest.raises(InvalidConfigError, match="power of two"):
            SimulationConfig(sector_precision=precision)

    @pytest.mark.parametrize("precision", [1, 2, 4, 16, 64])
    def test_valid_precisions(self, precision):
        assert SimulationConfig(sector_precision=precision).sector_precision == precision

    def test_precision_must_be_int(self):
        with pytest.raises(InvalidConfigError, match="must be an int"):
            SimulationConfig(sector_precision=8.0)  # type: ignore[arg-type]

    def test_theta_zero_allowed(self):
        """theta = 0 means exact force computation."""
        assert SimulationConfig(theta=0.0).theta == 0.0

    def test_negative_theta_raises(self):
        with pytest.raises(InvalidConfigError, match="theta must be >= 0"):
            SimulationConfig(theta=-1.0)

    @pytest.mark.parametrize("field_name", ["gee", "dt"])
    def test_strictly_positive_fields(self, field_name):
        with pytest.raises(InvalidConfigError, match=f"{field_name} must be positive"):
            SimulationConfig(**{field_name: 0.0})

    def test_nan_dt_raises(self):
        with pytest.raises(InvalidConfigError, match="dt must be positive"):
            SimulationConfig(dt=math.nan)

    def test_leaf_capacity_must_be_positive(self):
        with pytest.raises(InvalidConfigError, match="leaf_capacity"):
            SimulationConfig(leaf_capacity=0)

    def test_negative_min_distance_raises(self):
        with pytest.raises(InvalidConfigError, match="min_distance"):
            SimulationConfig(min_distance=-1.0)

    @pytest.mark.parametrize("size", [0.0, -1e-5])
    def test_minimum_size_must_be_positive(self, size):
        """A zero minimum size would let coincident bodies split forever."""
        with pytest.raises(InvalidConfigError, match="minimum_size must be positive"):
            SimulationConfig(minimum_size=size)
