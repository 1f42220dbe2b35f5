"""
Unit tests for loop configuration and derived geometry
"""

import logging

import pytest

from thermal_loop.config import LoopParams, LoopGeometry, WaterProperties
from thermal_loop.exceptions import ConfigurationError, ThermalLoopError
from thermal_loop.simulation import ThermalLoopSimulation


def _small_params(**overrides):
    """Default loop with optional overrides."""
    return LoopParams(**overrides)


class TestDerivedGeometry:
    """Node counts and constants computed once from params"""

    def test_default_node_counts(self):
        g = LoopGeometry.from_params(_small_params())

        assert g.collector_nodes == 5
        assert g.pipe_nodes == 2
        assert g.tank_nodes == 100
        assert g.total_nodes == 109

    def test_default_constants(self):
        g = LoopGeometry.from_params(_small_params())

        assert g.time_step == pytest.approx(20.0)
        assert g.node_mass == pytest.approx(2.0)
        assert g.collector_mass == pytest.approx(10.0)
        assert g.tank_cross_section == pytest.approx(0.2 / 1.5)
        assert g.node_height == pytest.approx(0.015)
        assert g.conduction_coefficient == pytest.approx((0.2 / 1.5) / 0.015)

    def test_default_loop_is_stable(self):
        g = LoopGeometry.from_params(_small_params())
        assert g.stability_number < 0.5
        assert g.is_stable

    def test_water_properties_feed_masses(self):
        g = LoopGeometry.from_params(_small_params(
            water=WaterProperties(density=980.0, specific_heat=4190.0)))
        assert g.node_mass == pytest.approx(0.002 * 980.0)
        assert g.collector_mass == pytest.approx(0.01 * 980.0)

    def test_geometry_is_frozen(self):
        g = LoopGeometry.from_params(_small_params())
        with pytest.raises(AttributeError):
            g.tank_nodes = 3

    def test_volume_within_tolerance_accepted(self):
        g = LoopGeometry.from_params(_small_params(tank_volume=0.2 + 5e-7))
        assert g.tank_nodes == 100


class TestConfigurationErrors:
    """Inconsistent params are rejected before the simulation starts"""

    def test_tank_not_whole_nodes(self):
        with pytest.raises(ConfigurationError, match="Tank"):
            LoopGeometry.from_params(_small_params(tank_volume=0.201))

    def test_collector_not_whole_nodes(self):
        with pytest.raises(ConfigurationError, match="Collector"):
            LoopGeometry.from_params(_small_params(collector_water_volume=0.011))

    def test_collector_smaller_than_one_node(self):
        with pytest.raises(ConfigurationError):
            LoopGeometry.from_params(_small_params(collector_water_volume=0.0009))

    @pytest.mark.parametrize("field", [
        'node_volume', 'tank_volume', 'collector_water_volume',
        'pump_flow_rate', 'tank_height',
    ])
    def test_non_positive_dimension(self, field):
        with pytest.raises(ConfigurationError, match=field):
            LoopGeometry.from_params(_small_params(**{field: 0.0}))

    def test_pipe_needs_a_node(self):
        with pytest.raises(ConfigurationError, match="pipe_nodes"):
            LoopGeometry.from_params(_small_params(pipe_nodes=0))

    def test_error_hierarchy(self):
        assert issubclass(ConfigurationError, ThermalLoopError)

    def test_simulation_construction_validates(self):
        with pytest.raises(ConfigurationError):
            ThermalLoopSimulation(_small_params(tank_volume=0.2015))


class TestStabilityWarning:
    """Unstable explicit conduction is logged, not corrected"""

    def test_slow_pump_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="thermal_loop.config"):
            g = LoopGeometry.from_params(_small_params(pump_flow_rate=1e-6))

        assert not g.is_stable
        assert g.stability_number > 0.5
        assert "unstable" in caplog.text

    def test_default_loop_logs_nothing(self, caplog):
        with caplog.at_level(logging.WARNING, logger="thermal_loop.config"):
            LoopGeometry.from_params(_small_params())
        assert caplog.text == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
