"""
Loop configuration and derived geometry.

LoopParams holds the raw construction inputs. LoopGeometry turns them into
node counts, masses and areas once, validating that every component volume
is a whole number of nodes.
"""

import logging
from dataclasses import dataclass, field

from thermal_loop.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# m³, allowed mismatch between a component volume and a whole number of nodes
VOLUME_TOLERANCE = 1e-6

# Explicit forward-Euler diffusion is stable for r <= 1/2
STABILITY_LIMIT = 0.5


# ============================================================================
# FLUID PROPERTIES
# ============================================================================

@dataclass(frozen=True)
class WaterProperties:
    """
    Thermophysical properties of the loop water.
    Held constant over the whole temperature range of the simulation.
    """
    density: float = 1000.0           # kg/m³
    specific_heat: float = 4186.0     # J/(kg·K)


# ============================================================================
# CONSTRUCTION INPUTS
# ============================================================================

@dataclass(frozen=True)
class LoopParams:
    """
    Physical parameters of the closed collector → pipe → tank → pipe loop.

    All volumes must be whole multiples of node_volume. Defaults describe a
    small domestic system: 2 m² collector holding 10 L, 200 L tank, 0.1 L/s pump.
    """
    tank_volume: float = 0.2              # m³
    collector_area: float = 2.0           # m²
    collector_water_volume: float = 0.01  # m³
    pump_flow_rate: float = 1e-4          # m³/s
    node_volume: float = 0.002            # m³ per discrete water segment
    pipe_nodes: int = 2                   # nodes in each connecting pipe
    tank_height: float = 1.5              # m
    ambient_temp: float = 20.0            # °C
    initial_temp: float = 20.0            # °C
    solar_intensity: float = 1000.0       # W/m²
    conductivity: float = 1.0             # W/(m·K) vertical conduction in the tank
    efficiency_slope: float = -0.00943    # 1/K
    efficiency_intercept: float = 0.66
    water: WaterProperties = field(default_factory=WaterProperties)


# ============================================================================
# DERIVED GEOMETRY
# ============================================================================

def _whole_nodes(name: str, volume: float, node_volume: float) -> int:
    """Return volume / node_volume as an int, or raise if it is not whole."""
    count = int(round(volume / node_volume))
    if count < 1 or abs(count * node_volume - volume) > VOLUME_TOLERANCE:
        raise ConfigurationError(
            f"{name} volume {volume} m³ is not a whole multiple of "
            f"node volume {node_volume} m³"
        )
    return count


@dataclass(frozen=True)
class LoopGeometry:
    """
    Constants derived from LoopParams. Built once by from_params and held by
    the simulation for its whole lifetime.
    """
    collector_nodes: int
    pipe_nodes: int
    tank_nodes: int
    time_step: float            # s for the pump to move one node volume
    node_mass: float            # kg
    collector_mass: float       # kg of water inside the collector
    tank_cross_section: float   # m²
    node_height: float          # m
    conduction_coefficient: float   # W/K between vertically adjacent tank nodes
    stability_number: float     # dimensionless explicit diffusion ratio

    @property
    def total_nodes(self) -> int:
        return self.collector_nodes + 2 * self.pipe_nodes + self.tank_nodes

    @property
    def is_stable(self) -> bool:
        return self.stability_number <= STABILITY_LIMIT

    @classmethod
    def from_params(cls, params: LoopParams) -> 'LoopGeometry':
        """
        Validate params and compute derived constants.

        The explicit conduction step is only stable while
            r = conductivity * (A / h) * dt / (m_node * cp) <= 0.5
        dt is fixed by the pump's one-node transit time, so changing tank
        height, node volume or flow rate changes r. An unstable r is logged,
        not corrected.

        Raises:
            ConfigurationError: for non-positive dimensions or component
                volumes that are not a whole number of nodes.
        """
        positive = {
            'node_volume': params.node_volume,
            'tank_volume': params.tank_volume,
            'collector_water_volume': params.collector_water_volume,
            'pump_flow_rate': params.pump_flow_rate,
            'tank_height': params.tank_height,
            'water.density': params.water.density,
            'water.specific_heat': params.water.specific_heat,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        if params.pipe_nodes < 1:
            raise ConfigurationError(
                f"pipe_nodes must be at least 1, got {params.pipe_nodes}"
            )

        collector_nodes = _whole_nodes(
            'Collector', params.collector_water_volume, params.node_volume)
        tank_nodes = _whole_nodes('Tank', params.tank_volume, params.node_volume)

        time_step = params.node_volume / params.pump_flow_rate
        node_mass = params.node_volume * params.water.density
        collector_mass = params.collector_water_volume * params.water.density
        tank_cross_section = params.tank_volume / params.tank_height
        node_height = params.tank_height / tank_nodes
        conduction_coefficient = params.conductivity * tank_cross_section / node_height
        stability_number = (conduction_coefficient * time_step /
                            (node_mass * params.water.specific_heat))

        geometry = cls(
            collector_nodes=collector_nodes,
            pipe_nodes=int(params.pipe_nodes),
            tank_nodes=tank_nodes,
            time_step=time_step,
            node_mass=node_mass,
            collector_mass=collector_mass,
            tank_cross_section=tank_cross_section,
            node_height=node_height,
            conduction_coefficient=conduction_coefficient,
            stability_number=stability_number,
        )
        logger.debug("Loop geometry: %s", geometry)
        if not geometry.is_stable:
            logger.warning(
                "Explicit tank conduction is unstable: r=%.3f exceeds %.1f "
                "(dt=%.1fs, node height=%.4fm)",
                stability_number, STABILITY_LIMIT, time_step, node_height,
            )
        return geometry
