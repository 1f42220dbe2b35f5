"""
Discrete-node heat transport in a closed solar hydronic loop:
collector → pipe → stratified tank → pipe → collector.
"""

from thermal_loop.exceptions import ThermalLoopError, ConfigurationError
from thermal_loop.config import WaterProperties, LoopParams, LoopGeometry
from thermal_loop.components import (
    NodeChain, SolarCollector, SolarCollectorParams,
    StorageTank, StorageTankParams, Pipe, Pump,
)
from thermal_loop.simulation import ThermalLoopSimulation, LoopSnapshot

__version__ = "1.0.0"

__all__ = [
    'ThermalLoopError', 'ConfigurationError',
    'WaterProperties', 'LoopParams', 'LoopGeometry',
    'NodeChain', 'SolarCollector', 'SolarCollectorParams',
    'StorageTank', 'StorageTankParams', 'Pipe', 'Pump',
    'ThermalLoopSimulation', 'LoopSnapshot',
]
