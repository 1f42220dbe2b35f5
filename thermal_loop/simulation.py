"""
Tick orchestrator for the closed solar loop.

One tick advances the clock by the pump's one-node transit time and then,
in order: pump transport and inversion mixing (pump on only), solar
heating, tank conduction. Readers should only look at the state between
ticks.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple

import numpy as np

from thermal_loop.components import (
    SolarCollector, SolarCollectorParams,
    StorageTank, StorageTankParams,
    Pipe, Pump, NodeChain,
)
from thermal_loop.config import LoopParams, LoopGeometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoopSnapshot:
    """Read-only copy of the simulation state taken between ticks."""
    elapsed_time: float
    collector: Tuple[float, ...]
    upper_pipe: Tuple[float, ...]
    tank: Tuple[float, ...]
    lower_pipe: Tuple[float, ...]
    running: bool
    pump_on: bool

    @property
    def all_nodes(self) -> Tuple[float, ...]:
        """Every node in flow order, starting at the collector inlet."""
        return self.collector + self.upper_pipe + self.tank + self.lower_pipe


class ThermalLoopSimulation:
    """
    Discrete-node simulation of collector, pipes and stratified tank.

    State is initialized once (every node at the initial temperature, clock
    at zero) and afterwards only changed by tick(), toggle_running(),
    toggle_pump() and the solar_intensity setter.
    """

    def __init__(
        self,
        params: Optional[LoopParams] = None,
        running: bool = True,
        pump_on: bool = True,
        record_history: bool = False,
    ):
        self.params = params or LoopParams()
        self.geometry = LoopGeometry.from_params(self.params)

        T0 = self.params.initial_temp
        g = self.geometry

        # Components, in flow order
        self.collector = SolarCollector(
            "Collector", g.collector_nodes,
            SolarCollectorParams.from_loop(self.params, g), initial_temp=T0)
        self.upper_pipe = Pipe("UpperPipe", g.pipe_nodes, initial_temp=T0)
        self.tank = StorageTank(
            "Tank", g.tank_nodes,
            StorageTankParams.from_loop(self.params, g), initial_temp=T0)
        self.lower_pipe = Pipe("LowerPipe", g.pipe_nodes, initial_temp=T0)
        self.pump = Pump("Pump", self.params.pump_flow_rate, is_on=pump_on)

        self.running = running
        self.elapsed_time = 0.0
        self._solar_intensity = 0.0
        self.solar_intensity = self.params.solar_intensity

        self.record_history = record_history
        self.history: Dict[str, List] = self._empty_history()

    # ------------------------------------------------------------------
    # State and flags
    # ------------------------------------------------------------------

    @property
    def loop(self) -> Tuple[NodeChain, ...]:
        """Chains in flow order around the ring."""
        return (self.collector, self.upper_pipe, self.tank, self.lower_pipe)

    @property
    def time_step(self) -> float:
        """Simulated seconds per tick."""
        return self.geometry.time_step

    @property
    def pump_on(self) -> bool:
        return self.pump.is_on

    @property
    def solar_intensity(self) -> float:
        """Irradiance on the collector (W/m²)."""
        return self._solar_intensity

    @solar_intensity.setter
    def solar_intensity(self, value: float):
        if value < 0:
            raise ValueError(f"solar_intensity must be non-negative, got {value}")
        self._solar_intensity = float(value)

    def toggle_running(self) -> bool:
        self.running = not self.running
        logger.debug("Simulation %s at t=%.1fs",
                     'running' if self.running else 'paused', self.elapsed_time)
        return self.running

    def toggle_pump(self) -> bool:
        return self.pump.toggle()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> bool:
        """
        Advance the simulation by one time step.

        Returns:
            True if the state advanced, False while paused.
        """
        if not self.running:
            return False

        dt = self.time_step
        self.elapsed_time += dt

        if self.pump.is_on:
            self.pump.update(dt, {'loop': self.loop})
            self.tank.mix_inversion()

        collector_out = self.collector.update(dt, {
            'irradiance': self._solar_intensity,
            'T_ambient': self.params.ambient_temp,
        })
        tank_out = self.tank.update(dt, {})

        if self.record_history:
            self.history['time'].append(self.elapsed_time)
            self.history['T_tank_nodes'].append(self.tank.T_nodes.copy())
            self.history['T_tank'].append(tank_out['T_tank'])
            self.history['T_collector_outlet'].append(self.collector.T_outlet)
            self.history['collector_efficiency'].append(collector_out['efficiency'])
            self.history['pump_on'].append(self.pump.is_on)
        return True

    # ------------------------------------------------------------------
    # Readouts
    # ------------------------------------------------------------------

    @property
    def collector_outlet_temp(self) -> float:
        return self.collector.T_outlet

    @property
    def collector_efficiency(self) -> float:
        return self.collector.efficiency(self.params.ambient_temp)

    @property
    def tank_top_temp(self) -> float:
        return self.tank.T_tank_top

    @property
    def tank_bottom_temp(self) -> float:
        return self.tank.T_tank_bottom

    @property
    def tank_average_temp(self) -> float:
        return self.tank.T_tank

    @property
    def stratification_dT(self) -> float:
        return self.tank.T_tank_top - self.tank.T_tank_bottom

    def tank_stored_heat(self) -> float:
        """Heat held in the tank above ambient (J)."""
        return self.tank.stored_heat(self.params.ambient_temp)

    def snapshot(self) -> LoopSnapshot:
        return LoopSnapshot(
            elapsed_time=self.elapsed_time,
            collector=tuple(self.collector.T_nodes.tolist()),
            upper_pipe=tuple(self.upper_pipe.T_nodes.tolist()),
            tank=tuple(self.tank.T_nodes.tolist()),
            lower_pipe=tuple(self.lower_pipe.T_nodes.tolist()),
            running=self.running,
            pump_on=self.pump.is_on,
        )

    def get_state(self) -> Dict[str, Any]:
        return {
            'time': self.elapsed_time,
            'running': self.running,
            'solar_intensity': self._solar_intensity,
            'collector': self.collector.get_state(),
            'upper_pipe': self.upper_pipe.get_state(),
            'tank': self.tank.get_state(),
            'lower_pipe': self.lower_pipe.get_state(),
            'pump': self.pump.get_state(),
        }

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self):
        """Return every node to the initial temperature and the clock to zero."""
        for chain in self.loop:
            chain.reset(self.params.initial_temp)
        self.elapsed_time = 0.0
        self.history = self._empty_history()

    @staticmethod
    def _empty_history() -> Dict[str, List]:
        return {
            'time': [],
            'T_tank_nodes': [],
            'T_tank': [],
            'T_collector_outlet': [],
            'collector_efficiency': [],
            'pump_on': [],
        }

    def history_arrays(self) -> Dict[str, np.ndarray]:
        """History as numpy arrays; T_tank_nodes becomes (ticks, tank_nodes)."""
        arrays = {key: np.array(values) for key, values in self.history.items()
                  if key != 'T_tank_nodes'}
        if self.history['T_tank_nodes']:
            arrays['T_tank_nodes'] = np.vstack(self.history['T_tank_nodes'])
        else:
            arrays['T_tank_nodes'] = np.empty((0, self.geometry.tank_nodes))
        return arrays
