"""
Node-chain components of the closed solar loop.

Every component holds an ordered array of node temperatures. Water moves
around the ring one node at a time:

  [Collector] → [Upper pipe] → [Tank, top → bottom] → [Lower pipe] → [Collector]

Head of each chain is the upstream end, tail is the downstream end.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Sequence

import numpy as np

from thermal_loop.config import LoopParams, LoopGeometry

logger = logging.getLogger(__name__)


# ============================================================================
# BASE CLASSES
# ============================================================================

class Component(ABC):
    """Base class for all loop components"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def update(self, dt: float, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update component state for one timestep.

        Args:
            dt: Time step in seconds
            inputs: Dictionary of input values from the orchestrator

        Returns:
            Dictionary of output values
        """
        pass

    @abstractmethod
    def get_state(self) -> Dict[str, Any]:
        """Return current component state for monitoring"""
        pass


class NodeChain(Component):
    """
    Fixed-length chain of water nodes.

    Node values are only relabeled by push(); the chain never grows or shrinks.
    """

    def __init__(self, name: str, num_nodes: int, initial_temp: float = 20.0):
        super().__init__(name)
        self.T_nodes = np.full(num_nodes, initial_temp, dtype=float)

    @property
    def num_nodes(self) -> int:
        return len(self.T_nodes)

    @property
    def T_head(self) -> float:
        return float(self.T_nodes[0])

    @property
    def T_tail(self) -> float:
        return float(self.T_nodes[-1])

    def push(self, T_in: float) -> float:
        """Insert a node at the head and return the temperature dropped off the tail."""
        T_out = self.T_tail
        self.T_nodes[1:] = self.T_nodes[:-1]
        self.T_nodes[0] = T_in
        return T_out

    def reset(self, initial_temp: float):
        self.T_nodes[:] = initial_temp

    def update(self, dt: float, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """Plain chains only carry water; nothing changes between pump steps."""
        return {'T_inlet': self.T_head, 'T_outlet': self.T_tail}

    def get_state(self) -> Dict[str, Any]:
        return {
            'T_nodes': self.T_nodes.copy(),
            'num_nodes': self.num_nodes,
        }


# ============================================================================
# SOLAR COLLECTOR
# ============================================================================

@dataclass
class SolarCollectorParams:
    """
    Lumped collector model. Efficiency falls linearly with the outlet's
    temperature rise above ambient and is not clamped: it goes negative
    once the outlet is hot enough, and the collector then loses heat.
    """
    area: float = 2.0                   # m²
    water_mass: float = 10.0            # kg of water held in the collector
    specific_heat: float = 4186.0       # J/(kg·K)
    efficiency_slope: float = -0.00943  # 1/K
    efficiency_intercept: float = 0.66

    @classmethod
    def from_loop(cls, params: LoopParams, geometry: LoopGeometry) -> 'SolarCollectorParams':
        return cls(
            area=params.collector_area,
            water_mass=geometry.collector_mass,
            specific_heat=params.water.specific_heat,
            efficiency_slope=params.efficiency_slope,
            efficiency_intercept=params.efficiency_intercept,
        )


class SolarCollector(NodeChain):
    """
    Flat-plate collector as a chain of nodes, cold inlet at the head and
    warm outlet at the tail. Absorbed energy raises every node by the same
    amount; the gradient along the collector comes from pumping alone.
    """

    def __init__(self, name: str, num_nodes: int, params: SolarCollectorParams,
                 initial_temp: float = 20.0):
        super().__init__(name, num_nodes, initial_temp)
        self.params = params

    @property
    def T_outlet(self) -> float:
        return self.T_tail

    def efficiency(self, T_ambient: float) -> float:
        """Collector efficiency at the current outlet temperature."""
        return (self.params.efficiency_slope * (self.T_outlet - T_ambient)
                + self.params.efficiency_intercept)

    def heat(self, dt: float, irradiance: float, T_ambient: float) -> float:
        """
        Apply absorbed solar energy over dt uniformly to all nodes.

        Returns:
            Temperature rise applied to each node (°C), negative when the
            efficiency is negative.
        """
        Q_absorbed = irradiance * self.params.area * dt * self.efficiency(T_ambient)
        dT = Q_absorbed / (self.params.water_mass * self.params.specific_heat)
        self.T_nodes += dT
        return dT

    def update(self, dt: float, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Inputs expected:
            - irradiance: Solar irradiance on the collector (W/m²)
            - T_ambient: Ambient temperature (°C)
        """
        irradiance = inputs.get('irradiance', 0.0)
        T_ambient = inputs.get('T_ambient', 20.0)

        eta = self.efficiency(T_ambient)
        dT = self.heat(dt, irradiance, T_ambient)

        return {
            'T_outlet': self.T_outlet,
            'efficiency': eta,
            'dT': dT,
            'Q_absorbed': irradiance * self.params.area * eta,
        }

    def get_state(self) -> Dict[str, Any]:
        state = super().get_state()
        state['T_outlet'] = self.T_outlet
        state['area'] = self.params.area
        return state


# ============================================================================
# CONNECTING PIPE
# ============================================================================

class Pipe(NodeChain):
    """
    Insulated pipe section between collector and tank. Carries nodes
    unchanged; losses to ambient are not modelled.
    """


# ============================================================================
# STORAGE TANK
# ============================================================================

@dataclass
class StorageTankParams:
    """
    Parameters for the stratified storage tank.
    Walls are adiabatic; heat only moves between vertically adjacent nodes.
    """
    node_mass: float = 2.0                  # kg per node
    specific_heat: float = 4186.0           # J/(kg·K)
    conduction_coefficient: float = 8.89    # W/K, conductivity * A_cross / node_height

    @classmethod
    def from_loop(cls, params: LoopParams, geometry: LoopGeometry) -> 'StorageTankParams':
        return cls(
            node_mass=geometry.node_mass,
            specific_heat=params.water.specific_heat,
            conduction_coefficient=geometry.conduction_coefficient,
        )


class StorageTank(NodeChain):
    """
    Vertically stratified storage tank.

    Node convention: index 0 = TOP of tank, index N-1 = BOTTOM.
    Return water from the collector enters the top; the bottom node leaves
    through the lower pipe back to the collector.
    """

    def __init__(self, name: str, num_nodes: int, params: StorageTankParams,
                 initial_temp: float = 20.0):
        super().__init__(name, num_nodes, initial_temp)
        self.params = params

    @property
    def T_tank(self) -> float:
        """Arithmetic mean of all nodes."""
        return float(np.mean(self.T_nodes))

    @property
    def T_tank_top(self) -> float:
        return float(self.T_nodes[0])

    @property
    def T_tank_bottom(self) -> float:
        return float(self.T_nodes[-1])

    def mix_inversion(self) -> int:
        """
        Sink a cold top node through warmer water below it.

        Starting from the top two nodes, the window grows downward while its
        mean is still colder than the next node, then every node in the
        window is set to that mean. The mean is a plain unweighted average
        of node temperatures.

        Returns:
            Number of nodes mixed, 0 when the top was already stable.
        """
        T = self.T_nodes
        N = len(T)
        if N < 2 or T[0] >= T[1]:
            return 0

        size = 2
        mean = float(np.mean(T[:size]))
        while size < N and mean < T[size]:
            size += 1
            mean = float(np.mean(T[:size]))

        T[:size] = mean
        logger.debug("%s: mixed top %d nodes to %.3f°C", self.name, size, mean)
        return size

    def conduct(self, dt: float) -> np.ndarray:
        """
        Explicit finite-difference conduction between adjacent nodes.

        All nodes update from the same pre-step temperatures. No flux crosses
        the top of node 0 or the bottom of node N-1. Stable only for small
        enough dt (see LoopGeometry.stability_number).

        Returns:
            Heat moved downward across each internal boundary (J), length N-1.
        """
        T = self.T_nodes.copy()
        Q_down = self.params.conduction_coefficient * (T[:-1] - T[1:]) * dt

        Q_net = np.zeros_like(T)
        Q_net[:-1] -= Q_down
        Q_net[1:] += Q_down

        self.T_nodes[:] = T + Q_net / (self.params.node_mass * self.params.specific_heat)
        return Q_down

    def stored_heat(self, T_reference: float) -> float:
        """Heat held in the tank above T_reference (J)."""
        return float(self.params.node_mass * self.params.specific_heat *
                     np.sum(self.T_nodes - T_reference))

    def update(self, dt: float, inputs: Dict[str, Any]) -> Dict[str, Any]:
        Q_down = self.conduct(dt)
        return {
            'T_tank': self.T_tank,
            'T_tank_top': self.T_tank_top,
            'T_tank_bottom': self.T_tank_bottom,
            'Q_conduction': float(np.sum(np.abs(Q_down))) / dt if dt > 0 else 0.0,
            'stratification_dT': self.T_tank_top - self.T_tank_bottom,
        }

    def get_state(self) -> Dict[str, Any]:
        state = super().get_state()
        state['T_tank'] = self.T_tank
        state['T_tank_top'] = self.T_tank_top
        state['T_tank_bottom'] = self.T_tank_bottom
        state['stratification_dT'] = self.T_tank_top - self.T_tank_bottom
        return state


# ============================================================================
# PUMP
# ============================================================================

class Pump(Component):
    """
    Fixed-rate circulation pump. Each step moves exactly one node volume,
    so its one-node transit time sets the simulation time step.
    """

    def __init__(self, name: str, flow_rate: float, is_on: bool = True):
        super().__init__(name)
        self.flow_rate = flow_rate  # m³/s
        self.is_on = is_on

    def transit_time(self, node_volume: float) -> float:
        """Seconds to move one node volume at the rated flow."""
        return node_volume / self.flow_rate

    def toggle(self) -> bool:
        self.is_on = not self.is_on
        logger.debug("%s switched %s", self.name, 'on' if self.is_on else 'off')
        return self.is_on

    @staticmethod
    def advance(loop: Sequence[NodeChain]):
        """
        Rotate the ring by one node.

        loop lists the chains in flow order; the tail of the last chain
        wraps around to the head of the first. Every chain drops one node
        off its tail and gains one at its head.
        """
        carry = loop[-1].T_tail
        for chain in loop:
            carry = chain.push(carry)

    def update(self, dt: float, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Inputs expected:
            - loop: Chains in flow order, moved only while the pump is on
        """
        if self.is_on:
            self.advance(inputs['loop'])
        return {
            'flow_rate': self.flow_rate if self.is_on else 0.0,
            'is_on': self.is_on,
        }

    def get_state(self) -> Dict[str, Any]:
        return {
            'is_on': self.is_on,
            'flow_rate': self.flow_rate,
        }
