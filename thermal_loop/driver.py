"""
External drivers that call ThermalLoopSimulation.tick().

The simulation never owns a timer. These loops supply the cadence, either
as fast as possible or at physically scaled real-time playback.
"""

import logging
import time
from typing import Callable, Optional

from thermal_loop.simulation import ThermalLoopSimulation, LoopSnapshot

logger = logging.getLogger(__name__)


def playback_interval_ms(sim: ThermalLoopSimulation, time_dilation: float) -> float:
    """
    Wall-clock milliseconds between ticks for real-time playback.

    A time_dilation of 60 plays one simulated minute per wall-clock second.
    """
    if time_dilation <= 0:
        raise ValueError(f"time_dilation must be positive, got {time_dilation}")
    return sim.time_step * 1000.0 / time_dilation


def run_steps(sim: ThermalLoopSimulation, num_ticks: int) -> LoopSnapshot:
    """Tick num_ticks times back to back and return the final snapshot."""
    for _ in range(num_ticks):
        sim.tick()
    return sim.snapshot()


def run_realtime(
    sim: ThermalLoopSimulation,
    num_ticks: int,
    time_dilation: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    on_tick: Optional[Callable[[LoopSnapshot], None]] = None,
) -> LoopSnapshot:
    """
    Tick at the playback cadence, one tick in flight at a time.

    on_tick receives a snapshot after each completed tick, never during one.
    Stopping early (e.g. KeyboardInterrupt) leaves the simulation in a
    consistent between-ticks state.
    """
    interval = playback_interval_ms(sim, time_dilation) / 1000.0
    logger.info("Playing %d ticks every %.3fs (dilation x%g)",
                num_ticks, interval, time_dilation)

    for _ in range(num_ticks):
        started = time.monotonic()
        sim.tick()
        if on_tick is not None:
            on_tick(sim.snapshot())
        remaining = interval - (time.monotonic() - started)
        if remaining > 0:
            sleep(remaining)
    return sim.snapshot()
