"""
Charge the storage tank for a sunny period, then stop the pump and let
conduction smear the thermocline.

Produces:
  1. tank_profiles.png       Tank temperature vs height at several times
  2. loop_temperatures.png   Collector outlet, tank top/bottom over time

Run from project root:
    python examples/stratification_demo.py
"""

import os

import numpy as np
import matplotlib.pyplot as plt

from thermal_loop import LoopParams, ThermalLoopSimulation
from thermal_loop.driver import run_steps

# ── Style ──────────────────────────────────────────────────────────────────────
plt.rcParams.update({
    'figure.dpi': 150,
    'savefig.dpi': 150,
    'font.size': 11,
    'axes.titlesize': 13,
    'axes.labelsize': 11,
    'legend.fontsize': 9,
    'figure.facecolor': 'white',
    'axes.facecolor': '#fafafa',
    'axes.grid': True,
    'grid.alpha': 0.3,
})

RESULTS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'results')

CHARGE_HOURS = 3.0
REST_HOURS = 5.0


def run_simulation():
    """Pump on while charging, pump off while resting. Returns the simulation."""
    params = LoopParams(solar_intensity=850.0, initial_temp=15.0, ambient_temp=15.0)
    sim = ThermalLoopSimulation(params, record_history=True)
    g = sim.geometry

    print(f"Collector: {g.collector_nodes} nodes, tank: {g.tank_nodes} nodes, "
          f"pipes: {g.pipe_nodes} nodes each")
    print(f"Time step: {g.time_step:.1f}s, conduction stability number: {g.stability_number:.4f}")

    charge_ticks = int(CHARGE_HOURS * 3600 / sim.time_step)
    rest_ticks = int(REST_HOURS * 3600 / sim.time_step)

    run_steps(sim, charge_ticks)
    print(f"After charging: top {sim.tank_top_temp:.1f}°C, bottom {sim.tank_bottom_temp:.1f}°C, "
          f"stored {sim.tank_stored_heat() / 1e6:.2f} MJ")

    sim.toggle_pump()
    sim.solar_intensity = 0.0
    run_steps(sim, rest_ticks)
    print(f"After resting:  top {sim.tank_top_temp:.1f}°C, bottom {sim.tank_bottom_temp:.1f}°C, "
          f"stored {sim.tank_stored_heat() / 1e6:.2f} MJ")
    return sim


def plot_tank_profiles(sim):
    """Plot 1: tank temperature against height at evenly spaced times."""
    h = sim.history_arrays()
    profiles = h['T_tank_nodes']
    n_nodes = profiles.shape[1]
    node_height = sim.geometry.node_height
    height = sim.params.tank_height - node_height * (np.arange(n_nodes) + 0.5)

    fig, ax = plt.subplots(figsize=(6, 6))
    cmap = plt.get_cmap('plasma')
    picks = np.linspace(0, len(profiles) - 1, 8).astype(int)
    for k, idx in enumerate(picks):
        ax.plot(profiles[idx], height, color=cmap(k / len(picks)), linewidth=2,
                label=f"{h['time'][idx] / 3600:.1f} h")

    ax.set_xlabel('Temperature (°C)')
    ax.set_ylabel('Height above tank bottom (m)')
    ax.set_title('Tank Stratification')
    ax.legend(loc='lower right', framealpha=0.9)
    fig.tight_layout()
    fig.savefig(os.path.join(RESULTS_DIR, 'tank_profiles.png'), bbox_inches='tight')
    plt.close(fig)
    print('  Saved tank_profiles.png')


def plot_loop_temperatures(sim):
    """Plot 2: collector outlet and tank extremes over time."""
    h = sim.history_arrays()
    time_h = h['time'] / 3600

    fig, ax = plt.subplots(figsize=(10, 4.5))
    ax.plot(time_h, h['T_collector_outlet'], color='#ff7f0e', linewidth=1.5, label='Collector outlet')
    ax.plot(time_h, h['T_tank_nodes'][:, 0], color='#d62728', linewidth=2.0, label='Tank top')
    ax.plot(time_h, h['T_tank_nodes'][:, -1], color='#1f77b4', linewidth=2.0, label='Tank bottom')
    ax.axvspan(CHARGE_HOURS, CHARGE_HOURS + REST_HOURS, color='#dde', alpha=0.3, label='Pump off')

    ax.set_xlabel('Time (h)')
    ax.set_ylabel('Temperature (°C)')
    ax.set_title('Loop Temperatures')
    ax.legend(loc='upper right', framealpha=0.9)
    fig.tight_layout()
    fig.savefig(os.path.join(RESULTS_DIR, 'loop_temperatures.png'), bbox_inches='tight')
    plt.close(fig)
    print('  Saved loop_temperatures.png')


def main():
    os.makedirs(RESULTS_DIR, exist_ok=True)
    print('Running stratification scenario...')
    sim = run_simulation()

    print('\nGenerating plots:')
    plot_tank_profiles(sim)
    plot_loop_temperatures(sim)

    print(f'\nAll plots saved to {RESULTS_DIR}/')


if __name__ == '__main__':
    main()
