# simulation.py
"""
Handles the per-frame physics of the particle field.

This module defines the SimulationState, which holds the inputs coming
from outside the frame loop (pointer, click impulse) together with the
clock and surface size, and the Simulation class, which advances the
ParticleSystem by one frame using the functions in forces.py.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from forces import (
    apply_damping, click_explosion, orbit_targets, pointer_repulsion, spring_force
)
from particle import ParticleSystem

# --- Data Contracts ---
#
# class SimulationState:
#   - Plain mutable record. Input handlers write it with simple assignment
#     (last write wins); the Simulation reads it once per step.
#   - pointer is None until the first pointer move.
#
# class Simulation:
#   - __init__(self, particles: ParticleSystem, params: Dict[str, Any]):
#     - Inputs:
#       - params: "simulation_parameters" from config.json. Missing keys
#         fall back to the defaults below.
#     - Side Effects: Raises ValueError on invalid parameters.
#
#   - step(self, state: SimulationState) -> None:
#     - Side Effects: Advances state.time, decays state.impulse, then
#       mutates the particle arrays in this order:
#       targets, angles, pointer, click, spring, damping, positions.
#     - Invariants: Particle count and base positions are unchanged.


@dataclass
class SimulationState:
    width: int = 0
    height: int = 0
    pointer: Optional[Tuple[float, float]] = None
    time: float = 0.0
    impulse: float = 0.0
    click_origin: Tuple[float, float] = (0.0, 0.0)

    def move_pointer(self, x: float, y: float) -> None:
        self.pointer = (float(x), float(y))

    def register_click(self, x: float, y: float) -> None:
        """Arms a full-strength explosion at (x, y)."""
        self.impulse = 1.0
        self.click_origin = (float(x), float(y))


class Simulation:
    """
    Integrates orbit, pointer, click and spring forces for every particle.
    """
    def __init__(self, particles: ParticleSystem, params: Dict[str, Any]):
        """
        Initializes the integrator.

        Args:
            particles (ParticleSystem): The store to advance.
            params (Dict[str, Any]): Simulation parameters from config.
        """
        self.particles = particles
        self.time_step = float(params.get('time_step', 0.01))
        self.orbit_z_amplitude = float(params.get('orbit_z_amplitude', 10.0))
        self.pointer_radius = float(params.get('pointer_radius', 250.0))
        self.pointer_strength = float(params.get('pointer_strength', 4.0))
        self.click_radius = float(params.get('click_radius', 600.0))
        self.click_strength = float(params.get('click_strength', 15.0))
        self.click_decay = float(params.get('click_decay', 0.9))
        self.click_epsilon = float(params.get('click_epsilon', 0.01))
        self.spring_strength = float(params.get('spring_strength', 0.15))
        self.damping = float(params.get('damping', 0.9))

        self._validate()
        logging.info("Simulation logic initialized and configuration validated.")
        logging.debug(
            f"Pointer radius {self.pointer_radius}, click radius {self.click_radius}, "
            f"spring {self.spring_strength}, damping {self.damping}."
        )

    def _validate(self) -> None:
        problems = []
        for name in ('pointer_radius', 'click_radius'):
            value = getattr(self, name)
            if not value > 0:
                problems.append(f"{name} must be positive (got {value})")
        for name in ('damping', 'click_decay'):
            value = getattr(self, name)
            if not 0.0 < value < 1.0:
                problems.append(f"{name} must lie in (0, 1) (got {value})")
        for name in ('time_step', 'spring_strength', 'click_epsilon',
                     'pointer_strength', 'click_strength'):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                problems.append(f"{name} must be a non-negative number (got {value})")

        if problems:
            msg = "Configuration error: " + "; ".join(problems) + "."
            logging.critical(msg)
            raise ValueError(msg)

    def step(self, state: SimulationState) -> None:
        """
        Executes one frame of the simulation.
        """
        state.time += self.time_step
        # The impulse decays every frame whether or not anything is in range.
        state.impulse *= self.click_decay

        p = self.particles
        if p.particle_count == 0:
            return

        # 1. Orbit: targets follow the current phase, then the phase advances
        p.target_positions[:] = orbit_targets(
            p.base_positions, p.angles, p.jitter_radii, self.orbit_z_amplitude
        )
        p.angles += p.angle_speeds

        # 2. Pointer repulsion
        p.velocities += pointer_repulsion(
            p.positions, state.pointer, self.pointer_radius, self.pointer_strength
        )

        # 3. Click explosion
        if state.impulse > self.click_epsilon:
            p.velocities += click_explosion(
                p.positions, state.click_origin, state.impulse,
                self.click_radius, self.click_strength, self.click_epsilon
            )

        # 4. Spring toward the orbiting target
        p.velocities += spring_force(p.positions, p.target_positions, self.spring_strength)

        # 5. Damping is the only dissipation
        apply_damping(p.velocities, self.damping)

        # 6. Positions only ever change through velocity
        p.positions += p.velocities
