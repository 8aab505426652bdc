# particle.py
"""
Manages the state of all particles in the field.

This module defines the ParticleSystem class, which stores particle data
(positions, velocities, home positions and orbit parameters) in NumPy
arrays, one row per particle. The store is filled wholesale from a set of
base positions and is never patched particle by particle.
"""
import logging
import numpy as np
from typing import Optional

from constants import BASE_DEPTH_SPREAD, ORBIT_SPEED_SPREAD, SCATTER_DEPTH_SPREAD
from field import FieldProfile, STANDARD

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, seed: Optional[int] = None):
#     - Creates an empty store and a dedicated RNG.
#
#   - populate(self, base_xy: np.ndarray, width: int, height: int, profile: FieldProfile) -> None:
#     - Inputs:
#       - base_xy: float array of shape (N, 2), the sampled ink cells.
#       - width, height: surface size, bounds of the initial scatter.
#       - profile: selects the jitter radius range.
#     - Side Effects: Replaces every array. Arrays are reused in place when
#       N equals the current particle count.
#     - Invariants:
#       - positions, velocities, base_positions, target_positions: (N, 3) float64.
#       - angles, angle_speeds, jitter_radii: (N,) float64.
#       - base_positions are not written again until the next populate().

class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, seed: Optional[int] = None):
        # All randomness of the field comes from this generator.
        self.rng = np.random.default_rng(seed)
        self.profile: FieldProfile = STANDARD
        self._allocate(0)

    def _allocate(self, count: int) -> None:
        self.positions = np.zeros((count, 3), dtype=np.float64)
        self.velocities = np.zeros((count, 3), dtype=np.float64)
        self.base_positions = np.zeros((count, 3), dtype=np.float64)
        self.target_positions = np.zeros((count, 3), dtype=np.float64)
        self.angles = np.zeros(count, dtype=np.float64)
        self.angle_speeds = np.zeros(count, dtype=np.float64)
        self.jitter_radii = np.zeros(count, dtype=np.float64)

    @property
    def particle_count(self) -> int:
        return self.positions.shape[0]

    def populate(self, base_xy: np.ndarray, width: int, height: int, profile: FieldProfile) -> None:
        """
        Creates one particle per base position.

        Particles start scattered uniformly over the surface with a random
        depth and at rest, so the first frames show them flying home.
        """
        count = len(base_xy)
        if count != self.particle_count:
            self._allocate(count)
        rng = self.rng

        self.positions[:, 0] = rng.uniform(0.0, width, count)
        self.positions[:, 1] = rng.uniform(0.0, height, count)
        self.positions[:, 2] = (rng.random(count) - 0.5) * SCATTER_DEPTH_SPREAD
        self.velocities.fill(0.0)

        self.base_positions[:, :2] = base_xy
        self.base_positions[:, 2] = (rng.random(count) - 0.5) * BASE_DEPTH_SPREAD
        self.target_positions[:] = self.base_positions

        self.angles[:] = rng.uniform(0.0, 2.0 * np.pi, count)
        self.angle_speeds[:] = (rng.random(count) - 0.5) * ORBIT_SPEED_SPREAD
        self.jitter_radii[:] = rng.random(count) * profile.jitter_spread + profile.jitter_min
        self.profile = profile

        logging.info(f"Created {count} particles ({profile.name} profile).")
        logging.debug(
            f"Particle data arrays ready. "
            f"Positions shape: {self.positions.shape}, "
            f"Base positions shape: {self.base_positions.shape}"
        )

    def clear(self) -> None:
        """Drops every particle."""
        if self.particle_count:
            logging.info(f"Discarding {self.particle_count} particles.")
        self._allocate(0)
