# forces.py
"""
Per-particle force contributions.

Every function here is pure: it takes the particle arrays and the inputs
it needs explicitly and returns a velocity delta of the same shape as the
positions (except apply_damping, which scales in place). The Simulation
decides the order in which they are applied.
"""
import numpy as np
from typing import Optional, Tuple

# --- Data Contracts ---
#
# All `positions`/`velocities`/`targets` arrays are float64 of shape (N, 3).
# Pointer and click forces act on x and y only; the z column of their
# result is always zero.
#
# orbit_offsets(angles, jitter_radii, z_amplitude) -> (N, 3)
# orbit_targets(base_positions, angles, jitter_radii, z_amplitude) -> (N, 3)
# pointer_repulsion(positions, pointer, radius, strength) -> (N, 3)
#   - Zero for every particle with distance >= radius, or when pointer is None.
# click_explosion(positions, origin, impulse, radius, strength, epsilon) -> (N, 3)
#   - Zero everywhere when impulse <= epsilon.
# spring_force(positions, targets, strength) -> (N, 3)
# apply_damping(velocities, factor) -> velocities (same object, scaled)

Point = Tuple[float, float]


def orbit_offsets(angles: np.ndarray, jitter_radii: np.ndarray, z_amplitude: float = 10.0) -> np.ndarray:
    """Offset of each target from its base for the current orbit phase."""
    return np.column_stack((
        np.cos(angles) * jitter_radii,
        np.sin(angles) * jitter_radii,
        np.sin(angles * 2.0) * z_amplitude,
    ))


def orbit_targets(base_positions: np.ndarray, angles: np.ndarray,
                  jitter_radii: np.ndarray, z_amplitude: float = 10.0) -> np.ndarray:
    return base_positions + orbit_offsets(angles, jitter_radii, z_amplitude)


def pointer_repulsion(positions: np.ndarray, pointer: Optional[Point],
                      radius: float = 250.0, strength: float = 4.0) -> np.ndarray:
    """
    Pushes particles away from the pointer.

    The push falls off linearly from `strength` at the pointer to zero at
    `radius` and stops there (hard cutoff).
    """
    delta_v = np.zeros_like(positions)
    if pointer is None or len(positions) == 0:
        return delta_v

    dx = pointer[0] - positions[:, 0]
    dy = pointer[1] - positions[:, 1]
    distance = np.hypot(dx, dy)
    inside = distance < radius
    if not inside.any():
        return delta_v

    force = (radius - distance[inside]) / radius
    # atan2(0, 0) is 0, so a particle right under the pointer is pushed along -x.
    angle = np.arctan2(dy[inside], dx[inside])
    delta_v[inside, 0] = -np.cos(angle) * force * strength
    delta_v[inside, 1] = -np.sin(angle) * force * strength
    return delta_v


def click_explosion(positions: np.ndarray, origin: Point, impulse: float,
                    radius: float = 600.0, strength: float = 15.0,
                    epsilon: float = 0.01) -> np.ndarray:
    """Outward kick from the click origin, scaled by the remaining impulse."""
    delta_v = np.zeros_like(positions)
    if impulse <= epsilon or len(positions) == 0:
        return delta_v

    dx = positions[:, 0] - origin[0]
    dy = positions[:, 1] - origin[1]
    distance = np.hypot(dx, dy)
    inside = distance < radius
    if not inside.any():
        return delta_v

    force = ((radius - distance[inside]) / radius) * impulse
    angle = np.arctan2(dy[inside], dx[inside])
    delta_v[inside, 0] = np.cos(angle) * force * strength
    delta_v[inside, 1] = np.sin(angle) * force * strength
    return delta_v


def spring_force(positions: np.ndarray, targets: np.ndarray, strength: float = 0.15) -> np.ndarray:
    return (targets - positions) * strength


def apply_damping(velocities: np.ndarray, factor: float = 0.9) -> np.ndarray:
    velocities *= factor
    return velocities
