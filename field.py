# field.py
"""
Builds the anchor points of the particle field from a text label.

The label is rendered offscreen with pygame's font renderer onto a
transparent surface the size of the target, and the alpha channel is
sampled on a regular grid. Every grid cell whose alpha passes the ink
threshold becomes one particle's base position.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pygame

from constants import COMPACT_BREAKPOINT, INK_ALPHA_THRESHOLD, LABEL_FONT, LABEL_TEXT

# --- Data Contracts ---
#
# select_profile(width: int) -> FieldProfile
#   - Invariants: COMPACT iff width < COMPACT_BREAKPOINT.
#
# rasterize_label(text, width, height, font_size) -> np.ndarray:
#   - Outputs: uint8 alpha channel of shape (width, height), indexed [x, y].
#   - Side Effects: Initializes pygame.font if needed.
#
# sample_ink(alpha, gap, threshold) -> np.ndarray:
#   - Outputs: float64 array of shape (N, 2) holding (x, y) of every grid
#     cell (multiples of `gap`) with alpha > threshold, y-major order.
#
# generate_base_positions(width, height, text) -> (np.ndarray, FieldProfile):
#   - Never raises for a zero-area surface or a pygame rasterization error;
#     both produce an empty (0, 2) array.


@dataclass(frozen=True)
class FieldProfile:
    """Viewport-width-dependent parameters of the field."""
    name: str
    font_fraction: float
    font_cap: float
    jitter_spread: float
    jitter_min: float
    particle_size: float
    fixed_gap: Optional[int] = None
    gap_divisor: int = 150
    min_gap: int = 4

    def font_size(self, width: int) -> int:
        return max(1, int(min(width * self.font_fraction, self.font_cap)))

    def gap(self, width: int) -> int:
        """Sampling stride in pixels."""
        if self.fixed_gap is not None:
            return self.fixed_gap
        return max(self.min_gap, width // self.gap_divisor)


COMPACT = FieldProfile(
    name="compact", font_fraction=0.3, font_cap=160,
    jitter_spread=1.5, jitter_min=1.0, particle_size=1.8, fixed_gap=10
)
STANDARD = FieldProfile(
    name="standard", font_fraction=0.25, font_cap=400,
    jitter_spread=5.0, jitter_min=2.0, particle_size=2.5
)


def select_profile(width: int) -> FieldProfile:
    return COMPACT if width < COMPACT_BREAKPOINT else STANDARD


def rasterize_label(text: str, width: int, height: int, font_size: int,
                    font_name: str = LABEL_FONT) -> np.ndarray:
    """
    Renders `text` in bold white, centred on a transparent surface of
    `width` x `height`, and returns its alpha channel.

    Glyphs that overflow the surface are clipped, like drawing text on a
    canvas of that size.
    """
    if not pygame.font.get_init():
        pygame.font.init()
    # SysFont falls back to pygame's bundled font when the family is missing.
    font = pygame.font.SysFont(font_name, font_size, bold=True)
    glyphs = font.render(text, True, (255, 255, 255))

    canvas = pygame.Surface((width, height), pygame.SRCALPHA)
    canvas.fill((0, 0, 0, 0))
    canvas.blit(glyphs, glyphs.get_rect(center=(width // 2, height // 2)))
    return pygame.surfarray.array_alpha(canvas)


def sample_ink(alpha: np.ndarray, gap: int, threshold: int = INK_ALPHA_THRESHOLD) -> np.ndarray:
    """Samples an [x, y] alpha array every `gap` pixels and keeps the ink cells."""
    cells = alpha[::gap, ::gap]
    # Transposed so nonzero() walks rows (y) first, then columns (x).
    rows, cols = np.nonzero(cells.T > threshold)
    return np.column_stack((cols * gap, rows * gap)).astype(np.float64)


def generate_base_positions(width: int, height: int,
                            text: str = LABEL_TEXT) -> Tuple[np.ndarray, FieldProfile]:
    """
    Produces the base (x, y) positions for a surface of the given size.

    Returns the positions together with the profile that was used, since
    the particle store and the renderer depend on it too.
    """
    profile = select_profile(width)
    if width <= 0 or height <= 0:
        logging.warning(f"Surface size is {width}x{height}. Skipping field generation.")
        return np.empty((0, 2), dtype=np.float64), profile

    font_size = profile.font_size(width)
    gap = profile.gap(width)
    try:
        alpha = rasterize_label(text, width, height, font_size)
    except (pygame.error, NotImplementedError) as e:
        logging.warning(f"Could not rasterize label '{text}': {e}. Field left empty.")
        return np.empty((0, 2), dtype=np.float64), profile

    base_positions = sample_ink(alpha, gap)
    logging.info(
        f"Sampled {len(base_positions)} ink cells from '{text}' on a "
        f"{width}x{height} surface ({profile.name} profile, "
        f"font {font_size}px, gap {gap}px)."
    )
    return base_positions, profile
