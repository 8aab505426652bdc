# visualization.py
"""
Handles the rendering of the particle field and the window it lives in.

The Renderer draws a ParticleSystem onto its own offscreen surface: a
translucent overlay for motion trails, the connective lines between close
particles, then a soft halo and an opaque core per particle. The
Visualizer owns the pygame window, turns pygame events into engine inputs
and drives the frame callbacks at the display cadence.
"""
import itertools
import logging
import pygame
import numpy as np
from numba import jit
from typing import Any, Callable, Dict, Optional, Tuple

from constants import (
    BACKGROUND_COLOR, BASE_HUE, BASE_LIGHTNESS, BASE_SATURATION,
    CORE_LIGHTNESS_BOOST, DEFAULT_WINDOW_SIZE, DEPTH_OFFSET, DEPTH_RANGE,
    FADE_DURATION, FOCAL_LENGTH, FPS, FULLSCREEN, HALO_ALPHA_STOPS,
    HALO_CACHE_LIMIT, HUE_SWING, LIGHTNESS_RANGE, LINK_COLOR, LINK_DISTANCE,
    LINK_MAX_ALPHA, LINK_WIDTH, MIN_BRIGHTNESS, MOTION_BLUR_ALPHA,
    PARTICLE_HALO_RATIO, SATURATION_SWING, WINDOW_TITLE
)
from particle import ParticleSystem

# --- Data Contracts ---
#
# depth_scale(z: np.ndarray) -> np.ndarray
#   - FOCAL_LENGTH / (FOCAL_LENGTH + z). Only size and colour depend on z;
#     screen x/y are the particle's x/y unchanged.
#
# particle_colors(z: np.ndarray, time: float) -> (hue, saturation, lightness)
#   - Three (N,) arrays; hue in degrees, the others in percent.
#
# class LinkBuffer:
#   - collect(positions, threshold, max_alpha) -> int:
#     - Fills self.pairs[:count] with (i, j), i < j, for every unordered pair
#       whose 3D distance is below threshold, and self.alphas[:count] with
#       (1 - d / threshold) * max_alpha. Grows the buffers when needed.
#
# class Renderer:
#   - draw(self, particles: ParticleSystem, time: float) -> None:
#     - Side Effects: Draws one frame on self.surface and sets
#       self.last_link_count.
#
# class Visualizer:
#   - Frame scheduler: schedule_next_frame(callback) -> int, cancel(handle).
#     At most one callback is pending.
#   - Event source: subscribe(event_type, handler) -> int, unsubscribe(token).
#     Event types: "pointer_move" (x, y), "click" (x, y), "resize" (w, h).
#   - run(self, max_steps: int = 0) -> int: Returns the frames executed.


def depth_scale(z: np.ndarray) -> np.ndarray:
    return FOCAL_LENGTH / (FOCAL_LENGTH + z)


def particle_colors(z: np.ndarray, time: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Per-particle HSL colour from depth, time and particle index.

    Nearer particles (lower z) are dimmer. Hue and saturation drift slowly
    and out of phase from one particle to the next.
    """
    index = np.arange(len(z), dtype=np.float64)
    depth = np.clip((z + DEPTH_OFFSET) / DEPTH_RANGE, 0.0, 1.0)
    brightness = np.maximum(MIN_BRIGHTNESS, depth)

    hue = BASE_HUE + np.sin(time + index * 0.1) * HUE_SWING
    saturation = BASE_SATURATION + np.sin(time * 0.5 + index * 0.05) * SATURATION_SWING
    lightness = BASE_LIGHTNESS + brightness * LIGHTNESS_RANGE
    return hue, saturation, lightness


@jit(nopython=True)
def _collect_links_numba(positions, threshold, max_alpha, pairs, alphas):
    """
    Numba-jitted scan of every unordered particle pair.

    Pairs beyond the buffer capacity are counted but not stored, so the
    caller can grow the buffers and scan again.
    """
    particle_count = positions.shape[0]
    capacity = pairs.shape[0]
    count = 0
    for i in range(particle_count):
        xi = positions[i, 0]
        yi = positions[i, 1]
        zi = positions[i, 2]
        for j in range(i + 1, particle_count):
            dx = xi - positions[j, 0]
            dy = yi - positions[j, 1]
            dz = zi - positions[j, 2]
            distance = np.sqrt(dx * dx + dy * dy + dz * dz)
            if distance < threshold:
                if count < capacity:
                    pairs[count, 0] = i
                    pairs[count, 1] = j
                    alphas[count] = (1.0 - distance / threshold) * max_alpha
                count += 1
    return count


class LinkBuffer:
    """Reusable storage for the connective line pairs of one frame."""
    def __init__(self, capacity: int = 4096):
        self.pairs = np.empty((capacity, 2), dtype=np.int64)
        self.alphas = np.empty(capacity, dtype=np.float64)

    @property
    def capacity(self) -> int:
        return self.pairs.shape[0]

    def collect(self, positions: np.ndarray, threshold: float = LINK_DISTANCE,
                max_alpha: float = LINK_MAX_ALPHA) -> int:
        positions = np.ascontiguousarray(positions, dtype=np.float64)
        count = _collect_links_numba(positions, threshold, max_alpha, self.pairs, self.alphas)
        if count > self.capacity:
            new_capacity = max(count, self.capacity * 2)
            logging.debug(f"Growing link buffer from {self.capacity} to {new_capacity} pairs.")
            self.pairs = np.empty((new_capacity, 2), dtype=np.int64)
            self.alphas = np.empty(new_capacity, dtype=np.float64)
            count = _collect_links_numba(positions, threshold, max_alpha, self.pairs, self.alphas)
        return count


def _halo_alpha(offset: float) -> float:
    """Alpha (0-1) of the halo gradient at a fractional radius."""
    stops, values = zip(*HALO_ALPHA_STOPS)
    return float(np.interp(offset, stops, values))


def _render_halo(hue: float, saturation: float, lightness: float, radius: int) -> pygame.Surface:
    """
    Renders a radial glow sprite by stacking filled circles from the rim
    inward, each one a step further along the gradient.
    """
    diameter = radius * 2
    halo = pygame.Surface((diameter, diameter), pygame.SRCALPHA)
    color = pygame.Color(0, 0, 0, 0)
    for r in range(radius, 0, -1):
        color.hsla = (hue, saturation, lightness, _halo_alpha(r / radius) * 100.0)
        pygame.draw.circle(halo, color, (radius, radius), r)
    return halo


class Renderer:
    """
    Draws the particle field onto a dedicated offscreen surface.
    """
    def __init__(self, width: int, height: int):
        self.width = 0
        self.height = 0
        self.links = LinkBuffer()
        self.last_link_count = 0
        # Halos keyed by rounded (hue, saturation, lightness, radius).
        self._halo_cache: Dict[Tuple[int, int, int, int], pygame.Surface] = {}
        self.resize(width, height)

    def resize(self, width: int, height: int) -> None:
        """Recreates the surfaces for a new size. Trails do not survive a resize."""
        self.width = max(0, int(width))
        self.height = max(0, int(height))
        size = (self.width, self.height)

        self.surface = pygame.Surface(size)
        self.surface.fill(BACKGROUND_COLOR)
        # Blitted over the frame every tick to fade what was drawn before.
        self.blur_surface = pygame.Surface(size, pygame.SRCALPHA)
        self.blur_surface.fill((*BACKGROUND_COLOR, MOTION_BLUR_ALPHA))
        self.link_surface = pygame.Surface(size, pygame.SRCALPHA)
        logging.debug(f"Renderer surfaces set to {self.width}x{self.height}.")

    def _get_halo(self, hue: float, saturation: float, lightness: float, size: float) -> pygame.Surface:
        radius = max(1, int(round(size * PARTICLE_HALO_RATIO)))
        key = (int(round(hue)), int(round(saturation)), int(round(lightness)), radius)
        halo = self._halo_cache.get(key)
        if halo is None:
            if len(self._halo_cache) >= HALO_CACHE_LIMIT:
                logging.debug(f"Halo cache reached {HALO_CACHE_LIMIT} sprites. Flushing.")
                self._halo_cache.clear()
            halo = _render_halo(key[0], key[1], key[2], radius)
            self._halo_cache[key] = halo
        return halo

    def _draw_links(self, positions: np.ndarray) -> None:
        count = self.links.collect(positions, LINK_DISTANCE, LINK_MAX_ALPHA)
        self.last_link_count = count
        if count == 0:
            return

        self.link_surface.fill((0, 0, 0, 0))
        pairs = self.links.pairs
        alphas = self.links.alphas
        for k in range(count):
            i, j = pairs[k]
            color = (*LINK_COLOR, int(alphas[k] * 255))
            pygame.draw.line(
                self.link_surface, color,
                (positions[i, 0], positions[i, 1]),
                (positions[j, 0], positions[j, 1]),
                LINK_WIDTH
            )
        self.surface.blit(self.link_surface, (0, 0))

    def draw(self, particles: ParticleSystem, time: float) -> None:
        """
        Draws one frame of the field.
        """
        # 1. Fade the previous frame instead of clearing it, leaving trails.
        self.surface.blit(self.blur_surface, (0, 0))

        count = particles.particle_count
        if count == 0:
            self.last_link_count = 0
            return

        positions = particles.positions
        z = positions[:, 2]
        sizes = np.maximum(1.0, particles.profile.particle_size * depth_scale(z))
        hues, saturations, lightnesses = particle_colors(z, time)

        # 2. Connective lines between particles closer than LINK_DISTANCE
        self._draw_links(positions)

        # 3. Halo, then the opaque core on top
        core_color = pygame.Color(0, 0, 0)
        for i in range(count):
            center = (positions[i, 0], positions[i, 1])
            halo = self._get_halo(hues[i], saturations[i], lightnesses[i], sizes[i])
            self.surface.blit(halo, halo.get_rect(center=(int(center[0]), int(center[1]))))

            core_color.hsla = (
                hues[i], saturations[i],
                min(100.0, lightnesses[i] + CORE_LIGHTNESS_BOOST), 100.0
            )
            pygame.draw.circle(self.surface, core_color, center, sizes[i])


class OpacityFade:
    """
    Moves the field opacity toward 1 (visible) or 0 (hidden) at a constant
    rate so a full fade takes `duration` seconds.
    """
    def __init__(self, duration: float = FADE_DURATION, opacity: float = 1.0):
        self.duration = duration
        self.opacity = opacity

    def update(self, dt: float, visible: bool) -> float:
        target = 1.0 if visible else 0.0
        if self.duration <= 0:
            self.opacity = target
            return self.opacity
        step = dt / self.duration
        if self.opacity < target:
            self.opacity = min(target, self.opacity + step)
        elif self.opacity > target:
            self.opacity = max(target, self.opacity - step)
        return self.opacity


class Visualizer:
    """
    The pygame window hosting the engine: frame scheduler, event source
    and presenter in one.
    """
    def __init__(self, vis_params: Optional[Dict[str, Any]] = None):
        """
        Initializes Pygame and the display window.
        """
        vis_params = vis_params if vis_params is not None else {}
        pygame.init()
        pygame.font.init()

        if vis_params.get('fullscreen', FULLSCREEN):
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width, height = vis_params.get('window_size', DEFAULT_WINDOW_SIZE)
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        pygame.display.set_caption(WINDOW_TITLE)
        self.clock = pygame.time.Clock()
        self.fps = vis_params.get('fps', FPS)
        self.fade = OpacityFade(FADE_DURATION)
        self.running = True

        self._handles = itertools.count(1)
        self._pending: Optional[Tuple[int, Callable[[], None]]] = None
        self._listeners: Dict[int, Tuple[str, Callable[..., None]]] = {}

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    @property
    def size(self) -> Tuple[int, int]:
        return self.screen.get_size()

    # --- Frame scheduler ---

    def schedule_next_frame(self, callback: Callable[[], None]) -> int:
        handle = next(self._handles)
        self._pending = (handle, callback)
        return handle

    def cancel(self, handle: int) -> None:
        if self._pending is not None and self._pending[0] == handle:
            self._pending = None

    # --- Event source ---

    def subscribe(self, event_type: str, handler: Callable[..., None]) -> int:
        token = next(self._handles)
        self._listeners[token] = (event_type, handler)
        return token

    def unsubscribe(self, token: int) -> None:
        self._listeners.pop(token, None)

    def _dispatch(self, event_type: str, *args: Any) -> None:
        for token, (listened_type, handler) in list(self._listeners.items()):
            # A handler may have removed later listeners.
            if listened_type == event_type and token in self._listeners:
                handler(*args)

    def _pump_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                self.running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                self.running = False
            elif event.type == pygame.MOUSEMOTION:
                self._dispatch("pointer_move", *event.pos)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self._dispatch("click", *event.pos)
            elif event.type == pygame.VIDEORESIZE:
                # A zero size would make set_mode pick the desktop resolution.
                if event.w > 0 and event.h > 0:
                    self.screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                logging.info(f"Window resized to {event.w}x{event.h}.")
                self._dispatch("resize", event.w, event.h)

    # --- Presentation ---

    def present(self, surface: pygame.Surface, visible: bool) -> None:
        """Shows a rendered frame at the current fade opacity."""
        opacity = self.fade.update(self.clock.get_time() / 1000.0, visible)
        self.screen.fill(BACKGROUND_COLOR)
        if opacity > 0:
            surface.set_alpha(int(round(opacity * 255)))
            self.screen.blit(surface, (0, 0))
            surface.set_alpha(None)
        pygame.display.flip()

    def run(self, max_steps: int = 0) -> int:
        """
        Runs pending frame callbacks, one per display refresh, until the
        user quits, nothing is scheduled, or `max_steps` frames have run.
        """
        steps = 0
        while self.running and self._pending is not None:
            self.clock.tick(self.fps)
            self._pump_events()
            if not self.running or self._pending is None:
                break

            _, callback = self._pending
            self._pending = None
            callback()
            steps += 1

            if max_steps and steps >= max_steps:
                logging.info(f"Reached max_steps ({max_steps}). Stopping.")
                break
        return steps

    def close(self) -> None:
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
