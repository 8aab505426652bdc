# engine.py
"""
The frame loop that ties the particle field together.

A ParticleEngine is mounted on a host that provides a "next frame"
scheduler and an event source. Once mounted it regenerates the field for
the current size, then on every scheduled frame steps the simulation,
renders, hands the frame to the host and schedules itself again. Pointer
and click events only write to the SimulationState; the next frame reads
them. A resize regenerates the whole field.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

import numpy as np
import pygame

from constants import LABEL_TEXT
from field import generate_base_positions
from particle import ParticleSystem
from simulation import Simulation, SimulationState
from visualization import Renderer

# --- Data Contracts ---
#
# class ParticleEngine:
#   - __init__(self, scheduler, events, width, height, params, ...):
#     - Inputs:
#       - scheduler: FrameScheduler, drives the frames.
#       - events: EventSource, delivers "pointer_move", "click" and "resize".
#       - params: "simulation_parameters" from config.json.
#       - on_disperse: called once, synchronously, on the first click.
#       - on_frame: called with (surface, visible) after every rendered frame.
#     - Side Effects: None until mount().
#
#   - mount(self) -> ParticleEngine:
#     - State: UNINITIALIZED -> GENERATING -> RUNNING.
#     - Raises RuntimeError when called in any other state.
#
#   - teardown(self) -> None:
#     - State: any -> TORN_DOWN (terminal). Idempotent.
#     - Invariants: After it returns no frame runs and no handler fires.

POINTER_MOVE = "pointer_move"
CLICK = "click"
RESIZE = "resize"


class FrameScheduler(Protocol):
    def schedule_next_frame(self, callback: Callable[[], None]) -> int: ...

    def cancel(self, handle: int) -> None: ...


class EventSource(Protocol):
    def subscribe(self, event_type: str, handler: Callable[..., None]) -> int: ...

    def unsubscribe(self, token: int) -> None: ...


class EngineState(Enum):
    UNINITIALIZED = "uninitialized"
    GENERATING = "generating"
    RUNNING = "running"
    TORN_DOWN = "torn_down"


class ParticleEngine:
    """
    Owns the particle store, the simulation state and the renderer, and
    runs them once per scheduled frame.
    """
    def __init__(
        self,
        scheduler: FrameScheduler,
        events: EventSource,
        width: int,
        height: int,
        params: Optional[Dict[str, Any]] = None,
        on_disperse: Optional[Callable[[], None]] = None,
        on_frame: Optional[Callable[[pygame.Surface, bool], None]] = None,
        label: str = LABEL_TEXT,
        log_throttle: int = 300,
    ):
        params = params if params is not None else {}
        self.scheduler = scheduler
        self.events = events
        self.label = label
        self.on_disperse = on_disperse
        self.on_frame = on_frame
        self.log_throttle = log_throttle

        self.state = EngineState.UNINITIALIZED
        self.sim_state = SimulationState(width=int(width), height=int(height))
        self.particles = ParticleSystem(seed=params.get('seed'))
        self.simulation = Simulation(self.particles, params)
        self.renderer = Renderer(width, height)

        # Owned by the consumer; the simulation runs whatever its value.
        self.visible = True
        self.frame_count = 0
        self._dispersed = False
        self._frame_handle: Optional[int] = None
        self._subscriptions: List[int] = []

    @property
    def surface(self) -> pygame.Surface:
        return self.renderer.surface

    def mount(self) -> "ParticleEngine":
        if self.state is not EngineState.UNINITIALIZED:
            raise RuntimeError(f"Cannot mount an engine in state '{self.state.value}'.")

        self._regenerate(self.sim_state.width, self.sim_state.height)
        self.sim_state.move_pointer(self.sim_state.width / 2, self.sim_state.height / 2)
        self._subscriptions = [
            self.events.subscribe(POINTER_MOVE, self.handle_pointer_move),
            self.events.subscribe(CLICK, self.handle_click),
            self.events.subscribe(RESIZE, self.handle_resize),
        ]
        self.state = EngineState.RUNNING
        self._frame_handle = self.scheduler.schedule_next_frame(self._frame)
        logging.info(f"Engine mounted with {self.particles.particle_count} particles.")
        return self

    def _regenerate(self, width: int, height: int) -> None:
        """Replaces the particle store with a field built for `width` x `height`."""
        previous = self.state
        self.state = EngineState.GENERATING
        self.sim_state.width = int(width)
        self.sim_state.height = int(height)
        self.renderer.resize(width, height)

        base_xy, profile = generate_base_positions(self.sim_state.width, self.sim_state.height, self.label)
        if len(base_xy):
            self.particles.populate(base_xy, self.sim_state.width, self.sim_state.height, profile)
        else:
            self.particles.clear()
            self.particles.profile = profile

        if previous is EngineState.RUNNING:
            self.state = EngineState.RUNNING

    # --- Input handlers ---

    def handle_pointer_move(self, x: float, y: float) -> None:
        if self.state is EngineState.TORN_DOWN:
            return
        self.sim_state.move_pointer(x, y)

    def handle_click(self, x: float, y: float) -> None:
        if self.state is EngineState.TORN_DOWN:
            return
        self.sim_state.register_click(x, y)
        logging.debug(f"Click at ({x}, {y}). Impulse armed.")
        if not self._dispersed:
            self._dispersed = True
            logging.info("First click received. Emitting disperse signal.")
            if self.on_disperse is not None:
                self.on_disperse()

    def handle_resize(self, width: int, height: int) -> None:
        if self.state is EngineState.TORN_DOWN:
            return
        logging.info(f"Resize to {width}x{height}. Regenerating the field.")
        self._regenerate(width, height)

    # --- Frame loop ---

    def _frame(self) -> None:
        self._frame_handle = None
        if self.state is not EngineState.RUNNING:
            return

        self.simulation.step(self.sim_state)
        self.renderer.draw(self.particles, self.sim_state.time)
        self.frame_count += 1

        if self.on_frame is not None:
            self.on_frame(self.renderer.surface, self.visible)

        # Hot loop: throttle logging.
        if self.log_throttle and self.frame_count % self.log_throttle == 0:
            logging.info(f"Frame {self.frame_count}")
            if self.particles.particle_count:
                avg_speed = np.mean(np.linalg.norm(self.particles.velocities, axis=1))
                logging.debug(
                    f"Frame {self.frame_count} | Particles: {self.particles.particle_count} | "
                    f"Average speed: {avg_speed:.4f} | Links: {self.renderer.last_link_count}"
                )

        # on_frame may have torn the engine down.
        if self.state is EngineState.RUNNING:
            self._frame_handle = self.scheduler.schedule_next_frame(self._frame)

    def teardown(self) -> None:
        """Stops the loop and detaches every listener. Safe to call at any time."""
        if self.state is EngineState.TORN_DOWN:
            return
        self.state = EngineState.TORN_DOWN

        if self._frame_handle is not None:
            self.scheduler.cancel(self._frame_handle)
            self._frame_handle = None
        for token in self._subscriptions:
            self.events.unsubscribe(token)
        self._subscriptions.clear()
        logging.info(f"Engine torn down after {self.frame_count} frames.")

    def __enter__(self) -> "ParticleEngine":
        return self.mount()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.teardown()
