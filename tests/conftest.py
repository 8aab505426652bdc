import os

# pygame must pick the dummy drivers before it is first imported.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame
import pytest


class ManualScheduler:
    """Frame scheduler driven by the test: frames run only when `advance` is called."""
    def __init__(self):
        self.pending = None
        self.cancelled = []
        self._next = 0

    def schedule_next_frame(self, callback):
        self._next += 1
        self.pending = (self._next, callback)
        return self._next

    def cancel(self, handle):
        self.cancelled.append(handle)
        if self.pending is not None and self.pending[0] == handle:
            self.pending = None

    def advance(self, frames=1):
        ran = 0
        for _ in range(frames):
            if self.pending is None:
                break
            _, callback = self.pending
            self.pending = None
            callback()
            ran += 1
        return ran


class RecordingEvents:
    """Event source that keeps its listeners in a dict so tests can inspect them."""
    def __init__(self):
        self.listeners = {}
        self._next = 0

    def subscribe(self, event_type, handler):
        self._next += 1
        self.listeners[self._next] = (event_type, handler)
        return self._next

    def unsubscribe(self, token):
        self.listeners.pop(token, None)

    def emit(self, event_type, *args):
        for token, (listened_type, handler) in list(self.listeners.items()):
            if listened_type == event_type and token in self.listeners:
                handler(*args)


@pytest.fixture(scope="session", autouse=True)
def pygame_fonts():
    pygame.font.init()
    yield
    pygame.font.quit()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def events():
    return RecordingEvents()
