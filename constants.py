# constants.py
"""
Application-level constants.

These values are static and do not change between runs. They cover the
window, the look of the field (trails, halos, colour drift, connective
lines) and the text label the field is built from. Physics tuning is
experimental configuration and lives in config.json instead.
"""

# Window settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a resizable window of DEFAULT_WINDOW_SIZE.
FULLSCREEN = False
DEFAULT_WINDOW_SIZE = (1280, 800)
WINDOW_TITLE = "Aoba"
FPS = 60
BACKGROUND_COLOR = (15, 23, 42) # Slate

# --- Field Generation ---
# The label the particle field reassembles into.
LABEL_TEXT = "Aoba"
LABEL_FONT = "Arial"
# A sampled pixel counts as ink when its alpha is strictly above this.
INK_ALPHA_THRESHOLD = 128
# Surfaces narrower than this use the compact profile.
COMPACT_BREAKPOINT = 768
# Full width of the random z band for the initial scatter (+/-150).
SCATTER_DEPTH_SPREAD = 300.0
# Full width of the random z band for base positions (+/-25).
BASE_DEPTH_SPREAD = 50.0
# Full width of the signed orbit angle speed band (+/-0.005).
ORBIT_SPEED_SPREAD = 0.01

# --- Visual Appeal Enhancements ---
# Alpha of the dark overlay composited every frame (0-255). Lower is a longer trail.
MOTION_BLUR_ALPHA = 102
# Ratio of the halo size to the core radius.
PARTICLE_HALO_RATIO = 2
# Halo gradient as (offset, alpha) stops from the centre to the rim.
HALO_ALPHA_STOPS = ((0.0, 0.9), (0.5, 0.5), (1.0, 0.0))
# Upper bound on cached halo sprites before the cache is flushed.
HALO_CACHE_LIMIT = 8192
# Extra lightness (percent) of the opaque core over its halo.
CORE_LIGHTNESS_BOOST = 15

# --- Depth and Colour ---
# Pinhole focal length: scale = FOCAL_LENGTH / (FOCAL_LENGTH + z).
FOCAL_LENGTH = 400.0
# Normalized depth is (z + DEPTH_OFFSET) / DEPTH_RANGE, clamped to [0, 1].
DEPTH_OFFSET = 200.0
DEPTH_RANGE = 400.0
MIN_BRIGHTNESS = 0.4
BASE_HUE = 200.0
HUE_SWING = 15.0
BASE_SATURATION = 75.0
SATURATION_SWING = 15.0
BASE_LIGHTNESS = 50.0
LIGHTNESS_RANGE = 20.0

# --- Connective Lines ---
LINK_DISTANCE = 40.0
LINK_MAX_ALPHA = 0.25
LINK_COLOR = (59, 130, 246)
LINK_WIDTH = 1

# Duration (seconds) of the caller-managed fade of the whole field.
FADE_DURATION = 1.5
