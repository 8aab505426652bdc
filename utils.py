# utils.py
"""
Utility functions for the particle field application.

Configuration loading and logging setup live here: they are used by the
entry point and the tests but do not belong to a specific component like
the physics or the renderer.
"""
import copy
import logging
import logging.handlers
import json
import os
from typing import Dict, Any

# --- Data Contracts ---
#
# load_config(path: str) -> Dict[str, Any]:
#   - Raises FileNotFoundError / json.JSONDecodeError after logging them.
#
# merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
#   - Outputs: A new dictionary. Nested dictionaries are merged key by key,
#     values present in `config` always win.
#   - Invariants: Neither input is mutated.
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs: A dictionary with an optional "logging" section holding
#     "level", "format" and "log_file" (null disables the file handler).
#   - Side Effects: Replaces the root logger's handlers with a console
#     handler and, optionally, a rotating file handler.

DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "log_file": "logs/glyph_field.log",
    },
    "simulation_parameters": {
        "seed": None,
        "time_step": 0.01,
        "orbit_z_amplitude": 10.0,
        "pointer_radius": 250.0,
        "pointer_strength": 4.0,
        "click_radius": 600.0,
        "click_strength": 15.0,
        "click_decay": 0.9,
        "click_epsilon": 0.01,
        "spring_strength": 0.15,
        "damping": 0.9,
    },
    "visualization": {
        "fullscreen": False,
        "window_size": [1280, 800],
        "fps": 60,
    },
    "run_control": {
        "max_steps": 0,
        "log_throttle_steps": 300,
        "headless": False,
        "snapshot_path": None,
        "profile": False,
    },
}


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise
    logging.info("Configuration loaded successfully.")
    return config


def merge_defaults(config: Dict[str, Any], defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Returns `defaults` overlaid with `config`, merging nested sections."""
    merged = copy.deepcopy(defaults)
    for key, value in config.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_defaults(value, merged[key])
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the root logger from the "logging" section of the config.

    Console output is always enabled. A rotating file handler is added
    when "log_file" is set.
    """
    log_config = config.get('logging', {})
    log_level = str(log_config.get('level', 'INFO')).upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file')

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Handlers from a previous call would print every record twice.
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        # Rotates at 1MB, keeps 5 backups.
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=1024*1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path or 'disabled'}")
