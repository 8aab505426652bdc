# main.py
"""
Main entry point for the glyph particle field.

This script orchestrates the whole lifecycle:
1. Loads configuration from `config.json` and fills in defaults.
2. Initializes the logging system.
3. Opens the window and mounts the particle engine on it.
4. Runs the frame loop until the user quits or max_steps is reached.
5. Tears the engine down and optionally saves a snapshot and a profile.
"""
import argparse
import logging
import os
import cProfile
import pstats
import io

from utils import DEFAULT_CONFIG, load_config, merge_defaults, setup_logging


def main():
    """
    The main function to run the particle field.
    """
    parser = argparse.ArgumentParser(description="Interactive particle field that reassembles into a text glyph.")
    parser.add_argument("--config", default="config.json", help="Path to the JSON configuration file.")
    args = parser.parse_args()

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = merge_defaults(load_config(args.config), DEFAULT_CONFIG)
    except Exception as e:
        print(f"FATAL: Could not load {args.config}. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Glyph Particle Field Starting ---")

    sim_params = config['simulation_parameters']
    run_params = config['run_control']
    vis_params = config['visualization']

    # SDL reads its video driver when pygame initializes, so this must
    # happen before the visualizer is imported and created.
    if run_params.get('headless'):
        os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
        logging.info("Headless mode: using the SDL dummy video driver.")

    from visualization import Visualizer
    from engine import ParticleEngine

    visualizer = Visualizer(vis_params)
    width, height = visualizer.size

    engine = ParticleEngine(
        scheduler=visualizer,
        events=visualizer,
        width=width,
        height=height,
        params=sim_params,
        on_frame=visualizer.present,
        log_throttle=run_params.get('log_throttle_steps', 300),
    )

    def handle_disperse():
        # The engine keeps simulating; only the presentation fades out.
        logging.info("Disperse signal received. Fading the field out.")
        engine.visible = False

    engine.on_disperse = handle_disperse

    profiler = cProfile.Profile() if run_params.get('profile') else None
    max_steps = run_params.get('max_steps', 0)

    if profiler is not None:
        profiler.enable()
    try:
        with engine:
            steps = visualizer.run(max_steps)
        logging.info(f"Frame loop finished after {steps} frames.")

        snapshot_path = run_params.get('snapshot_path')
        if snapshot_path:
            import pygame
            pygame.image.save(engine.surface, snapshot_path)
            logging.info(f"Saved last frame to {snapshot_path}.")
    finally:
        if profiler is not None:
            profiler.disable()
        visualizer.close()

    if profiler is not None:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Glyph Particle Field Shutting Down ---")


if __name__ == "__main__":
    main()
