#!/usr/bin/env python3
"""
neonspin - Neon wireframe spinner

A spinning neon solid over a star field. Drag to spin it up; the added
spin decays back to the idle rotation while haptic pulses and the star
field follow the speed.
"""

import argparse
import cProfile
import sys
import time

# Import ONLY PyQt6 essentials first (fast)
t_pyqt = time.perf_counter()
from PyQt6.QtWidgets import QApplication

print(
    f"[Startup] GUI framework loaded (+{(time.perf_counter() - t_pyqt) * 1000:.0f} ms). "
    "Initializing application...",
    flush=True,
)

HAPTIC_BACKENDS = ("audio", "log", "none")


def apply_cli_overrides(config, args) -> None:
    """Copy command-line choices onto the loaded config (unset flags leave it alone)."""
    if args.haptics is not None:
        if args.haptics == "off":
            config.haptic.enabled = False
        else:
            config.haptic.enabled = True
            config.haptic.backend = args.haptics
    if args.shape:
        config.scene.shape = args.shape
    if args.color:
        config.scene.color = args.color
    if args.music is not None:
        config.audio.music_enabled = args.music == "on"
    if args.log_level:
        config.log_level = args.log_level


def run_app(app_argv: list[str], args) -> int:
    app = QApplication(app_argv)
    app.setStyle("Fusion")

    print("[Startup] Loading scene and haptics modules...", flush=True)
    t_main = time.perf_counter()

    # Heavy modules (numpy, pyqtgraph) after the QApplication exists
    from app import NeonSpinWindow
    from config_persistence import load_config
    from logging_utils import set_log_level

    print(
        f"[Startup] Loaded app module (+{(time.perf_counter() - t_main) * 1000:.0f} ms)",
        flush=True,
    )

    config = load_config()
    apply_cli_overrides(config, args)
    set_log_level(config.log_level)

    print("[Startup] Creating main window...", flush=True)
    window = NeonSpinWindow(config)

    print("\nInitialization complete. Starting GUI...\n", flush=True)
    window.show()

    return app.exec()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run neonspin")
    parser.add_argument(
        "--haptics",
        choices=HAPTIC_BACKENDS + ("off",),
        default=None,
        help="Haptic backend (audio clicks, log only, none) or off",
    )
    parser.add_argument("--shape", default=None, help="Initial shape (tetrahedron, cube, octahedron, icosahedron)")
    parser.add_argument("--color", default=None, help="Initial neon color, e.g. Cyan or \"Neon Green\"")
    parser.add_argument("--music", choices=("on", "off"), default=None, help="Start with ambient music on/off")
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default=None,
        help="Console log level",
    )
    parser.add_argument(
        "--profile",
        action="store_true",
        help="Enable cProfile and save stats to --profile-out",
    )
    parser.add_argument(
        "--profile-out",
        default="profile.prof",
        help="Path to save cProfile stats (default: profile.prof)",
    )
    return parser


def main() -> None:
    args = build_parser().parse_args()

    # Keep Qt argument list clean; avoid passing our flags downstream
    app_argv = [sys.argv[0]]

    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        exit_code = run_app(app_argv, args)
        profiler.disable()
        profiler.dump_stats(args.profile_out)
    else:
        exit_code = run_app(app_argv, args)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
