#!/usr/bin/env python3
"""Sprite Walker - sprites that stroll along the bottom of the screen.

Walkers rest, walk and nap on a transparent strip docked to the bottom
edge of the primary monitor, animated from a 4x9 sprite sheet.
"""

import argparse
import json
import logging
import os
import signal
import sys

import gi

gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gdk, Gtk  # noqa: E402

from geometry import clamp_scale  # noqa: E402

logger = logging.getLogger("sprite-walker")

DEFAULT_SHEET = os.path.join(os.path.dirname(os.path.abspath(__file__)), "spritesheet.png")
DEFAULT_SCALE = 0.6
CONFIG_DIR = os.path.join(os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")), "sprite-walker")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="sprite-walker",
        description="Sprites that rest, walk and sleep along the bottom of the screen",
    )
    parser.add_argument(
        "--sheet",
        type=str,
        default=DEFAULT_SHEET,
        help="Path to a 4x9 sprite sheet PNG (default: spritesheet.png next to the program)",
    )
    parser.add_argument(
        "--walkers",
        type=int,
        default=1,
        help="Number of walkers to start with (default: 1)",
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=None,
        help="Sprite scale multiplier, 0.2 to 2.0 (default: saved setting or 0.6)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to stderr",
    )
    return parser.parse_args(argv)


def setup_logging(debug: bool) -> None:
    """Configure logging to stderr."""
    level = logging.DEBUG if debug else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def setup_signal_handlers() -> None:
    """Register SIGINT and SIGTERM to gracefully quit GTK."""
    def handle_signal(signum: int, frame: object) -> None:
        logger.info("Received signal %d, shutting down", signum)
        Gtk.main_quit()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def load_config() -> dict:
    try:
        with open(CONFIG_FILE) as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError):
        return {}


def save_config(cfg: dict) -> None:
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_FILE, "w") as f:
        json.dump(cfg, f, indent=2)


def resolve_scale(arg_scale: float | None, config: dict) -> float:
    """Pick the user scale: command line, then saved config, then default."""
    if arg_scale is not None:
        return clamp_scale(arg_scale)
    saved = config.get("scale")
    if isinstance(saved, (int, float)):
        return clamp_scale(saved)
    return DEFAULT_SCALE


def remember_scale(scale: float) -> None:
    cfg = load_config()
    cfg["scale"] = scale
    try:
        save_config(cfg)
    except OSError:
        logger.warning("Could not save scale to %s", CONFIG_FILE)


def main() -> None:
    args = parse_args()
    setup_logging(args.debug)

    if not os.path.isfile(args.sheet):
        print(f"Error: sprite sheet not found: {args.sheet}")
        sys.exit(1)

    if Gdk.Display.get_default() is None:
        logger.warning("No display available, nothing to draw on")
        return

    setup_signal_handlers()
    scale = resolve_scale(args.scale, load_config())
    logger.info("Starting Sprite Walker: sheet=%s, walkers=%d, scale=%.2f",
                args.sheet, args.walkers, scale)

    from walker_window import WalkerWindow
    window = WalkerWindow(
        sheet_path=args.sheet,
        walkers=args.walkers,
        scale=scale,
        on_scale_changed=remember_scale,
    )
    window.show_all()

    Gtk.main()
    logger.info("Sprite Walker shut down")


if __name__ == "__main__":
    main()
