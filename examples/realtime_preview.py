#!/usr/bin/env python3
"""Fly through the demo scene in a live preview window.

Each frame traces one sample per pixel at a reduced resolution and blends it
with earlier frames while the camera is still.

Controls:
    W/A/S/D     Move forward/left/backward/right
    Q/E         Move down/up
    Mouse drag  Look around
    P           Export the current image as PNG
    Escape      Quit

Usage:
    python -m examples.realtime_preview [options]

Options:
    --width WIDTH       Window width in pixels (default: 1280)
    --height HEIGHT     Window height in pixels (default: 720)
    --scale SCALE       Traced resolution as a fraction of the window (default: 0.325)
    --depth DEPTH       Maximum bounces per path (default: 50)
    --cpu               Force the CPU backend
"""

from __future__ import annotations

import argparse
import sys

import numpy as np
import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Fly through the demo scene in a live preview window.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=1280, help="Window width in pixels (default: 1280)")
    parser.add_argument("--height", type=int, default=720, help="Window height in pixels (default: 720)")
    parser.add_argument(
        "--scale",
        type=float,
        default=0.325,
        help="Traced resolution as a fraction of the window (default: 0.325)",
    )
    parser.add_argument("--depth", type=int, default=50, help="Maximum bounces per path (default: 50)")
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    ti.init(arch=ti.cpu if args.cpu else ti.gpu)

    # Lazy imports so Taichi is initialized first
    from tracer.preview.interactive import FlyCamera, InteractivePreview
    from tracer.scene.presets import create_demo_scene

    if not InteractivePreview.is_display_available():
        print("Error: no display available for the preview window", file=sys.stderr)
        return 1

    # Start at the demo viewpoint, facing the spheres along -Z
    camera = FlyCamera(position=np.array([0.0, 0.25, 0.0]), yaw=180.0)
    preview = InteractivePreview(
        args.width,
        args.height,
        resolution_scale=args.scale,
        max_depth=args.depth,
        camera=camera,
    )

    try:
        preview.run(create_demo_scene())
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
