#!/usr/bin/env python3
"""Render the demo scene to a TGA file.

Builds the demo scene (diffuse, gold and glass spheres over a ground sphere),
renders it, prints timing statistics and writes the result as an
uncompressed 32-bit TGA.

Usage:
    python -m examples.render_offline [options]

Options:
    --width WIDTH       Image width in pixels (default: 1280)
    --height HEIGHT     Image height in pixels (default: 720)
    --samples SAMPLES   Samples per pixel (default: 1000)
    --depth DEPTH       Maximum bounces per path (default: 100)
    --seed SEED         Random seed (default: 0)
    --output OUTPUT     Output file path (default: output.tga)
    --png PNG           Also save a PNG copy to this path
    --show              Display the result with Matplotlib
    --cpu               Force the CPU backend
    --verbose           Enable debug logging

Example:
    python -m examples.render_offline --width 320 --height 180 --samples 64
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo scene to a TGA file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=1280, help="Image width in pixels (default: 1280)")
    parser.add_argument("--height", type=int, default=720, help="Image height in pixels (default: 720)")
    parser.add_argument("--samples", type=int, default=1000, help="Samples per pixel (default: 1000)")
    parser.add_argument("--depth", type=int, default=100, help="Maximum bounces per path (default: 100)")
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--output",
        type=str,
        default="output.tga",
        help="Output file path (default: output.tga)",
    )
    parser.add_argument("--png", type=str, default=None, help="Also save a PNG copy to this path")
    parser.add_argument("--show", action="store_true", help="Display the result with Matplotlib")
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def render_offline(
    width: int = 1280,
    height: int = 720,
    samples: int = 1000,
    depth: int = 100,
    seed: int = 0,
    output_path: str = "output.tga",
    png_path: str | None = None,
    show: bool = False,
) -> Path:
    """Render the demo scene and write it to disk.

    Returns:
        Path to the written TGA file.
    """
    # Lazy imports so Taichi is initialized first
    from tracer.core.renderer import render
    from tracer.core.timing import RenderTiming, Stopwatch
    from tracer.preview.export import save_png, write_tga
    from tracer.scene.presets import create_demo_camera, create_demo_scene

    scene = create_demo_scene()
    camera = create_demo_camera(aspect_ratio=width / height)

    with Stopwatch() as watch:
        buffer = render(camera, scene, width, height, samples, depth, seed=seed)

    timing = RenderTiming.measure(watch.start, watch.end, width, height, samples)
    for line in timing.summary_lines():
        print(line)

    output_file = Path(output_path)
    write_tga(output_file, width, height, buffer)
    print(f"Saved to: {output_file.absolute()}")

    if png_path is not None:
        save_png(png_path, width, height, buffer)
        print(f"Saved PNG to: {Path(png_path).absolute()}")

    if show:
        from tracer.preview.display import show_render

        show_render(buffer, width, height, title=f"{width}x{height}, {samples} spp")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    ti.init(arch=ti.cpu if args.cpu else ti.gpu)

    try:
        render_offline(
            width=args.width,
            height=args.height,
            samples=args.samples,
            depth=args.depth,
            seed=args.seed,
            output_path=args.output,
            png_path=args.png,
            show=args.show,
        )
        return 0
    except (ValueError, RuntimeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
