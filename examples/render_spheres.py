#!/usr/bin/env python3
"""Render a small showcase scene with the Whitted ray tracer.

The scene has a checkered floor, a red diffuse sphere, a chrome sphere, a
glass sphere, a box and a capped cylinder, lit by a point light and a dim
directional light.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH       Image width in pixels (default: 640)
    --height HEIGHT     Image height in pixels (default: 480)
    --depth DEPTH       Maximum recursion depth (default: 3)
    --output OUTPUT     Output file path (default: spheres.png)
    --gamma GAMMA       Gamma applied when saving (default: 2.2)
    --quiet             Suppress progress output

Example:
    python -m examples.render_spheres --width 320 --height 240 --depth 5
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a showcase scene with the Whitted ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=640, help="Image width in pixels (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Image height in pixels (default: 480)")
    parser.add_argument("--depth", type=int, default=3, help="Maximum recursion depth (default: 3)")
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument("--gamma", type=float, default=2.2, help="Gamma applied when saving (default: 2.2)")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def build_scene(max_depth: int):
    """Assemble the showcase scene."""
    # Lazy imports to allow Taichi initialization first
    from whitted.camera import Camera
    from whitted.core.integrator import RenderConfig
    from whitted.geometry import Box, Cylinder, Plane, Sphere
    from whitted.materials import CheckerTexture, Material
    from whitted.scene.builder import SceneBuilder
    from whitted.scene.lights import Light

    builder = SceneBuilder(RenderConfig(max_depth=max_depth, background=(0.05, 0.07, 0.12)))
    builder.set_camera(Camera(eye=(0.0, 2.0, 8.0), look_at=(0.0, 0.5, 0.0), fov=40.0))

    builder.add_material(
        Material(
            "floor",
            ka=(0.1, 0.1, 0.1),
            kd=(0.8, 0.8, 0.8),
            kr=(0.1, 0.1, 0.1),
            texture=CheckerTexture((0.9, 0.9, 0.9), (0.15, 0.15, 0.15), scale=2.0),
        )
    )
    builder.add_material(
        Material("red", ka=(0.1, 0.0, 0.0), kd=(0.8, 0.1, 0.1), ks=(0.5, 0.5, 0.5), shininess=32)
    )
    builder.add_material(
        Material("chrome", ka=(0.02, 0.02, 0.02), kd=(0.05, 0.05, 0.05), ks=(0.9, 0.9, 0.9),
                 shininess=200, kr=(0.85, 0.85, 0.85))
    )
    builder.add_material(
        Material("glass", ks=(0.9, 0.9, 0.9), shininess=300, kr=(0.1, 0.1, 0.1),
                 kt=(0.85, 0.9, 0.85), ior=1.5)
    )
    builder.add_material(Material("blue", ka=(0.0, 0.0, 0.1), kd=(0.2, 0.3, 0.8), ks=(0.2, 0.2, 0.2)))
    builder.add_material(Material("gold", ka=(0.1, 0.08, 0.0), kd=(0.7, 0.55, 0.1), ks=(0.6, 0.6, 0.4), shininess=64))

    builder.add_shape(Plane((0.0, 0.0, 0.0), (0.0, 1.0, 0.0)), material="floor")

    builder.begin_group("spheres")
    builder.add_shape(Sphere((-2.2, 1.0, 0.0), 1.0), material="red")
    builder.add_shape(Sphere((0.0, 1.0, -1.0), 1.0), material="chrome")
    builder.add_shape(Sphere((1.2, 0.7, 1.5), 0.7), material="glass")
    builder.end_group()

    builder.begin_group("props")
    builder.push()
    builder.translate(2.6, 0.5, -0.5)
    builder.rotate((0.0, 1.0, 0.0), 30.0)
    builder.add_shape(Box((-0.5, -0.5, -0.5), (0.5, 0.5, 0.5)), material="blue")
    builder.pop()
    builder.push()
    builder.translate(-0.8, 0.0, 2.0)
    builder.add_shape(Cylinder(radius=0.35, y_min=0.0, y_max=1.2), material="gold")
    builder.pop()
    builder.end_group()

    builder.add_light(Light(position=(4.0, 6.0, 5.0), color=(1.0, 1.0, 1.0)))
    builder.add_light(Light(direction=(-1.0, -1.0, -0.5), color=(0.3, 0.3, 0.35)))
    return builder.build()


def render_spheres(
    width: int = 640,
    height: int = 480,
    max_depth: int = 3,
    output_path: str = "spheres.png",
    gamma: float = 2.2,
    quiet: bool = False,
) -> Path:
    """Render the showcase scene and save it as a PNG.

    Returns:
        Path to the saved image file.
    """
    from whitted.preview.export import save_png

    if not quiet:
        print(f"Building scene ({width}x{height}, depth {max_depth})...")
    scene = build_scene(max_depth)

    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        if not quiet:
            print(f"\r  Progress: {done}/{total} columns ({100.0 * done / total:.1f}%)", end="", flush=True)

    image = scene.render(width, height, callback=progress_callback)

    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_png(image, output_file, gamma=gamma)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            max_depth=args.depth,
            output_path=args.output,
            gamma=args.gamma,
            quiet=args.quiet,
        )
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
