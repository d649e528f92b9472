#!/usr/bin/env python3
"""Render a sphere scene to an image file.

Builds one of the built-in scenes (or loads one from a JSON scene file),
renders it scanline by scanline and writes the result. Files ending in .ppm
are written as plain-text P3; other extensions go through Pillow.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH           Image width in pixels (default: 400)
    --aspect-ratio RATIO    Width / height (default: 16/9 or 3/2 by scene)
    --samples SAMPLES       Number of samples per pixel (default: 100)
    --max-depth DEPTH       Maximum bounces per path (default: 50)
    --seed SEED             Seed for scene generation and sampling (default: 0)
    --scene NAME            Built-in scene: random or three_spheres
    --scene-file PATH       JSON scene file (overrides --scene, keeps its camera)
    --output OUTPUT         Output file path (default: image.ppm)
    --quiet                 Suppress progress output
    --cpu                   Force the CPU backend

Example:
    python -m examples.render_spheres --scene three_spheres --width 200 --samples 20
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import taichi as ti

logger = logging.getLogger(__name__)

SCENES = ("random", "three_spheres")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene with Monte Carlo ray tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=None,
        help="Image width / height (default: 16/9 for three_spheres, 3/2 for random)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for scene generation and sampling (default: 0)",
    )
    parser.add_argument(
        "--scene",
        choices=SCENES,
        default="random",
        help="Built-in scene to render (default: random)",
    )
    parser.add_argument(
        "--scene-file",
        type=Path,
        default=None,
        help="JSON scene file with 'materials' and 'spheres' lists",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path (default: image.ppm)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    return parser.parse_args(argv)


def render_spheres(
    width: int = 400,
    aspect_ratio: float | None = None,
    num_samples: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    scene_name: str = "random",
    scene_file: Path | None = None,
    output_path: str = "image.ppm",
    quiet: bool = False,
) -> Path:
    """Build the scene, render it and save the image.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.tracer.camera.thin_lens import setup_camera
    from src.tracer.core.renderer import Renderer, RenderSettings
    from src.tracer.scene.presets import (
        RandomSceneParams,
        create_random_scene,
        create_three_spheres_scene,
    )

    if aspect_ratio is None:
        aspect_ratio = 16.0 / 9.0 if scene_name == "three_spheres" else 3.0 / 2.0

    if scene_name == "three_spheres":
        scene, camera = create_three_spheres_scene(aspect_ratio=aspect_ratio)
    else:
        scene, camera = create_random_scene(
            RandomSceneParams(seed=seed, aspect_ratio=aspect_ratio)
        )

    if scene_file is not None:
        logger.info("Loading scene from %s", scene_file)
        with scene_file.open(encoding="utf-8") as f:
            scene.from_dict(json.load(f))

    setup_camera(camera)

    settings = RenderSettings.from_aspect_ratio(
        width,
        aspect_ratio,
        num_samples,
        max_depth=max_depth,
        seed=seed,
    )
    renderer = Renderer(settings)

    def progress_callback(done: int, total: int) -> None:
        print(f"\rScanlines remaining: {total - done} ", end="", file=sys.stderr, flush=True)

    renderer.render(callback=None if quiet else progress_callback)

    if not quiet:
        print(file=sys.stderr)  # Newline after progress

    output_file = Path(output_path)
    renderer.save_image(str(output_file))
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
    )

    if args.cpu:
        ti.init(arch=ti.cpu, default_fp=ti.f64)
    else:
        # Use GPU if available, fall back to CPU
        ti.init(arch=ti.gpu, default_fp=ti.f64)

    try:
        output_file = render_spheres(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            scene_name=args.scene,
            scene_file=args.scene_file,
            output_path=args.output,
            quiet=args.quiet,
        )
    except Exception:
        logger.exception("Render failed")
        return 1

    logger.info("Saved to: %s", output_file.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
