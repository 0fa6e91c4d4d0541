#!/usr/bin/env python3
"""Render a sphere scene to a PNG or PPM file.

This script renders one of the built-in demo scenes (or a scene loaded
from a JSON file) with progressive refinement and writes the result.

Usage:
    python -m examples.render_spheres [options]

Options:
    --scene {three,random}  Built-in scene to render (default: three)
    --scene-file PATH       Load the scene from a JSON file instead
    --width WIDTH           Image width in pixels (default: 400)
    --samples SAMPLES       Number of samples per pixel (default: 10)
    --max-depth DEPTH       Maximum bounces per ray (default: 10)
    --output OUTPUT         Output file, .png or .ppm (default: spheres.png)
    --batch-size SIZE       Samples per progress update (default: 10)
    --seed SEED             Seed for the random scene and the sampler
    --cpu                   Force the CPU backend
    --quiet                 Suppress progress output
    -v, --verbose           Enable debug logging

Example:
    python -m examples.render_spheres --scene random --width 1200 --samples 500 --max-depth 50
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a sphere scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=["three", "random"],
        default="three",
        help="Built-in scene to render (default: three)",
    )
    parser.add_argument(
        "--scene-file",
        type=str,
        default=None,
        help="Load the scene from a JSON file (uses the three-sphere camera)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=10,
        help="Number of samples per pixel (default: 10)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=10,
        help="Maximum bounces per ray (default: 10)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path, .png or .ppm (default: spheres.png)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the random scene and the sampler (default: 0)",
    )
    parser.add_argument(
        "--cpu",
        action="store_true",
        help="Force the CPU backend",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def render_spheres(
    scene_name: str = "three",
    scene_file: str | None = None,
    width: int = 400,
    num_samples: int = 10,
    max_depth: int = 10,
    output_path: str = "spheres.png",
    batch_size: int = 10,
    seed: int = 0,
    quiet: bool = False,
) -> Path:
    """Render a scene and save it to file.

    Args:
        scene_name: Built-in scene, "three" or "random".
        scene_file: Optional JSON scene file overriding scene_name.
        width: Image width in pixels.
        num_samples: Number of samples per pixel.
        max_depth: Maximum bounces per ray.
        output_path: Output file path (.png or .ppm).
        batch_size: Number of samples to render between progress updates.
        seed: Seed for the random scene.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.

    Raises:
        ValueError: If the settings, scene or output format are invalid.
    """
    # Lazy imports to allow Taichi initialization first
    from src.spheretrace.camera.thin_lens import setup_camera
    from src.spheretrace.core.integrator import RenderSettings
    from src.spheretrace.core.progressive import ProgressiveRenderer
    from src.spheretrace.scene.presets import (
        create_random_spheres_scene,
        create_three_spheres_scene,
    )

    settings = RenderSettings(image_width=width, samples_per_pixel=num_samples, max_depth=max_depth)
    settings.validate()

    output_file = Path(output_path)
    if output_file.suffix.lower() not in (".png", ".ppm"):
        raise ValueError(f"Unsupported output format '{output_file.suffix}' (use .png or .ppm)")

    if scene_name == "random":
        scene, camera = create_random_spheres_scene(seed=seed, aspect_ratio=settings.aspect_ratio)
    else:
        scene, camera = create_three_spheres_scene(aspect_ratio=settings.aspect_ratio)

    if scene_file is not None:
        scene.load_scene_file(scene_file)

    logger.info(
        "Rendering %d spheres at %dx%d, %d spp, max depth %d",
        scene.get_sphere_count(),
        settings.image_width,
        settings.image_height,
        settings.samples_per_pixel,
        settings.max_depth,
    )

    setup_camera(camera)
    renderer = ProgressiveRenderer(
        settings.image_width, settings.image_height, max_depth=settings.max_depth
    )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=settings.samples_per_pixel,
        batch_size=batch_size,
        callback=progress_callback,
    )

    if not quiet:
        print()

    renderer.save_image(output_file)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    # Use GPU if available, fall back to CPU
    if args.cpu:
        ti.init(arch=ti.cpu, random_seed=args.seed)
    else:
        try:
            ti.init(arch=ti.gpu, random_seed=args.seed)
        except Exception:
            logger.info("GPU backend unavailable, using CPU")
            ti.init(arch=ti.cpu, random_seed=args.seed)

    try:
        render_spheres(
            scene_name=args.scene,
            scene_file=args.scene_file,
            width=args.width,
            num_samples=args.samples,
            max_depth=args.max_depth,
            output_path=args.output,
            batch_size=args.batch_size,
            seed=args.seed,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        logger.error("Render failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
