#!/usr/bin/env python3
"""Render a scene description file to a PNG.

Usage:
    python examples/render_scene.py SCENE [options]

Options:
    --width WIDTH         Image width in pixels (default: 320)
    --height HEIGHT       Image height in pixels (default: 240)
    --samples SAMPLES     Number of samples per pixel (default: 64)
    --max-depth DEPTH     Maximum recursion depth, 0-16 (default: 3)
    --seed SEED           Random seed (default: 0)
    --background R G B    Background colour (default: 0 0 0)
    --gamma GAMMA         Output gamma (default: 2.2)
    --output OUTPUT       Output file path (default: SCENE with .png suffix)
    --batch-size SIZE     Samples per progress update (default: 8)
    --log-level LEVEL     Logging level (default: INFO)
    --quiet               Suppress progress output

Example:
    python examples/render_scene.py examples/scenes/spheres.txt --samples 32
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("pathtracer.render_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene description file to a PNG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("scene", type=Path, help="Scene description file")
    parser.add_argument(
        "--width", type=int, default=320, help="Image width in pixels (default: 320)"
    )
    parser.add_argument(
        "--height", type=int, default=240, help="Image height in pixels (default: 240)"
    )
    parser.add_argument(
        "--samples", type=int, default=64, help="Number of samples per pixel (default: 64)"
    )
    parser.add_argument(
        "--max-depth", type=int, default=3, help="Maximum recursion depth, 0-16 (default: 3)"
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--background",
        type=float,
        nargs=3,
        default=(0.0, 0.0, 0.0),
        metavar=("R", "G", "B"),
        help="Background colour, channels in [0, 1] (default: 0 0 0)",
    )
    parser.add_argument("--gamma", type=float, default=2.2, help="Output gamma (default: 2.2)")
    parser.add_argument(
        "--output", type=Path, default=None, help="Output file path (default: SCENE.png)"
    )
    parser.add_argument(
        "--batch-size", type=int, default=8, help="Samples per progress update (default: 8)"
    )
    parser.add_argument(
        "--log-level", default="INFO", help="Logging level (default: INFO)"
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args(argv)


def render_scene(
    scene_path: Path,
    width: int = 320,
    height: int = 240,
    num_samples: int = 64,
    max_depth: int = 3,
    seed: int = 0,
    background: tuple[float, float, float] = (0.0, 0.0, 0.0),
    gamma: float = 2.2,
    output_path: Path | None = None,
    batch_size: int = 8,
    quiet: bool = False,
) -> Path | None:
    """Render a scene file and save the result.

    Taichi must already be initialized.

    Returns:
        Path to the saved image, or None if the scene file could not be read.
    """
    # Lazy imports so Taichi is initialized before any field is declared
    from pathtracer.camera.pinhole import setup_camera
    from pathtracer.core.integrator import RenderSettings
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.scene.loader import build_scene_from_file
    from pathtracer.scene.manager import SceneManager

    settings = RenderSettings(
        max_recursion_depth=max_depth,
        background_color=tuple(background),
        seed=seed,
    )

    scene = SceneManager()
    camera = build_scene_from_file(scene_path, scene, aspect_ratio=width / height)
    if camera is None:
        return None
    setup_camera(camera)

    renderer = ProgressiveRenderer(width, height, settings)
    logger.info(
        "Rendering %s at %dx%d, %d spp, max depth %d",
        scene_path,
        width,
        height,
        num_samples,
        max_depth,
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

    renderer.render(num_samples=num_samples, batch_size=batch_size, callback=progress_callback)
    if not quiet:
        print()  # Newline after progress

    output_file = output_path or scene_path.with_suffix(".png")
    renderer.save_image(output_file, gamma=gamma)
    logger.info("Total time: %.2fs", time.time() - start_time)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    ti.init(arch=ti.cpu)

    from pathtracer.logging_config import setup_logging

    setup_logging(args.log_level)

    try:
        output = render_scene(
            args.scene,
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            background=tuple(args.background),
            gamma=args.gamma,
            output_path=args.output,
            batch_size=args.batch_size,
            quiet=args.quiet,
        )
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Render failed: %s", e)
        return 1

    return 0 if output is not None else 1


if __name__ == "__main__":
    sys.exit(main())
