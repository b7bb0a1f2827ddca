"""Command line interface.

Usage:
    python -m pathtracer [options]
    pathtracer [options]

Options:
    --quality {draft,preview,final}  Start from a quality preset
    --width WIDTH                    Image width in pixels (default: 720)
    --height HEIGHT                  Image height in pixels (default: 405)
    --samples N                      Antialiasing factor, N x N rays per pixel (default: 8)
    --max-depth DEPTH                Bounce cap (default: 50)
    --seed SEED                      Seed of the per-pixel random streams (default: 0)
    --decorrelate-pixels             Give every pixel its own random stream
    --scene {random,simple}          Built-in scene (default: random)
    --scene-file PATH                Load spheres (and optionally a camera) from JSON
    --scene-seed SEED                Layout seed of the random scene (default: 0)
    --save-scene PATH                Write the scene and camera to JSON
    --output PATH                    Output image, .ppm or .png (default: output.ppm)
    --arch {cpu,gpu}                 Taichi backend (default: gpu, falls back to cpu)
    --rows-per-batch ROWS            Rows per kernel launch (default: 16)
    --show                           Display the result with Matplotlib
    --verbose / --quiet              More or less logging

Example:
    python -m pathtracer --quality draft --scene simple --output simple.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from pathlib import Path

import taichi as ti

from pathtracer.config import QUALITY_PRESETS, RenderConfig, preset

logger = logging.getLogger(__name__)

SCENES = ("random", "simple")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a sphere scene with Monte Carlo path tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--quality",
        choices=sorted(QUALITY_PRESETS),
        default=None,
        help="Quality preset; explicit options below override it",
    )
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels")
    parser.add_argument("--height", type=int, default=None, help="Image height in pixels")
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Antialiasing factor N; each pixel averages N x N rays",
    )
    parser.add_argument("--max-depth", type=int, default=None, help="Bounce cap")
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed of the per-pixel random streams",
    )
    parser.add_argument(
        "--decorrelate-pixels",
        action="store_true",
        help="Mix the pixel index into each pixel's seed",
    )

    scene_group = parser.add_mutually_exclusive_group()
    scene_group.add_argument(
        "--scene",
        choices=SCENES,
        default="random",
        help="Built-in scene (default: random)",
    )
    scene_group.add_argument(
        "--scene-file",
        type=Path,
        default=None,
        help="JSON scene file",
    )
    parser.add_argument(
        "--scene-seed",
        type=int,
        default=0,
        help="Layout seed of the random scene (default: 0)",
    )
    parser.add_argument(
        "--save-scene",
        type=Path,
        default=None,
        help="Write the scene and camera to this JSON file",
    )

    parser.add_argument(
        "--output",
        type=Path,
        default=Path("output.ppm"),
        help="Output file path, .ppm or .png (default: output.ppm)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="gpu",
        help="Taichi backend (default: gpu, falls back to cpu)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Rows per kernel launch between progress updates (default: 16)",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Display the rendered image",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only log warnings")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RenderConfig:
    """Combine the quality preset (if any) with explicit options.

    Raises:
        ValueError: If the resulting configuration is invalid.
    """
    overrides = {
        "width": args.width,
        "height": args.height,
        "samples_per_axis": args.samples,
        "max_depth": args.max_depth,
        "seed": args.seed,
        "decorrelate_pixels": args.decorrelate_pixels or None,
    }
    if args.quality is not None:
        return preset(args.quality, **overrides)
    return RenderConfig(**{key: value for key, value in overrides.items() if value is not None})


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def init_taichi(arch: str) -> None:
    """Initialize Taichi on the requested backend, falling back to CPU."""
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu)
            logger.info("Using GPU backend")
            return
        except Exception as e:
            logger.warning("GPU backend unavailable (%s), falling back to CPU", e)
    ti.init(arch=ti.cpu)
    logger.info("Using CPU backend")


def render_to_file(
    config: RenderConfig,
    output_path: str | Path,
    *,
    scene_name: str = "random",
    scene_file: str | Path | None = None,
    scene_seed: int = 0,
    save_scene: str | Path | None = None,
    rows_per_batch: int = 16,
    show: bool = False,
) -> Path:
    """Build the scene, render it and save the image.

    Taichi must already be initialized.

    Args:
        config: Render configuration.
        output_path: Output image path; the suffix selects the format.
        scene_name: Built-in scene used when no scene file is given.
        scene_file: JSON scene file. Its optional "camera" entry replaces
            the default camera.
        scene_seed: Layout seed of the random scene.
        save_scene: If set, the scene and camera are written there as JSON.
        rows_per_batch: Rows per kernel launch between progress updates.
        show: Display the result with Matplotlib.

    Returns:
        Path to the saved image file.

    Raises:
        ValueError: If the scene name, scene file or configuration is invalid.
    """
    # Lazy imports so Taichi fields are allocated after ti.init
    from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera
    from pathtracer.core.renderer import Renderer
    from pathtracer.preview.export import save_image
    from pathtracer.scene.builtin import (
        create_random_scene,
        create_random_scene_camera,
        create_simple_scene,
    )
    from pathtracer.scene.manager import SceneManager

    if scene_file is not None:
        scene = SceneManager()
        data = scene.load_json(scene_file)
        if "camera" in data:
            camera = ThinLensCamera.from_dict(data["camera"])
        else:
            camera = create_random_scene_camera()
    elif scene_name == "random":
        scene, camera = create_random_scene(seed=scene_seed)
    elif scene_name == "simple":
        scene, camera = create_simple_scene()
    else:
        raise ValueError(f"Unknown scene {scene_name!r}; expected one of {SCENES}")

    if save_scene is not None:
        scene.save_json(save_scene, extra={"camera": camera.to_dict()})

    setup_camera(camera, config.width, config.height)

    renderer = Renderer(config)
    start_time = time.perf_counter()

    def progress_callback(done: int, total: int) -> None:
        elapsed = time.perf_counter() - start_time
        logger.info(
            "Progress: %d/%d pixels (%.1f%%) - %.1fs",
            done,
            total,
            100.0 * done / total,
            elapsed,
        )

    image = renderer.render(callback=progress_callback, rows_per_batch=rows_per_batch)

    output_file = Path(output_path)
    save_image(image, output_file)

    if show:
        from pathtracer.preview.display import show_image

        show_image(image)

    return output_file


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        config = build_config(args)
        init_taichi(args.arch)
        output = render_to_file(
            config,
            args.output,
            scene_name=args.scene,
            scene_file=args.scene_file,
            scene_seed=args.scene_seed,
            save_scene=args.save_scene,
            rows_per_batch=args.rows_per_batch,
            show=args.show,
        )
    except Exception as e:
        logger.error("Error: %s", e)
        logger.debug("Traceback", exc_info=True)
        return 1

    logger.info("Saved to: %s", output.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
