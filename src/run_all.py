#!/usr/bin/env python3
"""
Photo Globe - Orchestrator

Turn images into globe meshes, export their heightmaps, and simulate
bodies orbiting around them.

Usage:
    python src/run_all.py --image photos/moon.jpg --palette terrain --contours 24
    python src/run_all.py --image a.png b.png --orbit circle rose trefoil --ticks 600
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional
from datetime import datetime

# Add src to path
sys.path.insert(0, str(Path(__file__).parent))

from common.config import Config
from common.errors import GlobeError
from common.mesh_ops import compute_mesh_stats
from orbits.kinematics import OrbitType, sample_orbit_path
from scene.session import GlobeSession
from scene.state import BodyConfig, SceneState
from terrain.export import FORMATS
from terrain.heightfield import HeightMode
from terrain.palettes import Palette

logger = logging.getLogger(__name__)


def build_scene(image: Path, args: argparse.Namespace) -> SceneState:
    """Central globe for the image plus one orbiting body per orbit type."""
    central = BodyConfig(
        id="central",
        name=image.stem,
        is_central=True,
        image=str(image),
        radius=args.radius,
        height_scale=args.height_scale,
        height_mode=args.height_mode,
        palette=args.palette,
        sea_level=args.sea_level,
        show_contours=args.contours is not None,
        contour_steps=args.contours or 24,
    )
    state = SceneState(bodies=(central,), active_body_id=central.id, image=str(image))
    for i, orbit_type in enumerate(args.orbit or []):
        state = state.add_body(
            id=f"orbiter_{i}_{orbit_type}",
            name=f"{orbit_type} orbiter",
            orbit_type=orbit_type,
            orbit_radius=args.orbit_radius,
            orbit_speed=args.orbit_speed,
            trail_length=args.trail_length,
            radius=0.3,
        )
    return state.select_body(central.id)


def run_orbits(session: GlobeSession, ticks: int, dt: float) -> dict:
    """Advance the scene and collect each orbiter's trail and full path."""
    for _ in range(ticks):
        session.frame(dt)

    results = {}
    for body in session.state.bodies:
        if body.is_central:
            continue
        params = body.orbit_params()
        results[body.id] = {
            "orbit": params.to_dict(),
            "trail": session.animator.trail_points(body.id).tolist(),
            "path": sample_orbit_path(params, session.config.default_trail_samples).tolist(),
        }
    return results


def process_image(
    image: Path,
    args: argparse.Namespace,
    config: Config
) -> dict:
    """
    Build, export and animate one image.

    Returns:
        Per-image result dictionary
    """
    session = GlobeSession(build_scene(image, args), config=config)
    body_id = "central"

    terrain = session.loader.load_blocking(body_id, image, args.height_mode)
    result = {
        "image": str(image),
        "width": terrain.field.width,
        "height": terrain.field.height,
        "exports": {}
    }

    mesh_path = config.output_dir / image.stem / f"{image.stem}.glb"
    status = session.export_globe(body_id, mesh_path)
    result["exports"]["glb"] = str(status.path) if status.ok else status.message

    for fmt in args.heightmap:
        status = session.export_heightmap(
            body_id, config.output_dir / image.stem / f"{image.stem}_heightmap.{fmt}", fmt
        )
        result["exports"][fmt] = str(status.path) if status.ok else status.message

    geometry = session.geometry(body_id)
    result["mesh"] = {
        "width_segments": geometry.width_segments,
        "height_segments": geometry.height_segments,
        **compute_mesh_stats(geometry.to_trimesh()),
    }

    if args.orbit:
        orbits = run_orbits(session, args.ticks, args.dt)
        orbit_path = config.output_dir / image.stem / "orbits.json"
        orbit_path.parent.mkdir(parents=True, exist_ok=True)
        with open(orbit_path, 'w') as f:
            json.dump(orbits, f, indent=2)
        result["exports"]["orbits"] = str(orbit_path)
        logger.info(f"Saved {len(orbits)} orbit trails: {orbit_path}")

    return result


def run_all(
    images: List[Path],
    args: argparse.Namespace,
    config: Config
) -> dict:
    """
    Process every image, recording failures and moving on.

    Returns:
        Summary dictionary
    """
    summary = {
        "timestamp": datetime.now().isoformat(),
        "config": config.to_dict(),
        "images": [],
        "errors": []
    }

    for image in images:
        logger.info(f"\n{'='*60}")
        logger.info(f"Processing: {image}")
        logger.info(f"{'='*60}")

        try:
            result = process_image(image, args, config)
            result["status"] = "success"
        except (GlobeError, OSError, ValueError) as e:
            logger.error(f"Failed to process {image}: {e}")
            result = {"image": str(image), "status": "error", "error": str(e)}
            summary["errors"].append({"image": str(image), "error": str(e)})

        summary["images"].append(result)

    return summary


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Photo Globe - build globe terrain meshes from images"
    )
    parser.add_argument(
        "--image", "-i",
        type=Path,
        nargs="+",
        required=True,
        help="Image file(s) to process"
    )
    parser.add_argument(
        "--palette", "-p",
        choices=[p.value for p in Palette],
        default=Palette.GEOGRAPHIC.value,
        help="Surface palette"
    )
    parser.add_argument(
        "--height-mode", "-m",
        choices=[m.value for m in HeightMode],
        default=HeightMode.LUMINANCE.value,
        help="Pixel to height mapping"
    )
    parser.add_argument(
        "--height-scale", "-s",
        type=float,
        default=3.0,
        help="Height scale slider value (1-10)"
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=1.0,
        help="Body radius"
    )
    parser.add_argument(
        "--sea-level",
        type=float,
        default=0.5,
        help="Sea level (0-1)"
    )
    parser.add_argument(
        "--contours", "-c",
        type=int,
        default=None,
        help="Enable contour banding with this many steps (6-64)"
    )
    parser.add_argument(
        "--heightmap",
        nargs="*",
        choices=FORMATS,
        default=["png"],
        help="Heightmap formats to export"
    )
    parser.add_argument(
        "--orbit",
        nargs="*",
        choices=[t.value for t in OrbitType],
        default=[],
        help="Add one orbiting body per curve type"
    )
    parser.add_argument(
        "--orbit-radius",
        type=float,
        default=2.5,
        help="Orbit radius of added bodies"
    )
    parser.add_argument(
        "--orbit-speed",
        type=float,
        default=0.2,
        help="Angular speed of added bodies (rad/s)"
    )
    parser.add_argument(
        "--trail-length",
        type=int,
        default=100,
        help="Trail points kept per orbiting body"
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=600,
        help="Animation frames to simulate"
    )
    parser.add_argument(
        "--dt",
        type=float,
        default=1.0 / 60.0,
        help="Seconds per frame"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON config file"
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output directory"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )

    args = parser.parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    config = Config.from_json(args.config) if args.config else Config()
    if args.output:
        config.output_dir = args.output

    logger.info(f"Processing {len(args.image)} images (palette={args.palette}, mode={args.height_mode})")
    logger.info(f"Output: {config.output_dir}")

    summary = run_all(args.image, args, config)

    # Save summary
    summary_path = config.output_dir / "run_summary.json"
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    with open(summary_path, 'w') as f:
        json.dump(summary, f, indent=2)

    logger.info(f"\nSummary saved to: {summary_path}")

    n_success = sum(1 for r in summary["images"] if r.get("status") == "success")
    n_errors = len(summary["errors"])

    logger.info(f"\n{'='*60}")
    logger.info(f"COMPLETE: {n_success} successful, {n_errors} errors")
    logger.info(f"{'='*60}")

    if n_errors > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
