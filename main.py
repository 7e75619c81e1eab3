#!/usr/bin/env python3
"""
MonteTrace - A Python Ray Tracing Renderer

Main entry point for rendering scenes.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from montetrace.vec3 import Vec3, Color, Point3
from montetrace.camera import Camera
from montetrace.shapes import Sphere, HittableList
from montetrace.materials import Lambertian, Metal, Dielectric
from montetrace.renderer import Renderer, RenderSettings


def create_default_scene() -> HittableList:
    """Create the three-sphere scene: diffuse, hollow glass and fuzzy metal."""
    world = HittableList()

    material_ground = Lambertian(Color(0.8, 0.8, 0.0))
    material_center = Lambertian(Color(0.7, 0.3, 0.3))
    material_left = Dielectric(1.5)
    material_right = Metal(Color(0.8, 0.6, 0.2), 1.0)

    world.add(Sphere(Point3(0.0, 0.0, -1.0), 0.5, material_center))
    # Hollow glass: outer shell plus an inward-facing inner wall
    world.add(Sphere(Point3(-1.0, 0.0, -1.0), 0.5, material_left))
    world.add(Sphere(Point3(-1.0, 0.0, -1.0), -0.4, material_left))
    world.add(Sphere(Point3(1.0, 0.0, -1.0), 0.5, material_right))
    world.add(Sphere(Point3(0.0, -100.5, -1.0), 100.0, material_ground))

    return world


def create_demo_scene() -> HittableList:
    """Create a demo scene with one large sphere of each material."""
    world = HittableList()

    # Ground
    ground_material = Lambertian(Color(0.5, 0.5, 0.5))
    world.add(Sphere(Point3(0, -1000, 0), 1000, ground_material))

    # Center sphere - glass
    glass = Dielectric(1.5)
    world.add(Sphere(Point3(0, 1, 0), 1.0, glass))

    # Left sphere - diffuse
    diffuse = Lambertian(Color(0.4, 0.2, 0.1))
    world.add(Sphere(Point3(-4, 1, 0), 1.0, diffuse))

    # Right sphere - polished metal
    metal = Metal(Color(0.7, 0.6, 0.5), 0.0)
    world.add(Sphere(Point3(4, 1, 0), 1.0, metal))

    # Small brushed metal and matte spheres in front
    world.add(Sphere(Point3(1.5, 0.5, 2), 0.5, Metal(Color(1.0, 0.766, 0.336), 0.3)))
    world.add(Sphere(Point3(-1.5, 0.5, 2), 0.5, Lambertian(Color(0.8, 0.1, 0.1))))

    return world


def create_camera(scene: str, aspect_ratio: float) -> Camera:
    """Create the camera that frames the named scene."""
    if scene == 'demo':
        return Camera(
            look_from=Point3(13, 2, 3),
            look_at=Point3(0, 0, 0),
            vup=Vec3(0, 1, 0),
            vfov=20,
            aspect_ratio=aspect_ratio,
            aperture=0.1,
            focus_dist=10.0
        )
    return Camera(aspect_ratio=aspect_ratio)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='MonteTrace - A Python Ray Tracing Renderer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py --output image.ppm
  python main.py --width 800 --samples 500 --seed 7 --output render.png
  python main.py --scene demo --threads 8 --output demo.ppm
        '''
    )

    parser.add_argument('--width', type=int, default=400, help='Image width (default: 400)')
    parser.add_argument('--height', type=int, default=None,
                        help='Image height (default: width / aspect ratio)')
    parser.add_argument('--aspect-ratio', type=float, default=16.0 / 9.0,
                        help='Width / height ratio when --height is omitted (default: 16/9)')
    parser.add_argument('--samples', type=int, default=100, help='Samples per pixel (default: 100)')
    parser.add_argument('--depth', type=int, default=50, help='Max ray depth (default: 50)')
    parser.add_argument('--threads', type=int, default=0, help='Number of threads (0=auto)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for a reproducible render')
    parser.add_argument('--output', type=str, default='image.ppm', help='Output filename')
    parser.add_argument('--scene', type=str, default='default', choices=['default', 'demo'],
                        help='Scene to render (default: default)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def make_settings(args: argparse.Namespace) -> RenderSettings:
    """Translate parsed arguments into render settings."""
    options = dict(
        samples_per_pixel=args.samples,
        max_depth=args.depth,
        num_threads=args.threads,
        seed=args.seed
    )
    if args.height is not None:
        return RenderSettings(width=args.width, height=args.height, **options)
    return RenderSettings.from_aspect_ratio(args.width, args.aspect_ratio, **options)


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    try:
        settings = make_settings(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        Renderer.check_output_format(args.output)
    except ValueError as e:
        print(f"Error: could not write {args.output}: {e}", file=sys.stderr)
        return 1

    # Print header
    print("=" * 60)
    print("MonteTrace Ray Tracer")
    print("=" * 60)

    print(f"\nRender Settings:")
    print(f"  Resolution: {settings.width}x{settings.height}")
    print(f"  Samples: {settings.samples_per_pixel}")
    print(f"  Max Depth: {settings.max_depth}")
    print(f"  Threads: {settings.num_threads}")
    if settings.seed is not None:
        print(f"  Seed: {settings.seed}")

    print(f"\nCreating scene: {args.scene}")
    world = create_demo_scene() if args.scene == 'demo' else create_default_scene()
    camera = create_camera(args.scene, settings.aspect_ratio)
    print(f"  Objects in scene: {len(world)}")

    renderer = Renderer(settings)

    # Progress tracking
    last_progress = [0]

    def progress_callback(progress: float):
        pct = int(progress * 100)
        if pct > last_progress[0]:
            last_progress[0] = pct
            bar_len = 40
            filled = int(bar_len * progress)
            bar = '█' * filled + '░' * (bar_len - filled)
            print(f'\rRendering: [{bar}] {pct}%', end='', flush=True)

    renderer.set_progress_callback(progress_callback)

    print("\nRendering...")
    start_time = time.time()

    image = renderer.render(world, camera)

    elapsed = time.time() - start_time
    print(f"\nRender completed in {elapsed:.2f} seconds")
    if elapsed > 0:
        print(f"  Rays per second: {(settings.width * settings.height * settings.samples_per_pixel) / elapsed:.0f}")

    output_path = Path(args.output)
    print(f"\nSaving to: {args.output}")
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        renderer.save_image(image, str(output_path))
    except (OSError, ValueError) as e:
        print(f"Error: could not write {args.output}: {e}", file=sys.stderr)
        return 1

    print("\nDone!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
