"""
MonteTrace - A Python Ray Tracing Renderer

A CPU path tracer that renders spheres with diffuse, metal and glass
materials:
- Recursive Monte Carlo color estimation with bounded depth
- Sky gradient background
- Multi-threaded tile rendering with reproducible seeding
- Plain-text PPM output (other formats via Pillow)
"""

__version__ = "0.1.0"
__author__ = "MonteTrace Team"

from .vec3 import Vec3, Point3, Color, default_generator, seed_generator
from .ray import Ray
from .shapes import Sphere, HittableList, HitRecord, Hittable
from .materials import Material, ScatterResult, Lambertian, Metal, Dielectric
from .camera import Camera
from .renderer import (
    Renderer, RenderSettings, RenderCancelledError,
    ray_color, sky_color, encode_colors, write_ppm
)
