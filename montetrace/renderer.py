"""
Renderer module - the heart of the ray tracer.

Implements:
- Recursive Monte Carlo path tracing with a bounded bounce depth
- Multi-threaded tile-based rendering with per-tile random streams
- 8-bit color quantization and plain-text PPM (P3) output
"""

from __future__ import annotations
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, IO, List, Optional, Tuple
import numpy as np

from .vec3 import Color, default_generator
from .ray import Ray
from .camera import Camera
from .shapes import Hittable

logger = logging.getLogger(__name__)

# Lower bound on hit distance; rejects self-intersections caused by
# floating-point error at the ray origin ("shadow acne").
T_MIN = 0.001

Tile = Tuple[int, int, int, int]


class RenderCancelledError(InterruptedError):
    """Raised when a render is cancelled before all tiles completed."""
    pass


@dataclass
class RenderSettings:
    """Configuration for the renderer."""
    width: int = 400
    height: int = 225
    samples_per_pixel: int = 100
    max_depth: int = 50
    tile_size: int = 32
    num_threads: int = 0  # 0 = auto-detect
    seed: Optional[int] = None  # None = fresh entropy every render

    def __post_init__(self):
        if self.width < 2 or self.height < 2:
            raise ValueError(
                f"Image must be at least 2x2 pixels, got {self.width}x{self.height}"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {self.max_depth}")
        if self.tile_size < 1:
            raise ValueError(f"tile_size must be positive, got {self.tile_size}")
        if self.num_threads < 0:
            raise ValueError(f"num_threads must not be negative, got {self.num_threads}")
        if self.num_threads == 0:
            self.num_threads = os.cpu_count() or 4

    @classmethod
    def from_aspect_ratio(cls, width: int, aspect_ratio: float, **kwargs) -> RenderSettings:
        """Create settings whose height follows from the width and aspect ratio."""
        if not aspect_ratio > 0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        return cls(width=width, height=int(width / aspect_ratio), **kwargs)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def sky_color(ray: Ray) -> Color:
    """Background gradient from white at the horizon-down to sky blue overhead.

    Args:
        ray: The ray direction to use for gradient

    Returns:
        Sky color at this direction
    """
    unit_direction = ray.direction.normalize()
    t = 0.5 * (unit_direction.y + 1.0)
    return Color(1.0, 1.0, 1.0) * (1.0 - t) + Color(0.5, 0.7, 1.0) * t


def ray_color(ray: Ray, world: Hittable, depth: int,
              rng: Optional[np.random.Generator] = None) -> Color:
    """Estimate the color carried back along a ray.

    Args:
        ray: The ray to trace
        world: The scene to trace against
        depth: Remaining bounces; at 0 the path is cut off
        rng: Random generator used for scattering

    Returns:
        The computed color for this ray
    """
    if depth <= 0:
        return Color(0, 0, 0)

    hit_record = world.hit(ray, T_MIN, float('inf'))
    if hit_record is None:
        return sky_color(ray)

    if hit_record.material is None:
        # Bare geometry: visualize the normal, mapped from [-1, 1] to [0, 1]
        return (hit_record.normal + Color(1, 1, 1)) * 0.5

    scatter_result = hit_record.material.scatter(ray, hit_record, rng)
    if scatter_result is None:
        return Color(0, 0, 0)

    return scatter_result.attenuation * ray_color(
        scatter_result.scattered_ray, world, depth - 1, rng
    )


def encode_colors(image: np.ndarray) -> np.ndarray:
    """Quantize averaged linear colors to 8-bit channels.

    Applies gamma 2 (square root), clamps to [0, 0.999] and scales by 256,
    truncating toward zero.

    Args:
        image: Linear color array of any shape ending in 3 channels

    Returns:
        uint8 array of the same shape
    """
    corrected = np.sqrt(np.clip(image, 0.0, None))
    return (np.clip(corrected, 0.0, 0.999) * 256).astype(np.uint8)


def write_ppm(ldr: np.ndarray, stream: IO[str]) -> None:
    """Write an 8-bit image in plain-text PPM (P3) format.

    Rows are written top to bottom, one ``R G B`` line per pixel.

    Args:
        ldr: uint8 array of shape (height, width, 3), row 0 at the top
        stream: Text stream to write to
    """
    height, width = ldr.shape[:2]
    stream.write(f"P3\n{width} {height}\n255\n")
    for row in ldr:
        stream.write(''.join(f"{r} {g} {b}\n" for r, g, b in row))


class Renderer:
    """Path tracing renderer with multi-threading support."""

    def __init__(self, settings: RenderSettings = None):
        """Create a renderer with the given settings.

        Args:
            settings: Render configuration (uses defaults if None)
        """
        self.settings = settings if settings else RenderSettings()
        self._progress_callback: Optional[Callable[[float], None]] = None
        self._cancel_event = threading.Event()

    def set_progress_callback(self, callback: Callable[[float], None]) -> None:
        """Set a callback function for progress updates.

        Args:
            callback: Function that takes progress as float (0.0 to 1.0)
        """
        self._progress_callback = callback

    def cancel(self) -> None:
        """Stop the current render before its next tile starts."""
        self._cancel_event.set()

    def render(self, scene: Hittable, camera: Camera) -> np.ndarray:
        """Render the scene and return the image as a numpy array.

        Args:
            scene: The scene to render (any Hittable)
            camera: The camera to render from

        Returns:
            Linear color image of shape (height, width, 3), averaged over
            samples, with row 0 at the top

        Raises:
            RenderCancelledError: If cancel() was called during the render
        """
        width = self.settings.width
        height = self.settings.height
        samples = self.settings.samples_per_pixel
        max_depth = self.settings.max_depth

        self._cancel_event.clear()
        image = np.zeros((height, width, 3), dtype=np.float64)

        tiles = self._generate_tiles(width, height)
        generators = self._spawn_generators(len(tiles))
        total_tiles = len(tiles)
        completed_tiles = [0]
        progress_lock = threading.Lock()

        logger.debug(
            "Rendering %dx%d, %d samples/pixel, depth %d, %d tiles on %d threads",
            width, height, samples, max_depth, total_tiles, self.settings.num_threads
        )
        start_time = time.perf_counter()

        def render_tile(job: Tuple[Tile, np.random.Generator]) -> Tuple[Tile, np.ndarray]:
            """Render a single tile."""
            tile, rng = job
            if self._cancel_event.is_set():
                raise RenderCancelledError("Render cancelled")

            x0, y0, x1, y1 = tile
            tile_image = np.zeros((y1 - y0, x1 - x0, 3), dtype=np.float64)

            for y in range(y0, y1):
                # Image rows run top-down, the image plane's v runs bottom-up
                j = height - 1 - y
                for i in range(x0, x1):
                    tile_image[y - y0, i - x0] = self.render_pixel(i, j, scene, camera, rng)

            # Callback runs under the lock so reported progress never goes backwards
            with progress_lock:
                completed_tiles[0] += 1
                if self._progress_callback:
                    self._progress_callback(completed_tiles[0] / total_tiles)

            return tile, tile_image

        jobs = list(zip(tiles, generators))
        if self.settings.num_threads > 1:
            with ThreadPoolExecutor(max_workers=self.settings.num_threads) as executor:
                results = list(executor.map(render_tile, jobs))
        else:
            results = [render_tile(job) for job in jobs]

        # Tiles may finish in any order; position alone decides placement
        for tile, tile_image in results:
            x0, y0, x1, y1 = tile
            image[y0:y1, x0:x1] = tile_image

        logger.info("Rendered %dx%d in %.2fs", width, height, time.perf_counter() - start_time)
        return image

    def render_pixel(self, i: int, j: int, scene: Hittable, camera: Camera,
                     rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """Average the sampled colors of one pixel.

        Args:
            i: Column, counted from the left
            j: Row, counted from the bottom
            scene: The scene to trace against
            camera: The camera to sample rays from
            rng: Random generator for jitter and scattering

        Returns:
            The averaged linear color as a numpy array of 3 floats
        """
        rng = rng if rng is not None else default_generator()
        width = self.settings.width
        height = self.settings.height
        samples = self.settings.samples_per_pixel

        pixel_color = Color(0, 0, 0)
        for _ in range(samples):
            u = (i + rng.random()) / (width - 1)
            v = (j + rng.random()) / (height - 1)
            ray = camera.get_ray(u, v, rng)
            pixel_color = pixel_color + ray_color(ray, scene, self.settings.max_depth, rng)

        return pixel_color.to_array() / samples

    def _spawn_generators(self, count: int) -> List[np.random.Generator]:
        """Create one independent random generator per tile.

        All streams derive from the configured seed, so a seeded render is
        reproducible regardless of thread count or completion order.
        """
        children = np.random.SeedSequence(self.settings.seed).spawn(count)
        return [np.random.default_rng(child) for child in children]

    def _generate_tiles(self, width: int, height: int) -> List[Tile]:
        """Generate tiles for parallel rendering.

        Args:
            width: Image width
            height: Image height

        Returns:
            List of tiles as (x0, y0, x1, y1) tuples
        """
        tile_size = self.settings.tile_size
        tiles = []

        for y in range(0, height, tile_size):
            for x in range(0, width, tile_size):
                x1 = min(x + tile_size, width)
                y1 = min(y + tile_size, height)
                tiles.append((x, y, x1, y1))

        return tiles

    def to_ldr(self, image: np.ndarray) -> np.ndarray:
        """Convert a rendered image to 8-bit with gamma correction."""
        return encode_colors(image)

    @staticmethod
    def check_output_format(filename: str) -> None:
        """Raise ValueError unless the filename's extension can be written.

        Lets callers reject a bad output path before spending time on a render.
        """
        ext = os.path.splitext(filename)[1].lower()
        if ext == '.ppm':
            return

        from PIL import Image as PILImage

        if ext not in PILImage.registered_extensions():
            raise ValueError(f"Unsupported image format: {ext or filename}")

    def save_image(self, image: np.ndarray, filename: str) -> None:
        """Save image to file.

        ``.ppm`` files are written as plain-text P3; other extensions go
        through Pillow.

        Args:
            image: Rendered linear image, or an already quantized uint8 image
            filename: Output filename (extension determines format)

        Raises:
            ValueError: If no writer handles the file extension
            OSError: If the file cannot be written
        """
        self.check_output_format(filename)
        if image.dtype != np.uint8:
            image = self.to_ldr(image)

        if filename.lower().endswith('.ppm'):
            with open(filename, 'w', encoding='ascii', newline='\n') as f:
                write_ppm(image, f)
        else:
            from PIL import Image as PILImage

            PILImage.fromarray(image).save(filename)

        logger.debug("Saved %s", filename)
