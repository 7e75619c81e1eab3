"""Tests for Camera class."""

import pytest
import math
import numpy as np
from montetrace.vec3 import Vec3, Point3
from montetrace.camera import Camera


class TestCameraCreation:
    """Test Camera construction."""

    def test_default_camera(self):
        cam = Camera(aspect_ratio=16 / 9)
        assert cam.origin == Point3(0, 0, 0)
        # Viewport two units tall, one unit in front of the eye
        assert cam.vertical == Vec3(0, 2, 0)
        assert cam.horizontal == Vec3(32 / 9, 0, 0)
        assert cam.lower_left_corner == Point3(-16 / 9, -1, -1)

    def test_camera_basis_vectors(self):
        cam = Camera(
            look_from=Point3(0, 0, 0),
            look_at=Point3(0, 0, -1),
            vup=Vec3(0, 1, 0),
            vfov=90,
            aspect_ratio=1.0
        )
        # w should point backward (opposite of look direction)
        assert cam.w.z > 0
        # u should point right
        assert abs(cam.u.x - 1.0) < 1e-9
        # v should point up
        assert abs(cam.v.y - 1.0) < 1e-9


class TestCameraRays:
    """Test Camera.get_ray() method."""

    def test_center_ray(self):
        cam = Camera(vfov=90, aspect_ratio=1.0)
        ray = cam.get_ray(0.5, 0.5)

        # Center ray should go straight forward
        assert abs(ray.direction.x) < 1e-9
        assert abs(ray.direction.y) < 1e-9
        assert ray.direction.z < 0  # Forward is -Z

    def test_direction_formula(self):
        cam = Camera(
            look_from=Point3(1, 2, 3),
            look_at=Point3(0, 0, 0),
            vfov=40,
            aspect_ratio=1.5
        )
        u, v = 0.25, 0.8
        ray = cam.get_ray(u, v)
        expected = cam.lower_left_corner + cam.horizontal * u + cam.vertical * v - cam.origin
        assert ray.direction == expected

    def test_direction_not_normalized(self):
        cam = Camera(aspect_ratio=1.0)
        ray = cam.get_ray(0, 0)
        assert abs(ray.direction.length() - math.sqrt(3)) < 1e-9

    def test_corner_rays(self):
        cam = Camera(vfov=90, aspect_ratio=1.0)

        # Bottom-left
        bl = cam.get_ray(0, 0)
        assert bl.direction.x < 0
        assert bl.direction.y < 0

        # Top-right
        tr = cam.get_ray(1, 1)
        assert tr.direction.x > 0
        assert tr.direction.y > 0

    def test_ray_origin_without_dof(self):
        cam = Camera(
            look_from=Point3(1, 2, 3),
            look_at=Point3(0, 0, 0),
            vfov=90,
            aspect_ratio=1.0,
            aperture=0.0
        )
        for _ in range(10):
            assert cam.get_ray(0.5, 0.5).origin == cam.origin


class TestDepthOfField:
    """Test Camera depth of field."""

    def test_dof_varies_origin(self):
        cam = Camera(
            look_from=Point3(0, 0, 0),
            look_at=Point3(0, 0, -10),
            vfov=90,
            aspect_ratio=1.0,
            aperture=2.0,  # Large aperture
            focus_dist=10.0
        )
        rng = np.random.default_rng(0)

        origins = [cam.get_ray(0.5, 0.5, rng).origin for _ in range(100)]

        xs = [o.x for o in origins]
        assert max(xs) - min(xs) > 0.1
        for o in origins:
            assert (o - cam.origin).length() < 1.0

    def test_dof_rays_converge_on_focus_plane(self):
        cam = Camera(
            look_from=Point3(0, 0, 0),
            look_at=Point3(0, 0, -10),
            vfov=90,
            aspect_ratio=1.0,
            aperture=1.0,
            focus_dist=10.0
        )
        rng = np.random.default_rng(1)
        for _ in range(20):
            ray = cam.get_ray(0.5, 0.5, rng)
            assert ray.at(1.0) == Point3(0, 0, -10)


class TestFieldOfView:
    """Test Camera field of view."""

    def test_narrow_fov(self):
        cam_narrow = Camera(vfov=20, aspect_ratio=1.0)
        cam_wide = Camera(vfov=90, aspect_ratio=1.0)

        center = Vec3(0, 0, -1)
        narrow = cam_narrow.get_ray(1, 1).direction.normalize()
        wide = cam_wide.get_ray(1, 1).direction.normalize()

        # Narrow should be more aligned with center
        assert narrow.dot(center) > wide.dot(center)


class TestCameraPositioning:
    """Test various camera positions."""

    def test_looking_down(self):
        cam = Camera(
            look_from=Point3(0, 10, 0),
            look_at=Point3(0, 0, 0),
            vup=Vec3(0, 0, -1),
            vfov=90,
            aspect_ratio=1.0
        )
        assert cam.get_ray(0.5, 0.5).direction.y < 0

    def test_angled_camera(self):
        cam = Camera(
            look_from=Point3(5, 5, 5),
            look_at=Point3(0, 0, 0),
            vfov=60,
            aspect_ratio=1.0
        )

        ray = cam.get_ray(0.5, 0.5)
        target = Point3(0, 0, 0) - cam.origin
        assert ray.direction.normalize().dot(target.normalize()) > 0.999
