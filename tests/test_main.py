"""Tests for the command-line driver."""

import pytest

from montetrace.materials import Dielectric, Metal
from montetrace.renderer import RenderSettings

import main


class TestScenes:
    """Test built-in scene construction."""

    def test_default_scene(self):
        world = main.create_default_scene()
        assert len(world) == 5

        radii = sorted(sphere.radius for sphere in world)
        assert radii == [-0.4, 0.5, 0.5, 0.5, 100.0]

    def test_default_scene_hollow_glass_shares_material(self):
        world = main.create_default_scene()
        glass = [sphere for sphere in world if isinstance(sphere.material, Dielectric)]
        assert len(glass) == 2
        assert glass[0].material is glass[1].material
        assert glass[0].center == glass[1].center

    def test_default_scene_fuzzy_metal(self):
        world = main.create_default_scene()
        metals = [sphere.material for sphere in world if isinstance(sphere.material, Metal)]
        assert [m.fuzz for m in metals] == [1.0]

    def test_demo_scene(self):
        world = main.create_demo_scene()
        assert len(world) == 6

    def test_demo_camera_has_lens(self):
        assert main.create_camera('demo', 1.5).lens_radius > 0
        assert main.create_camera('default', 1.5).lens_radius == 0


class TestSettings:
    """Test argument translation."""

    def test_height_from_aspect_ratio(self):
        args = main.build_parser().parse_args(['--width', '400'])
        settings = main.make_settings(args)
        assert isinstance(settings, RenderSettings)
        assert settings.height == 225
        assert settings.samples_per_pixel == 100
        assert settings.max_depth == 50

    def test_explicit_height(self):
        args = main.build_parser().parse_args(['--width', '40', '--height', '30', '--seed', '5'])
        settings = main.make_settings(args)
        assert (settings.width, settings.height, settings.seed) == (40, 30, 5)


class TestMain:
    """Test the end-to-end entry point."""

    def test_render_to_ppm(self, tmp_path):
        output = tmp_path / "out" / "image.ppm"
        status = main.main([
            '--width', '4', '--height', '3', '--samples', '1', '--depth', '2',
            '--threads', '1', '--seed', '3', '--output', str(output)
        ])

        assert status == 0
        lines = output.read_text().splitlines()
        assert lines[:3] == ['P3', '4 3', '255']
        assert len(lines) == 3 + 12
        for line in lines[3:]:
            channels = [int(c) for c in line.split()]
            assert len(channels) == 3
            assert all(0 <= c <= 255 for c in channels)

    def test_seeded_runs_match(self, tmp_path):
        args = ['--width', '6', '--height', '4', '--samples', '2', '--depth', '3',
                '--threads', '2', '--seed', '11']
        first = tmp_path / "a.ppm"
        second = tmp_path / "b.ppm"
        assert main.main(args + ['--output', str(first)]) == 0
        assert main.main(args + ['--output', str(second)]) == 0
        assert first.read_bytes() == second.read_bytes()

    def test_invalid_settings(self, tmp_path, capsys):
        status = main.main(['--width', '1', '--output', str(tmp_path / "x.ppm")])
        assert status == 1
        assert "Error" in capsys.readouterr().err

    def test_unwritable_output(self, tmp_path, capsys):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        status = main.main([
            '--width', '2', '--height', '2', '--samples', '1', '--depth', '1',
            '--threads', '1', '--output', str(blocker / "image.ppm")
        ])
        assert status == 1
        assert "could not write" in capsys.readouterr().err

    def test_zero_aspect_ratio(self, tmp_path, capsys):
        output = tmp_path / "x.ppm"
        status = main.main(['--width', '40', '--aspect-ratio', '0', '--output', str(output)])
        assert status == 1
        assert "aspect_ratio" in capsys.readouterr().err
        assert not output.exists()

    def test_unsupported_extension(self, tmp_path, capsys):
        output = tmp_path / "image.unknownext"
        status = main.main([
            '--width', '2', '--height', '2', '--samples', '1', '--depth', '1',
            '--threads', '1', '--output', str(output)
        ])
        captured = capsys.readouterr()
        assert status == 1
        assert "could not write" in captured.err
        assert "Unsupported image format" in captured.err
        # Rejected before any rendering starts
        assert "Rendering" not in captured.out
        assert not output.exists()
