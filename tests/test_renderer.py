"""Tests for the frame renderer.

Tests cover:
- RenderSettings validation and aspect-ratio sizing
- Full-frame rendering of a tiny known scene
- Seed reproducibility
- Progress callback reporting
- Pixel conversion and saving
"""

import math

import numpy as np
import pytest
from PIL import Image as PILImage


def _sky(direction):
    """Expected background colour for a direction."""
    unit = np.asarray(direction, dtype=np.float64)
    unit = unit / np.linalg.norm(unit)
    t = 0.5 * (unit[1] + 1.0)
    return (1.0 - t) * np.array([1.0, 1.0, 1.0]) + t * np.array([0.5, 0.7, 1.0])


@pytest.fixture
def single_sphere_scene():
    """One diffuse sphere straight ahead of the pinhole camera."""
    from src.tracer.scene.manager import SceneManager

    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
    return scene


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        from src.tracer.core.integrator import MAX_DEPTH
        from src.tracer.core.renderer import RenderSettings

        settings = RenderSettings(width=4, height=3, samples_per_pixel=2)
        assert settings.max_depth == MAX_DEPTH
        assert settings.seed == 0
        assert settings.jitter is True

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0, "height": 3, "samples_per_pixel": 1},
            {"width": 3, "height": 0, "samples_per_pixel": 1},
            {"width": 5000, "height": 3, "samples_per_pixel": 1},
            {"width": 3, "height": 3, "samples_per_pixel": 0},
            {"width": 3, "height": 3, "samples_per_pixel": 1, "max_depth": 0},
            {"width": 3, "height": 3, "samples_per_pixel": 1, "seed": -1},
            {"width": 3, "height": 3, "samples_per_pixel": 1, "seed": 2**31},
        ],
    )
    def test_invalid_settings_rejected(self, kwargs):
        from src.tracer.core.renderer import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings(**kwargs)

    def test_largest_seed_accepted(self):
        from src.tracer.core.renderer import RenderSettings

        settings = RenderSettings(width=1, height=1, samples_per_pixel=1, seed=2**31 - 1)
        assert settings.seed == 2**31 - 1

    def test_from_aspect_ratio(self):
        """Height is the integer part of width / aspect_ratio."""
        from src.tracer.core.renderer import RenderSettings

        settings = RenderSettings.from_aspect_ratio(400, 16.0 / 9.0, 10, seed=4)
        assert (settings.width, settings.height) == (400, 225)
        assert settings.seed == 4

        cover = RenderSettings.from_aspect_ratio(1200, 3.0 / 2.0, 500)
        assert cover.height == 800

    def test_from_aspect_ratio_minimum_height(self):
        """Very wide images still get one row."""
        from src.tracer.core.renderer import RenderSettings

        assert RenderSettings.from_aspect_ratio(1, 16.0 / 9.0, 1).height == 1

    def test_from_aspect_ratio_rejects_non_positive(self):
        from src.tracer.core.renderer import RenderSettings

        with pytest.raises(ValueError):
            RenderSettings.from_aspect_ratio(100, 0.0, 1)


class TestKnownScene:
    """Render a 3x3 image whose pixels can be computed by hand."""

    def _render(self, samples_per_pixel=1, jitter=False):
        from src.tracer.core.renderer import Renderer, RenderSettings

        settings = RenderSettings(
            width=3, height=3, samples_per_pixel=samples_per_pixel, max_depth=1, jitter=jitter
        )
        renderer = Renderer(settings)
        renderer.render()
        return renderer

    def test_center_pixel_hits_sphere(self, pinhole_camera, single_sphere_scene):
        """With one segment allowed, the sphere in the middle renders black."""
        image = self._render().get_image_numpy()
        np.testing.assert_array_equal(image[1, 1], [0.0, 0.0, 0.0])

    def test_jittered_center_pixel_is_darker_than_sky(self, pinhole_camera, single_sphere_scene):
        """Jittered samples of the middle pixel either hit the sphere (black)
        or see sky above the horizon, which has less red and green than the
        horizontal sky colour."""
        image = self._render(samples_per_pixel=2, jitter=True).get_image_numpy()
        sky = _sky((0.0, 0.0, -1.0))

        assert image[1, 1, 0] < sky[0]
        assert image[1, 1, 1] < sky[1]
        assert image[1, 1].sum() < sky.sum()

    def test_corner_pixels_see_sky(self, pinhole_camera, single_sphere_scene):
        """Corner rays miss the sphere and pick up the sky gradient."""
        image = self._render().get_image_numpy()

        # Bottom-left: s = t = 0, direction (-1, -1, -1)
        np.testing.assert_allclose(image[2, 0], _sky((-1.0, -1.0, -1.0)), atol=1e-5)
        # Top-right: s = t = 1, direction (1, 1, -1)
        np.testing.assert_allclose(image[0, 2], _sky((1.0, 1.0, -1.0)), atol=1e-5)
        # Middle-left: direction (-1, 0, -1), horizontal
        np.testing.assert_allclose(image[1, 0], [0.75, 0.85, 1.0], atol=1e-5)

    def test_bottom_left_expected_value(self, pinhole_camera, single_sphere_scene):
        """Spell out the bottom-left blend factor."""
        image = self._render().get_image_numpy()
        t = 0.5 * (-1.0 / math.sqrt(3.0) + 1.0)
        expected = (1.0 - t + 0.5 * t, 1.0 - t + 0.7 * t, 1.0)
        np.testing.assert_allclose(image[2, 0], expected, atol=1e-5)

    def test_pixels_are_gamma_corrected(self, pinhole_camera, single_sphere_scene):
        renderer = self._render()
        pixels = renderer.get_pixels()

        assert pixels.shape == (3, 3, 3)
        assert pixels.dtype == np.uint8
        np.testing.assert_array_equal(pixels[1, 1], [0, 0, 0])

        expected = np.floor(255.999 * np.sqrt(_sky((-1.0, -1.0, -1.0))))
        np.testing.assert_array_equal(pixels[2, 0], expected.astype(np.uint8))
        # Blue channel of the sky is always 1.0
        assert np.all(pixels[0, :, 2] == 255)


class TestRenderer:
    """Tests for the Renderer driver."""

    def test_callback_reports_every_scanline(self, pinhole_camera, single_sphere_scene):
        from src.tracer.core.renderer import Renderer, RenderSettings

        calls = []
        renderer = Renderer(RenderSettings(width=4, height=5, samples_per_pixel=1))
        renderer.render(callback=lambda done, total: calls.append((done, total)))

        assert calls == [(1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]

    def test_same_seed_same_image(self, pinhole_camera, single_sphere_scene):
        from src.tracer.core.renderer import Renderer, RenderSettings

        settings = RenderSettings(width=6, height=6, samples_per_pixel=4, seed=11)
        renderer = Renderer(settings)
        renderer.render()
        first = renderer.get_pixels()

        renderer.reset()
        renderer.render()
        second = renderer.get_pixels()

        np.testing.assert_array_equal(first, second)

    def test_different_seeds_differ(self, pinhole_camera, single_sphere_scene):
        from src.tracer.core.renderer import Renderer, RenderSettings

        images = []
        for seed in (1, 2):
            renderer = Renderer(
                RenderSettings(width=6, height=6, samples_per_pixel=4, seed=seed)
            )
            renderer.render()
            images.append(renderer.get_image_numpy())

        assert not np.array_equal(images[0], images[1])

    def test_rendered_flag_and_reset(self, pinhole_camera):
        from src.tracer.core.renderer import Renderer, RenderSettings

        renderer = Renderer(RenderSettings(width=2, height=2, samples_per_pixel=1))
        assert not renderer.rendered
        renderer.render()
        assert renderer.rendered
        assert renderer.get_image_numpy().max() > 0.0

        renderer.reset()
        assert not renderer.rendered
        assert renderer.get_image_numpy().max() == 0.0

    def test_render_resizes_shared_buffer(self, pinhole_camera):
        """A renderer re-applies its own size before rendering."""
        from src.tracer.core.renderer import Renderer, RenderSettings

        small = Renderer(RenderSettings(width=2, height=2, samples_per_pixel=1))
        Renderer(RenderSettings(width=5, height=4, samples_per_pixel=1))
        small.render()
        assert small.get_image_numpy().shape == (2, 2, 3)

    def test_single_pixel_image(self, pinhole_camera):
        """A 1x1 image renders without dividing by zero."""
        from src.tracer.core.renderer import Renderer, RenderSettings

        renderer = Renderer(RenderSettings(width=1, height=1, samples_per_pixel=1, jitter=False))
        renderer.render()
        image = renderer.get_image_numpy()
        assert np.all(np.isfinite(image))

    def test_save_image(self, pinhole_camera, single_sphere_scene, tmp_path):
        from src.tracer.core.renderer import Renderer, RenderSettings

        renderer = Renderer(RenderSettings(width=4, height=3, samples_per_pixel=1))
        renderer.render()

        png_path = tmp_path / "frame.png"
        renderer.save_image(str(png_path))
        with PILImage.open(png_path) as img:
            assert img.size == (4, 3)
            np.testing.assert_array_equal(np.asarray(img.convert("RGB")), renderer.get_pixels())

        ppm_path = tmp_path / "frame.ppm"
        renderer.save_image(str(ppm_path))
        assert ppm_path.read_text().splitlines()[:3] == ["P3", "4 3", "255"]

    def test_repr(self):
        from src.tracer.core.renderer import Renderer, RenderSettings

        renderer = Renderer(RenderSettings(width=8, height=4, samples_per_pixel=3))
        assert repr(renderer) == "Renderer(width=8, height=4, spp=3, rendered=False)"
