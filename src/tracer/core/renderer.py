"""Frame driver: renders a full image scanline by scanline.

The Renderer wraps the integrator's render target and kernels with:
- Validated render settings (size, samples, depth, seed, jitter)
- Scanline-order rendering from the top row down to the bottom
- A progress callback after every scanline
- Gamma correction and 8-bit quantization of the result

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.core.renderer import Renderer, RenderSettings
    >>> from src.tracer.scene.presets import create_three_spheres_scene
    >>> from src.tracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(RenderSettings(width=400, height=225, samples_per_pixel=10))
    >>> renderer.render()
    >>> pixels = renderer.get_pixels()  # (225, 400, 3) uint8
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from src.tracer.core.integrator import (
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    clear_render_target,
    get_linear_image_numpy,
    render_scanline,
    setup_render_target,
)
from src.tracer.preview.export import image_to_uint8
from src.tracer.preview.export import save_image as export_image

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (scanlines_done, total_scanlines)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Settings for one frame.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of camera rays averaged per pixel.
        max_depth: Maximum number of path segments per sample.
        seed: Seed for every pixel's random stream, in [0, 2**31).
        jitter: Randomize sample positions inside each pixel.
    """

    width: int
    height: int
    samples_per_pixel: int
    max_depth: int = MAX_DEPTH
    seed: int = 0
    jitter: bool = True

    def __post_init__(self) -> None:
        if not 1 <= self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width must be in [1, {MAX_IMAGE_WIDTH}], got {self.width}")
        if not 1 <= self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height must be in [1, {MAX_IMAGE_HEIGHT}], got {self.height}")
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be at least 1, got {self.max_depth}")
        if not 0 <= self.seed < 2**31:
            raise ValueError(f"seed must be in [0, 2**31), got {self.seed}")

    @classmethod
    def from_aspect_ratio(
        cls,
        width: int,
        aspect_ratio: float,
        samples_per_pixel: int,
        **kwargs: int | bool,
    ) -> "RenderSettings":
        """Build settings whose height follows from width / aspect_ratio."""
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {aspect_ratio}")
        height = max(int(width / aspect_ratio), 1)
        return cls(width, height, samples_per_pixel, **kwargs)


class Renderer:
    """Renders the current scene through the current camera.

    The scene and camera are global Taichi state; set them up (SceneManager,
    setup_camera) before calling render(). The renderer owns the image
    buffer, which is sized from its settings.

    Attributes:
        settings: The RenderSettings for this frame.
    """

    def __init__(self, settings: RenderSettings) -> None:
        self.settings = settings
        self._rendered = False
        setup_render_target(settings.width, settings.height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def rendered(self) -> bool:
        """Whether render() has completed since construction or reset()."""
        return self._rendered

    def reset(self) -> None:
        """Clear the image buffer to black."""
        clear_render_target()
        self._rendered = False

    def render(self, callback: ProgressCallback | None = None) -> None:
        """Render the whole frame.

        Scanlines are rendered from the top row (height - 1) down to row 0.
        Pixels within a scanline are rendered in parallel.

        Args:
            callback: Optional callback called after each scanline with
                (scanlines_done, total_scanlines).

        Example:
            >>> def progress(done, total):
            ...     print(f"Scanlines remaining: {total - done}")
            >>> renderer.render(callback=progress)
        """
        s = self.settings
        # Another renderer may have resized the shared buffer since __init__
        setup_render_target(s.width, s.height)

        logger.info(
            "Rendering %dx%d at %d spp (max depth %d, seed %d)",
            s.width,
            s.height,
            s.samples_per_pixel,
            s.max_depth,
            s.seed,
        )
        start = time.perf_counter()

        for done, row in enumerate(reversed(range(s.height)), start=1):
            render_scanline(row, s.samples_per_pixel, s.max_depth, s.seed, s.jitter)
            if callback is not None:
                callback(done, s.height)

        elapsed = time.perf_counter() - start
        self._rendered = True
        logger.info("Render finished in %.2fs", elapsed)

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the rendered image as linear colour.

        Returns:
            NumPy array of shape (height, width, 3), top row first,
            values not clamped.
        """
        return get_linear_image_numpy()

    def get_pixels(self) -> npt.NDArray[np.uint8]:
        """Get the rendered image as display-ready 8-bit pixels.

        Applies gamma 2 (square root) and quantizes each channel with
        floor(255.999 * clamp(c, 0, 1)).

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str) -> None:
        """Save the rendered image; the format follows the file extension."""
        export_image(self.get_pixels(), filepath)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"spp={self.settings.samples_per_pixel}, rendered={self.rendered})"
        )
