"""Image export utilities for rendered images.

Rendered images are linear colour. Before they are written, each channel is
gamma corrected with gamma 2 (a square root) and quantized to 8 bits with
floor(255.999 * clamp(c, 0, 1)).

Supported formats:
    - PPM (plain-text P3)
    - PNG and anything else Pillow can write, chosen by file extension

Example:
    >>> from src.tracer.preview.export import save_image
    >>> from src.tracer.core.renderer import Renderer, RenderSettings
    >>>
    >>> renderer = Renderer(RenderSettings(width=400, height=225, samples_per_pixel=10))
    >>> renderer.render()
    >>> save_image(renderer.get_pixels(), "output.ppm")
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)


def gamma_correct(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float64]:
    """Apply gamma 2 correction to a linear image.

    Negative values are clamped to zero first; values above 1 pass through
    and are clamped during quantization.
    """
    return np.sqrt(np.maximum(image, 0.0)).astype(np.float64)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit pixels.

    Args:
        image: Linear image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    corrected = gamma_correct(image)
    return np.floor(255.999 * np.clip(corrected, 0.0, 1.0)).astype(np.uint8)


def ppm_lines(pixels: npt.NDArray[np.uint8]) -> Iterator[str]:
    """Yield the lines of a plain-text (P3) PPM file.

    The header is ``P3``, ``<width> <height>``, ``255``; after it comes one
    ``R G B`` line per pixel, rows top to bottom and columns left to right.

    Args:
        pixels: 8-bit image array of shape (H, W, 3), top row first.

    Raises:
        ValueError: If the array is not (H, W, 3).
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) array, got shape {pixels.shape}")

    height, width, _ = pixels.shape
    yield "P3"
    yield f"{width} {height}"
    yield "255"
    for row in pixels:
        for r, g, b in row:
            yield f"{int(r)} {int(g)} {int(b)}"


def write_ppm(pixels: npt.NDArray[np.uint8], stream: TextIO) -> None:
    """Write 8-bit pixels to a text stream as a P3 PPM image."""
    for line in ppm_lines(pixels):
        stream.write(line)
        stream.write("\n")


def save_png_from_array(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save 8-bit pixels through Pillow.

    Args:
        pixels: 8-bit image array of shape (H, W, 3), top row first.
        filepath: Output file path. Pillow picks the format from the
            extension, so this also handles .jpg, .bmp and friends.
    """
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    pil_image.save(filepath)


def save_image(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save 8-bit pixels, choosing the format from the file extension.

    ``.ppm`` files are written as plain-text P3; every other extension goes
    to Pillow.

    Raises:
        ValueError: If the file has no extension.
    """
    path = Path(filepath)
    suffix = path.suffix.lower()
    if not suffix:
        raise ValueError(f"Cannot infer image format from '{filepath}' (no extension)")

    if suffix == ".ppm":
        with path.open("w", encoding="ascii") as f:
            write_ppm(pixels, f)
    else:
        save_png_from_array(pixels, path)

    logger.info("Wrote %dx%d image to %s", pixels.shape[1], pixels.shape[0], path)
