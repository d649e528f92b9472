"""Preview module for image output.

Components:
    export: Gamma correction, 8-bit quantization, PPM and Pillow writers
"""

from .export import (
    gamma_correct,
    image_to_uint8,
    ppm_lines,
    save_image,
    save_png_from_array,
    write_ppm,
)

__all__ = [
    "gamma_correct",
    "image_to_uint8",
    "ppm_lines",
    "write_ppm",
    "save_png_from_array",
    "save_image",
]
