"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    rng: Per-pixel random streams (explicit generator handles)
    vector: Vector algebra, reflection/refraction and random directions
    ray: Ray data structure
    integrator: Path evaluation and the render target
    renderer: Frame driver with settings and progress reporting

All per-ray computation runs in Taichi functions and kernels; the render
parallelizes over the pixels of each scanline.
"""

from .ray import Ray, make_ray, ray_at
from .rng import random_float, random_range, seed_stream, seed_streams
from .vector import (
    clamp,
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    random_in_cube,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
)

# Note: integrator and renderer are NOT imported here; they pull in the scene
# and camera packages. Import them from src.tracer.core.renderer directly.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "seed_stream",
    "seed_streams",
    "random_float",
    "random_range",
    "dot",
    "cross",
    "length",
    "length_squared",
    "unit_vector",
    "near_zero",
    "clamp",
    "reflect",
    "refract",
    "schlick_reflectance",
    "random_in_cube",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_in_hemisphere",
]
