"""Path integrator for Monte Carlo light transport over the sphere scene.

A camera ray is followed through the scene bounce by bounce. At every hit the
surface material either absorbs the path or scatters it, and the colour the
path finally carries is the sky colour in the escape direction multiplied by
every attenuation picked up along the way:

    colour = a_1 * a_2 * ... * a_k * background(d_k)

Paths that are absorbed, or that are still bouncing once ``max_depth``
segments have been traced, contribute black.

Taichi functions cannot recurse, so the path is evaluated as a loop carrying
the running product of attenuations (the throughput) and an active flag.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.core.integrator import setup_render_target, render_scanline
    >>> from src.tracer.scene.presets import create_three_spheres_scene
    >>> from src.tracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> for row in reversed(range(225)):
    ...     render_scanline(row, samples=10, max_depth=50, seed=0)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti

from src.tracer.camera.thin_lens import get_ray
from src.tracer.core.ray import Ray, make_ray
from src.tracer.core.rng import random_float, seed_stream
from src.tracer.core.vector import unit_vector
from src.tracer.materials.dielectric import scatter_dielectric_by_id
from src.tracer.materials.lambertian import scatter_lambertian_by_id
from src.tracer.materials.metal import scatter_metal_by_id
from src.tracer.scene.intersection import intersect_scene
from src.tracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# 3D vector in double precision
vec3 = ti.types.vector(3, ti.f64)

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum number of path segments
MAX_DEPTH = 50

# Scattered rays start slightly off the surface to skip self-intersection
T_MIN = 0.001
T_MAX = 1e10

# Sky gradient endpoints
HORIZON_COLOUR = vec3(1.0, 1.0, 1.0)
ZENITH_COLOUR = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear colour per pixel, indexed (i, j) with j = 0 at the bottom row
_color_buffer = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Sets the active image dimensions and clears the colour buffer.

    Args:
        width: Image width in pixels (1..MAX_IMAGE_WIDTH).
        height: Image height in pixels (1..MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is outside the supported range.
    """
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the colour buffer to black."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Raise if setup_render_target() has not been called yet."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Sky and Material Dispatch
# =============================================================================


@ti.func
def background_colour(direction: vec3) -> vec3:
    """Colour seen by a ray that leaves the scene.

    A vertical blend from white at the horizon (and below) to light blue
    straight up, driven by the y component of the unit direction.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * HORIZON_COLOUR + t * ZENITH_COLOUR


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scatter function of the hit surface's material.

    Args:
        material_id: The unified material ID from the hit record.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.
        stream: Random stream index.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material ids absorb the path.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Evaluation
# =============================================================================


@ti.func
def ray_colour(ray: Ray, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the colour carried back along a ray.

    Args:
        ray: The primary ray.
        max_depth: Maximum number of path segments. Zero or less gives black.
        stream: Random stream index used for every scattering decision.

    Returns:
        The colour of this single path sample (linear RGB).
    """
    origin = ray.origin
    direction = ray.direction

    colour = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # No break inside ti.func loops
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(make_ray(origin, direction), T_MIN, T_MAX)

            if rec.hit == 0:
                colour = throughput * background_colour(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, direction, rec.normal, rec.front_face, stream
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered_direction

    return colour


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_scanline(
    row: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    jitter: ti.i32,
):
    """Render every pixel of one scanline in parallel.

    Each pixel seeds its own stream from (seed, pixel index) before drawing,
    so the result does not depend on thread scheduling.
    """
    inv_w = 1.0 / ti.cast(ti.max(width - 1, 1), ti.f64)
    inv_h = 1.0 / ti.cast(ti.max(height - 1, 1), ti.f64)

    for i in range(width):
        stream = row * width + i
        seed_stream(stream, seed)

        colour = vec3(0.0, 0.0, 0.0)
        for _ in range(samples):
            du = 0.0
            dv = 0.0
            if jitter == 1:
                du = random_float(stream)
                dv = random_float(stream)

            s = (ti.cast(i, ti.f64) + du) * inv_w
            t = (ti.cast(row, ti.f64) + dv) * inv_h
            colour += ray_colour(get_ray(s, t, stream), max_depth, stream)

        _color_buffer[i, row] = colour / ti.cast(samples, ti.f64)


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32, seed: ti.i32) -> vec3:
    """Evaluate one path on stream 0."""
    seed_stream(0, seed)
    return ray_colour(make_ray(origin, direction), max_depth, 0)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_scanline(
    row: int,
    samples: int,
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
    jitter: bool = True,
) -> None:
    """Render one row of the image into the colour buffer.

    Args:
        row: Row index, 0 = bottom of the image.
        samples: Samples per pixel.
        max_depth: Maximum path length.
        seed: Render seed shared by every pixel stream.
        jitter: Randomize the sample position inside each pixel. When
            False every sample goes through the pixel's lower-left corner.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If row is outside the image.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not 0 <= row < height:
        raise ValueError(f"Row {row} outside image of height {height}")

    _render_scanline(row, width, height, samples, max_depth, seed, int(jitter))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Evaluate a single path from Python.

    Uses the current scene and materials; the camera is not involved.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        max_depth: Maximum path length.
        seed: Seed for the path's random stream.

    Returns:
        Tuple of (R, G, B) linear colour values.
    """
    colour = _trace_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
        seed,
    )
    return (float(colour[0]), float(colour[1]), float(colour[2]))


def get_linear_image_numpy() -> npt.NDArray[np.float64]:
    """Get the colour buffer as a NumPy array.

    Values are linear and unclamped. The array shape is (height, width, 3)
    with the top image row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3), then top row first
    image = np.transpose(image, (1, 0, 2))
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float64)
