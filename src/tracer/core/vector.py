"""Vector utilities and random direction sampling.

This module provides the vector algebra used throughout the tracer on top of
Taichi's ``vec3`` type, which already supports element-wise arithmetic
(including the component-wise colour product) and scalar scaling. Points,
directions and RGB colours all share the ``vec3`` type.

All random generators take an explicit ``stream`` index (see
:mod:`src.tracer.core.rng`) instead of drawing from a global source.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.core.vector import reflect, unit_vector, vec3
    >>>
    >>> @ti.kernel
    ... def mirror() -> vec3:
    ...     return reflect(unit_vector(vec3(1.0, -1.0, 0.0)), vec3(0.0, 1.0, 0.0))
"""

import taichi as ti
import taichi.math as tm

from src.tracer.core.rng import random_range

# 3D vector in double precision; ti.math.vec3 keeps the float type from import time
vec3 = ti.types.vector(3, ti.f64)


# =============================================================================
# Vector Algebra
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f64:
    """Compute the dot product a . b."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return dot(v, v)


@ti.func
def length(v: vec3) -> ti.f64:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Args:
        v: The input vector. Must not be zero-length; callers only pass
            directions produced by geometry or scattering, which are never
            degenerate.

    Returns:
        v / length(v).
    """
    return v / length(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Useful for detecting degenerate scatter directions.

    Returns:
        1 if every component is below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def clamp(x: ti.f64, lo: ti.f64, hi: ti.f64) -> ti.f64:
    """Clamp a scalar to [lo, hi]."""
    result = x
    if x < lo:
        result = lo
    elif x > hi:
        result = hi
    return result


# =============================================================================
# Reflection and Refraction
# =============================================================================


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a direction about a normal.

    Computes v - 2 (v . n) n. For unit ``n`` the reflected vector keeps the
    magnitude of the normal component and flips its sign.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal (unit length).

    Returns:
        The mirrored direction.
    """
    return v - 2.0 * dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f64) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted ray is split into the part perpendicular to the normal,
    ratio * (uv + cos_theta * n), and the part parallel to it, whose length
    follows from the refracted ray being unit length.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal facing the incoming ray (unit length).
        etai_over_etat: Ratio of refractive indices (incident / transmitted).
            The caller must have ruled out total internal reflection.

    Returns:
        The refracted direction (unit length).
    """
    cos_theta = ti.min(dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        ref_idx: Ratio of refractive indices across the surface.

    Returns:
        r0 + (1 - r0)(1 - cosine)^5 with r0 = ((1 - ref_idx) / (1 + ref_idx))^2.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling
# =============================================================================


@ti.func
def random_in_cube(stream: ti.i32, lo: ti.f64, hi: ti.f64) -> vec3:
    """Random point with each component independently uniform in [lo, hi)."""
    return vec3(
        random_range(stream, lo, hi),
        random_range(stream, lo, hi),
        random_range(stream, lo, hi),
    )


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Rejection sampling from the [-1, 1]^3 cube; about 1.9 draws are needed
    on average, so the retry bound is never reached in practice.

    Returns:
        A random point with squared length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            p = random_in_cube(stream, -1.0, 1.0)
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    Closed form: z uniform in [-1, 1] and azimuth uniform in [0, 2 pi)
    give a uniform point on the sphere (Archimedes' hat-box theorem).

    Returns:
        A random unit vector.
    """
    a = random_range(stream, 0.0, 2.0 * tm.pi)
    z = random_range(stream, -1.0, 1.0)
    r = ti.sqrt(ti.max(1.0 - z * z, 0.0))
    return vec3(r * ti.cos(a), r * ti.sin(a), z)


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used to jitter ray origins across the camera lens.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            p = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p


@ti.func
def random_in_hemisphere(stream: ti.i32, normal: vec3) -> vec3:
    """Random point in the unit ball, flipped into the hemisphere of ``normal``.

    Args:
        stream: Random stream index.
        normal: The direction defining the hemisphere.

    Returns:
        A point inside the unit sphere with non-negative dot product
        against ``normal``.
    """
    in_unit_sphere = random_in_unit_sphere(stream)
    result = in_unit_sphere
    if dot(in_unit_sphere, normal) <= 0.0:
        result = -in_unit_sphere
    return result

