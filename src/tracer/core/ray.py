"""Half-lines traced through the sphere scene.

Camera samples and material scatters each produce a new ``Ray``; nothing
updates a ray in place after it is built. The integrator walks a path by
replacing the current ray with the scattered one at every bounce.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.core.ray import Ray, ray_at, vec3
    >>> ray = Ray(origin=vec3(1.0, 0.0, 0.0), direction=vec3(0.0, 2.0, 0.0))
    >>> # Inside a kernel, ray_at(ray, 0.5) is (1, 1, 0)
"""

import taichi as ti

# 3D vector in double precision; ti.math.vec3 keeps the float type from import time
vec3 = ti.types.vector(3, ti.f64)


@ti.dataclass
class Ray:
    """Origin plus direction, both vec3.

    The direction keeps whatever length the producer gave it. Sphere hits
    solve the quadratic with it as is, so t values are in units of that
    length; shading code normalizes its own copy.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Return origin + t * direction; t > 0 lies ahead of the origin."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Build a Ray from two vec3 values inside a kernel.

    The thin-lens camera, the per-bounce scatter step of the integrator and
    ``trace_ray`` all go through here, so a Ray is only ever assembled in
    one place.
    """
    return Ray(origin=origin, direction=direction)
