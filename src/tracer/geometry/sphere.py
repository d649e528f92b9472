"""Sphere primitive and ray-sphere intersection.

The intersection solves |O + tD - C|^2 = r^2 for t. With the half-b form of
the quadratic:

    a      = D . D
    half_b = D . (O - C)
    c      = |O - C|^2 - r^2
    disc   = half_b^2 - a * c

the roots are (-half_b -/+ sqrt(disc)) / a. The nearer root is tried first
and the first one strictly inside (t_min, t_max) is accepted.

A negative radius is allowed: it leaves the geometry unchanged but flips the
outward normal, which turns a sphere into a hollow shell (used for the inner
surface of a glass bubble).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.geometry.sphere import Sphere, hit_sphere, vec3
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti

from src.tracer.core.ray import Ray, ray_at
from src.tracer.core.vector import dot

# 3D vector in double precision; ti.math.vec3 keeps the float type from import time
vec3 = ti.types.vector(3, ti.f64)


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values flip the normal.
        material_id: Index of the sphere's material in the material arena.
    """

    center: vec3
    radius: ti.f64
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter at the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal, always facing against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray hit the outward-facing side, 0 if it hit
            from inside. Only valid if hit == 1.
        material_id: Material arena index of the surface hit, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing away from the surface interior.

    Returns:
        A tuple of (front_face, normal) where front_face is 1 when
        dot(ray_direction, outward_normal) < 0, and normal is the outward
        normal on a front-face hit and its negation otherwise.
    """
    front_face = 0
    normal = -outward_normal
    if dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def hit_sphere(
    ray: Ray,
    sphere: Sphere,
    t_min: ti.f64,
    t_max: ti.f64,
) -> HitRecord:
    """Test for ray-sphere intersection.

    A negative discriminant is a miss. A zero discriminant (tangent ray)
    produces a single double root that is accepted like any other root.

    Args:
        ray: The ray to test. Direction need not be normalized.
        sphere: The sphere to test against.
        t_min: Exclusive lower bound on t (suppresses self-intersection).
        t_max: Exclusive upper bound on t (closest hit found so far).

    Returns:
        A HitRecord; check the hit field to see if an intersection occurred.
    """
    oc = ray.origin - sphere.center
    a = dot(ray.direction, ray.direction)
    half_b = dot(oc, ray.direction)
    c = dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    result = make_miss_record()

    if discriminant >= 0.0:
        sqrtd = ti.sqrt(discriminant)

        # Find the nearest root that lies in the acceptable range
        root = (-half_b - sqrtd) / a
        valid = root > t_min and root < t_max
        if not valid:
            root = (-half_b + sqrtd) / a
            valid = root > t_min and root < t_max

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f64, material_id: ti.i32) -> Sphere:
    """Create a sphere inside a Taichi kernel."""
    return Sphere(center=center, radius=radius, material_id=material_id)
