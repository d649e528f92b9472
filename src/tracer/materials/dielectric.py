"""Dielectric (glass/water) material implementation.

Dielectrics either reflect or refract each incoming ray:
    - Snell's law gives the refracted direction: n1 sin(theta1) = n2 sin(theta2)
    - When ratio * sin(theta) >= 1 no refracted ray exists (total internal
      reflection), so the ray reflects
    - Otherwise Schlick's approximation of the Fresnel reflectance is used as
      the probability of reflecting instead of refracting

Clear dielectrics absorb nothing, so the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face, stream
    >>> # )
"""

import taichi as ti

from src.tracer.core.rng import random_float
from src.tracer.core.vector import (
    dot,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
)

# 3D vector in double precision
vec3 = ti.types.vector(3, ti.f64)


@ti.func
def refraction_ratio(ior: ti.f64, front_face: ti.i32) -> ti.f64:
    """Ratio of refractive indices across the surface.

    Entering the material (front face) the ratio is 1 / ior; leaving it
    (back face) the ratio is ior.
    """
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def cannot_refract(ratio: ti.f64, unit_direction: vec3, normal: vec3) -> ti.i32:
    """Check for total internal reflection.

    The critical angle itself (ratio * sin_theta == 1) counts as total
    internal reflection.

    Args:
        ratio: Refraction ratio (incident / transmitted index).
        unit_direction: The incoming direction (unit length).
        normal: The unit surface normal facing the incoming ray.

    Returns:
        1 if no refracted ray exists, 0 otherwise.
    """
    cos_theta = ti.min(dot(-unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(ti.max(1.0 - cos_theta * cos_theta, 0.0))
    return ratio * sin_theta >= 1.0


@ti.func
def scatter_dielectric(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Compute the scattered ray direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface,
            0 if it is leaving the material.
        stream: Random stream index.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White (1, 1, 1).
        - did_scatter: Always 1 for dielectrics.
    """
    ratio = refraction_ratio(ior, front_face)
    unit_direction = unit_vector(incident_direction)
    cos_theta = ti.min(dot(-unit_direction, normal), 1.0)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract(ratio, unit_direction, normal):
        scattered_direction = reflect(unit_direction, normal)
    elif random_float(stream) < schlick_reflectance(cos_theta, ratio):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, vec3(1.0, 1.0, 1.0), 1


@ti.func
def fresnel_reflectance(
    ior: ti.f64,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f64:
    """Schlick reflectance for a given incidence.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.

    Returns:
        The probability that the ray reflects rather than refracts when
        refraction is possible.
    """
    ratio = refraction_ratio(ior, front_face)
    cos_theta = ti.min(dot(-unit_vector(incident_direction), normal), 1.0)
    return schlick_reflectance(cos_theta, ratio)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 512

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f64, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be positive; values below 1 model a medium less dense
            than its surroundings (e.g. an air bubble in water).

    Returns:
        The index of the added material within the dielectric registry.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the index of refraction is not positive.
    """
    if ior <= 0.0:
        raise ValueError(
            f"Index of refraction = {ior} is not positive. "
            "IOR must be > 0 for physically meaningful materials."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f64:
    """Get the IOR for a dielectric material by registry index."""
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Scatter off a dielectric material looked up by registry index.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, normal, front_face, stream)
