"""Geometry module for shape primitives.

Components:
    sphere: Sphere and HitRecord structures, ray/sphere intersection
"""

from .sphere import HitRecord, Sphere, face_normal, hit_sphere, make_miss_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "face_normal",
    "make_sphere",
    "make_miss_record",
]
