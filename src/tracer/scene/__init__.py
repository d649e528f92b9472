"""Scene module: sphere storage, material arena and built-in scenes.

Components:
    intersection: Sphere storage and closest-hit queries
    manager: SceneManager, the ownership root for spheres and materials
    presets: Factory functions for the built-in scenes
"""

from .intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import RandomSceneParams, create_random_scene, create_three_spheres_scene

__all__ = [
    "MAX_SPHERES",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_MATERIALS",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "SceneManager",
    "get_material_type",
    "get_material_type_index",
    "RandomSceneParams",
    "create_random_scene",
    "create_three_spheres_scene",
]
