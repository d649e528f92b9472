"""Unified scene manager coordinating spheres and materials.

This module provides the scene's ownership root. Materials live in one
typed registry per material kind; the manager hands out a unified
``material_id`` for each and records which registry (and which slot in it)
the id refers to. Spheres store only that id, so any number of spheres can
share one material without holding references to it.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- High-level methods for adding spheres with materials in one call
- Scene serialization to and from plain dictionaries (JSON-ready)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> mat_id = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
    >>> # Use get_material_type(mat_id) in the integrator for dispatch
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from src.tracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.tracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.tracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from src.tracer.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

# 3D vector in double precision
vec3 = ti.types.vector(3, ti.f64)


class MaterialType(IntEnum):
    """Kinds of material, stored per material id for scatter dispatch.

    The lowercase member name is the "type" key used in scene configs.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


MAX_MATERIALS = 2048

# Material arena: id -> (MaterialType, slot in that type's registry)
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Forget every material id (the typed registries are cleared separately)."""
    num_materials[None] = 0


@ti.func
def _arena_lookup(table: ti.template(), material_id: ti.i32) -> ti.i32:
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = table[material_id]
    return result


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType of a material id as an int, or -1 for an unknown id."""
    return _arena_lookup(material_types, material_id)


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Slot of a material id in its type's registry, or -1 for an unknown id.

    For example, if id 5 is the second metal registered, this returns 1 and
    the metal's parameters live at metal_albedos[1] / metal_fuzzes[1].
    """
    return _arena_lookup(material_type_indices, material_id)


@dataclass
class MaterialInfo:
    """Python-side record of a registered material.

    Attributes:
        material_id: Unified id, also the index into SceneManager.materials.
        material_type: Which typed registry holds the material.
        type_index: Slot in that registry.
        params: Parameters as stored (fuzz already clamped), used for export.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Python-side record of a sphere placed in the scene."""

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Serializable description of a scene.

    Attributes:
        materials: One dict per material, in id order. Each has a "type" key
            ("lambertian", "metal" or "dielectric") plus its parameters.
        spheres: One dict per sphere with "center", "radius" and
            "material_id" keys.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Owns the live scene: its spheres and the materials they refer to.

    Only one scene is live at a time: the underlying storage is a set of
    module-level Taichi fields, and creating a SceneManager clears them.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.add_sphere((-1, 0, -1), -0.45, glass)  # hollow glass
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.clear()

    def clear(self) -> None:
        """Remove every sphere and material, in Taichi fields and here."""
        clear_scene()
        for clear_registry in (
            clear_lambertian_materials,
            clear_metal_materials,
            clear_dielectric_materials,
        ):
            clear_registry()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified material ID to a type-local registry slot."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Register a diffuse material and return its unified id.

        Raises:
            ValueError: If an albedo component is outside [0, 1].
            RuntimeError: If a material table is full.
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Register a metal and return its unified id.

        A fuzz of 0 is a perfect mirror. Fuzz above 1 is stored as 1, both in
        the Taichi registry and in the recorded params.

        Raises:
            ValueError: If an albedo component is outside [0, 1] or fuzz is
                negative.
            RuntimeError: If a material table is full.
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL,
            type_index,
            {"albedo": tuple(albedo), "fuzz": min(fuzz, 1.0)},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Register a clear dielectric (glass, water) and return its unified id.

        Raises:
            ValueError: If ior is not positive.
            RuntimeError: If a material table is full.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        """Number of registered materials of all kinds."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Look up the Python-side record of a material, or None."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Python-side counterpart of the get_material_type() Taichi function.

        Returns None where the kernel lookup would return -1.
        """
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Sphere Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Place a sphere that uses an already registered material.

        Args:
            center: Sphere centre (x, y, z).
            radius: Sphere radius. A negative radius turns the normals
                inward, which makes a hollow shell inside another sphere.
            material_id: Unified id returned by one of the add_*_material
                methods.

        Returns:
            The sphere's slot in the scene storage.

        Raises:
            ValueError: For an unregistered material_id or a zero or
                non-finite radius.
            RuntimeError: If the sphere storage is full.
        """
        if not 0 <= material_id < self.get_material_count():
            raise ValueError(
                f"Invalid material_id: {material_id} "
                f"({self.get_material_count()} materials registered)"
            )

        sphere_index = add_sphere(vec3(*center), radius, material_id)
        self.spheres.append(SphereInfo(sphere_index, tuple(center), radius, material_id))
        return sphere_index

    # Each helper registers a fresh material and returns (sphere_index, material_id)

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id), material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id), material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id), material_id

    def get_sphere_count(self) -> int:
        """Number of spheres currently in the scene storage."""
        return get_sphere_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Snapshot the scene as plain lists and dicts.

        Tuples become lists so the result can go straight to json.dump().
        Material order is preserved, so sphere material ids stay valid.
        """
        materials = [
            {"type": info.material_type.name.lower()}
            | {k: list(v) if isinstance(v, tuple) else v for k, v in info.params.items()}
            for info in self.materials
        ]
        spheres = [
            {"center": list(s.center), "radius": s.radius, "material_id": s.material_id}
            for s in self.spheres
        ]
        return SceneConfig(materials=materials, spheres=spheres)

    def _load_material(self, entry: dict[str, Any]) -> int:
        """Register one material from its config entry."""
        kind = str(entry.get("type", "")).lower()
        if kind == MaterialType.LAMBERTIAN.name.lower():
            return self.add_lambertian_material(tuple(entry.get("albedo", (0.5, 0.5, 0.5))))
        if kind == MaterialType.METAL.name.lower():
            return self.add_metal_material(
                tuple(entry.get("albedo", (0.8, 0.8, 0.8))), entry.get("fuzz", 0.0)
            )
        if kind == MaterialType.DIELECTRIC.name.lower():
            return self.add_dielectric_material(entry.get("ior", 1.5))
        raise ValueError(f"Unknown material type: {kind!r}")

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with the one described by config.

        Raises:
            ValueError: On an unknown material type, invalid material
                parameters or a sphere referring to a missing material.
        """
        self.clear()

        for entry in config.materials:
            self._load_material(entry)

        for entry in config.spheres:
            self.add_sphere(
                tuple(entry.get("center", (0.0, 0.0, 0.0))),
                entry.get("radius", 1.0),
                entry.get("material_id", 0),
            )

        logger.info(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        """Scene as a JSON-ready dict with "materials" and "spheres" lists."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene written by to_dict() (or a JSON file of that shape)."""
        self.from_config(
            SceneConfig(
                materials=list(data.get("materials", [])),
                spheres=list(data.get("spheres", [])),
            )
        )

    @staticmethod
    def get_max_spheres() -> int:
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS
