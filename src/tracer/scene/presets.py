"""Built-in sphere scenes.

Two factory functions build a scene in the SceneManager and return it
together with a matching camera:

- create_three_spheres_scene(): a small test scene with a diffuse ground,
  a diffuse centre sphere, a hollow glass sphere on the left and a metal
  sphere on the right.
- create_random_scene(): the classic cover scene, a large ground plane
  covered with small randomly placed spheres of random materials plus three
  large feature spheres, seen through a depth-of-field camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.tracer.scene.presets import create_random_scene, RandomSceneParams
    >>> from src.tracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(RandomSceneParams(seed=7))
    >>> setup_camera(camera)
"""

import logging
from dataclasses import dataclass

import numpy as np

from src.tracer.camera.thin_lens import ThinLensCamera
from src.tracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Random Scene Parameters
# =============================================================================


@dataclass
class RandomSceneParams:
    """Parameters for the random cover scene.

    Attributes:
        seed: Seed for NumPy's generator, in [0, 2**31); the same seed
            builds the same scene.
        grid_extent: Small spheres are placed on integer grid cells
            a, b in [-grid_extent, grid_extent).
        diffuse_probability: Share of small spheres that are diffuse.
        metal_probability: Share of small spheres that are metal. The
            remainder is glass.
        aspect_ratio: Aspect ratio of the returned camera.
    """

    seed: int = 0
    grid_extent: int = 11
    diffuse_probability: float = 0.8
    metal_probability: float = 0.15
    aspect_ratio: float = 3.0 / 2.0

    def __post_init__(self) -> None:
        if not 0 <= self.seed < 2**31:
            raise ValueError(f"seed must be in [0, 2**31), got {self.seed}")
        if self.grid_extent < 0:
            raise ValueError(f"grid_extent must be non-negative, got {self.grid_extent}")
        if self.diffuse_probability < 0.0 or self.metal_probability < 0.0:
            raise ValueError("Material probabilities must be non-negative")
        if self.diffuse_probability + self.metal_probability > 1.0:
            raise ValueError(
                "diffuse_probability + metal_probability must not exceed 1, got "
                f"{self.diffuse_probability + self.metal_probability}"
            )


# =============================================================================
# Scene Constants
# =============================================================================

GROUND_ALBEDO = (0.5, 0.5, 0.5)
GLASS_IOR = 1.5

# Small spheres closer than this to the metal feature sphere are skipped
FEATURE_CLEARANCE = 0.9
SMALL_SPHERE_RADIUS = 0.2


# =============================================================================
# Scene Factories
# =============================================================================


def create_three_spheres_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-sphere test scene.

    Layout (all spheres of radius 0.5 at z = -1):
    - Ground: huge yellow-green diffuse sphere below the scene
    - Centre: blue-ish diffuse sphere
    - Left: hollow glass sphere (outer radius 0.5, inner radius -0.45)
    - Right: gold metal sphere with no fuzz

    Args:
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        A tuple of (SceneManager, ThinLensCamera). The camera sits at the
        origin looking down -z with a 90 degree field of view and no
        depth of field.
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    centre = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(ior=GLASS_IOR)
    gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    scene.add_sphere(center=(0.0, -100.5, -1.0), radius=100.0, material_id=ground)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=centre)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.5, material_id=glass)
    # Same glass with a negative radius: normals point inward, making a bubble
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=-0.45, material_id=glass)
    scene.add_sphere(center=(1.0, 0.0, -1.0), radius=0.5, material_id=gold)

    camera = ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=1.0,
    )

    logger.debug("Built three-sphere scene with %d spheres", scene.get_sphere_count())
    return scene, camera


def create_random_scene(
    params: RandomSceneParams | None = None,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random cover scene.

    Each grid cell (a, b) gets one small sphere at
    (a + 0.9 * u1, 0.2, b + 0.9 * u2). Its material is chosen by one draw:
    diffuse with albedo = random * random, metal with albedo in [0.5, 1)
    and fuzz in [0, 0.5), or glass. Cells too close to the metal feature
    sphere are left empty.

    Args:
        params: Optional RandomSceneParams. If None, uses the defaults.

    Returns:
        A tuple of (SceneManager, ThinLensCamera). The camera looks from
        (13, 2, 3) at the origin with a 20 degree field of view, an
        aperture of 0.1 and the focus plane 10 units away.
    """
    if params is None:
        params = RandomSceneParams()

    rng = np.random.default_rng(params.seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    scene.add_sphere(center=(0.0, -1000.0, 0.0), radius=1000.0, material_id=ground)

    # Small spheres share one glass material
    glass = scene.add_dielectric_material(ior=GLASS_IOR)
    feature_point = np.array([4.0, SMALL_SPHERE_RADIUS, 0.0])

    for a in range(-params.grid_extent, params.grid_extent):
        for b in range(-params.grid_extent, params.grid_extent):
            choose_mat = rng.random()
            center = np.array(
                [a + 0.9 * rng.random(), SMALL_SPHERE_RADIUS, b + 0.9 * rng.random()]
            )
            if np.linalg.norm(center - feature_point) <= FEATURE_CLEARANCE:
                continue

            center_tuple = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < params.diffuse_probability:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(
                    center_tuple, SMALL_SPHERE_RADIUS, tuple(float(c) for c in albedo)
                )
            elif choose_mat < params.diffuse_probability + params.metal_probability:
                albedo = rng.uniform(0.5, 1.0, 3)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(
                    center_tuple, SMALL_SPHERE_RADIUS, tuple(float(c) for c in albedo), fuzz
                )
            else:
                scene.add_sphere(center_tuple, SMALL_SPHERE_RADIUS, glass)

    scene.add_sphere(center=(0.0, 1.0, 0.0), radius=1.0, material_id=glass)
    scene.add_lambertian_sphere(center=(-4.0, 1.0, 0.0), radius=1.0, albedo=(0.4, 0.2, 0.1))
    scene.add_metal_sphere(center=(4.0, 1.0, 0.0), radius=1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    camera = ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=params.aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )

    logger.info(
        "Built random scene (seed %d) with %d spheres and %d materials",
        params.seed,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )
    return scene, camera
