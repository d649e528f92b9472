"""Taichi-based Monte Carlo ray tracer for sphere scenes.

This package renders scenes of spheres by tracing jittered camera rays and
bouncing them off diffuse, metallic, and glass surfaces:
- Ray-sphere intersection with closest-hit scene queries
- Lambertian, metal (fuzzy reflection), and dielectric (refraction) materials
- Thin-lens camera with depth of field
- Per-pixel random streams for reproducible, parallel rendering

Subpackages:
    core: Random streams, vector utilities, rays, integrator and frame driver
    geometry: Sphere primitive and hit records
    materials: Scattering models
    scene: Scene storage, material arena and preset scenes
    camera: Thin-lens camera model
    preview: PPM and PNG image export
"""

__version__ = "0.1.0"
