"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside (front face)
- Ray missing sphere (negative discriminant)
- Ray starting inside sphere (back face)
- Ray tangent to sphere (zero discriminant)
- Negative radius (inverted normals)
- The (t_min, t_max) window
"""

import pytest
import taichi as ti


def _vec(v) -> tuple[float, float, float]:
    return tuple(float(c) for c in v.to_numpy())


def _hit(origin, direction, center, radius, t_min=0.001, t_max=1000.0):
    """Intersect one ray with one sphere and return the record as a dict."""
    from src.tracer.core.ray import make_ray
    from src.tracer.geometry.sphere import hit_sphere, make_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f64, shape=())
    point = ti.Vector.field(3, dtype=ti.f64, shape=())
    normal = ti.Vector.field(3, dtype=ti.f64, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())
    material_id = ti.field(dtype=ti.i32, shape=())

    ox, oy, oz = origin
    dx, dy, dz = direction
    cx, cy, cz = center

    @ti.kernel
    def test_kernel():
        ray = make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz))
        sphere = make_sphere(vec3(cx, cy, cz), radius, 7)
        record = hit_sphere(ray, sphere, t_min, t_max)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face
        material_id[None] = record.material_id

    test_kernel()
    return {
        "hit": hit[None],
        "t": t_val[None],
        "point": _vec(point[None]),
        "normal": _vec(normal[None]),
        "front_face": front_face[None],
        "material_id": material_id[None],
    }


class TestSphereBasics:
    """Tests for Sphere dataclass and basic operations."""

    def test_make_sphere(self):
        """make_sphere stores center, radius and material id."""
        from src.tracer.geometry.sphere import make_sphere, vec3

        center_result = ti.Vector.field(3, dtype=ti.f64, shape=())
        radius_result = ti.field(dtype=ti.f64, shape=())
        material_result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, 3.0), 0.5, 4)
            center_result[None] = sphere.center
            radius_result[None] = sphere.radius
            material_result[None] = sphere.material_id

        test_kernel()
        assert _vec(center_result[None]) == (1.0, 2.0, 3.0)
        assert abs(radius_result[None] - 0.5) < 1e-6
        assert material_result[None] == 4

    def test_face_normal(self):
        """face_normal keeps the outward normal only for front-face hits."""
        from src.tracer.geometry.sphere import face_normal, vec3

        fronts = ti.field(dtype=ti.i32, shape=2)
        normals = ti.Vector.field(3, dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            outward = vec3(0.0, 0.0, 1.0)
            f0, n0 = face_normal(vec3(0.0, 0.0, -1.0), outward)
            f1, n1 = face_normal(vec3(0.0, 0.0, 1.0), outward)
            fronts[0] = f0
            normals[0] = n0
            fronts[1] = f1
            normals[1] = n1

        test_kernel()
        assert fronts[0] == 1
        assert _vec(normals[0]) == (0.0, 0.0, 1.0)
        assert fronts[1] == 0
        assert _vec(normals[1]) == (0.0, 0.0, -1.0)


class TestSphereIntersection:
    """Tests for ray-sphere intersection."""

    def test_direct_hit_from_outside(self):
        """Ray from z=5 toward the origin hits the unit sphere at t=4."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(4.0, abs=1e-5)
        assert rec["point"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)
        assert rec["normal"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)
        assert rec["front_face"] == 1
        assert rec["material_id"] == 7

    def test_miss_negative_discriminant(self):
        """Ray passing beside the sphere misses and carries no material."""
        rec = _hit((5.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0
        assert rec["material_id"] == -1

    def test_unit_scene_sphere(self):
        """Ray from the origin down -z hits the sphere at (0,0,-1) r=0.5 at t=0.5."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 0.0, -1.0), 0.5)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(0.5, abs=1e-5)
        assert rec["normal"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_unnormalized_direction(self):
        """t scales inversely with the direction length."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -2.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(2.0, abs=1e-5)
        assert rec["point"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_inside_hits_back_face(self):
        """Ray from the center hits the far side; normal faces back at the ray."""
        rec = _hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(1.0, abs=1e-5)
        assert rec["front_face"] == 0
        assert rec["normal"] == pytest.approx((0.0, 0.0, -1.0), abs=1e-5)

    def test_tangent_ray_hits(self):
        """A ray grazing the sphere (zero discriminant) yields one hit."""
        rec = _hit((1.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(5.0, abs=1e-4)
        assert rec["point"] == pytest.approx((1.0, 0.0, 0.0), abs=1e-4)

    def test_sphere_behind_ray(self):
        """Both roots negative: no hit."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert rec["hit"] == 0

    def test_t_max_excludes_far_hits(self):
        """Roots at or beyond t_max are rejected."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_max=3.0)
        assert rec["hit"] == 0

    def test_t_min_skips_near_root(self):
        """A near root below t_min falls through to the far root."""
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, t_min=4.5)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(6.0, abs=1e-5)
        assert rec["front_face"] == 0

    def test_negative_radius_flips_normal(self):
        """A negative radius makes the outward normal point inward.

        Hitting it from outside therefore counts as a back-face hit, which is
        how a hollow glass shell is modelled.
        """
        rec = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), -1.0)
        assert rec["hit"] == 1
        assert rec["t"] == pytest.approx(4.0, abs=1e-5)
        assert rec["front_face"] == 0
        # Stored normal still faces the incoming ray
        assert rec["normal"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_normal_is_unit_and_faces_ray(self):
        """For oblique hits the normal is unit length and opposes the ray."""
        rec = _hit((0.3, 0.2, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        n = rec["normal"]
        assert sum(c * c for c in n) == pytest.approx(1.0, abs=1e-5)
        # dot(direction, normal) < 0
        assert n[2] > 0.0
