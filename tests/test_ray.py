"""Unit tests for the ray module.

Tests cover:
- Ray dataclass, ray_at and the Python-side new_ray guard
- Interval operations (contains, surrounds, clamp, empty/universe)
- Vector utility functions (length, normalize, reflect, refract, schlick)
- Random sampling functions
"""

import math

import pytest
import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from src.spheretrace.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_positive_t(self):
        """Test ray_at computes origin + t * direction."""
        from src.spheretrace.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 1.0, 1.0), vec3(0.0, 2.0, 0.0))
            result[None] = ray_at(ray, 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 4.0) < 1e-6
        assert abs(r[2] - 1.0) < 1e-6


class TestNewRay:
    """Tests for the Python-side ray constructor."""

    def test_new_ray_keeps_components(self):
        from src.spheretrace.core.ray import new_ray

        ray = new_ray((1.0, 2.0, 3.0), (0.0, 0.0, -2.0))
        assert tuple(ray.origin) == pytest.approx((1.0, 2.0, 3.0))
        # Direction is not normalized
        assert tuple(ray.direction) == pytest.approx((0.0, 0.0, -2.0))

    def test_new_ray_rejects_zero_direction(self):
        from src.spheretrace.core.ray import new_ray

        with pytest.raises(ValueError, match="non-zero"):
            new_ray((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_new_ray_rejects_non_finite_direction(self):
        from src.spheretrace.core.ray import new_ray

        with pytest.raises(ValueError):
            new_ray((0.0, 0.0, 0.0), (math.inf, 0.0, 0.0))
        with pytest.raises(ValueError):
            new_ray((0.0, 0.0, 0.0), (math.nan, 1.0, 0.0))


class TestInterval:
    """Tests for interval predicates."""

    def test_contains_is_closed_and_surrounds_is_open(self):
        from src.spheretrace.core.ray import interval_contains, interval_surrounds, make_interval

        results = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel():
            interval = make_interval(1.0, 2.0)
            results[0] = interval_contains(interval, 1.0)
            results[1] = interval_surrounds(interval, 1.0)
            results[2] = interval_contains(interval, 1.5)
            results[3] = interval_surrounds(interval, 1.5)

        test_kernel()
        assert results[0] == 1
        assert results[1] == 0
        assert results[2] == 1
        assert results[3] == 1

    def test_empty_and_universe(self):
        from src.spheretrace.core.ray import empty_interval, interval_contains, universe_interval

        results = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            results[0] = interval_contains(empty_interval(), 0.0)
            results[1] = interval_contains(universe_interval(), 1.0e30)

        test_kernel()
        assert results[0] == 0
        assert results[1] == 1

    def test_size_and_clamp(self):
        from src.spheretrace.core.ray import interval_clamp, interval_size, make_interval

        results = ti.field(dtype=ti.f32, shape=4)

        @ti.kernel
        def test_kernel():
            interval = make_interval(0.0, 0.999)
            results[0] = interval_size(interval)
            results[1] = interval_clamp(interval, -0.5)
            results[2] = interval_clamp(interval, 0.5)
            results[3] = interval_clamp(interval, 3.0)

        test_kernel()
        assert results[0] == pytest.approx(0.999, abs=1e-6)
        assert results[1] == pytest.approx(0.0)
        assert results[2] == pytest.approx(0.5)
        assert results[3] == pytest.approx(0.999, abs=1e-6)


class TestVectorUtilities:
    """Tests for vector utility functions."""

    def test_length_and_normalize(self):
        from src.spheretrace.core.ray import length, length_squared, normalize, vec3

        results = ti.field(dtype=ti.f32, shape=3)
        unit = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 0.0)
            results[0] = length(v)
            results[1] = length_squared(v)
            unit[None] = normalize(v)
            results[2] = length(unit[None])

        test_kernel()
        assert abs(results[0] - 5.0) < 1e-6
        assert abs(results[1] - 25.0) < 1e-6
        assert abs(results[2] - 1.0) < 1e-6
        assert abs(unit[None][0] - 0.6) < 1e-6
        assert abs(unit[None][1] - 0.8) < 1e-6

    def test_dot_and_cross(self):
        from src.spheretrace.core.ray import cross, dot, vec3

        dot_result = ti.field(dtype=ti.f32, shape=())
        cross_result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            dot_result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, 5.0, 6.0))
            cross_result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert abs(dot_result[None] - 32.0) < 1e-6
        c = cross_result[None]
        assert abs(c[0]) < 1e-6
        assert abs(c[1]) < 1e-6
        assert abs(c[2] - 1.0) < 1e-6

    def test_reflect(self):
        """A 45-degree ray bounces off the floor keeping its x component."""
        from src.spheretrace.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_refract_matched_indices_goes_straight(self):
        from src.spheretrace.core.ray import normalize, refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())
        expected = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = normalize(vec3(1.0, -2.0, 0.5))
            expected[None] = d
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.0)

        test_kernel()
        for c in range(3):
            assert abs(result[None][c] - expected[None][c]) < 1e-5

    def test_refract_snell(self):
        """Refracted direction obeys n1 sin(theta1) = n2 sin(theta2)."""
        from src.spheretrace.core.ray import normalize, refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = normalize(vec3(1.0, -1.0, 0.0))
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        assert math.sqrt(r[0] ** 2 + r[1] ** 2 + r[2] ** 2) == pytest.approx(1.0, abs=1e-5)
        sin_in = math.sqrt(0.5)
        assert 1.0 * sin_in == pytest.approx(1.5 * r[0], abs=1e-5)
        assert r[1] < 0.0

    def test_refract_never_returns_zero_vector(self):
        from src.spheretrace.core.ray import normalize, refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            # Grazing ray leaving glass (eta = 1.5), past the critical angle
            d = normalize(vec3(1.0, -0.1, 0.0))
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        r = result[None]
        assert r[0] > 0.0
        assert r[1] < 0.0

    def test_refract_at_critical_angle_is_unit_length(self):
        from src.spheretrace.core.ray import refract, vec3

        n = 2001
        lengths = ti.field(dtype=ti.f32, shape=n)
        critical = math.asin(1.0 / 1.5)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                theta = critical - 1e-3 + 2e-3 * ti.cast(i, ti.f32) / (n - 1)
                d = vec3(ti.sin(theta), -ti.cos(theta), 0.0)
                lengths[i] = refract(d, vec3(0.0, 1.0, 0.0), 1.5).norm()

        test_kernel()
        arr = lengths.to_numpy()
        assert arr.min() > 0.99
        assert arr.max() < 1.01

    def test_schlick_reflectance(self):
        from src.spheretrace.core.ray import schlick_reflectance

        results = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            results[0] = schlick_reflectance(1.0, 1.0 / 1.5)
            results[1] = schlick_reflectance(0.0, 1.0 / 1.5)

        test_kernel()
        # Normal incidence gives r0 = ((1 - 1/1.5) / (1 + 1/1.5))^2 = 0.04
        assert results[0] == pytest.approx(0.04, abs=1e-5)
        # Grazing incidence reflects everything
        assert results[1] == pytest.approx(1.0, abs=1e-5)

    def test_near_zero(self):
        from src.spheretrace.core.ray import near_zero, vec3

        results = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            results[0] = near_zero(vec3(1e-9, -1e-9, 0.0))
            results[1] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert results[0] == 1
        assert results[1] == 0


class TestRandomSampling:
    """Tests for random sampling functions."""

    def test_random_unit_vector_has_unit_length(self):
        from src.spheretrace.core.ray import length, random_unit_vector

        n = 1000
        lengths = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                lengths[i] = length(random_unit_vector())

        test_kernel()
        arr = lengths.to_numpy()
        assert abs(arr - 1.0).max() < 1e-4

    def test_random_in_unit_disk(self):
        from src.spheretrace.core.ray import random_in_unit_disk

        n = 1000
        points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                points[i] = random_in_unit_disk()

        test_kernel()
        arr = points.to_numpy()
        assert (arr[:, 2] == 0.0).all()
        assert (arr[:, 0] ** 2 + arr[:, 1] ** 2 < 1.0).all()

    def test_sample_square_range(self):
        from src.spheretrace.core.ray import sample_square

        n = 1000
        points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                points[i] = sample_square()

        test_kernel()
        arr = points.to_numpy()
        assert arr[:, :2].min() >= -0.5
        assert arr[:, :2].max() < 0.5
        assert (arr[:, 2] == 0.0).all()
