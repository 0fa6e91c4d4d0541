"""Unit tests for the Lambertian material module.

Tests cover:
- Scatter direction = normal + random unit vector
- Degenerate direction fallback to the normal
- Attenuation equals albedo and the material never absorbs
- Material registry operations
"""

import pytest
import taichi as ti


class TestLambertianScatter:
    """Tests for Lambertian scattering."""

    def test_offset_is_added_to_normal(self):
        from src.spheretrace.materials.lambertian import scatter_lambertian_with, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d, a = scatter_lambertian_with(
                vec3(0.5, 0.3, 0.1), vec3(0.0, 1.0, 0.0), vec3(1.0, 0.0, 0.0)
            )
            direction[None] = d
            attenuation[None] = a

        test_kernel()
        d = direction[None]
        assert abs(d[0] - 1.0) < 1e-6
        assert abs(d[1] - 1.0) < 1e-6
        assert abs(d[2]) < 1e-6
        a = attenuation[None]
        assert abs(a[0] - 0.5) < 1e-6
        assert abs(a[1] - 0.3) < 1e-6
        assert abs(a[2] - 0.1) < 1e-6

    def test_degenerate_offset_falls_back_to_normal(self):
        """An offset exactly opposite the normal scatters along the normal."""
        from src.spheretrace.materials.lambertian import scatter_lambertian_with, vec3

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 0.0, 1.0)
            d, _ = scatter_lambertian_with(vec3(0.8, 0.8, 0.8), normal, -normal)
            direction[None] = d

        test_kernel()
        d = direction[None]
        assert d[0] == 0.0
        assert d[1] == 0.0
        assert d[2] == 1.0

    def test_random_scatter_stays_in_hemisphere(self):
        """normal + unit vector never points below the surface."""
        from src.spheretrace.materials.lambertian import scatter_lambertian, vec3

        n = 2000
        dots = ti.field(dtype=ti.f32, shape=n)
        lengths = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(n):
                d, _ = scatter_lambertian(vec3(0.5, 0.5, 0.5), normal)
                dots[i] = d.dot(normal)
                lengths[i] = d.norm()

        test_kernel()
        assert dots.to_numpy().min() >= -1e-5
        # Length of normal + unit vector lies in [0, 2]
        assert lengths.to_numpy().max() <= 2.0 + 1e-5
        assert lengths.to_numpy().min() > 0.0


class TestLambertianRegistry:
    """Tests for Lambertian material registry."""

    def test_add_and_read_back(self):
        from src.spheretrace.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_albedo,
            get_lambertian_material_count,
        )

        assert get_lambertian_material_count() == 0
        assert add_lambertian_material((0.1, 0.2, 0.3)) == 0
        assert add_lambertian_material((0.7, 0.8, 0.9)) == 1
        assert get_lambertian_material_count() == 2

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_lambertian_albedo(1)

        test_kernel()
        assert tuple(result[None]) == pytest.approx((0.7, 0.8, 0.9), abs=1e-6)

    def test_clear(self):
        from src.spheretrace.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    @pytest.mark.parametrize("albedo", [(1.5, 0.5, 0.5), (0.5, -0.1, 0.5)])
    def test_invalid_albedo_raises(self, albedo):
        from src.spheretrace.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="outside"):
            add_lambertian_material(albedo)

    def test_overflow_raises(self):
        from src.spheretrace.materials.lambertian import (
            MAX_LAMBERTIAN_MATERIALS,
            add_lambertian_material,
            num_lambertian_materials,
        )

        num_lambertian_materials[None] = MAX_LAMBERTIAN_MATERIALS
        with pytest.raises(RuntimeError):
            add_lambertian_material((0.5, 0.5, 0.5))
