"""Unit tests for the metal material module.

Tests cover:
- Perfect mirror reflection (fuzz = 0)
- Fuzz perturbation and absorption below the surface
- Fuzz clamping at registration
- Material registry operations
"""

import pytest
import taichi as ti


def _scatter_with(albedo, fuzz, incident, normal, offset):
    from src.spheretrace.materials.metal import scatter_metal_with, vec3

    direction = ti.Vector.field(3, dtype=ti.f32, shape=())
    attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())
    did_scatter = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(al: vec3, fz: ti.f32, inc: vec3, n: vec3, off: vec3):
        d, a, s = scatter_metal_with(al, fz, inc, n, off)
        direction[None] = d
        attenuation[None] = a
        did_scatter[None] = s

    test_kernel(vec3(*albedo), fuzz, vec3(*incident), vec3(*normal), vec3(*offset))
    return tuple(direction[None]), tuple(attenuation[None]), did_scatter[None]


class TestMetalScatter:
    """Tests for metal scattering."""

    def test_mirror_reflection(self):
        direction, attenuation, did_scatter = _scatter_with(
            (0.8, 0.6, 0.2), 0.0, (1.0, -1.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 0.0)
        )

        assert did_scatter == 1
        s = 2**-0.5
        assert direction == pytest.approx((s, s, 0.0), abs=1e-5)
        assert attenuation == pytest.approx((0.8, 0.6, 0.2), abs=1e-6)

    def test_fuzz_adds_scaled_offset(self):
        direction, _, did_scatter = _scatter_with(
            (0.8, 0.8, 0.8), 0.5, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), (1.0, 0.0, 0.0)
        )

        assert did_scatter == 1
        assert direction == pytest.approx((0.5, 1.0, 0.0), abs=1e-5)

    def test_fuzz_below_surface_is_absorbed(self):
        """A grazing reflection pushed under the surface by fuzz is absorbed."""
        _, _, did_scatter = _scatter_with(
            (0.8, 0.8, 0.8), 1.0, (1.0, -0.1, 0.0), (0.0, 1.0, 0.0), (0.0, -1.0, 0.0)
        )
        assert did_scatter == 0

    def test_tangent_result_is_absorbed(self):
        """dot(scattered, normal) == 0 counts as absorption."""
        _, _, did_scatter = _scatter_with(
            (0.8, 0.8, 0.8), 1.0, (0.0, -1.0, 0.0), (0.0, 1.0, 0.0), (0.0, -1.0, 0.0)
        )
        assert did_scatter == 0

    def test_random_scatter_direction_count(self):
        """Mirror metal with a head-on ray always scatters straight back."""
        from src.spheretrace.materials.metal import scatter_metal, vec3

        n = 500
        flags = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                _, _, s = scatter_metal(
                    vec3(0.9, 0.9, 0.9), 0.0, vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0)
                )
                flags[i] = s

        test_kernel()
        assert flags.to_numpy().sum() == n


class TestMetalRegistry:
    """Tests for metal material registry."""

    def test_add_and_read_back(self):
        from src.spheretrace.materials.metal import (
            add_metal_material,
            get_metal_albedo,
            get_metal_fuzz,
            get_metal_material_count,
        )

        idx = add_metal_material((0.7, 0.6, 0.5), fuzz=0.3)
        assert idx == 0
        assert get_metal_material_count() == 1

        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            albedo[None] = get_metal_albedo(0)
            fuzz[None] = get_metal_fuzz(0)

        test_kernel()
        assert tuple(albedo[None]) == pytest.approx((0.7, 0.6, 0.5), abs=1e-6)
        assert fuzz[None] == pytest.approx(0.3, abs=1e-6)

    @pytest.mark.parametrize("fuzz, expected", [(1.5, 1.0), (-0.2, 0.0), (0.4, 0.4)])
    def test_fuzz_is_clamped(self, fuzz, expected):
        from src.spheretrace.materials.metal import add_metal_material, metal_fuzzes

        idx = add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz)
        assert metal_fuzzes[idx] == pytest.approx(expected, abs=1e-6)

    def test_clamp_fuzz_logs_warning(self, caplog):
        from src.spheretrace.materials.metal import clamp_fuzz

        assert clamp_fuzz(2.0) == 1.0
        assert "clamped" in caplog.text

    def test_invalid_albedo_raises(self):
        from src.spheretrace.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((1.2, 0.5, 0.5))

    def test_clear(self):
        from src.spheretrace.materials.metal import (
            add_metal_material,
            clear_metal_materials,
            get_metal_material_count,
        )

        add_metal_material((0.5, 0.5, 0.5))
        clear_metal_materials()
        assert get_metal_material_count() == 0
