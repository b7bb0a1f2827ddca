"""Tests for material variants and scatter functions.

Note: Imports are done inside test methods so that Taichi is initialized
by conftest.py before any module declares fields.
"""

import math

import pytest
import taichi as ti

NUM_SAMPLES = 2048


class TestMaterialTypes:
    def test_kinds(self):
        from pathtracer.materials.types import Dielectric, Diffuse, MaterialKind, Metal

        assert Diffuse().kind == MaterialKind.DIFFUSE
        assert Metal(fuzz=0.3).kind == MaterialKind.METAL
        assert Dielectric().kind == MaterialKind.DIELECTRIC

    def test_parameters(self):
        from pathtracer.materials.types import Dielectric, Diffuse, Metal

        assert Diffuse().parameter == 0.0
        assert Metal(fuzz=0.25).parameter == 0.25
        assert Dielectric(refractive_index=1.33).parameter == 1.33

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5, float("nan")])
    def test_metal_rejects_fuzz_outside_unit_interval(self, fuzz):
        from pathtracer.materials.types import Metal

        with pytest.raises(ValueError, match="Fuzz"):
            Metal(fuzz=fuzz)

    @pytest.mark.parametrize("index", [0.0, -1.5, float("nan")])
    def test_dielectric_rejects_non_positive_index(self, index):
        from pathtracer.materials.types import Dielectric

        with pytest.raises(ValueError, match="Refractive index"):
            Dielectric(refractive_index=index)

    def test_dict_round_trip(self):
        from pathtracer.materials.types import (
            Dielectric,
            Diffuse,
            Metal,
            material_from_dict,
            material_to_dict,
        )

        for material in (Diffuse(), Metal(fuzz=0.4), Dielectric(refractive_index=2.4)):
            assert material_from_dict(material_to_dict(material)) == material

    def test_from_dict_aliases_and_unknown(self):
        from pathtracer.materials.types import Dielectric, Diffuse, material_from_dict

        assert material_from_dict({"type": "lambertian"}) == Diffuse()
        assert material_from_dict({"type": "glass"}) == Dielectric(refractive_index=1.5)
        with pytest.raises(ValueError, match="Unknown material type"):
            material_from_dict({"type": "plasma"})


class TestLambertian:
    def test_directions_are_unit_and_in_hemisphere(self):
        from pathtracer.core.ray import length, normalize, vec3
        from pathtracer.core.sampler import seed_rng
        from pathtracer.materials.lambertian import scatter_lambertian

        lengths = ti.field(dtype=ti.f32, shape=NUM_SAMPLES)
        cosines = ti.field(dtype=ti.f32, shape=NUM_SAMPLES)

        @ti.kernel
        def test_kernel():
            normal = normalize(vec3(0.3, 1.0, -0.2))
            for k in range(NUM_SAMPLES):
                state = seed_rng(ti.cast(k, ti.u32))
                direction, state = scatter_lambertian(normal, state)
                lengths[k] = length(direction)
                cosines[k] = ti.math.dot(direction, normal)

        test_kernel()
        assert abs(lengths.to_numpy() - 1.0).max() < 1e-4
        assert cosines.to_numpy().min() >= -1e-4

    def test_directions_favor_the_normal(self):
        """The mean cosine of a cosine-like lobe is well above zero."""
        from pathtracer.core.ray import vec3
        from pathtracer.core.sampler import seed_rng
        from pathtracer.materials.lambertian import scatter_lambertian

        cosines = ti.field(dtype=ti.f32, shape=NUM_SAMPLES)

        @ti.kernel
        def test_kernel():
            for k in range(NUM_SAMPLES):
                state = seed_rng(ti.cast(k, ti.u32))
                direction, state = scatter_lambertian(vec3(0.0, 0.0, 1.0), state)
                cosines[k] = direction.z

        test_kernel()
        assert cosines.to_numpy().mean() > 0.5


class TestMetal:
    def test_zero_fuzz_is_exact_mirror(self):
        from pathtracer.core.ray import normalize, reflect, vec3
        from pathtracer.core.sampler import seed_rng
        from pathtracer.materials.metal import scatter_metal

        scattered = ti.field(dtype=ti.math.vec3, shape=())
        mirror = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            incident = normalize(vec3(1.0, -2.0, 0.5))
            normal = vec3(0.0, 1.0, 0.0)
            state = seed_rng(ti.cast(3, ti.u32))
            direction, state = scatter_metal(incident, normal, 0.0, state)
            scattered[None] = direction
            mirror[None] = reflect(incident, normal)

        test_kernel()
        s = scattered[None]
        m = mirror[None]
        for c in range(3):
            assert s[c] == m[c]

    def test_fuzz_offset_is_bounded(self):
        """Each component of the offset is at most fuzz in magnitude."""
        from pathtracer.core.ray import reflect, vec3
        from pathtracer.core.sampler import seed_rng
        from pathtracer.materials.metal import scatter_metal

        offsets = ti.Vector.field(3, dtype=ti.f32, shape=NUM_SAMPLES)
        fuzz = 0.3

        @ti.kernel
        def test_kernel():
            incident = vec3(0.0, -1.0, 0.0)
            normal = vec3(0.0, 1.0, 0.0)
            for k in range(NUM_SAMPLES):
                state = seed_rng(ti.cast(k, ti.u32))
                direction, state = scatter_metal(incident, normal, fuzz, state)
                offsets[k] = direction - reflect(incident, normal)

        test_kernel()
        values = offsets.to_numpy()
        assert abs(values).max() <= fuzz + 1e-6
        # The offset is not a constant
        assert values.std() > 0.01


class TestDielectric:
    def _scatter(self, incident, normal, ratio, count=NUM_SAMPLES):
        from pathtracer.core.ray import normalize, vec3
        from pathtracer.core.sampler import seed_rng
        from pathtracer.materials.dielectric import scatter_dielectric

        directions = ti.Vector.field(3, dtype=ti.f32, shape=count)

        @ti.kernel
        def test_kernel(incident_dir: ti.math.vec3, normal_dir: ti.math.vec3, eta: ti.f32):
            d = normalize(incident_dir)
            n = normal_dir
            for k in range(count):
                state = seed_rng(ti.cast(k, ti.u32))
                direction, state = scatter_dielectric(d, n, eta, state)
                directions[k] = direction

        test_kernel(vec3(*incident), vec3(*normal), ratio)
        return directions.to_numpy()

    def test_no_total_internal_reflection_at_normal_incidence(self):
        from pathtracer.core.ray import vec3
        from pathtracer.materials.dielectric import cannot_refract

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            incident = vec3(0.0, 0.0, -1.0)
            normal = vec3(0.0, 0.0, 1.0)
            result[0] = cannot_refract(incident, normal, 1.0 / 1.5)
            result[1] = cannot_refract(incident, normal, 1.5)

        test_kernel()
        assert result[0] == 0
        assert result[1] == 0

    def test_total_internal_reflection_at_grazing_exit(self):
        from pathtracer.core.ray import normalize, vec3
        from pathtracer.materials.dielectric import cannot_refract

        result = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            # 60 degrees inside glass: 1.5 * sin(60) > 1
            incident = normalize(vec3(ti.sin(math.pi / 3.0), -ti.cos(math.pi / 3.0), 0.0))
            result[None] = cannot_refract(incident, vec3(0.0, 1.0, 0.0), 1.5)

        test_kernel()
        assert result[None] == 1

    def test_total_internal_reflection_always_reflects(self):
        angle = math.pi / 3.0
        directions = self._scatter((math.sin(angle), -math.cos(angle), 0.0), (0.0, 1.0, 0.0), 1.5)
        # Every sample is the mirror direction (y flipped)
        assert abs(directions[:, 0] - math.sin(angle)).max() < 1e-5
        assert abs(directions[:, 1] - math.cos(angle)).max() < 1e-5

    def test_normal_incidence_mostly_transmits(self):
        """At normal incidence reflectance is r0 = 0.04 for glass."""
        directions = self._scatter((0.0, 0.0, -1.0), (0.0, 0.0, 1.0), 1.0 / 1.5)
        transmitted = directions[:, 2] < 0.0
        reflected = directions[:, 2] > 0.0
        assert (transmitted | reflected).all()
        fraction = reflected.mean()
        assert 0.01 < fraction < 0.08
        # Transmitted rays pass straight through
        assert abs(directions[transmitted, 2] + 1.0).max() < 1e-5

    def test_fresnel_reflectance_matches_schlick(self):
        from pathtracer.core.ray import vec3
        from pathtracer.materials.dielectric import fresnel_reflectance

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = fresnel_reflectance(vec3(0.0, 0.0, -1.0), vec3(0.0, 0.0, 1.0), 1.0 / 1.5)

        test_kernel()
        r0 = ((1.0 - 1.0 / 1.5) / (1.0 + 1.0 / 1.5)) ** 2
        assert abs(result[None] - r0) < 1e-6
