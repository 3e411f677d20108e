"""
Tests for the displaced-sphere globe builder.

Tests cover:
- Sphere tessellation and winding
- Tessellation clamps
- Displacement invariants
- Palette / contour coloring on the mesh
- Geometry cache identity
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from common.config import Config
from common.mesh_ops import uv_sphere, recompute_vertex_normals, compute_mesh_stats
from globe.build import (
    GlobeParams, GlobeCache, build_globe, build_default_globe,
    effective_height_scale, cache_key
)
from terrain.heightfield import HeightField, extract_heights
from terrain.palettes import Palette, palette_colors


# ============== Fixtures ==============

@pytest.fixture
def flat_field():
    """Every pixel at mid height."""
    return HeightField(width=40, height=30, values=np.full(40 * 30, 0.5))


@pytest.fixture
def checker_field():
    """2x2 black/white columns."""
    pixels = np.array([
        [[0, 0, 0, 255], [255, 255, 255, 255]],
        [[0, 0, 0, 255], [255, 255, 255, 255]],
    ], dtype=np.uint8)
    return extract_heights(pixels, 2, 2)


@pytest.fixture
def ramp_field():
    """Heights rising from top (0) to bottom (1) of the image."""
    w, h = 20, 16
    values = np.repeat(np.linspace(0, 1, h), w)
    return HeightField(width=w, height=h, values=values)


def face_normals(positions, faces):
    tri = positions[faces]
    return np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])


# ============== Sphere Tests ==============

class TestUVSphere:
    """Unit sphere tessellation."""

    def test_counts(self):
        directions, uvs, faces = uv_sphere(8, 6)
        assert directions.shape == (63, 3)
        assert uvs.shape == (63, 2)
        # two triangles per quad, minus one per quad on each pole row
        assert faces.shape == (8 * 6 * 2 - 2 * 8, 3)

    def test_unit_length(self):
        directions, _, _ = uv_sphere(12, 9)
        np.testing.assert_allclose(np.linalg.norm(directions, axis=1), 1.0)

    def test_rows_run_north_to_south(self):
        directions, uvs, _ = uv_sphere(8, 6)
        np.testing.assert_allclose(directions[:9, 1], 1.0)
        np.testing.assert_allclose(directions[-9:, 1], -1.0)
        np.testing.assert_allclose(uvs[:9, 1], 1.0)
        np.testing.assert_allclose(uvs[-9:, 1], 0.0)

    def test_pole_u_offsets(self):
        _, uvs, _ = uv_sphere(8, 6)
        np.testing.assert_allclose(uvs[0, 0], 0.5 / 8)
        np.testing.assert_allclose(uvs[-9, 0], -0.5 / 8)
        np.testing.assert_allclose(uvs[9:18, 0], np.arange(9) / 8)

    def test_no_degenerate_faces(self):
        directions, _, faces = uv_sphere(16, 12)
        areas = np.linalg.norm(face_normals(directions, faces), axis=1)
        assert areas.min() > 1e-9

    def test_faces_wind_outward(self):
        directions, _, faces = uv_sphere(16, 12)
        normals = face_normals(directions, faces)
        centroids = directions[faces].mean(axis=1)
        assert np.all(np.einsum('ij,ij->i', normals, centroids) > 0)

    def test_unreferenced_pole_vertices_get_normals(self):
        directions, _, faces = uv_sphere(8, 6)
        unused = np.setdiff1d(np.arange(len(directions)), faces.ravel())
        # north seam vertex and the first south pole vertex
        np.testing.assert_array_equal(unused, [8, 54])

        normals = recompute_vertex_normals(directions * 1.5, faces)
        np.testing.assert_allclose(np.linalg.norm(normals, axis=1), 1.0, atol=1e-9)
        np.testing.assert_allclose(normals[unused], directions[unused], atol=1e-12)

    def test_too_few_segments(self):
        with pytest.raises(ValueError):
            uv_sphere(2, 6)
        with pytest.raises(ValueError):
            uv_sphere(8, 1)


class TestTessellationClamp:
    """Segments follow the image size within fixed bounds."""

    def test_tiny_image(self):
        assert Config().clamp_segments(2, 2) == (8, 6)

    def test_large_image(self):
        assert Config().clamp_segments(1024, 768) == (256, 256)

    def test_in_range(self):
        assert Config().clamp_segments(100, 50) == (99, 49)

    def test_checker_globe_uses_minimums(self, checker_field):
        geometry = build_globe(checker_field)
        assert (geometry.width_segments, geometry.height_segments) == (8, 6)
        assert geometry.n_vertices == 63
        assert geometry.n_triangles == 80


# ============== Displacement Tests ==============

class TestDisplacement:
    """Radius = 1 + (h - 0.5) * 2 * height_scale."""

    def test_effective_height_scale(self):
        assert effective_height_scale(3.0, 1.0) == pytest.approx(0.06)
        assert effective_height_scale(3.0, 2.0) == pytest.approx(0.12)
        assert effective_height_scale(10.0, 1.0, divisor=100.0) == pytest.approx(0.1)

    @pytest.mark.parametrize("scale", [0.02, 0.06, 0.2])
    def test_mid_height_is_unit_sphere(self, flat_field, scale):
        geometry = build_globe(flat_field, GlobeParams(height_scale=scale))
        np.testing.assert_allclose(geometry.radii, 1.0, atol=1e-12)

    def test_checker_radii(self, checker_field):
        geometry = build_globe(checker_field, GlobeParams(height_scale=0.06))
        radii = geometry.radii
        low = np.isclose(radii, 0.94)
        high = np.isclose(radii, 1.06)
        assert np.all(low | high)
        assert low.any() and high.any()

    def test_checker_columns(self, checker_field):
        geometry = build_globe(checker_field, GlobeParams(height_scale=0.06))
        u = np.clip(geometry.uvs[:, 0], 0, 1)
        np.testing.assert_allclose(geometry.radii[u < 0.5], 0.94)
        np.testing.assert_allclose(geometry.radii[u > 0.5], 1.06)

    def test_ramp_displaces_south_outward(self, ramp_field):
        geometry = build_globe(ramp_field, GlobeParams(height_scale=0.1))
        radii = geometry.radii
        y = geometry.positions[:, 1]
        # image top maps to the north pole
        assert radii[y > 0.9 * radii].max() < 1.0
        assert radii[y < -0.9 * radii].min() > 1.0

    def test_zero_scale_is_sphere(self, ramp_field):
        geometry = build_globe(ramp_field, GlobeParams(height_scale=0.0))
        np.testing.assert_allclose(geometry.radii, 1.0, atol=1e-12)

    def test_normals_unit_and_outward(self, ramp_field):
        geometry = build_globe(ramp_field, GlobeParams(height_scale=0.06))
        np.testing.assert_allclose(np.linalg.norm(geometry.normals, axis=1), 1.0, atol=1e-9)
        dots = np.einsum('ij,ij->i', geometry.normals, geometry.positions)
        assert np.all(dots > 0)

    def test_buffers_read_only(self, flat_field):
        geometry = build_globe(flat_field)
        with pytest.raises(ValueError):
            geometry.positions[0, 0] = 5.0


# ============== Coloring Tests ==============

class TestColoring:
    """Palette and contours applied per vertex."""

    def test_colors_follow_palette(self, ramp_field):
        params = GlobeParams(palette=Palette.VIRIDIS)
        geometry = build_globe(ramp_field, params)
        heights = ramp_field.sample_uv(geometry.uvs[:, 0], geometry.uvs[:, 1])
        np.testing.assert_allclose(geometry.colors, palette_colors("viridis", heights))

    def test_contours_darken_odd_bands(self, ramp_field):
        plain = build_globe(ramp_field, GlobeParams(palette="grayscale"))
        banded = build_globe(ramp_field, GlobeParams(
            palette="grayscale", show_contours=True, contour_steps=6
        ))
        heights = ramp_field.sample_uv(plain.uvs[:, 0], plain.uvs[:, 1])
        odd = np.floor(heights * 6) % 2 == 1
        np.testing.assert_allclose(banded.colors[odd], plain.colors[odd] * 0.88)
        np.testing.assert_allclose(banded.colors[~odd], plain.colors[~odd])

    def test_contours_leave_geometry_alone(self, ramp_field):
        plain = build_globe(ramp_field)
        banded = build_globe(ramp_field, GlobeParams(show_contours=True))
        np.testing.assert_array_equal(plain.positions, banded.positions)

    def test_image_palette_textured(self, ramp_field):
        geometry = build_globe(ramp_field, GlobeParams(palette="image"))
        assert geometry.textured
        heights = ramp_field.sample_uv(geometry.uvs[:, 0], geometry.uvs[:, 1])
        np.testing.assert_allclose(geometry.colors, palette_colors("geographic", heights))


class TestTrimeshConversion:
    """Export-ready meshes."""

    def test_vertex_colors(self, ramp_field):
        mesh = build_globe(ramp_field).to_trimesh()
        assert len(mesh.vertices) == (19 + 1) * (15 + 1)
        colors = mesh.visual.vertex_colors
        assert colors.shape == (len(mesh.vertices), 4)
        assert np.all(colors[:, 3] == 255)

    def test_stats(self, ramp_field):
        mesh = build_globe(ramp_field, GlobeParams(height_scale=0.1)).to_trimesh()
        stats = compute_mesh_stats(mesh)
        assert stats["n_faces"] == len(mesh.faces)
        assert stats["min_radius"] == pytest.approx(0.9)
        assert stats["max_radius"] == pytest.approx(1.1)


class TestDefaultGlobe:
    """Placeholder before an image loads."""

    def test_default_sphere(self):
        geometry = build_default_globe()
        assert (geometry.width_segments, geometry.height_segments) == (16, 12)
        assert geometry.n_vertices == 17 * 13
        np.testing.assert_allclose(geometry.radii, 1.0)
        np.testing.assert_allclose(geometry.colors, 1.0)


# ============== Cache Tests ==============

class TestGlobeCache:
    """Rebuild only when inputs change."""

    def test_same_inputs_same_object(self, ramp_field):
        cache = GlobeCache()
        params = GlobeParams()
        first = cache.get(ramp_field, params)
        second = cache.get(ramp_field, GlobeParams())
        assert first is second
        assert cache.stats() == {"hits": 1, "misses": 1, "hit_rate": 0.5}

    def test_changed_params_rebuild(self, ramp_field):
        cache = GlobeCache()
        first = cache.get(ramp_field, GlobeParams())
        second = cache.get(ramp_field, GlobeParams(palette="ice"))
        assert first is not second
        assert cache.key == cache_key(ramp_field, GlobeParams(palette="ice"))

    def test_new_field_rebuilds(self, ramp_field):
        cache = GlobeCache()
        first = cache.get(ramp_field, GlobeParams())
        copy = HeightField(width=ramp_field.width, height=ramp_field.height,
                           values=ramp_field.values)
        second = cache.get(copy, GlobeParams())
        assert first is not second

    def test_no_field_gives_default(self):
        cache = GlobeCache()
        geometry = cache.get(None, GlobeParams())
        assert geometry.width_segments == 16
        assert cache.get(None, GlobeParams()) is geometry

    def test_invalidate(self, ramp_field):
        cache = GlobeCache()
        first = cache.get(ramp_field, GlobeParams())
        cache.invalidate()
        assert cache.key is None
        assert cache.get(ramp_field, GlobeParams()) is not first


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
