"""
Tests for orbit kinematics and trails.
"""

import pytest
import numpy as np
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from orbits.kinematics import OrbitType, OrbitParams, CURVES, orbit_position, sample_orbit_path
from orbits.trail import TrailBuffer


# ============== Kinematics Tests ==============

class TestCircle:
    """Reference curve."""

    def test_quarter_turn(self):
        params = OrbitParams(OrbitType.CIRCLE, radius=2.0, speed=1.0)
        np.testing.assert_allclose(orbit_position(0.0, params), [2.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(orbit_position(np.pi / 2, params), [0.0, 0.0, 2.0], atol=1e-12)

    def test_constant_radius_in_plane(self):
        params = OrbitParams(OrbitType.CIRCLE, radius=3.0, speed=0.7, phase=0.4)
        points = orbit_position(np.linspace(0, 20, 50), params)
        np.testing.assert_allclose(np.linalg.norm(points, axis=1), 3.0)
        np.testing.assert_allclose(points[:, 1], 0.0)

    def test_phase_shifts_start(self):
        params = OrbitParams(OrbitType.CIRCLE, radius=1.0, phase=np.pi)
        np.testing.assert_allclose(orbit_position(0.0, params), [-1.0, 0.0, 0.0], atol=1e-12)


class TestCurveFamilies:
    """Shape checks for each family."""

    def test_every_type_has_a_curve(self):
        assert set(CURVES) == set(OrbitType)

    def test_ellipse_axes(self):
        params = OrbitParams(OrbitType.ELLIPSE, radius=2.5, radius_y=1.5, speed=1.0)
        np.testing.assert_allclose(orbit_position(0.0, params), [2.5, 0, 0], atol=1e-12)
        np.testing.assert_allclose(orbit_position(np.pi / 2, params), [0, 0, 1.5], atol=1e-12)

    def test_inclined_ellipse_tilts_minor_axis(self):
        tilt = np.pi / 6
        params = OrbitParams(OrbitType.INCLINED_ELLIPSE, radius=2.0, radius_y=1.0,
                             speed=1.0, inclination=tilt)
        np.testing.assert_allclose(
            orbit_position(np.pi / 2, params),
            [0.0, np.sin(tilt), np.cos(tilt)],
            atol=1e-12
        )

    def test_inclined_ellipse_zero_tilt_is_ellipse(self):
        t = np.linspace(0, 10, 17)
        flat = OrbitParams(OrbitType.ELLIPSE, speed=0.9)
        tilted = OrbitParams(OrbitType.INCLINED_ELLIPSE, speed=0.9, inclination=0.0)
        np.testing.assert_allclose(orbit_position(t, flat), orbit_position(t, tilted))

    def test_lissajous_vertical_ignores_phase(self):
        params = OrbitParams(OrbitType.LISSAJOUS, radius=2.0, radius_y=1.0,
                             speed=0.5, phase=1.0, k=3)
        t = 0.7
        x, y, z = orbit_position(t, params)
        assert x == pytest.approx(2.0 * np.sin(0.5 * t + 1.0))
        assert y == pytest.approx(np.sin(3 * 0.5 * t))
        assert z == pytest.approx(2.0 * np.cos(0.5 * t + 1.0))

    def test_rose_petal_tips(self):
        params = OrbitParams(OrbitType.ROSE, radius=2.0, speed=1.0, k=3)
        np.testing.assert_allclose(orbit_position(0.0, params), [2.0, 0, 0], atol=1e-12)
        # cos(3 * pi/6) = 0 -> passes through the origin
        np.testing.assert_allclose(orbit_position(np.pi / 6, params), [0, 0, 0], atol=1e-12)

    def test_lemniscate_start(self):
        params = OrbitParams(OrbitType.LEMNISCATE, radius=1.0, speed=1.0)
        np.testing.assert_allclose(orbit_position(0.0, params), [np.sqrt(2), 0, 0], atol=1e-12)

    def test_lemniscate_singularity_collapses(self):
        params = OrbitParams(OrbitType.LEMNISCATE, radius=1.0, speed=1.0)
        position = orbit_position(3 * np.pi / 4, params)
        assert np.all(np.isfinite(position))

    def test_trefoil_start(self):
        params = OrbitParams(OrbitType.TREFOIL, radius=2.0)
        np.testing.assert_allclose(orbit_position(0.0, params), [0.0, -0.6, 0.0], atol=1e-12)

    def test_figure8_knot_start(self):
        params = OrbitParams(OrbitType.FIGURE8_KNOT, radius=2.0)
        np.testing.assert_allclose(orbit_position(0.0, params), [1.5, 0.0, 0.0], atol=1e-12)

    def test_epicycloid_start(self):
        # (a + b) - b with a = 0.6R, b = 0.2R
        params = OrbitParams(OrbitType.EPICYCLOID, radius=2.5)
        np.testing.assert_allclose(orbit_position(0.0, params), [1.5, 0.0, 0.0], atol=1e-12)

    def test_planar_families(self):
        t = np.linspace(0, 30, 101)
        for orbit_type in (OrbitType.CIRCLE, OrbitType.ELLIPSE, OrbitType.ROSE,
                           OrbitType.LEMNISCATE, OrbitType.EPICYCLOID):
            points = orbit_position(t, OrbitParams(orbit_type))
            np.testing.assert_allclose(points[:, 1], 0.0, err_msg=orbit_type.value)


class TestPeriodicity:
    """position(t + 2π/w) == position(t) for integer k."""

    @pytest.mark.parametrize("orbit_type", list(OrbitType))
    def test_periodic(self, orbit_type):
        params = OrbitParams(orbit_type, radius=2.5, radius_y=1.5, speed=0.2,
                             phase=0.3, inclination=0.4, k=3)
        t = np.array([0.1, 1.3, 4.2, 7.9, 13.0])
        np.testing.assert_allclose(
            orbit_position(t + params.period, params),
            orbit_position(t, params),
            atol=1e-9
        )

    def test_negative_speed_period(self):
        params = OrbitParams(speed=-0.5)
        assert params.period == pytest.approx(4 * np.pi)

    def test_stationary(self):
        params = OrbitParams(OrbitType.ROSE, speed=0.0)
        assert params.period is None
        np.testing.assert_allclose(orbit_position(100.0, params), orbit_position(0.0, params))


class TestParsing:
    """Curve names."""

    def test_known_names(self):
        assert OrbitType.parse("figure8Knot") is OrbitType.FIGURE8_KNOT
        assert OrbitParams("inclinedEllipse").orbit_type is OrbitType.INCLINED_ELLIPSE

    def test_unknown_falls_back_to_circle(self):
        assert OrbitType.parse("spirograph") is OrbitType.CIRCLE

    def test_to_dict(self):
        data = OrbitParams(OrbitType.ROSE, k=5).to_dict()
        assert data["orbit_type"] == "rose"
        assert data["k"] == 5


class TestSampleOrbitPath:
    """One revolution preview."""

    def test_shape_and_start(self):
        params = OrbitParams(OrbitType.TREFOIL)
        path = sample_orbit_path(params, samples=64)
        assert path.shape == (64, 3)
        np.testing.assert_allclose(path[0], orbit_position(0.0, params))

    def test_closes_on_itself(self):
        params = OrbitParams(OrbitType.CIRCLE, radius=1.0, speed=1.0)
        path = sample_orbit_path(params, samples=8)
        np.testing.assert_allclose(path[4], [-1.0, 0.0, 0.0], atol=1e-12)

    def test_stationary_repeats(self):
        path = sample_orbit_path(OrbitParams(speed=0.0), samples=5)
        np.testing.assert_allclose(path, np.tile([2.5, 0.0, 0.0], (5, 1)))


# ============== Trail Tests ==============

class TestTrailBuffer:
    """Bounded oldest-first trail."""

    def test_five_ticks_length_three(self):
        trail = TrailBuffer(3)
        for tick in range(1, 6):
            trail.append([tick, 0, 0])
        assert len(trail) == 3
        np.testing.assert_array_equal(trail.points()[:, 0], [3, 4, 5])
        np.testing.assert_array_equal(trail.latest(), [5, 0, 0])

    def test_partial(self):
        trail = TrailBuffer(4)
        trail.append([1, 1, 1])
        trail.append([2, 2, 2])
        np.testing.assert_array_equal(trail.points(), [[1, 1, 1], [2, 2, 2]])

    def test_never_exceeds_capacity(self):
        trail = TrailBuffer(10)
        for i in range(1000):
            trail.append([i, 0, 0])
            assert len(trail) <= 10
        np.testing.assert_array_equal(trail.points()[:, 0], np.arange(990, 1000))

    def test_points_is_copy(self):
        trail = TrailBuffer(2)
        trail.append([1, 2, 3])
        points = trail.points()
        points[0] = 0
        np.testing.assert_array_equal(trail.latest(), [1, 2, 3])

    def test_empty(self):
        trail = TrailBuffer(3)
        assert trail.points().shape == (0, 3)
        with pytest.raises(IndexError):
            trail.latest()

    def test_clear(self):
        trail = TrailBuffer(3)
        trail.append([1, 0, 0])
        trail.clear()
        assert len(trail) == 0

    def test_shrink_keeps_recent(self):
        trail = TrailBuffer(5)
        for i in range(7):
            trail.append([i, 0, 0])
        trail.resize(2)
        assert trail.capacity == 2
        np.testing.assert_array_equal(trail.points()[:, 0], [5, 6])
        trail.append([7, 0, 0])
        np.testing.assert_array_equal(trail.points()[:, 0], [6, 7])

    def test_grow_keeps_all(self):
        trail = TrailBuffer(2)
        for i in range(3):
            trail.append([i, 0, 0])
        trail.resize(4)
        trail.append([3, 0, 0])
        np.testing.assert_array_equal(trail.points()[:, 0], [1, 2, 3])

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            TrailBuffer(0)
        with pytest.raises(ValueError):
            TrailBuffer(3).resize(0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
