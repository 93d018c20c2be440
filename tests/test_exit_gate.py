import math

import numpy as np
import pytest

from integral_curves.mesh.surface import TriangleMesh
from integral_curves.trace.config import TraceConfig
from integral_curves.trace.errors import GeometricDegeneracyError
from integral_curves.trace.exit_gate import surface_exit_edge, volume_exit_facet
from integral_curves.trace.intersections import (
    angle_rad,
    normalize,
    ray_triangle_intersection,
    triangle_law_of_sines,
)


# ============== Fixtures ==============

@pytest.fixture
def unit_triangle():
    return TriangleMesh([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], [[0, 1, 2]])


def _unit(*xyz):
    return normalize(np.array(xyz, dtype=np.float64))


# ============== Geometry kernels ==============

class TestKernels:
    def test_angle(self):
        a = np.array([1.0, 0.0, 0.0])
        b = np.array([0.0, 2.0, 0.0])
        assert angle_rad(a, b) == pytest.approx(math.pi / 2)
        assert angle_rad(a, -a) == pytest.approx(math.pi)
        assert angle_rad(a, 3.0 * a) == pytest.approx(0.0, abs=1e-7)

    def test_angle_with_zero_vector(self):
        assert angle_rad(np.zeros(3), np.array([1.0, 2.0, 3.0])) == pytest.approx(math.pi / 2)

    def test_law_of_sines(self):
        third = math.pi / 3
        assert triangle_law_of_sines(third, third, 2.0) == pytest.approx(2.0)
        # 30-60-90 triangle: hypotenuse 2, short side 1
        assert triangle_law_of_sines(math.pi / 2, math.pi / 6, 2.0) == pytest.approx(1.0)

    def test_normalize_keeps_zero(self):
        np.testing.assert_array_equal(normalize(np.zeros(3)), np.zeros(3))
        np.testing.assert_allclose(normalize(np.array([3.0, 4.0, 0.0])), [0.6, 0.8, 0.0])

    def test_ray_hits_triangle(self):
        v0, v1, v2 = np.eye(3)
        hit, point, t = ray_triangle_intersection(np.zeros(3), _unit(1, 1, 1), v0, v1, v2)
        assert hit
        np.testing.assert_allclose(point, [1 / 3, 1 / 3, 1 / 3])
        assert t == pytest.approx(1 / math.sqrt(3))

    def test_ray_misses_behind_origin(self):
        v0, v1, v2 = np.eye(3)
        hit, _, _ = ray_triangle_intersection(np.zeros(3), _unit(-1, -1, -1), v0, v1, v2)
        assert not hit

    def test_ray_parallel_to_plane(self):
        v0, v1, v2 = np.eye(3)
        hit, _, _ = ray_triangle_intersection(np.zeros(3), _unit(1, -1, 0), v0, v1, v2)
        assert not hit

    def test_origin_on_triangle_is_a_hit(self):
        v0 = np.array([0.0, 0.0, 0.0])
        v1 = np.array([1.0, 0.0, 0.0])
        v2 = np.array([0.0, 1.0, 0.0])
        hit, point, t = ray_triangle_intersection(v1.copy(), _unit(0, 0, 1), v0, v1, v2)
        assert hit
        assert t == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(point, v1)


# ============== Exit gates ==============

class TestSurfaceExitEdge:
    @pytest.mark.parametrize(
        "direction, edge",
        [
            ((1.0, 0.0, 0.0), 1),
            ((1.0, -1.0, 0.0), 0),
            ((-1.0, 0.0, 0.0), 2),
        ],
    )
    def test_from_centroid(self, unit_triangle, direction, edge):
        centroid = np.array([1 / 3, 1 / 3, 0.0])
        assert surface_exit_edge(unit_triangle, 0, centroid, _unit(*direction)) == edge

    def test_tie_takes_lowest_vertex(self, unit_triangle):
        # from vertex 0 both other vertices lie at pi/2 of the direction
        pos = np.zeros(3)
        assert surface_exit_edge(unit_triangle, 0, pos, _unit(0, -1, 0)) == 2


class TestVolumeExitFacet:
    def test_exit_from_vertex(self, two_tets):
        facet, exit_pos = volume_exit_facet(
            two_tets, 0, np.zeros(3), _unit(1, 1, 1), TraceConfig()
        )
        assert facet == 3
        np.testing.assert_allclose(exit_pos, [1 / 3, 1 / 3, 1 / 3], atol=1e-12)

    def test_exit_from_entry_facet(self, two_tets):
        start = np.array([1 / 3, 1 / 3, 1 / 3])
        facet, exit_pos = volume_exit_facet(two_tets, 1, start, _unit(1, 1, 0.5), TraceConfig())
        assert facet == 1
        np.testing.assert_allclose(exit_pos, [7 / 9, 7 / 9, 5 / 9], atol=1e-9)

    def test_no_exit_raises(self, two_tets):
        outside = np.array([5.0, 5.0, 5.0])
        with pytest.raises(GeometricDegeneracyError) as excinfo:
            volume_exit_facet(two_tets, 0, outside, _unit(1, 1, 1), TraceConfig())
        assert excinfo.value.element_id == 0
