import numpy as np
import pytest

from integral_curves.mesh.base import BOUNDARY, Boundary
from integral_curves.mesh.surface import TriangleMesh
from integral_curves.mesh.volume import TetrahedralMesh


class TestTriangleMesh:
    def test_adjacency(self, square_mesh):
        # tri 0 = (0, 1, 3), tri 1 = (0, 3, 2) share the diagonal (0, 3)
        assert square_mesh.adjacent_along(0, 0, 3) == 1
        assert square_mesh.adjacent_along(1, 3, 0) == 0
        assert square_mesh.adjacent_along(0, 1, 3) is BOUNDARY
        assert square_mesh.adjacent_through_gate(0, 2) == 1
        assert square_mesh.adjacent_through_gate(0, 0) is BOUNDARY

    def test_normals_follow_winding(self, square_mesh):
        for eid in range(square_mesh.num_elements):
            np.testing.assert_allclose(square_mesh.triangle_normal(eid), [0.0, 0.0, 1.0])
        np.testing.assert_allclose(square_mesh.areas, [0.5, 0.5])

    def test_incidence_is_sorted(self, grid_4x2):
        # interior vertex (1, 1) touches six triangles
        assert grid_4x2.vertex_elements(6) == (0, 1, 3, 8, 10, 11)
        assert grid_4x2.vertex_elements(0) == (0, 1)

    def test_vertex_neighbors(self, square_mesh):
        assert square_mesh.vertex_neighbors(0) == (1, 2, 3)
        assert square_mesh.vertex_neighbors(1) == (0, 3)

    def test_local_maxima(self, grid_4x2, square_mesh):
        assert grid_4x2.local_maxima().tolist() == [4, 9, 14]
        assert square_mesh.local_maxima().size == 0

    def test_element_accessors(self, square_mesh):
        assert square_mesh.element_vertex_ids(1) == (0, 3, 2)
        np.testing.assert_array_equal(square_mesh.element_vertex(1, 2), [0.0, 1.0, 0.0])
        assert square_mesh.element_contains_vertex(1, 2)
        assert not square_mesh.element_contains_vertex(0, 2)
        assert square_mesh.bbox_diagonal() == pytest.approx(np.sqrt(2.0))
        np.testing.assert_array_equal(square_mesh.triangles, [[0, 1, 3], [0, 3, 2]])

    def test_element_vertices_is_a_copy(self, square_mesh):
        verts = square_mesh.element_vertices(0)
        verts[0] = 99.0
        np.testing.assert_array_equal(square_mesh.vertex(0), [0.0, 0.0, 0.0])

    def test_arrays_are_read_only(self, square_mesh_with_peak):
        with pytest.raises(ValueError):
            square_mesh_with_peak.vertices[0, 0] = 1.0
        with pytest.raises(ValueError):
            square_mesh_with_peak.scalars[0] = 1.0

    def test_min_scalar_needs_scalars(self, square_mesh):
        with pytest.raises(ValueError):
            square_mesh.element_min_scalar(0)

    @pytest.mark.parametrize(
        "vertices, triangles",
        [
            ([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]], [[0, 1, 2]]),
            ([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], [[0, 1, 3]]),
            ([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], [[0, 1, 2, 0]]),
        ],
    )
    def test_rejects_bad_input(self, vertices, triangles):
        with pytest.raises(ValueError):
            TriangleMesh(vertices, triangles)

    def test_rejects_bad_scalars(self):
        with pytest.raises(ValueError):
            TriangleMesh(np.eye(3), [[0, 1, 2]], scalars=[1.0, 2.0])

    def test_boundary_sentinel(self):
        assert BOUNDARY is Boundary.BOUNDARY
        assert BOUNDARY != 0


class TestTetrahedralMesh:
    def test_shared_facet(self, two_tets):
        assert two_tets.adjacent_through_facet(0, 3) == 1
        assert two_tets.adjacent_through_facet(1, 0) == 0
        for facet in range(3):
            assert two_tets.adjacent_through_facet(0, facet) is BOUNDARY

    def test_facet_vertex_ids(self, two_tets):
        assert two_tets.facet_vertex_ids(0, 3) == (1, 2, 3)
        assert sorted(two_tets.facet_vertex_ids(1, 0)) == [1, 2, 3]

    def test_boundary_facets(self, two_tets, three_tets):
        assert two_tets.boundary_facets().shape == (6, 3)
        assert three_tets.boundary_facets().shape == (8, 3)
        assert two_tets.faces().shape == (6, 3)

    def test_tets(self, two_tets):
        np.testing.assert_array_equal(two_tets.tets, [[0, 1, 2, 3], [1, 2, 3, 4]])

    def test_volumes(self, two_tets):
        np.testing.assert_allclose(two_tets.volumes, [1 / 6, 1 / 3])

    def test_incidence(self, three_tets):
        assert three_tets.vertex_elements(1) == (0, 1, 2)
        assert three_tets.vertex_elements(4) == (1,)

    def test_warns_on_flat_tet(self, caplog):
        verts = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0]]
        with caplog.at_level("WARNING"):
            mesh = TetrahedralMesh(verts, [[0, 1, 2, 3]])
        assert mesh.volumes[0] == 0.0
        assert "degenerate tetrahedra" in caplog.text
