"""
Shared meshes for the tracing tests.

Grid numbering: vertex (i, j) -> j * (nx + 1) + i; square (i, j) holds the
lower triangle 2 * (j * nx + i) = ((i,j), (i+1,j), (i+1,j+1)) and the upper
triangle 2 * (j * nx + i) + 1 = ((i,j), (i+1,j+1), (i,j+1)).
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from integral_curves.mesh.surface import TriangleMesh
from integral_curves.mesh.volume import TetrahedralMesh


def grid_arrays(nx, ny):
    verts = np.array(
        [(i, j, 0.0) for j in range(ny + 1) for i in range(nx + 1)], dtype=np.float64
    )

    def vid(i, j):
        return j * (nx + 1) + i

    tris = []
    for j in range(ny):
        for i in range(nx):
            a, b, c, d = vid(i, j), vid(i + 1, j), vid(i + 1, j + 1), vid(i, j + 1)
            tris += [(a, b, c), (a, c, d)]
    return verts, np.array(tris, dtype=np.int64)


# ============== Surface fixtures ==============

@pytest.fixture
def square_arrays():
    """Unit square split along (0,0)-(1,1): tri 0 = (0,1,3), tri 1 = (0,3,2)."""
    return grid_arrays(1, 1)


@pytest.fixture
def square_mesh(square_arrays):
    verts, tris = square_arrays
    return TriangleMesh(verts, tris)


@pytest.fixture
def square_mesh_with_peak(square_arrays):
    """u = 2x - y: vertex 1 at (1, 0) is the only local maximum."""
    verts, tris = square_arrays
    return TriangleMesh(verts, tris, scalars=2.0 * verts[:, 0] - verts[:, 1])


@pytest.fixture
def strip_mesh():
    """2 x 1 grid used for the skins-into scenario."""
    verts, tris = grid_arrays(2, 1)
    return TriangleMesh(verts, tris)


@pytest.fixture
def grid_4x2():
    verts, tris = grid_arrays(4, 2)
    return TriangleMesh(verts, tris, scalars=verts[:, 0].copy())


@pytest.fixture
def grid_4x2_plain():
    verts, tris = grid_arrays(4, 2)
    return TriangleMesh(verts, tris)


# ============== Volume fixtures ==============

TET_VERTS = np.array(
    [
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
        [1.0, 1.0, 1.0],
        [0.0, -1.0, 0.0],
    ]
)


@pytest.fixture
def two_tets():
    """Tets (0,1,2,3) and (1,2,3,4) glued along facet (1,2,3)."""
    return TetrahedralMesh(TET_VERTS[:5], [[0, 1, 2, 3], [1, 2, 3, 4]])


@pytest.fixture
def two_tets_with_peak():
    """u = x + y + z: vertex 4 is the only local maximum."""
    verts = TET_VERTS[:5]
    return TetrahedralMesh(verts, [[0, 1, 2, 3], [1, 2, 3, 4]], scalars=verts.sum(axis=1))


@pytest.fixture
def three_tets():
    """two_tets plus the mirror of tet 0 across y = 0: (0,1,3,5)."""
    return TetrahedralMesh(TET_VERTS, [[0, 1, 2, 3], [1, 2, 3, 4], [0, 1, 3, 5]])


@pytest.fixture
def three_tets_and_spike():
    """three_tets plus tet 3 = (1,6,7,8) on the x >= 1 side, touching only vertex 1."""
    spike = np.array([[2.0, 0.0, 0.0], [1.0, -1.0, 0.0], [1.0, 0.0, -1.0]])
    return TetrahedralMesh(
        np.vstack([TET_VERTS, spike]),
        [[0, 1, 2, 3], [1, 2, 3, 4], [0, 1, 3, 5], [1, 6, 7, 8]],
    )


# ============== VTK writers ==============

def _vtk_points(vertices):
    from vtkmodules.vtkCommonCore import vtkPoints

    pts = vtkPoints()
    for v in vertices:
        pts.InsertNextPoint(float(v[0]), float(v[1]), float(v[2]))
    return pts


def _vtk_scalars(values, name):
    from vtkmodules.vtkCommonCore import vtkDoubleArray

    arr = vtkDoubleArray()
    arr.SetName(name)
    for s in values:
        arr.InsertNextValue(float(s))
    return arr


@pytest.fixture
def write_vtp():
    def _write(path, vertices, triangles, scalars=None, name="u"):
        from vtkmodules.vtkCommonDataModel import vtkCellArray, vtkPolyData
        from vtkmodules.vtkIOXML import vtkXMLPolyDataWriter

        cells = vtkCellArray()
        for tri in triangles:
            cells.InsertNextCell(3)
            for vid in tri:
                cells.InsertCellPoint(int(vid))

        poly = vtkPolyData()
        poly.SetPoints(_vtk_points(vertices))
        poly.SetPolys(cells)
        if scalars is not None:
            poly.GetPointData().AddArray(_vtk_scalars(scalars, name))

        writer = vtkXMLPolyDataWriter()
        writer.SetFileName(str(path))
        writer.SetInputData(poly)
        writer.Write()
        return path

    return _write


@pytest.fixture
def write_unstructured():
    def _write(path, vertices, tets, scalars=None, name="u", legacy=False):
        from vtkmodules.vtkCommonCore import vtkIdList
        from vtkmodules.vtkCommonDataModel import VTK_TETRA, vtkUnstructuredGrid

        grid = vtkUnstructuredGrid()
        grid.SetPoints(_vtk_points(vertices))
        grid.Allocate(len(tets))
        for tet in tets:
            ids = vtkIdList()
            for vid in tet:
                ids.InsertNextId(int(vid))
            grid.InsertNextCell(VTK_TETRA, ids)
        if scalars is not None:
            grid.GetPointData().AddArray(_vtk_scalars(scalars, name))

        if legacy:
            from vtkmodules.vtkIOLegacy import vtkUnstructuredGridWriter as Writer
        else:
            from vtkmodules.vtkIOXML import vtkXMLUnstructuredGridWriter as Writer
        writer = Writer()
        writer.SetFileName(str(path))
        writer.SetInputData(grid)
        writer.Write()
        return path

    return _write
