from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from .surface import TriangleMesh
from .volume import TetrahedralMesh

LOG = logging.getLogger(__name__)

VTK_TETRA = 10


def _read_point_scalars(dataset, scalar_array: str | None, n_points: int):
    if scalar_array is None:
        return None
    arr = dataset.GetPointData().GetArray(scalar_array)
    if arr is None:
        raise RuntimeError(f"Missing required PointData array '{scalar_array}'")
    return np.array([arr.GetTuple1(i) for i in range(n_points)], dtype=np.float64)


def _points_array(dataset) -> np.ndarray:
    points = dataset.GetPoints()
    if points is None or dataset.GetNumberOfPoints() == 0:
        raise RuntimeError("Mesh has no points.")
    return np.array(
        [points.GetPoint(i) for i in range(dataset.GetNumberOfPoints())], dtype=np.float64
    )


def load_triangle_mesh(mesh_path: Path, *, scalar_array: str | None = None) -> TriangleMesh:
    """
    Load a triangular surface from .vtp (XML PolyData) or legacy .vtk (PolyData).
    Polygons are triangulated; an optional PointData array becomes the
    scalar field.
    """
    mesh_path = Path(mesh_path)
    if not mesh_path.exists():
        raise FileNotFoundError(mesh_path)

    from vtkmodules.vtkFiltersCore import vtkTriangleFilter
    from vtkmodules.vtkIOLegacy import vtkPolyDataReader
    from vtkmodules.vtkIOXML import vtkXMLPolyDataReader

    suffix = mesh_path.suffix.lower()
    if suffix == ".vtp":
        reader = vtkXMLPolyDataReader()
    elif suffix == ".vtk":
        reader = vtkPolyDataReader()
    else:
        raise ValueError(f"Unsupported mesh extension '{suffix}'. Use .vtk or .vtp (PolyData).")

    reader.SetFileName(str(mesh_path))
    reader.Update()
    poly = reader.GetOutput()
    if poly is None:
        raise RuntimeError(f"VTK reader produced no output for {mesh_path}")

    tri_f = vtkTriangleFilter()
    tri_f.SetInputData(poly)
    tri_f.Update()
    tri_poly = tri_f.GetOutput()

    vertices = _points_array(tri_poly)
    triangles = []
    for cid in range(tri_poly.GetNumberOfCells()):
        cell = tri_poly.GetCell(cid)
        if cell is None or cell.GetNumberOfPoints() != 3:
            continue
        triangles.append([cell.GetPointId(0), cell.GetPointId(1), cell.GetPointId(2)])

    if not triangles:
        raise RuntimeError("No triangles extracted from mesh (unexpected).")

    scalars = _read_point_scalars(tri_poly, scalar_array, vertices.shape[0])
    LOG.info("Loaded %d triangles, %d vertices from %s.", len(triangles), vertices.shape[0], mesh_path)
    return TriangleMesh(vertices, np.asarray(triangles, dtype=np.int64), scalars)


def load_tetrahedral_mesh(mesh_path: Path, *, scalar_array: str | None = None) -> TetrahedralMesh:
    """
    Load a tetrahedral mesh from .vtu (XML UnstructuredGrid) or legacy .vtk.
    Cells other than VTK_TETRA are skipped.
    """
    mesh_path = Path(mesh_path)
    if not mesh_path.exists():
        raise FileNotFoundError(mesh_path)

    from vtkmodules.vtkIOLegacy import vtkUnstructuredGridReader
    from vtkmodules.vtkIOXML import vtkXMLUnstructuredGridReader

    suffix = mesh_path.suffix.lower()
    if suffix == ".vtu":
        reader = vtkXMLUnstructuredGridReader()
    elif suffix == ".vtk":
        reader = vtkUnstructuredGridReader()
    else:
        raise ValueError(f"Unsupported mesh extension '{suffix}'. Use .vtk or .vtu (UnstructuredGrid).")

    reader.SetFileName(str(mesh_path))
    reader.Update()
    grid = reader.GetOutput()
    if grid is None:
        raise RuntimeError(f"VTK reader produced no output for {mesh_path}")

    vertices = _points_array(grid)
    tets = []
    n_skipped = 0
    for cid in range(grid.GetNumberOfCells()):
        if grid.GetCellType(cid) != VTK_TETRA:
            n_skipped += 1
            continue
        cell = grid.GetCell(cid)
        tets.append([cell.GetPointId(k) for k in range(4)])

    if n_skipped:
        LOG.warning("Skipped %d non-tetrahedral cell(s).", n_skipped)
    if not tets:
        raise RuntimeError("No tetrahedra extracted from mesh.")

    scalars = _read_point_scalars(grid, scalar_array, vertices.shape[0])
    LOG.info("Loaded %d tets, %d vertices from %s.", len(tets), vertices.shape[0], mesh_path)
    return TetrahedralMesh(vertices, np.asarray(tets, dtype=np.int64), scalars)


def _legacy_dataset_type(mesh_path: Path) -> str:
    with open(mesh_path, "rb") as fh:
        for raw in fh:
            line = raw.decode("ascii", errors="ignore").strip().upper()
            if line.startswith("DATASET"):
                return line.split()[-1]
    return ""


def load_mesh(mesh_path: Path, *, scalar_array: str | None = None):
    """Dispatch on extension (and, for legacy .vtk, on the dataset type)."""
    mesh_path = Path(mesh_path)
    suffix = mesh_path.suffix.lower()
    if suffix == ".vtu":
        return load_tetrahedral_mesh(mesh_path, scalar_array=scalar_array)
    if suffix == ".vtp":
        return load_triangle_mesh(mesh_path, scalar_array=scalar_array)
    if suffix == ".vtk":
        if not mesh_path.exists():
            raise FileNotFoundError(mesh_path)
        if _legacy_dataset_type(mesh_path) == "UNSTRUCTURED_GRID":
            return load_tetrahedral_mesh(mesh_path, scalar_array=scalar_array)
        return load_triangle_mesh(mesh_path, scalar_array=scalar_array)
    raise ValueError(f"Unsupported mesh extension '{suffix}'. Use .vtp, .vtu or .vtk.")
