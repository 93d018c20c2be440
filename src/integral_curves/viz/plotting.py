# integral_curves/viz/plotting.py
from __future__ import annotations

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from mpl_toolkits.mplot3d.art3d import Poly3DCollection


def plot_mesh(ax, mesh, face_vals=None, cmap: str = "viridis"):
    """
    Plot a triangle mesh (or the boundary facets of a tet mesh) as a
    Poly3DCollection.

    If ``face_vals`` is given, faces are coloured by those values and a
    colorbar is added. ``face_vals="scalars"`` averages the mesh scalars per face.
    """
    faces = mesh.faces()
    faces_xyz = mesh.vertices[faces]

    if isinstance(face_vals, str) and face_vals == "scalars":
        face_vals = None if mesh.scalars is None else mesh.scalars[faces].mean(axis=1)

    poly = Poly3DCollection(faces_xyz, linewidths=0.3)
    ax.add_collection3d(poly)
    poly.set_label("Mesh")

    if face_vals is not None:
        face_vals = np.asarray(face_vals, dtype=float)
        norm = plt.Normalize(np.nanmin(face_vals), np.nanmax(face_vals))
        poly.set_facecolor(matplotlib.colormaps[cmap](norm(face_vals)))

        mappable = plt.cm.ScalarMappable(norm=norm, cmap=cmap)
        mappable.set_array(face_vals)
        ax.figure.colorbar(mappable, ax=ax, shrink=0.5, pad=0.02, label="Scalar field")
    else:
        poly.set_facecolor("lightblue")
        poly.set_alpha(0.4)
        poly.set_edgecolors("k")

    return poly


def plot_curve(ax, curve, color: str = "red", label: str | None = "Integral curve"):
    """Curve polyline; samples pinned to a mesh vertex are marked."""
    pts = curve.positions()
    (line,) = ax.plot(pts[:, 0], pts[:, 1], pts[:, 2], color=color, marker=".", label=label)

    pinned = np.array([s.position for s in curve.samples if s.vertex_id is not None])
    if pinned.size:
        ax.scatter(pinned[:, 0], pinned[:, 1], pinned[:, 2], color="k", s=12)
    return line


def set_axes_equal(ax) -> None:
    """
    Equal scaling for the x, y and z axes, so that a cube appears as a cube.
    """
    limits = np.array([ax.get_xlim3d(), ax.get_ylim3d(), ax.get_zlim3d()])
    middles = limits.mean(axis=1)

    # The plot radius is half of the maximum range
    plot_radius = 0.5 * float(np.max(np.abs(limits[:, 1] - limits[:, 0])))

    ax.set_xlim3d([middles[0] - plot_radius, middles[0] + plot_radius])
    ax.set_ylim3d([middles[1] - plot_radius, middles[1] + plot_radius])
    ax.set_zlim3d([middles[2] - plot_radius, middles[2] + plot_radius])
