from __future__ import annotations

import argparse
import logging
from pathlib import Path

import numpy as np

from integral_curves.field.gradient import gradient_field
from integral_curves.mesh.io import load_mesh
from integral_curves.trace.config import TraceConfig
from integral_curves.trace.errors import IntegralCurveError
from integral_curves.trace.stats import summarise_curve
from integral_curves.trace.tracer import IntegralCurve

LOG = logging.getLogger(__name__)

DEFAULT_SCALAR_ARRAY = "u"
DEFAULT_RAY_EPS = 1e-9


def pick_source_element(mesh, field, source_vertex: int) -> int:
    """
    Incident element whose field points most directly away from the source
    vertex (towards the element's centroid); lowest id on ties.
    """
    incident = mesh.vertex_elements(source_vertex)
    if not incident:
        raise ValueError(f"vertex {source_vertex} belongs to no element")

    src = mesh.vertex(source_vertex)
    best, best_score = incident[0], -np.inf
    for eid in incident:
        to_centroid = mesh.element_vertices(eid).mean(axis=0) - src
        vec = field.vec_at(eid)
        denom = np.linalg.norm(to_centroid) * np.linalg.norm(vec)
        score = float(np.dot(to_centroid, vec) / denom) if denom > 0 else -np.inf
        if score > best_score:
            best, best_score = eid, score
    return int(best)


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="integral-curves",
        description=(
            "Trace the integral curve of the scalar-field gradient over a triangle or "
            "tetrahedral mesh (VTK input), starting at a mesh vertex."
        ),
    )
    p.add_argument("--mesh", type=Path, required=True, help="Mesh file (.vtp/.vtk surface, .vtu/.vtk tets).")
    p.add_argument(
        "--scalar-array",
        default=DEFAULT_SCALAR_ARRAY,
        help="PointData array holding the scalar field.",
    )
    p.add_argument("--source-vertex", type=int, required=True, help="Vertex the curve starts from.")
    p.add_argument(
        "--source-element",
        type=int,
        default=None,
        help="Element the curve starts in (default: incident element best aligned with the field).",
    )

    stop = p.add_mutually_exclusive_group()
    stop.add_argument("--stop-value", type=float, default=None, help="Stop where the element minimum exceeds this.")
    stop.add_argument("--stop-vertex", type=int, default=None, help="Stop in the first element containing this vertex.")

    p.add_argument("--max-steps", type=int, default=None, help="Step bound (default: 2 x number of elements).")
    p.add_argument("--ray-eps", type=float, default=DEFAULT_RAY_EPS, help="Tolerance of the ray/facet test.")
    p.add_argument("--out", type=Path, default=None, help="Write the curve samples to this text file.")
    p.add_argument(
        "--plot",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Enable/disable 3D plot.",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_argparser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s: %(message)s",
    )

    LOG.info("Loading mesh from %s.", args.mesh)
    mesh = load_mesh(args.mesh, scalar_array=args.scalar_array)

    LOG.info("Computing per-element gradient field.")
    field = gradient_field(mesh)

    if not 0 <= args.source_vertex < mesh.num_vertices:
        LOG.error("Source vertex %d out of range (mesh has %d vertices).", args.source_vertex, mesh.num_vertices)
        return 1

    source_element = args.source_element
    if source_element is None:
        try:
            source_element = pick_source_element(mesh, field, args.source_vertex)
        except ValueError as exc:
            LOG.error("No source element: %s", exc)
            return 1
        LOG.info("Source element: %d.", source_element)

    config = TraceConfig(ray_eps=float(args.ray_eps), max_steps=args.max_steps)

    try:
        ic = IntegralCurve(
            mesh,
            field,
            source_element,
            args.source_vertex,
            stop_value=args.stop_value,
            stop_vertex=args.stop_vertex,
            config=config,
        )
    except IntegralCurveError as exc:
        LOG.error("Tracing failed: %s", exc)
        return 1

    curve = ic.curve
    LOG.info("Curve: %d samples, length %.5f, stopped at %s.", len(curve), curve.length(), curve.termination.value)
    summarise_curve(curve, debug=args.log_level == "DEBUG", save_txt=args.out)

    if bool(args.plot):
        import matplotlib.pyplot as plt

        from integral_curves.viz.plotting import plot_curve, plot_mesh, set_axes_equal

        fig = plt.figure()
        ax = fig.add_subplot(111, projection="3d")
        ax.set_axis_off()
        plot_mesh(ax, mesh, face_vals="scalars")
        plot_curve(ax, curve)
        set_axes_equal(ax)
        ax.legend()
        plt.show()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
