from __future__ import annotations

import statistics as stats

import numpy as np


def curve_length(positions) -> float:
    pts = np.asarray(positions, dtype=float)
    if pts.shape[0] < 2:
        return 0.0
    return float(np.linalg.norm(np.diff(pts, axis=0), axis=1).sum())


def summarise_curve(curve, *, label="Integral curve", debug=False, save_txt=None) -> str:
    """
    One line per sample: index | element | vertex | gate | position.
    Printed when ``debug`` is set, written to ``save_txt`` when given.
    """
    def fmt(pt):
        return f"({pt[0]:.5f}, {pt[1]:.5f}, {pt[2]:.5f})"

    def opt(v):
        return "-" if v is None else str(v)

    lines = [
        f"# === {label} (n={len(curve)}, stop={curve.termination.value}) ===",
        f"# length: {curve.length():.5f}",
        "# idx | element | vertex | gate | position",
    ]
    for i, s in enumerate(curve.samples):
        elem = "border" if s.is_boundary else str(s.element_id)
        lines.append(f"{i:4d} {elem:>8} {opt(s.vertex_id):>6} {opt(s.gate_id):>4}  {fmt(s.position)}")

    txt = "\n".join(lines)
    if debug:
        print("\n" + txt)
    if save_txt is not None:
        with open(save_txt, "w") as fh:
            fh.write(txt + "\n")
    return txt


def segment_length_stats(curve) -> dict[str, float]:
    """Mean / median / stdev / min / max of the curve's segment lengths."""
    seg = np.linalg.norm(np.diff(curve.positions(), axis=0), axis=1).tolist()
    if not seg:
        return {}
    n = len(seg)
    return {
        "n": float(n),
        "mean": stats.mean(seg),
        "median": stats.median(seg),
        "stdev": stats.stdev(seg) if n > 1 else 0.0,
        "min": min(seg),
        "max": max(seg),
    }
