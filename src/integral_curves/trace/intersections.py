import math

import numpy as np
from numba import njit


@njit(cache=True)
def angle_rad(a, b):
    """
    Angle between vectors a and b in [0, pi].
    A zero-length operand is left unnormalised, so it reads as orthogonal (pi/2).
    """
    c = np.dot(a, b)
    na = np.linalg.norm(a)
    nb = np.linalg.norm(b)
    if na > 0.0:
        c /= na
    if nb > 0.0:
        c /= nb
    c = max(-1.0, min(1.0, c))
    return math.acos(c)


@njit(cache=True)
def triangle_law_of_sines(angle_0, angle_1, length_0):
    """Side opposite angle_1, given the side length_0 opposite angle_0."""
    return math.sin(angle_1) * length_0 / math.sin(angle_0)


@njit(cache=True)
def ray_triangle_intersection(origin, direction, v0, v1, v2, eps=1e-9, parallel_eps=1e-14):
    """
    Returns (hit_bool, intersection_point, tval)
    Möller–Trumbore intersection with the ray origin + t*direction, t >= 0.
    Barycentric and t bounds are widened by ``eps`` so hits through edges,
    vertices and the ray origin itself are reported.
    """
    miss = np.zeros(3)
    edge1 = v1 - v0
    edge2 = v2 - v0
    h = np.cross(direction, edge2)
    a = np.dot(edge1, h)
    if abs(a) < parallel_eps:
        return False, miss, -1.0
    f = 1.0 / a
    s = origin - v0
    u = f * np.dot(s, h)
    if u < -eps or u > 1.0 + eps:
        return False, miss, -1.0
    q = np.cross(s, edge1)
    v = f * np.dot(direction, q)
    if v < -eps or (u + v) > 1.0 + eps:
        return False, miss, -1.0
    t = f * np.dot(edge2, q)
    if t < -eps:
        return False, miss, -1.0
    return True, origin + t * direction, t


def normalize(v: np.ndarray) -> np.ndarray:
    """Unit copy of v; a zero vector is returned unchanged."""
    v = np.array(v, dtype=np.float64)
    n = np.linalg.norm(v)
    if n > 0.0:
        v /= n
    return v
