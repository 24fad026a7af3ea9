"""Small closed test surfaces."""

from __future__ import annotations

from typing import Tuple

import numpy as np


def icosahedron() -> Tuple[np.ndarray, np.ndarray]:
    """Return a regular icosahedron inscribed in the unit sphere.

    - 12 vertices
    - 20 triangles, consistently oriented outward
    """
    phi = (1.0 + np.sqrt(5.0)) / 2.0
    verts = np.array(
        [
            [-1.0, phi, 0.0],
            [1.0, phi, 0.0],
            [-1.0, -phi, 0.0],
            [1.0, -phi, 0.0],
            [0.0, -1.0, phi],
            [0.0, 1.0, phi],
            [0.0, -1.0, -phi],
            [0.0, 1.0, -phi],
            [phi, 0.0, -1.0],
            [phi, 0.0, 1.0],
            [-phi, 0.0, -1.0],
            [-phi, 0.0, 1.0],
        ],
        dtype=np.float64,
    )
    verts /= np.linalg.norm(verts, axis=1, keepdims=True)

    faces = np.array(
        [
            [0, 11, 5], [0, 5, 1], [0, 1, 7], [0, 7, 10], [0, 10, 11],
            [1, 5, 9], [5, 11, 4], [11, 10, 2], [10, 7, 6], [7, 1, 8],
            [3, 9, 4], [3, 4, 2], [3, 2, 6], [3, 6, 8], [3, 8, 9],
            [4, 9, 5], [2, 4, 11], [6, 2, 10], [8, 6, 7], [9, 8, 1],
        ],
        dtype=np.int64,
    )
    return verts, faces


def icosphere(subdivisions: int = 2) -> Tuple[np.ndarray, np.ndarray]:
    """Subdivide the icosahedron and project every new vertex onto the unit sphere.

    Each subdivision splits a triangle into four, so the result has
    ``10 * 4**subdivisions + 2`` vertices and ``20 * 4**subdivisions`` faces.
    """
    if subdivisions < 0:
        raise ValueError("subdivisions must be non-negative")

    verts, faces = icosahedron()
    vert_list = list(verts)

    for _ in range(subdivisions):
        midpoint_cache = {}

        def midpoint(a: int, b: int) -> int:
            key = (a, b) if a < b else (b, a)
            if key not in midpoint_cache:
                mid = (vert_list[a] + vert_list[b]) / 2.0
                vert_list.append(mid / np.linalg.norm(mid))
                midpoint_cache[key] = len(vert_list) - 1
            return midpoint_cache[key]

        new_faces = []
        for a, b, c in faces:
            ab = midpoint(a, b)
            bc = midpoint(b, c)
            ca = midpoint(c, a)
            new_faces.extend([[a, ab, ca], [b, bc, ab], [c, ca, bc], [ab, bc, ca]])
        faces = np.array(new_faces, dtype=np.int64)

    return np.array(vert_list, dtype=np.float64), faces
