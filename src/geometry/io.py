"""Mesh file I/O through PyVista."""

from __future__ import annotations

import logging
import os
from typing import Tuple

import numpy as np
import pyvista as pv

from ..exceptions import InvalidMeshError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".off", ".obj", ".ply", ".stl")


def read_mesh(path: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Load a triangle mesh from disk.

    Args:
        path: mesh file (.off, .obj, .ply or .stl)

    Returns:
        verts: (N, 3) float64 vertex positions
        faces: (M, 3) int64 triangle indices
    """
    ext = os.path.splitext(path)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise InvalidMeshError(f"Unsupported mesh file type '{ext}'; expected one of {SUPPORTED_EXTENSIONS}")

    # .off has no VTK reader; pv.read hands it over to meshio
    mesh = pv.read(path)
    if not isinstance(mesh, pv.PolyData):
        mesh = mesh.extract_surface(algorithm=None)
    mesh = mesh.triangulate()

    if mesh.n_points == 0 or mesh.n_cells == 0:
        raise InvalidMeshError(f"Mesh '{path}' has no vertices or faces")

    verts = np.asarray(mesh.points, dtype=np.float64)
    faces = np.asarray(mesh.faces).reshape(-1, 4)[:, 1:4].astype(np.int64)

    logger.info("A new mesh with %d vertices (%d faces).", verts.shape[0], faces.shape[0])
    return verts, faces


def write_mesh(path: str, verts: np.ndarray, faces: np.ndarray) -> None:
    """Save a triangle mesh; the format follows the file extension."""
    faces_padded = np.hstack([np.full((faces.shape[0], 1), 3, dtype=np.int64), faces]).astype(np.int64)
    mesh = pv.PolyData(np.asarray(verts, dtype=np.float64), faces_padded)
    mesh.save(path)
    logger.info("Mesh written to %s", path)
