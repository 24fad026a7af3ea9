"""
Discrete Laplace-Beltrami operators for triangle meshes.

Builds the cotangent stiffness matrix S, the barycentric (lumped) mass matrix
M, and the sparse edge-length table the basis builder and samplers walk over.
The table's sparsity pattern doubles as the vertex adjacency graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from scipy import sparse

from ..exceptions import InvalidMeshError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaplacianOperators:
    """Everything derived from (V, F) once per mesh."""
    stiffness: sparse.csr_matrix
    mass: sparse.csr_matrix
    avg_edge_length: float
    edge_lengths: sparse.csr_matrix


def validate_mesh(verts: np.ndarray, faces: np.ndarray) -> None:
    """
    Reject geometry the operators cannot be built on.

    Raises:
        InvalidMeshError: for empty or malformed arrays, out-of-range indices,
            non-finite coordinates, degenerate faces, unreferenced vertices
            or non-manifold edges (shared by more than two faces).
    """
    if verts.ndim != 2 or verts.shape[1] != 3 or verts.shape[0] == 0:
        raise InvalidMeshError(f"vertices must be a non-empty (N, 3) array, got shape {verts.shape}")
    if faces.ndim != 2 or faces.shape[1] != 3 or faces.shape[0] == 0:
        raise InvalidMeshError(f"faces must be a non-empty (M, 3) array, got shape {faces.shape}")
    if not np.issubdtype(faces.dtype, np.integer):
        raise InvalidMeshError(f"faces must hold integer indices, got dtype {faces.dtype}")
    if not np.isfinite(verts).all():
        raise InvalidMeshError("vertices contain non-finite coordinates")

    num_verts = verts.shape[0]
    if faces.min() < 0 or faces.max() >= num_verts:
        raise InvalidMeshError(f"face indices must lie in [0, {num_verts})")

    repeated = (
        (faces[:, 0] == faces[:, 1]) | (faces[:, 1] == faces[:, 2]) | (faces[:, 2] == faces[:, 0])
    )
    if repeated.any():
        raise InvalidMeshError(f"{int(repeated.sum())} face(s) repeat a vertex index")

    referenced = np.zeros(num_verts, dtype=bool)
    referenced[faces.ravel()] = True
    if not referenced.all():
        raise InvalidMeshError(f"{int((~referenced).sum())} vertex(es) are not referenced by any face")

    v0 = verts[faces[:, 0]]
    v1 = verts[faces[:, 1]]
    v2 = verts[faces[:, 2]]
    double_areas = np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=1)
    edges = _unique_edges(faces)
    mean_edge = np.mean(np.linalg.norm(verts[edges[:, 0]] - verts[edges[:, 1]], axis=1))
    degenerate = double_areas <= 1e-12 * mean_edge ** 2
    if degenerate.any():
        raise InvalidMeshError(f"{int(degenerate.sum())} face(s) have zero area")

    # Every undirected edge may be shared by at most two faces
    half_edges = np.sort(
        np.concatenate([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]]), axis=1
    )
    _, counts = np.unique(half_edges, axis=0, return_counts=True)
    if (counts > 2).any():
        raise InvalidMeshError(f"{int((counts > 2).sum())} non-manifold edge(s) found")


def _unique_edges(faces: np.ndarray) -> np.ndarray:
    edges = np.concatenate([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]])
    return np.unique(np.sort(edges, axis=1), axis=0)


def cotangent_stiffness(verts: np.ndarray, faces: np.ndarray) -> sparse.csr_matrix:
    """
    Cotangent stiffness matrix S (positive semi-definite, rows sum to zero).

    S_ij = -(cot a_ij + cot b_ij) / 2 for each edge ij, where a_ij and b_ij are
    the angles opposite the edge, and S_ii = -sum_j S_ij.
    """
    num_verts = verts.shape[0]

    v0 = verts[faces[:, 0]]
    v1 = verts[faces[:, 1]]
    v2 = verts[faces[:, 2]]

    e01 = v1 - v0
    e02 = v2 - v0
    e12 = v2 - v1

    # |e_a x e_b| is the same (twice the area) at every corner of a face
    double_area = np.linalg.norm(np.cross(e01, e02), axis=1)

    cot_0 = np.sum(e01 * e02, axis=1) / double_area   # angle at v0, opposite edge 1-2
    cot_1 = np.sum(-e01 * e12, axis=1) / double_area  # angle at v1, opposite edge 2-0
    cot_2 = np.sum(e02 * e12, axis=1) / double_area   # angle at v2, opposite edge 0-1

    rows = np.concatenate([
        faces[:, 1], faces[:, 2],  # edge 1-2
        faces[:, 2], faces[:, 0],  # edge 2-0
        faces[:, 0], faces[:, 1],  # edge 0-1
    ])
    cols = np.concatenate([
        faces[:, 2], faces[:, 1],
        faces[:, 0], faces[:, 2],
        faces[:, 1], faces[:, 0],
    ])
    data = np.concatenate([
        cot_0 / 2, cot_0 / 2,
        cot_1 / 2, cot_1 / 2,
        cot_2 / 2, cot_2 / 2,
    ])

    W = sparse.coo_matrix((data, (rows, cols)), shape=(num_verts, num_verts)).tocsr()
    W.sum_duplicates()

    degrees = np.asarray(W.sum(axis=1)).flatten()
    S = sparse.diags(degrees) - W
    return S.tocsr()


def barycentric_mass(verts: np.ndarray, faces: np.ndarray) -> sparse.csr_matrix:
    """Diagonal mass matrix: each vertex gets a third of its incident face areas."""
    num_verts = verts.shape[0]

    v0 = verts[faces[:, 0]]
    v1 = verts[faces[:, 1]]
    v2 = verts[faces[:, 2]]
    triangle_areas = np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=1) / 2

    vertex_areas = np.zeros(num_verts)
    np.add.at(vertex_areas, faces[:, 0], triangle_areas / 3)
    np.add.at(vertex_areas, faces[:, 1], triangle_areas / 3)
    np.add.at(vertex_areas, faces[:, 2], triangle_areas / 3)

    return sparse.diags(vertex_areas).tocsr()


def average_edge_length(verts: np.ndarray, faces: np.ndarray) -> float:
    edges = _unique_edges(faces)
    return float(np.mean(np.linalg.norm(verts[edges[:, 0]] - verts[edges[:, 1]], axis=1)))


def edge_length_table(verts: np.ndarray, faces: np.ndarray) -> sparse.csr_matrix:
    """
    Symmetric sparse table with the Euclidean length of every mesh edge.

    Its sparsity pattern is the vertex adjacency graph, so it feeds
    ``scipy.sparse.csgraph`` shortest-path searches directly.
    """
    num_verts = verts.shape[0]
    edges = _unique_edges(faces)
    lengths = np.linalg.norm(verts[edges[:, 0]] - verts[edges[:, 1]], axis=1)

    rows = np.concatenate([edges[:, 0], edges[:, 1]])
    cols = np.concatenate([edges[:, 1], edges[:, 0]])
    data = np.concatenate([lengths, lengths])

    table = sparse.coo_matrix((data, (rows, cols)), shape=(num_verts, num_verts)).tocsr()
    table.sort_indices()
    return table


def construct_laplacian(verts: np.ndarray, faces: np.ndarray) -> LaplacianOperators:
    """Validate the mesh and build the stiffness/mass pair plus the edge-length table."""
    verts = np.asarray(verts, dtype=np.float64)
    faces = np.asarray(faces)
    validate_mesh(verts, faces)
    faces = faces.astype(np.int64, copy=False)

    S = cotangent_stiffness(verts, faces)
    M = barycentric_mass(verts, faces)
    avg_edge = average_edge_length(verts, faces)
    edge_lengths = edge_length_table(verts, faces)

    logger.info(
        "A Stiffness matrix S(%dx%d) and Mass matrix M(%dx%d) are constructed.",
        S.shape[0], S.shape[1], M.shape[0], M.shape[1],
    )
    return LaplacianOperators(
        stiffness=S,
        mass=M,
        avg_edge_length=avg_edge,
        edge_lengths=edge_lengths,
    )
