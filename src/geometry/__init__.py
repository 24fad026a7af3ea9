"""
Mesh geometry collaborators: I/O, Laplacian assembly and landmark sampling.
"""

from .io import read_mesh, write_mesh
from .laplacian import (
    LaplacianOperators,
    construct_laplacian,
    cotangent_stiffness,
    barycentric_mass,
    average_edge_length,
    edge_length_table,
    validate_mesh,
)
from .primitives import icosahedron, icosphere
from .sampling import (
    SAMPLING_STRATEGIES,
    construct_samples,
    farthest_point_sampling,
    random_sampling,
)

__all__ = [
    # I/O
    'read_mesh',
    'write_mesh',
    # Operators
    'LaplacianOperators',
    'construct_laplacian',
    'cotangent_stiffness',
    'barycentric_mass',
    'average_edge_length',
    'edge_length_table',
    'validate_mesh',
    # Primitives
    'icosahedron',
    'icosphere',
    # Sampling
    'SAMPLING_STRATEGIES',
    'construct_samples',
    'farthest_point_sampling',
    'random_sampling',
]
