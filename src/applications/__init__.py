"""Applications built on approximate Laplacian eigenpairs."""

from .diffusion_distance import (
    construct_diffusion_tensor,
    construct_diffusion_tensor_reduced,
    diffusion_distance,
)
from .mesh_filter import (
    FilterType,
    band_boost_filter,
    band_stop_filter,
    construct_mesh_filter,
    create_filter,
    linear_filter,
    low_pass_filter,
    no_filter,
    polynomial_filter,
    project_space,
)

__all__ = [
    "FilterType",
    "band_boost_filter",
    "band_stop_filter",
    "construct_diffusion_tensor",
    "construct_diffusion_tensor_reduced",
    "construct_mesh_filter",
    "create_filter",
    "diffusion_distance",
    "linear_filter",
    "low_pass_filter",
    "no_filter",
    "polynomial_filter",
    "project_space",
]
