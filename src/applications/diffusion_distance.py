"""Diffusion distances from (approximate) Laplacian eigenpairs."""

from typing import Sequence

import numpy as np

from ..exceptions import ConfigurationError


def construct_diffusion_tensor(eigvecs: np.ndarray,
                               eigvals: np.ndarray,
                               num_eigs: int,
                               times: Sequence[float]) -> np.ndarray:
    """
    Diffusion embedding of every vertex at every time scale.

    tensor[t, x, i] = exp(-lambda_i * times[t] / 2) * phi_i(x)

    Args:
        eigvecs: (N, q) full-resolution eigenvectors phi_i
        eigvals: (q,) eigenvalues, ascending
        num_eigs: how many leading eigenpairs to use
        times: diffusion times

    Returns:
        (T, N, num_eigs) array
    """
    if not 0 < num_eigs <= eigvals.size:
        raise ConfigurationError(f"num_eigs must be in [1, {eigvals.size}], got {num_eigs}")

    times = np.asarray(times, dtype=np.float64)
    decay = np.exp(-np.outer(times, eigvals[:num_eigs]) / 2.0)   # (T, num_eigs)
    return decay[:, None, :] * eigvecs[None, :, :num_eigs]


def construct_diffusion_tensor_reduced(basis, reduced_eigvecs, reduced_eigvals, num_eigs, times):
    """Same as ``construct_diffusion_tensor`` after lifting U x to full resolution."""
    eigvecs = np.asarray(basis @ reduced_eigvecs[:, :num_eigs])
    return construct_diffusion_tensor(eigvecs, reduced_eigvals, num_eigs, times)


def diffusion_distance(tensor: np.ndarray, time_index: int, vertex: int) -> np.ndarray:
    """Distance from ``vertex`` to every vertex at the given time scale, shape (N,)."""
    embedding = tensor[time_index]
    return np.linalg.norm(embedding - embedding[vertex], axis=1)
