"""
Generalized eigensolver adapter for the reduced problem S' x = lambda M' x.

The reduced matrices are small (k x k), so the default backend densifies them
and calls LAPACK through SciPy. ARPACK shift-invert is available for partial
spectra, and a PyTorch backend runs the Cholesky-reduced problem on the GPU
when CUDA is available.

All backends return eigenvalues in ascending order with eigenvectors as
columns, and report failures as ``EigensolveFailure``.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
import scipy.linalg
from scipy import sparse
from scipy.sparse.linalg import ArpackError, ArpackNoConvergence, eigsh

from ..exceptions import ConfigurationError, EigensolveFailure
from .config import EIGENSOLVER_BACKENDS

logger = logging.getLogger(__name__)

# ARPACK shift; S' is singular (constants are in its null space), so invert slightly below zero
ARPACK_SIGMA = -1e-8


def get_device():
    """Get best available float64-capable device."""
    import torch

    # MPS has no float64 support, so only CUDA counts as an accelerator here
    if torch.cuda.is_available():
        return torch.device("cuda")
    return torch.device("cpu")


def _to_dense(matrix) -> np.ndarray:
    if sparse.issparse(matrix):
        return matrix.toarray()
    return np.asarray(matrix, dtype=np.float64)


def check_positive_definite(mass: np.ndarray) -> None:
    """Raise ``EigensolveFailure`` unless ``mass`` admits a Cholesky factorization."""
    try:
        scipy.linalg.cholesky(mass, lower=True)
    except (np.linalg.LinAlgError, ValueError) as exc:
        raise EigensolveFailure(f"Reduced mass matrix is not positive definite: {exc}") from exc


def _solve_scipy(A: np.ndarray, B: np.ndarray, num_eigs: int) -> Tuple[np.ndarray, np.ndarray]:
    try:
        return scipy.linalg.eigh(A, B, subset_by_index=[0, num_eigs - 1])
    except (np.linalg.LinAlgError, ValueError) as exc:
        raise EigensolveFailure(f"Dense generalized eigensolve failed: {exc}") from exc


def _solve_arpack(A: np.ndarray, B: np.ndarray, num_eigs: int) -> Tuple[np.ndarray, np.ndarray]:
    try:
        return eigsh(sparse.csr_matrix(A), k=num_eigs, M=sparse.csr_matrix(B),
                     sigma=ARPACK_SIGMA, which='LM')
    except ArpackNoConvergence as exc:
        raise EigensolveFailure(
            f"ARPACK did not converge ({len(exc.eigenvalues)} of {num_eigs} eigenpairs found)"
        ) from exc
    except (ArpackError, RuntimeError) as exc:
        raise EigensolveFailure(f"ARPACK eigensolve failed: {exc}") from exc


def _solve_torch(A: np.ndarray, B: np.ndarray, num_eigs: int) -> Tuple[np.ndarray, np.ndarray]:
    import torch

    device = get_device()
    logger.debug("Solving reduced eigenproblem with torch on %s", device)

    A_t = torch.as_tensor(A, dtype=torch.float64, device=device)
    B_t = torch.as_tensor(B, dtype=torch.float64, device=device)

    try:
        L, info = torch.linalg.cholesky_ex(B_t)
        if int(info.item()) != 0:
            raise EigensolveFailure("Reduced mass matrix is not positive definite (torch Cholesky)")

        # C = L^-1 A L^-T is symmetric with the same eigenvalues as (A, B)
        LinvA = torch.linalg.solve_triangular(L, A_t, upper=False)
        C = torch.linalg.solve_triangular(L, LinvA.T, upper=False)
        C = 0.5 * (C + C.T)

        evals, Y = torch.linalg.eigh(C)
        X = torch.linalg.solve_triangular(L.T, Y, upper=True)
    except RuntimeError as exc:
        raise EigensolveFailure(f"torch eigensolve failed: {exc}") from exc

    return evals[:num_eigs].cpu().numpy(), X[:, :num_eigs].cpu().numpy()


def solve_generalized_eigenproblem(reduced_stiffness,
                                   reduced_mass,
                                   num_eigs: Optional[int] = None,
                                   backend: str = "scipy") -> Tuple[np.ndarray, np.ndarray]:
    """
    Solve S' x = lambda M' x for the ``num_eigs`` smallest eigenvalues.

    Args:
        reduced_stiffness: (k, k) symmetric matrix S', sparse or dense
        reduced_mass: (k, k) symmetric positive definite matrix M'
        num_eigs: number of eigenpairs; None means the full reduced spectrum
        backend: 'scipy', 'arpack' or 'torch'

    Returns:
        eigvals: (num_eigs,) ascending
        eigvecs: (k, num_eigs), column i pairs with eigvals[i]

    Raises:
        EigensolveFailure: M' not positive definite, solver non-convergence,
            or non-finite output
    """
    if backend not in EIGENSOLVER_BACKENDS:
        raise ConfigurationError(
            f"Unknown eigensolver backend {backend!r}; expected one of {EIGENSOLVER_BACKENDS}"
        )

    A = _to_dense(reduced_stiffness)
    B = _to_dense(reduced_mass)
    k = A.shape[0]
    if A.shape != (k, k) or B.shape != (k, k):
        raise ConfigurationError(f"Reduced matrices must both be square and equal-sized, got {A.shape} and {B.shape}")

    num_eigs = k if num_eigs is None else num_eigs
    if not 0 < num_eigs <= k:
        raise ConfigurationError(f"num_eigs must be in [1, {k}], got {num_eigs}")

    if not (np.isfinite(A).all() and np.isfinite(B).all()):
        raise EigensolveFailure("Reduced operators contain non-finite entries")
    check_positive_definite(B)

    if backend == "arpack" and num_eigs >= k - 1:
        # ARPACK needs num_eigs < k - 1; the dense solver gives the full spectrum anyway
        logger.warning("ARPACK cannot compute %d of %d eigenpairs; using the dense solver", num_eigs, k)
        backend = "scipy"

    if backend == "torch":
        eigvals, eigvecs = _solve_torch(A, B, num_eigs)
    elif backend == "arpack":
        eigvals, eigvecs = _solve_arpack(A, B, num_eigs)
    else:
        eigvals, eigvecs = _solve_scipy(A, B, num_eigs)

    if not (np.isfinite(eigvals).all() and np.isfinite(eigvecs).all()):
        raise EigensolveFailure("Eigensolver returned non-finite eigenpairs")

    idx = np.argsort(eigvals)
    eigvals = np.asarray(eigvals[idx], dtype=np.float64)
    eigvecs = np.ascontiguousarray(eigvecs[:, idx], dtype=np.float64)

    logger.debug("Smallest reduced eigenvalue %.3e, largest %.3e", eigvals[0], eigvals[-1])
    return eigvals, eigvecs
