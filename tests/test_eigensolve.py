"""Tests for the reduced-problem assembly, eigensolver adapter and mass normalization."""

from __future__ import annotations

import os
import sys

import numpy as np
import pytest
from scipy import sparse

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.exceptions import ConfigurationError, EigensolveFailure, NonPositiveNormError
from src.spectrum.eigensolve import solve_generalized_eigenproblem
from src.spectrum.normalize import normalize_reduced_eigenvectors
from src.spectrum.reduce import project_operator, project_operators


def _random_pencil(k: int = 12, seed: int = 0) -> tuple[np.ndarray, np.ndarray]:
    """Symmetric PSD A with a null vector, SPD B."""
    rng = np.random.default_rng(seed)
    Y = rng.standard_normal((k, k - 1))
    A = Y @ Y.T
    X = rng.standard_normal((k, k))
    B = X @ X.T + k * np.eye(k)
    return A, B


def test_projection_is_symmetric_and_sparse() -> None:
    rng = np.random.default_rng(3)
    S = sparse.random(30, 30, density=0.2, random_state=4)
    S = (S + S.T).tocsr()
    M = sparse.diags(rng.uniform(0.5, 1.5, 30)).tocsr()
    U = sparse.random(30, 6, density=0.3, random_state=5).tocsr()

    S_, M_ = project_operators(S, M, U)

    assert sparse.issparse(S_) and sparse.issparse(M_)
    assert S_.shape == M_.shape == (6, 6)
    np.testing.assert_allclose(S_.toarray(), S_.toarray().T, atol=1e-12)
    np.testing.assert_allclose(M_.toarray(), (U.T @ M @ U).toarray(), atol=1e-12)
    np.testing.assert_allclose(project_operator(S, U).toarray(), (U.T @ S @ U).toarray(), atol=1e-12)


def test_scipy_backend_returns_ascending_generalized_eigenpairs() -> None:
    A, B = _random_pencil()

    eigvals, eigvecs = solve_generalized_eigenproblem(A, B)

    assert eigvals.shape == (12,)
    assert eigvecs.shape == (12, 12)
    assert np.all(np.diff(eigvals) >= 0)
    assert abs(eigvals[0]) < 1e-8
    np.testing.assert_allclose(A @ eigvecs, B @ eigvecs * eigvals, atol=1e-8)


def test_partial_spectrum_and_sparse_input() -> None:
    A, B = _random_pencil()

    full_vals, _ = solve_generalized_eigenproblem(A, B)
    vals, vecs = solve_generalized_eigenproblem(sparse.csr_matrix(A), sparse.csr_matrix(B), num_eigs=4)

    assert vecs.shape == (12, 4)
    np.testing.assert_allclose(vals, full_vals[:4], atol=1e-10)


def test_arpack_agrees_with_dense_solver() -> None:
    A, B = _random_pencil()

    dense_vals, _ = solve_generalized_eigenproblem(A, B, num_eigs=4)
    arpack_vals, arpack_vecs = solve_generalized_eigenproblem(A, B, num_eigs=4, backend="arpack")

    np.testing.assert_allclose(arpack_vals, dense_vals, rtol=1e-6, atol=1e-8)
    np.testing.assert_allclose(A @ arpack_vecs, B @ arpack_vecs * arpack_vals, atol=1e-6)


def test_arpack_falls_back_for_full_spectrum() -> None:
    A, B = _random_pencil()

    vals, vecs = solve_generalized_eigenproblem(A, B, backend="arpack")

    assert vals.shape == (12,)
    assert vecs.shape == (12, 12)


def test_torch_backend_matches_scipy() -> None:
    pytest.importorskip("torch")
    A, B = _random_pencil()

    dense_vals, _ = solve_generalized_eigenproblem(A, B, num_eigs=5)
    torch_vals, torch_vecs = solve_generalized_eigenproblem(A, B, num_eigs=5, backend="torch")

    assert torch_vals.dtype == np.float64
    np.testing.assert_allclose(torch_vals, dense_vals, atol=1e-8)
    np.testing.assert_allclose(A @ torch_vecs, B @ torch_vecs * torch_vals, atol=1e-6)


def test_singular_mass_is_reported() -> None:
    A, B = _random_pencil()
    B[3, :] = 0.0
    B[:, 3] = 0.0

    for backend in ("scipy", "arpack"):
        with pytest.raises(EigensolveFailure):
            solve_generalized_eigenproblem(A, B, num_eigs=3, backend=backend)


def test_non_finite_input_is_reported() -> None:
    A, B = _random_pencil()
    A[0, 0] = np.nan

    with pytest.raises(EigensolveFailure):
        solve_generalized_eigenproblem(A, B)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"backend": "lapack"},
        {"num_eigs": 0},
        {"num_eigs": 13},
    ],
)
def test_bad_solver_arguments(kwargs) -> None:
    A, B = _random_pencil()
    with pytest.raises(ConfigurationError):
        solve_generalized_eigenproblem(A, B, **kwargs)


def test_mismatched_shapes() -> None:
    A, B = _random_pencil()
    with pytest.raises(ConfigurationError):
        solve_generalized_eigenproblem(A, B[:-1, :-1])


def test_normalized_eigenvectors_have_unit_mass_norm() -> None:
    A, B = _random_pencil()
    eigvals, eigvecs = solve_generalized_eigenproblem(A, B)
    scaled = eigvecs * np.linspace(0.5, 3.0, eigvecs.shape[1])

    out = normalize_reduced_eigenvectors(scaled, sparse.csr_matrix(B))

    assert out is scaled
    np.testing.assert_allclose(np.diag(out.T @ B @ out), 1.0, atol=1e-10)
    # Directions unchanged, still eigenvectors
    np.testing.assert_allclose(A @ out, B @ out * eigvals, atol=1e-8)


def test_non_positive_mass_norm_is_reported() -> None:
    eigvecs = np.eye(3)
    M_ = -np.eye(3)

    with pytest.raises(NonPositiveNormError) as excinfo:
        normalize_reduced_eigenvectors(eigvecs, M_)
    assert excinfo.value.column == 0
