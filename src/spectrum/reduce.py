"""Galerkin projection of the full operators onto the reduced basis."""

from __future__ import annotations

import logging
from typing import Tuple

from scipy import sparse

logger = logging.getLogger(__name__)


def project_operator(operator: sparse.spmatrix, basis: sparse.spmatrix) -> sparse.csr_matrix:
    """Return ``U^T A U``; neither input is modified."""
    basis = sparse.csr_matrix(basis)
    return (basis.T @ (operator @ basis)).tocsr()


def project_operators(stiffness: sparse.spmatrix,
                      mass: sparse.spmatrix,
                      basis: sparse.spmatrix) -> Tuple[sparse.csr_matrix, sparse.csr_matrix]:
    """
    Reduced stiffness and mass matrices S' = U^T S U and M' = U^T M U.

    Both are k x k and symmetric whenever S and M are.
    """
    S_ = project_operator(stiffness, basis)
    M_ = project_operator(mass, basis)
    logger.info(
        "A set of reduced stiffness and mass matrix (each %dx%d) is constructed.",
        S_.shape[0], S_.shape[1],
    )
    return S_, M_
