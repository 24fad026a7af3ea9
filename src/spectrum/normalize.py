"""Row and column normalizations applied to the basis and the reduced eigenvectors."""

from __future__ import annotations

import logging

import numpy as np
from scipy import sparse

from ..exceptions import DegenerateRowError, NonPositiveNormError

logger = logging.getLogger(__name__)


def form_partition_of_unity(basis: sparse.spmatrix) -> sparse.csr_matrix:
    """
    Rescale every row of the basis so its entries sum to one.

    Computes ``D @ U`` with ``D = diag(1 / row_sums)``.

    Raises:
        DegenerateRowError: if some vertex is not covered by any landmark, or
            its row sum is not a positive finite number
    """
    row_sums = np.asarray(basis.sum(axis=1)).flatten()

    # Covers empty rows as well as negative or non-finite sums
    degenerate = np.flatnonzero(~(row_sums > 0) | ~np.isfinite(row_sums))
    if degenerate.size:
        raise DegenerateRowError(degenerate.tolist())

    D = sparse.diags(1.0 / row_sums)
    return (D @ basis).tocsr()


def normalize_reduced_eigenvectors(eigvecs: np.ndarray, reduced_mass) -> np.ndarray:
    """
    Scale each eigenvector column x_i to unit reduced mass norm, x_i^T M' x_i = 1.

    Works in place on ``eigvecs`` (which is also returned). Columns are
    independent; eigenvalues and directions are unchanged.

    Raises:
        NonPositiveNormError: if some x_i^T M' x_i is not strictly positive
    """
    for i in range(eigvecs.shape[1]):
        x = eigvecs[:, i]
        m_norm = float(x @ (reduced_mass @ x))
        if not np.isfinite(m_norm) or m_norm <= 0:
            raise NonPositiveNormError(i, m_norm)
        eigvecs[:, i] = x / np.sqrt(m_norm)

    logger.info("A set of %d eigenpairs is computed.", eigvecs.shape[1])
    return eigvecs
