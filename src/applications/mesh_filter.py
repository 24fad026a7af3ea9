"""
Spectral Mesh Filtering

Filters vertex coordinates in the approximate Laplacian eigenbasis. The
coordinates are projected onto the lifted eigenvectors U x_j (mass inner
product), each coefficient is scaled by a filter value, and the result is
reconstructed at full resolution. Filters that rise above one toward high
frequencies exaggerate detail; filters that fall toward zero smooth it out.

Only reads the basis, the mass matrix and the reduced eigenvectors.
"""

import enum

import numpy as np
from scipy import sparse

from ..exceptions import ConfigurationError


class FilterType(enum.Enum):
    NONE = "none"
    LOW_PASS = "low_pass"
    LINEAR = "linear"
    POLYNOMIAL = "polynomial"
    BAND_BOOST = "band_boost"
    BAND_STOP = "band_stop"


def _check_range(k, m):
    if m <= 0 or not 0 <= k <= m:
        raise ConfigurationError(f"Filter needs 0 <= k <= m and m > 0, got k={k}, m={m}")


def no_filter(k, m):
    """All ones: reconstructs the input's projection unchanged."""
    _check_range(k, m)
    return np.ones(m)


def low_pass_filter(k, m):
    """Ones up to k, then a quadratic decay reaching 0 at m."""
    _check_range(k, m)
    coeffs = np.ones(m)
    if m > k:
        i = np.arange(k, m)
        coeffs[k:] = 1.0 - ((i - k) / (m - k)) ** 2
    return coeffs


def linear_filter(k, m):
    """Ones up to k, then a linear rise toward 2 at m."""
    _check_range(k, m)
    coeffs = np.ones(m)
    if m > k:
        i = np.arange(k, m)
        coeffs[k:] = 1.0 + (i - k) / (m - k)
    return coeffs


def polynomial_filter(k, m):
    """Ones up to k, then 2 plus a quadratic rise."""
    _check_range(k, m)
    coeffs = np.ones(m)
    if m > k:
        i = np.arange(k, m)
        coeffs[k:] = 2.0 + ((i - k) / (m - k)) ** 2
    return coeffs


def band_boost_filter(k, m, transition=None):
    """
    Boost a middle frequency band.

    Ones up to k, a smooth cubic ramp to 2 over ``transition`` coefficients,
    a plateau at 2, and a cubic ramp back down to 1 over the last
    ``transition`` coefficients. ``transition`` defaults to a quarter of the
    band ``m - k``.
    """
    _check_range(k, m)
    if transition is None:
        transition = max((m - k) // 4, 1)
    if transition <= 0 or k + 2 * transition > m:
        raise ConfigurationError(
            f"transition={transition} does not fit two ramps between k={k} and m={m}"
        )

    def smoothstep(s):
        return 3.0 * s ** 2 - 2.0 * s ** 3

    coeffs = np.ones(m)
    up = np.arange(k, k + transition)
    coeffs[up] = 1.0 + smoothstep((up - k) / transition)
    coeffs[k + transition:m - transition] = 2.0
    down = np.arange(m - transition, m)
    coeffs[down] = 2.0 - smoothstep((down - (m - transition)) / transition)
    return coeffs


def band_stop_filter(k, m, transition=None):
    """
    Suppress a middle frequency band; the mirror image of ``band_boost_filter``.

    Ones up to k, a cubic ramp down to 0 over ``transition`` coefficients,
    a plateau at 0, and a cubic ramp back up to 1 over the last
    ``transition`` coefficients.
    """
    return 2.0 - band_boost_filter(k, m, transition)


_FILTER_BUILDERS = {
    FilterType.NONE: no_filter,
    FilterType.LOW_PASS: low_pass_filter,
    FilterType.LINEAR: linear_filter,
    FilterType.POLYNOMIAL: polynomial_filter,
    FilterType.BAND_BOOST: band_boost_filter,
    FilterType.BAND_STOP: band_stop_filter,
}


def create_filter(filter_type, k, m):
    """Build filter coefficients for ``filter_type`` (a ``FilterType`` or its value)."""
    try:
        filter_type = FilterType(filter_type)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown filter type {filter_type!r}") from exc
    return _FILTER_BUILDERS[filter_type](k, m)


def project_space(verts, basis, mass, reduced_eigvecs, coeffs):
    """
    Filtered spectral reconstruction of every column of ``verts``.

    With Gamma = V^T M U X (spectral coefficients), column c of the output is
    U X (coeffs * Gamma[c]).

    Args:
        verts: (N, 3) vertex positions (any (N, d) signal works)
        basis: (N, k) sparse basis U
        mass: (N, N) sparse mass matrix M
        reduced_eigvecs: (k, >= m) M'-orthonormal reduced eigenvectors
        coeffs: (m,) filter coefficients

    Returns:
        (N, d) filtered reconstruction
    """
    coeffs = np.asarray(coeffs, dtype=np.float64)
    m = coeffs.size
    if m > reduced_eigvecs.shape[1]:
        raise ConfigurationError(
            f"Filter has {m} coefficients but only {reduced_eigvecs.shape[1]} eigenvectors are available"
        )

    X = reduced_eigvecs[:, :m]
    MU = sparse.csr_matrix(mass) @ basis
    gamma = np.asarray((MU.T @ verts).T) @ X          # (d, m)
    theta = X @ (coeffs[:, None] * gamma.T)           # (k, d)
    return np.asarray(basis @ theta)


def construct_mesh_filter(verts, mass, basis, reduced_eigvecs, filter_type, k, m):
    """
    Apply a spectral filter to the mesh geometry.

    The filtered projection is pushed further away from the unfiltered one by
    the filter's last coefficient, so high-frequency boosts stay visible:
        V_out = V_f + coeffs[-1] * (V_f - V_ref)

    Returns:
        (N, 3) new vertex positions
    """
    coeffs = create_filter(filter_type, k, m)
    v_ref = project_space(verts, basis, mass, reduced_eigvecs, no_filter(k, m))
    v_filter = project_space(verts, basis, mass, reduced_eigvecs, coeffs)
    return v_filter + coeffs[-1] * (v_filter - v_ref)
