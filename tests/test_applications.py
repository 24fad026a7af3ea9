"""Tests for spectral mesh filtering and diffusion distances."""

from __future__ import annotations

import os
import sys

import numpy as np
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.applications import (
    FilterType,
    band_boost_filter,
    band_stop_filter,
    construct_diffusion_tensor,
    construct_diffusion_tensor_reduced,
    construct_mesh_filter,
    create_filter,
    diffusion_distance,
    linear_filter,
    low_pass_filter,
    no_filter,
    polynomial_filter,
    project_space,
)
from src.exceptions import ConfigurationError
from src.geometry.primitives import icosphere
from src.spectrum import STAGED_RADIUS_SCALE, FastSpectrum, SpectrumConfig


@pytest.fixture(scope="module")
def sphere_spectrum() -> FastSpectrum:
    verts, faces = icosphere(2)
    fs = FastSpectrum(SpectrumConfig(num_samples=30, radius_scale=STAGED_RADIUS_SCALE))
    fs.compute_eigenpairs(verts, faces)
    return fs


# ---------------------------------------------------------------------------
# Filter coefficients
# ---------------------------------------------------------------------------

def test_filter_shapes_and_leading_ones() -> None:
    k, m = 5, 20
    for coeffs in (no_filter(k, m), low_pass_filter(k, m), linear_filter(k, m),
                   polynomial_filter(k, m), band_boost_filter(k, m, transition=4),
                   band_stop_filter(k, m, transition=4)):
        assert coeffs.shape == (m,)
        np.testing.assert_array_equal(coeffs[:k], 1.0)


def test_low_pass_decays_toward_zero() -> None:
    coeffs = low_pass_filter(5, 20)
    assert np.all(np.diff(coeffs) <= 0)
    assert coeffs[5] == 1.0
    assert 0.0 <= coeffs[-1] < 0.2


def test_linear_and_polynomial_boost_high_frequencies() -> None:
    lin = linear_filter(5, 20)
    poly = polynomial_filter(5, 20)

    assert np.all(np.diff(lin) >= 0)
    assert 1.9 < lin[-1] < 2.0
    np.testing.assert_array_equal(poly[5:] >= 2.0, True)
    assert poly[-1] < 3.0


def test_band_boost_has_plateau_and_smooth_ramps() -> None:
    coeffs = band_boost_filter(4, 24, transition=5)

    np.testing.assert_array_equal(coeffs[9:19], 2.0)
    assert np.all(np.diff(coeffs[4:10]) >= 0)
    assert np.all(np.diff(coeffs[19:]) <= 0)
    assert coeffs[4] == 1.0
    assert coeffs.max() == 2.0


def test_band_boost_rejects_overlapping_ramps() -> None:
    with pytest.raises(ConfigurationError):
        band_boost_filter(4, 10, transition=4)


def test_band_stop_mirrors_band_boost() -> None:
    stop = band_stop_filter(4, 24, transition=5)

    np.testing.assert_array_equal(stop[:5], 1.0)
    np.testing.assert_array_equal(stop[9:19], 0.0)
    assert np.all(np.diff(stop[4:10]) <= 0)
    assert np.all(np.diff(stop[19:]) >= 0)
    assert stop.min() == 0.0 and stop.max() == 1.0
    np.testing.assert_allclose(stop + band_boost_filter(4, 24, transition=5), 2.0)
    with pytest.raises(ConfigurationError):
        band_stop_filter(4, 10, transition=4)


def test_create_filter_dispatch() -> None:
    np.testing.assert_array_equal(create_filter("low_pass", 3, 9), low_pass_filter(3, 9))
    np.testing.assert_array_equal(create_filter(FilterType.LINEAR, 3, 9), linear_filter(3, 9))
    with pytest.raises(ConfigurationError):
        create_filter("sharpen", 3, 9)
    with pytest.raises(ConfigurationError):
        create_filter("none", 10, 9)


# ---------------------------------------------------------------------------
# Projection and filtering
# ---------------------------------------------------------------------------

def test_projection_reproduces_signals_in_the_basis_span(sphere_spectrum) -> None:
    fs = sphere_spectrum
    k = fs.basis.shape[1]
    rng = np.random.default_rng(0)
    signal = np.asarray(fs.basis @ rng.standard_normal((k, 3)))

    out = project_space(signal, fs.basis, fs.operators.mass, fs.reduced_eigvecs, no_filter(0, k))

    np.testing.assert_allclose(out, signal, atol=1e-8)


def test_projection_keeps_constants_with_one_coefficient(sphere_spectrum) -> None:
    fs = sphere_spectrum
    n = fs.verts.shape[0]
    constant = np.full((n, 1), 3.0)

    out = project_space(constant, fs.basis, fs.operators.mass, fs.reduced_eigvecs, np.ones(1))

    np.testing.assert_allclose(out, constant, atol=1e-8)


def test_unfiltered_mesh_is_the_spectral_projection(sphere_spectrum) -> None:
    fs = sphere_spectrum
    k = fs.basis.shape[1]
    args = (fs.verts, fs.operators.mass, fs.basis, fs.reduced_eigvecs)

    unfiltered = construct_mesh_filter(*args, FilterType.NONE, 0, k)
    reference = project_space(fs.verts, fs.basis, fs.operators.mass, fs.reduced_eigvecs, np.ones(k))
    smoothed = construct_mesh_filter(*args, "low_pass", 4, k)

    assert unfiltered.shape == fs.verts.shape
    np.testing.assert_allclose(unfiltered, reference, atol=1e-12)
    assert np.isfinite(smoothed).all()


def test_filter_longer_than_spectrum_is_rejected(sphere_spectrum) -> None:
    fs = sphere_spectrum
    k = fs.basis.shape[1]
    with pytest.raises(ConfigurationError):
        construct_mesh_filter(fs.verts, fs.operators.mass, fs.basis, fs.reduced_eigvecs,
                              "linear", 4, k + 1)


def test_band_stop_and_band_boost_average_to_the_projection(sphere_spectrum) -> None:
    fs = sphere_spectrum
    k = fs.basis.shape[1]

    def proj(coeffs):
        return project_space(fs.verts, fs.basis, fs.operators.mass, fs.reduced_eigvecs, coeffs)

    stopped = proj(create_filter(FilterType.BAND_STOP, 4, k))
    boosted = proj(create_filter("band_boost", 4, k))

    np.testing.assert_allclose((stopped + boosted) / 2.0, proj(np.ones(k)), atol=1e-10)
    out = construct_mesh_filter(fs.verts, fs.operators.mass, fs.basis, fs.reduced_eigvecs, "band_stop", 4, k)
    assert out.shape == fs.verts.shape
    assert np.isfinite(out).all()


# ---------------------------------------------------------------------------
# Diffusion distance
# ---------------------------------------------------------------------------

def test_diffusion_tensor_shape_and_time_zero(sphere_spectrum) -> None:
    fs = sphere_spectrum
    phi = fs.lift_eigenvectors()

    tensor = construct_diffusion_tensor(phi, fs.reduced_eigvals, 10, [0.0, 0.5, 2.0])

    assert tensor.shape == (3, fs.verts.shape[0], 10)
    np.testing.assert_allclose(tensor[0], phi[:, :10])

    reduced = construct_diffusion_tensor_reduced(fs.basis, fs.reduced_eigvecs, fs.reduced_eigvals, 10,
                                                 [0.0, 0.5, 2.0])
    np.testing.assert_allclose(reduced, tensor, atol=1e-12)


def test_diffusion_distance_properties(sphere_spectrum) -> None:
    fs = sphere_spectrum
    tensor = construct_diffusion_tensor(fs.lift_eigenvectors(), fs.reduced_eigvals, 15, [0.1, 5.0])

    early = diffusion_distance(tensor, 0, vertex=0)
    late = diffusion_distance(tensor, 1, vertex=0)

    assert early.shape == (fs.verts.shape[0],)
    assert early[0] == 0.0
    assert (early >= 0).all()
    # Diffusion blurs everything together over time
    assert late.max() < early.max()


def test_diffusion_tensor_rejects_bad_eig_count(sphere_spectrum) -> None:
    fs = sphere_spectrum
    with pytest.raises(ConfigurationError):
        construct_diffusion_tensor(fs.lift_eigenvectors(), fs.reduced_eigvals, 0, [1.0])
