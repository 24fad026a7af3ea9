#!/usr/bin/env python3
"""
Compute an approximate Laplace-Beltrami spectrum for a triangle mesh.

This script:
1. Loads a mesh file (or generates an icosphere)
2. Runs the reduced-basis pipeline
3. Prints a summary of the spectrum
4. Optionally saves the basis/eigenpairs and a spectrally filtered mesh

Usage:
    python3 scripts/compute_spectrum.py bunny.off --samples 300 --output results/bunny
    python3 scripts/compute_spectrum.py --icosphere 3 --samples 100 --filter low_pass
"""

import argparse
import logging
import os
import sys
import time

import numpy as np
from scipy import sparse

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.applications import FilterType, construct_mesh_filter
from src.exceptions import SpectrumError
from src.geometry import icosphere, write_mesh
from src.logging_config import setup_logging
from src.spectrum import EIGENSOLVER_BACKENDS, FastSpectrum, SpectrumConfig


def build_parser():
    parser = argparse.ArgumentParser(description='Fast approximate Laplacian eigenpairs of a triangle mesh')
    parser.add_argument('mesh', nargs='?',
                        help='Input mesh (.off, .obj, .ply, .stl)')
    parser.add_argument('--icosphere', type=int, metavar='N',
                        help='Use a generated icosphere with N subdivisions instead of a file')
    parser.add_argument('--samples', type=int, default=100,
                        help='Number of landmark samples (default: 100)')
    parser.add_argument('--sampling', default='farthest_point', choices=['farthest_point', 'random'],
                        help='Landmark sampling strategy (default: farthest_point)')
    parser.add_argument('--radius-scale', type=float,
                        help='Support radius scale (default: one-shot heuristic)')
    parser.add_argument('--support-radius', type=float,
                        help='Explicit support radius; overrides the heuristic')
    parser.add_argument('--eigs', type=int,
                        help='Number of eigenpairs (default: all)')
    parser.add_argument('--backend', default='scipy', choices=EIGENSOLVER_BACKENDS,
                        help='Reduced eigensolver (default: scipy)')
    parser.add_argument('--workers', type=int,
                        help='Basis construction threads (default: CPU count)')
    parser.add_argument('--seed', type=int,
                        help='Seed for random sampling')
    parser.add_argument('--output', type=str,
                        help='Output prefix; writes <prefix>_spectrum.npz and <prefix>_basis.npz')
    parser.add_argument('--filter', choices=[f.value for f in FilterType],
                        help='Write a spectrally filtered copy of the mesh')
    parser.add_argument('--filter-k', type=int, default=10,
                        help='Eigenvectors kept untouched by the filter (default: 10)')
    parser.add_argument('--filter-m', type=int,
                        help='Filter length (default: all eigenvectors)')
    parser.add_argument('--filter-output', type=str, default='filtered.ply',
                        help='Filtered mesh path (default: filtered.ply)')
    parser.add_argument('--log-file', type=str,
                        help='Also write timestamped stage logs to this file')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.mesh is None) == (args.icosphere is None):
        parser.error('give exactly one of a mesh file or --icosphere')

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    config = SpectrumConfig(
        num_samples=args.samples,
        sampling=args.sampling,
        radius_scale=args.radius_scale,
        support_radius=args.support_radius,
        num_eigs=args.eigs,
        backend=args.backend,
        num_workers=args.workers,
        seed=args.seed,
    )

    print("=" * 60)
    print("FAST APPROXIMATE SPECTRUM")
    print("=" * 60)

    try:
        fs = FastSpectrum(config)
        start = time.time()
        if args.icosphere is not None:
            verts, faces = icosphere(args.icosphere)
            eigvecs, eigvals = fs.compute_eigenpairs(verts, faces)
        else:
            eigvecs, eigvals = fs.compute_eigenpairs_from_file(args.mesh)
        elapsed = time.time() - start
    except SpectrumError as exc:
        print(f"\n❌ {type(exc).__name__}: {exc}")
        return 1

    n = fs.verts.shape[0]
    print(f"\nMesh: {n} vertices, {fs.faces.shape[0]} faces")
    print(f"Samples: {fs.samples.size}")
    print(f"Basis: {fs.basis.shape[0]}x{fs.basis.shape[1]}, {fs.basis.nnz / n:.1f} non-zeros per row")
    print(f"Eigenpairs: {eigvals.size} in {elapsed:.2f}s")
    shown = min(10, eigvals.size)
    print(f"Smallest eigenvalues: {np.array2string(eigvals[:shown], precision=4)}")

    if args.output:
        out_dir = os.path.dirname(args.output)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        np.savez(f"{args.output}_spectrum.npz",
                 eigenvalues=eigvals, eigenvectors=eigvecs, samples=fs.samples)
        sparse.save_npz(f"{args.output}_basis.npz", fs.basis)
        print(f"\nSaved: {args.output}_spectrum.npz, {args.output}_basis.npz")

    if args.filter:
        m = args.filter_m or eigvals.size
        k = min(args.filter_k, m)
        try:
            new_verts = construct_mesh_filter(
                fs.verts, fs.operators.mass, fs.basis, eigvecs, args.filter, k, m
            )
        except SpectrumError as exc:
            print(f"\n❌ {type(exc).__name__}: {exc}")
            return 1
        write_mesh(args.filter_output, new_verts, fs.faces)
        print(f"Filtered mesh ({args.filter}, k={k}, m={m}) saved to: {args.filter_output}")

    print("\n" + "=" * 60)
    print("✅ DONE")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
