"""
Geodesic compact-support basis construction.

Column i of the basis matrix U is a smooth bump centred at landmark i:

    w(d) = (1 - t)^2 (1 + 2 t),   t = d / r

where d is the shortest-path distance (over mesh edges) from the landmark and
r the support radius. This is the cubic 1 - 3 t^2 + 2 t^3 with w(0) = 1,
w(r) = 0 and zero slope at both ends, written in factored form so it stays
strictly positive for every d < r.

Landmarks are split into contiguous blocks, one per worker thread. Each
worker runs the truncated shortest-path search for its block through
``scipy.sparse.csgraph.dijkstra`` and turns the distances into triplets with
numpy, filling its own buffers. After the pool joins, the buffers are
concatenated in worker order and U is assembled in one pass.
"""

from __future__ import annotations

import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from scipy import sparse
from scipy.sparse.csgraph import dijkstra

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Expected non-zeros per basis row, used to pre-size the triplet buffers
NNZ_PER_ROW = 20

# Landmarks per dijkstra call; bounds each worker's dense distance block
DIST_CHUNK = 64


def support_radius(num_verts: int, num_samples: int, avg_edge_length: float, scale: float) -> float:
    """Radius heuristic: ``scale * sqrt(n / k) * avg_edge_length``."""
    if num_samples <= 0:
        raise ConfigurationError(f"num_samples must be positive, got {num_samples}")
    return scale * math.sqrt(num_verts / num_samples) * avg_edge_length


def partition_samples(num_samples: int, num_workers: int) -> List[Tuple[int, int]]:
    """
    Static contiguous partition of landmark indices.

    Every worker gets ``ceil(k / workers)`` landmarks except the last one,
    which absorbs whatever is left (possibly nothing).

    Returns:
        list of (start, stop) half-open ranges, one per worker
    """
    block = math.ceil(num_samples / num_workers)
    ranges = []
    for tid in range(num_workers):
        start = min(tid * block, num_samples)
        stop = num_samples if tid == num_workers - 1 else min(start + block, num_samples)
        ranges.append((start, stop))
    return ranges


def bump_weights(dist: np.ndarray, max_dist: float) -> np.ndarray:
    """Cubic falloff ``(1 - t)^2 (1 + 2 t)`` with ``t = dist / max_dist``; 0 from r on."""
    t = np.minimum(np.asarray(dist, dtype=np.float64) / max_dist, 1.0)
    return (1.0 - t) ** 2 * (1.0 + 2.0 * t)


@dataclass
class _WorkerBuffers:
    """Triplet lists private to one worker."""
    capacity: int
    size: int = 0
    rows: np.ndarray = field(init=False, repr=False)
    cols: np.ndarray = field(init=False, repr=False)
    vals: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.capacity = max(self.capacity, 16)
        self.rows = np.empty(self.capacity, dtype=np.int64)
        self.cols = np.empty(self.capacity, dtype=np.int64)
        self.vals = np.empty(self.capacity, dtype=np.float64)

    def extend(self, rows: np.ndarray, cols: np.ndarray, vals: np.ndarray) -> None:
        end = self.size + rows.size
        if end > self.capacity:
            while self.capacity < end:
                self.capacity *= 2
            self.rows = np.resize(self.rows, self.capacity)
            self.cols = np.resize(self.cols, self.capacity)
            self.vals = np.resize(self.vals, self.capacity)
        self.rows[self.size:end] = rows
        self.cols[self.size:end] = cols
        self.vals[self.size:end] = vals
        self.size = end


def _build_block(edge_lengths: sparse.csr_matrix,
                 samples: np.ndarray,
                 start: int,
                 stop: int,
                 max_dist: float,
                 buf: _WorkerBuffers) -> _WorkerBuffers:
    """
    Truncated shortest-path search from ``samples[start:stop]``; emits basis triplets.

    Vertices farther than ``max_dist`` come back as inf from dijkstra and are
    skipped, as is any vertex whose weight rounds to zero right at the radius.
    """
    for lo in range(start, stop, DIST_CHUNK):
        hi = min(lo + DIST_CHUNK, stop)
        dist = dijkstra(edge_lengths, directed=False, indices=samples[lo:hi], limit=max_dist)
        local, verts = np.nonzero(dist < max_dist)
        vals = bump_weights(dist[local, verts], max_dist)
        keep = vals > 0
        buf.extend(verts[keep], local[keep] + lo, vals[keep])
    return buf


def construct_basis(num_verts: int,
                    edge_lengths: sparse.csr_matrix,
                    samples: np.ndarray,
                    max_dist: float,
                    num_workers: Optional[int] = None) -> sparse.csr_matrix:
    """
    Build the (num_verts x k) geodesic basis matrix, before partition of unity.

    Args:
        num_verts: number of mesh vertices
        edge_lengths: symmetric CSR edge-length table; its pattern is the
            adjacency graph
        samples: (k,) distinct landmark vertex indices
        max_dist: support radius r; vertices at graph distance >= r get no entry
        num_workers: thread count, defaults to ``os.cpu_count()``

    Returns:
        basis: CSR matrix with ``basis[v, i] = w(dist(samples[i], v))``,
            every stored entry strictly positive
    """
    samples = np.asarray(samples, dtype=np.int64)
    num_samples = samples.size

    if num_samples == 0:
        raise ConfigurationError("Cannot build a basis from an empty sample set")
    if not max_dist > 0 or not np.isfinite(max_dist):
        raise ConfigurationError(f"Support radius must be positive and finite, got {max_dist}")
    if samples.min() < 0 or samples.max() >= num_verts:
        raise ConfigurationError(f"Sample indices must lie in [0, {num_verts})")
    if np.unique(samples).size != num_samples:
        raise ConfigurationError("Sample indices must be distinct")

    num_workers = num_workers or os.cpu_count() or 1
    if num_workers < 1:
        raise ConfigurationError(f"num_workers must be >= 1, got {num_workers}")

    edge_lengths = sparse.csr_matrix(edge_lengths)

    ranges = partition_samples(num_samples, num_workers)
    buffers = [
        _WorkerBuffers(int(((stop - start) / num_samples) * NNZ_PER_ROW * num_verts))
        for start, stop in ranges
    ]
    for tid, (start, stop) in enumerate(ranges):
        logger.debug("Worker %d handles %d samples, starting from sample %d.", tid, stop - start, start)

    # Scatter: each worker fills only its own buffers
    with ThreadPoolExecutor(max_workers=num_workers) as pool:
        futures = [
            pool.submit(_build_block, edge_lengths, samples, start, stop, max_dist, buf)
            for (start, stop), buf in zip(ranges, buffers)
        ]
        # result() re-raises any worker exception here
        results = [f.result() for f in futures]

    # Gather in worker order
    rows = np.concatenate([buf.rows[:buf.size] for buf in results])
    cols = np.concatenate([buf.cols[:buf.size] for buf in results])
    vals = np.concatenate([buf.vals[:buf.size] for buf in results])

    basis = sparse.coo_matrix((vals, (rows, cols)), shape=(num_verts, num_samples)).tocsr()

    logger.info("A basis matrix (%dx%d) is constructed.", basis.shape[0], basis.shape[1])
    logger.debug("Basis has %d non-zeros (%.1f per row).", basis.nnz, basis.nnz / num_verts)
    return basis
