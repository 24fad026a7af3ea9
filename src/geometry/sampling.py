"""
Landmark sampling strategies.

A strategy takes ``(verts, edge_lengths, num_samples)`` and returns an ordered
array of distinct vertex indices. Farthest-point sampling is the default; any
callable with the same contract can be passed to ``construct_samples``.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Union

import numpy as np
from scipy import sparse
from scipy.sparse.csgraph import dijkstra

from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SamplingStrategy = Callable[..., np.ndarray]


def farthest_point_sampling(verts: np.ndarray,
                            edge_lengths: sparse.csr_matrix,
                            num_samples: int,
                            seed_vertex: int = 0) -> np.ndarray:
    """
    Geodesic farthest-point sampling over the mesh edge graph.

    Starting from ``seed_vertex``, repeatedly add the vertex whose graph
    distance to the already-selected set is largest (lowest index on ties).
    One single-source Dijkstra per selected sample keeps the running
    minimum-distance field up to date.
    """
    num_verts = verts.shape[0]
    num_samples = min(num_samples, num_verts)

    samples = np.empty(num_samples, dtype=np.int64)
    min_dist = np.full(num_verts, np.inf)

    current = int(seed_vertex)
    for i in range(num_samples):
        samples[i] = current
        dist = dijkstra(edge_lengths, directed=False, indices=current)
        np.minimum(min_dist, dist, out=min_dist)
        # Unreachable vertices (other components) are picked before anything else
        current = int(np.argmax(min_dist))

    return samples


def random_sampling(verts: np.ndarray,
                    edge_lengths: sparse.csr_matrix,
                    num_samples: int,
                    seed: Optional[int] = None) -> np.ndarray:
    """Uniformly random distinct vertices."""
    rng = np.random.default_rng(seed)
    num_samples = min(num_samples, verts.shape[0])
    return rng.choice(verts.shape[0], size=num_samples, replace=False).astype(np.int64)


SAMPLING_STRATEGIES: Dict[str, SamplingStrategy] = {
    "farthest_point": farthest_point_sampling,
    "random": random_sampling,
}


def construct_samples(verts: np.ndarray,
                      edge_lengths: sparse.csr_matrix,
                      num_samples: int,
                      strategy: Union[str, SamplingStrategy] = "farthest_point",
                      seed: Optional[int] = None) -> np.ndarray:
    """
    Select the landmark set with the named (or given) strategy.

    Returns:
        samples: (k,) int64 array of distinct vertex indices, k <= num_samples
    """
    if num_samples <= 0:
        raise ConfigurationError(f"num_samples must be positive, got {num_samples}")

    if callable(strategy):
        samples = strategy(verts, edge_lengths, num_samples)
    elif strategy == "random":
        samples = random_sampling(verts, edge_lengths, num_samples, seed=seed)
    elif strategy in SAMPLING_STRATEGIES:
        samples = SAMPLING_STRATEGIES[strategy](verts, edge_lengths, num_samples)
    else:
        raise ConfigurationError(
            f"Unknown sampling strategy {strategy!r}; expected one of {sorted(SAMPLING_STRATEGIES)}"
        )

    samples = np.asarray(samples, dtype=np.int64)
    if samples.ndim != 1 or samples.size == 0:
        raise ConfigurationError("Sampling strategy returned no samples")
    if samples.min() < 0 or samples.max() >= verts.shape[0]:
        raise ConfigurationError("Sampling strategy returned out-of-range vertex indices")
    if np.unique(samples).size != samples.size:
        raise ConfigurationError("Sampling strategy returned duplicate vertex indices")

    if samples.size < num_samples:
        logger.warning("Requested %d samples but the mesh only yields %d.", num_samples, samples.size)
    logger.info("A set of %d samples are constructed.", samples.size)
    return samples
