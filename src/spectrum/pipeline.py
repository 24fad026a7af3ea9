"""
Fast approximate Laplace-Beltrami spectrum via a reduced geodesic basis.

Pipeline:
    mesh -> Laplacian operators -> landmark samples -> basis U
         -> partition of unity -> S' = U^T S U, M' = U^T M U
         -> S' x = lambda M' x -> mass-orthonormal x -> (lift) U x

``FastSpectrum`` owns a ``PipelineState`` and exposes every stage on its own
(for inspection) as well as the one-shot ``compute_eigenpairs``. A stage only
replaces the state after it fully succeeds, and clears whatever later stages
had derived from the previous inputs.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import sparse

from ..exceptions import ConfigurationError, EigensolveFailure, PipelineStateError
from ..geometry.io import read_mesh
from ..geometry.laplacian import LaplacianOperators, construct_laplacian
from ..geometry.sampling import construct_samples
from .basis import construct_basis, support_radius
from .config import ONE_SHOT_RADIUS_SCALE, STAGED_RADIUS_SCALE, SpectrumConfig
from .eigensolve import solve_generalized_eigenproblem
from .normalize import form_partition_of_unity, normalize_reduced_eigenvectors
from .reduce import project_operators

logger = logging.getLogger(__name__)


class PipelineStage(enum.IntEnum):
    UNINITIALIZED = 0
    LAPLACIAN_BUILT = 1
    SAMPLED = 2
    BASIS_BUILT = 3
    REDUCED_ASSEMBLED = 4
    SOLVED = 5


@dataclass(frozen=True, eq=False)
class PipelineState:
    """Everything one pipeline run derives, stage by stage."""
    verts: Optional[np.ndarray] = None
    faces: Optional[np.ndarray] = None
    operators: Optional[LaplacianOperators] = None
    samples: Optional[np.ndarray] = None
    max_dist: Optional[float] = None
    basis: Optional[sparse.csr_matrix] = None
    reduced_stiffness: Optional[sparse.csr_matrix] = None
    reduced_mass: Optional[sparse.csr_matrix] = None
    reduced_eigvals: Optional[np.ndarray] = None
    reduced_eigvecs: Optional[np.ndarray] = None

    @property
    def stage(self) -> PipelineStage:
        if self.reduced_eigvecs is not None:
            return PipelineStage.SOLVED
        if self.reduced_mass is not None:
            return PipelineStage.REDUCED_ASSEMBLED
        if self.basis is not None:
            return PipelineStage.BASIS_BUILT
        if self.samples is not None:
            return PipelineStage.SAMPLED
        if self.operators is not None:
            return PipelineStage.LAPLACIAN_BUILT
        return PipelineStage.UNINITIALIZED


# Fields each stage produces; re-running a stage clears everything after it
_STAGE_FIELDS = {
    PipelineStage.LAPLACIAN_BUILT: ("operators",),
    PipelineStage.SAMPLED: ("samples",),
    PipelineStage.BASIS_BUILT: ("max_dist", "basis"),
    PipelineStage.REDUCED_ASSEMBLED: ("reduced_stiffness", "reduced_mass"),
    PipelineStage.SOLVED: ("reduced_eigvals", "reduced_eigvecs"),
}


def _cleared_after(stage: PipelineStage) -> dict:
    return {
        name: None
        for later, names in _STAGE_FIELDS.items() if later > stage
        for name in names
    }


class FastSpectrum:
    """
    Approximate Laplacian eigenpairs of a triangle mesh.

    Example:
        >>> fs = FastSpectrum(SpectrumConfig(num_samples=500))
        >>> eigvecs, eigvals = fs.compute_eigenpairs(verts, faces)
        >>> phi = fs.lift_eigenvectors()  # (n, 500) full-resolution eigenvectors
    """

    def __init__(self, config: Optional[SpectrumConfig] = None):
        self.config = (config or SpectrumConfig()).validate()
        self.state = PipelineState()

    @property
    def stage(self) -> PipelineStage:
        return self.state.stage

    def _require(self, stage: PipelineStage, action: str) -> None:
        if self.state.stage < stage:
            raise PipelineStateError(
                f"Cannot {action}: pipeline is at {self.state.stage.name}, needs {stage.name}"
            )

    def _commit(self, stage: PipelineStage, **values) -> None:
        self.state = dataclasses.replace(self.state, **_cleared_after(stage), **values)

    # ------------------------------------------------------------------
    # Mesh
    # ------------------------------------------------------------------

    def set_mesh(self, verts: np.ndarray, faces: np.ndarray) -> None:
        """Install a new mesh; discards every derived quantity."""
        verts = np.array(verts, dtype=np.float64)
        faces = np.array(faces, dtype=np.int64)
        verts.setflags(write=False)
        faces.setflags(write=False)
        self.state = PipelineState(verts=verts, faces=faces)

    def read_mesh(self, path: str) -> None:
        self.set_mesh(*read_mesh(path))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def construct_laplacian(self) -> None:
        """Stiffness/mass matrices, average edge length and graph tables."""
        if self.state.verts is None:
            raise PipelineStateError("Cannot construct the Laplacian: no mesh has been set")
        operators = construct_laplacian(self.state.verts, self.state.faces)
        self._commit(PipelineStage.LAPLACIAN_BUILT, operators=operators)

    def run_sampling(self) -> None:
        """Select the landmark set with the configured strategy."""
        self._require(PipelineStage.LAPLACIAN_BUILT, "run sampling")
        samples = construct_samples(
            self.state.verts,
            self.state.operators.edge_lengths,
            self.config.num_samples,
            strategy=self.config.sampling,
            seed=self.config.seed,
        )
        if self.config.num_eigs is not None and self.config.num_eigs > samples.size:
            raise ConfigurationError(
                f"num_eigs={self.config.num_eigs} exceeds the {samples.size} landmarks sampled "
                f"from a {self.state.verts.shape[0]}-vertex mesh"
            )
        samples.setflags(write=False)
        self._commit(PipelineStage.SAMPLED, samples=samples)

    def support_radius(self, default_scale: float = STAGED_RADIUS_SCALE) -> float:
        """Radius the basis stage will use: explicit value, else the heuristic."""
        self._require(PipelineStage.SAMPLED, "compute the support radius")
        if self.config.support_radius is not None:
            return self.config.support_radius
        scale = self.config.radius_scale if self.config.radius_scale is not None else default_scale
        return support_radius(
            self.state.verts.shape[0],
            self.state.samples.size,
            self.state.operators.avg_edge_length,
            scale,
        )

    def construct_basis(self, default_scale: float = STAGED_RADIUS_SCALE) -> None:
        """Geodesic basis followed by partition of unity."""
        self._require(PipelineStage.SAMPLED, "construct the basis")
        max_dist = self.support_radius(default_scale)
        logger.debug("Support radius %.6g (avg edge %.6g)", max_dist, self.state.operators.avg_edge_length)

        basis = construct_basis(
            self.state.verts.shape[0],
            self.state.operators.edge_lengths,
            self.state.samples,
            max_dist,
            num_workers=self.config.resolved_workers(),
        )
        basis = form_partition_of_unity(basis)
        self._commit(PipelineStage.BASIS_BUILT, max_dist=max_dist, basis=basis)

    def construct_restricted_problem(self) -> None:
        """Galerkin projection S' = U^T S U, M' = U^T M U."""
        self._require(PipelineStage.BASIS_BUILT, "construct the reduced problem")
        S_, M_ = project_operators(
            self.state.operators.stiffness, self.state.operators.mass, self.state.basis
        )
        self._commit(PipelineStage.REDUCED_ASSEMBLED, reduced_stiffness=S_, reduced_mass=M_)

    def solve_restricted_problem(self) -> None:
        """Generalized eigensolve of (S', M') and mass-orthonormal rescaling."""
        self._require(PipelineStage.REDUCED_ASSEMBLED, "solve the reduced problem")

        mass_diag = self.state.operators.mass.diagonal()
        if not (mass_diag > 0).all():
            bad = np.flatnonzero(~(mass_diag > 0))
            raise EigensolveFailure(
                f"Mass matrix is not positive definite: {bad.size} non-positive diagonal "
                f"entries (first at vertex {int(bad[0])})"
            )

        eigvals, eigvecs = solve_generalized_eigenproblem(
            self.state.reduced_stiffness,
            self.state.reduced_mass,
            num_eigs=self.config.num_eigs,
            backend=self.config.backend,
        )
        eigvecs = normalize_reduced_eigenvectors(eigvecs, self.state.reduced_mass)
        eigvals.setflags(write=False)
        eigvecs.setflags(write=False)
        self._commit(PipelineStage.SOLVED, reduced_eigvals=eigvals, reduced_eigvecs=eigvecs)

    # ------------------------------------------------------------------
    # One-shot entry points
    # ------------------------------------------------------------------

    def compute_eigenpairs(self, verts: np.ndarray, faces: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Run every stage on the given mesh.

        Uses ``ONE_SHOT_RADIUS_SCALE`` unless the config sets a radius or scale.

        Returns:
            reduced_eigvecs: (k, num_eigs) M'-orthonormal eigenvectors
            reduced_eigvals: (num_eigs,) ascending eigenvalues
        """
        self.set_mesh(verts, faces)
        self.construct_laplacian()
        self.run_sampling()
        self.construct_basis(default_scale=ONE_SHOT_RADIUS_SCALE)
        self.construct_restricted_problem()
        self.solve_restricted_problem()
        return self.state.reduced_eigvecs, self.state.reduced_eigvals

    def compute_eigenpairs_from_file(self, path: str) -> Tuple[np.ndarray, np.ndarray]:
        return self.compute_eigenpairs(*read_mesh(path))

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def lift_eigenvectors(self) -> np.ndarray:
        """Full-resolution approximate eigenvectors U x, shape (n, num_eigs)."""
        self._require(PipelineStage.SOLVED, "lift eigenvectors")
        return np.asarray(self.state.basis @ self.state.reduced_eigvecs)

    @property
    def verts(self) -> Optional[np.ndarray]:
        return self.state.verts

    @property
    def faces(self) -> Optional[np.ndarray]:
        return self.state.faces

    @property
    def operators(self) -> Optional[LaplacianOperators]:
        return self.state.operators

    @property
    def samples(self) -> Optional[np.ndarray]:
        return self.state.samples

    @property
    def basis(self) -> Optional[sparse.csr_matrix]:
        return self.state.basis

    @property
    def reduced_eigvals(self) -> Optional[np.ndarray]:
        return self.state.reduced_eigvals

    @property
    def reduced_eigvecs(self) -> Optional[np.ndarray]:
        return self.state.reduced_eigvecs

    def get_reduced_laplacian(self) -> Tuple[sparse.csr_matrix, sparse.csr_matrix]:
        """The reduced pair (S', M')."""
        self._require(PipelineStage.REDUCED_ASSEMBLED, "get the reduced Laplacian")
        return self.state.reduced_stiffness, self.state.reduced_mass
