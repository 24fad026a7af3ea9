"""
Reduced-basis approximation of the Laplace-Beltrami spectrum.
"""

from .basis import construct_basis, partition_samples, support_radius
from .config import (
    EIGENSOLVER_BACKENDS,
    ONE_SHOT_RADIUS_SCALE,
    STAGED_RADIUS_SCALE,
    SpectrumConfig,
)
from .eigensolve import solve_generalized_eigenproblem
from .normalize import form_partition_of_unity, normalize_reduced_eigenvectors
from .pipeline import FastSpectrum, PipelineStage, PipelineState
from .reduce import project_operators

__all__ = [
    # Orchestration
    'FastSpectrum',
    'PipelineStage',
    'PipelineState',
    'SpectrumConfig',
    'EIGENSOLVER_BACKENDS',
    'ONE_SHOT_RADIUS_SCALE',
    'STAGED_RADIUS_SCALE',
    # Stages
    'construct_basis',
    'partition_samples',
    'support_radius',
    'form_partition_of_unity',
    'project_operators',
    'solve_generalized_eigenproblem',
    'normalize_reduced_eigenvectors',
]
