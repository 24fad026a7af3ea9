"""Error taxonomy for the reduced-basis spectrum pipeline.

Every error here is unrecoverable for the current pipeline invocation: the
root causes are configuration or data problems, not transient faults, so
nothing in the pipeline retries. Callers adjust the sample count or radius
and run again.
"""

from __future__ import annotations

from typing import Sequence


class SpectrumError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(SpectrumError, ValueError):
    """Invalid pipeline parameters (sample count, radius, worker count...)."""


class PipelineStateError(SpectrumError, RuntimeError):
    """A stage was invoked before its prerequisite stages completed."""


class InvalidMeshError(SpectrumError, ValueError):
    """Empty, malformed or non-manifold geometry."""


class DegenerateRowError(SpectrumError):
    """A basis row has zero support, i.e. a vertex no landmark covers.

    Usually means the support radius is too small for the chosen samples.
    """

    def __init__(self, rows: Sequence[int]):
        self.rows = list(rows)
        preview = ", ".join(str(r) for r in self.rows[:10])
        if len(self.rows) > 10:
            preview += ", ..."
        super().__init__(
            f"{len(self.rows)} basis row(s) have zero support (vertices: {preview}); "
            "increase the support radius or the number of samples"
        )


class EigensolveFailure(SpectrumError):
    """The generalized eigensolver did not converge, or M' is not positive definite."""


class NonPositiveNormError(SpectrumError):
    """An eigenvector has a non-positive (or non-finite) mass norm."""

    def __init__(self, column: int, norm: float):
        self.column = column
        self.norm = norm
        super().__init__(f"Eigenvector {column} has non-positive mass norm {norm!r}")
