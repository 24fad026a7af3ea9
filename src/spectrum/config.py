"""Pipeline parameters."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..exceptions import ConfigurationError
from ..geometry.sampling import SAMPLING_STRATEGIES

# Empirical support-radius scales. The one-shot entry point and the staged
# entry point use different ratios; both are kept explicit.
ONE_SHOT_RADIUS_SCALE = math.sqrt(0.7 ** 2 + 0.7 ** 2)
# Targets roughly ten non-zeros per basis row
STAGED_RADIUS_SCALE = math.sqrt(1.1 ** 2 + 0.7 ** 2)

EIGENSOLVER_BACKENDS = ("scipy", "arpack", "torch")


@dataclass
class SpectrumConfig:
    num_samples: int = 100
    sampling: Union[str, Callable] = "farthest_point"
    radius_scale: Optional[float] = None  # None -> entry-point default
    support_radius: Optional[float] = None  # overrides the radius heuristic
    num_eigs: Optional[int] = None  # None -> full reduced spectrum
    backend: str = "scipy"
    num_workers: Optional[int] = None  # None -> os.cpu_count()
    seed: Optional[int] = None

    def validate(self) -> "SpectrumConfig":
        """Check every field, raising ``ConfigurationError`` on the first bad one."""
        if isinstance(self.num_samples, bool) or not isinstance(self.num_samples, int):
            raise ConfigurationError(f"num_samples must be an integer, got {self.num_samples!r}")
        if self.num_samples <= 0:
            raise ConfigurationError(f"num_samples must be positive, got {self.num_samples}")
        if self.radius_scale is not None and not self.radius_scale > 0:
            raise ConfigurationError(f"radius_scale must be positive, got {self.radius_scale}")
        if self.support_radius is not None and not self.support_radius > 0:
            raise ConfigurationError(f"support_radius must be positive, got {self.support_radius}")
        if self.num_eigs is not None and not 0 < self.num_eigs <= self.num_samples:
            raise ConfigurationError(
                f"num_eigs must be in [1, num_samples={self.num_samples}], got {self.num_eigs}"
            )
        if not callable(self.sampling) and self.sampling not in SAMPLING_STRATEGIES:
            raise ConfigurationError(
                f"Unknown sampling strategy {self.sampling!r}; expected one of {sorted(SAMPLING_STRATEGIES)}"
            )
        if self.backend not in EIGENSOLVER_BACKENDS:
            raise ConfigurationError(
                f"Unknown eigensolver backend {self.backend!r}; expected one of {EIGENSOLVER_BACKENDS}"
            )
        if self.num_workers is not None and self.num_workers < 1:
            raise ConfigurationError(f"num_workers must be >= 1, got {self.num_workers}")
        return self

    def resolved_workers(self) -> int:
        return self.num_workers or os.cpu_count() or 1
