"""
Configuration
=============

Assembly options and the diagonal-handling policy used by elimination.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DiagonalPolicy(Enum):
    """What happens to the diagonal entry of an eliminated row/column."""
    ONE = "one"      # A[d, d] = 1,   rhs[d] = value
    KEEP = "keep"    # A[d, d] kept,  rhs[d] = A[d, d] * value
    ZERO = "zero"    # A[d, d] = 0,   rhs[d] = 0


@dataclass
class AssemblyConfig:
    """Configuration for bilinear form assembly."""
    precompute_sparsity: bool = False   # Predict the nonzero pattern before scattering
    use_element_matrices: bool = False  # Keep the element matrix cache between passes
    parallel: bool = False              # Compute element matrices concurrently
    max_workers: Optional[int] = None   # Thread pool size (None: executor default)
    skip_zeros: bool = True             # Skip exact zeros when scattering/finalizing
    diagonal_policy: DiagonalPolicy = DiagonalPolicy.ONE

    def __post_init__(self):
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")
        if not isinstance(self.diagonal_policy, DiagonalPolicy):
            self.diagonal_policy = DiagonalPolicy(self.diagonal_policy)
