"""
Boundary Condition Elimination
==============================

Essential dof markers and elimination of essential dofs from a square
global operator, either directly into a right-hand side or recorded in a
companion matrix for later right-hand side corrections.

Essential markers are integer arrays over all dofs in which a NEGATIVE
entry marks an essential dof. This is unrelated to the orientation sign of
a vdof (see vdofs.VdofList).
"""

import logging

import numpy as np
from scipy.sparse import csr_matrix
from typing import Sequence, Tuple

from ..config import DiagonalPolicy
from ..errors import AssemblyError
from .sparse_matrix import (
    eliminate_rows_cols, eliminate_rows_cols_recorded, part_mult
)

logger = logging.getLogger(__name__)


def mark_essential_dofs(n_dof: int, ess_dofs: Sequence[int]) -> np.ndarray:
    """
    Essential marker with -1 at the given dofs.

    Args:
        n_dof: total number of dofs
        ess_dofs: essential dof indices

    Returns:
        marker: shape (n_dof,)
    """
    marker = np.zeros(n_dof, dtype=np.int64)
    marker[np.asarray(ess_dofs, dtype=np.int64)] = -1
    return marker


def essential_dofs_from_marker(marker: np.ndarray) -> np.ndarray:
    """Indices whose marker entry is negative."""
    return np.flatnonzero(np.asarray(marker) < 0)


def merge_essential_markers(*markers: np.ndarray) -> np.ndarray:
    """A dof is essential in the result if it is essential in any marker."""
    if not markers:
        raise ValueError("at least one marker is required")
    sizes = {len(m) for m in markers}
    if len(sizes) != 1:
        raise ValueError(f"markers have different sizes: {sorted(sizes)}")
    essential = np.any([np.asarray(m) < 0 for m in markers], axis=0)
    return np.where(essential, -1, 0).astype(np.int64)


def get_free_dofs(n_dof: int, ess_dofs: Sequence[int]) -> np.ndarray:
    """
    Get indices of free (unconstrained) DOFs.

    Args:
        n_dof: total number of DOFs
        ess_dofs: constrained DOF indices

    Returns:
        free_dofs: indices of free DOFs
    """
    free = np.ones(n_dof, dtype=bool)
    free[np.asarray(ess_dofs, dtype=np.int64)] = False
    return np.flatnonzero(free)


def _check_marker(marker: np.ndarray, n_dof: int) -> np.ndarray:
    marker = np.asarray(marker)
    if marker.shape != (n_dof,):
        raise AssemblyError(f"incorrect dof array size: {marker.shape}, expected ({n_dof},)")
    return marker


def _check_vector(v: np.ndarray, n_dof: int, name: str) -> None:
    if np.shape(v) != (n_dof,):
        raise AssemblyError(f"incorrect {name} vector size: {np.shape(v)}, "
                            f"expected ({n_dof},)")


def eliminate_essential_dofs(A: csr_matrix, ess_marker: np.ndarray, sol: np.ndarray,
                             rhs: np.ndarray,
                             policy: DiagonalPolicy = DiagonalPolicy.ONE) -> None:
    """
    Direct elimination: modify A and rhs in place for the marked dofs.

    Args:
        A: square csr_matrix
        ess_marker: shape (n,), negative entries mark essential dofs
        sol: shape (n,), prescribed values at the essential dofs
        rhs: shape (n,), right-hand side
        policy: DiagonalPolicy
    """
    n = A.shape[0]
    marker = _check_marker(ess_marker, n)
    _check_vector(sol, n, "solution")
    _check_vector(rhs, n, "rhs")

    dofs = essential_dofs_from_marker(marker)
    eliminate_rows_cols(A, dofs, sol, rhs, policy)
    logger.debug("Eliminated %d essential dofs (direct, %s)", len(dofs), policy.value)


def eliminate_essential_dofs_recorded(A: csr_matrix, ess_marker: np.ndarray,
                                      policy: DiagonalPolicy = DiagonalPolicy.ONE
                                      ) -> csr_matrix:
    """
    Recordable elimination: move the marked rows/columns of A into a
    companion matrix.

    Returns:
        Ae: csr_matrix with A_before == A_after + Ae
    """
    marker = _check_marker(ess_marker, A.shape[0])
    dofs = essential_dofs_from_marker(marker)
    Ae = eliminate_rows_cols_recorded(A, dofs, policy)
    logger.debug("Eliminated %d essential dofs (recorded, %s)", len(dofs), policy.value)
    return Ae


def eliminate_in_rhs(A: csr_matrix, Ae: csr_matrix, ess_dofs: Sequence[int],
                     x: np.ndarray, b: np.ndarray) -> None:
    """
    Correct b for new prescribed values x after recordable elimination.

    b -= Ae[:, ess] @ x[ess] updates the unconstrained rows, then the
    constrained rows are overwritten with (A @ x)[ess], which reproduces the
    diagonal policy used during elimination.

    Args:
        A: eliminated operator
        Ae: companion matrix from the recordable elimination
        ess_dofs: essential dof indices
        x: shape (n,), values at the essential dofs
        b: shape (n,), right-hand side (modified in place)
    """
    n = A.shape[0]
    _check_vector(x, n, "solution")
    _check_vector(b, n, "rhs")
    ess_dofs = np.asarray(ess_dofs, dtype=np.int64)
    if len(ess_dofs) == 0:
        return

    b -= csr_matrix(Ae)[:, ess_dofs] @ x[ess_dofs]
    part_mult(A, ess_dofs, x, b)


def apply_dirichlet_bc(K: csr_matrix, F: np.ndarray,
                       bc_dofs: np.ndarray, bc_values: np.ndarray,
                       policy: DiagonalPolicy = DiagonalPolicy.ONE
                       ) -> Tuple[csr_matrix, np.ndarray]:
    """
    Apply Dirichlet boundary conditions to a copy of the system.

    Args:
        K: stiffness matrix, shape (n_dof, n_dof)
        F: force vector, shape (n_dof,)
        bc_dofs: indices of constrained DOFs
        bc_values: prescribed values at bc_dofs
        policy: DiagonalPolicy

    Returns:
        K_bc, F_bc: modified system with BCs applied
    """
    if len(bc_dofs) != len(bc_values):
        raise ValueError("bc_dofs and bc_values must have same length")

    K = csr_matrix(K, dtype=np.float64, copy=True)
    F = np.array(F, dtype=np.float64)

    sol = np.zeros(K.shape[0])
    sol[np.asarray(bc_dofs, dtype=np.int64)] = bc_values
    eliminate_essential_dofs(K, mark_essential_dofs(K.shape[0], bc_dofs), sol, F, policy)
    return K, F
