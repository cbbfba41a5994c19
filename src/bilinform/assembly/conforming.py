"""
Conforming Projection
=====================

Reduces operators assembled on an extended dof space to the conforming
space through a prolongation P (conforming -> extended), restricting the
rows with its transpose:

    A_conforming = P^T A P
"""

import logging

from scipy.sparse import csr_matrix
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def _project(A: csr_matrix, P_left: Optional[csr_matrix],
             P_right: Optional[csr_matrix]) -> csr_matrix:
    if P_left is not None:
        A = P_left.T @ A
    if P_right is not None:
        A = A @ P_right
    A = csr_matrix(A)
    A.sort_indices()
    return A


def conforming_project(A: csr_matrix, P: Optional[csr_matrix],
                       Ae: Optional[csr_matrix] = None
                       ) -> Tuple[csr_matrix, Optional[csr_matrix]]:
    """
    Project a square operator and its elimination companion.

    Args:
        A: operator on the extended space, shape (n_ext, n_ext)
        P: prolongation of shape (n_ext, n_conf), or None when the space
            is already conforming
        Ae: optional companion matrix, projected through the same P

    Returns:
        (A_conf, Ae_conf): unchanged inputs when P is None
    """
    if P is None:
        return A, Ae

    P = csr_matrix(P)
    if P.shape[0] != A.shape[0]:
        raise ValueError(f"prolongation has {P.shape[0]} rows, operator has {A.shape[0]}")

    A_conf = _project(A, P, P)
    Ae_conf = _project(Ae, P, P) if Ae is not None else None
    logger.debug("Conforming projection %s -> %s", A.shape, A_conf.shape)
    return A_conf, Ae_conf


def conforming_project_mixed(A: csr_matrix, P_test: Optional[csr_matrix],
                             P_trial: Optional[csr_matrix]) -> csr_matrix:
    """
    Project a rectangular operator: R_test^T A P_trial, where either side
    is skipped when its space has no prolongation.

    Args:
        A: operator of shape (test_ext, trial_ext)
        P_test: test-space prolongation or None
        P_trial: trial-space prolongation or None

    Returns:
        projected csr_matrix
    """
    if P_test is None and P_trial is None:
        return A
    if P_test is not None and P_test.shape[0] != A.shape[0]:
        raise ValueError(f"test prolongation has {P_test.shape[0]} rows, "
                         f"operator has {A.shape[0]}")
    if P_trial is not None and P_trial.shape[0] != A.shape[1]:
        raise ValueError(f"trial prolongation has {P_trial.shape[0]} rows, "
                         f"operator has {A.shape[1]} columns")

    A_conf = _project(A,
                      csr_matrix(P_test) if P_test is not None else None,
                      csr_matrix(P_trial) if P_trial is not None else None)
    logger.debug("Mixed conforming projection %s -> %s", A.shape, A_conf.shape)
    return A_conf
