"""
Sparsity Pattern Prediction
===========================

Predicts the dof-dof nonzero pattern of a global operator from element
(and, when face integrators are present, face) connectivity.
"""

import logging

from typing import Optional

from ..table import Table

logger = logging.getLogger(__name__)


def element_to_dof_table(space) -> Table:
    """
    Element -> dof incidence of a dof space.

    Args:
        space: dof provider (get_ne, get_element_vdofs, vsize)

    Returns:
        Table with one row per element
    """
    return Table.from_lists(
        (space.get_element_vdofs(i).indices for i in range(space.get_ne())),
        n_cols=space.vsize,
    )


def build_sparsity_pattern(space, include_faces: bool = False) -> Table:
    """
    Dof -> dof adjacency covering every entry an assembly pass can touch.

    Two dofs are adjacent if they share an element. With include_faces,
    dofs of elements sharing a face are also adjacent (dof -> face ->
    element -> face -> dof), which covers interior-face couplings.

    Args:
        space: dof provider
        include_faces: widen the pattern for face integrators

    Returns:
        Table of shape (vsize, vsize)
    """
    elem_dof = element_to_dof_table(space)
    dof_elem = elem_dof.transpose(n_cols=space.get_ne())
    dof_dof = dof_elem @ elem_dof

    if include_faces:
        face_elem = space.mesh.get_face_to_element_table()
        face_dof = face_elem @ elem_dof
        dof_face = face_dof.transpose(n_cols=face_elem.n_rows)
        # Union with the element pattern keeps elements without faces covered
        dof_dof = Table.from_matrix(dof_dof.to_matrix() + (dof_face @ face_dof).to_matrix())

    logger.debug("Predicted sparsity: %d rows, %d nonzeros%s",
                 dof_dof.n_rows, dof_dof.nnz, " (with faces)" if include_faces else "")
    return dof_dof


def predict_sparsity(space, precompute: bool, include_faces: bool) -> Optional[Table]:
    """
    Sparsity pattern for a new global operator, or None for dynamic
    accumulation.

    Prediction is skipped when disabled or when the space has more than one
    vector component.
    """
    if not precompute:
        return None
    if space.vdim > 1:
        logger.debug("Skipping sparsity prediction for vdim=%d space", space.vdim)
        return None
    return build_sparsity_pattern(space, include_faces)
