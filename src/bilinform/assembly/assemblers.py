"""
Assembly Loops
==============

The four scatter loops of a square bilinear form. Each visits its entities
in increasing index order, sums the local matrices of all integrators of
its kind and adds the result into the accumulator at the entity's vdofs.
"""

import logging

import numpy as np
from typing import Callable, List, Optional

from ..integrators.base import BilinearFormIntegrator
from .element_matrices import ElementMatrixCache
from .sparse_matrix import SparseAccumulator

logger = logging.getLogger(__name__)


def sum_local_matrices(integrators: List[BilinearFormIntegrator],
                       local: Callable[[BilinearFormIntegrator], np.ndarray]) -> np.ndarray:
    """Sum local(integ) over integrators in registration order."""
    elmat = np.array(local(integrators[0]), dtype=np.float64)
    for integ in integrators[1:]:
        elmat += local(integ)
    return elmat


def assemble_domain(acc: SparseAccumulator, space,
                    integrators: List[BilinearFormIntegrator],
                    element_matrices: Optional[ElementMatrixCache] = None,
                    skip_zeros: bool = True) -> None:
    """
    Scatter element matrices into acc.

    Args:
        acc: global accumulator
        space: dof provider
        integrators: domain integrators
        element_matrices: cached element matrices to use instead of the
            integrators
        skip_zeros: zero-skip policy for the scatter
    """
    if not integrators:
        return

    for i in range(space.get_ne()):
        vdofs = space.get_element_vdofs(i)
        if element_matrices is not None:
            elmat = element_matrices[i]
        else:
            fe = space.get_fe(i)
            trans = space.get_element_transformation(i)
            elmat = sum_local_matrices(
                integrators, lambda integ: integ.assemble_element_matrix(fe, trans))
        acc.add_submatrix(vdofs, vdofs, elmat, skip_zeros)

    logger.debug("Assembled %d elements%s", space.get_ne(),
                 " from cached matrices" if element_matrices is not None else "")


def assemble_boundary(acc: SparseAccumulator, space,
                      integrators: List[BilinearFormIntegrator],
                      skip_zeros: bool = True) -> None:
    """Scatter boundary element matrices into acc."""
    if not integrators:
        return

    for i in range(space.get_nbe()):
        be = space.get_be(i)
        vdofs = space.get_bdr_element_vdofs(i)
        trans = space.get_bdr_element_transformation(i)
        elmat = sum_local_matrices(
            integrators, lambda integ: integ.assemble_element_matrix(be, trans))
        acc.add_submatrix(vdofs, vdofs, elmat, skip_zeros)

    logger.debug("Assembled %d boundary elements", space.get_nbe())


def assemble_interior_faces(acc: SparseAccumulator, space,
                            integrators: List[BilinearFormIntegrator],
                            skip_zeros: bool = True) -> None:
    """
    Scatter interior face matrices into acc.

    The face matrix is indexed by the vdofs of elem1 followed by those of
    elem2, giving both self- and cross-element coupling blocks. Faces
    without an interior transformation are skipped.
    """
    if not integrators:
        return

    mesh = space.mesh
    assembled = 0
    for f in range(mesh.n_faces):
        tr = mesh.get_interior_face_transformations(f)
        if tr is None:
            continue
        vdofs = space.get_element_vdofs(tr.elem1_no).concatenate(
            space.get_element_vdofs(tr.elem2_no))
        fe1 = space.get_fe(tr.elem1_no)
        fe2 = space.get_fe(tr.elem2_no)
        elmat = sum_local_matrices(
            integrators, lambda integ: integ.assemble_face_matrix(fe1, fe2, tr))
        acc.add_submatrix(vdofs, vdofs, elmat, skip_zeros)
        assembled += 1

    logger.debug("Assembled %d interior faces (%d skipped)", assembled,
                 mesh.n_faces - assembled)


def assemble_boundary_faces(acc: SparseAccumulator, space,
                            integrators: List[BilinearFormIntegrator],
                            skip_zeros: bool = True) -> None:
    """
    Scatter boundary face matrices into acc.

    There is no second element on a boundary face; fe1 is passed in both
    element slots and integrators must not use the second one.
    """
    if not integrators:
        return

    mesh = space.mesh
    assembled = 0
    for i in range(space.get_nbe()):
        tr = mesh.get_bdr_face_transformations(i)
        if tr is None:
            continue
        vdofs = space.get_element_vdofs(tr.elem1_no)
        fe1 = space.get_fe(tr.elem1_no)
        fe2 = fe1
        elmat = sum_local_matrices(
            integrators, lambda integ: integ.assemble_face_matrix(fe1, fe2, tr))
        acc.add_submatrix(vdofs, vdofs, elmat, skip_zeros)
        assembled += 1

    logger.debug("Assembled %d boundary faces", assembled)


def assemble_mixed_domain(acc: SparseAccumulator, trial_space, test_space,
                          integrators: List[BilinearFormIntegrator],
                          skip_zeros: bool = True, overwrite: bool = False) -> None:
    """
    Scatter rectangular element matrices (test rows, trial columns) into acc.

    Args:
        acc: global accumulator of shape (test vsize, trial vsize)
        trial_space: column dof provider
        test_space: row dof provider
        integrators: domain integrators providing assemble_element_matrix2
        skip_zeros: zero-skip policy for the scatter
        overwrite: set the local block instead of adding it
    """
    if not integrators:
        return

    scatter = acc.set_submatrix if overwrite else acc.add_submatrix
    for i in range(test_space.get_ne()):
        trial_fe = trial_space.get_fe(i)
        test_fe = test_space.get_fe(i)
        trans = test_space.get_element_transformation(i)
        elmat = sum_local_matrices(
            integrators,
            lambda integ: integ.assemble_element_matrix2(trial_fe, test_fe, trans))
        scatter(test_space.get_element_vdofs(i), trial_space.get_element_vdofs(i),
                elmat, skip_zeros)

    logger.debug("Assembled %d mixed elements%s", test_space.get_ne(),
                 " (overwrite)" if overwrite else "")


def assemble_mixed_boundary(acc: SparseAccumulator, trial_space, test_space,
                            integrators: List[BilinearFormIntegrator],
                            skip_zeros: bool = True) -> None:
    """Scatter rectangular boundary element matrices into acc."""
    if not integrators:
        return

    for i in range(test_space.get_nbe()):
        trial_be = trial_space.get_be(i)
        test_be = test_space.get_be(i)
        trans = test_space.get_bdr_element_transformation(i)
        elmat = sum_local_matrices(
            integrators,
            lambda integ: integ.assemble_element_matrix2(trial_be, test_be, trans))
        acc.add_submatrix(test_space.get_bdr_element_vdofs(i),
                          trial_space.get_bdr_element_vdofs(i), elmat, skip_zeros)

    logger.debug("Assembled %d mixed boundary elements", test_space.get_nbe())


def assemble_trace_faces(acc: SparseAccumulator, trial_space, test_space,
                         integrators: List[BilinearFormIntegrator],
                         skip_zeros: bool = True) -> None:
    """
    Scatter trace face matrices into acc.

    Columns are the trial face vdofs; rows are the test vdofs of elem1
    followed by those of elem2. On boundary faces only elem1 contributes
    and its finite element fills the second slot as a placeholder.
    """
    if not integrators:
        return

    mesh = test_space.mesh
    for f in range(mesh.n_faces):
        tr = mesh.get_face_element_transformations(f)
        trial_face_fe = trial_space.get_face_element(f)
        test_fe1 = test_space.get_fe(tr.elem1_no)
        test_vdofs = test_space.get_element_vdofs(tr.elem1_no)
        if tr.elem2_no >= 0:
            test_fe2 = test_space.get_fe(tr.elem2_no)
            test_vdofs = test_vdofs.concatenate(test_space.get_element_vdofs(tr.elem2_no))
        else:
            test_fe2 = test_fe1
        elmat = sum_local_matrices(
            integrators,
            lambda integ: integ.assemble_trace_face_matrix(trial_face_fe, test_fe1,
                                                           test_fe2, tr))
        acc.add_submatrix(test_vdofs, trial_space.get_face_vdofs(f), elmat, skip_zeros)

    logger.debug("Assembled %d trace faces", mesh.n_faces)
