"""
Integrator Interface
====================

Capability-tagged interface through which the assemblers obtain local
dense matrices. Assemblers depend only on the capability, never on a
concrete integrator type.
"""

import numpy as np
from enum import Enum
from typing import FrozenSet, TYPE_CHECKING

if TYPE_CHECKING:
    from ..mesh.transformations import ElementTransformation, FaceElementTransformations
    from ..spaces.finite_elements import FiniteElement


class IntegratorKind(Enum):
    DOMAIN = "domain"
    BOUNDARY = "boundary"
    INTERIOR_FACE = "interior_face"
    BOUNDARY_FACE = "boundary_face"
    TRACE = "trace"


class BilinearFormIntegrator:
    """
    Base class for bilinear form integrators.

    Subclasses list the capabilities they implement in ``kinds`` and
    override the matching methods:

    - DOMAIN / BOUNDARY on a single space: assemble_element_matrix
    - DOMAIN / BOUNDARY on trial/test spaces: assemble_element_matrix2
    - INTERIOR_FACE / BOUNDARY_FACE: assemble_face_matrix
    - TRACE: assemble_trace_face_matrix

    Capabilities not listed in ``kinds`` keep the defaults below, which raise
    NotImplementedError. Forms check supports() when an integrator is added,
    so a default is only reached by calling it directly.

    Integrators must not mutate shared state while computing a local matrix;
    element matrices may be computed concurrently.
    """

    kinds: FrozenSet[IntegratorKind] = frozenset()

    def supports(self, kind: IntegratorKind) -> bool:
        return kind in self.kinds

    def assemble_element_matrix(self, fe: 'FiniteElement',
                                trans: 'ElementTransformation') -> np.ndarray:
        """Local matrix of shape (fe.dof, fe.dof) (times vdim where applicable)."""
        raise NotImplementedError(f"{type(self).__name__} has no element matrix")

    def assemble_element_matrix2(self, trial_fe: 'FiniteElement',
                                 test_fe: 'FiniteElement',
                                 trans: 'ElementTransformation') -> np.ndarray:
        """Rectangular local matrix of shape (test dofs, trial dofs)."""
        raise NotImplementedError(f"{type(self).__name__} has no mixed element matrix")

    def assemble_face_matrix(self, fe1: 'FiniteElement', fe2: 'FiniteElement',
                             trans: 'FaceElementTransformations') -> np.ndarray:
        """
        Face matrix over the concatenated dofs of both adjacent elements.

        On boundary faces (trans.elem2_no < 0) fe2 is the same object as fe1
        and only carries a placeholder; the result covers fe1's dofs alone.
        """
        raise NotImplementedError(f"{type(self).__name__} has no face matrix")

    def assemble_trace_face_matrix(self, trial_face_fe: 'FiniteElement',
                                   test_fe1: 'FiniteElement',
                                   test_fe2: 'FiniteElement',
                                   trans: 'FaceElementTransformations') -> np.ndarray:
        """
        Trace matrix of shape (test dofs of both sides, trial face dofs).

        On boundary faces test_fe2 is a placeholder equal to test_fe1 and the
        rows cover test_fe1's dofs alone.
        """
        raise NotImplementedError(f"{type(self).__name__} has no trace face matrix")

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
