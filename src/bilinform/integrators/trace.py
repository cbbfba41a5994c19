"""
Trace Integrators
=================

Couplings between a face (skeleton) trial space and element test spaces.
"""

import numpy as np

from .base import BilinearFormIntegrator, IntegratorKind


class NormalTraceJumpIntegrator(BilinearFormIntegrator):
    """
    (lambda, [v])_F for a face field lambda and an element field v.

    Rows are the test dofs of elem1 followed by those of elem2, with
    [v] = v1 - v2 (v1 alone on boundary faces).
    """

    kinds = frozenset({IntegratorKind.TRACE})

    def __init__(self, coeff: float = 1.0):
        self.coeff = coeff

    def assemble_trace_face_matrix(self, trial_face_fe, test_fe1, test_fe2, trans):
        order = trial_face_fe.order + test_fe1.order
        points, weights = trans.face.integration_points(order)
        mu = trial_face_fe.calc_shape(trans.face, points)      # (nq, face dofs)
        psi = test_fe1.calc_shape(trans.elem1, points)         # (nq, test dofs 1)

        if trans.elem2_no >= 0:
            psi2 = test_fe2.calc_shape(trans.elem2, points)
            psi = np.hstack([psi, -psi2])

        return self.coeff * (psi.T * weights) @ mu

    def __repr__(self):
        return f"NormalTraceJumpIntegrator(coeff={self.coeff})"
