"""
Face Integrators
================

Interior penalty on the jump of discontinuous fields across faces.
"""

import numpy as np

from .base import BilinearFormIntegrator, IntegratorKind


class InteriorPenaltyIntegrator(BilinearFormIntegrator):
    """
    sum_F (penalty / h) ([u], [v])_F with [u] = u1 - u2.

    On boundary faces [u] = u1. h is the mean size of the adjacent elements.
    """

    kinds = frozenset({IntegratorKind.INTERIOR_FACE, IntegratorKind.BOUNDARY_FACE})

    def __init__(self, penalty: float = 1.0):
        self.penalty = penalty

    def assemble_face_matrix(self, fe1, fe2, trans):
        order = 2 * fe1.order
        points, weights = trans.face.integration_points(order)
        phi1 = fe1.calc_shape(trans.elem1, points)

        if trans.elem2_no < 0:
            # fe2 is a placeholder on the boundary
            h = trans.elem1.measure
            jump = phi1
        else:
            h = 0.5 * (trans.elem1.measure + trans.elem2.measure)
            phi2 = fe2.calc_shape(trans.elem2, points)
            jump = np.hstack([phi1, -phi2])

        return (self.penalty / h) * (jump.T * weights) @ jump

    def __repr__(self):
        return f"InteriorPenaltyIntegrator(penalty={self.penalty})"
