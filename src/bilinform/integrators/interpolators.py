"""
Discrete Interpolators
======================

Local interpolation matrices for discrete linear operators.
"""

import numpy as np

from .base import BilinearFormIntegrator, IntegratorKind


class IdentityInterpolator(BilinearFormIntegrator):
    """
    Nodal interpolation of the domain (trial) element into the range (test)
    element: row r holds the trial shape functions at range node r.

    Range nodes are the vertices for P1 and the centroid for P0.
    """

    kinds = frozenset({IntegratorKind.DOMAIN})

    def assemble_element_matrix2(self, trial_fe, test_fe, trans):
        if test_fe.order == 0:
            nodes = trans.centroid[None, :]
        else:
            nodes = trans.vertices
        return np.atleast_2d(trial_fe.calc_shape(trans, nodes))
