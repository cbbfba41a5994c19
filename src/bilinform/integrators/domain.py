"""
Domain Integrators
==================

Constant-coefficient mass and diffusion integrators on P0/P1 simplices.
"""

import numpy as np

from .base import BilinearFormIntegrator, IntegratorKind


class MassIntegrator(BilinearFormIntegrator):
    """
    (c u, v) on elements or boundary elements.

    Also provides the rectangular (test x trial) mass matrix between two
    element types on the same entity.
    """

    kinds = frozenset({IntegratorKind.DOMAIN, IntegratorKind.BOUNDARY})

    def __init__(self, coeff: float = 1.0):
        self.coeff = coeff

    def assemble_element_matrix(self, fe, trans):
        return self.assemble_element_matrix2(fe, fe, trans)

    def assemble_element_matrix2(self, trial_fe, test_fe, trans):
        if trial_fe.dof == 0 or test_fe.dof == 0:
            return np.zeros((test_fe.dof, trial_fe.dof))

        points, weights = trans.integration_points(trial_fe.order + test_fe.order)
        phi = trial_fe.calc_shape(trans, points)   # (nq, trial dofs)
        psi = test_fe.calc_shape(trans, points)    # (nq, test dofs)
        return self.coeff * (psi.T * weights) @ phi

    def __repr__(self):
        return f"MassIntegrator(coeff={self.coeff})"


class DiffusionIntegrator(BilinearFormIntegrator):
    """(c grad u, grad v) on elements; exact for affine P1."""

    kinds = frozenset({IntegratorKind.DOMAIN})

    def __init__(self, coeff: float = 1.0):
        self.coeff = coeff

    def assemble_element_matrix(self, fe, trans):
        grad = fe.calc_grad_shape(trans)  # (dof, space_dim)
        return self.coeff * trans.measure * grad @ grad.T

    def __repr__(self):
        return f"DiffusionIntegrator(coeff={self.coeff})"


class VectorMassIntegrator(BilinearFormIntegrator):
    """
    (c u, v) for vector fields with vdim components.

    The local matrix follows the component-grouped local vdof ordering,
    i.e. it is block diagonal with one scalar mass block per component.
    """

    kinds = frozenset({IntegratorKind.DOMAIN, IntegratorKind.BOUNDARY})

    def __init__(self, vdim: int, coeff: float = 1.0):
        self.vdim = vdim
        self.scalar = MassIntegrator(coeff)

    def assemble_element_matrix(self, fe, trans):
        return np.kron(np.eye(self.vdim), self.scalar.assemble_element_matrix(fe, trans))

    def __repr__(self):
        return f"VectorMassIntegrator(vdim={self.vdim}, coeff={self.scalar.coeff})"
