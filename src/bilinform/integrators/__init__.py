"""
Integrators Module
==================

Integrator capability interface and constant-coefficient integrators.
"""

from .base import BilinearFormIntegrator, IntegratorKind
from .domain import MassIntegrator, DiffusionIntegrator, VectorMassIntegrator
from .face import InteriorPenaltyIntegrator
from .trace import NormalTraceJumpIntegrator
from .interpolators import IdentityInterpolator

__all__ = [
    "BilinearFormIntegrator",
    "IntegratorKind",
    "MassIntegrator",
    "DiffusionIntegrator",
    "VectorMassIntegrator",
    "InteriorPenaltyIntegrator",
    "NormalTraceJumpIntegrator",
    "IdentityInterpolator",
]
