"""
Spaces Module
=============

Finite elements, dof placement and finite element spaces (the dof index
providers consumed by the assembly layer).
"""

from .finite_elements import (
    FiniteElement,
    FiniteElementCollection,
    H1Collection,
    L2Collection,
    FacetCollection,
)
from .fe_space import FiniteElementSpace, Ordering, periodic_prolongation

__all__ = [
    "FiniteElement",
    "FiniteElementCollection",
    "H1Collection",
    "L2Collection",
    "FacetCollection",
    "FiniteElementSpace",
    "Ordering",
    "periodic_prolongation",
]
