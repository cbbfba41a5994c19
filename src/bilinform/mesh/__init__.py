"""
Mesh Module
===========

Simplex meshes with face connectivity and geometric transformations.
"""

from .base import Mesh
from .interval_mesh import IntervalMesh
from .triangle_mesh import TriangleMesh
from .transformations import (
    ElementTransformation,
    FaceElementTransformations,
    quadrature_rule,
)
from .mesh_generators import (
    create_interval_mesh,
    create_rectangle_mesh,
    create_single_element,
    create_two_element_patch,
)

__all__ = [
    "Mesh",
    "IntervalMesh",
    "TriangleMesh",
    "ElementTransformation",
    "FaceElementTransformations",
    "quadrature_rule",
    "create_interval_mesh",
    "create_rectangle_mesh",
    "create_single_element",
    "create_two_element_patch",
]
