"""
Bilinform
=========

Sparse assembly of bilinear forms over finite element spaces.

Modules:
    mesh: Interval and triangle meshes with face connectivity
    spaces: Finite elements and finite element spaces (dof providers)
    integrators: Local matrix integrators for domains, boundaries and faces
    assembly: Global operator assembly, elimination and conforming projection
    postprocess: Visualization of meshes, fields and sparsity patterns
"""

from . import mesh
from . import spaces
from . import integrators
from . import assembly
from . import postprocess
from .config import AssemblyConfig, DiagonalPolicy
from .errors import AssemblyError, SparsityPatternError, OrderingError
from .table import Table
from .vdofs import VdofList, decode_vdofs

__version__ = "0.1.0"
__all__ = [
    "mesh", "spaces", "integrators", "assembly", "postprocess",
    "AssemblyConfig", "DiagonalPolicy",
    "AssemblyError", "SparsityPatternError", "OrderingError",
    "Table", "VdofList", "decode_vdofs",
]
