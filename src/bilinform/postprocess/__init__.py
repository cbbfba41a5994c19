"""
Postprocessing Module
=====================

Visualization of meshes, nodal fields and sparsity patterns.
"""

from .visualization import plot_mesh, plot_nodal_field, plot_sparsity_pattern

__all__ = [
    "plot_mesh",
    "plot_nodal_field",
    "plot_sparsity_pattern",
]
