"""
Assembly Module
===============

Global operator assembly: sparsity prediction, element matrix caching, the
scatter loops, essential boundary condition elimination and conforming
projection, for square and mixed bilinear forms.
"""

from .sparse_matrix import (
    SparseAccumulator,
    eliminate_rows_cols,
    eliminate_rows_cols_recorded,
    eliminate_row_col,
    eliminate_cols,
    eliminate_row,
    part_mult,
    get_blocks,
)
from .sparsity import element_to_dof_table, build_sparsity_pattern, predict_sparsity
from .element_matrices import ElementMatrixCache
from .boundary_conditions import (
    apply_dirichlet_bc,
    mark_essential_dofs,
    essential_dofs_from_marker,
    merge_essential_markers,
    get_free_dofs,
    eliminate_in_rhs,
)
from .conforming import conforming_project, conforming_project_mixed
from .bilinear_form import BilinearForm
from .mixed_form import MixedBilinearForm, DiscreteLinearOperator

__all__ = [
    "SparseAccumulator",
    "eliminate_rows_cols",
    "eliminate_rows_cols_recorded",
    "eliminate_row_col",
    "eliminate_cols",
    "eliminate_row",
    "part_mult",
    "get_blocks",
    "element_to_dof_table",
    "build_sparsity_pattern",
    "predict_sparsity",
    "ElementMatrixCache",
    "apply_dirichlet_bc",
    "mark_essential_dofs",
    "essential_dofs_from_marker",
    "merge_essential_markers",
    "get_free_dofs",
    "eliminate_in_rhs",
    "conforming_project",
    "conforming_project_mixed",
    "BilinearForm",
    "MixedBilinearForm",
    "DiscreteLinearOperator",
]
