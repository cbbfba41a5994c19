"""
Visualization
=============

Plotting functions for meshes, nodal solutions and sparsity patterns.
"""

import numpy as np
from scipy.sparse import csr_matrix, issparse
from typing import Optional, TYPE_CHECKING, Union

try:
    import matplotlib.pyplot as plt
    from matplotlib.tri import Triangulation
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from ..table import Table

if TYPE_CHECKING:
    from ..mesh.base import Mesh


def _require_matplotlib():
    if not HAS_MATPLOTLIB:
        raise ImportError("matplotlib is required for visualization")


def plot_mesh(mesh: 'Mesh',
              ax: Optional['plt.Axes'] = None,
              show_nodes: bool = False,
              node_labels: bool = False,
              highlight_boundary: bool = True,
              **kwargs) -> 'plt.Axes':
    """
    Plot an interval or triangle mesh.

    Args:
        mesh: IntervalMesh or TriangleMesh instance
        ax: matplotlib axes (created if None)
        show_nodes: whether to show node points
        node_labels: whether to label nodes with indices
        highlight_boundary: draw boundary elements in red
        **kwargs: passed to the line/triplot call

    Returns:
        ax: matplotlib axes
    """
    _require_matplotlib()

    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8 if mesh.dim == 2 else 2))

    if mesh.dim == 1:
        x = mesh.nodes[:, 0]
        for elem in mesh.elements:
            ax.plot(x[elem], np.zeros(2), 'k-', lw=1.0, **kwargs)
        ax.set_yticks([])
        if highlight_boundary:
            bdr = mesh.faces[mesh.boundary_faces].ravel()
            ax.plot(x[bdr], np.zeros(len(bdr)), 'rs', ms=6)
    else:
        tri = Triangulation(mesh.nodes[:, 0], mesh.nodes[:, 1], mesh.elements)
        ax.triplot(tri, 'k-', lw=0.5, **kwargs)
        if highlight_boundary:
            for f in mesh.boundary_faces:
                pts = mesh.nodes[mesh.faces[f]]
                ax.plot(pts[:, 0], pts[:, 1], 'r-', lw=1.5)
        ax.set_aspect('equal')

    if show_nodes:
        y = mesh.nodes[:, 1] if mesh.dim == 2 else np.zeros(mesh.n_nodes)
        ax.plot(mesh.nodes[:, 0], y, 'ko', ms=3)

    if node_labels:
        for i, p in enumerate(mesh.nodes):
            ax.annotate(str(i), (p[0], p[1] if mesh.dim == 2 else 0.0), fontsize=8)

    ax.set_xlabel('x')
    if mesh.dim == 2:
        ax.set_ylabel('y')
    ax.set_title(f'Mesh ({mesh.n_elements} elements)')

    return ax


def plot_nodal_field(mesh: 'Mesh',
                     values: np.ndarray,
                     ax: Optional['plt.Axes'] = None,
                     cmap: str = 'viridis',
                     title: str = 'Solution',
                     colorbar: bool = True) -> 'plt.Axes':
    """
    Plot a scalar field given at the mesh nodes (P1 coefficients).

    Args:
        mesh: IntervalMesh or TriangleMesh instance
        values: shape (n_nodes,)
        ax: matplotlib axes (created if None)
        cmap: colormap name (2D only)
        title: plot title
        colorbar: whether to add a colorbar (2D only)

    Returns:
        ax: matplotlib axes
    """
    _require_matplotlib()

    values = np.asarray(values)
    if values.shape != (mesh.n_nodes,):
        raise ValueError(f"expected {mesh.n_nodes} nodal values, got shape {values.shape}")

    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 6))

    if mesh.dim == 1:
        order = np.argsort(mesh.nodes[:, 0])
        ax.plot(mesh.nodes[order, 0], values[order], 'b.-')
        ax.set_xlabel('x')
        ax.grid(True, alpha=0.3)
    else:
        tri = Triangulation(mesh.nodes[:, 0], mesh.nodes[:, 1], mesh.elements)
        tpc = ax.tripcolor(tri, values, cmap=cmap, shading='gouraud')
        if colorbar:
            plt.colorbar(tpc, ax=ax)
        ax.set_aspect('equal')
        ax.set_xlabel('x')
        ax.set_ylabel('y')

    ax.set_title(title)
    return ax


def plot_sparsity_pattern(matrix: Union[csr_matrix, Table, np.ndarray],
                          ax: Optional['plt.Axes'] = None,
                          markersize: float = 2.0,
                          title: Optional[str] = None) -> 'plt.Axes':
    """
    Spy plot of a sparse matrix, dense array or sparsity Table.

    Args:
        matrix: operator or dof-dof Table
        ax: matplotlib axes (created if None)
        markersize: marker size passed to spy
        title: plot title (default reports shape and stored entries)

    Returns:
        ax: matplotlib axes
    """
    _require_matplotlib()

    if isinstance(matrix, Table):
        matrix = matrix.to_matrix()
    elif not issparse(matrix):
        matrix = csr_matrix(np.asarray(matrix))

    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 6))

    ax.spy(matrix, markersize=markersize)
    if title is None:
        title = f'{matrix.shape[0]}x{matrix.shape[1]}, {matrix.nnz} stored entries'
    ax.set_title(title)

    return ax
