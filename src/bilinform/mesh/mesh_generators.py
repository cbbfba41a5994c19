"""
Mesh Generators
===============

Simple mesh generators for testing and examples.
"""

import numpy as np
from typing import Optional

from .interval_mesh import IntervalMesh
from .triangle_mesh import TriangleMesh


def create_interval_mesh(n: int, a: float = 0.0, b: float = 1.0) -> IntervalMesh:
    """
    Uniform mesh of [a, b] with n segments.

    Boundary attributes: 1 at x = a, 2 at x = b.

    Args:
        n: number of segments (may be zero)
        a, b: interval end points

    Returns:
        IntervalMesh instance
    """
    nodes = np.linspace(a, b, n + 1)
    elements = np.column_stack([np.arange(n), np.arange(1, n + 1)])
    mesh = IntervalMesh(nodes, elements)
    if mesh.n_bdr_elements:
        mid = 0.5 * (a + b)
        mesh.set_bdr_attributes(lambda x: 1 if x < mid else 2)
    return mesh


def create_rectangle_mesh(Lx: float, Ly: float, nx: int, ny: int,
                          pattern: str = 'right') -> TriangleMesh:
    """
    Create structured triangular mesh on rectangle [0, Lx] × [0, Ly].

    Boundary attributes: 1 bottom, 2 right, 3 top, 4 left.

    Args:
        Lx, Ly: domain dimensions
        nx, ny: number of divisions in x and y
        pattern: diagonal pattern
            'right': diagonals go from lower-left to upper-right
            'left': diagonals go from lower-right to upper-left

    Returns:
        TriangleMesh instance
    """
    n_nodes_x = nx + 1
    n_nodes_y = ny + 1

    xs, ys = np.meshgrid(np.linspace(0, Lx, n_nodes_x), np.linspace(0, Ly, n_nodes_y))
    nodes = np.column_stack([xs.ravel(), ys.ravel()])

    def node_idx(i, j):
        return j * n_nodes_x + i

    elements = []
    for j in range(ny):
        for i in range(nx):
            if pattern == 'right':
                elements.append([node_idx(i, j), node_idx(i + 1, j), node_idx(i + 1, j + 1)])
                elements.append([node_idx(i, j), node_idx(i + 1, j + 1), node_idx(i, j + 1)])
            elif pattern == 'left':
                elements.append([node_idx(i, j), node_idx(i + 1, j), node_idx(i, j + 1)])
                elements.append([node_idx(i + 1, j), node_idx(i + 1, j + 1), node_idx(i, j + 1)])
            else:
                raise ValueError(f"Unknown pattern: {pattern}")

    mesh = TriangleMesh(nodes, np.array(elements, dtype=np.int64).reshape(-1, 3))
    tol = 1e-10 * max(Lx, Ly)

    def side(x, y):
        if y < tol:
            return 1
        if x > Lx - tol:
            return 2
        if y > Ly - tol:
            return 3
        return 4

    mesh.set_bdr_attributes(side)
    return mesh


def create_single_element(node_coords: Optional[np.ndarray] = None) -> TriangleMesh:
    """
    Create mesh with a single triangle element.

    Args:
        node_coords: shape (3, 2), node coordinates
            Default: right triangle with vertices at (0,0), (1,0), (0,1)

    Returns:
        TriangleMesh instance
    """
    if node_coords is None:
        node_coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])

    elements = np.array([[0, 1, 2]])
    return TriangleMesh(node_coords, elements)


def create_two_element_patch() -> TriangleMesh:
    """
    Create mesh with two triangles sharing the edge (0, 2).

    Returns:
        TriangleMesh instance
    """
    nodes = np.array([
        [0.0, 0.0],
        [1.0, 0.0],
        [1.0, 1.0],
        [0.0, 1.0]
    ])
    elements = np.array([
        [0, 1, 2],
        [0, 2, 3]
    ])
    return TriangleMesh(nodes, elements)
