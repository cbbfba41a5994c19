"""
Triangle Mesh
=============

Two-dimensional simplex mesh whose faces are the triangle edges.
"""

import numpy as np

from .base import Mesh


class TriangleMesh(Mesh):
    """
    Triangle mesh with edge-based face connectivity.

    Edge Convention:
        For element with nodes (n0, n1, n2):
        - Edge 0: connects n1-n2 (opposite to n0)
        - Edge 1: connects n2-n0 (opposite to n1)
        - Edge 2: connects n0-n1 (opposite to n2)

    Edges are stored canonically with the smaller node index first. For
    counterclockwise elements, an edge orientation of +1 means the element's
    outward normal agrees with the canonical edge normal.
    """

    LOCAL_FACES = ((1, 2), (2, 0), (0, 1))

    def __init__(self, nodes: np.ndarray, elements: np.ndarray):
        """
        Initialize mesh and compute all connectivity.

        Args:
            nodes: shape (n_nodes, 2), node coordinates
            elements: shape (n_elements, 3), node indices for each element
        """
        nodes = np.asarray(nodes, dtype=np.float64)
        elements = np.asarray(elements, dtype=np.int64)

        if nodes.ndim != 2 or nodes.shape[1] != 2:
            raise ValueError("nodes must have shape (n_nodes, 2)")
        if elements.size and (elements.ndim != 2 or elements.shape[1] != 3):
            raise ValueError("elements must have shape (n_elements, 3)")

        super().__init__(nodes, elements)

    @property
    def edges(self) -> np.ndarray:
        return self.faces

    @property
    def n_edges(self) -> int:
        return self.n_faces

    def _compute_face_orientations(self) -> np.ndarray:
        """
        edge_orientations[elem, local_edge] = +1 if the local edge direction
        matches the canonical (min, max) direction, -1 otherwise.
        """
        orientations = np.zeros((self.n_elements, 3), dtype=np.int64)

        for elem_idx, elem_nodes in enumerate(self.elements):
            for local_edge, (i, j) in enumerate(self.LOCAL_FACES):
                n1, n2 = elem_nodes[i], elem_nodes[j]
                orientations[elem_idx, local_edge] = 1 if n1 < n2 else -1
        return orientations

    @property
    def element_areas(self) -> np.ndarray:
        """
        Area of all elements, shape (n_elements,).

        A = 0.5 * |det([x1-x0, y1-y0; x2-x0, y2-y0])|
        """
        if self.n_elements == 0:
            return np.zeros(0)
        X = self.nodes[self.elements]
        e1 = X[:, 1] - X[:, 0]
        e2 = X[:, 2] - X[:, 0]
        return 0.5 * np.abs(e1[:, 0] * e2[:, 1] - e2[:, 0] * e1[:, 1])

    @property
    def edge_lengths(self) -> np.ndarray:
        """Length of all edges, shape (n_edges,)."""
        if self.n_edges == 0:
            return np.zeros(0)
        return np.linalg.norm(self.nodes[self.edges[:, 1]] - self.nodes[self.edges[:, 0]],
                              axis=1)
