"""
Interval Mesh
=============

One-dimensional mesh of line segments whose faces are the vertices.
"""

import numpy as np

from .base import Mesh


class IntervalMesh(Mesh):
    """
    Mesh of segments on the real line.

    Face k of a segment is its vertex k. A vertex's canonical normal points
    in the +x direction, so the orientation of a face within an element is
    the sign of the element's outward normal there.
    """

    LOCAL_FACES = ((0,), (1,))

    def __init__(self, nodes: np.ndarray, elements: np.ndarray):
        """
        Args:
            nodes: shape (n_nodes,) or (n_nodes, 1), node coordinates
            elements: shape (n_elements, 2), node indices of each segment
        """
        nodes = np.asarray(nodes, dtype=np.float64).reshape(-1, 1)
        elements = np.asarray(elements, dtype=np.int64)

        if elements.size and (elements.ndim != 2 or elements.shape[1] != 2):
            raise ValueError("elements must have shape (n_elements, 2)")

        super().__init__(nodes, elements)

    def _compute_face_orientations(self) -> np.ndarray:
        orientations = np.zeros((self.n_elements, 2), dtype=np.int64)
        for elem_idx, (a, b) in enumerate(self.elements):
            direction = 1 if self.nodes[b, 0] > self.nodes[a, 0] else -1
            orientations[elem_idx] = [-direction, direction]
        return orientations

    @property
    def element_lengths(self) -> np.ndarray:
        x = self.nodes[:, 0]
        return np.abs(x[self.elements[:, 1]] - x[self.elements[:, 0]])
