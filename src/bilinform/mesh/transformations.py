"""
Geometric Transformations
=========================

Affine simplex transformations for elements, boundary elements and faces,
plus the two-sided face transformation handed to face integrators.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple


GEOMETRIES = {1: 'point', 2: 'segment', 3: 'triangle'}

# Quadrature rules in barycentric coordinates, weights sum to one.
_A = 0.445948490915965
_B = 0.091576213509771
_RULES = {
    ('point', 1): (np.array([[1.0]]), np.array([1.0])),
    ('segment', 3): (
        np.array([[0.5 + 0.5 / np.sqrt(3.0), 0.5 - 0.5 / np.sqrt(3.0)],
                  [0.5 - 0.5 / np.sqrt(3.0), 0.5 + 0.5 / np.sqrt(3.0)]]),
        np.array([0.5, 0.5])),
    ('segment', 5): (
        np.array([[0.5, 0.5],
                  [0.5 + 0.5 * np.sqrt(0.6), 0.5 - 0.5 * np.sqrt(0.6)],
                  [0.5 - 0.5 * np.sqrt(0.6), 0.5 + 0.5 * np.sqrt(0.6)]]),
        np.array([8.0, 5.0, 5.0]) / 18.0),
    ('triangle', 2): (
        np.array([[2 / 3, 1 / 6, 1 / 6],
                  [1 / 6, 2 / 3, 1 / 6],
                  [1 / 6, 1 / 6, 2 / 3]]),
        np.full(3, 1.0 / 3.0)),
    ('triangle', 4): (
        np.array([[1 - 2 * _A, _A, _A], [_A, 1 - 2 * _A, _A], [_A, _A, 1 - 2 * _A],
                  [1 - 2 * _B, _B, _B], [_B, 1 - 2 * _B, _B], [_B, _B, 1 - 2 * _B]]),
        np.array([0.223381589678011] * 3 + [0.109951743655322] * 3)),
}


def quadrature_rule(geometry: str, order: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Smallest tabulated rule exact for polynomials of the given order.

    Args:
        geometry: 'point', 'segment' or 'triangle'
        order: polynomial degree to integrate exactly

    Returns:
        barycentric: shape (n_points, n_vertices)
        weights: shape (n_points,), summing to one
    """
    orders = sorted(o for g, o in _RULES if g == geometry)
    if not orders:
        raise ValueError(f"Unknown geometry: {geometry}")
    if geometry == 'point':
        # Point evaluation is exact for every order
        return _RULES[('point', 1)]
    for o in orders:
        if o >= order:
            return _RULES[(geometry, o)]
    raise ValueError(f"No {geometry} rule of order {order}")


class ElementTransformation:
    """
    Affine map from the reference simplex onto a mesh entity.

    Attributes:
        index: element, boundary element or face number
        vertices: shape (n_vertices, space_dim), physical vertex coordinates
        geometry: 'point', 'segment' or 'triangle'
        measure: length/area of the entity (1 for points)
    """

    def __init__(self, index: int, vertices: np.ndarray):
        self.index = index
        self.vertices = np.atleast_2d(np.asarray(vertices, dtype=np.float64))
        self.geometry = GEOMETRIES[len(self.vertices)]

        # Columns are edge vectors from vertex 0
        self.jacobian = (self.vertices[1:] - self.vertices[0]).T
        self.measure = self._compute_measure()

    @property
    def dim(self) -> int:
        """Reference dimension of the entity."""
        return len(self.vertices) - 1

    @property
    def space_dim(self) -> int:
        return self.vertices.shape[1]

    def _compute_measure(self) -> float:
        if self.dim == 0:
            return 1.0
        gram = self.jacobian.T @ self.jacobian
        factorial = 1.0 if self.dim == 1 else 2.0
        return float(np.sqrt(abs(np.linalg.det(gram)))) / factorial

    @property
    def centroid(self) -> np.ndarray:
        return self.vertices.mean(axis=0)

    def barycentric(self, x: np.ndarray) -> np.ndarray:
        """
        Barycentric coordinates of physical point(s) x.

        Args:
            x: shape (space_dim,) or (n_points, space_dim)

        Returns:
            shape (n_vertices,) or (n_points, n_vertices)
        """
        x = np.asarray(x, dtype=np.float64)
        single = x.ndim == 1
        pts = np.atleast_2d(x)
        if self.dim == 0:
            lam = np.ones((len(pts), 1))
        else:
            rel = pts - self.vertices[0]
            tail = rel @ np.linalg.pinv(self.jacobian).T
            lam = np.hstack([1.0 - tail.sum(axis=1, keepdims=True), tail])
        return lam[0] if single else lam

    def barycentric_gradients(self) -> np.ndarray:
        """
        Gradients of the barycentric coordinates (tangential for
        lower-dimensional entities).

        Returns:
            shape (n_vertices, space_dim)
        """
        if self.dim == 0:
            return np.zeros((1, self.space_dim))
        tail = np.linalg.pinv(self.jacobian)
        return np.vstack([-tail.sum(axis=0), tail])

    def integration_points(self, order: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Physical quadrature points and weights (weights sum to the measure).

        Args:
            order: polynomial degree to integrate exactly

        Returns:
            points: shape (n_points, space_dim)
            weights: shape (n_points,)
        """
        bary, weights = quadrature_rule(self.geometry, order)
        return bary @ self.vertices, weights * self.measure


@dataclass
class FaceElementTransformations:
    """
    Geometry of a face together with its adjacent elements.

    elem2_no is -1 and elem2 is None on the boundary. The normal is the unit
    normal of the face pointing out of elem1.
    """
    face_no: int
    elem1_no: int
    elem2_no: int
    face: ElementTransformation
    elem1: ElementTransformation
    elem2: Optional[ElementTransformation]
    normal: np.ndarray

    @property
    def is_boundary(self) -> bool:
        return self.elem2_no < 0


def face_normal(face: ElementTransformation,
                elem: ElementTransformation) -> np.ndarray:
    """
    Unit normal of a face pointing out of the given element.

    Args:
        face: transformation of the face (point in 1D, segment in 2D)
        elem: transformation of an adjacent element

    Returns:
        normal: shape (space_dim,)
    """
    outward = face.centroid - elem.centroid
    if face.dim == 0:
        n = np.sign(outward)
    else:
        t = face.vertices[1] - face.vertices[0]
        n = np.array([t[1], -t[0]]) / np.linalg.norm(t)
        if np.dot(n, outward) < 0:
            n = -n
    return n
