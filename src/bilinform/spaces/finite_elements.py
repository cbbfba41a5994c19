"""
Finite Elements and Collections
===============================

Lowest-order simplex elements (P0, P1) and the collections that decide where
a space places its degrees of freedom.
"""

import numpy as np

from ..errors import AssemblyError
from ..mesh.base import Mesh
from ..mesh.transformations import GEOMETRIES, ElementTransformation


class FiniteElement:
    """
    Scalar simplex element of order 0 (constant) or 1 (barycentric).

    Attributes:
        geometry: 'point', 'segment' or 'triangle'
        order: polynomial order
        dof: number of local degrees of freedom
    """

    def __init__(self, geometry: str, order: int, dof: int):
        self.geometry = geometry
        self.order = order
        self.dof = dof

    def calc_shape(self, trans: ElementTransformation, x: np.ndarray) -> np.ndarray:
        """
        Shape function values at physical point(s) x.

        Returns:
            shape (dof,) or (n_points, dof)
        """
        x = np.asarray(x, dtype=np.float64)
        if self.order == 0:
            n = 1 if x.ndim == 1 else len(x)
            values = np.ones((n, self.dof))
            return values[0] if x.ndim == 1 else values
        return trans.barycentric(x)

    def calc_grad_shape(self, trans: ElementTransformation) -> np.ndarray:
        """
        Shape function gradients (constant on affine simplices).

        Returns:
            shape (dof, space_dim)
        """
        if self.order == 0:
            return np.zeros((self.dof, trans.space_dim))
        return trans.barycentric_gradients()

    def __repr__(self) -> str:
        return f"FiniteElement({self.geometry}, order={self.order}, dof={self.dof})"


class FacetInteriorElement(FiniteElement):
    """
    Element seen by a facet space on a cell.

    It carries the face dofs for connectivity and sparsity, but facet dofs
    have no shape functions in the element interior, so domain integration
    on it is rejected.
    """

    def __init__(self, geometry: str, dof: int):
        super().__init__(geometry, 0, dof)

    def calc_shape(self, trans, x):
        raise AssemblyError("facet dofs have no shape functions in the element interior")

    def calc_grad_shape(self, trans):
        raise AssemblyError("facet dofs have no shape functions in the element interior")

    def __repr__(self) -> str:
        return f"FacetInteriorElement({self.geometry}, dof={self.dof})"


def _geometry(n_vertices: int) -> str:
    return GEOMETRIES[n_vertices]


class FiniteElementCollection:
    """Placement of scalar dofs on mesh entities."""

    name = "base"

    def ndofs(self, mesh: Mesh) -> int:
        raise NotImplementedError

    def element_dofs(self, mesh: Mesh, i: int) -> np.ndarray:
        raise NotImplementedError

    def element_signs(self, mesh: Mesh, i: int) -> np.ndarray:
        return np.ones(len(self.element_dofs(mesh, i)))

    def bdr_element_dofs(self, mesh: Mesh, i: int) -> np.ndarray:
        raise NotImplementedError

    def face_dofs(self, mesh: Mesh, f: int) -> np.ndarray:
        raise NotImplementedError

    def element_fe(self, mesh: Mesh) -> FiniteElement:
        raise NotImplementedError

    def bdr_fe(self, mesh: Mesh) -> FiniteElement:
        raise NotImplementedError

    def face_fe(self, mesh: Mesh) -> FiniteElement:
        raise NotImplementedError


class H1Collection(FiniteElementCollection):
    """Continuous piecewise linears, one dof per vertex."""

    name = "H1_P1"

    def ndofs(self, mesh):
        return mesh.n_nodes

    def element_dofs(self, mesh, i):
        return mesh.elements[i]

    def bdr_element_dofs(self, mesh, i):
        return mesh.get_bdr_element_vertices(i)

    def face_dofs(self, mesh, f):
        return mesh.faces[f]

    def element_fe(self, mesh):
        nv = mesh.dim + 1
        return FiniteElement(_geometry(nv), 1, nv)

    def bdr_fe(self, mesh):
        return FiniteElement(_geometry(mesh.dim), 1, mesh.dim)

    def face_fe(self, mesh):
        return self.bdr_fe(mesh)


class L2Collection(FiniteElementCollection):
    """Discontinuous P0 or P1; dofs are owned by a single element."""

    def __init__(self, order: int = 0):
        if order not in (0, 1):
            raise ValueError(f"L2 order must be 0 or 1, got {order}")
        self.order = order
        self.name = f"L2_P{order}"

    def _dofs_per_element(self, mesh):
        return 1 if self.order == 0 else mesh.dim + 1

    def ndofs(self, mesh):
        return mesh.n_elements * self._dofs_per_element(mesh)

    def element_dofs(self, mesh, i):
        n = self._dofs_per_element(mesh)
        return i * n + np.arange(n)

    def bdr_element_dofs(self, mesh, i):
        return np.zeros(0, dtype=np.int64)

    def face_dofs(self, mesh, f):
        return np.zeros(0, dtype=np.int64)

    def element_fe(self, mesh):
        return FiniteElement(_geometry(mesh.dim + 1), self.order,
                             self._dofs_per_element(mesh))

    def bdr_fe(self, mesh):
        return FiniteElement(_geometry(mesh.dim), self.order, 0)

    def face_fe(self, mesh):
        return self.bdr_fe(mesh)


class FacetCollection(FiniteElementCollection):
    """
    One constant dof per face.

    With oriented=True an element sees each face dof with the sign of the
    face orientation, the way normal-flux dofs are shared between elements.
    """

    def __init__(self, oriented: bool = False):
        self.oriented = oriented
        self.name = "Facet_P0" + ("_oriented" if oriented else "")

    def ndofs(self, mesh):
        return mesh.n_faces

    def element_dofs(self, mesh, i):
        return mesh.element_to_faces[i]

    def element_signs(self, mesh, i):
        if self.oriented:
            return mesh.face_orientations[i].astype(np.float64)
        return np.ones(mesh.element_to_faces.shape[1])

    def bdr_element_dofs(self, mesh, i):
        return np.array([mesh.get_bdr_element_face(i)], dtype=np.int64)

    def face_dofs(self, mesh, f):
        return np.array([f], dtype=np.int64)

    def element_fe(self, mesh):
        return FacetInteriorElement(_geometry(mesh.dim + 1), mesh.dim + 1)

    def bdr_fe(self, mesh):
        return FiniteElement(_geometry(mesh.dim), 0, 1)

    def face_fe(self, mesh):
        return self.bdr_fe(mesh)
