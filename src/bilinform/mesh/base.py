"""
Simplex Mesh Base
=================

Face connectivity, boundary attributes and transformation lookups shared by
the interval and triangle meshes.
"""

import numpy as np
from typing import Callable, List, Optional, Sequence, Tuple, Union

from ..table import Table
from .transformations import (
    ElementTransformation, FaceElementTransformations, face_normal
)


class Mesh:
    """
    Conforming simplex mesh with face (codimension-one) connectivity.

    Subclasses define LOCAL_FACES, the local vertex tuples of each element
    face, and the face orientation convention.

    Attributes:
        nodes: shape (n_nodes, space_dim), node coordinates
        elements: shape (n_elements, n_vertices), node indices per element
        faces: shape (n_faces, n_face_vertices), canonical node tuples
        element_to_faces: shape (n_elements, n_local_faces)
        face_to_elements: list of lists, 1 or 2 elements per face
        face_orientations: shape (n_elements, n_local_faces), +1/-1
        boundary_faces: face indices of the boundary elements
        bdr_attributes: shape (n_bdr_elements,), 1-based attributes
    """

    LOCAL_FACES: Sequence[Tuple[int, ...]] = ()

    def __init__(self, nodes: np.ndarray, elements: np.ndarray):
        self.nodes = np.asarray(nodes, dtype=np.float64)
        if self.nodes.ndim == 1:
            self.nodes = self.nodes[:, None]
        self.elements = np.asarray(elements, dtype=np.int64).reshape(
            -1, len(self.LOCAL_FACES))

        self._build_face_connectivity()
        self._identify_boundary()
        self.bdr_attributes = np.ones(self.n_bdr_elements, dtype=np.int64)

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    @property
    def n_elements(self) -> int:
        return len(self.elements)

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    @property
    def n_bdr_elements(self) -> int:
        return len(self.boundary_faces)

    @property
    def dim(self) -> int:
        """Reference dimension of the elements."""
        return self.elements.shape[1] - 1

    @property
    def space_dim(self) -> int:
        return self.nodes.shape[1]

    def _build_face_connectivity(self) -> None:
        """Enumerate unique faces in order of first appearance."""
        face_dict = {}
        faces_list = []
        n_local = len(self.LOCAL_FACES)
        element_to_faces = np.zeros((self.n_elements, n_local), dtype=np.int64)
        face_to_elements: List[List[int]] = []

        for elem_idx, elem_nodes in enumerate(self.elements):
            for local_face, local_nodes in enumerate(self.LOCAL_FACES):
                key = tuple(sorted(int(elem_nodes[k]) for k in local_nodes))
                if key not in face_dict:
                    face_dict[key] = len(faces_list)
                    faces_list.append(key)
                    face_to_elements.append([elem_idx])
                else:
                    face_to_elements[face_dict[key]].append(elem_idx)
                element_to_faces[elem_idx, local_face] = face_dict[key]

        self.faces = np.array(faces_list, dtype=np.int64).reshape(
            -1, len(self.LOCAL_FACES[0]) if n_local else 0)
        self.element_to_faces = element_to_faces
        self.face_to_elements = face_to_elements
        self.face_orientations = self._compute_face_orientations()

    def _compute_face_orientations(self) -> np.ndarray:
        raise NotImplementedError

    def _identify_boundary(self) -> None:
        """A face is on the boundary if it belongs to exactly one element."""
        self.boundary_faces = np.array(
            [f for f, elems in enumerate(self.face_to_elements) if len(elems) == 1],
            dtype=np.int64)
        self.boundary_nodes = np.unique(self.faces[self.boundary_faces].ravel()) \
            if len(self.boundary_faces) else np.zeros(0, dtype=np.int64)

    def set_bdr_attributes(self, attributes: Union[np.ndarray, Callable]) -> None:
        """
        Assign 1-based attributes to the boundary elements.

        Args:
            attributes: array of shape (n_bdr_elements,), or a function
                mapping a boundary element's centroid to its attribute
        """
        if callable(attributes):
            values = [attributes(*self.get_bdr_element_transformation(i).centroid)
                      for i in range(self.n_bdr_elements)]
        else:
            values = attributes
        values = np.asarray(values, dtype=np.int64)
        if values.shape != (self.n_bdr_elements,):
            raise ValueError(f"expected {self.n_bdr_elements} boundary attributes, "
                             f"got shape {values.shape}")
        if np.any(values < 1):
            raise ValueError("boundary attributes must be positive")
        self.bdr_attributes = values

    def get_bdr_attribute(self, i: int) -> int:
        return int(self.bdr_attributes[i])

    def get_bdr_element_vertices(self, i: int) -> np.ndarray:
        """Node indices of boundary element i."""
        return self.faces[self.boundary_faces[i]]

    def get_bdr_element_face(self, i: int) -> int:
        return int(self.boundary_faces[i])

    def get_element_transformation(self, i: int) -> ElementTransformation:
        return ElementTransformation(i, self.nodes[self.elements[i]])

    def get_bdr_element_transformation(self, i: int) -> ElementTransformation:
        return ElementTransformation(i, self.nodes[self.get_bdr_element_vertices(i)])

    def get_face_transformation(self, f: int) -> ElementTransformation:
        return ElementTransformation(f, self.nodes[self.faces[f]])

    def get_face_element_transformations(self, f: int) -> FaceElementTransformations:
        """
        Face geometry with both adjacent elements (elem2_no = -1 on the boundary).
        """
        elems = self.face_to_elements[f]
        face = self.get_face_transformation(f)
        elem1 = self.get_element_transformation(elems[0])
        elem2 = self.get_element_transformation(elems[1]) if len(elems) > 1 else None
        return FaceElementTransformations(
            face_no=f,
            elem1_no=elems[0],
            elem2_no=elems[1] if len(elems) > 1 else -1,
            face=face,
            elem1=elem1,
            elem2=elem2,
            normal=face_normal(face, elem1),
        )

    def get_interior_face_transformations(self, f: int) -> Optional[FaceElementTransformations]:
        """Transformations of face f, or None unless it is shared by two elements."""
        if len(self.face_to_elements[f]) != 2:
            return None
        return self.get_face_element_transformations(f)

    def get_bdr_face_transformations(self, i: int) -> Optional[FaceElementTransformations]:
        """Transformations of boundary element i, or None if its face is interior."""
        f = self.get_bdr_element_face(i)
        if len(self.face_to_elements[f]) != 1:
            return None
        return self.get_face_element_transformations(f)

    def get_face_to_element_table(self) -> Table:
        return Table.from_lists(self.face_to_elements, n_cols=self.n_elements)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(n_nodes={self.n_nodes}, "
                f"n_elements={self.n_elements}, n_faces={self.n_faces}, "
                f"n_bdr_elements={self.n_bdr_elements})")
