"""
Finite Element Space
====================

Dof index provider: maps mesh entities to (vector) degrees of freedom,
derives essential dofs from boundary attributes, and carries the optional
conforming prolongation of a non-conforming or extended dof space.
"""

import numpy as np
from enum import Enum
from scipy.sparse import csr_matrix
from typing import Dict, Optional, Sequence

from ..vdofs import VdofList
from ..mesh.base import Mesh
from ..mesh.transformations import ElementTransformation
from .finite_elements import FiniteElement, FiniteElementCollection


class Ordering(Enum):
    """Global layout of vector components."""
    BY_NODES = "byNODES"  # all dofs of component 0, then component 1, ...
    BY_VDIM = "byVDIM"    # components of each dof interleaved


class FiniteElementSpace:
    """
    Finite element space over a mesh.

    Local vdof lists always group components contiguously
    ([dofs of comp 0, dofs of comp 1, ...]); the global position of a
    (dof, component) pair follows the space ordering.

    Attributes:
        mesh: Mesh instance
        fec: FiniteElementCollection placing the scalar dofs
        vdim: number of vector components
        ordering: Ordering of the global vector
        ndofs: number of scalar dofs
    """

    def __init__(self, mesh: Mesh, fec: FiniteElementCollection,
                 vdim: int = 1, ordering: Ordering = Ordering.BY_NODES,
                 prolongation: Optional[csr_matrix] = None):
        """
        Args:
            mesh: Mesh instance
            fec: FiniteElementCollection
            vdim: number of vector components
            ordering: Ordering.BY_NODES or Ordering.BY_VDIM
            prolongation: optional (vsize x conforming_vsize) matrix mapping
                conforming dofs onto this (extended) dof space
        """
        if vdim < 1:
            raise ValueError(f"vdim must be positive, got {vdim}")
        self.mesh = mesh
        self.fec = fec
        self.vdim = vdim
        self.ordering = Ordering(ordering)
        self.ndofs = fec.ndofs(mesh)

        self._fe = fec.element_fe(mesh)
        self._be = fec.bdr_fe(mesh)
        self._face_fe = fec.face_fe(mesh)

        self._prolongation = None
        self._restriction = None
        if prolongation is not None:
            self.set_conforming_prolongation(prolongation)

    @property
    def vsize(self) -> int:
        """Length of a vector on this space."""
        return self.ndofs * self.vdim

    def get_ne(self) -> int:
        return self.mesh.n_elements

    def get_nbe(self) -> int:
        return self.mesh.n_bdr_elements

    def get_fe(self, i: int) -> FiniteElement:
        return self._fe

    def get_be(self, i: int) -> FiniteElement:
        return self._be

    def get_face_element(self, f: int) -> FiniteElement:
        return self._face_fe

    def get_element_transformation(self, i: int) -> ElementTransformation:
        return self.mesh.get_element_transformation(i)

    def get_bdr_element_transformation(self, i: int) -> ElementTransformation:
        return self.mesh.get_bdr_element_transformation(i)

    def get_bdr_attribute(self, i: int) -> int:
        return self.mesh.get_bdr_attribute(i)

    def dof_to_vdof(self, dof: int, component: int) -> int:
        if self.ordering == Ordering.BY_NODES:
            return component * self.ndofs + dof
        return dof * self.vdim + component

    def dofs_to_vdofs(self, dofs: np.ndarray, signs: Optional[np.ndarray] = None) -> VdofList:
        """
        Expand scalar dofs to vdofs, components grouped contiguously.

        Args:
            dofs: scalar dof indices
            signs: orientation signs of the scalar dofs (default all +1)

        Returns:
            VdofList of length vdim * len(dofs)
        """
        dofs = np.asarray(dofs, dtype=np.int64)
        if signs is None:
            signs = np.ones(len(dofs))
        if self.vdim == 1:
            return VdofList(dofs, signs)

        comps = np.arange(self.vdim)[:, None]
        if self.ordering == Ordering.BY_NODES:
            vdofs = comps * self.ndofs + dofs[None, :]
        else:
            vdofs = dofs[None, :] * self.vdim + comps
        return VdofList(vdofs.ravel(), np.tile(signs, self.vdim))

    def get_element_dofs(self, i: int) -> np.ndarray:
        return np.asarray(self.fec.element_dofs(self.mesh, i), dtype=np.int64)

    def get_element_vdofs(self, i: int) -> VdofList:
        return self.dofs_to_vdofs(self.get_element_dofs(i),
                                  self.fec.element_signs(self.mesh, i))

    def get_bdr_element_vdofs(self, i: int) -> VdofList:
        return self.dofs_to_vdofs(self.fec.bdr_element_dofs(self.mesh, i))

    def get_face_vdofs(self, f: int) -> VdofList:
        return self.dofs_to_vdofs(self.fec.face_dofs(self.mesh, f))

    def get_essential_vdofs(self, bdr_attr_is_ess: Sequence[int],
                            component: Optional[int] = None) -> np.ndarray:
        """
        Mark the vdofs of boundary elements with an essential attribute.

        Args:
            bdr_attr_is_ess: flags indexed by boundary attribute - 1
            component: restrict to one vector component (default all)

        Returns:
            marker: shape (vsize,), -1 for essential vdofs, 0 otherwise
        """
        bdr_attr_is_ess = np.asarray(bdr_attr_is_ess)
        marker = np.zeros(self.vsize, dtype=np.int64)

        for i in range(self.get_nbe()):
            attr = self.get_bdr_attribute(i)
            if attr > len(bdr_attr_is_ess):
                raise ValueError(f"boundary attribute {attr} has no essential flag "
                                 f"(got {len(bdr_attr_is_ess)} flags)")
            if not bdr_attr_is_ess[attr - 1]:
                continue
            dofs = self.fec.bdr_element_dofs(self.mesh, i)
            comps = range(self.vdim) if component is None else [component]
            for c in comps:
                for d in dofs:
                    marker[self.dof_to_vdof(int(d), c)] = -1
        return marker

    def set_conforming_prolongation(self, P: csr_matrix) -> None:
        """Attach the conforming prolongation and derive its restriction."""
        P = csr_matrix(P)
        if P.shape[0] != self.vsize:
            raise ValueError(f"prolongation has {P.shape[0]} rows, space has "
                             f"{self.vsize} vdofs")
        self._prolongation = P
        self._restriction = _identity_restriction(P)

    def get_conforming_prolongation(self) -> Optional[csr_matrix]:
        """Prolongation P (vsize x conforming_vsize), or None if conforming."""
        return self._prolongation

    def get_conforming_restriction(self) -> Optional[csr_matrix]:
        """
        Boolean restriction R (conforming_vsize x vsize) selecting, for each
        conforming dof, the extended dof that is an exact copy of it.
        """
        return self._restriction

    def get_conforming_vsize(self) -> int:
        if self._prolongation is None:
            return self.vsize
        return self._prolongation.shape[1]

    def convert_to_conforming_vdofs(self, marker: np.ndarray) -> np.ndarray:
        """
        Translate an extended-space essential marker to the conforming space.

        A conforming dof is essential iff the extended dof it is copied to
        (its restriction source) is essential.

        Args:
            marker: shape (vsize,), negative entries mark essential dofs

        Returns:
            shape (conforming_vsize,), -1 for essential, 0 otherwise
        """
        marker = np.asarray(marker)
        if len(marker) != self.vsize:
            raise ValueError(f"marker has size {len(marker)}, expected {self.vsize}")
        if self._restriction is None:
            return np.where(marker < 0, -1, 0).astype(np.int64)
        hits = self._restriction @ (marker < 0).astype(np.float64)
        return np.where(hits > 0, -1, 0).astype(np.int64)

    def __repr__(self) -> str:
        return (f"FiniteElementSpace({self.fec.name}, vdim={self.vdim}, "
                f"ordering={self.ordering.value}, vsize={self.vsize})")


def _identity_restriction(P: csr_matrix) -> csr_matrix:
    """
    For each column i of P pick the first row that is exactly the unit
    vector e_i.
    """
    P = csr_matrix(P)
    P.sum_duplicates()
    n_ext, n_conf = P.shape
    source = -np.ones(n_conf, dtype=np.int64)

    for j in range(n_ext):
        start, end = P.indptr[j], P.indptr[j + 1]
        if end - start == 1 and P.data[start] == 1.0:
            i = P.indices[start]
            if source[i] < 0:
                source[i] = j

    missing = np.flatnonzero(source < 0)
    if len(missing):
        raise ValueError(f"conforming dofs {missing.tolist()} have no identity row "
                         "in the prolongation")

    return csr_matrix((np.ones(n_conf), (np.arange(n_conf), source)),
                      shape=(n_conf, n_ext))


def periodic_prolongation(vsize: int, slave_to_master: Dict[int, int]) -> csr_matrix:
    """
    Prolongation identifying each slave dof with its master.

    The conforming dofs are the non-slave dofs in increasing order.

    Args:
        vsize: size of the extended space
        slave_to_master: map from slave dof to master dof

    Returns:
        P: shape (vsize, vsize - len(slave_to_master))
    """
    for s, m in slave_to_master.items():
        if m in slave_to_master:
            raise ValueError(f"master {m} of slave {s} is itself a slave")

    kept = np.array([d for d in range(vsize) if d not in slave_to_master], dtype=np.int64)
    conforming_index = -np.ones(vsize, dtype=np.int64)
    conforming_index[kept] = np.arange(len(kept))

    rows = np.arange(vsize)
    cols = np.array([conforming_index[slave_to_master.get(d, d)] for d in rows],
                    dtype=np.int64)
    return csr_matrix((np.ones(vsize), (rows, cols)), shape=(vsize, len(kept)))
