"""
Element Matrix Cache
====================

Precomputed dense local matrices, one per element, summed over all domain
integrators. Element matrices are independent, so they can be computed
concurrently; the global scatter that consumes them stays sequential.
"""

import logging

import numpy as np
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from ..errors import AssemblyError
from ..integrators.base import BilinearFormIntegrator

logger = logging.getLogger(__name__)


class ElementMatrixCache:
    """
    Dense tensor of element matrices.

    Attributes:
        tensor: shape (n_local, n_local, n_elements); tensor[:, :, i] is the
            summed local matrix of element i
    """

    def __init__(self, tensor: np.ndarray):
        tensor = np.asarray(tensor, dtype=np.float64)
        if tensor.ndim != 3 or tensor.shape[0] != tensor.shape[1]:
            raise AssemblyError(f"element matrix tensor must have shape (n, n, ne), "
                                f"got {tensor.shape}")
        self.tensor = tensor

    @property
    def local_size(self) -> int:
        return self.tensor.shape[0]

    @property
    def n_elements(self) -> int:
        return self.tensor.shape[2]

    def __len__(self) -> int:
        return self.n_elements

    def __getitem__(self, i: int) -> np.ndarray:
        return self.tensor[:, :, i]

    @classmethod
    def compute(cls, space, integrators: List[BilinearFormIntegrator],
                parallel: bool = False,
                max_workers: Optional[int] = None) -> Optional['ElementMatrixCache']:
        """
        Compute the summed domain-integrator matrix of every element.

        Args:
            space: dof provider
            integrators: domain integrators (must be free of shared mutable
                state when parallel is True)
            parallel: compute elements concurrently
            max_workers: thread pool size

        Returns:
            ElementMatrixCache, or None when there are no integrators or no
            elements

        Raises:
            AssemblyError: if elements have different numbers of vdofs
        """
        n_elements = space.get_ne()
        if not integrators or n_elements == 0:
            return None

        sizes = np.array([len(space.get_element_vdofs(i)) for i in range(n_elements)])
        n_local = int(sizes[0])
        if np.any(sizes != n_local):
            bad = int(np.flatnonzero(sizes != n_local)[0])
            raise AssemblyError(f"all elements must have the same number of dofs: "
                                f"element 0 has {n_local}, element {bad} has {sizes[bad]}")

        tensor = np.empty((n_local, n_local, n_elements))

        def compute_one(i: int) -> None:
            fe = space.get_fe(i)
            trans = space.get_element_transformation(i)
            elmat = integrators[0].assemble_element_matrix(fe, trans)
            for integ in integrators[1:]:
                elmat = elmat + integ.assemble_element_matrix(fe, trans)
            if elmat.shape != (n_local, n_local):
                raise AssemblyError(f"{integrators[0]!r} produced a {elmat.shape} matrix "
                                    f"for element {i} with {n_local} vdofs")
            tensor[:, :, i] = elmat

        if parallel:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                # list() re-raises the first worker exception
                list(executor.map(compute_one, range(n_elements)))
        else:
            for i in range(n_elements):
                compute_one(i)

        logger.debug("Computed %d element matrices of size %d%s",
                     n_elements, n_local, " in parallel" if parallel else "")
        return cls(tensor)
