"""
Mixed Bilinear Form
===================

Rectangular operators between a trial space (columns) and a test space
(rows) defined on the same mesh, and discrete linear operators such as
interpolation between spaces.
"""

import logging

import numpy as np
from scipy.sparse import csr_matrix
from typing import List, Optional, Sequence

from ..config import AssemblyConfig
from ..errors import AssemblyError, OrderingError
from ..integrators.base import BilinearFormIntegrator, IntegratorKind
from ..spaces.fe_space import Ordering
from .assemblers import assemble_mixed_boundary, assemble_mixed_domain, assemble_trace_faces
from .conforming import conforming_project_mixed
from .sparse_matrix import SparseAccumulator, eliminate_cols, eliminate_row, get_blocks

logger = logging.getLogger(__name__)


class MixedBilinearForm:
    """
    Assembler of a rectangular operator b(u, v), u in trial_space, v in
    test_space. The operator has shape (test vsize, trial vsize).

    Attributes:
        trial_space: column space
        test_space: row space
        config: AssemblyConfig (sparsity prediction is not used here)
        height, width: current operator extents
    """

    def __init__(self, trial_space, test_space, config: Optional[AssemblyConfig] = None):
        if trial_space.mesh is not test_space.mesh:
            raise AssemblyError("trial and test spaces must share one mesh")
        self.trial_space = trial_space
        self.test_space = test_space
        self.config = config if config is not None else AssemblyConfig()

        self.height = test_space.vsize
        self.width = trial_space.vsize
        self._acc: Optional[SparseAccumulator] = None
        self._mat: Optional[csr_matrix] = None

        self.domain_integrators: List[BilinearFormIntegrator] = []
        self.boundary_integrators: List[BilinearFormIntegrator] = []
        self.trace_face_integrators: List[BilinearFormIntegrator] = []

    def add_domain_integrator(self, integ: BilinearFormIntegrator) -> None:
        self._check(integ, IntegratorKind.DOMAIN)
        self.domain_integrators.append(integ)

    def add_boundary_integrator(self, integ: BilinearFormIntegrator) -> None:
        self._check(integ, IntegratorKind.BOUNDARY)
        self.boundary_integrators.append(integ)

    def add_trace_face_integrator(self, integ: BilinearFormIntegrator) -> None:
        self._check(integ, IntegratorKind.TRACE)
        self.trace_face_integrators.append(integ)

    @staticmethod
    def _check(integ: BilinearFormIntegrator, kind: IntegratorKind) -> None:
        if not integ.supports(kind):
            raise AssemblyError(f"{type(integ).__name__} does not support "
                                f"{kind.value} integration")

    def _accumulator(self) -> SparseAccumulator:
        if self._acc is None:
            if self._mat is None:
                self._acc = SparseAccumulator(self.height, self.width)
            else:
                self._acc = SparseAccumulator.from_csr(self._mat)
                self._mat = None
        return self._acc

    def assemble(self, skip_zeros: Optional[bool] = None) -> None:
        """Add the contributions of all registered integrators."""
        skip = self.config.skip_zeros if skip_zeros is None else skip_zeros
        acc = self._accumulator()
        assemble_mixed_domain(acc, self.trial_space, self.test_space,
                              self.domain_integrators, skip)
        assemble_mixed_boundary(acc, self.trial_space, self.test_space,
                                self.boundary_integrators, skip)
        assemble_trace_faces(acc, self.trial_space, self.test_space,
                             self.trace_face_integrators, skip)

    def finalize(self, skip_zeros: Optional[bool] = None) -> None:
        if self._acc is None:
            return
        skip = self.config.skip_zeros if skip_zeros is None else skip_zeros
        self._mat = self._acc.finalize(skip)
        self._acc = None

    def sp_mat(self) -> csr_matrix:
        """The global operator, finalized if necessary."""
        if self._acc is None and self._mat is None:
            raise AssemblyError("the operator has not been assembled")
        self.finalize()
        return self._mat

    @property
    def mat(self) -> csr_matrix:
        return self.sp_mat()

    def elem(self, i: int, j: int) -> float:
        return float(self.sp_mat()[i, j])

    def mult(self, x: np.ndarray) -> np.ndarray:
        return self.sp_mat() @ x

    def add_mult(self, x: np.ndarray, y: np.ndarray, a: float = 1.0) -> None:
        """y += a * A x"""
        y += a * (self.sp_mat() @ x)

    def add_mult_transpose(self, x: np.ndarray, y: np.ndarray, a: float = 1.0) -> None:
        """y += a * A^T x"""
        y += a * (self.sp_mat().T @ x)

    def _finalized_for_elimination(self) -> csr_matrix:
        if self._acc is None and self._mat is None:
            raise AssemblyError("assemble the form before eliminating dofs")
        self.finalize(skip_zeros=False)
        return self._mat

    def conforming_assemble(self) -> None:
        """Reduce rows through the test prolongation and columns through the trial one."""
        self.finalize(skip_zeros=False)
        if self._mat is None:
            return
        self._mat = conforming_project_mixed(
            self._mat,
            self.test_space.get_conforming_prolongation(),
            self.trial_space.get_conforming_prolongation())
        self.height, self.width = self._mat.shape

    def eliminate_trial_dofs(self, bdr_attr_is_ess: Sequence[int],
                             sol: np.ndarray, rhs: np.ndarray) -> None:
        """Eliminate trial dofs on essential boundary attributes."""
        marker = self.trial_space.get_essential_vdofs(bdr_attr_is_ess)
        self.eliminate_essential_bc_from_trial_dofs(marker != 0, sol, rhs)

    def eliminate_essential_bc_from_trial_dofs(self, marked_vdofs: np.ndarray,
                                               sol: np.ndarray, rhs: np.ndarray) -> None:
        """
        Zero the marked columns, folding rhs -= A[:, marked] sol[marked].

        Args:
            marked_vdofs: shape (width,), nonzero entries mark trial dofs
            sol: shape (width,), trial values
            rhs: shape (height,), modified in place
        """
        marked_vdofs = np.asarray(marked_vdofs)
        if marked_vdofs.shape != (self.width,) or np.shape(sol) != (self.width,):
            raise AssemblyError(f"trial marker and solution must have size {self.width}")
        if np.shape(rhs) != (self.height,):
            raise AssemblyError(f"rhs must have size {self.height}")
        A = self._finalized_for_elimination()
        eliminate_cols(A, marked_vdofs, sol, rhs)
        logger.debug("Eliminated %d trial dofs", int(np.count_nonzero(marked_vdofs)))

    def eliminate_test_dofs(self, bdr_attr_is_ess: Sequence[int]) -> None:
        """Zero the rows of test dofs on essential boundary attributes."""
        marker = self.test_space.get_essential_vdofs(bdr_attr_is_ess)
        A = self._finalized_for_elimination()
        rows = np.flatnonzero(marker < 0)
        for row in rows:
            eliminate_row(A, row)
        logger.debug("Eliminated %d test dofs", len(rows))

    def get_blocks(self) -> List[List[csr_matrix]]:
        """
        Split the operator into (test vdim) x (trial vdim) component blocks.

        Raises:
            OrderingError: unless both spaces order components contiguously
        """
        for space in (self.test_space, self.trial_space):
            if space.ordering != Ordering.BY_NODES:
                raise OrderingError(f"block decomposition requires {Ordering.BY_NODES.value} "
                                    f"ordering, got {space.ordering.value}")
        return get_blocks(self.sp_mat(), self.test_space.vdim, self.trial_space.vdim)

    def update(self) -> None:
        """Discard the operator and reset the extents to the space sizes."""
        self._acc = None
        self._mat = None
        self.height = self.test_space.vsize
        self.width = self.trial_space.vsize

    def __repr__(self) -> str:
        return (f"{type(self).__name__}({self.height}x{self.width}, "
                f"domain={len(self.domain_integrators)}, "
                f"boundary={len(self.boundary_integrators)}, "
                f"trace={len(self.trace_face_integrators)})")


class DiscreteLinearOperator(MixedBilinearForm):
    """
    Discrete operator from a domain space to a range space, e.g.
    interpolation or a discrete gradient.

    Local blocks are set rather than added, so dofs shared between elements
    receive one value instead of a sum over elements.
    """

    def __init__(self, domain_space, range_space, config: Optional[AssemblyConfig] = None):
        super().__init__(domain_space, range_space, config)

    def add_domain_interpolator(self, interp: BilinearFormIntegrator) -> None:
        self.add_domain_integrator(interp)

    def assemble(self, skip_zeros: Optional[bool] = None) -> None:
        skip = self.config.skip_zeros if skip_zeros is None else skip_zeros
        assemble_mixed_domain(self._accumulator(), self.trial_space, self.test_space,
                              self.domain_integrators, skip, overwrite=True)
