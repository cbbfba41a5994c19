"""
Bilinear Form
=============

Square global operator of a bilinear form over one finite element space.

Typical use:

    a = BilinearForm(space)
    a.add_domain_integrator(DiffusionIntegrator())
    a.assemble()
    a.eliminate_essential_bc(ess_bdr, x, b)
    A = a.sp_mat()

The form exclusively owns its operator and the companion matrix filled by
recordable elimination; both are discarded together by update().
"""

import logging

import numpy as np
from dataclasses import replace
from scipy.sparse import csr_matrix
from typing import List, Optional, Sequence, Union

from ..config import AssemblyConfig, DiagonalPolicy
from ..errors import AssemblyError
from ..integrators.base import BilinearFormIntegrator, IntegratorKind
from ..vdofs import VdofList, decode_vdofs
from .assemblers import (
    assemble_boundary, assemble_boundary_faces, assemble_domain,
    assemble_interior_faces, sum_local_matrices
)
from .boundary_conditions import (
    eliminate_essential_dofs, eliminate_essential_dofs_recorded,
    eliminate_in_rhs, mark_essential_dofs
)
from .conforming import conforming_project
from .element_matrices import ElementMatrixCache
from .sparse_matrix import SparseAccumulator
from .sparsity import predict_sparsity

logger = logging.getLogger(__name__)


def _check_kind(integ: BilinearFormIntegrator, kind: IntegratorKind) -> None:
    if not integ.supports(kind):
        raise AssemblyError(f"{type(integ).__name__} does not support "
                            f"{kind.value} integration")


def _as_policy(policy, default: DiagonalPolicy) -> DiagonalPolicy:
    if policy is None:
        return default
    return policy if isinstance(policy, DiagonalPolicy) else DiagonalPolicy(policy)


class BilinearForm:
    """
    Assembler of a square sparse operator a(u, v) on one space.

    Attributes:
        space: FiniteElementSpace providing vdofs and transformations
        config: AssemblyConfig
        height, width: current operator extents (reduced by
            conforming_assemble)
        mat_e: companion matrix of recordable elimination, or None
        extern_integrators: True when the integrator lists were borrowed
            from another form
        domain_integrators, boundary_integrators,
        interior_face_integrators, boundary_face_integrators: registered
            integrators in registration order
    """

    def __init__(self, space, base_form: Optional['BilinearForm'] = None,
                 config: Optional[AssemblyConfig] = None,
                 precompute_sparsity: Optional[bool] = None):
        """
        Args:
            space: finite element space
            base_form: form whose integrators are reused; the new form
                never releases them
            config: AssemblyConfig (defaults apply if omitted)
            precompute_sparsity: overrides config.precompute_sparsity
        """
        self.space = space
        self.config = config if config is not None else AssemblyConfig()
        if precompute_sparsity is not None:
            self.config = replace(self.config, precompute_sparsity=precompute_sparsity)

        self.height = self.width = space.vsize
        self.mat_e: Optional[csr_matrix] = None
        self._acc: Optional[SparseAccumulator] = None
        self._mat: Optional[csr_matrix] = None
        self._element_matrices: Optional[ElementMatrixCache] = None

        if base_form is None:
            self.extern_integrators = False
            self.domain_integrators: List[BilinearFormIntegrator] = []
            self.boundary_integrators: List[BilinearFormIntegrator] = []
            self.interior_face_integrators: List[BilinearFormIntegrator] = []
            self.boundary_face_integrators: List[BilinearFormIntegrator] = []
        else:
            self.extern_integrators = True
            self.domain_integrators = list(base_form.domain_integrators)
            self.boundary_integrators = list(base_form.boundary_integrators)
            self.interior_face_integrators = list(base_form.interior_face_integrators)
            self.boundary_face_integrators = list(base_form.boundary_face_integrators)
            self.allocate()

    # ------------------------------------------------------------------
    # Integrators
    # ------------------------------------------------------------------

    def add_domain_integrator(self, integ: BilinearFormIntegrator) -> None:
        _check_kind(integ, IntegratorKind.DOMAIN)
        self.domain_integrators.append(integ)
        self._element_matrices = None

    def add_boundary_integrator(self, integ: BilinearFormIntegrator) -> None:
        _check_kind(integ, IntegratorKind.BOUNDARY)
        self.boundary_integrators.append(integ)

    def add_interior_face_integrator(self, integ: BilinearFormIntegrator) -> None:
        _check_kind(integ, IntegratorKind.INTERIOR_FACE)
        self.interior_face_integrators.append(integ)

    def add_boundary_face_integrator(self, integ: BilinearFormIntegrator) -> None:
        _check_kind(integ, IntegratorKind.BOUNDARY_FACE)
        self.boundary_face_integrators.append(integ)

    def get_domain_integrators(self) -> List[BilinearFormIntegrator]:
        return self.domain_integrators

    def get_boundary_integrators(self) -> List[BilinearFormIntegrator]:
        return self.boundary_integrators

    def get_interior_face_integrators(self) -> List[BilinearFormIntegrator]:
        return self.interior_face_integrators

    def get_boundary_face_integrators(self) -> List[BilinearFormIntegrator]:
        return self.boundary_face_integrators

    def release_integrators(self) -> None:
        """Drop owned integrators. Borrowed integrators are left alone."""
        if self.extern_integrators:
            logger.debug("Integrators are borrowed; not releasing")
            return
        self.domain_integrators.clear()
        self.boundary_integrators.clear()
        self.interior_face_integrators.clear()
        self.boundary_face_integrators.clear()
        self._element_matrices = None

    # ------------------------------------------------------------------
    # Allocation and assembly
    # ------------------------------------------------------------------

    def use_precomputed_sparsity(self, flag: bool = True) -> None:
        """Predict the nonzero pattern before the next allocation."""
        self.config = replace(self.config, precompute_sparsity=flag)

    def allocate(self) -> None:
        """Allocate an empty accumulator, with a predicted pattern if enabled."""
        pattern = predict_sparsity(self.space, self.config.precompute_sparsity,
                                   include_faces=bool(self.interior_face_integrators))
        self._acc = SparseAccumulator(self.height, self.width, pattern)
        self._mat = None

    def _accumulator(self) -> SparseAccumulator:
        if self._acc is None:
            if self._mat is None:
                self.allocate()
            else:
                self._acc = SparseAccumulator.from_csr(self._mat)
                self._mat = None
        return self._acc

    def assemble(self, skip_zeros: Optional[bool] = None) -> None:
        """
        Add the contributions of all registered integrators.

        Repeated calls accumulate. After finalize() further passes add into
        the finalized nonzero pattern.

        Args:
            skip_zeros: zero-skip policy (default: config.skip_zeros)
        """
        skip = self.config.skip_zeros if skip_zeros is None else skip_zeros
        acc = self._accumulator()

        cache = self._element_matrices
        if cache is None and self.domain_integrators:
            if self.config.use_element_matrices:
                self.compute_element_matrices()
                cache = self._element_matrices
            elif self.config.parallel:
                # Transient cache: only used to run the element loop concurrently
                cache = ElementMatrixCache.compute(self.space, self.domain_integrators,
                                                   parallel=True,
                                                   max_workers=self.config.max_workers)

        assemble_domain(acc, self.space, self.domain_integrators, cache, skip)
        assemble_boundary(acc, self.space, self.boundary_integrators, skip)
        assemble_interior_faces(acc, self.space, self.interior_face_integrators, skip)
        assemble_boundary_faces(acc, self.space, self.boundary_face_integrators, skip)

    def compute_element_matrices(self) -> None:
        """Compute and keep the element matrix cache."""
        self._element_matrices = ElementMatrixCache.compute(
            self.space, self.domain_integrators,
            parallel=self.config.parallel, max_workers=self.config.max_workers)

    def free_element_matrices(self) -> None:
        self._element_matrices = None

    @property
    def element_matrices(self) -> Optional[ElementMatrixCache]:
        return self._element_matrices

    def compute_element_matrix(self, i: int) -> np.ndarray:
        """
        Summed domain-integrator matrix of element i.

        Returns:
            copy of the cached matrix if present; a zero matrix of the
            element's vdof size when no domain integrator is registered
        """
        if self._element_matrices is not None:
            return self._element_matrices[i].copy()
        if not self.domain_integrators:
            n = len(self.space.get_element_vdofs(i))
            return np.zeros((n, n))
        fe = self.space.get_fe(i)
        trans = self.space.get_element_transformation(i)
        return sum_local_matrices(self.domain_integrators,
                                  lambda integ: integ.assemble_element_matrix(fe, trans))

    def assemble_element_matrix(self, i: int, elmat: np.ndarray,
                                skip_zeros: bool = True) -> None:
        """Add a caller-supplied local matrix at the vdofs of element i."""
        vdofs = self.space.get_element_vdofs(i)
        self._accumulator().add_submatrix(vdofs, vdofs, elmat, skip_zeros)

    def finalize(self, skip_zeros: Optional[bool] = None) -> None:
        """
        Convert the accumulator to CSR storage.

        Args:
            skip_zeros: drop exact zeros (default: config.skip_zeros); pass
                False when entries will be eliminated later
        """
        if self._acc is None:
            return
        skip = self.config.skip_zeros if skip_zeros is None else skip_zeros
        self._mat = self._acc.finalize(skip)
        self._acc = None

    # ------------------------------------------------------------------
    # Operator access
    # ------------------------------------------------------------------

    def sp_mat(self) -> csr_matrix:
        """The global operator, finalized if necessary."""
        if self._acc is None and self._mat is None:
            raise AssemblyError("the operator has not been allocated or assembled")
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

    def _finalized_for_elimination(self) -> csr_matrix:
        # Pruning here could remove entries a later elimination has to touch
        if self._acc is None and self._mat is None:
            raise AssemblyError("assemble the form before eliminating dofs")
        self.finalize(skip_zeros=False)
        return self._mat

    # ------------------------------------------------------------------
    # Essential boundary conditions
    # ------------------------------------------------------------------

    def eliminate_essential_bc(self, bdr_attr_is_ess: Sequence[int],
                               sol: Optional[np.ndarray] = None,
                               rhs: Optional[np.ndarray] = None,
                               policy: Union[DiagonalPolicy, str, None] = None) -> None:
        """
        Eliminate the dofs on boundary attributes flagged essential.

        bdr_attr_is_ess[k] != 0 marks attribute k + 1. With a conforming
        prolongation the marker is first converted to conforming vdofs, so
        this must follow conforming_assemble().
        """
        marker = self.space.get_essential_vdofs(bdr_attr_is_ess)
        if self.space.get_conforming_prolongation() is not None:
            marker = self.space.convert_to_conforming_vdofs(marker)
        self.eliminate_essential_bc_from_dofs(marker, sol, rhs, policy)

    def eliminate_essential_bc_from_dofs(self, ess_marker: np.ndarray,
                                         sol: Optional[np.ndarray] = None,
                                         rhs: Optional[np.ndarray] = None,
                                         policy: Union[DiagonalPolicy, str, None] = None
                                         ) -> None:
        """
        Eliminate the dofs whose marker entry is negative.

        With sol and rhs the elimination is direct: the operator and rhs are
        modified in one pass. Without them it is recordable: removed entries
        accumulate in mat_e for eliminate_vdofs_in_rhs().

        Args:
            ess_marker: shape (height,), negative entries mark essential dofs
            sol: prescribed values (direct mode)
            rhs: right-hand side, modified in place (direct mode)
            policy: DiagonalPolicy (default: config.diagonal_policy)

        Raises:
            AssemblyError: on size mismatches or if only one of sol/rhs is given
        """
        policy = _as_policy(policy, self.config.diagonal_policy)
        if (sol is None) != (rhs is None):
            raise AssemblyError("direct elimination needs both sol and rhs")
        A = self._finalized_for_elimination()

        if sol is not None:
            eliminate_essential_dofs(A, ess_marker, sol, rhs, policy)
            return

        Ae = eliminate_essential_dofs_recorded(A, ess_marker, policy)
        if self.mat_e is None:
            self.mat_e = Ae
        else:
            self.mat_e = csr_matrix(self.mat_e + Ae)
            self.mat_e.sort_indices()

    def eliminate_vdofs(self, vdofs: Union[VdofList, Sequence[int]],
                        sol: Optional[np.ndarray] = None,
                        rhs: Optional[np.ndarray] = None,
                        policy: Union[DiagonalPolicy, str, None] = None) -> None:
        """
        Eliminate an explicit vdof list (VdofList or legacy encoded ints).
        Orientation signs are irrelevant to elimination and are dropped.
        """
        indices = decode_vdofs(vdofs).indices
        self.eliminate_essential_bc_from_dofs(
            mark_essential_dofs(self.height, indices), sol, rhs, policy)

    def eliminate_vdofs_in_rhs(self, vdofs: Union[VdofList, Sequence[int]],
                               x: np.ndarray, b: np.ndarray) -> None:
        """
        Correct b for values x after a recordable elimination of vdofs.

        Raises:
            AssemblyError: if no recordable elimination has been done
        """
        if self.mat_e is None:
            raise AssemblyError("no recordable elimination has been performed")
        eliminate_in_rhs(self._finalized_for_elimination(), self.mat_e,
                         decode_vdofs(vdofs).indices, x, b)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def conforming_assemble(self) -> None:
        """
        Reduce the operator (and mat_e) to the conforming space: P^T A P.
        A no-op apart from finalization when the space has no prolongation.
        """
        self.finalize(skip_zeros=False)
        P = self.space.get_conforming_prolongation()
        if P is None or self._mat is None:
            return
        self._mat, self.mat_e = conforming_project(self._mat, P, self.mat_e)
        self.height, self.width = self._mat.shape

    def update(self, space=None) -> None:
        """
        Discard the operator, companion and element matrices, optionally
        switching to a new space.
        """
        if space is not None:
            self.space = space
        self._acc = None
        self._mat = None
        self.mat_e = None
        self._element_matrices = None
        self.height = self.width = self.space.vsize

    def __repr__(self) -> str:
        return (f"BilinearForm({self.height}x{self.width}, "
                f"domain={len(self.domain_integrators)}, "
                f"boundary={len(self.boundary_integrators)}, "
                f"interior_face={len(self.interior_face_integrators)}, "
                f"boundary_face={len(self.boundary_face_integrators)})")
