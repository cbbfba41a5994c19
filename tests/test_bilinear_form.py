"""
Tests for BilinearForm Assembly
===============================
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bilinform.config import AssemblyConfig
from bilinform.errors import AssemblyError
from bilinform.mesh import create_interval_mesh, create_rectangle_mesh
from bilinform.spaces import FiniteElementSpace, H1Collection, L2Collection, FacetCollection, Ordering
from bilinform.integrators import (
    BilinearFormIntegrator, IntegratorKind, DiffusionIntegrator, MassIntegrator,
    VectorMassIntegrator, InteriorPenaltyIntegrator
)
from bilinform.assembly import BilinearForm


class FixedStiffness(BilinearFormIntegrator):
    """Constant 2x2 stiffness k [[1, -1], [-1, 1]] on every segment."""

    kinds = frozenset({IntegratorKind.DOMAIN})

    def __init__(self, k):
        self.k = k

    def assemble_element_matrix(self, fe, trans):
        return self.k * np.array([[1.0, -1.0], [-1.0, 1.0]])


@pytest.fixture
def line_space():
    """Two segments, three P1 dofs; dof 1 is shared."""
    return FiniteElementSpace(create_interval_mesh(2), H1Collection())


@pytest.fixture
def square_space():
    return FiniteElementSpace(create_rectangle_mesh(1, 1, 3, 3), H1Collection())


def assembled(space, *integrators, config=None):
    form = BilinearForm(space, config=config)
    for integ in integrators:
        form.add_domain_integrator(integ)
    form.assemble()
    return form.sp_mat().toarray()


class TestDomainAssembly:
    """Tests for the element scatter loop."""

    def test_two_element_reference(self, line_space):
        """Local matrices are summed at the shared dof."""
        A = assembled(line_space, FixedStiffness(3.0))
        expected = np.array([[3.0, -3.0, 0.0],
                             [-3.0, 6.0, -3.0],
                             [0.0, -3.0, 3.0]])
        assert np.array_equal(A, expected)

    def test_diffusion_reference(self, line_space):
        A = assembled(line_space, DiffusionIntegrator())
        expected = 2.0 * np.array([[1.0, -1.0, 0.0],
                                   [-1.0, 2.0, -1.0],
                                   [0.0, -1.0, 1.0]])
        assert np.allclose(A, expected, atol=1e-13)

    def test_additivity(self, square_space):
        """Assembling {I1, I2} equals the sum of assembling each alone."""
        i1, i2 = DiffusionIntegrator(2.0), MassIntegrator(0.7)
        both = assembled(square_space, i1, i2)
        assert np.allclose(both, assembled(square_space, i1) + assembled(square_space, i2))

    def test_mass_total(self, square_space):
        """1^T M 1 equals the domain area."""
        M = assembled(square_space, MassIntegrator())
        assert np.isclose(M.sum(), 1.0)

    def test_deterministic(self, square_space):
        """Repeated runs are bit-identical."""
        a = assembled(square_space, DiffusionIntegrator(), MassIntegrator())
        b = assembled(square_space, DiffusionIntegrator(), MassIntegrator())
        assert np.array_equal(a, b)

    def test_repeated_assembly_accumulates(self, line_space):
        form = BilinearForm(line_space)
        form.add_domain_integrator(FixedStiffness(1.0))
        form.assemble()
        form.finalize()
        form.assemble()

        assert np.array_equal(form.sp_mat().toarray(), assembled(line_space, FixedStiffness(2.0)))

    def test_vector_space(self):
        """vdim > 1 falls back to dynamic accumulation and stays block diagonal."""
        mesh = create_interval_mesh(3)
        scalar = FiniteElementSpace(mesh, H1Collection())
        vector = FiniteElementSpace(mesh, H1Collection(), vdim=2, ordering=Ordering.BY_NODES)

        M = assembled(scalar, MassIntegrator())
        V = assembled(vector, VectorMassIntegrator(2),
                      config=AssemblyConfig(precompute_sparsity=True))

        assert np.allclose(V, np.kron(np.eye(2), M))

    def test_domain_integration_on_facet_space(self):
        """Facet dofs have no interior shape functions to integrate."""
        space = FiniteElementSpace(create_rectangle_mesh(1, 1, 2, 2), FacetCollection())
        form = BilinearForm(space)
        form.add_domain_integrator(MassIntegrator())

        assert space.get_fe(0).dof == 3
        with pytest.raises(AssemblyError):
            form.assemble()


class TestElementMatrices:
    """Tests for cached and parallel element matrices."""

    def test_cache_matches_direct(self, square_space):
        integrators = (DiffusionIntegrator(), MassIntegrator())
        direct = assembled(square_space, *integrators)
        cached = assembled(square_space, *integrators,
                           config=AssemblyConfig(use_element_matrices=True))
        parallel = assembled(square_space, *integrators,
                             config=AssemblyConfig(parallel=True, max_workers=3))

        assert np.allclose(direct, cached)
        assert np.array_equal(cached, parallel)

    def test_cache_retention(self, square_space):
        kept = BilinearForm(square_space, config=AssemblyConfig(use_element_matrices=True))
        kept.add_domain_integrator(MassIntegrator())
        kept.assemble()
        assert kept.element_matrices is not None

        transient = BilinearForm(square_space, config=AssemblyConfig(parallel=True))
        transient.add_domain_integrator(MassIntegrator())
        transient.assemble()
        assert transient.element_matrices is None

    def test_adding_integrator_invalidates_cache(self, square_space):
        form = BilinearForm(square_space)
        form.add_domain_integrator(MassIntegrator())
        form.compute_element_matrices()
        form.add_domain_integrator(DiffusionIntegrator())
        assert form.element_matrices is None

    def test_compute_element_matrix(self, square_space):
        form = BilinearForm(square_space)
        assert np.array_equal(form.compute_element_matrix(0), np.zeros((3, 3)))

        form.add_domain_integrator(MassIntegrator())
        direct = form.compute_element_matrix(4)
        form.compute_element_matrices()
        cached = form.compute_element_matrix(4)
        cached[0, 0] = 99.0  # a copy, not a view into the cache

        assert np.allclose(direct, form.element_matrices[4])
        form.free_element_matrices()
        assert form.element_matrices is None

    def test_assemble_element_matrix(self, line_space):
        form = BilinearForm(line_space)
        form.assemble_element_matrix(1, np.array([[1.0, 2.0], [3.0, 4.0]]))
        assert np.array_equal(form.sp_mat().toarray(),
                              [[0.0, 0.0, 0.0], [0.0, 1.0, 2.0], [0.0, 3.0, 4.0]])


class TestFaceAssembly:
    """Tests for the interior and boundary face loops."""

    @pytest.mark.parametrize("precompute", [False, True])
    def test_penalty_reference(self, precompute):
        space = FiniteElementSpace(create_interval_mesh(3), L2Collection(0))
        form = BilinearForm(space, config=AssemblyConfig(precompute_sparsity=precompute))
        form.add_interior_face_integrator(InteriorPenaltyIntegrator())
        form.add_boundary_face_integrator(InteriorPenaltyIntegrator())
        form.assemble()

        expected = np.array([[6.0, -3.0, 0.0],
                             [-3.0, 6.0, -3.0],
                             [0.0, -3.0, 6.0]])
        assert np.allclose(form.sp_mat().toarray(), expected)

    def test_dg_penalty_nullspace(self):
        """Constants have no jumps across interior faces."""
        space = FiniteElementSpace(create_rectangle_mesh(1, 1, 2, 2), L2Collection(1))
        form = BilinearForm(space)
        form.add_interior_face_integrator(InteriorPenaltyIntegrator())
        form.assemble()

        assert np.allclose(form.mult(np.ones(space.vsize)), 0.0)

    def test_integrator_lists_and_predicted_pattern(self):
        space = FiniteElementSpace(create_interval_mesh(3), L2Collection(0))
        form = BilinearForm(space)
        penalty = InteriorPenaltyIntegrator()
        form.add_interior_face_integrator(penalty)
        form.add_boundary_face_integrator(penalty)
        form.add_boundary_integrator(MassIntegrator())

        assert form.get_interior_face_integrators() == [penalty]
        assert form.get_boundary_face_integrators() == [penalty]
        assert len(form.get_boundary_integrators()) == 1

        form.use_precomputed_sparsity()
        assert form.config.precompute_sparsity
        form.assemble()
        # L2 P0 has no boundary element dofs, so the boundary mass adds nothing
        assert np.allclose(form.sp_mat().diagonal(), 6.0)

    def test_unsupported_kind(self, line_space):
        form = BilinearForm(line_space)
        with pytest.raises(AssemblyError):
            form.add_boundary_integrator(DiffusionIntegrator())
        with pytest.raises(AssemblyError):
            form.add_interior_face_integrator(MassIntegrator())


class TestFormLifecycle:
    """Tests for borrowing, access and update."""

    def test_borrowed_integrators(self, square_space):
        base = BilinearForm(square_space)
        base.add_domain_integrator(DiffusionIntegrator())
        base.assemble()

        borrowed = BilinearForm(square_space, base_form=base, precompute_sparsity=True)
        assert borrowed.extern_integrators
        borrowed.assemble()
        assert np.allclose(borrowed.sp_mat().toarray(), base.sp_mat().toarray())

        borrowed.release_integrators()
        assert len(borrowed.get_domain_integrators()) == 1

        base.release_integrators()
        assert base.get_domain_integrators() == []
        assert len(borrowed.get_domain_integrators()) == 1

    def test_operator_access(self, line_space):
        form = BilinearForm(line_space)
        form.add_domain_integrator(FixedStiffness(1.0))
        form.assemble()

        x = np.array([1.0, 2.0, 4.0])
        y = np.ones(3)
        form.add_mult(x, y, a=2.0)

        assert form.height == form.width == 3
        assert form.elem(1, 1) == 2.0
        assert np.array_equal(form.mult(x), [-1.0, -1.0, 2.0])
        assert np.array_equal(y, [-1.0, -1.0, 5.0])
        assert form.mat is form.sp_mat()

    def test_unassembled_access(self, line_space):
        with pytest.raises(AssemblyError):
            BilinearForm(line_space).sp_mat()

    def test_update(self, line_space):
        form = BilinearForm(line_space)
        form.add_domain_integrator(FixedStiffness(1.0))
        form.assemble()
        form.eliminate_vdofs([0])
        assert form.mat_e is not None

        bigger = FiniteElementSpace(create_interval_mesh(4), H1Collection())
        form.update(bigger)

        assert form.mat_e is None
        assert form.height == form.width == 5
        with pytest.raises(AssemblyError):
            form.sp_mat()
        form.assemble()
        assert form.sp_mat().shape == (5, 5)
