"""
Tests for Integrators
=====================
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bilinform.mesh import create_interval_mesh, create_single_element, create_two_element_patch
from bilinform.spaces import FiniteElementSpace, H1Collection, L2Collection, FacetCollection
from bilinform.integrators import (
    BilinearFormIntegrator, IntegratorKind, MassIntegrator, DiffusionIntegrator,
    VectorMassIntegrator, InteriorPenaltyIntegrator, NormalTraceJumpIntegrator,
    IdentityInterpolator
)


class TestCapabilities:
    """Tests for the capability tags."""

    def test_supports(self):
        assert MassIntegrator().supports(IntegratorKind.BOUNDARY)
        assert not DiffusionIntegrator().supports(IntegratorKind.BOUNDARY)
        assert InteriorPenaltyIntegrator().supports(IntegratorKind.BOUNDARY_FACE)
        assert NormalTraceJumpIntegrator().supports(IntegratorKind.TRACE)

    def test_base_raises(self):
        integ = BilinearFormIntegrator()
        assert not any(integ.supports(kind) for kind in IntegratorKind)
        with pytest.raises(NotImplementedError):
            integ.assemble_element_matrix(None, None)
        with pytest.raises(NotImplementedError):
            integ.assemble_face_matrix(None, None, None)
        with pytest.raises(NotImplementedError):
            integ.assemble_element_matrix2(None, None, None)
        with pytest.raises(NotImplementedError):
            integ.assemble_trace_face_matrix(None, None, None, None)


class TestDomainIntegrators:
    """Tests for mass and diffusion element matrices."""

    def test_segment_mass(self):
        space = FiniteElementSpace(create_interval_mesh(1, 0.0, 2.0), H1Collection())
        M = MassIntegrator().assemble_element_matrix(space.get_fe(0),
                                                     space.get_element_transformation(0))
        assert np.allclose(M, 2.0 / 6.0 * np.array([[2.0, 1.0], [1.0, 2.0]]))

    def test_segment_diffusion(self):
        space = FiniteElementSpace(create_interval_mesh(1, 0.0, 0.5), H1Collection())
        K = DiffusionIntegrator(3.0).assemble_element_matrix(
            space.get_fe(0), space.get_element_transformation(0))
        assert np.allclose(K, 6.0 * np.array([[1.0, -1.0], [-1.0, 1.0]]))

    def test_triangle_mass_total(self):
        """Entries of the P1 mass matrix sum to the element area."""
        space = FiniteElementSpace(create_single_element(), H1Collection())
        M = MassIntegrator().assemble_element_matrix(space.get_fe(0),
                                                     space.get_element_transformation(0))
        assert np.isclose(M.sum(), 0.5)
        assert np.allclose(M, 0.5 / 12.0 * (np.ones((3, 3)) + np.eye(3)))

    def test_triangle_diffusion_rows_sum_to_zero(self):
        space = FiniteElementSpace(create_single_element(), H1Collection())
        K = DiffusionIntegrator().assemble_element_matrix(
            space.get_fe(0), space.get_element_transformation(0))
        assert np.allclose(K.sum(axis=1), 0.0)
        assert np.allclose(K, K.T)

    def test_vector_mass_block_diagonal(self):
        space = FiniteElementSpace(create_interval_mesh(1), H1Collection())
        fe, trans = space.get_fe(0), space.get_element_transformation(0)
        M = MassIntegrator().assemble_element_matrix(fe, trans)
        V = VectorMassIntegrator(2).assemble_element_matrix(fe, trans)

        assert V.shape == (4, 4)
        assert np.allclose(V[:2, :2], M)
        assert np.allclose(V[2:, 2:], M)
        assert np.allclose(V[:2, 2:], 0.0)

    def test_mixed_mass_shape(self):
        mesh = create_single_element()
        h1 = FiniteElementSpace(mesh, H1Collection())
        l2 = FiniteElementSpace(mesh, L2Collection(0))
        B = MassIntegrator().assemble_element_matrix2(
            h1.get_fe(0), l2.get_fe(0), mesh.get_element_transformation(0))

        assert B.shape == (1, 3)
        assert np.allclose(B, 0.5 / 3.0)


class TestFaceIntegrators:
    """Tests for interior penalty and trace matrices."""

    def test_interior_penalty_annihilates_continuous(self):
        """A field that is continuous across the face has no jump."""
        mesh = create_interval_mesh(2)
        space = FiniteElementSpace(mesh, L2Collection(1))
        tr = mesh.get_interior_face_transformations(1)
        J = InteriorPenaltyIntegrator().assemble_face_matrix(
            space.get_fe(tr.elem1_no), space.get_fe(tr.elem2_no), tr)

        u = np.array([0.0, 1.0, 1.0, 2.0])  # linear u = 2x on both elements
        assert J.shape == (4, 4)
        assert np.allclose(J @ u, 0.0)

    def test_boundary_penalty_uses_elem1_only(self):
        mesh = create_interval_mesh(2)
        space = FiniteElementSpace(mesh, L2Collection(0))
        tr = mesh.get_bdr_face_transformations(0)
        fe = space.get_fe(tr.elem1_no)
        J = InteriorPenaltyIntegrator(2.0).assemble_face_matrix(fe, fe, tr)

        assert J.shape == (1, 1)
        assert np.isclose(J[0, 0], 2.0 / 0.5)

    def test_trace_rows(self):
        mesh = create_two_element_patch()
        facet = FiniteElementSpace(mesh, FacetCollection())
        l2 = FiniteElementSpace(mesh, L2Collection(0))
        f = [f for f, elems in enumerate(mesh.face_to_elements) if len(elems) == 2][0]
        tr = mesh.get_face_element_transformations(f)
        T = NormalTraceJumpIntegrator().assemble_trace_face_matrix(
            facet.get_face_element(f), l2.get_fe(0), l2.get_fe(1), tr)

        length = np.sqrt(2.0)
        assert T.shape == (2, 1)
        assert np.allclose(T[:, 0], [length, -length])

    def test_identity_interpolator(self):
        """Interpolating P1 into P0 evaluates at the centroid."""
        mesh = create_single_element()
        h1 = FiniteElementSpace(mesh, H1Collection())
        l2 = FiniteElementSpace(mesh, L2Collection(0))
        I = IdentityInterpolator().assemble_element_matrix2(
            h1.get_fe(0), l2.get_fe(0), mesh.get_element_transformation(0))
        assert np.allclose(I, [[1 / 3, 1 / 3, 1 / 3]])
