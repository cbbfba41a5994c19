"""
Tests for the Element Matrix Cache
==================================
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bilinform.errors import AssemblyError
from bilinform.mesh import create_rectangle_mesh, create_interval_mesh
from bilinform.spaces import FiniteElementSpace, H1Collection
from bilinform.integrators import BilinearFormIntegrator, IntegratorKind, DiffusionIntegrator, MassIntegrator
from bilinform.assembly import ElementMatrixCache


class GrowingIntegrator(BilinearFormIntegrator):
    """Returns an element matrix whose size depends on the element index."""

    kinds = frozenset({IntegratorKind.DOMAIN})

    def assemble_element_matrix(self, fe, trans):
        n = 2 if trans.index == 0 else 3
        return np.eye(n)


@pytest.fixture
def space():
    return FiniteElementSpace(create_rectangle_mesh(1, 1, 4, 3), H1Collection())


class TestElementMatrixCache:
    """Tests for ElementMatrixCache.compute."""

    def test_shape(self, space):
        cache = ElementMatrixCache.compute(space, [DiffusionIntegrator()])
        assert cache.tensor.shape == (3, 3, space.get_ne())
        assert cache.local_size == 3
        assert len(cache) == space.get_ne()

    def test_sums_integrators(self, space):
        diffusion, mass = DiffusionIntegrator(), MassIntegrator(3.0)
        cache = ElementMatrixCache.compute(space, [diffusion, mass])

        fe = space.get_fe(5)
        trans = space.get_element_transformation(5)
        expected = (diffusion.assemble_element_matrix(fe, trans)
                    + mass.assemble_element_matrix(fe, trans))
        assert np.allclose(cache[5], expected)

    def test_parallel_matches_sequential(self, space):
        """The concurrent map writes every slot exactly as the sequential loop does."""
        integrators = [DiffusionIntegrator(), MassIntegrator(0.5)]
        sequential = ElementMatrixCache.compute(space, integrators)
        parallel = ElementMatrixCache.compute(space, integrators, parallel=True, max_workers=4)

        assert np.array_equal(sequential.tensor, parallel.tensor)

    def test_no_integrators(self, space):
        assert ElementMatrixCache.compute(space, []) is None

    def test_no_elements(self):
        space = FiniteElementSpace(create_interval_mesh(0), H1Collection())
        assert ElementMatrixCache.compute(space, [MassIntegrator()]) is None

    def test_wrong_local_size(self, space):
        with pytest.raises(AssemblyError):
            ElementMatrixCache.compute(space, [GrowingIntegrator()])

    def test_wrong_local_size_parallel(self, space):
        """Worker exceptions propagate to the caller."""
        with pytest.raises(AssemblyError):
            ElementMatrixCache.compute(space, [GrowingIntegrator()], parallel=True)

    def test_invalid_tensor(self):
        with pytest.raises(AssemblyError):
            ElementMatrixCache(np.zeros((2, 3, 4)))
