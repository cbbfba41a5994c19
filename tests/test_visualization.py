"""
Tests for Visualization
=======================
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

matplotlib = pytest.importorskip("matplotlib")
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from bilinform.mesh import create_interval_mesh, create_rectangle_mesh
from bilinform.table import Table
from bilinform.spaces import FiniteElementSpace, H1Collection
from bilinform.integrators import DiffusionIntegrator
from bilinform.assembly import BilinearForm
from bilinform.postprocess import plot_mesh, plot_nodal_field, plot_sparsity_pattern


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')


class TestPlotMesh:
    """Tests for mesh plots."""

    def test_triangle_mesh(self):
        mesh = create_rectangle_mesh(1, 1, 2, 2)
        ax = plot_mesh(mesh, show_nodes=True, node_labels=True)
        assert ax.get_title() == f'Mesh ({mesh.n_elements} elements)'
        assert ax.get_ylabel() == 'y'

    def test_interval_mesh(self):
        mesh = create_interval_mesh(4)
        fig, ax = plt.subplots()
        assert plot_mesh(mesh, ax=ax) is ax
        # one line per element plus the boundary markers
        assert len(ax.lines) == mesh.n_elements + 1


class TestPlotNodalField:
    """Tests for nodal field plots."""

    def test_interval_field(self):
        mesh = create_interval_mesh(5)
        ax = plot_nodal_field(mesh, mesh.nodes[:, 0] ** 2, title='u')
        assert ax.get_title() == 'u'
        x, y = ax.lines[0].get_data()
        assert np.allclose(y, x ** 2)

    def test_triangle_field(self):
        mesh = create_rectangle_mesh(1, 1, 3, 3)
        ax = plot_nodal_field(mesh, mesh.nodes[:, 0] + mesh.nodes[:, 1], colorbar=False)
        assert ax.get_title() == 'Solution'

    def test_wrong_size(self):
        mesh = create_interval_mesh(3)
        with pytest.raises(ValueError):
            plot_nodal_field(mesh, np.zeros(3))


class TestPlotSparsity:
    """Tests for sparsity pattern plots."""

    def test_assembled_operator(self):
        mesh = create_interval_mesh(4)
        form = BilinearForm(FiniteElementSpace(mesh, H1Collection()))
        form.add_domain_integrator(DiffusionIntegrator())
        form.assemble()
        A = form.sp_mat()

        ax = plot_sparsity_pattern(A)
        assert ax.get_title() == f'5x5, {A.nnz} stored entries'

    def test_table_and_dense(self):
        table = Table.from_lists([[0, 1], [1], [0, 2]], n_cols=3)
        assert plot_sparsity_pattern(table).get_title() == '3x3, 5 stored entries'
        ax = plot_sparsity_pattern(np.eye(2), title='identity')
        assert ax.get_title() == 'identity'
