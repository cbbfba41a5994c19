"""
Tests for Mesh Module
=====================
"""

import numpy as np
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bilinform.mesh import (
    TriangleMesh, IntervalMesh, quadrature_rule,
    create_interval_mesh, create_rectangle_mesh,
    create_single_element, create_two_element_patch
)


class TestTriangleMesh:
    """Tests for TriangleMesh class."""

    def test_simple_triangle(self):
        """Single element - verify connectivity."""
        nodes = np.array([[0, 0], [1, 0], [0, 1]], dtype=float)
        elements = np.array([[0, 1, 2]])
        mesh = TriangleMesh(nodes, elements)

        assert mesh.n_nodes == 3
        assert mesh.n_elements == 1
        assert mesh.n_faces == 3
        assert mesh.n_bdr_elements == 3  # All edges are boundary
        assert len(mesh.boundary_nodes) == 3

    def test_two_triangles(self):
        """Two elements sharing an edge."""
        mesh = create_two_element_patch()

        assert mesh.n_nodes == 4
        assert mesh.n_elements == 2
        assert mesh.n_faces == 5  # 4 boundary + 1 internal

        internal = [f for f, elems in enumerate(mesh.face_to_elements) if len(elems) == 2]
        assert len(internal) == 1
        assert set(mesh.faces[internal[0]]) == {0, 2}

    def test_edge_convention(self):
        """Edge k is opposite to node k."""
        mesh = create_single_element()
        elem_faces = mesh.element_to_faces[0]

        assert set(mesh.faces[elem_faces[0]]) == {1, 2}
        assert set(mesh.faces[elem_faces[1]]) == {0, 2}
        assert set(mesh.faces[elem_faces[2]]) == {0, 1}

    def test_face_orientations(self):
        """Shared edge is seen with opposite orientations from its two elements."""
        mesh = create_two_element_patch()
        f = [f for f, elems in enumerate(mesh.face_to_elements) if len(elems) == 2][0]
        e1, e2 = mesh.face_to_elements[f]
        o1 = mesh.face_orientations[e1][list(mesh.element_to_faces[e1]).index(f)]
        o2 = mesh.face_orientations[e2][list(mesh.element_to_faces[e2]).index(f)]

        assert o1 == -o2

    def test_area_computation(self):
        """Test element area computation."""
        mesh = create_single_element()
        assert np.isclose(mesh.element_areas[0], 0.5)
        assert np.isclose(mesh.get_element_transformation(0).measure, 0.5)

    def test_measures_follow_node_coordinates(self):
        """Areas and lengths are derived from the current nodes on access."""
        mesh = create_single_element()
        mesh.nodes[1, 0] = 2.0

        assert np.isclose(mesh.element_areas[0], 1.0)
        assert np.isclose(max(mesh.edge_lengths), np.sqrt(5.0))

    def test_edge_lengths(self):
        """Test edge length computation."""
        nodes = np.array([[0, 0], [3, 0], [0, 4]], dtype=float)  # 3-4-5 triangle
        mesh = TriangleMesh(nodes, np.array([[0, 1, 2]]))

        assert np.allclose(sorted(mesh.edge_lengths), [3, 4, 5])

    def test_invalid_shapes(self):
        """Malformed node or element arrays are rejected."""
        with pytest.raises(ValueError):
            TriangleMesh(np.zeros((3, 3)), np.array([[0, 1, 2]]))
        with pytest.raises(ValueError):
            TriangleMesh(np.zeros((4, 2)), np.array([[0, 1, 2, 3]]))


class TestIntervalMesh:
    """Tests for IntervalMesh class."""

    def test_two_segments(self):
        """Faces are vertices; only the end points are boundary."""
        mesh = create_interval_mesh(2)

        assert mesh.n_elements == 2
        assert mesh.n_faces == 3
        assert mesh.n_bdr_elements == 2
        assert np.allclose(mesh.element_lengths, [0.5, 0.5])
        assert set(mesh.boundary_nodes) == {0, 2}

    def test_boundary_attributes(self):
        """Left end has attribute 1 and right end attribute 2."""
        mesh = create_interval_mesh(4, a=-1.0, b=3.0)
        attrs = {mesh.get_bdr_element_vertices(i)[0]: mesh.get_bdr_attribute(i)
                 for i in range(mesh.n_bdr_elements)}
        assert attrs == {0: 1, 4: 2}

    def test_empty_mesh(self):
        """A mesh without elements has no faces."""
        mesh = create_interval_mesh(0)
        assert mesh.n_elements == 0
        assert mesh.n_faces == 0
        assert mesh.n_bdr_elements == 0

    def test_face_normal_points_outward(self):
        """Boundary normals point away from the domain."""
        mesh = create_interval_mesh(3)
        normals = [mesh.get_bdr_face_transformations(i).normal[0]
                   for i in range(mesh.n_bdr_elements)]
        xs = [mesh.nodes[mesh.get_bdr_element_vertices(i)[0], 0]
              for i in range(mesh.n_bdr_elements)]
        for x, n in zip(xs, normals):
            assert n == (-1.0 if x == 0.0 else 1.0)


class TestFaceTransformations:
    """Tests for interior and boundary face lookups."""

    def test_interior_lookup(self):
        """Interior lookup returns None on boundary faces."""
        mesh = create_two_element_patch()
        for f in range(mesh.n_faces):
            tr = mesh.get_interior_face_transformations(f)
            if len(mesh.face_to_elements[f]) == 2:
                assert tr is not None and tr.elem2_no >= 0
            else:
                assert tr is None

    def test_boundary_lookup(self):
        """Boundary lookup only reports elem1."""
        mesh = create_rectangle_mesh(1, 1, 2, 2)
        for i in range(mesh.n_bdr_elements):
            tr = mesh.get_bdr_face_transformations(i)
            assert tr.is_boundary
            assert tr.elem2 is None

    def test_face_to_element_table(self):
        """Table rows match face_to_elements."""
        mesh = create_rectangle_mesh(1, 1, 2, 2)
        table = mesh.get_face_to_element_table()

        assert table.n_rows == mesh.n_faces
        assert table.n_cols == mesh.n_elements
        for f in range(mesh.n_faces):
            assert list(table.row(f)) == sorted(mesh.face_to_elements[f])


class TestQuadrature:
    """Tests for quadrature rules."""

    @pytest.mark.parametrize("geometry,order", [
        ('segment', 1), ('segment', 3), ('segment', 5),
        ('triangle', 1), ('triangle', 2), ('triangle', 4), ('point', 3),
    ])
    def test_weights_sum_to_one(self, geometry, order):
        bary, weights = quadrature_rule(geometry, order)
        assert np.isclose(weights.sum(), 1.0)
        assert np.allclose(bary.sum(axis=1), 1.0)

    def test_triangle_quadratic_exact(self):
        """Integral of x^2 over the unit right triangle is 1/12."""
        trans = create_single_element().get_element_transformation(0)
        points, weights = trans.integration_points(2)
        assert np.isclose(np.sum(weights * points[:, 0] ** 2), 1.0 / 12.0)

    def test_unknown_order(self):
        with pytest.raises(ValueError):
            quadrature_rule('triangle', 9)


class TestMeshGenerators:
    """Tests for mesh generators."""

    def test_rectangle_mesh_dimensions(self):
        """Test rectangle mesh has correct dimensions."""
        Lx, Ly = 2.0, 3.0
        nx, ny = 5, 7
        mesh = create_rectangle_mesh(Lx, Ly, nx, ny)

        assert np.isclose(mesh.nodes[:, 0].min(), 0)
        assert np.isclose(mesh.nodes[:, 0].max(), Lx)
        assert np.isclose(mesh.nodes[:, 1].min(), 0)
        assert np.isclose(mesh.nodes[:, 1].max(), Ly)

        assert mesh.n_nodes == (nx + 1) * (ny + 1)
        assert mesh.n_elements == 2 * nx * ny
        assert mesh.n_bdr_elements == 2 * (nx + ny)

    def test_rectangle_mesh_patterns(self):
        """Both diagonal patterns cover the rectangle."""
        for pattern in ['right', 'left']:
            mesh = create_rectangle_mesh(1, 1, 3, 3, pattern=pattern)
            assert np.isclose(mesh.element_areas.sum(), 1.0)

        with pytest.raises(ValueError):
            create_rectangle_mesh(1, 1, 3, 3, pattern='alternating')

    def test_rectangle_boundary_attributes(self):
        """Each side gets its own attribute."""
        mesh = create_rectangle_mesh(1, 1, 2, 3)
        counts = np.bincount(mesh.bdr_attributes, minlength=5)
        assert list(counts[1:]) == [2, 3, 2, 3]

    def test_set_bdr_attributes_validation(self):
        mesh = create_single_element()
        with pytest.raises(ValueError):
            mesh.set_bdr_attributes(np.array([1, 2]))
        with pytest.raises(ValueError):
            mesh.set_bdr_attributes(np.array([1, 0, 1]))
