"""
Discontinuous Penalty Projection Example
========================================

Projects f(x, y) = sin(pi x) sin(pi y) onto discontinuous P1 elements with
interior and boundary face penalties, using a predicted sparsity pattern.
"""

import numpy as np
import sys
import os
from scipy.sparse.linalg import spsolve

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bilinform import AssemblyConfig
from bilinform.mesh import create_rectangle_mesh
from bilinform.spaces import FiniteElementSpace, L2Collection
from bilinform.integrators import MassIntegrator, InteriorPenaltyIntegrator
from bilinform.assembly import BilinearForm


def source(x, y):
    return np.sin(np.pi * x) * np.sin(np.pi * y)


def run_dg_projection(nx=8, ny=8, penalty=0.1):
    """Assemble the penalized mass operator and solve the projection."""
    print("=" * 60)
    print("Bilinform: Discontinuous Penalty Projection")
    print("=" * 60)

    mesh = create_rectangle_mesh(1.0, 1.0, nx, ny)
    space = FiniteElementSpace(mesh, L2Collection(1))
    print(f"\nMesh: {mesh.n_nodes} nodes, {mesh.n_elements} elements, {mesh.n_faces} faces")
    print(f"Space: {space.vsize} dofs")

    config = AssemblyConfig(precompute_sparsity=True)

    mass = BilinearForm(space, config=config)
    mass.add_domain_integrator(MassIntegrator())
    mass.assemble()

    form = BilinearForm(space, config=config)
    form.add_domain_integrator(MassIntegrator())
    form.add_interior_face_integrator(InteriorPenaltyIntegrator(penalty))
    form.add_boundary_face_integrator(InteriorPenaltyIntegrator(penalty))
    form.assemble()
    A = form.sp_mat()
    print(f"Operator: {A.shape[0]}x{A.shape[1]}, {A.nnz} stored entries")

    # Local dofs follow the element vertices
    pts = mesh.nodes[mesh.elements.ravel()]
    f = source(pts[:, 0], pts[:, 1])
    u = spsolve(A.tocsc(), mass.mult(f))

    err = np.sqrt((u - f) @ mass.mult(u - f))
    print(f"L2 distance to nodal source: {err:.4e}")

    try:
        import matplotlib.pyplot as plt
        from bilinform.postprocess import plot_mesh, plot_sparsity_pattern

        fig, axes = plt.subplots(1, 2, figsize=(12, 5))
        plot_mesh(mesh, ax=axes[0])
        plot_sparsity_pattern(A, ax=axes[1])

        plt.tight_layout()
        plt.savefig('dg_penalty_2d.png', dpi=150)
        print("\nResults saved to 'dg_penalty_2d.png'")
        plt.show()

    except ImportError:
        print("\nNote: matplotlib not available, skipping plots")

    return u


if __name__ == "__main__":
    u = run_dg_projection()
