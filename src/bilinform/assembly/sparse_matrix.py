"""
Sparse Accumulation and Elimination Primitives
==============================================

SparseAccumulator collects local matrices before the global operator is
finalized into a scipy csr_matrix. The elimination primitives below act on
finalized CSR matrices in place and preserve their structure: eliminated
entries are set to zero, never removed.
"""

import numpy as np
from scipy.sparse import csr_matrix
from typing import List, Optional, Sequence

from ..config import DiagonalPolicy
from ..errors import AssemblyError, SparsityPatternError
from ..table import Table
from ..vdofs import VdofList


class SparseAccumulator:
    """
    Accumulator for a height x width sparse matrix.

    Two storage modes:
      - fixed pattern: CSR arrays allocated from a Table; scattering an
        entry outside the pattern raises SparsityPatternError.
      - dynamic: one dict per row, entries created on first touch.
    """

    def __init__(self, height: int, width: Optional[int] = None,
                 pattern: Optional[Table] = None):
        """
        Args:
            height: number of rows
            width: number of columns (default: height)
            pattern: optional dof-dof Table fixing the nonzero structure
        """
        self.height = int(height)
        self.width = int(width) if width is not None else self.height

        if pattern is not None:
            if pattern.n_rows != self.height:
                raise AssemblyError(f"pattern has {pattern.n_rows} rows, "
                                    f"matrix has {self.height}")
            self.indptr = pattern.offsets.copy()
            self.indices = pattern.columns.copy()
            self.data = np.zeros(len(self.indices))
            self._rows = None
        else:
            self.indptr = self.indices = self.data = None
            self._rows = [dict() for _ in range(self.height)]

    @classmethod
    def from_csr(cls, matrix: csr_matrix) -> 'SparseAccumulator':
        """Fixed-pattern accumulator continuing from a finalized matrix."""
        matrix = csr_matrix(matrix, copy=True)
        _canonicalize(matrix)
        acc = cls(matrix.shape[0], matrix.shape[1],
                  Table(matrix.indptr, matrix.indices, matrix.shape[1]))
        acc.data[:] = matrix.data
        return acc

    @property
    def shape(self):
        return self.height, self.width

    @property
    def is_fixed_pattern(self) -> bool:
        return self._rows is None

    def add_submatrix(self, rows: VdofList, cols: VdofList, local: np.ndarray,
                      skip_zeros: bool = True) -> None:
        """
        A[rows, cols] += local, with orientation signs applied.

        Args:
            rows: row vdofs (length = local.shape[0])
            cols: column vdofs (length = local.shape[1])
            local: dense local matrix
            skip_zeros: do not touch entries whose local value is exactly zero
        """
        self._scatter(rows, cols, local, skip_zeros, add=True)

    def set_submatrix(self, rows: VdofList, cols: VdofList, local: np.ndarray,
                      skip_zeros: bool = True) -> None:
        """A[rows, cols] = local, with orientation signs applied."""
        self._scatter(rows, cols, local, skip_zeros, add=False)

    def _scatter(self, rows, cols, local, skip_zeros, add):
        local = np.asarray(local, dtype=np.float64)
        if local.shape != (len(rows), len(cols)):
            raise AssemblyError(f"local matrix has shape {local.shape}, vdof lists "
                                f"have lengths ({len(rows)}, {len(cols)})")
        if len(rows) == 0 or len(cols) == 0:
            return

        values = local * rows.signs[:, None] * cols.signs[None, :]

        for i, r in enumerate(rows.indices):
            row_values = values[i]
            col_idx = cols.indices
            if skip_zeros:
                keep = row_values != 0.0
                row_values = row_values[keep]
                col_idx = col_idx[keep]

            if self._rows is not None:
                row = self._rows[r]
                for c, v in zip(col_idx.tolist(), row_values.tolist()):
                    row[c] = row.get(c, 0.0) + v if add else v
                continue

            start, end = self.indptr[r], self.indptr[r + 1]
            row_cols = self.indices[start:end]
            pos = np.searchsorted(row_cols, col_idx)
            found = pos < len(row_cols)
            found[found] = row_cols[pos[found]] == col_idx[found]
            if not np.all(found):
                missing = col_idx[~found][0]
                raise SparsityPatternError(
                    f"entry ({r}, {missing}) is outside the sparsity pattern")
            if add:
                np.add.at(self.data, start + pos, row_values)
            else:
                self.data[start + pos] = row_values

    def finalize(self, skip_zeros: bool = True) -> csr_matrix:
        """
        Convert to a csr_matrix with sorted column indices.

        Args:
            skip_zeros: drop entries that accumulated to exactly zero
                (dynamic mode only; a fixed pattern is never pruned)

        Returns:
            csr_matrix of shape (height, width)
        """
        if self._rows is None:
            return csr_matrix((self.data.copy(), self.indices.copy(), self.indptr.copy()),
                              shape=self.shape)

        indptr = np.zeros(self.height + 1, dtype=np.int64)
        indices: List[np.ndarray] = []
        data: List[np.ndarray] = []
        for r, row in enumerate(self._rows):
            cols = np.fromiter(row.keys(), dtype=np.int64, count=len(row))
            vals = np.fromiter(row.values(), dtype=np.float64, count=len(row))
            order = np.argsort(cols)
            cols, vals = cols[order], vals[order]
            if skip_zeros:
                nz = vals != 0.0
                cols, vals = cols[nz], vals[nz]
            indices.append(cols)
            data.append(vals)
            indptr[r + 1] = indptr[r] + len(cols)

        indices = np.concatenate(indices) if indices else np.zeros(0, dtype=np.int64)
        data = np.concatenate(data) if data else np.zeros(0)
        return csr_matrix((data, indices, indptr), shape=self.shape)


def _canonicalize(A: csr_matrix) -> None:
    """Sum duplicates and sort column indices in place."""
    if not A.has_canonical_format:
        A.sum_duplicates()
    A.sort_indices()


def _entry_rows(A: csr_matrix) -> np.ndarray:
    """Row index of every stored entry."""
    return np.repeat(np.arange(A.shape[0]), np.diff(A.indptr))


def _dof_mask(n: int, dofs: Sequence[int]) -> np.ndarray:
    dofs = np.asarray(dofs, dtype=np.int64)
    if len(dofs) and (dofs.min() < 0 or dofs.max() >= n):
        raise AssemblyError(f"dof indices must lie in [0, {n})")
    mask = np.zeros(n, dtype=bool)
    mask[dofs] = True
    return mask


def _diagonal_positions(A: csr_matrix, dofs: np.ndarray,
                        required: bool = True) -> np.ndarray:
    """
    Storage position of A[d, d] for each d (requires sorted indices).

    A missing diagonal raises when required, otherwise its position is -1.
    """
    positions = np.empty(len(dofs), dtype=np.int64)
    for k, d in enumerate(dofs):
        start, end = A.indptr[d], A.indptr[d + 1]
        p = start + np.searchsorted(A.indices[start:end], d)
        if p >= end or A.indices[p] != d:
            if required:
                raise AssemblyError(f"row {d} has no diagonal entry to eliminate against")
            p = -1
        positions[k] = p
    return positions


def eliminate_rows_cols(A: csr_matrix, dofs: Sequence[int], sol: np.ndarray,
                        rhs: np.ndarray,
                        policy: DiagonalPolicy = DiagonalPolicy.ONE) -> None:
    """
    Eliminate rows and columns of A in place, folding sol into rhs.

    For every d in dofs: rhs[i] -= A[i, d] * sol[d] for the remaining rows,
    row and column d are zeroed except the diagonal, and rhs[d] is set
    according to the diagonal policy.

    Args:
        A: square csr_matrix (modified in place)
        dofs: indices to eliminate
        sol: prescribed values, indexed by global dof
        rhs: right-hand side (modified in place)
        policy: DiagonalPolicy for A[d, d] and rhs[d]
    """
    _canonicalize(A)
    n = A.shape[0]
    dofs = np.unique(np.asarray(dofs, dtype=np.int64))
    is_ess = _dof_mask(n, dofs)
    if len(dofs) == 0:
        return
    diag = _diagonal_positions(A, dofs, required=policy == DiagonalPolicy.ONE)
    stored = diag >= 0

    rows = _entry_rows(A)
    col_ess = is_ess[A.indices]
    row_ess = is_ess[rows]

    fold = col_ess & ~row_ess
    np.subtract.at(rhs, rows[fold], A.data[fold] * sol[A.indices[fold]])

    # Missing diagonals count as zero
    diag_values = np.zeros(len(dofs))
    diag_values[stored] = A.data[diag[stored]]
    A.data[col_ess | row_ess] = 0.0

    if policy == DiagonalPolicy.ONE:
        A.data[diag] = 1.0
        rhs[dofs] = sol[dofs]
    elif policy == DiagonalPolicy.KEEP:
        A.data[diag[stored]] = diag_values[stored]
        rhs[dofs] = diag_values * sol[dofs]
    else:
        rhs[dofs] = 0.0


def eliminate_row_col(A: csr_matrix, rc: int, sol: float, rhs: np.ndarray,
                      policy: DiagonalPolicy = DiagonalPolicy.ONE) -> None:
    """Eliminate a single row/column rc with prescribed value sol."""
    values = np.zeros(A.shape[0])
    values[rc] = sol
    eliminate_rows_cols(A, [rc], values, rhs, policy)


def eliminate_rows_cols_recorded(A: csr_matrix, dofs: Sequence[int],
                                 policy: DiagonalPolicy = DiagonalPolicy.ONE) -> csr_matrix:
    """
    Eliminate rows and columns of A in place, returning the removed part.

    The returned matrix Ae has the shape of A and satisfies
    A_after + Ae == A_before, so a right-hand side can later be corrected for
    any prescribed values x with rhs -= Ae @ x.

    Args:
        A: square csr_matrix (modified in place)
        dofs: indices to eliminate
        policy: DiagonalPolicy for A[d, d]

    Returns:
        Ae: csr_matrix with the eliminated entries
    """
    _canonicalize(A)
    n = A.shape[0]
    dofs = np.unique(np.asarray(dofs, dtype=np.int64))
    is_ess = _dof_mask(n, dofs)
    if len(dofs) == 0:
        return csr_matrix(A.shape)
    diag = _diagonal_positions(A, dofs, required=policy == DiagonalPolicy.ONE)
    diag_dofs = dofs[diag >= 0]
    diag = diag[diag >= 0]

    rows = _entry_rows(A)
    touched = is_ess[A.indices] | is_ess[rows]
    touched[diag] = False

    e_rows = [rows[touched]]
    e_cols = [A.indices[touched]]
    e_vals = [A.data[touched].copy()]
    A.data[touched] = 0.0

    if policy != DiagonalPolicy.KEEP:
        target = 1.0 if policy == DiagonalPolicy.ONE else 0.0
        e_rows.append(diag_dofs)
        e_cols.append(diag_dofs)
        e_vals.append(A.data[diag] - target)
        A.data[diag] = target

    return csr_matrix((np.concatenate(e_vals),
                       (np.concatenate(e_rows), np.concatenate(e_cols))),
                      shape=A.shape)


def part_mult(A: csr_matrix, rows: Sequence[int], x: np.ndarray, y: np.ndarray) -> None:
    """y[rows] = (A @ x)[rows], touching only the listed rows."""
    rows = np.asarray(rows, dtype=np.int64)
    if len(rows):
        y[rows] = A[rows, :] @ x


def eliminate_cols(A: csr_matrix, marker: np.ndarray, x: Optional[np.ndarray] = None,
                   b: Optional[np.ndarray] = None) -> None:
    """
    Zero the marked columns of A in place; if x and b are given,
    b -= A[:, marked] @ x[marked] first.

    Args:
        A: csr_matrix (modified in place)
        marker: shape (width,), True/nonzero for columns to eliminate
        x: values of the eliminated columns
        b: right-hand side (modified in place)
    """
    marker = np.asarray(marker) != 0
    if len(marker) != A.shape[1]:
        raise AssemblyError(f"column marker has size {len(marker)}, "
                            f"matrix has {A.shape[1]} columns")
    hit = marker[A.indices]
    if x is not None and b is not None:
        rows = _entry_rows(A)
        np.subtract.at(b, rows[hit], A.data[hit] * x[A.indices[hit]])
    A.data[hit] = 0.0


def eliminate_row(A: csr_matrix, row: int) -> None:
    """Zero every stored entry of a row in place."""
    A.data[A.indptr[row]:A.indptr[row + 1]] = 0.0


def get_blocks(A: csr_matrix, n_row_blocks: int, n_col_blocks: int) -> List[List[csr_matrix]]:
    """
    Split A into an n_row_blocks x n_col_blocks grid of equal blocks.

    Returns:
        blocks[i][j]: csr_matrix of shape (height / n_row_blocks, width / n_col_blocks)
    """
    height, width = A.shape
    if height % n_row_blocks or width % n_col_blocks:
        raise AssemblyError(f"cannot split {height}x{width} matrix into "
                            f"{n_row_blocks}x{n_col_blocks} equal blocks")
    h, w = height // n_row_blocks, width // n_col_blocks
    A = csr_matrix(A)
    return [[A[i * h:(i + 1) * h, j * w:(j + 1) * w].tocsr() for j in range(n_col_blocks)]
            for i in range(n_row_blocks)]
