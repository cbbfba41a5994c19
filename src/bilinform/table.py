"""
Connectivity Tables
===================

CSR-like incidence tables (row offsets + column indices) used for
element->dof, face->element and dof->dof connectivity.
"""

import numpy as np
from scipy.sparse import csr_matrix
from typing import Iterable, Optional


class Table:
    """
    Row-compressed incidence table.

    Row i holds the sorted, unique column indices columns[offsets[i]:offsets[i+1]].

    Attributes:
        offsets: shape (n_rows + 1,), row start positions
        columns: shape (nnz,), column indices
        n_cols: number of columns (used when transposing)
    """

    def __init__(self, offsets: np.ndarray, columns: np.ndarray,
                 n_cols: Optional[int] = None):
        self.offsets = np.asarray(offsets, dtype=np.int64)
        self.columns = np.asarray(columns, dtype=np.int64)

        if self.offsets.ndim != 1 or len(self.offsets) == 0:
            raise ValueError("offsets must be a non-empty 1D array")
        if self.offsets[-1] != len(self.columns):
            raise ValueError(f"offsets end at {self.offsets[-1]} but there are "
                             f"{len(self.columns)} columns")

        if n_cols is None:
            n_cols = int(self.columns.max()) + 1 if len(self.columns) else 0
        self.n_cols = int(n_cols)

    @classmethod
    def from_lists(cls, rows: Iterable[Iterable[int]],
                   n_cols: Optional[int] = None) -> 'Table':
        """
        Build a table from per-row index lists (duplicates are merged).

        Args:
            rows: iterable of index sequences, one per row
            n_cols: number of columns (default: max index + 1)

        Returns:
            Table instance
        """
        offsets = [0]
        columns = []
        for row in rows:
            cols = np.unique(np.asarray(list(row), dtype=np.int64))
            columns.append(cols)
            offsets.append(offsets[-1] + len(cols))
        columns = np.concatenate(columns) if columns else np.zeros(0, dtype=np.int64)
        return cls(np.array(offsets), columns, n_cols)

    @classmethod
    def from_matrix(cls, matrix) -> 'Table':
        """Take the structural pattern of a sparse matrix."""
        m = csr_matrix(matrix)
        m.sum_duplicates()
        m.sort_indices()
        return cls(m.indptr.copy(), m.indices.copy(), m.shape[1])

    @property
    def n_rows(self) -> int:
        """Number of rows."""
        return len(self.offsets) - 1

    @property
    def nnz(self) -> int:
        """Total number of stored connections."""
        return len(self.columns)

    def __len__(self) -> int:
        return self.n_rows

    def row(self, i: int) -> np.ndarray:
        """Column indices of row i."""
        return self.columns[self.offsets[i]:self.offsets[i + 1]]

    def row_sizes(self) -> np.ndarray:
        """Number of connections per row."""
        return np.diff(self.offsets)

    def to_matrix(self) -> csr_matrix:
        """Pattern as a csr_matrix of ones."""
        data = np.ones(self.nnz)
        return csr_matrix((data, self.columns, self.offsets),
                          shape=(self.n_rows, self.n_cols))

    def transpose(self, n_cols: Optional[int] = None) -> 'Table':
        """
        Transposed table (column -> row incidence).

        Args:
            n_cols: number of columns of the result, i.e. rows of self
                (default: self.n_rows)

        Returns:
            Table with self.n_cols rows
        """
        t = self.to_matrix().T.tocsr()
        t.sort_indices()
        return Table(t.indptr, t.indices, n_cols if n_cols is not None else self.n_rows)

    def __matmul__(self, other: 'Table') -> 'Table':
        """Boolean product: i ~ k iff i ~ j in self and j ~ k in other."""
        if self.n_cols != other.n_rows:
            raise ValueError(f"Cannot multiply tables: {self.n_rows}x{self.n_cols} "
                             f"and {other.n_rows}x{other.n_cols}")
        return Table.from_matrix(self.to_matrix() @ other.to_matrix())

    def contains(self, i: int, j: int) -> bool:
        """Whether (i, j) is a stored connection."""
        r = self.row(i)
        k = np.searchsorted(r, j)
        return bool(k < len(r) and r[k] == j)

    def __repr__(self) -> str:
        return f"Table(n_rows={self.n_rows}, n_cols={self.n_cols}, nnz={self.nnz})"
