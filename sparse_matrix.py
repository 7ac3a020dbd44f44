"""
Sparse Matrix Storage and Arithmetic
Row-major dictionary-of-dictionaries storage holding only nonzero entries.

Key Design:
- entries[row][col] = value, rows with no nonzeros are never allocated
- Setting a value to zero removes it (and its row when the row empties)
- Every operation returns a new matrix, operands are left untouched
- Serialization is sorted by (row, col) so output files are reproducible
- Numba-accelerated CSR export and scipy.sparse interop for verification
"""

import logging
import numbers
from pathlib import Path
from typing import Dict, Iterator, Tuple

import numba
import numpy as np
from scipy import sparse as sp


logger = logging.getLogger(__name__)


class DimensionError(ValueError):
    """Operand shapes are incompatible for the requested operation."""


# ============================================================================
# Numba-Accelerated Helper Functions
# ============================================================================

@numba.jit(nopython=True, cache=True)
def _build_row_ptr(rows, num_rows):
    """
    Build the CSR row pointer from row-sorted COO row indices.

    Args:
        rows: Sorted row indices
        num_rows: Total number of rows

    Returns:
        row_ptr array of size (num_rows + 1)
    """
    nnz = len(rows)
    row_ptr = np.zeros(num_rows + 1, dtype=np.int64)

    # Count entries per row
    for i in range(nnz):
        row_ptr[rows[i] + 1] += 1

    # Cumulative sum to get pointers
    for i in range(1, num_rows + 1):
        row_ptr[i] += row_ptr[i - 1]

    return row_ptr


def _format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class SparseMatrix:
    """
    Sparse matrix of fixed shape storing only nonzero values.

    Storage:
    - entries[i] = {j: value} for every row i holding at least one nonzero
    - Shape is fixed at construction and never changes
    """

    def __init__(self, row_count: int, col_count: int):
        """
        Args:
            row_count: Number of rows (must be positive)
            col_count: Number of columns (must be positive)
        """
        if row_count <= 0 or col_count <= 0:
            raise ValueError(f"Matrix dimensions must be positive, got {row_count}×{col_count}")

        self._row_count = int(row_count)
        self._col_count = int(col_count)
        self.entries: Dict[int, Dict[int, float]] = {}

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def col_count(self) -> int:
        return self._col_count

    @property
    def shape(self) -> Tuple[int, int]:
        return (self._row_count, self._col_count)

    def __repr__(self):
        return f"SparseMatrix(shape={self.shape}, nnz={self.nnz()})"

    def __str__(self):
        return self.format()

    def __eq__(self, other):
        if not isinstance(other, SparseMatrix):
            return NotImplemented
        return self.shape == other.shape and self.entries == other.entries

    def _check_bounds(self, row: int, col: int):
        if not (isinstance(row, numbers.Integral) and isinstance(col, numbers.Integral)):
            raise IndexError(f"Indices must be integers, got ({row!r}, {col!r})")
        if not (0 <= row < self._row_count and 0 <= col < self._col_count):
            raise IndexError(f"Index ({row}, {col}) out of bounds for shape {self.shape}")

    # ------------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------------

    def get(self, row: int, col: int) -> float:
        """
        Get the value at (row, col).

        Returns:
            Stored value, or 0 when the location holds no entry

        Raises:
            IndexError if (row, col) lies outside the matrix
        """
        self._check_bounds(row, col)
        row_entries = self.entries.get(row)
        if row_entries is None:
            return 0
        return row_entries.get(col, 0)

    def set(self, row: int, col: int, value: float):
        """
        Store value at (row, col). A value of exactly 0 removes the entry.

        Raises:
            IndexError if (row, col) lies outside the matrix
        """
        self._check_bounds(row, col)
        row, col = int(row), int(col)

        if value == 0:
            row_entries = self.entries.get(row)
            if row_entries is not None:
                row_entries.pop(col, None)
                if not row_entries:
                    del self.entries[row]
            return

        self.entries.setdefault(row, {})[col] = float(value)

    def nnz(self) -> int:
        """Return number of nonzeros."""
        return sum(len(row_entries) for row_entries in self.entries.values())

    def iter_entries(self) -> Iterator[Tuple[int, int, float]]:
        """
        Iterate over nonzero entries sorted by (row, col).

        Yields:
            (row, col, value) tuples
        """
        for row in sorted(self.entries):
            row_entries = self.entries[row]
            for col in sorted(row_entries):
                yield row, col, row_entries[col]

    def copy(self) -> 'SparseMatrix':
        """Return a deep copy sharing no row storage with this matrix."""
        result = SparseMatrix(self._row_count, self._col_count)
        result.entries = {row: dict(row_entries) for row, row_entries in self.entries.items()}
        return result

    # ------------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------------

    def _check_same_shape(self, other: 'SparseMatrix', operation: str):
        if self.shape != other.shape:
            raise DimensionError(
                f"Cannot {operation} matrices with different dimensions: "
                f"{self.shape} vs {other.shape}"
            )

    def add(self, other: 'SparseMatrix') -> 'SparseMatrix':
        """
        Element-wise sum C = A + B.

        Entries that cancel to zero are dropped from the result.

        Raises:
            DimensionError if the shapes differ
        """
        self._check_same_shape(other, "add")

        result = self.copy()
        for row, col, value in other.iter_entries():
            result.set(row, col, result.get(row, col) + value)

        return result

    def subtract(self, other: 'SparseMatrix') -> 'SparseMatrix':
        """
        Element-wise difference C = A - B.

        Raises:
            DimensionError if the shapes differ
        """
        self._check_same_shape(other, "subtract")

        result = self.copy()
        for row, col, value in other.iter_entries():
            result.set(row, col, result.get(row, col) - value)

        return result

    def transpose(self) -> 'SparseMatrix':
        """Return A^T with swapped dimensions."""
        result = SparseMatrix(self._col_count, self._row_count)
        for row, row_entries in self.entries.items():
            for col, value in row_entries.items():
                result.entries.setdefault(col, {})[row] = value
        return result

    def multiply(self, other: 'SparseMatrix') -> 'SparseMatrix':
        """
        Sparse matrix product C = A × B.

        Algorithm: row-by-row accumulation
        1. For each nonzero A[i,k]
        2. Walk the nonzeros of B's row k (skipped when that row is empty)
        3. Accumulate A[i,k] * B[k,j] into C[i,j]

        Work is proportional to the number of (A[i,k], B[k,j]) pairs sharing
        the contraction index k, not to the dense dimensions.

        Raises:
            DimensionError if A's column count differs from B's row count
        """
        if self._col_count != other.row_count:
            raise DimensionError(
                f"Incompatible dimensions: A is {self.shape}, B is {other.shape}. "
                f"A's columns ({self._col_count}) must equal B's rows ({other.row_count})"
            )

        result = SparseMatrix(self._row_count, other.col_count)

        for row_a, row_entries in self.entries.items():
            accumulator: Dict[int, float] = {}
            for col_a, val_a in row_entries.items():
                row_b = other.entries.get(col_a)
                if not row_b:
                    continue
                for col_b, val_b in row_b.items():
                    accumulator[col_b] = accumulator.get(col_b, 0) + val_a * val_b

            # Cancelled sums are pruned by set()
            for col_b, value in accumulator.items():
                result.set(row_a, col_b, value)

        return result

    # ------------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------------

    def format(self) -> str:
        """
        Serialize to the text format read by matrix_parser.parse().

        Layout:
            rows=<row_count>
            cols=<col_count>
            (<row>, <col>, <value>)   one line per nonzero, sorted by (row, col)
        """
        lines = [f"rows={self._row_count}", f"cols={self._col_count}"]
        for row, col, value in self.iter_entries():
            lines.append(f"({row}, {col}, {_format_value(value)})")
        return "\n".join(lines) + "\n"

    def to_file(self, filepath: str, include_header: bool = True):
        """
        Write matrix to a text file.

        Args:
            filepath: Output file path
            include_header: If False, only element lines are written and the
                dimensions must be inferred when the file is read back

        Raises:
            ValueError if include_header is False and the matrix has fewer
            than 2 nonzeros (the parser needs at least 2 lines)
        """
        text = self.format()
        if not include_header:
            if self.nnz() < 2:
                raise ValueError(
                    f"Header-less output needs at least 2 nonzeros, matrix has {self.nnz()}"
                )
            text = "".join(line + "\n" for line in text.splitlines()[2:])

        with open(filepath, 'w') as f:
            f.write(text)
        logger.info(f"Wrote {self.nnz()} entries to {Path(filepath)}")

    # ------------------------------------------------------------------------
    # CSR / scipy interop
    # ------------------------------------------------------------------------

    def to_csr(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Export as CSR arrays.

        Returns:
            (row_ptr, col_idx, values)
        """
        rows_list, cols_list, vals_list = [], [], []
        for row, col, value in self.iter_entries():
            rows_list.append(row)
            cols_list.append(col)
            vals_list.append(value)

        rows = np.array(rows_list, dtype=np.int64)
        col_idx = np.array(cols_list, dtype=np.int64)
        values = np.array(vals_list, dtype=np.float64)

        row_ptr = _build_row_ptr(rows, self._row_count)
        return row_ptr, col_idx, values

    def to_scipy_sparse(self) -> sp.csr_matrix:
        """
        Convert to scipy.sparse.csr_matrix for verification.

        Returns:
            scipy.sparse.csr_matrix
        """
        row_ptr, col_idx, values = self.to_csr()
        return sp.csr_matrix((values, col_idx, row_ptr), shape=self.shape)

    @classmethod
    def from_scipy_sparse(cls, matrix) -> 'SparseMatrix':
        """
        Create SparseMatrix from any scipy.sparse matrix.

        Duplicate coordinates are summed, explicit zeros are dropped.
        """
        coo = sp.coo_matrix(matrix)
        coo.sum_duplicates()

        result = cls(*coo.shape)
        for i, j, v in zip(coo.row, coo.col, coo.data):
            result.set(int(i), int(j), float(v))
        return result


# ============================================================================
# Utility Functions
# ============================================================================

def log_matrix_info(matrix: SparseMatrix, name: str = "Matrix"):
    """
    Log shape, nonzero count and density of a matrix.

    Args:
        matrix: SparseMatrix to describe
        name: Name to display
    """
    nnz = matrix.nnz()
    total_entries = matrix.row_count * matrix.col_count
    density = nnz / total_entries * 100

    logger.info(f"{name}: shape={matrix.shape}, nnz={nnz:,}")
    logger.info(f"  Density: {density:.4f}% ({nnz:,} / {total_entries:,})")
