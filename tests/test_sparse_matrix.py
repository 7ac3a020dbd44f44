import numpy as np
import pytest
from scipy import sparse as sp

from sparse_matrix import DimensionError, SparseMatrix


def test_new_matrix_is_empty():
    m = SparseMatrix(3, 4)
    assert m.shape == (3, 4)
    assert m.nnz() == 0
    assert m.entries == {}
    assert m.get(2, 3) == 0


@pytest.mark.parametrize("rows, cols", [(0, 3), (3, 0), (-1, 2)])
def test_non_positive_dimensions_rejected(rows, cols):
    with pytest.raises(ValueError):
        SparseMatrix(rows, cols)


def test_set_and_get():
    m = SparseMatrix(2, 2)
    m.set(1, 0, 2.5)
    assert m.get(1, 0) == 2.5
    assert m.get(0, 0) == 0
    assert m.entries == {1: {0: 2.5}}


def test_set_zero_prunes_entry_and_row():
    m = SparseMatrix(3, 3)
    m.set(1, 1, 5)
    m.set(1, 2, 6)
    m.set(1, 1, 0)
    assert m.entries == {1: {2: 6.0}}
    m.set(1, 2, 0)
    assert m.entries == {}
    assert m.get(1, 2) == 0
    assert "(1, 2" not in m.format()


def test_set_zero_on_empty_location_is_noop():
    m = SparseMatrix(2, 2)
    m.set(0, 1, 0)
    assert m.entries == {}


@pytest.mark.parametrize("row, col", [(2, 0), (0, 2), (-1, 0), (0, -1)])
def test_get_out_of_bounds(row, col):
    m = SparseMatrix(2, 2)
    with pytest.raises(IndexError):
        m.get(row, col)


def test_out_of_bounds_examples(matrix_a):
    with pytest.raises(IndexError):
        matrix_a.get(matrix_a.row_count, 0)
    with pytest.raises(IndexError):
        matrix_a.set(-1, 0, 5)


def test_add_and_commutativity(matrix_a, identity_2x2):
    result = matrix_a.add(identity_2x2)
    assert list(result.iter_entries()) == [(0, 0, 2.0), (0, 1, 2.0), (1, 0, 3.0), (1, 1, 5.0)]
    assert result == identity_2x2.add(matrix_a)


def test_add_zero_matrix_is_identity(matrix_a):
    assert matrix_a.add(SparseMatrix(2, 2)) == matrix_a


def test_add_then_subtract_restores(matrix_a, make_matrix):
    b = make_matrix(2, 2, [(0, 0, 7), (1, 0, -3), (0, 1, 0.5)])
    assert matrix_a.add(b).subtract(b) == matrix_a


def test_cancellation_is_pruned(make_matrix):
    a = make_matrix(2, 2, [(0, 0, 3), (1, 1, 1)])
    b = make_matrix(2, 2, [(0, 0, -3)])
    result = a.add(b)
    assert result.entries == {1: {1: 1.0}}
    assert a.subtract(a).nnz() == 0


def test_operands_not_mutated(matrix_a, identity_2x2):
    before_a = matrix_a.copy()
    before_b = identity_2x2.copy()
    matrix_a.add(identity_2x2)
    matrix_a.subtract(identity_2x2)
    matrix_a.multiply(identity_2x2)
    matrix_a.transpose()
    assert matrix_a == before_a
    assert identity_2x2 == before_b


def test_add_dimension_mismatch(rect_2x3, rect_3x2):
    with pytest.raises(DimensionError) as excinfo:
        rect_2x3.add(rect_3x2)
    assert "(2, 3)" in str(excinfo.value)
    assert "(3, 2)" in str(excinfo.value)


def test_subtract_dimension_mismatch(rect_2x3, rect_3x2):
    with pytest.raises(DimensionError):
        rect_2x3.subtract(rect_3x2)


def test_transpose_single_entry():
    m = SparseMatrix(3, 5)
    m.set(1, 4, -2)
    t = m.transpose()
    assert t.shape == (5, 3)
    assert list(t.iter_entries()) == [(4, 1, -2.0)]


def test_transpose_does_not_alias(rect_2x3):
    t = rect_2x3.transpose()
    t.set(2, 0, 99)
    assert rect_2x3.get(0, 2) == 2


def test_multiply_by_identity(matrix_a, identity_2x2):
    assert matrix_a.multiply(identity_2x2) == matrix_a


def test_multiply_rectangular(rect_2x3, rect_3x2):
    # [[1*4 + 2*6, 0], [0, 3*5]]
    result = rect_2x3.multiply(rect_3x2)
    assert result.shape == (2, 2)
    assert list(result.iter_entries()) == [(0, 0, 16.0), (1, 1, 15.0)]


def test_multiply_dimension_mismatch(rect_2x3):
    with pytest.raises(DimensionError):
        rect_2x3.multiply(rect_2x3)


def test_multiply_cancellation_pruned(make_matrix):
    a = make_matrix(1, 2, [(0, 0, 1), (0, 1, 1)])
    b = make_matrix(2, 1, [(0, 0, 2), (1, 0, -2)])
    assert a.multiply(b).nnz() == 0


def test_multiply_matches_scipy():
    rng = np.random.default_rng(0)
    dense_a = rng.integers(-3, 4, (6, 4)) * (rng.random((6, 4)) < 0.4)
    dense_b = rng.integers(-3, 4, (4, 5)) * (rng.random((4, 5)) < 0.4)

    a = SparseMatrix.from_scipy_sparse(sp.csr_matrix(dense_a))
    b = SparseMatrix.from_scipy_sparse(sp.csr_matrix(dense_b))

    result = a.multiply(b).to_scipy_sparse().toarray()
    np.testing.assert_allclose(result, dense_a @ dense_b)


def test_format_sorted_regardless_of_insertion_order():
    m = SparseMatrix(3, 3)
    m.set(2, 0, 1)
    m.set(0, 2, 2.5)
    m.set(0, 1, -4)
    m.set(1, 1, 3)
    assert m.format() == (
        "rows=3\n"
        "cols=3\n"
        "(0, 1, -4)\n"
        "(0, 2, 2.5)\n"
        "(1, 1, 3)\n"
        "(2, 0, 1)\n"
    )
    assert str(m) == m.format()


def test_to_file_without_header(tmp_path, rect_2x3):
    path = tmp_path / "out.txt"
    rect_2x3.to_file(str(path), include_header=False)
    assert path.read_text() == "(0, 0, 1)\n(0, 2, 2)\n(1, 1, 3)\n"


def test_to_csr(rect_2x3):
    row_ptr, col_idx, values = rect_2x3.to_csr()
    np.testing.assert_array_equal(row_ptr, [0, 2, 3])
    np.testing.assert_array_equal(col_idx, [0, 2, 1])
    np.testing.assert_allclose(values, [1, 2, 3])


def test_to_csr_empty_matrix():
    row_ptr, col_idx, values = SparseMatrix(3, 2).to_csr()
    np.testing.assert_array_equal(row_ptr, [0, 0, 0, 0])
    assert len(col_idx) == 0
    assert len(values) == 0


def test_scipy_round_trip(rect_2x3):
    scipy_matrix = rect_2x3.to_scipy_sparse()
    assert scipy_matrix.shape == (2, 3)
    np.testing.assert_allclose(scipy_matrix.toarray(), [[1, 0, 2], [0, 3, 0]])
    assert SparseMatrix.from_scipy_sparse(scipy_matrix) == rect_2x3


def test_from_scipy_drops_explicit_zeros():
    coo = sp.coo_matrix(([0.0, 1.0, 2.0, -2.0], ([0, 1, 1, 1], [0, 0, 1, 1])), shape=(2, 2))
    m = SparseMatrix.from_scipy_sparse(coo)
    assert m.entries == {1: {0: 1.0}}


@pytest.mark.parametrize("row, col", [(0.5, 1), (1, 1.0), ("0", 0)])
def test_non_integer_indices_rejected(row, col):
    m = SparseMatrix(2, 2)
    with pytest.raises(IndexError):
        m.set(row, col, 3)
    with pytest.raises(IndexError):
        m.get(row, col)
    assert m.entries == {}


def test_numpy_integer_indices_accepted():
    m = SparseMatrix(2, 2)
    m.set(np.int64(1), np.int32(0), 2)
    assert m.get(1, 0) == 2


@pytest.mark.parametrize("entries", [[], [(0, 0, 1)]])
def test_to_file_without_header_needs_two_entries(tmp_path, make_matrix, entries):
    m = make_matrix(2, 2, entries)
    path = tmp_path / "out.txt"
    with pytest.raises(ValueError):
        m.to_file(str(path), include_header=False)
    assert not path.exists()
