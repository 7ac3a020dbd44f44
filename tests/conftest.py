import pytest

from sparse_matrix import SparseMatrix


def build_matrix(rows, cols, entries):
    matrix = SparseMatrix(rows, cols)
    for i, j, v in entries:
        matrix.set(i, j, v)
    return matrix


@pytest.fixture
def matrix_a():
    # [[1, 2],
    #  [3, 4]]
    return build_matrix(2, 2, [(0, 0, 1), (0, 1, 2), (1, 0, 3), (1, 1, 4)])


@pytest.fixture
def identity_2x2():
    return build_matrix(2, 2, [(0, 0, 1), (1, 1, 1)])


@pytest.fixture
def rect_2x3():
    # [[1, 0, 2],
    #  [0, 3, 0]]
    return build_matrix(2, 3, [(0, 0, 1), (0, 2, 2), (1, 1, 3)])


@pytest.fixture
def rect_3x2():
    # [[4, 0],
    #  [0, 5],
    #  [6, 0]]
    return build_matrix(3, 2, [(0, 0, 4), (1, 1, 5), (2, 0, 6)])


@pytest.fixture
def write_matrix_file(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write


@pytest.fixture
def make_matrix():
    return build_matrix
