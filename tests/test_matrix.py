import numpy as np
import pytest

from optimizer_core.errors import SingularMatrixError
from optimizer_core.lp import matrix


def test_invert_matches_numpy():
    A = np.array([[4.0, 7.0], [2.0, 6.0]])
    inv = matrix.invert(A)

    assert np.allclose(inv, np.linalg.inv(A))
    assert np.allclose(matrix.mat_mul(A, inv), matrix.identity(2))


def test_invert_swaps_rows_for_zero_pivot():
    A = np.array([[0.0, 1.0], [1.0, 0.0]])
    assert np.allclose(matrix.invert(A), A)


def test_invert_three_by_three():
    A = np.array([[2.0, 1.0, 0.0], [1.0, 3.0, 1.0], [0.0, 1.0, 4.0]])
    assert np.allclose(matrix.invert(A) @ A, np.eye(3))


def test_invert_singular_raises():
    with pytest.raises(SingularMatrixError):
        matrix.invert(np.array([[1.0, 2.0], [2.0, 4.0]]))


def test_singular_error_is_arithmetic_error():
    with pytest.raises(ArithmeticError):
        matrix.invert(np.zeros((2, 2)))


def test_invert_rejects_non_square():
    with pytest.raises(ValueError):
        matrix.invert(np.ones((2, 3)))


def test_transpose_and_products():
    A = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])

    assert matrix.transpose(A).shape == (3, 2)
    assert np.allclose(matrix.mat_vec(A, [1.0, 0.0, 1.0]), [4.0, 10.0])
    assert np.allclose(matrix.mat_mul(A, matrix.transpose(A)), [[14.0, 32.0], [32.0, 77.0]])


def test_shape_mismatch_raises():
    with pytest.raises(ValueError):
        matrix.mat_mul(np.ones((2, 3)), np.ones((2, 3)))
    with pytest.raises(ValueError):
        matrix.mat_vec(np.ones((2, 3)), np.ones(2))
