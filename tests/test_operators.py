"""Tests for nonlinear operator implementations."""

import numpy as np
import pytest
import scipy.sparse

from newtonraph.core.errors import StructureMismatchError
from newtonraph.core.operator import AffineOperator, CallbackOperator, assign_matrix
from newtonraph.solvers.newton import NewtonRaphsonSolver


class CountingCallbacks:
    """F(x) = x^3 - 8 componentwise, counts each kind of evaluation."""

    def __init__(self):
        self.residual_calls = 0
        self.jacobian_calls = 0
        self.fused_calls = 0

    def residual(self, x):
        self.residual_calls += 1
        return x**3 - 8.0

    def jacobian(self, x):
        self.jacobian_calls += 1
        return np.diag(3.0 * x**2)

    def fused(self, x):
        self.fused_calls += 1
        return x**3 - 8.0, np.diag(3.0 * x**2)


def test_affine_operator_residual_and_jacobian():
    A = np.array([[2.0, 1.0], [1.0, 3.0]])
    b = np.array([1.0, -1.0])
    op = AffineOperator(A, b)
    x = np.array([0.5, 2.0])

    assert np.allclose(op.residual(x), A @ x - b)
    J = op.jacobian(x)
    assert np.array_equal(J, A)

    # Allocated Jacobian does not alias the operator's matrix
    J[0, 0] = 99.0
    assert A[0, 0] == 2.0


def test_affine_operator_shape_check():
    with pytest.raises(ValueError):
        AffineOperator(np.eye(3), np.ones(2))


def test_fused_evaluation_matches_separate():
    calls = CountingCallbacks()
    op = CallbackOperator(calls.residual, calls.jacobian)
    x = np.array([1.0, 3.0])

    r, J = op.residual_and_jacobian(x)
    assert np.allclose(r, op.residual(x))
    assert np.allclose(J, op.jacobian(x))

    b = np.empty(2)
    A = np.empty((2, 2))
    op.residual_and_jacobian_into(b, A, x)
    assert np.allclose(b, r)
    assert np.allclose(A, J)


def test_solver_prefers_fused_evaluation():
    """Fused callback is used to set up the cache on both paths."""
    calls = CountingCallbacks()
    op = CallbackOperator(calls.residual, calls.jacobian, fused_fn=calls.fused)
    solver = NewtonRaphsonSolver(tol=1e-12, max_iterations=30)

    x = np.array([1.0, 3.0])
    cache = solver.solve(x, op)
    assert calls.fused_calls == 1
    assert np.allclose(x, 2.0)

    x = np.array([5.0, 1.5])
    solver.solve(x, op, cache)
    assert calls.fused_calls == 2
    assert np.allclose(x, 2.0)

    # Remaining evaluations are separate residual and Jacobian refreshes
    assert calls.residual_calls > 0
    assert calls.jacobian_calls > 0


def test_fallback_without_fused_callback():
    calls = CountingCallbacks()
    op = CallbackOperator(calls.residual, calls.jacobian)
    solver = NewtonRaphsonSolver(tol=1e-12, max_iterations=30)

    x = np.array([1.0, 3.0])
    solver.solve(x, op)

    assert calls.fused_calls == 0
    assert np.allclose(x, 2.0)


def test_assign_matrix_dense():
    A = np.zeros((2, 2))
    storage = A
    assign_matrix(A, np.eye(2))
    assert A is storage
    assert np.array_equal(A, np.eye(2))

    assign_matrix(A, scipy.sparse.csr_matrix(2.0 * np.eye(2)))
    assert np.array_equal(A, 2.0 * np.eye(2))


def test_assign_matrix_sparse_keeps_storage():
    A = scipy.sparse.csr_matrix(np.array([[1.0, 2.0], [0.0, 3.0]]))
    data = A.data
    J = scipy.sparse.csr_matrix(np.array([[4.0, 5.0], [0.0, 6.0]]))

    assign_matrix(A, J)

    assert A.data is data
    assert np.array_equal(A.toarray(), J.toarray())


def test_assign_matrix_sparse_pattern_mismatch():
    A = scipy.sparse.csr_matrix(np.array([[1.0, 2.0], [0.0, 3.0]]))

    with pytest.raises(StructureMismatchError):
        assign_matrix(A, scipy.sparse.csr_matrix(np.array([[1.0, 0.0], [2.0, 3.0]])))
    with pytest.raises(StructureMismatchError):
        assign_matrix(A, scipy.sparse.csr_matrix(np.eye(3)))
    with pytest.raises(TypeError):
        assign_matrix(A, np.eye(2))


def test_assign_matrix_sparse_subset_pattern():
    """Entries of the buffer missing from J become zero, storage is kept."""
    A = scipy.sparse.csr_matrix(np.array([[1.0, 2.0], [0.0, 3.0]]))
    data = A.data

    assign_matrix(A, scipy.sparse.csr_matrix(np.array([[5.0, 0.0], [0.0, 7.0]])))

    assert A.data is data
    assert A.nnz == 3
    assert np.array_equal(A.toarray(), [[5.0, 0.0], [0.0, 7.0]])


def test_assign_matrix_matches_entries_by_position():
    dense = np.array([[1.0, 2.0, 0.0], [0.0, 3.0, 4.0], [5.0, 0.0, 6.0]])
    A = scipy.sparse.csr_matrix(dense)
    J = scipy.sparse.csc_matrix(10.0 * dense)

    assign_matrix(A, J)
    assert np.array_equal(A.toarray(), 10.0 * dense)

    # Unsorted column indices within a row
    J = scipy.sparse.csr_matrix(
        (np.array([20.0, 10.0, 40.0, 30.0, 60.0, 50.0]),
         np.array([1, 0, 2, 1, 2, 0]),
         A.indptr.copy()),
        shape=(3, 3),
    )
    assign_matrix(A, J)
    assert np.array_equal(A.toarray(), 10.0 * dense)


def test_assign_matrix_rejects_coo_buffer():
    A = scipy.sparse.coo_matrix(np.array([[1.0, 2.0], [0.0, 3.0]]))
    with pytest.raises(TypeError):
        assign_matrix(A, scipy.sparse.coo_matrix(np.array([[4.0, 5.0], [0.0, 6.0]])))


def test_coo_jacobian_allocated_as_csr():
    """A COO Jacobian callback yields a CSR buffer that refreshes correctly."""

    def jac(x):
        return scipy.sparse.coo_matrix(np.diag(3.0 * x**2))

    op = CallbackOperator(lambda x: x**3 - 8.0, jac)
    x0 = np.array([1.0, 3.0])

    A = op.jacobian(x0)
    assert A.format == "csr"

    x = np.array([1.5, 2.5])
    op.jacobian_into(A, x)
    assert np.allclose(A.toarray(), np.diag(3.0 * x**2))

    x = x0.copy()
    NewtonRaphsonSolver(linear_solver="sparse_lu", tol=1e-12, max_iterations=30).solve(x, op)
    assert np.allclose(x, 2.0)


def test_allocating_jacobian_evaluates_once():
    calls = CountingCallbacks()
    op = CallbackOperator(calls.residual, calls.jacobian)
    x = np.array([1.0, 3.0])

    op.jacobian(x)
    assert calls.jacobian_calls == 1

    op.residual_and_jacobian(x)
    assert calls.jacobian_calls == 2
    assert calls.residual_calls == 1


def test_fresh_cache_evaluates_jacobian_once():
    calls = CountingCallbacks()
    op = CallbackOperator(calls.residual, calls.jacobian)
    solver = NewtonRaphsonSolver(max_iterations=0, atol=10.0)

    x = np.array([2.1, 1.9])
    cache = solver.solve(x, op)

    assert cache.result.converged
    assert cache.result.iterations == 0
    assert calls.jacobian_calls == 1
    assert calls.residual_calls == 1
