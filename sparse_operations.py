"""
Sparse Matrix Operations Driver
Loads two matrix files, applies add / subtract / multiply and writes the result.

Pipeline:
1. Parse both inputs with matrix_parser.load_matrix()
2. Dispatch once on the Operation enum
3. Multiplication transpose fallback: when B has the same shape as A but
   A's columns differ from B's rows, B is transposed before multiplying
4. Serialize the result to the output path
5. Optionally cross-check the result against scipy.sparse

Usage:
  python sparse_operations.py add a.txt b.txt result.txt
  python sparse_operations.py multiply a.txt b.txt result.txt --verify
"""

import argparse
import logging
import sys
import time
from enum import Enum

import numpy as np

from matrix_parser import load_matrix
from sparse_matrix import SparseMatrix, log_matrix_info


logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-9


class UnsupportedOperationError(ValueError):
    """Operation name is not one of the supported operations."""


class Operation(Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"

    @classmethod
    def from_name(cls, name: str) -> 'Operation':
        """
        Look up an operation by name (case-insensitive).

        Raises:
            UnsupportedOperationError listing the valid names
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(op.value for op in cls)
            raise UnsupportedOperationError(
                f"Unsupported operation '{name}'. Valid operations: {valid}"
            ) from None


# ============================================================================
# Operation Dispatch
# ============================================================================

def needs_transpose_fallback(matrix_a: SparseMatrix, matrix_b: SparseMatrix) -> bool:
    """
    True when A × B is undefined but A × B^T is, because B has A's exact shape.
    """
    return matrix_a.col_count != matrix_b.row_count and matrix_a.shape == matrix_b.shape


def prepare_right_operand(operation: Operation, matrix_a: SparseMatrix, matrix_b: SparseMatrix) -> SparseMatrix:
    """
    Return the right operand the operation will actually use.

    For multiplication this is B^T when the transpose fallback applies,
    otherwise B itself.
    """
    if operation is Operation.MULTIPLY and needs_transpose_fallback(matrix_a, matrix_b):
        logger.warning(
            f"A{matrix_a.shape} × B{matrix_b.shape} is undefined; multiplying by B^T instead"
        )
        return matrix_b.transpose()
    return matrix_b


def _dispatch(operation: Operation, matrix_a: SparseMatrix, matrix_b: SparseMatrix) -> SparseMatrix:
    if operation is Operation.ADD:
        return matrix_a.add(matrix_b)
    if operation is Operation.SUBTRACT:
        return matrix_a.subtract(matrix_b)
    return matrix_a.multiply(matrix_b)


def apply_operation(operation: Operation, matrix_a: SparseMatrix, matrix_b: SparseMatrix) -> SparseMatrix:
    """
    Apply one operation to two matrices.

    Args:
        operation: Operation to perform
        matrix_a: Left operand
        matrix_b: Right operand (transposed first when the multiplication
            fallback applies)

    Returns:
        New SparseMatrix holding the result

    Raises:
        DimensionError if the shapes are incompatible
    """
    matrix_b = prepare_right_operand(operation, matrix_a, matrix_b)
    return _dispatch(operation, matrix_a, matrix_b)


# ============================================================================
# Verification Against scipy
# ============================================================================

def verify_against_scipy(
    operation: Operation,
    matrix_a: SparseMatrix,
    matrix_b: SparseMatrix,
    result: SparseMatrix,
    tolerance: float = DEFAULT_TOLERANCE
) -> bool:
    """
    Verify a result against scipy.sparse.

    Args:
        operation: Operation that produced result
        matrix_a, matrix_b: Input matrices (B already transposed if the
            multiplication fallback was used)
        result: Our result
        tolerance: Maximum allowed absolute difference

    Returns:
        True if correct
    """
    logger.info("Verifying result against scipy.sparse...")

    scipy_a = matrix_a.to_scipy_sparse()
    scipy_b = matrix_b.to_scipy_sparse()

    if operation is Operation.ADD:
        expected = scipy_a + scipy_b
    elif operation is Operation.SUBTRACT:
        expected = scipy_a - scipy_b
    else:
        expected = scipy_a @ scipy_b

    scipy_result = result.to_scipy_sparse()

    if scipy_result.shape != expected.shape:
        logger.error(f"✗ Shape mismatch: ours={scipy_result.shape}, scipy={expected.shape}")
        return False

    diff = scipy_result - expected
    max_diff = np.abs(diff.data).max() if diff.nnz > 0 else 0

    if max_diff > tolerance:
        logger.error(f"✗ Verification failed: max difference = {max_diff}")
        return False

    logger.info("✓ Verification passed! Result matches scipy.sparse")
    return True


# ============================================================================
# Main Functions
# ============================================================================

def run_operation(
    operation: Operation,
    file_a: str,
    file_b: str,
    output_file: str,
    verify: bool = False
) -> SparseMatrix:
    """
    Load two matrix files, apply an operation and write the result.

    Args:
        operation: Operation to perform
        file_a: Path to matrix A
        file_b: Path to matrix B
        output_file: Path the result is written to
        verify: Cross-check the result against scipy.sparse

    Returns:
        Result SparseMatrix

    Raises:
        ValueError if verify is set and the result does not match scipy.sparse
    """
    logger.info(f"Loading matrices from:")
    logger.info(f"  A: {file_a}")
    logger.info(f"  B: {file_b}")

    matrix_a = load_matrix(file_a)
    matrix_b = load_matrix(file_b)

    log_matrix_info(matrix_a, "A")
    log_matrix_info(matrix_b, "B")

    logger.info(f"Running {operation.value}...")
    start = time.time()
    matrix_b = prepare_right_operand(operation, matrix_a, matrix_b)
    result = _dispatch(operation, matrix_a, matrix_b)
    elapsed = time.time() - start

    logger.info(f"✓ {operation.value.capitalize()} complete in {elapsed:.4f}s")
    log_matrix_info(result, "Result")

    result.to_file(output_file)

    if verify and not verify_against_scipy(operation, matrix_a, matrix_b, result):
        raise ValueError(f"Result of {operation.value} does not match scipy.sparse")

    return result


def main(argv=None):
    """Command-line interface for sparse matrix operations."""
    parser = argparse.ArgumentParser(
        description="Add, subtract or multiply sparse matrices stored as text files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sum of two matrices
  python sparse_operations.py add a.txt b.txt sum.txt

  # Product, checked against scipy.sparse
  python sparse_operations.py multiply a.txt b.txt product.txt --verify
        """
    )

    parser.add_argument('operation', help='Operation: add, subtract or multiply')
    parser.add_argument('matrix_a', help='Path to matrix A')
    parser.add_argument('matrix_b', help='Path to matrix B')
    parser.add_argument('output', help='Path to write the result')
    parser.add_argument('--verify', action='store_true', help='Verify the result against scipy.sparse')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')

    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format='%(levelname)s: %(message)s')

    try:
        operation = Operation.from_name(args.operation)
        run_operation(operation, args.matrix_a, args.matrix_b, args.output, verify=args.verify)
    except (OSError, IndexError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Saved to: {args.output}")


if __name__ == "__main__":
    main()
