"""
Sparse Matrix Data Generator
Generates synthetic sparse matrices in the text format read by matrix_parser.

Features:
- Control matrix size and sparsity
- Memory estimation before generation
- Random, banded and identity patterns
- Optional header-less output (dimensions inferred on load)
- Progress tracking
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import numpy as np
from tqdm import tqdm

from sparse_matrix import SparseMatrix


logger = logging.getLogger(__name__)

DEFAULT_MAX_MEMORY_MB = 500


class SparseMatrixGenerator:
    """Generate synthetic sparse matrices for testing."""

    def __init__(self, output_dir: str = "data/input", max_memory_mb: float = DEFAULT_MAX_MEMORY_MB):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.max_memory_mb = max_memory_mb

    def estimate_memory(self, num_rows: int, num_cols: int, nnz: int) -> dict:
        """
        Estimate memory requirements for generating and storing the matrix.

        Args:
            num_rows: Number of rows
            num_cols: Number of columns
            nnz: Number of nonzeros

        Returns:
            Dictionary with memory estimates in MB
        """
        # Each entry: nested dict slot (~100 bytes) + float object (24 bytes)
        memory_generation_mb = (nnz * 124) / (1024 * 1024)

        # Text file size: roughly 15-20 bytes per "(i, j, v)" line
        text_size_mb = (nnz * 20) / (1024 * 1024)

        return {
            'generation_mb': memory_generation_mb,
            'text_size_mb': text_size_mb,
            'total_mb': memory_generation_mb + text_size_mb
        }

    def check_safety(self, num_rows: int, num_cols: int, nnz: int):
        """
        Check if generation stays under the memory limit.

        Raises:
            ValueError if unsafe
        """
        estimates = self.estimate_memory(num_rows, num_cols, nnz)

        if estimates['total_mb'] > self.max_memory_mb:
            raise ValueError(
                f"Matrix too large! Estimated memory: {estimates['total_mb']:.1f} MB\n"
                f"Maximum allowed: {self.max_memory_mb} MB\n"
                f"Suggestion: Reduce nnz to {int(nnz * self.max_memory_mb / estimates['total_mb'])}"
            )

        logger.info(f"Memory estimate: {estimates['total_mb']:.1f} MB (SAFE)")

    def _write(self, matrix: SparseMatrix, filename: str, include_header: bool) -> str:
        filepath = self.output_dir / filename
        matrix.to_file(str(filepath), include_header=include_header)

        file_size_kb = filepath.stat().st_size / 1024
        logger.info(f"✓ Generated {filepath} ({file_size_kb:.1f} KB)")

        return str(filepath)

    def generate_random(
        self,
        num_rows: int,
        num_cols: int,
        nnz: int,
        filename: str,
        seed: Optional[int] = None,
        integer_values: bool = True,
        include_header: bool = True
    ) -> str:
        """
        Generate random sparse matrix with uniformly placed, unique entries.

        Args:
            num_rows: Number of rows
            num_cols: Number of columns
            nnz: Number of nonzeros
            filename: Output filename
            seed: Random seed for reproducibility
            integer_values: If True, values are integers in [-100, 100),
                otherwise standard normal floats rounded to 4 decimals
            include_header: Write the rows=/cols= header lines

        Returns:
            Path to generated file
        """
        logger.info(f"Generating random matrix: {num_rows}×{num_cols}, {nnz:,} nonzeros")

        self.check_safety(num_rows, num_cols, nnz)

        total_possible = num_rows * num_cols
        if nnz > total_possible:
            raise ValueError(f"Cannot generate {nnz} unique entries in {num_rows}×{num_cols} matrix")

        if not include_header and nnz < 2:
            raise ValueError(f"Header-less output needs at least 2 nonzeros, got nnz={nnz}")

        rng = np.random.default_rng(seed)

        positions = rng.choice(total_possible, size=nnz, replace=False)
        rows = positions // num_cols
        cols = positions % num_cols

        if integer_values:
            values = rng.integers(-100, 100, nnz)
            # Zeros would be pruned and shrink nnz
            values[values == 0] = 1
        else:
            values = np.round(rng.standard_normal(nnz), 4)
            values[values == 0] = 0.0001

        matrix = SparseMatrix(num_rows, num_cols)
        for i in tqdm(range(nnz), desc="Building entries", unit=" entries"):
            matrix.set(int(rows[i]), int(cols[i]), float(values[i]))

        return self._write(matrix, filename, include_header)

    def generate_banded(
        self,
        size: int,
        bandwidth: int,
        filename: str,
        seed: Optional[int] = None,
        include_header: bool = True
    ) -> str:
        """
        Generate banded matrix (nonzeros near diagonal).
        Common in differential equations and physics simulations.

        Args:
            size: Matrix size (size × size)
            bandwidth: Number of diagonals on each side of main diagonal
            filename: Output filename
            seed: Random seed
            include_header: Write the rows=/cols= header lines

        Returns:
            Path to generated file
        """
        logger.info(f"Generating banded matrix: {size}×{size}, bandwidth={bandwidth}")

        rng = np.random.default_rng(seed)

        entries = []
        for i in range(size):
            for k in range(-bandwidth, bandwidth + 1):
                j = i + k
                if 0 <= j < size:
                    entries.append((i, j))

        self.check_safety(size, size, len(entries))

        values = rng.integers(1, 10, len(entries))

        matrix = SparseMatrix(size, size)
        for (i, j), v in tqdm(zip(entries, values), total=len(entries), desc="Building entries"):
            matrix.set(i, j, float(v))

        return self._write(matrix, filename, include_header)

    def generate_identity(self, size: int, filename: str, include_header: bool = True) -> str:
        """
        Generate the size × size identity matrix.

        Returns:
            Path to generated file
        """
        logger.info(f"Generating identity matrix: {size}×{size}")

        self.check_safety(size, size, size)

        matrix = SparseMatrix(size, size)
        for i in tqdm(range(size), desc="Building entries"):
            matrix.set(i, i, 1.0)

        return self._write(matrix, filename, include_header)


def generate_preset_matrices(output_dir: str = "data/input") -> List[str]:
    """Generate common test matrices for the project."""
    generator = SparseMatrixGenerator(output_dir)

    presets = [
        # Small operands for add / subtract / multiply
        ("small_A.txt", "random", {"num_rows": 100, "num_cols": 100, "nnz": 500}),
        ("small_B.txt", "random", {"num_rows": 100, "num_cols": 100, "nnz": 500}),

        # Rectangular operands (2 × 3 shape exercises the transpose fallback)
        ("rect_A.txt", "random", {"num_rows": 200, "num_cols": 300, "nnz": 1000}),
        ("rect_B.txt", "random", {"num_rows": 200, "num_cols": 300, "nnz": 1000}),

        # Medium matrices
        ("medium_A.txt", "random", {"num_rows": 1000, "num_cols": 1000, "nnz": 10000}),
        ("medium_B.txt", "random", {"num_rows": 1000, "num_cols": 1000, "nnz": 10000}),

        # Special patterns
        ("banded_1000.txt", "banded", {"size": 1000, "bandwidth": 5}),
        ("identity_1000.txt", "identity", {"size": 1000}),
    ]

    logger.info(f"\nGenerating {len(presets)} preset matrices...")
    logger.info("=" * 70)

    generated_files = []

    for filename, pattern, params in presets:
        try:
            logger.info(f"\nGenerating {filename}...")

            if pattern == "random":
                filepath = generator.generate_random(**params, filename=filename, seed=42)
            elif pattern == "banded":
                filepath = generator.generate_banded(**params, filename=filename, seed=42)
            else:
                filepath = generator.generate_identity(**params, filename=filename)

            generated_files.append(filepath)

        except ValueError as e:
            logger.warning(f"Skipped {filename}: {e}")

    logger.info("\n" + "=" * 70)
    logger.info(f"✓ Generated {len(generated_files)} matrices in {output_dir}")
    logger.info("=" * 70)

    return generated_files


def main(argv=None):
    """Command-line interface for data generation."""
    parser = argparse.ArgumentParser(
        description="Generate sparse matrix text files for testing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate all preset matrices
  python generate_data.py --preset

  # Generate custom random matrix
  python generate_data.py --random --rows 1000 --cols 1000 --nnz 5000 -o my_matrix.txt

  # Generate banded matrix without header lines
  python generate_data.py --banded --size 5000 --bandwidth 10 --no-header -o banded.txt
        """
    )

    parser.add_argument('--output-dir', default='data/input', help='Output directory')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    parser.add_argument('--max-memory', type=float, default=DEFAULT_MAX_MEMORY_MB,
                        help='Max memory in MB (safety limit)')
    parser.add_argument('--no-header', action='store_true', help='Omit rows=/cols= header lines')

    # Preset matrices
    parser.add_argument('--preset', action='store_true', help='Generate all preset test matrices')

    # Custom generation options
    parser.add_argument('--random', action='store_true', help='Generate random matrix')
    parser.add_argument('--banded', action='store_true', help='Generate banded matrix')
    parser.add_argument('--identity', action='store_true', help='Generate identity matrix')

    # Matrix parameters
    parser.add_argument('--rows', type=int, help='Number of rows')
    parser.add_argument('--cols', type=int, help='Number of columns')
    parser.add_argument('--nnz', type=int, help='Number of nonzeros')
    parser.add_argument('--size', type=int, help='Matrix size (for square matrices)')
    parser.add_argument('--bandwidth', type=int, help='Bandwidth for banded matrices')
    parser.add_argument('--float-values', action='store_true', help='Use decimal instead of integer values')

    parser.add_argument('-o', '--output', help='Output filename')

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s: %(message)s')

    if args.preset:
        generate_preset_matrices(args.output_dir)
        return

    generator = SparseMatrixGenerator(args.output_dir, max_memory_mb=args.max_memory)
    include_header = not args.no_header

    if args.random:
        if not all([args.rows, args.cols, args.nnz, args.output]):
            parser.error("--random requires --rows, --cols, --nnz, and -o")

        generator.generate_random(
            num_rows=args.rows,
            num_cols=args.cols,
            nnz=args.nnz,
            filename=args.output,
            seed=args.seed,
            integer_values=not args.float_values,
            include_header=include_header
        )

    elif args.banded:
        if not all([args.size, args.bandwidth is not None, args.output]):
            parser.error("--banded requires --size, --bandwidth, and -o")

        generator.generate_banded(
            size=args.size,
            bandwidth=args.bandwidth,
            filename=args.output,
            seed=args.seed,
            include_header=include_header
        )

    elif args.identity:
        if not all([args.size, args.output]):
            parser.error("--identity requires --size and -o")

        generator.generate_identity(size=args.size, filename=args.output, include_header=include_header)

    else:
        parser.print_help()


if __name__ == "__main__":
    main()
