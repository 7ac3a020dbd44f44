"""
Sparse Matrix Text Parser
Reads the line-oriented text format produced by SparseMatrix.format().

Accepted input:
- Header lines such as "rows=3", "Row: 3", "cols 4", "columns = 4"
  (case-insensitive, searched in the first few lines only)
- Element lines "(row, col, value)" or "row, col, value" / "row col value"
- Values may be signed integers, decimals or exponent notation

When a header is missing, the dimension is inferred as (largest index + 1)
over all element lines. Lines that are neither header nor element are skipped.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from sparse_matrix import SparseMatrix


logger = logging.getLogger(__name__)

# Only this many leading lines are searched for header tokens
HEADER_SCAN_LINES = 5

_NUMBER = r'[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?'

_ROW_HEADER = re.compile(r'\brows?\b[^\d\-]*(-?\d+)', re.IGNORECASE)
_COL_HEADER = re.compile(r'\b(?:columns?|cols?)\b[^\d\-]*(-?\d+)', re.IGNORECASE)

_ELEMENT_PARENS = re.compile(
    r'\(\s*(-?\d+)\s*[,\s]\s*(-?\d+)\s*[,\s]\s*(' + _NUMBER + r')\s*\)'
)
_ELEMENT_BARE = re.compile(
    r'^(-?\d+)\s*[,\s]\s*(-?\d+)\s*[,\s]\s*(' + _NUMBER + r')$'
)


class FormatError(ValueError):
    """Matrix text is too short or its dimensions cannot be determined."""


def parse_element(line: str) -> Optional[Tuple[int, int, float]]:
    """
    Extract a (row, col, value) triple from one line.

    Returns:
        The triple, or None when the line holds no element
    """
    match = _ELEMENT_PARENS.search(line) or _ELEMENT_BARE.match(line)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2)), float(match.group(3))


def _scan_header(lines: List[str]) -> Tuple[Optional[int], Optional[int], int]:
    """
    Look for row/column counts in the leading lines.

    Returns:
        (rows, cols, start) where start is the first line after the last
        header match (0 when nothing matched)
    """
    rows, cols = None, None
    start = 0

    for index, line in enumerate(lines[:HEADER_SCAN_LINES]):
        if rows is None:
            match = _ROW_HEADER.search(line)
            if match:
                rows = int(match.group(1))
                start = max(start, index + 1)
        if cols is None:
            match = _COL_HEADER.search(line)
            if match:
                cols = int(match.group(1))
                start = max(start, index + 1)

    return rows, cols, start


def _infer_dimensions(lines: List[str]) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """
    Infer dimensions from the largest element indices.

    Returns:
        (rows, cols, first_element_line), all None when no element exists
    """
    first = None
    for index, line in enumerate(lines):
        if parse_element(line) is not None:
            first = index
            break

    if first is None:
        return None, None, None

    max_row, max_col = 0, 0
    for line in lines[first:]:
        element = parse_element(line)
        if element is not None:
            max_row = max(max_row, element[0])
            max_col = max(max_col, element[1])

    return max_row + 1, max_col + 1, first


def parse(text: str) -> SparseMatrix:
    """
    Build a SparseMatrix from its text representation.

    Args:
        text: Full file contents

    Returns:
        SparseMatrix instance

    Raises:
        FormatError if fewer than 2 usable lines exist or the dimensions are
        missing or non-positive
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    if len(lines) < 2:
        raise FormatError(f"Matrix text needs at least 2 non-empty lines, found {len(lines)}")

    rows, cols, start = _scan_header(lines)

    if rows is None or cols is None:
        inferred_rows, inferred_cols, first = _infer_dimensions(lines)
        if first is not None:
            if rows is None:
                rows = inferred_rows
            if cols is None:
                cols = inferred_cols
            start = first
            logger.debug(f"Inferred dimensions {rows}×{cols} from element indices")

    if rows is None or cols is None:
        raise FormatError("Could not determine matrix dimensions (no header and no elements)")

    if rows <= 0 or cols <= 0:
        raise FormatError(f"Matrix dimensions must be positive, got {rows}×{cols}")

    matrix = SparseMatrix(rows, cols)
    parsed, dropped = 0, 0

    for line in lines[start:]:
        element = parse_element(line)
        if element is None:
            continue

        row, col, value = element
        if not (0 <= row < rows and 0 <= col < cols):
            dropped += 1
            continue

        # Repeated coordinates accumulate
        matrix.set(row, col, matrix.get(row, col) + value)
        parsed += 1

    if dropped:
        logger.debug(f"Dropped {dropped} elements outside {rows}×{cols}")

    if parsed == 0:
        logger.warning(f"No matrix elements found; returning empty {rows}×{cols} matrix")

    return matrix


def load_matrix(filepath: str) -> SparseMatrix:
    """
    Read and parse a matrix file.

    Args:
        filepath: Path to the text file

    Returns:
        SparseMatrix instance

    Raises:
        FileNotFoundError if the file does not exist
        IOError if the file cannot be read
        FormatError if the contents are not a valid matrix
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"Matrix file not found: {filepath}")

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise IOError(f"Cannot read matrix file {filepath}: {e}") from e

    matrix = parse(text)
    logger.info(f"Loaded {filepath}: shape={matrix.shape}, nnz={matrix.nnz():,}")
    return matrix
