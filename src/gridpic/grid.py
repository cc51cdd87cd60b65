import numpy as np

from gridpic.quantize import index_dtype


def cell_width(levels: int) -> int:
    """Digits needed for the largest index, ``levels**3 - 1``."""
    return len(str(levels**3 - 1))


def encode_grid(indices: np.ndarray, levels: int, delimiter: str = " ") -> str:
    """Serialize an index array as zero-padded rows, one line per image row.

    Every cell has the same width, so the grid stays parseable even with an
    empty delimiter.
    """
    indices = np.asarray(indices)
    if indices.ndim != 2:
        raise ValueError(f"Expected a 2-D index array, got shape {indices.shape}")
    width = cell_width(levels)
    lines = []
    for row in indices.tolist():
        lines.append(delimiter.join(f"{value:0{width}d}" for value in row) + "\n")
    return "".join(lines)


def _split_row(line: str, width: int, delimiter: str) -> list[str]:
    if delimiter:
        return line.split(delimiter)
    if len(line) % width:
        raise ValueError(f"Row length {len(line)} is not a multiple of cell width {width}")
    return [line[i : i + width] for i in range(0, len(line), width)]


def parse_grid(text: str, levels: int, delimiter: str = " ") -> np.ndarray:
    """Read grid text written by encode_grid back into an index array."""
    width = cell_width(levels)
    max_index = levels**3 - 1
    rows = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        cells = _split_row(line, width, delimiter)
        for cell in cells:
            if len(cell) != width or not (cell.isascii() and cell.isdigit()):
                raise ValueError(f"Line {lineno}: bad cell {cell!r}, expected {width} digits")
        row = [int(cell) for cell in cells]
        if max(row, default=0) > max_index:
            raise ValueError(f"Line {lineno}: index above {max_index}")
        if rows and len(row) != len(rows[0]):
            raise ValueError(f"Line {lineno}: expected {len(rows[0])} cells, got {len(row)}")
        rows.append(row)
    if not rows:
        return np.zeros((0, 0), dtype=index_dtype(levels))
    return np.array(rows, dtype=index_dtype(levels))
