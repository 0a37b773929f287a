from __future__ import annotations

import numpy as np


def check_block_size(block_size: int) -> int:
    s = int(block_size)
    if s < 1:
        raise ValueError(f"block size must be >= 1, got {block_size}")
    return s


def block_edges(length: int, block_size: int) -> np.ndarray:
    """Start offset of every block along an axis of `length` pixels."""
    return np.arange(0, int(length), check_block_size(block_size), dtype=np.intp)


def block_lengths(starts: np.ndarray, length: int) -> np.ndarray:
    # last block is truncated to what is left of the axis
    return np.diff(np.append(starts, int(length)))


def pixelate(region: np.ndarray, block_size: int, average_alpha: bool = False) -> np.ndarray:
    """
    Replace every block of `region` with the mean color of that block.

    `region` is an HxWx4 uint8 array. Blocks are block_size x block_size,
    except along the right and bottom edges where they cover only the pixels
    that remain. Means are taken over the actual pixel count of each block and
    rounded half up. Alpha is kept per pixel unless `average_alpha` is set.
    Returns a new array; `region` is not modified.
    """
    if region.dtype != np.uint8 or region.ndim != 3 or region.shape[2] != 4:
        raise ValueError("region must be HxWx4 uint8")
    s = check_block_size(block_size)

    out = region.copy()
    h, w = region.shape[:2]
    if h == 0 or w == 0:
        return out

    rows = block_edges(h, s)
    cols = block_edges(w, s)
    heights = block_lengths(rows, h)
    widths = block_lengths(cols, w)

    # accumulate in int64 without widening the whole region first
    row_sums = np.add.reduceat(region, rows, axis=0, dtype=np.int64)
    sums = np.add.reduceat(row_sums, cols, axis=1)
    counts = np.outer(heights, widths)[..., None]
    means = ((2 * sums + counts) // (2 * counts)).astype(np.uint8)

    expanded = np.repeat(np.repeat(means, heights, axis=0), widths, axis=1)
    channels = 4 if average_alpha else 3
    out[..., :channels] = expanded[..., :channels]
    return out
