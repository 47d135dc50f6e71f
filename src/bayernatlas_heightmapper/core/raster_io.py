"""
Raster operations on height grids.

All functions are synchronous -- callers wrap them in asyncio.to_thread().
Handles bilinear upscaling, contour band detection, height-to-colour
mapping, and output format conversion (raw text, grayscale PNG,
topographic PNG).

Arrays here are indexed ``[x, y]`` like HeightGrid; conversion to image
``[row, col]`` order (top row = highest y) happens only when encoding.
"""

import io
import logging
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from ..constants import COLOR_ANCHORS, CONTOUR_LINE_COLOR
from .grid import HeightGrid

logger = logging.getLogger(__name__)

# Type aliases
FloatArray = NDArray[np.floating[Any]]
BoolArray = NDArray[np.bool_]
RGB = tuple[int, int, int]
ColorAnchors = list[tuple[float, RGB]]
HeightFormatter = Callable[[float], str]


# ---------------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------------


def resample_bilinear(grid: HeightGrid, scale: float) -> HeightGrid:
    """
    Upscale (or downscale) a grid with bilinear interpolation.

    Destination cell (dx, dy) samples source position (dx/scale, dy/scale).
    The top-left neighbour index is clamped to W-2 / H-2, so the far edge
    extrapolates from the last source cell pair.

    Args:
        grid: Source grid (W x H)
        scale: Positive scale factor; 1 returns the source grid unchanged

    Returns:
        Grid of round(W*scale) x round(H*scale)
    """
    if scale <= 0:
        raise ValueError(f"scale must be > 0, got {scale}")
    if scale == 1:
        return grid

    src = grid.values.astype(np.float64)
    w, h = grid.shape
    dst_w = max(1, int(round(w * scale)))
    dst_h = max(1, int(round(h * scale)))

    fx = np.arange(dst_w, dtype=np.float64) / scale
    fy = np.arange(dst_h, dtype=np.float64) / scale

    ix = np.minimum(fx.astype(np.int64), max(w - 2, 0))
    iy = np.minimum(fy.astype(np.int64), max(h - 2, 0))
    ix1 = np.minimum(ix + 1, w - 1)
    iy1 = np.minimum(iy + 1, h - 1)

    frac_x = (fx - ix)[:, np.newaxis]
    frac_y = (fy - iy)[np.newaxis, :]

    v00 = src[np.ix_(ix, iy)]
    v01 = src[np.ix_(ix, iy1)]
    v10 = src[np.ix_(ix1, iy)]
    v11 = src[np.ix_(ix1, iy1)]

    result = (1 - frac_x) * ((1 - frac_y) * v00 + frac_y * v01) + frac_x * (
        (1 - frac_y) * v10 + frac_y * v11
    )

    return HeightGrid.from_array(result)


# ---------------------------------------------------------------------------
# Contours
# ---------------------------------------------------------------------------


def contour_bands(heights: FloatArray, step: float) -> NDArray[np.int64]:
    """Contour band index floor(height / step) per cell."""
    if step <= 0:
        raise ValueError(f"Contour step must be > 0, got {step}")
    return np.floor(np.asarray(heights, dtype=np.float64) / step).astype(np.int64)


def contour_mask(heights: FloatArray, step: float) -> BoolArray:
    """
    Boundary flags for every interior cell of an ``[x, y]`` height array.

    Cell (x, y) spans corners (x, y), (x+1, y), (x, y+1), (x+1, y+1); it is
    on a contour line when those corners fall into more than one band.

    Returns:
        Boolean array of shape (W-1, H-1)
    """
    bands = contour_bands(heights, step)
    a = bands[:-1, :-1]
    b = bands[1:, :-1]
    c = bands[:-1, 1:]
    d = bands[1:, 1:]
    return (a != b) | (b != c) | (c != d)


def is_contour_cell(a: float, b: float, c: float, d: float, step: float) -> bool:
    """Whether a cell with corner heights a, b, c, d crosses a band boundary."""
    corners = np.array([[a, c], [b, d]], dtype=np.float64)
    return bool(contour_mask(corners, step)[0, 0])


# ---------------------------------------------------------------------------
# Colour mapping
# ---------------------------------------------------------------------------


def colorize(
    heights: FloatArray,
    anchors: ColorAnchors = COLOR_ANCHORS,
) -> tuple[NDArray[np.uint8], BoolArray]:
    """
    Map heights to colours by piecewise-linear interpolation of an anchor table.

    The interval for a height is (anchor[i-1], anchor[i]) where anchor[i] is
    the first anchor whose threshold exceeds it. Heights below the first
    anchor or at/above the last one have no interval.

    Args:
        heights: Array of heights (any shape)
        anchors: (threshold, (r, g, b)) pairs, strictly increasing

    Returns:
        Tuple of (uint8 colours with a trailing RGB axis, valid mask)
    """
    thresholds = np.array([t for t, _ in anchors], dtype=np.float64)
    colors = np.array([c for _, c in anchors], dtype=np.float64)
    values = np.asarray(heights, dtype=np.float64)

    upper = np.searchsorted(thresholds, values, side="right")
    valid = (upper > 0) & (upper < len(thresholds))

    hi = np.clip(upper, 1, len(thresholds) - 1)
    lo = hi - 1

    t_lo = thresholds[lo]
    t_hi = thresholds[hi]
    frac = np.clip((values - t_lo) / (t_hi - t_lo), 0.0, 1.0)[..., np.newaxis]

    rgb = colors[lo] * (1 - frac) + colors[hi] * frac
    rgb = np.where(valid[..., np.newaxis], rgb, 0.0)

    return rgb.astype(np.uint8), valid


def map_color(height: float, anchors: ColorAnchors = COLOR_ANCHORS) -> RGB | None:
    """Colour for a single height, or None when it falls outside the table."""
    rgb, valid = colorize(np.array([height]), anchors)
    if not valid[0]:
        return None
    r, g, b = (int(v) for v in rgb[0])
    return (r, g, b)


# ---------------------------------------------------------------------------
# Output conversion
# ---------------------------------------------------------------------------


def format_height(value: float) -> str:
    """Shortest '.'-decimal text for a float32 height, e.g. 512.34 or 0."""
    return np.format_float_positional(np.float32(value), trim="-")


def grid_to_raw_text(grid: HeightGrid, formatter: HeightFormatter = format_height) -> str:
    """
    Whitespace-separated height rows, highest y first, x ascending.

    Args:
        grid: Height grid
        formatter: Number formatting convention for each value

    Returns:
        Text with one newline-terminated line per row
    """
    lines = []
    for row in grid.to_image_rows():
        lines.append(" ".join(formatter(float(v)) for v in row))
    return "\n".join(lines) + "\n"


def normalize_to_bytes(heights: FloatArray, vmin: float, vmax: float) -> NDArray[np.uint8]:
    """Linearly map [vmin, vmax] to [0, 255], clipping values outside."""
    if vmax == vmin:
        vmax = vmin + 1.0
    norm = (np.asarray(heights, dtype=np.float64) - vmin) * 255.0 / (vmax - vmin)
    return np.clip(norm, 0, 255).astype(np.uint8)


def grid_to_grayscale_png(
    grid: HeightGrid,
    vmin: float,
    vmax: float,
    output_size: tuple[int, int] | None = None,
) -> bytes:
    """
    Grayscale heightmap PNG (RGB with equal channels).

    Args:
        grid: Height grid
        vmin: Height mapped to black
        vmax: Height mapped to white
        output_size: Optional (width, height) to resize the finished image to

    Returns:
        PNG bytes
    """
    gray = normalize_to_bytes(grid.to_image_rows(), vmin, vmax)
    rgb = np.repeat(gray[:, :, np.newaxis], 3, axis=2)

    img = Image.fromarray(np.ascontiguousarray(rgb))
    if output_size is not None and output_size != img.size:
        logger.debug(f"Resizing grayscale image {img.size} -> {output_size}")
        img = img.resize(output_size, Image.Resampling.BICUBIC)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def topographic_rgb(
    grid: HeightGrid,
    line_spacing: float,
    anchors: ColorAnchors = COLOR_ANCHORS,
    line_color: RGB = CONTOUR_LINE_COLOR,
) -> NDArray[np.uint8]:
    """
    Topographic map as an ``[x, y, 3]`` colour array.

    Interior cells on a band boundary get the line colour; the others get the
    anchor colour of their top-left corner. The last column and row, and any
    cell whose height has no anchor interval, stay black.
    """
    w, h = grid.shape
    rgb = np.zeros((w, h, 3), dtype=np.uint8)
    if w < 2 or h < 2:
        return rgb

    interior = grid.values[:-1, :-1]
    fill, valid = colorize(interior, anchors)
    boundary = contour_mask(grid.values, line_spacing)

    cells = rgb[:-1, :-1]
    paint = valid & ~boundary
    cells[paint] = fill[paint]
    cells[boundary] = line_color

    return rgb


def grid_to_topographic_png(
    grid: HeightGrid,
    line_spacing: float,
    anchors: ColorAnchors = COLOR_ANCHORS,
    line_color: RGB = CONTOUR_LINE_COLOR,
) -> bytes:
    """Encode topographic_rgb() as PNG, flipped to a top-left origin."""
    rgb = topographic_rgb(grid, line_spacing, anchors, line_color)
    image_rows = np.ascontiguousarray(rgb.transpose(1, 0, 2)[::-1, :, :])

    img = Image.fromarray(image_rows)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()
