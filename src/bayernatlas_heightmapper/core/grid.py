"""
Height grid storage and grid <-> GK4 coordinate mapping.

The grid is a dense float32 array indexed ``[x, y]`` with a bottom-left
origin: x grows east, y grows north. Cells start at 0, which is also what
the profile service answers outside its coverage area.
"""

import logging
from typing import Any, Iterable

import numpy as np
from numpy.typing import NDArray

from ..constants import NO_DATA_THRESHOLD_M, ErrorMessages

logger = logging.getLogger(__name__)

FloatArray = NDArray[np.floating[Any]]


class NoValidDataError(ValueError):
    """Raised when a grid holds no sample above the no-data threshold."""


def index_to_coordinate(axis_index: int, center: int, half_extent: int, step: int) -> int:
    """Map a grid index on one axis to its real-world GK4 coordinate."""
    return axis_index * step + (center - half_extent)


class HeightGrid:
    """Dense width x height array of elevation samples."""

    def __init__(self, width: int, height: int, values: FloatArray | None = None) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")

        if values is None:
            values = np.zeros((width, height), dtype=np.float32)
        elif values.shape != (width, height):
            raise ValueError(f"Array shape {values.shape} does not match grid {width}x{height}")

        self.width = width
        self.height = height
        self.values = values

    @classmethod
    def from_array(cls, values: FloatArray) -> "HeightGrid":
        """Wrap an existing ``[x, y]`` array, cast to float32."""
        arr = np.asarray(values, dtype=np.float32)
        return cls(arr.shape[0], arr.shape[1], arr)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.width, self.height)

    def __getitem__(self, position: tuple[int, int]) -> float:
        x, y = position
        return float(self.values[x, y])

    def __setitem__(self, position: tuple[int, int], value: float) -> None:
        x, y = position
        self.values[x, y] = value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeightGrid):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.values, other.values))

    def __repr__(self) -> str:
        return f"HeightGrid({self.width}x{self.height})"

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def apply(self, mutations: Iterable[tuple[int, int, float]]) -> int:
        """Write ``(x, y, value)`` mutations, skipping out-of-range positions.

        Returns:
            Number of cells written
        """
        written = 0
        for x, y, value in mutations:
            if not self.contains(x, y):
                logger.debug(f"Skipping out-of-range position ({x}, {y})")
                continue
            self.values[x, y] = value
            written += 1
        return written

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def valid_values(self, threshold: float = NO_DATA_THRESHOLD_M) -> FloatArray:
        """Samples strictly above the no-data threshold."""
        return self.values[self.values > threshold]

    def height_range(self, threshold: float = NO_DATA_THRESHOLD_M) -> tuple[float, float]:
        """Min and max over valid samples.

        Raises:
            NoValidDataError: if no sample exceeds the threshold
        """
        valid = self.valid_values(threshold)
        if valid.size == 0:
            raise NoValidDataError(ErrorMessages.NO_VALID_DATA.format(threshold))
        return float(np.min(valid)), float(np.max(valid))

    def try_height_range(
        self, threshold: float = NO_DATA_THRESHOLD_M
    ) -> tuple[float, float] | None:
        """Like height_range() but returns None instead of raising."""
        try:
            return self.height_range(threshold)
        except NoValidDataError:
            return None

    def nodata_count(self, threshold: float = NO_DATA_THRESHOLD_M) -> int:
        return int(np.sum(self.values <= threshold))

    def to_image_rows(self) -> FloatArray:
        """Values as ``[row, col]`` with row 0 at the top (highest y)."""
        return self.values.T[::-1, :]
