"""
Request batching for the elevation profile endpoint.

Two traversals turn a width x height grid into LineString requests:

- boustrophedon: one continuous snake path over the whole grid (up column 0,
  down column 1, ...) cut into chunks of at most ``batch_size`` points, so a
  grid needs ``ceil(width * height / batch_size)`` requests.
- per-column: one request per column of ``height`` points. Slower, but a
  fallback when the server rejects large snake requests.

Enumeration and reconciliation are pure functions; the traversal order fixed
when a batch is built is the order its response records are matched back in.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator

from pydantic import ValidationError

from ..constants import Traversal
from ..models.wire import GridRequest, GridResponse
from .grid import index_to_coordinate

logger = logging.getLogger(__name__)

Position = tuple[int, int]
Mutation = tuple[int, int, float]


@dataclass
class Batch:
    """Grid positions queried together in one request."""

    number: int  # 1-based
    traversal: str
    positions: list[Position]
    coordinates: list[tuple[int, int]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.positions)


# ---------------------------------------------------------------------------
# Snake index arithmetic
# ---------------------------------------------------------------------------


def unflatten_snake(index: int, height: int) -> Position:
    """Position of the ``index``-th cell along the boustrophedon path."""
    x, y = divmod(index, height)
    if x % 2 == 1:
        y = height - y - 1
    return x, y


def flatten_snake(x: int, y: int, height: int) -> int:
    """Inverse of unflatten_snake()."""
    if x % 2 == 1:
        y = height - y - 1
    return x * height + y


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------


def enumerate_positions(width: int, height: int, traversal: str) -> Iterator[Position]:
    """Yield every grid position exactly once in traversal order."""
    if traversal == Traversal.BOUSTROPHEDON:
        for index in range(width * height):
            yield unflatten_snake(index, height)
    elif traversal == Traversal.PER_COLUMN:
        for x in range(width):
            for y in range(height):
                yield x, y
    else:
        raise ValueError(f"Unknown traversal: {traversal}")


def plan_batches(
    width: int,
    height: int,
    traversal: str,
    batch_size: int,
) -> list[list[Position]]:
    """Group the traversal into request-sized lists of positions.

    Per-column batches always hold exactly one column; ``batch_size`` only
    bounds the snake traversal.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")

    if traversal == Traversal.PER_COLUMN:
        return [[(x, y) for y in range(height)] for x in range(width)]

    positions = list(enumerate_positions(width, height, traversal))
    return [positions[i : i + batch_size] for i in range(0, len(positions), batch_size)]


def count_batches(width: int, height: int, traversal: str, batch_size: int) -> int:
    """Number of requests a grid needs, without building the batches."""
    if traversal == Traversal.PER_COLUMN:
        return width
    return math.ceil(width * height / batch_size)


def build_batches(
    width: int,
    height: int,
    traversal: str,
    batch_size: int,
    center: tuple[int, int],
    half_extent: tuple[int, int],
    step: int,
) -> list[Batch]:
    """Plan batches and attach the GK4 coordinate of every position."""
    center_x, center_y = center
    size_x, size_y = half_extent

    batches = []
    for number, positions in enumerate(plan_batches(width, height, traversal, batch_size), 1):
        coords = [
            (
                index_to_coordinate(x, center_x, size_x, step),
                index_to_coordinate(y, center_y, size_y, step),
            )
            for x, y in positions
        ]
        batches.append(Batch(number, traversal, positions, coords))
    return batches


# ---------------------------------------------------------------------------
# Wire conversion
# ---------------------------------------------------------------------------


def build_request(batch: Batch) -> GridRequest:
    """LineString body preserving the batch's traversal order."""
    return GridRequest(coordinates=list(batch.coordinates))


def parse_response(body: bytes | str) -> GridResponse:
    """Parse a profile response body.

    Raises:
        ValidationError: if the body is not JSON or has the wrong shape
    """
    return GridResponse.model_validate_json(body)


def try_parse_response(body: bytes | str) -> tuple[GridResponse | None, Exception | None]:
    """parse_response() that reports failure instead of raising."""
    try:
        return parse_response(body), None
    except ValidationError as e:
        return None, e


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


def reconcile(batch: Batch, altitudes: list[float]) -> list[Mutation]:
    """Match response altitudes back to grid positions.

    Snake batches pair record ``k`` with position ``k``; surplus positions
    keep their current value and surplus records are dropped.

    Per-column batches spread however many records arrived over the column,
    record ``k`` of ``n`` landing on row ``int(k / n * height)``. With
    ``n != height`` rows are skipped or written twice; this is best effort
    for partial coverage answers.
    """
    if batch.traversal == Traversal.PER_COLUMN:
        return _reconcile_column(batch, altitudes)
    return [(x, y, value) for (x, y), value in zip(batch.positions, altitudes)]


def _reconcile_column(batch: Batch, altitudes: list[float]) -> list[Mutation]:
    if not batch.positions or not altitudes:
        return []

    x = batch.positions[0][0]
    height = len(batch.positions)
    count = len(altitudes)
    return [(x, int(k / count * height), value) for k, value in enumerate(altitudes)]
