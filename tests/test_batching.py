"""Tests for bayernatlas_heightmapper.core.batching -- traversal, wire conversion, reconciliation."""

import json
import math

import pytest
from pydantic import ValidationError

from bayernatlas_heightmapper.constants import Traversal
from bayernatlas_heightmapper.core.batching import (
    Batch,
    build_batches,
    build_request,
    count_batches,
    enumerate_positions,
    flatten_snake,
    parse_response,
    plan_batches,
    reconcile,
    try_parse_response,
    unflatten_snake,
)
from bayernatlas_heightmapper.core.grid import HeightGrid

SNAKE = Traversal.BOUSTROPHEDON
COLUMN = Traversal.PER_COLUMN


# ---------------------------------------------------------------------------
# Snake index arithmetic
# ---------------------------------------------------------------------------


class TestSnakeIndex:
    def test_first_column_ascends(self):
        assert [unflatten_snake(i, 3) for i in range(3)] == [(0, 0), (0, 1), (0, 2)]

    def test_second_column_descends(self):
        assert [unflatten_snake(i, 3) for i in range(3, 6)] == [(1, 2), (1, 1), (1, 0)]

    def test_third_column_ascends_again(self):
        assert unflatten_snake(6, 3) == (2, 0)

    @pytest.mark.parametrize("height", [1, 2, 3, 7, 50])
    def test_flatten_inverts_unflatten(self, height):
        for index in range(height * 9):
            x, y = unflatten_snake(index, height)
            assert flatten_snake(x, y, height) == index

    def test_consecutive_cells_are_neighbours(self):
        path = [unflatten_snake(i, 4) for i in range(4 * 5)]
        for (x0, y0), (x1, y1) in zip(path, path[1:]):
            assert abs(x1 - x0) + abs(y1 - y0) == 1


# ---------------------------------------------------------------------------
# Enumeration & planning
# ---------------------------------------------------------------------------


class TestEnumeratePositions:
    def test_snake_order(self):
        positions = list(enumerate_positions(2, 2, SNAKE))
        assert positions == [(0, 0), (0, 1), (1, 1), (1, 0)]

    def test_column_order(self):
        positions = list(enumerate_positions(2, 2, COLUMN))
        assert positions == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_unknown_traversal_raises(self):
        with pytest.raises(ValueError, match="Unknown traversal"):
            list(enumerate_positions(2, 2, "spiral"))


class TestPlanBatches:
    @pytest.mark.parametrize("traversal", [SNAKE, COLUMN])
    @pytest.mark.parametrize(
        "width,height,batch_size",
        [(1, 1, 1), (4, 3, 5), (5, 7, 3), (10, 10, 100), (3, 8, 8), (6, 1, 4)],
    )
    def test_every_cell_exactly_once(self, traversal, width, height, batch_size):
        batches = plan_batches(width, height, traversal, batch_size)
        flat = [pos for batch in batches for pos in batch]
        assert len(flat) == width * height
        assert set(flat) == {(x, y) for x in range(width) for y in range(height)}

    def test_snake_batch_sizes(self):
        batches = plan_batches(4, 3, SNAKE, 5)
        assert [len(b) for b in batches] == [5, 5, 2]

    def test_snake_batches_cross_columns(self):
        batches = plan_batches(4, 3, SNAKE, 5)
        assert batches[0] == [(0, 0), (0, 1), (0, 2), (1, 2), (1, 1)]

    def test_snake_batch_count_is_minimal(self):
        for width, height, size in [(4, 3, 5), (100, 100, 5000), (7, 9, 10)]:
            batches = plan_batches(width, height, SNAKE, size)
            assert len(batches) == math.ceil(width * height / size)
            assert len(batches) == count_batches(width, height, SNAKE, size)

    def test_column_batches_one_per_column(self):
        batches = plan_batches(4, 3, COLUMN, 2)
        assert len(batches) == 4
        assert all(len(b) == 3 for b in batches)
        assert batches[2] == [(2, 0), (2, 1), (2, 2)]
        assert count_batches(4, 3, COLUMN, 2) == 4

    def test_invalid_batch_size_raises(self):
        with pytest.raises(ValueError, match="batch_size"):
            plan_batches(4, 3, SNAKE, 0)


class TestBuildBatches:
    def test_numbers_are_one_based(self):
        batches = build_batches(4, 3, SNAKE, 5, (1000, 2000), (40, 30), 20)
        assert [b.number for b in batches] == [1, 2, 3]

    def test_coordinates_follow_positions(self):
        batches = build_batches(4, 3, SNAKE, 5, (1000, 2000), (40, 30), 20)
        first = batches[0]
        assert len(first.coordinates) == len(first.positions)
        # (0, 0) -> lower-left corner, (1, 2) -> one step east, two steps north
        assert first.coordinates[0] == (960, 1970)
        assert first.coordinates[3] == (980, 2010)


# ---------------------------------------------------------------------------
# Wire conversion
# ---------------------------------------------------------------------------


class TestBuildRequest:
    def test_linestring_body(self):
        batch = Batch(1, SNAKE, [(0, 0), (0, 1)], [(4463000, 5328000), (4463000, 5328020)])
        body = json.loads(build_request(batch).model_dump_json())
        assert body == {
            "type": "LineString",
            "coordinates": [[4463000, 5328000], [4463000, 5328020]],
        }

    def test_order_preserved(self):
        coords = [(5, 1), (3, 2), (9, 0)]
        batch = Batch(1, SNAKE, [(0, 0), (0, 1), (0, 2)], coords)
        assert build_request(batch).coordinates == coords


class TestParseResponse:
    def test_valid_body(self, make_body):
        response = parse_response(make_body([512.3, 498.0]))
        assert response.altitudes() == [pytest.approx(512.3), 498.0]

    def test_missing_heights_key_is_empty(self):
        assert parse_response(b'{"error": "too many points"}').altitudes() == []

    def test_missing_comb_is_zero(self):
        body = b'{"heights": [{"dist": 0, "alts": {"DTM25": 410.0}}, {"dist": 20}]}'
        assert parse_response(body).altitudes() == [0.0, 0.0]

    def test_null_record_is_zero(self):
        body = b'{"heights": [null, {"alts": {"COMB": 5.5}}]}'
        assert parse_response(body).altitudes() == [0.0, 5.5]

    def test_malformed_json_raises(self):
        with pytest.raises(ValidationError):
            parse_response(b"<html>502 Bad Gateway</html>")

    def test_wrong_shape_raises(self):
        with pytest.raises(ValidationError):
            parse_response(b"[1, 2, 3]")

    def test_try_parse_reports_error(self):
        response, error = try_parse_response(b"not json")
        assert response is None
        assert isinstance(error, ValidationError)

    def test_try_parse_success(self, make_body):
        response, error = try_parse_response(make_body([1.0]))
        assert error is None
        assert response.altitudes() == [1.0]


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


class TestReconcileSnake:
    def test_record_k_to_position_k(self):
        batch = Batch(1, SNAKE, [(0, 2), (1, 2), (1, 1)])
        assert reconcile(batch, [10.0, 20.0, 30.0]) == [
            (0, 2, 10.0),
            (1, 2, 20.0),
            (1, 1, 30.0),
        ]

    def test_short_response_leaves_rest_untouched(self):
        batch = Batch(1, SNAKE, [(0, 0), (0, 1), (0, 2)])
        grid = HeightGrid(1, 3)
        grid.apply(reconcile(batch, [7.0]))
        assert grid.values[0].tolist() == [7.0, 0.0, 0.0]

    def test_long_response_truncated(self):
        batch = Batch(1, SNAKE, [(0, 0)])
        assert reconcile(batch, [1.0, 2.0, 3.0]) == [(0, 0, 1.0)]

    def test_empty_response(self):
        assert reconcile(Batch(1, SNAKE, [(0, 0), (0, 1)]), []) == []

    def test_snake_round_trip_through_grid(self):
        width, height = 5, 4
        grid = HeightGrid(width, height)
        for positions in plan_batches(width, height, SNAKE, 3):
            batch = Batch(1, SNAKE, positions)
            grid.apply(reconcile(batch, [float(flatten_snake(x, y, height)) for x, y in positions]))
        for x in range(width):
            for y in range(height):
                assert grid[x, y] == flatten_snake(x, y, height)


class TestReconcileColumn:
    def test_full_column(self):
        batch = Batch(3, COLUMN, [(2, 0), (2, 1), (2, 2)])
        assert reconcile(batch, [1.0, 2.0, 3.0]) == [(2, 0, 1.0), (2, 1, 2.0), (2, 2, 3.0)]

    def test_fewer_records_spread_over_column(self):
        batch = Batch(1, COLUMN, [(0, y) for y in range(4)])
        # 2 records over 4 rows -> rows 0 and 2
        assert reconcile(batch, [5.0, 6.0]) == [(0, 0, 5.0), (0, 2, 6.0)]

    def test_more_records_overwrite_rows(self):
        batch = Batch(1, COLUMN, [(0, y) for y in range(2)])
        mutations = reconcile(batch, [1.0, 2.0, 3.0, 4.0])
        assert [y for _, y, _ in mutations] == [0, 0, 1, 1]
        grid = HeightGrid(1, 2)
        grid.apply(mutations)
        assert grid.values[0].tolist() == [2.0, 4.0]

    def test_empty_response(self):
        assert reconcile(Batch(1, COLUMN, [(0, 0)]), []) == []
