"""Tests for coordinate parsing and cell labels."""

import pytest

from salvo.engine.coordinates import (
    CoordinateStatus,
    format_coordinate,
    format_label,
    parse_coordinate,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [("A1", 0), ("B4", 13), ("J10", 99), ("c1", 20), ("  D5 ", 34), ("A01", 0)],
)
def test_parse_valid_coordinates(text: str, expected: int) -> None:
    parsed = parse_coordinate(text, 10)
    assert parsed.is_valid
    assert parsed.index == expected


@pytest.mark.parametrize("text", ["Z1A", "", "A", "11", "1A", "AA1", "A-1", "A1.5", "#3", "A 1"])
def test_parse_malformed_coordinates(text: str) -> None:
    parsed = parse_coordinate(text, 10)
    assert parsed.status is CoordinateStatus.MALFORMED
    assert parsed.index is None


@pytest.mark.parametrize("text", ["Z1", "K1", "A11", "A0", "J11"])
def test_parse_out_of_range_coordinates(text: str) -> None:
    parsed = parse_coordinate(text, 10)
    assert parsed.status is CoordinateStatus.OUT_OF_RANGE
    assert parsed.index is None


@pytest.mark.parametrize("text", ["A" + "1" * 5000, "B123", "C" + "9" * 40])
def test_parse_overlong_column_is_out_of_range(text: str) -> None:
    parsed = parse_coordinate(text, 10)
    assert parsed.status is CoordinateStatus.OUT_OF_RANGE
    assert parsed.index is None


def test_parse_leading_zeros_do_not_count_as_width() -> None:
    assert parse_coordinate("A" + "0" * 5000 + "7", 10).index == 6
    assert parse_coordinate("A000", 10).status is CoordinateStatus.OUT_OF_RANGE


def test_out_of_range_depends_on_grid_size() -> None:
    assert parse_coordinate("E5", 4).status is CoordinateStatus.OUT_OF_RANGE
    assert parse_coordinate("E5", 5).index == 24


def test_format_label_metadata() -> None:
    label = format_label(13, 10)
    assert label.row_letter == "B"
    assert label.column == 4
    assert not label.is_first_column
    assert not label.is_first_row
    assert label.coordinate == "B4"

    corner = format_label(0, 10)
    assert corner.is_first_column and corner.is_first_row

    left_edge = format_label(30, 10)
    assert left_edge.is_first_column and not left_edge.is_first_row


@pytest.mark.parametrize("grid_size", [1, 5, 10, 26])
def test_label_then_parse_returns_same_index(grid_size: int) -> None:
    for index in range(grid_size * grid_size):
        coordinate = format_label(index, grid_size).coordinate
        assert parse_coordinate(coordinate, grid_size).index == index
        assert format_coordinate(index, grid_size) == coordinate
