"""Unit tests for Model/grid_state.py: regeneration, clamping and line identity."""
import pytest

from Model.errors import InputError
from Model.grid_state import CellRectangle, GridLine, GridModel, ImageBounds, clamp_position, regenerate_lines


@pytest.mark.parametrize("rows,columns,w,h", [(2, 2, 100, 100), (3, 3, 300, 300), (4, 7, 640, 480), (5, 2, 33, 17)])
def test_regenerate_count_and_spacing(rows, columns, w, h):
    bounds = ImageBounds(w, h)
    lines = regenerate_lines(rows, columns, bounds)

    horizontal = [ln for ln in lines if ln.is_horizontal]
    vertical = [ln for ln in lines if not ln.is_horizontal]
    assert len(lines) == (rows - 1) + (columns - 1)
    assert len(horizontal) == rows - 1
    assert len(vertical) == columns - 1

    for i, ln in enumerate(horizontal, start=1):
        assert ln.position == pytest.approx(i / rows * h)
        assert 0 <= ln.position <= h
    for j, ln in enumerate(vertical, start=1):
        assert ln.position == pytest.approx(j / columns * w)
        assert 0 <= ln.position <= w


def test_horizontal_lines_are_stored_first():
    lines = regenerate_lines(3, 3, ImageBounds(300, 300))
    assert [ln.is_horizontal for ln in lines] == [True, True, False, False]


def test_one_by_one_grid_has_no_lines():
    model = GridModel(1, 1, ImageBounds(10, 10))
    assert model.is_empty
    assert len(model) == 0


def test_update_line_clamps_to_bounds():
    model = GridModel(3, 3, ImageBounds(300, 200))
    lines = model.update_line(2, 500)      # first vertical line
    assert lines[2].position == 300
    lines = model.update_line(2, -40)
    assert lines[2].position == 0
    lines = model.update_line(0, 1e9)      # first horizontal line, bound is the height
    assert lines[0].position == 200


def test_update_line_is_idempotent_at_the_boundary():
    model = GridModel(2, 2, ImageBounds(50, 50))
    first = model.update_line(1, 999)[1].position
    second = model.update_line(1, first)[1].position
    assert first == second == 50


def test_update_line_leaves_other_lines_untouched_and_unsorted():
    model = GridModel(4, 2, ImageBounds(100, 400))
    before = model.lines
    # drag the first horizontal line past both neighbours
    after = model.update_line(0, 350)

    assert after[0] == GridLine(350.0, True)
    assert after[1:] == before[1:]
    # storage order is not re-sorted
    assert [ln.position for ln in after if ln.is_horizontal] == [350.0, 200.0, 300.0]


def test_lines_property_is_a_snapshot():
    model = GridModel(2, 2, ImageBounds(10, 10))
    snap = model.lines
    snap.clear()
    assert len(model) == 2


def test_regenerate_discards_custom_positions():
    bounds = ImageBounds(300, 300)
    model = GridModel(3, 3, bounds)
    model.update_line(0, 5)
    model.regenerate(3, 3, bounds)
    assert model[0].position == pytest.approx(100)


def test_reset_uses_current_rows_and_columns():
    model = GridModel(2, 4, ImageBounds(400, 100))
    model.update_line(1, 7)
    lines = model.reset()
    assert lines == regenerate_lines(2, 4, ImageBounds(400, 100))


def test_reset_without_image_gives_empty_grid():
    model = GridModel()
    assert model.reset() == []


def test_clamp_position():
    assert clamp_position(-1, 10) == 0
    assert clamp_position(11, 10) == 10
    assert clamp_position(3.5, 10) == 3.5


def test_negative_bounds_rejected():
    with pytest.raises(InputError):
        ImageBounds(-1, 10)


def test_gridline_dict_round_trip_uses_wire_names():
    d = GridLine(12.5, True).to_dict()
    assert d == {"position": 12.5, "isHorizontal": True}
    assert GridLine.from_dict(d) == GridLine(12.5, True)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_from_dict_rejects_non_finite(value):
    with pytest.raises(InputError):
        GridLine.from_dict({"position": value, "isHorizontal": True})
    with pytest.raises(InputError):
        CellRectangle.from_dict({"x": 0, "y": value, "width": 1, "height": 1})
