import pytest

from fixedfractal.navigation import (
    Command,
    ViewState,
    apply_command,
    compute_shift_pixels,
    compute_step_size,
    parse_command,
)


@pytest.fixture
def state():
    return ViewState.initial(800, 800, -0.76, -0.102)


def test_step_size_scales_with_height_and_zoom():
    assert compute_step_size(500, 1) == pytest.approx(0.01)
    assert compute_step_size(800, 1) == pytest.approx(0.00625)
    assert compute_step_size(800, 4) == pytest.approx(0.0015625)


def test_shift_is_a_whole_number_of_pixels():
    shift = compute_shift_pixels(800)
    assert isinstance(shift, int)
    assert shift in (15, 16)


@pytest.mark.parametrize(
    "token, command",
    [
        ("q", Command.QUIT),
        ("z", Command.TOGGLE_ZOOM),
        ("r", Command.RESET),
        ("a", Command.PAN_LEFT),
        ("D", Command.PAN_RIGHT),
        ("w", Command.PAN_UP),
        ("s", Command.PAN_DOWN),
        ("pan-up", Command.PAN_UP),
        (Command.RESET, Command.RESET),
        ("x", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_command(token, command):
    assert parse_command(token) is command


def test_unknown_commands_are_no_ops(state):
    assert apply_command(state, "x") == state
    assert apply_command(state, None) == state


def test_quit_marks_the_state(state):
    assert apply_command(state, Command.QUIT).quit


def test_toggle_zoom_flips_and_advance_zooms_only_when_enabled(state):
    assert state.advance() == state

    zooming = apply_command(state, "z")
    assert zooming.zoom_enabled
    assert zooming.advance().zoom_level == 2
    assert apply_command(zooming, "z") == state


def test_pan_moves_by_pixels_so_distance_shrinks_with_zoom(state):
    left = apply_command(state, Command.PAN_LEFT)
    assert left.center_re == pytest.approx(state.center_re - compute_shift_pixels(800) * state.step_size)
    assert apply_command(left, Command.PAN_RIGHT).center_re == pytest.approx(state.center_re)

    up = apply_command(state, Command.PAN_UP)
    assert up.center_im > state.center_im
    assert apply_command(up, Command.PAN_DOWN).center_im == pytest.approx(state.center_im)

    zoomed = apply_command(state, "z").advance().advance().advance()
    assert zoomed.zoom_level == 4
    assert zoomed.pan_step == pytest.approx(state.pan_step / 4)


def test_reset_restores_home_and_is_idempotent(state):
    moved = state
    for command in ("z", "a", "w", "a"):
        moved = apply_command(moved, command)
    moved = moved.advance().advance()

    once = apply_command(moved, Command.RESET)
    twice = apply_command(once, Command.RESET)

    assert once == twice
    assert once.zoom_level == 1
    assert not once.zoom_enabled
    assert (once.center_re, once.center_im) == (state.home_re, state.home_im)


def test_viewport_uses_the_current_step(state):
    zoomed = apply_command(state, "z").advance()
    viewport = zoomed.viewport()

    assert (viewport.image_width, viewport.image_height) == (800, 800)
    assert (viewport.center_re, viewport.center_im) == (-0.76, -0.102)
    assert viewport.step_size == pytest.approx(compute_step_size(800, 2))
