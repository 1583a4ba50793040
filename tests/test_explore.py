import numpy as np
import pytest

import explore
from fixedfractal import FractalError, InvalidViewport, Julia, Mandelbrot, ViewState


def make_config(*args):
    parser = explore.build_parser()
    return explore.resolve_config(parser.parse_args(list(args)), parser)


SMALL = ("--width", "8", "--height", "6", "--max-iterations", "12", "--status-height", "10")


def test_defaults_follow_the_valley_preset():
    config = make_config()

    assert isinstance(config.mode, Mandelbrot)
    assert (config.center_re, config.center_im) == (-0.76, -0.102)
    assert (config.width, config.height, config.max_iterations) == (800, 800, 50)
    assert config.backend == "fixed"


def test_julia_mode_picks_up_its_preset_and_overrides():
    config = make_config("--mode", "julia", "--k-im", "0.7")

    assert config.mode == Julia(-0.5, 0.7)
    assert (config.center_re, config.center_im) == (-0.15, -0.05)


def test_julia_constant_is_rejected_for_mandelbrot():
    with pytest.raises(SystemExit):
        make_config("--mode", "mandelbrot", "--k-re", "0.1")


def test_non_positive_sizes_are_rejected():
    with pytest.raises(SystemExit):
        make_config("--width", "0")


def test_unknown_commands_warn():
    with pytest.warns(UserWarning):
        config = make_config("--commands", "z,?,a")
    assert config.commands == ("z", "?", "a")


def test_status_line():
    config = make_config()
    state = ViewState.initial(800, 800, -0.76, -0.102)

    assert explore.status_line(config, state) == "Software Mandelbrot; Zoom: 1;  cRe: -0.760000; cIm: -0.102000"


def test_pixel_and_tensor_engines_agree():
    pixel = make_config(*SMALL, "--engine", "pixel")
    tensor = make_config(*SMALL, "--engine", "tensor")
    state = ViewState.initial(8, 6, -0.5, 0.0)

    np.testing.assert_array_equal(explore.render_packed(pixel, state), explore.render_packed(tensor, state))


def test_run_produces_a_frame_with_status_strip():
    config = make_config(*SMALL, "--engine", "pixel", "--frames", "3", "--commands", "z,,a")

    image = explore.run(config)

    assert image.size == (8, 16)
    assert image.getpixel((0, 6)) == (0, 0, 255)


def test_quit_ends_the_loop_before_rendering():
    config = make_config(*SMALL, "--frames", "5", "--commands", "q")
    assert explore.run(config) is None


def test_precision_ceiling_is_an_invalid_viewport():
    config = make_config(*SMALL, "--engine", "pixel")
    state = ViewState(8, 6, 0.0, 0.0, 0.0, 0.0, zoom_level=10 ** 9)

    with pytest.raises(InvalidViewport):
        explore.render_packed(config, state)


def test_failed_frames_keep_the_previous_image(monkeypatch):
    config = make_config(*SMALL, "--engine", "pixel", "--frames", "2")
    real_render = explore.render_packed
    rendered = []

    def flaky_render(config, state):
        if rendered:
            raise FractalError("degenerate frame")
        rendered.append(state)
        return real_render(config, state)

    monkeypatch.setattr(explore, "render_packed", flaky_render)
    image = explore.run(config)

    assert image is not None
    assert len(rendered) == 1
