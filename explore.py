import os
import sys
import warnings
from argparse import ArgumentParser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np
import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

from fixedfractal import (
    FractalError,
    FractalParameters,
    Julia,
    Mandelbrot,
    ViewState,
    apply_command,
    colour_grid,
    get_backend,
    render_frame,
    render_iterations,
    unpack_rgb,
)
from fixedfractal.colormap import STATUS_BACKGROUND, STATUS_TEXT, split_color
from fixedfractal.navigation import PRESETS, parse_command

gpus = tf.config.list_physical_devices('GPU')
if gpus:
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
        DEVICE = '/GPU:0'
        log("GPU found, using %s" % gpus[0].name)
    except RuntimeError as e:
        if VERBOSE:
            print(e)
        DEVICE = '/CPU:0'
else:
    DEVICE = '/CPU:0'
    log("No GPU found, using CPU")


@dataclass(frozen=True)
class ExplorerConfig:
    width: int
    height: int
    max_iterations: int
    mode: object
    backend: str
    engine: str
    center_re: float
    center_im: float
    frames: int
    commands: tuple
    status_height: int
    show: bool


def build_parser():
    parser = ArgumentParser(description='Explore Mandelbrot and Julia sets rendered with 4.29 fixed-point arithmetic.')

    parser.add_argument('--width', type=int, dest='width', metavar='WIDTH', default=800,
                        help='width of the raster in pixels')

    parser.add_argument('--height', type=int, dest='height', metavar='HEIGHT', default=800,
                        help='height of the raster in pixels; also sets the base zoom scale')

    parser.add_argument('--max-iterations', type=int, dest='max_iterations', metavar='MAX_ITERATIONS', default=50,
                        help='iteration budget per pixel')

    parser.add_argument('--mode', choices=['mandelbrot', 'julia'], default=None,
                        help='recurrence to iterate; defaults to the preset\'s recurrence')

    parser.add_argument('--preset', choices=sorted(PRESETS), default=None,
                        help='starting center (and Julia constant) taken from a named location')

    parser.add_argument('--center-re', type=float, dest='center_re', metavar='CENTER_RE', default=None,
                        help='real part of the starting center; overrides the preset')

    parser.add_argument('--center-im', type=float, dest='center_im', metavar='CENTER_IM', default=None,
                        help='imaginary part of the starting center; overrides the preset')

    parser.add_argument('--k-re', type=float, dest='k_re', metavar='K_RE', default=None,
                        help='real part of the Julia constant')

    parser.add_argument('--k-im', type=float, dest='k_im', metavar='K_IM', default=None,
                        help='imaginary part of the Julia constant')

    parser.add_argument('--backend', choices=['fixed', 'float64'], default='fixed',
                        help='numeric representation used while iterating')

    parser.add_argument('--engine', choices=['tensor', 'pixel'], default='tensor',
                        help='"tensor" iterates the whole frame with TensorFlow, "pixel" scans one point at a time')

    parser.add_argument('--frames', type=int, dest='frames', metavar='FRAMES', default=1,
                        help='number of frames to run')

    parser.add_argument('--commands', type=str, default='',
                        help='comma separated commands, one consumed per frame (keys q z r a d w s or names such as pan-left); empty entries do nothing')

    parser.add_argument('--status-height', type=int, dest='status_height', metavar='PIXELS', default=15,
                        help='height of the status strip drawn under the fractal')

    parser.add_argument('--show', action='store_true',
                        help='open the last frame in the default image viewer')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_config(opt, parser: ArgumentParser) -> ExplorerConfig:
    if opt.width <= 0 or opt.height <= 0:
        parser.error('--width and --height must be positive.')
    if opt.max_iterations < 0:
        parser.error('--max-iterations must not be negative.')
    if opt.frames < 0:
        parser.error('--frames must not be negative.')
    if opt.status_height < 0:
        parser.error('--status-height must not be negative.')

    mode_name = opt.mode
    preset_name = opt.preset
    if preset_name is None:
        preset_name = 'julia' if mode_name == 'julia' else 'valley'
    preset = PRESETS[preset_name]
    if mode_name is None:
        mode_name = 'julia' if preset.k_re is not None else 'mandelbrot'

    if mode_name == 'julia':
        default_k = PRESETS['julia']
        k_re = opt.k_re if opt.k_re is not None else (preset.k_re if preset.k_re is not None else default_k.k_re)
        k_im = opt.k_im if opt.k_im is not None else (preset.k_im if preset.k_im is not None else default_k.k_im)
        mode = Julia(k_re, k_im)
    else:
        if opt.k_re is not None or opt.k_im is not None:
            parser.error('--k-re and --k-im are only valid in julia mode.')
        mode = Mandelbrot()

    commands = tuple(token.strip() for token in opt.commands.split(',')) if opt.commands else ()
    for token in commands:
        if token and parse_command(token) is None:
            warnings.warn(f"Ignoring unrecognised command '{token}'.", UserWarning, stacklevel=2)

    return ExplorerConfig(
        width=opt.width,
        height=opt.height,
        max_iterations=opt.max_iterations,
        mode=mode,
        backend=opt.backend,
        engine=opt.engine,
        center_re=opt.center_re if opt.center_re is not None else preset.center_re,
        center_im=opt.center_im if opt.center_im is not None else preset.center_im,
        frames=opt.frames,
        commands=commands,
        status_height=opt.status_height,
        show=bool(opt.show),
    )


_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeMono.ttf",
)


def _load_status_font(status_height: int) -> PIL.ImageFont.ImageFont:
    target_size = max(8, status_height - 3)
    for path in _FONT_CANDIDATES:
        font_path = Path(path)
        if font_path.exists():
            try:
                return PIL.ImageFont.truetype(str(font_path), target_size)
            except OSError:
                continue
    return PIL.ImageFont.load_default()


def status_line(config: ExplorerConfig, state: ViewState) -> str:
    title = "Software Julia" if isinstance(config.mode, Julia) else "Software Mandelbrot"
    return "%s; Zoom: %d;  cRe: %f; cIm: %f" % (title, state.zoom_level, state.center_re, state.center_im)


def render_packed(config: ExplorerConfig, state: ViewState) -> np.ndarray:
    """Render one frame into a ``(height, width)`` array of packed colours."""

    params = FractalParameters(config.max_iterations)
    viewport = state.viewport()
    backend = get_backend(config.backend)

    if config.engine == 'tensor':
        grid = render_iterations(viewport, params, config.mode, backend=backend, device=DEVICE)
        return colour_grid(grid)

    packed = np.zeros((config.height, config.width), dtype=np.uint32)

    def plot(x, y, color):
        packed[y, x] = color

    render_frame(viewport, params, config.mode, plot, backend=backend)
    return packed


def compose_frame(config: ExplorerConfig, state: ViewState, packed: np.ndarray) -> PIL.Image.Image:
    """Place the fractal above a status strip describing the current view."""

    image = PIL.Image.new("RGB", (config.width, config.height + config.status_height), split_color(STATUS_BACKGROUND))
    image.paste(PIL.Image.fromarray(unpack_rgb(packed)), (0, 0))

    if config.status_height > 0:
        draw = PIL.ImageDraw.Draw(image)
        font = _load_status_font(config.status_height)
        draw.text(
            (0, config.height + 1),
            status_line(config, state),
            font=font,
            fill=split_color(STATUS_TEXT),
        )
    return image


def run(config: ExplorerConfig) -> Optional[PIL.Image.Image]:
    """Drive the frame loop and return the last successfully rendered frame."""

    state = ViewState.initial(config.width, config.height, config.center_re, config.center_im)
    image = None

    for i in range(config.frames):
        command = config.commands[i] if i < len(config.commands) else None
        state = apply_command(state, command)
        if state.quit:
            log("quit requested at frame %d" % i)
            break

        try:
            packed = render_packed(config, state)
        except FractalError as exc:
            # The previous frame stays on display.
            print(f"Skipping frame {i}: {exc}")
        else:
            image = compose_frame(config, state, packed)

        print("frame {0} out of {1}: {2}".format(i, config.frames, status_line(config, state)), end='\r')
        state = state.advance()

    if config.frames:
        print()
    return image


def main():
    parser = build_parser()
    opt = parser.parse_args()

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = resolve_config(opt, parser)
    log("TensorFlow version: %s" % tf.__version__)
    log("mode=%s backend=%s engine=%s" % (type(config.mode).__name__, config.backend, config.engine))

    image = run(config)
    if config.show and image is not None:
        image.show(title="Mandelbrot")


if __name__ == '__main__':
    main()
