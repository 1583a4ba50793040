"""Pan and zoom state carried between frames."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Optional, Union

from .viewport import Viewport

BASE_STEP = 0.01
REFERENCE_HEIGHT = 500.0
PAN_DISTANCE = 0.1


class Command(enum.Enum):
    QUIT = "quit"
    TOGGLE_ZOOM = "toggle-zoom"
    RESET = "reset"
    PAN_LEFT = "pan-left"
    PAN_RIGHT = "pan-right"
    PAN_UP = "pan-up"
    PAN_DOWN = "pan-down"


KEY_BINDINGS = {
    "q": Command.QUIT,
    "z": Command.TOGGLE_ZOOM,
    "r": Command.RESET,
    "a": Command.PAN_LEFT,
    "d": Command.PAN_RIGHT,
    "w": Command.PAN_UP,
    "s": Command.PAN_DOWN,
}


@dataclass(frozen=True)
class Preset:
    name: str
    center_re: float
    center_im: float
    k_re: Optional[float] = None
    k_im: Optional[float] = None


PRESETS = {
    "valley": Preset("valley", -0.76, -0.102),
    "recursive": Preset("recursive", -1.25, -0.18),
    "julia": Preset("julia", -0.15, -0.05, k_re=-0.5, k_im=0.65),
}


def parse_command(token: Union[Command, str, None]) -> Optional[Command]:
    """Decode a key letter or command name; anything unrecognised is ``None``."""

    if token is None or isinstance(token, Command):
        return token
    text = str(token).strip().lower()
    if text in KEY_BINDINGS:
        return KEY_BINDINGS[text]
    try:
        return Command(text)
    except ValueError:
        return None


def compute_step_size(image_height: int, zoom_level: float) -> float:
    """Plane distance covered by one pixel at ``zoom_level``."""

    return BASE_STEP / ((image_height / REFERENCE_HEIGHT) * zoom_level)


def compute_shift_pixels(image_height: int) -> int:
    """Pan distance in whole pixels, fixed at the unzoomed scale."""

    return int(PAN_DISTANCE / compute_step_size(image_height, 1))


@dataclass(frozen=True)
class ViewState:
    image_width: int
    image_height: int
    center_re: float
    center_im: float
    home_re: float
    home_im: float
    zoom_level: int = 1
    zoom_enabled: bool = False
    quit: bool = False

    @classmethod
    def initial(cls, image_width: int, image_height: int, center_re: float, center_im: float) -> "ViewState":
        return cls(
            image_width=image_width,
            image_height=image_height,
            center_re=center_re,
            center_im=center_im,
            home_re=center_re,
            home_im=center_im,
        )

    @property
    def step_size(self) -> float:
        return compute_step_size(self.image_height, self.zoom_level)

    @property
    def pan_step(self) -> float:
        return compute_shift_pixels(self.image_height) * self.step_size

    def viewport(self) -> Viewport:
        return Viewport(
            image_width=self.image_width,
            image_height=self.image_height,
            center_re=self.center_re,
            center_im=self.center_im,
            step_size=self.step_size,
        )

    def advance(self) -> "ViewState":
        """Apply the automatic per-frame zoom increment."""

        if not self.zoom_enabled:
            return self
        return replace(self, zoom_level=self.zoom_level + 1)


def apply_command(state: ViewState, command: Union[Command, str, None]) -> ViewState:
    command = parse_command(command)
    if command is None:
        return state

    if command is Command.QUIT:
        return replace(state, quit=True)
    if command is Command.TOGGLE_ZOOM:
        return replace(state, zoom_enabled=not state.zoom_enabled)
    if command is Command.RESET:
        return replace(state, zoom_level=1, zoom_enabled=False, center_re=state.home_re, center_im=state.home_im)

    delta = state.pan_step
    if command is Command.PAN_LEFT:
        return replace(state, center_re=state.center_re - delta)
    if command is Command.PAN_RIGHT:
        return replace(state, center_re=state.center_re + delta)
    if command is Command.PAN_UP:
        return replace(state, center_im=state.center_im + delta)
    return replace(state, center_im=state.center_im - delta)
