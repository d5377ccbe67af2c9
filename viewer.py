import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np
import matplotlib.pyplot as plt

from config import (
    THRESHOLD_STEP, TRANSLATE_STEP, ROTATE_STEP,
    ORTHO_POS, ORTHO_THETA, PERSP_POS, PERSP_THETA
)
from errors import InternalInvariantError
from ground_model import GroundClassifier, assign_mycodes
from gridding import Rasters
from lidar_points import PointStore, WhichReturn, RETURN_FILTER_NAMES
from plots import draw_scene, new_figure
from render_adapter import (
    ColorMap, COLORMAP_NAMES, ground_view, hillshade_view, point_cloud_view
)


class ViewMode(Enum):
    GROUND = "ground"
    HILLSHADE = "hillshade"
    POINTS = "points"


class Command(Enum):
    TOGGLE_VIEW = "toggle-view"
    TOGGLE_POINTS = "toggle-points"
    RAISE_THRESHOLD = "raise-threshold"
    LOWER_THRESHOLD = "lower-threshold"
    TRANSLATE_X_POS = "translate+x"
    TRANSLATE_X_NEG = "translate-x"
    TRANSLATE_Y_POS = "translate+y"
    TRANSLATE_Y_NEG = "translate-y"
    TRANSLATE_Z_POS = "translate+z"
    TRANSLATE_Z_NEG = "translate-z"
    ROTATE_X_POS = "rotate+x"
    ROTATE_X_NEG = "rotate-x"
    ROTATE_Y_POS = "rotate+y"
    ROTATE_Y_NEG = "rotate-y"
    ROTATE_Z_POS = "rotate+z"
    ROTATE_Z_NEG = "rotate-z"
    PROJECTION_2D = "projection-2d"
    PROJECTION_3D = "projection-3d"
    TOGGLE_FILL = "toggle-fill"
    CYCLE_COLORMAP = "cycle-colormap"
    CYCLE_RETURN_FILTER = "cycle-return-filter"
    TOGGLE_GROUND = "toggle-ground"
    TOGGLE_VEGETATION = "toggle-vegetation"
    TOGGLE_BUILDING = "toggle-building"
    TOGGLE_OTHER = "toggle-other"
    QUIT = "quit"


KEY_BINDINGS = {
    "s": Command.TOGGLE_VIEW,
    "p": Command.TOGGLE_POINTS,
    "+": Command.RAISE_THRESHOLD,
    "-": Command.LOWER_THRESHOLD,
    "r": Command.TRANSLATE_X_POS,
    "l": Command.TRANSLATE_X_NEG,
    "u": Command.TRANSLATE_Y_POS,
    "d": Command.TRANSLATE_Y_NEG,
    "f": Command.TRANSLATE_Z_POS,      # forward (zoom in)
    "b": Command.TRANSLATE_Z_NEG,      # backward (zoom out)
    "x": Command.ROTATE_X_POS,
    "X": Command.ROTATE_X_NEG,
    "y": Command.ROTATE_Y_POS,
    "Y": Command.ROTATE_Y_NEG,
    "z": Command.ROTATE_Z_POS,
    "Z": Command.ROTATE_Z_NEG,
    "2": Command.PROJECTION_2D,
    "3": Command.PROJECTION_3D,
    "w": Command.TOGGLE_FILL,
    "c": Command.CYCLE_COLORMAP,
    "t": Command.CYCLE_RETURN_FILTER,
    "g": Command.TOGGLE_GROUND,
    "v": Command.TOGGLE_VEGETATION,
    "h": Command.TOGGLE_BUILDING,
    "o": Command.TOGGLE_OTHER,
    "q": Command.QUIT,
}

# command -> (axis, sign)
_TRANSLATIONS = {
    Command.TRANSLATE_X_POS: (0, 1), Command.TRANSLATE_X_NEG: (0, -1),
    Command.TRANSLATE_Y_POS: (1, 1), Command.TRANSLATE_Y_NEG: (1, -1),
    Command.TRANSLATE_Z_POS: (2, 1), Command.TRANSLATE_Z_NEG: (2, -1),
}
_ROTATIONS = {
    Command.ROTATE_X_POS: (0, 1), Command.ROTATE_X_NEG: (0, -1),
    Command.ROTATE_Y_POS: (1, 1), Command.ROTATE_Y_NEG: (1, -1),
    Command.ROTATE_Z_POS: (2, 1), Command.ROTATE_Z_NEG: (2, -1),
}
_CLASS_TOGGLES = {
    Command.TOGGLE_GROUND: "ground",
    Command.TOGGLE_VEGETATION: "vegetation",
    Command.TOGGLE_BUILDING: "building",
    Command.TOGGLE_OTHER: "other",
}


@dataclass
class Camera:
    pos: List[float] = field(default_factory=lambda: list(PERSP_POS))
    theta: List[float] = field(default_factory=lambda: list(PERSP_THETA))
    projection: str = "persp"

    def translate(self, axis: int, sign: int):
        self.pos[axis] = round(self.pos[axis] + sign * TRANSLATE_STEP, 6)

    def rotate(self, axis: int, sign: int):
        self.theta[axis] += sign * ROTATE_STEP

    def orthographic_top_down(self):
        self.projection = "ortho"
        self.pos = list(ORTHO_POS)
        self.theta = list(ORTHO_THETA)

    def perspective_from_above(self):
        self.projection = "persp"
        self.pos = list(PERSP_POS)
        self.theta = list(PERSP_THETA)


@dataclass
class TerrainSession:
    """Everything derived from one input file."""
    store: PointStore
    rasters: Rasters
    classifier: GroundClassifier
    mycodes: Optional[np.ndarray] = None

    def __post_init__(self):
        if self.mycodes is None:
            self.refresh_mycodes()

    def refresh_mycodes(self):
        self.mycodes = assign_mycodes(self.store, self.rasters, self.classifier.is_ground)


class ViewerController:
    """
    Single-threaded command handler. Holds the camera and view options;
    classifier state lives in the session's GroundClassifier.
    """

    def __init__(self, session: TerrainSession):
        self.session = session
        self.camera = Camera()
        self.view = ViewMode.GROUND
        self.fill = False
        self.colormap = ColorMap.ONE_COLOR
        self.which_return = WhichReturn.ALL_RETURN
        self.show = {"ground": True, "vegetation": True, "building": True, "other": True}
        self.running = True

    @property
    def threshold(self) -> float:
        return self.session.classifier.building_slope_threshold

    def handle_key(self, key: Optional[str]) -> bool:
        cmd = KEY_BINDINGS.get(key)
        if cmd is None:
            return False
        return self.handle(cmd)

    def handle(self, cmd: Command) -> bool:
        """Runs one command to completion; returns True when a redraw is needed."""
        if cmd == Command.QUIT:
            self.running = False
            return False

        if cmd == Command.TOGGLE_VIEW:
            self.view = ViewMode.GROUND if self.view == ViewMode.HILLSHADE else ViewMode.HILLSHADE
            logging.info(f"view: {self.view.value}")
        elif cmd == Command.TOGGLE_POINTS:
            self.view = ViewMode.GROUND if self.view == ViewMode.POINTS else ViewMode.POINTS
            logging.info(f"view: {self.view.value}")
        elif cmd in (Command.RAISE_THRESHOLD, Command.LOWER_THRESHOLD):
            step = THRESHOLD_STEP if cmd == Command.RAISE_THRESHOLD else -THRESHOLD_STEP
            self.session.classifier.set_threshold(self.threshold + step)
            self.session.refresh_mycodes()
            logging.info(f"Building slope threshold is now: {self.threshold:g}")
        elif cmd in _TRANSLATIONS:
            self.camera.translate(*_TRANSLATIONS[cmd])
        elif cmd in _ROTATIONS:
            self.camera.rotate(*_ROTATIONS[cmd])
        elif cmd == Command.PROJECTION_2D:
            self.camera.orthographic_top_down()
        elif cmd == Command.PROJECTION_3D:
            self.camera.perspective_from_above()
        elif cmd == Command.TOGGLE_FILL:
            self.fill = not self.fill
        elif cmd == Command.CYCLE_COLORMAP:
            self.colormap = ColorMap((self.colormap + 1) % len(ColorMap))
            logging.info(f"colormap: {COLORMAP_NAMES[self.colormap]}")
        elif cmd == Command.CYCLE_RETURN_FILTER:
            self.which_return = WhichReturn((self.which_return + 1) % len(WhichReturn))
            logging.info(RETURN_FILTER_NAMES[self.which_return])
        elif cmd in _CLASS_TOGGLES:
            name = _CLASS_TOGGLES[cmd]
            self.show[name] = not self.show[name]
            logging.info(f"{name} points: {'on' if self.show[name] else 'off'}")
        else:
            raise InternalInvariantError(f"unknown command {cmd!r}")
        return True

    def scene(self):
        s = self.session
        bounds = s.store.bounds
        if self.view == ViewMode.HILLSHADE:
            return hillshade_view(s.rasters, bounds)
        if self.view == ViewMode.GROUND:
            return ground_view(s.rasters, s.classifier.is_ground, bounds)
        if self.view == ViewMode.POINTS:
            return point_cloud_view(
                s.store, self.colormap, self.which_return, s.mycodes, **self.show
            )
        raise InternalInvariantError(f"unknown view mode {self.view!r}")

    def title(self) -> str:
        if self.view == ViewMode.POINTS:
            return f"points - {COLORMAP_NAMES[self.colormap]}"
        return f"{self.view.value} - slope threshold {self.threshold:g}"


class LidarViewWindow:
    """matplotlib front end: key presses go to the controller, then redraw."""

    def __init__(self, controller: ViewerController):
        self.controller = controller
        self.error = None
        self.fig, self.ax = new_figure()
        self.fig.canvas.mpl_connect("key_press_event", self.on_key)

    def redraw(self):
        c = self.controller
        draw_scene(self.ax, c.scene(), c.camera, c.fill, c.title())
        self.fig.canvas.draw_idle()

    def on_key(self, event):
        try:
            redraw = self.controller.handle_key(event.key)
            if redraw and self.controller.running:
                self.redraw()
        except InternalInvariantError as e:
            # matplotlib swallows callback exceptions, hand it to show()
            self.error = e
            self.controller.running = False
        if not self.controller.running:
            plt.close(self.fig)

    def show(self):
        self.redraw()
        plt.show()
        if self.error is not None:
            raise self.error
