import math

import numpy as np


NODATA = -9999.0                         # Raster cell with no contributing points
WINDOW_SIZE = 500                        # Viewer window side (px)

# GRIDDING

DEFAULT_POINT_DENSITY = 5                # Average points per grid cell

# GROUND FIND

DEFAULT_SLOPE_THRESHOLD = 0.5            # Max rise between neighbours kept as same type
THRESHOLD_STEP = 0.05                    # +/- step for the slope threshold
UNCLASSIFIED = -1
BUILDING = 0
GROUND = 1

# HILL SHADE

_S = math.sqrt(1.0 / 3.0)
SUN_INCIDENCE = np.array([_S, _S, -_S])  # Fixed unit sun vector (raster-local frame)
Z_SCREEN_SCALE = 1.5                     # Vertical squash of the display cube

# CAMERA

TRANSLATE_STEP = 0.1                     # Cumulative translation step
ROTATE_STEP = 5.0                        # Euler angle step (degrees)
ORTHO_POS = (0.0, 0.0, -7.0)             # 2D preset: straight above
ORTHO_THETA = (0.0, 0.0, 0.0)
PERSP_POS = (0.0, 0.0, -2.0)             # 3D preset: from above at 45 degrees
PERSP_THETA = (-45.0, 0.0, 0.0)

# ASPRS CLASSES

CODE_NEVER_CLASSIFIED = 0
CODE_UNASSIGNED = 1
CODE_GROUND = 2
CODES_VEGETATION = (3, 4, 5)
CODE_BUILDING = 6
MAX_KNOWN_CODE = 18

# COLOURS (RGB in [0, 1])

GREEN = (0.0, 1.0, 0.0)
BLUE = (0.0, 0.0, 1.0)
WHITE = (1.0, 1.0, 1.0)
GRAY = (0.5, 0.5, 0.5)
YELLOW = (1.0, 1.0, 0.0)
MAGENTA = (1.0, 0.0, 1.0)
NODATA_SHADE = (1.0, 0.0, 0.6)           # Hill-shade colour of nodata triangles
BROWN = (0.647059, 0.164706, 0.164706)
DARK_BROWN = (0.36, 0.25, 0.20)
COPPER = (0.72, 0.45, 0.20)
ORANGE = (1.0, 0.5, 0.0)
WHEAT = (0.847059, 0.847059, 0.74902)
LIME_GREEN = (0.196078, 0.8, 0.196078)
FOREST_GREEN = (0.137255, 0.556863, 0.137255)
MEDIUM_FOREST_GREEN = (0.419608, 0.556863, 0.137255)

LABEL_COLORS = {
    GROUND: BROWN,
    BUILDING: WHITE,
    UNCLASSIFIED: GREEN,
}

CODE_COLORS = {
    CODE_NEVER_CLASSIFIED: YELLOW,
    1: ORANGE,                # unassigned
    2: DARK_BROWN,            # ground
    3: LIME_GREEN,            # low vegetation
    4: MEDIUM_FOREST_GREEN,   # medium vegetation
    5: FOREST_GREEN,          # high vegetation
    6: COPPER,                # building
    7: MAGENTA,               # low point (noise)
    8: WHITE,                 # reserved
    9: BLUE,                  # water
    10: GRAY,                 # rail
    11: GRAY,                 # road surface
    12: WHITE,                # reserved
    13: GRAY,                 # wire guard
    14: GRAY,                 # wire conductor
    15: WHEAT,                # transmission tower
    16: BLUE,                 # wire connector
    17: BLUE,                 # bridge deck
    18: MAGENTA,              # high noise
}

# OUTPUT

LOG_FORMAT = "%(levelname)s: %(message)s"
MAX_POINTS_PLOT = 200_000                # Max raw points drawn in the point view
rng = np.random.default_rng(0)           # Random generator for plotting
