import numpy as np
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from config import MAX_POINTS_PLOT, WINDOW_SIZE, rng
from render_adapter import PointBatch, TriangleBatch


def display_shades(batch: TriangleBatch) -> np.ndarray:
    # horizontal faces shade to -sun_z; negate so they show bright
    shades = np.clip(-batch.colors, 0.0, 1.0)
    return np.where(batch.nodata[:, None], batch.colors, shades)


def draw_triangles(ax, batch: TriangleBatch, fill: bool):
    if len(batch) == 0:
        return None
    cols = display_shades(batch)
    if fill:
        pcoll = Poly3DCollection(
            batch.vertices,
            facecolors=cols,
            edgecolors="none",
            linewidths=0.0
        )
    else:
        pcoll = Poly3DCollection(
            batch.vertices,
            facecolors="none",
            edgecolors=cols,
            linewidths=0.3
        )
    ax.add_collection3d(pcoll)
    return pcoll


def draw_points(ax, batch: PointBatch, size: float = 1.0):
    if len(batch) == 0:
        return None
    xyz, cols = batch.xyz, batch.colors
    if len(xyz) > MAX_POINTS_PLOT:
        sel = rng.choice(len(xyz), size=MAX_POINTS_PLOT, replace=False)
        xyz, cols = xyz[sel], cols[sel]
    return ax.scatter(xyz[:, 0], xyz[:, 1], xyz[:, 2],
                      c=cols, s=size, marker=".", depthshade=False)


def apply_camera(ax, camera):
    """
    pos is the cumulative translation, theta the euler angles (degrees).
    theta = 0 looks straight down with x to the right and y up.
    """
    ortho = camera.projection == "ortho"
    ax.set_proj_type("ortho" if ortho else "persp")
    ax.view_init(
        elev=90.0 + camera.theta[0],
        azim=-90.0 + camera.theta[2],
        roll=camera.theta[1]
    )
    half = 1.0 if ortho else max(-camera.pos[2], 0.1) / 2.0
    ax.set_xlim(-half - camera.pos[0], half - camera.pos[0])
    ax.set_ylim(-half - camera.pos[1], half - camera.pos[1])
    ax.set_zlim(-1.0, 1.0)


def new_figure():
    # the viewer owns the keyboard
    for key in list(plt.rcParams):
        if key.startswith("keymap."):
            plt.rcParams[key] = []
    dpi = 100
    fig = plt.figure(figsize=(WINDOW_SIZE / dpi, WINDOW_SIZE / dpi), dpi=dpi)
    fig.patch.set_facecolor("black")
    ax = fig.add_subplot(111, projection="3d")
    return fig, ax


def draw_scene(ax, scene, camera, fill: bool, title: str = ""):
    ax.cla()
    ax.set_facecolor("black")
    ax.set_axis_off()
    ax.set_box_aspect((1, 1, 1))
    if isinstance(scene, TriangleBatch):
        draw_triangles(ax, scene, fill)
    else:
        draw_points(ax, scene)
    apply_camera(ax, camera)
    if title:
        ax.set_title(title, color="white", fontsize=9)
