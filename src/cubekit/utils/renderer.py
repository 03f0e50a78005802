"""
Snapshot renderer for the cube.

Draws render records (position + per-face color) as sticker quads with
matplotlib's Poly3DCollection and returns PIL images. Scene Y is up, so
cube coordinates (x, y, z) are drawn at plot coordinates (x, -z, y).
"""

import io
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.colors import to_rgba
from mpl_toolkits.mplot3d.art3d import Poly3DCollection
from PIL import Image, ImageDraw, ImageFont

from cubekit.core.base import FACE_NORMALS
from cubekit.core.config import CubeConfig, RenderConfig


# Named camera angles as (elev, azim) in plot space
VIEW_ANGLES: Dict[str, Tuple[float, float]] = {
    "front": (0.0, -90.0),
    "right": (0.0, 0.0),
    "top": (90.0, -90.0),
    "perspective": (25.0, -55.0),
}

DEFAULT_VIEW_ORDER = ("front", "right", "top", "perspective")

HIGHLIGHT_EDGE = "#FFFF00"


def to_plot_coords(point: Sequence[float]) -> np.ndarray:
    """Cube space (Y up) -> matplotlib space (Z up)."""
    x, y, z = point
    return np.array([x, -z, y], dtype=float)


def sticker_quad(center: Sequence[float], face: str, size: float) -> np.ndarray:
    """
    Corners of the square covering `face` of a piece centered at `center`.

    Returns:
        4x3 array in plot coordinates, counter-clockwise seen from outside
    """
    normal = np.array(FACE_NORMALS[face], dtype=float)
    half = size / 2.0
    # Two in-plane axes
    u = np.roll(normal, 1)
    v = np.cross(normal, u)
    c = np.asarray(center, dtype=float) + normal * half
    corners = [
        c + half * (-u - v),
        c + half * (u - v),
        c + half * (u + v),
        c + half * (-u + v),
    ]
    return np.array([to_plot_coords(p) for p in corners])


def figure_to_image(fig: plt.Figure, dpi: int) -> Image.Image:
    """Rasterize a figure to an RGB PIL image and close it."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi)
    buf.seek(0)
    img = Image.open(buf).convert("RGB")
    plt.close(fig)
    return img


class CubeRenderer:
    """Matplotlib renderer for cube render records."""

    def __init__(self, cube_config: Optional[CubeConfig] = None,
                 render_config: Optional[RenderConfig] = None):
        self.cube_config = cube_config or CubeConfig()
        self.render_config = render_config or RenderConfig()

    def draw(self, ax, records: List[Dict], highlight: Optional[int] = None,
             elev: Optional[float] = None, azim: Optional[float] = None,
             title: Optional[str] = None) -> None:
        """Draw every sticker of `records` onto a 3D axes."""
        size = self.cube_config.piece_size * self.cube_config.piece_spacing
        filler = self.cube_config.filler_color
        quads, facecolors, edgecolors, linewidths = [], [], [], []

        for record in records:
            selected = highlight is not None and record["index"] == highlight
            for face, color in record["colors"].items():
                if color is None or color == filler:
                    if not self.render_config.show_filler:
                        continue
                    color = filler
                quads.append(sticker_quad(record["position"], face, size))
                facecolors.append(to_rgba(color))
                edgecolors.append(HIGHLIGHT_EDGE if selected else "black")
                linewidths.append(2.5 if selected else 0.8)

        ax.add_collection3d(Poly3DCollection(
            quads,
            facecolors=facecolors,
            edgecolors=edgecolors,
            linewidths=linewidths,
        ))

        extent = 1.5 * self.cube_config.piece_spacing
        ax.set_xlim([-extent, extent])
        ax.set_ylim([-extent, extent])
        ax.set_zlim([-extent, extent])
        ax.set_box_aspect((1, 1, 1))
        ax.set_axis_off()
        ax.view_init(
            elev=self.render_config.elev if elev is None else elev,
            azim=self.render_config.azim if azim is None else azim,
        )
        if title:
            ax.set_title(title)

    def render_figure(self, records: List[Dict], highlight: Optional[int] = None,
                      elev: Optional[float] = None, azim: Optional[float] = None,
                      title: Optional[str] = None) -> plt.Figure:
        fig = plt.figure(figsize=self.render_config.figsize)
        ax = fig.add_subplot(111, projection="3d")
        self.draw(ax, records, highlight=highlight, elev=elev, azim=azim, title=title)
        return fig

    def render_single_view(self, records: List[Dict], view: Optional[str] = None,
                           highlight: Optional[int] = None,
                           title: Optional[str] = None) -> Image.Image:
        """Render one camera angle. `view=None` uses the configured elev/azim."""
        if view is None:
            elev, azim = None, None
        else:
            if view not in VIEW_ANGLES:
                raise ValueError(f"Unknown view '{view}', expected one of {', '.join(VIEW_ANGLES)}")
            elev, azim = VIEW_ANGLES[view]
        fig = self.render_figure(records, highlight=highlight, elev=elev, azim=azim, title=title)
        image = figure_to_image(fig, self.render_config.dpi)
        target = (self.render_config.image_width, self.render_config.image_height)
        if image.size != target:
            image = image.resize(target)
        return image

    def render_multi_view(self, records: List[Dict],
                          views: Sequence[str] = DEFAULT_VIEW_ORDER,
                          highlight: Optional[int] = None) -> Image.Image:
        """Render several views and tile them two per row."""
        width, height = self.render_config.image_width, self.render_config.image_height
        cols = 2
        rows = (len(views) + cols - 1) // cols
        combined = Image.new("RGB", (width * cols, height * rows), color="white")

        for i, view in enumerate(views):
            image = self.render_single_view(records, view=view, highlight=highlight)
            combined.paste(self._add_view_label(image, view), ((i % cols) * width, (i // cols) * height))
        return combined

    def render(self, records: List[Dict], highlight: Optional[int] = None,
               multi_view: Optional[bool] = None, title: Optional[str] = None) -> Image.Image:
        if multi_view is None:
            multi_view = self.render_config.multi_view
        if multi_view:
            return self.render_multi_view(records, highlight=highlight)
        return self.render_single_view(records, highlight=highlight, title=title)

    def _add_view_label(self, image: Image.Image, label: str) -> Image.Image:
        """Stamp the view name in the top-left corner."""
        labeled_image = image.copy()
        draw = ImageDraw.Draw(labeled_image)
        font = ImageFont.load_default()

        text_bbox = draw.textbbox((0, 0), label.upper(), font=font)
        text_width = text_bbox[2] - text_bbox[0]
        text_height = text_bbox[3] - text_bbox[1]

        padding = 4
        draw.rectangle(
            [5, 5, 5 + text_width + 2 * padding, 5 + text_height + 2 * padding],
            fill="black", outline="white",
        )
        draw.text((5 + padding, 5 + padding), label.upper(), fill="white", font=font)
        return labeled_image


def save_image(image: Image.Image, path: str) -> str:
    """Save a rendered snapshot as PNG."""
    image.save(path, format="PNG")
    return path
