"""
neonspin - Shapes and palette
Static vertex/edge tables for the wireframe solids and the neon colors.
"""

import math
from enum import Enum

import numpy as np

TARGET_SIZE = 0.7


class ShapeType(Enum):
    TETRAHEDRON = "tetrahedron"
    CUBE = "cube"
    OCTAHEDRON = "octahedron"
    ICOSAHEDRON = "icosahedron"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def icon(self) -> str:
        return _ICONS[self]

    def vertices(self) -> np.ndarray:
        return _vertices(self)

    def edges(self) -> list[tuple[int, int]]:
        return list(_EDGES[self])

    def edge_segments(self) -> np.ndarray:
        """(2 * n_edges, 3) array of segment endpoints, pairwise."""
        verts = self.vertices()
        idx = np.array(self.edges(), dtype=int).reshape(-1)
        return verts[idx]


_ICONS = {
    ShapeType.TETRAHEDRON: "▲",
    ShapeType.CUBE: "◻︎",
    ShapeType.OCTAHEDRON: "◆",
    ShapeType.ICOSAHEDRON: "◉",
}

_EDGES = {
    ShapeType.TETRAHEDRON: [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)],
    ShapeType.CUBE: [(0, 1), (1, 2), (2, 3), (3, 0), (4, 5), (5, 6), (6, 7), (7, 4),
                     (0, 4), (1, 5), (2, 6), (3, 7)],
    ShapeType.OCTAHEDRON: [(0, 2), (0, 3), (0, 4), (0, 5), (1, 2), (1, 3), (1, 4), (1, 5),
                           (2, 4), (2, 5), (3, 4), (3, 5)],
    ShapeType.ICOSAHEDRON: [(0, 2), (0, 4), (0, 6), (0, 8), (0, 10), (1, 3), (1, 4), (1, 6),
                            (1, 9), (1, 11), (2, 5), (2, 7), (2, 8), (2, 10), (3, 5), (3, 7),
                            (3, 9), (3, 11), (4, 6), (4, 8), (4, 9), (5, 7), (5, 8), (5, 9),
                            (6, 10), (6, 11), (7, 10), (7, 11), (8, 9), (10, 11)],
}


def _vertices(shape: ShapeType) -> np.ndarray:
    if shape is ShapeType.TETRAHEDRON:
        a = TARGET_SIZE / 2.3
        pts = [(a, a, a), (-a, -a, a), (-a, a, -a), (a, -a, -a)]
    elif shape is ShapeType.CUBE:
        a = TARGET_SIZE / 2.0
        pts = [(-a, -a, -a), (a, -a, -a), (a, a, -a), (-a, a, -a),
               (-a, -a, a), (a, -a, a), (a, a, a), (-a, a, a)]
    elif shape is ShapeType.OCTAHEDRON:
        a = TARGET_SIZE / 1.4
        pts = [(a, 0, 0), (-a, 0, 0), (0, a, 0), (0, -a, 0), (0, 0, a), (0, 0, -a)]
    else:
        phi = (1 + math.sqrt(5)) / 2
        a = TARGET_SIZE / 2.8
        pts = [(0, a, phi * a), (0, a, -phi * a), (0, -a, phi * a), (0, -a, -phi * a),
               (a, phi * a, 0), (a, -phi * a, 0), (-a, phi * a, 0), (-a, -phi * a, 0),
               (phi * a, 0, a), (phi * a, 0, -a), (-phi * a, 0, a), (-phi * a, 0, -a)]
    return np.array(pts, dtype=float)


class NeonColor(Enum):
    CYAN = "Cyan"
    MAGENTA = "Magenta"
    YELLOW = "Electric Yellow"
    GREEN = "Neon Green"
    ORANGE = "Vivid Orange"
    PURPLE = "Electric Purple"

    @property
    def rgb(self) -> tuple[float, float, float]:
        return _RGB[self]

    @property
    def hex(self) -> str:
        r, g, b = (int(round(c * 255)) for c in self.rgb)
        return f"#{r:02x}{g:02x}{b:02x}"


_RGB = {
    NeonColor.CYAN: (0.0, 1.0, 1.0),
    NeonColor.MAGENTA: (1.0, 0.0, 1.0),
    NeonColor.YELLOW: (1.0, 1.0, 0.0),
    NeonColor.GREEN: (0.0, 1.0, 0.0),
    NeonColor.ORANGE: (1.0, 0.4, 0.0),
    NeonColor.PURPLE: (0.3, 0.0, 1.0),
}


def shape_from_name(name: str) -> ShapeType:
    try:
        return ShapeType((name or "").lower())
    except ValueError:
        return ShapeType.TETRAHEDRON


def color_from_name(name: str) -> NeonColor:
    for color in NeonColor:
        if name and name.lower() in (color.value.lower(), color.name.lower()):
            return color
    return NeonColor.CYAN


def _next(member, enum_cls):
    members = list(enum_cls)
    return members[(members.index(member) + 1) % len(members)]


def next_shape(shape: ShapeType) -> ShapeType:
    return _next(shape, ShapeType)


def next_color(color: NeonColor) -> NeonColor:
    return _next(color, NeonColor)
