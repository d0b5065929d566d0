"""JSON level descriptions for the ball game.

A level is a list of convex polygons plus the ball's start position::

    {
        "name": "level 1",
        "ball": {"x": 100, "y": 500},
        "polygons": [{"vertices": [[x, y], ...], "kind": "solid"}],
        "goal": {"vertices": [[x, y], ...]},
        "barriers": [{"vertices": [[x, y], ...]}]
    }

``goal`` and ``barriers`` are optional and may also be given inline in
``polygons`` through their ``kind``.
"""
import json
import logging
from pathlib import Path

import numpy as np

from arcade_games import physics


logger = logging.getLogger(__name__)

LEVEL_DIR = Path(__file__).with_name("levels")

SOLID = "solid"
GOAL = "goal"
BARRIER = "barrier"
KINDS = (SOLID, GOAL, BARRIER)


class LevelError(ValueError):
    pass


class Polygon:
    def __init__(self, vertices, kind=SOLID):
        if kind not in KINDS:
            raise LevelError(f"Unknown polygon kind {kind!r}")
        try:
            pts = np.array(vertices, dtype=float)
        except (TypeError, ValueError) as e:
            raise LevelError(f"Invalid vertices: {e}") from e
        if pts.ndim != 2 or pts.shape[1] != 2:
            raise LevelError("Vertices must be a list of [x, y] pairs")
        if len(pts) < 3:
            raise LevelError(f"A polygon needs at least 3 vertices, got {len(pts)}")
        if not np.all(np.isfinite(pts)):
            raise LevelError("Vertices must be finite numbers")
        if abs(physics.polygon_area(pts)) < physics.EPSILON:
            raise LevelError("Polygon has zero area")
        if not physics.is_convex(pts):
            raise LevelError("Polygon is not convex")

        self.vertices = physics.ensure_ccw(pts)
        self.kind = kind

    def __repr__(self):
        return f"Polygon(kind={self.kind!r}, vertices={self.vertices.tolist()})"

    @property
    def centroid(self):
        return physics.polygon_centroid(self.vertices)

    def contains(self, point):
        return physics.point_in_convex_polygon(point, self.vertices)

    def overlaps_circle(self, center, radius):
        return physics.circle_polygon_overlap(center, radius, self.vertices)

    def translate(self, dx, dy):
        self.vertices = self.vertices + np.array([dx, dy], dtype=float)

    def to_dict(self):
        return {"vertices": self.vertices.tolist(), "kind": self.kind}


class Level:
    def __init__(self, name="untitled", ball_start=(100, 500), polygons=None):
        self.name = name
        self.ball_start = np.array(ball_start, dtype=float)
        self.polygons = []
        for polygon in polygons or []:
            self.add_polygon(polygon)

    @property
    def solids(self):
        return [p for p in self.polygons if p.kind == SOLID]

    @property
    def barriers(self):
        return [p for p in self.polygons if p.kind == BARRIER]

    @property
    def goal(self):
        for p in self.polygons:
            if p.kind == GOAL:
                return p
        return None

    # --- Editing ---

    def add_polygon(self, polygon, kind=SOLID):
        if not isinstance(polygon, Polygon):
            polygon = Polygon(polygon, kind)
        if polygon.kind == GOAL and self.goal is not None:
            raise LevelError("A level can only have one goal")
        self.polygons.append(polygon)
        return polygon

    def polygon_at(self, point):
        """Topmost (last added) polygon containing point, or None."""
        for polygon in reversed(self.polygons):
            if polygon.contains(point):
                return polygon
        return None

    def move_polygon(self, polygon, dx, dy):
        if polygon not in self.polygons:
            raise LevelError("Polygon is not part of this level")
        polygon.translate(dx, dy)

    def delete_polygon(self, polygon):
        if polygon not in self.polygons:
            raise LevelError("Polygon is not part of this level")
        self.polygons.remove(polygon)

    # --- Serialization ---

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise LevelError("Level description must be a JSON object")
        try:
            ball = data["ball"]
            ball_start = (float(ball["x"]), float(ball["y"]))
        except KeyError as e:
            raise LevelError(f"Missing key {e} in level description") from e
        except (TypeError, ValueError) as e:
            raise LevelError(f"Invalid ball position: {e}") from e

        name = data.get("name", "untitled")
        if not isinstance(name, str):
            raise LevelError(f"Level name must be a string, got {type(name).__name__}")

        level = cls(name=name, ball_start=ball_start)
        for entry in _polygon_list(data, "polygons"):
            level.add_polygon(_polygon_from_dict(entry, SOLID))
        if data.get("goal") is not None:
            level.add_polygon(_polygon_from_dict(data["goal"], GOAL, fixed=True))
        for entry in _polygon_list(data, "barriers"):
            level.add_polygon(_polygon_from_dict(entry, BARRIER, fixed=True))
        return level

    def to_dict(self):
        data = {
            "name": self.name,
            "ball": {"x": float(self.ball_start[0]), "y": float(self.ball_start[1])},
            "polygons": [p.to_dict() for p in self.solids],
            "barriers": [p.to_dict() for p in self.barriers],
        }
        if self.goal is not None:
            data["goal"] = self.goal.to_dict()
        return data

    def to_json(self, indent=2):
        return json.dumps(self.to_dict(), indent=indent)


def _polygon_list(data, key):
    entries = data.get(key, [])
    if not isinstance(entries, list):
        raise LevelError(f"'{key}' must be a list of polygons")
    return entries


def _polygon_from_dict(entry, default_kind, fixed=False):
    """fixed: the section decides the kind, an inline kind must agree with it."""
    if not isinstance(entry, dict) or "vertices" not in entry:
        raise LevelError("Each polygon needs a 'vertices' list")
    kind = entry.get("kind", default_kind)
    if fixed and kind != default_kind:
        raise LevelError(f"Polygon of kind {kind!r} listed as {default_kind!r}")
    return Polygon(entry["vertices"], kind)


def resolve_level_path(path_or_name):
    """Existing paths are used as given, anything else is looked up in LEVEL_DIR."""
    path = Path(path_or_name)
    if not path.exists():
        filename = path.name if path.suffix == ".json" else f"{path.name}.json"
        path = LEVEL_DIR / filename
    return path


def load_level(path_or_name):
    path = resolve_level_path(path_or_name)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise LevelError(f"Level file not found: {path}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise LevelError(f"Level file {path} is not valid JSON: {e}") from e

    level = Level.from_dict(data)
    logger.debug("Loaded level %r from %s (%d polygons)", level.name, path, len(level.polygons))
    return level


def save_level(level, path):
    path = Path(path)
    path.write_text(level.to_json() + "\n", encoding="utf-8")
    logger.info("Saved level %r to %s", level.name, path)
