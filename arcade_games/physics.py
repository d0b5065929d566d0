"""Vector and collision helpers shared by the arcade games.

All vectors are numpy float arrays of shape (2,). Screen coordinates are
used throughout: x grows to the right, y grows downwards.
"""
import numpy as np


EPSILON = 1e-9


def vec(x, y):
    return np.array([x, y], dtype=float)


def normalize(v):
    v = np.asarray(v, dtype=float)
    length = np.linalg.norm(v)
    if length < EPSILON:
        return np.zeros(2)
    return v / length


def closest_point_on_segment(p, a, b):
    """Returns the point of segment ab nearest to p."""
    p = np.asarray(p, dtype=float)
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    ab = b - a
    ab_sq = float(np.dot(ab, ab))
    if ab_sq < EPSILON:
        return a.copy()
    t = float(np.dot(p - a, ab)) / ab_sq
    t = max(0.0, min(1.0, t))  # Clamp to segment
    return a + ab * t


def segment_circle_overlap(a, b, center, radius):
    closest = closest_point_on_segment(center, a, b)
    dist_vec = closest - np.asarray(center, dtype=float)
    return float(np.dot(dist_vec, dist_vec)) < radius * radius


def reflect(velocity, normal, restitution):
    """Reverses the normal component of velocity, scaled by restitution.

    Velocities already moving away from the surface are returned unchanged.
    """
    velocity = np.asarray(velocity, dtype=float)
    v_dot_n = float(np.dot(velocity, normal))
    if v_dot_n >= 0:
        return velocity.copy()
    return velocity - (1 + restitution) * v_dot_n * np.asarray(normal, dtype=float)


def bounce_in_bounds(pos, vel, radius, left, top, right, bottom, restitution):
    """Keeps a circle inside a rectangle, reflecting the crossing velocity.

    pos and vel are modified in place. Returns True if any side was hit.
    """
    hit = False
    if pos[0] + radius > right:
        vel[0] *= -restitution
        pos[0] = right - radius
        hit = True
    if pos[0] - radius < left:
        vel[0] *= -restitution
        pos[0] = left + radius
        hit = True
    if pos[1] + radius > bottom:
        vel[1] *= -restitution
        pos[1] = bottom - radius
        hit = True
    if pos[1] - radius < top:
        vel[1] *= -restitution
        pos[1] = top + radius
        hit = True
    return hit


# --- Convex polygons ---

def polygon_area(vertices):
    """Signed shoelace area. Positive for counter-clockwise in screen space."""
    pts = np.asarray(vertices, dtype=float)
    x, y = pts[:, 0], pts[:, 1]
    # Screen y points down, so flip the sign to keep the usual orientation names
    return -0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def ensure_ccw(vertices):
    pts = np.asarray(vertices, dtype=float)
    if polygon_area(pts) < 0:
        return pts[::-1].copy()
    return pts.copy()


def _edge_cross(pts):
    edges = np.roll(pts, -1, axis=0) - pts
    nxt = np.roll(edges, -1, axis=0)
    return edges[:, 0] * nxt[:, 1] - edges[:, 1] * nxt[:, 0]


def is_convex(vertices):
    pts = np.asarray(vertices, dtype=float)
    if len(pts) < 3:
        return False
    cross = _edge_cross(pts)
    cross = cross[np.abs(cross) > EPSILON]
    if len(cross) == 0:
        return False
    if not (np.all(cross > 0) or np.all(cross < 0)):
        return False

    # A star turns the same way at every corner, so also require every
    # vertex to lie on one side of every edge
    edges = np.roll(pts, -1, axis=0) - pts
    rel = pts[np.newaxis, :, :] - pts[:, np.newaxis, :]
    side = edges[:, np.newaxis, 0] * rel[:, :, 1] - edges[:, np.newaxis, 1] * rel[:, :, 0]
    return bool(np.all(side >= -EPSILON) or np.all(side <= EPSILON))


def polygon_centroid(vertices):
    return np.asarray(vertices, dtype=float).mean(axis=0)


def point_in_convex_polygon(point, vertices):
    """True when point lies inside (or on the boundary of) a convex polygon."""
    pts = np.asarray(vertices, dtype=float)
    p = np.asarray(point, dtype=float)
    edges = np.roll(pts, -1, axis=0) - pts
    to_p = p - pts
    cross = edges[:, 0] * to_p[:, 1] - edges[:, 1] * to_p[:, 0]
    return bool(np.all(cross >= -EPSILON) or np.all(cross <= EPSILON))


def closest_point_on_polygon(point, vertices):
    """Nearest boundary point of a polygon and its squared distance."""
    pts = np.asarray(vertices, dtype=float)
    best, best_sq = None, float("inf")
    for i in range(len(pts)):
        c = closest_point_on_segment(point, pts[i], pts[(i + 1) % len(pts)])
        d = c - point
        d_sq = float(np.dot(d, d))
        if d_sq < best_sq:
            best, best_sq = c, d_sq
    return best, best_sq


def circle_polygon_overlap(center, radius, vertices):
    center = np.asarray(center, dtype=float)
    if point_in_convex_polygon(center, vertices):
        return True
    _, dist_sq = closest_point_on_polygon(center, vertices)
    return dist_sq < radius * radius


def resolve_circle_polygon(pos, vel, radius, vertices, restitution):
    """Pushes a circle out of a convex polygon and bounces its velocity.

    pos and vel are modified in place. Returns True on contact.
    """
    closest, dist_sq = closest_point_on_polygon(pos, vertices)
    inside = point_in_convex_polygon(pos, vertices)
    if not inside and dist_sq >= radius * radius:
        return False

    dist = np.sqrt(dist_sq)
    if dist > EPSILON:
        normal = (pos - closest) / dist
        if inside:
            normal = -normal
    else:
        # Centre sits on the boundary, push away from the polygon's centre
        normal = normalize(pos - polygon_centroid(vertices))
        if not normal.any():
            normal = vec(0.0, -1.0)

    pos[:] = closest + normal * radius
    vel[:] = reflect(vel, normal, restitution)
    return True
