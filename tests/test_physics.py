import numpy as np
import pytest

from arcade_games import physics


SQUARE = np.array([[0, 0], [100, 0], [100, 100], [0, 100]], dtype=float)


def test_closest_point_on_segment_projects_and_clamps():
    a, b = (0, 0), (10, 0)
    assert np.allclose(physics.closest_point_on_segment((5, 5), a, b), (5, 0))
    assert np.allclose(physics.closest_point_on_segment((-3, 2), a, b), (0, 0))
    assert np.allclose(physics.closest_point_on_segment((15, 1), a, b), (10, 0))


def test_closest_point_on_degenerate_segment_is_the_endpoint():
    assert np.allclose(physics.closest_point_on_segment((4, 4), (1, 1), (1, 1)), (1, 1))


def test_segment_circle_overlap_is_strict():
    assert physics.segment_circle_overlap((0, 0), (10, 0), (5, 3), 4)
    assert not physics.segment_circle_overlap((0, 0), (10, 0), (5, 3), 3)


def test_normalize_keeps_zero_vector():
    assert np.allclose(physics.normalize((0, 0)), (0, 0))
    assert np.allclose(physics.normalize((3, 4)), (0.6, 0.8))


def test_reflect_applies_restitution_only_when_approaching():
    assert np.allclose(physics.reflect((0, 5), (0, -1), 0.8), (0, -4))
    assert np.allclose(physics.reflect((0, -5), (0, -1), 0.8), (0, -5))


def test_bounce_in_bounds_clamps_and_reverses():
    pos = np.array([795.0, 300.0])
    vel = np.array([3.0, 0.0])
    hit = physics.bounce_in_bounds(pos, vel, 20, 0, 0, 800, 600, 0.9)
    assert hit
    assert pos[0] == pytest.approx(780)
    assert vel[0] == pytest.approx(-2.7)
    assert vel[1] == 0


def test_bounce_in_bounds_leaves_inside_circle_alone():
    pos = np.array([400.0, 300.0])
    vel = np.array([1.0, 1.0])
    assert not physics.bounce_in_bounds(pos, vel, 20, 0, 0, 800, 600, 0.9)
    assert np.allclose(vel, (1, 1))


def test_orientation_and_convexity():
    # Right, down, left is clockwise on screen
    assert physics.polygon_area(SQUARE) == pytest.approx(-10000)
    ccw = physics.ensure_ccw(SQUARE)
    assert physics.polygon_area(ccw) > 0
    assert physics.polygon_area(physics.ensure_ccw(SQUARE[::-1])) > 0

    assert physics.is_convex(SQUARE)
    arrow = [[0, 0], [10, 5], [0, 10], [3, 5]]
    assert not physics.is_convex(arrow)
    assert not physics.is_convex([[0, 0], [5, 5], [10, 10]])


def test_star_polygon_is_not_convex():
    angles = np.radians([0, 144, 288, 72, 216])
    star = np.column_stack([100 + 50 * np.cos(angles), 100 + 50 * np.sin(angles)])
    assert not physics.is_convex(star)

    pentagon = np.column_stack([
        100 + 50 * np.cos(np.radians([0, 72, 144, 216, 288])),
        100 + 50 * np.sin(np.radians([0, 72, 144, 216, 288])),
    ])
    assert physics.is_convex(pentagon)


def test_point_in_convex_polygon():
    assert physics.point_in_convex_polygon((50, 50), SQUARE)
    assert physics.point_in_convex_polygon((0, 50), SQUARE)
    assert not physics.point_in_convex_polygon((150, 50), SQUARE)
    assert physics.point_in_convex_polygon((50, 50), SQUARE[::-1])


def test_resolve_circle_polygon_from_outside():
    pos = np.array([50.0, -10.0])
    vel = np.array([0.0, 5.0])
    assert physics.resolve_circle_polygon(pos, vel, 20, SQUARE, 0.8)
    assert np.allclose(pos, (50, -20))
    assert np.allclose(vel, (0, -4))


def test_resolve_circle_polygon_from_inside_uses_nearest_edge():
    pos = np.array([50.0, 10.0])
    vel = np.array([0.0, 5.0])
    assert physics.resolve_circle_polygon(pos, vel, 20, SQUARE, 0.8)
    assert np.allclose(pos, (50, -20))
    assert np.allclose(vel, (0, -4))


def test_resolve_circle_polygon_at_a_corner():
    pos = np.array([-10.0, -10.0])
    vel = np.array([1.0, 1.0])
    assert physics.resolve_circle_polygon(pos, vel, 20, SQUARE, 0.8)
    assert np.linalg.norm(pos) == pytest.approx(20)
    assert np.allclose(vel, (-0.8, -0.8))


def test_resolve_circle_polygon_without_contact():
    pos = np.array([50.0, -30.0])
    vel = np.array([0.0, 5.0])
    assert not physics.resolve_circle_polygon(pos, vel, 20, SQUARE, 0.8)
    assert np.allclose(pos, (50, -30))
    assert np.allclose(vel, (0, 5))


@pytest.mark.parametrize("start", [(50, 50), (99, 1), (-5, 50), (120, 110), (50, 95)])
def test_resolved_circle_ends_clear_of_polygon(start):
    pos = np.array(start, dtype=float)
    vel = np.array([2.0, 3.0])
    physics.resolve_circle_polygon(pos, vel, 20, SQUARE, 0.8)
    assert not physics.point_in_convex_polygon(pos, SQUARE)
    _, dist_sq = physics.closest_point_on_polygon(pos, SQUARE)
    assert np.sqrt(dist_sq) >= 20 - 1e-6
