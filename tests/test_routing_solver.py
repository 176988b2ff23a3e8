from src.spoketowork.services.routing.matrix import build_distance_matrix
from src.spoketowork.services.routing.models import OptimizationWaypoint, Point, RouteEndpoint
from src.spoketowork.services.routing.solver import (
    build_path_points,
    nearest_neighbor_order,
    path_length,
    two_opt_improve,
)


def _matrix(start, waypoints, end):
    points = build_path_points(
        RouteEndpoint(latitude=start[0], longitude=start[1]),
        [OptimizationWaypoint(id=wid, name=wid, latitude=lat, longitude=lon) for wid, lat, lon in waypoints],
        RouteEndpoint(latitude=end[0], longitude=end[1]),
    )
    return build_distance_matrix(points)


def _length(order, matrix):
    lookup = {p.id: i for i, p in enumerate(matrix.points) if p.role == "waypoint"}
    path = [matrix.index_of_role("start"), *(lookup[w] for w in order), matrix.index_of_role("end")]
    return path_length(path, matrix)


def test_matrix_is_symmetric_with_zero_diagonal():
    points = [
        Point(id="start", latitude=35.1667, longitude=-84.8667, role="start"),
        Point(id="A", latitude=35.17, longitude=-84.86),
        Point(id="B", latitude=35.18, longitude=-84.85),
        Point(id="end", latitude=35.19, longitude=-84.84, role="end"),
    ]
    matrix = build_distance_matrix(points)

    assert len(matrix) == 4
    assert matrix.points == tuple(points)
    for i in range(4):
        assert matrix.distances[i][i] == 0
        for j in range(4):
            assert matrix.distances[i][j] == matrix.distances[j][i]
            assert matrix.distances[i][j] >= 0


def test_matrix_degenerate_sizes():
    assert build_distance_matrix([]).distances == ()
    single = build_distance_matrix([Point(id="only", latitude=1.0, longitude=2.0)])
    assert single.distances == ((0.0,),)


def test_matrix_coincident_points_are_zero():
    matrix = build_distance_matrix(
        [Point(id="a", latitude=35.0, longitude=-85.0), Point(id="b", latitude=35.0, longitude=-85.0)]
    )
    assert matrix.distances[0][1] == 0


def test_nearest_neighbor_chases_closest_stop():
    matrix = _matrix(
        (35.0, -85.0),
        [("far", 35.3, -85.0), ("near", 35.1, -85.0), ("mid", 35.2, -85.0)],
        (35.0, -85.0),
    )
    assert nearest_neighbor_order(matrix) == ["near", "mid", "far"]


def test_nearest_neighbor_ties_follow_input_order():
    matrix = _matrix(
        (0.0, 0.0),
        [("east", 0.0, 0.1), ("north", 0.1, 0.0)],
        (0.0, 0.0),
    )
    # Both stops are equally far from the start.
    assert nearest_neighbor_order(matrix)[0] == "east"


def test_nearest_neighbor_trivial_cases():
    assert nearest_neighbor_order(_matrix((35.0, -85.0), [], (35.1, -85.0))) == []
    assert nearest_neighbor_order(_matrix((35.0, -85.0), [("A", 35.1, -85.0)], (35.0, -85.0))) == ["A"]


def test_two_opt_removes_crossing():
    matrix = _matrix(
        (35.0, -85.0),
        [("A", 35.1, -85.0), ("C", 35.3, -85.0), ("B", 35.2, -85.0)],
        (35.4, -85.0),
    )
    start, end = matrix.index_of_role("start"), matrix.index_of_role("end")

    improved = two_opt_improve(["A", "C", "B"], matrix, start, end, max_passes=10)

    assert improved == ["A", "B", "C"]
    assert _length(improved, matrix) < _length(["A", "C", "B"], matrix)


def test_two_opt_fixes_nearest_neighbor_that_ignores_end():
    # Nearest neighbor heads for the stop by home first and finishes far from the end.
    matrix = _matrix(
        (35.0, -85.0),
        [("west", 35.0, -85.05), ("east1", 35.0, -84.9), ("east2", 35.0, -84.8)],
        (35.0, -84.7),
    )
    start, end = matrix.index_of_role("start"), matrix.index_of_role("end")
    initial = nearest_neighbor_order(matrix)

    improved = two_opt_improve(initial, matrix, start, end, max_passes=10)

    assert sorted(improved) == sorted(initial)
    assert _length(improved, matrix) <= _length(initial, matrix) + 1e-9


def test_two_opt_never_moves_endpoints_and_is_deterministic():
    matrix = _matrix(
        (35.0, -85.0),
        [("A", 35.2, -84.9), ("B", 35.05, -85.1), ("C", 35.3, -85.2), ("D", 35.1, -84.95)],
        (35.0, -85.0),
    )
    start, end = matrix.index_of_role("start"), matrix.index_of_role("end")
    order = ["C", "A", "D", "B"]

    first = two_opt_improve(order, matrix, start, end, max_passes=5)
    second = two_opt_improve(order, matrix, start, end, max_passes=5)

    assert first == second
    assert sorted(first) == ["A", "B", "C", "D"]
    assert _length(first, matrix) <= _length(order, matrix) + 1e-9


def test_two_opt_respects_single_pass_cap():
    matrix = _matrix(
        (35.0, -85.0),
        [("A", 35.2, -84.9), ("B", 35.05, -85.1), ("C", 35.3, -85.2), ("D", 35.1, -84.95)],
        (35.0, -85.0),
    )
    start, end = matrix.index_of_role("start"), matrix.index_of_role("end")
    order = ["C", "A", "D", "B"]

    capped = two_opt_improve(order, matrix, start, end, max_passes=1)

    assert _length(capped, matrix) <= _length(order, matrix) + 1e-9
