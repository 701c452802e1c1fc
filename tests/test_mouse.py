import math

import numpy as np
import pytest

from helpers import front_sensor, two_wheel_description
from mouse_sim.config import SimConfig
from mouse_sim.errors import InvariantError
from mouse_sim.geometry import polygon_area
from mouse_sim.sim.maze import GridMaze, enclosed_walls
from mouse_sim.sim.mouse import Mouse
from mouse_sim.types import Direction, EncoderType
from mouse_sim.utils import resource_path


def make_mouse(maze, raw=None, direction=Direction.NORTH, config=None):
    mouse = Mouse(maze, config or SimConfig())
    assert mouse.initialize(raw or two_wheel_description(), direction)
    return mouse


def test_initial_pose_is_center_of_start_tile(open_maze):
    mouse = make_mouse(open_maze, direction=Direction.EAST)
    assert mouse.get_initial_translation() == pytest.approx((0.09, 0.09))
    assert mouse.get_current_translation() == mouse.get_initial_translation()
    assert mouse.get_current_rotation() == 0.0
    assert mouse.get_current_discretized_translation() == (0, 0)
    assert mouse.get_current_discretized_rotation() is Direction.EAST


def test_initialize_with_bundled_description(open_maze):
    mouse = Mouse(open_maze)
    assert mouse.initialize(resource_path("mice", "default.yaml"), Direction.NORTH)
    assert mouse.get_wheel_names() == ["left", "right"]
    assert len(mouse.get_sensor_names()) == 4
    assert mouse.get_wheel_encoder_type("left") is EncoderType.RELATIVE
    assert mouse.get_wheel_encoder_ticks_per_revolution("left") == 360
    assert mouse.get_sensor_read_duration("left") == pytest.approx(0.001)


def test_initialize_failure_leaves_no_state(open_maze):
    raw = two_wheel_description()
    raw["wheels"]["left"]["position"] = [0.0, 0.0]
    mouse = Mouse(open_maze)
    assert mouse.initialize(raw, Direction.NORTH) is False
    assert not mouse.initialized
    assert not mouse.has_wheel("left")
    with pytest.raises(InvariantError):
        mouse.update(0.01)
    with pytest.raises(InvariantError):
        mouse.get_current_body_polygon((0.0, 0.0), 0.0)


def test_layout_without_turning_wheels_does_not_initialize(open_maze):
    raw = two_wheel_description()
    # both wheels on the forward axis: nothing can turn the mouse
    raw["wheels"]["left"]["position"] = [0.02, 0.0]
    raw["wheels"]["right"]["position"] = [-0.02, 0.0]
    mouse = Mouse(open_maze)
    assert mouse.initialize(raw, Direction.NORTH) is False
    assert not mouse.initialized
    with pytest.raises(InvariantError):
        mouse.set_wheel_speeds_for_turn_left(1.0)


@pytest.mark.parametrize(
    "query",
    [
        lambda m: m.get_initial_translation(),
        lambda m: m.get_initial_rotation(),
        lambda m: m.get_current_translation(),
        lambda m: m.get_current_rotation(),
        lambda m: m.get_current_discretized_translation(),
        lambda m: m.get_current_discretized_rotation(),
        lambda m: m.get_current_wheel_polygons((0.0, 0.0), 0.0),
        lambda m: m.get_current_wheel_speed_indicator_polygons((0.0, 0.0), 0.0),
        lambda m: m.get_current_sensor_polygons((0.0, 0.0), 0.0),
        lambda m: m.get_current_sensor_view_polygons((0.0, 0.0), 0.0),
        lambda m: m.read_gyro(),
        lambda m: m.get_elapsed_sim_time(),
        lambda m: m.get_curve_turn_factors(),
    ],
)
def test_queries_before_initialize_are_fatal(open_maze, query):
    with pytest.raises(InvariantError):
        query(Mouse(open_maze))


def test_initialize_missing_file_returns_false(open_maze, tmp_path):
    mouse = Mouse(open_maze)
    assert mouse.initialize(str(tmp_path / "missing.yaml"), Direction.NORTH) is False


def test_forward_drive_end_to_end(open_maze):
    mouse = make_mouse(open_maze)
    mouse.set_wheel_speeds_for_move_forward(1.0)
    assert mouse.get_wheel_speed("left") == pytest.approx(10.0)
    assert mouse.get_wheel_speed("right") == pytest.approx(10.0)

    x0, y0 = mouse.get_current_translation()
    steps = 20
    for _ in range(steps):
        mouse.update(0.1)
    x, y = mouse.get_current_translation()
    # facing north: forward is +y; wheel linear speed is 10 rad/s * 0.01 m
    assert y - y0 == pytest.approx(steps * 0.1 * 0.1, abs=1e-12)
    assert x == pytest.approx(x0, abs=1e-12)
    assert mouse.get_current_rotation() == pytest.approx(math.pi / 2, abs=1e-12)
    assert mouse.read_gyro() == pytest.approx(0.0, abs=1e-12)
    assert mouse.get_elapsed_sim_time() == pytest.approx(2.0)


def test_turn_left_in_place_end_to_end(open_maze):
    half_track = 0.03
    mouse = make_mouse(open_maze, two_wheel_description(half_track=half_track))
    mouse.set_wheel_speeds_for_turn_left(1.0)
    assert mouse.get_wheel_speed("left") == pytest.approx(-10.0)
    assert mouse.get_wheel_speed("right") == pytest.approx(10.0)

    # each wheel contributes v / half_track; the average is the body rate
    rate = 0.1 / half_track
    duration = (math.pi / 2) / rate
    steps = 1000
    start = mouse.get_current_translation()
    for _ in range(steps):
        mouse.update(duration / steps)

    assert mouse.read_gyro() == pytest.approx(rate)
    assert mouse.get_current_rotation() == pytest.approx(math.pi, abs=1e-9)
    assert mouse.get_current_translation() == pytest.approx(start, abs=1e-12)
    assert mouse.get_current_discretized_rotation() is Direction.WEST


def test_turn_right_is_mirror_of_left(open_maze):
    mouse = make_mouse(open_maze)
    mouse.set_wheel_speeds_for_turn_right(0.5)
    mouse.update(0.1)
    assert mouse.read_gyro() == pytest.approx(-0.05 / 0.03)
    assert mouse.get_current_rotation() < math.pi / 2


def test_curve_turn_covers_configured_arc(open_maze):
    config = SimConfig()
    mouse = make_mouse(open_maze, config=config)
    curve = mouse.get_curve_turn_factors()
    assert curve.turn == 1.0
    assert curve.forward == pytest.approx(0.084 / 0.03)

    mouse.set_wheel_speeds_for_curve_turn_left(1.0)
    left, right = mouse.get_wheel_speed("left"), mouse.get_wheel_speed("right")
    assert abs(left) < abs(right) <= 10.0

    dt = 1e-4
    distance = 0.0
    prev = mouse.get_current_translation()
    while mouse.get_current_rotation() < math.pi:
        mouse.update(dt)
        cur = mouse.get_current_translation()
        distance += math.hypot(cur[0] - prev[0], cur[1] - prev[1])
        prev = cur
    # forward travel during the quarter turn matches the configured arc
    assert distance == pytest.approx(config.arc_length, rel=1e-3)


def test_curve_turn_right_turns_clockwise(open_maze):
    mouse = make_mouse(open_maze)
    mouse.set_wheel_speeds_for_curve_turn_right(1.0)
    mouse.update(0.01)
    assert mouse.read_gyro() < 0.0
    assert mouse.get_current_translation()[1] > 0.09


def test_stop_all_wheels(open_maze):
    mouse = make_mouse(open_maze)
    mouse.set_wheel_speeds_for_move_forward(1.0)
    mouse.stop_all_wheels()
    before = mouse.get_current_translation()
    mouse.update(0.5)
    assert mouse.get_current_translation() == before
    assert mouse.read_gyro() == 0.0


def test_set_wheel_speeds_validation(open_maze):
    mouse = make_mouse(open_maze)
    with pytest.raises(InvariantError):
        mouse.set_wheel_speeds({"left": 10.5})
    with pytest.raises(InvariantError):
        mouse.set_wheel_speeds({"middle": 1.0})
    with pytest.raises(InvariantError):
        mouse.set_wheel_speeds({"left": float("nan")})
    with pytest.raises(InvariantError):
        mouse.set_wheel_speeds_for_move_forward(1.5)
    # a rejected mapping applies nothing
    with pytest.raises(InvariantError):
        mouse.set_wheel_speeds({"left": 5.0, "right": 50.0})
    assert mouse.get_wheel_speed("left") == 0.0
    mouse.set_wheel_speeds({"left": -10.0})
    assert mouse.get_wheel_speed("left") == -10.0
    assert mouse.get_wheel_max_speed("left") == 10.0


def test_unknown_names_are_fatal_but_checkable(open_maze):
    mouse = make_mouse(open_maze)
    assert mouse.has_wheel("left") and not mouse.has_wheel("middle")
    assert not mouse.has_sensor("front")
    with pytest.raises(InvariantError):
        mouse.read_sensor("front")
    with pytest.raises(InvariantError):
        mouse.read_wheel_relative_encoder("middle")


def test_update_rejects_bad_elapsed(open_maze):
    mouse = make_mouse(open_maze)
    for bad in (-0.1, float("nan"), float("inf")):
        with pytest.raises(InvariantError):
            mouse.update(bad)
    assert mouse.get_elapsed_sim_time() == 0.0


def test_encoders_follow_wheel_rotation(open_maze):
    mouse = make_mouse(open_maze)
    mouse.set_wheel_speeds({"left": 2.0 * math.pi, "right": -math.pi})
    mouse.update(1.005)
    # 1.005 rev and -0.5025 rev at 100 ticks per revolution
    assert mouse.read_wheel_relative_encoder("left") == 100
    assert mouse.read_wheel_relative_encoder("right") == -50
    mouse.reset_wheel_relative_encoder("left")
    assert mouse.read_wheel_relative_encoder("left") == 0
    with pytest.raises(InvariantError):
        mouse.read_wheel_absolute_encoder("left")


def test_teleport_round_trip(open_maze):
    mouse = make_mouse(open_maze)
    mouse.teleport((0.37, 0.2), 1.234)
    assert mouse.get_current_translation() == (0.37, 0.2)
    assert mouse.get_current_rotation() == 1.234
    assert mouse.get_current_discretized_translation() == (2, 1)


@pytest.mark.parametrize(
    "rotation, expected",
    [
        (0.0, Direction.EAST),
        (math.pi / 4, Direction.NORTH),
        (-math.pi / 4, Direction.EAST),
        (-math.pi / 4 - 1e-12, Direction.SOUTH),
        (math.pi / 4 - 1e-12, Direction.EAST),
        (math.pi, Direction.WEST),
        (3 * math.pi / 2, Direction.SOUTH),
        (-math.pi / 2, Direction.SOUTH),
        (4 * math.pi + 0.1, Direction.EAST),
        (-4 * math.pi + math.pi / 2, Direction.NORTH),
    ],
)
def test_discretized_rotation_buckets(open_maze, rotation, expected):
    mouse = make_mouse(open_maze)
    mouse.teleport(mouse.get_current_translation(), rotation)
    assert mouse.get_current_discretized_rotation() is expected


def test_discretized_rotation_follows_injected_direction_table(open_maze):
    # north along +x, rotated a quarter turn clockwise from the default table
    table = {
        Direction.NORTH: 0.0,
        Direction.EAST: -math.pi / 2,
        Direction.SOUTH: math.pi,
        Direction.WEST: math.pi / 2,
    }
    for direction in Direction:
        mouse = make_mouse(open_maze, direction=direction, config=SimConfig(direction_to_angle=table))
        assert mouse.get_current_discretized_rotation() is direction
        # a quarter turn to the left lands on the counter-clockwise neighbour
        mouse.teleport(mouse.get_current_translation(), table[direction] + math.pi / 2)
        expected = {
            Direction.NORTH: Direction.WEST,
            Direction.WEST: Direction.SOUTH,
            Direction.SOUTH: Direction.EAST,
            Direction.EAST: Direction.NORTH,
        }[direction]
        assert mouse.get_current_discretized_rotation() is expected


def test_discretized_rotation_rejects_non_finite(open_maze):
    mouse = make_mouse(open_maze)
    mouse.teleport(mouse.get_current_translation(), float("nan"))
    with pytest.raises(InvariantError):
        mouse.get_current_discretized_rotation()


def test_polygon_queries_are_idempotent(open_maze):
    mouse = make_mouse(open_maze, two_wheel_description(sensors=front_sensor()))
    pose = ((0.31, 0.42), 2.2)
    for query in (
        mouse.get_current_body_polygon,
        mouse.get_current_collision_polygon,
        mouse.get_current_center_of_mass_polygon,
    ):
        assert np.array_equal(query(*pose), query(*pose))
    for query in (
        mouse.get_current_wheel_polygons,
        mouse.get_current_wheel_speed_indicator_polygons,
        mouse.get_current_sensor_polygons,
        mouse.get_current_sensor_view_polygons,
    ):
        first, second = query(*pose), query(*pose)
        assert len(first) == len(second) > 0
        for a, b in zip(first, second):
            assert np.array_equal(a, b)


def test_polygon_at_initial_pose_is_initial_shape(open_maze):
    mouse = make_mouse(open_maze)
    t0, r0 = mouse.get_initial_translation(), mouse.get_initial_rotation()
    body = mouse.get_current_body_polygon(t0, r0)
    # identity transform
    assert np.allclose(body, mouse.get_current_body_polygon(t0, r0 + 2.0 * math.pi))
    moved = mouse.get_current_body_polygon((t0[0] + 0.1, t0[1] - 0.05), r0)
    assert np.allclose(moved - body, [0.1, -0.05])


def test_polygon_rotates_about_current_translation(open_maze):
    mouse = make_mouse(open_maze)
    t0, r0 = mouse.get_initial_translation(), mouse.get_initial_rotation()
    target = (0.5, 0.5)
    body = mouse.get_current_body_polygon(target, r0 + math.pi)
    shifted = mouse.get_current_body_polygon(target, r0)
    # a half turn mirrors the shape through the translation point
    assert np.allclose(body, 2.0 * np.array(target) - shifted)
    com = mouse.get_current_center_of_mass_polygon(target, r0 + 1.0)
    assert np.allclose(com.mean(axis=0), target)


def test_collision_polygon_contains_parts(open_maze):
    mouse = make_mouse(open_maze, two_wheel_description(sensors=front_sensor()))
    t0, r0 = mouse.get_initial_translation(), mouse.get_initial_rotation()
    hull = mouse.get_current_collision_polygon(t0, r0)
    body = mouse.get_current_body_polygon(t0, r0)
    assert polygon_area(hull) >= polygon_area(body)
    for wheel in mouse.get_current_wheel_polygons(t0, r0):
        assert wheel[:, 0].min() >= hull[:, 0].min() - 1e-12
        assert wheel[:, 0].max() <= hull[:, 0].max() + 1e-12


def test_sensor_follows_pose_and_reads_wall():
    walls = enclosed_walls(3, 3)
    maze = GridMaze.from_tile_walls(walls, wall_length=0.168, wall_width=0.012, resolution_m=0.002)
    mouse = make_mouse(maze, two_wheel_description(sensors=front_sensor(half_width=0.0)), Direction.SOUTH)
    # sensor sits 4 cm ahead of the center, the south wall face is at y = 0.006
    assert mouse.read_sensor("front") == pytest.approx(1.0 - (0.09 - 0.04 - 0.006) / 0.25, abs=1e-9)

    (sx, sy), direction = mouse.get_current_sensor_position_and_direction(
        "front", mouse.get_current_translation(), mouse.get_current_rotation()
    )
    assert (sx, sy) == pytest.approx((0.09, 0.05))
    assert direction == pytest.approx(1.5 * math.pi)

    # turn to face east and tick once; the far east wall is out of range
    mouse.teleport(mouse.get_current_translation(), 0.0)
    mouse.update(0.0)
    assert mouse.read_sensor("front") == 0.0
    views = mouse.get_current_sensor_view_polygons(mouse.get_current_translation(), 0.0)
    assert views[0][1] == pytest.approx((0.13 + 0.25, 0.09))
