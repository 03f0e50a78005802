import math

import pytest

from cubekit.core.base import Axis, MalformedLayerError, MapperState, Move, UnknownFaceError
from cubekit.cube.mapper import GestureMapper, GestureStatus, drag_direction, snap_twist


@pytest.fixture
def commits():
    return []


@pytest.fixture
def mapper(mapper_config, clock, commits):
    return GestureMapper(mapper_config, clock=clock, on_commit=commits.append)


def pick_corner(mapper, solved, face="right", origin=None):
    return mapper.pick(25, solved[25], face, origin=origin)


def test_starts_idle(mapper):
    assert mapper.state is MapperState.IDLE
    assert mapper.selection is None


def test_click_and_key_scenario(mapper, solved, commits):
    assert pick_corner(mapper, solved).status is GestureStatus.SELECTED
    assert mapper.state is MapperState.SELECTED

    result = mapper.command(1)
    assert result.status is GestureStatus.COMMITTED
    assert result.move == Move(Axis.X, 1, 1)
    assert commits == [Move(Axis.X, 1, 1)]
    assert mapper.state is MapperState.ROTATING
    assert mapper.selection is None


def test_repick_replaces_selection(mapper, solved):
    pick_corner(mapper, solved)
    mapper.pick(0, solved[0], "left")
    assert mapper.selection.piece_index == 0
    assert mapper.move_for(1) == Move(Axis.X, -1, 1)


def test_command_without_selection(mapper, commits):
    assert mapper.command(1).status is GestureStatus.NO_SELECTION
    assert commits == []


def test_command_rejects_bad_direction(mapper, solved):
    pick_corner(mapper, solved)
    with pytest.raises(ValueError):
        mapper.command(0)


def test_bad_direction_while_rotating_is_ignored(mapper, solved, commits):
    pick_corner(mapper, solved)
    mapper.command(1)
    assert mapper.command(0).status is GestureStatus.IGNORED
    assert len(commits) == 1


def test_pick_rejects_unknown_face(mapper, solved):
    with pytest.raises(UnknownFaceError):
        pick_corner(mapper, solved, face="upper")
    assert mapper.state is MapperState.IDLE


class TestRotatingGate:
    def test_inputs_ignored_while_rotating(self, mapper, solved, commits):
        pick_corner(mapper, solved)
        mapper.command(1)

        assert pick_corner(mapper, solved).status is GestureStatus.IGNORED
        assert mapper.command(-1).status is GestureStatus.IGNORED
        assert mapper.track((5, 5, 5)).status is GestureStatus.IGNORED
        assert mapper.release(math.pi / 2).status is GestureStatus.IGNORED
        assert mapper.cancel().status is GestureStatus.IGNORED
        assert mapper.submit(Move(Axis.Y, 1, 1)).status is GestureStatus.IGNORED
        assert len(commits) == 1
        assert mapper.state is MapperState.ROTATING

    def test_complete_opens_gate(self, mapper, solved):
        pick_corner(mapper, solved)
        mapper.command(1)
        result = mapper.complete()
        assert result.status is GestureStatus.COMPLETED
        assert result.move == Move(Axis.X, 1, 1)
        assert mapper.state is MapperState.IDLE
        assert mapper.pending_move is None

    def test_complete_when_idle_is_ignored(self, mapper):
        assert mapper.complete().status is GestureStatus.IGNORED

    def test_timeout_opens_gate(self, mapper, solved, clock):
        pick_corner(mapper, solved)
        mapper.command(1)

        clock.advance(0.4)
        assert not mapper.update()
        assert pick_corner(mapper, solved).status is GestureStatus.IGNORED

        clock.advance(0.1)
        assert pick_corner(mapper, solved).status is GestureStatus.SELECTED

    def test_update_reports_timeout(self, mapper, solved, clock):
        pick_corner(mapper, solved)
        mapper.command(1)
        clock.advance(1.0)
        assert mapper.update()
        assert mapper.state is MapperState.IDLE
        assert not mapper.update()

    def test_rotation_timeout_override(self, mapper_config, clock, solved):
        mapper = GestureMapper(mapper_config, clock=clock, rotation_timeout=0.3)
        pick_corner(mapper, solved)
        mapper.command(1)
        clock.advance(0.3)
        assert not mapper.is_rotating()

    def test_failed_commit_resets_and_raises(self, mapper_config, clock, solved):
        def broken(move):
            raise MalformedLayerError(move.axis, move.layer, 8)

        mapper = GestureMapper(mapper_config, clock=clock, on_commit=broken)
        pick_corner(mapper, solved)
        with pytest.raises(MalformedLayerError):
            mapper.command(1)
        assert mapper.state is MapperState.IDLE


class TestDrag:
    def test_drag_past_threshold_commits_once(self, mapper, solved, commits):
        pick_corner(mapper, solved, origin=(2, 1, 1))
        assert mapper.track((2, 1.05, 1)).status is GestureStatus.PENDING
        result = mapper.track((2, 1.2, 1))
        assert result.status is GestureStatus.COMMITTED
        assert result.move == Move(Axis.X, 1, 1)
        assert mapper.track((2, 2, 1)).status is GestureStatus.IGNORED
        assert len(commits) == 1

    def test_first_sample_becomes_origin(self, mapper, solved, commits):
        pick_corner(mapper, solved)
        assert mapper.track((0, 0, 0)).status is GestureStatus.PENDING
        assert mapper.selection.origin == (0.0, 0.0, 0.0)
        assert mapper.track((0, -0.5, 0)).move == Move(Axis.X, 1, -1)

    def test_release_below_threshold_cancels(self, mapper, solved, commits):
        pick_corner(mapper, solved, origin=(2, 1, 1))
        mapper.track((2, 1.05, 1))
        assert mapper.release().status is GestureStatus.CANCELLED
        assert mapper.state is MapperState.IDLE
        assert commits == []

    def test_cancel(self, mapper, solved, commits):
        pick_corner(mapper, solved)
        assert mapper.cancel().status is GestureStatus.CANCELLED
        assert mapper.cancel().status is GestureStatus.NO_SELECTION
        assert commits == []

    def test_track_without_selection(self, mapper):
        assert mapper.track((1, 1, 1)).status is GestureStatus.NO_SELECTION


class TestDragDirection:
    def test_primary_axis_sign(self):
        assert drag_direction(Axis.X, (0, 0.2, 0), 0.1) == 1
        assert drag_direction(Axis.X, (0, -0.2, 0), 0.1) == -1
        assert drag_direction(Axis.Y, (0.3, 0, 0), 0.1) == 1
        assert drag_direction(Axis.Z, (-0.3, 0, 0), 0.1) == -1

    def test_secondary_axis_is_flipped(self):
        assert drag_direction(Axis.X, (0, 0, 0.2), 0.1) == -1
        assert drag_direction(Axis.Y, (0, 0, -0.2), 0.1) == 1
        assert drag_direction(Axis.Z, (0, 0.2, 0.05), 0.1) == -1

    def test_below_threshold(self):
        assert drag_direction(Axis.X, (0, 0.05, 0.05), 0.1) is None

    def test_movement_along_axis_is_ignored(self):
        assert drag_direction(Axis.X, (0.9, 0, 0), 0.1) is None


class TestTwist:
    @pytest.mark.parametrize("angle,direction", [
        (math.pi / 2, 1),
        (-math.pi / 2, -1),
        (1.0, 1),
        (-1.2, -1),
        (math.pi, 1),
    ])
    def test_snaps_to_quarter_turn(self, angle, direction):
        assert snap_twist(angle, 0.1) == direction

    @pytest.mark.parametrize("angle", [0.0, 0.3, -0.7])
    def test_small_twist_is_none(self, angle):
        assert snap_twist(angle, 0.1) is None

    def test_release_with_twist_commits(self, mapper, solved, commits):
        index = solved.index_of((0, 1, 0))
        mapper.pick(index, solved[index], "top")
        result = mapper.release(twist=-math.pi / 2)
        assert result.status is GestureStatus.COMMITTED
        assert result.move == Move(Axis.Y, 1, -1)

    def test_release_with_small_twist_cancels(self, mapper, solved, commits):
        pick_corner(mapper, solved)
        assert mapper.release(twist=0.2).status is GestureStatus.CANCELLED
        assert commits == []


def test_submit_commits_external_move(mapper, commits):
    result = mapper.submit(Move(Axis.Z, -1, 1))
    assert result.status is GestureStatus.COMMITTED
    assert commits == [Move(Axis.Z, -1, 1)]


def test_reset(mapper, solved):
    pick_corner(mapper, solved)
    mapper.command(1)
    mapper.reset()
    assert mapper.state is MapperState.IDLE


def test_result_to_dict(mapper, solved):
    pick_corner(mapper, solved)
    data = mapper.command(1).to_dict()
    assert data["status"] == "committed"
    assert data["move"] == {"axis": "X", "layer": 1, "direction": 1}
