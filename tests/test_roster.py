"""Tests for selection, input routing and ship removal."""
import pytest

from shipctl.roster import PointerButton, Roster
from shipctl.ship import ControlMode, MovementMode, Thrust

EMPTY = (500.0, 500.0)


class TestSelection:
    def test_starts_with_nothing_selected(self, roster: Roster):
        assert roster.selected is None
        assert roster.follow_target() is None
        assert not roster.pointer_claimed

    def test_click_on_ship_selects_it(self, roster: Roster):
        assert roster.pointer_down(105.0, 95.0) is True
        assert roster.selected_id == 1
        assert roster.selected.drag is None
        assert roster.follow_target() == (100.0, 100.0)

    def test_selecting_another_ship_cleans_up_previous(self, roster: Roster, markers):
        a = roster.select(1)
        roster.pointer_down(*EMPTY)
        roster.pointer_move(500.0, 400.0)
        assert a.drag is not None and a.drag.preview is not None
        assert len(markers) == 1

        roster.pointer_down(300.0, 100.0)
        assert roster.selected_id == 2
        assert a.drag is None
        assert len(markers) == 0

    def test_selection_callback(self, make_ship):
        changes = []
        roster = Roster(on_selection_change=lambda prev, cur: changes.append(
            (prev and prev.ship_id, cur and cur.ship_id)))
        roster.add(make_ship(100.0, 100.0, ship_id=1))
        roster.add(make_ship(300.0, 100.0, ship_id=2))

        roster.select(1)
        roster.select(1)
        roster.select(2)
        roster.deselect()
        assert changes == [(None, 1), (1, 2), (2, None)]

    def test_select_unknown_is_ignored(self, roster: Roster):
        roster.select(1)
        assert roster.select(42) is None
        assert roster.selected_id == 1

    def test_deselect_drops_direct_physics(self, roster: Roster):
        a = roster.select(1)
        roster.toggle_control_mode()
        roster.key_down("W")
        assert a.keys_held

        roster.select(2)
        assert a.control_mode is ControlMode.POINTER_QUEUE
        assert not a.keys_held

    def test_duplicate_id_rejected(self, roster: Roster, make_ship):
        with pytest.raises(ValueError):
            roster.add(make_ship(0.0, 0.0, ship_id=1))

    def test_ship_at_prefers_topmost(self, roster: Roster, make_ship):
        roster.add(make_ship(110.0, 100.0, ship_id=3))
        assert roster.ship_at(105.0, 100.0).ship_id == 3
        assert roster.ship_at(*EMPTY) is None


class TestPointerRouting:
    def test_drag_commits_direction_command(self, roster: Roster):
        ship = roster.select(1)
        assert roster.pointer_down(500.0, 500.0) is True
        roster.pointer_move(500.0, 450.0)
        roster.pointer_move(500.0, 400.0)
        roster.pointer_up(500.0, 400.0)

        cmd = ship.active
        assert cmd.kind == "direction"
        assert (cmd.dir_x, cmd.dir_y) == pytest.approx((0.0, -1.0))
        assert ship.movement_mode is MovementMode.MOVING_WITH_DIRECTION
        assert ship.drag is None

    def test_short_drag_commits_point(self, roster: Roster):
        ship = roster.select(1)
        roster.pointer_down(500.0, 500.0)
        roster.pointer_move(505.0, 503.0)
        roster.pointer_up(505.0, 503.0)

        cmd = ship.active
        assert cmd.kind == "point"
        assert (cmd.x, cmd.y) == (500.0, 500.0)

    def test_second_gesture_queues_behind_first(self, roster: Roster):
        ship = roster.select(1)
        for x in (400.0, 600.0):
            roster.pointer_down(x, 500.0)
            roster.pointer_up(x, 500.0)
        assert ship.active.x == 400.0
        assert [c.x for c in ship.queue] == [600.0]

    def test_move_without_button_is_ignored(self, roster: Roster):
        ship = roster.select(1)
        roster.pointer_down(*EMPTY)
        roster.pointer_move(500.0, 400.0, button_down=False)
        assert ship.drag.preview is None

    def test_secondary_button_is_ignored(self, roster: Roster):
        ship = roster.select(1)
        assert roster.pointer_down(*EMPTY, button=PointerButton.SECONDARY) is False
        assert ship.drag is None
        assert roster.pointer_down(300.0, 100.0, button=PointerButton.SECONDARY) is False
        assert roster.selected_id == 1

    def test_secondary_release_does_not_resolve_drag(self, roster: Roster):
        ship = roster.select(1)
        roster.pointer_down(*EMPTY)
        roster.pointer_up(*EMPTY, button=PointerButton.SECONDARY)
        assert ship.drag is not None
        assert ship.active is None

    def test_no_selection_leaves_pointer_to_camera(self, roster: Roster):
        assert roster.pointer_down(*EMPTY) is False
        roster.pointer_up(*EMPTY)
        assert all(ship.active is None for ship in roster)

    def test_pointer_released_in_direct_physics(self, roster: Roster):
        ship = roster.select(1)
        roster.toggle_control_mode()
        assert not roster.pointer_claimed
        assert roster.pointer_down(*EMPTY) is False
        roster.pointer_up(*EMPTY)
        assert ship.drag is None
        assert ship.active is None

    def test_pointer_up_without_drag_is_ignored(self, roster: Roster):
        ship = roster.select(1)
        roster.pointer_up(*EMPTY)
        assert ship.active is None


class TestKeyboardRouting:
    def test_toggle_needs_selection(self, roster: Roster):
        assert roster.toggle_control_mode() is None
        roster.select(2)
        assert roster.toggle_control_mode() is ControlMode.DIRECT_PHYSICS
        assert roster.get(1).control_mode is ControlMode.POINTER_QUEUE

    def test_keys_reach_only_selected_ship(self, roster: Roster):
        a, b = roster.get(1), roster.get(2)
        roster.select(1)
        roster.toggle_control_mode()
        assert roster.key_down("D") is True
        assert a.keys_held == {Thrust.ROTATE_RIGHT}
        assert not b.keys_held

        roster.update()
        assert a.kin.rotation > 0.0
        assert b.kin.rotation == 0.0

        roster.key_up("D")
        assert not a.keys_held

    def test_keys_without_selection(self, roster: Roster):
        assert roster.key_down("W") is False


class TestRemoval:
    def test_remove_releases_all_markers(self, roster: Roster, markers):
        ship = roster.select(1)
        for x in (400.0, 600.0, 800.0):
            roster.pointer_down(x, 500.0)
            roster.pointer_up(x, 500.0)
        roster.pointer_down(*EMPTY)
        roster.pointer_move(500.0, 300.0)
        assert len(markers) == 4

        roster.remove(1)
        assert len(markers) == 0
        assert ship.destroyed
        assert roster.selected is None
        assert roster.get(1) is None
        assert len(roster) == 1

    def test_destroyed_ship_is_inert(self, roster: Roster, markers):
        ship = roster.get(1)
        roster.remove(1)
        assert ship.enqueue_point(10.0, 10.0) is False
        assert ship.begin_drag(10.0, 10.0) is False
        ship.update()
        assert (ship.kin.x, ship.kin.y) == (100.0, 100.0)
        assert len(markers) == 0

    def test_remove_unknown_is_ignored(self, roster: Roster):
        roster.remove(99)
        assert len(roster) == 2


class TestTick:
    def test_update_advances_every_ship(self, roster: Roster):
        a, b = roster.get(1), roster.get(2)
        a.enqueue_point(100.0, 300.0)
        b.enqueue_point(300.0, 300.0)
        roster.update()
        assert a.kin.y == pytest.approx(103.0)
        assert b.kin.y == pytest.approx(103.0)
