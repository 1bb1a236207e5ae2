"""Tests for the pygame renderer, drawn onto off-screen surfaces."""
import math

import pygame
import pytest

from shipctl.config import GraphicsParams
from shipctl.renderer import PygameRenderer
from shipctl.roster import Roster
from shipctl.ship import Ship


@pytest.fixture
def renderer():
    return PygameRenderer(GraphicsParams(show_hud=False))


@pytest.fixture
def surface():
    return pygame.Surface((400, 300))


def _rgb(surf, pos):
    return tuple(surf.get_at(pos))[:3]


class TestMarkers:
    def test_point_marker_drawn_in_ship_color(self, renderer, surface, world):
        ship = Ship(50.0, 50.0, world=world, markers=renderer.markers, ship_id=1)
        ship.enqueue_point(200.0, 150.0)
        renderer.draw(surface, [ship.view()], selected_id=1)
        assert _rgb(surface, (200, 150)) == renderer.ship_color(1)
        assert _rgb(surface, (390, 290)) == renderer.G.background

    def test_released_marker_not_drawn(self, renderer, surface, world):
        ship = Ship(50.0, 50.0, world=world, markers=renderer.markers, ship_id=1)
        ship.enqueue_point(200.0, 150.0)
        ship.destroy()
        renderer.draw(surface, [], selected_id=None)
        assert _rgb(surface, (200, 150)) == renderer.G.background

    def test_drag_preview_drawn(self, renderer, surface, world):
        roster = Roster()
        ship = roster.add(Ship(50.0, 50.0, world=world, markers=renderer.markers, ship_id=2))
        roster.select(2)
        roster.pointer_down(200.0, 200.0)
        roster.pointer_move(300.0, 200.0)
        renderer.draw(surface, [ship.view()], selected_id=2)
        # Shaft of the preview arrow
        assert _rgb(surface, (250, 200)) == renderer.ship_color(2)

    def test_orphan_marker_uses_highlight(self, renderer, surface):
        from shipctl.commands import PointCommand
        renderer.markers.create_marker(PointCommand(100.0, 100.0))
        renderer.draw(surface, [])
        assert _rgb(surface, (100, 100)) == renderer.G.highlight_color


class TestShips:
    def test_ship_nose_follows_rotation(self, renderer, world):
        ship = Ship(100.0, 100.0, world=world, markers=renderer.markers)
        nose = renderer._ship_polygon(ship.view())[0]
        assert nose == (100, 100 - 18)

        ship.kin.rotation = math.pi / 2
        nose = renderer._ship_polygon(ship.view())[0]
        assert nose == (100 + 18, 100)

    def test_ship_colors_cycle(self, renderer):
        n = len(renderer.G.ship_colors)
        assert renderer.ship_color(1) == renderer.ship_color(1 + n)

    def test_draw_ship(self, renderer, surface, world):
        ship = Ship(200.0, 150.0, world=world, markers=renderer.markers, ship_id=1)
        renderer.draw(surface, [ship.view()], selected_id=1)
        assert _rgb(surface, (200, 150)) == renderer.ship_color(1)


class TestHud:
    def test_hud_lines(self, renderer, world):
        ship = Ship(100.0, 100.0, world=world, markers=renderer.markers, ship_id=4)
        lines = renderer.hud_lines(ship.view())
        assert lines[0] == "Ship 4"
        assert "Control mode: pointer-queue" in lines
        assert "Movement mode: idle" in lines
        assert renderer.hud_lines(None) == ["No ship selected"]
