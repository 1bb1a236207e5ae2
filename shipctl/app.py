# app.py
from typing import Optional

import pygame

from .config import GraphicsParams, ShipParams, WorldParams
from .renderer import PygameRenderer
from .roster import PointerButton, Roster
from .ship import KEY_BINDINGS, Ship

_BUTTONS = {1: PointerButton.PRIMARY, 2: PointerButton.MIDDLE, 3: PointerButton.SECONDARY}


class ShipControlApp:
    """
    Interactive window: click a ship to select it, click/drag in empty space to queue moves.

    Controls:
        Left click on ship   : select
        Left click / drag    : queue a point / a point-with-facing command
        T                    : toggle pointer-queue <-> direct-physics for the selected ship
        W/S, A/D, Q/E        : thrust, rotate, strafe (direct-physics only)
        [ / ]                : move speed -/+ 0.1
        - / =                : thrust power -/+ 0.005
        R                    : reset velocity
        0                    : reset tuning to defaults
        H                    : toggle HUD
        Esc                  : quit
    """

    def __init__(
        self,
        num_ships: int = 3,
        world: Optional[WorldParams] = None,
        graphics: Optional[GraphicsParams] = None,
    ):
        self.W = world or WorldParams()
        self.G = graphics or GraphicsParams()
        self.renderer = PygameRenderer(self.G)
        self.roster = Roster()
        self.running = False

        spacing = self.W.width / (num_ships + 1)
        for i in range(num_ships):
            self.roster.add(Ship(
                spacing * (i + 1), self.W.height / 2,
                world=self.W, params=ShipParams(), markers=self.renderer.markers,
                ship_id=i + 1,
            ))

        self._screen = None
        self._clock = None

    # -------------------
    # Input
    # -------------------
    def handle_event(self, event) -> None:
        roster = self.roster
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.MOUSEBUTTONDOWN:
            button = _BUTTONS.get(event.button)
            if button is not None:
                roster.pointer_down(*event.pos, button=button)
        elif event.type == pygame.MOUSEMOTION:
            roster.pointer_move(*event.pos, button_down=bool(event.buttons[0]))
        elif event.type == pygame.MOUSEBUTTONUP:
            button = _BUTTONS.get(event.button)
            if button is not None:
                roster.pointer_up(*event.pos, button=button)
        elif event.type == pygame.KEYDOWN:
            self._handle_key_down(event.key)
        elif event.type == pygame.KEYUP:
            name = pygame.key.name(event.key).upper()
            if name in KEY_BINDINGS:
                roster.key_up(name)

    def _handle_key_down(self, key) -> None:
        roster = self.roster
        ship = roster.selected
        name = pygame.key.name(key).upper()

        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_t:
            mode = roster.toggle_control_mode()
            if mode is not None:
                print(f"control_mode = {mode.value}")
        elif name in KEY_BINDINGS:
            roster.key_down(name)
        elif key == pygame.K_h:
            self.G.show_hud = not self.G.show_hud
            print(f"show_hud = {self.G.show_hud}")
        elif ship is None:
            return
        elif key == pygame.K_LEFTBRACKET:
            ship.P.move_speed = max(0.5, ship.P.move_speed - 0.1)
            print(f"move_speed = {ship.P.move_speed:.1f}")
        elif key == pygame.K_RIGHTBRACKET:
            ship.P.move_speed = min(10.0, ship.P.move_speed + 0.1)
            print(f"move_speed = {ship.P.move_speed:.1f}")
        elif key == pygame.K_MINUS:
            ship.P.thrust_power = max(0.01, ship.P.thrust_power - 0.005)
            print(f"thrust_power = {ship.P.thrust_power:.3f}")
        elif key == pygame.K_EQUALS:
            ship.P.thrust_power = min(0.2, ship.P.thrust_power + 0.005)
            print(f"thrust_power = {ship.P.thrust_power:.3f}")
        elif key == pygame.K_r:
            ship.reset_velocity()
            print("velocity reset")
        elif key == pygame.K_0:
            ship.reset_tuning()
            print("tuning reset to defaults")

    # -------------------
    # Loop
    # -------------------
    def step(self) -> None:
        for event in pygame.event.get():
            self.handle_event(event)
        self.roster.update()

    def draw(self, surf) -> None:
        views = [ship.view() for ship in self.roster]
        self.renderer.draw(surf, views, selected_id=self.roster.selected_id)

    def run(self) -> None:
        pygame.init()
        pygame.display.set_caption("ShipControl")
        self._screen = pygame.display.set_mode((int(self.W.width), int(self.W.height)))
        self._clock = pygame.time.Clock()
        self.running = True
        try:
            while self.running:
                self.step()
                self.draw(self._screen)
                pygame.display.flip()
                self._clock.tick(self.G.fps_limit)
        finally:
            for ship in self.roster.ships:
                self.roster.remove(ship.ship_id)
            pygame.quit()
            self._screen = self._clock = None
