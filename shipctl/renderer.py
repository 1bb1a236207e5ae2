# renderer.py
import math
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pygame

from .commands import Command, MarkerRegistry
from .config import GraphicsParams
from .ship import ControlMode, ShipView

Color = Tuple[int, int, int]


class PygameRenderer:
    """
    Draws ships, their command markers and a small debug HUD onto a pygame surface.

    The renderer owns the marker registry that ships create/release handles
    against, so everything it draws for commands is exactly what the core still
    considers alive. World units map 1:1 to pixels.
    """

    def __init__(self, graphics: Optional[GraphicsParams] = None, markers: Optional[MarkerRegistry] = None):
        self.G = graphics or GraphicsParams()
        self.markers = markers if markers is not None else MarkerRegistry()
        self._font = None

    # --- Coordinate mapping
    @staticmethod
    def _world_to_screen(x, y):
        return int(round(x)), int(round(y))

    def ship_color(self, ship_id: int) -> Color:
        colors = self.G.ship_colors
        return colors[(ship_id - 1) % len(colors)]

    # --- Frame
    def draw(self, surf: pygame.Surface, views: Iterable[ShipView], selected_id: Optional[int] = None):
        views = list(views)
        surf.fill(self.G.background)

        self._draw_markers(surf, views)
        for view in views:
            self._draw_ship(surf, view, selected=view.ship_id == selected_id)
            self._draw_facing(surf, view)

        if self.G.show_hud:
            selected = next((v for v in views if v.ship_id == selected_id), None)
            self._draw_hud(surf, selected)

    # --- Markers
    def _marker_colors(self, views: List[ShipView]) -> Dict[int, Color]:
        owners: Dict[int, Color] = {}
        for view in views:
            color = self.ship_color(view.ship_id)
            commands = list(view.pending_commands)
            if view.active_command is not None:
                commands.append(view.active_command)
            if view.preview is not None:
                commands.append(view.preview)
            for command in commands:
                if command.handle is not None:
                    owners[command.handle] = color
        return owners

    def _draw_markers(self, surf, views: List[ShipView]):
        owners = self._marker_colors(views)
        for handle, command in self.markers.live.items():
            color = owners.get(handle, self.G.highlight_color)
            self._draw_marker(surf, command, color)

    def _draw_marker(self, surf, command: Command, color: Color):
        G = self.G
        if command.kind == "point":
            cx, cy = self._world_to_screen(command.x, command.y)
        else:
            cx, cy = self._world_to_screen(command.origin_x, command.origin_y)

        pygame.draw.circle(surf, color, (cx, cy), G.marker_dot_px)
        pygame.draw.circle(surf, color, (cx, cy), G.marker_ring_px, 2)
        c = G.marker_cross_px
        pygame.draw.line(surf, color, (cx - c, cy), (cx + c, cy), 2)
        pygame.draw.line(surf, color, (cx, cy - c), (cx, cy + c), 2)

        if command.kind != "direction":
            return
        ex, ey = self._world_to_screen(command.end_x, command.end_y)
        if math.hypot(ex - cx, ey - cy) <= 5:
            return
        pygame.draw.line(surf, color, (cx, cy), (ex, ey), 3)
        self._draw_arrow_head(surf, color, (ex, ey), command.dir_x, command.dir_y, G.marker_arrow_head_px)

    @staticmethod
    def _draw_arrow_head(surf, color, tip, dir_x, dir_y, size):
        tx, ty = tip
        pts = [
            (tx, ty),
            (tx - size * dir_x + size * 0.5 * dir_y, ty - size * dir_y - size * 0.5 * dir_x),
            (tx - size * dir_x - size * 0.5 * dir_y, ty - size * dir_y + size * 0.5 * dir_x),
        ]
        pygame.draw.polygon(surf, color, pts)

    # --- Ships
    def _ship_polygon(self, view: ShipView) -> List[Tuple[int, int]]:
        Lb = self.G.ship_length_px
        Wb = self.G.ship_width_px
        # Body frame: nose along -y ("up" at rotation 0)
        body = np.array([[0.0, -0.5 * Lb], [+0.5 * Wb, +0.5 * Lb], [-0.5 * Wb, +0.5 * Lb]])
        c, s = math.cos(view.rotation), math.sin(view.rotation)
        R = np.array([[c, -s], [s, c]])
        world = (R @ body.T).T + np.array([view.x, view.y])
        return [self._world_to_screen(px, py) for (px, py) in world]

    def _draw_ship(self, surf, view: ShipView, selected: bool):
        color = self.ship_color(view.ship_id)
        center = self._world_to_screen(view.x, view.y)
        if selected:
            pygame.draw.circle(surf, self.G.highlight_color, center, self.G.highlight_radius_px, 1)

        if view.thrust != "none":
            # Flame at the tail for forward thrust, at the nose for reverse
            sign = 1.0 if view.thrust == "forward" else -1.0
            fx, fy = math.sin(view.rotation), -math.cos(view.rotation)
            off = 0.5 * self.G.ship_length_px + 6
            flame = self._world_to_screen(view.x - sign * fx * off, view.y - sign * fy * off)
            pygame.draw.circle(surf, self.G.flame_color, flame, 5)

        pts = self._ship_polygon(view)
        pygame.draw.polygon(surf, color, pts)
        pygame.draw.polygon(surf, (0, 0, 0), pts, 2)

    def _draw_facing(self, surf, view: ShipView):
        if view.facing is None:
            return
        dir_x, dir_y, length = view.facing
        if view.control_mode is ControlMode.DIRECT_PHYSICS:
            color = self.G.velocity_arrow_color
        else:
            color = self.ship_color(view.ship_id)

        off = self.G.arrow_offset_px
        sx, sy = view.x + dir_x * off, view.y + dir_y * off
        ex, ey = sx + dir_x * length, sy + dir_y * length
        pygame.draw.line(surf, color, self._world_to_screen(sx, sy), self._world_to_screen(ex, ey), 3)
        self._draw_arrow_head(surf, color, (ex, ey), dir_x, dir_y, self.G.arrow_head_px)

    # --- HUD
    def hud_lines(self, view: Optional[ShipView]) -> List[str]:
        if view is None:
            return ["No ship selected"]
        return [
            f"Ship {view.ship_id}",
            f"Control mode: {view.control_mode.value}",
            f"Movement mode: {view.movement_mode.value}",
            f"Velocity: ({view.velocity_x:.2f}, {view.velocity_y:.2f})",
            f"Angular velocity: {view.angular_velocity:.4f}",
            f"Rotation: {math.degrees(view.rotation):.1f}°",
            f"Queued: {len(view.pending_commands)}",
        ]

    def _draw_hud(self, surf, view: Optional[ShipView]):
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.SysFont(None, self.G.hud_font_size)
        y = 8
        for line in self.hud_lines(view):
            text = self._font.render(line, True, self.G.hud_color)
            surf.blit(text, (8, y))
            y += text.get_height() + 2
