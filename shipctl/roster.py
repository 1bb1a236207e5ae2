# roster.py
"""
The set of ships in play and the single "selected ship" that global input is routed to.
"""
import logging
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .ship import ControlMode, Ship

logger = logging.getLogger(__name__)


class PointerButton(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    MIDDLE = "middle"


class Roster:
    """
    Owns every ship and the one ``selected_id``.

    Input handlers here only mutate queued/transient ship state; motion happens
    in ``update()``. Events that arrive for nothing selected, a ship in the wrong
    control mode, or a removed ship are ignored.
    """

    def __init__(self, on_selection_change: Optional[Callable[[Optional[Ship], Optional[Ship]], None]] = None):
        self._ships: Dict[int, Ship] = {}
        self.selected_id: Optional[int] = None
        self.on_selection_change = on_selection_change

    # -------------------
    # Membership
    # -------------------
    def add(self, ship: Ship) -> Ship:
        if ship.ship_id in self._ships:
            raise ValueError(f"Duplicate ship id: {ship.ship_id}")
        self._ships[ship.ship_id] = ship
        return ship

    def remove(self, ship_id: int) -> None:
        ship = self._ships.pop(ship_id, None)
        if ship is None:
            return
        if self.selected_id == ship_id:
            self.selected_id = None
            self._notify(ship, None)
        ship.destroy()

    def get(self, ship_id: int) -> Optional[Ship]:
        return self._ships.get(ship_id)

    @property
    def ships(self) -> List[Ship]:
        return list(self._ships.values())

    def __iter__(self) -> Iterator[Ship]:
        return iter(self.ships)

    def __len__(self) -> int:
        return len(self._ships)

    def ship_at(self, x: float, y: float) -> Optional[Ship]:
        """Topmost (most recently added) ship under the point."""
        for ship in reversed(self.ships):
            if ship.contains(x, y):
                return ship
        return None

    # -------------------
    # Selection
    # -------------------
    @property
    def selected(self) -> Optional[Ship]:
        if self.selected_id is None:
            return None
        return self._ships.get(self.selected_id)

    def select(self, ship_id: int) -> Optional[Ship]:
        ship = self._ships.get(ship_id)
        if ship is None:
            logger.debug("select of unknown ship %r ignored", ship_id)
            return None
        previous = self.selected
        if previous is ship:
            return ship
        if previous is not None:
            previous.deselect()
        self.selected_id = ship_id
        logger.info("Selected ship %d", ship_id)
        self._notify(previous, ship)
        return ship

    def deselect(self) -> None:
        previous = self.selected
        if previous is None:
            return
        previous.deselect()
        self.selected_id = None
        self._notify(previous, None)

    def _notify(self, previous: Optional[Ship], current: Optional[Ship]) -> None:
        if self.on_selection_change is not None:
            self.on_selection_change(previous, current)

    @property
    def pointer_claimed(self) -> bool:
        """True while pointer gestures drive the selected ship rather than the camera."""
        ship = self.selected
        return ship is not None and ship.control_mode is ControlMode.POINTER_QUEUE

    def follow_target(self) -> Optional[Tuple[float, float]]:
        ship = self.selected
        if ship is None:
            return None
        return ship.kin.x, ship.kin.y

    # -------------------
    # Pointer input
    # -------------------
    def pointer_down(self, x: float, y: float, button: PointerButton = PointerButton.PRIMARY) -> bool:
        """Returns True when the event was consumed (the camera must not also use it)."""
        if button is not PointerButton.PRIMARY:
            return False

        hit = self.ship_at(x, y)
        if hit is not None:
            self.select(hit.ship_id)
            return True

        if not self.pointer_claimed:
            return False
        return self.selected.begin_drag(x, y)

    def pointer_move(self, x: float, y: float, button_down: bool = True) -> None:
        if not button_down or not self.pointer_claimed:
            return
        self.selected.drag_to(x, y)

    def pointer_up(self, x: float, y: float, button: PointerButton = PointerButton.PRIMARY) -> None:
        if button is not PointerButton.PRIMARY or not self.pointer_claimed:
            return
        self.selected.end_drag(x, y)

    # -------------------
    # Keyboard input
    # -------------------
    def key_down(self, key: str) -> bool:
        ship = self.selected
        if ship is None:
            return False
        return ship.press_key(key)

    def key_up(self, key: str) -> None:
        ship = self.selected
        if ship is not None:
            ship.release_key(key)

    def toggle_control_mode(self) -> Optional[ControlMode]:
        ship = self.selected
        if ship is None:
            return None
        return ship.toggle_control_mode()

    # -------------------
    # Tick
    # -------------------
    def update(self) -> None:
        for ship in self.ships:
            ship.update()
