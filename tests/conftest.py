import os

# pygame must never try to open a real window during tests
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest

from shipctl.commands import MarkerRegistry
from shipctl.config import ShipParams, WorldParams
from shipctl.roster import Roster
from shipctl.ship import Ship


@pytest.fixture
def markers() -> MarkerRegistry:
    return MarkerRegistry()


@pytest.fixture
def world() -> WorldParams:
    return WorldParams(width=1280.0, height=720.0, margin=25.0)


@pytest.fixture
def make_ship(markers, world):
    def factory(x=100.0, y=100.0, ship_id=None, **params):
        return Ship(x, y, world=world, params=ShipParams(**params), markers=markers, ship_id=ship_id)
    return factory


@pytest.fixture
def roster(make_ship) -> Roster:
    r = Roster()
    r.add(make_ship(100.0, 100.0, ship_id=1))
    r.add(make_ship(300.0, 100.0, ship_id=2))
    return r


def run_until_idle(ship, limit=10_000):
    """Tick until the ship has nothing to do; returns the number of ticks taken."""
    for tick in range(1, limit + 1):
        ship.update()
        if ship.active is None:
            return tick
    raise AssertionError(f"{ship!r} still busy after {limit} ticks")
