"""Shared test fixtures and helpers."""

import random

import pytest

from catalog import build_catalog
from hex_grid import HexCoordinateSystem, build_hex_board
from map_gen import recompute_hints
from models import Entity
from state import DEFAULT_CONFIG, GameState

# --- Board landmarks (radius-2 board, 19 cells) ---

CENTER = 9  # Coordinate (0, 0, 0)
CENTER_NEIGHBORS = [4, 5, 8, 10, 13, 14]

# --- Test catalog ---

TEST_RECORDS = [
    {"id": "E1", "name": "Scout Drone", "sprite_name": "scout_drone", "damage": 1, "count": 3},
    {"id": "E2", "name": "Skirmisher", "sprite_name": "skirmisher", "damage": 2, "count": 2},
    {"id": "E4", "name": "Frigate", "sprite_name": "frigate", "damage": 4, "count": 1},
    {"id": "E5", "name": "Destroyer", "sprite_name": "destroyer", "damage": 5, "count": 1},
    {"id": "E6", "name": "Trader Ship", "sprite_name": "trader_ship", "damage": 1, "count": 1,
     "part_bonus": 8, "alert_text": "Warship positions shared."},
    {"id": "E7", "name": "Mercenary Ship", "sprite_name": "mercenary_ship", "damage": 3, "count": 1},
    {"id": "E8", "name": "Extinction Engine", "sprite_name": "extinction_engine", "damage": 12, "count": 1},
    {"id": "E9", "name": "Command Core", "sprite_name": "command_core", "damage": 6, "count": 1},
    {"id": "E10", "name": "Flagship Escort", "sprite_name": "flagship_escort", "damage": 4, "count": 0},
    {"id": "E11", "name": "Flagship", "sprite_name": "flagship", "damage": 9, "count": 1},
    {"id": "S1", "name": "Shield Cache", "sprite_name": "shield_cache", "damage": 0,
     "shield_bonus": 1, "shield_surge": True},
]
TEST_ROLES = {"boss": "E11", "guard": "E10"}
TEST_TRIGGERS = {
    "E11": {"effect": "reveal", "targets": ["E9"]},
    "E9": {"effect": "neutralize", "targets": ["E8"], "part_bonus": 20},
    "E6": {"effect": "reveal", "targets": ["E4", "E5"]},
    "E7": {"effect": "reveal", "targets": ["E2"]},
}

TEST_CATALOG = build_catalog(TEST_RECORDS, roles=TEST_ROLES, triggers=TEST_TRIGGERS)


def entity(entity_id):
    """Archetype from the test catalog."""
    return TEST_CATALOG.get(entity_id)


def plain_entity(damage, entity_id="X", **kwargs):
    """Entity without any trigger, for combat arithmetic."""
    return Entity(id=entity_id, name=f"Hostile {damage}", sprite_ref="hostile", damage=damage, **kwargs)


class FixedBossRandom(random.Random):
    """Random source whose first randrange call returns a chosen boss cell."""

    def __init__(self, boss_index, seed=42):
        super().__init__(seed)
        self.boss_index = boss_index
        self._boss_placed = False

    def randrange(self, *args, **kwargs):
        if not self._boss_placed:
            self._boss_placed = True
            return self.boss_index
        return super().randrange(*args, **kwargs)


def make_state(placements=None, radius=2, shields=5, player=None, revealed=(),
               catalog=TEST_CATALOG, cells=None, **kwargs):
    """
    Build a game state on a hand-placed board.

    Args:
        placements: Mapping of cell index to Entity
        radius: Board radius
        shields: Starting (and maximum) shields
        player: Player cell index
        revealed: Indices revealed up front
        cells: Board geometry (default: hexagon of the given radius)
    """
    placements = placements or {}
    if cells is None:
        cells = build_hex_board(radius)
    grid = HexCoordinateSystem(cells)
    for index, placed in placements.items():
        cells[index].entity = placed
    for index in revealed:
        cells[index].revealed = True
    recompute_hints(cells, grid)

    total = sum(1 for e in placements.values() if not e.shield_surge)
    return GameState(
        game_id="test",
        board=cells,
        shields=shields,
        max_shields=kwargs.pop("max_shields", shields),
        player_cell_index=player,
        total_occupied_cells=kwargs.pop("total_occupied_cells", total),
        grid=grid,
        catalog=catalog,
        **kwargs,
    )


# --- Fixtures ---


@pytest.fixture
def config():
    """Default configuration, independent of config.json."""
    return dict(DEFAULT_CONFIG)


@pytest.fixture
def rng():
    """Deterministic RNG seeded at 42."""
    return random.Random(42)


@pytest.fixture
def small_board():
    """Radius-2 board geometry and its adjacency."""
    cells = build_hex_board(2)
    return cells, HexCoordinateSystem(cells)


@pytest.fixture
def api_client():
    """Flask test client."""
    from app import app

    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client
