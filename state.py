"""
Game state management for "Clear the Sector!"
Holds the single game state object, configuration loading and the
structured event log.

Resources: shields (start 5, capped by max shields), parts (salvage currency)
Board: hexagon of hexes with cube coordinates, generated once per game
"""

from __future__ import annotations
import copy
import json
import logging
import os
import random
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from catalog import EntityCatalog, load_catalog
from hex_grid import HexCoordinateSystem, build_hex_board
from map_gen import generate_board
from models import Cell

logger = logging.getLogger(__name__)

CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'config.json')

DEFAULT_CONFIG: Dict[str, Any] = {
    'board_radius': 4,
    'hex_size': 1.0,
    'proximity_factor': 1.2,
    'starting_shields': 5,
    'recharge_costs': [4, 6, 9, 13, 18, 24],
    'recharge_results': [5, 6, 7, 8, 9, 10],
    'recharge_cost_ceiling': 30,
    'recharge_result_ceiling': 10,
    'catalog_path': 'data/entities.json',
    'warning_ratio': 0.5,
    'critical_ratio': 0.2,
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load game configuration, falling back to defaults for anything missing.

    Args:
        path: Config file path (default: config.json beside this module)

    Returns:
        Merged configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(path or CONFIG_PATH, 'r') as f:
            config.update(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError) as e:
        # Use defaults if config file is missing or invalid
        logger.warning("Using default configuration: %s", e)
    return config


Listener = Callable[[Dict[str, Any]], None]


@dataclass
class GameState:
    """
    Complete state of one game, created at game start and discarded at restart.

    The board, resources and movement queue are mutated in place by the fog of
    war, combat, movement and progression components.
    """
    game_id: str  # Unique game identifier
    board: List[Cell] = field(default_factory=list)  # Cells, indexed by Cell.index
    shields: int = 5
    max_shields: int = 5
    parts: int = 0
    is_alive: bool = True
    has_won: bool = False
    player_cell_index: Optional[int] = None
    cleared_cells: Set[int] = field(default_factory=set)
    total_occupied_cells: int = 0
    recharge_count: int = 0
    shield_surge_inventory: int = 0
    annotations: Dict[int, str] = field(default_factory=dict)  # Player notes on covered cells
    movement_queue: List[int] = field(default_factory=list)  # Pending destinations, FIFO
    move_in_flight: bool = False
    moves_resolved: int = 0
    seed: Optional[int] = None
    log: List[Dict[str, Any]] = field(default_factory=list)
    listeners: List[Listener] = field(default_factory=list, repr=False)
    grid: Optional[HexCoordinateSystem] = field(default=None, repr=False)  # Adjacency of `board`
    catalog: Optional[EntityCatalog] = field(default=None, repr=False)  # Source of trigger effects

    @property
    def is_game_over(self) -> bool:
        return not self.is_alive or self.has_won

    def get_cell(self, index: int) -> Optional[Cell]:
        if 0 <= index < len(self.board):
            return self.board[index]
        return None

    def modify_shields(self, amount: int) -> None:
        """Adjust shields, keeping them within 0..max_shields."""
        self.shields = max(0, min(self.max_shields, self.shields + amount))

    def modify_parts(self, amount: int) -> None:
        """Adjust parts, ensuring they don't go below 0."""
        self.parts = max(0, self.parts + amount)

    def upgrade_max_shields(self, amount: int) -> None:
        """Raise the shield cap. The cap never decreases."""
        self.max_shields += max(0, amount)

    def drain_queue(self) -> List[int]:
        """Discard all pending destinations, returning them."""
        drained = list(self.movement_queue)
        self.movement_queue.clear()
        self.move_in_flight = False
        return drained


def log_event(game_state: GameState, event: str, **kwargs) -> Dict[str, Any]:
    """
    Add an event to the game state log and hand it to every listener.

    Args:
        game_state: Current game state
        event: Description of the event
        **kwargs: Additional event data to include (conventionally `type`)

    Returns:
        The log entry
    """
    log_entry = {
        'move': game_state.moves_resolved,
        'event': event,
        **kwargs
    }
    game_state.log.append(log_entry)
    for listener in list(game_state.listeners):
        try:
            listener(log_entry)
        except Exception:
            # A broken subscriber must not interrupt the move that emitted the event
            logger.exception("Listener %r failed on %s event", listener, kwargs.get("type"))
    return log_entry


def initialize_game(seed: int, config: Optional[Dict[str, Any]] = None,
                    catalog: Optional[EntityCatalog] = None,
                    cells: Optional[List[Cell]] = None) -> GameState:
    """
    Initialize a new game state with a generated board.

    Args:
        seed: Random seed for board generation (required)
        config: Configuration (default: load_config())
        catalog: Entity catalog (default: the configured catalog file)
        cells: Board geometry (default: hexagon of the configured radius)

    Returns:
        New GameState instance with the player on the spawn cell

    Raises:
        ConfigurationError: If the catalog cannot produce a board
    """
    config = config if config is not None else load_config()
    if catalog is None:
        catalog_path = config['catalog_path']
        if not os.path.isabs(catalog_path):
            catalog_path = os.path.join(os.path.dirname(__file__), catalog_path)
        catalog = load_catalog(catalog_path)
    if cells is None:
        cells = build_hex_board(config['board_radius'], config['hex_size'])

    grid = HexCoordinateSystem(cells, config['hex_size'], config['proximity_factor'])
    board = generate_board(cells, grid, catalog, random.Random(seed))

    shields = config['starting_shields']
    game_state = GameState(
        game_id=str(uuid.uuid4()),
        board=board.cells,
        shields=shields,
        max_shields=shields,
        player_cell_index=board.spawn_index,
        total_occupied_cells=board.total_occupied_cells,
        seed=seed,
        grid=grid,
        catalog=catalog,
    )

    for index in grid.fallback_cells:
        log_event(game_state, f"Cell {index} uses proximity neighbors", type='geometry_fallback',
                  cell_index=index)
    if board.degraded:
        log_event(game_state, f"Spawned on the outer ring at cell {board.spawn_index}",
                  type='degraded_spawn', cell_index=board.spawn_index)
    log_event(game_state, f"Game started on {len(board.cells)} hexes with "
              f"{board.total_occupied_cells} hostiles", type='game_started',
              spawn_index=board.spawn_index)

    return game_state
