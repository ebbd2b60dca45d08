"""
Board generation module for "Clear the Sector!"
Places the flagship, its escorts and the rest of the catalog on a hex board,
computes neighbor damage hints and chooses the player's spawn.
"""

import logging
import random
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from catalog import EntityCatalog
from hex_grid import HexCoordinateSystem
from models import Board, Cell, Entity

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised when a board cannot be generated from the given inputs."""
    pass


class PlacementExhaustion(Exception):
    """Exception raised when no cell satisfies a placement constraint."""
    pass


def fisher_yates_shuffle(items: List[int], rng: random.Random) -> List[int]:
    """
    Shuffle a list in place with an unbiased Fisher-Yates pass.

    Args:
        items: List to shuffle
        rng: Random source; the only randomness used

    Returns:
        The same list, shuffled
    """
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def neighbor_damage_sum(cells: Sequence[Cell], grid: HexCoordinateSystem, index: int) -> int:
    """Total damage of the entities on a cell's neighbors."""
    total = 0
    for neighbor in grid.neighbor_indices(index):
        entity = cells[neighbor].entity
        if entity is not None:
            total += entity.damage
    return total


def recompute_hints(cells: Sequence[Cell], grid: HexCoordinateSystem,
                    indices: Optional[Iterable[int]] = None) -> None:
    """
    Refresh the neighbor damage hint of the given cells (all cells by default).
    """
    targets = range(len(cells)) if indices is None else indices
    for index in targets:
        cells[index].hint = neighbor_damage_sum(cells, grid, index)


def find_spawn_cell(grid: HexCoordinateSystem, occupied: Dict[int, Entity],
                    rng: random.Random, allow_outer_ring: bool = False) -> int:
    """
    Pick a random unoccupied cell for the player.

    Args:
        grid: Board adjacency
        occupied: Current placements
        rng: Random source
        allow_outer_ring: Whether edge cells are acceptable

    Returns:
        Index of the chosen cell

    Raises:
        PlacementExhaustion: If no cell satisfies the constraint
    """
    candidates = [
        index for index in grid.all_indices()
        if index not in occupied and (allow_outer_ring or not grid.is_outer_ring(index))
    ]
    if not candidates:
        where = "anywhere" if allow_outer_ring else "off the outer ring"
        raise PlacementExhaustion(f"No unoccupied cell {where} for the player")
    return rng.choice(candidates)


def place_catalog(grid: HexCoordinateSystem, catalog: EntityCatalog,
                  rng: random.Random) -> Tuple[Dict[int, Entity], int]:
    """
    Place the boss, its guards and every countable archetype.

    Returns:
        Mapping of cell index to placed entity, and the boss cell index

    Raises:
        ConfigurationError: If the boss or guard archetype is missing
    """
    boss = catalog.boss
    guard = catalog.guard
    if boss is None:
        raise ConfigurationError(f"Catalog has no boss archetype (roles: {catalog.roles})")
    if guard is None:
        raise ConfigurationError(f"Catalog has no guard archetype (roles: {catalog.roles})")
    if grid.cell_count == 0:
        raise ConfigurationError("Board has no cells")

    occupied: Dict[int, Entity] = {}

    boss_index = rng.randrange(grid.cell_count)
    occupied[boss_index] = boss
    for neighbor in grid.neighbor_indices(boss_index):
        occupied[neighbor] = guard

    pool = fisher_yates_shuffle(
        [index for index in grid.all_indices() if index not in occupied], rng
    )
    cursor = 0
    for archetype in catalog.placeable():
        placed = 0
        while placed < archetype.count and cursor < len(pool):
            occupied[pool[cursor]] = archetype
            cursor += 1
            placed += 1
        if placed < archetype.count:
            logger.info("Board full: placed %d of %d %s", placed, archetype.count, archetype.id)

    return occupied, boss_index


def generate_board(cells: Sequence[Cell], grid: HexCoordinateSystem, catalog: EntityCatalog,
                   rng: random.Random) -> Board:
    """
    Generate a playable board.

    Placement is computed on a working map and only committed to fresh cells
    once every step has succeeded, so a failure never leaves a half-built board.

    Args:
        cells: Board geometry (entities and reveal state are ignored)
        grid: Adjacency over the same cells
        catalog: Validated entity catalog
        rng: Injected random source

    Returns:
        Board with placed entities, hints and the initial revealed area

    Raises:
        ConfigurationError: If the catalog lacks required archetypes or no
            spawn cell exists
    """
    occupied, boss_index = place_catalog(grid, catalog, rng)
    total_occupied = len(occupied)

    degraded = False
    try:
        spawn = find_spawn_cell(grid, occupied, rng)
    except PlacementExhaustion as e:
        logger.warning("%s; relaxing spawn to the outer ring", e)
        degraded = True
        try:
            spawn = find_spawn_cell(grid, occupied, rng, allow_outer_ring=True)
        except PlacementExhaustion as e:
            raise ConfigurationError(str(e)) from e

    revealed = {spawn, *grid.neighbor_indices(spawn)}

    surge_index = None
    surge = catalog.shield_surge_archetype
    if surge is not None:
        free_neighbors = [i for i in grid.neighbor_indices(spawn) if i not in occupied]
        if free_neighbors:
            surge_index = rng.choice(free_neighbors)
            occupied[surge_index] = surge

    # Commit
    board_cells = []
    for cell in cells:
        fresh = cell.copy_geometry()
        fresh.entity = occupied.get(cell.index)
        fresh.revealed = cell.index in revealed
        board_cells.append(fresh)
    recompute_hints(board_cells, grid)

    logger.info("Generated board: %d cells, %d occupied, flagship at %d, spawn at %d",
                len(board_cells), total_occupied, boss_index, spawn)

    return Board(
        cells=board_cells,
        spawn_index=spawn,
        total_occupied_cells=total_occupied,
        boss_index=boss_index,
        surge_index=surge_index,
        degraded=degraded,
    )


def print_board_stats(board: Board) -> None:
    """
    Print a summary of a generated board.

    Args:
        board: Generated board
    """
    counts: Dict[str, int] = {}
    for cell in board.cells:
        if cell.entity is not None:
            counts[cell.entity.name] = counts.get(cell.entity.name, 0) + 1

    print("\n" + "=" * 50)
    print("BOARD STATISTICS")
    print("=" * 50)
    print(f"Total hexes: {len(board.cells)}")
    print(f"Occupied hexes: {board.total_occupied_cells}")
    print(f"Spawn: {board.spawn_index}{' (outer ring)' if board.degraded else ''}")
    print("-" * 30)
    for name, count in sorted(counts.items()):
        print(f"{name:18}: {count:3d}")
    print("=" * 50)


if __name__ == "__main__":
    from catalog import load_catalog
    from hex_grid import build_hex_board

    layout = build_hex_board(4)
    board = generate_board(layout, HexCoordinateSystem(layout), load_catalog(), random.Random(42))
    print_board_stats(board)
