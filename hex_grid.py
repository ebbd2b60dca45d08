"""
Hex coordinate system for "Clear the Sector!"
Cube-coordinate adjacency over a table of board cells, with a planar
proximity fallback for cells whose coordinates are missing or inconsistent.
"""

import logging
import math
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from models import Cell, Coordinate

logger = logging.getLogger(__name__)

# Fixed cube-direction offsets, in this order
CUBE_DIRECTIONS = [
    Coordinate(1, -1, 0), Coordinate(1, 0, -1), Coordinate(0, 1, -1),
    Coordinate(-1, 1, 0), Coordinate(-1, 0, 1), Coordinate(0, -1, 1),
]

DEFAULT_HEX_SIZE = 1.0
DEFAULT_PROXIMITY_FACTOR = 1.2


def neighbors(coord: Coordinate) -> List[Coordinate]:
    """
    Get the 6 neighboring cube coordinates.

    Args:
        coord: Center coordinate

    Returns:
        List of 6 coordinates in CUBE_DIRECTIONS order
    """
    return [coord + d for d in CUBE_DIRECTIONS]


def hex_distance(a: Coordinate, b: Coordinate) -> int:
    """Number of steps between two hexes."""
    return max(abs(a.q - b.q), abs(a.r - b.r), abs(a.s - b.s))


def hex_width(hex_size: float = DEFAULT_HEX_SIZE) -> float:
    """Center-to-center distance of two adjacent pointy-top hexes."""
    return math.sqrt(3) * hex_size


def hex_to_pixel(coord: Coordinate, hex_size: float = DEFAULT_HEX_SIZE) -> Tuple[float, float]:
    """Planar center of a pointy-top hex."""
    x = hex_size * math.sqrt(3) * (coord.q + coord.r / 2.0)
    y = hex_size * 1.5 * coord.r
    return (x, y)


_COORD_PATTERN = re.compile(r'^\s*\(?\s*(-?\d+)\s*,\s*(-?\d+)\s*(?:,\s*(-?\d+)\s*)?\)?\s*$')


def parse_coordinate(text: Optional[str]) -> Optional[Coordinate]:
    """
    Parse a coordinate label such as "1,-2,1", "(1, -2, 1)" or axial "1,-2".

    Returns None when the label is missing or unparseable. A three-part label
    that breaks q + r + s == 0 is returned as-is so the coordinate system can
    flag it as inconsistent.
    """
    if not text:
        return None
    match = _COORD_PATTERN.match(str(text))
    if not match:
        return None
    q, r = int(match.group(1)), int(match.group(2))
    if match.group(3) is None:
        return Coordinate.from_axial(q, r)
    return Coordinate(q, r, int(match.group(3)))


def build_hex_board(radius: int, hex_size: float = DEFAULT_HEX_SIZE) -> List[Cell]:
    """
    Build a hexagon-shaped board of the given radius.

    Cells are indexed row by row (ascending r, then q), the order a drawn
    board lists its hexes in. A radius-R board has 3R(R+1)+1 cells.
    """
    if radius < 0:
        raise ValueError(f"Board radius must be non-negative, got {radius}")

    cells = []
    for r in range(-radius, radius + 1):
        q_min = max(-radius, -r - radius)
        q_max = min(radius, -r + radius)
        for q in range(q_min, q_max + 1):
            coord = Coordinate.from_axial(q, r)
            cells.append(Cell(index=len(cells), coordinate=coord,
                              center=hex_to_pixel(coord, hex_size)))
    return cells


def board_from_positions(
    positions: Sequence[Tuple[float, float]],
    labels: Optional[Sequence[Optional[str]]] = None
) -> List[Cell]:
    """
    Build a board from external geometry: planar centers plus optional
    coordinate labels. Cells keep the order the positions are given in.
    """
    cells = []
    for index, center in enumerate(positions):
        label = labels[index] if labels is not None and index < len(labels) else None
        cells.append(Cell(index=index, coordinate=parse_coordinate(label),
                          center=(float(center[0]), float(center[1]))))
    return cells


class HexCoordinateSystem:
    """
    Adjacency over a fixed table of cells.

    Cells with a consistent, unique coordinate resolve neighbors through the
    coordinate table. Every other cell falls back to ranking the remaining
    cells by planar center distance.
    """

    def __init__(self, cells: Sequence[Cell], hex_size: float = DEFAULT_HEX_SIZE,
                 proximity_factor: float = DEFAULT_PROXIMITY_FACTOR):
        self.cell_count = len(cells)
        self.proximity_threshold = hex_width(hex_size) * proximity_factor
        self._coords: Dict[int, Coordinate] = {}
        self._index_by_coord: Dict[Coordinate, int] = {}
        self._neighbor_cache: Dict[int, List[int]] = {}
        self.fallback_cells: List[int] = []

        centers = [cell.center for cell in cells]
        self._has_center = np.array([c is not None for c in centers], dtype=bool)
        self._centers = np.array([c if c is not None else (0.0, 0.0) for c in centers],
                                 dtype=float).reshape(-1, 2)

        duplicates = set()
        for cell in cells:
            coord = cell.coordinate
            if coord is None or not coord.is_valid():
                continue
            if coord in self._index_by_coord:
                duplicates.add(coord)
                continue
            self._index_by_coord[coord] = cell.index
            self._coords[cell.index] = coord

        # A duplicated coordinate identifies no cell, so every holder falls back
        for coord in duplicates:
            del self._coords[self._index_by_coord.pop(coord)]

        for cell in cells:
            if cell.index not in self._coords:
                self.fallback_cells.append(cell.index)
                logger.warning("GeometryFallback: cell %d has no usable coordinate (%s); "
                               "using proximity neighbors", cell.index, cell.coordinate)

    def neighbors(self, coord: Coordinate) -> List[Coordinate]:
        return neighbors(coord)

    def index_for(self, coord: Coordinate) -> Optional[int]:
        """Cell index holding a coordinate, or None if it is off the board."""
        return self._index_by_coord.get(coord)

    def coordinate_of(self, index: int) -> Optional[Coordinate]:
        return self._coords.get(index)

    def in_fallback(self, index: int) -> bool:
        return index not in self._coords

    def neighbor_indices(self, index: int) -> List[int]:
        """
        Indices of the cells adjacent to a cell.

        Args:
            index: Cell index

        Returns:
            Up to 6 indices; edge cells simply report fewer
        """
        cached = self._neighbor_cache.get(index)
        if cached is not None:
            return list(cached)

        coord = self._coords.get(index)
        if coord is None:
            result = self._proximity_neighbors(index)
        else:
            result = []
            for neighbor in neighbors(coord):
                neighbor_index = self._index_by_coord.get(neighbor)
                if neighbor_index is not None:
                    result.append(neighbor_index)

        self._neighbor_cache[index] = result
        return list(result)

    def dependent_indices(self, index: int) -> List[int]:
        """
        Cells whose neighbor-damage hint depends on the entity at index.

        Adjacency is not symmetric once fallback cells exist: a fallback cell
        can list a coordinate cell that never lists it back, so those cells
        are added explicitly.

        Returns:
            The cell itself, its neighbors, then every fallback cell that
            counts it as a neighbor
        """
        result = [index] + self.neighbor_indices(index)
        for fallback in self.fallback_cells:
            if fallback not in result and index in self.neighbor_indices(fallback):
                result.append(fallback)
        return result

    def _proximity_neighbors(self, index: int) -> List[int]:
        """Up to 6 nearest cells within the proximity threshold; ties by index."""
        if not 0 <= index < self.cell_count or not self._has_center[index]:
            return []

        origin = self._centers[index]
        distances = np.hypot(self._centers[:, 0] - origin[0], self._centers[:, 1] - origin[1])
        indices = np.arange(self.cell_count)
        mask = self._has_center & (indices != index) & (distances < self.proximity_threshold)

        candidates = indices[mask]
        order = np.lexsort((candidates, distances[mask]))
        return [int(i) for i in candidates[order][:6]]

    def is_outer_ring(self, index: int) -> bool:
        """A cell is on the outer ring if it has fewer than 6 neighbors."""
        return len(self.neighbor_indices(index)) < 6

    def all_indices(self) -> Iterable[int]:
        return range(self.cell_count)
