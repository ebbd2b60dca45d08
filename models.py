# Models for board elements of "Clear the Sector!"

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Coordinate:
    """Cube coordinate of a hex. Components always satisfy q + r + s == 0."""
    q: int
    r: int
    s: int

    @classmethod
    def from_axial(cls, q: int, r: int) -> 'Coordinate':
        return cls(q, r, -q - r)

    def is_valid(self) -> bool:
        return self.q + self.r + self.s == 0

    def __add__(self, other: 'Coordinate') -> 'Coordinate':
        return Coordinate(self.q + other.q, self.r + other.r, self.s + other.s)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.q, self.r, self.s)


@dataclass(frozen=True)
class Entity:
    """
    An entity archetype, or a placed copy of one.

    `count` only matters inside the catalog (placement multiplicity). Placed
    instances are never mutated; board effects swap in a modified copy.
    """
    id: str  # Catalog key, e.g. 'E11'
    name: str
    sprite_ref: str  # Icon reference handed to the renderer
    damage: int = 0  # Attack value
    count: int = 0
    reward_parts_override: Optional[int] = None  # Replaces the default reward (= damage)
    shield_bonus: Optional[int] = None  # Shield surges granted on defeat
    shield_surge: bool = False  # Marks the spawn-side pickup archetype
    alert_message: Optional[str] = None

    def with_changes(self, **changes: Any) -> 'Entity':
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def reward(self) -> int:
        """Parts scavenged when this entity is defeated."""
        if self.reward_parts_override is not None and self.reward_parts_override > 0:
            return self.reward_parts_override
        return self.damage

    def display_data(self) -> Dict[str, Any]:
        """What the renderer may show once the cell is revealed."""
        return {
            'id': self.id,
            'name': self.name,
            'sprite': self.sprite_ref,
            'damage': self.damage,
        }


@dataclass
class Cell:
    """A board hex. Identity is its index; the rest is mutated during play."""
    index: int
    coordinate: Optional[Coordinate] = None  # None when geometry is unknown
    center: Optional[Tuple[float, float]] = None  # Planar center, used for proximity fallback
    revealed: bool = False
    entity: Optional[Entity] = None
    hint: int = 0  # Sum of damage over neighboring entities

    @property
    def occupied(self) -> bool:
        return self.entity is not None

    def copy_geometry(self) -> 'Cell':
        """Fresh cell sharing this cell's geometry, with no play state."""
        return Cell(index=self.index, coordinate=self.coordinate, center=self.center)


@dataclass
class Board:
    """Result of board generation, ready to be committed to a game."""
    cells: List[Cell] = field(default_factory=list)  # Indexed by Cell.index
    spawn_index: int = 0
    total_occupied_cells: int = 0
    boss_index: Optional[int] = None
    surge_index: Optional[int] = None  # Cell holding the shield-surge pickup, if any
    degraded: bool = False  # Spawn had to fall back to the outer ring
