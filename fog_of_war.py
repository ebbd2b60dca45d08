"""
Fog of war for "Clear the Sector!"

Handles:
- Covered/revealed state of each cell (reveal is one-way)
- What a renderer may see of a cell
- Chained board effects fired by defeating specific archetypes
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from catalog import EFFECT_NEUTRALIZE, EFFECT_REVEAL
from map_gen import recompute_hints
from state import GameState, log_event

logger = logging.getLogger(__name__)


class FogOfWarController:
    """Reveals cells and applies trigger-table effects to the board."""

    def __init__(self, game_state: GameState):
        self.game_state = game_state

    def is_revealed(self, index: int) -> bool:
        cell = self.game_state.get_cell(index)
        return cell is not None and cell.revealed

    def reveal(self, index: int, cause: str = 'move') -> bool:
        """
        Reveal a cell.

        Args:
            index: Cell index
            cause: What triggered the reveal, reported with the event

        Returns:
            True if the cell was covered; revealing twice is a no-op
        """
        cell = self.game_state.get_cell(index)
        if cell is None or cell.revealed:
            return False

        cell.revealed = True
        log_event(self.game_state, f"Cell {index} revealed", type='cell_revealed',
                  cell_index=index, cause=cause, view=self.cell_view(index))
        return True

    def cell_view(self, index: int) -> Optional[Dict[str, Any]]:
        """
        What the presentation layer may show of a cell.

        Covered cells expose nothing. Revealed occupied cells expose the
        entity and hide the hint; revealed empty cells expose a non-zero hint.
        """
        cell = self.game_state.get_cell(index)
        if cell is None:
            return None

        entity_data = None
        hint = None
        if cell.revealed:
            if cell.entity is not None:
                entity_data = cell.entity.display_data()
            elif cell.hint > 0:
                hint = cell.hint

        return {
            'index': index,
            'revealed': cell.revealed,
            'entity': entity_data,
            'hint': hint,
            'is_player': index == self.game_state.player_cell_index,
            'annotation': self.game_state.annotations.get(index),
        }

    def cells_holding(self, entity_ids: Iterable[str]) -> List[int]:
        """Indices of cells whose entity is one of the given archetypes."""
        wanted = set(entity_ids)
        return [cell.index for cell in self.game_state.board
                if cell.entity is not None and cell.entity.id in wanted]

    def apply_trigger(self, entity_id: str) -> Dict[str, List[int]]:
        """
        Run the chained effect keyed by a defeated archetype, if any.

        Args:
            entity_id: Archetype id of the defeated entity

        Returns:
            Dict with the cells that were revealed and the cells that were changed
        """
        result: Dict[str, List[int]] = {'revealed': [], 'neutralized': []}
        catalog = self.game_state.catalog
        trigger = catalog.trigger_for(entity_id) if catalog is not None else None
        if trigger is None:
            return result

        targets = self.cells_holding(trigger.targets)
        if trigger.effect == EFFECT_REVEAL:
            for index in targets:
                if self.reveal(index, cause=entity_id):
                    result['revealed'].append(index)
        elif trigger.effect == EFFECT_NEUTRALIZE:
            for index in targets:
                cell = self.game_state.board[index]
                cell.entity = cell.entity.with_changes(
                    damage=0, reward_parts_override=trigger.part_bonus
                )
                result['neutralized'].append(index)

        if self.game_state.grid is not None:
            recompute_hints(self.game_state.board, self.game_state.grid)

        log_event(self.game_state, f"Defeating {entity_id} triggered {trigger.effect} on "
                  f"{len(targets)} cells", type='chain_effect', source=entity_id,
                  effect=trigger.effect, **result)
        logger.debug("Trigger %s applied: %s", entity_id, result)
        return result
