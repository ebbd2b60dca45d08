from typing import Any, Dict

from fog_of_war import FogOfWarController
from map_gen import recompute_hints
from progression import WinLossEvaluator
from state import GameState, log_event


class CombatError(Exception):
    """Exception raised when a combat cannot be resolved."""
    pass


class CombatResolver:
    def __init__(self, game_state: GameState, fog: FogOfWarController, outcome: WinLossEvaluator):
        """Resolve the player's arrival on cells of the given game."""
        self.game_state = game_state
        self.fog = fog
        self.outcome = outcome

    def resolve(self, index: int) -> Dict[str, Any]:
        """Resolve the player entering the cell at index.

        An empty cell is a safe move. An entity whose attack exceeds the
        shields destroys the ship; anything weaker is defeated and salvaged.
        """
        gs = self.game_state
        cell = gs.get_cell(index)
        if cell is None:
            raise CombatError(f"No cell at index {index}")

        result = {"cell_index": index, "outcome": "empty", "damage": 0, "reward": 0}
        entity = cell.entity

        if entity is None:
            gs.player_cell_index = index
            if gs.grid is not None:
                recompute_hints(gs.board, gs.grid, [index])
            log_event(gs, f"Empty cell {index} - safe!", type="safe_move", cell_index=index)
            return result

        attack = entity.damage or 0
        result["damage"] = attack
        result["entity_id"] = entity.id

        if attack > gs.shields:
            # Entity stays on the cell for display
            gs.is_alive = False
            gs.shields = 0
            result["outcome"] = "destroyed"
            log_event(gs, f"GAME OVER! {entity.name} attack ({attack}) exceeded shields",
                      type="game_over", cell_index=index, entity_id=entity.id,
                      summary=self.outcome.summary())
            return result

        gs.shields -= attack
        reward = entity.reward()
        gs.parts += reward
        result["outcome"] = "victory"
        result["reward"] = reward

        if entity.shield_bonus:
            gs.shield_surge_inventory += entity.shield_bonus
            result["shield_bonus"] = entity.shield_bonus

        cell.entity = None
        # Shield-surge pickups sit outside the hostile count
        if not entity.shield_surge:
            gs.cleared_cells.add(index)
        gs.player_cell_index = index
        if gs.grid is not None:
            recompute_hints(gs.board, gs.grid, gs.grid.dependent_indices(index))

        log_event(gs, f"{entity.name} defeated! Lost {attack} shields, gained {reward} parts",
                  type="combat_won", cell_index=index, entity_id=entity.id,
                  damage=attack, reward=reward, shields=gs.shields, parts=gs.parts)

        if entity.alert_message:
            log_event(gs, entity.alert_message, type="alert", cell_index=index,
                      entity_id=entity.id)

        chain = self.fog.apply_trigger(entity.id)
        if chain["revealed"] or chain["neutralized"]:
            result["chain"] = chain

        verdict = self.outcome.evaluate()
        if verdict:
            result["verdict"] = verdict
        return result
