"""
Progression and end-of-game checks for "Clear the Sector!"

- Shield recharge ladder: parts buy a refill and a higher shield cap
- Shield surges: one-shot consumables that refill shields
- Win/loss evaluation after each resolved combat
"""

from typing import Any, Dict, List, Optional

from state import GameState, load_config, log_event


def ladder_value(table: List[int], step: int, ceiling: int) -> int:
    """
    Look up a ladder entry, capped at the ceiling once past the table end.

    Args:
        table: Monotone values indexed by recharge count
        step: Recharge count
        ceiling: Value used beyond the table

    Returns:
        Ladder value for this step
    """
    if 0 <= step < len(table):
        return table[step]
    return ceiling


class ProgressionEconomy:
    """Spends parts on shield recharges and consumes shield surges."""

    def __init__(self, game_state: GameState, config: Optional[Dict[str, Any]] = None):
        config = config if config is not None else load_config()
        self.game_state = game_state
        self.cost_table = list(config['recharge_costs'])
        self.result_table = list(config['recharge_results'])
        self.cost_ceiling = config['recharge_cost_ceiling']
        self.result_ceiling = config['recharge_result_ceiling']

    def cost_for(self, step: int) -> int:
        return ladder_value(self.cost_table, step, self.cost_ceiling)

    def result_for(self, step: int) -> int:
        return ladder_value(self.result_table, step, self.result_ceiling)

    def parts_needed(self) -> int:
        """Parts required for the next recharge."""
        return self.cost_for(self.game_state.recharge_count)

    def can_recharge(self) -> bool:
        return not self.game_state.is_game_over and self.game_state.parts >= self.parts_needed()

    def recharge(self) -> bool:
        """
        Buy the next shield recharge.

        Returns:
            True if the recharge happened; on failure nothing changes
        """
        if not self.can_recharge():
            return False

        gs = self.game_state
        step = gs.recharge_count
        cost = self.cost_for(step)
        new_level = self.result_for(step)

        gs.parts -= cost
        gs.recharge_count += 1
        gs.max_shields = new_level
        gs.shields = new_level

        log_event(gs, f"Shields recharged to {new_level} for {cost} parts", type='recharge',
                  cost=cost, shields=gs.shields, max_shields=gs.max_shields,
                  recharge_count=gs.recharge_count)
        return True

    def use_shield_surge(self) -> bool:
        """Spend one shield surge to refill shields. Returns True if one was used."""
        gs = self.game_state
        if gs.is_game_over or gs.shield_surge_inventory <= 0:
            return False

        gs.shields = gs.max_shields
        gs.shield_surge_inventory -= 1

        log_event(gs, f"Shield surge used, shields at {gs.shields}", type='shield_surge',
                  shields=gs.shields, remaining=gs.shield_surge_inventory)
        return True


class WinLossEvaluator:
    """Detects the terminal states of a game."""

    def __init__(self, game_state: GameState):
        self.game_state = game_state

    def evaluate(self) -> Optional[str]:
        """
        Check for a win after a successful combat.

        Returns:
            'victory' the one time the sector is cleared, 'destroyed' if the
            player is dead, otherwise None
        """
        gs = self.game_state
        if not gs.is_alive:
            return 'destroyed'
        if gs.has_won:
            return None

        total = gs.total_occupied_cells
        if total > 0 and len(gs.cleared_cells) == total:
            gs.has_won = True
            log_event(gs, f"Sector cleared with {gs.parts} parts salvaged", type='victory',
                      parts=gs.parts)
            return 'victory'
        return None

    def summary(self) -> Dict[str, Any]:
        """Outcome summary shown on the game-over screen."""
        gs = self.game_state
        if gs.has_won:
            status, title = 'victory', 'SECTOR CLEARED'
            message = 'Every hostile in the sector has been destroyed.'
        elif not gs.is_alive:
            status, title = 'destroyed', 'SHIP DESTROYED'
            message = 'Your shields were overwhelmed by enemy fire.'
        else:
            status, title, message = 'in_progress', '', ''
        return {
            'status': status,
            'title': title,
            'message': message,
            'parts_salvaged': gs.parts,
            'cleared': len(gs.cleared_cells),
            'total': gs.total_occupied_cells,
        }
